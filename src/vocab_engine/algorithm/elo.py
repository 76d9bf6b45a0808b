"""Elo based difficulty matching between learners and words."""

import random
from collections.abc import Sequence

import structlog

from vocab_engine.algorithm.numeric import clamp, round_half_up
from vocab_engine.config import Settings
from vocab_engine.models.learner import UserLearner
from vocab_engine.models.results import EloUpdate
from vocab_engine.models.word import Word

logger = structlog.get_logger()

ELO_SCALE = 400.0


def expected_score(user_rating: int, word_rating: int) -> float:
    """Probability that a learner with ``user_rating`` answers the word correctly."""
    return 1.0 / (1.0 + 10 ** ((word_rating - user_rating) / ELO_SCALE))


class DifficultyMatcher:
    """Treats every answer as a match between learner and word.

    A correct answer moves the learner up and the word down by the same
    amount; selection prefers words whose rating is close to the learner's.

    Args:
        settings: Engine settings (K-factor, rating bounds, tolerance).
        rng: Random source for weighted selection. Pass a seeded
            ``random.Random`` for reproducible picks.
    """

    def __init__(
        self,
        settings: Settings | None = None,
        rng: random.Random | None = None,
    ) -> None:
        self.settings = settings or Settings()
        self.rng = rng or random.Random()

    def expected_score(self, user_rating: int, word_rating: int) -> float:
        return expected_score(user_rating, word_rating)

    def update_ratings(
        self, user_rating: int, word_rating: int, correct: bool
    ) -> EloUpdate:
        """Compute the symmetric rating change for one answer.

        Args:
            user_rating: Learner rating before the answer.
            word_rating: Word difficulty rating before the answer.
            correct: Whether the learner answered correctly.

        Returns:
            EloUpdate with clamped new ratings and the unclamped deltas.
        """
        cfg = self.settings
        expected = expected_score(user_rating, word_rating)
        actual = 1 if correct else 0

        user_delta = round_half_up(cfg.k_factor * (actual - expected))
        word_delta = -user_delta

        new_user_rating = clamp(user_rating + user_delta, cfg.min_rating, cfg.max_rating)
        new_word_rating = clamp(word_rating + word_delta, cfg.min_rating, cfg.max_rating)

        logger.debug(
            "elo_update",
            user_rating=user_rating,
            new_user_rating=new_user_rating,
            word_rating=word_rating,
            new_word_rating=new_word_rating,
        )

        return EloUpdate(
            old_user_rating=user_rating,
            new_user_rating=new_user_rating,
            user_delta=user_delta,
            old_word_rating=word_rating,
            new_word_rating=new_word_rating,
            word_delta=word_delta,
            expected_score=expected,
        )

    def apply_update(
        self, learner: UserLearner, word: Word, correct: bool
    ) -> tuple[UserLearner, Word, EloUpdate]:
        """Rate an answer and return new learner and word snapshots."""
        update = self.update_ratings(learner.elo_rating, word.difficulty_rating, correct)
        return (
            learner.model_copy(update={"elo_rating": update.new_user_rating}),
            word.model_copy(update={"difficulty_rating": update.new_word_rating}),
            update,
        )

    def select_next_word(
        self,
        user_rating: int,
        candidates: Sequence[Word],
        tolerance: int | None = None,
        rng: random.Random | None = None,
    ) -> Word | None:
        """Pick a word close to the learner's rating.

        Words within ``tolerance`` are drawn at random, weighted towards the
        smallest rating gap. When nothing is within tolerance the closest
        word wins, ties going to the earliest candidate.

        Args:
            user_rating: Current learner rating.
            candidates: Words to choose from, in caller order.
            tolerance: Maximum rating gap; defaults to the configured value.
            rng: Overrides the matcher's random source for this call.

        Returns:
            The selected word, or None when there are no candidates.
        """
        if not candidates:
            return None
        if tolerance is None:
            tolerance = self.settings.match_tolerance_rating

        matched = [
            w for w in candidates if abs(w.difficulty_rating - user_rating) <= tolerance
        ]
        if not matched:
            return min(candidates, key=lambda w: abs(w.difficulty_rating - user_rating))

        return self._weighted_select(matched, user_rating, rng or self.rng)

    @staticmethod
    def _weighted_select(
        words: Sequence[Word], user_rating: int, rng: random.Random
    ) -> Word:
        if len(words) == 1:
            return words[0]

        weights = [1.0 / (1 + abs(w.difficulty_rating - user_rating)) for w in words]
        draw = rng.random() * sum(weights)

        cumulative = 0.0
        for word, weight in zip(words, weights):
            cumulative += weight
            if cumulative >= draw:
                return word

        # Floating point drift can leave the draw just above the final sum
        return words[-1]
