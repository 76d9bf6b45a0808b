"""Learning flow combining SM-2 scheduling, Elo matching and streaks."""

from collections.abc import Callable
from datetime import datetime, timezone

import structlog

from vocab_engine.algorithm.elo import DifficultyMatcher
from vocab_engine.algorithm.numeric import round_half_up
from vocab_engine.algorithm.spaced_repetition import ReviewScheduler
from vocab_engine.config import Settings
from vocab_engine.models.learner import UserLearner
from vocab_engine.models.progress import UserProgress
from vocab_engine.models.results import AnswerResult, NextWordResult, StreakStatus
from vocab_engine.models.word import CefrLevel, Word
from vocab_engine.storage.protocols import LearningRepositoryProtocol
from vocab_engine.streak.tracker import StreakTracker

logger = structlog.get_logger()

FAST_RESPONSE_MS = 2000
MODERATE_RESPONSE_MS = 5000


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def map_to_quality(
    correct: bool, used_hint: bool, recognized: bool, response_time_ms: int
) -> int:
    """Translate an answer into an SM-2 quality score (0-5).

    Args:
        correct: Whether the answer was right.
        used_hint: Whether a hint was shown before answering.
        recognized: For wrong answers, whether the learner recognized the
            word once revealed.
        response_time_ms: Time to answer.

    Returns:
        0 or 1 for wrong answers, 2 for hinted answers, otherwise 3-5 by
        response time.
    """
    if not correct:
        return 1 if recognized else 0
    if used_hint:
        return 2
    if response_time_ms < FAST_RESPONSE_MS:
        return 5
    if response_time_ms < MODERATE_RESPONSE_MS:
        return 4
    return 3


def running_average(previous: int | None, new_value: int, count: int) -> int:
    """Incremental mean where ``count`` already includes ``new_value``."""
    if previous is None or count <= 1:
        return new_value
    return round_half_up((previous * (count - 1) + new_value) / count)


class LearningOrchestrator:
    """Decides what a learner sees next and records how they did.

    The orchestrator only computes. ``process_answer`` returns new progress,
    learner and word snapshots; the caller must write them back inside one
    transaction.

    Args:
        repository: Read access to words, due progress and daily activity.
        settings: Engine settings shared with the default components.
        scheduler: SM-2 scheduler; built from ``settings`` when omitted.
        matcher: Elo matcher; built from ``settings`` when omitted.
        tracker: Streak tracker; built from ``settings`` when omitted.
        clock: Returns the current time; used when ``now`` is not passed.
    """

    def __init__(
        self,
        repository: LearningRepositoryProtocol,
        settings: Settings | None = None,
        scheduler: ReviewScheduler | None = None,
        matcher: DifficultyMatcher | None = None,
        tracker: StreakTracker | None = None,
        clock: Callable[[], datetime] = utc_now,
    ) -> None:
        self.settings = settings or Settings()
        self.repository = repository
        self.scheduler = scheduler or ReviewScheduler(self.settings)
        self.matcher = matcher or DifficultyMatcher(self.settings)
        self.tracker = tracker or StreakTracker(self.settings)
        self._clock = clock

    def process_answer(
        self,
        progress: UserProgress | None,
        word: Word,
        learner: UserLearner,
        correct: bool,
        used_hint: bool = False,
        recognized: bool = False,
        *,
        response_time_ms: int,
        now: datetime | None = None,
    ) -> AnswerResult:
        """Grade one answer and compute every resulting state change.

        Args:
            progress: Existing progress for the pair, or None for a word the
                learner has never answered.
            word: The word that was asked.
            learner: The answering learner.
            correct: Whether the answer was right.
            used_hint: Whether a hint was used.
            recognized: Whether a wrong answer was at least recognized.
            response_time_ms: Answer latency; grades correct answers.
            now: Answer time, defaults to the orchestrator clock.

        Returns:
            AnswerResult with rating and scheduling changes, streak status
            and the new snapshots to persist.
        """
        now = now or self._clock()
        if progress is None:
            progress = self.scheduler.initialize_progress(learner.id, word.id, now)

        quality = map_to_quality(correct, used_hint, recognized, response_time_ms)

        # Rating and scheduling must be persisted together by the caller
        new_learner, new_word, elo = self.matcher.apply_update(learner, word, correct)
        new_word = new_word.model_copy(
            update={
                "times_shown": new_word.times_shown + 1,
                "times_correct": new_word.times_correct + (1 if correct else 0),
            }
        )
        scheduled = self.scheduler.calculate_next_review(progress, quality, now)

        times_correct = scheduled.times_correct + (1 if correct else 0)
        times_incorrect = scheduled.times_incorrect + (0 if correct else 1)
        answered = times_correct + times_incorrect
        scheduled = scheduled.model_copy(
            update={
                "times_correct": times_correct,
                "times_incorrect": times_incorrect,
                "last_response_time_ms": response_time_ms,
                "avg_response_time_ms": running_average(
                    scheduled.avg_response_time_ms, response_time_ms, answered
                ),
            }
        )

        # The answer being processed counts as today's activity
        streak_status = self.tracker.get_streak_status(new_learner, True, now)

        logger.debug(
            "answer_processed",
            user_id=learner.id,
            word_id=word.id,
            correct=correct,
            quality=quality,
            interval_days=scheduled.interval_days,
        )

        return AnswerResult(
            correct=correct,
            quality=quality,
            elo_change=elo.user_delta,
            new_user_rating=elo.new_user_rating,
            new_word_rating=elo.new_word_rating,
            expected_score=elo.expected_score,
            new_ease_factor=scheduled.ease_factor,
            new_interval=scheduled.interval_days,
            next_review_at=scheduled.next_review_at,
            is_learned=scheduled.is_learned,
            newly_learned=scheduled.is_learned and not progress.is_learned,
            streak_status=streak_status,
            progress=scheduled,
            learner=new_learner,
            word=new_word,
        )

    def get_next_word(
        self, learner: UserLearner, level: CefrLevel, now: datetime | None = None
    ) -> NextWordResult:
        """Choose the next word: due reviews first, then new words at ``level``."""
        now = now or self._clock()

        due = self.repository.find_due_for_review(
            learner.id, now, self.settings.review_batch_size
        )
        if due:
            words = self._words_for(due)
            selected = self.matcher.select_next_word(learner.elo_rating, words)
            if selected is not None:
                progress = next((p for p in due if p.word_id == selected.id), None)
                return NextWordResult(
                    word=selected,
                    progress=progress,
                    is_review=True,
                    due_count=len(due),
                )

        new_words = self.repository.find_new_words_for_user(
            learner.id, level, self.settings.new_word_batch_size
        )
        if new_words:
            selected = self.matcher.select_next_word(learner.elo_rating, new_words)
            return NextWordResult(word=selected)

        logger.info("no_words_available", user_id=learner.id, level=str(level))
        return NextWordResult()

    def get_quiz_words(
        self,
        learner: UserLearner,
        level: CefrLevel,
        count: int,
        now: datetime | None = None,
    ) -> list[Word]:
        """Mix up to ``count // 2`` due reviews with new words at ``level``.

        The result may be shorter than ``count`` when both pools run dry.
        """
        if count <= 0:
            return []
        now = now or self._clock()

        review_quota = count // 2
        result: list[Word] = []
        if review_quota > 0:
            due = self.repository.find_due_for_review(learner.id, now, review_quota)
            result.extend(self._words_for(due))

        if len(result) < count:
            result.extend(
                self.repository.find_new_words_for_user(
                    learner.id, level, count - len(result)
                )
            )
        return result

    def get_review_count(self, learner: UserLearner, now: datetime | None = None) -> int:
        return self.repository.count_overdue(learner.id, now or self._clock())

    def get_new_words(self, learner: UserLearner, level: CefrLevel, limit: int) -> list[Word]:
        return self.repository.find_new_words_for_user(learner.id, level, limit)

    def get_streak_status(
        self, learner: UserLearner, now: datetime | None = None
    ) -> StreakStatus:
        """Streak snapshot using the learner's recorded activity for today."""
        now = now or self._clock()
        today = self.tracker.local_date(learner, now)
        completed = self.repository.was_user_active_on_date(learner.id, today)
        return self.tracker.get_streak_status(learner, completed, now)

    def _words_for(self, progresses: list[UserProgress]) -> list[Word]:
        words = []
        for progress in progresses:
            word = self.repository.get_word(progress.word_id)
            if word is not None and word.is_active:
                words.append(word)
        return words
