"""SM-2 spaced repetition scheduling."""

from collections.abc import Iterable
from datetime import datetime, timedelta

import structlog

from vocab_engine.algorithm.numeric import clamp, round_half_up
from vocab_engine.config import Settings
from vocab_engine.models.progress import UserProgress
from vocab_engine.timeutils import as_utc

logger = structlog.get_logger()

MIN_QUALITY = 0
MAX_QUALITY = 5
PASSING_QUALITY = 3
SECOND_INTERVAL_DAYS = 6


class ReviewScheduler:
    """Derives review intervals from recall quality (SuperMemo-2 variant).

    Stateless apart from its settings: every method takes a progress
    snapshot and returns a new one, so one instance can be shared freely
    between threads.

    Args:
        settings: Engine settings providing ease bounds, interval cap and
            the learned threshold.
    """

    def __init__(self, settings: Settings | None = None) -> None:
        self.settings = settings or Settings()

    def initialize_progress(
        self, user_id: int, word_id: int, now: datetime
    ) -> UserProgress:
        """Create the progress record for a word the user has never answered."""
        return UserProgress(
            user_id=user_id,
            word_id=word_id,
            ease_factor=self.settings.default_ease_factor,
            interval_days=1,
            repetition=0,
            next_review_at=now,
        )

    def calculate_next_review(
        self, progress: UserProgress, quality: int, now: datetime
    ) -> UserProgress:
        """Apply one graded review to a progress snapshot.

        Out-of-range inputs are clamped, never rejected.

        Args:
            progress: Current progress for the (user, word) pair.
            quality: Recall quality, nominally 0-5.
            now: Review timestamp.

        Returns:
            New progress snapshot with updated ease, interval and schedule.
        """
        cfg = self.settings
        quality = clamp(quality, MIN_QUALITY, MAX_QUALITY)

        if quality < PASSING_QUALITY:
            repetition = 0
            interval = 1
        else:
            if progress.repetition <= 0:
                interval = 1
            elif progress.repetition == 1:
                interval = SECOND_INTERVAL_DAYS
            else:
                interval = round_half_up(progress.interval_days * progress.ease_factor)
            repetition = max(progress.repetition, 0) + 1
        interval = clamp(interval, 1, cfg.max_interval_days)

        penalty = 5 - quality
        ease = progress.ease_factor + (0.1 - penalty * (0.08 + penalty * 0.02))
        ease = clamp(ease, cfg.min_ease_factor, cfg.max_ease_factor)

        update = {
            "repetition": repetition,
            "interval_days": interval,
            "ease_factor": ease,
            "next_review_at": now + timedelta(days=interval),
            "last_quality": quality,
            "last_reviewed_at": now,
        }

        if interval > cfg.learned_threshold_days and not progress.is_learned:
            update["is_learned"] = True
            update["learned_at"] = now
            logger.debug(
                "word_learned",
                user_id=progress.user_id,
                word_id=progress.word_id,
                interval_days=interval,
            )

        return progress.model_copy(update=update)


def select_due(
    progresses: Iterable[UserProgress], now: datetime, limit: int
) -> list[UserProgress]:
    """Return up to ``limit`` records due at ``now``, most overdue first."""
    due = [p for p in progresses if p.is_due(now)]
    due.sort(key=lambda p: as_utc(p.next_review_at))
    return due[:limit]


def count_overdue(progresses: Iterable[UserProgress], now: datetime) -> int:
    """Count records whose review time lies strictly before ``now``."""
    now = as_utc(now)
    return sum(
        1
        for p in progresses
        if p.next_review_at is not None and as_utc(p.next_review_at) < now
    )
