"""Day-boundary scan that evaluates streaks for every learner."""

from collections import Counter
from datetime import date, datetime, timedelta

import structlog

from vocab_engine.models.learner import UserLearner
from vocab_engine.models.results import DayBoundaryReport, StreakOutcome
from vocab_engine.storage.protocols import LearnerStoreProtocol
from vocab_engine.streak.tracker import StreakTracker
from vocab_engine.timeutils import as_utc

logger = structlog.get_logger()

MIDNIGHT_HOUR = 0


class DayBoundaryJob:
    """Runs ``StreakTracker.process_end_of_day`` for each learner.

    Meant to be triggered hourly: with ``only_at_local_midnight`` a learner
    is evaluated only during the first local hour of their day, so every
    timezone is handled once. A failure for one learner is logged and the
    scan moves on.

    Args:
        store: Learner persistence with per-user locking.
        tracker: Streak rules.
    """

    def __init__(self, store: LearnerStoreProtocol, tracker: StreakTracker) -> None:
        self.store = store
        self.tracker = tracker
        self._evaluated: set[tuple[int, date]] = set()

    def run(self, now: datetime, only_at_local_midnight: bool = True) -> DayBoundaryReport:
        """Scan all learners once.

        Args:
            now: Trigger time.
            only_at_local_midnight: Skip learners whose local hour is not 0.

        Returns:
            DayBoundaryReport with per-outcome counters.
        """
        logger.info("streak_processing_started")
        self._prune_evaluated(now)
        outcomes: Counter[StreakOutcome] = Counter()
        skipped = 0
        failed_ids: list[int] = []

        for learner in self.store.list_learners():
            try:
                local = self.tracker.local_now(learner, now)
                if only_at_local_midnight and local.hour != MIDNIGHT_HOUR:
                    skipped += 1
                    continue

                outcome = self._process_learner(learner.id, now)
                if outcome is None:
                    skipped += 1
                else:
                    outcomes[outcome] += 1
            except Exception as e:
                failed_ids.append(learner.id)
                logger.error("streak_processing_failed", user_id=learner.id, error=str(e))

        report = DayBoundaryReport(
            processed=sum(outcomes.values()),
            skipped=skipped,
            failed=len(failed_ids),
            maintained=outcomes[StreakOutcome.MAINTAINED],
            milestones=outcomes[StreakOutcome.MILESTONE],
            frozen=outcomes[StreakOutcome.FROZEN],
            broken=outcomes[StreakOutcome.BROKEN],
            failed_user_ids=tuple(failed_ids),
        )
        logger.info(
            "streak_processing_completed",
            processed=report.processed,
            broken=report.broken,
            frozen=report.frozen,
            failed=report.failed,
        )
        return report

    def _process_learner(self, user_id: int, now: datetime) -> StreakOutcome | None:
        with self.store.user_lock(user_id):
            # Re-read under the lock; the listed snapshot may be stale
            learner = self.store.get_learner(user_id)
            if learner is None:
                return None

            yesterday = self.tracker.local_yesterday(learner, now)
            if (user_id, yesterday) in self._evaluated:
                return None

            was_active = self.store.was_user_active_on_date(user_id, yesterday)
            result = self.tracker.process_end_of_day(learner, was_active, now)
            self.store.save_learner(result.learner)
            self.store.append_streak_history(result.history)
            self._evaluated.add((user_id, yesterday))

        logger.debug(
            "streak_processed",
            user_id=user_id,
            outcome=result.outcome.value,
            streak=result.current_streak,
        )
        return result.outcome

    def _prune_evaluated(self, now: datetime) -> None:
        # Local dates stay within one day of the UTC date
        cutoff = as_utc(now).date() - timedelta(days=2)
        self._evaluated = {key for key in self._evaluated if key[1] >= cutoff}

    def find_reminder_candidates(self, now: datetime) -> list[UserLearner]:
        """Learners with a running streak and no activity yet today."""
        candidates = []
        for learner in self.store.list_learners():
            if learner.current_streak == 0:
                continue
            today = self.tracker.local_date(learner, now)
            if not self.store.was_user_active_on_date(learner.id, today):
                candidates.append(learner)
        return candidates
