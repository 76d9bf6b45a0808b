"""Daily streak continuity with streak freezes."""

from datetime import date, datetime, time, timedelta
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

import structlog

from vocab_engine.config import Settings
from vocab_engine.models.learner import StreakHistoryRecord, UserLearner
from vocab_engine.models.results import (
    FreezeActivation,
    StreakOutcome,
    StreakResult,
    StreakStatus,
)
from vocab_engine.timeutils import as_utc

logger = structlog.get_logger()


class StreakTracker:
    """Maintains per-user streaks across timezone-local day boundaries.

    A learner is ACTIVE while ``current_streak > 0`` and INACTIVE at zero.
    Transitions only happen in :meth:`process_end_of_day`, which an external
    scheduler calls once per user after local midnight. Every mutating
    method returns a new learner snapshot together with the history record
    the caller must append.
    """

    def __init__(self, settings: Settings | None = None) -> None:
        self.settings = settings or Settings()

    def resolve_timezone(self, name: str | None) -> ZoneInfo:
        """Return the learner's zone, or the configured default when unusable."""
        default = self.settings.default_timezone
        if not name or not name.strip():
            return ZoneInfo(default)
        try:
            return ZoneInfo(name)
        except (ZoneInfoNotFoundError, ValueError):
            logger.warning("invalid_timezone", timezone=name, fallback=default)
            return ZoneInfo(default)

    def local_now(self, learner: UserLearner, now: datetime) -> datetime:
        return as_utc(now).astimezone(self.resolve_timezone(learner.timezone))

    def local_date(self, learner: UserLearner, now: datetime) -> date:
        """The learner's calendar date at ``now``."""
        return self.local_now(learner, now).date()

    def local_yesterday(self, learner: UserLearner, now: datetime) -> date:
        return self.local_date(learner, now) - timedelta(days=1)

    def minutes_until_reset(self, learner: UserLearner, now: datetime) -> int:
        """Whole minutes left until the next local midnight."""
        local = self.local_now(learner, now)
        midnight = datetime.combine(
            local.date() + timedelta(days=1), time(0), tzinfo=local.tzinfo
        )
        # Compare in UTC so DST transitions are counted in real minutes
        remaining = as_utc(midnight) - as_utc(now)
        return max(0, int(remaining.total_seconds() // 60))

    def process_end_of_day(
        self, learner: UserLearner, was_active_yesterday: bool, now: datetime
    ) -> StreakResult:
        """Evaluate the local day that just ended.

        Args:
            learner: Learner snapshot before evaluation.
            was_active_yesterday: Whether the learner answered anything on
                the local day before ``now``.
            now: Evaluation time; the evaluated day is the learner's local
                yesterday.

        Returns:
            StreakResult carrying the outcome, the new learner snapshot and
            the history record for the evaluated day.
        """
        yesterday = self.local_yesterday(learner, now)
        if was_active_yesterday:
            return self._maintain_streak(learner, yesterday)
        return self._handle_missed_day(learner, yesterday)

    def _maintain_streak(self, learner: UserLearner, day: date) -> StreakResult:
        cfg = self.settings
        new_streak = learner.current_streak + 1
        freezes = learner.streak_freezes_available

        freeze_earned = (
            new_streak % cfg.freeze_milestone_days == 0 and freezes < cfg.max_freezes
        )
        if freeze_earned:
            freezes += 1
            logger.info("streak_freeze_earned", user_id=learner.id, streak=new_streak)

        updated = learner.model_copy(
            update={
                "current_streak": new_streak,
                "longest_streak": max(learner.longest_streak, new_streak),
                "streak_freezes_available": freezes,
            }
        )
        return StreakResult(
            outcome=StreakOutcome.MILESTONE if freeze_earned else StreakOutcome.MAINTAINED,
            current_streak=new_streak,
            freeze_earned=freeze_earned,
            learner=updated,
            history=self._record(learner.id, day, new_streak, was_active=True),
        )

    def _handle_missed_day(self, learner: UserLearner, day: date) -> StreakResult:
        if learner.streak_freezes_available > 0:
            updated = learner.model_copy(
                update={
                    "streak_freezes_available": learner.streak_freezes_available - 1,
                    "streak_freeze_used_at": day,
                }
            )
            logger.info("streak_freeze_used", user_id=learner.id, streak=learner.current_streak)
            return StreakResult(
                outcome=StreakOutcome.FROZEN,
                current_streak=learner.current_streak,
                learner=updated,
                history=self._record(
                    learner.id, day, learner.current_streak, freeze_used=True
                ),
            )

        lost = learner.current_streak
        updated = learner.model_copy(update={"current_streak": 0})
        logger.info("streak_broken", user_id=learner.id, lost_streak=lost)
        return StreakResult(
            outcome=StreakOutcome.BROKEN,
            current_streak=0,
            lost_streak=lost,
            learner=updated,
            history=self._record(learner.id, day, 0),
        )

    def get_streak_status(
        self, learner: UserLearner, completed_today: bool, now: datetime
    ) -> StreakStatus:
        """Build the display snapshot; does not change the learner."""
        minutes_left = self.minutes_until_reset(learner, now)
        return StreakStatus(
            current_streak=learner.current_streak,
            longest_streak=learner.longest_streak,
            completed_today=completed_today,
            at_risk=not completed_today and minutes_left < self.settings.at_risk_minutes,
            freezes_available=learner.streak_freezes_available,
            minutes_until_reset=minutes_left,
        )

    def activate_freeze(self, learner: UserLearner, now: datetime) -> FreezeActivation:
        """Spend one freeze on the learner's current local day.

        Returns an inactive FreezeActivation, with the learner untouched,
        when no freezes are left.
        """
        if learner.streak_freezes_available <= 0:
            return FreezeActivation(activated=False, learner=learner)

        today = self.local_date(learner, now)
        updated = learner.model_copy(
            update={
                "streak_freezes_available": learner.streak_freezes_available - 1,
                "streak_freeze_used_at": today,
            }
        )
        logger.info("streak_freeze_activated", user_id=learner.id)
        return FreezeActivation(
            activated=True,
            learner=updated,
            history=self._record(learner.id, today, learner.current_streak, freeze_used=True),
        )

    @staticmethod
    def _record(
        user_id: int,
        day: date,
        streak_count: int,
        was_active: bool = False,
        freeze_used: bool = False,
    ) -> StreakHistoryRecord:
        return StreakHistoryRecord(
            user_id=user_id,
            streak_date=day,
            streak_count=streak_count,
            was_active=was_active,
            freeze_used=freeze_used,
        )
