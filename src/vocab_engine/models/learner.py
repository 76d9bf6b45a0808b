"""Learner state, streak history and daily activity models."""

from datetime import date

from pydantic import BaseModel, ConfigDict


class UserLearner(BaseModel):
    """Skill rating and streak bookkeeping for one user."""

    model_config = ConfigDict(frozen=True)

    id: int
    elo_rating: int = 1000
    current_streak: int = 0
    longest_streak: int = 0
    streak_freezes_available: int = 0
    streak_freeze_used_at: date | None = None
    timezone: str | None = None  # IANA name, e.g. "Europe/Berlin"


class StreakHistoryRecord(BaseModel):
    """One append-only entry of the streak log."""

    model_config = ConfigDict(frozen=True)

    user_id: int
    streak_date: date
    streak_count: int
    was_active: bool = False
    freeze_used: bool = False


class DailyStats(BaseModel):
    """Answer activity of one user on one local calendar day."""

    model_config = ConfigDict(frozen=True)

    user_id: int
    stat_date: date
    words_reviewed: int = 0
    words_correct: int = 0
    new_words_learned: int = 0
    sessions_completed: int = 0
    total_time_seconds: int = 0

    @property
    def is_active(self) -> bool:
        return self.words_reviewed > 0 or self.new_words_learned > 0

    @property
    def accuracy(self) -> float:
        if self.words_reviewed == 0:
            return 0.0
        return self.words_correct / self.words_reviewed
