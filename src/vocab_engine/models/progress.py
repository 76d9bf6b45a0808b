"""Per (user, word) review state."""

from datetime import datetime

from pydantic import BaseModel, ConfigDict

from vocab_engine.timeutils import as_utc


class UserProgress(BaseModel):
    """SM-2 scheduling state and answer counters for one user and one word.

    Snapshots are immutable; every update produces a new instance via
    ``model_copy(update=...)``.
    """

    model_config = ConfigDict(frozen=True)

    user_id: int
    word_id: int

    # SM-2
    ease_factor: float = 2.5
    interval_days: int = 1
    repetition: int = 0
    last_quality: int | None = None

    # Scheduling
    next_review_at: datetime | None = None
    last_reviewed_at: datetime | None = None

    # Performance
    times_correct: int = 0
    times_incorrect: int = 0
    last_response_time_ms: int | None = None
    avg_response_time_ms: int | None = None

    # Learning status
    is_learned: bool = False
    learned_at: datetime | None = None

    @property
    def total_answers(self) -> int:
        return self.times_correct + self.times_incorrect

    @property
    def success_rate(self) -> float:
        """Share of correct answers, 0.0 when never answered."""
        if self.total_answers == 0:
            return 0.0
        return self.times_correct / self.total_answers

    def is_due(self, now: datetime) -> bool:
        """Whether the scheduled review time has been reached."""
        return self.next_review_at is not None and as_utc(self.next_review_at) <= as_utc(now)
