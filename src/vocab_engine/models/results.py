"""Immutable result records returned to callers."""

from datetime import datetime
from enum import StrEnum

from pydantic import BaseModel, ConfigDict

from vocab_engine.models.learner import StreakHistoryRecord, UserLearner
from vocab_engine.models.progress import UserProgress
from vocab_engine.models.word import Word


class StreakOutcome(StrEnum):
    """Result of a day-boundary evaluation."""

    MAINTAINED = "maintained"
    MILESTONE = "milestone"
    FROZEN = "frozen"
    BROKEN = "broken"


class EloUpdate(BaseModel):
    """Rating changes produced by one answer."""

    model_config = ConfigDict(frozen=True)

    old_user_rating: int
    new_user_rating: int
    user_delta: int
    old_word_rating: int
    new_word_rating: int
    word_delta: int
    expected_score: float


class StreakStatus(BaseModel):
    """Read-only streak snapshot for display."""

    model_config = ConfigDict(frozen=True)

    current_streak: int
    longest_streak: int
    completed_today: bool
    at_risk: bool
    freezes_available: int
    minutes_until_reset: int


class StreakResult(BaseModel):
    """Outcome of ``StreakTracker.process_end_of_day``.

    ``learner`` is the post-evaluation snapshot and ``history`` the record
    the caller must append to the streak log.
    """

    model_config = ConfigDict(frozen=True)

    outcome: StreakOutcome
    current_streak: int
    lost_streak: int = 0
    freeze_earned: bool = False
    learner: UserLearner
    history: StreakHistoryRecord


class FreezeActivation(BaseModel):
    """Outcome of a manual freeze request. Truthy when a freeze was spent."""

    model_config = ConfigDict(frozen=True)

    activated: bool
    learner: UserLearner
    history: StreakHistoryRecord | None = None

    def __bool__(self) -> bool:
        return self.activated


class AnswerResult(BaseModel):
    """Everything that changed because of one answer.

    ``progress``, ``learner`` and ``word`` are the new snapshots. The
    caller writes them back inside a single transaction.
    """

    model_config = ConfigDict(frozen=True)

    correct: bool
    quality: int

    # Elo
    elo_change: int
    new_user_rating: int
    new_word_rating: int
    expected_score: float

    # SM-2
    new_ease_factor: float
    new_interval: int
    next_review_at: datetime
    is_learned: bool
    newly_learned: bool = False

    streak_status: StreakStatus

    progress: UserProgress
    learner: UserLearner
    word: Word


class NextWordResult(BaseModel):
    """The word to show next, if any."""

    model_config = ConfigDict(frozen=True)

    word: Word | None = None
    progress: UserProgress | None = None
    is_review: bool = False
    due_count: int = 0


class ProgressSummary(BaseModel):
    """Aggregate answer statistics over a set of progress records."""

    model_config = ConfigDict(frozen=True)

    total_learned: int = 0
    in_progress: int = 0
    total_reviews: int = 0
    correct_answers: int = 0
    incorrect_answers: int = 0
    accuracy_percent: float = 0.0


class LevelProgress(BaseModel):
    """Learned share of one CEFR level."""

    model_config = ConfigDict(frozen=True)

    total: int = 0
    learned: int = 0
    in_progress: int = 0
    percentage: float = 0.0


class DayBoundaryReport(BaseModel):
    """Counters from one day-boundary scan."""

    model_config = ConfigDict(frozen=True)

    processed: int = 0
    skipped: int = 0
    failed: int = 0
    maintained: int = 0
    milestones: int = 0
    frozen: int = 0
    broken: int = 0
    failed_user_ids: tuple[int, ...] = ()
