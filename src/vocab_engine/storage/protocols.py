"""Query surfaces the engine expects from the hosting application."""

from contextlib import AbstractContextManager
from datetime import date, datetime
from typing import Protocol

from vocab_engine.models.learner import StreakHistoryRecord, UserLearner
from vocab_engine.models.progress import UserProgress
from vocab_engine.models.word import CefrLevel, Word


class LearningRepositoryProtocol(Protocol):
    def find_due_for_review(
        self, user_id: int, now: datetime, limit: int
    ) -> list[UserProgress]:
        """Progress with ``next_review_at <= now``, ascending by ``next_review_at``."""
        ...

    def find_new_words_for_user(
        self, user_id: int, level: CefrLevel, limit: int
    ) -> list[Word]:
        """Active, never-attempted words at ``level``, ascending by difficulty."""
        ...

    def get_word(self, word_id: int) -> Word | None: ...

    def count_overdue(self, user_id: int, now: datetime) -> int: ...

    def was_user_active_on_date(self, user_id: int, day: date) -> bool: ...


class LearnerStoreProtocol(Protocol):
    def list_learners(self) -> list[UserLearner]: ...

    def get_learner(self, user_id: int) -> UserLearner | None: ...

    def save_learner(self, learner: UserLearner) -> UserLearner: ...

    def append_streak_history(self, record: StreakHistoryRecord) -> None: ...

    def user_lock(self, user_id: int) -> AbstractContextManager: ...

    def was_user_active_on_date(self, user_id: int, day: date) -> bool: ...
