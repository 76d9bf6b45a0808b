"""In-memory learner, word and progress store.

Implements the repository protocols over plain dicts. Each learner and
each word has its own lock; writers hold them so a day-boundary update
never interleaves with an answer commit for the same user, and two
learners answering the same word do not lose each other's counts.
"""

import threading
from collections.abc import Iterator
from contextlib import contextmanager
from datetime import date, datetime

import structlog

from vocab_engine.algorithm.spaced_repetition import count_overdue, select_due
from vocab_engine.learning.stats import (
    record_answer,
    record_new_word_learned,
    record_session_completed,
    session_duration_seconds,
)
from vocab_engine.models.learner import DailyStats, StreakHistoryRecord, UserLearner
from vocab_engine.models.progress import UserProgress
from vocab_engine.models.results import AnswerResult
from vocab_engine.models.word import CefrLevel, Word

logger = structlog.get_logger()


class InMemoryLearningStore:
    """Dict-backed store satisfying the engine's collaborator queries."""

    def __init__(self) -> None:
        self._words: dict[int, Word] = {}
        self._learners: dict[int, UserLearner] = {}
        self._progress: dict[tuple[int, int], UserProgress] = {}
        self._daily_stats: dict[tuple[int, date], DailyStats] = {}
        self._streak_history: list[StreakHistoryRecord] = []
        self._locks: dict[int, threading.RLock] = {}
        self._word_locks: dict[int, threading.RLock] = {}
        self._locks_guard = threading.Lock()

    # Locking

    @contextmanager
    def user_lock(self, user_id: int) -> Iterator[None]:
        """Hold the per-user lock for the duration of the block."""
        with self._locks_guard:
            lock = self._locks.setdefault(user_id, threading.RLock())
        with lock:
            yield

    @contextmanager
    def word_lock(self, word_id: int) -> Iterator[None]:
        """Hold the per-word lock; always taken after the user lock."""
        with self._locks_guard:
            lock = self._word_locks.setdefault(word_id, threading.RLock())
        with lock:
            yield

    # Words

    def add_word(self, word: Word) -> Word:
        self._words[word.id] = word
        return word

    def get_word(self, word_id: int) -> Word | None:
        return self._words.get(word_id)

    def list_words(self, level: CefrLevel | None = None) -> list[Word]:
        return [w for w in self._words.values() if level is None or w.cefr_level == level]

    def find_new_words_for_user(
        self, user_id: int, level: CefrLevel, limit: int
    ) -> list[Word]:
        attempted = {word_id for (uid, word_id) in self._progress if uid == user_id}
        fresh = [
            w
            for w in self._words.values()
            if w.is_active and w.cefr_level == level and w.id not in attempted
        ]
        fresh.sort(key=lambda w: w.difficulty_rating)
        return fresh[:limit]

    # Learners

    def save_learner(self, learner: UserLearner) -> UserLearner:
        self._learners[learner.id] = learner
        return learner

    def get_learner(self, user_id: int) -> UserLearner | None:
        return self._learners.get(user_id)

    def list_learners(self) -> list[UserLearner]:
        return list(self._learners.values())

    # Progress

    def get_progress(self, user_id: int, word_id: int) -> UserProgress | None:
        return self._progress.get((user_id, word_id))

    def save_progress(self, progress: UserProgress) -> UserProgress:
        self._progress[(progress.user_id, progress.word_id)] = progress
        return progress

    def list_progress(self, user_id: int) -> list[UserProgress]:
        return [p for (uid, _), p in self._progress.items() if uid == user_id]

    def find_due_for_review(
        self, user_id: int, now: datetime, limit: int
    ) -> list[UserProgress]:
        return select_due(self.list_progress(user_id), now, limit)

    def count_overdue(self, user_id: int, now: datetime) -> int:
        return count_overdue(self.list_progress(user_id), now)

    # Daily activity

    def get_daily_stats(self, user_id: int, day: date) -> DailyStats | None:
        return self._daily_stats.get((user_id, day))

    def save_daily_stats(self, stats: DailyStats) -> DailyStats:
        self._daily_stats[(stats.user_id, stats.stat_date)] = stats
        return stats

    def was_user_active_on_date(self, user_id: int, day: date) -> bool:
        stats = self._daily_stats.get((user_id, day))
        return stats is not None and stats.is_active

    # Streak history

    def append_streak_history(self, record: StreakHistoryRecord) -> None:
        self._streak_history.append(record)

    def streak_history(self, user_id: int) -> list[StreakHistoryRecord]:
        return [r for r in self._streak_history if r.user_id == user_id]

    # Answer write-back

    def commit_answer(self, result: AnswerResult, day: date) -> None:
        """Persist the changes produced by one answer as a single unit.

        The learner and word are re-read under their locks and only the
        answer's own changes are applied: the new ratings and the word
        counters. Streak fields written meanwhile by the day-boundary job
        and counters bumped by other learners are kept.

        Args:
            result: Output of ``LearningOrchestrator.process_answer``.
            day: The learner's local date of the answer, for daily stats.
        """
        user_id = result.learner.id
        word_id = result.word.id
        with self.user_lock(user_id), self.word_lock(word_id):
            self.save_progress(result.progress)

            learner = self._learners.get(user_id, result.learner)
            self.save_learner(learner.model_copy(update={"elo_rating": result.new_user_rating}))

            current = self._words.get(word_id)
            if current is None:
                self.add_word(result.word)
            else:
                self.add_word(
                    current.model_copy(
                        update={
                            "difficulty_rating": result.new_word_rating,
                            "times_shown": current.times_shown + 1,
                            "times_correct": current.times_correct
                            + (1 if result.correct else 0),
                        }
                    )
                )

            stats = record_answer(
                self.get_daily_stats(user_id, day), user_id, day, result.correct
            )
            if result.newly_learned:
                stats = record_new_word_learned(stats, user_id, day)
            self.save_daily_stats(stats)

        logger.debug(
            "answer_committed",
            user_id=user_id,
            word_id=word_id,
            correct=result.correct,
        )

    def commit_session(
        self, user_id: int, day: date, started_at: datetime, ended_at: datetime
    ) -> DailyStats:
        """Add one finished learning session to the learner's daily stats."""
        duration = session_duration_seconds(started_at, ended_at)
        with self.user_lock(user_id):
            stats = record_session_completed(
                self.get_daily_stats(user_id, day), user_id, day, duration
            )
            self.save_daily_stats(stats)
        logger.debug("session_committed", user_id=user_id, duration_seconds=duration)
        return stats
