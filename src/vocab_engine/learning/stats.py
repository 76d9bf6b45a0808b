"""Daily activity counters and progress summaries."""

from collections.abc import Iterable, Mapping
from datetime import date, datetime

from vocab_engine.models.learner import DailyStats
from vocab_engine.models.progress import UserProgress
from vocab_engine.models.results import LevelProgress, ProgressSummary
from vocab_engine.models.word import CefrLevel, Word
from vocab_engine.timeutils import as_utc


def _stats_or_new(stats: DailyStats | None, user_id: int, day: date) -> DailyStats:
    if stats is None:
        return DailyStats(user_id=user_id, stat_date=day)
    return stats


def record_answer(
    stats: DailyStats | None, user_id: int, day: date, correct: bool
) -> DailyStats:
    """Count one answered word on the learner's local ``day``."""
    stats = _stats_or_new(stats, user_id, day)
    return stats.model_copy(
        update={
            "words_reviewed": stats.words_reviewed + 1,
            "words_correct": stats.words_correct + (1 if correct else 0),
        }
    )


def record_new_word_learned(
    stats: DailyStats | None, user_id: int, day: date
) -> DailyStats:
    stats = _stats_or_new(stats, user_id, day)
    return stats.model_copy(update={"new_words_learned": stats.new_words_learned + 1})


def session_duration_seconds(started_at: datetime, ended_at: datetime) -> int:
    """Whole seconds between session start and end, never negative."""
    elapsed = as_utc(ended_at) - as_utc(started_at)
    return max(0, int(elapsed.total_seconds()))


def record_session_completed(
    stats: DailyStats | None, user_id: int, day: date, duration_seconds: int
) -> DailyStats:
    """Count one finished learning session and its duration on ``day``."""
    stats = _stats_or_new(stats, user_id, day)
    return stats.model_copy(
        update={
            "sessions_completed": stats.sessions_completed + 1,
            "total_time_seconds": stats.total_time_seconds + max(0, duration_seconds),
        }
    )


def _percent(part: int, whole: int) -> float:
    """Percentage with one decimal, 0.0 for an empty whole."""
    if whole <= 0:
        return 0.0
    return round(part / whole * 100, 1)


def summarize_progress(progresses: Iterable[UserProgress]) -> ProgressSummary:
    """Aggregate answer counters over all of a learner's progress records."""
    progresses = list(progresses)
    learned = sum(1 for p in progresses if p.is_learned)
    total_reviews = sum(p.total_answers for p in progresses)
    correct = sum(p.times_correct for p in progresses)

    return ProgressSummary(
        total_learned=learned,
        in_progress=len(progresses) - learned,
        total_reviews=total_reviews,
        correct_answers=correct,
        incorrect_answers=total_reviews - correct,
        accuracy_percent=_percent(correct, total_reviews),
    )


def level_progress(
    progresses: Iterable[UserProgress],
    words_by_id: Mapping[int, Word],
    level: CefrLevel,
    total_words: int,
) -> LevelProgress:
    """Learned share of the ``total_words`` catalog words at ``level``.

    Progress records whose word is missing from ``words_by_id`` are ignored.
    """
    learned = 0
    in_progress = 0
    for progress in progresses:
        word = words_by_id.get(progress.word_id)
        if word is None or word.cefr_level != level:
            continue
        if progress.is_learned:
            learned += 1
        else:
            in_progress += 1

    return LevelProgress(
        total=total_words,
        learned=learned,
        in_progress=in_progress,
        percentage=_percent(learned, total_words),
    )
