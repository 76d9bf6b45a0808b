"""Tests for daily stats counters and progress summaries."""

from datetime import date, datetime, timedelta, timezone

from vocab_engine.learning.stats import (
    level_progress,
    record_answer,
    record_new_word_learned,
    record_session_completed,
    session_duration_seconds,
    summarize_progress,
)
from vocab_engine.models.learner import DailyStats
from vocab_engine.models.progress import UserProgress
from vocab_engine.models.word import CefrLevel, Word

DAY = date(2026, 3, 10)


class TestDailyCounters:
    def test_record_answer_creates_stats(self):
        stats = record_answer(None, 1, DAY, correct=True)
        assert stats.user_id == 1
        assert stats.stat_date == DAY
        assert stats.words_reviewed == 1
        assert stats.words_correct == 1
        assert stats.is_active is True

    def test_record_answer_accumulates(self):
        stats = record_answer(None, 1, DAY, correct=True)
        stats = record_answer(stats, 1, DAY, correct=False)
        stats = record_answer(stats, 1, DAY, correct=True)
        assert stats.words_reviewed == 3
        assert stats.words_correct == 2
        assert stats.accuracy == 2 / 3

    def test_record_new_word_learned(self):
        stats = record_new_word_learned(None, 1, DAY)
        assert stats.new_words_learned == 1
        assert stats.words_reviewed == 0
        assert stats.is_active is True

    def test_empty_stats_inactive(self):
        stats = DailyStats(user_id=1, stat_date=DAY)
        assert stats.is_active is False
        assert stats.accuracy == 0.0


class TestSessions:
    def test_duration_in_whole_seconds(self):
        start = datetime(2026, 3, 10, 9, 0, tzinfo=timezone.utc)
        assert session_duration_seconds(start, start + timedelta(minutes=3, seconds=20.7)) == 200

    def test_naive_end_is_utc(self):
        start = datetime(2026, 3, 10, 9, 0, tzinfo=timezone.utc)
        assert session_duration_seconds(start, datetime(2026, 3, 10, 9, 10)) == 600

    def test_end_before_start_is_zero(self):
        start = datetime(2026, 3, 10, 9, 0, tzinfo=timezone.utc)
        assert session_duration_seconds(start, start - timedelta(minutes=1)) == 0

    def test_sessions_accumulate(self):
        stats = record_session_completed(None, 1, DAY, 300)
        stats = record_session_completed(stats, 1, DAY, 120)
        assert stats.sessions_completed == 2
        assert stats.total_time_seconds == 420

    def test_negative_duration_ignored(self):
        stats = record_session_completed(None, 1, DAY, -30)
        assert stats.sessions_completed == 1
        assert stats.total_time_seconds == 0

    def test_session_does_not_make_day_active(self):
        stats = record_session_completed(None, 1, DAY, 600)
        assert stats.is_active is False
        stats = record_answer(stats, 1, DAY, correct=True)
        assert stats.is_active is True
        assert stats.sessions_completed == 1


class TestSummarizeProgress:
    def test_empty(self):
        summary = summarize_progress([])
        assert summary.total_learned == 0
        assert summary.total_reviews == 0
        assert summary.accuracy_percent == 0.0

    def test_aggregates(self):
        progresses = [
            UserProgress(user_id=1, word_id=1, times_correct=5, times_incorrect=1, is_learned=True),
            UserProgress(user_id=1, word_id=2, times_correct=1, times_incorrect=2),
            UserProgress(user_id=1, word_id=3),
        ]
        summary = summarize_progress(progresses)
        assert summary.total_learned == 1
        assert summary.in_progress == 2
        assert summary.total_reviews == 9
        assert summary.correct_answers == 6
        assert summary.incorrect_answers == 3
        assert summary.accuracy_percent == 66.7


class TestLevelProgress:
    def test_counts_only_requested_level(self):
        words = {
            1: Word(id=1, cefr_level=CefrLevel.A1),
            2: Word(id=2, cefr_level=CefrLevel.A1),
            3: Word(id=3, cefr_level=CefrLevel.B2),
        }
        progresses = [
            UserProgress(user_id=1, word_id=1, is_learned=True),
            UserProgress(user_id=1, word_id=2),
            UserProgress(user_id=1, word_id=3, is_learned=True),
            UserProgress(user_id=1, word_id=99, is_learned=True),
        ]
        result = level_progress(progresses, words, CefrLevel.A1, total_words=8)
        assert result.total == 8
        assert result.learned == 1
        assert result.in_progress == 1
        assert result.percentage == 12.5

    def test_empty_level(self):
        result = level_progress([], {}, CefrLevel.C1, total_words=0)
        assert result.percentage == 0.0
