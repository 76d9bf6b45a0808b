"""Tests for the day-boundary streak scan."""

from datetime import date, datetime, timedelta, timezone

import pytest

from vocab_engine.config import Settings
from vocab_engine.models.learner import DailyStats, UserLearner
from vocab_engine.storage.memory import InMemoryLearningStore
from vocab_engine.streak.scheduler import DayBoundaryJob
from vocab_engine.streak.tracker import StreakTracker

MIDNIGHT_RUN = datetime(2026, 3, 10, 0, 15, tzinfo=timezone.utc)
YESTERDAY = date(2026, 3, 9)


@pytest.fixture
def store():
    return InMemoryLearningStore()


@pytest.fixture
def job(store):
    return DayBoundaryJob(store, StreakTracker(Settings(default_timezone="UTC")))


def _mark_active(store, user_id, day):
    store.save_daily_stats(DailyStats(user_id=user_id, stat_date=day, words_reviewed=3))


class TestRun:
    def test_outcomes_are_counted_and_saved(self, store, job):
        store.save_learner(UserLearner(id=1, current_streak=6, streak_freezes_available=0))
        store.save_learner(UserLearner(id=2, current_streak=2))
        store.save_learner(UserLearner(id=3, current_streak=4, streak_freezes_available=1))
        store.save_learner(UserLearner(id=4, current_streak=9))
        _mark_active(store, 1, YESTERDAY)
        _mark_active(store, 2, YESTERDAY)

        report = job.run(MIDNIGHT_RUN)

        assert report.processed == 4
        assert report.milestones == 1
        assert report.maintained == 1
        assert report.frozen == 1
        assert report.broken == 1
        assert report.failed == 0

        assert store.get_learner(1).current_streak == 7
        assert store.get_learner(1).streak_freezes_available == 1
        assert store.get_learner(3).streak_freezes_available == 0
        assert store.get_learner(4).current_streak == 0
        assert store.streak_history(2)[0].streak_date == YESTERDAY

    def test_skips_learners_outside_local_midnight(self, store, job):
        store.save_learner(UserLearner(id=1, current_streak=2))
        store.save_learner(UserLearner(id=2, current_streak=2, timezone="Asia/Tokyo"))

        report = job.run(MIDNIGHT_RUN)

        assert report.processed == 1
        assert report.skipped == 1
        assert store.get_learner(2).current_streak == 2
        assert store.streak_history(2) == []

    def test_all_learners_when_not_filtering(self, store, job):
        store.save_learner(UserLearner(id=1, current_streak=2, timezone="Asia/Tokyo"))
        noon = datetime(2026, 3, 10, 12, 0, tzinfo=timezone.utc)

        report = job.run(noon, only_at_local_midnight=False)

        assert report.processed == 1
        assert report.broken == 1

    def test_same_day_not_evaluated_twice(self, store, job):
        store.save_learner(UserLearner(id=1, current_streak=2))
        _mark_active(store, 1, YESTERDAY)

        job.run(MIDNIGHT_RUN)
        second = job.run(datetime(2026, 3, 10, 0, 45, tzinfo=timezone.utc))

        assert second.processed == 0
        assert second.skipped == 1
        assert store.get_learner(1).current_streak == 3
        assert len(store.streak_history(1)) == 1

    def test_evaluated_days_are_pruned(self, store, job):
        store.save_learner(UserLearner(id=1, current_streak=2))

        for offset in range(5):
            job.run(MIDNIGHT_RUN + timedelta(days=offset))

        assert len(store.streak_history(1)) == 5
        assert {day for _, day in job._evaluated} == {date(2026, 3, 12), date(2026, 3, 13)}

    def test_failure_is_isolated(self, store, job, monkeypatch):
        store.save_learner(UserLearner(id=1, current_streak=2))
        store.save_learner(UserLearner(id=2, current_streak=5))
        store.save_learner(UserLearner(id=3, current_streak=1))
        original = store.was_user_active_on_date

        def flaky(user_id, day):
            if user_id == 2:
                raise RuntimeError("activity lookup failed")
            return original(user_id, day)

        monkeypatch.setattr(store, "was_user_active_on_date", flaky)

        report = job.run(MIDNIGHT_RUN)

        assert report.failed == 1
        assert report.failed_user_ids == (2,)
        assert report.processed == 2
        assert store.get_learner(2).current_streak == 5
        assert store.get_learner(3).current_streak == 0

    def test_failed_learner_retried_on_next_run(self, store, job, monkeypatch):
        store.save_learner(UserLearner(id=1, current_streak=2))
        original = store.was_user_active_on_date

        def unavailable(user_id, day):
            raise RuntimeError("down")

        monkeypatch.setattr(store, "was_user_active_on_date", unavailable)
        assert job.run(MIDNIGHT_RUN).failed == 1

        monkeypatch.setattr(store, "was_user_active_on_date", original)
        assert job.run(MIDNIGHT_RUN).processed == 1

    def test_empty_store(self, job):
        report = job.run(MIDNIGHT_RUN)
        assert report.processed == 0
        assert report.failed_user_ids == ()


class TestReminderCandidates:
    def test_running_streaks_without_activity_today(self, store, job):
        evening = datetime(2026, 3, 10, 18, 0, tzinfo=timezone.utc)
        store.save_learner(UserLearner(id=1, current_streak=3))
        store.save_learner(UserLearner(id=2, current_streak=3))
        store.save_learner(UserLearner(id=3, current_streak=0))
        _mark_active(store, 2, date(2026, 3, 10))

        candidates = job.find_reminder_candidates(evening)

        assert [learner.id for learner in candidates] == [1]
