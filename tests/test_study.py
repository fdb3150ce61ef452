# tests/test_study.py
from datetime import date, datetime, timezone

import pytest

from study_planner import storage
from study_planner.models import ACTIVE, COMPLETED, LOCKED, RoadmapData, RoadmapItem, UserProfile
from study_planner.study import (
    SessionError, complete_topic, finalize_session, get_daily_goal, get_mastery_weight,
    load_or_create_profile, record_study_session, set_setting, start_session,
    update_profile_streak,
)


def _items():
    return [
        RoadmapItem(id=1, week=1, topic="Limits", status=ACTIVE, mastery=40),
        RoadmapItem(id=2, week=1, topic="Continuity"),
        RoadmapItem(id=3, week=2, topic="Derivatives"),
    ]


def _seed(db_path):
    storage.save_roadmap(db_path, RoadmapData(items=_items(), generated_at="2026-03-01"))


def test_start_session():
    s = start_session(4, datetime(2026, 3, 10, 9, 0))
    assert s.topic_id == 4
    assert s.start_time == "2026-03-10T09:00:00"
    assert not s.is_finalized
    assert s.id != start_session(4).id


def test_finalize_session_duration():
    s = start_session(1, datetime(2026, 3, 10, 9, 0))
    done = finalize_session(s, quiz_score=80, questions_attempted=5, now=datetime(2026, 3, 10, 9, 42, 40))
    assert done.duration == 43
    assert done.end_time == "2026-03-10T09:42:40"
    assert done.quiz_score == 80
    assert done.questions_attempted == 5
    assert s.end_time is None


def test_finalize_twice_raises():
    s = start_session(1, datetime(2026, 3, 10, 9, 0))
    done = finalize_session(s, now=datetime(2026, 3, 10, 9, 5))
    with pytest.raises(SessionError):
        finalize_session(done)


def test_finalize_session_with_aware_times():
    s = start_session(1, datetime(2026, 3, 10, 9, 0, tzinfo=timezone.utc))
    done = finalize_session(s, now=datetime(2026, 3, 10, 9, 30, tzinfo=timezone.utc))
    assert done.duration == 30
    assert "+" not in done.end_time


def test_profile_streak_consecutive_day():
    profile = UserProfile(study_streak=2, longest_streak=2, total_study_time=50, last_study_date="2026-03-09")
    updated = update_profile_streak(profile, 30, date(2026, 3, 10))
    assert updated.study_streak == 3
    assert updated.longest_streak == 3
    assert updated.total_study_time == 80
    assert updated.last_study_date == "2026-03-10"


def test_profile_streak_same_day_unchanged():
    profile = UserProfile(study_streak=2, longest_streak=5, last_study_date="2026-03-10")
    updated = update_profile_streak(profile, 10, date(2026, 3, 10))
    assert updated.study_streak == 2
    assert updated.longest_streak == 5


def test_profile_streak_resets_after_gap():
    profile = UserProfile(study_streak=6, longest_streak=6, last_study_date="2026-03-01")
    updated = update_profile_streak(profile, 10, date(2026, 3, 10))
    assert updated.study_streak == 1
    assert updated.longest_streak == 6


def test_complete_topic_unlocks_next():
    items = complete_topic(_items(), 1)
    assert [i.status for i in items] == [COMPLETED, ACTIVE, LOCKED]


def test_complete_topic_never_moves_backward():
    items = complete_topic(_items(), 1)
    again = complete_topic(items, 1)
    assert [i.status for i in again] == [COMPLETED, ACTIVE, LOCKED]


def test_complete_locked_topic_raises():
    with pytest.raises(SessionError):
        complete_topic(_items(), 3)
    with pytest.raises(SessionError):
        complete_topic(_items(), 42)


def test_settings_defaults_and_overrides(ready_db):
    assert get_mastery_weight(ready_db) == 0.3
    assert get_daily_goal(ready_db) == 30
    set_setting(ready_db, "mastery_weight", "0.5")
    set_setting(ready_db, "daily_goal", "45")
    assert get_mastery_weight(ready_db) == 0.5
    assert get_daily_goal(ready_db) == 45


def test_invalid_mastery_weight_falls_back(ready_db):
    set_setting(ready_db, "mastery_weight", "lots")
    assert get_mastery_weight(ready_db) == 0.3
    set_setting(ready_db, "mastery_weight", "1.5")
    assert get_mastery_weight(ready_db) == 0.3


def test_load_or_create_profile(ready_db):
    profile = load_or_create_profile(ready_db)
    assert storage.load_profile(ready_db) == profile


def test_record_study_session_with_passing_quiz(ready_db):
    _seed(ready_db)
    session = start_session(1, datetime(2026, 3, 10, 14, 0))
    outcome = record_study_session(ready_db, session, quiz_score=92, now=datetime(2026, 3, 10, 14, 25))

    assert outcome.session.duration == 25
    assert outcome.item.mastery == 56
    assert outcome.item.next_review == "2026-03-11"
    assert outcome.schedule.repetitions == 1
    assert outcome.schedule.interval == 1
    assert outcome.schedule.ease_factor == pytest.approx(2.6)
    assert outcome.topic_completed
    assert [a.id for a in outcome.new_achievements] == ["first_quiz"]

    items = storage.load_roadmap(ready_db).items
    assert [i.status for i in items] == [COMPLETED, ACTIVE, LOCKED]
    assert items[0].total_study_time == 25
    profile = storage.load_profile(ready_db)
    assert profile.study_streak == 1
    assert profile.total_study_time == 25
    assert profile.achievements == ["first_quiz"]
    assert len(storage.load_sessions(ready_db)) == 1
    assert len(storage.load_achievements(ready_db)) == 1


def test_review_session_keeps_completed_and_grows_interval(ready_db):
    _seed(ready_db)
    record_study_session(ready_db, start_session(1, datetime(2026, 3, 10, 14, 0)), 92, now=datetime(2026, 3, 10, 14, 20))
    outcome = record_study_session(
        ready_db, start_session(1, datetime(2026, 3, 11, 10, 0)), 95, now=datetime(2026, 3, 11, 10, 15),
    )
    assert outcome.item.status == COMPLETED
    assert outcome.item.review_count == 2
    assert outcome.schedule.interval == 6
    assert outcome.new_achievements == ()
    assert outcome.profile.study_streak == 2
    assert storage.load_profile(ready_db).achievements == ["first_quiz"]
    assert len(storage.load_review_schedules(ready_db)) == 1


def test_failing_quiz_keeps_topic_active(ready_db):
    _seed(ready_db)
    outcome = record_study_session(
        ready_db, start_session(1, datetime(2026, 3, 10, 9, 0)), 50, now=datetime(2026, 3, 10, 9, 30),
    )
    assert not outcome.topic_completed
    assert outcome.item.status == ACTIVE
    assert outcome.item.mastery == 43


def test_session_without_quiz(ready_db):
    _seed(ready_db)
    outcome = record_study_session(
        ready_db, start_session(1, datetime(2026, 3, 10, 9, 0)), now=datetime(2026, 3, 10, 9, 30),
    )
    assert outcome.schedule is None
    assert outcome.item.mastery == 40
    assert outcome.item.review_count == 0
    assert storage.load_review_schedules(ready_db) == []


def test_record_rejects_locked_and_unknown_topics(ready_db):
    _seed(ready_db)
    with pytest.raises(SessionError):
        record_study_session(ready_db, start_session(2), 90)
    with pytest.raises(SessionError):
        record_study_session(ready_db, start_session(42), 90)
    assert storage.load_sessions(ready_db) == []


def test_record_without_roadmap(ready_db):
    with pytest.raises(SessionError):
        record_study_session(ready_db, start_session(1), 90)
