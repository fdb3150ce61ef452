# tests/test_review.py
from datetime import date, datetime, timezone

from study_planner.models import ACTIVE, COMPLETED, LOCKED, RoadmapItem
from study_planner.review import get_items_due_for_review, get_weekly_review_plan, is_due_for_review

NOW = datetime(2026, 3, 10, 12, 0)


def _item(id=1, status=COMPLETED, next_review=None):
    return RoadmapItem(id=id, week=id, topic=f"Topic {id}", status=status, next_review=next_review)


def test_completed_without_schedule_is_due():
    assert is_due_for_review(_item(), NOW)


def test_unscheduled_open_topics_are_not_due():
    assert not is_due_for_review(_item(status=ACTIVE), NOW)
    assert not is_due_for_review(_item(status=LOCKED), NOW)


def test_future_review_not_due():
    assert not is_due_for_review(_item(next_review="2026-03-11"), NOW)
    assert not is_due_for_review(_item(next_review="2026-03-10T12:00:01"), NOW)


def test_review_due_at_exact_boundary():
    assert is_due_for_review(_item(next_review="2026-03-10T12:00:00"), NOW)


def test_past_review_due():
    assert is_due_for_review(_item(next_review="2026-03-10"), NOW)
    assert is_due_for_review(_item(status=ACTIVE, next_review="2026-02-01"), NOW)


def test_items_due_preserves_order():
    items = [
        _item(id=3),
        _item(id=1, next_review="2026-04-01"),
        _item(id=2, next_review="2026-03-01"),
        _item(id=4, status=LOCKED),
    ]
    due = get_items_due_for_review(items, NOW)
    assert [i.id for i in due] == [3, 2]


def test_weekly_review_plan():
    items = [
        _item(id=1, next_review="2026-03-10"),
        _item(id=2, next_review="2026-03-12T08:00:00"),
        _item(id=3, next_review="2026-03-12"),
        _item(id=4, next_review="2026-03-18"),
        _item(id=5),
    ]
    plan = get_weekly_review_plan(items, date(2026, 3, 10))
    assert [day["date"] for day in plan] == ["2026-03-10", "2026-03-12"]
    assert [i.id for i in plan[1]["items"]] == [2, 3]


def test_aware_now_is_compared_in_local_time():
    utc_now = datetime(2026, 3, 11, 12, 0, tzinfo=timezone.utc)
    assert is_due_for_review(_item(next_review="2026-03-10"), utc_now)
    assert not is_due_for_review(_item(next_review="2026-03-20"), utc_now)
    assert [i.id for i in get_items_due_for_review([_item(id=1, next_review="2026-03-10")], utc_now)] == [1]
