# tests/test_mastery.py
import pytest
from datetime import datetime

from study_planner.mastery import apply_quiz_result, count_mastered, update_mastery
from study_planner.models import ACTIVE, COMPLETED, RoadmapItem, ReviewSchedule


def _item(**overrides):
    values = dict(id=1, week=1, topic="Derivatives", status=ACTIVE)
    values.update(overrides)
    return RoadmapItem(**values)


def test_update_mastery_weighted_average():
    assert update_mastery(50, 100, 0.3) == 65
    assert update_mastery(40, 92) == 56


def test_update_mastery_zero():
    assert update_mastery(0, 0, 0.3) == 0


def test_update_mastery_stays_in_range():
    assert update_mastery(100, 100, 1.0) == 100
    assert update_mastery(150, 100) == 100
    assert update_mastery(0, -20) == 0


def test_update_mastery_custom_weight():
    assert update_mastery(50, 100, 0.5) == 75


def test_apply_quiz_result_fresh_topic():
    """Prior mastery 40, fresh schedule, score 92."""
    now = datetime(2026, 3, 10, 14, 0)
    item, schedule = apply_quiz_result(_item(mastery=40), None, 92, now)
    assert item.mastery == 56
    assert schedule.repetitions == 1
    assert schedule.interval == 1
    assert schedule.ease_factor == pytest.approx(2.6)
    assert item.next_review == "2026-03-11"
    assert item.last_reviewed == "2026-03-10T14:00:00"
    assert item.review_count == 1
    assert item.best_score == 92
    assert item.average_score == 92


def test_apply_quiz_result_running_average_and_best():
    now = datetime(2026, 3, 10, 9, 0)
    item = _item(mastery=70, review_count=1, best_score=90, average_score=90)
    schedule = ReviewSchedule(item_id=1, interval=1, ease_factor=2.6, repetitions=1)
    updated, new_schedule = apply_quiz_result(item, schedule, 70, now)
    assert updated.best_score == 90
    assert updated.average_score == 80
    assert updated.review_count == 2
    assert new_schedule.repetitions == 2
    assert updated.next_review == "2026-03-16"


def test_apply_quiz_result_leaves_inputs_alone():
    item = _item(mastery=40)
    schedule = ReviewSchedule(item_id=1)
    apply_quiz_result(item, schedule, 100, datetime(2026, 3, 10, 9, 0))
    assert item.mastery == 40
    assert item.review_count == 0
    assert schedule.repetitions == 0


def test_apply_quiz_result_keeps_completed_status():
    item = _item(status=COMPLETED, mastery=90)
    updated, _ = apply_quiz_result(item, None, 30, datetime(2026, 3, 10, 9, 0))
    assert updated.status == COMPLETED


def test_count_mastered():
    items = [_item(id=i, mastery=m) for i, m in enumerate([79, 80, 95, 10], 1)]
    assert count_mastered(items) == 2
