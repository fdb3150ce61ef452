"""Mastery tracking: exponentially weighted topic scores."""
from dataclasses import replace
from datetime import datetime

from loguru import logger

from study_planner import dates
from study_planner.models import RoadmapItem, ReviewSchedule
from study_planner.sm2 import advance_schedule, initialize_schedule, next_review_date, round_half_up

DEFAULT_MASTERY_WEIGHT = 0.3
MASTERY_THRESHOLD = 80


def update_mastery(current: float, new_score: float, weight: float = DEFAULT_MASTERY_WEIGHT) -> int:
    """Blend the latest score into the running mastery (70% history, 30% latest by default)."""
    blended = current * (1 - weight) + new_score * weight
    return round_half_up(min(100.0, max(0.0, blended)))


def apply_quiz_result(
    item: RoadmapItem,
    schedule: ReviewSchedule | None,
    score: int,
    now: datetime | None = None,
    weight: float = DEFAULT_MASTERY_WEIGHT,
) -> tuple[RoadmapItem, ReviewSchedule]:
    """Fold a graded quiz into a topic and its review schedule.

    Returns new ``(item, schedule)`` values; the inputs are left untouched.
    A missing schedule is initialized first.
    """
    now = dates.to_local(now or dates.now())
    schedule = advance_schedule(schedule or initialize_schedule(item.id), score)
    reviews = item.review_count + 1
    updated = replace(
        item,
        mastery=update_mastery(item.mastery, score, weight),
        review_count=reviews,
        last_reviewed=now.isoformat(),
        next_review=next_review_date(schedule.interval, now.date()).isoformat(),
        best_score=max(item.best_score, score),
        average_score=round_half_up((item.average_score * item.review_count + score) / reviews),
    )
    logger.debug(
        f"Topic {item.id}: mastery {item.mastery} -> {updated.mastery}, "
        f"next review in {schedule.interval}d (ef={schedule.ease_factor:.2f})"
    )
    return updated, schedule


def count_mastered(items: list, threshold: int = MASTERY_THRESHOLD) -> int:
    return sum(1 for item in items if item.mastery >= threshold)
