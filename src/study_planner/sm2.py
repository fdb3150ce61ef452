"""SM-2 spaced repetition algorithm."""
import math
from dataclasses import replace
from datetime import date

from study_planner import dates
from study_planner.models import ReviewSchedule

MIN_EASE_FACTOR = 1.3
INITIAL_EASE_FACTOR = 2.5


def round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


def clamp_score(score: float) -> float:
    """Clamp a raw quiz score into [0, 100]. Callers do this before mapping."""
    return min(100.0, max(0.0, score))


def score_to_quality(score: float) -> int:
    """Map a 0-100 quiz score to an SM-2 quality grade.

    0-40: 0 (complete blackout)
    40-60: 1-2 (incorrect, but familiar)
    60-75: 3 (correct with difficulty)
    75-90: 4 (correct with hesitation)
    90-100: 5 (perfect recall)

    The score must already be clamped to [0, 100].
    """
    if score < 40:
        return 0
    if score < 50:
        return 1
    if score < 60:
        return 2
    if score < 75:
        return 3
    if score < 90:
        return 4
    return 5


def sm2_update(
    quality: int,
    repetitions: int,
    ease_factor: float,
    interval: int,
) -> dict:
    """Calculate next review parameters using SM-2.

    Args:
        quality: Rating 0-5 (0=complete blackout, 5=perfect)
        repetitions: Number of consecutive successful reviews
        ease_factor: Current ease factor (minimum 1.3)
        interval: Current interval in days

    Returns:
        Dict with updated interval, repetitions, ease_factor.
    """
    new_ef = ease_factor + (0.1 - (5 - quality) * (0.08 + (5 - quality) * 0.02))
    new_ef = max(MIN_EASE_FACTOR, new_ef)

    if quality < 3:
        # Failed recall: start over as a fresh item
        new_repetitions = 0
        new_interval = 1
    else:
        new_repetitions = repetitions + 1
        if new_repetitions == 1:
            new_interval = 1
        elif new_repetitions == 2:
            new_interval = 6
        else:
            new_interval = round_half_up(interval * new_ef)

    return {
        "interval": new_interval,
        "repetitions": new_repetitions,
        "ease_factor": new_ef,
    }


def initialize_schedule(item_id: int) -> ReviewSchedule:
    return ReviewSchedule(
        item_id=item_id, interval=1, ease_factor=INITIAL_EASE_FACTOR, repetitions=0,
    )


def advance_schedule(schedule: ReviewSchedule, score: float) -> ReviewSchedule:
    """Return the schedule after a review scored ``score`` (0-100)."""
    updated = sm2_update(
        quality=score_to_quality(score),
        repetitions=schedule.repetitions,
        ease_factor=schedule.ease_factor,
        interval=schedule.interval,
    )
    return replace(schedule, **updated)


def next_review_date(interval: int, today: date | None = None) -> date:
    return dates.add_days(today or dates.today(), interval)
