"""Review queue: which topics are due and when the next ones come up."""
from datetime import date, datetime

from study_planner import dates
from study_planner.models import COMPLETED, RoadmapItem


def is_due_for_review(item: RoadmapItem, now: datetime | None = None) -> bool:
    """A completed topic that was never scheduled is due straight away."""
    if not item.next_review:
        return item.status == COMPLETED
    now = dates.to_local(now or dates.now())
    return now >= dates.parse_timestamp(item.next_review)


def get_items_due_for_review(items: list, now: datetime | None = None) -> list:
    now = dates.to_local(now or dates.now())
    return [item for item in items if is_due_for_review(item, now)]


def get_weekly_review_plan(items: list, today: date | None = None) -> list[dict]:
    """Topics scheduled on each of the next 7 days, today first. Empty days are left out."""
    today = today or dates.today()
    plan = []
    for offset in range(7):
        day = dates.add_days(today, offset)
        due = [
            item for item in items
            if item.next_review and dates.local_date(item.next_review) == day
        ]
        if due:
            plan.append({"date": day.isoformat(), "items": due})
    return plan
