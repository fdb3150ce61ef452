"""Study session management and progress tracking."""
import uuid
from dataclasses import dataclass, replace
from datetime import date, datetime

from loguru import logger

from study_planner import dates, storage
from study_planner.achievements import build_achievement_stats, check_achievements
from study_planner.db import get_connection
from study_planner.mastery import DEFAULT_MASTERY_WEIGHT, apply_quiz_result
from study_planner.models import (
    ACTIVE, COMPLETED, LOCKED, ReviewSchedule, RoadmapData, RoadmapItem, StudySession, UserProfile,
)
from study_planner.sm2 import clamp_score, round_half_up

PASS_SCORE = 70
DEFAULT_DAILY_GOAL = 30


class SessionError(ValueError):
    """A study session can't be recorded as requested."""


@dataclass(frozen=True)
class SessionOutcome:
    session: StudySession
    item: RoadmapItem
    schedule: ReviewSchedule | None
    profile: UserProfile
    new_achievements: tuple
    topic_completed: bool = False


# --- Settings ---

def get_setting(db_path: str, key: str, default: str = None) -> str | None:
    conn = get_connection(db_path)
    row = conn.execute("SELECT value FROM user_settings WHERE key = ?", (key,)).fetchone()
    conn.close()
    return row["value"] if row else default


def set_setting(db_path: str, key: str, value: str) -> None:
    conn = get_connection(db_path)
    conn.execute(
        "INSERT INTO user_settings (key, value) VALUES (?, ?) ON CONFLICT(key) DO UPDATE SET value=?",
        (key, value, value),
    )
    conn.commit()
    conn.close()


def get_mastery_weight(db_path: str) -> float:
    raw = get_setting(db_path, "mastery_weight")
    if raw is None:
        return DEFAULT_MASTERY_WEIGHT
    try:
        weight = float(raw)
    except ValueError:
        weight = -1.0
    if not 0.0 < weight <= 1.0:
        logger.warning(f"Ignoring invalid mastery_weight setting {raw!r}")
        return DEFAULT_MASTERY_WEIGHT
    return weight


def get_daily_goal(db_path: str) -> int:
    raw = get_setting(db_path, "daily_goal", str(DEFAULT_DAILY_GOAL))
    return int(raw) if raw.isdigit() else DEFAULT_DAILY_GOAL


# --- Sessions ---

def start_session(topic_id: int, now: datetime | None = None) -> StudySession:
    return StudySession(
        id=uuid.uuid4().hex,
        topic_id=topic_id,
        start_time=(now or dates.now()).isoformat(),
    )


def finalize_session(
    session: StudySession,
    quiz_score: int | None = None,
    questions_attempted: int | None = None,
    now: datetime | None = None,
) -> StudySession:
    """Stamp the end time and duration. A finalized session can't be finalized again."""
    if session.is_finalized:
        raise SessionError(f"Session {session.id} was already finalized")
    end = dates.to_local(now or dates.now())
    elapsed = (end - dates.parse_timestamp(session.start_time)).total_seconds() / 60
    return replace(
        session,
        end_time=end.isoformat(),
        duration=max(0, round_half_up(elapsed)),
        quiz_score=quiz_score,
        questions_attempted=questions_attempted or session.questions_attempted,
    )


def update_profile_streak(profile: UserProfile, minutes: int, today: date | None = None) -> UserProfile:
    """Add study minutes and roll the streak forward for a session ending today."""
    today = today or dates.today()
    streak = profile.study_streak
    last = profile.last_study_date
    if last != today.isoformat():
        yesterday = dates.add_days(today, -1).isoformat()
        streak = streak + 1 if last == yesterday else 1
        last = today.isoformat()
    return replace(
        profile,
        total_study_time=profile.total_study_time + minutes,
        study_streak=streak,
        longest_streak=max(profile.longest_streak, streak),
        last_study_date=last,
    )


def complete_topic(items: list, topic_id: int) -> list:
    """Mark a topic completed and unlock the next locked topic after it."""
    index = next((i for i, item in enumerate(items) if item.id == topic_id), None)
    if index is None:
        raise SessionError(f"Unknown topic {topic_id}")
    if items[index].status == LOCKED:
        raise SessionError(f"Topic {topic_id} is still locked")
    updated = list(items)
    if updated[index].status == COMPLETED:
        return updated
    updated[index] = replace(updated[index], status=COMPLETED)
    for i in range(index + 1, len(updated)):
        if updated[i].status == LOCKED:
            updated[i] = replace(updated[i], status=ACTIVE)
            break
    return updated


def load_or_create_profile(db_path: str) -> UserProfile:
    profile = storage.load_profile(db_path)
    if profile is None:
        profile = UserProfile(start_date=dates.today().isoformat())
        storage.save_profile(db_path, profile)
    return profile


def record_study_session(
    db_path: str,
    session: StudySession,
    quiz_score: float | None = None,
    questions_attempted: int | None = None,
    now: datetime | None = None,
) -> SessionOutcome:
    """Finalize a session and persist everything it changes.

    Appends the session to the log, rolls the profile streak, folds any quiz
    score into the topic's mastery and review schedule, completes an active
    topic on a passing score and records newly unlocked achievements.
    """
    now = dates.to_local(now or dates.now())
    roadmap = storage.load_roadmap(db_path)
    if roadmap is None:
        raise SessionError("No roadmap has been imported yet")
    items = roadmap.items
    index = next((i for i, item in enumerate(items) if item.id == session.topic_id), None)
    if index is None:
        raise SessionError(f"Unknown topic {session.topic_id}")
    if items[index].status == LOCKED:
        raise SessionError(f"Topic {session.topic_id} is still locked")

    score = round_half_up(clamp_score(quiz_score)) if quiz_score is not None else None
    finished = finalize_session(session, score, questions_attempted, now)
    sessions = storage.append_session(db_path, finished)
    profile = update_profile_streak(load_or_create_profile(db_path), finished.duration, now.date())

    item = replace(items[index], total_study_time=items[index].total_study_time + finished.duration)
    schedules = storage.load_review_schedules(db_path)
    schedule = next((s for s in schedules if s.item_id == item.id), None)
    completed = False
    if score is not None:
        item, schedule = apply_quiz_result(item, schedule, score, now, get_mastery_weight(db_path))
        schedules = [s for s in schedules if s.item_id != item.id] + [schedule]
        storage.save_review_schedules(db_path, schedules)

    items = list(items)
    items[index] = item
    if score is not None and score >= PASS_SCORE and item.status == ACTIVE:
        items = complete_topic(items, item.id)
        item = items[index]
        completed = True
    storage.save_roadmap(db_path, RoadmapData(items=items, generated_at=roadmap.generated_at))

    stats = build_achievement_stats(items, sessions, profile, now)
    unlocked = check_achievements(profile.achievements, stats, now)
    if unlocked:
        storage.save_achievements(db_path, storage.load_achievements(db_path) + unlocked)
        profile = replace(profile, achievements=profile.achievements + [a.id for a in unlocked])
    storage.save_profile(db_path, profile)

    logger.info(
        f"Recorded session {finished.id} on topic {item.id}: "
        f"{finished.duration} min, score {score}"
    )
    return SessionOutcome(
        session=finished,
        item=item,
        schedule=schedule,
        profile=profile,
        new_achievements=tuple(unlocked),
        topic_completed=completed,
    )
