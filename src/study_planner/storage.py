"""Keyed JSON persistence for the profile, roadmap, session log and schedules.

Every entity lives under a fixed key in the ``kv_store`` table as one JSON
document. A version tag gates a one-time, additive migration that backfills
fields added in later versions.
"""
import json
from datetime import datetime

from loguru import logger

from study_planner import dates
from study_planner.db import get_connection
from study_planner.models import (
    Achievement, RoadmapData, ReviewSchedule, StudySession, UserProfile,
)

CURRENT_VERSION = "2.0"

KEYS = {
    "profile": "user_profile",
    "roadmap": "roadmap",
    "sessions": "study_sessions",
    "achievements": "user_achievements",
    "review_schedules": "review_schedules",
    "version": "data_version",
}

PROFILE_DEFAULTS = {
    "study_streak": 0,
    "longest_streak": 0,
    "total_study_time": 0,
    "achievements": [],
    "preferences": {"dark_mode": False, "notifications": False, "daily_goal": 30},
}

ITEM_DEFAULTS = {
    "review_count": 0,
    "mastery": 0,
    "total_study_time": 0,
    "best_score": 0,
    "average_score": 0,
}


def _get(db_path: str, key: str):
    conn = get_connection(db_path)
    row = conn.execute("SELECT value FROM kv_store WHERE key = ?", (key,)).fetchone()
    conn.close()
    return json.loads(row["value"]) if row else None


def _put(db_path: str, key: str, value) -> None:
    payload = json.dumps(value)
    conn = get_connection(db_path)
    conn.execute(
        "INSERT INTO kv_store (key, value, updated_at) VALUES (?, ?, ?) "
        "ON CONFLICT(key) DO UPDATE SET value=excluded.value, updated_at=excluded.updated_at",
        (key, payload, datetime.now().isoformat()),
    )
    conn.commit()
    conn.close()


def _backfill(data: dict, defaults: dict) -> dict:
    merged = dict(data)
    for key, default in defaults.items():
        if merged.get(key) is None:
            merged[key] = default
    return merged


# --- Migration ---

def migrate_data(db_path: str) -> None:
    """Backfill new fields on stored data written by an older version."""
    version = _get(db_path, KEYS["version"])
    if version == CURRENT_VERSION:
        return
    logger.info(f"Migrating data from version {version} to {CURRENT_VERSION}")

    try:
        profile = _get(db_path, KEYS["profile"])
        if profile is not None:
            defaults = dict(PROFILE_DEFAULTS, last_study_date=dates.today().isoformat())
            _put(db_path, KEYS["profile"], _backfill(profile, defaults))
    except (ValueError, TypeError, AttributeError) as e:
        logger.error(f"Profile migration failed: {e}")

    try:
        roadmap = _get(db_path, KEYS["roadmap"])
        if roadmap is not None:
            roadmap["items"] = [_backfill(item, ITEM_DEFAULTS) for item in roadmap["items"]]
            _put(db_path, KEYS["roadmap"], roadmap)
    except (ValueError, TypeError, KeyError, AttributeError) as e:
        logger.error(f"Roadmap migration failed: {e}")

    _put(db_path, KEYS["version"], CURRENT_VERSION)


# --- Entities ---

def save_profile(db_path: str, profile: UserProfile) -> None:
    _put(db_path, KEYS["profile"], profile.to_dict())


def load_profile(db_path: str) -> UserProfile | None:
    data = _get(db_path, KEYS["profile"])
    return UserProfile.from_dict(data) if data is not None else None


def save_roadmap(db_path: str, roadmap: RoadmapData) -> None:
    _put(db_path, KEYS["roadmap"], roadmap.to_dict())


def load_roadmap(db_path: str) -> RoadmapData | None:
    data = _get(db_path, KEYS["roadmap"])
    return RoadmapData.from_dict(data) if data is not None else None


def save_sessions(db_path: str, sessions: list) -> None:
    _put(db_path, KEYS["sessions"], [s.to_dict() for s in sessions])


def load_sessions(db_path: str) -> list[StudySession]:
    data = _get(db_path, KEYS["sessions"]) or []
    return [StudySession.from_dict(s) for s in data]


def append_session(db_path: str, session: StudySession) -> list[StudySession]:
    """Append a finalized session to the log and return the full log."""
    if not session.is_finalized:
        raise ValueError(f"Session {session.id} has not been finalized")
    sessions = load_sessions(db_path) + [session]
    save_sessions(db_path, sessions)
    return sessions


def save_achievements(db_path: str, achievements: list) -> None:
    _put(db_path, KEYS["achievements"], [a.to_dict() for a in achievements])


def load_achievements(db_path: str) -> list[Achievement]:
    data = _get(db_path, KEYS["achievements"]) or []
    return [Achievement.from_dict(a) for a in data]


def save_review_schedules(db_path: str, schedules: list) -> None:
    _put(db_path, KEYS["review_schedules"], [s.to_dict() for s in schedules])


def load_review_schedules(db_path: str) -> list[ReviewSchedule]:
    data = _get(db_path, KEYS["review_schedules"]) or []
    return [ReviewSchedule.from_dict(s) for s in data]


# --- Export / import ---

def export_all_data(db_path: str) -> str:
    data = {
        "version": CURRENT_VERSION,
        "profile": _get(db_path, KEYS["profile"]),
        "roadmap": _get(db_path, KEYS["roadmap"]),
        "sessions": _get(db_path, KEYS["sessions"]),
        "achievements": _get(db_path, KEYS["achievements"]),
        "review_schedules": _get(db_path, KEYS["review_schedules"]),
        "exported_at": datetime.now().isoformat(),
    }
    return json.dumps(data, indent=2)


def import_data(db_path: str, json_string: str) -> bool:
    """Restore a backup produced by ``export_all_data``. Nothing is written if any part is malformed."""
    try:
        data = json.loads(json_string)
        profile = UserProfile.from_dict(data["profile"]) if data.get("profile") else None
        roadmap = RoadmapData.from_dict(data["roadmap"]) if data.get("roadmap") else None
        sessions = [StudySession.from_dict(s) for s in data.get("sessions") or []]
        achievements = [Achievement.from_dict(a) for a in data.get("achievements") or []]
        schedules = [ReviewSchedule.from_dict(s) for s in data.get("review_schedules") or []]
    except (ValueError, TypeError, KeyError, AttributeError) as e:
        logger.error(f"Import failed: {e}")
        return False

    if profile:
        save_profile(db_path, profile)
    if roadmap:
        save_roadmap(db_path, roadmap)
    if data.get("sessions"):
        save_sessions(db_path, sessions)
    if data.get("achievements"):
        save_achievements(db_path, achievements)
    if data.get("review_schedules"):
        save_review_schedules(db_path, schedules)
    logger.info("Backup imported")
    return True


def clear_all_data(db_path: str) -> None:
    """Delete every stored entity. User settings are kept."""
    conn = get_connection(db_path)
    conn.execute("DELETE FROM kv_store")
    conn.commit()
    conn.close()
