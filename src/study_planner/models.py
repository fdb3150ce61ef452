"""Data classes for the study planner domain model."""
from dataclasses import asdict, dataclass, field, fields
from typing import Optional

LOCKED = "locked"
ACTIVE = "active"
COMPLETED = "completed"

STATUS_ORDER = (LOCKED, ACTIVE, COMPLETED)


def _known(cls, data: dict) -> dict:
    """Keep only the keys that are fields of ``cls``; missing ones fall back to defaults."""
    names = {f.name for f in fields(cls)}
    return {k: v for k, v in data.items() if k in names}


@dataclass
class RoadmapItem:
    id: int
    week: int
    topic: str
    description: str = ""
    status: str = LOCKED
    key_concepts: list = field(default_factory=list)
    review_count: int = 0
    last_reviewed: Optional[str] = None  # ISO timestamp
    next_review: Optional[str] = None  # ISO timestamp
    mastery: int = 0
    total_study_time: int = 0  # minutes
    best_score: int = 0
    average_score: int = 0

    def to_dict(self) -> dict:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: dict) -> "RoadmapItem":
        return cls(**_known(cls, data))


@dataclass
class RoadmapData:
    items: list
    generated_at: str = ""

    def to_dict(self) -> dict:
        return {"items": [i.to_dict() for i in self.items], "generated_at": self.generated_at}

    @classmethod
    def from_dict(cls, data: dict) -> "RoadmapData":
        return cls(
            items=[RoadmapItem.from_dict(i) for i in data.get("items", [])],
            generated_at=data.get("generated_at", ""),
        )


@dataclass(frozen=True)
class ReviewSchedule:
    item_id: int
    interval: int = 1  # days
    ease_factor: float = 2.5
    repetitions: int = 0

    def to_dict(self) -> dict:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: dict) -> "ReviewSchedule":
        return cls(**_known(cls, data))


@dataclass(frozen=True)
class StudySession:
    id: str
    topic_id: int
    start_time: str  # ISO timestamp
    end_time: Optional[str] = None
    duration: int = 0  # minutes
    quiz_score: Optional[int] = None
    questions_attempted: int = 0

    @property
    def is_finalized(self) -> bool:
        return self.end_time is not None

    def to_dict(self) -> dict:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: dict) -> "StudySession":
        return cls(**_known(cls, data))


@dataclass(frozen=True)
class Requirement:
    kind: str  # streak | perfect_score | complete_topics | total_time | custom
    value: int


@dataclass
class Achievement:
    id: str
    title: str
    description: str
    icon: str
    category: str  # streak | score | completion | mastery | special
    requirement: Requirement
    unlocked_at: Optional[str] = None

    def to_dict(self) -> dict:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: dict) -> "Achievement":
        values = _known(cls, data)
        values["requirement"] = Requirement(**data["requirement"])
        return cls(**values)


@dataclass
class Preferences:
    dark_mode: bool = False
    notifications: bool = False
    daily_goal: int = 30  # minutes per day
    reminder_time: Optional[str] = None  # HH:MM


@dataclass
class UserProfile:
    name: str = ""
    current_level: str = ""
    target_exam: str = ""
    target_score: str = ""
    start_date: str = ""  # YYYY-MM-DD
    exam_date: str = ""
    study_streak: int = 0
    longest_streak: int = 0
    total_study_time: int = 0  # minutes
    last_study_date: str = ""  # YYYY-MM-DD
    achievements: list = field(default_factory=list)
    preferences: Preferences = field(default_factory=Preferences)

    def to_dict(self) -> dict:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: dict) -> "UserProfile":
        values = _known(cls, data)
        prefs = data.get("preferences") or {}
        values["preferences"] = Preferences(**_known(Preferences, prefs))
        return cls(**values)


@dataclass(frozen=True)
class TopicPerformance:
    topic_id: int
    topic_name: str
    average_score: int
    time_spent: int
    mastery_level: int
    quizzes_taken: int


@dataclass(frozen=True)
class DailyProgress:
    date: str  # YYYY-MM-DD
    minutes: int
    quizzes: int


@dataclass(frozen=True)
class StudyStats:
    total_study_time: int
    average_score: int
    topics_completed: int
    total_quizzes: int
    current_streak: int
    longest_streak: int
    weak_topics: tuple
    strong_topics: tuple
    daily_progress: tuple


@dataclass(frozen=True)
class AchievementStats:
    quizzes_taken: int = 0
    perfect_scores: int = 0
    streak: int = 0
    topics_completed: int = 0
    total_topics: int = 0
    total_study_time: int = 0
    mastery_topics: int = 0
    current_hour: Optional[int] = None
