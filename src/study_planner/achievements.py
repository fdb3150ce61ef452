"""Achievement definitions and the unlock rule engine."""
from dataclasses import replace
from datetime import datetime

from loguru import logger

from study_planner import dates
from study_planner.mastery import count_mastered
from study_planner.models import COMPLETED, Achievement, AchievementStats, Requirement, UserProfile
from study_planner.sm2 import round_half_up

NIGHT_OWL_HOUR = 22
EARLY_BIRD_HOUR = 6

ACHIEVEMENTS = (
    Achievement("first_quiz", "First Steps", "Complete your first quiz",
                "fa-rocket", "completion", Requirement("custom", 1)),
    Achievement("perfect_score", "Flawless", "Score 100% on a quiz",
                "fa-star", "score", Requirement("perfect_score", 100)),
    Achievement("streak_3", "Three in a Row", "Study 3 days in a row",
                "fa-fire", "streak", Requirement("streak", 3)),
    Achievement("streak_7", "Week Warrior", "Study 7 days in a row",
                "fa-fire-flame-curved", "streak", Requirement("streak", 7)),
    Achievement("streak_30", "Monthly Legend", "Study 30 days in a row",
                "fa-crown", "streak", Requirement("streak", 30)),
    Achievement("complete_5", "Newcomer", "Complete 5 topics",
                "fa-graduation-cap", "completion", Requirement("complete_topics", 5)),
    Achievement("complete_10", "Scholar", "Complete 10 topics",
                "fa-book-open", "completion", Requirement("complete_topics", 10)),
    Achievement("complete_all", "Master", "Complete the whole roadmap",
                "fa-trophy", "completion", Requirement("custom", 1)),
    Achievement("study_10h", "Hard Worker", "Study 10 hours in total",
                "fa-clock", "special", Requirement("total_time", 600)),
    Achievement("study_50h", "Relentless", "Study 50 hours in total",
                "fa-hourglass-end", "special", Requirement("total_time", 3000)),
    Achievement("mastery_80", "Proficient", "Reach 80% mastery on 5 topics",
                "fa-medal", "mastery", Requirement("custom", 5)),
    Achievement("night_owl", "Night Owl", "Study after 10 PM",
                "fa-moon", "special", Requirement("custom", 1)),
    Achievement("early_bird", "Early Bird", "Study before 6 AM",
                "fa-sun", "special", Requirement("custom", 1)),
)

# Predicates for requirements that don't reduce to a single threshold.
CUSTOM_RULES = {
    "first_quiz": lambda stats, value: stats.quizzes_taken >= value,
    "complete_all": lambda stats, value: (
        stats.total_topics > 0 and stats.topics_completed >= stats.total_topics
    ),
    "mastery_80": lambda stats, value: stats.mastery_topics >= value,
    "night_owl": lambda stats, value: (
        stats.current_hour is not None and stats.current_hour >= NIGHT_OWL_HOUR
    ),
    "early_bird": lambda stats, value: (
        stats.current_hour is not None and stats.current_hour < EARLY_BIRD_HOUR
    ),
}

THRESHOLD_FIELDS = {
    "streak": "streak",
    "complete_topics": "topics_completed",
    "total_time": "total_study_time",
}


def _requirement_met(achievement: Achievement, stats: AchievementStats) -> bool:
    req = achievement.requirement
    if req.kind == "perfect_score":
        return stats.perfect_scores >= 1
    if req.kind in THRESHOLD_FIELDS:
        return getattr(stats, THRESHOLD_FIELDS[req.kind]) >= req.value
    if req.kind == "custom":
        rule = CUSTOM_RULES.get(achievement.id)
        return rule is not None and rule(stats, req.value)
    return False


def build_achievement_stats(
    items: list,
    sessions: list,
    profile: UserProfile,
    now: datetime | None = None,
) -> AchievementStats:
    """Snapshot of the numbers the unlock rules look at.

    ``sessions`` is the full log including the session just recorded.
    """
    now = dates.to_local(now or dates.now())
    scores = [s.quiz_score for s in sessions if s.quiz_score is not None]
    return AchievementStats(
        quizzes_taken=len(scores),
        perfect_scores=sum(1 for score in scores if score >= 100),
        streak=profile.study_streak,
        topics_completed=sum(1 for item in items if item.status == COMPLETED),
        total_topics=len(items),
        total_study_time=profile.total_study_time,
        mastery_topics=count_mastered(items),
        current_hour=now.hour,
    )


def check_achievements(
    unlocked_ids,
    stats: AchievementStats,
    now: datetime | None = None,
) -> list[Achievement]:
    """Return achievements newly unlocked by ``stats``, stamped with the unlock time.

    Ids already in ``unlocked_ids`` are never evaluated again.
    """
    unlocked = set(unlocked_ids)
    stamp = dates.to_local(now or dates.now()).isoformat()
    newly = []
    for achievement in ACHIEVEMENTS:
        if achievement.id in unlocked:
            continue
        if _requirement_met(achievement, stats):
            newly.append(replace(achievement, unlocked_at=stamp))
            logger.info(f"Achievement unlocked: {achievement.id}")
    return newly


def get_achievement(achievement_id: str) -> Achievement | None:
    return next((a for a in ACHIEVEMENTS if a.id == achievement_id), None)


def get_achievements_by_category(category: str) -> list[Achievement]:
    return [a for a in ACHIEVEMENTS if a.category == category]


def get_achievement_progress(achievement: Achievement, stats: AchievementStats) -> int:
    """Percent progress (0-100) toward an achievement."""
    req = achievement.requirement
    if req.kind == "perfect_score":
        current, target = min(stats.perfect_scores, 1), 1
    elif req.kind in THRESHOLD_FIELDS:
        current, target = getattr(stats, THRESHOLD_FIELDS[req.kind]), req.value
    elif achievement.id == "first_quiz":
        current, target = min(stats.quizzes_taken, 1), 1
    elif achievement.id == "complete_all":
        current, target = stats.topics_completed, stats.total_topics
    elif achievement.id == "mastery_80":
        current, target = stats.mastery_topics, req.value
    else:
        current, target = int(_requirement_met(achievement, stats)), 1
    if target <= 0:
        return 0
    return min(100, round_half_up(current / target * 100))
