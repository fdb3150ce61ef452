"""Study statistics: streaks, topic performance and daily progress."""
from datetime import date

from study_planner import dates
from study_planner.models import (
    ACTIVE, COMPLETED, DailyProgress, RoadmapItem, StudyStats, TopicPerformance,
)
from study_planner.sm2 import round_half_up

MAX_TOPIC_LIST = 5
WEAK_MASTERY = 60
WEAK_AVERAGE = 70
STRONG_MASTERY = 80
STRONG_AVERAGE = 85


def get_mastery_label(score: float) -> str:
    if score >= 80:
        return "MASTERED"
    elif score >= 60:
        return "SOLID"
    elif score >= 40:
        return "SHAKY"
    return "WEAK"


def get_mastery_color(score: float) -> str:
    if score >= 80:
        return "green"
    elif score >= 60:
        return "yellow"
    elif score >= 40:
        return "dark_orange"
    return "red"


def _study_dates(sessions: list) -> list[date]:
    """Unique calendar dates with at least one session, newest first."""
    return sorted({dates.local_date(s.start_time) for s in sessions}, reverse=True)


def calculate_streak(sessions: list, today: date | None = None) -> tuple[int, int]:
    """Return ``(current_streak, longest_streak)`` in days.

    The current streak only counts if the latest study day is today or
    yesterday. The longest streak is never below the current one, and is at
    least 1 once any session exists.
    """
    if not sessions:
        return 0, 0
    today = today or dates.today()
    study_days = _study_dates(sessions)

    current = 0
    if study_days[0] in (today, dates.add_days(today, -1)):
        current = 1
        for prev, curr in zip(study_days, study_days[1:]):
            if dates.days_between(prev, curr) != 1:
                break
            current += 1

    longest = 1
    run = 1
    for prev, curr in zip(study_days, study_days[1:]):
        if dates.days_between(prev, curr) == 1:
            run += 1
            longest = max(longest, run)
        else:
            run = 1

    return current, max(longest, current, 1)


def get_topic_performance(item: RoadmapItem, sessions: list) -> TopicPerformance:
    topic_sessions = [s for s in sessions if s.topic_id == item.id]
    scores = [s.quiz_score for s in topic_sessions if s.quiz_score is not None]
    average = sum(scores) / len(scores) if scores else 0
    return TopicPerformance(
        topic_id=item.id,
        topic_name=item.topic,
        average_score=round_half_up(average),
        time_spent=sum(s.duration for s in topic_sessions),
        mastery_level=item.mastery,
        quizzes_taken=len(scores),
    )


def get_weak_topics(items: list, sessions: list) -> list[TopicPerformance]:
    """Started topics with mastery < 60 or average < 70, weakest first (top 5)."""
    performances = [
        get_topic_performance(item, sessions)
        for item in items
        if item.status in (COMPLETED, ACTIVE)
    ]
    weak = [
        p for p in performances
        if p.mastery_level < WEAK_MASTERY or p.average_score < WEAK_AVERAGE
    ]
    weak.sort(key=lambda p: p.mastery_level)
    return weak[:MAX_TOPIC_LIST]


def get_strong_topics(items: list, sessions: list) -> list[TopicPerformance]:
    """Completed topics with mastery >= 80 and average >= 85, strongest first (top 5)."""
    performances = [
        get_topic_performance(item, sessions)
        for item in items
        if item.status == COMPLETED
    ]
    strong = [
        p for p in performances
        if p.mastery_level >= STRONG_MASTERY and p.average_score >= STRONG_AVERAGE
    ]
    strong.sort(key=lambda p: p.mastery_level, reverse=True)
    return strong[:MAX_TOPIC_LIST]


def get_daily_progress(sessions: list, days: int = 7, today: date | None = None) -> list[DailyProgress]:
    """Minutes and quiz count for each of the trailing ``days`` days, oldest first."""
    today = today or dates.today()
    by_day = {}
    for s in sessions:
        by_day.setdefault(dates.local_date(s.start_time), []).append(s)
    result = []
    for offset in range(days - 1, -1, -1):
        day = dates.add_days(today, -offset)
        day_sessions = by_day.get(day, [])
        result.append(DailyProgress(
            date=day.isoformat(),
            minutes=sum(s.duration for s in day_sessions),
            quizzes=sum(1 for s in day_sessions if s.quiz_score is not None),
        ))
    return result


def calculate_study_stats(items: list, sessions: list, today: date | None = None) -> StudyStats:
    today = today or dates.today()
    current, longest = calculate_streak(sessions, today)
    scores = [s.quiz_score for s in sessions if s.quiz_score is not None]
    return StudyStats(
        total_study_time=sum(s.duration for s in sessions),
        average_score=round_half_up(sum(scores) / len(scores)) if scores else 0,
        topics_completed=sum(1 for item in items if item.status == COMPLETED),
        total_quizzes=len(scores),
        current_streak=current,
        longest_streak=longest,
        weak_topics=tuple(get_weak_topics(items, sessions)),
        strong_topics=tuple(get_strong_topics(items, sessions)),
        daily_progress=tuple(get_daily_progress(sessions, 7, today)),
    )


def get_study_time_by_topic(items: list, sessions: list) -> list[dict]:
    totals = []
    for item in items:
        minutes = sum(s.duration for s in sessions if s.topic_id == item.id)
        if minutes > 0:
            totals.append({"topic": item.topic, "minutes": minutes})
    totals.sort(key=lambda t: t["minutes"], reverse=True)
    return totals


def format_study_time(minutes: int) -> str:
    if minutes < 60:
        return f"{minutes} min"
    hours, mins = divmod(minutes, 60)
    return f"{hours}h {mins}m" if mins else f"{hours}h"


def get_study_recommendation(stats: StudyStats) -> str:
    if stats.weak_topics:
        weakest = stats.weak_topics[0]
        return f'Review "{weakest.topic_name}" - mastery is only {weakest.mastery_level}%'
    if stats.current_streak == 0:
        return "Start a new streak today!"
    if stats.average_score < 70:
        return "Your average score is low. Revisit the topics you have covered."
    return "You're doing great. Keep it up!"
