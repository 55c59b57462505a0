from datetime import datetime, timezone, timedelta
from flask import current_app
from sqlalchemy import func
from newton.extensions import db
from newton.models.study import StudySession, StudyStats


def utcnow():
    return datetime.now(timezone.utc)


def get_or_create_stats(user_id):
    stats = StudyStats.query.filter_by(user_id=user_id).first()
    if stats is None:
        stats = StudyStats(
            user_id=user_id,
            total_time=0,
            total_sessions=0,
            current_streak=0,
            longest_streak=0,
            weekly_goal=current_app.config.get("DEFAULT_WEEKLY_GOAL", 72000),
        )
        db.session.add(stats)
        db.session.flush()
    return stats


def record_finished_session(session):
    """
    Fold a stopped session into the user's running stats.
    Streaks count consecutive UTC days with at least one finished session.
    """
    stats = get_or_create_stats(session.user_id)
    day = (session.end_time or utcnow()).date()

    stats.total_time = (stats.total_time or 0) + max(session.total_duration or 0, 0)
    stats.total_sessions = (stats.total_sessions or 0) + 1

    last = stats.last_study_date
    if last == day:
        stats.current_streak = max(stats.current_streak or 0, 1)
    elif last is not None and last == day - timedelta(days=1):
        stats.current_streak = (stats.current_streak or 0) + 1
    elif last is None or last < day:
        stats.current_streak = 1
    # a session ending before the last recorded day leaves the streak alone
    if last is None or day > last:
        stats.last_study_date = day

    stats.longest_streak = max(stats.longest_streak or 0, stats.current_streak)
    return stats


def start_of_week(now=None):
    """Monday 00:00 UTC of the current week, as a naive datetime."""
    now = now or utcnow()
    if now.tzinfo is not None:
        now = now.astimezone(timezone.utc).replace(tzinfo=None)
    monday = now - timedelta(days=now.weekday())
    return monday.replace(hour=0, minute=0, second=0, microsecond=0)


def weekly_study_time(user_id, now=None):
    """Seconds studied in finished sessions since the start of the week."""
    total = (
        db.session.query(func.coalesce(func.sum(StudySession.total_duration), 0))
        .filter(
            StudySession.user_id == user_id,
            StudySession.is_active.is_(False),
            StudySession.end_time >= start_of_week(now),
        )
        .scalar()
    )
    return int(total or 0)
