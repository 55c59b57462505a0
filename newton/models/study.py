from datetime import datetime, timezone
from newton.extensions import db


def _iso(value):
    return value.isoformat() if value else None


class StudySession(db.Model):
    __tablename__ = "study_sessions"

    id = db.Column(db.Integer, primary_key=True)
    user_id = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=False, index=True)
    subject = db.Column(db.String(200), nullable=True)
    start_time = db.Column(db.DateTime, default=lambda: datetime.now(timezone.utc))
    end_time = db.Column(db.DateTime, nullable=True)
    pause_time = db.Column(db.String(64), nullable=True)  # client-supplied ISO timestamp, null while running
    total_duration = db.Column(db.Integer, default=0)  # seconds
    is_active = db.Column(db.Boolean, default=True, index=True)
    created_at = db.Column(db.DateTime, default=lambda: datetime.now(timezone.utc))
    updated_at = db.Column(db.DateTime, default=lambda: datetime.now(timezone.utc), onupdate=lambda: datetime.now(timezone.utc))

    def to_dict(self):
        return {
            "id": self.id,
            "user_id": self.user_id,
            "subject": self.subject,
            "start_time": _iso(self.start_time),
            "end_time": _iso(self.end_time),
            "pause_time": self.pause_time,
            "total_duration": self.total_duration,
            "is_active": self.is_active,
            "created_at": _iso(self.created_at),
            "updated_at": _iso(self.updated_at),
        }


class StudyStats(db.Model):
    __tablename__ = "study_stats"

    id = db.Column(db.Integer, primary_key=True)
    user_id = db.Column(db.Integer, db.ForeignKey("users.id"), unique=True, nullable=False)
    total_time = db.Column(db.Integer, default=0)  # seconds
    total_sessions = db.Column(db.Integer, default=0)
    current_streak = db.Column(db.Integer, default=0)  # consecutive study days
    longest_streak = db.Column(db.Integer, default=0)
    weekly_goal = db.Column(db.Integer, default=72000)  # seconds
    last_study_date = db.Column(db.Date, nullable=True)
    updated_at = db.Column(db.DateTime, default=lambda: datetime.now(timezone.utc), onupdate=lambda: datetime.now(timezone.utc))

    def to_dict(self):
        return {
            "user_id": self.user_id,
            "total_time": self.total_time,
            "total_sessions": self.total_sessions,
            "current_streak": self.current_streak,
            "longest_streak": self.longest_streak,
            "weekly_goal": self.weekly_goal,
            "last_study_date": _iso(self.last_study_date),
            "updated_at": _iso(self.updated_at),
        }
