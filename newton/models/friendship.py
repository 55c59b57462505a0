from datetime import datetime, timezone
from newton.extensions import db

FRIENDSHIP_STATUSES = ("pending", "accepted", "rejected")


class Friendship(db.Model):
    __tablename__ = "friendships"

    id = db.Column(db.Integer, primary_key=True)
    user_id = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=False, index=True)  # requester
    friend_id = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=False, index=True)  # recipient
    status = db.Column(db.String(20), nullable=False, default="pending")
    created_at = db.Column(db.DateTime, default=lambda: datetime.now(timezone.utc))
    updated_at = db.Column(db.DateTime, default=lambda: datetime.now(timezone.utc), onupdate=lambda: datetime.now(timezone.utc))

    requester = db.relationship("User", foreign_keys=[user_id])
    recipient = db.relationship("User", foreign_keys=[friend_id])

    __table_args__ = (db.UniqueConstraint("user_id", "friend_id", name="uq_friendship_pair"),)

    def other_user(self, user_id):
        return self.recipient if self.user_id == user_id else self.requester

    def to_dict(self):
        return {
            "id": self.id,
            "user_id": self.user_id,
            "friend_id": self.friend_id,
            "status": self.status,
            "created_at": self.created_at.isoformat() if self.created_at else None,
            "updated_at": self.updated_at.isoformat() if self.updated_at else None,
        }
