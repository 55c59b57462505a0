from datetime import datetime, timezone
from newton.extensions import db

ROOM_PRIVACY = ("public", "private")


class Room(db.Model):
    __tablename__ = "rooms"

    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(100), nullable=False)
    creator_id = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=False, index=True)
    privacy = db.Column(db.String(20), default="public")
    max_participants = db.Column(db.Integer, default=10)
    is_active = db.Column(db.Boolean, default=True, index=True)
    created_at = db.Column(db.DateTime, default=lambda: datetime.now(timezone.utc))
    closed_at = db.Column(db.DateTime, nullable=True)

    tags = db.relationship("RoomTag", backref="room", lazy="select", cascade="all, delete-orphan")
    participants = db.relationship("RoomParticipant", backref="room", lazy="dynamic", cascade="all, delete-orphan")

    def active_participant_count(self):
        return self.participants.filter_by(is_active=True).count()

    def to_dict(self):
        return {
            "id": self.id,
            "name": self.name,
            "privacy": self.privacy,
            "participants": self.active_participant_count(),
            "tags": [t.tag for t in self.tags],
            "created_at": self.created_at.isoformat() if self.created_at else None,
        }


class RoomTag(db.Model):
    __tablename__ = "room_tags"

    id = db.Column(db.Integer, primary_key=True)
    room_id = db.Column(db.Integer, db.ForeignKey("rooms.id"), nullable=False, index=True)
    tag = db.Column(db.String(50), nullable=False)


class RoomParticipant(db.Model):
    __tablename__ = "room_participants"

    id = db.Column(db.Integer, primary_key=True)
    room_id = db.Column(db.Integer, db.ForeignKey("rooms.id"), nullable=False, index=True)
    user_id = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=False, index=True)
    is_active = db.Column(db.Boolean, default=True)
    joined_at = db.Column(db.DateTime, default=lambda: datetime.now(timezone.utc))
    left_at = db.Column(db.DateTime, nullable=True)
