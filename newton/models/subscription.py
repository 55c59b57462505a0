from datetime import datetime, timezone
from newton.extensions import db


class Subscription(db.Model):
    __tablename__ = "subscriptions"

    id = db.Column(db.Integer, primary_key=True)
    user_id = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=False, index=True)
    whop_membership_id = db.Column(db.String(100), unique=True, nullable=False)
    product_id = db.Column(db.String(100), nullable=False)
    plan_interval = db.Column(db.String(20), nullable=False)  # monthly / yearly / lifetime
    status = db.Column(db.String(20), nullable=False, default="active")  # active / canceled
    period_start = db.Column(db.DateTime, nullable=True)
    period_end = db.Column(db.DateTime, nullable=True)
    cancel_at = db.Column(db.DateTime, nullable=True)
    created_at = db.Column(db.DateTime, default=lambda: datetime.now(timezone.utc))
    updated_at = db.Column(db.DateTime, default=lambda: datetime.now(timezone.utc))

    events = db.relationship("SubscriptionEvent", backref="subscription", lazy="dynamic")

    def to_dict(self):
        return {
            "id": self.id,
            "user_id": self.user_id,
            "whop_membership_id": self.whop_membership_id,
            "product_id": self.product_id,
            "plan_interval": self.plan_interval,
            "status": self.status,
            "period_start": self.period_start.isoformat() if self.period_start else None,
            "period_end": self.period_end.isoformat() if self.period_end else None,
            "cancel_at": self.cancel_at.isoformat() if self.cancel_at else None,
            "created_at": self.created_at.isoformat() if self.created_at else None,
            "updated_at": self.updated_at.isoformat() if self.updated_at else None,
        }


class SubscriptionEvent(db.Model):
    """Audit log of every accepted Whop webhook delivery."""

    __tablename__ = "subscription_events"

    id = db.Column(db.Integer, primary_key=True)
    subscription_id = db.Column(db.Integer, db.ForeignKey("subscriptions.id"), nullable=True, index=True)
    event_type = db.Column(db.String(100), nullable=False)
    payload = db.Column(db.JSON, nullable=False)
    created_at = db.Column(db.DateTime, default=lambda: datetime.now(timezone.utc))
