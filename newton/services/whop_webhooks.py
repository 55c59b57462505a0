from datetime import datetime, timezone

from flask import current_app
from sqlalchemy.exc import IntegrityError

from newton.extensions import db
from newton.models.subscription import Subscription, SubscriptionEvent
from newton.models.user import User
from newton.services.whop import get_plan_for_product, WHOP_USER_METADATA_KEY
from newton.services.loops import send_payment_confirmation_email

ACTIVATION_EVENTS = {
    "membership_activated",
    "membership.went_valid",
    "payment_succeeded",
    "payment.succeeded",
}
DEACTIVATION_EVENTS = {
    "membership_deactivated",
    "membership.went_invalid",
}


def _dig(data, *path):
    for key in path:
        if not isinstance(data, dict):
            return None
        data = data.get(key)
    return data


def _first(*values):
    for value in values:
        if value not in (None, ""):
            return value
    return None


def to_datetime(value):
    """Parse ISO-8601 strings or Unix seconds into a naive UTC datetime; None if unparseable."""
    if value in (None, ""):
        return None
    try:
        if isinstance(value, (int, float)) and not isinstance(value, bool):
            dt = datetime.fromtimestamp(value, tz=timezone.utc)
        else:
            dt = datetime.fromisoformat(str(value).replace("Z", "+00:00"))
    except (ValueError, OverflowError, OSError):
        return None
    if dt.tzinfo is not None:
        dt = dt.astimezone(timezone.utc).replace(tzinfo=None)
    return dt


def extract_user_id(data):
    return _first(
        _dig(data, "metadata", WHOP_USER_METADATA_KEY),
        _dig(data, "member", "metadata", WHOP_USER_METADATA_KEY),
        _dig(data, "member", "external_id"),
    )


def extract_membership_id(data):
    return _first(_dig(data, "id"), _dig(data, "membership_id"), _dig(data, "membership", "id"))


def extract_product_id(data):
    return _first(_dig(data, "plan_id"), _dig(data, "product_id"), _dig(data, "plan", "id"))


def get_event_type(payload):
    """The `type` (or legacy `action`) string of a delivery; None when absent or not a string."""
    for key in ("type", "action"):
        value = payload.get(key)
        if isinstance(value, str) and value.strip():
            return value.strip()
    return None


def _apply(subscription, fields):
    for key, value in fields.items():
        setattr(subscription, key, value)


def upsert_subscription(membership_id, user_id, product_id, status, period_start, period_end, cancel_at):
    """
    Create or update the subscription row for a Whop membership.
    Returns the Subscription, or None when the product is not one of our plans.
    """
    plan = get_plan_for_product(product_id)
    if not plan:
        current_app.logger.warning(f"Ignoring membership {membership_id}: unknown product {product_id}")
        return None

    fields = {
        "user_id": int(user_id),
        "product_id": product_id,
        "plan_interval": plan["interval"],
        "status": status,
        "period_start": period_start,
        "period_end": None if plan["interval"] == "lifetime" else period_end,
        "cancel_at": cancel_at,
        "updated_at": datetime.now(timezone.utc),
    }

    subscription = Subscription.query.filter_by(whop_membership_id=membership_id).first()
    if subscription is not None:
        _apply(subscription, fields)
        db.session.flush()
        return subscription

    subscription = Subscription(whop_membership_id=membership_id, **fields)
    db.session.add(subscription)
    try:
        db.session.flush()
    except IntegrityError:
        # Another delivery inserted the same membership first
        db.session.rollback()
        subscription = Subscription.query.filter_by(whop_membership_id=membership_id).one()
        _apply(subscription, fields)
        db.session.flush()
    return subscription


def log_event(event_type, payload, subscription_id):
    db.session.add(SubscriptionEvent(
        subscription_id=subscription_id,
        event_type=event_type,
        payload=payload,
    ))


def handle_event(payload):
    """
    Apply one verified webhook payload and record it.
    Returns the affected Subscription or None. Commits the session.
    """
    event_type = get_event_type(payload)
    data = payload.get("data")
    if not isinstance(data, dict):
        data = {}
    subscription = None

    if event_type in ACTIVATION_EVENTS or event_type in DEACTIVATION_EVENTS:
        status = "active" if event_type in ACTIVATION_EVENTS else "canceled"
        membership_id = extract_membership_id(data)
        user_id = extract_user_id(data)
        product_id = extract_product_id(data)

        if not (membership_id and user_id and product_id):
            current_app.logger.error(
                f"Webhook {event_type} missing required fields: membership_id={membership_id}, "
                f"user_id={user_id}, product_id={product_id}"
            )
        elif not _is_known_user(user_id):
            current_app.logger.error(f"Webhook {event_type} references unknown user {user_id}")
        else:
            subscription = upsert_subscription(
                membership_id=str(membership_id),
                user_id=user_id,
                product_id=str(product_id),
                status=status,
                period_start=to_datetime(_first(data.get("current_period_start"), data.get("period_start"))),
                period_end=to_datetime(_first(data.get("current_period_end"), data.get("period_end"))),
                cancel_at=to_datetime(data.get("cancel_at")),
            )

    log_event(event_type, payload, subscription.id if subscription else None)
    db.session.commit()

    if subscription is not None and subscription.status == "active" and event_type in ACTIVATION_EVENTS:
        # Already committed; email failures are only logged
        try:
            _notify_payment(subscription)
        except Exception as e:
            current_app.logger.exception(f"Payment notification failed for subscription {subscription.id}: {e}")
    return subscription


def _is_known_user(user_id):
    try:
        return db.session.get(User, int(user_id)) is not None
    except (TypeError, ValueError):
        return False


def _notify_payment(subscription):
    if not current_app.config.get("LOOPS_API_KEY"):
        return
    user = db.session.get(User, subscription.user_id)
    plan = get_plan_for_product(subscription.product_id)
    if user is None or plan is None:
        return
    result = send_payment_confirmation_email(user.email, plan["name"], plan["interval"])
    if not result["success"]:
        current_app.logger.warning(f"Payment confirmation email failed for subscription {subscription.id}")
