from flask import current_app
from newton.extensions import db
from newton.models.subscription import Subscription
from newton.models.note import Note
from newton.models.flashcard import Flashcard

PLAN_TIERS = ("free", "monthly", "yearly", "lifetime")
PAID_TIERS = ("monthly", "yearly", "lifetime")

PLAN_NAMES = {
    "free": "Free Plan",
    "monthly": "Monthly Plan",
    "yearly": "Yearly Plan",
    "lifetime": "Lifetime Access",
}


def get_user_subscription(user_id):
    """Most recently created active subscription for the user, or None."""
    return (
        Subscription.query.filter_by(user_id=user_id, status="active")
        .order_by(Subscription.created_at.desc(), Subscription.id.desc())
        .first()
    )


def get_plan_tier(subscription):
    if subscription is None or subscription.status != "active":
        return "free"
    if subscription.plan_interval in PAID_TIERS:
        return subscription.plan_interval
    return "free"


def get_limits_for_tier(tier):
    """
    Entitlements for a tier. None means unlimited.
    """
    if tier in PAID_TIERS:
        return {
            "max_notes": None,
            "max_quizzes": None,
            "max_flashcards": None,
            "has_unlimited_access": True,
        }
    return {
        "max_notes": current_app.config.get("FREE_MAX_NOTES", 3),
        "max_quizzes": current_app.config.get("FREE_MAX_QUIZZES", 3),
        "max_flashcards": current_app.config.get("FREE_MAX_FLASHCARDS", 10),
        "has_unlimited_access": False,
    }


def get_subscription_status(user_id):
    subscription = get_user_subscription(user_id)
    tier = get_plan_tier(subscription)
    return {
        "tier": tier,
        "is_active": subscription is not None and subscription.status == "active",
        "subscription": subscription,
        "limits": get_limits_for_tier(tier),
    }


def has_active_subscription(user_id):
    return get_user_subscription(user_id) is not None


def _allowance(current_count, limit, tier):
    return {
        "allowed": limit is None or current_count < limit,
        "current_count": current_count,
        "limit": limit,
        "tier": tier,
    }


def can_create_note(user_id):
    status = get_subscription_status(user_id)
    count = Note.query.filter_by(user_id=user_id).count()
    return _allowance(count, status["limits"]["max_notes"], status["tier"])


def can_generate_quiz(user_id):
    """Free users may generate quizzes for a limited number of notes."""
    status = get_subscription_status(user_id)
    count = Note.query.filter(Note.user_id == user_id, Note.quiz_questions.isnot(None)).count()
    return _allowance(count, status["limits"]["max_quizzes"], status["tier"])


def can_generate_flashcards(user_id):
    status = get_subscription_status(user_id)
    count = db.session.query(Flashcard).filter_by(user_id=user_id).count()
    return _allowance(count, status["limits"]["max_flashcards"], status["tier"])


def format_plan_name(tier):
    return PLAN_NAMES.get(tier, PLAN_NAMES["free"])


def get_upgrade_message(tier):
    if tier == "free":
        return "Upgrade to unlock unlimited notes, quizzes, and flashcards!"
    return "You have unlimited access to all features!"


def limit_reached_payload(kind, allowance):
    """Body of the 403 returned when a free-tier limit is hit."""
    return {
        "error": f"{kind.capitalize()} limit reached",
        "message": (
            f"You've reached your limit of {allowance['limit']} {kind}s on the "
            f"{allowance['tier']} plan. Upgrade to create unlimited {kind}s!"
        ),
        "currentCount": allowance["current_count"],
        "limit": allowance["limit"],
        "tier": allowance["tier"],
        "upgradeRequired": True,
    }
