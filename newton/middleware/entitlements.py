from functools import wraps
from flask import jsonify, current_app
from flask_login import current_user
from flask_limiter.util import get_remote_address
from newton.services.subscription_service import (
    can_create_note,
    has_active_subscription,
    limit_reached_payload,
)


def require_note_allowance(f):
    """Decorator to enforce the plan's note limit before an endpoint executes."""
    @wraps(f)
    def decorated_function(*args, **kwargs):
        if not current_user.is_authenticated:
            return jsonify({"error": "Unauthorized"}), 401
        allowance = can_create_note(current_user.id)
        if not allowance["allowed"]:
            current_app.logger.info(
                f"Note limit reached for user {current_user.id}: "
                f"{allowance['current_count']}/{allowance['limit']} on {allowance['tier']}"
            )
            return jsonify(limit_reached_payload("note", allowance)), 403
        return f(*args, **kwargs)
    return decorated_function


def note_rate_limit_key():
    """Rate-limit bucket: the user id when logged in, else the client address."""
    if current_user.is_authenticated:
        return f"user:{current_user.id}"
    return f"ip:{get_remote_address()}"


def note_rate_limit():
    """Sliding-window note creation limit for the caller's plan."""
    if not current_user.is_authenticated:
        return current_app.config["IP_RATE_LIMIT"]
    if has_active_subscription(current_user.id):
        return current_app.config["NOTE_RATE_LIMIT_PAID"]
    return current_app.config["NOTE_RATE_LIMIT_FREE"]
