import json
from flask import Blueprint, request, jsonify, current_app
from newton.extensions import db
from newton.services.whop import verify_webhook_signature, WebhookVerificationError
from newton.services.whop_webhooks import handle_event, get_event_type

whop_bp = Blueprint("whop", __name__, url_prefix="/api")


@whop_bp.route("/whop", methods=["POST"])
def whop_webhook():
    raw_body = request.get_data()
    secret = current_app.config.get("WHOP_WEBHOOK_SECRET")

    if secret:
        try:
            verify_webhook_signature(
                raw_body,
                request.headers.get("webhook-timestamp"),
                request.headers.get("webhook-signature"),
                secret,
                tolerance=current_app.config.get("WHOP_WEBHOOK_TOLERANCE_SECONDS", 0),
            )
        except WebhookVerificationError as e:
            current_app.logger.error(f"Webhook signature verification failed: {e}")
            return jsonify({"error": "Invalid signature"}), 400
    else:
        current_app.logger.warning("WHOP_WEBHOOK_SECRET is not set; accepting webhook without verification")

    try:
        payload = json.loads(raw_body)
    except ValueError:
        return jsonify({"error": "Invalid payload"}), 400
    if not isinstance(payload, dict):
        return jsonify({"error": "Invalid payload"}), 400

    event_type = get_event_type(payload)
    if not event_type:
        return jsonify({"error": "Missing event type"}), 400

    try:
        handle_event(payload)
    except Exception as e:
        db.session.rollback()
        current_app.logger.exception(f"Whop webhook handling failed for {event_type}: {e}")
        return jsonify({"error": "Internal Server Error"}), 500

    return jsonify({"ok": True})
