from flask import Blueprint, request, jsonify, current_app
from flask_login import login_required, current_user
from newton.services.subscription_service import (
    get_subscription_status,
    format_plan_name,
    get_upgrade_message,
)
from newton.services.whop import create_checkout_session, get_plan_for_product, WhopAPIError

subscription_bp = Blueprint("subscription", __name__, url_prefix="/api")


@subscription_bp.route("/subscription/status", methods=["GET"])
@login_required
def subscription_status():
    status = get_subscription_status(current_user.id)
    return jsonify({
        "tier": status["tier"],
        "isActive": status["is_active"],
        "limits": status["limits"],
        "planName": format_plan_name(status["tier"]),
        "upgradeMessage": get_upgrade_message(status["tier"]),
    })


@subscription_bp.route("/checkout/create", methods=["POST"])
@login_required
def create_checkout():
    data = request.get_json(silent=True) or {}
    plan_id = data.get("planId")
    email = (data.get("email") or current_user.email or "").strip()

    if not plan_id or not email:
        return jsonify({"error": "Missing required fields: planId, email"}), 400

    if not get_plan_for_product(plan_id):
        return jsonify({"error": "Unknown plan"}), 400

    if not current_app.config.get("WHOP_COMPANY_ID") or not current_app.config.get("WHOP_API_KEY"):
        current_app.logger.error("Whop checkout requested but WHOP_COMPANY_ID/WHOP_API_KEY is not set")
        return jsonify({"error": "Server configuration error: Missing Whop credentials"}), 500

    try:
        session = create_checkout_session(plan_id, current_user.id, email)
    except WhopAPIError as e:
        current_app.logger.error(f"Failed to create checkout configuration: {e}")
        return jsonify({"error": "Failed to create checkout session", "details": str(e)}), 500

    return jsonify({
        "success": True,
        "purchaseUrl": session["purchase_url"],
        "sessionId": session["session_id"],
    })
