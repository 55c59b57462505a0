from flask import Blueprint, request, jsonify, current_app
from newton.services.loops import send_welcome_email, update_contact

loops_bp = Blueprint("loops", __name__, url_prefix="/api/loops")


@loops_bp.route("/send-welcome", methods=["POST"])
def send_welcome():
    data = request.get_json(silent=True) or {}
    email = (data.get("email") or "").strip()
    first_name = data.get("firstName")
    user_id = data.get("userId")

    if not email:
        return jsonify({"error": "Email is required"}), 400

    if not current_app.config.get("LOOPS_API_KEY"):
        return jsonify({"error": "LOOPS_API_KEY not configured"}), 500

    result = send_welcome_email(email, first_name)
    if not result["success"]:
        return jsonify({"error": "Failed to send email", "details": result.get("error")}), 500

    # Contact sync is best effort
    if user_id or first_name:
        contact = update_contact(email, {"userId": user_id, "firstName": first_name, "status": "active"})
        if not contact["success"]:
            current_app.logger.warning(f"Failed to update Loops contact for {email} (non-critical)")

    return jsonify({"success": True})
