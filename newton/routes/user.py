from flask import Blueprint, request, jsonify
from flask_login import login_required, current_user
from newton.extensions import db

user_bp = Blueprint("user", __name__, url_prefix="/api/user")


@user_bp.route("/update-country", methods=["POST"])
@login_required
def update_country():
    data = request.get_json(silent=True) or {}
    country = (data.get("country") or "").strip()
    country_code = (data.get("country_code") or "").strip()

    if not country or not country_code:
        return jsonify({"error": "Country data required"}), 400

    current_user.country = country[:100]
    current_user.country_code = country_code.upper()[:8]
    db.session.commit()

    return jsonify({"success": True, "message": "Country updated successfully"})
