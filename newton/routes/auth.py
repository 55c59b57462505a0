from flask import Blueprint, request, jsonify
from flask_login import login_user, logout_user, login_required, current_user
from newton.extensions import db
from newton.models.user import User
from newton.services.subscription_service import get_subscription_status, format_plan_name

auth_bp = Blueprint("auth", __name__, url_prefix="/auth")


@auth_bp.route("/register", methods=["POST"])
def register():
    data = request.get_json(silent=True) or {}
    email = (data.get("email") or "").strip().lower()
    password = data.get("password") or ""
    full_name = (data.get("fullName") or data.get("full_name") or "").strip()

    if not email or not password:
        return jsonify({"error": "Email and password are required"}), 400

    if "@" not in email:
        return jsonify({"error": "Invalid email address"}), 400

    if len(password) < 6:
        return jsonify({"error": "Password must be at least 6 characters"}), 400

    if User.query.filter_by(email=email).first():
        return jsonify({"error": "Email already registered"}), 409

    user = User(email=email, full_name=full_name or None)
    user.set_password(password)
    db.session.add(user)
    db.session.commit()

    login_user(user)
    return jsonify({"message": "Registration successful", "user": user.to_dict()}), 201


@auth_bp.route("/login", methods=["POST"])
def login():
    data = request.get_json(silent=True) or {}
    email = (data.get("email") or "").strip().lower()
    password = data.get("password") or ""

    user = User.query.filter_by(email=email).first()
    if not user or not user.check_password(password):
        return jsonify({"error": "Invalid email or password"}), 401

    login_user(user, remember=True)
    return jsonify({"message": "Login successful", "user": user.to_dict()})


@auth_bp.route("/logout", methods=["POST"])
@login_required
def logout():
    logout_user()
    return jsonify({"message": "Logged out"})


@auth_bp.route("/me", methods=["GET"])
@login_required
def me():
    status = get_subscription_status(current_user.id)
    return jsonify({
        "user": current_user.to_dict(),
        "subscription": {
            "tier": status["tier"],
            "isActive": status["is_active"],
            "planName": format_plan_name(status["tier"]),
            "limits": status["limits"],
        },
    })
