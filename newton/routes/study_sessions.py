from flask import Blueprint, request, jsonify, current_app
from flask_login import login_required, current_user
from newton.extensions import db
from newton.models.study import StudySession
from newton.services.study_service import (
    get_or_create_stats,
    record_finished_session,
    weekly_study_time,
    utcnow,
)

study_bp = Blueprint("study_sessions", __name__, url_prefix="/api/study-sessions")


def _active_session(session_id=None):
    query = StudySession.query.filter_by(user_id=current_user.id, is_active=True)
    if session_id is not None:
        if isinstance(session_id, bool) or not isinstance(session_id, (int, str)):
            return None
        query = query.filter_by(id=session_id)
    return query.order_by(StudySession.start_time.desc()).first()


def _parse_duration(value):
    """Non-negative whole seconds, or None if the value is not a number."""
    if isinstance(value, bool):
        return None
    try:
        return max(int(value), 0)
    except (TypeError, ValueError):
        return None


@study_bp.route("/start", methods=["POST"])
@login_required
def start_session():
    data = request.get_json(silent=True) or {}

    if _active_session():
        return jsonify({"error": "You already have an active study session"}), 400

    session = StudySession(
        user_id=current_user.id,
        subject=(data.get("subject") or None),
        start_time=utcnow(),
        is_active=True,
        total_duration=0,
    )
    db.session.add(session)
    db.session.commit()
    return jsonify({"session": session.to_dict()})


@study_bp.route("/active", methods=["GET"])
@login_required
def active_session():
    session = _active_session()
    return jsonify({"session": session.to_dict() if session else None})


@study_bp.route("/update", methods=["PUT"])
@login_required
def update_session():
    data = request.get_json(silent=True) or {}
    session_id = data.get("sessionId")
    if not session_id:
        return jsonify({"error": "Session ID is required"}), 400

    session = _active_session(session_id)
    if not session:
        return jsonify({"error": "Active session not found"}), 404

    pause_time = data.get("pauseTime")
    if pause_time is not None and (not isinstance(pause_time, str) or len(pause_time) > 64):
        return jsonify({"error": "pauseTime must be a timestamp string or null"}), 400

    if data.get("totalDuration") is not None:
        duration = _parse_duration(data["totalDuration"])
        if duration is None:
            return jsonify({"error": "totalDuration must be a number of seconds"}), 400
        session.total_duration = duration

    # pauseTime: null resumes the session
    if "pauseTime" in data:
        session.pause_time = pause_time

    session.updated_at = utcnow()
    db.session.commit()
    return jsonify({"session": session.to_dict()})


@study_bp.route("/stop", methods=["POST"])
@login_required
def stop_session():
    data = request.get_json(silent=True) or {}
    session_id = data.get("sessionId")
    if not session_id or data.get("totalDuration") is None:
        return jsonify({"error": "Session ID and total duration are required"}), 400

    duration = _parse_duration(data["totalDuration"])
    if duration is None:
        return jsonify({"error": "totalDuration must be a number of seconds"}), 400

    session = _active_session(session_id)
    if not session:
        return jsonify({"error": "Active session not found"}), 404

    now = utcnow()
    session.is_active = False
    session.end_time = now
    session.pause_time = None
    session.total_duration = duration
    session.updated_at = now
    record_finished_session(session)
    db.session.commit()

    current_app.logger.info(f"Study session {session.id} stopped after {duration}s")
    return jsonify({"session": session.to_dict()})


@study_bp.route("/stats", methods=["GET"])
@login_required
def stats():
    user_stats = get_or_create_stats(current_user.id)
    db.session.commit()

    result = user_stats.to_dict()
    result["weekly_time"] = weekly_study_time(current_user.id)
    return jsonify({"stats": result})
