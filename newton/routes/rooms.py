from flask import Blueprint, request, jsonify, current_app
from flask_login import login_required, current_user
from newton.extensions import db
from newton.models.room import Room, RoomTag, RoomParticipant, ROOM_PRIVACY
from newton.services.study_service import utcnow

rooms_bp = Blueprint("rooms", __name__, url_prefix="/api/rooms")

MAX_ROOM_TAGS = 5


def _current_participation(user_id):
    return RoomParticipant.query.filter_by(user_id=user_id, is_active=True).first()


@rooms_bp.route("", methods=["GET"])
@login_required
def list_rooms():
    rooms = (
        Room.query.filter_by(is_active=True, privacy="public")
        .order_by(Room.created_at.desc(), Room.id.desc())
        .all()
    )
    return jsonify({"rooms": [r.to_dict() for r in rooms]})


@rooms_bp.route("/create", methods=["POST"])
@login_required
def create_room():
    data = request.get_json(silent=True) or {}
    name = (data.get("name") or "").strip()
    privacy = data.get("privacy") or "public"
    tags = data.get("tags") or []

    if not name:
        return jsonify({"error": "Room name is required"}), 400
    if privacy not in ROOM_PRIVACY:
        return jsonify({"error": "Privacy must be 'public' or 'private'"}), 400
    if not isinstance(tags, list):
        return jsonify({"error": "Tags must be a list"}), 400

    if _current_participation(current_user.id):
        return jsonify({"error": "You are already in another room. Please leave it first."}), 403

    room = Room(name=name[:100], creator_id=current_user.id, privacy=privacy)
    db.session.add(room)
    db.session.flush()

    clean_tags = [str(t).strip()[:50] for t in tags if str(t).strip()][:MAX_ROOM_TAGS]
    for tag in clean_tags:
        db.session.add(RoomTag(room_id=room.id, tag=tag))

    # The creator joins automatically
    db.session.add(RoomParticipant(room_id=room.id, user_id=current_user.id, is_active=True))
    db.session.commit()

    current_app.logger.info(f"Room {room.id} created by user {current_user.id}")
    return jsonify({
        "room": {
            "id": room.id,
            "name": room.name,
            "privacy": room.privacy,
            "participants": 1,
            "tags": clean_tags,
        }
    }), 201


@rooms_bp.route("/<int:room_id>/join", methods=["POST"])
@login_required
def join_room(room_id):
    room = Room.query.filter_by(id=room_id, is_active=True).first()
    if not room:
        return jsonify({"error": "Room not found"}), 404

    participation = _current_participation(current_user.id)
    if participation and participation.room_id == room.id:
        return jsonify({"message": "Already in this room", "roomId": room.id})
    if participation:
        return jsonify({"error": "You are already in another room. Please leave it first."}), 403

    if room.active_participant_count() >= room.max_participants:
        return jsonify({"error": "Room is full"}), 403

    db.session.add(RoomParticipant(room_id=room.id, user_id=current_user.id, is_active=True))
    db.session.commit()

    return jsonify({"message": "Joined room successfully", "roomId": room.id})


@rooms_bp.route("/<int:room_id>/leave", methods=["POST"])
@login_required
def leave_room(room_id):
    now = utcnow()
    participations = RoomParticipant.query.filter_by(
        room_id=room_id, user_id=current_user.id, is_active=True
    ).all()
    for p in participations:
        p.is_active = False
        p.left_at = now
    db.session.flush()

    # Close the room once the last participant has left
    room = db.session.get(Room, room_id)
    if room and room.is_active and room.active_participant_count() == 0:
        room.is_active = False
        room.closed_at = now
        current_app.logger.info(f"Room {room.id} closed (empty)")

    db.session.commit()
    return jsonify({"message": "Left room successfully"})
