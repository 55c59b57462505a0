from flask import Blueprint, request, jsonify, current_app
from flask_login import login_required, current_user
from newton.extensions import db
from newton.models.friendship import Friendship
from newton.models.user import User

friends_bp = Blueprint("friends", __name__, url_prefix="/api/friends")


def _involving(user_id):
    return db.or_(Friendship.user_id == user_id, Friendship.friend_id == user_id)


def _serialize(friendship, user_id):
    other = friendship.other_user(user_id)
    return {
        "id": friendship.id,
        "friendId": other.id,
        "name": other.display_name,
        "avatar": other.avatar_url,
        "status": friendship.status,
        "isSender": friendship.user_id == user_id,
        "createdAt": friendship.created_at.isoformat() if friendship.created_at else None,
    }


@friends_bp.route("", methods=["GET"])
@login_required
def list_friends():
    friendships = (
        Friendship.query.filter(_involving(current_user.id))
        .order_by(Friendship.created_at.desc(), Friendship.id.desc())
        .all()
    )
    entries = [_serialize(f, current_user.id) for f in friendships]
    pending = [e for e in entries if e["status"] == "pending"]

    return jsonify({
        "friends": [e for e in entries if e["status"] == "accepted"],
        "pendingReceived": [e for e in pending if not e["isSender"]],
        "pendingSent": [e for e in pending if e["isSender"]],
    })


@friends_bp.route("/request", methods=["POST"])
@login_required
def send_request():
    data = request.get_json(silent=True) or {}
    email = data.get("email")
    if not email or not isinstance(email, str):
        return jsonify({"error": "Email is required"}), 400

    friend = User.query.filter_by(email=email.strip().lower()).first()
    if not friend:
        return jsonify({"error": "User not found with this email"}), 404

    if friend.id == current_user.id:
        return jsonify({"error": "You cannot add yourself as a friend"}), 400

    existing = Friendship.query.filter(
        db.or_(
            db.and_(Friendship.user_id == current_user.id, Friendship.friend_id == friend.id),
            db.and_(Friendship.user_id == friend.id, Friendship.friend_id == current_user.id),
        )
    ).first()

    if existing and existing.status == "pending":
        return jsonify({"error": "Friend request already sent"}), 400
    if existing and existing.status == "accepted":
        return jsonify({"error": "Already friends"}), 400

    if existing:
        # A rejected pair can try again; the new sender becomes the requester
        existing.user_id = current_user.id
        existing.friend_id = friend.id
        existing.status = "pending"
        friendship = existing
    else:
        friendship = Friendship(user_id=current_user.id, friend_id=friend.id, status="pending")
        db.session.add(friendship)
    db.session.commit()

    current_app.logger.info(f"Friend request {friendship.id}: {current_user.id} -> {friend.id}")
    return jsonify({
        "success": True,
        "friendship": friendship.to_dict(),
        "message": "Friend request sent successfully",
    })


@friends_bp.route("/manage", methods=["PATCH"])
@login_required
def respond_to_request():
    data = request.get_json(silent=True) or {}
    friendship_id = data.get("friendshipId")
    action = data.get("action")

    if not friendship_id or action not in ("accept", "reject"):
        return jsonify({"error": "Invalid request"}), 400

    # Only the recipient of a pending request may answer it
    friendship = Friendship.query.filter_by(
        id=friendship_id, friend_id=current_user.id, status="pending"
    ).first()
    if not friendship:
        return jsonify({"error": "Friend request not found"}), 404

    friendship.status = "accepted" if action == "accept" else "rejected"
    db.session.commit()

    return jsonify({
        "success": True,
        "friendship": friendship.to_dict(),
        "message": "Friend request accepted" if action == "accept" else "Friend request rejected",
    })


@friends_bp.route("/manage", methods=["DELETE"])
@login_required
def remove_friend():
    data = request.get_json(silent=True) or {}
    friendship_id = data.get("friendshipId")
    if not friendship_id:
        return jsonify({"error": "Friendship ID is required"}), 400

    friendship = Friendship.query.filter(
        Friendship.id == friendship_id, _involving(current_user.id)
    ).first()
    if not friendship:
        return jsonify({"error": "Friendship not found"}), 404

    db.session.delete(friendship)
    db.session.commit()
    return jsonify({"success": True, "message": "Friendship removed successfully"})
