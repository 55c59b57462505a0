from flask import Blueprint, jsonify, current_app
from flask_login import login_required, current_user
from newton.extensions import db
from newton.models.flashcard import Flashcard
from newton.models.note import Note
from newton.services.note_generation import generate_flashcards, AIResponseError
from newton.services.openai_service import AIServiceError
from newton.services.subscription_service import can_generate_flashcards, limit_reached_payload

flashcards_bp = Blueprint("flashcards", __name__, url_prefix="/api/notes")


@flashcards_bp.route("/<int:note_id>/flashcards", methods=["GET"])
@login_required
def list_flashcards(note_id):
    cards = (
        Flashcard.query.filter_by(note_id=note_id, user_id=current_user.id)
        .order_by(Flashcard.created_at.asc(), Flashcard.id.asc())
        .all()
    )
    return jsonify({"flashcards": [c.to_dict() for c in cards], "count": len(cards)})


@flashcards_bp.route("/<int:note_id>/flashcards/generate", methods=["POST"])
@login_required
def generate(note_id):
    note = Note.query.filter_by(id=note_id, user_id=current_user.id).first()
    if not note:
        return jsonify({"error": "Note not found"}), 404

    if not note.has_content():
        return jsonify({
            "error": "Note has no content to generate flashcards from. "
                     "Please wait for the note to be processed or add content manually."
        }), 400

    if Flashcard.query.filter_by(note_id=note.id).first():
        return jsonify({"error": "Flashcards already exist for this note"}), 400

    allowance = can_generate_flashcards(current_user.id)
    if not allowance["allowed"]:
        return jsonify(limit_reached_payload("flashcard", allowance)), 403

    try:
        cards = generate_flashcards(note.title, note.content)
    except (AIServiceError, AIResponseError) as e:
        current_app.logger.error(f"Flashcard generation failed for note {note.id}: {e}")
        return jsonify({"error": str(e) or "Failed to generate flashcards"}), 500

    # Free plans keep only as many cards as the allowance has left
    if allowance["limit"] is not None:
        cards = cards[:allowance["limit"] - allowance["current_count"]]

    saved = [
        Flashcard(user_id=current_user.id, note_id=note.id, question=c["question"], answer=c["answer"])
        for c in cards
    ]
    db.session.add_all(saved)
    db.session.commit()

    return jsonify({
        "success": True,
        "flashcards": [c.to_dict() for c in saved],
        "count": len(saved),
    })
