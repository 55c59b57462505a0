from flask import Blueprint, request, jsonify, current_app
from flask_login import login_required, current_user
from newton.extensions import db
from newton.models.note import Note
from newton.services.note_generation import generate_quiz_questions, AIResponseError
from newton.services.openai_service import AIServiceError
from newton.services.subscription_service import can_generate_quiz, limit_reached_payload

quiz_bp = Blueprint("quiz", __name__, url_prefix="/api")


def _text_or(value, fallback):
    """Use a request override only when it is non-blank text."""
    if isinstance(value, str) and value.strip():
        return value
    return fallback


@quiz_bp.route("/generate-quiz", methods=["POST"])
@login_required
def generate_quiz():
    data = request.get_json(silent=True) or {}
    note_id = data.get("noteId")
    if not note_id or isinstance(note_id, bool) or not isinstance(note_id, (int, str)):
        return jsonify({"error": "noteId is required"}), 400

    note = Note.query.filter_by(id=note_id, user_id=current_user.id).first()
    if not note:
        return jsonify({"error": "Note not found or access denied"}), 404

    title = _text_or(data.get("title"), note.title)
    content = _text_or(data.get("content"), note.content)
    if not content or not content.strip():
        return jsonify({"error": "Note has no content to generate a quiz from"}), 400

    # Regenerating a quiz for the same note does not use up another slot
    if note.quiz_questions is None:
        allowance = can_generate_quiz(current_user.id)
        if not allowance["allowed"]:
            return jsonify(limit_reached_payload("quiz", allowance)), 403

    try:
        questions = generate_quiz_questions(title, content)
    except (AIServiceError, AIResponseError) as e:
        current_app.logger.error(f"Quiz generation failed for note {note.id}: {e}")
        return jsonify({"error": "Failed to generate quiz questions"}), 500

    note.quiz_questions = questions
    db.session.commit()
    current_app.logger.info(f"Saved {len(questions)} quiz questions for note {note.id}")

    return jsonify({"questions": questions})


@quiz_bp.route("/notes/<int:note_id>/quiz", methods=["GET"])
@login_required
def get_quiz(note_id):
    note = Note.query.filter_by(id=note_id, user_id=current_user.id).first_or_404()
    return jsonify({"questions": note.quiz_questions or []})
