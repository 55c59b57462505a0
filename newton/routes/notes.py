from flask import Blueprint, request, jsonify, current_app
from flask_login import login_required, current_user
from newton.extensions import db, limiter
from newton.models.note import Note
from newton.middleware.entitlements import require_note_allowance, note_rate_limit, note_rate_limit_key
from newton.services.media import extract_video_id, fetch_youtube_transcript, ExtractionError
from newton.services.note_generation import (
    generate_content_from_prompt,
    generate_notes_from_content,
    generate_title_and_description,
    AIResponseError,
)
from newton.services.openai_service import AIServiceError

notes_bp = Blueprint("notes", __name__, url_prefix="/api")


@notes_bp.route("/notes", methods=["GET"])
@login_required
def list_notes():
    query = Note.query.filter_by(user_id=current_user.id)

    source_type = request.args.get("source_type")
    if source_type:
        query = query.filter_by(source_type=source_type)

    search = request.args.get("q")
    if search:
        query = query.filter(
            db.or_(
                Note.title.ilike(f"%{search}%"),
                Note.content.ilike(f"%{search}%"),
            )
        )

    query = query.order_by(Note.created_at.desc(), Note.id.desc())

    # Pagination
    page = request.args.get("page", 1, type=int)
    per_page = request.args.get("per_page", 20, type=int)
    pagination = query.paginate(page=page, per_page=per_page, error_out=False)

    return jsonify({
        "notes": [n.to_dict() for n in pagination.items],
        "total": pagination.total,
        "page": pagination.page,
        "pages": pagination.pages,
    })


@notes_bp.route("/notes/<int:note_id>", methods=["GET"])
@login_required
def get_note(note_id):
    note = Note.query.filter_by(id=note_id, user_id=current_user.id).first_or_404()
    return jsonify(note.to_dict(include_transcript=True))


@notes_bp.route("/notes/<int:note_id>", methods=["PUT"])
@login_required
def update_note(note_id):
    note = Note.query.filter_by(id=note_id, user_id=current_user.id).first_or_404()
    data = request.get_json(silent=True) or {}

    if "title" in data:
        title = (data["title"] or "").strip()
        if not title:
            return jsonify({"error": "Title cannot be empty"}), 400
        note.title = title[:200]
    if "description" in data:
        note.description = data["description"] or ""
    if "content" in data:
        note.content = data["content"] or ""

    db.session.commit()
    return jsonify(note.to_dict())


@notes_bp.route("/notes/<int:note_id>", methods=["DELETE"])
@login_required
def delete_note(note_id):
    note = Note.query.filter_by(id=note_id, user_id=current_user.id).first_or_404()
    db.session.delete(note)
    db.session.commit()
    return jsonify({"message": "Note deleted"})


@notes_bp.route("/generate-note", methods=["POST"])
@login_required
@require_note_allowance
@limiter.limit(note_rate_limit, key_func=note_rate_limit_key)
def generate_note():
    data = request.get_json(silent=True) or {}
    prompt = (data.get("prompt") or "").strip()
    if not prompt:
        return jsonify({"error": "Prompt is required"}), 400

    try:
        current_app.logger.info("Generating educational content from prompt...")
        educational_content = generate_content_from_prompt(prompt)
        if not educational_content.strip():
            raise AIResponseError("Failed to generate educational content")

        current_app.logger.info(f"Generated {len(educational_content)} characters of educational content")
        structured_notes = generate_notes_from_content(educational_content, "prompt")
        meta = generate_title_and_description(educational_content)
    except (AIServiceError, AIResponseError) as e:
        current_app.logger.error(f"Generate note failed: {e}")
        return jsonify({"error": str(e)}), 500

    note = Note(
        user_id=current_user.id,
        title=meta["title"],
        description=meta["description"],
        content=structured_notes,
        transcript=educational_content,
        source_type="prompt",
    )
    db.session.add(note)
    db.session.commit()

    return jsonify({"success": True, "noteId": note.id, "note": note.to_dict()}), 201


@notes_bp.route("/youtube", methods=["POST"])
@login_required
@require_note_allowance
@limiter.limit(note_rate_limit, key_func=note_rate_limit_key)
def youtube_note():
    data = request.get_json(silent=True) or {}
    youtube_url = (data.get("youtubeUrl") or "").strip()
    if not youtube_url:
        return jsonify({"error": "YouTube URL is required"}), 400

    video_id = extract_video_id(youtube_url)
    if not video_id:
        return jsonify({"error": "Invalid YouTube URL"}), 400

    try:
        transcript = fetch_youtube_transcript(video_id)
    except ExtractionError as e:
        current_app.logger.error(f"Transcript fetch error for {video_id}: {e}")
        return jsonify({
            "error": "Could not fetch transcript. The video may be private, deleted, or have captions disabled.",
            "details": str(e),
        }), 400

    try:
        content = generate_notes_from_content(transcript, "youtube")
        meta = generate_title_and_description(transcript)
    except (AIServiceError, AIResponseError) as e:
        current_app.logger.error(f"YouTube note generation failed: {e}")
        return jsonify({"error": "Failed to generate notes from video"}), 500

    note = Note(
        user_id=current_user.id,
        title=meta["title"],
        description=meta["description"],
        content=content,
        transcript=transcript,
        source_type="youtube",
        youtube_url=youtube_url,
    )
    db.session.add(note)
    db.session.commit()

    return jsonify({"success": True, "noteId": note.id, "note": note.to_dict()}), 201
