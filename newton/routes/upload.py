from flask import Blueprint, request, jsonify, current_app, send_from_directory, abort, url_for
from flask_login import login_required, current_user
from sqlalchemy.exc import SQLAlchemyError
from newton.extensions import db, limiter
from newton.models.note import Note
from newton.models.upload import Upload
from newton.middleware.entitlements import require_note_allowance, note_rate_limit, note_rate_limit_key
from newton.services.media import extract_text_from_pdf, ExtractionError
from newton.services.note_generation import (
    generate_notes_from_content,
    generate_title_and_description,
    AIResponseError,
)
from newton.services.openai_service import OpenAIService, AIServiceError
from newton.utils.files import save_upload, remove_upload, strip_extension

upload_bp = Blueprint("upload", __name__)


def _process_file(file_type, filename, data, mimetype):
    """
    Extract text from the upload and turn it into notes.
    Returns (content, title, description, extracted_text); empty on failure.
    """
    title = strip_extension(filename)
    try:
        if file_type == "pdf":
            current_app.logger.info("Extracting text from PDF...")
            extracted = extract_text_from_pdf(data)
        else:
            current_app.logger.info("Transcribing audio file...")
            extracted = OpenAIService().transcribe_audio(filename, data, mimetype)
            current_app.logger.info(f"Transcribed {len(extracted)} characters from audio")

        content = generate_notes_from_content(extracted, file_type)
        meta = generate_title_and_description(extracted)
        return content, meta["title"], meta["description"], extracted
    except (ExtractionError, AIServiceError, AIResponseError) as e:
        # The upload is still kept; the note can be regenerated or edited later
        current_app.logger.error(f"{file_type.upper()} processing error for {filename}: {e}")
        return "", title, "", ""


@upload_bp.route("/api/upload", methods=["POST"])
@login_required
@require_note_allowance
@limiter.limit(note_rate_limit, key_func=note_rate_limit_key)
def upload_file():
    file = request.files.get("file")
    if not file or not file.filename:
        return jsonify({"error": "No file provided"}), 400

    mimetype = file.mimetype or ""
    if mimetype not in current_app.config["ALLOWED_UPLOAD_TYPES"]:
        return jsonify({"error": "Invalid file type. Only PDF and audio files are allowed."}), 400

    data = file.read()
    if len(data) > current_app.config["MAX_UPLOAD_BYTES"]:
        return jsonify({"error": "File size exceeds 50MB limit"}), 400

    file_type = "audio" if mimetype.startswith("audio/") else "pdf"
    upload_folder = current_app.config["UPLOAD_FOLDER"]
    storage_path = save_upload(data, file.filename, upload_folder, current_user.id)

    upload = Upload(
        user_id=current_user.id,
        filename=file.filename,
        file_type=file_type,
        file_size_mb=round(len(data) / (1024 * 1024), 2),
        storage_path=storage_path,
        status="completed",
    )
    try:
        db.session.add(upload)
        db.session.flush()
    except SQLAlchemyError:
        db.session.rollback()
        remove_upload(storage_path, upload_folder)
        current_app.logger.exception("Failed to create upload record")
        return jsonify({"error": "Failed to create upload record"}), 500

    content, title, description, extracted = _process_file(file_type, file.filename, data, mimetype)

    note = Note(
        user_id=current_user.id,
        upload_id=upload.id,
        title=title[:200],
        description=description,
        content=content,
        transcript=extracted or None,
        source_type=file_type,
    )
    db.session.add(note)
    db.session.commit()

    pdf_url = url_for("upload.serve_upload", filename=storage_path) if file_type == "pdf" else None
    note_dict = note.to_dict()
    note_dict["uploads"] = {
        "filename": upload.filename,
        "file_type": file_type,
        "storage_path": storage_path,
    }

    return jsonify({
        "success": True,
        "noteId": note.id,
        "upload": upload.to_dict(),
        "note": note_dict,
        "pdfUrl": pdf_url,
    }), 201


@upload_bp.route("/uploads/<path:filename>")
@login_required
def serve_upload(filename):
    # Only paths recorded for the caller's own uploads are served
    upload = Upload.query.filter_by(storage_path=filename, user_id=current_user.id).first()
    if upload is None:
        abort(404)
    return send_from_directory(current_app.config["UPLOAD_FOLDER"], upload.storage_path)
