import io

from conftest import register, activate, make_app, YEARLY_PLAN
from newton.services.media import ExtractionError
from newton.services.openai_service import AIServiceError


def create_note(client, prompt="photosynthesis"):
    return client.post("/api/generate-note", json={"prompt": prompt})


class TestGenerateFromPrompt:
    def test_generate_note(self, client, user, fake_ai):
        """A prompt is expanded into content, structured notes and a title."""
        resp = create_note(client)
        assert resp.status_code == 201
        data = resp.get_json()
        assert data["success"] is True
        assert data["note"]["title"] == "Generated Title"
        assert data["note"]["source_type"] == "prompt"
        assert data["note"]["content"].startswith("# Notes")
        assert ("prompt", "photosynthesis") in fake_ai

    def test_prompt_required(self, client, user, fake_ai):
        resp = client.post("/api/generate-note", json={"prompt": "   "})
        assert resp.status_code == 400

    def test_requires_login(self, client, fake_ai):
        assert create_note(client).status_code == 401

    def test_free_limit_blocks_fourth_note(self, client, user, fake_ai):
        for i in range(3):
            assert create_note(client, f"topic {i}").status_code == 201

        resp = create_note(client, "one too many")
        assert resp.status_code == 403
        data = resp.get_json()
        assert data["error"] == "Note limit reached"
        assert data["currentCount"] == 3
        assert data["limit"] == 3
        assert data["tier"] == "free"
        assert data["upgradeRequired"] is True

    def test_paid_user_is_not_limited(self, client, user, fake_ai):
        activate(client, user["id"], plan_id=YEARLY_PLAN)
        for i in range(4):
            assert create_note(client, f"topic {i}").status_code == 201

    def test_ai_failure_returns_500(self, client, user, monkeypatch):
        def boom(prompt):
            raise AIServiceError("upstream down")

        monkeypatch.setattr("newton.routes.notes.generate_content_from_prompt", boom)
        resp = create_note(client)
        assert resp.status_code == 500


class TestYouTube:
    def test_youtube_note(self, client, user, fake_ai, monkeypatch):
        monkeypatch.setattr(
            "newton.routes.notes.fetch_youtube_transcript",
            lambda video_id: f"transcript of {video_id}",
        )
        resp = client.post("/api/youtube", json={"youtubeUrl": "https://youtu.be/dQw4w9WgXcQ"})
        assert resp.status_code == 201
        note = resp.get_json()["note"]
        assert note["source_type"] == "youtube"
        assert note["youtube_url"] == "https://youtu.be/dQw4w9WgXcQ"

    def test_invalid_url(self, client, user, fake_ai):
        resp = client.post("/api/youtube", json={"youtubeUrl": "https://example.com/video"})
        assert resp.status_code == 400
        assert resp.get_json()["error"] == "Invalid YouTube URL"

    def test_missing_url(self, client, user, fake_ai):
        assert client.post("/api/youtube", json={}).status_code == 400

    def test_transcript_unavailable(self, client, user, fake_ai, monkeypatch):
        def no_captions(video_id):
            raise ExtractionError("captions disabled")

        monkeypatch.setattr("newton.routes.notes.fetch_youtube_transcript", no_captions)
        resp = client.post("/api/youtube", json={"youtubeUrl": "https://www.youtube.com/watch?v=dQw4w9WgXcQ"})
        assert resp.status_code == 400
        assert "transcript" in resp.get_json()["error"].lower()


class TestNoteCrud:
    def test_list_get_update_delete(self, client, user, fake_ai):
        note_id = create_note(client).get_json()["noteId"]

        listing = client.get("/api/notes").get_json()
        assert listing["total"] == 1
        assert listing["notes"][0]["id"] == note_id

        detail = client.get(f"/api/notes/{note_id}").get_json()
        assert "transcript" in detail

        resp = client.put(f"/api/notes/{note_id}", json={"title": "Renamed", "content": "edited"})
        assert resp.status_code == 200
        assert resp.get_json()["title"] == "Renamed"

        assert client.put(f"/api/notes/{note_id}", json={"title": ""}).status_code == 400

        assert client.delete(f"/api/notes/{note_id}").status_code == 200
        assert client.get(f"/api/notes/{note_id}").status_code == 404

    def test_filter_by_source_and_search(self, client, user, fake_ai):
        create_note(client, "mitochondria")
        create_note(client, "tectonics")
        assert client.get("/api/notes?source_type=youtube").get_json()["total"] == 0
        assert client.get("/api/notes?q=mitochondria").get_json()["total"] == 1

    def test_other_users_notes_are_hidden(self, client, user, other_client, other_user, fake_ai):
        note_id = create_note(client).get_json()["noteId"]
        assert other_client.get(f"/api/notes/{note_id}").status_code == 404
        assert other_client.delete(f"/api/notes/{note_id}").status_code == 404
        assert other_client.get("/api/notes").get_json()["total"] == 0


class TestUpload:
    def _upload(self, client, data=b"%PDF-1.4 fake", name="lecture.pdf", mimetype="application/pdf"):
        return client.post(
            "/api/upload",
            data={"file": (io.BytesIO(data), name, mimetype)},
            content_type="multipart/form-data",
        )

    def test_pdf_upload_creates_note(self, client, user, fake_ai, monkeypatch):
        monkeypatch.setattr("newton.routes.upload.extract_text_from_pdf", lambda data: "Cells divide.")
        resp = self._upload(client)
        assert resp.status_code == 201
        data = resp.get_json()
        assert data["note"]["source_type"] == "pdf"
        assert data["note"]["uploads"]["filename"] == "lecture.pdf"
        assert data["upload"]["file_type"] == "pdf"
        assert data["pdfUrl"].startswith("/uploads/")

        # Only the owner can read the stored file
        assert client.get(data["pdfUrl"]).status_code == 200

    def test_uploaded_file_hidden_from_others(self, client, user, other_client, other_user, fake_ai, monkeypatch):
        monkeypatch.setattr("newton.routes.upload.extract_text_from_pdf", lambda data: "Cells divide.")
        pdf_url = self._upload(client).get_json()["pdfUrl"]
        assert other_client.get(pdf_url).status_code == 404

    def test_dot_segments_cannot_reach_other_users_files(self, client, user, other_client, other_user,
                                                         fake_ai, monkeypatch):
        """A path starting with your own id cannot climb into another user's folder."""
        monkeypatch.setattr("newton.routes.upload.extract_text_from_pdf", lambda data: "Cells divide.")
        storage_path = self._upload(other_client, name="secret.pdf").get_json()["upload"]["storage_path"]

        resp = client.get(f"/uploads/{user['id']}/../{storage_path}")
        assert resp.status_code == 404

    def test_audio_upload_is_transcribed(self, client, user, fake_ai, monkeypatch):
        monkeypatch.setattr(
            "newton.routes.upload.OpenAIService.transcribe_audio",
            lambda self, filename, data, mimetype: "spoken lecture",
        )
        resp = self._upload(client, data=b"ID3", name="talk.mp3", mimetype="audio/mpeg")
        assert resp.status_code == 201
        data = resp.get_json()
        assert data["note"]["source_type"] == "audio"
        assert data["pdfUrl"] is None

    def test_extraction_failure_keeps_upload(self, client, user, fake_ai, monkeypatch):
        def unreadable(data):
            raise ExtractionError("No text could be extracted from the PDF")

        monkeypatch.setattr("newton.routes.upload.extract_text_from_pdf", unreadable)
        resp = self._upload(client, name="scan.pdf")
        assert resp.status_code == 201
        note = resp.get_json()["note"]
        assert note["title"] == "scan"
        assert note["content"] == ""

    def test_invalid_type_rejected(self, client, user):
        resp = self._upload(client, data=b"hello", name="notes.txt", mimetype="text/plain")
        assert resp.status_code == 400

    def test_missing_file_rejected(self, client, user):
        resp = client.post("/api/upload", data={}, content_type="multipart/form-data")
        assert resp.status_code == 400


class TestRateLimit:
    def test_free_user_limited_per_hour(self, tmp_path, fake_ai):
        """The fourth note within an hour is refused with 429 for free users."""
        app = make_app(tmp_path, RATELIMIT_ENABLED=True, FREE_MAX_NOTES=100)
        client = app.test_client()
        register(client)

        for i in range(3):
            assert create_note(client, f"topic {i}").status_code == 201

        resp = create_note(client, "again")
        assert resp.status_code == 429
        assert resp.get_json()["error"] == "Rate limit exceeded"
