"""Smoke tests: auth, email, profile and utility endpoints."""
import pytest
import requests

from conftest import register, make_app
from newton.services.loops import send_event, update_contact
from newton.services.media import extract_video_id
from newton.utils.files import sanitize_filename, strip_extension
from newton.utils.llm_json import parse_model_json, strip_code_fences


class LoopsResponse:
    def __init__(self, payload, status_code=200):
        self._payload = payload
        self.status_code = status_code

    def raise_for_status(self):
        if self.status_code >= 400:
            raise requests.HTTPError(f"{self.status_code} error")

    def json(self):
        return self._payload


@pytest.fixture
def loops_app(tmp_path):
    return make_app(tmp_path, LOOPS_API_KEY="loops-key")


@pytest.fixture
def loops_calls(monkeypatch):
    calls = []

    def fake_request(method, url, headers=None, json=None, timeout=None):
        calls.append({"method": method, "url": url, "json": json, "headers": headers})
        return LoopsResponse({"success": True})

    monkeypatch.setattr("newton.services.loops.requests.request", fake_request)
    return calls


class TestAuth:
    def test_register_login_logout(self, client):
        user = register(client)
        assert user["email"] == "student@example.com"
        assert client.get("/auth/me").status_code == 200

        assert client.post("/auth/logout").status_code == 200
        assert client.get("/auth/me").status_code == 401

        resp = client.post("/auth/login", json={"email": "student@example.com", "password": "secret123"})
        assert resp.status_code == 200

    def test_duplicate_email(self, client):
        register(client)
        resp = client.post("/auth/register", json={"email": "student@example.com", "password": "secret123"})
        assert resp.status_code == 409

    def test_register_validation(self, client):
        assert client.post("/auth/register", json={"email": "bad", "password": "secret123"}).status_code == 400
        assert client.post("/auth/register", json={"email": "a@b.co", "password": "123"}).status_code == 400
        assert client.post("/auth/register", json={}).status_code == 400

    def test_wrong_password(self, client):
        register(client)
        client.post("/auth/logout")
        resp = client.post("/auth/login", json={"email": "student@example.com", "password": "nope"})
        assert resp.status_code == 401

    def test_unknown_route_is_json(self, client):
        resp = client.get("/api/does-not-exist")
        assert resp.status_code == 404
        assert resp.get_json()["error"] == "Not found"


class TestCountry:
    def test_update_country(self, client, user):
        resp = client.post("/api/user/update-country", json={"country": "Canada", "country_code": "ca"})
        assert resp.status_code == 200
        assert resp.get_json()["success"] is True
        me = client.get("/auth/me").get_json()["user"]
        assert me["country"] == "Canada"
        assert me["country_code"] == "CA"

    def test_country_required(self, client, user):
        assert client.post("/api/user/update-country", json={"country": "Canada"}).status_code == 400

    def test_requires_login(self, client):
        assert client.post("/api/user/update-country", json={"country": "Canada", "country_code": "CA"}).status_code == 401


class TestLoops:
    def test_send_welcome(self, loops_app, loops_calls):
        client = loops_app.test_client()
        resp = client.post("/api/loops/send-welcome", json={
            "email": "new@example.com",
            "firstName": "Ada",
            "userId": "7",
        })
        assert resp.status_code == 200
        assert resp.get_json() == {"success": True}

        transactional, contact = loops_calls
        assert transactional["url"].endswith("/transactional")
        assert transactional["json"]["dataVariables"] == {"firstName": "Ada"}
        assert transactional["headers"]["Authorization"] == "Bearer loops-key"
        assert contact["method"] == "PUT"
        assert contact["json"]["userId"] == "7"

    def test_email_required(self, loops_app, loops_calls):
        assert loops_app.test_client().post("/api/loops/send-welcome", json={}).status_code == 400

    def test_missing_api_key(self, client):
        resp = client.post("/api/loops/send-welcome", json={"email": "new@example.com"})
        assert resp.status_code == 500

    def test_send_failure(self, loops_app, monkeypatch):
        def down(*args, **kwargs):
            raise requests.ConnectionError("loops unreachable")

        monkeypatch.setattr("newton.services.loops.requests.request", down)
        resp = loops_app.test_client().post("/api/loops/send-welcome", json={"email": "new@example.com"})
        assert resp.status_code == 500

    def test_unexpected_response_shape_is_a_failure(self, loops_app, monkeypatch):
        monkeypatch.setattr(
            "newton.services.loops.requests.request",
            lambda *args, **kwargs: LoopsResponse(["not", "an", "object"]),
        )
        with loops_app.app_context():
            result = send_event("a@b.co", "note_created")
        assert result["success"] is False

    def test_event_and_contact_helpers(self, loops_app, loops_calls):
        with loops_app.app_context():
            assert send_event("a@b.co", "note_created", {"source": "pdf"})["success"] is True
            assert update_contact("a@b.co", {"firstName": None, "plan": "monthly"})["success"] is True

        event, contact = loops_calls
        assert event["json"] == {"email": "a@b.co", "eventName": "note_created", "eventProperties": {"source": "pdf"}}
        assert contact["json"] == {"email": "a@b.co", "plan": "monthly"}


class TestUtilities:
    @pytest.mark.parametrize("url", [
        "https://www.youtube.com/watch?v=dQw4w9WgXcQ",
        "https://www.youtube.com/watch?feature=share&v=dQw4w9WgXcQ",
        "https://youtu.be/dQw4w9WgXcQ",
        "https://www.youtube.com/embed/dQw4w9WgXcQ",
        "https://youtube.com/shorts/dQw4w9WgXcQ",
        "dQw4w9WgXcQ",
    ])
    def test_video_id_forms(self, url):
        assert extract_video_id(url) == "dQw4w9WgXcQ"

    def test_video_id_rejects_other_sites(self):
        assert extract_video_id("https://vimeo.com/12345") is None
        assert extract_video_id("") is None

    def test_parse_fenced_json(self):
        assert parse_model_json('```json\n{"a": 1}\n```') == {"a": 1}
        assert strip_code_fences("plain") == "plain"
        with pytest.raises(ValueError):
            parse_model_json("not json")

    def test_filename_helpers(self):
        assert sanitize_filename("my notes (v2).pdf") == "my_notes__v2_.pdf"
        assert strip_extension("lecture.pdf") == "lecture"
        assert strip_extension("") == "Untitled Note"


def test_smoke_endpoints(client, user):
    """Every read endpoint answers 200 for a fresh account."""
    for path in [
        "/auth/me",
        "/api/notes",
        "/api/subscription/status",
        "/api/study-sessions/active",
        "/api/study-sessions/stats",
        "/api/friends",
        "/api/rooms",
    ]:
        resp = client.get(path)
        assert resp.status_code == 200, f"{path} returned {resp.status_code}"
