import json
import time

import pytest

from config import Config
from newton import create_app
from newton.extensions import db
from newton.models.user import User
from newton.services.whop import compute_signature

WEBHOOK_SECRET = "whsec_test_secret"
MONTHLY_PLAN = "plan_AhTV9u0UD48Z0"
YEARLY_PLAN = "plan_rgupWHoVJKhDw"
LIFETIME_PLAN = "plan_g5wnacjwa6tp3"


class TestConfig(Config):
    TESTING = True
    SECRET_KEY = "test-secret"
    SQLALCHEMY_DATABASE_URI = "sqlite:///:memory:"
    RATELIMIT_ENABLED = False
    RATELIMIT_STORAGE_URI = "memory://"
    OPENAI_API_KEY = "sk-test"
    WHOP_API_KEY = "whop-test-key"
    WHOP_COMPANY_ID = "biz_test"
    WHOP_WEBHOOK_SECRET = WEBHOOK_SECRET
    WHOP_WEBHOOK_TOLERANCE_SECONDS = 300
    LOOPS_API_KEY = ""


def make_app(tmp_path, **overrides):
    attrs = {"UPLOAD_FOLDER": str(tmp_path / "uploads")}
    attrs.update(overrides)
    config_class = type("LocalTestConfig", (TestConfig,), attrs)
    return create_app(config_class)


@pytest.fixture
def app(tmp_path):
    app = make_app(tmp_path)
    yield app
    with app.app_context():
        db.session.remove()
        db.drop_all()


@pytest.fixture
def client(app):
    return app.test_client()


def register(client, email="student@example.com", password="secret123", full_name="Test Student"):
    resp = client.post("/auth/register", json={
        "email": email,
        "password": password,
        "fullName": full_name,
    })
    assert resp.status_code == 201, resp.get_json()
    return resp.get_json()["user"]


@pytest.fixture
def user(client):
    """Registered and logged-in user on the default client."""
    return register(client)


@pytest.fixture
def other_client(app):
    return app.test_client()


@pytest.fixture
def other_user(other_client):
    return register(other_client, email="friend@example.com", full_name="Friendly Peer")


def user_id_for(app, email):
    with app.app_context():
        return User.query.filter_by(email=email).first().id


def membership_payload(event_type, user_id, membership_id="mem_123", plan_id=MONTHLY_PLAN, **data):
    body = {
        "id": membership_id,
        "plan_id": plan_id,
        "metadata": {"supabase_user_id": str(user_id)},
        "current_period_start": "2026-10-01T00:00:00Z",
        "current_period_end": "2026-11-01T00:00:00Z",
    }
    body.update(data)
    return {"type": event_type, "data": body}


def post_webhook(client, payload, secret=WEBHOOK_SECRET, timestamp=None, signature=None):
    raw = json.dumps(payload).encode("utf-8")
    timestamp = str(int(time.time())) if timestamp is None else timestamp
    if signature is None:
        signature = f"v1,{compute_signature(raw, timestamp, secret)}"
    return client.post(
        "/api/whop",
        data=raw,
        content_type="application/json",
        headers={"webhook-timestamp": timestamp, "webhook-signature": signature},
    )


def activate(client, user_id, plan_id=MONTHLY_PLAN, membership_id="mem_123"):
    resp = post_webhook(client, membership_payload("membership_activated", user_id, membership_id, plan_id))
    assert resp.status_code == 200, resp.get_json()


@pytest.fixture
def fake_ai(monkeypatch):
    """Replace the generation helpers used by the note routes with canned output."""
    calls = []

    def content_from_prompt(prompt):
        calls.append(("prompt", prompt))
        return f"Educational content about {prompt}."

    def notes_from_content(content, content_type="pdf"):
        calls.append(("notes", content_type))
        return f"# Notes\n\n{content}"

    def title_and_description(content):
        return {"title": "Generated Title", "description": "Generated description"}

    for module in ("newton.routes.notes", "newton.routes.upload"):
        monkeypatch.setattr(f"{module}.generate_notes_from_content", notes_from_content, raising=False)
        monkeypatch.setattr(f"{module}.generate_title_and_description", title_and_description, raising=False)
    monkeypatch.setattr("newton.routes.notes.generate_content_from_prompt", content_from_prompt)
    return calls

