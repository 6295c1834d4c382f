# =============================================================================
# tests/conftest.py - Pytest Configuration
# =============================================================================
# Sets up environment variables before filedrop is imported (filedrop.main
# builds its module-level app on import) and provides an app wired to a
# temporary SQLite database, a recording mail transport, a recording object
# store and a mocked GitHub API.
# =============================================================================

import os

os.environ.setdefault("SECRET_KEY", "test-secret-key-0123456789")
os.environ.setdefault("DATABASE_URL", "sqlite://")

import httpx
import pytest
from fastapi.testclient import TestClient
from werkzeug.security import generate_password_hash

from filedrop.auth.session import issue_session_token
from filedrop.core.config import Settings
from filedrop.main import create_app
from filedrop.models import File, User


class RecordingTransport:
    """Mail transport that keeps messages instead of sending them."""

    def __init__(self):
        self.messages = []
        self.rejected = []

    def send(self, message):
        self.messages.append(message)
        return list(self.rejected)

    def last_text(self) -> str:
        return self.messages[-1].get_body(preferencelist=("plain",)).get_content()

    def last_html(self) -> str:
        return self.messages[-1].get_body(preferencelist=("html",)).get_content()

    def last_url(self) -> str:
        return self.last_text().splitlines()[1]


class RecordingStorage:
    def __init__(self):
        self.deleted = []
        self.fail = False

    def delete(self, key):
        self.deleted.append(key)
        return not self.fail


GITHUB_PROFILE = {
    "id": 4242,
    "login": "octocat",
    "name": "Octo Cat",
    "email": None,
    "avatar_url": "https://avatars.example.com/u/4242",
}


def github_handler(request: httpx.Request) -> httpx.Response:
    if request.url.path == "/login/oauth/access_token":
        return httpx.Response(200, json={"access_token": "gho_test", "scope": "read:user,user:email"})
    if request.url.path == "/user":
        return httpx.Response(200, json=dict(GITHUB_PROFILE))
    if request.url.path == "/user/emails":
        return httpx.Response(
            200,
            json=[
                {"email": "old@example.com", "primary": False, "verified": True},
                {"email": "octo@example.com", "primary": True, "verified": True},
            ],
        )
    return httpx.Response(404)


# =============================================================================
# Fixtures
# =============================================================================

@pytest.fixture
def settings(tmp_path):
    return Settings(
        database_url=f"sqlite:///{tmp_path / 'filedrop.db'}",
        secret_key="test-secret-key-0123456789",
        base_url="http://testserver",
        github_id="gh-client-id",
        github_secret="gh-client-secret",
    )


@pytest.fixture
def mail():
    return RecordingTransport()


@pytest.fixture
def storage():
    return RecordingStorage()


@pytest.fixture
def app(settings, mail, storage):
    return create_app(
        settings,
        transport=mail,
        storage=storage,
        http_client=httpx.Client(transport=httpx.MockTransport(github_handler)),
    )


@pytest.fixture
def client(app):
    return TestClient(app)


@pytest.fixture
def db(app):
    session = app.state.session_factory()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def make_user(db):
    def _make_user(email="alice@example.com", name="Alice", password="correct horse"):
        user = User(
            email=email,
            name=name,
            hashed_password=generate_password_hash(password) if password else None,
        )
        db.add(user)
        db.commit()
        db.refresh(user)
        return user

    return _make_user


@pytest.fixture
def make_file(db):
    def _make_file(owner, name="report.pdf", key=None):
        file = File(name=name, key=key or f"{owner.id}/{name}", size=1024, user_id=owner.id)
        db.add(file)
        db.commit()
        db.refresh(file)
        return file

    return _make_file


@pytest.fixture
def auth_headers(settings):
    def _auth_headers(user):
        return {"Authorization": f"Bearer {issue_session_token(user, settings)}"}

    return _auth_headers
