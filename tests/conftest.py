from __future__ import annotations

import sys
from pathlib import Path

import pytest
from fastapi.testclient import TestClient

# Makes the linkpage package importable when running tests from a checkout
ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from linkpage.app import create_app  # noqa: E402
from linkpage.core.config import Settings  # noqa: E402
from linkpage.db.session import Database  # noqa: E402
from linkpage.repositories.sql_repository import SQLRepository  # noqa: E402
from linkpage.services.page_service import PageService  # noqa: E402
from linkpage.services.session_service import RequesterIdentity, issue_session  # noqa: E402


@pytest.fixture()
def settings(tmp_path) -> Settings:
    return Settings(
        app_env="test",
        public_base_url="http://testserver",
        database_url=f"sqlite:///{tmp_path / 'test.db'}",
        jwt_secret="test-secret",
        jwt_ttl_seconds=3600,
        cookie_secure="auto",
        auto_create_tables=True,
        log_level="WARNING",
    )


@pytest.fixture()
def database(settings):
    """Temporary SQLite database with a fresh schema, disposed on teardown."""
    db = Database(settings.database_url)
    db.drop_all()
    db.create_all()

    yield db

    try:
        db.drop_all()
    finally:
        db.dispose()


@pytest.fixture()
def repo(database) -> SQLRepository:
    return SQLRepository(database)


@pytest.fixture()
def page_service(repo) -> PageService:
    return PageService(repo)


@pytest.fixture()
def alice(repo):
    return repo.create_user("Alice", "alice@example.com", password_hash="hash")


@pytest.fixture()
def bob(repo):
    return repo.create_user("Bob", "bob@example.com", password_hash="hash")


def identity_for(user) -> RequesterIdentity:
    return RequesterIdentity(user_id=user.id, email=user.email)


def auth_headers(settings: Settings, user) -> dict:
    token = issue_session(settings, user_id=user.id, email=user.email)
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture()
def app(settings, database):
    return create_app(settings, database)


@pytest.fixture()
def client(app):
    with TestClient(app) as test_client:
        yield test_client
