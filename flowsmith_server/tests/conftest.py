"""Shared fixtures for API tests: a temp database and signed tokens."""

import jwt
import pytest
from fastapi.testclient import TestClient

from flowsmith_server.app import app

TEST_SECRET = "flowsmith-test-secret-at-least-32-bytes-long"


@pytest.fixture(autouse=True)
def auth_env(monkeypatch):
    monkeypatch.setenv("FLOWSMITH_JWT_SECRET", TEST_SECRET)
    monkeypatch.delenv("SUPABASE_JWKS_URL", raising=False)
    monkeypatch.setenv("FLOWSMITH_ADMIN_USERS", "admin-user")


@pytest.fixture
def db_path(tmp_path, monkeypatch):
    path = tmp_path / "flowsmith.db"
    monkeypatch.setenv("FLOW_DB_PATH", str(path))
    return path


@pytest.fixture
def client(db_path):
    # entering the client runs the lifespan, which creates the tables
    with TestClient(app) as test_client:
        yield test_client


@pytest.fixture
def sign_token():
    def _sign(claims: dict) -> str:
        return jwt.encode(claims, TEST_SECRET, algorithm="HS256")

    return _sign


@pytest.fixture
def headers_for(sign_token):
    def _headers(user_id: str) -> dict[str, str]:
        return {"Authorization": f"Bearer {sign_token({'sub': user_id})}"}

    return _headers
