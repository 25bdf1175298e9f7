"""
Tests for application startup: settings from the environment, the
database on the configured URL, and the command line entry point.
"""

import os

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import inspect

from main import app, main as run_main
from metro_adapter.config import configure, get_settings
from metro_adapter.database import get_engine


@pytest.fixture(autouse=True)
def isolated_environment(monkeypatch, tmp_path):
    """Run from an empty directory against in-memory SQLite, restoring settings after."""
    previous = get_settings()
    monkeypatch.chdir(tmp_path)
    monkeypatch.setenv("DATABASE_URL", "sqlite://")
    monkeypatch.setenv("STARTUP_LOGS", "false")
    yield
    configure(previous)


def bot_payload() -> dict:
    return {
        "bot_id": "B1",
        "reviewer": "R1",
        "can_add": True,
        "username": "TestBot",
        "website": "https://x.example",
        "support": "https://y.example",
        "donate": "https://z.example",
    }


def test_secret_key_from_environment(monkeypatch):
    """Test the app accepts the SECRET_KEY set in the environment."""
    monkeypatch.setenv("SECRET_KEY", "env-secret")
    monkeypatch.setenv("LIST_ID", "env-list")

    with TestClient(app) as client:
        assert get_settings().listing.SECRET_KEY == "env-secret"

        response = client.post("/approve", json=bot_payload(), headers={"Authorization": "env-secret"})
        assert response.status_code == 200
        assert response.json()["created"] is True

        rejected = client.post("/deny", json=bot_payload(), headers={"Authorization": "other"})
        assert rejected.status_code == 401

        assert client.get("/list-config").json()["list_id"] == "env-list"


def test_secret_key_from_dotenv_file(monkeypatch, tmp_path):
    """Test a .env file in the working directory is loaded on startup."""
    # Make sure the variable is absent before startup and removed afterwards
    monkeypatch.setenv("SECRET_KEY", "placeholder")
    monkeypatch.delenv("SECRET_KEY")
    (tmp_path / ".env").write_text("SECRET_KEY=dotenv-secret\n")

    with TestClient(app) as client:
        response = client.post("/claim", json=bot_payload(), headers={"Authorization": "dotenv-secret"})
        assert response.status_code == 200


def test_environment_beats_dotenv_file(monkeypatch, tmp_path):
    """Test variables already in the environment win over .env."""
    monkeypatch.setenv("SECRET_KEY", "env-secret")
    (tmp_path / ".env").write_text("SECRET_KEY=dotenv-secret\n")

    with TestClient(app):
        assert get_settings().listing.SECRET_KEY == "env-secret"


def test_startup_creates_bots_table(monkeypatch):
    """Test startup binds the configured database and creates the bots table."""
    monkeypatch.setenv("SECRET_KEY", "env-secret")

    with TestClient(app):
        engine = get_engine()
        assert str(engine.url) == "sqlite://"
        assert "bots" in inspect(engine).get_table_names()


def test_cli_passes_database_url(monkeypatch):
    """Test --db reaches the environment read at startup and uvicorn is started."""
    calls = []
    monkeypatch.delenv("HOST", raising=False)
    monkeypatch.setattr("uvicorn.run", lambda app, host, port: calls.append((host, port)))

    run_main(["--db", "sqlite:///adapter.db", "--port", "7000"])

    assert os.environ["DATABASE_URL"] == "sqlite:///adapter.db"
    assert calls == [("0.0.0.0", 7000)]
