"""
Shared fixtures for the test suite.

Every test runs against a fresh in-memory SQLite database; the app's
``get_db`` and ``get_settings`` dependencies are overridden so no file
database or real upload directory is touched.
"""

from __future__ import annotations

import os

os.environ.setdefault("BCRYPT_ROUNDS", "4")
os.environ.setdefault("DATABASE_URL", "sqlite://")

from typing import Any, Callable  # noqa: E402

import pytest  # noqa: E402
from fastapi.testclient import TestClient  # noqa: E402
from sqlalchemy import create_engine  # noqa: E402
from sqlalchemy.orm import Session, sessionmaker  # noqa: E402
from sqlalchemy.pool import StaticPool  # noqa: E402

from config import Settings, get_settings  # noqa: E402
from database import get_db, init_db  # noqa: E402
from main import app  # noqa: E402
from models.database_models import Base, Song, User  # noqa: E402
from models.schemas import UserCreate  # noqa: E402
from services.auth_service import AuthService, create_access_token  # noqa: E402
from services.game_catalog import seed_game_catalog  # noqa: E402

# ---------------------------------------------------------------------------
# Database and settings
# ---------------------------------------------------------------------------


@pytest.fixture()
def db_session() -> Session:
    """A session bound to a private in-memory database."""
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    init_db(bind=engine)
    session = sessionmaker(autocommit=False, autoflush=False, bind=engine)()
    yield session
    session.close()
    Base.metadata.drop_all(bind=engine)
    engine.dispose()


@pytest.fixture()
def settings(tmp_path) -> Settings:
    return Settings(UPLOAD_PATH=str(tmp_path / "uploads"), BCRYPT_ROUNDS=4)


# ---------------------------------------------------------------------------
# FastAPI test client fixture
# ---------------------------------------------------------------------------


@pytest.fixture()
def client(db_session: Session, settings: Settings) -> TestClient:
    """``TestClient`` whose requests share the test's session and settings."""

    def _override_db():
        yield db_session

    app.dependency_overrides[get_db] = _override_db
    app.dependency_overrides[get_settings] = lambda: settings
    yield TestClient(app)
    app.dependency_overrides.clear()


# ---------------------------------------------------------------------------
# Factories
# ---------------------------------------------------------------------------


@pytest.fixture()
def make_user(db_session: Session) -> Callable[..., User]:
    counter = {"n": 0}

    def _make(**overrides: Any) -> User:
        counter["n"] += 1
        n = counter["n"]
        data = {
            "email": f"listener{n}@example.com",
            "username": f"listener{n}",
            "name": f"Listener {n}",
            "password": "secret123",
        }
        data.update(overrides)
        return AuthService(db_session).register(UserCreate(**data))

    return _make


@pytest.fixture()
def user(make_user) -> User:
    return make_user()


@pytest.fixture()
def auth_headers(settings: Settings) -> Callable[[User], dict]:
    def _headers(for_user: User) -> dict:
        return {"Authorization": f"Bearer {create_access_token(for_user.id, settings)}"}

    return _headers


@pytest.fixture()
def headers(user: User, auth_headers) -> dict:
    return auth_headers(user)


@pytest.fixture()
def make_song(db_session: Session) -> Callable[..., Song]:
    def _make(owner: User, mood_tags=("happy",), **overrides: Any) -> Song:
        fields = {
            "title": "Sunny Side",
            "artist": "The Brights",
            "genre": "pop",
            "language": "en",
            "duration": 180,
            "file_path": "/tmp/none.mp3",
            "uploaded_by": owner.id,
            "is_public": True,
            "tempo": "medium",
            "energy": 5,
            "valence": 5,
            "play_count": 0,
            "likes": 0,
        }
        fields.update(overrides)
        song = Song(**fields)
        song.mood_tags = list(mood_tags)
        db_session.add(song)
        db_session.commit()
        db_session.refresh(song)
        return song

    return _make


@pytest.fixture()
def games(db_session: Session) -> int:
    """Seed the default game catalog; returns the number of games added."""
    return seed_game_catalog(db_session)
