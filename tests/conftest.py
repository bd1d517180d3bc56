import os
import tempfile

# Point the app at a throwaway database before any app module reads settings
_db_fd, _db_path = tempfile.mkstemp(suffix=".db")
os.environ["DATABASE_URL"] = f"sqlite:///{_db_path}"
os.environ.setdefault("DEBUG", "False")

import pytest
from fastapi.testclient import TestClient

from app.api.deps import get_db
from app.core.database import Base, SessionLocal, engine
from app.models.chat_message import ChatMessage
from app.models.game import Game
from app.models.move import Move
from app.models.player import Player
from app.services.session_directory import session_directory
from main import app


@pytest.fixture(scope="session")
def test_db():
    Base.metadata.create_all(bind=engine)
    yield SessionLocal
    engine.dispose()
    os.close(_db_fd)
    os.unlink(_db_path)


@pytest.fixture
def db_session(test_db):
    session = test_db()
    try:
        yield session
    finally:
        session.rollback()
        session.close()


@pytest.fixture(autouse=True)
def db_cleanup(db_session):
    for model in [ChatMessage, Move, Game, Player]:
        db_session.query(model).delete()
    db_session.commit()
    session_directory.clear()
    yield
    session_directory.clear()


@pytest.fixture
def client(db_session):
    def override_get_db():
        try:
            yield db_session
        finally:
            pass

    app.dependency_overrides[get_db] = override_get_db
    with TestClient(app) as c:
        yield c
    app.dependency_overrides.clear()


@pytest.fixture
def other_session(test_db):
    """A second session on the same database, as another worker would hold."""
    session = test_db()
    try:
        yield session
    finally:
        session.rollback()
        session.close()


@pytest.fixture
def isolated_client(test_db):
    """Client on the real get_db: every request and socket opens its own session."""
    app.dependency_overrides.clear()
    with TestClient(app) as c:
        yield c


@pytest.fixture
def make_player(db_session):
    def _make(username, rating=None):
        player = Player(username=username)
        if rating is not None:
            player.rating = rating
        db_session.add(player)
        db_session.commit()
        db_session.refresh(player)
        return player
    return _make
