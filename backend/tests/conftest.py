"""Pytest fixtures: SQLite database, temp upload dir and a recording notification channel."""
import os

os.environ.setdefault("DATABASE_URL", "sqlite:///./test.db")

import pytest                                   # noqa: E402
from sqlalchemy import create_engine, event     # noqa: E402
from sqlalchemy.orm import sessionmaker         # noqa: E402
from fastapi.testclient import TestClient       # noqa: E402

from laundromat.config import settings          # noqa: E402
from laundromat.database import Base, get_db    # noqa: E402
from laundromat.main import app                 # noqa: E402
from laundromat.services.notifications import (  # noqa: E402
    ChannelError,
    Delivery,
    NotificationChannel,
    get_channel,
)

# Import all models so they register with Base.metadata
from laundromat.models.laundry_request import LaundryRequest      # noqa: F401,E402
from laundromat.models.status_transition import StatusTransition  # noqa: F401,E402
from laundromat.models.profile import Profile                     # noqa: F401,E402
from laundromat.models.saved_photo import SavedPhoto              # noqa: F401,E402

SQLITE_URL = "sqlite:///./test.db"


class RecordingChannel(NotificationChannel):
    """In-memory channel: remembers every message, can be made to fail."""

    name = "recording"

    def __init__(self):
        self.sent: list[tuple[str, str]] = []
        self.ready = True
        self.fail = False

    def is_ready(self) -> bool:
        return self.ready

    def send(self, destination: str, message: str) -> Delivery:
        if self.fail:
            raise ChannelError("gateway unavailable")
        self.sent.append((destination, message))
        return Delivery(message_id=f"msg-{len(self.sent)}", destination=destination)


@pytest.fixture(autouse=True)
def upload_dir(tmp_path, monkeypatch):
    """Point photo storage at a per-test temporary directory."""
    path = tmp_path / "uploads"
    monkeypatch.setattr(settings, "UPLOAD_DIR", str(path))
    return path


@pytest.fixture(scope="function")
def db_engine():
    """Create a fresh SQLite engine for each test."""
    engine = create_engine(SQLITE_URL, connect_args={"check_same_thread": False})

    # Enable WAL mode for better concurrency
    @event.listens_for(engine, "connect")
    def _set_sqlite_pragma(dbapi_conn, connection_record):
        cursor = dbapi_conn.cursor()
        cursor.execute("PRAGMA journal_mode=WAL")
        cursor.close()

    Base.metadata.create_all(bind=engine)
    yield engine
    Base.metadata.drop_all(bind=engine)
    engine.dispose()


@pytest.fixture(scope="function")
def db(db_engine):
    """Yield a database session bound to the test engine."""
    TestingSession = sessionmaker(autocommit=False, autoflush=False, bind=db_engine)
    session = TestingSession()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture(scope="function")
def channel():
    return RecordingChannel()


@pytest.fixture(scope="function")
def client(db_engine, channel):
    """FastAPI TestClient with the database and notification channel overridden."""
    TestingSession = sessionmaker(autocommit=False, autoflush=False, bind=db_engine)

    def _override_get_db():
        session = TestingSession()
        try:
            yield session
        finally:
            session.close()

    app.dependency_overrides[get_db] = _override_get_db
    app.dependency_overrides[get_channel] = lambda: channel
    with TestClient(app) as c:
        yield c
    app.dependency_overrides.clear()


# ---------------------------------------------------------------------------
# Helpers: drive the API and return response JSON
# ---------------------------------------------------------------------------
def image_file(name: str = "shirt.jpg", content: bytes = b"\xff\xd8\xff\xe0fakejpeg", content_type: str = "image/jpeg"):
    """A ``files=`` entry for the ``photos`` multipart field."""
    return ("photos", (name, content, content_type))


def submit_laundry(client: TestClient, clothes_count: int = 5, files=None, **overrides):
    """POST /api/laundry and return the raw response."""
    data = {
        "name": "Thabo",
        "surname": "Mokoena",
        "contact": "0821234567",
        "commune": "Commune A",
        "room": "12B",
        "clothes_count": str(clothes_count),
    }
    data.update({k: str(v) for k, v in overrides.items()})
    return client.post("/api/laundry/", data=data, files=files or None)


def create_test_request(client: TestClient, clothes_count: int = 5, **overrides) -> dict:
    """Helper: direct submission, asserts 201."""
    resp = submit_laundry(client, clothes_count=clothes_count, **overrides)
    assert resp.status_code == 201, resp.text
    return resp.json()


def create_test_profile(client: TestClient, student_id: str = "S1001", **overrides) -> dict:
    """Helper: POST /api/profile and return the saved profile."""
    payload = {
        "student_id": student_id,
        "name": "Lerato",
        "surname": "Dlamini",
        "contact": "0829876543",
        "commune": "Commune B",
        "room": "7",
    }
    payload.update(overrides)
    resp = client.post("/api/profile/", json=payload)
    assert resp.status_code == 200, resp.text
    return resp.json()["profile"]


def set_status(client: TestClient, request_id: int, status: str, actor: str = "staff"):
    """PUT /api/laundry/{id} and return the raw response."""
    return client.put(f"/api/laundry/{request_id}", json={"status": status, "actor": actor})


def collect(client: TestClient, request_id: int, name: str = "A B", contact: str = "0820000000", signature: str = "A B"):
    """POST /api/laundry/collect and return the raw response."""
    return client.post("/api/laundry/collect", json={
        "laundry_id": request_id,
        "name": name,
        "contact": contact,
        "signature": signature,
    })
