import os
import tempfile

_TMP = tempfile.mkdtemp(prefix="otpvault-test-")

# Must be set before otpvault.core.config is imported.
os.environ.setdefault("DATABASE_URL", f"sqlite:///{_TMP}/otpvault.sqlite")
os.environ.setdefault("BLOB_ROOT", os.path.join(_TMP, "blobs"))
os.environ.setdefault("JWT_SECRET", "test-secret")
os.environ.setdefault("OTP_DELIVERY", "log")
os.environ.setdefault("CLEANUP_INTERVAL_SECONDS", "0")
os.environ.setdefault("ARGON2_TIME_COST", "1")
os.environ.setdefault("ARGON2_MEMORY_COST", "8192")
os.environ.setdefault("ARGON2_PARALLELISM", "1")

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from otpvault import models  # noqa: F401
from otpvault.api.deps import get_blob_store, get_notifier
from otpvault.db.base import Base
from otpvault.db.session import get_db
from otpvault.main import app
from otpvault.security.rate_limit import get_rate_limiter
from otpvault.storage.blobs import LocalBlobStore


class RecordingNotifier:
    def __init__(self):
        self.sent = []

    def send(self, message):
        self.sent.append(message)

    def last_code(self, email):
        for m in reversed(self.sent):
            if m.email == email:
                return m.code
        raise AssertionError(f"no code sent to {email}")


@pytest.fixture
def session_factory():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)
    factory = sessionmaker(autocommit=False, autoflush=False, bind=engine)
    yield factory
    Base.metadata.drop_all(bind=engine)
    engine.dispose()


@pytest.fixture
def db(session_factory):
    session = session_factory()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def blobs(tmp_path):
    return LocalBlobStore(tmp_path / "blobs")


@pytest.fixture
def notifier():
    return RecordingNotifier()


@pytest.fixture(autouse=True)
def _reset_rate_limiter():
    get_rate_limiter().reset()
    yield
    get_rate_limiter().reset()


@pytest.fixture
def client(session_factory, blobs, notifier):
    def _get_db():
        session = session_factory()
        try:
            yield session
        finally:
            session.close()

    app.dependency_overrides[get_db] = _get_db
    app.dependency_overrides[get_blob_store] = lambda: blobs
    app.dependency_overrides[get_notifier] = lambda: notifier
    try:
        yield TestClient(app)
    finally:
        app.dependency_overrides.clear()


@pytest.fixture
def login(client, notifier):
    """Run the OTP handshake over HTTP and return bearer headers."""

    def _login(email="a@x.com"):
        r = client.post("/auth/otp/request", json={"email": email})
        assert r.status_code == 202, r.text
        r = client.post("/auth/otp/verify", json={"email": email, "code": notifier.last_code(email)})
        assert r.status_code == 200, r.text
        return {"Authorization": f"Bearer {r.json()['access_token']}"}

    return _login
