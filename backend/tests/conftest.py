import base64
import os
import uuid
from datetime import datetime, timedelta, timezone

# Must be set before app modules read settings at import time.
os.environ.setdefault("ENVIRONMENT", "test")
os.environ.setdefault("SUPABASE_JWT_SECRET", "test-jwt-secret-0123456789abcdef0123456789")
os.environ.setdefault("SUPABASE_JWT_AUDIENCE", "authenticated")
os.environ.setdefault("AI_VISION_PROVIDER", "mock")
os.environ.setdefault("RATE_LIMIT_ANALYZE_PER_MIN", "0")

import jwt
import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from app.core.config import get_settings
from app.utils.rate_limit import rate_limiter

TEST_USER_ID = "00000000-0000-0000-0000-000000000001"
OTHER_USER_ID = "00000000-0000-0000-0000-000000000002"

# PNG signature plus padding; only the data URI envelope is inspected.
PNG_BYTES = b"\x89PNG\r\n\x1a\n" + b"\x00" * 24
PNG_DATA_URI = "data:image/png;base64," + base64.b64encode(PNG_BYTES).decode("ascii")


@pytest.fixture(autouse=True)
def _reset_settings_cache():
    # Tests mutate env vars; never leak a cached Settings or limiter state.
    get_settings.cache_clear()
    rate_limiter.reset()
    yield
    get_settings.cache_clear()
    rate_limiter.reset()


def make_token(
    sub: str | None = TEST_USER_ID,
    *,
    email: str = "tests@example.com",
    secret: str | None = None,
    audience: str = "authenticated",
    expires_in: timedelta = timedelta(hours=1),
) -> str:
    now = datetime.now(timezone.utc)
    payload = {
        "email": email,
        "aud": audience,
        "iat": int(now.timestamp()),
        "exp": int((now + expires_in).timestamp()),
    }
    if sub is not None:
        payload["sub"] = sub
    token = jwt.encode(payload, secret or os.environ["SUPABASE_JWT_SECRET"], algorithm="HS256")
    if isinstance(token, bytes):
        token = token.decode("utf-8")
    return token


def auth_header(sub: str | None = TEST_USER_ID, **kwargs) -> dict:
    return {"Authorization": f"Bearer {make_token(sub, **kwargs)}"}


def make_session_factory():
    """In-memory SQLite shared across threads, schema created."""
    from app.models.analysis import Base

    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(engine)
    return engine, sessionmaker(bind=engine)


@pytest.fixture
def session_factory():
    from app.models.analysis import Base

    engine, factory = make_session_factory()
    yield factory
    Base.metadata.drop_all(engine)
    engine.dispose()


@pytest.fixture
def db(session_factory):
    session = session_factory()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def api_client(session_factory):
    from app.core.dependencies import get_db
    from app.main import app

    def override_get_db():
        session = session_factory()
        try:
            yield session
        finally:
            session.close()

    app.dependency_overrides[get_db] = override_get_db
    client = TestClient(app)
    yield client
    client.close()
    app.dependency_overrides.clear()


def random_user_id() -> str:
    return str(uuid.uuid4())
