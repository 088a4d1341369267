from __future__ import annotations

import sys
from pathlib import Path
from typing import Any, Generator

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session
from sqlalchemy.pool import StaticPool


ROOT = Path(__file__).resolve().parents[2]

# Ensure `backend/app` is importable as top-level `app` for tests.
BACKEND_DIR = ROOT / "backend"
if str(BACKEND_DIR) not in sys.path:
    sys.path.insert(0, str(BACKEND_DIR))

from app.api.deps import get_db_session  # noqa: E402
from app.core.base import Base  # noqa: E402
from app.core.db import make_session_factory  # noqa: E402
from app.main import app  # noqa: E402
import app.models as _models  # noqa: F401,E402
from app.security.policy import Actor  # noqa: E402
from app.security.rate_limit import LIMITER  # noqa: E402
from app.security.roles import Role  # noqa: E402


TEST_SECRET = "test-secret"


@pytest.fixture(autouse=True)
def _auth_env(monkeypatch: pytest.MonkeyPatch) -> Generator[None, None, None]:
    monkeypatch.setenv("FA_JWT_SECRET", TEST_SECRET)
    monkeypatch.delenv("FA_RATE_LIMIT_PER_HOUR", raising=False)
    LIMITER.reset()
    yield
    LIMITER.reset()


@pytest.fixture()
def engine() -> Generator[Engine, None, None]:
    """Private in-memory database per test, schema built from the ORM metadata."""
    eng = create_engine(
        "sqlite+pysqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
        future=True,
    )
    Base.metadata.create_all(eng)
    yield eng
    eng.dispose()


@pytest.fixture()
def db_session(engine: Engine) -> Generator[Session, None, None]:
    session = make_session_factory(engine)()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture()
def client(engine: Engine) -> Generator[TestClient, None, None]:
    factory = make_session_factory(engine)

    def _session() -> Generator[Session, None, None]:
        s = factory()
        try:
            yield s
        finally:
            s.close()

    app.dependency_overrides[get_db_session] = _session
    try:
        yield TestClient(app, raise_server_exceptions=False)
    finally:
        app.dependency_overrides.pop(get_db_session, None)


def actor(identity: str, role: Role) -> Actor:
    return Actor(identity=identity, role=role)


def make_jwt(sub: str, role: Any, secret: str = TEST_SECRET, *, exp: int | None = None, **claims: Any) -> str:
    """HS256 JWT generator for API tests (no external dependency)."""
    import base64, hashlib, hmac, json, time  # noqa: E401

    def b64url(raw: bytes) -> str:
        return base64.urlsafe_b64encode(raw).decode("ascii").rstrip("=")

    header = {"alg": "HS256", "typ": "JWT"}
    payload: dict[str, Any] = {"sub": sub, "role": role, **claims}
    payload["exp"] = exp if exp is not None else int(time.time()) + 3600

    header_b64 = b64url(json.dumps(header, separators=(",", ":")).encode("utf-8"))
    payload_b64 = b64url(json.dumps(payload, separators=(",", ":")).encode("utf-8"))
    signing_input = f"{header_b64}.{payload_b64}".encode("ascii")
    sig = hmac.new(secret.encode("utf-8"), signing_input, hashlib.sha256).digest()
    return f"{header_b64}.{payload_b64}.{b64url(sig)}"


def auth_header(sub: str, role: Any) -> dict[str, str]:
    return {"Authorization": f"Bearer {make_jwt(sub, role)}"}
