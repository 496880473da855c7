from __future__ import annotations

import json
import logging
import uuid
from collections.abc import Generator

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from outbound.core.config import get_settings
from outbound.core.database import Base, get_db
from outbound.logging import JsonLogFormatter
from outbound.main import app
from outbound.middleware.correlation_id import resolve_correlation_id
from outbound.platform.audit.recorder import AuditEntry, AuditRecorder
from outbound.platform.security.context import TeamRole
from outbound.platform.security.errors import CapabilityDeniedError
from outbound.platform.security.guard import Capability, role_guard
from outbound.platform.security.tokens import create_access_token
from outbound.platform.settings.cache import SettingsCache, get_settings_cache, make_settings_loader


class RecordingWriter:
    def __init__(self) -> None:
        self.entries: list[AuditEntry] = []

    def write(self, entry: AuditEntry) -> None:
        self.entries.append(entry)


@pytest.fixture()
def session_factory() -> Generator[sessionmaker[Session], None, None]:
    engine = create_engine(
        "sqlite+pysqlite:///:memory:",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    TestingSessionLocal = sessionmaker(bind=engine, autocommit=False, autoflush=False)
    Base.metadata.create_all(bind=engine)
    try:
        yield TestingSessionLocal
    finally:
        Base.metadata.drop_all(bind=engine)


@pytest.fixture()
def db_session(session_factory: sessionmaker[Session]) -> Generator[Session, None, None]:
    session = session_factory()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture(autouse=True)
def setup_env() -> Generator[None, None, None]:
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


@pytest.fixture()
def audit_writer() -> RecordingWriter:
    return RecordingWriter()


@pytest.fixture()
def client(
    db_session: Session,
    session_factory: sessionmaker[Session],
    audit_writer: RecordingWriter,
) -> Generator[TestClient, None, None]:
    def override_get_db() -> Generator[Session, None, None]:
        yield db_session

    settings_cache = SettingsCache(make_settings_loader(session_factory))
    original_recorder = app.state.audit_recorder
    app.state.audit_recorder = AuditRecorder(audit_writer)
    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_settings_cache] = lambda: settings_cache
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()
    app.state.audit_recorder = original_recorder


@pytest.fixture()
def owner_id() -> uuid.UUID:
    return uuid.uuid4()


def _headers(user_id: uuid.UUID, role: str = "ORG_SMALL") -> dict[str, str]:
    token = create_access_token(user_id=user_id, role=role, secret=get_settings().jwt_secret)
    return {"Authorization": f"Bearer {token}"}


def test_health(client: TestClient) -> None:
    response = client.get("/health")

    assert response.status_code == 200
    assert response.json()["status"] == "ok"
    assert response.json()["service"] == "Outbound Impact API"


def test_generated_correlation_id_returned_in_header_and_error_envelope(client: TestClient) -> None:
    response = client.get(f"/api/cohorts/{uuid.uuid4()}", headers=_headers(uuid.uuid4()))

    assert response.status_code == 404
    header_value = response.headers.get("x-correlation-id")
    assert header_value
    assert response.json()["correlation_id"] == header_value


def test_correlation_id_respected_when_provided(client: TestClient) -> None:
    response = client.get(
        f"/api/cohorts/{uuid.uuid4()}",
        headers={**_headers(uuid.uuid4()), "X-Correlation-Id": "abc-123"},
    )

    assert response.headers.get("x-correlation-id") == "abc-123"
    assert response.json()["correlation_id"] == "abc-123"


def test_unsafe_correlation_id_is_replaced() -> None:
    assert resolve_correlation_id("trace:1.2_3") == "trace:1.2_3"
    replaced = resolve_correlation_id("bad id\nwith newline")
    assert replaced != "bad id\nwith newline"
    assert uuid.UUID(replaced)
    assert resolve_correlation_id("x" * 129) != "x" * 129


def test_unknown_route_uses_error_envelope(client: TestClient) -> None:
    response = client.get("/api/does-not-exist", headers={"X-Correlation-Id": "corr-404"})

    assert response.status_code == 404
    assert response.json() == {
        "code": "NOT_FOUND",
        "message": "Not Found",
        "details": None,
        "correlation_id": "corr-404",
    }


def test_request_log_carries_route_and_caller(client: TestClient, caplog: pytest.LogCaptureFixture) -> None:
    caplog.set_level(logging.INFO)
    user_id = uuid.uuid4()

    response = client.get(
        f"/api/cohorts/{uuid.uuid4()}",
        headers={**_headers(user_id), "X-Correlation-Id": "abc-123"},
    )
    assert response.status_code == 404

    records = [
        record
        for record in caplog.records
        if record.name == "outbound.request" and record.getMessage() == "http.request"
    ]
    assert any(
        getattr(record, "correlation_id", None) == "abc-123"
        and getattr(record, "method", None) == "GET"
        and getattr(record, "path", None) == "/api/cohorts/{id}"
        and getattr(record, "status_code", None) == 404
        and getattr(record, "user_id", None) == str(user_id)
        and isinstance(getattr(record, "duration_ms", None), float)
        for record in records
    )


def test_capability_denial_is_logged(client: TestClient, caplog: pytest.LogCaptureFixture) -> None:
    caplog.set_level(logging.INFO)

    with pytest.raises(CapabilityDeniedError):
        role_guard.enforce(TeamRole.VIEWER, Capability.DELETE_ITEM)

    assert any(
        record.name == "outbound.security"
        and record.getMessage() == "guard.denied"
        and getattr(record, "capability", None) == "delete_item"
        and getattr(record, "team_role", None) == "VIEWER"
        for record in caplog.records
    )


def test_json_formatter_keeps_known_fields_only() -> None:
    record = logging.makeLogRecord(
        {
            "name": "outbound.request",
            "levelname": "INFO",
            "msg": "http.request",
            "method": "POST",
            "status_code": 201,
            "password": "secret",
            "correlation_id": "corr-json",
        }
    )

    payload = json.loads(JsonLogFormatter().format(record))

    assert payload["msg"] == "http.request"
    assert payload["correlation_id"] == "corr-json"
    assert payload["fields"] == {"method": "POST", "status_code": 201}


def test_me_for_platform_admin(client: TestClient) -> None:
    admin_id = uuid.uuid4()

    response = client.get("/api/me", headers=_headers(admin_id, "ADMIN"))

    assert response.status_code == 200
    body = response.json()
    assert body["userId"] == str(admin_id)
    assert body["effectiveUserId"] == str(admin_id)
    assert body["isTeamMember"] is False
    assert body["teamRole"] is None
    assert all(body["permissions"].values())


def test_metrics_disabled_by_default(client: TestClient) -> None:
    response = client.get("/metrics", headers=_headers(uuid.uuid4(), "ADMIN"))

    assert response.status_code == 404


def test_metrics_endpoint_exposes_request_and_guard_metrics(
    client: TestClient,
    monkeypatch: pytest.MonkeyPatch,
) -> None:
    monkeypatch.setenv("METRICS_ENABLED", "true")
    get_settings.cache_clear()

    assert client.get("/health").status_code == 200
    assert client.get("/api/cohorts").status_code == 401

    forbidden = client.get("/metrics", headers=_headers(uuid.uuid4(), "CUSTOMER_SUPPORT"))
    assert forbidden.status_code == 403

    metrics = client.get("/metrics", headers=_headers(uuid.uuid4(), "ADMIN"))
    assert metrics.status_code == 200
    body = metrics.text

    assert "http_requests_total" in body
    assert "http_request_duration_seconds" in body
    assert "auth_gate_rejections_total" in body
    assert "settings_cache_miss_total" in body
    assert 'path="/health"' in body
    assert 'code="UNAUTHENTICATED"' in body
