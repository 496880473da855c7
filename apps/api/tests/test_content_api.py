from __future__ import annotations

import uuid
from collections.abc import Generator

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine, select
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from outbound.content.models import Item
from outbound.core.config import get_settings
from outbound.core.database import Base, get_db
from outbound.main import app
from outbound.platform.audit.recorder import AuditEntry, AuditRecorder
from outbound.platform.security.tokens import create_access_token
from outbound.platform.settings.cache import SettingsCache, get_settings_cache, make_settings_loader
from outbound.team.models import Organization, OrganizationMember, TeamMember


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


def _team_member(
    session: Session,
    owner_id: uuid.UUID,
    role: str,
    organizations: list[Organization] | None = None,
) -> uuid.UUID:
    member_user_id = uuid.uuid4()
    membership = TeamMember(
        user_id=owner_id,
        member_user_id=member_user_id,
        email=f"{role.lower()}-{member_user_id.hex[:6]}@example.com",
        role=role,
        status="ACCEPTED",
    )
    session.add(membership)
    session.commit()
    for organization in organizations or []:
        session.add(OrganizationMember(organization_id=organization.id, team_member_id=membership.id))
    session.commit()
    return member_user_id


def _create_campaign(client: TestClient, user_id: uuid.UUID, name: str = "Winter Appeal") -> dict:
    response = client.post(
        "/api/campaigns",
        json={"name": name, "category": "fundraising"},
        headers=_headers(user_id),
    )
    assert response.status_code == 201
    return response.json()


def _create_item(client: TestClient, user_id: uuid.UUID, title: str = "Launch video", **extra: str) -> dict:
    response = client.post(
        "/api/items",
        json={"title": title, "type": "VIDEO", "mediaUrl": "https://cdn.example.com/launch.mp4", **extra},
        headers=_headers(user_id),
    )
    assert response.status_code == 201
    return response.json()


def test_item_crud(client: TestClient, owner_id: uuid.UUID) -> None:
    item = _create_item(client, owner_id)
    assert item["type"] == "VIDEO"
    assert item["mediaUrl"] == "https://cdn.example.com/launch.mp4"

    updated = client.put(f"/api/items/{item['id']}", json={"title": "Launch teaser"}, headers=_headers(owner_id))
    assert updated.status_code == 200
    assert updated.json()["title"] == "Launch teaser"
    assert updated.json()["type"] == "VIDEO"

    deleted = client.delete(f"/api/items/{item['id']}", headers=_headers(owner_id))
    assert deleted.status_code == 204
    assert client.get(f"/api/items/{item['id']}", headers=_headers(owner_id)).status_code == 404


def test_item_type_is_validated(client: TestClient, owner_id: uuid.UUID) -> None:
    response = client.post("/api/items", json={"title": "Bad", "type": "HOLOGRAM"}, headers=_headers(owner_id))

    assert response.status_code == 422
    assert response.json()["code"] == "VALIDATION_ERROR"


def test_missing_token_is_rejected_before_body_validation(client: TestClient) -> None:
    response = client.post("/api/items", json={"type": "HOLOGRAM"})

    assert response.status_code == 401
    assert response.json()["code"] == "UNAUTHENTICATED"


def test_item_cannot_join_another_accounts_campaign(client: TestClient, owner_id: uuid.UUID) -> None:
    foreign = _create_campaign(client, uuid.uuid4())

    response = client.post(
        "/api/items",
        json={"title": "Sneaky", "type": "TEXT", "campaignId": foreign["id"]},
        headers=_headers(owner_id),
    )

    assert response.status_code == 404


def test_assign_item_to_campaign_and_filter(client: TestClient, owner_id: uuid.UUID) -> None:
    campaign = _create_campaign(client, owner_id)
    item = _create_item(client, owner_id)
    _create_item(client, owner_id, "Loose item")

    assigned = client.post(
        "/api/campaigns/assign",
        json={"itemId": item["id"], "campaignId": campaign["id"]},
        headers=_headers(owner_id),
    )
    assert assigned.status_code == 200
    assert assigned.json()["campaignId"] == campaign["id"]

    filtered = client.get(f"/api/items?campaignId={campaign['id']}", headers=_headers(owner_id))
    assert [row["id"] for row in filtered.json()] == [item["id"]]

    public = client.get(f"/api/campaigns/public/{campaign['slug']}")
    assert public.status_code == 200
    assert public.json()["name"] == "Winter Appeal"
    assert [row["title"] for row in public.json()["items"]] == ["Launch video"]


def test_deleting_campaign_detaches_items(client: TestClient, db_session: Session, owner_id: uuid.UUID) -> None:
    campaign = _create_campaign(client, owner_id)
    item = _create_item(client, owner_id, campaignId=campaign["id"])

    deleted = client.delete(f"/api/campaigns/{campaign['id']}", headers=_headers(owner_id))
    assert deleted.status_code == 204

    db_session.expire_all()
    stored = db_session.get(Item, uuid.UUID(item["id"]))
    assert stored is not None
    assert stored.campaign_id is None


def test_unknown_public_campaign_is_not_found(client: TestClient) -> None:
    response = client.get("/api/campaigns/public/missing")

    assert response.status_code == 404
    assert response.json()["message"] == "campaign not found"


def test_editor_edits_but_cannot_delete_campaign(
    client: TestClient,
    db_session: Session,
    owner_id: uuid.UUID,
) -> None:
    campaign = _create_campaign(client, owner_id)
    editor_id = _team_member(db_session, owner_id, "EDITOR")

    updated = client.put(
        f"/api/campaigns/{campaign['id']}",
        json={"description": "Updated by editor"},
        headers=_headers(editor_id, "INDIVIDUAL"),
    )
    assert updated.status_code == 200
    assert updated.json()["description"] == "Updated by editor"

    denied = client.delete(f"/api/campaigns/{campaign['id']}", headers=_headers(editor_id, "INDIVIDUAL"))
    assert denied.status_code == 403
    assert "delete campaigns" in denied.json()["message"]


def test_viewer_reads_owner_content(client: TestClient, db_session: Session, owner_id: uuid.UUID) -> None:
    item = _create_item(client, owner_id)
    viewer_id = _team_member(db_session, owner_id, "VIEWER")

    listed = client.get("/api/items", headers=_headers(viewer_id, "INDIVIDUAL"))
    assert [row["id"] for row in listed.json()] == [item["id"]]

    denied = client.put(
        f"/api/items/{item['id']}",
        json={"title": "Nope"},
        headers=_headers(viewer_id, "INDIVIDUAL"),
    )
    assert denied.status_code == 403
    assert denied.json()["details"] == {"capability": "update_item", "teamRole": "VIEWER", "requiredRole": "EDITOR"}


def test_scoped_editor_items_land_in_first_org(
    client: TestClient,
    db_session: Session,
    owner_id: uuid.UUID,
) -> None:
    organization = Organization(user_id=owner_id, name="Chapter")
    db_session.add(organization)
    db_session.commit()
    editor_id = _team_member(db_session, owner_id, "EDITOR", [organization])

    response = client.post(
        "/api/items",
        json={"title": "Chapter news", "type": "TEXT"},
        headers=_headers(editor_id, "INDIVIDUAL"),
    )

    assert response.status_code == 201
    assert response.json()["organizationId"] == str(organization.id)
    assert response.json()["userId"] == str(owner_id)
    assert db_session.scalar(select(Item.organization_id)) == organization.id
