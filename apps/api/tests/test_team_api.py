from __future__ import annotations

import uuid
from collections.abc import Generator

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine, select
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from outbound.accounts.models import User
from outbound.content.models import Item
from outbound.core.config import get_settings
from outbound.core.database import Base, get_db
from outbound.main import app
from outbound.platform.audit.recorder import AuditEntry, AuditRecorder
from outbound.platform.security.tokens import create_access_token
from outbound.platform.settings.cache import SettingsCache, get_settings_cache, make_settings_loader
from outbound.team.models import OrganizationMember, TeamMember


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
def owner_id(db_session: Session) -> uuid.UUID:
    owner = User(email="owner@example.com", name="Owner", role="ORG_SMALL")
    db_session.add(owner)
    db_session.commit()
    return owner.id


def _headers(user_id: uuid.UUID, role: str = "ORG_SMALL", email: str | None = None) -> dict[str, str]:
    token = create_access_token(user_id=user_id, role=role, secret=get_settings().jwt_secret, email=email)
    return {"Authorization": f"Bearer {token}"}


def _invite(client: TestClient, owner_id: uuid.UUID, email: str, role: str = "EDITOR") -> dict:
    response = client.post("/api/team/invite", json={"email": email, "role": role}, headers=_headers(owner_id))
    assert response.status_code == 201
    return response.json()


def _join(client: TestClient, owner_id: uuid.UUID, email: str, role: str = "EDITOR") -> tuple[uuid.UUID, dict]:
    invitation = _invite(client, owner_id, email, role)
    member_user_id = uuid.uuid4()
    accepted = client.post(
        f"/api/team/invitations/{invitation['id']}/accept",
        headers=_headers(member_user_id, "INDIVIDUAL", email=email),
    )
    assert accepted.status_code == 200
    return member_user_id, accepted.json()


def test_team_features_require_organization_plan(client: TestClient) -> None:
    response = client.get("/api/team/members", headers=_headers(uuid.uuid4(), "INDIVIDUAL"))

    assert response.status_code == 403
    assert response.json()["message"] == "Team features are only available on organization plans"


def test_invite_normalizes_email_and_rejects_duplicates(client: TestClient, owner_id: uuid.UUID) -> None:
    invitation = _invite(client, owner_id, "New.Person@Example.com")
    assert invitation["email"] == "new.person@example.com"
    assert invitation["status"] == "PENDING"
    assert invitation["role"] == "EDITOR"

    duplicate = client.post(
        "/api/team/invite",
        json={"email": "new.person@example.com"},
        headers=_headers(owner_id),
    )
    assert duplicate.status_code == 409
    assert duplicate.json()["code"] == "CONFLICT"


def test_owner_cannot_invite_themselves(client: TestClient, owner_id: uuid.UUID) -> None:
    response = client.post("/api/team/invite", json={"email": "OWNER@example.com"}, headers=_headers(owner_id))

    assert response.status_code == 400


def test_accepted_member_acts_on_owner_account(client: TestClient, owner_id: uuid.UUID) -> None:
    member_user_id, accepted = _join(client, owner_id, "editor@example.com")
    assert accepted["status"] == "ACCEPTED"
    assert accepted["memberUserId"] == str(member_user_id)

    me = client.get("/api/me", headers=_headers(member_user_id, "INDIVIDUAL"))
    assert me.status_code == 200
    body = me.json()
    assert body["userId"] == str(member_user_id)
    assert body["effectiveUserId"] == str(owner_id)
    assert body["isTeamMember"] is True
    assert body["teamRole"] == "EDITOR"
    assert body["orgScope"] == []
    assert body["permissions"]["manage_settings"] is False

    members = client.get("/api/team/members", headers=_headers(member_user_id, "INDIVIDUAL"))
    assert members.status_code == 200
    assert [row["email"] for row in members.json()] == ["editor@example.com"]


def test_invitation_for_someone_else_cannot_be_accepted(client: TestClient, owner_id: uuid.UUID) -> None:
    invitation = _invite(client, owner_id, "invitee@example.com")

    response = client.post(
        f"/api/team/invitations/{invitation['id']}/accept",
        headers=_headers(uuid.uuid4(), "INDIVIDUAL", email="intruder@example.com"),
    )

    assert response.status_code == 404


def test_editor_cannot_manage_team(client: TestClient, owner_id: uuid.UUID) -> None:
    member_user_id, _ = _join(client, owner_id, "editor@example.com")

    response = client.post(
        "/api/team/invite",
        json={"email": "friend@example.com"},
        headers=_headers(member_user_id, "INDIVIDUAL"),
    )

    assert response.status_code == 403
    assert response.json()["message"] == "EDITOR role does not have permission to invite team members (requires ADMIN role)"


def test_change_role_and_remove_member(client: TestClient, db_session: Session, owner_id: uuid.UUID) -> None:
    member_user_id, membership = _join(client, owner_id, "editor@example.com")

    changed = client.put(
        f"/api/team/members/{membership['id']}",
        json={"role": "VIEWER"},
        headers=_headers(owner_id),
    )
    assert changed.status_code == 200
    assert changed.json()["role"] == "VIEWER"

    me = client.get("/api/me", headers=_headers(member_user_id, "INDIVIDUAL"))
    assert me.json()["teamRole"] == "VIEWER"

    removed = client.delete(f"/api/team/members/{membership['id']}", headers=_headers(owner_id))
    assert removed.status_code == 204
    assert db_session.scalar(select(TeamMember.id)) is None

    me = client.get("/api/me", headers=_headers(member_user_id, "INDIVIDUAL"))
    assert me.json()["effectiveUserId"] == str(member_user_id)


def test_team_admin_cannot_change_own_role(client: TestClient, owner_id: uuid.UUID) -> None:
    admin_user_id, membership = _join(client, owner_id, "admin@example.com", "ADMIN")

    response = client.put(
        f"/api/team/members/{membership['id']}",
        json={"role": "VIEWER"},
        headers=_headers(admin_user_id, "INDIVIDUAL"),
    )

    assert response.status_code == 400


def test_organization_lifecycle(client: TestClient, db_session: Session, owner_id: uuid.UUID) -> None:
    member_user_id, membership = _join(client, owner_id, "editor@example.com")
    pending = _invite(client, owner_id, "pending@example.com")

    created = client.post(
        "/api/organizations",
        json={"name": "North Chapter", "description": "Regional"},
        headers=_headers(owner_id),
    )
    assert created.status_code == 201
    organization = created.json()
    assert organization["memberCount"] == 0

    assigned = client.post(
        f"/api/organizations/{organization['id']}/members",
        json={"teamMemberIds": [membership["id"], pending["id"], membership["id"]]},
        headers=_headers(owner_id),
    )
    assert assigned.status_code == 200
    assert assigned.json() == {"assigned": 1, "skipped": 1}

    listed = client.get("/api/organizations", headers=_headers(owner_id))
    assert [row["memberCount"] for row in listed.json()] == [1]

    me = client.get("/api/me", headers=_headers(member_user_id, "INDIVIDUAL"))
    assert me.json()["orgScope"] == [organization["id"]]
    assert me.json()["orgNames"] == ["North Chapter"]

    item = client.post("/api/items", json={"title": "Update", "type": "TEXT"}, headers=_headers(owner_id)).json()
    content = client.post(
        f"/api/organizations/{organization['id']}/content",
        json={"kind": "items", "ids": [item["id"]]},
        headers=_headers(owner_id),
    )
    assert content.status_code == 200
    assert content.json() == {"updated": 1}

    fetched = client.get(f"/api/items/{item['id']}", headers=_headers(owner_id))
    assert fetched.json()["organizationId"] == organization["id"]

    deleted = client.delete(f"/api/organizations/{organization['id']}", headers=_headers(owner_id))
    assert deleted.status_code == 204

    db_session.expire_all()
    assert db_session.get(Item, uuid.UUID(item["id"])).organization_id is None
    assert db_session.scalar(select(OrganizationMember.id)) is None


def test_remove_content_from_organization(client: TestClient, owner_id: uuid.UUID) -> None:
    organization = client.post("/api/organizations", json={"name": "South"}, headers=_headers(owner_id)).json()
    item = client.post(
        "/api/items",
        json={"title": "Filed", "type": "TEXT", "organizationId": organization["id"]},
        headers=_headers(owner_id),
    ).json()
    assert item["organizationId"] == organization["id"]

    removed = client.post(
        f"/api/organizations/{organization['id']}/content/remove",
        json={"kind": "items", "ids": [item["id"]]},
        headers=_headers(owner_id),
    )

    assert removed.json() == {"updated": 1}
    fetched = client.get(f"/api/items/{item['id']}", headers=_headers(owner_id))
    assert fetched.json()["organizationId"] is None


def test_scoped_member_sees_only_assigned_organizations(client: TestClient, owner_id: uuid.UUID) -> None:
    member_user_id, membership = _join(client, owner_id, "admin@example.com", "ADMIN")
    north = client.post("/api/organizations", json={"name": "North"}, headers=_headers(owner_id)).json()
    south = client.post("/api/organizations", json={"name": "South"}, headers=_headers(owner_id)).json()
    client.post(
        f"/api/organizations/{north['id']}/members",
        json={"teamMemberIds": [membership["id"]]},
        headers=_headers(owner_id),
    )

    listed = client.get("/api/organizations", headers=_headers(member_user_id, "INDIVIDUAL"))
    assert [row["name"] for row in listed.json()] == ["North"]

    response = client.put(
        f"/api/organizations/{south['id']}",
        json={"name": "Renamed"},
        headers=_headers(member_user_id, "INDIVIDUAL"),
    )
    assert response.status_code == 404


def test_content_cannot_target_foreign_organization(client: TestClient, owner_id: uuid.UUID) -> None:
    foreign = client.post("/api/organizations", json={"name": "Elsewhere"}, headers=_headers(uuid.uuid4())).json()
    item = client.post("/api/items", json={"title": "Mine", "type": "TEXT"}, headers=_headers(owner_id)).json()

    response = client.post(
        f"/api/organizations/{foreign['id']}/content",
        json={"kind": "items", "ids": [item["id"]]},
        headers=_headers(owner_id),
    )

    assert response.status_code == 404
