"""
Tests for static permission checks and masked responses
"""

import pytest
import uuid
from fastapi import APIRouter, Depends, FastAPI
from fastapi.testclient import TestClient
from sqlmodel import select
from structlog.testing import capture_logs

from app.core.auth import create_access_token
from app.core.authorizer import Authorizer
from app.core.errors import register_exception_handlers
from app.core.masking import MASKED_EMAIL, MASKED_PHONE, MASKED_VALUE
from app.core.permissions import POLICY, Permission, PolicyTable, Role, get_policy_table
from app.core.rbac_middleware import require_access
from app.core.response_pipeline import PipelineRoute
from app.models.contact import Contact
from app.models.lead import Lead
from app.schemas.token import Principal

ALL_ROLES = [role.value for role in Role]


@pytest.fixture
def authorizer() -> Authorizer:
    return Authorizer(POLICY)


@pytest.fixture
def guarded_client() -> TestClient:
    """One route per permission token, all reachable at /check/{token}"""
    guarded_app = FastAPI()
    register_exception_handlers(guarded_app)

    for permission in Permission:
        def endpoint(principal: Principal = Depends(require_access(permission, "checks"))):
            return {"ok": True}

        guarded_app.add_api_route(f"/check/{permission.value}", endpoint, methods=["GET"])

    return TestClient(guarded_app)


def test_can_static_without_role_is_unauthenticated(authorizer):
    decision = authorizer.can_static(None, Permission.LEADS_VIEW)
    assert not decision.allowed
    assert decision.status_code == 401
    assert decision.code == "AUTH_REQUIRED"


def test_can_static_unknown_role(authorizer):
    decision = authorizer.can_static("Intern", Permission.LEADS_VIEW)
    assert not decision.allowed
    assert decision.status_code == 403
    assert decision.code == "ROLE_INVALID"
    assert decision.reason == "Access Denied: Invalid Role"


def test_can_static_missing_token(authorizer):
    decision = authorizer.can_static("Assistant", Permission.LEADS_MANAGE)
    assert not decision.allowed
    assert decision.code == "PERM_DENIED"
    assert decision.reason == "Access Denied: Insufficient Privileges"


def test_can_static_super_role_bypass():
    table_without_admin = PolicyTable({})
    authorizer = Authorizer(table_without_admin, super_role="Admin")

    assert authorizer.can_static("Admin", "anything:at-all").allowed
    assert not authorizer.can_static("admin", "anything:at-all").allowed


def test_can_static_without_super_role_uses_table():
    authorizer = Authorizer(POLICY, super_role=None)
    assert authorizer.can_static("Admin", Permission.LEADS_ROOT).allowed
    assert not authorizer.can_static("Admin", "leads:unknown").allowed


@pytest.mark.parametrize("role", ALL_ROLES)
@pytest.mark.parametrize("permission", list(Permission))
def test_endpoint_enforces_policy_table(guarded_client, auth_headers, role, permission):
    response = guarded_client.get(f"/check/{permission.value}", headers=auth_headers(role))

    if POLICY.has_permission(role, permission):
        assert response.status_code == 200
    else:
        assert response.status_code == 403
        assert response.json()["code"] == "PERM_DENIED"


def test_endpoint_unknown_role(guarded_client, auth_headers):
    response = guarded_client.get("/check/leads:view", headers=auth_headers("Intern"))
    assert response.status_code == 403
    assert response.json() == {"error": "Access Denied: Invalid Role", "code": "ROLE_INVALID"}


def test_endpoint_token_without_role(guarded_client, auth_headers):
    response = guarded_client.get("/check/leads:view", headers=auth_headers(None))
    assert response.status_code == 401
    assert response.json()["code"] == "AUTH_REQUIRED"


def test_permission_denial_is_audited(guarded_client, auth_headers):
    user_id = str(uuid.uuid4())

    with capture_logs() as cap_logs:
        guarded_client.get(
            "/check/leads:root",
            headers=auth_headers("Assistant", user_id=user_id, email="peter@cnevents.com"),
        )

    denials = [entry for entry in cap_logs if entry["event"] == "permission_denied"]
    assert len(denials) == 1
    assert denials[0]["log_level"] == "warning"
    assert denials[0]["principal_id"] == user_id
    assert denials[0]["email"] == "peter@cnevents.com"
    assert denials[0]["role"] == "Assistant"
    assert denials[0]["permission"] == "leads:root"


def test_unknown_role_is_not_audited_as_permission_denial(guarded_client, auth_headers):
    with capture_logs() as cap_logs:
        guarded_client.get("/check/leads:view", headers=auth_headers("Intern"))

    assert not [entry for entry in cap_logs if entry["event"] == "permission_denied"]


def test_masking_skipped_for_role_without_configuration():
    """A role with no masking for the resource gets the endpoint output untouched"""
    plain_app = FastAPI()
    register_exception_handlers(plain_app)
    payload = {"value": 1200, "email": "a@b.c", "nested": {"value": 3}}

    router = APIRouter(route_class=PipelineRoute)

    @router.get("/deal")
    async def deal(principal: Principal = Depends(require_access(Permission.PRODUCTS_VIEW, "products"))):
        return payload

    plain_app.include_router(router)

    token = create_access_token(user_id=uuid.uuid4(), role="Assistant")
    response = TestClient(plain_app).get("/deal", headers={"Authorization": f"Bearer {token}"})

    assert response.status_code == 200
    assert response.json() == payload


def _add_lead(db, name, value, assigned_to=None) -> Lead:
    lead = Lead(name=name, value=value, assigned_to=assigned_to)
    db.add(lead)
    db.commit()
    db.refresh(lead)
    return lead


def test_assistant_sees_masked_value_except_on_own_leads(client, db, auth_headers):
    """Assistant list view masks `value` on leads assigned to someone else"""
    me = uuid.uuid4()
    _add_lead(db, "Unassigned Gala", 5000)
    _add_lead(db, "My Wedding", 1200, assigned_to=me)
    _add_lead(db, "Their Expo", 800, assigned_to=uuid.uuid4())

    response = client.get("/api/v1/leads/", headers=auth_headers("Assistant", user_id=str(me)))

    assert response.status_code == 200
    values = {lead["name"]: lead["value"] for lead in response.json()}
    assert values == {
        "Unassigned Gala": MASKED_VALUE,
        "My Wedding": 1200,
        "Their Expo": MASKED_VALUE,
    }


def test_assistant_single_lead_is_masked(client, db, auth_headers):
    lead = _add_lead(db, "Gala", 5000)

    response = client.get(f"/api/v1/leads/{lead.id}", headers=auth_headers("Assistant"))

    assert response.status_code == 200
    body = response.json()
    assert body["value"] == MASKED_VALUE
    assert body["name"] == "Gala"


@pytest.mark.parametrize("role", ["Admin", "Lead Planner", "Planner"])
def test_other_roles_see_real_values(client, db, auth_headers, role):
    _add_lead(db, "Gala", 5000)

    response = client.get("/api/v1/leads/", headers=auth_headers(role))

    assert response.status_code == 200
    assert response.json()[0]["value"] == 5000


def test_assistant_cannot_create_lead(client, db, auth_headers):
    response = client.post(
        "/api/v1/leads/",
        json={"name": "Gala", "value": 100},
        headers=auth_headers("Assistant"),
    )

    assert response.status_code == 403
    assert response.json() == {"error": "Access Denied: Insufficient Privileges", "code": "PERM_DENIED"}
    assert db.exec(select(Lead)).all() == []


def test_denial_precedes_body_validation(client, auth_headers):
    response = client.post("/api/v1/leads/", json={"bogus": True}, headers=auth_headers("Assistant"))
    assert response.status_code == 403


def test_planner_creates_lead(client, auth_headers):
    response = client.post(
        "/api/v1/leads/",
        json={"name": "Gala", "company": "Acme", "value": 2500},
        headers=auth_headers("Lead Planner"),
    )

    assert response.status_code == 201
    body = response.json()
    assert body["name"] == "Gala"
    assert body["value"] == 2500
    assert body["status"] == "New"


def test_assistant_can_fulfill_but_sees_masked_result(client, db, auth_headers):
    lead = _add_lead(db, "Gala", 5000)

    response = client.patch(
        f"/api/v1/leads/{lead.id}/status",
        json={"status": "Contacted"},
        headers=auth_headers("Assistant"),
    )

    assert response.status_code == 200
    assert response.json()["status"] == "Contacted"
    assert response.json()["value"] == MASKED_VALUE


def test_only_root_deletes_leads(client, db, auth_headers):
    lead = _add_lead(db, "Gala", 5000)

    denied = client.delete(f"/api/v1/leads/{lead.id}", headers=auth_headers("Lead Planner"))
    assert denied.status_code == 403

    allowed = client.delete(f"/api/v1/leads/{lead.id}", headers=auth_headers("Admin"))
    assert allowed.status_code == 200
    assert allowed.json() == {"message": "Lead deleted"}


def test_missing_lead_returns_404(client, auth_headers):
    response = client.get(f"/api/v1/leads/{uuid.uuid4()}", headers=auth_headers("Admin"))
    assert response.status_code == 404


def test_assistant_contacts_masking(client, db, auth_headers):
    me = uuid.uuid4()
    db.add(Contact(name="Alice", email="alice@acme.io", phone_number="555-0100"))
    db.add(Contact(name="Bob", email="bob@acme.io", phone_number="555-0101", assigned_to=me))
    db.commit()

    response = client.get("/api/v1/contacts/", headers=auth_headers("Assistant", user_id=str(me)))

    assert response.status_code == 200
    alice, bob = response.json()
    assert alice["email"] == MASKED_EMAIL
    assert alice["phone_number"] == MASKED_PHONE
    assert alice["name"] == "Alice"
    assert bob["email"] == "bob@acme.io"
    assert bob["phone_number"] == "555-0101"


def test_lead_endpoints_require_token(client):
    response = client.get("/api/v1/leads/")
    assert response.status_code == 401
    assert response.json()["code"] == "AUTH_REQUIRED"


class _BrokenPolicy:
    """Policy table whose lookups blow up"""

    def entry_for(self, role):
        raise RuntimeError("policy backend at 10.0.0.7 unreachable")

    def has_permission(self, role, permission):
        raise RuntimeError("policy backend at 10.0.0.7 unreachable")

    def mask_fields_for(self, role, resource):
        raise RuntimeError("policy backend at 10.0.0.7 unreachable")


def test_internal_failure_in_static_check_is_generic_500(client, auth_headers):
    client.app.dependency_overrides[get_policy_table] = _BrokenPolicy

    with capture_logs() as cap_logs:
        response = client.get("/api/v1/leads/", headers=auth_headers("Assistant"))

    assert response.status_code == 500
    assert response.json() == {"error": "Internal Security Error", "code": "INTERNAL_SECURITY_ERROR"}
    assert "10.0.0.7" not in response.text
    assert any(entry["log_level"] == "error" for entry in cap_logs)
