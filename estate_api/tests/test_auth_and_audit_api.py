from datetime import datetime, timedelta, timezone

from jose import jwt

from estate_api.core.config import get_settings
from estate_api.models.enums import Role
from estate_api.tests.support import (
    PASSWORD,
    auth_headers,
    create_property,
    create_tenant,
    create_user,
)


def test_login_issues_token_usable_for_me(client):
    tenant = create_tenant()
    user = create_user(tenant, role=Role.AGENT)

    r = client.post("/api/v1/auth/login", json={"email": user.email, "password": PASSWORD})
    assert r.status_code == 200
    token = r.json()["access_token"]
    assert r.json()["token_type"] == "bearer"

    me = client.get("/api/v1/auth/me", headers={"Authorization": f"Bearer {token}"}).json()
    assert me == {
        "userId": str(user.id),
        "tenantId": str(tenant.id),
        "role": "AGENT",
        "email": user.email,
    }


def test_login_rejects_bad_password_and_wrong_tenant(client):
    tenant = create_tenant()
    other = create_tenant("Other Agency")
    user = create_user(tenant)

    r = client.post("/api/v1/auth/login", json={"email": user.email, "password": "nope"})
    assert r.status_code == 401
    assert r.json()["error"]["code"] == "UNAUTHORIZED"

    r = client.post(
        "/api/v1/auth/login",
        json={"email": user.email, "password": PASSWORD, "tenantId": str(other.id)},
    )
    assert r.status_code == 401


def test_expired_token_is_rejected(client):
    tenant = create_tenant()
    user = create_user(tenant)
    settings = get_settings()
    past = datetime.now(timezone.utc) - timedelta(hours=2)
    token = jwt.encode(
        {
            "sub": str(user.id),
            "tenant_id": str(tenant.id),
            "role": "BUYER",
            "email": user.email,
            "iat": int(past.timestamp()),
            "exp": int((past + timedelta(minutes=5)).timestamp()),
        },
        settings.jwt_secret_key,
        algorithm=settings.jwt_algorithm,
    )

    r = client.get("/api/v1/auth/me", headers={"Authorization": f"Bearer {token}"})
    assert r.status_code == 401


def test_audit_log_is_tenant_scoped_and_staff_only(client):
    tenant = create_tenant()
    other = create_tenant("Other Agency")
    prop = create_property(tenant)
    foreign = create_property(other)
    buyer = create_user(tenant)
    rival = create_user(other)
    agent = create_user(tenant, role=Role.AGENT)

    client.post(f"/api/v1/properties/{prop.id}/bids", json={"amount": "750000"}, headers=auth_headers(buyer))
    client.post(f"/api/v1/properties/{foreign.id}/bids", json={"amount": "750000"}, headers=auth_headers(rival))

    r = client.get("/api/v1/audit-logs", headers=auth_headers(buyer))
    assert r.status_code == 403

    r = client.get("/api/v1/audit-logs", params={"action": "BID_SUBMITTED"}, headers=auth_headers(agent))
    assert r.status_code == 200
    body = r.json()
    assert body["count"] == 1
    entry = body["items"][0]
    assert entry["tenantId"] == str(tenant.id)
    assert entry["metadata"]["propertyId"] == str(prop.id)
    assert entry["requestId"]


def test_super_admin_reads_audit_across_tenants(client):
    t1 = create_tenant()
    t2 = create_tenant("Other Agency")
    p1 = create_property(t1)
    p2 = create_property(t2)
    b1 = create_user(t1)
    b2 = create_user(t2)
    root = create_user(None, role=Role.SUPER_ADMIN)

    client.post(f"/api/v1/properties/{p1.id}/bids", json={"amount": "750000"}, headers=auth_headers(b1))
    client.post(f"/api/v1/properties/{p2.id}/bids", json={"amount": "750000"}, headers=auth_headers(b2))

    everything = client.get("/api/v1/audit-logs", headers=auth_headers(root)).json()
    assert everything["count"] == 2

    scoped = client.get(
        "/api/v1/audit-logs", headers=auth_headers(root, **{"X-Tenant-Id": str(t1.id)})
    ).json()
    assert [i["tenantId"] for i in scoped["items"]] == [str(t1.id)]
