import uuid

from estate_api.core import deps
from estate_api.models.enums import PropertyStatus, Role
from estate_api.tests.support import auth_headers, create_property, create_tenant, create_user

BASE = "/api/v1/properties"

NEW_LISTING = {
    "title": "3 Bed Terrace",
    "address": "9 Bridge Street, Limerick",
    "description": "Renovated terrace close to the river",
    "priceGuide": "425000",
    "minimumOffer": "450000",
    "biddingMode": "OPEN",
}


def test_health_echoes_request_id(client):
    r = client.get("/api/v1/health", headers={"X-Request-Id": "req-123"})
    assert r.status_code == 200
    assert r.json()["status"] == "ok"
    assert r.headers["X-Request-Id"] == "req-123"


def test_requires_authentication(client):
    r = client.get(BASE)
    assert r.status_code == 401
    assert r.json()["error"]["code"] == "UNAUTHORIZED"

    r = client.get(BASE, headers={"Authorization": "Bearer not-a-jwt"})
    assert r.status_code == 401


def test_buyer_projection_never_contains_minimum_offer(client):
    tenant = create_tenant()
    prop = create_property(tenant)
    buyer = create_user(tenant)
    agent = create_user(tenant, role=Role.AGENT)

    r = client.get(f"{BASE}/{prop.id}", headers=auth_headers(buyer))
    assert r.status_code == 200
    body = r.json()
    assert "minimumOffer" not in body
    assert "acceptedBidId" not in body
    assert body["status"] == "LIVE"

    listing = client.get(BASE, headers=auth_headers(buyer)).json()
    assert len(listing) == 1
    assert "minimumOffer" not in listing[0]

    staff = client.get(f"{BASE}/{prop.id}", headers=auth_headers(agent)).json()
    assert staff["minimumOffer"] is not None


def test_buyer_sees_only_live_listings(client):
    tenant = create_tenant()
    draft = create_property(tenant, status=PropertyStatus.DRAFT)
    buyer = create_user(tenant)

    r = client.get(f"{BASE}/{draft.id}", headers=auth_headers(buyer))
    assert r.status_code == 404
    assert r.json()["error"]["code"] == "NOT_FOUND"
    assert client.get(BASE, headers=auth_headers(buyer)).json() == []


def test_listing_lifecycle_over_http(client):
    tenant = create_tenant()
    agent = create_user(tenant, role=Role.AGENT)
    admin = create_user(tenant, role=Role.TENANT_ADMIN)

    r = client.post(BASE, json=NEW_LISTING, headers=auth_headers(agent))
    assert r.status_code == 201
    created = r.json()
    assert created["status"] == "DRAFT"
    pid = created["id"]

    r = client.post(f"{BASE}/{pid}/publish", headers=auth_headers(agent))
    assert r.status_code == 200
    assert r.json()["status"] == "LIVE"

    r = client.put(f"{BASE}/{pid}", json={"status": "DRAFT"}, headers=auth_headers(agent))
    assert r.status_code == 409
    assert r.json()["error"]["code"] == "INVALID_STATUS_TRANSITION"

    r = client.put(f"{BASE}/{pid}", json={"title": "3 Bed Terrace (reduced)"}, headers=auth_headers(agent))
    assert r.status_code == 200
    assert r.json()["title"] == "3 Bed Terrace (reduced)"

    # agents cannot delete
    r = client.delete(f"{BASE}/{pid}", headers=auth_headers(agent))
    assert r.status_code == 403

    r = client.delete(f"{BASE}/{pid}", headers=auth_headers(admin))
    assert r.status_code == 204
    assert client.get(f"{BASE}/{pid}", headers=auth_headers(admin)).status_code == 404


def test_buyer_cannot_create_listing(client):
    tenant = create_tenant()
    buyer = create_user(tenant)

    r = client.post(BASE, json=NEW_LISTING, headers=auth_headers(buyer))
    assert r.status_code == 403
    assert r.json()["error"]["code"] == "FORBIDDEN"


def test_invalid_payload_is_validation_error(client):
    tenant = create_tenant()
    agent = create_user(tenant, role=Role.AGENT)

    r = client.post(BASE, json={**NEW_LISTING, "priceGuide": "-1"}, headers=auth_headers(agent))
    assert r.status_code == 422
    assert r.json()["error"]["code"] == "VALIDATION_ERROR"


def test_other_tenant_listing_is_invisible(client):
    mine = create_tenant()
    theirs = create_tenant("Other Agency")
    foreign = create_property(theirs)
    agent = create_user(mine, role=Role.AGENT)

    r = client.get(f"{BASE}/{foreign.id}", headers=auth_headers(agent))
    assert r.status_code == 404


def test_tenant_header_must_match_session(client):
    mine = create_tenant()
    theirs = create_tenant("Other Agency")
    agent = create_user(mine, role=Role.AGENT)

    r = client.get(BASE, headers=auth_headers(agent, **{"X-Tenant-Id": str(theirs.id)}))
    assert r.status_code == 403
    assert r.json()["error"]["code"] == "TENANT_MISMATCH"

    r = client.get(BASE, headers=auth_headers(agent, **{"X-Tenant-Id": str(mine.id)}))
    assert r.status_code == 200


def test_super_admin_picks_tenant_by_header(client):
    tenant = create_tenant()
    prop = create_property(tenant, status=PropertyStatus.DRAFT)
    root = create_user(None, role=Role.SUPER_ADMIN)

    r = client.get(BASE, headers=auth_headers(root))
    assert r.status_code == 400
    assert r.json()["error"]["code"] == "TENANT_REQUIRED"

    r = client.get(BASE, headers=auth_headers(root, **{"X-Tenant-Id": str(tenant.id)}))
    assert r.status_code == 200
    assert [p["id"] for p in r.json()] == [str(prop.id)]
    assert "minimumOffer" in r.json()[0]


def test_unknown_listing_is_not_found(client):
    tenant = create_tenant()
    agent = create_user(tenant, role=Role.AGENT)

    r = client.get(f"{BASE}/{uuid.uuid4()}", headers=auth_headers(agent))
    assert r.status_code == 404


def test_reads_bind_the_caller_tenant(client, monkeypatch):
    tenant = create_tenant()
    prop = create_property(tenant)
    buyer = create_user(tenant)
    root = create_user(None, role=Role.SUPER_ADMIN)
    bound = []
    monkeypatch.setattr(
        deps, "bind_tenant_context", lambda db, *, tenant_id, role: bound.append((tenant_id, role))
    )

    assert client.get(BASE, headers=auth_headers(buyer)).status_code == 200
    assert client.get(f"{BASE}/{prop.id}/bids", headers=auth_headers(buyer)).status_code == 200
    r = client.get(f"{BASE}/{prop.id}", headers=auth_headers(root, **{"X-Tenant-Id": str(tenant.id)}))
    assert r.status_code == 200

    assert bound == [
        (tenant.id, "BUYER"),
        (tenant.id, "BUYER"),
        (tenant.id, "SUPER_ADMIN"),
    ]
