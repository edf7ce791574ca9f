import os

# settings are read at import time; point everything at a throwaway SQLite db
os.environ.setdefault("DATABASE_URL", "sqlite://")
os.environ.setdefault("JWT_SECRET_KEY", "test-jwt-secret")
os.environ.setdefault("BID_HASH_SECRET", "test-bid-hash-secret")

import uuid
from datetime import datetime, timedelta, timezone
from decimal import Decimal

from sqlalchemy import create_engine, event
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

# FORCE model registration
import estate_api.models  # noqa: F401

from estate_api.core.security import hash_password, issue_access_token
from estate_api.models.enums import BiddingMode, PropertyStatus, Role
from estate_api.models.property import Property
from estate_api.models.tenant import Tenant
from estate_api.models.user import User
from estate_api.policies.rbac import Principal


def sqlite_engine(url, **kwargs):
    eng = create_engine(url, connect_args={"check_same_thread": False}, **kwargs)

    # pysqlite needs these two hooks for SAVEPOINT (begin_nested) to behave
    @event.listens_for(eng, "connect")
    def _sqlite_connect(dbapi_connection, connection_record):
        dbapi_connection.isolation_level = None

    @event.listens_for(eng, "begin")
    def _sqlite_begin(conn):
        conn.exec_driver_sql("BEGIN")

    return eng


engine = sqlite_engine("sqlite://", poolclass=StaticPool)
TestingSessionLocal = sessionmaker(bind=engine, autoflush=False, autocommit=False, future=True)

PASSWORD = "s3cret-pass"
# bcrypt is slow; hash once for every seeded account
_PASSWORD_HASH = hash_password(PASSWORD)


# ─────────────────────────────────────────────────────────────
# Seeding helpers
#
# Each helper commits in its own short-lived session so no transaction is
# left open on the shared in-memory connection when the API is called.
# ─────────────────────────────────────────────────────────────

def _persist(obj, sessions=None):
    with (sessions or TestingSessionLocal)(expire_on_commit=False) as s:
        s.add(obj)
        s.commit()
        s.refresh(obj)
    return obj


def create_tenant(name="Acme Estates", *, sessions=None):
    slug = f"{name.lower().replace(' ', '-')}-{uuid.uuid4().hex[:6]}"
    return _persist(Tenant(name=name, slug=slug), sessions)


def create_user(tenant, role=Role.BUYER, email=None, *, sessions=None):
    return _persist(
        User(
            tenant_id=tenant.id if tenant else None,
            email=email or f"{role.value.lower()}-{uuid.uuid4().hex[:8]}@acme-estates.ie",
            name=f"Test {role.value}",
            role=role.value,
            password_hash=_PASSWORD_HASH,
        ),
        sessions,
    )


def create_property(
    tenant,
    *,
    status=PropertyStatus.LIVE,
    mode=BiddingMode.OPEN,
    minimum_offer=Decimal("700000"),
    deadline=None,
    deleted=False,
    sessions=None,
):
    return _persist(
        Property(
            tenant_id=tenant.id,
            title="4 Bed Semi-Detached",
            address="1 Main Street, Galway",
            description="Bright family home",
            status=status.value,
            bidding_mode=mode.value,
            price_guide=Decimal("650000"),
            minimum_offer=minimum_offer,
            bidding_deadline=deadline or (datetime.now(timezone.utc) + timedelta(days=7)),
            deleted_at=datetime.now(timezone.utc) if deleted else None,
        ),
        sessions,
    )


def principal_for(user) -> Principal:
    return Principal(
        user_id=user.id,
        tenant_id=user.tenant_id,
        role=Role(user.role),
        email=user.email,
    )


def auth_headers(user, **extra):
    token = issue_access_token(
        user_id=str(user.id),
        tenant_id=str(user.tenant_id) if user.tenant_id else None,
        role=user.role,
        email=user.email,
    )
    headers = {"Authorization": f"Bearer {token}"}
    headers.update(extra)
    return headers


class StepClock:
    """Deterministic clock: every call moves forward by one second."""

    def __init__(self, start=None):
        self.current = start or datetime.now(timezone.utc).replace(microsecond=0)

    def __call__(self):
        self.current = self.current + timedelta(seconds=1)
        return self.current
