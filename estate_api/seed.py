import logging
import os
from datetime import datetime, timedelta, timezone
from decimal import Decimal

from sqlalchemy import select
from sqlalchemy.orm import Session

from estate_api.core.security import hash_password
from estate_api.db.session import SessionLocal
from estate_api.models.enums import BiddingMode, PropertyStatus, Role
from estate_api.models.property import Property
from estate_api.models.tenant import Tenant
from estate_api.models.user import User

logger = logging.getLogger(__name__)

# Development-only accounts; never run against production data.
SEED_PASSWORD = os.getenv("SEED_PASSWORD", "changeme123")


def _user(db: Session, tenant, email: str, name: str, role: Role) -> User:
    u = User(
        tenant_id=tenant.id if tenant else None,
        email=email,
        name=name,
        role=role.value,
        password_hash=hash_password(SEED_PASSWORD),
    )
    db.add(u)
    return u


def seed():
    db: Session = SessionLocal()
    try:
        if db.execute(select(Tenant).where(Tenant.slug == "demo-estates")).scalar_one_or_none():
            logger.info("seed data already present")
            return

        tenant = Tenant(name="Demo Estates", slug="demo-estates")
        db.add(tenant)
        db.flush()

        _user(db, None, "root@estate-platform.ie", "Platform Operator", Role.SUPER_ADMIN)
        admin = _user(db, tenant, "admin@demo-estates.ie", "Tenant Admin", Role.TENANT_ADMIN)
        agent = _user(db, tenant, "agent@demo-estates.ie", "Listing Agent", Role.AGENT)
        _user(db, tenant, "buyer1@demo-estates.ie", "First Buyer", Role.BUYER)
        _user(db, tenant, "buyer2@demo-estates.ie", "Second Buyer", Role.BUYER)
        db.flush()

        deadline = datetime.now(timezone.utc) + timedelta(days=14)
        listings = [
            ("12 Harbour View", BiddingMode.OPEN, PropertyStatus.LIVE),
            ("3 Orchard Lane", BiddingMode.SEALED, PropertyStatus.LIVE),
            ("Unit 7, Mill Court", BiddingMode.OPEN, PropertyStatus.DRAFT),
        ]
        for title, mode, status in listings:
            db.add(
                Property(
                    tenant_id=tenant.id,
                    title=title,
                    address=f"{title}, Cork",
                    description=f"Seed listing: {title}",
                    status=status.value,
                    bidding_mode=mode.value,
                    price_guide=Decimal("650000.00"),
                    minimum_offer=Decimal("700000.00"),
                    bidding_deadline=deadline,
                    created_by_id=admin.id,
                    assigned_agent_id=agent.id,
                )
            )

        db.commit()
        logger.info("seed data created", extra={"tenant_id": str(tenant.id)})
    finally:
        db.close()


if __name__ == "__main__":
    seed()
