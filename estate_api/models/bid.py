#estate_api/models/bid.py
from __future__ import annotations

import uuid
from datetime import datetime
from decimal import Decimal

from sqlalchemy import (
    String,
    DateTime,
    Numeric,
    ForeignKey,
    CheckConstraint,
    Index,
    Uuid,
)
from sqlalchemy.orm import Mapped, mapped_column

from estate_api.db.base import Base


class Bid(Base):
    """
    Append-only. No update or delete path exists; the migration also installs
    a trigger rejecting UPDATE/DELETE on Postgres.
    """

    __tablename__ = "bids"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)

    tenant_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("tenants.id", ondelete="CASCADE"), nullable=False
    )
    property_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("properties.id", ondelete="CASCADE"), nullable=False
    )
    buyer_user_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("users.id", ondelete="CASCADE"), nullable=False
    )

    amount: Mapped[Decimal] = mapped_column(Numeric(14, 2), nullable=False)

    # createdAt is part of the hashed material, so it is always set by the recorder
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)

    bid_hash: Mapped[str] = mapped_column(String(64), nullable=False)

    __table_args__ = (
        CheckConstraint("amount > 0", name="ck_bids_amount_positive"),
        Index("ix_bids_property_amount", "property_id", "amount"),
        Index("ix_bids_property_created", "property_id", "created_at"),
        Index("ix_bids_tenant_buyer", "tenant_id", "buyer_user_id"),
    )
