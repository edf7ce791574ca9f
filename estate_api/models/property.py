#estate_api/models/property.py
from __future__ import annotations

import uuid
from datetime import datetime
from decimal import Decimal
from typing import Optional

from sqlalchemy import (
    String,
    Text,
    DateTime,
    Integer,
    Numeric,
    ForeignKey,
    CheckConstraint,
    Index,
    Uuid,
    func,
)
from sqlalchemy.orm import Mapped, mapped_column

from estate_api.db.base import Base
from estate_api.models.enums import BiddingMode, PropertyStatus


class Property(Base):
    __tablename__ = "properties"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)

    tenant_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("tenants.id", ondelete="CASCADE"), nullable=False
    )

    title: Mapped[str] = mapped_column(String(256), nullable=False)
    address: Mapped[str] = mapped_column(String(512), nullable=False)
    eircode: Mapped[Optional[str]] = mapped_column(String(16), nullable=True)
    description: Mapped[str] = mapped_column(Text, nullable=False)

    status: Mapped[str] = mapped_column(
        String(16), nullable=False, default=PropertyStatus.DRAFT.value
    )
    bidding_mode: Mapped[str] = mapped_column(
        String(16), nullable=False, default=BiddingMode.OPEN.value
    )

    price_guide: Mapped[Decimal] = mapped_column(Numeric(14, 2), nullable=False)
    # staff-only floor; never part of a buyer-facing payload
    minimum_offer: Mapped[Optional[Decimal]] = mapped_column(Numeric(14, 2), nullable=True)
    min_increment: Mapped[int] = mapped_column(Integer, nullable=False, default=1000)
    bidding_deadline: Mapped[Optional[datetime]] = mapped_column(
        DateTime(timezone=True), nullable=True
    )

    created_by_id: Mapped[Optional[uuid.UUID]] = mapped_column(
        Uuid, ForeignKey("users.id", ondelete="SET NULL"), nullable=True
    )
    assigned_agent_id: Mapped[Optional[uuid.UUID]] = mapped_column(
        Uuid, ForeignKey("users.id", ondelete="SET NULL"), nullable=True
    )

    # set by accept-offer; staff-only. bids -> properties closes a cycle,
    # so this side is added with ALTER once both tables exist
    accepted_bid_id: Mapped[Optional[uuid.UUID]] = mapped_column(
        Uuid,
        ForeignKey(
            "bids.id",
            ondelete="SET NULL",
            use_alter=True,
            name="fk_properties_accepted_bid",
        ),
        nullable=True,
    )

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, server_default=func.now()
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        server_default=func.now(),
        onupdate=func.now(),
    )
    deleted_at: Mapped[Optional[datetime]] = mapped_column(
        DateTime(timezone=True), nullable=True
    )

    __table_args__ = (
        CheckConstraint("price_guide >= 0", name="ck_properties_price_guide_nonneg"),
        CheckConstraint("minimum_offer IS NULL OR minimum_offer >= 0", name="ck_properties_min_offer_nonneg"),
        CheckConstraint("min_increment > 0", name="ck_properties_min_increment_pos"),
        Index("ix_properties_tenant_status", "tenant_id", "status"),
    )
