from __future__ import annotations

import uuid
from datetime import datetime
from decimal import Decimal
from typing import Annotated, Optional, Union

from pydantic import BaseModel, Field

from estate_api.models.enums import BiddingMode, PropertyStatus, Role
from estate_api.models.property import Property

Money = Annotated[Decimal, Field(ge=0, max_digits=14, decimal_places=2)]


class PropertyCreateRequest(BaseModel):
    title: str = Field(..., min_length=3, max_length=256)
    address: str = Field(..., min_length=3, max_length=512)
    eircode: Optional[str] = Field(default=None, max_length=16)
    description: str = Field(..., min_length=3)
    priceGuide: Money
    minimumOffer: Optional[Money] = None
    status: PropertyStatus = PropertyStatus.DRAFT
    biddingMode: BiddingMode
    biddingDeadline: Optional[datetime] = None
    assignedAgentId: Optional[uuid.UUID] = None
    minIncrement: int = Field(default=1000, gt=0)


class PropertyUpdateRequest(BaseModel):
    """
    Partial update: only fields present in the request body are applied
    (see `model_fields_set`). `minimumOffer: null` clears the floor.
    """
    title: Optional[str] = Field(default=None, min_length=3, max_length=256)
    address: Optional[str] = Field(default=None, min_length=3, max_length=512)
    eircode: Optional[str] = Field(default=None, max_length=16)
    description: Optional[str] = Field(default=None, min_length=3)
    priceGuide: Optional[Money] = None
    minimumOffer: Optional[Money] = None
    status: Optional[PropertyStatus] = None
    biddingMode: Optional[BiddingMode] = None
    biddingDeadline: Optional[datetime] = None
    assignedAgentId: Optional[uuid.UUID] = None
    minIncrement: Optional[int] = Field(default=None, gt=0)


# ─────────────────────────────────────────────────────────────
# Role projections
#
# The buyer view simply does not declare the staff-only fields, so a new
# endpoint cannot leak them by forgetting to strip a key.
# ─────────────────────────────────────────────────────────────

class PropertyBuyerView(BaseModel):
    id: str
    tenantId: str
    title: str
    address: str
    eircode: Optional[str] = None
    description: str
    priceGuide: Decimal
    status: PropertyStatus
    biddingMode: BiddingMode
    biddingDeadline: Optional[datetime] = None
    minIncrement: int
    assignedAgentId: Optional[str] = None
    createdAt: Optional[datetime] = None
    updatedAt: Optional[datetime] = None


class PropertyStaffView(PropertyBuyerView):
    minimumOffer: Optional[Decimal] = None
    acceptedBidId: Optional[str] = None
    createdById: Optional[str] = None
    deletedAt: Optional[datetime] = None


PropertyView = Union[PropertyStaffView, PropertyBuyerView]


def _opt_str(v) -> Optional[str]:
    return str(v) if v is not None else None


def _buyer_fields(p: Property) -> dict:
    return {
        "id": str(p.id),
        "tenantId": str(p.tenant_id),
        "title": p.title,
        "address": p.address,
        "eircode": p.eircode,
        "description": p.description,
        "priceGuide": p.price_guide,
        "status": p.status,
        "biddingMode": p.bidding_mode,
        "biddingDeadline": p.bidding_deadline,
        "minIncrement": p.min_increment,
        "assignedAgentId": _opt_str(p.assigned_agent_id),
        "createdAt": p.created_at,
        "updatedAt": p.updated_at,
    }


def serialize_property(p: Property, role: Role) -> PropertyView:
    """
    Role-parameterized projection of a listing.
    BUYER -> PropertyBuyerView (no minimumOffer / acceptedBidId); everyone else -> staff view.
    """
    if Role(role) == Role.BUYER:
        return PropertyBuyerView(**_buyer_fields(p))

    return PropertyStaffView(
        **_buyer_fields(p),
        minimumOffer=p.minimum_offer,
        acceptedBidId=_opt_str(p.accepted_bid_id),
        createdById=_opt_str(p.created_by_id),
        deletedAt=p.deleted_at,
    )
