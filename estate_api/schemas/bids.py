from __future__ import annotations

from datetime import datetime
from decimal import Decimal
from typing import Annotated, List, Optional

from pydantic import BaseModel, Field

from estate_api.models.bid import Bid
from estate_api.schemas.properties import PropertyStaffView

# strictly positive, finite (pydantic rejects NaN/Infinity for Decimal by default)
BidAmount = Annotated[Decimal, Field(gt=0, max_digits=14, decimal_places=2)]


class BidSubmitRequest(BaseModel):
    amount: BidAmount


class BidResponse(BaseModel):
    id: str
    tenantId: str
    propertyId: str
    buyerUserId: str
    amount: Decimal
    createdAt: datetime
    bidHash: str


class BidHistoryEntry(BaseModel):
    """One anonymized row of an OPEN-mode buyer view."""
    bidder: str
    amount: Decimal
    createdAt: datetime


class BuyerOpenBidSnapshot(BaseModel):
    ownBids: List[BidResponse]
    highestBid: Optional[Decimal] = None
    bidHistory: List[BidHistoryEntry]


class AcceptOfferResponse(BaseModel):
    property: PropertyStaffView
    acceptedBidId: str


def serialize_bid(b: Bid) -> BidResponse:
    return BidResponse(
        id=str(b.id),
        tenantId=str(b.tenant_id),
        propertyId=str(b.property_id),
        buyerUserId=str(b.buyer_user_id),
        amount=b.amount,
        createdAt=b.created_at,
        bidHash=b.bid_hash,
    )
