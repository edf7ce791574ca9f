# estate_api/api/v1/bids.py
from __future__ import annotations

import uuid

from fastapi import APIRouter, Depends, Request
from sqlalchemy.orm import Session

from estate_api.core.auth_deps import get_current_principal
from estate_api.core.deps import client_ip, get_tenant_db, request_id, resolve_tenant_id
from estate_api.core.rate_limit import enforce_bid_rate_limit
from estate_api.policies.rbac import BIDDER_ROLES, Principal, require_role
from estate_api.schemas.bids import (
    AcceptOfferResponse,
    BidResponse,
    BidSubmitRequest,
    serialize_bid,
)
from estate_api.schemas.properties import serialize_property
from estate_api.services.bid_service import BidService
from estate_api.services.offer_service import OfferService

router = APIRouter(prefix="/properties/{property_id}")


def _bidders_only(principal: Principal = Depends(get_current_principal)) -> None:
    require_role(principal.role, BIDDER_ROLES)


# ─────────────────────────────────────────────────────────────
# BIDS
# ─────────────────────────────────────────────────────────────

@router.post(
    "/bids",
    status_code=201,
    response_model=BidResponse,
    dependencies=[Depends(_bidders_only), Depends(enforce_bid_rate_limit)],
)
def submit_bid(
    property_id: uuid.UUID,
    req: BidSubmitRequest,
    request: Request,
    db: Session = Depends(get_tenant_db),
    principal: Principal = Depends(get_current_principal),
    tenant_id: uuid.UUID = Depends(resolve_tenant_id),
):
    bid = BidService().submit_bid(
        db,
        tenant_id=tenant_id,
        property_id=property_id,
        buyer_user_id=principal.user_id,
        amount=req.amount,
        request_id=request_id(request),
        ip_address=client_ip(request),
    )
    return serialize_bid(bid)


@router.get("/bids")
def list_bids(
    property_id: uuid.UUID,
    db: Session = Depends(get_tenant_db),
    principal: Principal = Depends(get_current_principal),
    tenant_id: uuid.UUID = Depends(resolve_tenant_id),
):
    """
    Shape depends on the caller: an OPEN-mode buyer gets the anonymized
    snapshot object, everyone else a plain list of bids.
    """
    return BidService().get_bid_snapshot(
        db,
        tenant_id=tenant_id,
        property_id=property_id,
        caller_role=principal.role,
        caller_user_id=principal.user_id,
    )


# ─────────────────────────────────────────────────────────────
# OFFER RESOLUTION (staff)
# ─────────────────────────────────────────────────────────────

@router.post("/close-bidding")
def close_bidding(
    property_id: uuid.UUID,
    request: Request,
    db: Session = Depends(get_tenant_db),
    principal: Principal = Depends(get_current_principal),
    tenant_id: uuid.UUID = Depends(resolve_tenant_id),
):
    prop = OfferService().close_bidding(
        db,
        tenant_id=tenant_id,
        property_id=property_id,
        actor=principal,
        ip_address=client_ip(request),
        request_id=request_id(request),
    )
    return serialize_property(prop, principal.role)


@router.post("/accept-offer/{bid_id}", response_model=AcceptOfferResponse)
def accept_offer(
    property_id: uuid.UUID,
    bid_id: uuid.UUID,
    request: Request,
    db: Session = Depends(get_tenant_db),
    principal: Principal = Depends(get_current_principal),
    tenant_id: uuid.UUID = Depends(resolve_tenant_id),
):
    prop, bid = OfferService().accept_offer(
        db,
        tenant_id=tenant_id,
        property_id=property_id,
        bid_id=bid_id,
        actor=principal,
        ip_address=client_ip(request),
        request_id=request_id(request),
    )
    return AcceptOfferResponse(
        property=serialize_property(prop, principal.role),
        acceptedBidId=str(bid.id),
    )
