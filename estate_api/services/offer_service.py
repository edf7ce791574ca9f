# estate_api/services/offer_service.py
from __future__ import annotations

import logging
import uuid
from datetime import datetime, timezone
from typing import Callable, Optional, Tuple

from sqlalchemy.orm import Session

from estate_api.core.exceptions import InvalidStatusTransition, NotFoundError
from estate_api.db.session import tenant_transaction
from estate_api.models.bid import Bid
from estate_api.models.enums import PropertyStatus
from estate_api.models.property import Property
from estate_api.policies.property_rules import OFFER_RESOLVABLE_STATUSES
from estate_api.policies.rbac import OFFER_RESOLUTION_ROLES, Principal, require_role
from estate_api.services.audit_service import AuditAction, AuditEvent, AuditService
from estate_api.services.bid_service import BidService
from estate_api.services.property_service import PropertyService

logger = logging.getLogger(__name__)


def _now():
    return datetime.now(timezone.utc)


def _ensure_resolvable(prop: Property) -> None:
    # closing or accepting only makes sense while bids can exist and nothing is sold
    if PropertyStatus(prop.status) not in OFFER_RESOLVABLE_STATUSES:
        raise InvalidStatusTransition(prop.status, PropertyStatus.UNDER_OFFER.value)


class OfferService:
    """
    Staff-side resolution of a listing's bidding: close it, or accept a bid.
    Both freeze the listing at UNDER_OFFER with the deadline pinned to now.
    """

    def __init__(
        self,
        audit: Optional[AuditService] = None,
        clock: Callable[[], datetime] = _now,
    ):
        self.audit = audit or AuditService()
        self.properties = PropertyService(audit=self.audit)
        self.bids = BidService(audit=self.audit, clock=clock)
        self.clock = clock

    def close_bidding(
        self,
        db: Session,
        *,
        tenant_id: uuid.UUID,
        property_id: uuid.UUID,
        actor: Principal,
        ip_address: Optional[str] = None,
        request_id: Optional[str] = None,
    ) -> Property:
        """
        Idempotent: closing an UNDER_OFFER listing again just moves the deadline.
        """
        require_role(actor.role, OFFER_RESOLUTION_ROLES)

        with tenant_transaction(db, tenant_id=tenant_id, role=actor.role.value):
            prop = self.properties.get_property(
                db, tenant_id=tenant_id, property_id=property_id, for_update=True
            )
            _ensure_resolvable(prop)

            previous_status = prop.status
            prop.bidding_deadline = self.clock()
            prop.status = PropertyStatus.UNDER_OFFER.value

            self.audit.record(
                db,
                AuditEvent(
                    tenant_id=tenant_id,
                    user_id=actor.user_id,
                    action=AuditAction.BIDDING_CLOSED,
                    entity="Property",
                    entity_id=str(property_id),
                    metadata={"from": previous_status, "to": prop.status},
                    ip_address=ip_address,
                    request_id=request_id,
                ),
            )

        db.refresh(prop)
        logger.info(
            "bidding closed",
            extra={"tenant_id": str(tenant_id), "property_id": str(property_id)},
        )
        return prop

    def accept_offer(
        self,
        db: Session,
        *,
        tenant_id: uuid.UUID,
        property_id: uuid.UUID,
        bid_id: uuid.UUID,
        actor: Principal,
        ip_address: Optional[str] = None,
        request_id: Optional[str] = None,
    ) -> Tuple[Property, Bid]:
        require_role(actor.role, OFFER_RESOLUTION_ROLES)

        with tenant_transaction(db, tenant_id=tenant_id, role=actor.role.value):
            prop = self.properties.get_property(
                db, tenant_id=tenant_id, property_id=property_id, for_update=True
            )
            _ensure_resolvable(prop)

            bid = self.bids.get_bid(
                db, tenant_id=tenant_id, property_id=property_id, bid_id=bid_id
            )
            if not bid:
                raise NotFoundError("Bid")

            prop.status = PropertyStatus.UNDER_OFFER.value
            prop.bidding_deadline = self.clock()
            prop.accepted_bid_id = bid.id

            self.audit.record(
                db,
                AuditEvent(
                    tenant_id=tenant_id,
                    user_id=actor.user_id,
                    action=AuditAction.OFFER_ACCEPTED,
                    entity="Bid",
                    entity_id=str(bid.id),
                    metadata={"propertyId": property_id, "amount": bid.amount},
                    ip_address=ip_address,
                    request_id=request_id,
                ),
            )

        db.refresh(prop)
        logger.info(
            "offer accepted",
            extra={
                "tenant_id": str(tenant_id),
                "property_id": str(property_id),
                "bid_id": str(bid_id),
            },
        )
        return prop, bid
