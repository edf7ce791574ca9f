#estate_api/services/bid_service.py
from __future__ import annotations

import logging
import uuid
from datetime import datetime, timezone
from decimal import Decimal
from typing import Callable, Dict, List, Optional, Union

from sqlalchemy import select, desc, asc
from sqlalchemy.exc import DBAPIError
from sqlalchemy.orm import Session

from estate_api.core.config import get_settings
from estate_api.core.exceptions import BidConflictError, PropertyNotLive
from estate_api.core.hashing import build_bid_hash
from estate_api.db.session import tenant_transaction
from estate_api.models.bid import Bid
from estate_api.models.enums import BiddingMode, PropertyStatus, Role
from estate_api.policies.bid_rules import ensure_valid_amount, validate_bid_submission
from estate_api.policies.rbac import is_buyer
from estate_api.schemas.bids import (
    BidHistoryEntry,
    BidResponse,
    BuyerOpenBidSnapshot,
    serialize_bid,
)
from estate_api.services.audit_service import AuditAction, AuditEvent, AuditService
from estate_api.services.property_service import PropertyService

logger = logging.getLogger(__name__)

# Postgres SQLSTATEs worth retrying: serialization_failure, deadlock_detected
_RETRYABLE_SQLSTATES = {"40001", "40P01"}


# ---------------------------------------------------------------------
# helpers
# ---------------------------------------------------------------------


def _now():
    return datetime.now(timezone.utc)


def _truncate_to_millis(dt: datetime) -> datetime:
    # createdAt is hashed at millisecond precision; store exactly what was hashed
    return dt.replace(microsecond=(dt.microsecond // 1000) * 1000)


def _is_retryable(exc: DBAPIError) -> bool:
    if exc.connection_invalidated:
        return True
    orig = getattr(exc, "orig", None)
    sqlstate = getattr(orig, "pgcode", None) or getattr(orig, "sqlstate", None)
    if sqlstate in _RETRYABLE_SQLSTATES:
        return True
    # SQLite single-writer lock
    return "database is locked" in str(orig or "")


def bidder_labels(bids: List[Bid]) -> Dict[uuid.UUID, str]:
    """
    "Bidder A", "Bidder B", ... in order of first appearance.
    `bids` must already be in chronological order. Built fresh per request,
    never cached, so labels cannot leak identity across requests.
    """
    labels: Dict[uuid.UUID, str] = {}
    for b in bids:
        if b.buyer_user_id not in labels:
            labels[b.buyer_user_id] = _label_for(len(labels))
    return labels


def _label_for(index: int) -> str:
    # A..Z, then AA, AB, ... (spreadsheet-style) for very busy listings
    letters = ""
    n = index
    while True:
        letters = chr(ord("A") + n % 26) + letters
        n = n // 26 - 1
        if n < 0:
            break
    return f"Bidder {letters}"


# ---------------------------------------------------------------------
# service
# ---------------------------------------------------------------------


class BidService:
    def __init__(
        self,
        audit: Optional[AuditService] = None,
        clock: Callable[[], datetime] = _now,
    ):
        self.audit = audit or AuditService()
        self.properties = PropertyService(audit=self.audit)
        self.clock = clock

    # -----------------------------------------------------------------
    # reads
    # -----------------------------------------------------------------

    def get_highest_bid(self, db: Session, *, tenant_id: uuid.UUID, property_id: uuid.UUID) -> Optional[Bid]:
        """
        Highest amount wins; ties (SEALED mode only) go to the earliest bid.
        """
        return (
            db.execute(
                select(Bid)
                .where(Bid.tenant_id == tenant_id, Bid.property_id == property_id)
                .order_by(desc(Bid.amount), asc(Bid.created_at))
                .limit(1)
            )
            .scalars()
            .first()
        )

    def list_bids(
        self,
        db: Session,
        *,
        tenant_id: uuid.UUID,
        property_id: uuid.UUID,
        buyer_user_id: Optional[uuid.UUID] = None,
        newest_first: bool = True,
    ) -> List[Bid]:
        stmt = select(Bid).where(Bid.tenant_id == tenant_id, Bid.property_id == property_id)
        if buyer_user_id is not None:
            stmt = stmt.where(Bid.buyer_user_id == buyer_user_id)
        order = desc(Bid.created_at) if newest_first else asc(Bid.created_at)
        return list(db.execute(stmt.order_by(order)).scalars().all())

    def get_bid(
        self,
        db: Session,
        *,
        tenant_id: uuid.UUID,
        property_id: uuid.UUID,
        bid_id: uuid.UUID,
    ) -> Optional[Bid]:
        return db.execute(
            select(Bid).where(
                Bid.id == bid_id,
                Bid.property_id == property_id,
                Bid.tenant_id == tenant_id,
            )
        ).scalar_one_or_none()

    def get_bid_snapshot(
        self,
        db: Session,
        *,
        tenant_id: uuid.UUID,
        property_id: uuid.UUID,
        caller_role: Role,
        caller_user_id: uuid.UUID,
    ) -> Union[BuyerOpenBidSnapshot, List[BidResponse]]:
        """
        - BUYER on an OPEN listing: own bids, highest amount and the anonymized history
        - BUYER on a SEALED listing: own bids only
        - staff: every bid, newest first
        """
        prop = self.properties.get_visible_property(
            db, tenant_id=tenant_id, property_id=property_id, role=caller_role
        )

        if not is_buyer(caller_role):
            return [serialize_bid(b) for b in self.list_bids(db, tenant_id=tenant_id, property_id=property_id)]

        own = self.list_bids(
            db, tenant_id=tenant_id, property_id=property_id, buyer_user_id=caller_user_id
        )
        if prop.bidding_mode != BiddingMode.OPEN.value:
            return [serialize_bid(b) for b in own]

        chronological = self.list_bids(
            db, tenant_id=tenant_id, property_id=property_id, newest_first=False
        )
        labels = bidder_labels(chronological)
        highest = max((b.amount for b in chronological), default=None)

        return BuyerOpenBidSnapshot(
            ownBids=[serialize_bid(b) for b in own],
            highestBid=highest,
            bidHistory=[
                BidHistoryEntry(
                    bidder=labels[b.buyer_user_id],
                    amount=b.amount,
                    createdAt=b.created_at,
                )
                for b in chronological
            ],
        )

    # -----------------------------------------------------------------
    # submit
    # -----------------------------------------------------------------

    def submit_bid(
        self,
        db: Session,
        *,
        tenant_id: uuid.UUID,
        property_id: uuid.UUID,
        buyer_user_id: uuid.UUID,
        amount: Decimal,
        request_id: Optional[str] = None,
        ip_address: Optional[str] = None,
    ) -> Bid:
        """
        Record an admissible bid. Validation always runs against state read
        inside the same transaction as the insert; an earlier read made by the
        caller is never trusted.

        Business rejections propagate immediately. Serialization/deadlock
        failures are retried up to `bid_submit_max_retries` attempts, then
        surface as BID_CONFLICT.
        """
        amount = ensure_valid_amount(amount)
        max_attempts = max(1, get_settings().bid_submit_max_retries)

        for attempt in range(1, max_attempts + 1):
            try:
                return self._record_once(
                    db,
                    tenant_id=tenant_id,
                    property_id=property_id,
                    buyer_user_id=buyer_user_id,
                    amount=amount,
                    request_id=request_id,
                    ip_address=ip_address,
                )
            except DBAPIError as exc:
                if not _is_retryable(exc):
                    raise
                logger.warning(
                    "bid transaction conflict, retrying",
                    extra={
                        "tenant_id": str(tenant_id),
                        "property_id": str(property_id),
                        "attempt": attempt,
                        "max_attempts": max_attempts,
                    },
                )

        logger.error(
            "bid transaction conflict, retries exhausted",
            extra={"tenant_id": str(tenant_id), "property_id": str(property_id)},
        )
        raise BidConflictError()

    def _record_once(
        self,
        db: Session,
        *,
        tenant_id: uuid.UUID,
        property_id: uuid.UUID,
        buyer_user_id: uuid.UUID,
        amount: Decimal,
        request_id: Optional[str],
        ip_address: Optional[str],
    ) -> Bid:
        with tenant_transaction(db, tenant_id=tenant_id, role=Role.BUYER.value):
            # 1. fresh, row-locked read of the listing
            prop = self.properties.get_property(
                db, tenant_id=tenant_id, property_id=property_id, for_update=True
            )
            if prop.status != PropertyStatus.LIVE.value:
                raise PropertyNotLive()

            # 2. latest bid as seen by this transaction
            latest = self.get_highest_bid(db, tenant_id=tenant_id, property_id=property_id)

            created_at = _truncate_to_millis(self.clock())

            # 3. rules
            validate_bid_submission(property=prop, latest_bid=latest, amount=amount, now=created_at)

            # 4. integrity hash
            bid_hash = build_bid_hash(
                tenant_id=tenant_id,
                property_id=property_id,
                buyer_user_id=buyer_user_id,
                amount=amount,
                created_at=created_at,
                secret=get_settings().bid_hash_secret,
            )

            # 5. insert
            bid = Bid(
                tenant_id=tenant_id,
                property_id=property_id,
                buyer_user_id=buyer_user_id,
                amount=amount,
                created_at=created_at,
                bid_hash=bid_hash,
            )
            db.add(bid)
            db.flush()

            # 6. audit, never fatal
            self.audit.record_best_effort(
                db,
                AuditEvent(
                    tenant_id=tenant_id,
                    user_id=buyer_user_id,
                    action=AuditAction.BID_SUBMITTED,
                    entity="Bid",
                    entity_id=str(bid.id),
                    metadata={"propertyId": property_id, "amount": amount},
                    ip_address=ip_address,
                    request_id=request_id,
                ),
            )

        logger.info(
            "bid recorded",
            extra={
                "tenant_id": str(tenant_id),
                "property_id": str(property_id),
                "bid_id": str(bid.id),
            },
        )
        return bid
