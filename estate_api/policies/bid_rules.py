#estate_api/policies/bid_rules.py
from __future__ import annotations

from datetime import datetime, timezone
from decimal import Decimal, InvalidOperation
from typing import Any, Optional

from estate_api.core.exceptions import ConflictError
from estate_api.models.enums import BiddingMode

_CENT = Decimal("0.01")


class BidRejection(ConflictError):
    """Business rejection of an otherwise well-formed bid. Never retried."""


class BiddingClosed(BidRejection):
    def __init__(self):
        super().__init__("Bidding is closed", code="BIDDING_CLOSED")


class BelowMinimumOffer(BidRejection):
    # message stays generic: the floor itself is staff-only
    def __init__(self):
        super().__init__("Bid is below the minimum acceptable offer", code="BELOW_MINIMUM_OFFER")


class MustExceedHighest(BidRejection):
    def __init__(self):
        super().__init__(
            "Bid must be higher than the current highest offer", code="MUST_EXCEED_HIGHEST"
        )


class InvalidBidAmount(ValueError):
    """Caller-side input error (non-finite, non-positive or sub-cent amount)."""


def _as_utc(dt: datetime) -> datetime:
    if dt.tzinfo is None:
        return dt.replace(tzinfo=timezone.utc)
    return dt


def ensure_valid_amount(amount: Any) -> Decimal:
    try:
        value = Decimal(str(amount))
    except (InvalidOperation, TypeError, ValueError):
        raise InvalidBidAmount(f"Bid amount is not a number: {amount!r}")
    if not value.is_finite():
        raise InvalidBidAmount("Bid amount must be finite.")
    if value <= 0:
        raise InvalidBidAmount("Bid amount must be positive.")
    # amounts are stored and hashed in whole cents; anything finer would be
    # rounded after the comparison against the highest bid
    try:
        cents = value.quantize(_CENT)
    except InvalidOperation:
        raise InvalidBidAmount("Bid amount is too large.")
    if cents != value:
        raise InvalidBidAmount("Bid amount must have at most two decimal places.")
    return cents


def validate_bid_submission(
    *,
    property: Any,
    latest_bid: Optional[Any],
    amount: Decimal,
    now: datetime,
) -> None:
    """
    Decide whether `amount` is admissible against the property's rules and the
    current highest bid. Pure: reads `bidding_mode`, `bidding_deadline` and
    `minimum_offer` off `property` and `amount` off `latest_bid`.

    Rules, first failure wins:
      1. deadline passed            -> BIDDING_CLOSED
      2. amount < minimum_offer or 0 -> BELOW_MINIMUM_OFFER
      3. OPEN mode, amount <= latest -> MUST_EXCEED_HIGHEST

    SEALED mode never compares against other bids (including the bidder's own
    earlier ones).
    """
    amount = ensure_valid_amount(amount)

    deadline = property.bidding_deadline
    if deadline is not None and _as_utc(now) > _as_utc(deadline):
        raise BiddingClosed()

    floor = Decimal(property.minimum_offer) if property.minimum_offer is not None else Decimal(0)
    if amount < floor:
        raise BelowMinimumOffer()

    if BiddingMode(property.bidding_mode) == BiddingMode.OPEN and latest_bid is not None:
        if amount <= Decimal(latest_bid.amount):
            raise MustExceedHighest()
