from __future__ import annotations

import hashlib
import hmac
import uuid
from datetime import datetime, timezone
from decimal import Decimal
from typing import Any


def sha256_hex(s: str) -> str:
    return hashlib.sha256(s.encode("utf-8")).hexdigest()


def iso_utc_millis(dt: datetime) -> str:
    """
    2024-05-01T09:30:00.123Z

    Naive datetimes are taken as UTC (SQLite hands them back without tzinfo).
    """
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    dt = dt.astimezone(timezone.utc)
    return dt.strftime("%Y-%m-%dT%H:%M:%S.") + f"{dt.microsecond // 1000:03d}Z"


def amount_str(amount: Decimal) -> str:
    return f"{Decimal(amount):.2f}"


def build_bid_hash(
    *,
    tenant_id: uuid.UUID,
    property_id: uuid.UUID,
    buyer_user_id: uuid.UUID,
    amount: Decimal,
    created_at: datetime,
    secret: str,
) -> str:
    """
    Keyed SHA-256 over the bid's identifying fields.

    Layout: tenant:property:buyer:amount:createdAtIso:secret
    The secret is server-only, so clients can never derive a valid hash.
    """
    raw = ":".join(
        [
            str(tenant_id),
            str(property_id),
            str(buyer_user_id),
            amount_str(amount),
            iso_utc_millis(created_at),
            secret,
        ]
    )
    return sha256_hex(raw)


def verify_bid_hash(bid: Any, secret: str) -> bool:
    expected = build_bid_hash(
        tenant_id=bid.tenant_id,
        property_id=bid.property_id,
        buyer_user_id=bid.buyer_user_id,
        amount=bid.amount,
        created_at=bid.created_at,
        secret=secret,
    )
    return hmac.compare_digest(expected, bid.bid_hash or "")
