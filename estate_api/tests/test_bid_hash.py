import hashlib
import uuid
from datetime import datetime, timezone
from decimal import Decimal
from types import SimpleNamespace

from estate_api.core.hashing import build_bid_hash, iso_utc_millis, verify_bid_hash

TENANT = uuid.UUID("11111111-1111-1111-1111-111111111111")
PROPERTY = uuid.UUID("22222222-2222-2222-2222-222222222222")
BUYER = uuid.UUID("33333333-3333-3333-3333-333333333333")
CREATED = datetime(2026, 3, 4, 5, 6, 7, 891000, tzinfo=timezone.utc)


def test_iso_utc_millis_format():
    assert iso_utc_millis(CREATED) == "2026-03-04T05:06:07.891Z"
    # naive values are read as UTC
    assert iso_utc_millis(CREATED.replace(tzinfo=None)) == "2026-03-04T05:06:07.891Z"


def test_hash_layout_is_colon_joined_with_secret_last():
    expected = hashlib.sha256(
        (
            f"{TENANT}:{PROPERTY}:{BUYER}:700000.00:2026-03-04T05:06:07.891Z:shh"
        ).encode("utf-8")
    ).hexdigest()

    got = build_bid_hash(
        tenant_id=TENANT,
        property_id=PROPERTY,
        buyer_user_id=BUYER,
        amount=Decimal("700000"),
        created_at=CREATED,
        secret="shh",
    )
    assert got == expected
    assert len(got) == 64


def test_hash_depends_on_secret():
    kwargs = dict(
        tenant_id=TENANT,
        property_id=PROPERTY,
        buyer_user_id=BUYER,
        amount=Decimal("1.50"),
        created_at=CREATED,
    )
    assert build_bid_hash(secret="a", **kwargs) != build_bid_hash(secret="b", **kwargs)


def test_verify_detects_tampering():
    h = build_bid_hash(
        tenant_id=TENANT,
        property_id=PROPERTY,
        buyer_user_id=BUYER,
        amount=Decimal("700000"),
        created_at=CREATED,
        secret="shh",
    )
    row = SimpleNamespace(
        tenant_id=TENANT,
        property_id=PROPERTY,
        buyer_user_id=BUYER,
        amount=Decimal("700000.00"),
        created_at=CREATED,
        bid_hash=h,
    )
    assert verify_bid_hash(row, "shh") is True

    row.amount = Decimal("700001.00")
    assert verify_bid_hash(row, "shh") is False
