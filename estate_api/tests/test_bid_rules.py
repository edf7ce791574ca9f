from datetime import datetime, timedelta, timezone
from decimal import Decimal
from types import SimpleNamespace

import pytest

from estate_api.policies.bid_rules import (
    BelowMinimumOffer,
    BiddingClosed,
    InvalidBidAmount,
    MustExceedHighest,
    ensure_valid_amount,
    validate_bid_submission,
)

NOW = datetime(2026, 5, 1, 12, 0, 0, tzinfo=timezone.utc)


def make_property(mode="OPEN", minimum_offer=Decimal("700000"), deadline=None):
    return SimpleNamespace(
        bidding_mode=mode,
        minimum_offer=minimum_offer,
        bidding_deadline=deadline,
    )


def bid(amount):
    return SimpleNamespace(amount=Decimal(str(amount)))


def test_first_open_bid_at_floor_is_admissible():
    validate_bid_submission(
        property=make_property(), latest_bid=None, amount=Decimal("700000"), now=NOW
    )


def test_below_floor_rejected_with_generic_message():
    with pytest.raises(BelowMinimumOffer) as exc:
        validate_bid_submission(
            property=make_property(), latest_bid=None, amount=Decimal("699999"), now=NOW
        )
    assert exc.value.code == "BELOW_MINIMUM_OFFER"
    assert exc.value.status_code == 409
    assert "700000" not in exc.value.message


def test_open_equal_to_highest_rejected():
    with pytest.raises(MustExceedHighest):
        validate_bid_submission(
            property=make_property(), latest_bid=bid(700000), amount=Decimal("700000"), now=NOW
        )


def test_open_above_highest_accepted():
    validate_bid_submission(
        property=make_property(), latest_bid=bid(700000), amount=Decimal("700001"), now=NOW
    )


def test_sealed_skips_cross_bid_comparison():
    validate_bid_submission(
        property=make_property(mode="SEALED"),
        latest_bid=bid(900000),
        amount=Decimal("700000"),
        now=NOW,
    )


def test_no_floor_means_any_positive_amount():
    validate_bid_submission(
        property=make_property(minimum_offer=None), latest_bid=None, amount=Decimal("1"), now=NOW
    )


def test_deadline_passed_wins_over_other_rules():
    prop = make_property(deadline=NOW - timedelta(seconds=1))
    # would also fail the floor, but the deadline is checked first
    with pytest.raises(BiddingClosed) as exc:
        validate_bid_submission(property=prop, latest_bid=None, amount=Decimal("1"), now=NOW)
    assert exc.value.code == "BIDDING_CLOSED"


def test_bid_exactly_at_deadline_still_open():
    prop = make_property(deadline=NOW)
    validate_bid_submission(property=prop, latest_bid=None, amount=Decimal("700000"), now=NOW)


def test_naive_deadline_treated_as_utc():
    prop = make_property(deadline=(NOW - timedelta(minutes=1)).replace(tzinfo=None))
    with pytest.raises(BiddingClosed):
        validate_bid_submission(property=prop, latest_bid=None, amount=Decimal("800000"), now=NOW)


def test_floor_checked_before_highest():
    with pytest.raises(BelowMinimumOffer):
        validate_bid_submission(
            property=make_property(), latest_bid=bid(800000), amount=Decimal("600000"), now=NOW
        )


@pytest.mark.parametrize("amount", [Decimal("0"), Decimal("-5"), Decimal("NaN"), Decimal("Infinity")])
def test_non_positive_or_non_finite_amount_is_input_error(amount):
    with pytest.raises(InvalidBidAmount):
        validate_bid_submission(
            property=make_property(minimum_offer=None), latest_bid=None, amount=amount, now=NOW
        )


@pytest.mark.parametrize("amount", [Decimal("700000.004"), Decimal("700000.005"), Decimal("0.001")])
def test_sub_cent_amount_is_input_error(amount):
    with pytest.raises(InvalidBidAmount):
        ensure_valid_amount(amount)


def test_amount_is_canonicalised_to_cents():
    assert ensure_valid_amount(Decimal("700000")) == Decimal("700000.00")
    assert ensure_valid_amount("700000.000").as_tuple().exponent == -2
