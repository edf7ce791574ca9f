import pytest

from estate_api.core.exceptions import InvalidStatusTransition
from estate_api.models.enums import PropertyStatus
from estate_api.policies.property_rules import validate_status_transition

S = PropertyStatus


@pytest.mark.parametrize(
    "current,target",
    [
        (S.DRAFT, S.LIVE),
        (S.LIVE, S.UNDER_OFFER),
        (S.UNDER_OFFER, S.SOLD),
        # self-loops are no-ops
        (S.DRAFT, S.DRAFT),
        (S.LIVE, S.LIVE),
        (S.UNDER_OFFER, S.UNDER_OFFER),
        (S.SOLD, S.SOLD),
    ],
)
def test_allowed_transitions(current, target):
    validate_status_transition(current, target)


@pytest.mark.parametrize(
    "current,target",
    [
        (S.DRAFT, S.UNDER_OFFER),
        (S.DRAFT, S.SOLD),
        (S.LIVE, S.DRAFT),
        (S.LIVE, S.SOLD),
        (S.UNDER_OFFER, S.LIVE),
        (S.SOLD, S.LIVE),
        (S.SOLD, S.DRAFT),
    ],
)
def test_rejected_transitions(current, target):
    with pytest.raises(InvalidStatusTransition) as exc:
        validate_status_transition(current, target)
    assert exc.value.code == "INVALID_STATUS_TRANSITION"
    assert exc.value.status_code == 409


def test_accepts_raw_strings():
    validate_status_transition("DRAFT", "LIVE")
    with pytest.raises(InvalidStatusTransition):
        validate_status_transition("SOLD", "UNDER_OFFER")
