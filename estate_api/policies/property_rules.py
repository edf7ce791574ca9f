# estate_api/policies/property_rules.py
from estate_api.core.exceptions import InvalidStatusTransition
from estate_api.models.enums import PropertyStatus

# One-directional lifecycle; every state may "transition" to itself as a no-op.
ALLOWED_STATUS_TRANSITIONS = {
    PropertyStatus.DRAFT: {
        PropertyStatus.DRAFT,
        PropertyStatus.LIVE,
    },

    PropertyStatus.LIVE: {
        PropertyStatus.LIVE,
        PropertyStatus.UNDER_OFFER,
    },

    PropertyStatus.UNDER_OFFER: {
        PropertyStatus.UNDER_OFFER,
        PropertyStatus.SOLD,
    },

    PropertyStatus.SOLD: {
        PropertyStatus.SOLD,
    },
}

# Statuses on which offer resolution (close bidding / accept offer) may act
OFFER_RESOLVABLE_STATUSES = {PropertyStatus.LIVE, PropertyStatus.UNDER_OFFER}


def validate_status_transition(current, target) -> None:
    current = PropertyStatus(current)
    target = PropertyStatus(target)
    if target in ALLOWED_STATUS_TRANSITIONS[current]:
        return
    raise InvalidStatusTransition(current.value, target.value)
