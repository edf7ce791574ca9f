from __future__ import annotations
from enum import Enum


class Role(str, Enum):
    SUPER_ADMIN = "SUPER_ADMIN"
    TENANT_ADMIN = "TENANT_ADMIN"
    AGENT = "AGENT"
    BUYER = "BUYER"


class PropertyStatus(str, Enum):
    DRAFT = "DRAFT"
    LIVE = "LIVE"
    UNDER_OFFER = "UNDER_OFFER"
    SOLD = "SOLD"


class BiddingMode(str, Enum):
    OPEN = "OPEN"
    SEALED = "SEALED"
