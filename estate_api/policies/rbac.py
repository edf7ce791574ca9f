#estate_api/policies/rbac.py
from __future__ import annotations
from dataclasses import dataclass
import uuid
from typing import Iterable, Optional, Set

from estate_api.core.exceptions import ForbiddenError
from estate_api.models.enums import Role


@dataclass(frozen=True)
class Principal:
    user_id: uuid.UUID
    tenant_id: Optional[uuid.UUID]
    role: Role
    email: str


# --- Role groups ---
STAFF_ROLES: Set[Role] = {Role.TENANT_ADMIN, Role.AGENT}
OFFER_RESOLUTION_ROLES: Set[Role] = {Role.TENANT_ADMIN, Role.AGENT}
PROPERTY_DELETE_ROLES: Set[Role] = {Role.TENANT_ADMIN}
BIDDER_ROLES: Set[Role] = {Role.BUYER}
AUDIT_READER_ROLES: Set[Role] = {Role.TENANT_ADMIN, Role.AGENT, Role.SUPER_ADMIN}


def require_role(role: Role, allowed: Iterable[Role]) -> None:
    if role not in set(allowed):
        raise ForbiddenError("Insufficient role permissions")


def is_buyer(role: Role) -> bool:
    return role == Role.BUYER
