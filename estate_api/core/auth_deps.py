#estate_api/core/auth_deps.py
from __future__ import annotations

import uuid
from typing import Optional

from fastapi import Depends, Request
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from jose import JWTError

from estate_api.core.exceptions import UnauthorizedError
from estate_api.core.security import decode_access_token
from estate_api.models.enums import Role
from estate_api.policies.rbac import Principal

# auto_error=False: a missing header must render our 401 body, not FastAPI's 403
bearer = HTTPBearer(auto_error=False)


def _parse_uuid(raw, claim: str) -> uuid.UUID:
    try:
        return uuid.UUID(str(raw))
    except (TypeError, ValueError):
        raise UnauthorizedError(f"Invalid {claim} claim in token.")


def get_current_principal(
    request: Request,
    creds: Optional[HTTPAuthorizationCredentials] = Depends(bearer),
) -> Principal:
    """
    Canonical authentication dependency.

    Guarantees:
    - JWT signature and expiry are valid
    - sub and role are present; role is a known Role
    - every role except SUPER_ADMIN carries a tenant_id
    """
    if creds is None or not creds.credentials:
        raise UnauthorizedError()

    try:
        payload = decode_access_token(creds.credentials)
    except JWTError:
        raise UnauthorizedError("Invalid or expired token.")

    sub = payload.get("sub")
    role = payload.get("role")
    if not sub or not role:
        raise UnauthorizedError("Token missing required claims.")

    try:
        role_enum = Role(role)
    except ValueError:
        raise UnauthorizedError("Invalid role in token.")

    tenant_raw = payload.get("tenant_id")
    if tenant_raw is None and role_enum != Role.SUPER_ADMIN:
        raise UnauthorizedError("Token missing tenant_id claim.")

    principal = Principal(
        user_id=_parse_uuid(sub, "sub"),
        tenant_id=_parse_uuid(tenant_raw, "tenant_id") if tenant_raw is not None else None,
        role=role_enum,
        email=str(payload.get("email") or ""),
    )

    request.state.principal = principal
    return principal
