# estate_api/core/deps.py
import uuid
from typing import Optional

from fastapi import Depends, Request
from sqlalchemy.orm import Session

from estate_api.core.auth_deps import get_current_principal
from estate_api.core.config import get_settings
from estate_api.core.exceptions import BadRequestError, ForbiddenError
from estate_api.db.session import bind_tenant_context, get_db
from estate_api.models.enums import Role
from estate_api.policies.rbac import Principal


def _header_tenant(request: Request) -> Optional[uuid.UUID]:
    raw = request.headers.get(get_settings().tenant_header)
    if not raw:
        return None
    try:
        return uuid.UUID(raw)
    except ValueError:
        raise BadRequestError(f"{get_settings().tenant_header} must be a UUID.")


def _resolve(request: Request, principal: Principal, *, required: bool) -> Optional[uuid.UUID]:
    header_tid = _header_tenant(request)

    if principal.role == Role.SUPER_ADMIN:
        # platform operators pick the tenant explicitly
        if header_tid is None and required:
            raise BadRequestError(
                f"Missing required scope: {get_settings().tenant_header}",
                code="TENANT_REQUIRED",
            )
        tenant_id = header_tid
    else:
        if header_tid is not None and header_tid != principal.tenant_id:
            raise ForbiddenError("Tenant header does not match session.", code="TENANT_MISMATCH")
        tenant_id = principal.tenant_id

    request.state.tenant_id = str(tenant_id) if tenant_id else None
    return tenant_id


def resolve_tenant_id(
    request: Request,
    principal: Principal = Depends(get_current_principal),
) -> uuid.UUID:
    """Tenant every query of this request is scoped to."""
    return _resolve(request, principal, required=True)


def resolve_optional_tenant_id(
    request: Request,
    principal: Principal = Depends(get_current_principal),
) -> Optional[uuid.UUID]:
    """Same as resolve_tenant_id, but SUPER_ADMIN may omit the header (platform-wide reads)."""
    return _resolve(request, principal, required=False)


def get_tenant_db(
    db: Session = Depends(get_db),
    principal: Principal = Depends(get_current_principal),
    tenant_id: uuid.UUID = Depends(resolve_tenant_id),
) -> Session:
    """
    Request session with the tenant already bound, so reads outside a
    tenant_transaction are filtered by the RLS policies as well.
    """
    bind_tenant_context(db, tenant_id=tenant_id, role=principal.role.value)
    return db


def get_optional_tenant_db(
    db: Session = Depends(get_db),
    principal: Principal = Depends(get_current_principal),
    tenant_id: Optional[uuid.UUID] = Depends(resolve_optional_tenant_id),
) -> Session:
    bind_tenant_context(db, tenant_id=tenant_id, role=principal.role.value)
    return db


def client_ip(request: Request) -> Optional[str]:
    fwd = request.headers.get("x-forwarded-for")
    if fwd:
        return fwd.split(",")[0].strip()
    return request.client.host if request.client else None


def request_id(request: Request) -> Optional[str]:
    return getattr(request.state, "request_id", None)
