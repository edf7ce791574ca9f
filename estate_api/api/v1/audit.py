from __future__ import annotations

import uuid
from datetime import datetime
from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from estate_api.core.auth_deps import get_current_principal
from estate_api.core.deps import get_optional_tenant_db, resolve_optional_tenant_id
from estate_api.policies.rbac import AUDIT_READER_ROLES, Principal, require_role
from estate_api.schemas.audit import AuditLogListResponse, serialize_audit_log
from estate_api.services.audit_service import AuditService

router = APIRouter(prefix="/audit-logs")


@router.get("", response_model=AuditLogListResponse)
def list_audit_logs(
    action: Optional[str] = None,
    created_from: Optional[datetime] = Query(default=None, alias="from"),
    created_to: Optional[datetime] = Query(default=None, alias="to"),
    limit: int = Query(default=100, ge=1, le=500),
    db: Session = Depends(get_optional_tenant_db),
    principal: Principal = Depends(get_current_principal),
    tenant_id: Optional[uuid.UUID] = Depends(resolve_optional_tenant_id),
):
    require_role(principal.role, AUDIT_READER_ROLES)

    rows = AuditService().list_for_tenant(
        db,
        tenant_id=tenant_id,
        action=action,
        created_from=created_from,
        created_to=created_to,
        limit=limit,
    )
    items = [serialize_audit_log(r) for r in rows]
    return AuditLogListResponse(items=items, count=len(items))
