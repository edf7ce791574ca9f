from __future__ import annotations

from datetime import datetime
from typing import Any, Dict, List, Optional

from pydantic import BaseModel

from estate_api.models.audit_log import AuditLog


class AuditLogEntry(BaseModel):
    id: str
    tenantId: Optional[str] = None
    userId: Optional[str] = None
    action: str
    entity: str
    entityId: Optional[str] = None
    metadata: Dict[str, Any] = {}
    ipAddress: Optional[str] = None
    requestId: Optional[str] = None
    createdAt: Optional[datetime] = None


class AuditLogListResponse(BaseModel):
    items: List[AuditLogEntry]
    count: int


def serialize_audit_log(row: AuditLog) -> AuditLogEntry:
    return AuditLogEntry(
        id=str(row.id),
        tenantId=str(row.tenant_id) if row.tenant_id else None,
        userId=str(row.user_id) if row.user_id else None,
        action=row.action,
        entity=row.entity,
        entityId=row.entity_id,
        metadata=row.metadata_json or {},
        ipAddress=row.ip_address,
        requestId=row.request_id,
        createdAt=row.created_at,
    )
