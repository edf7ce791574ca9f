from __future__ import annotations

import logging
import uuid
from dataclasses import dataclass, field
from datetime import datetime
from decimal import Decimal
from enum import Enum
from typing import Any, Dict, List, Optional

from sqlalchemy import select, desc
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from estate_api.models.audit_log import AuditLog

logger = logging.getLogger(__name__)


class AuditAction:
    # Bids
    BID_SUBMITTED = "BID_SUBMITTED"

    # Offer resolution
    BIDDING_CLOSED = "BIDDING_CLOSED"
    OFFER_ACCEPTED = "OFFER_ACCEPTED"

    # Listings
    PROPERTY_CREATED = "PROPERTY_CREATED"
    PROPERTY_UPDATED = "PROPERTY_UPDATED"
    PROPERTY_STATUS_CHANGED = "PROPERTY_STATUS_CHANGED"
    PROPERTY_PUBLISHED = "PROPERTY_PUBLISHED"
    PROPERTY_DELETED = "PROPERTY_DELETED"

    # Auth
    LOGIN_SUCCEEDED = "LOGIN_SUCCEEDED"


@dataclass
class AuditEvent:
    tenant_id: Optional[uuid.UUID]
    user_id: Optional[uuid.UUID]
    action: str
    entity: str
    entity_id: Optional[str] = None
    metadata: Dict[str, Any] = field(default_factory=dict)
    ip_address: Optional[str] = None
    request_id: Optional[str] = None


def _json_safe(value: Any) -> Any:
    """
    Convert metadata into a JSON-safe structure.
    """
    if isinstance(value, Decimal):
        return str(value)  # preserve precision
    if isinstance(value, uuid.UUID):
        return str(value)
    if isinstance(value, Enum):
        return value.value
    if isinstance(value, datetime):
        return value.isoformat()
    if isinstance(value, dict):
        return {k: _json_safe(v) for k, v in value.items()}
    if isinstance(value, (list, tuple)):
        return [_json_safe(v) for v in value]
    return value


class AuditService:
    def record(self, db: Session, event: AuditEvent) -> AuditLog:
        """
        Stage an audit row in the caller's transaction. Does not commit.
        """
        row = AuditLog(
            tenant_id=event.tenant_id,
            user_id=event.user_id,
            action=event.action,
            entity=event.entity,
            entity_id=event.entity_id,
            metadata_json=_json_safe(event.metadata or {}),
            ip_address=event.ip_address,
            request_id=event.request_id,
        )
        db.add(row)
        db.flush()
        return row

    def record_best_effort(self, db: Session, event: AuditEvent) -> Optional[AuditLog]:
        """
        Fire-and-forget variant: the row goes through a SAVEPOINT so a failing
        audit insert is rolled back on its own and never takes the parent
        operation down with it.
        """
        try:
            with db.begin_nested():
                return self.record(db, event)
        except SQLAlchemyError:
            logger.exception(
                "audit write failed",
                extra={
                    "action": event.action,
                    "entity": event.entity,
                    "entity_id": event.entity_id,
                    "tenant_id": str(event.tenant_id) if event.tenant_id else None,
                },
            )
            return None

    def list_for_tenant(
        self,
        db: Session,
        *,
        tenant_id: Optional[uuid.UUID],
        action: Optional[str] = None,
        created_from: Optional[datetime] = None,
        created_to: Optional[datetime] = None,
        limit: int = 200,
    ) -> List[AuditLog]:
        stmt = select(AuditLog)
        # tenant_id None = platform-wide view (SUPER_ADMIN without tenant header)
        if tenant_id is not None:
            stmt = stmt.where(AuditLog.tenant_id == tenant_id)
        if action:
            stmt = stmt.where(AuditLog.action == action)
        if created_from is not None:
            stmt = stmt.where(AuditLog.created_at >= created_from)
        if created_to is not None:
            stmt = stmt.where(AuditLog.created_at <= created_to)

        stmt = stmt.order_by(desc(AuditLog.created_at)).limit(limit)
        return list(db.execute(stmt).scalars().all())
