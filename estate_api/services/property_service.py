# estate_api/services/property_service.py
from __future__ import annotations

import logging
import uuid
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from sqlalchemy import select, desc
from sqlalchemy.orm import Session

from estate_api.core.exceptions import NotFoundError
from estate_api.db.session import tenant_transaction
from estate_api.models.enums import PropertyStatus, Role
from estate_api.models.property import Property
from estate_api.policies.property_rules import validate_status_transition
from estate_api.policies.rbac import (
    PROPERTY_DELETE_ROLES,
    STAFF_ROLES,
    Principal,
    is_buyer,
    require_role,
)
from estate_api.schemas.properties import PropertyCreateRequest, PropertyUpdateRequest
from estate_api.services.audit_service import AuditAction, AuditEvent, AuditService

logger = logging.getLogger(__name__)


def _now():
    return datetime.now(timezone.utc)


# request field -> column
_UPDATABLE_FIELDS = {
    "title": "title",
    "address": "address",
    "eircode": "eircode",
    "description": "description",
    "priceGuide": "price_guide",
    "minimumOffer": "minimum_offer",
    "biddingMode": "bidding_mode",
    "biddingDeadline": "bidding_deadline",
    "assignedAgentId": "assigned_agent_id",
    "minIncrement": "min_increment",
}


def scoped_property_stmt(tenant_id: uuid.UUID, property_id: uuid.UUID):
    """
    The only way listings are looked up by id: tenant and soft-delete filters
    are part of the query, so another tenant's row can never be returned.
    """
    return select(Property).where(
        Property.id == property_id,
        Property.tenant_id == tenant_id,
        Property.deleted_at.is_(None),
    )


def _enum_value(v: Any) -> Any:
    return getattr(v, "value", v)


class PropertyService:
    def __init__(self, audit: Optional[AuditService] = None):
        self.audit = audit or AuditService()

    # ---------------------------
    # READS
    # ---------------------------

    def get_property(
        self,
        db: Session,
        *,
        tenant_id: uuid.UUID,
        property_id: uuid.UUID,
        for_update: bool = False,
    ) -> Property:
        stmt = scoped_property_stmt(tenant_id, property_id)
        if for_update:
            stmt = stmt.with_for_update()
        prop = db.execute(stmt).scalar_one_or_none()
        if not prop:
            raise NotFoundError("Property")
        return prop

    def get_visible_property(
        self,
        db: Session,
        *,
        tenant_id: uuid.UUID,
        property_id: uuid.UUID,
        role: Role,
    ) -> Property:
        """
        Buyers only ever see LIVE listings; anything else looks like a 404 to them.
        """
        prop = self.get_property(db, tenant_id=tenant_id, property_id=property_id)
        if is_buyer(role) and prop.status != PropertyStatus.LIVE.value:
            raise NotFoundError("Property")
        return prop

    def list_properties(
        self,
        db: Session,
        *,
        tenant_id: uuid.UUID,
        role: Role,
        status: Optional[PropertyStatus] = None,
    ) -> List[Property]:
        stmt = select(Property).where(
            Property.tenant_id == tenant_id,
            Property.deleted_at.is_(None),
        )
        if is_buyer(role):
            stmt = stmt.where(Property.status == PropertyStatus.LIVE.value)
        elif status is not None:
            stmt = stmt.where(Property.status == status.value)

        stmt = stmt.order_by(desc(Property.created_at))
        return list(db.execute(stmt).scalars().all())

    # ---------------------------
    # MUTATIONS
    # ---------------------------

    def create_property(
        self,
        db: Session,
        *,
        tenant_id: uuid.UUID,
        actor: Principal,
        req: PropertyCreateRequest,
        ip_address: Optional[str] = None,
        request_id: Optional[str] = None,
    ) -> Property:
        require_role(actor.role, STAFF_ROLES)

        with tenant_transaction(db, tenant_id=tenant_id, role=actor.role.value):
            prop = Property(
                tenant_id=tenant_id,
                title=req.title,
                address=req.address,
                eircode=req.eircode,
                description=req.description,
                price_guide=req.priceGuide,
                minimum_offer=req.minimumOffer,
                status=req.status.value,
                bidding_mode=req.biddingMode.value,
                bidding_deadline=req.biddingDeadline,
                min_increment=req.minIncrement,
                created_by_id=actor.user_id,
                assigned_agent_id=req.assignedAgentId,
            )
            db.add(prop)
            db.flush()

            self.audit.record(
                db,
                AuditEvent(
                    tenant_id=tenant_id,
                    user_id=actor.user_id,
                    action=AuditAction.PROPERTY_CREATED,
                    entity="Property",
                    entity_id=str(prop.id),
                    ip_address=ip_address,
                    request_id=request_id,
                ),
            )

        db.refresh(prop)
        logger.info(
            "property created",
            extra={"tenant_id": str(tenant_id), "property_id": str(prop.id), "status": prop.status},
        )
        return prop

    def update_property(
        self,
        db: Session,
        *,
        tenant_id: uuid.UUID,
        property_id: uuid.UUID,
        actor: Principal,
        req: PropertyUpdateRequest,
        ip_address: Optional[str] = None,
        request_id: Optional[str] = None,
    ) -> Property:
        require_role(actor.role, STAFF_ROLES)

        provided = req.model_fields_set
        with tenant_transaction(db, tenant_id=tenant_id, role=actor.role.value):
            prop = self.get_property(
                db, tenant_id=tenant_id, property_id=property_id, for_update=True
            )
            previous_status = prop.status

            if "status" in provided and req.status is not None:
                validate_status_transition(prop.status, req.status)
                prop.status = req.status.value

            for field_name, column in _UPDATABLE_FIELDS.items():
                if field_name not in provided:
                    continue
                value = getattr(req, field_name)
                # only these may be cleared explicitly
                if value is None and column not in {"minimum_offer", "eircode", "assigned_agent_id", "bidding_deadline"}:
                    continue
                setattr(prop, column, _enum_value(value))

            status_changed = prop.status != previous_status
            details: Dict[str, Any] = {}
            if status_changed:
                details = {"from": previous_status, "to": prop.status}

            self.audit.record(
                db,
                AuditEvent(
                    tenant_id=tenant_id,
                    user_id=actor.user_id,
                    action=(
                        AuditAction.PROPERTY_STATUS_CHANGED
                        if status_changed
                        else AuditAction.PROPERTY_UPDATED
                    ),
                    entity="Property",
                    entity_id=str(property_id),
                    metadata=details,
                    ip_address=ip_address,
                    request_id=request_id,
                ),
            )

        db.refresh(prop)
        return prop

    def publish_property(
        self,
        db: Session,
        *,
        tenant_id: uuid.UUID,
        property_id: uuid.UUID,
        actor: Principal,
        ip_address: Optional[str] = None,
        request_id: Optional[str] = None,
    ) -> Property:
        """
        DRAFT -> LIVE. Already LIVE is a no-op; later states are rejected by the
        transition table. The audit row is best-effort.
        """
        require_role(actor.role, STAFF_ROLES)

        with tenant_transaction(db, tenant_id=tenant_id, role=actor.role.value):
            prop = self.get_property(
                db, tenant_id=tenant_id, property_id=property_id, for_update=True
            )
            validate_status_transition(prop.status, PropertyStatus.LIVE)
            prop.status = PropertyStatus.LIVE.value

            self.audit.record_best_effort(
                db,
                AuditEvent(
                    tenant_id=tenant_id,
                    user_id=actor.user_id,
                    action=AuditAction.PROPERTY_PUBLISHED,
                    entity="Property",
                    entity_id=str(property_id),
                    ip_address=ip_address,
                    request_id=request_id,
                ),
            )

        db.refresh(prop)
        return prop

    def delete_property(
        self,
        db: Session,
        *,
        tenant_id: uuid.UUID,
        property_id: uuid.UUID,
        actor: Principal,
        ip_address: Optional[str] = None,
        request_id: Optional[str] = None,
    ) -> Property:
        """
        Soft delete. Bids stay untouched (historical integrity is permanent).
        """
        require_role(actor.role, PROPERTY_DELETE_ROLES)

        with tenant_transaction(db, tenant_id=tenant_id, role=actor.role.value):
            prop = self.get_property(
                db, tenant_id=tenant_id, property_id=property_id, for_update=True
            )
            prop.deleted_at = _now()

            self.audit.record(
                db,
                AuditEvent(
                    tenant_id=tenant_id,
                    user_id=actor.user_id,
                    action=AuditAction.PROPERTY_DELETED,
                    entity="Property",
                    entity_id=str(property_id),
                    ip_address=ip_address,
                    request_id=request_id,
                ),
            )

        db.refresh(prop)
        return prop
