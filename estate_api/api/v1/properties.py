# estate_api/api/v1/properties.py
from __future__ import annotations

import uuid
from typing import Optional

from fastapi import APIRouter, Depends, Request, Response
from sqlalchemy.orm import Session

from estate_api.core.auth_deps import get_current_principal
from estate_api.core.deps import client_ip, get_tenant_db, request_id, resolve_tenant_id
from estate_api.models.enums import PropertyStatus
from estate_api.policies.rbac import Principal
from estate_api.schemas.properties import (
    PropertyCreateRequest,
    PropertyUpdateRequest,
    serialize_property,
)
from estate_api.services.property_service import PropertyService

router = APIRouter(prefix="/properties")

# No response_model on these routes: the projection is picked per caller and
# returned as the concrete model, so a BUYER response never has a
# minimumOffer key at all (not even null).


# ─────────────────────────────────────────────────────────────
# READS
# ─────────────────────────────────────────────────────────────

@router.get("")
def list_properties(
    status: Optional[PropertyStatus] = None,
    db: Session = Depends(get_tenant_db),
    principal: Principal = Depends(get_current_principal),
    tenant_id: uuid.UUID = Depends(resolve_tenant_id),
):
    props = PropertyService().list_properties(
        db, tenant_id=tenant_id, role=principal.role, status=status
    )
    return [serialize_property(p, principal.role) for p in props]


@router.get("/{property_id}")
def get_property(
    property_id: uuid.UUID,
    db: Session = Depends(get_tenant_db),
    principal: Principal = Depends(get_current_principal),
    tenant_id: uuid.UUID = Depends(resolve_tenant_id),
):
    prop = PropertyService().get_visible_property(
        db, tenant_id=tenant_id, property_id=property_id, role=principal.role
    )
    return serialize_property(prop, principal.role)


# ─────────────────────────────────────────────────────────────
# MUTATIONS (staff)
# ─────────────────────────────────────────────────────────────

@router.post("", status_code=201)
def create_property(
    req: PropertyCreateRequest,
    request: Request,
    db: Session = Depends(get_tenant_db),
    principal: Principal = Depends(get_current_principal),
    tenant_id: uuid.UUID = Depends(resolve_tenant_id),
):
    prop = PropertyService().create_property(
        db,
        tenant_id=tenant_id,
        actor=principal,
        req=req,
        ip_address=client_ip(request),
        request_id=request_id(request),
    )
    return serialize_property(prop, principal.role)


@router.put("/{property_id}")
def update_property(
    property_id: uuid.UUID,
    req: PropertyUpdateRequest,
    request: Request,
    db: Session = Depends(get_tenant_db),
    principal: Principal = Depends(get_current_principal),
    tenant_id: uuid.UUID = Depends(resolve_tenant_id),
):
    prop = PropertyService().update_property(
        db,
        tenant_id=tenant_id,
        property_id=property_id,
        actor=principal,
        req=req,
        ip_address=client_ip(request),
        request_id=request_id(request),
    )
    return serialize_property(prop, principal.role)


@router.post("/{property_id}/publish")
def publish_property(
    property_id: uuid.UUID,
    request: Request,
    db: Session = Depends(get_tenant_db),
    principal: Principal = Depends(get_current_principal),
    tenant_id: uuid.UUID = Depends(resolve_tenant_id),
):
    prop = PropertyService().publish_property(
        db,
        tenant_id=tenant_id,
        property_id=property_id,
        actor=principal,
        ip_address=client_ip(request),
        request_id=request_id(request),
    )
    return serialize_property(prop, principal.role)


@router.delete("/{property_id}", status_code=204)
def delete_property(
    property_id: uuid.UUID,
    request: Request,
    db: Session = Depends(get_tenant_db),
    principal: Principal = Depends(get_current_principal),
    tenant_id: uuid.UUID = Depends(resolve_tenant_id),
):
    PropertyService().delete_property(
        db,
        tenant_id=tenant_id,
        property_id=property_id,
        actor=principal,
        ip_address=client_ip(request),
        request_id=request_id(request),
    )
    return Response(status_code=204)
