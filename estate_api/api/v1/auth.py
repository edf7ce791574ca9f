#estate_api/api/v1/auth.py
from __future__ import annotations

from fastapi import APIRouter, Depends, Request
from sqlalchemy.orm import Session

from estate_api.core.auth_deps import get_current_principal
from estate_api.core.config import get_settings
from estate_api.core.deps import client_ip, request_id
from estate_api.core.exceptions import UnauthorizedError
from estate_api.core.security import issue_access_token
from estate_api.db.session import get_db, tenant_transaction
from estate_api.policies.rbac import Principal
from estate_api.schemas.auth import LoginRequest, MeResponse, TokenResponse
from estate_api.services.audit_service import AuditAction, AuditEvent, AuditService
from estate_api.services.auth_service import authenticate

router = APIRouter(prefix="/auth")


@router.post("/login", response_model=TokenResponse)
def login(req: LoginRequest, request: Request, db: Session = Depends(get_db)):
    principal = authenticate(db, req.email, req.password, tenant_id=req.tenantId)
    if not principal:
        raise UnauthorizedError("Invalid credentials.")

    with tenant_transaction(db, tenant_id=principal.tenant_id, role=principal.role.value):
        AuditService().record_best_effort(
            db,
            AuditEvent(
                tenant_id=principal.tenant_id,
                user_id=principal.user_id,
                action=AuditAction.LOGIN_SUCCEEDED,
                entity="User",
                entity_id=str(principal.user_id),
                ip_address=client_ip(request),
                request_id=request_id(request),
            ),
        )

    minutes = get_settings().jwt_access_token_minutes
    token = issue_access_token(
        user_id=str(principal.user_id),
        tenant_id=str(principal.tenant_id) if principal.tenant_id else None,
        role=principal.role.value,
        email=principal.email,
        expires_minutes=minutes,
    )
    return TokenResponse(access_token=token, expires_in=minutes * 60)


@router.get("/me", response_model=MeResponse)
def get_me(principal: Principal = Depends(get_current_principal)):
    return MeResponse(
        userId=str(principal.user_id),
        tenantId=str(principal.tenant_id) if principal.tenant_id else None,
        role=principal.role.value,
        email=principal.email,
    )
