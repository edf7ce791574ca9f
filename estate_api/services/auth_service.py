# estate_api/services/auth_service.py
from __future__ import annotations

import logging
import uuid
from typing import Optional

from sqlalchemy import select
from sqlalchemy.orm import Session

from estate_api.core.security import verify_password
from estate_api.models.enums import Role
from estate_api.models.user import User
from estate_api.policies.rbac import Principal

logger = logging.getLogger(__name__)


def authenticate(
    db: Session,
    email: str,
    password: str,
    tenant_id: Optional[uuid.UUID] = None,
) -> Optional[Principal]:
    """
    Email/password check. When `tenant_id` is given the account must belong
    to that tenant. Unknown email and wrong password look the same to callers.
    """
    stmt = select(User).where(User.email == email.strip().lower(), User.is_active.is_(True))
    if tenant_id is not None:
        stmt = stmt.where(User.tenant_id == tenant_id)

    user = db.execute(stmt).scalar_one_or_none()
    if not user:
        return None

    if not verify_password(password, user.password_hash):
        logger.info("login rejected", extra={"user_id": str(user.id)})
        return None

    return Principal(
        user_id=user.id,
        tenant_id=user.tenant_id,
        role=Role(user.role),
        email=user.email,
    )
