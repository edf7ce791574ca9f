from __future__ import annotations

import uuid
from typing import Optional

from pydantic import BaseModel, EmailStr, Field


class LoginRequest(BaseModel):
    email: EmailStr
    password: str = Field(..., min_length=1)
    tenantId: Optional[uuid.UUID] = Field(default=None, description="restrict login to one tenant")


class TokenResponse(BaseModel):
    access_token: str
    token_type: str = "bearer"
    expires_in: int


class MeResponse(BaseModel):
    userId: str
    tenantId: Optional[str] = None
    role: str
    email: str
