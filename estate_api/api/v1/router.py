from fastapi import APIRouter

from estate_api.api.v1.health import router as health_router
from estate_api.api.v1.auth import router as auth_router
from estate_api.api.v1.audit import router as audit_router
from estate_api.api.v1.properties import router as properties_router
from estate_api.api.v1.bids import router as bids_router


v1_router = APIRouter()

# ------------------------------------------------------------------
# SYSTEM / CORE
# ------------------------------------------------------------------
v1_router.include_router(health_router, tags=["health"])
v1_router.include_router(auth_router, tags=["auth"])
v1_router.include_router(audit_router, tags=["audit"])

# ------------------------------------------------------------------
# LISTINGS / BIDDING
# ------------------------------------------------------------------
v1_router.include_router(properties_router, tags=["properties"])
v1_router.include_router(bids_router, tags=["bids"])
