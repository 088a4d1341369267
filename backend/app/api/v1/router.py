"""API v1 root router."""

from __future__ import annotations

from fastapi import APIRouter

from app.api.v1.smart_contracts import router as smart_contracts_router
from app.api.v1.structures import router as structures_router
from app.api.v1.users import public_router as users_public_router
from app.api.v1.users import router as users_router


router = APIRouter()
router.include_router(users_public_router, prefix="/users", tags=["users"])
router.include_router(users_router, prefix="/users", tags=["users"])
router.include_router(structures_router, prefix="/structures", tags=["structures"])
router.include_router(smart_contracts_router, prefix="/smart-contracts", tags=["smart-contracts"])
