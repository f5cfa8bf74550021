"""API v1 root router."""

from __future__ import annotations

from fastapi import APIRouter

from app.api.v1.bots import router as bots_router


router = APIRouter()
router.include_router(bots_router, prefix="/bots", tags=["bots"])
