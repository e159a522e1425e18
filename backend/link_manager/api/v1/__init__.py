"""API v1 router and endpoint organization."""

from fastapi import APIRouter

from link_manager.api.v1 import links

router = APIRouter(prefix="/api/v1", tags=["v1"])

router.include_router(links.router)
