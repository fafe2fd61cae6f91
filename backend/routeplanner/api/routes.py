from __future__ import annotations

from fastapi import APIRouter

from routeplanner.api.v1 import routes

router = APIRouter()
router.include_router(routes.router, prefix="/v1/routes", tags=["routes"])
