from fastapi import APIRouter
from demogen.api.routes_demos import router as demos_router
from demogen.api.routes_health import router as health_router

router = APIRouter()
router.include_router(health_router, tags=["health"])
router.include_router(demos_router, tags=["demos"])
