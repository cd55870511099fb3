from fastapi import APIRouter
from app.api.routes_health import router as health_router
from app.api.routes_resources import router as resources_router

router = APIRouter()
router.include_router(health_router, tags=["health"])
router.include_router(resources_router, tags=["resources"])
