"""API v1 routes."""

from fastapi import APIRouter

from app.api.v1 import actions, auth, config, health, incidents, users

router = APIRouter()
router.include_router(health.router, prefix="/health", tags=["health"])
router.include_router(auth.router, prefix="/auth", tags=["auth"])
router.include_router(users.router, prefix="/users", tags=["users"])
router.include_router(config.router, prefix="/config", tags=["config"])
router.include_router(incidents.router, prefix="/incidents", tags=["incidents"])
router.include_router(actions.router, prefix="/actions", tags=["actions"])
