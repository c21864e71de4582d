"""API route aggregation.

All routers registered here get mounted in main.py.

Learn: Guards are attached per route (Depends(protect) /
Depends(restrict_to(...))) rather than per router, because the
/users prefix mixes open routes (signup, login, reset) with
protected ones.
"""

from fastapi import APIRouter

from authflow.api.auth import router as auth_router
from authflow.api.health import router as health_router
from authflow.api.users import router as users_router

api_router = APIRouter(prefix="/api/v1")

api_router.include_router(health_router, tags=["health"])
api_router.include_router(auth_router, tags=["auth"])
api_router.include_router(users_router, tags=["users"])
