# routers/__init__.py

from fastapi import APIRouter

from .auth import router as auth_router
from .admin import router as admin_router
from .marketing_teams import router as marketing_teams_router
from .health import router as health_router


api_router = APIRouter()

api_router.include_router(auth_router)
api_router.include_router(admin_router)
api_router.include_router(marketing_teams_router)
api_router.include_router(health_router)
