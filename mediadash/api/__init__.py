"""FastAPI routers for the media download dashboard."""

from fastapi import APIRouter

from .api_keys import router as api_keys_router
from .auth import router as auth_router
from .downloads import router as downloads_router
from .logs import router as logs_router
from .public import router as public_router
from .search import router as search_router
from .settings import router as settings_router
from .stats import router as stats_router

api_router = APIRouter(prefix="/api")
api_router.include_router(auth_router, tags=["auth"])
api_router.include_router(api_keys_router, tags=["api-keys"])
api_router.include_router(downloads_router, prefix="/download-requests", tags=["downloads"])
api_router.include_router(logs_router)
api_router.include_router(settings_router)
api_router.include_router(stats_router)
api_router.include_router(search_router)
api_router.include_router(public_router)
