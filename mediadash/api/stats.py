from fastapi import APIRouter, Depends

from mediadash.api.security import current_user
from mediadash.db import session_scope
from mediadash.models.schemas import DownloadStats, StorageStats, UserStats
from mediadash.repositories.stats import StatsRepository
from mediadash.services.runtime_config import load_runtime_config

router = APIRouter(prefix="/stats", tags=["stats"], dependencies=[Depends(current_user)])


@router.get("/users", response_model=UserStats)
async def user_stats() -> UserStats:
    with session_scope() as session:
        return StatsRepository(session).user_stats()


@router.get("/downloads", response_model=DownloadStats)
async def download_stats() -> DownloadStats:
    with session_scope() as session:
        return StatsRepository(session).download_stats()


@router.get("/storage", response_model=StorageStats)
async def storage_stats() -> StorageStats:
    with session_scope() as session:
        runtime = load_runtime_config(session)
        return StatsRepository(session).storage_stats(cleanup_days=runtime.cleanup_days)
