"""Versioned API for external consumers authenticated with user API keys."""

import uuid

from fastapi import APIRouter, Depends, HTTPException, Query, status

from mediadash.api.downloads import ensure_platform_enabled
from mediadash.api.search import SearchScope, run_search
from mediadash.api.security import require_api_key
from mediadash.db import session_scope
from mediadash.models.schemas import (
    ApiKeyRead,
    LogLevel,
    PublicDownloadAccepted,
    PublicDownloadCreate,
    PublicDownloadStatus,
    SearchResponse,
)
from mediadash.queue import enqueue_download
from mediadash.repositories.downloads import DownloadRequestRepository
from mediadash.repositories.logs import LogRepository
from mediadash.services.runtime_config import load_runtime_config

router = APIRouter(prefix="/v1", tags=["public"])


@router.post("/download", response_model=PublicDownloadAccepted, status_code=status.HTTP_202_ACCEPTED)
async def submit_download(
    payload: PublicDownloadCreate, api_key: ApiKeyRead = Depends(require_api_key)
) -> PublicDownloadAccepted:
    with session_scope() as session:
        runtime = load_runtime_config(session)
        ensure_platform_enabled(runtime, payload.platform)
        record = DownloadRequestRepository(session).create(
            user_id=api_key.user_id,
            api_key_id=api_key.id,
            url=payload.url,
            platform=payload.platform,
            title=payload.title,
        )
        LogRepository(session).create(
            level=LogLevel.info,
            message="API download request received",
            details=f"External API request for {payload.platform.value}: {payload.url}",
            user_id=api_key.user_id,
            request_id=record.id,
        )

    enqueue_download(record.id, job_timeout=runtime.download_timeout_seconds)
    return PublicDownloadAccepted(
        id=record.id,
        status=record.status,
        message="Download request queued successfully",
    )


@router.get("/download/{request_id}", response_model=PublicDownloadStatus)
async def download_status(
    request_id: uuid.UUID, api_key: ApiKeyRead = Depends(require_api_key)
) -> PublicDownloadStatus:
    with session_scope() as session:
        record = DownloadRequestRepository(session).get_entity(request_id)
        if record is None or record.user_id != api_key.user_id:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Download request not found")
        return PublicDownloadStatus(
            id=record.id,
            status=record.status,
            progress=record.progress,
            file_name=record.file_name,
            file_size=record.file_size,
            created_at=record.created_at,
            updated_at=record.updated_at,
        )


@router.get("/search", response_model=SearchResponse, dependencies=[Depends(require_api_key)])
async def search(
    q: str = Query(..., min_length=1),
    platform: SearchScope = Query(SearchScope.all),
) -> SearchResponse:
    return await run_search(q, platform)
