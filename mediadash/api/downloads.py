import logging
import uuid
from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, Query, status

from mediadash.api.security import current_user
from mediadash.db import session_scope
from mediadash.models import DownloadRequestCreate, DownloadRequestRead, DownloadStatus
from mediadash.models.schemas import DownloadRequestUpdate, LogLevel, Platform, UserRead
from mediadash.queue import enqueue_download
from mediadash.repositories.api_keys import ApiKeyRepository
from mediadash.repositories.downloads import DownloadRequestRepository, InvalidStatusTransition
from mediadash.repositories.logs import LogRepository
from mediadash.services.runtime_config import RuntimeConfig, load_runtime_config

logger = logging.getLogger(__name__)

router = APIRouter(dependencies=[Depends(current_user)])


def ensure_platform_enabled(runtime: RuntimeConfig, platform: Platform) -> None:
    if not runtime.platform_enabled(platform):
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"Downloads from {platform.value} are disabled",
        )


@router.get("", response_model=List[DownloadRequestRead])
async def list_download_requests(
    limit: int = Query(50, ge=1, le=1000),
    user_id: Optional[uuid.UUID] = Query(None, description="Only return requests owned by this user."),
) -> List[DownloadRequestRead]:
    with session_scope() as session:
        return DownloadRequestRepository(session).list(limit=limit, user_id=user_id)


@router.get("/{request_id}", response_model=DownloadRequestRead)
async def get_download_request(request_id: uuid.UUID) -> DownloadRequestRead:
    with session_scope() as session:
        record = DownloadRequestRepository(session).get(request_id)
        if record is None:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Download request not found")
        return record


@router.post("", response_model=DownloadRequestRead, status_code=status.HTTP_201_CREATED)
async def create_download_request(
    payload: DownloadRequestCreate, user: UserRead = Depends(current_user)
) -> DownloadRequestRead:
    with session_scope() as session:
        runtime = load_runtime_config(session)
        ensure_platform_enabled(runtime, payload.platform)
        if payload.api_key_id is not None:
            key = ApiKeyRepository(session).get_entity(payload.api_key_id)
            if key is None or key.user_id != user.id:
                raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Unknown API key")

        record = DownloadRequestRepository(session).create(
            user_id=user.id,
            url=payload.url,
            platform=payload.platform,
            title=payload.title,
            api_key_id=payload.api_key_id,
            metadata=payload.metadata,
        )
        LogRepository(session).create(
            level=LogLevel.info,
            message="Download request created",
            details=f"New download request for {record.platform.value}: {record.url}",
            user_id=user.id,
            request_id=record.id,
        )

    enqueue_download(record.id, job_timeout=runtime.download_timeout_seconds)
    logger.info("Queued download request %s for %s", record.id, record.platform.value)
    return record


@router.patch("/{request_id}", response_model=DownloadRequestRead)
async def update_download_request(
    request_id: uuid.UUID, payload: DownloadRequestUpdate, user: UserRead = Depends(current_user)
) -> DownloadRequestRead:
    with session_scope() as session:
        repo = DownloadRequestRepository(session)
        if repo.get_entity(request_id) is None:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Download request not found")

        values = payload.dict(exclude_unset=True)
        new_status = values.pop("status", None)
        if new_status is not None:
            try:
                repo.transition(request_id, new_status)
            except InvalidStatusTransition as exc:
                raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(exc)) from exc
        record = repo.update(request_id, values)
        assert record is not None

        LogRepository(session).create(
            level=LogLevel.info,
            message="Download request updated",
            details=f"Download request {request_id} status: {record.status.value}",
            user_id=user.id,
            request_id=request_id,
        )
        return record


@router.delete("/{request_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_download_request(request_id: uuid.UUID, user: UserRead = Depends(current_user)) -> None:
    with session_scope() as session:
        repo = DownloadRequestRepository(session)
        entity = repo.get_entity(request_id)
        if entity is None:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Download request not found")
        if entity.status == DownloadStatus.in_progress:
            raise HTTPException(
                status_code=status.HTTP_409_CONFLICT,
                detail="Active downloads cannot be deleted.",
            )
        repo.delete(request_id)
        LogRepository(session).create(
            level=LogLevel.info,
            message="Download request deleted",
            details=f"Download request {request_id} was deleted",
            user_id=user.id,
        )
