from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, Query, status

from mediadash.api.security import current_user
from mediadash.db import session_scope
from mediadash.models.schemas import LogLevel, SystemLogCreate, SystemLogRead, UserRead
from mediadash.repositories.downloads import DownloadRequestRepository
from mediadash.repositories.logs import LogRepository

router = APIRouter(prefix="/logs", tags=["logs"], dependencies=[Depends(current_user)])


@router.get("", response_model=List[SystemLogRead])
async def list_logs(
    limit: int = Query(100, ge=1, le=1000),
    level: Optional[LogLevel] = Query(None, description="Only return entries of this level."),
) -> List[SystemLogRead]:
    with session_scope() as session:
        return LogRepository(session).list(limit=limit, level=level)


@router.post("", response_model=SystemLogRead, status_code=status.HTTP_201_CREATED)
async def create_log(payload: SystemLogCreate, user: UserRead = Depends(current_user)) -> SystemLogRead:
    with session_scope() as session:
        if payload.request_id is not None and DownloadRequestRepository(session).get_entity(payload.request_id) is None:
            raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Unknown download request")
        return LogRepository(session).create(
            level=payload.level,
            message=payload.message,
            details=payload.details,
            user_id=user.id,
            request_id=payload.request_id,
            metadata=payload.metadata,
        )
