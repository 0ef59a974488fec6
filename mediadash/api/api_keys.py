import uuid
from typing import List

from fastapi import APIRouter, Depends, HTTPException, status
from sqlmodel import Session

from mediadash.api.security import current_user
from mediadash.db import session_scope
from mediadash.models.entities import ApiKey
from mediadash.models.schemas import ApiKeyCreate, ApiKeyRead, ApiKeyUpdate, LogLevel, UserRead
from mediadash.repositories.api_keys import ApiKeyRepository
from mediadash.repositories.logs import LogRepository
from mediadash.services.runtime_config import load_runtime_config

router = APIRouter(dependencies=[Depends(current_user)])


def _ensure_self(user_id: uuid.UUID, user: UserRead) -> None:
    if user_id != user.id:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Unauthorized")


def _owned_key(session: Session, key_id: uuid.UUID, user: UserRead) -> ApiKey:
    entity = ApiKeyRepository(session).get_entity(key_id)
    if entity is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="API key not found")
    if entity.user_id != user.id:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Unauthorized")
    return entity


@router.get("/users/{user_id}/api-keys", response_model=List[ApiKeyRead])
async def list_api_keys(user_id: uuid.UUID, user: UserRead = Depends(current_user)) -> List[ApiKeyRead]:
    _ensure_self(user_id, user)
    with session_scope() as session:
        return ApiKeyRepository(session).list_for_user(user_id)


@router.post("/users/{user_id}/api-keys", response_model=ApiKeyRead, status_code=status.HTTP_201_CREATED)
async def create_api_key(
    user_id: uuid.UUID, payload: ApiKeyCreate, user: UserRead = Depends(current_user)
) -> ApiKeyRead:
    _ensure_self(user_id, user)
    with session_scope() as session:
        runtime = load_runtime_config(session)
        api_key = ApiKeyRepository(session).create(
            user_id=user_id,
            name=payload.name,
            request_limit=payload.request_limit or runtime.default_request_limit,
            is_active=payload.is_active,
        )
        LogRepository(session).create(
            level=LogLevel.info,
            message="API key created",
            details=f"User created new API key: {api_key.name}",
            user_id=user_id,
        )
        return api_key


@router.patch("/api-keys/{key_id}", response_model=ApiKeyRead)
async def update_api_key(key_id: uuid.UUID, payload: ApiKeyUpdate, user: UserRead = Depends(current_user)) -> ApiKeyRead:
    with session_scope() as session:
        _owned_key(session, key_id, user)
        api_key = ApiKeyRepository(session).update(
            key_id,
            name=payload.name,
            is_active=payload.is_active,
            request_limit=payload.request_limit,
        )
        assert api_key is not None
        LogRepository(session).create(
            level=LogLevel.info,
            message="API key updated",
            details=f"API key {key_id} was updated",
            user_id=user.id,
        )
        return api_key


@router.delete("/api-keys/{key_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_api_key(key_id: uuid.UUID, user: UserRead = Depends(current_user)) -> None:
    with session_scope() as session:
        _owned_key(session, key_id, user)
        ApiKeyRepository(session).delete(key_id)
        LogRepository(session).create(
            level=LogLevel.info,
            message="API key deleted",
            details=f"API key {key_id} was deleted",
            user_id=user.id,
        )
