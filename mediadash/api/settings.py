from typing import List

from fastapi import APIRouter, Depends, HTTPException, status

from mediadash.api.security import current_user
from mediadash.db import session_scope
from mediadash.models.schemas import LogLevel, SettingRead, SettingUpsert, UserRead
from mediadash.repositories.logs import LogRepository
from mediadash.repositories.settings import SettingsRepository

router = APIRouter(prefix="/settings", tags=["settings"], dependencies=[Depends(current_user)])


@router.get("", response_model=List[SettingRead])
async def list_settings() -> List[SettingRead]:
    with session_scope() as session:
        return SettingsRepository(session).list()


@router.get("/{key}", response_model=SettingRead)
async def get_setting(key: str) -> SettingRead:
    with session_scope() as session:
        setting = SettingsRepository(session).get(key)
        if setting is None:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Setting not found")
        return setting


@router.post("", response_model=SettingRead)
async def upsert_setting(payload: SettingUpsert, user: UserRead = Depends(current_user)) -> SettingRead:
    with session_scope() as session:
        setting = SettingsRepository(session).upsert(payload.key, payload.value, payload.description)
        LogRepository(session).create(
            level=LogLevel.info,
            message="System setting updated",
            details=f"Setting {setting.key} was updated",
            user_id=user.id,
        )
        return setting
