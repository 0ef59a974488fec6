from __future__ import annotations

from datetime import datetime
from typing import Dict, List, Optional

from sqlmodel import Session, select

from mediadash.models.entities import SystemSetting
from mediadash.models.schemas import SettingRead


class SettingsRepository:
    """Repository for the key/value settings edited from the dashboard."""

    def __init__(self, session: Session) -> None:
        self.session = session

    def all(self) -> Dict[str, str]:
        rows = self.session.exec(select(SystemSetting)).all()
        return {row.key: row.value for row in rows}

    def list(self) -> List[SettingRead]:
        rows = self.session.exec(select(SystemSetting).order_by(SystemSetting.key)).all()
        return [self._to_read(row) for row in rows]

    def get(self, key: str) -> Optional[SettingRead]:
        setting = self._get_entity(key)
        return self._to_read(setting) if setting else None

    def upsert(self, key: str, value: str, description: Optional[str] = None) -> SettingRead:
        setting = self._get_entity(key)
        if setting is None:
            setting = SystemSetting(key=key, value=value, description=description)
        else:
            setting.value = value
            setting.description = description
        setting.updated_at = datetime.utcnow()
        self.session.add(setting)
        self.session.commit()
        self.session.refresh(setting)
        return self._to_read(setting)

    def _get_entity(self, key: str) -> Optional[SystemSetting]:
        return self.session.exec(select(SystemSetting).where(SystemSetting.key == key)).first()

    @staticmethod
    def _to_read(setting: SystemSetting) -> SettingRead:
        return SettingRead(
            id=setting.id,
            key=setting.key,
            value=setting.value,
            description=setting.description,
            updated_at=setting.updated_at,
        )
