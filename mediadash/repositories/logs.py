from __future__ import annotations

import uuid
from typing import Any, Dict, List, Optional

from sqlmodel import Session, select

from mediadash.models.entities import SystemLog, User
from mediadash.models.schemas import LogLevel, SystemLogRead


class LogRepository:
    """Append-only access to the system audit log."""

    def __init__(self, session: Session) -> None:
        self.session = session

    def create(
        self,
        *,
        level: LogLevel,
        message: str,
        details: Optional[str] = None,
        user_id: Optional[uuid.UUID] = None,
        request_id: Optional[uuid.UUID] = None,
        metadata: Optional[Dict[str, Any]] = None,
    ) -> SystemLogRead:
        entry = SystemLog(
            level=level,
            message=message,
            details=details,
            user_id=user_id,
            request_id=request_id,
            log_metadata=metadata,
        )
        self.session.add(entry)
        self.session.commit()
        self.session.refresh(entry)
        return self._to_read(entry)

    def list(self, *, limit: int = 100, level: Optional[LogLevel] = None) -> List[SystemLogRead]:
        stmt = select(SystemLog, User.email).join(User, SystemLog.user_id == User.id, isouter=True)
        if level is not None:
            stmt = stmt.where(SystemLog.level == level)
        stmt = stmt.order_by(SystemLog.timestamp.desc()).limit(limit)
        return [self._to_read(entry, user_email=email) for entry, email in self.session.exec(stmt).all()]

    @staticmethod
    def _to_read(entry: SystemLog, *, user_email: Optional[str] = None) -> SystemLogRead:
        return SystemLogRead(
            id=entry.id,
            level=entry.level,
            message=entry.message,
            details=entry.details,
            user_id=entry.user_id,
            user_email=user_email,
            request_id=entry.request_id,
            timestamp=entry.timestamp,
            metadata=entry.log_metadata,
        )
