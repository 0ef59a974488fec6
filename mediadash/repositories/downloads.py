from __future__ import annotations

import uuid
from datetime import datetime
from typing import Any, Dict, FrozenSet, List, Optional

from sqlmodel import Session, select

from mediadash.models.entities import DownloadRequest, User
from mediadash.models.schemas import DownloadRequestRead, DownloadStatus, Platform

ALLOWED_TRANSITIONS: Dict[DownloadStatus, FrozenSet[DownloadStatus]] = {
    DownloadStatus.pending: frozenset({DownloadStatus.in_progress}),
    DownloadStatus.in_progress: frozenset({DownloadStatus.completed, DownloadStatus.failed}),
    DownloadStatus.completed: frozenset(),
    DownloadStatus.failed: frozenset(),
}

# Fields a caller may overwrite through `update`; status goes through `transition`.
UPDATABLE_FIELDS = ("title", "progress", "file_name", "file_size", "file_path", "error_message")


class InvalidStatusTransition(Exception):
    """Raised when a download request is moved outside the lifecycle graph."""

    def __init__(self, current: DownloadStatus, requested: DownloadStatus) -> None:
        super().__init__(f"Cannot move download request from {current.value} to {requested.value}")
        self.current = current
        self.requested = requested


def can_transition(current: DownloadStatus, requested: DownloadStatus) -> bool:
    return requested in ALLOWED_TRANSITIONS[current]


class DownloadRequestRepository:
    """Repository encapsulating database operations for download requests."""

    def __init__(self, session: Session) -> None:
        self.session = session

    # ---------------------------------------------------------------------
    # CRUD helpers
    # ---------------------------------------------------------------------
    def create(
        self,
        *,
        user_id: uuid.UUID,
        url: str,
        platform: Platform,
        title: Optional[str] = None,
        api_key_id: Optional[uuid.UUID] = None,
        metadata: Optional[Dict[str, Any]] = None,
    ) -> DownloadRequestRead:
        now = datetime.utcnow()
        entity = DownloadRequest(
            user_id=user_id,
            api_key_id=api_key_id,
            url=url,
            title=title,
            platform=platform,
            status=DownloadStatus.pending,
            progress=0,
            platform_metadata=metadata,
            created_at=now,
            updated_at=now,
        )
        self.session.add(entity)
        self.session.commit()
        self.session.refresh(entity)
        return self._to_read(entity)

    def get(self, request_id: uuid.UUID) -> Optional[DownloadRequestRead]:
        entity = self.get_entity(request_id)
        if entity is None:
            return None
        return self._to_read(entity)

    def get_entity(self, request_id: uuid.UUID) -> Optional[DownloadRequest]:
        return self.session.exec(select(DownloadRequest).where(DownloadRequest.id == request_id)).first()

    def list(self, *, limit: int = 50, user_id: Optional[uuid.UUID] = None) -> List[DownloadRequestRead]:
        stmt = select(DownloadRequest, User.email).join(User, DownloadRequest.user_id == User.id, isouter=True)
        if user_id is not None:
            stmt = stmt.where(DownloadRequest.user_id == user_id)
        stmt = stmt.order_by(DownloadRequest.created_at.desc()).limit(limit)
        return [self._to_read(entity, user_email=email) for entity, email in self.session.exec(stmt).all()]

    def delete(self, request_id: uuid.UUID) -> None:
        entity = self.get_entity(request_id)
        if entity is None:
            return
        self.session.delete(entity)
        self.session.commit()

    def update(self, request_id: uuid.UUID, values: Dict[str, Any]) -> Optional[DownloadRequestRead]:
        entity = self.get_entity(request_id)
        if entity is None:
            return None

        for field in UPDATABLE_FIELDS:
            if field in values:
                setattr(entity, field, values[field])
        entity.updated_at = datetime.utcnow()

        self.session.add(entity)
        self.session.commit()
        self.session.refresh(entity)
        return self._to_read(entity)

    def update_progress(self, request_id: uuid.UUID, progress: int) -> Optional[DownloadRequestRead]:
        return self.update(request_id, {"progress": max(0, min(100, progress))})

    def transition(
        self,
        request_id: uuid.UUID,
        status: DownloadStatus,
        *,
        progress: Optional[int] = None,
        file_name: Optional[str] = None,
        file_path: Optional[str] = None,
        file_size: Optional[int] = None,
        error_message: Optional[str] = None,
    ) -> Optional[DownloadRequestRead]:
        entity = self.get_entity(request_id)
        if entity is None:
            return None
        if not can_transition(entity.status, status):
            raise InvalidStatusTransition(entity.status, status)

        entity.status = status
        if progress is not None:
            entity.progress = progress
        if file_name is not None:
            entity.file_name = file_name
        if file_path is not None:
            entity.file_path = file_path
        if file_size is not None:
            entity.file_size = file_size
        if error_message is not None:
            entity.error_message = error_message
        entity.updated_at = datetime.utcnow()

        self.session.add(entity)
        self.session.commit()
        self.session.refresh(entity)
        return self._to_read(entity)

    # ---------------------------------------------------------------------
    # Mapping helpers
    # ---------------------------------------------------------------------
    def _to_read(self, entity: DownloadRequest, *, user_email: Optional[str] = None) -> DownloadRequestRead:
        if user_email is None:
            owner = self.session.get(User, entity.user_id)
            user_email = owner.email if owner else None
        return DownloadRequestRead(
            id=entity.id,
            user_id=entity.user_id,
            user_email=user_email,
            api_key_id=entity.api_key_id,
            url=entity.url,
            title=entity.title,
            platform=entity.platform,
            status=entity.status,
            progress=entity.progress,
            file_size=entity.file_size,
            file_name=entity.file_name,
            file_path=entity.file_path,
            error_message=entity.error_message,
            metadata=entity.platform_metadata,
            created_at=entity.created_at,
            updated_at=entity.updated_at,
        )
