from __future__ import annotations

import secrets
import uuid
from datetime import datetime
from typing import List, Optional

from sqlalchemy import update
from sqlmodel import Session, select

from mediadash.models.entities import ApiKey
from mediadash.models.schemas import ApiKeyRead


def generate_key_secret() -> str:
    return f"sk-{secrets.token_hex(32)}"


class ApiKeyRepository:
    """Repository for user API keys and their usage counters."""

    def __init__(self, session: Session) -> None:
        self.session = session

    def create(self, *, user_id: uuid.UUID, name: str, request_limit: int, is_active: bool = True) -> ApiKeyRead:
        entity = ApiKey(
            user_id=user_id,
            key=generate_key_secret(),
            name=name,
            is_active=is_active,
            request_limit=request_limit,
        )
        self.session.add(entity)
        self.session.commit()
        self.session.refresh(entity)
        return self._to_read(entity)

    def list_for_user(self, user_id: uuid.UUID) -> List[ApiKeyRead]:
        stmt = select(ApiKey).where(ApiKey.user_id == user_id).order_by(ApiKey.created_at.desc())
        return [self._to_read(entity) for entity in self.session.exec(stmt).all()]

    def get_entity(self, key_id: uuid.UUID) -> Optional[ApiKey]:
        return self.session.get(ApiKey, key_id)

    def get_active_by_secret(self, secret: str) -> Optional[ApiKeyRead]:
        stmt = select(ApiKey).where(ApiKey.key == secret).where(ApiKey.is_active == True)  # noqa: E712
        entity = self.session.exec(stmt).first()
        return self._to_read(entity) if entity else None

    def update(
        self,
        key_id: uuid.UUID,
        *,
        name: Optional[str] = None,
        is_active: Optional[bool] = None,
        request_limit: Optional[int] = None,
    ) -> Optional[ApiKeyRead]:
        entity = self.get_entity(key_id)
        if entity is None:
            return None
        if name is not None:
            entity.name = name
        if is_active is not None:
            entity.is_active = is_active
        if request_limit is not None:
            entity.request_limit = request_limit
        self.session.add(entity)
        self.session.commit()
        self.session.refresh(entity)
        return self._to_read(entity)

    def delete(self, key_id: uuid.UUID) -> None:
        entity = self.get_entity(key_id)
        if entity is None:
            return
        self.session.delete(entity)
        self.session.commit()

    def consume_request(self, key_id: uuid.UUID) -> bool:
        """Count one external call against the key.

        The limit check and the increment happen in a single UPDATE so that
        concurrent callers cannot push `request_count` past `request_limit`.
        Returns False when the key has no requests left.
        """
        stmt = (
            update(ApiKey)
            .where(ApiKey.id == key_id)
            .where(ApiKey.request_count < ApiKey.request_limit)
            .values(request_count=ApiKey.request_count + 1, last_used_at=datetime.utcnow())
        )
        result = self.session.execute(stmt)
        self.session.commit()
        return result.rowcount == 1

    @staticmethod
    def _to_read(entity: ApiKey) -> ApiKeyRead:
        return ApiKeyRead(
            id=entity.id,
            user_id=entity.user_id,
            key=entity.key,
            name=entity.name,
            is_active=entity.is_active,
            request_count=entity.request_count,
            request_limit=entity.request_limit,
            last_used_at=entity.last_used_at,
            created_at=entity.created_at,
        )
