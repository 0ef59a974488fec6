from __future__ import annotations

import secrets
import uuid
from datetime import datetime, timedelta
from typing import Optional

from sqlalchemy import delete
from sqlmodel import Session, select

from mediadash.models.entities import AuthSession, User
from mediadash.models.schemas import UserRead


class UserRepository:
    """Repository for dashboard users and their server-side sessions."""

    def __init__(self, session: Session) -> None:
        self.session = session

    def get(self, user_id: uuid.UUID) -> Optional[UserRead]:
        user = self.session.get(User, user_id)
        return self._to_read(user) if user else None

    def upsert_by_email(
        self,
        email: str,
        *,
        first_name: Optional[str] = None,
        last_name: Optional[str] = None,
        profile_image_url: Optional[str] = None,
    ) -> UserRead:
        user = self.session.exec(select(User).where(User.email == email)).first()
        if user is None:
            user = User(email=email)
        # Only overwrite profile fields the caller actually supplied.
        if first_name is not None:
            user.first_name = first_name
        if last_name is not None:
            user.last_name = last_name
        if profile_image_url is not None:
            user.profile_image_url = profile_image_url
        user.updated_at = datetime.utcnow()
        self.session.add(user)
        self.session.commit()
        self.session.refresh(user)
        return self._to_read(user)

    # ---------------------------------------------------------------------
    # Sessions
    # ---------------------------------------------------------------------
    def open_session(self, user_id: uuid.UUID, *, ttl_seconds: int) -> str:
        sid = secrets.token_urlsafe(32)
        record = AuthSession(
            sid=sid,
            sess={"user_id": str(user_id)},
            expire=datetime.utcnow() + timedelta(seconds=ttl_seconds),
        )
        self.session.add(record)
        self.session.commit()
        return sid

    def resolve_session(self, sid: str) -> Optional[UserRead]:
        """Return the user behind a live session id, dropping it when expired."""
        record = self.session.get(AuthSession, sid)
        if record is None:
            return None
        if record.expire <= datetime.utcnow():
            self.session.delete(record)
            self.session.commit()
            return None
        raw_user_id = record.sess.get("user_id")
        if not raw_user_id:
            return None
        return self.get(uuid.UUID(raw_user_id))

    def close_session(self, sid: str) -> None:
        record = self.session.get(AuthSession, sid)
        if record is None:
            return
        self.session.delete(record)
        self.session.commit()

    def purge_expired_sessions(self) -> int:
        result = self.session.execute(delete(AuthSession).where(AuthSession.expire <= datetime.utcnow()))
        self.session.commit()
        return result.rowcount or 0

    @staticmethod
    def _to_read(user: User) -> UserRead:
        return UserRead(
            id=user.id,
            email=user.email,
            first_name=user.first_name,
            last_name=user.last_name,
            profile_image_url=user.profile_image_url,
            created_at=user.created_at,
            updated_at=user.updated_at,
        )
