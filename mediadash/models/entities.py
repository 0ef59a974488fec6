import uuid
from datetime import datetime
from typing import Any, Dict, Optional

from sqlalchemy import JSON, Column, Enum as SAEnum, String, Text
from sqlmodel import Field, SQLModel

from mediadash.models.schemas import DownloadStatus, LogLevel, Platform


class User(SQLModel, table=True):
    """Dashboard identity; owns API keys, download requests and logs."""

    __tablename__ = "users"

    id: uuid.UUID = Field(default_factory=uuid.uuid4, primary_key=True)
    email: Optional[str] = Field(default=None, sa_column=Column(String(255), unique=True, nullable=True))
    first_name: Optional[str] = Field(default=None, nullable=True)
    last_name: Optional[str] = Field(default=None, nullable=True)
    profile_image_url: Optional[str] = Field(default=None, nullable=True)
    created_at: datetime = Field(default_factory=datetime.utcnow, nullable=False)
    updated_at: datetime = Field(default_factory=datetime.utcnow, nullable=False)


class AuthSession(SQLModel, table=True):
    """Server-side dashboard session referenced by the session cookie."""

    __tablename__ = "sessions"

    sid: str = Field(primary_key=True, max_length=128)
    sess: Dict[str, Any] = Field(default_factory=dict, sa_column=Column(JSON, nullable=False))
    expire: datetime = Field(nullable=False, index=True)


class ApiKey(SQLModel, table=True):
    """Bearer secret issued to a user for the external download API."""

    __tablename__ = "api_keys"

    id: uuid.UUID = Field(default_factory=uuid.uuid4, primary_key=True)
    user_id: uuid.UUID = Field(foreign_key="users.id", ondelete="CASCADE", nullable=False, index=True)
    key: str = Field(sa_column=Column(String(128), unique=True, nullable=False, index=True))
    name: str = Field(nullable=False, max_length=100)
    is_active: bool = Field(default=True, nullable=False)
    request_count: int = Field(default=0, nullable=False)
    request_limit: int = Field(default=10000, nullable=False)
    last_used_at: Optional[datetime] = Field(default=None, nullable=True)
    created_at: datetime = Field(default_factory=datetime.utcnow, nullable=False)


class DownloadRequest(SQLModel, table=True):
    """One user-initiated media fetch and its lifecycle status."""

    __tablename__ = "download_requests"

    id: uuid.UUID = Field(default_factory=uuid.uuid4, primary_key=True)
    user_id: uuid.UUID = Field(foreign_key="users.id", nullable=False, index=True)
    api_key_id: Optional[uuid.UUID] = Field(
        default=None, foreign_key="api_keys.id", ondelete="SET NULL", nullable=True, index=True
    )
    url: str = Field(sa_column=Column(Text, nullable=False))
    title: Optional[str] = Field(default=None, nullable=True)
    platform: Platform = Field(sa_column=Column(SAEnum(Platform), nullable=False))
    status: DownloadStatus = Field(
        default=DownloadStatus.pending, sa_column=Column(SAEnum(DownloadStatus), nullable=False, index=True)
    )
    progress: int = Field(default=0, nullable=False)
    file_size: Optional[int] = Field(default=None, nullable=True)
    file_name: Optional[str] = Field(default=None, nullable=True)
    file_path: Optional[str] = Field(default=None, nullable=True)
    error_message: Optional[str] = Field(default=None, sa_column=Column(Text, nullable=True))
    platform_metadata: Optional[Dict[str, Any]] = Field(
        default=None, sa_column=Column("metadata", JSON, nullable=True)
    )
    created_at: datetime = Field(default_factory=datetime.utcnow, nullable=False)
    updated_at: datetime = Field(default_factory=datetime.utcnow, nullable=False)


class SystemLog(SQLModel, table=True):
    """Append-only audit trail entry."""

    __tablename__ = "system_logs"

    id: uuid.UUID = Field(default_factory=uuid.uuid4, primary_key=True)
    level: LogLevel = Field(sa_column=Column(SAEnum(LogLevel), nullable=False, index=True))
    message: str = Field(sa_column=Column(Text, nullable=False))
    details: Optional[str] = Field(default=None, sa_column=Column(Text, nullable=True))
    user_id: Optional[uuid.UUID] = Field(default=None, foreign_key="users.id", nullable=True, index=True)
    request_id: Optional[uuid.UUID] = Field(
        default=None, foreign_key="download_requests.id", ondelete="SET NULL", nullable=True
    )
    timestamp: datetime = Field(default_factory=datetime.utcnow, nullable=False, index=True)
    log_metadata: Optional[Dict[str, Any]] = Field(default=None, sa_column=Column("metadata", JSON, nullable=True))


class SystemSetting(SQLModel, table=True):
    """Flat key/value configuration row editable from the dashboard."""

    __tablename__ = "system_settings"

    id: uuid.UUID = Field(default_factory=uuid.uuid4, primary_key=True)
    key: str = Field(sa_column=Column(String(100), unique=True, nullable=False, index=True))
    value: str = Field(sa_column=Column(Text, nullable=False))
    description: Optional[str] = Field(default=None, sa_column=Column(Text, nullable=True))
    updated_at: datetime = Field(default_factory=datetime.utcnow, nullable=False)
