import uuid
from datetime import datetime
from enum import Enum
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field


class Platform(str, Enum):
    youtube = "youtube"
    spotify = "spotify"
    instagram = "instagram"


class DownloadStatus(str, Enum):
    pending = "pending"
    in_progress = "in_progress"
    completed = "completed"
    failed = "failed"


class LogLevel(str, Enum):
    info = "info"
    warning = "warning"
    error = "error"
    debug = "debug"


# -------------------------------------------------------------------------
# Users and sessions
# -------------------------------------------------------------------------
class LoginRequest(BaseModel):
    email: str = Field(..., min_length=3, max_length=255, description="Email identifying the dashboard user.")
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    profile_image_url: Optional[str] = None


class UserRead(BaseModel):
    id: uuid.UUID
    email: Optional[str] = None
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    profile_image_url: Optional[str] = None
    created_at: datetime
    updated_at: datetime


# -------------------------------------------------------------------------
# API keys
# -------------------------------------------------------------------------
class ApiKeyCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=100, description="Human readable label for the key.")
    request_limit: Optional[int] = Field(
        None, ge=1, description="Maximum number of external calls; defaults to the configured limit."
    )
    is_active: bool = True


class ApiKeyUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=1, max_length=100)
    is_active: Optional[bool] = None
    request_limit: Optional[int] = Field(None, ge=1)


class ApiKeyRead(BaseModel):
    id: uuid.UUID
    user_id: uuid.UUID
    key: str
    name: str
    is_active: bool
    request_count: int
    request_limit: int
    last_used_at: Optional[datetime] = None
    created_at: datetime


# -------------------------------------------------------------------------
# Download requests
# -------------------------------------------------------------------------
class DownloadRequestCreate(BaseModel):
    url: str = Field(..., min_length=1, max_length=2048, description="Media URL on the source platform.")
    platform: Platform
    title: Optional[str] = Field(None, max_length=255)
    api_key_id: Optional[uuid.UUID] = Field(None, description="Key the request is attributed to, if any.")
    metadata: Optional[Dict[str, Any]] = Field(None, description="Platform-specific metadata.")


class DownloadRequestUpdate(BaseModel):
    title: Optional[str] = Field(None, max_length=255)
    status: Optional[DownloadStatus] = None
    progress: Optional[int] = Field(None, ge=0, le=100)
    file_name: Optional[str] = None
    file_size: Optional[int] = Field(None, ge=0)
    file_path: Optional[str] = None
    error_message: Optional[str] = None


class DownloadRequestRead(BaseModel):
    id: uuid.UUID
    user_id: uuid.UUID
    user_email: Optional[str] = None
    api_key_id: Optional[uuid.UUID] = None
    url: str
    title: Optional[str] = None
    platform: Platform
    status: DownloadStatus
    progress: int
    file_size: Optional[int] = None
    file_name: Optional[str] = None
    file_path: Optional[str] = None
    error_message: Optional[str] = None
    metadata: Optional[Dict[str, Any]] = None
    created_at: datetime
    updated_at: datetime


class PublicDownloadCreate(BaseModel):
    url: str = Field(..., min_length=1, max_length=2048)
    platform: Platform
    title: Optional[str] = Field(None, max_length=255)


class PublicDownloadAccepted(BaseModel):
    id: uuid.UUID
    status: DownloadStatus
    message: str


class PublicDownloadStatus(BaseModel):
    id: uuid.UUID
    status: DownloadStatus
    progress: int
    file_name: Optional[str] = None
    file_size: Optional[int] = None
    created_at: datetime
    updated_at: datetime


# -------------------------------------------------------------------------
# System logs and settings
# -------------------------------------------------------------------------
class SystemLogCreate(BaseModel):
    level: LogLevel
    message: str = Field(..., min_length=1)
    details: Optional[str] = None
    request_id: Optional[uuid.UUID] = None
    metadata: Optional[Dict[str, Any]] = None


class SystemLogRead(BaseModel):
    id: uuid.UUID
    level: LogLevel
    message: str
    details: Optional[str] = None
    user_id: Optional[uuid.UUID] = None
    user_email: Optional[str] = None
    request_id: Optional[uuid.UUID] = None
    timestamp: datetime
    metadata: Optional[Dict[str, Any]] = None


class SettingUpsert(BaseModel):
    key: str = Field(..., min_length=1, max_length=100)
    value: str
    description: Optional[str] = None


class SettingRead(BaseModel):
    id: uuid.UUID
    key: str
    value: str
    description: Optional[str] = None
    updated_at: datetime


# -------------------------------------------------------------------------
# Statistics and search
# -------------------------------------------------------------------------
class UserStats(BaseModel):
    total_users: int
    active_api_keys: int
    requests_today: int
    rate_limited: int


class DownloadStats(BaseModel):
    total: int
    pending: int
    in_progress: int
    completed: int
    completed_today: int
    failed: int


class StorageStats(BaseModel):
    total_files: int
    total_size: int
    cleanup_eligible: int


class SearchResult(BaseModel):
    id: str
    title: str
    artist: Optional[str] = None
    duration: Optional[str] = None
    thumbnail: Optional[str] = None
    url: str
    platform: Platform


class SearchResponse(BaseModel):
    query: str
    results: List[SearchResult] = Field(default_factory=list)
