"""Pydantic models and SQLModel ORM entities used by the service."""

from .schemas import (  # noqa: F401
    DownloadRequestCreate,
    DownloadRequestRead,
    DownloadStatus,
    LogLevel,
    Platform,
)
