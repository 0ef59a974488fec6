from __future__ import annotations

from datetime import datetime, timedelta
from typing import Optional

from sqlalchemy import func
from sqlmodel import Session, select

from mediadash.models.entities import ApiKey, DownloadRequest, User
from mediadash.models.schemas import DownloadStats, DownloadStatus, StorageStats, UserStats


def start_of_day(now: Optional[datetime] = None) -> datetime:
    now = now or datetime.utcnow()
    return now.replace(hour=0, minute=0, second=0, microsecond=0)


class StatsRepository:
    """Aggregate queries backing the dashboard summary cards; nothing is cached."""

    def __init__(self, session: Session) -> None:
        self.session = session

    def user_stats(self) -> UserStats:
        today = start_of_day()
        return UserStats(
            total_users=self._count(select(func.count()).select_from(User)),
            active_api_keys=self._count(
                select(func.count()).select_from(ApiKey).where(ApiKey.is_active == True)  # noqa: E712
            ),
            requests_today=self._count(
                select(func.count()).select_from(DownloadRequest).where(DownloadRequest.created_at >= today)
            ),
            rate_limited=self._count(
                select(func.count()).select_from(ApiKey).where(ApiKey.request_count >= ApiKey.request_limit)
            ),
        )

    def download_stats(self) -> DownloadStats:
        today = start_of_day()
        by_status = {
            status: count
            for status, count in self.session.exec(
                select(DownloadRequest.status, func.count()).group_by(DownloadRequest.status)
            ).all()
        }
        completed_today = self._count(
            select(func.count())
            .select_from(DownloadRequest)
            .where(DownloadRequest.status == DownloadStatus.completed)
            .where(DownloadRequest.updated_at >= today)
        )
        return DownloadStats(
            total=sum(by_status.values()),
            pending=by_status.get(DownloadStatus.pending, 0),
            in_progress=by_status.get(DownloadStatus.in_progress, 0),
            completed=by_status.get(DownloadStatus.completed, 0),
            completed_today=completed_today,
            failed=by_status.get(DownloadStatus.failed, 0),
        )

    def storage_stats(self, *, cleanup_days: int) -> StorageStats:
        threshold = datetime.utcnow() - timedelta(days=cleanup_days)
        completed = select(func.count()).select_from(DownloadRequest).where(
            DownloadRequest.status == DownloadStatus.completed
        )
        total_size = self.session.exec(
            select(func.coalesce(func.sum(DownloadRequest.file_size), 0)).where(
                DownloadRequest.status == DownloadStatus.completed
            )
        ).one()
        return StorageStats(
            total_files=self._count(completed),
            total_size=int(total_size or 0),
            cleanup_eligible=self._count(completed.where(DownloadRequest.created_at < threshold)),
        )

    def _count(self, stmt) -> int:
        return int(self.session.exec(stmt).one() or 0)
