from __future__ import annotations

import logging
import os
import uuid

from rq import SimpleWorker, Worker

from mediadash.config import settings
from mediadash.db import init_db, session_scope
from mediadash.models.schemas import DownloadStatus, LogLevel
from mediadash.queue import get_queue
from mediadash.repositories.downloads import DownloadRequestRepository, InvalidStatusTransition
from mediadash.repositories.logs import LogRepository
from mediadash.services.download_manager import DownloadManager
from mediadash.services.runtime_config import load_runtime_config

logger = logging.getLogger(__name__)


def process_download(*, request_id: str) -> None:
    identifier = uuid.UUID(request_id)

    with session_scope() as session:
        runtime = load_runtime_config(session)
        repo = DownloadRequestRepository(session)
        existing = repo.get_entity(identifier)
        if existing is None:
            logger.warning("Download request %s disappeared before processing", request_id)
            return
        if existing.status != DownloadStatus.pending:
            logger.warning("Download request %s is %s, not pending; skipping", request_id, existing.status.value)
            return
        repo.transition(identifier, DownloadStatus.in_progress)
        title = existing.title
        platform = existing.platform
        user_id = existing.user_id

    def report_progress(progress: int) -> None:
        with session_scope() as session:
            DownloadRequestRepository(session).update_progress(identifier, progress)

    try:
        manager = DownloadManager(runtime.download_path, max_file_size=runtime.max_file_size_bytes)
        result = manager.run(title=title, platform=platform, on_progress=report_progress)
        with session_scope() as session:
            DownloadRequestRepository(session).transition(
                identifier,
                DownloadStatus.completed,
                progress=100,
                file_name=result.file_name,
                file_path=str(result.file_path),
                file_size=result.file_size,
            )
            LogRepository(session).create(
                level=LogLevel.info,
                message="Download completed",
                details=f"Successfully downloaded {title or 'Unknown'} from {platform.value}",
                user_id=user_id,
                request_id=identifier,
            )
        logger.info("Download %s finished: %s (%d bytes)", request_id, result.file_name, result.file_size)
    except Exception as exc:
        with session_scope() as session:
            try:
                DownloadRequestRepository(session).transition(
                    identifier,
                    DownloadStatus.failed,
                    error_message=str(exc) or exc.__class__.__name__,
                )
            except InvalidStatusTransition:
                logger.warning("Download request %s was moved out of in_progress while running", request_id)
            LogRepository(session).create(
                level=LogLevel.error,
                message="Download failed",
                details=f"Failed to download {title or 'Unknown'}: {exc}",
                user_id=user_id,
                request_id=identifier,
            )
        logger.exception("Download %s failed: %s", request_id, exc)
        raise


def run_worker() -> None:
    logging.basicConfig(level=settings.log_level)
    init_db()
    queue = get_queue()
    if os.name == "nt":
        worker = SimpleWorker([queue], connection=queue.connection)
    else:
        worker = Worker([queue], connection=queue.connection)
    worker.work(with_scheduler=True)


if __name__ == "__main__":
    run_worker()
