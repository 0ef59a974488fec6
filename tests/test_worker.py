import uuid
from pathlib import Path

import pytest

from mediadash.config import settings
from mediadash.db import session_scope
from mediadash.models.entities import SystemLog
from mediadash.models.schemas import DownloadStatus, LogLevel, Platform
from mediadash.repositories.downloads import DownloadRequestRepository, InvalidStatusTransition
from mediadash.repositories.settings import SettingsRepository
from mediadash.repositories.users import UserRepository
from mediadash.services.download_manager import DownloadManager, FileTooLarge
from mediadash.worker import process_download
from sqlmodel import select


@pytest.fixture
def pending_request():
    with session_scope() as session:
        user = UserRepository(session).upsert_by_email("worker@example.com")
        record = DownloadRequestRepository(session).create(
            user_id=user.id,
            url="https://open.spotify.com/track/42",
            platform=Platform.spotify,
            title="Hello, World!",
        )
    return record


def _load(request_id: uuid.UUID):
    with session_scope() as session:
        return DownloadRequestRepository(session).get(request_id)


def _log_messages(request_id: uuid.UUID):
    with session_scope() as session:
        rows = session.exec(select(SystemLog).where(SystemLog.request_id == request_id)).all()
        return [(row.level, row.message) for row in rows]


def test_process_download_completes_request(pending_request) -> None:
    process_download(request_id=str(pending_request.id))

    record = _load(pending_request.id)
    assert record.status == DownloadStatus.completed
    assert record.progress == 100
    assert record.file_name == "Hello__World_.mp3"
    assert Path(record.file_path) == settings.download_path / "Hello__World_.mp3"
    assert 1_000_000 <= record.file_size <= 10_999_999
    assert record.error_message is None
    assert (LogLevel.info, "Download completed") in _log_messages(pending_request.id)


def test_process_download_persists_each_progress_step(pending_request, monkeypatch) -> None:
    seen = []
    original = DownloadRequestRepository.update_progress

    def recording_update(self, request_id, progress):
        seen.append((_load(request_id).status, progress))
        return original(self, request_id, progress)

    monkeypatch.setattr(DownloadRequestRepository, "update_progress", recording_update)

    process_download(request_id=str(pending_request.id))

    assert seen == [(DownloadStatus.in_progress, step) for step in (20, 40, 60, 80)]


def test_process_download_failure_marks_request_failed(pending_request) -> None:
    with session_scope() as session:
        SettingsRepository(session).upsert("max_file_size", "500KB")

    with pytest.raises(FileTooLarge):
        process_download(request_id=str(pending_request.id))

    record = _load(pending_request.id)
    assert record.status == DownloadStatus.failed
    assert "exceeds the maximum" in record.error_message
    assert record.file_name is None
    assert (LogLevel.error, "Download failed") in _log_messages(pending_request.id)


def test_process_download_skips_non_pending_request(pending_request) -> None:
    with session_scope() as session:
        repo = DownloadRequestRepository(session)
        repo.transition(pending_request.id, DownloadStatus.in_progress)
        repo.transition(pending_request.id, DownloadStatus.completed, progress=100)

    process_download(request_id=str(pending_request.id))

    record = _load(pending_request.id)
    assert record.status == DownloadStatus.completed
    assert record.file_name is None


def test_process_download_ignores_missing_request() -> None:
    process_download(request_id=str(uuid.uuid4()))


def test_repository_rejects_illegal_transition(pending_request) -> None:
    with session_scope() as session:
        repo = DownloadRequestRepository(session)
        with pytest.raises(InvalidStatusTransition):
            repo.transition(pending_request.id, DownloadStatus.failed)


@pytest.mark.parametrize(
    "title, platform, expected",
    [
        ("My Song", Platform.spotify, "My_Song.mp3"),
        ("clip/01", Platform.youtube, "clip_01.mp4"),
        (None, Platform.instagram, "download.mp4"),
    ],
)
def test_build_file_name(title, platform, expected) -> None:
    assert DownloadManager.build_file_name(title, platform) == expected


def test_manager_reports_progress_steps(tmp_path) -> None:
    steps = []
    manager = DownloadManager(tmp_path, step_delay=0)

    result = manager.run(title="x", platform=Platform.youtube, on_progress=steps.append)

    assert steps == [20, 40, 60, 80]
    assert result.file_path == (tmp_path / "x.mp4").resolve()


def test_unusable_download_path_marks_request_failed(pending_request, tmp_path) -> None:
    blocker = tmp_path / "not-a-directory"
    blocker.write_text("occupied")
    with session_scope() as session:
        SettingsRepository(session).upsert("download_path", str(blocker / "downloads"))

    with pytest.raises(OSError):
        process_download(request_id=str(pending_request.id))

    record = _load(pending_request.id)
    assert record.status == DownloadStatus.failed
    assert record.error_message
    assert (LogLevel.error, "Download failed") in _log_messages(pending_request.id)
