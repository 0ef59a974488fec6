import random
import re
import time
from pathlib import Path
from typing import Callable, Dict, Optional, Tuple

from mediadash.config import settings
from mediadash.models.schemas import Platform
from mediadash.storage import FileSystemStorage

ProgressCallback = Callable[[int], None]

MIN_SIMULATED_SIZE = 1_000_000
MAX_SIMULATED_SIZE = 10_999_999


class FileTooLarge(Exception):
    """Raised when a download would exceed the configured maximum file size."""

    def __init__(self, file_size: int, limit: int) -> None:
        super().__init__(f"File size {file_size} bytes exceeds the maximum of {limit} bytes")
        self.file_size = file_size
        self.limit = limit


class DownloadResult:
    def __init__(self, file_name: str, file_path: Path, file_size: int) -> None:
        self.file_name = file_name
        self.file_path = file_path
        self.file_size = file_size


class DownloadManager:
    """Simulated media fetcher.

    No bytes are transferred: the manager walks a fixed set of progress steps,
    sleeping between them, then reports a synthesised file name and size.
    """

    PROGRESS_STEPS: Tuple[int, ...] = (20, 40, 60, 80)
    EXTENSIONS: Dict[Platform, str] = {
        Platform.youtube: "mp4",
        Platform.spotify: "mp3",
        Platform.instagram: "mp4",
    }

    def __init__(
        self,
        storage_root: Optional[Path] = None,
        *,
        max_file_size: Optional[int] = None,
        step_delay: Optional[float] = None,
        rng: Optional[random.Random] = None,
    ) -> None:
        root = storage_root or settings.download_path
        self.storage = FileSystemStorage(root)
        self.max_file_size = max_file_size
        self.step_delay = settings.download_step_delay_seconds if step_delay is None else step_delay
        self.rng = rng or random.Random()

    def run(
        self,
        *,
        title: Optional[str],
        platform: Platform,
        on_progress: Optional[ProgressCallback] = None,
    ) -> DownloadResult:
        for progress in self.PROGRESS_STEPS:
            if self.step_delay > 0:
                time.sleep(self.step_delay)
            if on_progress is not None:
                on_progress(progress)

        file_name = self.build_file_name(title, platform)
        file_size = self.rng.randint(MIN_SIMULATED_SIZE, MAX_SIMULATED_SIZE)
        if self.max_file_size is not None and file_size > self.max_file_size:
            raise FileTooLarge(file_size, self.max_file_size)

        return DownloadResult(
            file_name=file_name,
            file_path=self.storage.resolve_file_path(file_name),
            file_size=file_size,
        )

    @classmethod
    def build_file_name(cls, title: Optional[str], platform: Platform) -> str:
        stem = cls._sanitize_file_stem(title) if title else "download"
        return f"{stem}.{cls.EXTENSIONS.get(platform, 'bin')}"

    @staticmethod
    def _sanitize_file_stem(name: str) -> str:
        sanitized = re.sub(r"[^a-zA-Z0-9]", "_", name)
        if len(sanitized) > 100:
            sanitized = sanitized[:100]
        return sanitized or "download"
