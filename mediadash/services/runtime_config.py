from __future__ import annotations

import re
from dataclasses import dataclass
from pathlib import Path
from typing import Dict, Optional

from sqlmodel import Session

from mediadash.config import settings as env_settings
from mediadash.models.schemas import Platform
from mediadash.repositories.settings import SettingsRepository

_SIZE_PATTERN = re.compile(r"^\s*(\d+(?:\.\d+)?)\s*([KMG]?B)?\s*$", re.IGNORECASE)
_SIZE_UNITS = {"B": 1, "KB": 1024, "MB": 1024**2, "GB": 1024**3}
_TRUTHY = {"1", "true", "yes", "on"}
_FALSY = {"0", "false", "no", "off"}


@dataclass
class RuntimeConfig:
    download_path: Path
    max_file_size_bytes: int
    download_timeout_seconds: Optional[int]
    cleanup_days: int
    default_request_limit: int
    enabled_platforms: Dict[Platform, bool]

    def platform_enabled(self, platform: Platform) -> bool:
        return self.enabled_platforms.get(platform, True)


def parse_size(raw: str) -> int:
    """Convert strings such as ``900MB`` or ``512 KB`` into a byte count."""
    match = _SIZE_PATTERN.match(raw or "")
    if match is None:
        raise ValueError(f"Invalid size: {raw!r}")
    number, unit = match.groups()
    return int(float(number) * _SIZE_UNITS[(unit or "B").upper()])


def _parse_positive_int(raw: Optional[str], default: int) -> int:
    if raw is None or raw == "":
        return default
    try:
        value = int(raw)
    except ValueError:
        return default
    return value if value > 0 else default


def _parse_bool(raw: Optional[str], default: bool = True) -> bool:
    if raw is None:
        return default
    lowered = raw.strip().lower()
    if lowered in _TRUTHY:
        return True
    if lowered in _FALSY:
        return False
    return default


def load_runtime_config(session: Session) -> RuntimeConfig:
    repo = SettingsRepository(session)
    overrides = repo.all()

    download_path = Path(overrides.get("download_path") or env_settings.download_path)

    try:
        max_file_size = parse_size(overrides.get("max_file_size") or env_settings.max_file_size)
    except ValueError:
        max_file_size = parse_size(env_settings.max_file_size)

    raw_timeout = overrides.get("download_timeout")
    if raw_timeout is None or raw_timeout == "":
        download_timeout = env_settings.download_timeout_seconds
    else:
        try:
            value = int(raw_timeout)
            download_timeout = None if value == 0 else value
        except ValueError:
            download_timeout = env_settings.download_timeout_seconds

    cleanup_days = _parse_positive_int(overrides.get("cleanup_days"), env_settings.cleanup_days)
    default_request_limit = _parse_positive_int(
        overrides.get("default_request_limit"), env_settings.default_request_limit
    )
    enabled_platforms = {
        platform: _parse_bool(overrides.get(f"{platform.value}_enabled")) for platform in Platform
    }

    download_path = download_path.expanduser().resolve()

    return RuntimeConfig(
        download_path=download_path,
        max_file_size_bytes=max_file_size,
        download_timeout_seconds=download_timeout,
        cleanup_days=cleanup_days,
        default_request_limit=default_request_limit,
        enabled_platforms=enabled_platforms,
    )
