from pathlib import Path


class FileSystemStorage:
    """Simple storage backend resolving download files on the host filesystem."""

    def __init__(self, root: Path) -> None:
        self.root = root
        self.root.mkdir(parents=True, exist_ok=True)

    def resolve_file_path(self, file_name: str) -> Path:
        """Return where a download's file lives, refusing names that escape the root."""
        path = (self.root / file_name).resolve()
        if self.root.resolve() not in path.parents:
            raise ValueError(f"File name {file_name!r} escapes the download directory")
        return path
