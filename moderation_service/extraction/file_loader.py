from pathlib import Path


class FileLoader:
    """Resolves a stored file reference to a path and reads its bytes."""

    def __init__(self, files_root: Path | None = None) -> None:
        self._files_root = files_root

    def resolve(self, file_path: str) -> Path:
        """Relative references are resolved against files_root when one is set."""
        path = Path(file_path)
        if not path.is_absolute() and self._files_root is not None:
            path = self._files_root / path
        return path

    def load(self, file_path: str) -> bytes:
        """Read file bytes from disk.

        Raises:
            FileNotFoundError: if the file does not exist at resolved path.
        """
        path = self.resolve(file_path)
        if not path.is_file():
            raise FileNotFoundError(f"File not found: {path}")
        return path.read_bytes()
