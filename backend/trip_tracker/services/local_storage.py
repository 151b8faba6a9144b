"""Key-value storage on the local filesystem.

Each key is one file under the storage directory. Values are written whole:
the new contents go to a temp file in the same directory, are fsynced, then
``os.replace`` swaps them in, so a reader never sees a half-written value.
"""

import asyncio
import os
import re
import tempfile
from pathlib import Path

import structlog

logger = structlog.get_logger()

_KEY_PATTERN = re.compile(r"^[A-Za-z0-9_.-]+$")


class LocalStorage:
    """Whole-value get/set by key, like the mobile AsyncStorage API."""

    def __init__(self, directory: str | Path):
        self.directory = Path(directory)

    def _path(self, key: str) -> Path:
        if not _KEY_PATTERN.match(key) or key.startswith("."):
            raise ValueError(f"Invalid storage key: {key!r}")
        return self.directory / f"{key}.json"

    async def get_item(self, key: str) -> str | None:
        """Return the stored value, or None if the key was never written."""
        return await asyncio.to_thread(self._read, self._path(key))

    async def set_item(self, key: str, value: str) -> None:
        await asyncio.to_thread(self._write, self._path(key), value)

    async def remove_item(self, key: str) -> None:
        await asyncio.to_thread(self._path(key).unlink, missing_ok=True)

    @staticmethod
    def _read(path: Path) -> str | None:
        try:
            return path.read_text(encoding="utf-8")
        except FileNotFoundError:
            return None

    @staticmethod
    def _write(path: Path, value: str) -> None:
        path.parent.mkdir(parents=True, exist_ok=True)
        fd, tmp_name = tempfile.mkstemp(dir=path.parent, prefix=f".{path.stem}.", suffix=".tmp")
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as fh:
                fh.write(value)
                fh.flush()
                os.fsync(fh.fileno())
            os.replace(tmp_name, path)
        except BaseException:
            Path(tmp_name).unlink(missing_ok=True)
            raise
        logger.debug("Storage write", key=path.stem, size=len(value))
