"""Local Snapshot Storage — PNG files under a configured directory.

Invariants:
    - Only bare file names are accepted; path separators and dot-segments are rejected
    - Blocking filesystem IO runs in a worker thread, never on the event loop
"""

import asyncio
import logging
from pathlib import Path

logger = logging.getLogger(__name__)


class LocalSnapshotStorage:

    def __init__(self, root: str | Path):
        self.root = Path(root)

    def _path(self, file_name: str) -> Path:
        if not file_name or Path(file_name).name != file_name or file_name.startswith("."):
            raise ValueError(f"Invalid snapshot file name: {file_name!r}")
        return self.root / file_name

    def _write_sync(self, path: Path, data: bytes) -> None:
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_bytes(data)

    async def write(self, file_name: str, data: bytes) -> None:
        path = self._path(file_name)
        await asyncio.to_thread(self._write_sync, path, data)
        logger.info(f"Snapshot written: {file_name} ({len(data)} bytes)")

    async def read(self, file_name: str) -> bytes | None:
        path = self._path(file_name)
        if not path.is_file():
            return None
        return await asyncio.to_thread(path.read_bytes)
