"""
Temporary on-disk storage for cached response bodies.
"""
from __future__ import annotations

import os
import tempfile
from pathlib import Path

CHUNK_SIZE = 64 * 1024


class SpoolFile:
    """
    A fresh temporary file receiving one response body.

    Writes are plain blocking file I/O. ``close`` keeps the file for the
    cache; ``discard`` removes it.
    """

    def __init__(self, directory: Path) -> None:
        self._file = tempfile.NamedTemporaryFile(
            mode="wb", dir=directory, suffix=".res", delete=False
        )
        self.path = Path(self._file.name)

    async def write(self, data: bytes) -> None:
        self._file.write(data)

    def close(self) -> None:
        self._file.close()

    def discard(self) -> None:
        self._file.close()
        self.path.unlink(missing_ok=True)


class FileBody:
    """Streaming body replaying a stored file in fixed-size chunks."""

    def __init__(self, path: Path, chunk_size: int = CHUNK_SIZE) -> None:
        self.path = path
        self.chunk_size = chunk_size

    async def write_to(self, destination) -> None:
        with open(self.path, "rb") as stored:
            while chunk := stored.read(self.chunk_size):
                await destination.write(chunk)


class BodyStore:
    """
    Directory holding cached bodies.

    Without an explicit directory a private temporary directory is used and
    removed on ``close`` or at interpreter exit.
    """

    def __init__(self, directory: str | os.PathLike | None = None) -> None:
        if directory is None:
            self._tempdir: tempfile.TemporaryDirectory | None = (
                tempfile.TemporaryDirectory(prefix="asgi-cache-")
            )
            self.directory = Path(self._tempdir.name)
        else:
            self._tempdir = None
            self.directory = Path(directory)
            self.directory.mkdir(parents=True, exist_ok=True)

    def create(self) -> SpoolFile:
        return SpoolFile(self.directory)

    def delete(self, path: Path) -> None:
        path.unlink(missing_ok=True)

    def close(self) -> None:
        if self._tempdir is not None:
            self._tempdir.cleanup()
