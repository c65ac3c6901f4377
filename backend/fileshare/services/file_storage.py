"""Blob store: uploaded bytes on the local filesystem, one flat directory."""
import logging
import os
import time
from dataclasses import dataclass
from pathlib import Path

import aiofiles
from fastapi import Request, UploadFile

from fileshare.exceptions import BlobTooLargeError, InvalidBlobNameError

logger = logging.getLogger(__name__)

CHUNK_SIZE = 64 * 1024


@dataclass(frozen=True)
class StoredBlob:
    filename: str
    path: str
    size_bytes: int


class FileStorageService:
    """Handles blob read/write under a single base directory."""

    def __init__(self, base_path: str | Path):
        self.base_path = Path(base_path).resolve()
        self.base_path.mkdir(parents=True, exist_ok=True)

    async def save(self, upload: UploadFile, original_name: str, max_bytes: int) -> StoredBlob:
        """Stream an upload to disk as ``<epoch-millis><ext>``.

        The blob is created exclusively; if the name is already taken the
        millisecond value is bumped until a free name is found. If the stream
        exceeds ``max_bytes`` the partial blob is removed and
        ``BlobTooLargeError`` is raised.
        """
        ext = Path(original_name).suffix
        stamp = int(time.time() * 1000)
        while True:
            filename = f"{stamp}{ext}"
            file_path = self.base_path / filename
            try:
                out = await aiofiles.open(file_path, "xb")
            except FileExistsError:
                stamp += 1
                continue
            break

        size = 0
        try:
            try:
                while True:
                    chunk = await upload.read(CHUNK_SIZE)
                    if not chunk:
                        break
                    size += len(chunk)
                    if size > max_bytes:
                        raise BlobTooLargeError(max_bytes, size)
                    await out.write(chunk)
            finally:
                await out.close()
        except BaseException:
            file_path.unlink(missing_ok=True)
            raise

        logger.info("Stored blob %s (%d bytes)", filename, size)
        return StoredBlob(filename=filename, path=str(file_path), size_bytes=size)

    def resolve(self, filename: str) -> Path:
        """Map a blob name to its path, refusing anything outside the base directory."""
        if not filename:
            raise InvalidBlobNameError(filename)
        candidate = (self.base_path / filename).resolve()
        if candidate.parent != self.base_path:
            raise InvalidBlobNameError(filename)
        return candidate

    def exists(self, filename: str) -> bool:
        return self.resolve(filename).is_file()

    async def delete(self, filename: str) -> None:
        """Delete a blob. Missing blobs are ignored."""
        path = self.resolve(filename)
        if path.exists():
            os.remove(path)
            logger.info("Removed blob %s", filename)

    def is_writable(self) -> bool:
        return self.base_path.is_dir() and os.access(self.base_path, os.W_OK)


def get_storage(request: Request) -> FileStorageService:
    """FastAPI dependency returning the app's blob store."""
    return request.app.state.storage
