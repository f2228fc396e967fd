# uniarchive/core/file_store.py
from __future__ import annotations

import logging
import random
import time
from dataclasses import dataclass
from pathlib import Path
from typing import BinaryIO

from .validation import validate_file_size

logger = logging.getLogger(__name__)

CHUNK_SIZE = 1024 * 1024


@dataclass(frozen=True)
class StoredFile:
    file_name: str
    file_path: str
    size: int


class LocalFileStore:
    """
    Local storage provider for uploaded PDFs.

    Files are written to `<upload_dir>/<millis>-<random><ext>` through a
    `.part` temp file that is renamed once the size checks pass.
    """

    provider = "local"

    def __init__(self, upload_dir: str = "uploads"):
        self.root = Path(upload_dir)
        self.root.mkdir(parents=True, exist_ok=True)

    def _unique_name(self, original_name: str) -> str:
        suffix = Path(original_name or "").suffix.lower() or ".pdf"
        return f"{int(time.time() * 1000)}-{random.randint(0, 10**9)}{suffix}"

    def save(self, stream: BinaryIO, original_name: str, max_bytes: int) -> StoredFile:
        """
        Copy `stream` into the upload directory.

        Raises:
            HTTPException: 400 for an empty file, 413 above `max_bytes`
        """
        file_name = self._unique_name(original_name)
        target = self.root / file_name
        tmp_file = target.with_suffix(target.suffix + ".part")

        size = 0
        try:
            with open(tmp_file, "wb") as out:
                while True:
                    chunk = stream.read(CHUNK_SIZE)
                    if not chunk:
                        break
                    size += len(chunk)
                    if size > max_bytes:
                        break
                    out.write(chunk)
            validate_file_size(size, max_bytes)
        except BaseException:
            tmp_file.unlink(missing_ok=True)
            raise

        tmp_file.replace(target)
        logger.info(f"Stored upload {original_name!r} as {file_name} ({size} bytes)")
        return StoredFile(file_name=file_name, file_path=str(target), size=size)

    def path_for(self, file_path: str) -> Path:
        return Path(file_path)

    def exists(self, file_path: str) -> bool:
        return bool(file_path) and self.path_for(file_path).is_file()

    def delete(self, file_path: str) -> bool:
        """
        Remove stored bytes.

        Returns False when nothing was on disk or the bytes could not be
        removed; the orphaned path is logged for cleanup.
        """
        if not self.exists(file_path):
            logger.warning(f"Stored file already missing: {file_path}")
            return False
        try:
            self.path_for(file_path).unlink()
        except OSError as e:
            logger.error(f"Failed to delete stored file {file_path}, left orphaned: {e}")
            return False
        return True
