"""
File URL Repository

An in-memory index backed by an append-only JSON-lines log.

Log format, one record per line, no header or trailer:
    {"id": "...", "user_id": "...", "short_key": "...", "original_url": "...", "deleted_flag": false}

Rules:
- Creates append the new record and fsync before returning
- Soft deletes append the updated record; on replay the last line for an id wins
- A torn trailing line (crash during append) is dropped and cut off the file
- A corrupt line anywhere else stops startup with StorageUnavailableError
"""

import asyncio
import logging
import os
from pathlib import Path
from typing import Sequence, Union

from pydantic import ValidationError

from shortener.core.exceptions import StorageUnavailableError
from shortener.repositories.base import URLRecord
from shortener.repositories.memory import MemoryURLRepository

logger = logging.getLogger(__name__)


class FileURLRepository(MemoryURLRepository):
    """
    Durable variant of the memory store.

    The log is replayed once on construction; afterwards the file is only appended to.
    """

    def __init__(self, file_path: Union[str, Path]):
        super().__init__()
        self.file_path = Path(file_path)
        self._replay()

    async def health_check(self) -> None:
        if not self.file_path.is_file():
            raise StorageUnavailableError(f"file {self.file_path} does not exist")
        if not os.access(self.file_path, os.W_OK):
            raise StorageUnavailableError(f"file {self.file_path} is not writable")

    async def _persist(self, records: Sequence[URLRecord]) -> None:
        payload = "".join(record.model_dump_json() + "\n" for record in records).encode("utf-8")
        try:
            await asyncio.to_thread(self._append, payload)
        except OSError as e:
            logger.error(f"Failed to append to {self.file_path}: {e}")
            raise StorageUnavailableError(
                f"failed to write {self.file_path}",
                original_error=e
            ) from e

    def _append(self, payload: bytes) -> None:
        """Append and fsync; a failed append leaves the log exactly as it was."""
        self.file_path.parent.mkdir(parents=True, exist_ok=True)
        # Unbuffered, so nothing is left pending in a buffer when a write fails
        with open(self.file_path, "ab", buffering=0) as f:
            start = f.seek(0, os.SEEK_END)
            try:
                view = memoryview(payload)
                while view:
                    written = f.write(view)
                    view = view[written:]
                os.fsync(f.fileno())
            except OSError:
                self._rewind(f, start)
                raise

    def _rewind(self, f, start: int) -> None:
        try:
            f.truncate(start)
            os.fsync(f.fileno())
        except OSError as e:
            logger.error(f"Failed to cut failed append from {self.file_path}: {e}")

    def _replay(self) -> None:
        try:
            self.file_path.parent.mkdir(parents=True, exist_ok=True)
            self.file_path.touch(exist_ok=True)
            data = self.file_path.read_bytes()
        except OSError as e:
            raise StorageUnavailableError(
                f"failed to open {self.file_path}",
                original_error=e
            ) from e

        lines = data.splitlines(keepends=True)
        good_end = 0

        for number, line in enumerate(lines, start=1):
            content = line.strip()
            if content:
                try:
                    record = URLRecord.model_validate_json(content)
                except ValidationError as e:
                    if number == len(lines):
                        logger.warning(f"Dropping torn record at {self.file_path}:{number}")
                        break
                    raise StorageUnavailableError(
                        f"corrupt record at {self.file_path}:{number}",
                        original_error=e
                    ) from e
                self._index(record)
            good_end += len(line)

        if good_end < len(data) or not data.endswith(b"\n"):
            self._repair(good_end)

        logger.info(f"All URLs loaded successfully from file: count={len(self._records)}")

    def _repair(self, good_end: int) -> None:
        """Cut the file after the last good line and make sure it ends with a newline."""
        try:
            with open(self.file_path, "r+b") as f:
                f.truncate(good_end)
                if good_end > 0:
                    f.seek(good_end - 1)
                    if f.read(1) != b"\n":
                        f.write(b"\n")
                f.flush()
                os.fsync(f.fileno())
        except OSError as e:
            raise StorageUnavailableError(
                f"failed to repair {self.file_path}",
                original_error=e
            ) from e
