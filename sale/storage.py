"""
Astro Sale - State Storage

JSON persistence for sale engine snapshots with file locking, atomic
replacement and timestamped backups.
"""

import fcntl
import hashlib
import json
import logging
import os
import shutil
from contextlib import contextmanager
from datetime import datetime, timezone
from pathlib import Path
from threading import RLock
from typing import Any, Dict, Iterator, List, Optional, Union

from pydantic import ValidationError

from .exceptions import StorageError
from .schema import SaleSnapshot

logger = logging.getLogger(__name__)


class FileLock:
    """Advisory exclusive lock on a sidecar `.lock` file."""

    def __init__(self, file_path: Union[str, Path]):
        self.file_path = Path(file_path)
        self.lock_file_path = self.file_path.with_suffix(self.file_path.suffix + '.lock')
        self.lock_fd = None

    def acquire(self) -> None:
        if self.lock_fd is not None:
            return
        self.lock_fd = os.open(str(self.lock_file_path), os.O_CREAT | os.O_RDWR)
        try:
            fcntl.flock(self.lock_fd, fcntl.LOCK_EX)
        except OSError as e:
            os.close(self.lock_fd)
            self.lock_fd = None
            raise StorageError(f"Failed to acquire lock: {e}") from e

    def release(self) -> None:
        if self.lock_fd is None:
            return
        try:
            fcntl.flock(self.lock_fd, fcntl.LOCK_UN)
        finally:
            os.close(self.lock_fd)
            self.lock_fd = None

    def is_locked(self) -> bool:
        return self.lock_fd is not None

    def __enter__(self):
        self.acquire()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.release()


class JSONStorage:
    """Single JSON document with atomic writes and backups."""

    def __init__(self, file_path: Union[str, Path], backup_count: int = 5):
        self.file_path = Path(file_path)
        self.backup_count = backup_count
        self.file_path.parent.mkdir(parents=True, exist_ok=True)
        self._file_lock = FileLock(self.file_path)
        self._thread_lock = RLock()

    @staticmethod
    def _calculate_checksum(data: bytes) -> str:
        """Calculate SHA-256 checksum of data."""
        return hashlib.sha256(data).hexdigest()

    def _write_file(self, data: Dict[str, Any]) -> bytes:
        """Write data to file atomically."""
        json_data = json.dumps(data, indent=2, sort_keys=True).encode('utf-8')
        temp_file = self.file_path.with_suffix(self.file_path.suffix + '.tmp')

        try:
            with open(temp_file, 'wb') as f:
                f.write(json_data)
                f.flush()
                os.fsync(f.fileno())
            os.replace(temp_file, self.file_path)
        except OSError as e:
            if temp_file.exists():
                temp_file.unlink()
            raise StorageError(f"Failed to write {self.file_path}: {e}") from e

        return json_data

    def _backup_dir(self) -> Path:
        return self.file_path.parent / 'backups'

    def _create_backup(self) -> None:
        """Copy the current file to a timestamped backup."""
        if not self.file_path.exists():
            return

        timestamp = datetime.now(timezone.utc).strftime('%Y%m%d_%H%M%S_%f')
        backup_path = self._backup_dir() / f"{self.file_path.stem}_{timestamp}{self.file_path.suffix}"
        backup_path.parent.mkdir(parents=True, exist_ok=True)
        shutil.copy2(self.file_path, backup_path)

        for stale in self.list_backups()[self.backup_count:]:
            stale.unlink()

    def list_backups(self) -> List[Path]:
        """Backup files, newest first."""
        backup_dir = self._backup_dir()
        if not backup_dir.exists():
            return []

        pattern = f"{self.file_path.stem}_*{self.file_path.suffix}"
        return sorted(backup_dir.glob(pattern), key=lambda p: p.name, reverse=True)

    @contextmanager
    def locked(self):
        """
        Hold the file lock for the whole block.

        Reads and writes inside the block reuse the held lock instead of
        taking a second one, which `flock` would block on.
        """
        with self._thread_lock:
            if self._file_lock.is_locked():
                yield
                return
            with self._file_lock:
                yield

    def exists(self) -> bool:
        return self.file_path.exists()

    def read(self) -> Dict[str, Any]:
        """Read and deserialize the document; empty dict when missing."""
        with self.locked():
            if not self.file_path.exists():
                return {}
            try:
                raw = self.file_path.read_bytes()
                return json.loads(raw.decode('utf-8')) if raw else {}
            except (OSError, ValueError) as e:
                raise StorageError(f"Failed to read {self.file_path}: {e}") from e

    def write(self, data: Dict[str, Any], create_backup: bool = True) -> str:
        """Write the document and return its checksum."""
        with self.locked():
            if create_backup:
                self._create_backup()
            return self._calculate_checksum(self._write_file(data))


class SaleStorage:
    """Loads and saves sale engine snapshots."""

    def __init__(self, state_file: Union[str, Path], backup_count: int = 5):
        self.json_storage = JSONStorage(state_file, backup_count=backup_count)

    @property
    def state_file(self) -> Path:
        return self.json_storage.file_path

    def exists(self) -> bool:
        return self.json_storage.exists()

    @contextmanager
    def transaction(self) -> Iterator['SaleStorage']:
        """Keep the state file locked across a load and the following save."""
        with self.json_storage.locked():
            yield self

    def load(self) -> Optional[SaleSnapshot]:
        """Load the stored snapshot, or None when nothing has been saved."""
        data = self.json_storage.read()
        if not data:
            return None
        try:
            return SaleSnapshot.model_validate(data)
        except ValidationError as e:
            raise StorageError(f"Invalid sale state in {self.state_file}: {e}") from e

    def save(self, snapshot: SaleSnapshot) -> str:
        checksum = self.json_storage.write(snapshot.model_dump(mode="json"))
        logger.debug(f"Saved sale state to {self.state_file} (checksum {checksum[:12]})")
        return checksum
