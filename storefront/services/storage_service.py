"""
JSON array file storage for the storefront resources.

Each resource lives in a single file holding one JSON array. Every
mutation reads the whole array, changes it in memory and writes the whole
array back.

Concurrency:
    Writers in the same process share one re-entrant lock per resolved file
    path. Services hold it across the full read-modify-write cycle via
    ``JsonArrayStorage.locked()``. With ``serialize_writes=False`` the lock
    is skipped and two overlapping cycles can lose an update; that mode is
    kept for comparison in tests. Writers in other processes are not
    coordinated.

Durability:
    Writes go to a temporary sibling file followed by ``os.replace`` so
    readers never observe a half-written array.
"""

import json
import logging
import os
import tempfile
from contextlib import contextmanager, nullcontext, suppress
from pathlib import Path
from threading import Lock, RLock
from typing import Any, Dict, Iterator, List, Union

from storefront.core.errors import StorageUnavailable

logger = logging.getLogger(__name__)

JSON_INDENT = 4

_registry_lock = Lock()
_file_locks: Dict[str, RLock] = {}


def _lock_for(path: Path) -> RLock:
    key = str(path.resolve())
    with _registry_lock:
        lock = _file_locks.get(key)
        if lock is None:
            lock = RLock()
            _file_locks[key] = lock
        return lock


class JsonArrayStorage:
    """Read/write a list of JSON objects stored in one file."""

    def __init__(
        self,
        path: Union[str, Path],
        *,
        label: str,
        create_parent: bool = False,
        serialize_writes: bool = True,
    ) -> None:
        self.path = Path(path)
        self.label = label
        self.create_parent = create_parent
        self.serialize_writes = serialize_writes

    def _ensure_parent(self) -> None:
        if self.create_parent:
            self.path.parent.mkdir(parents=True, exist_ok=True)

    @contextmanager
    def locked(self) -> Iterator[None]:
        """Hold the file's writer lock for a read-modify-write cycle."""
        guard = _lock_for(self.path) if self.serialize_writes else nullcontext()
        with guard:
            yield

    def read(self, strict: bool = False) -> List[Dict[str, Any]]:
        """Load the whole array.

        A missing file is an empty collection. Any other failure is logged
        and either degrades to an empty list or, with ``strict``, raises
        :class:`StorageUnavailable` so a mutation never clobbers a file it
        could not parse.
        """
        try:
            self._ensure_parent()
            with self.path.open("r", encoding="utf-8") as fh:
                data = json.load(fh)
            if not isinstance(data, list):
                raise ValueError(f"expected a JSON array, got {type(data).__name__}")
            return data
        except FileNotFoundError:
            return []
        except (OSError, ValueError) as exc:
            logger.error("Error reading %s file %s: %s", self.label, self.path, exc)
            if strict:
                raise StorageUnavailable(
                    f"Could not read {self.label} data",
                    details={"path": str(self.path), "reason": str(exc)},
                ) from exc
            return []

    def write(self, records: List[Dict[str, Any]]) -> bool:
        """Replace the file contents. Returns False instead of raising."""
        tmp_name = None
        try:
            self._ensure_parent()
            fd, tmp_name = tempfile.mkstemp(
                prefix=f".{self.path.name}.", suffix=".tmp", dir=self.path.parent
            )
            with os.fdopen(fd, "w", encoding="utf-8") as fh:
                json.dump(records, fh, indent=JSON_INDENT, ensure_ascii=False)
                fh.write("\n")
            os.chmod(tmp_name, 0o644)
            os.replace(tmp_name, self.path)
            tmp_name = None
            return True
        except (OSError, TypeError, ValueError) as exc:
            logger.error("Error writing %s file %s: %s", self.label, self.path, exc)
            return False
        finally:
            if tmp_name is not None:
                with suppress(OSError):
                    os.unlink(tmp_name)

    def save(self, records: List[Dict[str, Any]]) -> None:
        """Write and surface a failed write as :class:`StorageUnavailable`."""
        if not self.write(records):
            raise StorageUnavailable(
                f"Failed to save {self.label} data",
                details={"path": str(self.path)},
            )

    def is_writable(self) -> bool:
        """Whether the backing directory exists (or may be created) and is writable."""
        directory = self.path.parent
        if not directory.exists():
            return self.create_parent
        return os.access(directory, os.W_OK)
