"""Snapshot stores: where each user's latest progress document lives.

``ProgressRepository`` is the persistence contract the tracking service
depends on.  Two implementations ship with the library:

* ``InMemoryProgressRepository`` -- thread-safe, process-local; keeps encoded
  JSON documents so reads and writes exercise the real codec.
* ``JsonFileProgressRepository`` -- one JSON document per user in a directory,
  replaced atomically on every write.

Stores raise ``PersistenceError`` for I/O failures and ``SnapshotDecodeError``
for stored documents that do not decode.  Deciding what to do about a bad
document is left to the caller.
"""

from __future__ import annotations

import logging
import os
import tempfile
import threading
from abc import ABC, abstractmethod
from pathlib import Path
from urllib.parse import quote, unquote

from learning_progress.domain.aggregates import ProgressSnapshot
from learning_progress.domain.exceptions import PersistenceError, SnapshotDecodeError
from learning_progress.infrastructure.config import StorageConfig
from learning_progress.infrastructure.serialization import from_json, to_json

logger = logging.getLogger(__name__)


class ProgressRepository(ABC):
    """Key-value store of progress snapshots keyed by user id."""

    @abstractmethod
    def get(self, user_id: str) -> ProgressSnapshot | None:
        """Return the stored snapshot, or ``None`` if the user has none."""

    @abstractmethod
    def put(self, user_id: str, snapshot: ProgressSnapshot) -> None:
        """Store *snapshot* as the user's latest progress."""

    @abstractmethod
    def delete(self, user_id: str) -> bool:
        """Remove the user's document. Returns ``True`` if one existed."""

    @abstractmethod
    def user_ids(self) -> list[str]:
        """Ids of all users with a stored document."""


class InMemoryProgressRepository(ProgressRepository):
    """Process-local store holding encoded documents."""

    def __init__(self) -> None:
        self._documents: dict[str, str] = {}
        self._lock = threading.Lock()

    def get(self, user_id: str) -> ProgressSnapshot | None:
        with self._lock:
            document = self._documents.get(user_id)
        if document is None:
            return None
        try:
            return from_json(document)
        except SnapshotDecodeError as exc:
            exc.user_id = user_id
            raise

    def put(self, user_id: str, snapshot: ProgressSnapshot) -> None:
        document = to_json(snapshot, indent=None)
        with self._lock:
            self._documents[user_id] = document

    def delete(self, user_id: str) -> bool:
        with self._lock:
            return self._documents.pop(user_id, None) is not None

    def user_ids(self) -> list[str]:
        with self._lock:
            return sorted(self._documents)

    def put_raw(self, user_id: str, document: str) -> None:
        """Store an already-encoded document as-is (imports, fixtures)."""
        with self._lock:
            self._documents[user_id] = document

    def __len__(self) -> int:
        with self._lock:
            return len(self._documents)

    def __contains__(self, user_id: str) -> bool:
        with self._lock:
            return user_id in self._documents


class JsonFileProgressRepository(ProgressRepository):
    """One ``<quoted user id>.json`` file per user under *directory*.

    Writes go to a temporary file in the same directory first and are moved
    into place with ``os.replace``, so a reader never sees a half-written
    document.
    """

    _SUFFIX = ".json"

    def __init__(self, directory: str | os.PathLike[str]) -> None:
        self._directory = Path(directory)
        self._lock = threading.Lock()

    @property
    def directory(self) -> Path:
        return self._directory

    def _path_for(self, user_id: str) -> Path:
        return self._directory / f"{quote(user_id, safe='')}{self._SUFFIX}"

    def get(self, user_id: str) -> ProgressSnapshot | None:
        path = self._path_for(user_id)
        try:
            document = path.read_text(encoding="utf-8")
        except FileNotFoundError:
            return None
        except OSError as exc:
            raise PersistenceError(
                f"Could not read progress for {user_id!r}: {exc}",
                user_id=user_id,
                operation="get",
                details={"path": str(path)},
            ) from exc
        try:
            return from_json(document)
        except SnapshotDecodeError as exc:
            exc.user_id = user_id
            exc.details.setdefault("path", str(path))
            raise

    def put(self, user_id: str, snapshot: ProgressSnapshot) -> None:
        path = self._path_for(user_id)
        document = to_json(snapshot)
        with self._lock:
            try:
                self._directory.mkdir(parents=True, exist_ok=True)
                fd, tmp_name = tempfile.mkstemp(
                    dir=self._directory, prefix=".progress-", suffix=".tmp"
                )
                try:
                    with os.fdopen(fd, "w", encoding="utf-8") as fh:
                        fh.write(document)
                    os.replace(tmp_name, path)
                except BaseException:
                    Path(tmp_name).unlink(missing_ok=True)
                    raise
            except OSError as exc:
                raise PersistenceError(
                    f"Could not write progress for {user_id!r}: {exc}",
                    user_id=user_id,
                    operation="put",
                    details={"path": str(path)},
                ) from exc
        logger.debug("Wrote progress for %r to %s", user_id, path)

    def delete(self, user_id: str) -> bool:
        path = self._path_for(user_id)
        try:
            path.unlink()
            return True
        except FileNotFoundError:
            return False
        except OSError as exc:
            raise PersistenceError(
                f"Could not delete progress for {user_id!r}: {exc}",
                user_id=user_id,
                operation="delete",
            ) from exc

    def user_ids(self) -> list[str]:
        if not self._directory.is_dir():
            return []
        return sorted(
            unquote(p.name[: -len(self._SUFFIX)])
            for p in self._directory.glob(f"*{self._SUFFIX}")
        )


def build_repository(config: StorageConfig) -> ProgressRepository:
    """Create the store described by *config*."""
    config.validate()
    if config.backend == "json_file":
        return JsonFileProgressRepository(config.directory)
    return InMemoryProgressRepository()
