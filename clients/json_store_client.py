"""
Flat-file JSON store for named collections and single-object documents.

Each name maps to one JSON file under the data directory (users.json,
licenses.json, ...). Collections are JSON arrays, documents are JSON objects.
A missing file reads as an empty collection; callers that need to tell
"missing" apart from "empty" use exists().

Concurrency: one writer at a time per name. Every read-modify-write goes
through mutate_collection(), which holds that name's lock for the whole
cycle. This is single-process only - two processes sharing a data directory
can still race.
"""

import json
import logging
import os
import tempfile
import threading
from contextlib import contextmanager
from pathlib import Path
from typing import Any, Dict, Iterator, List

logger = logging.getLogger(__name__)


class StorageError(Exception):
    """Reading or writing a stored file failed (I/O or malformed JSON)."""

    def __init__(self, name: str, message: str):
        self.name = name
        super().__init__(f"{name}: {message}")


class BaseStoreClient:
    """
    Shared collection/document API over a raw load/dump backend.

    Subclasses implement _exists, _load, _dump and _remove. Everything else,
    including locking, lives here.
    """

    def __init__(self):
        self._locks: Dict[str, threading.RLock] = {}
        self._locks_guard = threading.Lock()

    def _lock(self, name: str) -> threading.RLock:
        with self._locks_guard:
            if name not in self._locks:
                self._locks[name] = threading.RLock()
            return self._locks[name]

    # -- backend hooks ----------------------------------------------------

    def _exists(self, name: str) -> bool:
        raise NotImplementedError

    def _load(self, name: str) -> Any:
        raise NotImplementedError

    def _dump(self, name: str, data: Any) -> None:
        raise NotImplementedError

    def _remove(self, name: str) -> bool:
        raise NotImplementedError

    # -- public API -------------------------------------------------------

    def exists(self, name: str) -> bool:
        """True if the backing file for name is present."""
        with self._lock(name):
            return self._exists(name)

    def read_collection(self, name: str) -> List[dict]:
        """
        Read a collection.

        Returns [] when the file does not exist.
        Raises StorageError on I/O failure or when the file is not a JSON array.
        """
        with self._lock(name):
            if not self._exists(name):
                return []
            data = self._load(name)
        if not isinstance(data, list):
            raise StorageError(name, "expected a JSON array")
        return data

    def write_collection(self, name: str, items: List[dict]) -> None:
        """Replace the whole collection. Raises StorageError on failure."""
        with self._lock(name):
            self._dump(name, list(items))

    def create_collection(self, name: str, items: List[dict]) -> bool:
        """
        Write items as a new collection unless name already exists.

        Returns True if the collection was created by this call.
        """
        with self._lock(name):
            if self._exists(name):
                return False
            self._dump(name, list(items))
            return True

    @contextmanager
    def mutate_collection(self, name: str) -> Iterator[List[dict]]:
        """
        Read-modify-write a collection under its lock.

        The yielded list is written back when the block exits normally.
        If the block raises, nothing is written.

        Usage:
            with store.mutate_collection("licenses") as licenses:
                licenses.append(record)
        """
        with self._lock(name):
            items = self.read_collection(name)
            yield items
            self._dump(name, items)

    def read_document(self, name: str) -> dict | None:
        """Read a single-object document, or None if it does not exist."""
        with self._lock(name):
            if not self._exists(name):
                return None
            data = self._load(name)
        if not isinstance(data, dict):
            raise StorageError(name, "expected a JSON object")
        return data

    def write_document(self, name: str, document: dict) -> None:
        """Create or overwrite a single-object document."""
        with self._lock(name):
            self._dump(name, document)

    def delete(self, name: str) -> bool:
        """
        Remove the backing file for name.

        Returns True if it existed. Safe to call when already absent.
        """
        with self._lock(name):
            return self._remove(name)


class JsonStoreClient(BaseStoreClient):
    """
    File-backed store. One `<name>.json` file per collection or document.

    Usage:
        store = JsonStoreClient(Path("~/.market-manager").expanduser())
        users = store.read_collection("users")
    """

    def __init__(self, data_dir: Path | str):
        super().__init__()
        self._data_dir = Path(data_dir)
        self._data_dir.mkdir(parents=True, exist_ok=True)
        logger.info(f"JsonStoreClient using {self._data_dir}")

    @property
    def data_dir(self) -> Path:
        return self._data_dir

    def path_for(self, name: str) -> Path:
        return self._data_dir / f"{name}.json"

    def _exists(self, name: str) -> bool:
        return self.path_for(name).is_file()

    def _load(self, name: str) -> Any:
        path = self.path_for(name)
        try:
            with open(path, "r", encoding="utf-8") as f:
                return json.load(f)
        except (OSError, json.JSONDecodeError) as e:
            logger.error(f"Failed to read {path}: {e}")
            raise StorageError(name, str(e)) from e

    def _dump(self, name: str, data: Any) -> None:
        path = self.path_for(name)
        try:
            # Write to a sibling temp file and swap it in so readers never
            # see a half-written file.
            fd, tmp_path = tempfile.mkstemp(
                dir=self._data_dir, prefix=f".{name}.", suffix=".tmp"
            )
            try:
                with os.fdopen(fd, "w", encoding="utf-8") as f:
                    json.dump(data, f, indent=2, ensure_ascii=False)
                os.replace(tmp_path, path)
            except BaseException:
                if os.path.exists(tmp_path):
                    os.unlink(tmp_path)
                raise
        except (OSError, TypeError, ValueError) as e:
            logger.error(f"Failed to write {path}: {e}")
            raise StorageError(name, str(e)) from e

    def _remove(self, name: str) -> bool:
        path = self.path_for(name)
        try:
            path.unlink()
            return True
        except FileNotFoundError:
            return False
        except OSError as e:
            logger.error(f"Failed to delete {path}: {e}")
            raise StorageError(name, str(e)) from e


class MemoryStoreClient(BaseStoreClient):
    """
    In-memory store with the same semantics as JsonStoreClient.

    Data is round-tripped through JSON on every write so callers cannot
    keep references into stored state, and non-serializable values fail the
    same way they would on disk.
    """

    def __init__(self, initial: Dict[str, Any] | None = None):
        super().__init__()
        self._data: Dict[str, str] = {}
        for name, value in (initial or {}).items():
            self._dump(name, value)

    def _exists(self, name: str) -> bool:
        return name in self._data

    def _load(self, name: str) -> Any:
        try:
            return json.loads(self._data[name])
        except json.JSONDecodeError as e:
            raise StorageError(name, str(e)) from e

    def _dump(self, name: str, data: Any) -> None:
        try:
            self._data[name] = json.dumps(data, ensure_ascii=False)
        except (TypeError, ValueError) as e:
            raise StorageError(name, str(e)) from e

    def _remove(self, name: str) -> bool:
        return self._data.pop(name, None) is not None
