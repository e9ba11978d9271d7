import json
import logging
import os
import tempfile
import threading
from contextlib import contextmanager
from pathlib import Path
from typing import Any

from .errors import StorageError

logger = logging.getLogger(__name__)

USER_DOCUMENT = "user.json"
SOFTWARE_DOCUMENT = "software.json"
KEYS_DOCUMENT = "keys.json"

COLLECTION_DOCUMENTS = (SOFTWARE_DOCUMENT, KEYS_DOCUMENT)


class JsonDocumentStore:
    """Whole-document JSON persistence.

    Each collection lives in its own file and every mutation rewrites the
    complete snapshot. Writes go through a temp file and ``os.replace`` so
    readers never observe a half-written document, and ``lock()`` serialises
    read-modify-write cycles on one document within the process.
    """

    def __init__(self, data_dir):
        self.data_dir = Path(data_dir)
        self._locks = {
            name: threading.RLock()
            for name in (USER_DOCUMENT, SOFTWARE_DOCUMENT, KEYS_DOCUMENT)
        }

    def path(self, name: str) -> Path:
        return self.data_dir / name

    def exists(self, name: str) -> bool:
        return self.path(name).exists()

    def initialize(self) -> None:
        """Create the data directory and empty collections. Safe to re-run."""
        if not self.data_dir.exists():
            self.data_dir.mkdir(parents=True, exist_ok=True)
            logger.info(f"Created data directory {self.data_dir}")
        for name in COLLECTION_DOCUMENTS:
            with self.lock(name):
                if not self.exists(name):
                    self.write(name, [])
                    logger.info(f"Initialised empty document {name}")

    @contextmanager
    def lock(self, name: str):
        with self._locks[name]:
            yield

    def read(self, name: str) -> Any:
        path = self.path(name)
        try:
            with open(path, "r", encoding="utf-8") as f:
                return json.load(f)
        except (OSError, ValueError) as e:
            logger.error(f"Failed to read {path}: {e}")
            raise StorageError(f"Failed to read {name}") from e

    def read_or_default(self, name: str, default: Any) -> Any:
        """Listing read: a broken or missing document degrades to ``default``."""
        try:
            return self.read(name)
        except StorageError:
            return default

    def write(self, name: str, data: Any) -> None:
        path = self.path(name)
        tmp_path = None
        try:
            fd, tmp_path = tempfile.mkstemp(dir=self.data_dir, prefix=f".{name}.", suffix=".tmp")
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                json.dump(data, f, indent=2, ensure_ascii=False)
            os.replace(tmp_path, path)
            tmp_path = None
        except (OSError, TypeError, ValueError) as e:
            logger.error(f"Failed to write {path}: {e}")
            raise StorageError(f"Failed to write {name}") from e
        finally:
            if tmp_path is not None and os.path.exists(tmp_path):
                os.remove(tmp_path)
