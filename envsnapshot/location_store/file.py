"""JSON-file location store: one object keyed by the well-known location key."""

import json
import os
import tempfile
import threading
from pathlib import Path
from typing import Optional

from envsnapshot.domain import Location
from envsnapshot.location_store.base import LocationStore, dump_location, load_location
from utils.logging_utils import get_tagged_logger

logger = get_tagged_logger(__name__, tag="location_store/file_location_store")


class FileLocationStore(LocationStore):
    """Persist the chosen location in a small JSON document on disk."""

    def __init__(self, path: str | os.PathLike, key: str = "user_location") -> None:
        self.path = Path(path).expanduser()
        self.key = key
        self._lock = threading.Lock()

    def _read_document(self) -> dict:
        """Return the whole JSON document, or {} when missing/unreadable."""
        try:
            text = self.path.read_text(encoding="utf-8")
        except FileNotFoundError:
            return {}
        except OSError as exc:
            logger.warning("Could not read location store", extra={"path": str(self.path), "error": str(exc)})
            return {}
        try:
            doc = json.loads(text)
        except json.JSONDecodeError as exc:
            logger.warning("Location store is not valid JSON", extra={"path": str(self.path), "error": str(exc)})
            return {}
        return doc if isinstance(doc, dict) else {}

    def _write_document(self, doc: dict) -> None:
        """Write atomically so a crash never leaves a half-written file."""
        self.path.parent.mkdir(parents=True, exist_ok=True)
        fd, tmp = tempfile.mkstemp(dir=self.path.parent, prefix=".location-", suffix=".json")
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as fh:
                json.dump(doc, fh)
            os.replace(tmp, self.path)
        except BaseException:
            Path(tmp).unlink(missing_ok=True)
            raise

    def load(self) -> Optional[Location]:
        with self._lock:
            raw = self._read_document().get(self.key)
        if raw is None:
            return None
        if not isinstance(raw, str):
            raw = json.dumps(raw)
        return load_location(raw)

    def save(self, location: Location) -> None:
        with self._lock:
            doc = self._read_document()
            doc[self.key] = json.loads(dump_location(location))
            self._write_document(doc)
        logger.debug("Saved location", extra={"path": str(self.path), "source": location.source.value})

    def delete(self) -> None:
        with self._lock:
            doc = self._read_document()
            if doc.pop(self.key, None) is not None:
                self._write_document(doc)
