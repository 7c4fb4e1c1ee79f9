"""
JSON array record stores for human review outcomes.

Each store is a single file holding a JSON array; every append is a
read-modify-write of the whole file. Stores assume a single writer: running
several review sessions against the same file needs external locking.
"""

import json
import logging
import os
from pathlib import Path
from typing import Any, Dict, List, Optional

from release_intelligence import config

logger = logging.getLogger(__name__)

REJECTION_LOG_NAME = "rejection-tracking.json"
APPROVED_LOG_NAME = "approved-tests.json"


def get_store_dir() -> Path:
    """Return the directory holding review record stores."""
    return Path(os.environ.get("REVIEW_STORE_DIR") or config.REVIEW_STORE_DIR)


class RecordStore:
    def __init__(self, path: Optional[Path] = None, name: str = REJECTION_LOG_NAME):
        self.path = Path(path) if path else get_store_dir() / name
        self.path.parent.mkdir(parents=True, exist_ok=True)

    def _read(self) -> List[Dict[str, Any]]:
        if not self.path.exists():
            return []
        try:
            with self.path.open("r", encoding="utf-8") as fh:
                data = json.load(fh)
        except (OSError, ValueError) as exc:
            logger.warning("Record store %s is unreadable, treating it as empty: %s", self.path, exc)
            return []
        if not isinstance(data, list):
            logger.warning("Record store %s does not hold a JSON array, treating it as empty", self.path)
            return []
        return data

    def _write(self, records: List[Dict[str, Any]]) -> None:
        tmp_path = self.path.with_name(self.path.name + ".tmp")
        with tmp_path.open("w", encoding="utf-8") as fh:
            json.dump(records, fh, indent=2)
            fh.flush()
            os.fsync(fh.fileno())
        os.replace(tmp_path, self.path)

    def read(self) -> List[Dict[str, Any]]:
        return self._read()

    def save(self, records: List[Dict[str, Any]]) -> None:
        self._write(records)

    def append(self, record: Dict[str, Any]) -> int:
        """Durably append one record and return the new record count."""
        records = self._read()
        records.append(record)
        self._write(records)
        return len(records)
