"""
Escalation Ledger - JSON-backed work_id -> escalation records.

Several sessions (and processes) write the same file, so every operation
re-reads it and does its read-modify-write while holding an exclusive
flock on a sidecar lock file. A missing or unreadable file is treated as
an empty ledger.
"""

import fcntl
import json
import logging
import threading
from contextlib import contextmanager
from pathlib import Path
from typing import Iterator, Optional, Union

from model_selector.models.routing import EscalationEntry


logger = logging.getLogger(__name__)


class EscalationLedger:
    """
    Escalation records keyed by unit-of-work id.

    File layout:
        {"escalations": {"<work_id>": {"work_id", "model", "category",
                                       "session_key", "created_at"}}}

    With no storage_path the records live in memory only.
    """

    STORAGE_KEY = "escalations"

    def __init__(self, storage_path: Optional[Union[str, Path]] = None):
        """
        Args:
            storage_path: Path to the shared JSON file (None for in-memory)
        """
        self.storage_path = Path(storage_path) if storage_path else None
        self._items: dict[str, EscalationEntry] = {}
        self._lock = threading.Lock()

    @property
    def lock_path(self) -> Optional[Path]:
        if not self.storage_path:
            return None
        return self.storage_path.with_name(self.storage_path.name + ".lock")

    def record(self, entry: EscalationEntry) -> None:
        """Insert an entry, superseding any live entry for the same work_id."""
        with self._locked():
            items = self._load()
            superseded = entry.work_id in items
            items[entry.work_id] = entry
            self._save(items)

        if superseded:
            logger.info(f"Superseded escalation for {entry.work_id}: {entry.model} ({entry.category})")
        else:
            logger.info(f"Recorded escalation for {entry.work_id}: {entry.model} ({entry.category})")

    def get(self, work_id: str) -> Optional[EscalationEntry]:
        with self._locked():
            return self._load().get(work_id)

    def remove(self, work_id: str) -> Optional[EscalationEntry]:
        """
        Remove an entry.

        Returns:
            The removed entry, None if there was none
        """
        with self._locked():
            items = self._load()
            entry = items.pop(work_id, None)
            if entry is not None:
                self._save(items)

        if entry is not None:
            logger.info(f"Removed escalation for {work_id}")
        return entry

    def get_all(self) -> list[EscalationEntry]:
        with self._locked():
            return list(self._load().values())

    def for_session(self, session_key: str) -> list[EscalationEntry]:
        return [e for e in self.get_all() if e.session_key == session_key]

    @contextmanager
    def _locked(self) -> Iterator[None]:
        with self._lock:
            if not self.storage_path:
                yield
                return

            self.storage_path.parent.mkdir(parents=True, exist_ok=True)
            with open(self.lock_path, "a") as lock_file:
                fcntl.flock(lock_file.fileno(), fcntl.LOCK_EX)
                try:
                    yield
                finally:
                    fcntl.flock(lock_file.fileno(), fcntl.LOCK_UN)

    def _load(self) -> dict[str, EscalationEntry]:
        """Read current entries. Callers hold the lock."""
        if not self.storage_path:
            return dict(self._items)

        if not self.storage_path.exists():
            return {}

        try:
            with open(self.storage_path, "r") as f:
                data = json.load(f)
        except json.JSONDecodeError as e:
            logger.error(f"Escalation ledger {self.storage_path} is malformed, treating as empty: {e}")
            return {}
        except OSError as e:
            logger.error(f"Failed to read escalation ledger {self.storage_path}: {e}")
            return {}

        items_data = data.get(self.STORAGE_KEY, {}) if isinstance(data, dict) else {}
        if not isinstance(items_data, dict):
            logger.error(f"Escalation ledger {self.storage_path} has no '{self.STORAGE_KEY}' mapping")
            return {}

        items: dict[str, EscalationEntry] = {}
        for work_id, item_data in items_data.items():
            try:
                items[work_id] = EscalationEntry.model_validate(item_data)
            except Exception as e:
                logger.warning(f"Failed to deserialize escalation {work_id}: {e}")
        return items

    def _save(self, items: dict[str, EscalationEntry]) -> None:
        """Write entries back. Callers hold the lock."""
        if not self.storage_path:
            self._items = dict(items)
            return

        data = {
            self.STORAGE_KEY: {
                work_id: entry.model_dump(mode="json")
                for work_id, entry in items.items()
            }
        }
        tmp_path = self.storage_path.with_name(self.storage_path.name + ".tmp")
        try:
            with open(tmp_path, "w") as f:
                json.dump(data, f, indent=2, default=str)
            tmp_path.replace(self.storage_path)
        except OSError as e:
            logger.error(f"Failed to save escalation ledger {self.storage_path}: {e}")
