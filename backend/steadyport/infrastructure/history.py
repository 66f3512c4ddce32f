from typing import Deque, List
from collections import deque
from pydantic import BaseModel
import threading
from loguru import logger
import json

from ..domain.app_constants import JOURNAL_FILE, JOURNAL_MAX_ENTRIES
from ..domain.types import HandleId
from .paths import PathResolver


class LaunchRecord(BaseModel):
    handle_id: HandleId
    timestamp: float
    event: str  # "listening" | "failed" | "stopped"
    host: str
    port: int
    detail: str = ""


class LaunchJournal:
    """Bounded record of launcher lifecycle events, stored under the data directory."""

    def __init__(self, paths: PathResolver, max_entries: int = JOURNAL_MAX_ENTRIES):
        self.storage_path = paths.resolve(JOURNAL_FILE)
        self._entries: Deque[LaunchRecord] = deque(maxlen=max_entries)
        self._lock = threading.Lock()
        self._load()

    def _load(self):
        if not self.storage_path.exists():
            return
        try:
            with open(self.storage_path, "r", encoding="utf-8") as f:
                data = json.load(f)
            # Stored newest first; append keeps that order
            for item in data:
                self._entries.append(LaunchRecord(**item))
        except Exception as e:
            logger.error(f"Failed to load launch journal: {e}")

    def _save(self):
        try:
            self.storage_path.parent.mkdir(parents=True, exist_ok=True)
            with open(self.storage_path, "w", encoding="utf-8") as f:
                json.dump([e.model_dump() for e in self._entries], f, indent=2)
        except OSError as e:
            logger.error(f"Failed to save launch journal: {e}")

    def add(self, record: LaunchRecord):
        with self._lock:
            self._entries.appendleft(record)
            self._save()

    def get_recent(self, limit: int = 20) -> List[LaunchRecord]:
        with self._lock:
            return list(self._entries)[:limit]
