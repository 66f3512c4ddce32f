from pathlib import Path
from typing import Any, Dict, List, Optional
import json
import threading
from loguru import logger

from ..domain.errors import CorruptDocumentError
from .paths import PathResolver


def split_document_path(path: str) -> List[str]:
    """'users/42.json' -> ['users', '42.json']; empty segments are dropped."""
    return [part for part in path.replace("\\", "/").split("/") if part]


class DocumentStore:
    """JSON documents kept under the data directory, addressed by path segments."""

    def __init__(self, paths: PathResolver):
        self.paths = paths
        self._lock = threading.Lock()

    def locate(self, segments: List[str]) -> Path:
        target = self.paths.resolve(segments)
        if target == self.paths.data_dir:
            raise IsADirectoryError(f"{target} is the data directory, not a document")
        return target

    def read(self, segments: List[str]) -> Optional[Dict[str, Any]]:
        target = self.locate(segments)
        with self._lock:
            if not target.is_file():
                return None
            try:
                with open(target, "r", encoding="utf-8") as f:
                    document = json.load(f)
            except (json.JSONDecodeError, UnicodeDecodeError) as e:
                raise CorruptDocumentError(target, str(e)) from e
        if not isinstance(document, dict):
            raise CorruptDocumentError(target, f"expected an object, found {type(document).__name__}")
        return document

    def write(self, segments: List[str], document: Dict[str, Any]) -> Path:
        target = self.locate(segments)
        with self._lock:
            target.parent.mkdir(parents=True, exist_ok=True)
            with open(target, "w", encoding="utf-8") as f:
                json.dump(document, f, indent=2)
        logger.debug(f"Wrote document {target}")
        return target
