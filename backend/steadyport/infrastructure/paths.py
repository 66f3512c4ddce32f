from pathlib import Path, PurePath
from typing import Sequence, Union
import os

from ..domain.errors import PathTraversalError


class PathResolver:
    """
    Hands out file-system paths under the configured data directory.

    Pure path arithmetic: nothing is read, created or followed on disk. Every
    path returned is the data directory itself or a descendant of it.
    """

    def __init__(self, data_dir: Path):
        if not data_dir.is_absolute():
            raise ValueError(f"data_dir must be absolute, got {str(data_dir)!r}")
        self.data_dir = Path(os.path.normpath(data_dir))

    def resolve(self, segments: Union[str, Sequence[str]]) -> Path:
        parts = [segments] if isinstance(segments, str) else list(segments)
        for part in parts:
            if not isinstance(part, str):
                raise TypeError(f"path segments must be strings, got {type(part).__name__}")
            # Absolute segments and drive letters would replace data_dir in the join
            if "\x00" in part or os.path.isabs(part) or PurePath(part).drive:
                raise PathTraversalError(parts, self.data_dir)

        candidate = Path(os.path.normpath(os.path.join(self.data_dir, *parts)))
        if candidate != self.data_dir and not candidate.is_relative_to(self.data_dir):
            raise PathTraversalError(parts, self.data_dir)
        return candidate

