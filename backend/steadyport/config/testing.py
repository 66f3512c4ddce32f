"""
Configuration override for automated tests.

for_testing() swaps only the data directory of an already loaded
Configuration. It refuses any directory that is relative, equal to the
production data directory, or nested with it in either direction, so a test
cannot write production data even by accident.
"""

from pathlib import Path, PurePath
from typing import Optional, Union
import os

from ..domain.errors import UnsafeTestConfigurationError
from .settings import Configuration, default_data_dir

PathLike = Union[str, os.PathLike]


def _overlaps(a: PurePath, b: PurePath) -> bool:
    return a == b or a.is_relative_to(b) or b.is_relative_to(a)


def for_testing(base: Configuration, override_data_dir: PathLike,
                production_data_dir: Optional[Path] = None) -> Configuration:
    """Return `base` with `data_dir` replaced by an ephemeral test directory."""
    candidate = Path(override_data_dir)
    if not candidate.is_absolute():
        raise UnsafeTestConfigurationError(
            f"Test data directory must be absolute, got {str(override_data_dir)!r}"
        )
    candidate = Path(os.path.normpath(candidate))

    protected = {
        Path(os.path.normpath(p)) for p in (base.data_dir, production_data_dir or default_data_dir())
    }
    for production in protected:
        if _overlaps(candidate, production):
            raise UnsafeTestConfigurationError(
                f"Test data directory {candidate} overlaps the production data directory {production}"
            )

    return base.model_copy(update={"data_dir": candidate})
