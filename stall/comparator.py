"""File metadata snapshots and modification time comparison."""

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Optional, Union

from stall.logging_setup import get_logger

logger = get_logger()


class ComparatorError(Exception):
    """Raised when metadata of an existing path cannot be read."""

    pass


@dataclass(frozen=True)
class FileSnapshot:
    """Existence and modification time of a single path."""

    path: Path
    found: bool
    mtime: Optional[float] = None

    def is_found(self) -> bool:
        """Check if the file existed when the snapshot was taken."""
        return self.found


class FileComparator:
    """Takes file snapshots and compares their modification times."""

    def __init__(self, mtime_tolerance: float = 0.0):
        """Initialize comparator.

        Args:
            mtime_tolerance: Timestamps closer than this (in seconds) compare
                as equal
        """
        self.mtime_tolerance = mtime_tolerance

    def compare(self, path: Union[str, Path]) -> FileSnapshot:
        """Take a snapshot of a path.

        A missing file is a normal outcome and yields a snapshot that is not
        found. Only failures to read metadata of a path that may exist raise.

        Args:
            path: File to inspect

        Returns:
            FileSnapshot for the path

        Raises:
            ComparatorError: If the file metadata cannot be read
        """
        path = Path(path)
        try:
            stat_info = os.stat(path)
        except FileNotFoundError:
            logger.debug(f"File not found: {path}")
            return FileSnapshot(path=path, found=False)
        except OSError as e:
            raise ComparatorError(f"Could not read metadata for {path}: {e}") from e

        return FileSnapshot(path=path, found=True, mtime=stat_info.st_mtime)

    def compare_pair(
        self, local: FileSnapshot, remote: FileSnapshot, reverse: bool = False
    ) -> Optional[int]:
        """Compare modification times of two snapshots.

        Args:
            local: First snapshot
            remote: Second snapshot
            reverse: Flip the sign of the result

        Returns:
            -1, 0 or 1 as local is older than, the same as, or newer than
            remote (negated when reverse is set), or None if either
            timestamp is unavailable
        """
        if local.mtime is None or remote.mtime is None:
            return None

        diff = local.mtime - remote.mtime
        if abs(diff) <= self.mtime_tolerance:
            ordering = 0
        elif diff < 0:
            ordering = -1
        else:
            ordering = 1

        return -ordering if reverse else ordering
