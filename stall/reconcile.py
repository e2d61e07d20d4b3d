"""Status comparison and action decisions for stall entries."""

from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Optional, Tuple, Union

from stall.comparator import ComparatorError, FileComparator, FileSnapshot
from stall.logging_setup import get_logger

logger = get_logger()


class Status(Enum):
    """State of one side of an entry relative to the other side."""

    ERROR = "error"
    ABSENT = "absent"
    EXISTS = "exists"
    NEWER = "newer"
    OLDER = "older"
    SAME = "same"


class Action(Enum):
    """What to do with an entry."""

    COPY = "copy"
    FORCE = "force"
    SKIP = "skip"
    STOP = "stop"


class Direction(Enum):
    """Which side of an entry is the source of truth."""

    COLLECT = "collect"
    DISTRIBUTE = "distribute"


StatusPair = Tuple[Status, Status]

# (local, remote) statuses that warrant a copy, and those that only copy
# when forced, keyed by direction.
COPY_STATUSES = {
    Direction.COLLECT: {
        (Status.ABSENT, Status.EXISTS),
        (Status.OLDER, Status.NEWER),
    },
    Direction.DISTRIBUTE: {
        (Status.EXISTS, Status.ABSENT),
        (Status.NEWER, Status.OLDER),
    },
}

FORCE_STATUSES = {
    Direction.COLLECT: {
        (Status.SAME, Status.SAME),
        (Status.NEWER, Status.OLDER),
    },
    Direction.DISTRIBUTE: {
        (Status.SAME, Status.SAME),
        (Status.OLDER, Status.NEWER),
    },
}

ORDERING_STATUSES = {
    -1: (Status.OLDER, Status.NEWER),
    0: (Status.SAME, Status.SAME),
    1: (Status.NEWER, Status.OLDER),
}


def _found_status(snapshot: Optional[FileSnapshot]) -> Status:
    """Status of one side when the other side is absent or unreadable."""
    if snapshot is None:
        return Status.ERROR
    return Status.EXISTS if snapshot.is_found() else Status.ABSENT


def status_pair(
    local: Optional[FileSnapshot],
    remote: Optional[FileSnapshot],
    comparator: Optional[FileComparator] = None,
) -> StatusPair:
    """Derive (local, remote) statuses from two snapshots.

    A snapshot of None stands for a metadata read error on that side.

    Args:
        local: Snapshot of the stall file
        remote: Snapshot of the remote file
        comparator: Comparator used for the timestamp comparison

    Returns:
        Tuple of (local status, remote status)
    """
    if local is None or remote is None or not (local.is_found() and remote.is_found()):
        return _found_status(local), _found_status(remote)

    comparator = comparator or FileComparator()
    ordering = comparator.compare_pair(local, remote)
    if ordering is None:
        return Status.ERROR, Status.ERROR
    return ORDERING_STATUSES[ordering]


def decide_action(
    local_status: Status, remote_status: Status, direction: Direction, force: bool = False
) -> Action:
    """Choose the action for an entry.

    Collect treats the remote file as authoritative, distribute treats the
    stall file as authoritative. A file that is newer than its counterpart is
    only overwritten when forced.

    Args:
        local_status: Status of the stall file
        remote_status: Status of the remote file
        direction: Copy direction
        force: Whether to copy even if the destination is not older

    Returns:
        Action to take
    """
    statuses = (local_status, remote_status)

    if statuses in COPY_STATUSES[direction]:
        return Action.COPY
    if force and statuses in FORCE_STATUSES[direction]:
        return Action.FORCE
    if Status.ERROR in statuses:
        return Action.STOP
    return Action.SKIP


@dataclass(frozen=True)
class Evaluation:
    """Statuses and chosen action for one entry."""

    local_status: Status
    remote_status: Status
    action: Action

    @property
    def statuses(self) -> StatusPair:
        """Get (local, remote) statuses."""
        return self.local_status, self.remote_status


class ReconciliationEngine:
    """Compares stall files against remote files and decides what to copy."""

    def __init__(self, comparator: Optional[FileComparator] = None):
        """Initialize engine.

        Args:
            comparator: File comparator (defaults to exact mtime comparison)
        """
        self.comparator = comparator or FileComparator()

    def snapshot(self, path: Union[str, Path]) -> Optional[FileSnapshot]:
        """Take a snapshot, mapping metadata errors to None."""
        try:
            return self.comparator.compare(path)
        except ComparatorError as e:
            logger.warning(str(e))
            return None

    def status(self, local_path: Union[str, Path], remote_path: Union[str, Path]) -> StatusPair:
        """Compute (local, remote) statuses for a pair of files.

        Args:
            local_path: Path to the stall file
            remote_path: Path to the remote file

        Returns:
            Tuple of (local status, remote status)
        """
        return status_pair(
            self.snapshot(local_path), self.snapshot(remote_path), self.comparator
        )

    def evaluate(
        self,
        local_path: Union[str, Path],
        remote_path: Union[str, Path],
        direction: Direction,
        force: bool = False,
    ) -> Evaluation:
        """Compute statuses and the resulting action for a pair of files.

        Args:
            local_path: Path to the stall file
            remote_path: Path to the remote file
            direction: Copy direction
            force: Whether to copy even if the destination is not older

        Returns:
            Evaluation with statuses and action
        """
        local_status, remote_status = self.status(local_path, remote_path)
        action = decide_action(local_status, remote_status, direction, force)
        logger.debug(
            f"{direction.value}: {local_path} [{local_status.value}] "
            f"{remote_path} [{remote_status.value}] -> {action.value}"
        )
        return Evaluation(local_status, remote_status, action)
