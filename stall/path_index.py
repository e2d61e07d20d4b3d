"""Bijective index between stall-local paths and remote paths."""

from pathlib import Path
from typing import Dict, Iterator, List, NamedTuple, Optional, Union

from stall.logging_setup import get_logger

logger = get_logger()

PathLike = Union[str, Path]


class InvalidEntryPath(Exception):
    """Raised when an entry path has no file name component."""

    pass


class Entry(NamedTuple):
    """A tracked correspondence between a stall file and its remote file."""

    local: Path
    remote: Path


def has_file_name(path: PathLike) -> bool:
    """Check whether a path ends in a usable file name.

    Paths such as ``/``, ``.`` or ``a/..`` have no file name component.
    """
    return Path(path).name not in ("", ".", "..")


class PathPairIndex:
    """One-to-one mapping between local and remote paths.

    Two dicts are kept consistent with each other; every mutation updates
    both within the same call, so no local or remote path is ever mapped
    twice.
    """

    def __init__(self) -> None:
        self._by_local: Dict[Path, Path] = {}
        self._by_remote: Dict[Path, Path] = {}

    def insert(self, local: PathLike, remote: PathLike) -> List[Entry]:
        """Insert a local/remote pair, displacing any entry sharing either path.

        Args:
            local: Stall-relative path
            remote: Remote file path

        Returns:
            Entries removed to make room for the new pair

        Raises:
            InvalidEntryPath: If either path has no file name
        """
        local = Path(local)
        remote = Path(remote)

        if not has_file_name(local):
            raise InvalidEntryPath(f"Invalid local file name: {local}")
        if not has_file_name(remote):
            raise InvalidEntryPath(f"Invalid remote file name: {remote}")

        displaced = []
        old = self.remove_by_local(local)
        if old is not None:
            displaced.append(old)
        old = self.remove_by_remote(remote)
        if old is not None:
            displaced.append(old)

        for entry in displaced:
            if entry != (local, remote):
                logger.warning(
                    f"Overwriting stall entry {entry.local} <- {entry.remote} "
                    f"with {local} <- {remote}"
                )

        self._by_local[local] = remote
        self._by_remote[remote] = local
        return [entry for entry in displaced if entry != (local, remote)]

    def get_by_local(self, local: PathLike) -> Optional[Path]:
        """Get the remote path for a local path."""
        return self._by_local.get(Path(local))

    def get_by_remote(self, remote: PathLike) -> Optional[Path]:
        """Get the local path for a remote path."""
        return self._by_remote.get(Path(remote))

    def remove_by_local(self, local: PathLike) -> Optional[Entry]:
        """Remove the entry with the given local path.

        Returns:
            The removed entry, or None if no entry matched
        """
        local = Path(local)
        remote = self._by_local.pop(local, None)
        if remote is None:
            return None
        del self._by_remote[remote]
        return Entry(local, remote)

    def remove_by_remote(self, remote: PathLike) -> Optional[Entry]:
        """Remove the entry with the given remote path.

        Returns:
            The removed entry, or None if no entry matched
        """
        remote = Path(remote)
        local = self._by_remote.pop(remote, None)
        if local is None:
            return None
        del self._by_local[local]
        return Entry(local, remote)

    def is_empty(self) -> bool:
        """Check if the index holds no entries."""
        return not self._by_local

    def __iter__(self) -> Iterator[Entry]:
        return (Entry(local, remote) for local, remote in self._by_local.items())

    def __len__(self) -> int:
        return len(self._by_local)

    def __contains__(self, local: object) -> bool:
        if not isinstance(local, (str, Path)):
            return False
        return Path(local) in self._by_local
