"""Stall file entry store and its persisted formats."""

from enum import Enum
from pathlib import Path
from typing import Any, Iterator, List, Optional, TextIO, Tuple, Union

import yaml

from stall.logging_setup import get_logger
from stall.path_index import Entry, InvalidEntryPath, PathPairIndex

logger = get_logger()

PathLike = Union[str, Path]


class StoreError(Exception):
    """Raised when the stall file cannot be read or written."""

    pass


class DeserializeError(StoreError):
    """Raised when stall file contents cannot be parsed."""

    pass


class SerializeError(StoreError):
    """Raised when the stall file cannot be written."""

    pass


class StoreFormat(Enum):
    """Persisted encodings of a stall file."""

    YAML = "yaml"
    LIST = "list"


COMMENT_PREFIXES = ("//", "#")


def detect_format(text: str) -> Tuple[StoreFormat, Any]:
    """Detect which encoding a stall file uses.

    A YAML mapping whose only key is ``entries`` is the structured format.
    Anything else, including text that is not valid YAML or a list line
    that happens to parse as a mapping (``/srv/app/config: prod.yaml``), is
    read as a newline-delimited file list.

    Args:
        text: Stall file contents

    Returns:
        Tuple of (format, parsed YAML document or None)
    """
    try:
        document = yaml.safe_load(text)
    except yaml.YAMLError as e:
        logger.debug(f"Stall file is not YAML, switching to list format: {e}")
        return StoreFormat.LIST, None

    if isinstance(document, dict) and set(document) == {"entries"}:
        return StoreFormat.YAML, document

    logger.debug("Stall file has no 'entries' mapping, switching to list format")
    return StoreFormat.LIST, None


class StallStore:
    """A stall file entry database with load and save bookkeeping."""

    def __init__(self) -> None:
        """Initialize an empty store."""
        self._index = PathPairIndex()
        self._load_path: Optional[Path] = None
        self._modified = False
        self.load_format: Optional[StoreFormat] = None

    # Entry access

    def is_empty(self) -> bool:
        """Check if there are no entries in the store."""
        return self._index.is_empty()

    def __len__(self) -> int:
        return len(self._index)

    def entries(self) -> Iterator[Entry]:
        """Iterate over the entries in the store."""
        return iter(self._index)

    def entry_local(self, local: PathLike) -> Optional[Entry]:
        """Get the entry with the given local path."""
        remote = self._index.get_by_local(local)
        if remote is None:
            return None
        return Entry(Path(local), remote)

    def entry_remote(self, remote: PathLike) -> Optional[Entry]:
        """Get the entry with the given remote path."""
        local = self._index.get_by_remote(remote)
        if local is None:
            return None
        return Entry(local, Path(remote))

    def insert(self, local: PathLike, remote: PathLike) -> List[Entry]:
        """Insert an entry, replacing any entry sharing either path.

        Returns:
            Entries that were replaced

        Raises:
            InvalidEntryPath: If either path has no file name
        """
        displaced = self._index.insert(local, remote)
        self._modified = True
        return displaced

    def remove_local(self, local: PathLike) -> Optional[Entry]:
        """Remove the entry with the given local path."""
        removed = self._index.remove_by_local(local)
        if removed is not None:
            self._modified = True
        return removed

    def remove_remote(self, remote: PathLike) -> Optional[Entry]:
        """Remove the entry with the given remote path."""
        removed = self._index.remove_by_remote(remote)
        if removed is not None:
            self._modified = True
        return removed

    # Load status

    def load_path(self) -> Optional[Path]:
        """Get the path the store was loaded from."""
        return self._load_path

    def set_load_path(self, path: PathLike) -> None:
        """Set the path the store is loaded from and saved to."""
        self._load_path = Path(path)

    def with_load_path(self, path: PathLike) -> "StallStore":
        """Set the load path and return the store."""
        self.set_load_path(path)
        return self

    def modified(self) -> bool:
        """Check if the store changed since it was loaded or saved."""
        return self._modified

    def set_modified(self, modified: bool) -> None:
        """Set the modification flag."""
        self._modified = modified

    # Reading

    @classmethod
    def read_from(cls, data: Union[bytes, str], fmt: Optional[StoreFormat] = None) -> "StallStore":
        """Construct a store from stall file contents.

        Args:
            data: Raw stall file contents
            fmt: Format to parse, or None to detect it

        Returns:
            StallStore with the parsed entries

        Raises:
            DeserializeError: If the contents cannot be parsed
        """
        if isinstance(data, bytes):
            try:
                text = data.decode("utf-8")
            except UnicodeDecodeError as e:
                raise DeserializeError(f"Stall file is not valid UTF-8: {e}") from e
        else:
            text = data

        if fmt is None:
            fmt, document = detect_format(text)
        elif fmt == StoreFormat.YAML:
            try:
                document = yaml.safe_load(text) or {}
            except yaml.YAMLError as e:
                raise DeserializeError(f"Failed parsing YAML stall file: {e}") from e
        else:
            document = None

        if fmt == StoreFormat.YAML:
            store = cls._parse_yaml(document)
        else:
            store = cls._parse_list(text)

        store.load_format = fmt
        store.set_modified(False)
        logger.debug(f"Loaded {len(store)} stall entries ({fmt.value} format)")
        return store

    @classmethod
    def read_from_path(cls, path: PathLike, fmt: Optional[StoreFormat] = None) -> "StallStore":
        """Construct a store from the stall file at the given path.

        Raises:
            StoreError: If the file cannot be opened or parsed
        """
        path = Path(path)
        try:
            data = path.read_bytes()
        except OSError as e:
            raise StoreError(f"Failed to open stall file for reading: {path}: {e}") from e

        store = cls.read_from(data, fmt)
        store.set_load_path(path)
        return store

    @classmethod
    def _parse_yaml(cls, document: Any) -> "StallStore":
        """Build a store from a parsed YAML document."""
        if not isinstance(document, dict):
            raise DeserializeError("Stall file must contain a mapping")

        unknown = set(document) - {"entries"}
        if unknown:
            raise DeserializeError(f"Unknown stall file keys: {', '.join(sorted(map(str, unknown)))}")

        items = document.get("entries") or []
        if not isinstance(items, list):
            raise DeserializeError("Stall file 'entries' must be a list")

        store = cls()
        for position, item in enumerate(items):
            if isinstance(item, dict) and set(item) == {"local", "remote"}:
                local, remote = item["local"], item["remote"]
            elif isinstance(item, list) and len(item) == 2:
                local, remote = item
            else:
                raise DeserializeError(f"Malformed stall entry at position {position}: {item!r}")

            if not isinstance(local, str) or not isinstance(remote, str):
                raise DeserializeError(f"Stall entry paths must be strings at position {position}")

            try:
                store.insert(local, remote)
            except InvalidEntryPath as e:
                raise DeserializeError(f"Invalid stall entry at position {position}: {e}") from e

        return store

    @classmethod
    def _parse_list(cls, text: str) -> "StallStore":
        """Build a store from a newline-delimited list of remote paths."""
        store = cls()
        for line in text.splitlines():
            line = line.strip()
            if not line or line.startswith(COMMENT_PREFIXES):
                continue

            remote = Path(line)
            try:
                store.insert(remote.name, remote)
            except InvalidEntryPath as e:
                raise DeserializeError(f"Invalid stall file line {line!r}: {e}") from e

        return store

    # Writing

    def to_document(self) -> dict:
        """Get the structured representation of the store."""
        return {
            "entries": [
                {"local": str(entry.local), "remote": str(entry.remote)}
                for entry in self.entries()
            ]
        }

    def write_to(self, sink: TextIO) -> None:
        """Write the store into a text stream.

        Raises:
            SerializeError: If serialization or writing fails
        """
        logger.debug("Serializing & writing stall file")
        try:
            yaml.safe_dump(
                self.to_document(),
                sink,
                default_flow_style=False,
                sort_keys=False,
                indent=2,
            )
        except (yaml.YAMLError, OSError) as e:
            raise SerializeError(f"Failed to write stall file: {e}") from e

    def write_to_path(self, path: PathLike) -> None:
        """Write the store into the file at the given path, replacing it."""
        self._write(Path(path), "w")

    def write_to_path_if_new(self, path: PathLike) -> None:
        """Write the store into a new file at the given path.

        Raises:
            SerializeError: If the file already exists
        """
        self._write(Path(path), "x")

    def write_to_load_path(self) -> bool:
        """Write the store into the file it was loaded from.

        Returns:
            True if the data was written, False if there is no load path
        """
        if self._load_path is None:
            return False
        self.write_to_path(self._load_path)
        return True

    def write_to_load_path_if_new(self) -> bool:
        """Write the store into a new file at its load path.

        Returns:
            True if the data was written, False if there is no load path or
            the file already exists
        """
        if self._load_path is None or self._load_path.exists():
            return False
        self.write_to_path_if_new(self._load_path)
        return True

    def _write(self, path: Path, mode: str) -> None:
        """Open a stall file with the given mode and write the store into it."""
        try:
            with open(path, mode, encoding="utf-8") as f:
                self.write_to(f)
        except FileExistsError as e:
            raise SerializeError(f"Stall file already exists: {path}") from e
        except OSError as e:
            raise SerializeError(f"Failed to create/open stall file for writing: {path}: {e}") from e

        self._modified = False
        logger.info(f"Saved stall file: {path}")
