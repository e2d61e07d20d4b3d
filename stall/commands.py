"""Stall command implementations."""

from dataclasses import dataclass
from pathlib import Path
from typing import Iterable, List, Optional, Union

from stall.comparator import FileComparator
from stall.file_ops import FileOps, FileOpsError
from stall.logging_setup import get_logger
from stall.path_index import Entry, InvalidEntryPath, has_file_name
from stall.reconcile import Direction, ReconciliationEngine
from stall.stall_store import StallStore
from stall.status_formatter import StatusFormatter
from stall.sync_executor import EntryResult, SyncExecutor, SyncReport

logger = get_logger()

PathLike = Union[str, Path]


class CommandError(Exception):
    """Raised when a command cannot be carried out."""

    pass


@dataclass
class CommandOptions:
    """Options shared between commands."""

    dry_run: bool = False
    force: bool = False
    promote_warnings_to_errors: bool = False
    short_names: bool = False
    quiet: bool = False
    mtime_tolerance: float = 0.0


def _echo(options: CommandOptions, message: str) -> None:
    """Print a user-facing message unless quiet."""
    if not options.quiet:
        print(message)


def make_executor(
    stall_dir: PathLike, options: CommandOptions, file_ops: Optional[FileOps] = None
) -> SyncExecutor:
    """Build an executor that reports to stdout according to the options."""
    return SyncExecutor(
        stall_dir,
        engine=ReconciliationEngine(FileComparator(options.mtime_tolerance)),
        file_ops=file_ops or FileOps(),
        observer=StatusFormatter(short_names=options.short_names, quiet=options.quiet),
        promote_warnings_to_errors=options.promote_warnings_to_errors,
    )


def init(store: StallStore, options: CommandOptions) -> bool:
    """Create a new stall file at the store's load path.

    An existing stall file is left untouched.

    Args:
        store: Stall to write
        options: Command options

    Returns:
        True if a new stall file was (or in a dry run, would be) created
    """
    load_path = store.load_path()
    if load_path is None:
        raise CommandError("No stall file path to initialize")

    if options.dry_run:
        created = not load_path.exists()
    else:
        created = store.write_to_load_path_if_new()

    if created:
        _echo(options, f"Created new stall file at {load_path}")
    else:
        _echo(options, f"Stall file already exists at {load_path}")
    return created


def add(
    store: StallStore,
    stall_dir: PathLike,
    files: Iterable[PathLike],
    options: CommandOptions,
    rename: Optional[PathLike] = None,
    into: Optional[PathLike] = None,
    collect: bool = False,
) -> List[Entry]:
    """Add remote files to the stall.

    The local path is the remote file name, or ``rename`` if given, placed
    under the ``into`` subdirectory of the stall.

    Args:
        store: Stall to add entries to
        stall_dir: Stall directory
        files: Remote file paths
        options: Command options
        rename: Local file name to use instead of the remote name
        into: Stall subdirectory to place the files in
        collect: Collect the added files immediately

    Returns:
        Entries added

    Raises:
        CommandError: If a remote path has no file name and warnings are
            promoted to errors
    """
    added = []
    for remote in files:
        remote = Path(remote).absolute()
        logger.debug(f"Add entry with remote path: {remote}")

        if rename is not None:
            name = Path(rename)
        elif has_file_name(remote):
            name = Path(remote.name)
        else:
            _echo(options, f"Invalid remote file name: {remote}")
            logger.warning(f"Invalid remote file name: {remote}")
            if options.promote_warnings_to_errors:
                raise CommandError(f"Invalid remote file name: {remote}")
            continue

        local = Path(into) / name if into is not None else name
        logger.debug(f"      ... with local path: {local}")

        if not options.dry_run:
            store.insert(local, remote)
        added.append(Entry(local, remote))

    if collect and added and not options.dry_run:
        executor = make_executor(stall_dir, options)
        executor.run(store, Direction.COLLECT, selected_locals=[entry.local for entry in added])

    return added


def remove(
    store: StallStore,
    files: Iterable[PathLike],
    options: CommandOptions,
    delete_stall_dir: Optional[PathLike] = None,
    remote_naming: bool = False,
    file_ops: Optional[FileOps] = None,
) -> List[Entry]:
    """Remove entries from the stall.

    Args:
        store: Stall to remove entries from
        files: Local paths (or remote paths with remote_naming)
        options: Command options
        delete_stall_dir: Stall directory to delete the stall copies from, or
            None to keep them
        remote_naming: Look up entries by remote path instead of local path
        file_ops: File operations handler

    Returns:
        Entries removed

    Raises:
        CommandError: If an entry is unknown and warnings are promoted to errors
        FileOpsError: If deleting a stall copy fails and warnings are
            promoted to errors
    """
    file_ops = file_ops or FileOps()
    naming = "remote" if remote_naming else "local"
    removed = []

    for file in files:
        logger.debug(f"Remove entry with {naming} path: {file}")

        if options.dry_run:
            entry = store.entry_remote(file) if remote_naming else store.entry_local(file)
            _echo(options, f"remove stall entry with {naming} path {file}")
        elif remote_naming:
            entry = store.remove_remote(file)
        else:
            entry = store.remove_local(file)

        if entry is None:
            logger.warning(f"No stall entry with {naming} path {file}")
            if options.promote_warnings_to_errors:
                raise CommandError(f"No stall entry with {naming} path {file}")
            continue

        removed.append(entry)

        if delete_stall_dir is not None and not options.dry_run:
            try:
                file_ops.remove_file(Path(delete_stall_dir) / entry.local)
            except FileOpsError as e:
                logger.warning(str(e))
                if options.promote_warnings_to_errors:
                    raise

    return removed


def rename(
    store: StallStore,
    source: PathLike,
    target: PathLike,
    options: CommandOptions,
    move_stall_dir: Optional[PathLike] = None,
    file_ops: Optional[FileOps] = None,
) -> Entry:
    """Change the local path of a stall entry.

    Args:
        store: Stall holding the entry
        source: Current local path
        target: New local path
        options: Command options; ``force`` allows replacing an existing entry
        move_stall_dir: Stall directory to move the stall copy within, or
            None to leave files alone
        file_ops: File operations handler

    Returns:
        The renamed entry

    Raises:
        CommandError: If the entry is unknown or the target exists without force
        InvalidEntryPath: If the target has no file name
    """
    file_ops = file_ops or FileOps()

    entry = store.entry_local(source)
    if entry is None:
        raise CommandError(f"No stall file found: {source}")

    if store.entry_local(target) is not None and not options.force:
        raise CommandError(
            f"Stall file already exists: {target}\nUse --force option to overwrite it."
        )

    if not has_file_name(target):
        raise InvalidEntryPath(f"Invalid local file name: {target}")

    renamed = Entry(Path(target), entry.remote)
    if options.dry_run:
        _echo(options, f"rename stall entry {source} -> {target}")
        return renamed

    store.remove_local(source)
    store.insert(target, entry.remote)

    if move_stall_dir is not None:
        try:
            file_ops.move_file(Path(move_stall_dir) / source, Path(move_stall_dir) / target)
        except FileOpsError:
            _echo(options, "Failed to move files.")
            raise

    return renamed


def status(store: StallStore, stall_dir: PathLike, options: CommandOptions) -> List[EntryResult]:
    """Print the comparative status of every stall entry."""
    return make_executor(stall_dir, options).status(store)


def collect(
    store: StallStore,
    stall_dir: PathLike,
    files: Iterable[PathLike],
    options: CommandOptions,
    file_ops: Optional[FileOps] = None,
) -> SyncReport:
    """Copy remote files into the stall where they are newer."""
    return make_executor(stall_dir, options, file_ops).run(
        store,
        Direction.COLLECT,
        selected_locals=files,
        force=options.force,
        dry_run=options.dry_run,
    )


def distribute(
    store: StallStore,
    stall_dir: PathLike,
    files: Iterable[PathLike],
    options: CommandOptions,
    file_ops: Optional[FileOps] = None,
) -> SyncReport:
    """Copy stall files out to their remote paths where they are newer."""
    return make_executor(stall_dir, options, file_ops).run(
        store,
        Direction.DISTRIBUTE,
        selected_locals=files,
        force=options.force,
        dry_run=options.dry_run,
    )
