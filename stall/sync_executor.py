"""Runs collect and distribute over the entries of a stall."""

from dataclasses import dataclass, field
from pathlib import Path
from typing import Iterable, List, Optional, Union

from stall.file_ops import FileOps
from stall.logging_setup import get_logger
from stall.path_index import Entry
from stall.reconcile import Action, Direction, ReconciliationEngine, StatusPair
from stall.stall_store import StallStore

logger = get_logger()

PathLike = Union[str, Path]


class UnknownEntry(Exception):
    """Raised when a selected path does not match any stall entry."""

    def __init__(self, path: PathLike):
        super().__init__(f"Unrecognized stall entry: {path}")
        self.path = Path(path)


class MissingOrUnreadableFile(Exception):
    """Raised when an entry cannot be compared and warnings are errors."""

    def __init__(self, entry: Entry, statuses: StatusPair):
        local_status, remote_status = statuses
        super().__init__(
            f"Missing or unreadable file for stall entry {entry.local} "
            f"(local: {local_status.value}, remote: {remote_status.value}; "
            f"remote path {entry.remote})"
        )
        self.entry = entry
        self.statuses = statuses


@dataclass
class EntryResult:
    """Outcome of evaluating a single entry."""

    entry: Entry
    statuses: StatusPair
    action: Optional[Action] = None


@dataclass
class SyncReport:
    """Aggregate outcome of a collect or distribute run."""

    direction: Direction
    dry_run: bool = False
    copied: int = 0
    forced: int = 0
    skipped: int = 0
    stopped: int = 0
    aborted: bool = False
    results: List[EntryResult] = field(default_factory=list)

    @property
    def processed(self) -> int:
        """Get number of entries evaluated."""
        return len(self.results)


class SyncObserver:
    """Receives progress events from a sync run.

    All hooks do nothing by default.
    """

    def on_run_started(self, stall_dir: Path, direction: Optional[Direction]) -> None:
        pass

    def on_nothing_to_do(self) -> None:
        pass

    def on_entry_evaluated(
        self, entry: Entry, statuses: StatusPair, action: Optional[Action]
    ) -> None:
        pass

    def on_copy(self, source: Path, dest: Path, dry_run: bool) -> None:
        pass

    def on_run_finished(self, report: SyncReport) -> None:
        pass


class SyncExecutor:
    """Drives stall entries through the reconciliation engine."""

    def __init__(
        self,
        stall_dir: PathLike,
        engine: Optional[ReconciliationEngine] = None,
        file_ops: Optional[FileOps] = None,
        observer: Optional[SyncObserver] = None,
        promote_warnings_to_errors: bool = False,
    ):
        """Initialize executor.

        Args:
            stall_dir: Directory holding the stall copies
            engine: Reconciliation engine
            file_ops: Copy collaborator
            observer: Receives status and copy events
            promote_warnings_to_errors: Abort the run when an entry cannot be
                compared instead of skipping it
        """
        self.stall_dir = Path(stall_dir)
        self.engine = engine or ReconciliationEngine()
        self.file_ops = file_ops or FileOps()
        self.observer = observer or SyncObserver()
        self.promote_warnings_to_errors = promote_warnings_to_errors

    def local_path(self, entry: Entry) -> Path:
        """Get the stall file path of an entry."""
        return self.stall_dir / entry.local

    def select(
        self, store: StallStore, selected_locals: Optional[Iterable[PathLike]] = None
    ) -> List[Entry]:
        """Resolve the entries to process.

        Args:
            store: Stall entries
            selected_locals: Local paths to process, or None/empty for all

        Returns:
            Entries to process

        Raises:
            UnknownEntry: If a selected path matches no entry
        """
        selected = list(selected_locals or [])
        if not selected:
            return list(store.entries())

        entries = []
        for local in selected:
            entry = store.entry_local(local)
            if entry is None:
                raise UnknownEntry(local)
            entries.append(entry)
        return entries

    def run(
        self,
        store: StallStore,
        direction: Direction,
        selected_locals: Optional[Iterable[PathLike]] = None,
        force: bool = False,
        dry_run: bool = False,
    ) -> SyncReport:
        """Collect or distribute stall entries.

        Args:
            store: Stall entries
            direction: Collect (remote to stall) or distribute (stall to remote)
            selected_locals: Local paths to process, or None/empty for all
            force: Copy even if the destination is not older
            dry_run: Report copies without performing them

        Returns:
            SyncReport with per-entry results and counts

        Raises:
            UnknownEntry: If a selected path matches no entry
            MissingOrUnreadableFile: If an entry cannot be compared and
                warnings are promoted to errors
            CopyError: If copying an entry fails
        """
        report = SyncReport(direction=direction, dry_run=dry_run)

        if store.is_empty():
            logger.info("No files in stall, nothing to do")
            self.observer.on_nothing_to_do()
            return report

        try:
            entries = self.select(store, selected_locals)
        except UnknownEntry:
            report.aborted = True
            self.observer.on_run_finished(report)
            raise

        logger.info(f"Starting {direction.value} of {len(entries)} entries in {self.stall_dir}")
        self.observer.on_run_started(self.stall_dir, direction)
        try:
            for entry in entries:
                self._process(entry, direction, force, dry_run, report)
        except Exception:
            report.aborted = True
            raise
        finally:
            logger.info(
                f"Finished {direction.value}: {report.copied} copied, "
                f"{report.skipped} skipped, {report.stopped} stopped"
            )
            self.observer.on_run_finished(report)

        return report

    def _process(
        self, entry: Entry, direction: Direction, force: bool, dry_run: bool, report: SyncReport
    ) -> None:
        """Evaluate one entry and carry out its action."""
        local_path = self.local_path(entry)
        evaluation = self.engine.evaluate(local_path, entry.remote, direction, force)
        action = evaluation.action

        report.results.append(EntryResult(entry, evaluation.statuses, action))
        self.observer.on_entry_evaluated(entry, evaluation.statuses, action)

        if action in (Action.COPY, Action.FORCE):
            if direction == Direction.COLLECT:
                source, dest = entry.remote, local_path
            else:
                source, dest = local_path, entry.remote

            self.observer.on_copy(source, dest, dry_run)
            if dry_run:
                logger.info(f"Dry run: not copying {source} -> {dest}")
            else:
                self.file_ops.copy_file(source, dest)

            report.copied += 1
            if action == Action.FORCE:
                report.forced += 1

        elif action == Action.STOP:
            report.stopped += 1
            if self.promote_warnings_to_errors:
                raise MissingOrUnreadableFile(entry, evaluation.statuses)
            logger.warning(f"Skipping {entry.local}: missing or unreadable file")

        else:
            report.skipped += 1

    def status(self, store: StallStore) -> List[EntryResult]:
        """Evaluate the status of every entry without copying anything.

        Args:
            store: Stall entries

        Returns:
            List of EntryResult without actions
        """
        if store.is_empty():
            self.observer.on_nothing_to_do()
            return []

        self.observer.on_run_started(self.stall_dir, None)
        results = []
        for entry in store.entries():
            statuses = self.engine.status(self.local_path(entry), entry.remote)
            results.append(EntryResult(entry, statuses))
            self.observer.on_entry_evaluated(entry, statuses, None)
        return results
