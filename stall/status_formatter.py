"""Status table and summary output for stall commands."""

import sys
from pathlib import Path
from typing import Optional, TextIO

from stall.path_index import Entry
from stall.reconcile import Action, Direction, StatusPair
from stall.sync_executor import SyncObserver, SyncReport


class StatusFormatter(SyncObserver):
    """Writes a status table as entries are evaluated."""

    # Arrows point from source to destination, stall on the left
    DIRECTION_SYMBOLS = {
        Direction.COLLECT: "<-",
        Direction.DISTRIBUTE: "->",
    }

    COLUMN_WIDTH = 7

    NOTHING_TO_DO = "No files in stall. Use `add` command to place files in the stall."

    def __init__(
        self,
        out: Optional[TextIO] = None,
        short_names: bool = False,
        quiet: bool = False,
        stall_name: str = "STALL",
        remote_name: str = "REMOTE",
    ):
        """Initialize formatter.

        Args:
            out: Stream to write to (defaults to stdout)
            short_names: Show only local paths instead of full remote paths
            quiet: Suppress all output
            stall_name: Display name for the stall side
            remote_name: Display name for the remote side
        """
        self.out = out
        self.short_names = short_names
        self.quiet = quiet
        self.stall_name = stall_name
        self.remote_name = remote_name
        self.direction: Optional[Direction] = None

    def _write(self, line: str = "") -> None:
        if self.quiet:
            return
        out = self.out if self.out is not None else sys.stdout
        out.write(line + "\n")

    def format_header(self, with_action: bool = True) -> str:
        """Format the status table header."""
        columns = ["LOCAL", "REMOTE"]
        if with_action:
            columns.append("ACTION")
        return "    " + "".join(c.ljust(self.COLUMN_WIDTH) for c in columns) + "FILE"

    def format_entry(self, entry: Entry, statuses: StatusPair, action: Optional[Action]) -> str:
        """Format a single status table row.

        Args:
            entry: Stall entry
            statuses: (local, remote) statuses
            action: Chosen action, or None for a plain status listing

        Returns:
            Formatted row
        """
        local_status, remote_status = statuses
        columns = [local_status.value, remote_status.value]
        if action is not None:
            columns.append(action.value)

        if self.short_names:
            name = str(entry.local)
        else:
            name = f"{entry.local} ({entry.remote})"

        return "    " + "".join(c.ljust(self.COLUMN_WIDTH) for c in columns) + name

    def format_copy(self, source: Path, dest: Path, dry_run: bool) -> str:
        """Format a copy line."""
        symbol = self.DIRECTION_SYMBOLS.get(self.direction, "->")
        if self.direction == Direction.COLLECT:
            line = f"  [{self.stall_name}] {dest} {symbol} [{self.remote_name}] {source}"
        else:
            line = f"  [{self.stall_name}] {source} {symbol} [{self.remote_name}] {dest}"
        if dry_run:
            line += " (dry run)"
        return line

    def format_summary(self, report: SyncReport) -> str:
        """Format the summary block for a finished run.

        Args:
            report: Finished (or aborted) run report

        Returns:
            Formatted summary
        """
        title = f"{report.direction.value.capitalize()} Summary"
        if report.dry_run:
            title += " (DRY RUN - NO CHANGES MADE)"

        copied_label = "Files that would be copied" if report.dry_run else "Files copied"

        output = []
        output.append("=" * 50)
        output.append(title)
        output.append("=" * 50)
        output.append(f"Entries processed: {report.processed}")
        output.append(f"{copied_label}: {report.copied}")
        output.append(f"Forced copies: {report.forced}")
        output.append(f"Skipped: {report.skipped}")
        output.append(f"Stopped (missing or unreadable): {report.stopped}")
        if report.aborted:
            output.append("Run aborted before all entries were processed")
        output.append("=" * 50)
        return "\n".join(output)

    # SyncObserver hooks

    def on_run_started(self, stall_dir: Path, direction: Optional[Direction]) -> None:
        self.direction = direction
        self._write(f"Stall directory: {stall_dir}")
        self._write(self.format_header(with_action=direction is not None))

    def on_nothing_to_do(self) -> None:
        self._write(self.NOTHING_TO_DO)

    def on_entry_evaluated(
        self, entry: Entry, statuses: StatusPair, action: Optional[Action]
    ) -> None:
        self._write(self.format_entry(entry, statuses, action))

    def on_copy(self, source: Path, dest: Path, dry_run: bool) -> None:
        self._write(self.format_copy(source, dest, dry_run))

    def on_run_finished(self, report: SyncReport) -> None:
        self._write()
        self._write(self.format_summary(report))
