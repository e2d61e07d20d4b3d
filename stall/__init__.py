"""Stall - keep a directory of local copies in sync with scattered files."""

__version__ = "0.1.0"

from stall.comparator import ComparatorError, FileComparator, FileSnapshot
from stall.config_loader import Config, ConfigError, load_config
from stall.logging_setup import get_logger, setup_logging
from stall.path_index import Entry, InvalidEntryPath, PathPairIndex
from stall.reconcile import Action, Direction, ReconciliationEngine, Status
from stall.stall_store import StallStore, StoreFormat
from stall.sync_executor import (
    MissingOrUnreadableFile,
    SyncExecutor,
    SyncObserver,
    SyncReport,
    UnknownEntry,
)

__all__ = [
    "Action",
    "ComparatorError",
    "Config",
    "ConfigError",
    "Direction",
    "Entry",
    "FileComparator",
    "FileSnapshot",
    "InvalidEntryPath",
    "MissingOrUnreadableFile",
    "PathPairIndex",
    "ReconciliationEngine",
    "StallStore",
    "Status",
    "StoreFormat",
    "SyncExecutor",
    "SyncObserver",
    "SyncReport",
    "UnknownEntry",
    "get_logger",
    "load_config",
    "setup_logging",
]
