"""Main entry point for the stall tool."""

import argparse
import sys
from pathlib import Path
from typing import List, Optional

import yaml

from stall import __version__, commands
from stall.commands import CommandError, CommandOptions
from stall.config_loader import Config, ConfigError, find_config
from stall.file_ops import FileOpsError
from stall.logging_setup import get_logger, setup_logging, verbosity_level
from stall.path_index import InvalidEntryPath
from stall.stall_store import StallStore, StoreError, StoreFormat
from stall.sync_executor import MissingOrUnreadableFile, UnknownEntry

logger = get_logger()

FORMAT_CHOICES = {
    "auto": None,
    "yaml": StoreFormat.YAML,
    "list": StoreFormat.LIST,
}


def build_parser() -> argparse.ArgumentParser:
    """Build the command line parser."""
    common = argparse.ArgumentParser(add_help=False)
    common.add_argument(
        "--stall",
        type=str,
        help="Stall directory (default: current directory)",
    )
    common.add_argument(
        "--config",
        type=str,
        help="Path to the application config file",
    )
    common.add_argument(
        "-u",
        "--use-stall-file",
        type=str,
        help="Stall file to use instead of the one in the stall directory",
    )
    common.add_argument(
        "--stall-format",
        choices=sorted(FORMAT_CHOICES),
        help="Format of the stall file (default: detect)",
    )
    common.add_argument(
        "-n",
        "--dry-run",
        action="store_true",
        help="Print copy operations instead of running them",
    )
    common.add_argument(
        "-s",
        "--short-names",
        action="store_true",
        help="Shorten file names by omitting remote paths",
    )
    common.add_argument(
        "-e",
        "--error",
        dest="promote_warnings_to_errors",
        action="store_true",
        help="Promote file access warnings into errors",
    )
    common.add_argument(
        "-v",
        "--verbose",
        action="store_true",
        help="Provide more detailed messages",
    )
    common.add_argument(
        "-q",
        "--quiet",
        "--silent",
        action="store_true",
        help="Silence all program output; overrides --verbose",
    )
    common.add_argument(
        "--xtrace",
        dest="trace",
        action="store_true",
        help=argparse.SUPPRESS,
    )

    parser = argparse.ArgumentParser(
        prog="stall",
        description="Stall - keep a directory of local copies in sync with scattered files",
    )
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    subparsers = parser.add_subparsers(dest="command", metavar="COMMAND")
    subparsers.required = True

    init_parser = subparsers.add_parser(
        "init", parents=[common], help="Initialize a stall directory"
    )
    init_parser.add_argument(
        "stall_dir", nargs="?", help="Stall directory to initialize (default: --stall or cwd)"
    )

    add_parser = subparsers.add_parser(
        "add", parents=[common], help="Add files to the stall"
    )
    add_parser.add_argument("files", nargs="+", help="Remote files to add")
    add_parser.add_argument("--rename", help="Local file name for the added file")
    add_parser.add_argument("--into", help="Stall subdirectory to place the files in")
    add_parser.add_argument(
        "--collect", action="store_true", help="Collect the files after adding them"
    )

    remove_parser = subparsers.add_parser(
        "remove", aliases=["rm"], parents=[common], help="Remove files from the stall"
    )
    remove_parser.add_argument("files", nargs="+", help="Stall files to remove")
    remove_parser.add_argument(
        "--delete", action="store_true", help="Also delete the stall copies"
    )
    remove_parser.add_argument(
        "--remote-naming",
        action="store_true",
        help="Look up entries by remote path instead of local path",
    )

    rename_parser = subparsers.add_parser(
        "rename", aliases=["mv"], parents=[common], help="Rename a file within the stall"
    )
    rename_parser.add_argument("source", help="Current local path")
    rename_parser.add_argument("target", help="New local path")
    rename_parser.add_argument(
        "--move", action="store_true", help="Also move the stall copy"
    )
    rename_parser.add_argument(
        "-f", "--force", action="store_true", help="Overwrite an existing stall entry"
    )

    subparsers.add_parser(
        "status", parents=[common], help="Print the status of the stall files"
    )

    for name, help_text in (
        ("collect", "Copy newer remote files into the stall"),
        ("distribute", "Copy newer stall files out to their remote paths"),
    ):
        sync_parser = subparsers.add_parser(name, parents=[common], help=help_text)
        sync_parser.add_argument(
            "files", nargs="*", help="Stall files to process (default: all)"
        )
        sync_parser.add_argument(
            "-f",
            "--force",
            action="store_true",
            help="Copy even if the destination is not older",
        )

    return parser


def _stall_dir(args: argparse.Namespace) -> Path:
    """Resolve the stall directory from the command line."""
    stall_dir = getattr(args, "stall_dir", None) or args.stall
    return Path(stall_dir) if stall_dir else Path.cwd()


def _command_options(args: argparse.Namespace, config: Config) -> CommandOptions:
    """Merge command line flags with config defaults."""
    return CommandOptions(
        dry_run=args.dry_run,
        force=getattr(args, "force", False),
        promote_warnings_to_errors=(
            args.promote_warnings_to_errors or config.promote_warnings_to_errors
        ),
        short_names=args.short_names or config.short_names,
        quiet=args.quiet and not args.trace,
        mtime_tolerance=config.mtime_tolerance,
    )


def _load_store(args: argparse.Namespace, stall_path: Path, config: Config) -> StallStore:
    """Load the stall file, or start a new one for init."""
    fmt_name = args.stall_format or config.stall_format
    fmt = FORMAT_CHOICES[fmt_name]

    if args.command == "init" and not stall_path.exists():
        return StallStore().with_load_path(stall_path)

    return StallStore.read_from_path(stall_path, fmt)


def run_command(
    args: argparse.Namespace, store: StallStore, stall_dir: Path, options: CommandOptions
) -> None:
    """Dispatch to the selected command."""
    command = args.command

    if command == "init":
        commands.init(store, options)

    elif command == "add":
        commands.add(
            store,
            stall_dir,
            args.files,
            options,
            rename=args.rename,
            into=args.into,
            collect=args.collect,
        )

    elif command in ("remove", "rm"):
        commands.remove(
            store,
            args.files,
            options,
            delete_stall_dir=stall_dir if args.delete else None,
            remote_naming=args.remote_naming,
        )

    elif command in ("rename", "mv"):
        commands.rename(
            store,
            args.source,
            args.target,
            options,
            move_stall_dir=stall_dir if args.move else None,
        )

    elif command == "status":
        commands.status(store, stall_dir, options)

    elif command == "collect":
        commands.collect(store, stall_dir, args.files, options)

    elif command == "distribute":
        commands.distribute(store, stall_dir, args.files, options)


def main(argv: Optional[List[str]] = None) -> int:
    """Main entry point.

    Args:
        argv: Command line arguments (defaults to sys.argv)

    Returns:
        Exit code (0 for success, 1 for failure)
    """
    parser = build_parser()
    args = parser.parse_args(argv)

    if args.command == "add" and args.rename and len(args.files) > 1:
        parser.error("--rename can only be used when adding a single file")

    # Console logging until the config says otherwise
    setup_logging(log_level=verbosity_level("WARNING", args.quiet, args.verbose, args.trace))

    try:
        stall_dir = _stall_dir(args)
        config = find_config(stall_dir, args.config)
        setup_logging(
            config.log_file_path,
            verbosity_level(config.log_level, args.quiet, args.verbose, args.trace),
            max_bytes=config.log_max_size_mb * 1024 * 1024,
            backup_count=config.log_backup_count,
            rotation_enabled=config.log_rotation_enabled,
        )
        logger.debug(f"Stall version: {__version__}")
        logger.debug(f"Options: {vars(args)}")
        logger.debug(f"Config: {config.to_dict()}")

        stall_path = (
            Path(args.use_stall_file) if args.use_stall_file else stall_dir / config.stall_file
        )
        options = _command_options(args, config)
        store = _load_store(args, stall_path, config)

        run_command(args, store, stall_dir, options)

        if store.modified() and not options.dry_run:
            store.write_to_load_path()

        return 0
    except (ConfigError, yaml.YAMLError) as e:
        logger.error(f"Config error: {e}")
        return 1
    except (
        CommandError,
        FileOpsError,
        InvalidEntryPath,
        MissingOrUnreadableFile,
        StoreError,
        UnknownEntry,
    ) as e:
        logger.error(str(e))
        return 1
    except KeyboardInterrupt:
        logger.info("Interrupted by user")
        return 130
    except Exception as e:
        logger.exception(f"Unexpected error: {e}")
        return 1


if __name__ == "__main__":
    sys.exit(main())
