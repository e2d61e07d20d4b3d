"""File operations used to move data between the stall and remote files."""

import shutil
from pathlib import Path
from typing import Union

from stall.logging_setup import get_logger

logger = get_logger()

PathLike = Union[str, Path]


class FileOpsError(Exception):
    """Raised when file operation fails."""

    pass


class CopyError(FileOpsError):
    """Raised when copying file data fails."""

    pass


class FileOps:
    """Handles file copy, remove and move operations."""

    def copy_file(self, src: PathLike, dst: PathLike) -> None:
        """Copy file from source to destination, preserving its mtime.

        The destination's modification time must match the source after the
        copy, otherwise the next comparison would see the copy as newer.

        Args:
            src: Source file path
            dst: Destination file path

        Raises:
            CopyError: If copy fails
        """
        src_path = Path(src)
        dst_path = Path(dst)

        try:
            # Skip unnecessary work if source and destination point to same file
            try:
                if src_path.resolve() == dst_path.resolve():
                    logger.debug(f"Skipped copy; source and destination are identical: {src}")
                    return
            except OSError:
                pass

            dst_path.parent.mkdir(parents=True, exist_ok=True)
            shutil.copy2(str(src_path), str(dst_path))

            if not dst_path.exists():
                raise CopyError(f"Copy verification failed: {dst}")

            logger.info(f"Copied file: {src} -> {dst}")
        except (OSError, shutil.Error) as e:
            logger.error(f"Failed to copy file {src} to {dst}: {e}")
            raise CopyError(f"Copy failed: {e}") from e

    def remove_file(self, path: PathLike) -> None:
        """Delete a file.

        Args:
            path: File to delete

        Raises:
            FileOpsError: If the file is missing or cannot be deleted
        """
        try:
            Path(path).unlink()
            logger.info(f"Deleted file: {path}")
        except OSError as e:
            logger.error(f"Failed to delete file {path}: {e}")
            raise FileOpsError(f"Delete failed: {e}") from e

    def move_file(self, old_path: PathLike, new_path: PathLike) -> None:
        """Move a file, replacing any file at the new path.

        Args:
            old_path: Current file path
            new_path: New file path

        Raises:
            FileOpsError: If the move fails
        """
        try:
            old = Path(old_path)
            new = Path(new_path)

            if not old.exists():
                raise FileOpsError(f"Source file does not exist: {old_path}")

            new.parent.mkdir(parents=True, exist_ok=True)
            shutil.move(str(old), str(new))
            logger.info(f"Moved file: {old_path} -> {new_path}")
        except (OSError, shutil.Error) as e:
            logger.error(f"Failed to move file {old_path} to {new_path}: {e}")
            raise FileOpsError(f"Move failed: {e}") from e
