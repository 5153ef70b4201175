"""File helpers for scratch artifacts and streamed copies.

Scratch files are owned by a single build. Deleting them is always best
effort: a file that cannot be removed is logged and left behind for the next
purge, never reported as a build error.
"""

import logging
import os
from contextlib import contextmanager
from pathlib import Path
from typing import BinaryIO, Iterator

from twic_aggregator.cancellation import NEVER_CANCELLED, CancellationToken

logger = logging.getLogger(__name__)

BUFFER_SIZE = 128 * 1024


def copy_stream(
    source: BinaryIO,
    target: BinaryIO,
    token: CancellationToken = NEVER_CANCELLED,
    chunk_size: int = BUFFER_SIZE,
) -> int:
    """Copy a binary stream in chunks, checking for cancellation between chunks.

    Args:
        source: Readable binary stream
        target: Writable binary stream
        token: Cancellation token checked before every chunk
        chunk_size: Bytes per read

    Returns:
        Number of bytes copied

    Raises:
        BuildCanceled: If the token is cancelled during the copy
    """
    copied = 0
    for chunk in iter(lambda: source.read(chunk_size), b""):
        token.raise_if_cancelled()
        target.write(chunk)
        copied += len(chunk)
    return copied


def flush_to_disk(handle: BinaryIO) -> None:
    """Flush Python buffers and ask the OS to persist the file."""
    handle.flush()
    os.fsync(handle.fileno())


def discard(path: Path) -> bool:
    """Delete a file if it exists. Never raises.

    Returns:
        True if the file is gone afterwards, False if deletion failed
    """
    try:
        path.unlink(missing_ok=True)
        return True
    except OSError as e:
        logger.debug(f"Could not delete {path}: {e}")
        return False


@contextmanager
def scratch_files(*paths: Path) -> Iterator[tuple[Path, ...]]:
    """Discard the given files when the block exits, however it exits."""
    try:
        yield paths
    finally:
        for path in paths:
            discard(path)


def purge_directory(directory: Path) -> int:
    """Best-effort deletion of every regular file in a directory.

    Subdirectories are left alone. A missing directory is not an error.

    Returns:
        Number of files deleted
    """
    if not directory.is_dir():
        return 0

    deleted = 0
    try:
        entries = list(directory.iterdir())
    except OSError as e:
        logger.debug(f"Could not list {directory}: {e}")
        return 0

    for entry in entries:
        if entry.is_file() and discard(entry):
            deleted += 1

    if deleted:
        logger.debug(f"Purged {deleted} scratch file(s) from {directory}")
    return deleted
