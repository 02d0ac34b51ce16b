"""Filesystem operations: guarded input opening and atomic replacement."""

import logging
import os
import shutil
import tempfile
from contextlib import contextmanager
from pathlib import Path
from typing import BinaryIO, Iterator

from .common import InputUnavailableError, OutputUnavailableError

logger = logging.getLogger(__name__)


def open_input(path: Path) -> BinaryIO:
    """Open a file for binary reading.

    Raises:
        InputUnavailableError: If the file cannot be opened
    """
    try:
        return open(path, 'rb')
    except OSError as e:
        raise InputUnavailableError(f"Cannot open file {path}: {e.strerror or e}", file=str(path)) from e


def _fsync_dir(path: Path) -> None:
    # Directories cannot be opened on Windows
    if os.name == "nt":
        return
    fd = os.open(path, os.O_RDONLY)
    try:
        os.fsync(fd)
    finally:
        os.close(fd)


@contextmanager
def atomic_write(path: Path, write_through: bool = True) -> Iterator[BinaryIO]:
    """Write a replacement for ``path`` through a temporary file.

    The temporary file is created in the same directory, receives the
    original's permission bits and is moved over ``path`` with
    :func:`os.replace` when the block exits normally. On any exception it
    is removed and ``path`` is left untouched.

    Raises:
        OutputUnavailableError: If the temporary file cannot be created,
            written or moved into place
    """
    path = Path(path)
    try:
        temp_file = tempfile.NamedTemporaryFile(
            mode='wb',
            dir=path.parent,
            prefix=f"{path.name}.",
            suffix=".tmp",
            delete=False,
        )
    except OSError as e:
        raise OutputUnavailableError(
            f"Cannot create temporary file next to {path}: {e.strerror or e}", file=str(path)
        ) from e

    temp_path = Path(temp_file.name)
    logger.debug(f"Writing temporary file: {{'path': {str(temp_path)!r}}}")
    try:
        with temp_file:
            yield temp_file
            temp_file.flush()
            if write_through:
                os.fsync(temp_file.fileno())

        shutil.copymode(path, temp_path)
        os.replace(temp_path, path)
    except OSError as e:
        temp_path.unlink(missing_ok=True)
        raise OutputUnavailableError(f"Cannot replace {path}: {e.strerror or e}", file=str(path)) from e
    except BaseException:
        temp_path.unlink(missing_ok=True)
        raise

    logger.debug(f"Replaced file: {{'path': {str(path)!r}}}")
    if write_through:
        try:
            _fsync_dir(path.parent)
        except OSError as e:
            logger.warning(f"Cannot sync directory after replace: {{'path': {str(path.parent)!r}, 'error': {str(e)!r}}}")
