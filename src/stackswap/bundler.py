"""Deterministic zip archives of asset directories."""

import asyncio
import errno
import logging
import os
import random
import secrets
import time
import zipfile
from collections.abc import Callable
from pathlib import Path

logger = logging.getLogger(__name__)

# Entries get a fixed timestamp so that identical content hashes identically.
FIXED_DATE_TIME = (1980, 1, 1, 0, 0, 0)

RENAME_RETRIES = 5
INITIAL_RETRY_DELAY = 0.1

# Seen while a virus scanner or indexer still holds the file open.
TRANSIENT_RENAME_ERRNOS = {errno.EPERM, errno.EBUSY}

ProgressSink = Callable[[str], None]


def zip_directory(directory: str | Path, output_file: str | Path, progress: ProgressSink) -> None:
    """Zip every file under ``directory`` into ``output_file``.

    The archive is written beside ``output_file`` and renamed into place,
    so an interrupted run never leaves a partial archive at the destination.
    """
    output_file = str(output_file)
    temporary = f"{output_file}.{secrets.token_hex(6)}._tmp"
    try:
        _write_zip_file(Path(directory), temporary)
        _move_into_place(temporary, output_file, progress)
    except BaseException:
        if os.path.exists(temporary):
            os.remove(temporary)
        raise


async def zip_directory_async(
    directory: str | Path, output_file: str | Path, progress: ProgressSink
) -> None:
    """Run ``zip_directory`` on a worker thread."""
    await asyncio.to_thread(zip_directory, directory, output_file, progress)


def list_files(directory: Path) -> list[str]:
    """Relative paths of all files under ``directory``, following symlinks, sorted."""
    files = []
    for root, _dirs, names in os.walk(directory, followlinks=True):
        for name in names:
            full_path = os.path.join(root, name)
            if os.path.isfile(full_path):
                files.append(Path(full_path).relative_to(directory).as_posix())
    return sorted(files)


def _write_zip_file(directory: Path, output_file: str) -> None:
    with zipfile.ZipFile(output_file, "w", compression=zipfile.ZIP_DEFLATED) as archive:
        for name in list_files(directory):
            full_path = directory / name
            data = full_path.read_bytes()
            mode = full_path.stat().st_mode

            info = zipfile.ZipInfo(name, date_time=FIXED_DATE_TIME)
            info.create_system = 3
            info.external_attr = (mode & 0xFFFF) << 16
            info.compress_type = zipfile.ZIP_DEFLATED
            archive.writestr(info, data)


def _move_into_place(source: str, target: str, progress: ProgressSink) -> None:
    """Rename ``source`` over ``target``, retrying transient lock errors with backoff."""
    delay = INITIAL_RETRY_DELAY
    retries = RENAME_RETRIES
    while True:
        try:
            os.replace(source, target)
            return
        except OSError as e:
            if e.errno not in TRANSIENT_RENAME_ERRNOS or retries <= 0:
                raise
            retries -= 1
            logger.warning("Rename of %s failed, retrying: %s", source, e)
            progress(str(e))
            time.sleep(random.random() * delay)
            delay *= 2
