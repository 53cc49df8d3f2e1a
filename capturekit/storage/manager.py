# capturekit/storage/manager.py
from __future__ import annotations

import logging
import os
import shutil
import tempfile
from pathlib import Path
from typing import BinaryIO, Callable, Optional

from capturekit.core.errors import InvalidFilenameError

logger = logging.getLogger(__name__)

PART_SUFFIX = ".part"


def _ensure_dir(p: Path) -> None:
    p.mkdir(parents=True, exist_ok=True)


def validate_filename(filename: str) -> str:
    """
    Destination names are plain file names inside the storage directory.
    """
    if not filename or filename in (".", ".."):
        raise InvalidFilenameError(f"Invalid destination filename: {filename!r}")
    if "/" in filename or "\\" in filename or Path(filename).name != filename:
        raise InvalidFilenameError(
            f"Destination filename must not contain directories: {filename!r}"
        )
    return filename


def destination_path(storage_dir: Path, filename: str) -> Path:
    return Path(storage_dir) / validate_filename(filename)


def create_entry(storage_dir: Path, filename: str) -> Path:
    """
    Make sure <storage_dir>/<filename> exists. An existing file (e.g. one a
    camera has just written) is left untouched.
    """
    path = destination_path(storage_dir, filename)
    _ensure_dir(path.parent)
    path.touch(exist_ok=True)
    return path


def copy_into(src: Path, storage_dir: Path, filename: str) -> Path:
    """Copy src to <storage_dir>/<filename>, overwriting. Returns the new Path."""
    dest = destination_path(storage_dir, filename)
    _ensure_dir(dest.parent)
    if Path(src).resolve() != dest.resolve():
        shutil.copy2(src, dest)
    return dest


def write_stream_atomic(
    stream: BinaryIO,
    storage_dir: Path,
    filename: str,
    *,
    chunk_size: int = 64 * 1024,
    on_progress: Optional[Callable[[int], None]] = None,
) -> Path:
    """
    Copy stream into a uniquely named temporary file next to the destination
    and atomically replace <storage_dir>/<filename> once the copy is complete.
    Concurrent writers to the same filename never interleave bytes; the last
    one to finish wins. On failure the temporary file is removed and the
    destination is left as it was.
    """
    dest = destination_path(storage_dir, filename)
    _ensure_dir(dest.parent)
    fd, tmp_name = tempfile.mkstemp(
        prefix=f".{dest.name}.", suffix=PART_SUFFIX, dir=str(dest.parent)
    )
    tmp = Path(tmp_name)
    copied = 0
    try:
        with os.fdopen(fd, "wb") as out:
            while True:
                chunk = stream.read(chunk_size)
                if not chunk:
                    break
                out.write(chunk)
                copied += len(chunk)
                if on_progress is not None:
                    on_progress(copied)
        os.replace(tmp, dest)
    except BaseException:
        tmp.unlink(missing_ok=True)
        raise
    logger.debug("Wrote %d bytes to %s", copied, dest)
    return dest


class StorageManager:
    """
    Object-oriented wrapper around the storage helper functions.
    Keeps a reference to the storage directory imports land in.
    """

    def __init__(self, base_dir: Path | str):
        self.base_dir = Path(base_dir).expanduser()

    def ensure(self) -> Path:
        _ensure_dir(self.base_dir)
        return self.base_dir

    def path_for(self, filename: str) -> Path:
        return destination_path(self.base_dir, filename)

    def create_entry(self, filename: str) -> Path:
        return create_entry(self.base_dir, filename)

    def copy_into(self, src: Path, filename: str) -> Path:
        return copy_into(src, self.base_dir, filename)

    def write_stream(
        self,
        stream: BinaryIO,
        filename: str,
        *,
        chunk_size: int = 64 * 1024,
        on_progress: Optional[Callable[[int], None]] = None,
    ) -> Path:
        return write_stream_atomic(
            stream,
            self.base_dir,
            filename,
            chunk_size=chunk_size,
            on_progress=on_progress,
        )

    def list_files(self):
        """List stored files (skipping in-flight temporaries)."""
        if not self.base_dir.exists():
            return
        for p in sorted(self.base_dir.iterdir()):
            if p.is_file() and not p.name.endswith((PART_SUFFIX, ".tmp")):
                yield p.name
