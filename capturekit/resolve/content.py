# capturekit/resolve/content.py
"""
Content lookup and content stream collaborators.

A content resolver answers two questions about an opaque reference:
  - query(uri) -> Optional[LookupRow]: where does it live locally, what is it called
  - open_read_stream(uri) -> binary file object, or SourceNotFoundError

ContentResolver is the interface; LocalContentResolver is an in-process
implementation backed by a registry of handles plus the local filesystem,
suitable for hosts that receive handles from share actions or drag-and-drop.
"""
from __future__ import annotations

import io
import logging
import os
import threading
from dataclasses import dataclass
from pathlib import Path
from typing import BinaryIO, Dict, Optional
from urllib.parse import unquote, urlparse

from capturekit.core.errors import SourceNotFoundError
from capturekit.core.models import LookupRow

logger = logging.getLogger(__name__)


class ContentResolver:
    def query(self, uri: str) -> Optional[LookupRow]:
        raise NotImplementedError()

    def open_read_stream(self, uri: str) -> BinaryIO:
        raise NotImplementedError()


@dataclass(frozen=True)
class _Entry:
    path: Optional[Path] = None
    data: Optional[bytes] = None
    display_name: Optional[str] = None
    expose_path: bool = True


def path_from_uri(uri: str) -> Optional[Path]:
    """Map a file:// URI or a plain absolute path to a Path, else None."""
    if uri.startswith("file://"):
        return Path(unquote(urlparse(uri).path))
    if "://" not in uri and Path(uri).is_absolute():
        return Path(uri)
    return None


def _is_file(p: Path) -> bool:
    # os.path.isfile treats any stat error (e.g. a name too long) as "not a file"
    return os.path.isfile(p)


class LocalContentResolver(ContentResolver):
    """
    Registry of content handles. Unregistered file:// URIs and absolute paths
    resolve to themselves when the file exists.

    Registration and lookup may happen on different threads (fetch workers
    open streams), so the registry is guarded by a lock.
    """

    def __init__(self):
        self._entries: Dict[str, _Entry] = {}
        self._lock = threading.Lock()

    # -------------------------
    # registration
    # -------------------------
    def add_file(
        self,
        uri: str,
        path: Path | str,
        display_name: Optional[str] = None,
        *,
        expose_path: bool = True,
    ) -> None:
        """
        Register a handle backed by a file. With expose_path=False the lookup
        row has no local path, as for a provider that only streams its content.
        """
        p = Path(path)
        with self._lock:
            self._entries[uri] = _Entry(
                path=p, display_name=display_name or p.name, expose_path=expose_path
            )

    def add_bytes(self, uri: str, data: bytes, display_name: Optional[str] = None) -> None:
        with self._lock:
            self._entries[uri] = _Entry(
                data=bytes(data), display_name=display_name, expose_path=False
            )

    def remove(self, uri: str) -> None:
        with self._lock:
            self._entries.pop(uri, None)

    # -------------------------
    # ContentResolver
    # -------------------------
    def query(self, uri: str) -> Optional[LookupRow]:
        with self._lock:
            entry = self._entries.get(uri)
        if entry is not None:
            local = str(entry.path) if (entry.expose_path and entry.path) else None
            return LookupRow(local_path=local, display_name=entry.display_name)

        p = path_from_uri(uri)
        if p is not None and _is_file(p):
            return LookupRow(local_path=str(p), display_name=p.name)
        return None

    def open_read_stream(self, uri: str) -> BinaryIO:
        with self._lock:
            entry = self._entries.get(uri)
        if entry is not None:
            if entry.data is not None:
                return io.BytesIO(entry.data)
            try:
                return open(entry.path, "rb")
            except FileNotFoundError as e:
                raise SourceNotFoundError(f"{uri} -> {entry.path} not found") from e

        p = path_from_uri(uri)
        if p is not None and _is_file(p):
            return open(p, "rb")
        logger.debug("No content registered for %s", uri)
        raise SourceNotFoundError(f"{uri} not found")
