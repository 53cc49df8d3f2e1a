# capturekit/services/materializer.py
from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Any, BinaryIO, Optional, Set

from PySide6.QtCore import QThreadPool

from capturekit.core.config import CaptureConfig
from capturekit.core.errors import (
    CaptureError,
    HandlerNotRegisteredError,
    NoDestinationError,
    NoReferenceError,
    UnsupportedMediaError,
)
from capturekit.core.models import AcquiredFile, ContentReference, SourceKind
from capturekit.fetch.task import FetchTask
from capturekit.imaging.normalize import PillowNormalizer
from capturekit.resolve.classifier import is_video_reference
from capturekit.resolve.content import ContentResolver
from capturekit.resolve.network import HttpStreamOpener
from capturekit.storage.manager import StorageManager, validate_filename

logger = logging.getLogger(__name__)


@dataclass
class MaterializeResult:
    """
    Outcome of one materialize() call.
    - local branch: acquired or error is set before materialize() returns
    - remote branch: task is set and still running
    """

    kind: Optional[SourceKind]
    acquired: Optional[AcquiredFile] = None
    error: Optional[Exception] = None
    task: Optional[FetchTask] = None

    @property
    def is_async(self) -> bool:
        return self.task is not None

    @property
    def ok(self) -> bool:
        return self.error is None


class ImageMaterializer:
    """
    Turn a classified reference into a file in the storage directory.

    Local references are copied and normalized synchronously and reported on
    the import handler before materialize() returns. Everything else becomes
    a FetchTask on the bounded pool and is reported on the fetch handler.
    """

    def __init__(
        self,
        content: ContentResolver,
        network: Optional[HttpStreamOpener] = None,
        normalizer: Optional[Any] = None,
        config: Optional[CaptureConfig] = None,
        pool: Optional[QThreadPool] = None,
    ):
        self.config = config or CaptureConfig()
        self.content = content
        self.network = network or HttpStreamOpener(timeout=self.config.request_timeout)
        self.normalizer = normalizer or PillowNormalizer()
        if pool is None:
            pool = QThreadPool()
            pool.setMaxThreadCount(self.config.max_concurrent_fetches)
        self.pool = pool
        self._in_flight: Set[FetchTask] = set()

    # -------------------------
    # public API
    # -------------------------
    def materialize(
        self,
        reference: ContentReference,
        kind: SourceKind,
        filename: Optional[str],
        storage_dir: Path,
        handler: Any,
        fetch_handler: Any = None,
    ) -> MaterializeResult:
        if is_video_reference(reference.uri, self.config.video_prefix):
            return self._fail(handler, kind, UnsupportedMediaError())
        if not filename:
            return self._fail(handler, kind, NoDestinationError())
        try:
            validate_filename(filename)
        except CaptureError as e:
            return self._fail(handler, kind, e)

        if kind.is_local:
            if not reference.local_path:
                return self._fail(
                    handler, kind, NoReferenceError(f"{reference.uri} has no local path")
                )
            return self.store_local(
                Path(reference.local_path), filename, storage_dir, handler, kind=kind
            )

        if fetch_handler is None:
            raise HandlerNotRegisteredError(
                "Unable to fetch image. Did you register a FetchEventHandler?"
            )
        task = self.fetch(reference, filename, storage_dir, fetch_handler)
        return MaterializeResult(kind=kind, task=task)

    def store_local(
        self,
        src: Path,
        filename: str,
        storage_dir: Path,
        handler: Any,
        kind: Optional[SourceKind] = None,
    ) -> MaterializeResult:
        """
        Copy src into the storage directory as filename, reapplying its
        orientation while bounding its size. src may already be the
        destination (camera captures are normalized in place).
        """
        storage = StorageManager(storage_dir)
        max_w, max_h = self.config.max_size
        try:
            dest = storage.path_for(filename)
            orientation = self.normalizer.read_orientation(src)
            if orientation is not None:
                self.normalizer.resize_rotate_and_save(src, dest, orientation, max_w, max_h)
            else:
                storage.ensure()
                dest = storage.copy_into(src, filename)
                self.normalizer.resize_and_save(dest, max_w, max_h)
        except (OSError, ValueError, CaptureError) as e:
            logger.warning("Storing %s as %s failed", src, filename, exc_info=True)
            return self._fail(handler, kind, e)

        acquired = AcquiredFile(path=dest, filename=filename, source=str(src))
        logger.info("Imported %s from %s", filename, src)
        handler.on_import_success(filename)
        return MaterializeResult(kind=kind, acquired=acquired)

    def fetch(
        self,
        reference: ContentReference,
        filename: str,
        storage_dir: Path,
        fetch_handler: Any,
    ) -> FetchTask:
        task = FetchTask(
            reference=reference,
            filename=filename,
            storage=StorageManager(storage_dir),
            handler=fetch_handler,
            open_stream=self.open_source_stream,
            pool=self.pool,
            chunk_size=self.config.chunk_size,
        )
        self._in_flight.add(task)
        task.done.connect(self._forget)
        return task.start()

    def open_source_stream(self, uri: str) -> BinaryIO:
        """Content handles go to the content resolver, everything else to the network."""
        if uri.startswith(self.config.content_scheme):
            return self.content.open_read_stream(uri)
        return self.network.open_read_stream(uri)

    def in_flight(self) -> int:
        return len(self._in_flight)

    def wait_for_done(self, msecs: int = -1) -> bool:
        """Block until every background copy returned (callbacks still need the event loop)."""
        return self.pool.waitForDone(msecs)

    # -------------------------
    # helpers
    # -------------------------
    def _forget(self, task) -> None:
        self._in_flight.discard(task)

    def _fail(self, handler: Any, kind: Optional[SourceKind], error: Exception) -> MaterializeResult:
        handler.on_import_failure(error)
        return MaterializeResult(kind=kind, error=error)
