# capturekit/fetch/workers.py
from __future__ import annotations

import logging
import traceback
from contextlib import closing
from typing import Callable

from PySide6.QtCore import QObject, QRunnable, Signal

from capturekit.core.models import AcquiredFile, ContentReference
from capturekit.storage.manager import StorageManager

logger = logging.getLogger(__name__)


# Worker signals for fetch tasks
class WorkerSignals(QObject):
    """
    Signals available from a fetch runnable.
    - finished() always emitted on completion (no args)
    - error(tuple) emitted on exception: (exc, traceback_str)
    - result(object) emitted with the AcquiredFile
    - progress(object) cumulative bytes copied so far
    """

    finished = Signal()
    error = Signal(object)
    result = Signal(object)
    progress = Signal(object)


class FetchRunnable(QRunnable):
    """
    Runnable that copies one remote or content-handle source into the storage
    directory in a background thread. Emits signals on its WorkerSignals
    instance; it never raises out of run().

    open_stream(uri) must return a binary file object; it picks the content
    stream or the network opener for the reference.
    """

    def __init__(
        self,
        reference: ContentReference,
        filename: str,
        storage: StorageManager,
        open_stream: Callable,
        chunk_size: int = 64 * 1024,
    ):
        super().__init__()
        self.signals = WorkerSignals()
        self.reference = reference
        self.filename = filename
        self.storage = storage
        self.open_stream = open_stream
        self.chunk_size = chunk_size

    def run(self):
        try:
            stream = self.open_stream(self.reference.uri)
            # the stream is closed on every exit path, the temporary file is
            # closed (and removed on failure) by write_stream
            with closing(stream):
                dest = self.storage.write_stream(
                    stream,
                    self.filename,
                    chunk_size=self.chunk_size,
                    on_progress=self.signals.progress.emit,
                )
            self.signals.result.emit(
                AcquiredFile(path=dest, filename=self.filename, source=self.reference.uri)
            )
        except Exception as exc:
            logger.warning(
                "Fetching %s into %s failed", self.reference.uri, self.filename, exc_info=True
            )
            tb = traceback.format_exc()
            self.signals.error.emit((exc, tb))
        finally:
            self.signals.finished.emit()
