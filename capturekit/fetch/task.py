# capturekit/fetch/task.py
from __future__ import annotations

import logging
from typing import Any, Callable, Optional

from PySide6.QtCore import QObject, QThreadPool, Signal, Slot

from capturekit.core.models import AcquiredFile, ContentReference, FetchState
from capturekit.fetch.workers import FetchRunnable, WorkerSignals
from capturekit.services.events import notify
from capturekit.storage.manager import StorageManager

logger = logging.getLogger(__name__)


class FetchTask(QObject):
    """
    One background acquisition, bound to the handler it was created with.

    State machine:
      CREATED -> STARTED (on_fetch_started) -> FETCHING
              -> COMPLETED (on_fetch_completed) | FAILED (on_fetch_failed)

    on_fetch_started fires synchronously inside start(); completion and
    failure are delivered through queued signals on the thread that owns the
    task, so handlers may touch UI state directly.

    Signals:
      - state_changed(FetchState)
      - done(FetchTask) emitted once, after the terminal callback
    """

    state_changed = Signal(object)
    done = Signal(object)

    def __init__(
        self,
        reference: ContentReference,
        filename: str,
        storage: StorageManager,
        handler: Any,
        open_stream: Callable,
        pool: Optional[QThreadPool] = None,
        chunk_size: int = 64 * 1024,
        parent: Optional[QObject] = None,
    ):
        super().__init__(parent)
        self.reference = reference
        self.filename = filename
        self.storage = storage
        self.handler = handler
        self.open_stream = open_stream
        self.pool = pool or QThreadPool.globalInstance()
        self.chunk_size = chunk_size
        self.state = FetchState.CREATED
        self.result: Optional[AcquiredFile] = None
        self.error: Optional[Exception] = None
        self.bytes_copied = 0
        self._signals: Optional[WorkerSignals] = None

    @property
    def is_done(self) -> bool:
        return self.state.is_terminal

    def start(self) -> "FetchTask":
        if self.state is not FetchState.CREATED:
            raise RuntimeError(f"FetchTask for {self.filename} already {self.state.value}")
        self._set_state(FetchState.STARTED)
        self.handler.on_fetch_started(self.filename)

        runnable = FetchRunnable(
            reference=self.reference,
            filename=self.filename,
            storage=self.storage,
            open_stream=self.open_stream,
            chunk_size=self.chunk_size,
        )
        runnable.signals.progress.connect(self._on_progress)
        runnable.signals.result.connect(self._on_result)
        runnable.signals.error.connect(self._on_error)
        # the pool owns the runnable; its signals must outlive it until the terminal slot ran
        self._signals = runnable.signals

        self._set_state(FetchState.FETCHING)
        logger.debug("Submitting fetch of %s into %s", self.reference.uri, self.filename)
        self.pool.start(runnable)
        return self

    def _set_state(self, state: FetchState) -> None:
        self.state = state
        self.state_changed.emit(state)

    @Slot(object)
    def _on_progress(self, copied):
        if self.is_done:
            return
        self.bytes_copied = int(copied)
        notify(self.handler, "on_fetch_progress", self.filename, self.bytes_copied)

    @Slot(object)
    def _on_result(self, acquired):
        if self.is_done:
            return
        self.result = acquired
        self._set_state(FetchState.COMPLETED)
        logger.info("Fetched %s (%s)", self.filename, self.reference.uri)
        try:
            self.handler.on_fetch_completed(self.filename)
        finally:
            self._finish()

    @Slot(object)
    def _on_error(self, payload):
        if self.is_done:
            return
        exc, _tb = payload
        self.error = exc
        self._set_state(FetchState.FAILED)
        try:
            if not notify(self.handler, "on_fetch_failed", self.filename, exc):
                logger.warning(
                    "Fetch of %s failed and handler has no on_fetch_failed: %s",
                    self.filename,
                    exc,
                )
        finally:
            self._finish()

    def _finish(self) -> None:
        self._signals = None
        self.done.emit(self)
