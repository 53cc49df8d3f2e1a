# capturekit/ui/viewmodels.py
from __future__ import annotations

from PySide6.QtCore import QObject, Signal


class ImportViewModel(QObject):
    """
    Implements both event handler contracts by re-emitting every callback as
    a Qt signal, so widgets can bind to import progress without subclassing.

    Signals:
      - picker_result(str, object, object)   request_id, status, reference
      - import_succeeded(str)                filename
      - import_failed(object)                exception
      - fetch_started(str)                   filename
      - fetch_progress(str, object)          filename, bytes copied
      - fetch_completed(str)                 filename
      - fetch_failed(str, object)            filename, exception
      - busy_changed(bool)                   any fetch in flight
    """

    picker_result = Signal(str, object, object)
    import_succeeded = Signal(str)
    import_failed = Signal(object)
    fetch_started = Signal(str)
    fetch_progress = Signal(str, object)
    fetch_completed = Signal(str)
    fetch_failed = Signal(str, object)
    busy_changed = Signal(bool)

    def __init__(self, parent=None):
        super().__init__(parent)
        self._active = 0

    @property
    def busy(self) -> bool:
        return self._active > 0

    # --- ImportEventHandler ---
    def on_picker_result(self, request_id, status, reference):
        self.picker_result.emit(str(request_id), status, reference)

    def on_import_success(self, filename: str):
        self.import_succeeded.emit(filename)

    def on_import_failure(self, error: Exception):
        self.import_failed.emit(error)

    # --- FetchEventHandler ---
    def on_fetch_started(self, filename: str):
        self._set_active(self._active + 1)
        self.fetch_started.emit(filename)

    def on_fetch_progress(self, filename: str, bytes_copied: int):
        self.fetch_progress.emit(filename, bytes_copied)

    def on_fetch_completed(self, filename: str):
        self._set_active(self._active - 1)
        self.fetch_completed.emit(filename)

    def on_fetch_failed(self, filename: str, error: Exception):
        self._set_active(self._active - 1)
        self.fetch_failed.emit(filename, error)

    def _set_active(self, n: int):
        was_busy = self.busy
        self._active = max(0, n)
        if self.busy != was_busy:
            self.busy_changed.emit(self.busy)
