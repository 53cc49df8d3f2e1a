# capturekit/services/events.py
"""
Event handler contracts the host application implements.

ImportEventHandler receives the outcome of local imports (camera captures,
gallery files with a local path). FetchEventHandler receives the lifecycle of
background fetches (cloud gallery assets, content handles, network locators).

Every fetch reports on_fetch_started first and then exactly one of
on_fetch_completed / on_fetch_failed, on the thread that started it.
"""
from __future__ import annotations

import logging
from typing import Any, Optional

logger = logging.getLogger(__name__)


class ImportEventHandler:
    def on_picker_result(self, request_id: str, status: Any, reference: Optional[str]) -> None:
        """Raw pass-through of a resolved picker result. Optional."""

    def on_import_success(self, filename: str) -> None:
        raise NotImplementedError()

    def on_import_failure(self, error: Exception) -> None:
        raise NotImplementedError()


class FetchEventHandler:
    def on_fetch_started(self, filename: str) -> None:
        raise NotImplementedError()

    def on_fetch_completed(self, filename: str) -> None:
        raise NotImplementedError()

    def on_fetch_failed(self, filename: str, error: Exception) -> None:
        logger.warning("Fetch of %s failed: %s", filename, error)

    def on_fetch_progress(self, filename: str, bytes_copied: int) -> None:
        """Cumulative byte count while a fetch copies. Optional."""


def notify(handler: Any, method: str, *args: Any) -> bool:
    """
    Call an optional hook on a duck-typed handler. Returns False when the
    handler does not define it.
    """
    fn = getattr(handler, method, None)
    if fn is None:
        return False
    fn(*args)
    return True
