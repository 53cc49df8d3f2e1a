# capturekit/services/coordinator.py
from __future__ import annotations

import logging
from pathlib import Path
from typing import Any, Dict, Iterable, List, Optional

from capturekit.core.config import CaptureConfig
from capturekit.core.errors import (
    CaptureError,
    HandlerNotRegisteredError,
    NoDestinationError,
    UnsupportedMediaError,
)
from capturekit.core.models import (
    ContentReference,
    ImportRequest,
    PickerStatus,
    RequestKind,
    SourceKind,
    new_request,
)
from capturekit.resolve.classifier import ContentReferenceClassifier, is_video_reference
from capturekit.resolve.content import ContentResolver, LocalContentResolver
from capturekit.services.events import notify
from capturekit.services.materializer import ImageMaterializer, MaterializeResult
from capturekit.storage.manager import create_entry

logger = logging.getLogger(__name__)

# share actions understood by references_from_share
ACTION_SEND = "send"
ACTION_SEND_MULTIPLE = "send_multiple"
EXTRA_STREAM = "stream"


def references_from_share(action: str, payload: Dict[str, Any]) -> List[str]:
    """
    Extract image references from a host share action.
    - "send": payload["stream"] is a single reference
    - "send_multiple": payload["stream"] is a list of references
    Anything else yields an empty list.
    """
    if EXTRA_STREAM not in payload or payload[EXTRA_STREAM] is None:
        return []
    stream = payload[EXTRA_STREAM]
    if action == ACTION_SEND:
        return [str(stream)]
    if action == ACTION_SEND_MULTIPLE:
        if isinstance(stream, (str, bytes)):
            return [str(stream)]
        return [str(s) for s in stream if s]
    return []


class ImportCoordinator:
    """
    Entry point for the host application.

    Launch a picker with import_from_camera / import_from_gallery, then feed
    the picker's answer to handle_result(request_id, status, reference). Each
    launch registers its own pending ImportRequest keyed by request_id.

    Local results are reported on event_handler (ImportEventHandler),
    background fetches on fetch_handler (FetchEventHandler).
    """

    def __init__(
        self,
        event_handler: Any = None,
        fetch_handler: Any = None,
        *,
        storage_dir: Optional[Path | str] = None,
        config: Optional[CaptureConfig] = None,
        content: Optional[ContentResolver] = None,
        launcher: Any = None,
        materializer: Optional[ImageMaterializer] = None,
        classifier: Optional[ContentReferenceClassifier] = None,
    ):
        self.config = config or CaptureConfig()
        self.event_handler = event_handler
        self.fetch_handler = fetch_handler
        self.launcher = launcher
        self.content = content or LocalContentResolver()
        self.classifier = classifier or ContentReferenceClassifier(self.content, self.config)
        self.materializer = materializer or ImageMaterializer(
            content=self.content, config=self.config
        )
        self._storage_dir = Path(storage_dir).expanduser() if storage_dir else None
        self._pending: Dict[str, ImportRequest] = {}

    @property
    def storage_directory(self) -> Path:
        return self._storage_dir or self.config.cache_dir

    def pending_requests(self) -> Iterable[ImportRequest]:
        return list(self._pending.values())

    # -------------------------
    # launching
    # -------------------------
    def import_from_camera(
        self, filename: Optional[str], storage_dir: Optional[Path | str] = None
    ) -> ImportRequest:
        request = new_request(RequestKind.CAMERA, filename, storage_dir)
        target = request.destination(self.storage_directory)
        return self._launch(request, str(target) if target else None)

    def import_from_gallery(
        self, filename: Optional[str], storage_dir: Optional[Path | str] = None
    ) -> ImportRequest:
        request = new_request(RequestKind.GALLERY, filename, storage_dir)
        return self._launch(request, self.config.image_collection)

    def _launch(self, request: ImportRequest, target: Optional[str]) -> ImportRequest:
        if self.launcher is not None:
            request.request_id = str(self.launcher.launch(request.kind, target))
        self._pending[request.request_id] = request
        logger.debug(
            "Launched %s request %s for %s",
            request.kind.value,
            request.request_id,
            request.filename,
        )
        return request

    # -------------------------
    # results
    # -------------------------
    def handle_result(
        self, request_id: str, status: PickerStatus | str, reference: Optional[str] = None
    ) -> Optional[MaterializeResult]:
        handler = self._require_event_handler()

        request = self._pending.pop(request_id, None)
        if request is None:
            logger.warning("Ignoring result for unknown request %s", request_id)
            return None
        if status != PickerStatus.OK:
            logger.debug("Request %s cancelled", request_id)
            return None

        notify(handler, "on_picker_result", request_id, status, reference)

        storage_dir = request.storage_dir or self.storage_directory
        if request.kind is RequestKind.CAMERA:
            return self._finish_camera(request.filename, storage_dir)
        return self._handle_gallery(reference, request.filename, storage_dir)

    def handle_send_image(
        self,
        reference: str | ContentReference,
        filename: Optional[str],
        storage_dir: Optional[Path | str] = None,
    ) -> Optional[MaterializeResult]:
        """Import a reference the host already holds (share/send), like a gallery pick."""
        self._require_event_handler()
        target = Path(storage_dir).expanduser() if storage_dir else self.storage_directory
        return self._handle_gallery(reference, filename, target)

    def _finish_camera(self, filename: Optional[str], storage_dir: Path) -> MaterializeResult:
        handler = self.event_handler
        if not filename:
            error = NoDestinationError("Image could not be added")
            handler.on_import_failure(error)
            return MaterializeResult(kind=None, error=error)
        try:
            path = create_entry(storage_dir, filename)
        except (OSError, CaptureError) as e:
            logger.warning("Could not create %s in %s", filename, storage_dir, exc_info=True)
            handler.on_import_failure(e)
            return MaterializeResult(kind=None, error=e)
        return self.materializer.store_local(
            path, filename, storage_dir, handler, kind=SourceKind.local()
        )

    def _handle_gallery(
        self,
        reference: str | ContentReference | None,
        filename: Optional[str],
        storage_dir: Path,
    ) -> Optional[MaterializeResult]:
        handler = self.event_handler
        uri = reference.uri if isinstance(reference, ContentReference) else reference
        if not uri:
            logger.debug("Gallery pick returned no reference")
            return None
        if is_video_reference(str(uri), self.config.video_prefix):
            error = UnsupportedMediaError()
            handler.on_import_failure(error)
            return MaterializeResult(kind=None, error=error)

        resolved = self.classifier.resolve(reference)
        if resolved.kind.is_remote:
            self._require_fetch_handler()
        logger.debug("Materializing %s as %s into %s", resolved.uri, resolved.kind, filename)
        return self.materializer.materialize(
            resolved,
            resolved.kind,
            filename,
            storage_dir,
            handler,
            fetch_handler=self.fetch_handler,
        )

    # -------------------------
    # wiring checks
    # -------------------------
    def _require_event_handler(self):
        if self.event_handler is None:
            raise HandlerNotRegisteredError(
                "Unable to import image. Did you register an ImportEventHandler?"
            )
        return self.event_handler

    def _require_fetch_handler(self):
        if self.fetch_handler is None:
            raise HandlerNotRegisteredError(
                "Unable to fetch image. Did you register a FetchEventHandler?"
            )
        return self.fetch_handler
