# capturekit/resolve/classifier.py
from __future__ import annotations

import logging
from typing import Callable, List, Optional, Sequence, Tuple

from capturekit.core.config import DEFAULT_VIDEO_PREFIX, CaptureConfig
from capturekit.core.errors import NoReferenceError
from capturekit.core.models import ContentReference, LookupRow, SourceKind

logger = logging.getLogger(__name__)

Predicate = Callable[[str], bool]


def is_video_reference(uri: Optional[str], video_prefix: str = DEFAULT_VIDEO_PREFIX) -> bool:
    return bool(uri) and str(uri).startswith(video_prefix)


def _prefix_predicate(prefix: str) -> Predicate:
    return lambda uri: uri.startswith(prefix)


def build_prefix_table(prefixes: Sequence[str]) -> List[Tuple[Predicate, SourceKind]]:
    """
    One (predicate, kind) pair per provider prefix, in the given order.
    """
    return [
        (_prefix_predicate(prefix), SourceKind.cloud(i))
        for i, prefix in enumerate(prefixes)
    ]


class ContentReferenceClassifier:
    """
    Decide which acquisition backend owns a reference.

    Order of evaluation:
      1. provider prefix table, first match wins (authoritative, no lookup)
      2. content lookup returned nothing -> legacy cloud provider
      3. lookup row with a local path -> Local
      4. lookup row without a local path -> GenericContent
    """

    def __init__(self, lookup, config: Optional[CaptureConfig] = None):
        self.lookup = lookup
        self.config = config or CaptureConfig()
        self._table = build_prefix_table(self.config.cloud_provider_prefixes)

    def classify(self, reference: ContentReference | str) -> SourceKind:
        return self.resolve(reference).kind

    def resolve(self, reference: ContentReference | str) -> ContentReference:
        """Return a copy of the reference with its kind (and lookup row) filled in."""
        ref = _as_reference(reference)
        if not ref.uri:
            raise NoReferenceError()

        for predicate, kind in self._table:
            if predicate(ref.uri):
                logger.debug("%s matched provider prefix -> %s", ref.uri, kind)
                row = self._query_quietly(ref.uri)
                return ref.classified(kind, row)

        row: Optional[LookupRow] = self.lookup.query(ref.uri)
        if row is None:
            kind = SourceKind.legacy()
        elif row.local_path:
            kind = SourceKind.local()
        else:
            kind = SourceKind.generic_content()
        logger.debug("%s classified as %s", ref.uri, kind)
        return ref.classified(kind, row)

    def _query_quietly(self, uri: str) -> Optional[LookupRow]:
        # the display name is only a hint once a prefix has matched
        try:
            return self.lookup.query(uri)
        except Exception:
            logger.debug("lookup failed for provider reference %s", uri, exc_info=True)
            return None


def _as_reference(reference: ContentReference | str | None) -> ContentReference:
    if isinstance(reference, ContentReference):
        return reference
    return ContentReference(uri=str(reference) if reference is not None else "")
