# capturekit/core/models.py
"""
Core data models for capturekit.

This file contains:
 - Enums (SourceCategory, RequestKind, PickerStatus, FetchState)
 - SourceKind value object and its well-known instances
 - ContentReference, LookupRow, ImportRequest, AcquiredFile
 - Factory helpers (new_request)
"""
from __future__ import annotations

import uuid
from dataclasses import dataclass, replace
from enum import Enum
from pathlib import Path
from typing import Optional

# provider index reserved for references the content lookup knows nothing about
LEGACY_PROVIDER = -1


class SourceCategory(str, Enum):
    LOCAL = "local"
    GENERIC_CONTENT = "generic_content"
    CLOUD_PROVIDER = "cloud_provider"


class RequestKind(str, Enum):
    CAMERA = "camera"
    GALLERY = "gallery"
    SEND = "send"


class PickerStatus(str, Enum):
    OK = "ok"
    CANCELLED = "cancelled"


class FetchState(str, Enum):
    CREATED = "created"
    STARTED = "started"
    FETCHING = "fetching"
    COMPLETED = "completed"
    FAILED = "failed"

    @property
    def is_terminal(self) -> bool:
        return self in (FetchState.COMPLETED, FetchState.FAILED)


@dataclass(frozen=True)
class SourceKind:
    """
    Which acquisition backend owns a reference.

    - category: SourceCategory
    - provider: index into the configured cloud-provider prefix table, or
      LEGACY_PROVIDER; None for non-cloud kinds
    """

    category: SourceCategory
    provider: Optional[int] = None

    @classmethod
    def local(cls) -> "SourceKind":
        return cls(SourceCategory.LOCAL)

    @classmethod
    def generic_content(cls) -> "SourceKind":
        return cls(SourceCategory.GENERIC_CONTENT)

    @classmethod
    def cloud(cls, provider: int) -> "SourceKind":
        return cls(SourceCategory.CLOUD_PROVIDER, provider)

    @classmethod
    def legacy(cls) -> "SourceKind":
        return cls(SourceCategory.CLOUD_PROVIDER, LEGACY_PROVIDER)

    @property
    def is_local(self) -> bool:
        return self.category is SourceCategory.LOCAL

    @property
    def is_remote(self) -> bool:
        # generic content and every cloud provider go through the async fetch path
        return not self.is_local

    @property
    def is_legacy(self) -> bool:
        return (
            self.category is SourceCategory.CLOUD_PROVIDER
            and self.provider == LEGACY_PROVIDER
        )

    def __str__(self) -> str:
        if self.category is SourceCategory.CLOUD_PROVIDER:
            label = "legacy" if self.is_legacy else str(self.provider)
            return f"CloudProvider[{label}]"
        if self.category is SourceCategory.GENERIC_CONTENT:
            return "GenericContent"
        return "Local"


@dataclass(frozen=True)
class LookupRow:
    """Row returned by a content lookup: where the bytes live and what they are called."""

    local_path: Optional[str] = None
    display_name: Optional[str] = None


@dataclass(frozen=True)
class ContentReference:
    uri: str
    kind: Optional[SourceKind] = None
    display_name: Optional[str] = None
    local_path: Optional[str] = None

    @property
    def is_classified(self) -> bool:
        return self.kind is not None

    def classified(
        self,
        kind: SourceKind,
        row: Optional[LookupRow] = None,
    ) -> "ContentReference":
        if row is None:
            return replace(self, kind=kind)
        return replace(
            self,
            kind=kind,
            display_name=row.display_name,
            local_path=row.local_path or None,
        )

    def __str__(self) -> str:
        return self.uri


@dataclass
class ImportRequest:
    """
    One picker round-trip. The request_id is the token threaded from the
    launch call through to handle_result.
    """

    request_id: str
    kind: RequestKind
    filename: Optional[str] = None
    storage_dir: Optional[Path] = None

    def destination(self, default_dir: Path) -> Optional[Path]:
        if not self.filename:
            return None
        return Path(self.storage_dir or default_dir) / self.filename


@dataclass(frozen=True)
class AcquiredFile:
    path: Path
    filename: str
    source: str = ""

    @property
    def size(self) -> int:
        return self.path.stat().st_size


# -------------------------
# Factory helpers
# -------------------------
def new_request_id() -> str:
    return uuid.uuid4().hex


def new_request(
    kind: RequestKind | str,
    filename: Optional[str] = None,
    storage_dir: Optional[Path | str] = None,
    request_id: Optional[str] = None,
) -> ImportRequest:
    if isinstance(kind, str) and not isinstance(kind, RequestKind):
        kind = RequestKind(kind)
    return ImportRequest(
        request_id=request_id or new_request_id(),
        kind=kind,
        filename=filename,
        storage_dir=Path(storage_dir) if storage_dir is not None else None,
    )
