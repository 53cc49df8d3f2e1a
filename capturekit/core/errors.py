# capturekit/core/errors.py
from __future__ import annotations


class CaptureError(Exception):
    """Root of every error raised or reported by capturekit."""


# -----------------------------------------------------------------------------
# configuration errors: raised, never reported through a failure callback
# -----------------------------------------------------------------------------
class HandlerNotRegisteredError(CaptureError, RuntimeError):
    pass


class ConfigError(CaptureError, ValueError):
    pass


# -----------------------------------------------------------------------------
# domain errors: reported via ImportEventHandler.on_import_failure
# -----------------------------------------------------------------------------
class UnsupportedMediaError(CaptureError):
    def __init__(self, message: str = "Video can't be added"):
        super().__init__(message)


class NoDestinationError(CaptureError):
    def __init__(self, message: str = "Image could not be added: no destination specified"):
        super().__init__(message)


class NoReferenceError(CaptureError):
    def __init__(self, message: str = "No content reference was returned"):
        super().__init__(message)


class InvalidFilenameError(CaptureError, ValueError):
    pass


# -----------------------------------------------------------------------------
# collaborator errors
# -----------------------------------------------------------------------------
class NormalizationError(CaptureError, ValueError):
    """Image could not be decoded, resized or written (corrupt input)."""


class SourceNotFoundError(CaptureError, FileNotFoundError):
    pass


class MalformedLocatorError(CaptureError, ValueError):
    pass


class FetchIOError(CaptureError, OSError):
    pass
