# capturekit/imaging/normalize.py
from __future__ import annotations

import logging
import uuid
from pathlib import Path
from typing import Optional, Tuple

from PIL import Image, UnidentifiedImageError

from capturekit.core.errors import NormalizationError

logger = logging.getLogger(__name__)

# EXIF tag id for Orientation
ORIENTATION_TAG = 0x0112

# orientation value -> transpose that brings pixels upright (values 2..8)
_ORIENTATION_TRANSPOSE = {
    2: Image.Transpose.FLIP_LEFT_RIGHT,
    3: Image.Transpose.ROTATE_180,
    4: Image.Transpose.FLIP_TOP_BOTTOM,
    5: Image.Transpose.TRANSPOSE,
    6: Image.Transpose.ROTATE_270,
    7: Image.Transpose.TRANSVERSE,
    8: Image.Transpose.ROTATE_90,
}

_EXIF_FORMATS = {"JPEG", "PNG", "WEBP", "TIFF"}
_RGB_ONLY_FORMATS = {"JPEG"}


def read_orientation(path: Path) -> Optional[int]:
    """
    Return the EXIF orientation of the image at path, or None when the file
    carries no orientation (or cannot be read at all).
    """
    try:
        with Image.open(path) as im:
            value = im.getexif().get(ORIENTATION_TAG)
    except (OSError, ValueError, SyntaxError):
        logger.debug("No readable EXIF in %s", path, exc_info=True)
        return None
    if value is None:
        return None
    try:
        return int(value)
    except (TypeError, ValueError):
        return None


def _load(path: Path) -> Image.Image:
    # FileNotFoundError is an I/O failure, not a corrupt image; let it through
    if not Path(path).exists():
        raise FileNotFoundError(f"{path} not found")
    try:
        with Image.open(path) as im:
            im.load()
            fmt = im.format
            loaded = im.copy()
            loaded.format = fmt
            loaded.info.update(im.info)
            return loaded
    except (UnidentifiedImageError, OSError, ValueError, SyntaxError) as e:
        raise NormalizationError(f"Cannot decode image {path}: {e}") from e


def _format_for(im: Image.Image, dst: Path) -> str:
    if im.format:
        return im.format
    ext = dst.suffix.lower()
    return Image.registered_extensions().get(ext, "PNG")


def _save_atomic(im: Image.Image, dst: Path, fmt: str, exif: Optional[Image.Exif]) -> None:
    """
    Write to a temporary sibling then replace, so in-place normalization never
    leaves a half-written destination.
    """
    dst.parent.mkdir(parents=True, exist_ok=True)
    tmp = dst.with_name(f".{dst.name}.{uuid.uuid4().hex}.tmp")
    if fmt in _RGB_ONLY_FORMATS and im.mode not in ("RGB", "L", "CMYK"):
        im = im.convert("RGB")
    params = {}
    if exif is not None and len(exif) and fmt in _EXIF_FORMATS:
        params["exif"] = exif.tobytes()
    if fmt == "JPEG":
        params["quality"] = 90
    try:
        im.save(tmp, format=fmt, **params)
        tmp.replace(dst)
    except Exception:
        tmp.unlink(missing_ok=True)
        raise


def _bounded(im: Image.Image, max_size: Tuple[int, int]) -> Image.Image:
    # thumbnail only ever shrinks and keeps aspect ratio
    if im.width > max_size[0] or im.height > max_size[1]:
        im.thumbnail(max_size)
    return im


def resize_rotate_and_save(
    src: Path,
    dst: Path,
    orientation: int,
    max_width: int,
    max_height: int,
) -> Path:
    """
    Apply orientation to the pixels of src, bound the result to
    max_width x max_height and write it to dst. The stored orientation is
    reset to 1 since the pixels are now upright.
    """
    src, dst = Path(src), Path(dst)
    im = _load(src)
    fmt = _format_for(im, dst)
    exif = im.getexif()
    method = _ORIENTATION_TRANSPOSE.get(orientation)
    if method is not None:
        im = im.transpose(method)
    if ORIENTATION_TAG in exif:
        exif[ORIENTATION_TAG] = 1
    im = _bounded(im, (max_width, max_height))
    _save_atomic(im, dst, fmt, exif)
    logger.debug("Normalized %s -> %s (orientation %s, %dx%d)", src, dst, orientation, im.width, im.height)
    return dst


def resize_and_save(path: Path, max_width: int, max_height: int) -> Path:
    """Bound the image at path to max_width x max_height, in place."""
    path = Path(path)
    im = _load(path)
    fmt = _format_for(im, path)
    exif = im.getexif()
    if im.width <= max_width and im.height <= max_height:
        # already within bounds; still validated as a decodable image
        return path
    im = _bounded(im, (max_width, max_height))
    _save_atomic(im, path, fmt, exif)
    logger.debug("Resized %s to %dx%d", path, im.width, im.height)
    return path


class PillowNormalizer:
    """
    Object wrapper around the normalization helpers, so hosts can inject a
    different image backend into the materializer.
    """

    def read_orientation(self, path: Path) -> Optional[int]:
        return read_orientation(path)

    def resize_rotate_and_save(
        self, src: Path, dst: Path, orientation: int, max_width: int, max_height: int
    ) -> Path:
        return resize_rotate_and_save(src, dst, orientation, max_width, max_height)

    def resize_and_save(self, path: Path, max_width: int, max_height: int) -> Path:
        return resize_and_save(path, max_width, max_height)
