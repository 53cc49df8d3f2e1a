# capturekit/core/config.py
from __future__ import annotations

import json
import logging
import os
from dataclasses import asdict, dataclass, field, fields
from pathlib import Path
from typing import Any, Dict, Optional, Tuple

from capturekit.core.errors import ConfigError

logger = logging.getLogger(__name__)

CACHE_DIR_ENV = "CAPTUREKIT_CACHE_DIR"

# gallery providers that hand out content handles for cloud-hosted photos.
# order matters: classification reports the index of the first match.
DEFAULT_CLOUD_PROVIDER_PREFIXES: Tuple[str, ...] = (
    "content://com.android.gallery3d.provider",
    "content://com.google.android.gallery3d",
    "content://com.android.sec.gallery3d",
    "content://com.sec.android.gallery3d",
)

DEFAULT_VIDEO_PREFIX = "content://media/external/video/"
DEFAULT_CONTENT_SCHEME = "content://"
DEFAULT_IMAGE_COLLECTION = "content://media/external/images/media"


def _default_cache_dir() -> Path:
    return Path.home() / ".capturekit_cache"


@dataclass(frozen=True)
class CaptureConfig:
    stored_image_width: int = 1280
    stored_image_height: int = 1280
    cloud_provider_prefixes: Tuple[str, ...] = DEFAULT_CLOUD_PROVIDER_PREFIXES
    video_prefix: str = DEFAULT_VIDEO_PREFIX
    content_scheme: str = DEFAULT_CONTENT_SCHEME
    image_collection: str = DEFAULT_IMAGE_COLLECTION
    cache_dir: Path = field(default_factory=_default_cache_dir)
    max_concurrent_fetches: int = 4
    # None means no timeout on network opens or reads
    request_timeout: Optional[float] = None
    chunk_size: int = 64 * 1024

    def __post_init__(self):
        if self.stored_image_width <= 0 or self.stored_image_height <= 0:
            raise ConfigError(
                "stored image size must be positive, got "
                f"{self.stored_image_width}x{self.stored_image_height}"
            )
        if self.max_concurrent_fetches < 1:
            raise ConfigError(
                f"max_concurrent_fetches must be >= 1, got {self.max_concurrent_fetches}"
            )
        if self.chunk_size < 1:
            raise ConfigError(f"chunk_size must be >= 1, got {self.chunk_size}")
        if self.request_timeout is not None and self.request_timeout <= 0:
            raise ConfigError(
                f"request_timeout must be positive or null, got {self.request_timeout}"
            )

    @property
    def max_size(self) -> Tuple[int, int]:
        return (self.stored_image_width, self.stored_image_height)

    def to_dict(self) -> Dict[str, Any]:
        d = asdict(self)
        d["cache_dir"] = str(self.cache_dir)
        d["cloud_provider_prefixes"] = list(self.cloud_provider_prefixes)
        return d

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "CaptureConfig":
        known = {f.name for f in fields(cls)}
        kwargs: Dict[str, Any] = {}
        for key, value in data.items():
            if key not in known:
                logger.warning("Ignoring unknown config key %r", key)
                continue
            kwargs[key] = value
        if "cache_dir" in kwargs:
            cache_dir = kwargs["cache_dir"]
            if not isinstance(cache_dir, (str, os.PathLike)):
                raise ConfigError(f"cache_dir must be a path string, got {cache_dir!r}")
            kwargs["cache_dir"] = Path(cache_dir).expanduser()
        if "cloud_provider_prefixes" in kwargs:
            prefixes = kwargs["cloud_provider_prefixes"]
            if not isinstance(prefixes, (list, tuple)) or not all(
                isinstance(p, str) and p for p in prefixes
            ):
                raise ConfigError("cloud_provider_prefixes must be a list of strings")
            kwargs["cloud_provider_prefixes"] = tuple(prefixes)
        try:
            return cls(**kwargs)
        except TypeError as e:
            raise ConfigError(f"Invalid config value: {e}") from e


def load_config(path: Optional[Path | str] = None) -> CaptureConfig:
    """
    Build a CaptureConfig from defaults, an optional JSON file and the
    environment (CAPTUREKIT_CACHE_DIR wins over the file).
    """
    data: Dict[str, Any] = {}
    if path is not None:
        p = Path(path)
        if not p.exists():
            raise ConfigError(f"{p} not found")
        try:
            loaded = json.loads(p.read_text(encoding="utf-8"))
        except json.JSONDecodeError as e:
            raise ConfigError(f"{p} is not valid JSON: {e}") from e
        if not isinstance(loaded, dict):
            raise ConfigError(f"{p} must contain a JSON object")
        data.update(loaded)

    env_dir = os.environ.get(CACHE_DIR_ENV)
    if env_dir:
        data["cache_dir"] = env_dir

    cfg = CaptureConfig.from_dict(data)
    logger.debug("Loaded config: %s", cfg.to_dict())
    return cfg
