# tests/test_config.py
import json

import pytest

from capturekit.core.config import (
    CACHE_DIR_ENV,
    DEFAULT_CLOUD_PROVIDER_PREFIXES,
    CaptureConfig,
    load_config,
)
from capturekit.core.errors import ConfigError


def test_defaults(monkeypatch):
    monkeypatch.delenv(CACHE_DIR_ENV, raising=False)
    cfg = load_config()
    assert cfg.max_size == (1280, 1280)
    assert cfg.cloud_provider_prefixes == DEFAULT_CLOUD_PROVIDER_PREFIXES
    assert cfg.cloud_provider_prefixes[0] == "content://com.android.gallery3d.provider"
    assert cfg.video_prefix == "content://media/external/video/"
    assert cfg.request_timeout is None
    assert cfg.max_concurrent_fetches == 4


def test_load_from_json_file(tmp_path, monkeypatch):
    monkeypatch.delenv(CACHE_DIR_ENV, raising=False)
    p = tmp_path / "capturekit.json"
    p.write_text(
        json.dumps(
            {
                "stored_image_width": 800,
                "stored_image_height": 600,
                "cache_dir": str(tmp_path / "c"),
                "cloud_provider_prefixes": ["content://photos.example"],
                "unknown_key": 1,
            }
        ),
        encoding="utf-8",
    )
    cfg = load_config(p)
    assert cfg.max_size == (800, 600)
    assert cfg.cache_dir == tmp_path / "c"
    assert cfg.cloud_provider_prefixes == ("content://photos.example",)


def test_env_overrides_cache_dir(tmp_path, monkeypatch):
    p = tmp_path / "capturekit.json"
    p.write_text(json.dumps({"cache_dir": str(tmp_path / "from-file")}), encoding="utf-8")
    monkeypatch.setenv(CACHE_DIR_ENV, str(tmp_path / "from-env"))
    assert load_config(p).cache_dir == tmp_path / "from-env"


@pytest.mark.parametrize(
    "content",
    [
        "{not json",
        "[1, 2]",
        json.dumps({"stored_image_width": 0}),
        json.dumps({"max_concurrent_fetches": 0}),
        json.dumps({"request_timeout": -1}),
        json.dumps({"cloud_provider_prefixes": "content://x"}),
        json.dumps({"stored_image_width": "wide"}),
        json.dumps({"cache_dir": 5}),
        json.dumps({"cloud_provider_prefixes": 5}),
    ],
)
def test_invalid_config_raises(tmp_path, content):
    p = tmp_path / "bad.json"
    p.write_text(content, encoding="utf-8")
    with pytest.raises(ConfigError):
        load_config(p)


def test_missing_config_file(tmp_path):
    with pytest.raises(ConfigError, match="not found"):
        load_config(tmp_path / "nope.json")


def test_to_dict_is_json_serializable(tmp_path):
    cfg = CaptureConfig(cache_dir=tmp_path)
    data = json.loads(json.dumps(cfg.to_dict()))
    assert CaptureConfig.from_dict(data) == cfg
