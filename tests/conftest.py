# tests/conftest.py
import os

import pytest

# Run Qt headless when no display is available.
os.environ.setdefault("QT_QPA_PLATFORM", "offscreen")

from capturekit.core.config import CaptureConfig
from capturekit.resolve.content import LocalContentResolver
from capturekit.services.coordinator import ImportCoordinator
from capturekit.services.materializer import ImageMaterializer
from support import FakeNetwork, RecordingHandler


@pytest.fixture
def config(tmp_path):
    return CaptureConfig(cache_dir=tmp_path / "cache")


@pytest.fixture
def storage_dir(tmp_path):
    d = tmp_path / "store"
    d.mkdir()
    return d


@pytest.fixture
def handler():
    return RecordingHandler()


@pytest.fixture
def resolver():
    return LocalContentResolver()


@pytest.fixture
def network():
    return FakeNetwork()


@pytest.fixture
def materializer(qapp, resolver, network, config):
    m = ImageMaterializer(content=resolver, network=network, config=config)
    yield m
    m.wait_for_done(5000)


@pytest.fixture
def coordinator(materializer, resolver, config, handler, storage_dir):
    return ImportCoordinator(
        event_handler=handler,
        fetch_handler=handler,
        storage_dir=storage_dir,
        config=config,
        content=resolver,
        materializer=materializer,
    )
