# tests/test_content.py
import pytest

from capturekit.core.errors import SourceNotFoundError
from capturekit.resolve.content import LocalContentResolver, path_from_uri


def test_registered_file_handle(tmp_path):
    src = tmp_path / "IMG_0001.jpg"
    src.write_bytes(b"jpeg-bytes")
    r = LocalContentResolver()
    r.add_file("content://media/external/images/media/1", src)

    row = r.query("content://media/external/images/media/1")
    assert row.local_path == str(src)
    assert row.display_name == "IMG_0001.jpg"
    with r.open_read_stream("content://media/external/images/media/1") as s:
        assert s.read() == b"jpeg-bytes"


def test_stream_only_handles_have_no_local_path(tmp_path):
    src = tmp_path / "remote.jpg"
    src.write_bytes(b"abc")
    r = LocalContentResolver()
    r.add_file("content://provider/1", src, display_name="Holiday", expose_path=False)
    r.add_bytes("content://provider/2", b"xyz", display_name="bytes.jpg")

    row1 = r.query("content://provider/1")
    assert row1.local_path is None
    assert row1.display_name == "Holiday"
    assert r.query("content://provider/2").local_path is None
    assert r.open_read_stream("content://provider/2").read() == b"xyz"


def test_unregistered_paths_resolve_to_themselves(tmp_path):
    src = tmp_path / "plain.png"
    src.write_bytes(b"png")
    r = LocalContentResolver()
    assert r.query(str(src)).local_path == str(src)
    assert r.query(src.as_uri()).local_path == str(src)
    assert r.query(str(tmp_path / "missing.png")) is None
    assert r.query("content://unknown/1") is None
    with r.open_read_stream(src.as_uri()) as s:
        assert s.read() == b"png"


def test_open_unknown_raises_not_found(tmp_path):
    r = LocalContentResolver()
    with pytest.raises(SourceNotFoundError):
        r.open_read_stream("content://unknown/1")

    gone = tmp_path / "gone.jpg"
    gone.write_bytes(b"1")
    r.add_file("content://gone", gone)
    gone.unlink()
    with pytest.raises(FileNotFoundError):
        r.open_read_stream("content://gone")


def test_remove(tmp_path):
    r = LocalContentResolver()
    r.add_bytes("content://p/1", b"1")
    r.remove("content://p/1")
    assert r.query("content://p/1") is None


def test_path_from_uri():
    assert str(path_from_uri("file:///tmp/a%20b.jpg")) == "/tmp/a b.jpg"
    assert path_from_uri("relative/path.jpg") is None
    assert path_from_uri("https://example.org/a.jpg") is None


def test_overlong_path_is_not_a_lookup_result():
    r = LocalContentResolver()
    too_long = "/" + "a" * 5000
    assert r.query(too_long) is None
    assert r.query("file://" + too_long) is None
    with pytest.raises(SourceNotFoundError):
        r.open_read_stream(too_long)
