# tests/test_normalize.py
import pytest
from PIL import Image

from capturekit.core.errors import NormalizationError
from capturekit.imaging.normalize import (
    ORIENTATION_TAG,
    PillowNormalizer,
    read_orientation,
    resize_and_save,
    resize_rotate_and_save,
)
from support import make_image


def test_read_orientation(tmp_path):
    plain = make_image(tmp_path / "plain.jpg")
    rotated = make_image(tmp_path / "rot.jpg", orientation=6)
    garbage = tmp_path / "garbage.jpg"
    garbage.write_bytes(b"not an image")

    assert read_orientation(plain) is None
    assert read_orientation(rotated) == 6
    assert read_orientation(garbage) is None
    assert read_orientation(tmp_path / "missing.jpg") is None


def test_resize_only_bounds_large_images(tmp_path):
    p = make_image(tmp_path / "big.jpg", size=(3000, 1000))
    resize_and_save(p, 1280, 1280)
    with Image.open(p) as im:
        assert im.width == 1280
        assert im.height <= 1280
        assert im.format == "JPEG"


def test_resize_only_keeps_small_images(tmp_path):
    p = make_image(tmp_path / "small.png", size=(100, 50), fmt="PNG")
    before = p.read_bytes()
    resize_and_save(p, 1280, 1280)
    assert p.read_bytes() == before


def test_resize_rotate_applies_orientation_and_resets_tag(tmp_path):
    src = make_image(tmp_path / "src.jpg", size=(40, 20), orientation=6)
    dst = tmp_path / "out" / "dst.jpg"
    resize_rotate_and_save(src, dst, 6, 1280, 1280)
    with Image.open(dst) as im:
        assert im.size == (20, 40)
        assert im.getexif().get(ORIENTATION_TAG) == 1
    # source untouched
    with Image.open(src) as im:
        assert im.size == (40, 20)


def test_resize_rotate_in_place_and_bounded(tmp_path):
    p = make_image(tmp_path / "cam.jpg", size=(2000, 1000), orientation=8)
    resize_rotate_and_save(p, p, 8, 500, 500)
    with Image.open(p) as im:
        assert im.size == (250, 500)
    # no temporaries left behind
    assert sorted(x.name for x in tmp_path.iterdir()) == ["cam.jpg"]


def test_corrupt_input_raises_normalization_error(tmp_path):
    bad = tmp_path / "bad.jpg"
    bad.write_bytes(b"\x00" * 10)
    with pytest.raises(NormalizationError):
        resize_and_save(bad, 100, 100)
    with pytest.raises(ValueError):
        resize_rotate_and_save(bad, tmp_path / "o.jpg", 6, 100, 100)


def test_empty_file_is_corrupt(tmp_path):
    empty = tmp_path / "empty.jpg"
    empty.touch()
    with pytest.raises(NormalizationError):
        PillowNormalizer().resize_and_save(empty, 100, 100)


def test_missing_input_is_io_error(tmp_path):
    with pytest.raises(FileNotFoundError):
        resize_and_save(tmp_path / "missing.jpg", 100, 100)


def test_rgba_to_jpeg_destination(tmp_path):
    src = tmp_path / "alpha.png"
    Image.new("RGBA", (30, 30), color=(1, 2, 3, 128)).save(src)
    dst = tmp_path / "alpha_out.jpg"
    PillowNormalizer().resize_rotate_and_save(src, dst, 3, 10, 10)
    with Image.open(dst) as im:
        # PNG stays PNG: format follows the decoded source
        assert im.format == "PNG"
        assert im.size == (10, 10)
