import json

import pytest
from PIL import Image

from curlpoke.runtime.calibration import (
    FALLBACK_ANCHOR, FingertipLocator, _cache_key, _cache_path, load_anchor, sprite_size,
)


def sprite(w=295, h=471, pixels=()):
    img = Image.new("RGBA", (w, h), (0, 0, 0, 0))
    for x, y, a in pixels:
        img.putpixel((x, y), (200, 150, 120, a))
    return img


@pytest.fixture(autouse=True)
def _config_dir(tmp_path, monkeypatch):
    monkeypatch.setenv("CURLPOKE_CONFIG_DIR", str(tmp_path / "cfg"))


def test_first_opaque_row_in_the_finger_band():
    px = [(x, 20, 255) for x in range(60, 71)] + [(x, 21, 255) for x in range(50, 80)]
    a = FingertipLocator().calibrate(sprite(pixels=px))
    assert a.source == "scan"
    assert a.local_y == 20.0
    assert a.local_x == pytest.approx(65.0)


def test_centroid_is_alpha_weighted():
    a = FingertipLocator().calibrate(sprite(pixels=[(50, 5, 255), (60, 5, 85)]))
    assert a.local_y == 5.0
    assert a.local_x == pytest.approx((50 * 255 + 60 * 85) / 340)


def test_faint_pixels_and_pixels_outside_the_band_are_ignored():
    px = [(70, 3, 10), (10, 1, 255), (200, 2, 255), (55, 9, 11)]
    a = FingertipLocator().calibrate(sprite(pixels=px))
    assert (a.local_x, a.local_y) == (55.0, 9.0)


def test_empty_band_falls_back():
    assert FingertipLocator().calibrate(sprite(pixels=[(10, 10, 255)])) == FALLBACK_ANCHOR


def test_band_is_clamped_to_narrow_images():
    a = FingertipLocator().calibrate(sprite(w=40, h=30, pixels=[(39, 4, 255)]))
    assert (a.local_x, a.local_y) == (39.0, 4.0)


def test_non_rgba_images_are_converted():
    img = Image.new("RGB", (295, 471), (255, 255, 255))
    a = FingertipLocator().calibrate(img)
    assert a.local_y == 0.0
    assert a.local_x == pytest.approx((48 + 85) / 2)


def test_calibrate_file_scans_once_then_uses_the_cache(tmp_path):
    path = tmp_path / "hand2.png"
    sprite(pixels=[(66, 12, 255)]).save(path)
    loc = FingertipLocator()

    first = loc.calibrate_file(path)
    second = loc.calibrate_file(path)

    assert first.source == "scan"
    assert second.source == "cache"
    assert (second.local_x, second.local_y) == (66.0, 12.0)
    assert load_anchor(path) == second


def test_missing_or_broken_sprite_falls_back(tmp_path):
    loc = FingertipLocator()
    assert loc.calibrate_file(tmp_path / "nope.png") == FALLBACK_ANCHOR

    bad = tmp_path / "bad.png"
    bad.write_bytes(b"not an image")
    assert loc.calibrate_file(bad) == FALLBACK_ANCHOR


def test_sprite_size(tmp_path):
    path = tmp_path / "hand2.png"
    sprite(w=120, h=200).save(path)
    assert sprite_size(path) == (120, 200)
    assert sprite_size(tmp_path / "nope.png") is None
    assert sprite_size(None) is None


@pytest.mark.parametrize("cache", [
    lambda key: [],
    lambda key: "x",
    lambda key: {key: 3},
    lambda key: {key: {"local_y": 1}},
])
def test_malformed_cache_is_ignored(tmp_path, cache):
    blank = tmp_path / "blank.png"
    sprite().save(blank)
    _cache_path().write_text(json.dumps(cache(_cache_key(blank))))

    assert load_anchor(blank) is None
    assert FingertipLocator().calibrate_file(blank) == FALLBACK_ANCHOR


def test_malformed_cache_is_rescanned_and_rewritten(tmp_path):
    path = tmp_path / "hand2.png"
    sprite(pixels=[(70, 6, 255)]).save(path)
    _cache_path().write_text("[]")

    a = FingertipLocator().calibrate_file(path)

    assert a.source == "scan"
    assert (a.local_x, a.local_y) == (70.0, 6.0)
    assert load_anchor(path).source == "cache"
