"""Tests for the logo overlay."""

import pytest
from PIL import Image

from qrstyle.compositor import new_canvas
from qrstyle.errors import DecodabilityRiskError
from qrstyle.generator import ECCLevel
from qrstyle.logo import check_logo_allowed, load_logo, overlay_logo, pad_logo

WHITE = (255, 255, 255, 255)
RED = (255, 0, 0, 255)


@pytest.mark.parametrize("level", [ECCLevel.L, ECCLevel.M])
def test_low_levels_refuse_a_logo(level):
    with pytest.raises(DecodabilityRiskError):
        check_logo_allowed(level)


@pytest.mark.parametrize("level", [ECCLevel.Q, ECCLevel.H])
def test_high_levels_accept_a_logo(level):
    check_logo_allowed(level)


def test_pad_logo_frames_with_background():
    padded = pad_logo(Image.new("RGBA", (100, 100), RED), WHITE)
    assert padded.size == (100, 100)
    assert padded.getpixel((2, 2)) == WHITE
    assert padded.getpixel((50, 50)) == RED


def test_overlay_logo_is_centred_and_eight_modules_wide(red_logo):
    canvas = new_canvas(200, WHITE)
    overlay_logo(canvas, red_logo, 10, WHITE)
    assert canvas.getpixel((100, 100)) == RED
    assert canvas.getpixel((61, 61)) == RED
    assert canvas.getpixel((58, 100)) == WHITE
    assert canvas.getpixel((142, 100)) == WHITE


def test_overlay_logo_with_border(red_logo):
    canvas = new_canvas(200, (0, 0, 255, 255))
    overlay_logo(canvas, red_logo, 10, WHITE, border=True)
    assert canvas.getpixel((61, 61)) == WHITE
    assert canvas.getpixel((100, 100)) == RED


def test_load_logo(tmp_path):
    path = tmp_path / "logo.png"
    Image.new("RGB", (10, 10), (0, 255, 0)).save(path)
    logo = load_logo(path)
    assert logo.mode == "RGBA"
    assert logo.getpixel((5, 5)) == (0, 255, 0, 255)
