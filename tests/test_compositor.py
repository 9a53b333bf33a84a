"""Tests for canvas compositing and finalization."""

import numpy as np
import pytest
from PIL import Image

from qrstyle.compositor import (
    clamp_ratio,
    composite_over,
    draw_module,
    encode_png,
    erase_under,
    finalize,
    new_canvas,
    paint_background,
    to_rgba,
)
from qrstyle.errors import SerializationError
from qrstyle.shapes import ModuleStyle

RED = (255, 0, 0, 255)
WHITE = (255, 255, 255, 255)
CLEAR = (0, 0, 0, 0)

RATIOS = [round(0.1 * i, 1) for i in range(1, 11)]


def test_to_rgba():
    assert to_rgba((1, 2, 3)) == (1, 2, 3, 255)
    assert to_rgba((1, 2, 3, 4)) == (1, 2, 3, 4)
    assert to_rgba("#ff0000") == RED
    assert to_rgba("white") == WHITE
    with pytest.raises(ValueError):
        to_rgba((1, 2))


@pytest.mark.parametrize("given,expected", [(0, 0.1), (-3, 0.1), (1.5, 1.0), (0.5, 0.5), (1, 1)])
def test_clamp_ratio(given, expected):
    assert clamp_ratio(given) == expected


def test_paint_background_replaces_everything():
    canvas = new_canvas(8, RED)
    paint_background(canvas, CLEAR)
    assert set(canvas.getdata()) == {CLEAR}


def test_composite_over_clips_negative_offsets():
    canvas = new_canvas(10, CLEAR)
    composite_over(canvas, Image.new("RGBA", (4, 4), RED), (-2, -2))
    assert canvas.getpixel((0, 0)) == RED
    assert canvas.getpixel((1, 1)) == RED
    assert canvas.getpixel((2, 2)) == CLEAR


def test_composite_over_clips_overflow():
    canvas = new_canvas(10, CLEAR)
    composite_over(canvas, Image.new("RGBA", (4, 4), RED), (8, 8))
    assert canvas.getpixel((9, 9)) == RED
    assert canvas.getpixel((7, 7)) == CLEAR
    composite_over(canvas, Image.new("RGBA", (4, 4), RED), (20, 20))


def test_composite_over_keeps_destination_under_transparent_pixels():
    canvas = new_canvas(4, WHITE)
    stamp = Image.new("RGBA", (4, 4), CLEAR)
    stamp.putpixel((1, 1), RED)
    composite_over(canvas, stamp, (0, 0))
    assert canvas.getpixel((1, 1)) == RED
    assert canvas.getpixel((2, 2)) == WHITE


def test_erase_under_knocks_out_alpha():
    canvas = new_canvas(10, RED)
    erase_under(canvas, Image.new("RGBA", (4, 4), WHITE), (3, 3))
    assert canvas.getpixel((4, 4))[3] == 0
    assert canvas.getpixel((0, 0)) == RED
    assert canvas.getpixel((7, 7)) == RED


@pytest.mark.parametrize("style", list(ModuleStyle))
@pytest.mark.parametrize("ratio", RATIOS)
def test_module_stamp_stays_inside_its_cell(style, ratio):
    pitch = 10
    canvas = new_canvas(5 * pitch, CLEAR)
    draw_module(canvas, 2, 2, pitch, style, ratio, RED)

    ys, xs = np.nonzero(np.asarray(canvas)[..., 3])
    if ratio == 1.0:
        assert len(xs) > 0
    assert ((xs >= 20) & (xs < 30)).all()
    assert ((ys >= 20) & (ys < 30)).all()


def test_full_rectangle_module_fills_cell():
    canvas = new_canvas(30, CLEAR)
    draw_module(canvas, 1, 1, 10, ModuleStyle.RECTANGLE, 1.0, RED)
    cell = np.asarray(canvas)[10:20, 10:20]
    assert (cell == RED).all()


def test_finalize_rescales_and_leaves_canvas_alone():
    canvas = new_canvas(503, RED)
    before = canvas.tobytes()
    out = finalize(canvas, 500, WHITE, 24, border=False)
    assert out.size == (500, 500)
    assert canvas.tobytes() == before


def test_finalize_border_draws_quiet_zone():
    canvas = new_canvas(500, RED)
    out = finalize(canvas, 500, WHITE, 20, border=True)
    assert out.size == (500, 500)
    assert out.getpixel((0, 0)) == WHITE
    assert out.getpixel((19, 250)) == WHITE
    assert out.getpixel((250, 250)) == RED


def test_finalize_is_idempotent():
    canvas = new_canvas(503, CLEAR)
    draw_module(canvas, 10, 10, 24, ModuleStyle.CIRCLE, 0.8, RED)
    first = encode_png(finalize(canvas, 500, WHITE, 24, border=True))
    second = encode_png(finalize(canvas, 500, WHITE, 24, border=True))
    assert first == second


def test_finalize_returns_a_copy_when_sizes_match():
    canvas = new_canvas(100, RED)
    out = finalize(canvas, 100, WHITE, 10, border=False)
    assert out is not canvas
    assert out.tobytes() == canvas.tobytes()


def test_encode_png():
    assert encode_png(new_canvas(4, RED)).startswith(b"\x89PNG")


def test_encode_png_failure_is_serialization_error():
    with pytest.raises(SerializationError):
        encode_png(Image.new("CMYK", (4, 4)))
