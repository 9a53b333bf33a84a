"""Tests for module pitch, finder zones and colour sampling."""

from PIL import Image

from qrstyle.grid import (
    in_finder_zone,
    iter_dark_modules,
    module_cell,
    module_pitch,
    sample_color,
    working_size,
)


def test_pitch_rounds_and_never_hits_zero():
    assert module_pitch(25, 500) == 20
    assert module_pitch(21, 500) == 24
    assert module_pitch(29, 500) == 17
    assert module_pitch(21, 10) == 1


def test_working_size_shrinks_to_whole_modules():
    assert working_size(25, 500, 20) == 500
    assert working_size(21, 500, 24) == 21 * 24 - 1


def test_finder_zones_cover_three_corners():
    n = 21
    assert in_finder_zone(0, 0, n, n)
    assert in_finder_zone(6, 6, n, n)
    assert in_finder_zone(14, 0, n, n)
    assert in_finder_zone(20, 6, n, n)
    assert in_finder_zone(0, 14, n, n)
    assert in_finder_zone(6, 20, n, n)

    assert not in_finder_zone(7, 7, n, n)
    assert not in_finder_zone(13, 0, n, n)
    assert not in_finder_zone(0, 13, n, n)
    assert not in_finder_zone(20, 20, n, n)


def test_iter_dark_modules_skips_finder_zones():
    modules = [[True] * 21 for _ in range(21)]
    cells = list(iter_dark_modules(modules))
    assert len(cells) == 21 * 21 - 3 * 49
    assert (0, 0) not in cells
    assert (10, 10) in cells


def test_iter_dark_modules_skips_light_modules():
    modules = [[False] * 21 for _ in range(21)]
    modules[9][12] = True
    assert list(iter_dark_modules(modules)) == [(12, 9)]


def test_module_cell():
    assert module_cell(2, 3, 10) == (20, 30, 30, 40)


def test_sample_color_is_nearest_and_clamped():
    img = Image.new("RGB", (4, 4), (0, 0, 0))
    img.putpixel((3, 3), (10, 20, 30))
    assert sample_color(img, 3, 3) == (10, 20, 30, 255)
    assert sample_color(img, 40, 40) == (10, 20, 30, 255)
    assert sample_color(img, -1, 0) == (0, 0, 0, 255)


def test_sample_color_handles_grayscale_and_alpha():
    assert sample_color(Image.new("L", (2, 2), 77), 0, 0) == (77, 77, 77, 255)
    assert sample_color(Image.new("RGBA", (2, 2), (1, 2, 3, 4)), 1, 1) == (1, 2, 3, 4)
