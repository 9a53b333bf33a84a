"""Module grid mapping: pitch, working canvas size, finder zones and colour sampling."""

from collections.abc import Iterator, Sequence

from PIL import Image

FINDER_MODULES = 7


def module_pitch(n: int, size: int) -> int:
    """Pixels per module: round(size / n), never less than one."""
    return max(1, round(size / n))


def working_size(n: int, size: int, pitch: int) -> int:
    """Side of the canvas modules are actually drawn on.

    When *size* is not a multiple of *n*, drawing happens on an n*pitch - 1
    canvas so every module boundary falls on a whole pixel; finalize scales
    the result back to *size*.
    """
    if size % n == 0:
        return size
    return n * pitch - 1


def in_finder_zone(x: int, y: int, rows: int, cols: int) -> bool:
    """True when module (x, y) belongs to one of the three 7x7 finder corners."""
    top = y < FINDER_MODULES
    left = x < FINDER_MODULES
    right = x > cols - FINDER_MODULES - 1
    bottom = y > rows - FINDER_MODULES - 1
    return (top and left) or (top and right) or (bottom and left)


def iter_dark_modules(modules: Sequence[Sequence[bool]]) -> Iterator[tuple[int, int]]:
    """Yield (x, y) of every dark module outside the finder zones, row by row."""
    rows = len(modules)
    for y, row in enumerate(modules):
        cols = len(row)
        for x, bit in enumerate(row):
            if bit and not in_finder_zone(x, y, rows, cols):
                yield x, y


def module_cell(x: int, y: int, pitch: int) -> tuple[int, int, int, int]:
    """Pixel box (left, top, right, bottom) covered by module (x, y)."""
    return x * pitch, y * pitch, (x + 1) * pitch, (y + 1) * pitch


def sample_color(image: Image.Image, px: int, py: int) -> tuple[int, int, int, int]:
    """Nearest sample of *image* at pixel (px, py), clamped to the image bounds.

    This is a single top-left pixel, not an area average, so a busy source
    image can band.
    """
    px = min(max(px, 0), image.width - 1)
    py = min(max(py, 0), image.height - 1)
    value = image.getpixel((px, py))
    if isinstance(value, int):
        return value, value, value, 255
    if len(value) == 3:
        return value[0], value[1], value[2], 255
    return tuple(value)
