"""Shape stamps: single-colour raster primitives for modules and finder patterns.

Every generator builds a boolean membership mask with numpy and turns it into
an RGBA stamp where each pixel is either the fill colour or fully
transparent. Edges are hard; any softening comes from the resampling done by
the compositor.
"""

from enum import Enum

import numpy as np
from PIL import Image

Color = tuple[int, int, int, int]


class ModuleStyle(Enum):
    RECTANGLE = "rectangle"
    ROUNDED_RECTANGLE = "rounded-rectangle"
    CIRCLE = "circle"
    RHOMBUS = "rhombus"
    TRIANGLE_UP = "triangle-up"
    TRIANGLE_DOWN = "triangle-down"


class FinderStyle(Enum):
    RECTANGLE = "rectangle"
    ROUNDED_RECTANGLE = "rounded-rectangle"
    CIRCLE = "circle"
    RHOMBUS = "rhombus"


def parse_style(value, enum_cls):
    """Accept an enum member or its value/name ("circle", "ROUNDED_RECTANGLE", "rounded")."""
    if isinstance(value, enum_cls):
        return value
    key = str(value).strip().lower().replace("_", "-")
    if key == "rounded":
        key = "rounded-rectangle"
    for member in enum_cls:
        if member.value == key:
            return member
    choices = ", ".join(m.value for m in enum_cls)
    raise ValueError(f"unknown {enum_cls.__name__}: {value!r} (expected one of: {choices})")


# ---------------------------------------------------------------------------
# Membership masks
# ---------------------------------------------------------------------------

def disk_mask(radius: int) -> np.ndarray:
    """2r x 2r mask of the disk (dx² + dy²) <= r² centred at (r, r)."""
    r = max(1, radius)
    ys, xs = np.mgrid[0:2 * r, 0:2 * r]
    return (xs - r) ** 2 + (ys - r) ** 2 <= r * r


def rectangle_mask(w: int, h: int, radius: int = 0) -> np.ndarray:
    """w x h mask with each corner rounded off to a quarter disk of *radius*."""
    w, h = max(1, w), max(1, h)
    r = max(0, min(radius, w // 2, h // 2))
    ys, xs = np.mgrid[0:h, 0:w]

    # Everything except the four r x r corner squares
    mask = (
        ((xs >= r) | (ys >= r))
        & ((xs <= w - r) | (ys <= h - r))
        & ((xs >= r) | (ys <= h - r))
        & ((xs <= w - r) | (ys >= r))
    )

    if r > 0:
        disk = disk_mask(r)
        for ox, oy in ((0, 0), (w - 2 * r, 0), (0, h - 2 * r), (w - 2 * r, h - 2 * r)):
            mask[oy:oy + 2 * r, ox:ox + 2 * r] |= disk
    return mask


def rhombus_mask(h: int) -> np.ndarray:
    """h x h diamond with sharp vertices at the middle of each edge."""
    h = max(1, h)
    half = h // 2
    ys, xs = np.mgrid[0:h, 0:h]
    reach = np.where(ys > half, h - ys, ys)
    return (xs > half - reach) & (xs < half + reach)


def triangle_mask(h: int, apex_up: bool = True) -> np.ndarray:
    """h x h/2 half of the rhombus taper: the top half for apex up, else the bottom half."""
    h = max(2, h)
    half = h // 2
    ys, xs = np.mgrid[0:half, 0:h]
    if apex_up:
        reach = ys
    else:
        reach = np.where(ys > 0, h - half - ys, 0)
    return (xs > half - reach) & (xs < half + reach)


# ---------------------------------------------------------------------------
# Stamps
# ---------------------------------------------------------------------------

def stamp_from_mask(mask: np.ndarray, color: Color) -> Image.Image:
    """Colour *mask* in: member pixels get *color*, the rest stay transparent."""
    arr = np.zeros(mask.shape + (4,), dtype=np.uint8)
    arr[mask] = color
    return Image.fromarray(arr)


def rectangle(color: Color, w: int, h: int, radius: int = 0) -> Image.Image:
    return stamp_from_mask(rectangle_mask(w, h, radius), color)


def circle(color: Color, radius: int) -> Image.Image:
    return stamp_from_mask(disk_mask(radius), color)


def rhombus(color: Color, h: int) -> Image.Image:
    return stamp_from_mask(rhombus_mask(h), color)


def triangle(color: Color, h: int, apex_up: bool = True) -> Image.Image:
    """Isosceles triangle stamp, h x h.

    The raw raster is only h/2 tall; stretching it with LANCZOS restores the
    aspect ratio without stair-stepped sides.
    """
    h = max(2, h)
    raw = stamp_from_mask(triangle_mask(h, apex_up), color)
    return raw.resize((h, h), Image.LANCZOS)


def make_shape(style: ModuleStyle | FinderStyle, color: Color, size: int,
               radius: int | None = None) -> Image.Image:
    """Stamp of *style* filling a size x size box.

    *radius* only applies to rounded rectangles and defaults to a quarter of
    the box.
    """
    size = max(1, size)
    value = style.value
    if value == "rectangle":
        return rectangle(color, size, size, 0)
    if value == "rounded-rectangle":
        return rectangle(color, size, size, size // 4 if radius is None else radius)
    if value == "circle":
        return circle(color, max(1, size // 2))
    if value == "rhombus":
        return rhombus(color, size)
    if value == "triangle-up":
        return triangle(color, size, apex_up=True)
    if value == "triangle-down":
        return triangle(color, size, apex_up=False)
    raise ValueError(f"unsupported shape style: {style!r}")
