"""Finder (bull's-eye) patterns: outer ring, background gap and inner blob at three corners."""

from PIL import Image

from qrstyle.compositor import composite_over, erase_under
from qrstyle.grid import FINDER_MODULES, sample_color
from qrstyle.logging import audit, get_logger, trace
from qrstyle.shapes import Color, FinderStyle, make_shape

log = get_logger("finder")

# Ring gap and centre blob, in modules of the 7-module pattern
COVER_MODULES = 5
INNER_MODULES = 3

ROUNDED_RADIUS_RATIO = 0.1


def finder_origins(canvas_size: int, pitch: int) -> list[tuple[int, int]]:
    """Pixel origins (x, y) of the top-left, bottom-left and top-right patterns."""
    far = canvas_size - FINDER_MODULES * pitch
    return [(0, 0), (0, far), (far, 0)]


def _shape(style: FinderStyle, color: Color, size: int) -> Image.Image:
    return make_shape(style, color, size, radius=int(size * ROUNDED_RADIUS_RATIO))


def build_patch(outside: FinderStyle, inside: FinderStyle,
                foreground: Color, background: Color, patch_size: int) -> Image.Image:
    """Render one finder pattern on a transparent patch_size square.

    The ring gap is cut with the cover shape's own alpha mask before the
    background colour is laid into it, so a transparent background leaves a
    transparent gap instead of a painted one.
    """
    unit = patch_size // FINDER_MODULES
    patch = Image.new("RGBA", (patch_size, patch_size), (0, 0, 0, 0))

    composite_over(patch, _shape(outside, foreground, patch_size), (0, 0))

    cover_side = max(1, unit * COVER_MODULES)
    cover_at = (patch_size - cover_side) // 2
    cover = _shape(outside, background, patch_size).resize((cover_side, cover_side), Image.BILINEAR)
    if background[3] < 255:
        erase_under(patch, cover, (cover_at, cover_at))
    composite_over(patch, cover, (cover_at, cover_at))

    inner_side = max(1, unit * INNER_MODULES)
    inner_at = (patch_size - inner_side) // 2
    inner = _shape(inside, foreground, patch_size).resize((inner_side, inner_side), Image.LANCZOS)
    composite_over(patch, inner, (inner_at, inner_at))
    return patch


@trace
def draw_finders(
    canvas: Image.Image,
    pitch: int,
    outside: FinderStyle,
    inside: FinderStyle,
    foreground: Color,
    background: Color,
    patch_size: int,
    color_source: Image.Image | None = None,
) -> None:
    """Draw the three finder patterns onto *canvas* in place.

    Args:
        canvas:       Working canvas the modules were drawn on.
        pitch:        Module pitch of the session.
        outside:      Style of the outer ring (and its gap).
        inside:       Style of the centre blob.
        foreground:   Flat colour, used unless *color_source* is given.
        background:   Colour of the ring gap, may be transparent.
        patch_size:   Resolution each pattern is drawn at before being
                      resampled to 7 * pitch.
        color_source: Optional image sampled at each pattern's origin.
    """
    span = FINDER_MODULES * pitch
    for ox, oy in finder_origins(canvas.height, pitch):
        color = sample_color(color_source, ox, oy) if color_source is not None else foreground
        patch = build_patch(outside, inside, color, background, patch_size)
        composite_over(canvas, patch.resize((span, span), Image.BILINEAR), (ox, oy))

    audit("finder.drawn", logger=log,
          outside=outside.value, inside=inside.value, span_px=span,
          image_color=color_source is not None)
