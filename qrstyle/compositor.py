"""Canvas compositing: background fill, alpha-over stamping and output finalization."""

import io

import numpy as np
from PIL import Image, ImageColor

from qrstyle.errors import SerializationError
from qrstyle.grid import module_cell
from qrstyle.logging import audit, get_logger, trace
from qrstyle.shapes import Color, ModuleStyle, make_shape

log = get_logger("compositor")

MIN_RATIO = 0.1
MAX_RATIO = 1.0


def to_rgba(color) -> Color:
    """Normalize an RGB/RGBA tuple or any Pillow colour string to an RGBA tuple."""
    if isinstance(color, str):
        color = ImageColor.getrgb(color)
    channels = tuple(int(c) for c in color)
    if len(channels) == 3:
        return channels + (255,)
    if len(channels) == 4:
        return channels
    raise ValueError(f"colour must have 3 or 4 channels, got {color!r}")


def clamp_ratio(ratio: float) -> float:
    if ratio <= 0:
        return MIN_RATIO
    return min(ratio, MAX_RATIO)


def new_canvas(size: int, color: Color) -> Image.Image:
    return Image.new("RGBA", (size, size), color)


def paint_background(canvas: Image.Image, color: Color) -> None:
    """Fill the whole canvas with *color*, replacing anything already drawn."""
    canvas.paste(color, (0, 0, canvas.width, canvas.height))


def composite_over(canvas: Image.Image, stamp: Image.Image, offset: tuple[int, int]) -> None:
    """Alpha-composite *stamp* onto *canvas* at *offset*, clipping anything off-canvas."""
    x, y = offset
    left, top = max(0, -x), max(0, -y)
    right = min(stamp.width, canvas.width - x)
    bottom = min(stamp.height, canvas.height - y)
    if right <= left or bottom <= top:
        return
    if stamp.mode != "RGBA":
        stamp = stamp.convert("RGBA")
    canvas.alpha_composite(stamp, dest=(x + left, y + top), source=(left, top, right, bottom))


def erase_under(canvas: Image.Image, stamp: Image.Image, offset: tuple[int, int]) -> None:
    """Knock the canvas alpha out wherever *stamp* is opaque.

    Partial stamp alpha (from resampled edges) removes a proportional share,
    so nothing of the old content survives as a fringe.
    """
    x, y = offset
    left, top = max(0, -x), max(0, -y)
    right = min(stamp.width, canvas.width - x)
    bottom = min(stamp.height, canvas.height - y)
    if right <= left or bottom <= top:
        return

    arr = np.array(canvas)
    cover = np.asarray(stamp.getchannel("A"), dtype=np.uint16)[top:bottom, left:right]
    region = arr[y + top:y + bottom, x + left:x + right, 3].astype(np.uint16)
    arr[y + top:y + bottom, x + left:x + right, 3] = (region * (255 - cover) // 255).astype(np.uint8)
    canvas.paste(Image.fromarray(arr))


def draw_module(canvas: Image.Image, x: int, y: int, pitch: int,
                style: ModuleStyle, ratio: float, color: Color) -> None:
    """Stamp one dark module, shrunk to *ratio* of its cell and centred in it."""
    stamp = make_shape(style, color, 2 * pitch)
    side = max(1, int(ratio * pitch))
    inset = int((1 - ratio) * pitch / 2)
    left, top, _, _ = module_cell(x, y, pitch)
    stamp = stamp.resize((side, side), Image.BILINEAR)
    composite_over(canvas, stamp, (left + inset, top + inset))


@trace
def finalize(canvas: Image.Image, size: int, background: Color, pitch: int,
             border: bool = False, quiet_zone: int = 1) -> Image.Image:
    """Produce the size x size output image from the working canvas.

    The working canvas is left untouched, so repeated calls give identical
    results. With *border*, the content is shrunk inside a margin of
    quiet_zone * pitch pixels of background colour.
    """
    img = canvas
    if img.size != (size, size):
        img = img.resize((size, size), Image.LANCZOS)

    if border:
        margin = max(0, quiet_zone) * pitch
        inner = size - 2 * margin
        framed = new_canvas(size, background)
        if inner > 0:
            composite_over(framed, img.resize((inner, inner), Image.LANCZOS), (margin, margin))
        img = framed
    elif img is canvas:
        img = canvas.copy()

    audit("canvas.finalized", logger=log,
          working_px=f"{canvas.width}x{canvas.height}", output_px=f"{size}x{size}", border=border)
    return img


def encode_png(image: Image.Image) -> bytes:
    """Serialize *image* as PNG bytes."""
    buf = io.BytesIO()
    try:
        image.save(buf, format="PNG")
    except (OSError, ValueError) as exc:
        audit("canvas.serialize_failed", logger=log, error=str(exc))
        raise SerializationError(f"PNG encoding failed: {exc}") from exc
    return buf.getvalue()
