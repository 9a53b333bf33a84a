"""Logo overlay: centre an image over the finished grid, gated on error-correction level."""

from pathlib import Path

from PIL import Image

from qrstyle.compositor import composite_over
from qrstyle.errors import DecodabilityRiskError
from qrstyle.generator import LOGO_MIN_EXCLUSIVE, ECCLevel
from qrstyle.logging import audit, get_logger, trace
from qrstyle.shapes import Color

log = get_logger("logo")

# Logo footprint, in module pitches per side
LOGO_MODULES = 8
# Share of the padded box the logo itself occupies
LOGO_INSET = 0.8


def check_logo_allowed(level: ECCLevel) -> None:
    """Raise unless *level* has enough redundancy to lose the centre of the symbol."""
    if level <= LOGO_MIN_EXCLUSIVE:
        raise DecodabilityRiskError(
            f"error-correction level {level.name} is too low for a logo; use Q or H"
        )


@trace
def load_logo(path: str | Path) -> Image.Image:
    """Load a logo file as RGBA."""
    with Image.open(path) as img:
        return img.convert("RGBA")


def pad_logo(logo: Image.Image, background: Color) -> Image.Image:
    """Put *logo* on a background-coloured box of its own size, scaled to 80% and centred."""
    w, h = logo.size
    inner_w, inner_h = max(1, int(w * LOGO_INSET)), max(1, int(h * LOGO_INSET))
    padded = Image.new("RGBA", (w, h), background)
    composite_over(padded, logo.resize((inner_w, inner_h), Image.LANCZOS),
                   ((w - inner_w) // 2, (h - inner_h) // 2))
    return padded


@trace
def overlay_logo(canvas: Image.Image, logo: Image.Image, pitch: int,
                 background: Color, border: bool = False) -> None:
    """Composite *logo* over the centre of *canvas*, LOGO_MODULES pitches square."""
    logo = logo.convert("RGBA")
    if border:
        logo = pad_logo(logo, background)

    side = LOGO_MODULES * pitch
    offset = ((canvas.width - side) // 2, (canvas.height - side) // 2)
    composite_over(canvas, logo.resize((side, side), Image.LANCZOS), offset)
    audit("logo.composited", logger=log,
          logo_px=f"{logo.width}x{logo.height}", footprint_px=side, offset=offset, border=border)
