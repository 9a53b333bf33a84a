"""Render sessions: the ordered pipeline that turns a QR bitmap into a styled image.

A session walks through fixed stages:

    CREATED -> STYLED -> MODULES -> FINDERS -> LOGO -> FINALIZED

Colours and the foreground image are set first, modules are drawn (which
fixes the module pitch), then the finder patterns and finally the optional
logo. Calling an operation out of that order records a StageError instead of
quietly drawing the wrong thing, and finalize refuses a canvas whose finder
patterns were never drawn.

Errors are sticky. The first failure is kept in ``session.error``; every
later mutating call becomes a no-op and ``finalize``/``to_png`` raise it.
For one-shot use, :func:`render` drives a session from a RenderConfig.
"""

import functools
from dataclasses import dataclass
from enum import IntEnum

from PIL import Image

from qrstyle import compositor, finder, logo as logo_overlay
from qrstyle.compositor import clamp_ratio, encode_png, to_rgba
from qrstyle.errors import EncodingError, QRStyleError, StageError
from qrstyle.generator import ECCLevel, EncodedSymbol, encode, render_plain
from qrstyle.grid import iter_dark_modules, module_pitch, sample_color, working_size
from qrstyle.logging import audit, get_logger, trace
from qrstyle.shapes import Color, FinderStyle, ModuleStyle, parse_style

log = get_logger("session")

DEFAULT_FOREGROUND: Color = (0, 0, 0, 255)
DEFAULT_BACKGROUND: Color = (255, 255, 255, 255)


class Stage(IntEnum):
    CREATED = 0
    STYLED = 1
    MODULES = 2
    FINDERS = 3
    LOGO = 4
    FINALIZED = 5


def _stage(allowed: tuple[Stage, ...], then: Stage):
    """Guard a mutating session method.

    The call is skipped when the session has already failed, recorded as a
    StageError when the current stage is not in *allowed*, and any
    QRStyleError it raises becomes the session's sticky error.
    """
    def decorator(fn):
        @functools.wraps(fn)
        def wrapper(self, *args, **kwargs):
            if self.error is not None:
                return self
            if self.stage not in allowed:
                self._fail(StageError(
                    f"{fn.__name__}() is not allowed after stage {self.stage.name}; "
                    f"expected one of {', '.join(s.name for s in allowed)}"
                ))
                return self
            try:
                fn(self, *args, **kwargs)
            except QRStyleError as exc:
                self._fail(exc)
                return self
            self.stage = max(self.stage, then)
            return self
        return wrapper
    return decorator


_BEFORE_MODULES = (Stage.CREATED, Stage.STYLED)


class RenderSession:
    """One styled rendering of one QR symbol.

    Args:
        symbol:     Encoded symbol to decorate (None only for a session whose
                    encoding already failed).
        size:       Side of the square output image in pixels.
        quiet_zone: Width of the finalize border, in modules.
    """

    def __init__(self, symbol: EncodedSymbol | None, size: int, quiet_zone: int = 1):
        if size < 1:
            raise ValueError(f"size must be positive, got {size}")
        self.symbol = symbol
        self.size = size
        self.quiet_zone = quiet_zone
        self.foreground: Color = DEFAULT_FOREGROUND
        self.background: Color = DEFAULT_BACKGROUND
        self.fore_image: Image.Image | None = None
        self.finder_image_color = False
        self.canvas: Image.Image | None = None
        self.pitch: int | None = None
        self.stage = Stage.CREATED
        self.error: QRStyleError | None = None

    @classmethod
    def from_text(cls, text: str, size: int, level: ECCLevel | str = ECCLevel.H,
                  quiet_zone: int = 1) -> "RenderSession":
        """Encode *text* and open a session on it; encoding failures are kept, not raised."""
        try:
            symbol = encode(text, level)
        except EncodingError as exc:
            session = cls(None, size, quiet_zone=quiet_zone)
            session._fail(exc)
            return session
        return cls(symbol, size, quiet_zone=quiet_zone)

    def __repr__(self):
        n = self.symbol.size if self.symbol else "?"
        return f"<RenderSession {n}x{n} size={self.size} stage={self.stage.name}>"

    # -- failure state -------------------------------------------------------

    def _fail(self, exc: QRStyleError) -> None:
        if self.error is None:
            self.error = exc
            audit("session.failed", logger=log,
                  stage=self.stage.name, error=type(exc).__name__, detail=str(exc))

    @property
    def failed(self) -> bool:
        return self.error is not None

    def raise_for_error(self) -> None:
        if self.error is not None:
            raise self.error

    # -- styling -------------------------------------------------------------

    @_stage(_BEFORE_MODULES, then=Stage.STYLED)
    def set_foreground(self, color) -> None:
        """Flat colour for modules and finders; a foreground image takes precedence."""
        self.foreground = to_rgba(color)

    @_stage(_BEFORE_MODULES, then=Stage.STYLED)
    def set_background(self, color) -> None:
        """Background colour; alpha 0 gives a transparent background."""
        self.background = to_rgba(color)

    @_stage(_BEFORE_MODULES, then=Stage.STYLED)
    def set_fore_image(self, image: Image.Image, finder_color: bool = False) -> None:
        """Take module colours from *image*, sampled once per module.

        Args:
            image: Source image; it is resized to the output size.
            finder_color: Also colour the finder patterns from the image
                instead of the flat foreground.
        """
        image = image.convert("RGBA")
        if image.size != (self.size, self.size):
            image = image.resize((self.size, self.size), Image.BILINEAR)
        self.fore_image = image
        self.finder_image_color = finder_color

    # -- drawing -------------------------------------------------------------

    @trace
    @_stage(_BEFORE_MODULES, then=Stage.MODULES)
    def draw_modules(self, style: ModuleStyle | str = ModuleStyle.RECTANGLE, ratio: float = 1.0) -> None:
        """Paint the background and stamp every dark module outside the finder zones.

        Args:
            style: Module shape.
            ratio: Share of the module cell the shape fills, clamped to (0, 1].
        """
        style = parse_style(style, ModuleStyle)
        ratio = clamp_ratio(ratio)
        n = self.symbol.size
        self.pitch = module_pitch(n, self.size)
        side = working_size(n, self.size, self.pitch)

        canvas = compositor.new_canvas(side, (0, 0, 0, 0))
        compositor.paint_background(canvas, self.background)

        drawn = 0
        for x, y in iter_dark_modules(self.symbol.modules):
            if self.fore_image is not None:
                color = sample_color(self.fore_image, x * self.pitch, y * self.pitch)
            else:
                color = self.foreground
            compositor.draw_module(canvas, x, y, self.pitch, style, ratio, color)
            drawn += 1

        self.canvas = canvas
        audit("session.modules_drawn", logger=log,
              modules=f"{n}x{n}", pitch=self.pitch, canvas_px=side,
              style=style.value, ratio=ratio, drawn=drawn, image_color=self.fore_image is not None)

    @trace
    @_stage((Stage.MODULES,), then=Stage.FINDERS)
    def draw_finders(self, outside: FinderStyle | str = FinderStyle.RECTANGLE,
                     inside: FinderStyle | str = FinderStyle.RECTANGLE) -> None:
        """Draw the three bull's-eyes with independent ring and centre styles."""
        source = self.fore_image if self.finder_image_color else None
        finder.draw_finders(
            self.canvas,
            self.pitch,
            parse_style(outside, FinderStyle),
            parse_style(inside, FinderStyle),
            self.foreground,
            self.background,
            patch_size=self.size,
            color_source=source,
        )

    @trace
    @_stage((Stage.FINDERS,), then=Stage.LOGO)
    def overlay_logo(self, image: Image.Image, border: bool = False) -> None:
        """Centre *image* over the symbol; refused below level Q.

        Args:
            image: Logo image, any mode.
            border: Pad the logo with a background-coloured frame first.
        """
        logo_overlay.check_logo_allowed(self.symbol.level)
        logo_overlay.overlay_logo(self.canvas, image, self.pitch, self.background, border=border)

    # -- output --------------------------------------------------------------

    @trace
    def finalize(self, border: bool = True) -> Image.Image:
        """Return the finished size x size image.

        Before any modules are drawn this is the encoder's plain rendering in
        the session colours. Calling it again gives the same image.

        Args:
            border: Surround the symbol with a background-coloured quiet
                zone. Defaults to True, since a symbol without one is hard
                to scan off a page.

        Raises:
            StageError: modules were drawn but the finder patterns were not.
            QRStyleError: the session's sticky error, if any.
        """
        if self.error is None and self.canvas is not None and self.stage < Stage.FINDERS:
            self._fail(StageError(
                f"finalize() is not allowed after stage {self.stage.name}; "
                "draw the finder patterns first"
            ))
        self.raise_for_error()
        if self.canvas is None:
            image = render_plain(self.symbol, self.size, self.foreground, self.background, border=border)
        else:
            image = compositor.finalize(
                self.canvas, self.size, self.background, self.pitch,
                border=border, quiet_zone=self.quiet_zone,
            )
        self.stage = Stage.FINALIZED
        return image

    def to_png(self, border: bool = True) -> bytes:
        """finalize() serialized as PNG bytes; *border* defaults to True as there."""
        image = self.finalize(border)
        try:
            return encode_png(image)
        except QRStyleError as exc:
            self._fail(exc)
            raise


# ---------------------------------------------------------------------------
# One-shot rendering
# ---------------------------------------------------------------------------

@dataclass
class RenderConfig:
    """Everything a single render needs, validated up front.

    Leaving every styling field at its default (no module style, foreground
    image or logo, square finders, full ratio) asks for the encoder's plain
    rendering. Setting any of them draws styled modules, as rectangles when
    ``module_style`` is None.
    """

    size: int = 256
    level: ECCLevel | str = ECCLevel.H
    foreground: Color | str = DEFAULT_FOREGROUND
    background: Color | str = DEFAULT_BACKGROUND
    fore_image: Image.Image | None = None
    finder_image_color: bool = False
    module_style: ModuleStyle | str | None = None
    ratio: float = 1.0
    finder_outside: FinderStyle | str = FinderStyle.RECTANGLE
    finder_inside: FinderStyle | str = FinderStyle.RECTANGLE
    logo: Image.Image | None = None
    logo_border: bool = False
    border: bool = True
    quiet_zone: int = 1

    def __post_init__(self):
        if self.size < 1:
            raise ValueError(f"size must be positive, got {self.size}")
        self.level = ECCLevel.parse(self.level)
        self.foreground = to_rgba(self.foreground)
        self.background = to_rgba(self.background)
        if self.module_style is not None:
            self.module_style = parse_style(self.module_style, ModuleStyle)
        self.finder_outside = parse_style(self.finder_outside, FinderStyle)
        self.finder_inside = parse_style(self.finder_inside, FinderStyle)
        self.ratio = clamp_ratio(self.ratio)

    @property
    def styled(self) -> bool:
        return (
            self.module_style is not None
            or self.fore_image is not None
            or self.logo is not None
            or self.finder_outside is not FinderStyle.RECTANGLE
            or self.finder_inside is not FinderStyle.RECTANGLE
            or self.ratio != 1.0
        )


def build_session(data: str | EncodedSymbol, config: RenderConfig) -> RenderSession:
    """Run every configured stage, in order, on a new session."""
    if isinstance(data, EncodedSymbol):
        session = RenderSession(data, config.size, quiet_zone=config.quiet_zone)
    else:
        session = RenderSession.from_text(data, config.size, config.level, quiet_zone=config.quiet_zone)

    session.set_foreground(config.foreground).set_background(config.background)
    if config.fore_image is not None:
        session.set_fore_image(config.fore_image, finder_color=config.finder_image_color)

    if config.styled:
        session.draw_modules(config.module_style or ModuleStyle.RECTANGLE, config.ratio)
        session.draw_finders(config.finder_outside, config.finder_inside)
        if config.logo is not None:
            session.overlay_logo(config.logo, border=config.logo_border)
    return session


def render(data: str | EncodedSymbol, config: RenderConfig | None = None) -> Image.Image:
    """Render *data* (text or an already encoded symbol) to an image.

    Raises:
        QRStyleError: encoding, logo or stage failure.
    """
    config = config or RenderConfig()
    return build_session(data, config).finalize(config.border)


def render_png(data: str | EncodedSymbol, config: RenderConfig | None = None) -> bytes:
    """render() serialized as PNG bytes."""
    config = config or RenderConfig()
    return build_session(data, config).to_png(config.border)
