"""qrstyle: styled QR code rendering (module shapes, finder styles, image colouring, logos)."""

from qrstyle.errors import (
    DecodabilityRiskError,
    EncodingError,
    QRStyleError,
    SerializationError,
    StageError,
)
from qrstyle.generator import ECCLevel, EncodedSymbol, encode
from qrstyle.session import RenderConfig, RenderSession, Stage, render, render_png
from qrstyle.shapes import FinderStyle, ModuleStyle

__version__ = "0.1.0"
