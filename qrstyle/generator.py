"""QR symbol encoding: wraps the qrcode library and hands out the raw module bitmap."""

from dataclasses import dataclass
from enum import IntEnum

import numpy as np
import qrcode
import qrcode.constants
from qrcode.exceptions import DataOverflowError
from PIL import Image

from qrstyle.errors import EncodingError
from qrstyle.logging import audit, get_logger, trace

log = get_logger("generator")


class ECCLevel(IntEnum):
    """Error-correction levels, ordered from least to most redundancy."""

    L = 0  # 7%
    M = 1  # 15%
    Q = 2  # 25%
    H = 3  # 30%

    @property
    def qrcode_constant(self) -> int:
        return _QRCODE_LEVELS[self]

    @classmethod
    def parse(cls, value: "ECCLevel | str") -> "ECCLevel":
        if isinstance(value, cls):
            return value
        try:
            return ECC_NAMES[str(value).upper()]
        except KeyError:
            raise ValueError(f"unknown error-correction level: {value!r}") from None


# The library's constants are not numerically ordered (M=0, L=1, H=2, Q=3)
_QRCODE_LEVELS = {
    ECCLevel.L: qrcode.constants.ERROR_CORRECT_L,
    ECCLevel.M: qrcode.constants.ERROR_CORRECT_M,
    ECCLevel.Q: qrcode.constants.ERROR_CORRECT_Q,
    ECCLevel.H: qrcode.constants.ERROR_CORRECT_H,
}

ECC_NAMES = {"L": ECCLevel.L, "M": ECCLevel.M, "Q": ECCLevel.Q, "H": ECCLevel.H}

# Levels above this one carry enough redundancy to survive a centred logo
LOGO_MIN_EXCLUSIVE = ECCLevel.M

PLAIN_QUIET_ZONE = 4


@dataclass(frozen=True)
class EncodedSymbol:
    """An encoded QR symbol: the module bitmap plus the metadata it was built with."""

    modules: tuple[tuple[bool, ...], ...]
    level: ECCLevel
    version: int | None = None
    data: str | None = None

    @property
    def size(self) -> int:
        return len(self.modules)

    @property
    def can_carry_logo(self) -> bool:
        return self.level > LOGO_MIN_EXCLUSIVE

    @classmethod
    def from_matrix(cls, matrix, level: ECCLevel | str = ECCLevel.H) -> "EncodedSymbol":
        """Wrap an existing boolean matrix (any nested sequence or 2-D array)."""
        modules = tuple(tuple(bool(v) for v in row) for row in matrix)
        return cls(modules=modules, level=ECCLevel.parse(level))


@trace
def encode(data: str, level: ECCLevel | str = ECCLevel.H, version: int | None = None) -> EncodedSymbol:
    """Encode *data* into a module bitmap with no quiet zone.

    Args:
        data: The string to encode (URL, text, etc.)
        level: Error correction level, enum member or one of L/M/Q/H.
        version: QR version 1-40 (None = smallest that fits).

    Raises:
        EncodingError: the data does not fit at this level/version.
    """
    ecc = ECCLevel.parse(level)
    qr = qrcode.QRCode(
        version=version,
        error_correction=ecc.qrcode_constant,
        box_size=1,
        border=0,
    )
    qr.add_data(data)
    try:
        qr.make(fit=(version is None))
    except DataOverflowError as exc:
        audit("qr.encode_failed", logger=log, data=data[:80], ecc=ecc.name, error=str(exc))
        raise EncodingError(f"cannot encode {len(data)} characters at level {ecc.name}") from exc

    symbol = EncodedSymbol(
        modules=tuple(tuple(bool(v) for v in row) for row in qr.modules),
        level=ecc,
        version=qr.version,
        data=data,
    )
    audit("qr.encoded", logger=log,
          data=data[:80], version=qr.version, size=f"{symbol.size}x{symbol.size}", ecc=ecc.name)
    return symbol


@trace
def render_plain(
    symbol: EncodedSymbol,
    size: int,
    foreground: tuple[int, int, int, int] = (0, 0, 0, 255),
    background: tuple[int, int, int, int] = (255, 255, 255, 255),
    border: bool = True,
) -> Image.Image:
    """Standard square-module rendering of *symbol*, scaled to size x size.

    With *border* the symbol gets the usual four-module quiet zone.
    """
    mask = np.array(symbol.modules, dtype=bool)
    if border:
        mask = np.pad(mask, PLAIN_QUIET_ZONE, mode="constant", constant_values=False)

    rows, cols = mask.shape
    arr = np.empty((rows, cols, 4), dtype=np.uint8)
    arr[...] = background
    arr[mask] = foreground

    img = Image.fromarray(arr).resize((size, size), Image.NEAREST)
    audit("qr.plain_rendered", logger=log, modules=f"{cols}x{rows}", image_px=f"{size}x{size}", border=border)
    return img
