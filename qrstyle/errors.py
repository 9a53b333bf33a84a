"""Error taxonomy for styled QR rendering.

All errors are caller configuration errors; none are transient and none are
retried. A render session stores the first one it meets and reports it again
from every later call (see :class:`qrstyle.session.RenderSession`).
"""


class QRStyleError(ValueError):
    """Base class for every qrstyle failure."""


class EncodingError(QRStyleError):
    """The text cannot be encoded at the requested error-correction level."""


class DecodabilityRiskError(QRStyleError):
    """A logo was requested at an error-correction level too low to absorb it."""


class SerializationError(QRStyleError):
    """The final image could not be encoded into its container format."""


class StageError(QRStyleError):
    """A session operation was called out of order."""
