"""Scan verification: decode rendered QR images with independent decoders."""

import time
from dataclasses import dataclass

import cv2
import numpy as np
from PIL import Image
from pyzbar.pyzbar import decode as pyzbar_decode

from qrstyle.logging import audit, get_logger, trace

log = get_logger("verify")


@dataclass
class ScanResult:
    """Result of a single scan attempt."""
    success: bool
    decoded_data: str | None = None
    decode_time_ms: float = 0.0
    decoder: str = ""
    error: str | None = None


def flatten(image: Image.Image, background: tuple[int, int, int] = (255, 255, 255)) -> Image.Image:
    """Composite a possibly transparent image onto an opaque background, as a page would show it."""
    if image.mode not in ("RGBA", "LA", "PA"):
        return image.convert("RGB")
    rgba = image.convert("RGBA")
    base = Image.new("RGBA", rgba.size, background + (255,))
    return Image.alpha_composite(base, rgba).convert("RGB")


def _result(decoder: str, start: float, data: str | None = None, error: str | None = None) -> ScanResult:
    elapsed = (time.perf_counter() - start) * 1000
    if data:
        audit("scan.verified", logger=log, decoder=decoder, success=True,
              time_ms=round(elapsed, 1), data=data[:80])
        return ScanResult(success=True, decoded_data=data, decode_time_ms=elapsed, decoder=decoder)
    error = error or "No QR code detected"
    audit("scan.verified", logger=log, decoder=decoder, success=False,
          time_ms=round(elapsed, 1), error=error)
    return ScanResult(success=False, decode_time_ms=elapsed, decoder=decoder, error=error)


@trace
def scan_pyzbar(image: Image.Image) -> ScanResult:
    """Scan a QR code using pyzbar (wraps ZBar)."""
    start = time.perf_counter()
    try:
        results = pyzbar_decode(flatten(image))
    except Exception as e:
        return _result("pyzbar/zbar", start, error=str(e))
    data = results[0].data.decode("utf-8", errors="replace") if results else None
    return _result("pyzbar/zbar", start, data=data)


@trace
def scan_opencv(image: Image.Image) -> ScanResult:
    """Scan a QR code using OpenCV's built-in QR detector."""
    start = time.perf_counter()
    try:
        gray = cv2.cvtColor(np.array(flatten(image)), cv2.COLOR_RGB2GRAY)
        data, _, _ = cv2.QRCodeDetector().detectAndDecode(gray)
    except Exception as e:
        return _result("opencv", start, error=str(e))
    return _result("opencv", start, data=data or None)


@trace
def verify(image: Image.Image, expected_data: str | None = None) -> list[ScanResult]:
    """Run all available decoders on an image.

    Args:
        image: PIL Image containing a QR code.
        expected_data: If provided, marks result as failure if decoded data doesn't match.

    Returns:
        List of ScanResults, one per decoder.
    """
    results = []
    for scanner in [scan_pyzbar, scan_opencv]:
        result = scanner(image)
        if result.success and expected_data is not None and result.decoded_data != expected_data:
            result.success = False
            result.error = f"Data mismatch: got '{result.decoded_data}', expected '{expected_data}'"
        results.append(result)
    return results


def decodes(image: Image.Image, expected_data: str) -> bool:
    """True when at least one decoder reads *expected_data* back from *image*."""
    return any(r.success for r in verify(image, expected_data=expected_data))
