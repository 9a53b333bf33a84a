"""Shared test fixtures."""

import numpy as np
import pytest
from PIL import Image

from qrstyle.generator import ECCLevel, EncodedSymbol, encode

URL = "https://example.com"


@pytest.fixture
def url():
    return URL


@pytest.fixture
def url_symbol():
    """Real encoder output for the example URL at level H."""
    return encode(URL, ECCLevel.H)


@pytest.fixture
def full_symbol():
    """21x21 bitmap with every module dark; size 210 gives a pitch of exactly 10."""
    return EncodedSymbol.from_matrix(np.ones((21, 21), dtype=bool), ECCLevel.H)


@pytest.fixture
def lone_module_symbol():
    """21x21 bitmap with a single dark module at (10, 10)."""
    matrix = np.zeros((21, 21), dtype=bool)
    matrix[10, 10] = True
    return EncodedSymbol.from_matrix(matrix, ECCLevel.H)


@pytest.fixture
def red_logo():
    return Image.new("RGBA", (64, 64), (255, 0, 0, 255))


@pytest.fixture
def quadrant_image():
    """210x210 image: red top-left quadrant, blue elsewhere."""
    img = Image.new("RGBA", (210, 210), (0, 0, 255, 255))
    img.paste((255, 0, 0, 255), (0, 0, 105, 105))
    return img
