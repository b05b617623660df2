"""
Pytest configuration and fixtures.

Author: fitsrender contributors
"""

import numpy as np
import pytest
from astropy.io import fits

from fitsrender.bayer import BAYER_TILES
from fitsrender.config import Channel


@pytest.fixture
def synthetic_mosaic():
    """Create a synthetic single-plane Bayer mosaic."""
    def _create(pattern="RGGB", height=8, width=8, r_value=30000, g_value=60000,
                b_value=10000, dtype=np.float32):
        """
        Fill every site of the mosaic with its channel's constant value.

        RGGB pattern:
            R  G  R  G  ...  (even rows)
            G  B  G  B  ...  (odd rows)
        """
        values = {Channel.RED: r_value, Channel.GREEN: g_value, Channel.BLUE: b_value}
        tile = BAYER_TILES[pattern]
        mosaic = np.zeros((height, width), dtype=dtype)
        for row in range(2):
            for col in range(2):
                mosaic[row::2, col::2] = values[Channel(int(tile[row, col]))]
        return mosaic

    return _create


@pytest.fixture
def ramp_image():
    """Create a greyscale ramp increasing from top-left to bottom-right."""
    def _create(height=100, width=100, low=0.0, high=999.0, dtype=np.float32):
        return np.linspace(low, high, height * width).reshape(height, width).astype(dtype)

    return _create


@pytest.fixture
def fits_file(tmp_path):
    """Write an array (and optional header cards) to a FITS file."""
    def _write(data, name="image.fits", **cards):
        hdu = fits.PrimaryHDU(data=data)
        for key, value in cards.items():
            hdu.header[key] = value
        path = tmp_path / name
        hdu.writeto(path)
        return path

    return _write
