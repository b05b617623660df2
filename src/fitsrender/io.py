"""
I/O for fitsrender: FITS image loading and raster output.

Handles:
- Locating the image HDU of a FITS file
- Reading raw stored samples, leaving BZERO/BSCALE to the accessor
- Header card listing
- Writing rendered rasters

Author: fitsrender contributors
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path

import imageio.v3 as iio
import numpy as np
from astropy.io import fits

logger = logging.getLogger(__name__)


@dataclass
class FitsImage:
    """Raw image data and header of one FITS HDU."""

    data: np.ndarray
    """Stored samples, not scaled (BZERO/BSCALE are still in the header)."""

    axes: tuple[int, ...]
    """Axis sizes, slowest first: (height, width) or (planes, height, width)."""

    header: fits.Header
    hdu_name: str = "PRIMARY"


def read_fits_image(path: str | Path) -> FitsImage:
    """
    Read the first image HDU of a FITS file.

    Parameters
    ----------
    path : str or Path
        Path to the FITS file.

    Returns
    -------
    FitsImage
        Raw samples, axes and header.

    Raises
    ------
    ValueError
        If no HDU carries image data (e.g. a table-only file).

    Notes
    -----
    The file is opened with ``do_not_scale_image_data=True`` so that 16-bit
    unsigned data (BITPIX=16, BZERO=32768) arrives as stored int16 samples;
    the render pipeline applies the calibration itself. Data is copied out
    so the file can be closed.
    """
    path = Path(path)
    with fits.open(path, do_not_scale_image_data=True, memmap=False) as hdul:
        for hdu in hdul:
            if not hdu.is_image or hdu.data is None:
                continue
            data = np.array(hdu.data)
            header = hdu.header.copy()
            name = hdu.name or "PRIMARY"
            logger.info(
                "Read %s [%s]: shape=%s, dtype=%s, %d header cards",
                path.name,
                name,
                data.shape,
                data.dtype,
                len(header),
            )
            return FitsImage(data=data, axes=tuple(data.shape), header=header, hdu_name=name)

        kinds = ", ".join(type(hdu).__name__ for hdu in hdul)

    raise ValueError(f"No image data in {path.name} (HDUs: {kinds})")


def header_cards(header: fits.Header) -> list[str]:
    """
    Return the header as a list of 80-character card images.

    Parameters
    ----------
    header : fits.Header
        FITS header.

    Returns
    -------
    list[str]
        One string per card, trailing blanks removed.
    """
    return [str(card).rstrip() for card in header.cards]


def write_raster(path: str | Path, raster: np.ndarray) -> Path:
    """
    Write an RGBA raster to an image file (format from the extension).

    Parameters
    ----------
    path : str or Path
        Output path, e.g. ``preview.png``.
    raster : np.ndarray
        uint8 array of shape (height, width, 4).

    Returns
    -------
    Path
        The written path.
    """
    if raster.ndim != 3 or raster.shape[2] != 4 or raster.dtype != np.uint8:
        raise ValueError(f"Expected (H, W, 4) uint8 raster, got {raster.shape} {raster.dtype}")

    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    iio.imwrite(path, raster)
    logger.info("Wrote raster: %s", path)
    return path


def filter_cards(cards: list[str], text: str = "") -> list[str]:
    """Sorted cards containing `text`, compared case-insensitively."""
    needle = text.lower()
    return [card for card in sorted(cards) if needle in card.lower()]
