"""
Calibrated sample access over decoded FITS arrays.

FITS data arrives in several integer and floating encodings. The accessor
resolves the encoding once, when it is built, and exposes every sample as a
linear float32 value:

    linear = raw * BSCALE + BZERO

Supported encodings (BITPIX in parentheses):
- uint8   (8)
- int16   (16)
- int32   (32)
- float32 (-32)
- float64 (-64)

Both byte orders are accepted, since astropy hands out big-endian views.

Author: fitsrender contributors
"""

from __future__ import annotations

import logging

import numpy as np

logger = logging.getLogger(__name__)

# (dtype.kind, dtype.itemsize) -> encoding name
ENCODINGS = {
    ("u", 1): "uint8",
    ("i", 2): "int16",
    ("i", 4): "int32",
    ("f", 4): "float32",
    ("f", 8): "float64",
}


def resolve_encoding(dtype: np.dtype) -> str | None:
    """
    Return the encoding name of a numpy dtype, or None if unsupported.

    Parameters
    ----------
    dtype : np.dtype
        Element type of the raw array.

    Returns
    -------
    str or None
        One of the ENCODINGS values.
    """
    dtype = np.dtype(dtype)
    return ENCODINGS.get((dtype.kind, dtype.itemsize))


class SampleAccessor:
    """
    Read-only, calibrated view of a raw image buffer.

    Parameters
    ----------
    planes : np.ndarray
        Raw data reshaped to (planes, height, width).
    encoding : str
        Encoding name resolved by `create_accessor`.
    zero : float, default 0.0
        BZERO offset.
    scale : float, default 1.0
        BSCALE factor.

    Notes
    -----
    Calibration is done in float64 and narrowed to float32, so the same
    logical raw value gives bit-identical results whatever its encoding.
    Accessors hold no mutable state and are shared by all render threads.
    """

    def __init__(self, planes: np.ndarray, encoding: str, zero: float = 0.0, scale: float = 1.0):
        self._planes = planes
        self.encoding = encoding
        self.zero = float(zero)
        self.scale = float(scale)

    @property
    def n_planes(self) -> int:
        return self._planes.shape[0]

    @property
    def height(self) -> int:
        return self._planes.shape[1]

    @property
    def width(self) -> int:
        return self._planes.shape[2]

    def _calibrate(self, raw: np.ndarray) -> np.ndarray:
        linear = raw.astype(np.float64) * self.scale + self.zero
        return linear.astype(np.float32)

    def get(self, x: int, y: int, plane: int = 0) -> np.float32:
        """Return the calibrated sample at raw position (x, y) of a plane."""
        raw = self._planes[plane, y, x]
        return np.float32(float(raw) * self.scale + self.zero)

    def block(self, plane: int, ys: np.ndarray, xs: np.ndarray) -> np.ndarray:
        """
        Gather calibrated samples on the grid spanned by row and column indices.

        Parameters
        ----------
        plane : int
            Plane index (0 for single-plane data).
        ys : np.ndarray
            1D array of raw row indices.
        xs : np.ndarray
            1D array of raw column indices.

        Returns
        -------
        np.ndarray
            float32 array of shape (len(ys), len(xs)).
        """
        raw = self._planes[plane][np.ix_(ys, xs)]
        return self._calibrate(raw)


def create_accessor(
    data: np.ndarray,
    width: int,
    height: int,
    zero: float = 0.0,
    scale: float = 1.0,
) -> SampleAccessor | None:
    """
    Build a SampleAccessor for a raw array, or None if its layout is unsupported.

    Parameters
    ----------
    data : np.ndarray
        Raw array of shape (height, width) or (planes, height, width).
    width, height : int
        Image size declared by the FITS axes.
    zero : float, default 0.0
        BZERO offset.
    scale : float, default 1.0
        BSCALE factor.

    Returns
    -------
    SampleAccessor or None
        None when the encoding is not one of ENCODINGS or the array shape
        does not match the declared size.
    """
    data = np.asarray(data)
    encoding = resolve_encoding(data.dtype)
    if encoding is None:
        logger.debug("Unsupported sample encoding: %s", data.dtype)
        return None

    if data.ndim == 2:
        planes = data[np.newaxis, :, :]
    elif data.ndim == 3:
        planes = data
    else:
        logger.debug("Unsupported array rank: %d", data.ndim)
        return None

    if planes.shape[1:] != (height, width) or planes.shape[0] < 1:
        logger.debug(
            "Array shape %s does not match declared size %dx%d",
            data.shape,
            width,
            height,
        )
        return None

    logger.debug(
        "Accessor: %s, %d plane(s), %dx%d, BZERO=%g, BSCALE=%g",
        encoding,
        planes.shape[0],
        width,
        height,
        zero,
        scale,
    )
    return SampleAccessor(planes, encoding, zero=zero, scale=scale)
