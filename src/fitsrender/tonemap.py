"""
Midtone transfer function (MTF) tone mapping to 8-bit display values.

Author: fitsrender contributors
"""

from __future__ import annotations

import numpy as np

from .config import ChannelStats

# |midtone - 0.5| below this is treated as a linear curve
LINEAR_TOLERANCE = 0.001


def mtf(x, m: float):
    """
    Midtone transfer function.

        mtf(x, m) = (m - 1) x / ((2m - 1) x - m)

    Passes through (0, 0), (1, 1) and (m, 0.5); m = 0.5 is the identity.
    Works on scalars and numpy arrays.
    """
    return (m - 1.0) * x / ((2.0 * m - 1.0) * x - m)


def tone_map(values: np.ndarray, stats: ChannelStats) -> np.ndarray:
    """
    Map linear values to 8-bit display intensities.

    Parameters
    ----------
    values : np.ndarray
        Linear sample values (any shape).
    stats : ChannelStats
        Display range and midtone of the channel.

    Returns
    -------
    np.ndarray
        uint8 array of the same shape. NaN and values at or below
        `stats.min` give 0, values at or above `stats.max` give 255.
    """
    v = np.asarray(values, dtype=np.float64)
    out = np.zeros(v.shape, dtype=np.uint8)

    with np.errstate(invalid="ignore"):
        low = ~(v > stats.min)  # includes NaN
        high = (v >= stats.max) & ~low
        inside = ~low & ~high

    if inside.any():
        x = (v[inside] - stats.min) / (stats.max - stats.min)
        if abs(stats.midtone - 0.5) >= LINEAR_TOLERANCE:
            x = mtf(x, stats.midtone)
        out[inside] = np.clip(np.floor(x * 255.0 + 0.5), 0, 255).astype(np.uint8)

    out[high] = 255
    return out


def map_value(value: float, stats: ChannelStats) -> int:
    """Map a single linear value to an 8-bit display intensity."""
    return int(tone_map(np.array([value]), stats)[0])
