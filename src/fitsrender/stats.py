"""
Per-channel display statistics.

Statistics are computed from a sparse, strided subset of the display grid.
Two modes are provided:

- auto-stretch: robust black point from median and MAD, white point from a
  high quantile, and a midtone that brings the median background to a fixed
  display brightness;
- linear: a fixed [0, 1] or [0, 65535] range with a neutral midtone.

Author: fitsrender contributors
"""

from __future__ import annotations

import logging

import numpy as np

from .accessor import SampleAccessor
from .bayer import channel_map
from .config import NEUTRAL_STATS, Channel, ChannelStats, ColorKind, ColorMode

logger = logging.getLogger(__name__)

# Below this span the midtone is left neutral
MIN_STRETCH_RANGE = 1e-4


def sample_stride(width: int, height: int, target: int = 50_000) -> int:
    """
    Grid stride applied on both axes when sampling for statistics.

    Parameters
    ----------
    width, height : int
        Display grid size.
    target : int, default 50000
        Approximate upper bound on visited positions.

    Returns
    -------
    int
        Stride, at least 1.
    """
    return max(1, (width * height) // target)


def median_absolute_deviation(sorted_samples: np.ndarray, median: float) -> float:
    """
    Compute the Median Absolute Deviation (MAD).

    MAD = median(|x - median(x)|)

    The median is taken with the same upper-middle index rule as the sample
    median (element n // 2 of the sorted deviations).
    """
    deviations = np.sort(np.abs(sorted_samples - np.float32(median)))
    return float(deviations[deviations.size // 2])


def midtone_for_background(x: float, target: float = 0.10) -> float:
    """
    Midtone that maps a normalized input `x` onto display value `target`.

    Solves mtf(x, m) = target for m:

        m = x (target - 1) / (2 x target - x - target)

    Only defined for 0 < x < 1; callers fall back to 0.5 elsewhere.
    """
    return (x * (target - 1.0)) / (2.0 * x * target - x - target)


def compute_channel_stats(
    samples: np.ndarray,
    auto_stretch: bool = True,
    shadow_clip: float = 2.8,
    highlight_fraction: float = 0.9995,
    target_background: float = 0.10,
) -> ChannelStats:
    """
    Compute the display range and midtone of one channel.

    Parameters
    ----------
    samples : np.ndarray
        1D linear values, NaN already removed.
    auto_stretch : bool, default True
        Derive the range from the data. Otherwise use a fixed linear range.
    shadow_clip : float, default 2.8
        Black point in MAD units below the median.
    highlight_fraction : float, default 0.9995
        Quantile of the sorted samples used as white point.
    target_background : float, default 0.10
        Display brightness assigned to the median.

    Returns
    -------
    ChannelStats
        NEUTRAL_STATS when `samples` is empty.
    """
    samples = np.asarray(samples, dtype=np.float32).ravel()
    n = samples.size
    if n == 0:
        return NEUTRAL_STATS

    s = np.sort(samples)
    actual_min = float(s[0])
    actual_max = float(s[-1])

    if not auto_stretch:
        if actual_max <= 1.0:
            return ChannelStats(0.0, 1.0, 0.5)
        return ChannelStats(0.0, 65535.0, 0.5)

    median = float(s[n // 2])
    mad = median_absolute_deviation(s, median)

    shadow = max(actual_min, median - shadow_clip * mad)

    high_idx = int(highlight_fraction * (n - 1) + 0.5)
    high_idx = min(max(high_idx, 0), n - 1)
    highlight = float(s[high_idx])

    midtone = 0.5
    span = highlight - shadow
    if span > MIN_STRETCH_RANGE:
        x = (median - shadow) / span
        if 0.0 < x < 1.0:
            midtone = midtone_for_background(x, target_background)

    return ChannelStats(shadow, highlight, midtone)


def collect_samples(
    accessor: SampleAccessor,
    mode: ColorMode,
    width: int,
    height: int,
    sample_factor: int = 1,
    stride: int = 1,
) -> tuple[np.ndarray, np.ndarray, np.ndarray]:
    """
    Collect per-channel linear samples on a strided display grid.

    Display position (x, y) reads the raw sample at
    (x * sample_factor, y * sample_factor). NaN samples are dropped.

    Returns
    -------
    tuple[np.ndarray, np.ndarray, np.ndarray]
        (R, G, B) 1D float32 sample arrays. For greyscale data, R and B
        are empty.
    """
    ys = np.arange(0, height, stride, dtype=np.intp) * sample_factor
    xs = np.arange(0, width, stride, dtype=np.intp) * sample_factor
    empty = np.empty(0, dtype=np.float32)

    def valid(values: np.ndarray) -> np.ndarray:
        values = values.ravel()
        return values[~np.isnan(values)]

    if mode.kind is ColorKind.RGB_PLANES:
        return tuple(valid(accessor.block(plane, ys, xs)) for plane in range(3))

    values = accessor.block(0, ys, xs)

    if mode.kind is ColorKind.BAYER:
        sites = channel_map(mode.pattern, ys, xs)
        r = valid(values[sites == Channel.RED])
        g = valid(values[sites == Channel.GREEN])
        b = valid(values[sites == Channel.BLUE])
        return r, g, b

    return empty, valid(values), empty


def compose_channel_stats(
    samples_r: np.ndarray,
    samples_g: np.ndarray,
    samples_b: np.ndarray,
    **kwargs,
) -> tuple[ChannelStats, ChannelStats, ChannelStats]:
    """
    Compute R, G, B stats, reusing G's stats for an empty R or B channel.

    Keyword arguments are passed to `compute_channel_stats`.
    """
    stats_g = compute_channel_stats(samples_g, **kwargs)
    stats_r = stats_g if len(samples_r) == 0 else compute_channel_stats(samples_r, **kwargs)
    stats_b = stats_g if len(samples_b) == 0 else compute_channel_stats(samples_b, **kwargs)

    logger.debug(
        "Stats from %d/%d/%d samples (R/G/B)",
        len(samples_r),
        len(samples_g),
        len(samples_b),
    )
    return stats_r, stats_g, stats_b
