"""
Tests for the stats module.

Tests cover:
- Auto-stretch statistics (median, MAD, shadow, highlight, midtone)
- Linear range selection
- Sample collection on strided grids
- Green fallback for empty channels

Author: fitsrender contributors
"""

import numpy as np
import pytest

from fitsrender.accessor import create_accessor
from fitsrender.config import NEUTRAL_STATS, ChannelStats, ColorKind, ColorMode
from fitsrender.stats import (
    collect_samples,
    compose_channel_stats,
    compute_channel_stats,
    median_absolute_deviation,
    midtone_for_background,
    sample_stride,
)
from fitsrender.tonemap import mtf


class TestEmptySamples:
    """Empty sample sets give the neutral range."""

    def test_auto_stretch(self):
        stats = compute_channel_stats(np.array([], dtype=np.float32))
        assert stats == ChannelStats(0.0, 65535.0, 0.5)

    def test_linear(self):
        assert compute_channel_stats([], auto_stretch=False) == NEUTRAL_STATS


class TestAutoStretch:
    """Tests for robust auto-stretch statistics."""

    def test_uniform_distribution(self):
        samples = np.linspace(0, 1000, 1001).astype(np.float32)
        stats = compute_channel_stats(samples)

        median = 500.0
        assert stats.min <= median <= stats.max
        assert 0.0 < stats.midtone < 1.0
        assert stats.min == 0.0  # median - 2.8 * 250 clamps to the minimum
        assert 999.0 <= stats.max <= 1000.0
        assert stats.midtone == pytest.approx(0.9, abs=1e-3)

    def test_shadow_from_mad(self):
        # 200 samples each of 98..102 plus one dark outlier
        samples = np.concatenate([[0.0], 100 + (np.arange(1000) % 5 - 2)]).astype(np.float32)
        stats = compute_channel_stats(samples)

        # median 100, MAD 1
        assert stats.min == pytest.approx(100 - 2.8)

    def test_shadow_never_below_minimum(self):
        samples = (100 + (np.arange(1000) % 5 - 2)).astype(np.float32)
        stats = compute_channel_stats(samples)

        assert stats.min == 98.0

    def test_highlight_quantile(self):
        samples = np.arange(10000, dtype=np.float32)
        stats = compute_channel_stats(samples)

        # round(0.9995 * 9999) = 9994
        assert stats.max == 9994.0

    def test_highlight_ignores_sample_order(self):
        samples = np.arange(10000, dtype=np.float32)[::-1].copy()
        assert compute_channel_stats(samples).max == 9994.0

    def test_median_maps_to_target_background(self):
        rng = np.random.default_rng(1)
        samples = np.concatenate([
            rng.normal(1000, 20, 20000),
            rng.uniform(1000, 60000, 500),
        ]).astype(np.float32)
        stats = compute_channel_stats(samples)

        median = float(np.sort(samples)[samples.size // 2])
        x = (median - stats.min) / (stats.max - stats.min)
        assert mtf(x, stats.midtone) == pytest.approx(0.10, abs=1e-4)

    def test_custom_target_background(self):
        samples = np.linspace(0, 1000, 1001).astype(np.float32)
        stats = compute_channel_stats(samples, target_background=0.25)

        assert mtf(0.5, stats.midtone) == pytest.approx(0.25, abs=1e-3)

    def test_constant_samples_neutral_midtone(self):
        stats = compute_channel_stats(np.full(100, 5.0, dtype=np.float32))

        assert stats == ChannelStats(5.0, 5.0, 0.5)

    def test_median_at_shadow_neutral_midtone(self):
        """A normalized median of exactly 0 leaves the curve linear."""
        samples = np.array([0, 0, 0, 0, 0, 0, 10, 20], dtype=np.float32)
        stats = compute_channel_stats(samples)

        assert stats.min == 0.0
        assert stats.midtone == 0.5


class TestLinearRange:
    """Tests for the fixed linear range."""

    def test_normalized_data(self):
        samples = np.linspace(0, 1, 50).astype(np.float32)
        assert compute_channel_stats(samples, auto_stretch=False) == ChannelStats(0.0, 1.0, 0.5)

    def test_adu_data(self):
        samples = np.linspace(0, 4000, 50).astype(np.float32)
        assert compute_channel_stats(samples, auto_stretch=False) == ChannelStats(0.0, 65535.0, 0.5)


class TestHelpers:
    """Tests for MAD, midtone solving and stride selection."""

    def test_mad(self):
        s = np.sort(np.array([1, 2, 3, 4, 100], dtype=np.float32))
        assert median_absolute_deviation(s, 3.0) == 1.0

    def test_midtone_identity_at_target(self):
        assert midtone_for_background(0.1, 0.1) == pytest.approx(0.5)

    def test_midtone_darkens_bright_median(self):
        assert midtone_for_background(0.5, 0.1) > 0.5

    def test_sample_stride(self):
        assert sample_stride(100, 100) == 1
        assert sample_stride(1000, 1000) == 20
        assert sample_stride(1000, 1000, target=1_000_000) == 1


class TestCollectSamples:
    """Tests for strided per-channel sample collection."""

    def test_greyscale_goes_to_green(self, ramp_image):
        data = ramp_image(10, 10)
        acc = create_accessor(data, width=10, height=10)
        r, g, b = collect_samples(acc, ColorMode(ColorKind.GREYSCALE), 10, 10)

        assert r.size == 0 and b.size == 0
        assert g.size == 100

    def test_stride_on_both_axes(self, ramp_image):
        data = ramp_image(10, 10)
        acc = create_accessor(data, width=10, height=10)
        _, g, _ = collect_samples(acc, ColorMode(ColorKind.GREYSCALE), 10, 10, stride=3)

        assert g.size == 16  # 4 rows x 4 columns

    def test_nan_dropped(self):
        data = np.full((4, 4), 7.0, dtype=np.float32)
        data[1, 2] = np.nan
        acc = create_accessor(data, width=4, height=4)
        _, g, _ = collect_samples(acc, ColorMode(ColorKind.GREYSCALE), 4, 4)

        assert g.size == 15
        assert not np.isnan(g).any()

    def test_bayer_split(self, synthetic_mosaic):
        mosaic = synthetic_mosaic("GBRG", r_value=1, g_value=2, b_value=3)
        acc = create_accessor(mosaic, width=8, height=8)
        r, g, b = collect_samples(acc, ColorMode(ColorKind.BAYER, "GBRG"), 8, 8)

        assert r.size == 16 and np.all(r == 1)
        assert g.size == 32 and np.all(g == 2)
        assert b.size == 16 and np.all(b == 3)

    def test_rgb_planes(self):
        data = np.stack([np.full((4, 4), v, dtype=np.int16) for v in (10, 20, 30)])
        acc = create_accessor(data, width=4, height=4)
        r, g, b = collect_samples(acc, ColorMode(ColorKind.RGB_PLANES), 4, 4)

        assert np.all(r == 10) and np.all(g == 20) and np.all(b == 30)

    def test_sample_factor_reads_raw_coordinates(self):
        data = np.arange(64, dtype=np.float32).reshape(8, 8)
        acc = create_accessor(data, width=8, height=8)
        _, g, _ = collect_samples(acc, ColorMode(ColorKind.GREYSCALE), 4, 4, sample_factor=2)

        np.testing.assert_array_equal(np.sort(g)[:4], [0, 2, 4, 6])


class TestComposeStats:
    """Tests for the green fallback."""

    def test_empty_red_and_blue_reuse_green(self):
        g = np.linspace(0, 1000, 1001).astype(np.float32)
        empty = np.empty(0, dtype=np.float32)
        stats_r, stats_g, stats_b = compose_channel_stats(empty, g, empty)

        assert stats_r == stats_g
        assert stats_b == stats_g
        assert stats_g != NEUTRAL_STATS

    def test_independent_channels(self):
        r = np.linspace(0, 100, 101).astype(np.float32)
        g = np.linspace(0, 1000, 1001).astype(np.float32)
        b = np.linspace(0, 10, 11).astype(np.float32)
        stats_r, stats_g, stats_b = compose_channel_stats(r, g, b)

        assert stats_r.max == 100.0
        assert stats_g.max >= 999.0
        assert stats_b.max == 10.0

    def test_kwargs_forwarded(self):
        g = np.linspace(0, 4000, 100).astype(np.float32)
        _, stats_g, _ = compose_channel_stats([], g, [], auto_stretch=False)

        assert stats_g == ChannelStats(0.0, 65535.0, 0.5)
