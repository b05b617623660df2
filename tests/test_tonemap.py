"""
Tests for the tonemap module.

Tests cover:
- Black and white point clamping
- Linear and MTF branches
- Monotonicity
- Scalar / vector agreement

Author: fitsrender contributors
"""

import numpy as np
import pytest

from fitsrender.config import ChannelStats
from fitsrender.tonemap import map_value, mtf, tone_map


class TestMTF:
    """Tests for the midtone transfer function curve."""

    @pytest.mark.parametrize("m", [0.05, 0.2, 0.45, 0.7, 0.93])
    def test_endpoints(self, m):
        assert mtf(0.0, m) == pytest.approx(0.0)
        assert mtf(1.0, m) == pytest.approx(1.0)

    @pytest.mark.parametrize("m", [0.05, 0.2, 0.45, 0.7, 0.93])
    def test_midtone_maps_to_half(self, m):
        assert mtf(m, m) == pytest.approx(0.5)

    @pytest.mark.parametrize("m", [0.05, 0.2, 0.45, 0.7, 0.93])
    def test_half_maps_to_complement(self, m):
        assert mtf(0.5, m) == pytest.approx(1.0 - m)

    def test_half_is_identity(self):
        x = np.linspace(0, 1, 11)
        np.testing.assert_allclose(mtf(x, 0.5), x)

    def test_low_midtone_brightens(self):
        assert mtf(0.1, 0.2) > 0.1


class TestToneMap:
    """Tests for mapping linear values to 8-bit intensities."""

    def test_black_and_white_points(self):
        stats = ChannelStats(100.0, 200.0, 0.3)
        assert map_value(100.0, stats) == 0
        assert map_value(200.0, stats) == 255

    def test_out_of_range_clamps(self):
        stats = ChannelStats(100.0, 200.0, 0.3)
        out = tone_map(np.array([-1e9, 50.0, 250.0, 1e9]), stats)
        np.testing.assert_array_equal(out, [0, 0, 255, 255])

    def test_nan_is_black(self):
        stats = ChannelStats(0.0, 1.0, 0.5)
        assert map_value(float("nan"), stats) == 0

    def test_linear_branch(self):
        stats = ChannelStats(0.0, 100.0, 0.5)
        out = tone_map(np.array([25.0, 50.0, 75.0]), stats)
        # round(63.75), round(127.5), round(191.25)
        np.testing.assert_array_equal(out, [64, 128, 191])

    def test_near_half_midtone_is_linear(self):
        stats = ChannelStats(0.0, 100.0, 0.5005)
        assert map_value(50.0, stats) == 128

    def test_mtf_branch(self):
        stats = ChannelStats(0.0, 1.0, 0.2)
        expected = int(np.floor(mtf(0.2, 0.2) * 255 + 0.5))
        assert expected in (127, 128)
        assert map_value(0.2, stats) == expected

    def test_midtone_input_maps_to_mid_grey(self):
        stats = ChannelStats(1000.0, 3000.0, 0.8)
        # normalized 0.8 -> 0.5
        assert map_value(1000.0 + 0.8 * 2000.0, stats) in (127, 128)

    @pytest.mark.parametrize("m", [0.02, 0.3, 0.5, 0.75, 0.98])
    def test_monotonic(self, m):
        stats = ChannelStats(10.0, 110.0, m)
        values = np.linspace(-20.0, 140.0, 5000)
        out = tone_map(values, stats).astype(int)
        assert np.all(np.diff(out) >= 0)
        assert out[0] == 0 and out[-1] == 255

    def test_shape_and_dtype(self):
        stats = ChannelStats(0.0, 1.0, 0.4)
        out = tone_map(np.random.default_rng(0).uniform(0, 1, (5, 7)).astype(np.float32), stats)
        assert out.shape == (5, 7)
        assert out.dtype == np.uint8

    def test_degenerate_range(self):
        stats = ChannelStats(5.0, 5.0, 0.5)
        np.testing.assert_array_equal(tone_map(np.array([4.0, 5.0, 6.0]), stats), [0, 0, 255])

    def test_scalar_matches_vector(self):
        stats = ChannelStats(-3.0, 17.0, 0.12)
        values = np.linspace(-5, 20, 101)
        vector = tone_map(values, stats)
        assert [map_value(v, stats) for v in values] == vector.tolist()
