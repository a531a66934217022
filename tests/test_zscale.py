# This file is part of fitsview.
#
# See the COPYRIGHT file at the top-level directory of this distribution
# for details of code ownership.
#
# Use of this source code is governed by a 3-clause BSD-style
# license that can be found in the LICENSE file.

from __future__ import annotations

import unittest

import numpy as np
import pydantic

from fitsview import (
    ClipState,
    IntensityInterval,
    ZScaleConfig,
    clip_iteration,
    fit_line,
    sample_values,
    zscale,
)


class ZScaleTestCase(unittest.TestCase):
    """Tests for the zscale algorithm and its pieces."""

    def setUp(self) -> None:
        self.rng = np.random.default_rng(500)

    def test_sample_values(self) -> None:
        """Test that sampling skips non-finite values, strides, and sorts."""
        values = np.arange(100, dtype=np.float32)[::-1].reshape(10, 10).copy()
        values[0, 0] = np.nan
        values[5, 5] = np.inf
        samples = sample_values(values, 10)
        self.assertEqual(samples.dtype, np.float64)
        self.assertEqual(len(samples), 10)
        self.assertTrue(np.all(np.diff(samples) >= 0))
        self.assertTrue(np.all(np.isfinite(samples)))
        self.assertEqual(len(sample_values(values, 1000)), 98)

    def test_fit_line(self) -> None:
        """Test the least-squares fit and its handling of rejected points."""
        samples = 3.0 * np.arange(10.0) + 2.0
        rejected = np.zeros(10, dtype=bool)
        fit = fit_line(samples, rejected)
        self.assertAlmostEqual(fit.slope, 3.0)
        self.assertAlmostEqual(fit.intercept, 2.0)
        samples[4] = 1000.0
        rejected[4] = True
        fit = fit_line(samples, rejected)
        self.assertAlmostEqual(fit.slope, 3.0)
        self.assertAlmostEqual(fit.intercept, 2.0)

    def test_clip_iteration(self) -> None:
        """Test that one clipping iteration rejects an outlier and that a
        later one can accept points again.
        """
        samples = np.arange(50.0)
        samples[-1] = 1e6
        state = clip_iteration(samples, ClipState.initial(50), krej=2.5)
        self.assertTrue(state.rejected[-1])
        self.assertEqual(state.n_good, 49)
        # Start from a state that wrongly rejects a good point.
        wrong = ClipState(fit=state.fit, rejected=np.arange(50) == 10, n_good=49)
        state = clip_iteration(np.arange(50.0), wrong, krej=2.5)
        self.assertFalse(state.rejected.any())
        self.assertEqual(state.n_good, 50)

    def test_gradient(self) -> None:
        """Test that a linear ramp keeps its full range."""
        interval = zscale(np.arange(10000, dtype=np.float64).reshape(100, 100))
        self.assertEqual(interval.vmin, 0.0)
        self.assertEqual(interval.vmax, 9990.0)

    def test_outliers(self) -> None:
        """Test that a few extreme pixels do not stretch the interval."""
        values = self.rng.normal(100.0, 5.0, size=(100, 100))
        values.flat[self.rng.choice(values.size, size=50, replace=False)] = 1e6
        interval = zscale(values)
        self.assertLessEqual(interval.vmin, interval.vmax)
        self.assertGreater(interval.vmin, 50.0)
        self.assertLess(interval.vmin, 100.0)
        self.assertGreater(interval.vmax, 100.0)
        self.assertLess(interval.vmax, 200.0)

    def test_constant(self) -> None:
        """Test that a constant image gives a zero-width interval that
        normalizes to mid-gray.
        """
        interval = zscale(np.full((20, 20), 7.0))
        self.assertEqual(interval, IntensityInterval(7.0, 7.0))
        self.assertTrue(interval.is_degenerate)
        normalized = interval.normalize(np.full((3, 3), 7.0))
        self.assertEqual(normalized.dtype, np.float32)
        np.testing.assert_array_equal(normalized, 127.5)

    def test_empty(self) -> None:
        """Test that input without finite values logs a warning."""
        with self.assertLogs("fitsview._zscale", "WARNING"):
            interval = zscale(np.full(10, np.nan))
        self.assertEqual(interval, IntensityInterval(0.0, 0.0))

    def test_invariant(self) -> None:
        """Test vmin <= vmax on a variety of random inputs and settings."""
        for n in (1, 2, 3, 10, 1000):
            for contrast in (0.0, 0.25, 1.0):
                with self.subTest(n=n, contrast=contrast):
                    values = self.rng.standard_cauchy(n)
                    interval = zscale(values, contrast=contrast)
                    self.assertLessEqual(interval.vmin, interval.vmax)
                    self.assertGreaterEqual(interval.vmin, values.min())
                    self.assertLessEqual(interval.vmax, values.max())

    def test_normalize(self) -> None:
        """Test display normalization with clipping and NaN handling."""
        interval = IntensityInterval(10.0, 20.0)
        normalized = interval.normalize([[0.0, 10.0, 15.0], [20.0, 30.0, np.nan]])
        np.testing.assert_allclose(normalized, [[0.0, 0.0, 127.5], [255.0, 255.0, 0.0]])
        np.testing.assert_allclose(interval.normalize([15.0], scale=1.0), [0.5])

    def test_config(self) -> None:
        """Test configuration overrides and validation."""
        config = ZScaleConfig(n_samples=100)
        values = np.arange(1000.0)
        self.assertEqual(zscale(values, config), zscale(values, n_samples=100))
        self.assertEqual(zscale(values, config, contrast=0.5), zscale(values, n_samples=100, contrast=0.5))
        with self.assertRaises(pydantic.ValidationError):
            ZScaleConfig(n_samples=0)
        with self.assertRaises(pydantic.ValidationError):
            ZScaleConfig(max_reject=2.0)
        with self.assertRaises(pydantic.ValidationError):
            config.contrast = 0.5


if __name__ == "__main__":
    unittest.main()
