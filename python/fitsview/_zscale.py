# This file is part of fitsview.
#
# See the COPYRIGHT file at the top-level directory of this distribution
# for details of code ownership.
#
# Use of this source code is governed by a 3-clause BSD-style
# license that can be found in the LICENSE file.

from __future__ import annotations

__all__ = (
    "ClipState",
    "IntensityInterval",
    "LineFit",
    "ZScaleConfig",
    "clip_iteration",
    "fit_line",
    "sample_values",
    "zscale",
)

import dataclasses
from logging import getLogger
from typing import Any

import numpy as np
import numpy.typing as npt
import pydantic

_LOG = getLogger(__name__)


class ZScaleConfig(pydantic.BaseModel):
    """Tunable parameters of the zscale algorithm."""

    n_samples: int = pydantic.Field(
        default=1000, gt=0, description="Maximum number of values sampled from the input."
    )
    contrast: float = pydantic.Field(
        default=0.25,
        ge=0.0,
        description="Scale factor applied to the fitted slope; zero disables the adjustment.",
    )
    max_reject: float = pydantic.Field(
        default=0.5,
        ge=0.0,
        le=1.0,
        description="Largest fraction of the sample that may be rejected before the fit is abandoned.",
    )
    min_npixels: int = pydantic.Field(
        default=5, gt=0, description="Minimum number of accepted samples for the fit to be used."
    )
    krej: float = pydantic.Field(
        default=2.5, gt=0.0, description="Rejection threshold, in units of the residual standard deviation."
    )
    max_iterations: int = pydantic.Field(
        default=5, ge=0, description="Maximum number of sigma-clipping iterations."
    )

    model_config = pydantic.ConfigDict(frozen=True)


@dataclasses.dataclass(frozen=True)
class IntensityInterval:
    """A display interval ``[vmin, vmax]`` of pixel values."""

    vmin: float
    """Value mapped to black."""

    vmax: float
    """Value mapped to white."""

    @property
    def width(self) -> float:
        """Size of the interval."""
        return self.vmax - self.vmin

    @property
    def is_degenerate(self) -> bool:
        """Whether the interval has zero width, as it does for a constant
        image.
        """
        return not self.vmax > self.vmin

    def normalize(self, values: npt.ArrayLike, scale: float = 255.0) -> np.ndarray:
        """Map values linearly onto ``[0, scale]`` for display.

        Parameters
        ----------
        values
            Pixel values; the input is not modified.
        scale
            Output value corresponding to `vmax`.

        Returns
        -------
        numpy.ndarray
            ``float32`` array with the same shape as ``values``.  Values
            outside the interval are clipped, and non-finite values map to
            zero.  A degenerate interval maps every value to ``scale / 2``.
        """
        values = np.asarray(values)
        if self.is_degenerate:
            return np.full(values.shape, 0.5 * scale, dtype=np.float32)
        result = (values.astype(np.float64) - self.vmin) * (scale / self.width)
        np.clip(result, 0.0, scale, out=result)
        return np.nan_to_num(result, nan=0.0).astype(np.float32)


@dataclasses.dataclass(frozen=True)
class LineFit:
    """An ordinary least-squares line ``y = slope * x + intercept``."""

    slope: float
    intercept: float

    def __call__(self, x: np.ndarray) -> np.ndarray:
        return self.slope * x + self.intercept


@dataclasses.dataclass(frozen=True)
class ClipState:
    """The state of the sigma-clipping loop after one iteration."""

    fit: LineFit
    """Line fitted to the samples accepted by the previous iteration."""

    rejected: np.ndarray
    """Boolean mask of samples rejected by this iteration."""

    n_good: int
    """Number of samples accepted by this iteration."""

    @classmethod
    def initial(cls, n: int) -> ClipState:
        """Return the state before the first iteration: everything accepted
        and a flat fit.
        """
        return cls(fit=LineFit(0.0, 0.0), rejected=np.zeros(n, dtype=bool), n_good=n)


def sample_values(values: npt.ArrayLike, n_samples: int) -> np.ndarray:
    """Return a sorted, evenly strided sample of the finite input values.

    Parameters
    ----------
    values
        Input values of any shape; they are flattened in row-major order.
    n_samples
        Maximum number of values to return.

    Returns
    -------
    numpy.ndarray
        Sorted ``float64`` array of at most ``n_samples`` values.
    """
    flat = np.ravel(values)
    finite = flat[np.isfinite(flat)]
    stride = max(1, len(finite) // n_samples)
    samples = finite[::stride][:n_samples].astype(np.float64)
    samples.sort()
    return samples


def fit_line(samples: np.ndarray, rejected: np.ndarray) -> LineFit:
    """Fit a line to ``samples`` as a function of their index, ignoring the
    rejected ones.
    """
    x = np.flatnonzero(~rejected).astype(np.float64)
    y = samples[~rejected]
    if len(x) == 0:
        return LineFit(0.0, 0.0)
    x_mean = x.mean()
    y_mean = y.mean()
    dx = x - x_mean
    denominator = float(dx @ dx)
    if denominator == 0.0:
        return LineFit(0.0, float(y_mean))
    slope = float(dx @ (y - y_mean)) / denominator
    return LineFit(slope, float(y_mean - slope * x_mean))


def clip_iteration(samples: np.ndarray, state: ClipState, krej: float) -> ClipState:
    """Run one sigma-clipping iteration.

    Parameters
    ----------
    samples
        Sorted sample values.
    state
        State left by the previous iteration (or `ClipState.initial`).
    krej
        Rejection threshold in units of the residual standard deviation.

    Returns
    -------
    ClipState
        A new state; ``state`` is not modified.  Every sample is reconsidered,
        so samples rejected earlier may be accepted again.
    """
    fit = fit_line(samples, state.rejected)
    residuals = samples - fit(np.arange(len(samples), dtype=np.float64))
    sigma = float(residuals[~state.rejected].std())
    rejected = np.abs(residuals) > krej * sigma
    return ClipState(fit=fit, rejected=rejected, n_good=int(len(samples) - np.count_nonzero(rejected)))


def zscale(values: npt.ArrayLike, config: ZScaleConfig | None = None, **kwargs: Any) -> IntensityInterval:
    """Compute a robust display interval with the IRAF zscale algorithm.

    Parameters
    ----------
    values
        Pixel values of any shape.  Non-finite values are ignored.
    config, optional
        Algorithm parameters.
    **kwargs
        Overrides for individual `ZScaleConfig` fields.

    Returns
    -------
    IntensityInterval
        The display interval; ``vmin <= vmax`` always holds.

    Notes
    -----
    A line is fitted to the sorted sample as a function of sample index,
    with iterative rejection of points more than ``krej`` standard deviations
    from the fit.  If enough points survive, the interval is the median
    extended by the fitted slope divided by ``contrast``, clamped to the
    sample range; otherwise it is the full sample range.
    """
    if config is None:
        config = ZScaleConfig(**kwargs)
    elif kwargs:
        config = ZScaleConfig(**(config.model_dump() | kwargs))
    samples = sample_values(values, config.n_samples)
    npix = len(samples)
    if npix == 0:
        _LOG.warning("No finite values to compute a zscale interval from.")
        return IntensityInterval(0.0, 0.0)
    vmin = float(samples[0])
    vmax = float(samples[-1])

    minpix = max(config.min_npixels, int(npix * config.max_reject))
    state = ClipState.initial(npix)
    last_n_good = npix + 1
    n_iterations = 0
    while n_iterations < config.max_iterations:
        if state.n_good >= last_n_good or state.n_good < minpix:
            break
        last_n_good = state.n_good
        state = clip_iteration(samples, state, config.krej)
        n_iterations += 1
    _LOG.debug(
        "zscale: %d samples, %d accepted after %d iterations (minimum %d).",
        npix,
        state.n_good,
        n_iterations,
        minpix,
    )

    if state.n_good >= minpix:
        slope = state.fit.slope
        if config.contrast > 0:
            slope /= config.contrast
        center = (npix - 1) // 2
        # The sample is sorted, so the median is a direct lookup.
        median = float(samples[npix // 2])
        vmin = max(vmin, median - (center - 1) * slope)
        vmax = min(vmax, median + (npix - center) * slope)
        if vmin > vmax:
            # Very small samples, or rounding in a near-zero slope.
            vmin = vmax = median
    return IntensityInterval(vmin, vmax)
