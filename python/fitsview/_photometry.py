# This file is part of fitsview.
#
# See the COPYRIGHT file at the top-level directory of this distribution
# for details of code ownership.
#
# Use of this source code is governed by a 3-clause BSD-style
# license that can be found in the LICENSE file.

from __future__ import annotations

__all__ = (
    "PhotometryConfig",
    "RadialProfile",
    "StarMeasurement",
    "background_level",
    "compute_adaptive_fwhm",
    "compute_fwhm",
    "radial_profile",
)

import math
from logging import getLogger

import numpy as np
import numpy.typing as npt
import pydantic

from ._errors import NumericError
from ._geom import XY, Box
from ._image import Image

_LOG = getLogger(__name__)

_HALF_MAXIMUM = 0.5


class PhotometryConfig(pydantic.BaseModel):
    """Tunable parameters of the FWHM measurement."""

    aperture_multipliers: tuple[float, float, float] = pydantic.Field(
        default=(1.7, 1.9, 2.55),
        description=(
            "Multiples of the FWHM used for the aperture radius and the inner and outer "
            "radii of the background annulus."
        ),
    )
    max_radius: float = pydantic.Field(
        default=30.0, gt=0.0, description="Largest radius (pixels) included in the radial profile."
    )
    border_fraction: float = pydantic.Field(
        default=0.1,
        ge=0.0,
        le=0.5,
        description="Thickness of the background frame as a fraction of the smaller cutout dimension.",
    )
    min_border: int = pydantic.Field(
        default=5, ge=1, description="Minimum thickness (pixels) of the background frame."
    )
    initial_box_size: int = pydantic.Field(
        default=20, gt=0, description="Initial adaptive cutout size, in pixels or arcseconds with a plate scale."
    )
    max_box_iterations: int = pydantic.Field(
        default=3, ge=0, description="Maximum number of times the adaptive cutout may be enlarged."
    )
    box_growth: float = pydantic.Field(
        default=10.0, gt=0.0, description="Enlarged cutout size as a multiple of the measured FWHM."
    )
    box_trigger: float = pydantic.Field(
        default=5.0,
        gt=0.0,
        description="The cutout is enlarged when this multiple of the FWHM exceeds its size.",
    )

    model_config = pydantic.ConfigDict(frozen=True)


class RadialProfile(pydantic.BaseModel):
    """Azimuthally averaged intensity around a star, one entry per non-empty
    unit-width radial bin.
    """

    radius: list[float] = pydantic.Field(description="Mean distance of the pixels in each bin.")
    intensity: list[float] = pydantic.Field(description="Mean pixel value in each bin.")
    normalized_intensity: list[float] = pydantic.Field(
        description="Intensity with the background subtracted, divided by the peak above background."
    )

    model_config = pydantic.ConfigDict(frozen=True, ser_json_inf_nan="constants")


class StarMeasurement(pydantic.BaseModel):
    """The result of measuring the width of one star."""

    center: tuple[float, float] = pydantic.Field(description="Star position ``(x, y)`` in pixels.")
    peak: float = pydantic.Field(description="Largest mean intensity of the radial profile.")
    pixel_peak: float = pydantic.Field(description="Raw pixel value at the star position.")
    background: float = pydantic.Field(description="Mean intensity of the cutout's border frame.")
    fwhm: float = pydantic.Field(description="Full width at half maximum, in pixels.")
    hwhm: float = pydantic.Field(description="Half width at half maximum, in pixels.")
    aperture_radii: tuple[float, float, float] = pydantic.Field(
        description="Aperture radius and background annulus radii, in pixels."
    )
    radial_profile: RadialProfile = pydantic.Field(description="Radial profile the FWHM was derived from.")
    bbox: Box | None = pydantic.Field(default=None, description="Cutout the star was measured in.")

    model_config = pydantic.ConfigDict(frozen=True, ser_json_inf_nan="constants")

    @property
    def position(self) -> XY[float]:
        """Star position as an `XY` pair."""
        return XY(*self.center)

    def translated(self, dx: float, dy: float, bbox: Box | None = None) -> StarMeasurement:
        """Return a copy with the center shifted by ``(dx, dy)`` and the given
        cutout box.
        """
        x, y = self.center
        return self.model_copy(update={"center": (x + dx, y + dy), "bbox": bbox})


def background_level(image: npt.ArrayLike, config: PhotometryConfig | None = None) -> float:
    """Return the mean value of a frame of pixels along the edges of a
    cutout.

    Parameters
    ----------
    image
        2-d cutout, indexed ``[y, x]``.
    config, optional
        Frame thickness parameters.

    Raises
    ------
    NumericError
        Raised if the frame holds no finite pixels.

    Notes
    -----
    The frame is ``max(min_border, floor(min(width, height) * border_fraction))``
    pixels thick, limited to half the smaller dimension so that no pixel is
    counted twice.  Non-finite (blank) pixels are left out of the mean.
    """
    if config is None:
        config = PhotometryConfig()
    array = _as_array(image)
    height, width = array.shape
    border = max(config.min_border, int(min(width, height) * config.border_fraction))
    border = min(border, min(width, height) // 2)
    frame = np.ones(array.shape, dtype=bool)
    if border > 0:
        frame[border : height - border, border : width - border] = False
    values = array[frame]
    values = values[np.isfinite(values)]
    if len(values) == 0:
        raise NumericError("Background frame of the cutout has no finite pixels.")
    return float(np.mean(values, dtype=np.float64))


def radial_profile(
    image: npt.ArrayLike, center_x: float, center_y: float, n_bins: int
) -> tuple[np.ndarray, np.ndarray]:
    """Average pixel values in unit-width annuli around a point.

    Parameters
    ----------
    image
        2-d cutout, indexed ``[y, x]``.
    center_x, center_y
        Center of the annuli, with pixel centers at integer coordinates.
    n_bins
        Number of annuli; bin ``i`` holds the pixels whose centers lie at
        distance ``[i, i + 1)``.

    Returns
    -------
    radius
        Mean distance of the pixels in each bin.
    intensity
        Mean value of the pixels in each bin.  Non-finite pixels are
        ignored, and both arrays hold NaN for bins with no finite pixels.
    """
    array = _as_array(image)
    height, width = array.shape
    x_min = max(0, math.floor(center_x - n_bins))
    x_max = min(width - 1, math.ceil(center_x + n_bins))
    y_min = max(0, math.floor(center_y - n_bins))
    y_max = min(height - 1, math.ceil(center_y + n_bins))
    dx = np.arange(x_min, x_max + 1, dtype=np.float64) - center_x
    dy = np.arange(y_min, y_max + 1, dtype=np.float64) - center_y
    r = np.hypot(dx[np.newaxis, :], dy[:, np.newaxis])
    bins = np.floor(r).astype(np.intp)
    inside = (bins < n_bins) & np.isfinite(array[y_min : y_max + 1, x_min : x_max + 1])
    values = array[y_min : y_max + 1, x_min : x_max + 1][inside].astype(np.float64)
    counts = np.bincount(bins[inside], minlength=n_bins)
    radius_sums = np.bincount(bins[inside], weights=r[inside], minlength=n_bins)
    value_sums = np.bincount(bins[inside], weights=values, minlength=n_bins)
    with np.errstate(invalid="ignore", divide="ignore"):
        radius = np.where(counts > 0, radius_sums / counts, np.nan)
        intensity = np.where(counts > 0, value_sums / counts, np.nan)
    return radius, intensity


def compute_fwhm(
    image: Image | npt.ArrayLike,
    center_x: float | None = None,
    center_y: float | None = None,
    config: PhotometryConfig | None = None,
) -> StarMeasurement | None:
    """Measure the full width at half maximum of a star.

    Parameters
    ----------
    image
        2-d cutout around the star, indexed ``[y, x]``.  An `Image` is
        measured in its own array coordinates; its origin is ignored.
    center_x, center_y, optional
        Star position, with pixel centers at integer coordinates.  If either
        is omitted the brightest pixel is used.
    config, optional
        Measurement parameters.

    Returns
    -------
    StarMeasurement or None
        The measurement, or `None` if the radial profile never falls to half
        of its peak above background within the cutout.

    Raises
    ------
    NumericError
        Raised if the profile peak equals the background level.
    ValueError
        Raised if the cutout is empty, has no finite pixels, or the center lies
        outside it.

    Notes
    -----
    Pixel centers are at integer coordinates, so pixel ``i`` spans
    ``[i - 0.5, i + 0.5)``.  A position in the convention where pixel ``i``
    spans ``[i, i + 1)`` must have 0.5 subtracted from each coordinate
    before it is passed here.
    """
    if config is None:
        config = PhotometryConfig()
    array = _as_array(image)
    height, width = array.shape
    if not np.any(np.isfinite(array)):
        raise ValueError(f"The {width}x{height} cutout has no finite pixels.")
    if center_x is None or center_y is None:
        center_y, center_x = (float(i) for i in np.unravel_index(np.nanargmax(array), array.shape))
    if not (0 <= round(center_x) < width and 0 <= round(center_y) < height):
        raise ValueError(f"Center ({center_x}, {center_y}) lies outside the {width}x{height} cutout.")
    pixel_peak = float(array[round(center_y), round(center_x)])
    background = background_level(array, config)

    edge_distance = min(center_x, width - 1 - center_x, center_y, height - 1 - center_y)
    n_bins = math.ceil(min(edge_distance, config.max_radius))
    if n_bins < 2:
        _LOG.debug("Star at (%s, %s) is too close to the cutout edge to measure.", center_x, center_y)
        return None
    radius, intensity = radial_profile(array, center_x, center_y, n_bins)
    filled = np.isfinite(intensity)
    if not np.any(filled):
        _LOG.debug("No finite pixels around the star at (%s, %s).", center_x, center_y)
        return None
    peak = float(np.max(intensity[filled]))
    contrast = peak - background
    if contrast == 0.0 or not math.isfinite(contrast):
        raise NumericError(f"Radial profile peak {peak} has no contrast against background {background}.")
    normalized = (intensity - background) / contrast

    crossing = np.flatnonzero(
        filled[:-1] & filled[1:] & (normalized[:-1] > _HALF_MAXIMUM) & (normalized[1:] <= _HALF_MAXIMUM)
    )
    if len(crossing) == 0:
        _LOG.debug("No half-maximum crossing in the profile of the star at (%s, %s).", center_x, center_y)
        return None
    inner = crossing[0]
    outer = inner + 1
    slope = (normalized[outer] - normalized[inner]) / (radius[outer] - radius[inner])
    fwhm = 2.0 * float(radius[inner] + (_HALF_MAXIMUM - normalized[inner]) / slope)

    return StarMeasurement(
        center=(float(center_x), float(center_y)),
        peak=peak,
        pixel_peak=pixel_peak,
        background=background,
        fwhm=fwhm,
        hwhm=0.5 * fwhm,
        aperture_radii=tuple(fwhm * m for m in config.aperture_multipliers),
        radial_profile=RadialProfile(
            radius=radius[filled].tolist(),
            intensity=intensity[filled].tolist(),
            normalized_intensity=normalized[filled].tolist(),
        ),
    )


def compute_adaptive_fwhm(
    image: Image | npt.ArrayLike,
    x: float,
    y: float,
    plate_scale: float | None = None,
    config: PhotometryConfig | None = None,
) -> StarMeasurement | None:
    """Measure a star in a cutout that grows to fit it.

    Parameters
    ----------
    image
        Full image, indexed ``[y, x]``.  If an `Image`, ``x`` and ``y`` and
        the result are in its logical coordinates.
    x, y
        Approximate star position.
    plate_scale, optional
        Arcseconds per pixel.  When given, the initial cutout size is
        interpreted in arcseconds.
    config, optional
        Measurement parameters.

    Returns
    -------
    StarMeasurement or None
        The measurement in image coordinates, with `StarMeasurement.bbox` set
        to the final cutout, or `None` if the star could not be measured in
        the initial cutout.

    Notes
    -----
    The star is first located as the brightest pixel in the initial cutout.
    While ``fwhm * box_trigger`` exceeds the cutout size, the cutout is
    re-extracted around the current position with size
    ``ceil(fwhm * box_growth)`` (at most half the image's smaller dimension)
    and the star remeasured there.
    """
    if config is None:
        config = PhotometryConfig()
    if not isinstance(image, Image):
        image = Image(np.asarray(image))
    if plate_scale is not None and plate_scale > 0:
        box_size = math.ceil(config.initial_box_size / plate_scale)
    else:
        box_size = config.initial_box_size
    max_box_size = min(image.width, image.height) // 2

    cutout = image.clipped(Box.from_center(x, y, box_size))
    if cutout is None:
        raise ValueError(f"Point ({x}, {y}) lies outside the image bounds {image.bbox}.")
    local = compute_fwhm(cutout.array, config=config)
    if local is None:
        return None
    measurement = local.translated(cutout.bbox.x.start, cutout.bbox.y.start, bbox=cutout.bbox)

    for _ in range(config.max_box_iterations):
        if measurement.fwhm * config.box_trigger <= box_size:
            break
        new_size = min(math.ceil(measurement.fwhm * config.box_growth), max_box_size)
        if new_size <= box_size:
            break
        box_size = new_size
        cx, cy = measurement.center
        cutout = image.clipped(Box.from_center(cx, cy, box_size))
        assert cutout is not None, "Center is inside the previous cutout."
        x0, y0 = cutout.bbox.start
        local = compute_fwhm(cutout.array, cx - x0, cy - y0, config=config)
        if local is None:
            break
        measurement = local.translated(x0, y0, bbox=cutout.bbox)
        _LOG.debug("Remeasured star at (%s, %s) in a %d-pixel cutout.", cx, cy, box_size)
    return measurement


def _as_array(image: Image | npt.ArrayLike) -> np.ndarray:
    array = image.array if isinstance(image, Image) else np.asarray(image)
    if array.ndim != 2 or array.size == 0:
        raise ValueError(f"Expected a non-empty 2-d array; got shape {array.shape}.")
    return array
