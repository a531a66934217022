# This file is part of fitsview.
#
# See the COPYRIGHT file at the top-level directory of this distribution
# for details of code ownership.
#
# Use of this source code is governed by a 3-clause BSD-style
# license that can be found in the LICENSE file.

from __future__ import annotations

__all__ = (
    "MAX_SIP_ORDER",
    "ProjectionType",
    "SipPolynomial",
    "SkyBounds",
    "WcsModel",
)

import enum
import math
from logging import getLogger
from typing import NamedTuple, final

import astropy.io.fits
import astropy.units as u
import astropy.wcs
import numpy as np
import numpy.typing as npt
from astropy.coordinates import SkyCoord

from ._errors import FormatError, NumericError
from ._geom import XY
from ._header import FitsHeader

_LOG = getLogger(__name__)

MAX_SIP_ORDER = 9
"""Largest supported SIP polynomial order."""

_GRID_SIZE = MAX_SIP_ORDER + 1


class ProjectionType(enum.StrEnum):
    """Sky projections supported by `WcsModel`."""

    TAN = "TAN"
    """Gnomonic (tangent-plane) projection."""

    SIN = "SIN"
    """Orthographic (sine) projection."""

    @classmethod
    def from_ctype(cls, ctype1: str, ctype2: str) -> ProjectionType | None:
        """Return the projection named by a pair of ``CTYPE`` values, or
        `None` if they do not describe a supported RA/Dec projection.

        Both ``RA---TAN``/``DEC--TAN`` and their ``-SIP`` variants are
        recognized.
        """
        if not (ctype1.startswith("RA---") and ctype2.startswith("DEC--")):
            return None
        code1, _, suffix1 = ctype1[5:].partition("-")
        code2, _, suffix2 = ctype2[5:].partition("-")
        if code1 != code2 or suffix1 not in ("", "SIP") or suffix2 not in ("", "SIP"):
            return None
        try:
            return cls(code1)
        except ValueError:
            return None


class SkyBounds(NamedTuple):
    """Celestial bounding box of an image, in degrees.

    ``ra_min`` may be negative or ``ra_max`` may exceed 360 when the image
    straddles RA = 0.
    """

    ra_min: float
    ra_max: float
    dec_min: float
    dec_max: float


@final
class SipPolynomial:
    """One polynomial of the Simple Imaging Polynomial distortion convention.

    Parameters
    ----------
    order
        Largest total degree ``i + j`` of the terms, at most `MAX_SIP_ORDER`.
    coefficients, optional
        Coefficient grid indexed ``[i, j]`` for the term ``u**i * v**j``.
        Terms above ``order`` are ignored.

    Raises
    ------
    FormatError
        Raised if ``order`` is outside ``[0, MAX_SIP_ORDER]``.
    """

    def __init__(self, order: int, coefficients: npt.ArrayLike | None = None):
        if not 0 <= order <= MAX_SIP_ORDER:
            raise FormatError(f"SIP polynomial order {order} is outside [0, {MAX_SIP_ORDER}].")
        grid = np.zeros((_GRID_SIZE, _GRID_SIZE), dtype=np.float64)
        if coefficients is not None:
            given = np.asarray(coefficients, dtype=np.float64)
            grid[: given.shape[0], : given.shape[1]] = given[:_GRID_SIZE, :_GRID_SIZE]
        i, j = np.indices(grid.shape)
        grid[i + j > order] = 0.0
        grid.flags.writeable = False
        self._order = order
        self._coefficients = grid

    @classmethod
    def from_header(cls, header: FitsHeader, name: str, order: int) -> SipPolynomial:
        """Read the ``{name}_{i}_{j}`` coefficients of a polynomial from a
        header; absent terms are zero.
        """
        grid = np.zeros((_GRID_SIZE, _GRID_SIZE), dtype=np.float64)
        if 0 <= order <= MAX_SIP_ORDER:
            for i in range(order + 1):
                for j in range(order + 1 - i):
                    grid[i, j] = header.get_float(f"{name}_{i}_{j}", 0.0)
        return cls(order, grid)

    @property
    def order(self) -> int:
        """Largest total degree of the terms."""
        return self._order

    @property
    def coefficients(self) -> np.ndarray:
        """Read-only ``10x10`` coefficient grid."""
        return self._coefficients

    def __eq__(self, other: object) -> bool:
        if type(other) is SipPolynomial:
            return self._order == other._order and np.array_equal(self._coefficients, other._coefficients)
        return False

    def __repr__(self) -> str:
        return f"SipPolynomial(order={self._order}, ...)"

    def evaluate[T: np.ndarray | float](self, u: T, v: T) -> T:
        """Evaluate the polynomial at offsets ``(u, v)`` from the reference
        pixel.
        """
        u_arr = np.asarray(u, dtype=np.float64)
        v_arr = np.asarray(v, dtype=np.float64)
        n = self._order + 1
        u_powers = np.empty(u_arr.shape + (n,))
        v_powers = np.empty(v_arr.shape + (n,))
        u_powers[..., 0] = 1.0
        v_powers[..., 0] = 1.0
        for k in range(1, n):
            u_powers[..., k] = u_powers[..., k - 1] * u_arr
            v_powers[..., k] = v_powers[..., k - 1] * v_arr
        return np.einsum("...i,ij,...j->...", u_powers, self._coefficients[:n, :n], v_powers)


@final
class WcsModel:
    """A celestial world coordinate system with optional SIP distortion.

    Parameters
    ----------
    projection
        Sky projection.
    crval
        Reference point ``(ra, dec)`` in degrees.
    crpix
        Reference pixel ``(x, y)``, FITS 1-based.
    cd
        ``2x2`` matrix mapping pixel offsets to intermediate world
        coordinates in degrees.
    sip_a, sip_b, optional
        Forward distortion polynomials.
    sip_ap, sip_bp, optional
        Inverse distortion polynomials.
    image_width, image_height, optional
        Image dimensions in pixels.
    equinox, lonpole, latpole, optional
        Informational header values.

    Notes
    -----
    Instances are immutable; use `from_header` to build one from FITS
    keywords.  Pixel coordinates follow the FITS convention: the center of
    the first pixel is ``(1, 1)``.  The projection math follows the
    conventions of Astrometry.net's ``sip.c``: intermediate world
    coordinates are projected onto an orthonormal basis tangent to the
    sphere at the reference point.

    Points that have no image under the projection (the far hemisphere for
    `sky_to_pixel`, points beyond the sphere's limb for SIN `pixel_to_sky`)
    are reported as `None` by the scalar methods and NaN by the array
    methods.
    """

    def __init__(
        self,
        *,
        projection: ProjectionType,
        crval: tuple[float, float],
        crpix: tuple[float, float],
        cd: npt.ArrayLike,
        sip_a: SipPolynomial | None = None,
        sip_b: SipPolynomial | None = None,
        sip_ap: SipPolynomial | None = None,
        sip_bp: SipPolynomial | None = None,
        image_width: int = 0,
        image_height: int = 0,
        equinox: float = 2000.0,
        lonpole: float = 180.0,
        latpole: float = 0.0,
    ):
        self._projection = ProjectionType(projection)
        self._crval = XY(float(crval[0]), float(crval[1]))
        self._crpix = XY(float(crpix[0]), float(crpix[1]))
        self._cd = np.array(cd, dtype=np.float64).reshape(2, 2)
        self._cd.flags.writeable = False
        self._has_distortion = any(p is not None for p in (sip_a, sip_b))
        self._sip_a = sip_a if sip_a is not None else SipPolynomial(0)
        self._sip_b = sip_b if sip_b is not None else SipPolynomial(0)
        self._sip_ap = sip_ap if sip_ap is not None else SipPolynomial(0)
        self._sip_bp = sip_bp if sip_bp is not None else SipPolynomial(0)
        self._image_width = int(image_width)
        self._image_height = int(image_height)
        self._equinox = float(equinox)
        self._lonpole = float(lonpole)
        self._latpole = float(latpole)
        self._det = float(self._cd[0, 0] * self._cd[1, 1] - self._cd[0, 1] * self._cd[1, 0])
        self._cd_inverse: np.ndarray | None = None
        if self._det != 0.0:
            self._cd_inverse = np.array(
                [[self._cd[1, 1], -self._cd[0, 1]], [-self._cd[1, 0], self._cd[0, 0]]]
            ) / self._det
        self._r = _radec_to_xyz(np.float64(self._crval.x), np.float64(self._crval.y))
        self._i, self._j = _tangent_basis(self._crval.x, self._r)
        if self._has_distortion and max(self._sip_a.order, self._sip_b.order) > 0:
            if self._sip_ap.order == 0 and self._sip_bp.order == 0:
                _LOG.warning(
                    "WCS has forward SIP coefficients but no inverse ones; "
                    "sky-to-pixel conversions will ignore the distortion."
                )

    @staticmethod
    def from_header(header: FitsHeader) -> WcsModel:
        """Construct a WCS from FITS header keywords.

        Parameters
        ----------
        header
            Header holding at least ``CTYPE1/2``, ``CRVAL1/2``, ``CRPIX1/2``
            and ``CD1_1``, ``CD1_2``, ``CD2_1``, ``CD2_2``.  ``IMAGEW`` and
            ``IMAGEH`` fall back to ``NAXIS1`` and ``NAXIS2``.  SIP
            polynomials are read when ``A_ORDER``/``B_ORDER`` are present.

        Raises
        ------
        FormatError
            Raised if a required keyword is missing or malformed, or a SIP
            order is out of range.

        Notes
        -----
        An unsupported ``CTYPE`` is logged as an error rather than raised,
        and the model falls back to the TAN projection.
        """
        ctype1 = header.get_str("CTYPE1")
        ctype2 = header.get_str("CTYPE2")
        projection = ProjectionType.from_ctype(ctype1, ctype2)
        if projection is None:
            _LOG.error("Unsupported WCS projection %r/%r; assuming TAN.", ctype1, ctype2)
            projection = ProjectionType.TAN
        wcsaxes = header.get_int("WCSAXES", 2)
        if wcsaxes != 2:
            _LOG.warning("WCSAXES=%d; only the first two axes are used.", wcsaxes)
        for key in ("CUNIT1", "CUNIT2"):
            if (unit := header.get_str(key, "deg")) != "deg":
                _LOG.warning("%s=%r is not supported; treating it as degrees.", key, unit)
        sip: dict[str, SipPolynomial | None] = {}
        for name in ("A", "B", "AP", "BP"):
            key = f"{name}_ORDER"
            sip[name] = (
                SipPolynomial.from_header(header, name, header.get_int(key)) if key in header else None
            )
        return WcsModel(
            projection=projection,
            crval=(header.get_float("CRVAL1"), header.get_float("CRVAL2")),
            crpix=(header.get_float("CRPIX1"), header.get_float("CRPIX2")),
            cd=[
                [header.get_float("CD1_1"), header.get_float("CD1_2")],
                [header.get_float("CD2_1"), header.get_float("CD2_2")],
            ],
            sip_a=sip["A"],
            sip_b=sip["B"],
            sip_ap=sip["AP"],
            sip_bp=sip["BP"],
            image_width=header.get_int("IMAGEW", header.get_int("NAXIS1", 0)),
            image_height=header.get_int("IMAGEH", header.get_int("NAXIS2", 0)),
            equinox=header.get_float("EQUINOX", 2000.0),
            lonpole=header.get_float("LONPOLE", 180.0),
            latpole=header.get_float("LATPOLE", 0.0),
        )

    @property
    def projection(self) -> ProjectionType:
        """Sky projection."""
        return self._projection

    @property
    def crval(self) -> XY[float]:
        """Reference point ``(ra, dec)`` in degrees."""
        return self._crval

    @property
    def crpix(self) -> XY[float]:
        """Reference pixel."""
        return self._crpix

    @property
    def cd(self) -> np.ndarray:
        """Read-only ``2x2`` CD matrix."""
        return self._cd

    @property
    def sip_a(self) -> SipPolynomial:
        """Forward distortion polynomial for ``x``."""
        return self._sip_a

    @property
    def sip_b(self) -> SipPolynomial:
        """Forward distortion polynomial for ``y``."""
        return self._sip_b

    @property
    def sip_ap(self) -> SipPolynomial:
        """Inverse distortion polynomial for ``x``."""
        return self._sip_ap

    @property
    def sip_bp(self) -> SipPolynomial:
        """Inverse distortion polynomial for ``y``."""
        return self._sip_bp

    @property
    def has_distortion(self) -> bool:
        """Whether SIP distortion polynomials were provided."""
        return self._has_distortion

    @property
    def image_width(self) -> int:
        """Image width in pixels (0 if unknown)."""
        return self._image_width

    @property
    def image_height(self) -> int:
        """Image height in pixels (0 if unknown)."""
        return self._image_height

    @property
    def equinox(self) -> float:
        """Equinox of the celestial coordinates."""
        return self._equinox

    @property
    def lonpole(self) -> float:
        """Native longitude of the celestial pole."""
        return self._lonpole

    @property
    def latpole(self) -> float:
        """Native latitude of the celestial pole."""
        return self._latpole

    @property
    def cd_determinant(self) -> float:
        """Determinant of the CD matrix, in square degrees per square
        pixel.
        """
        return self._det

    @property
    def pixel_scale(self) -> float:
        """Mean pixel scale in arcseconds per pixel."""
        return math.sqrt(abs(self._det)) * 3600.0

    def pixel_to_sky(self, x: float, y: float) -> XY[float] | None:
        """Convert a pixel position to ``(ra, dec)`` in degrees.

        Returns
        -------
        XY [float] or None
            ``XY(ra, dec)`` with ``ra`` in ``[0, 360)``, or `None` if the
            point has no sky position.

        Raises
        ------
        NumericError
            Raised if the CD matrix is singular.
        """
        ra, dec = self.pixel_to_sky_array(x, y)
        if not np.isfinite(ra):
            return None
        return XY(float(ra), float(dec))

    def sky_to_pixel(self, ra: float, dec: float) -> XY[float] | None:
        """Convert ``(ra, dec)`` in degrees to a pixel position.

        Returns
        -------
        XY [float] or None
            Pixel position, or `None` if the point is on the far side of the
            sky from the reference point.

        Raises
        ------
        NumericError
            Raised if the CD matrix is singular.
        """
        x, y = self.sky_to_pixel_array(ra, dec)
        if not np.isfinite(x):
            return None
        return XY(float(x), float(y))

    def pixel_to_sky_array(self, x: npt.ArrayLike, y: npt.ArrayLike) -> XY[np.ndarray]:
        """Vectorized `pixel_to_sky`; points with no sky position are NaN."""
        self._require_invertible()
        x, y = np.broadcast_arrays(np.asarray(x, dtype=np.float64), np.asarray(y, dtype=np.float64))
        u_off = x - self._crpix.x
        v_off = y - self._crpix.y
        if self._has_distortion:
            u_off, v_off = (
                u_off + self._sip_a.evaluate(u_off, v_off),
                v_off + self._sip_b.evaluate(u_off, v_off),
            )
        # Intermediate world coordinates in radians; x is negated because
        # the first basis vector points towards decreasing RA.
        xi = -np.deg2rad(self._cd[0, 0] * u_off + self._cd[0, 1] * v_off)
        eta = np.deg2rad(self._cd[1, 0] * u_off + self._cd[1, 1] * v_off)
        valid = np.isfinite(xi) & np.isfinite(eta)
        xyz = xi[..., np.newaxis] * self._i + eta[..., np.newaxis] * self._j
        if self._projection is ProjectionType.SIN:
            rho2 = xi * xi + eta * eta
            valid &= rho2 < 1.0
            with np.errstate(invalid="ignore"):
                xyz += np.sqrt(1.0 - rho2)[..., np.newaxis] * self._r
        else:
            xyz += self._r
            xyz /= np.linalg.norm(xyz, axis=-1, keepdims=True)
        ra, dec = _xyz_to_radec(xyz)
        self._check_finite(valid, ra, dec)
        return XY(np.where(valid, ra, np.nan), np.where(valid, dec, np.nan))

    def sky_to_pixel_array(self, ra: npt.ArrayLike, dec: npt.ArrayLike) -> XY[np.ndarray]:
        """Vectorized `sky_to_pixel`; points with no pixel position are NaN."""
        self._require_invertible()
        assert self._cd_inverse is not None, "Guaranteed by _require_invertible."
        ra, dec = np.broadcast_arrays(np.asarray(ra, dtype=np.float64), np.asarray(dec, dtype=np.float64))
        s = _radec_to_xyz(ra, dec)
        s_dot_r = s @ self._r
        valid = s_dot_r > 0.0
        xi = -(s @ self._i)
        eta = s @ self._j
        if self._projection is ProjectionType.TAN:
            with np.errstate(invalid="ignore", divide="ignore"):
                xi = xi / s_dot_r
                eta = eta / s_dot_r
        iwc_x = np.rad2deg(xi)
        iwc_y = np.rad2deg(eta)
        u_off = self._cd_inverse[0, 0] * iwc_x + self._cd_inverse[0, 1] * iwc_y
        v_off = self._cd_inverse[1, 0] * iwc_x + self._cd_inverse[1, 1] * iwc_y
        if self._has_distortion:
            u_off, v_off = (
                u_off + self._sip_ap.evaluate(u_off, v_off),
                v_off + self._sip_bp.evaluate(u_off, v_off),
            )
        x = u_off + self._crpix.x
        y = v_off + self._crpix.y
        self._check_finite(valid & np.isfinite(ra) & np.isfinite(dec), x, y)
        return XY(np.where(valid, x, np.nan), np.where(valid, y, np.nan))

    def pixel_to_skycoord(self, x: npt.ArrayLike, y: npt.ArrayLike) -> SkyCoord:
        """Convert pixel positions to an ICRS `~astropy.coordinates.SkyCoord`.

        Points with no sky position have NaN coordinates.
        """
        ra, dec = self.pixel_to_sky_array(x, y)
        return SkyCoord(ra=ra, dec=dec, unit=u.deg, frame="icrs")

    def skycoord_to_pixel(self, sky: SkyCoord) -> XY[np.ndarray]:
        """Convert an `~astropy.coordinates.SkyCoord` to pixel positions."""
        if sky.frame.name != "icrs":
            sky = sky.transform_to("icrs")
        return self.sky_to_pixel_array(sky.ra.to_value(u.deg), sky.dec.to_value(u.deg))

    def center(self) -> XY[float] | None:
        """Return the sky position of the center of the image."""
        return self.pixel_to_sky(0.5 + 0.5 * self._image_width, 0.5 + 0.5 * self._image_height)

    def is_inside_image(self, ra: float, dec: float) -> bool:
        """Test whether a sky position falls on the image."""
        if (xy := self.sky_to_pixel(ra, dec)) is None:
            return False
        return 0.5 <= xy.x <= self._image_width + 0.5 and 0.5 <= xy.y <= self._image_height + 0.5

    def walk_boundary(self, step: float, center: XY[float] | None = None) -> SkyBounds:
        """Return the RA/Dec range covered by the image perimeter.

        Parameters
        ----------
        step
            Spacing in pixels of the perimeter points that are converted.
        center, optional
            Sky position used as the RA reference for wrap-around; defaults
            to the image center.

        Notes
        -----
        RAs more than 180 degrees from the reference are shifted by 360
        degrees, so the RA range of an image straddling RA = 0 extends below
        0 or above 360 rather than spanning the whole circle.
        """
        self._require_image_size()
        if not step > 0:
            raise ValueError(f"Boundary step must be positive; got {step}.")
        if center is None:
            center = self._require_center()
        x_min, x_max = 0.5, self._image_width + 0.5
        y_min, y_max = 0.5, self._image_height + 0.5
        nx = math.ceil(self._image_width / step) + 1
        ny = math.ceil(self._image_height / step) + 1
        along_x = np.arange(nx) * step
        along_y = np.arange(ny) * step
        xs = np.concatenate(
            [x_min + along_x, np.full(ny, x_max), x_max - along_x, np.full(ny, x_min)]
        ).clip(x_min, x_max)
        ys = np.concatenate(
            [np.full(nx, y_min), y_min + along_y, np.full(nx, y_max), y_max - along_y]
        ).clip(y_min, y_max)
        ra, dec = self.pixel_to_sky_array(xs, ys)
        on_sky = np.isfinite(ra)
        ra = ra[on_sky]
        dec = dec[on_sky]
        ra = np.where(ra - center.x > 180.0, ra - 360.0, ra)
        ra = np.where(center.x - ra > 180.0, ra + 360.0, ra)
        return SkyBounds(
            ra_min=float(min(center.x, ra.min(initial=center.x))),
            ra_max=float(max(center.x, ra.max(initial=center.x))),
            dec_min=float(min(center.y, dec.min(initial=center.y))),
            dec_max=float(max(center.y, dec.max(initial=center.y))),
        )

    def bounding_box(self, step: float = 10.0) -> SkyBounds:
        """Return the RA/Dec bounding box of the image.

        Parameters
        ----------
        step
            Spacing in pixels of the perimeter points that are converted.

        Notes
        -----
        If a celestial pole falls on the image the RA range becomes
        ``[0, 360]`` and the Dec range is extended to that pole.
        """
        ra_min, ra_max, dec_min, dec_max = self.walk_boundary(step)
        if self.is_inside_image(0.0, 90.0):
            ra_min, ra_max, dec_max = 0.0, 360.0, 90.0
        if self.is_inside_image(0.0, -90.0):
            ra_min, ra_max, dec_min = 0.0, 360.0, -90.0
        return SkyBounds(ra_min, ra_max, dec_min, dec_max)

    def to_fits_header(self) -> astropy.io.fits.Header:
        """Return the FITS keywords describing this WCS."""
        suffix = "-SIP" if self._has_distortion else ""
        header = astropy.io.fits.Header()
        header["WCSAXES"] = 2
        header["CTYPE1"] = f"RA---{self._projection.value}{suffix}"
        header["CTYPE2"] = f"DEC--{self._projection.value}{suffix}"
        header["EQUINOX"] = self._equinox
        header["LONPOLE"] = self._lonpole
        header["LATPOLE"] = self._latpole
        header["CRVAL1"], header["CRVAL2"] = self._crval
        header["CRPIX1"], header["CRPIX2"] = self._crpix
        header["CUNIT1"] = header["CUNIT2"] = "deg"
        header["CD1_1"], header["CD1_2"] = self._cd[0].tolist()
        header["CD2_1"], header["CD2_2"] = self._cd[1].tolist()
        if self._image_width and self._image_height:
            header["IMAGEW"] = self._image_width
            header["IMAGEH"] = self._image_height
        if self._has_distortion:
            for name, poly in (("A", self._sip_a), ("B", self._sip_b), ("AP", self._sip_ap), ("BP", self._sip_bp)):
                if name.endswith("P") and poly.order == 0:
                    continue
                header[f"{name}_ORDER"] = poly.order
                for i, j in zip(*np.nonzero(poly.coefficients)):
                    header[f"{name}_{i}_{j}"] = float(poly.coefficients[i, j])
        return header

    def as_fits_wcs(self) -> astropy.wcs.WCS:
        """Return an equivalent `astropy.wcs.WCS`."""
        return astropy.wcs.WCS(self.to_fits_header())

    def _require_invertible(self) -> None:
        if self._cd_inverse is None:
            raise NumericError("CD matrix is singular (determinant 0).")

    def _require_image_size(self) -> None:
        if self._image_width <= 0 or self._image_height <= 0:
            raise ValueError("Image dimensions are unknown (no IMAGEW/IMAGEH or NAXIS1/NAXIS2).")

    def _require_center(self) -> XY[float]:
        if (center := self.center()) is None:
            raise NumericError("Image center has no sky position.")
        return center

    @staticmethod
    def _check_finite(valid: np.ndarray, a: np.ndarray, b: np.ndarray) -> None:
        if np.any(valid & ~(np.isfinite(a) & np.isfinite(b))):
            raise NumericError("Coordinate conversion produced non-finite values.")


def _radec_to_xyz(ra: np.ndarray, dec: np.ndarray) -> np.ndarray:
    ra_rad = np.deg2rad(ra)
    dec_rad = np.deg2rad(dec)
    cos_dec = np.cos(dec_rad)
    return np.stack([cos_dec * np.cos(ra_rad), cos_dec * np.sin(ra_rad), np.sin(dec_rad)], axis=-1)


def _xyz_to_radec(xyz: np.ndarray) -> tuple[np.ndarray, np.ndarray]:
    ra = np.arctan2(xyz[..., 1], xyz[..., 0])
    ra = np.where(ra < 0.0, ra + 2.0 * np.pi, ra)
    dec = np.arcsin(np.clip(xyz[..., 2], -1.0, 1.0))
    return np.rad2deg(ra), np.rad2deg(dec)


def _tangent_basis(ra: float, r: np.ndarray) -> tuple[np.ndarray, np.ndarray]:
    """Return unit vectors tangent to the sphere at ``r``, pointing towards
    decreasing RA and increasing Dec.

    The first vector depends only on ``ra`` and is defined at the poles.
    """
    ra_rad = math.radians(ra)
    i = np.array([math.sin(ra_rad), -math.cos(ra_rad), 0.0])
    j = np.cross(i, r)
    return i, j / np.linalg.norm(j)
