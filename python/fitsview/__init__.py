# This file is part of fitsview.
#
# See the COPYRIGHT file at the top-level directory of this distribution
# for details of code ownership.
#
# Use of this source code is governed by a 3-clause BSD-style
# license that can be found in the LICENSE file.

"""Core algorithms for viewing astronomical FITS images.

The package provides:

- a decoder for the primary array of a FITS file (`decode`, `read_header`);
- the IRAF zscale display interval (`zscale`);
- star width measurement from radial profiles (`compute_fwhm`,
  `compute_adaptive_fwhm`);
- TAN and SIN world coordinate systems with SIP distortion (`WcsModel`), and
  helpers for drawing and labeling a coordinate grid (`grid_step`,
  `format_ra`, `format_dec`, `edge_intersections`, `select_label_hit`).

Pixel positions passed to and returned by `WcsModel` follow the FITS 1-based
convention; everything else uses 0-based array indices.
"""

from ._dtypes import *
from ._errors import *
from ._fits import *
from ._geom import *
from ._grid import *
from ._header import *
from ._image import *
from ._photometry import *
from ._wcs import *
from ._zscale import *
