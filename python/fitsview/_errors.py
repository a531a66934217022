# This file is part of fitsview.
#
# See the COPYRIGHT file at the top-level directory of this distribution
# for details of code ownership.
#
# Use of this source code is governed by a 3-clause BSD-style
# license that can be found in the LICENSE file.

from __future__ import annotations

__all__ = ("FormatError", "NumericError")


class FormatError(ValueError):
    """Exception raised when a FITS header or payload cannot be interpreted,
    or a required keyword is missing or malformed.
    """


class NumericError(ArithmeticError):
    """Exception raised when a computation is numerically degenerate, such as
    a singular CD matrix or a photometry region with no contrast.
    """
