# This file is part of fitsview.
#
# See the COPYRIGHT file at the top-level directory of this distribution
# for details of code ownership.
#
# Use of this source code is governed by a 3-clause BSD-style
# license that can be found in the LICENSE file.

from __future__ import annotations

__all__ = ("Bitpix",)

import enum

import numpy as np

from ._errors import FormatError


class Bitpix(enum.IntEnum):
    """Enumeration of the pixel encodings supported by the decoder.

    Values are the FITS ``BITPIX`` codes; negative codes are IEEE floating
    point.  ``BITPIX = 8`` is unsigned, as required by the FITS standard.
    """

    UINT8 = 8
    INT16 = 16
    INT32 = 32
    FLOAT32 = -32
    FLOAT64 = -64

    @classmethod
    def from_header_value(cls, value: int) -> Bitpix:
        """Return the member for a ``BITPIX`` header value.

        Raises
        ------
        FormatError
            Raised if ``value`` is not a supported ``BITPIX`` code.
        """
        try:
            return cls(value)
        except ValueError:
            raise FormatError(f"Unsupported BITPIX: {value}.") from None

    @property
    def is_float(self) -> bool:
        """Whether this encoding holds floating-point samples."""
        return self.value < 0

    @property
    def itemsize(self) -> int:
        """Number of bytes used by one sample in the file."""
        return abs(self.value) // 8

    def to_file_dtype(self) -> np.dtype:
        """Return the big-endian numpy dtype of the samples as stored in the
        file.
        """
        match self:
            case Bitpix.UINT8:
                return np.dtype("u1")
            case Bitpix.INT16:
                return np.dtype(">i2")
            case Bitpix.INT32:
                return np.dtype(">i4")
            case Bitpix.FLOAT32:
                return np.dtype(">f4")
            case Bitpix.FLOAT64:
                return np.dtype(">f8")
        raise AssertionError("Invalid enum value.")

    def to_storage_dtype(self) -> np.dtype:
        """Return the native-endian dtype used to hold unscaled samples in
        memory.

        Integer encodings share a 32-bit integer container; floating-point
        encodings keep their native width.
        """
        if self.is_float:
            return self.to_file_dtype().newbyteorder("=")
        return np.dtype(np.int32)
