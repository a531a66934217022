# This file is part of fitsview.
#
# See the COPYRIGHT file at the top-level directory of this distribution
# for details of code ownership.
#
# Use of this source code is governed by a 3-clause BSD-style
# license that can be found in the LICENSE file.

from __future__ import annotations

__all__ = ("BLOCK_SIZE", "DecodedImage", "decode", "read_fits", "read_fits_header", "read_header")

import dataclasses
import os
import time
from logging import getLogger

import fsspec
import numpy as np

from ._dtypes import Bitpix
from ._errors import FormatError
from ._header import CARD_SIZE, FitsHeader
from ._image import Image

_LOG = getLogger(__name__)

BLOCK_SIZE = 2880
"""Size in bytes of a FITS header or data block."""

_INT32_INFO = np.iinfo(np.int32)


@dataclasses.dataclass(frozen=True)
class DecodedImage:
    """The result of decoding the primary array of a FITS file."""

    header: FitsHeader
    """Header keywords of the primary HDU."""

    pixels: np.ndarray
    """Flat, row-major array of ``width * height`` physical pixel values."""

    width: int
    """Number of columns (``NAXIS1``)."""

    height: int
    """Number of rows (``NAXIS2``)."""

    bitpix: Bitpix
    """Encoding of the samples in the file."""

    @property
    def array(self) -> np.ndarray:
        """A ``(height, width)`` view of `pixels`."""
        return self.pixels.reshape(self.height, self.width)

    @property
    def image(self) -> Image:
        """An `Image` view of `pixels` with its origin at ``(0, 0)``."""
        return Image(self.array)


def read_header(data: bytes | bytearray | memoryview) -> tuple[FitsHeader, int]:
    """Parse the primary header of a FITS file.

    Parameters
    ----------
    data
        Contents of the file, or at least of its header blocks.

    Returns
    -------
    header
        Parsed header keywords.
    data_offset
        Byte offset of the first data block, i.e. the start of the block that
        follows the one holding the ``END`` card.

    Raises
    ------
    FormatError
        Raised if no ``END`` card is found or a header block is truncated or
        not ASCII text.
    """
    view = memoryview(data)
    cards: list[str] = []
    offset = 0
    while True:
        if offset + BLOCK_SIZE > len(view):
            raise FormatError(f"FITS header is truncated or has no END card (read {offset} bytes).")
        try:
            block = bytes(view[offset : offset + BLOCK_SIZE]).decode("ascii")
        except UnicodeDecodeError as err:
            raise FormatError(f"FITS header block at offset {offset} is not ASCII text.") from err
        offset += BLOCK_SIZE
        block_cards = _split_cards(block)
        cards.extend(block_cards)
        if _has_end(block_cards):
            break
    return FitsHeader.from_cards(cards), offset


def decode(data: bytes | bytearray | memoryview) -> DecodedImage:
    """Decode the header and primary array of a FITS file.

    Parameters
    ----------
    data
        Full contents of the file.

    Returns
    -------
    DecodedImage
        Header, pixel values and dimensions.  Pixel values are
        ``raw * BSCALE + BZERO``.

    Raises
    ------
    FormatError
        Raised if the header is malformed, ``BITPIX`` is not supported, or
        the data payload is shorter than ``NAXIS1 * NAXIS2`` samples.  No
        pixel buffer is allocated in these cases.

    Notes
    -----
    Multi-byte samples are big-endian, as the FITS standard requires.  Integer
    samples are held in an ``int32`` array when the scaling keeps them
    integral and in range, and are promoted to ``float64`` otherwise.
    """
    t0 = time.perf_counter()
    header, offset = read_header(data)
    bitpix = Bitpix.from_header_value(header.get_int("BITPIX"))
    width = header.get_int("NAXIS1")
    height = header.get_int("NAXIS2")
    if width < 0 or height < 0:
        raise FormatError(f"Invalid image dimensions {width}x{height}.")
    bscale = header.get_float("BSCALE", 1.0)
    bzero = header.get_float("BZERO", 0.0)
    n_pixels = width * height
    available = len(data) - offset
    if available < n_pixels * bitpix.itemsize:
        raise FormatError(
            f"FITS data payload has {available} bytes; {width}x{height} BITPIX={bitpix.value} "
            f"samples need {n_pixels * bitpix.itemsize}."
        )
    raw = np.frombuffer(data, dtype=bitpix.to_file_dtype(), count=n_pixels, offset=offset)
    pixels = _apply_scaling(raw, bitpix, bscale, bzero)
    _LOG.debug(
        "Decoded %dx%d BITPIX=%d image into %s array in %.3fs.",
        width,
        height,
        bitpix.value,
        pixels.dtype,
        time.perf_counter() - t0,
    )
    return DecodedImage(header=header, pixels=pixels, width=width, height=height, bitpix=bitpix)


def read_fits(path: str | os.PathLike[str]) -> DecodedImage:
    """Read and decode the primary array of a FITS file.

    Parameters
    ----------
    path
        Local path or any URL understood by `fsspec`.

    Returns
    -------
    DecodedImage
        See `decode`.
    """
    with fsspec.open(path, "rb") as stream:
        data = stream.read()
    _LOG.debug("Read %d bytes from %s.", len(data), path)
    return decode(data)


def read_fits_header(path: str | os.PathLike[str]) -> FitsHeader:
    """Read only the primary header of a FITS file.

    Parameters
    ----------
    path
        Local path or any URL understood by `fsspec`.

    Notes
    -----
    The file is read one block at a time, stopping at the block that holds
    the ``END`` card, so the data payload is never fetched.
    """
    cards: list[str] = []
    with fsspec.open(path, "rb", block_size=BLOCK_SIZE) as stream:
        while True:
            raw = stream.read(BLOCK_SIZE)
            if len(raw) < BLOCK_SIZE:
                raise FormatError(f"FITS header in {path} is truncated or has no END card.")
            try:
                block = raw.decode("ascii")
            except UnicodeDecodeError as err:
                raise FormatError(f"FITS header block in {path} is not ASCII text.") from err
            block_cards = _split_cards(block)
            cards.extend(block_cards)
            if _has_end(block_cards):
                break
    return FitsHeader.from_cards(cards)


def _split_cards(block: str) -> list[str]:
    return [block[i : i + CARD_SIZE] for i in range(0, BLOCK_SIZE, CARD_SIZE)]


def _has_end(cards: list[str]) -> bool:
    return any(card[:8].strip() == "END" for card in cards)


def _apply_scaling(raw: np.ndarray, bitpix: Bitpix, bscale: float, bzero: float) -> np.ndarray:
    identity = bscale == 1.0 and bzero == 0.0
    if bitpix.is_float:
        pixels = raw.astype(bitpix.to_storage_dtype())
        if not identity:
            pixels *= bscale
            pixels += bzero
        return pixels
    if identity:
        return raw.astype(bitpix.to_storage_dtype())
    if bscale == 1.0 and bzero.is_integer():
        # Integral offsets (e.g. the unsigned-integer convention) stay
        # integral when the shifted range fits in the container.
        lo = _raw_min(bitpix) + bzero
        hi = _raw_max(bitpix) + bzero
        if _INT32_INFO.min <= lo and hi <= _INT32_INFO.max:
            pixels = raw.astype(np.int32)
            pixels += np.int32(bzero)
            return pixels
    pixels = raw.astype(np.float64)
    pixels *= bscale
    pixels += bzero
    return pixels


def _raw_min(bitpix: Bitpix) -> int:
    return int(np.iinfo(bitpix.to_file_dtype()).min)


def _raw_max(bitpix: Bitpix) -> int:
    return int(np.iinfo(bitpix.to_file_dtype()).max)
