# This file is part of fitsview.
#
# See the COPYRIGHT file at the top-level directory of this distribution
# for details of code ownership.
#
# Use of this source code is governed by a 3-clause BSD-style
# license that can be found in the LICENSE file.

from __future__ import annotations

__all__ = ("Image",)

from collections.abc import Sequence
from typing import final

import numpy as np

from ._geom import Box


@final
class Image:
    """A 2-d pixel array with an integer origin.

    Parameters
    ----------
    array
        Array of pixel values, indexed ``[y, x]``.
    bbox, optional
        Bounding box for the image.  Must have the same shape as ``array``.
    start, optional
        Logical ``(y, x)`` coordinates of the first pixel in the array.
        Ignored if ``bbox`` is provided.  Defaults to zeros.

    Notes
    -----
    Indexing the `array` attribute of an `Image` does not take into account
    its `bbox` origin, but accessing a subimage by indexing an `Image` with a
    `Box` does, and the `bbox` of the subimage is set to match its location
    within the original image.  Subimages are views, not copies.
    """

    def __init__(
        self,
        array: np.ndarray,
        /,
        *,
        bbox: Box | None = None,
        start: Sequence[int] | None = None,
    ):
        array = np.asarray(array)
        if array.ndim != 2:
            raise ValueError(f"Image arrays must be 2-d; got shape {array.shape}.")
        if bbox is None:
            bbox = Box.from_shape(array.shape, start=start)
        elif bbox.shape != array.shape:
            raise ValueError(
                f"Explicit bbox shape {bbox.shape} does not match array with shape {array.shape}."
            )
        self._array = array
        self._bbox = bbox

    @property
    def array(self) -> np.ndarray:
        """The low-level array."""
        return self._array

    @property
    def bbox(self) -> Box:
        """Bounding box for the image."""
        return self._bbox

    @property
    def width(self) -> int:
        """Number of columns."""
        return self._bbox.x.size

    @property
    def height(self) -> int:
        """Number of rows."""
        return self._bbox.y.size

    def __getitem__(self, bbox: Box) -> Image:
        if not self._bbox.contains(bbox):
            raise ValueError(f"Box {bbox} is not contained by image bounds {self._bbox}.")
        return Image(self._array[bbox.slice_within(self._bbox)], bbox=bbox)

    def clipped(self, bbox: Box) -> Image | None:
        """Return the part of ``bbox`` that overlaps this image, or `None` if
        they do not overlap.
        """
        if (overlap := self._bbox.intersection(bbox)) is None:
            return None
        return self[overlap]

    def __str__(self) -> str:
        return f"Image({self.bbox!s}, {self.array.dtype.type.__name__})"

    def __repr__(self) -> str:
        return f"Image(..., bbox={self.bbox!r}, dtype={self.array.dtype!r})"
