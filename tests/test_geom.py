# This file is part of fitsview.
#
# See the COPYRIGHT file at the top-level directory of this distribution
# for details of code ownership.
#
# Use of this source code is governed by a 3-clause BSD-style
# license that can be found in the LICENSE file.

from __future__ import annotations

import pickle
import unittest

import numpy as np
import pydantic

from fitsview import XY, Box, Image, Interval


class GeomTestCase(unittest.TestCase):
    """Tests for Interval, Box, and Image."""

    def test_interval(self) -> None:
        """Test Interval construction and set operations."""
        a = Interval(2, 7)
        self.assertEqual((a.start, a.stop, a.size, a.min, a.max), (2, 7, 5, 2, 6))
        self.assertEqual(Interval.from_center(10.4, 4), Interval(8, 12))
        self.assertEqual(Interval.from_center(10.6, 5), Interval(9, 14))
        self.assertEqual(a.intersection(Interval(5, 10)), Interval(5, 7))
        self.assertIsNone(a.intersection(Interval(7, 10)))
        self.assertEqual(Interval.hull(a, 12), Interval(2, 13))
        self.assertIn(6, a)
        self.assertNotIn(7, a)
        self.assertEqual(a + 3, Interval(5, 10))
        self.assertEqual(a.slice_within(Interval(0, 10)), slice(2, 7))
        self.assertEqual(pickle.loads(pickle.dumps(a)), a)

    def test_box(self) -> None:
        """Test Box construction, intersection, and serialization."""
        box = Box.factory[3:6, -1:2]
        self.assertEqual(box, Box(y=Interval(3, 6), x=Interval(-1, 2)))
        self.assertEqual(box.shape, (3, 3))
        self.assertEqual(box.start, XY(-1, 3))
        self.assertEqual(Box.from_center(10.0, 20.0, 4), Box.factory[18:22, 8:12])
        self.assertEqual(box.intersection(Box.factory[0:4, 0:10]), Box.factory[3:4, 0:2])
        self.assertIsNone(box.intersection(Box.factory[10:12, 0:2]))
        outer = Box.from_shape((10, 10), start=(0, -5))
        self.assertTrue(outer.contains(box))
        self.assertFalse(box.contains(outer))
        self.assertEqual(box.slice_within(outer), (slice(3, 6), slice(4, 7)))

        class Holder(pydantic.BaseModel):
            box: Box

        holder = Holder(box=box)
        self.assertEqual(Holder.model_validate_json(holder.model_dump_json()).box, box)

    def test_image(self) -> None:
        """Test subimages and clipping."""
        image = Image(np.arange(20.0).reshape(4, 5), start=(10, 100))
        self.assertEqual((image.width, image.height), (5, 4))
        sub = image[Box.factory[11:13, 101:103]]
        np.testing.assert_array_equal(sub.array, [[6.0, 7.0], [11.0, 12.0]])
        self.assertTrue(np.may_share_memory(sub.array, image.array))
        clipped = image.clipped(Box.factory[12:20, 90:102])
        assert clipped is not None
        self.assertEqual(clipped.bbox, Box.factory[12:14, 100:102])
        self.assertIsNone(image.clipped(Box.factory[0:5, 0:5]))
        with self.assertRaises(ValueError):
            image[Box.factory[0:5, 0:5]]
        with self.assertRaises(ValueError):
            Image(np.zeros(3))


if __name__ == "__main__":
    unittest.main()
