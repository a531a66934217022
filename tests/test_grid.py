# This file is part of fitsview.
#
# See the COPYRIGHT file at the top-level directory of this distribution
# for details of code ownership.
#
# Use of this source code is governed by a 3-clause BSD-style
# license that can be found in the LICENSE file.

from __future__ import annotations

import math
import unittest

from fitsview import (
    ANGULAR_STEPS,
    Edge,
    EdgeHit,
    angular_unit,
    edge_intersections,
    format_dec,
    format_ra,
    grid_step,
    select_label_hit,
)


class GridStepTestCase(unittest.TestCase):
    """Tests for grid step selection."""

    def test_steps_descending(self) -> None:
        """Test that the candidate steps are strictly decreasing."""
        self.assertTrue(all(a > b for a, b in zip(ANGULAR_STEPS, ANGULAR_STEPS[1:])))

    def test_grid_step(self) -> None:
        """Test that the largest qualifying step is chosen."""
        step = grid_step(0.0, 1.0, 6)
        self.assertIn(step, ANGULAR_STEPS)
        self.assertLessEqual(step, 1.0 / 6)
        self.assertTrue(all(s > 1.0 / 6 for s in ANGULAR_STEPS if s > step))
        self.assertEqual(grid_step(0.0, 180.0), 30.0)
        self.assertEqual(grid_step(10.0, 22.0), 2.0)
        self.assertEqual(grid_step(0.0, 1e-6), ANGULAR_STEPS[-1])

    def test_invalid_arguments(self) -> None:
        """Test that an empty range or a non-positive tick count is
        rejected.
        """
        with self.assertRaises(ValueError):
            grid_step(1.0, 1.0)
        with self.assertRaises(ValueError):
            grid_step(2.0, 1.0)
        for target_ticks in (0, -3):
            with self.subTest(target_ticks=target_ticks):
                with self.assertRaises(ValueError):
                    grid_step(0.0, 1.0, target_ticks)

    def test_angular_unit(self) -> None:
        """Test the label granularity thresholds."""
        self.assertEqual(angular_unit(30.0), 1)
        self.assertEqual(angular_unit(10.0), 1)
        self.assertEqual(angular_unit(5.0), 60)
        self.assertEqual(angular_unit(1.0), 60)
        self.assertEqual(angular_unit(0.5), 3600)


class FormatTestCase(unittest.TestCase):
    """Tests for sexagesimal label formatting."""

    def test_format_ra(self) -> None:
        """Test RA labels at each granularity."""
        self.assertEqual(format_ra(180.0, 30.0), "12h")
        self.assertEqual(format_ra(181.25, 5.0), "12h05m")
        self.assertEqual(format_ra(181.2875, 0.5), "12h05m09s")
        self.assertEqual(format_ra(-15.0, 30.0), "23h")
        self.assertEqual(format_ra(359.999, 5.0), "0h00m")
        self.assertEqual(format_ra(0.0, 1 / 3600), "0h00m00s")

    def test_format_dec(self) -> None:
        """Test Dec labels at each granularity."""
        self.assertEqual(format_dec(12.0, 30.0), "+12°")
        self.assertEqual(format_dec(-12.0 - 5 / 60, 5.0), "−12°05′")
        self.assertEqual(format_dec(12.0 + 5 / 60 + 9 / 3600, 0.5), "+12°05′09″")
        self.assertEqual(format_dec(-90.0, 10.0), "−90°")
        self.assertEqual(format_dec(-0.0001, 10.0), "+0°")
        self.assertEqual(format_dec(0.0, 1.0), "+0°00′")


class LabelPlacementTestCase(unittest.TestCase):
    """Tests for edge intersections and label placement."""

    def test_edge_intersections(self) -> None:
        """Test a segment crossing the left and top edges."""
        hits = edge_intersections(-10.0, 20.0, 10.0, -20.0, 100.0, 50.0)
        self.assertEqual([h.edge for h in hits], [Edge.LEFT, Edge.TOP])
        self.assertEqual((hits[0].x, hits[0].y), (0.0, 0.0))
        self.assertAlmostEqual(hits[0].angle, math.atan(-2.0))
        hits = edge_intersections(-10.0, 25.0, 110.0, 25.0, 100.0, 50.0)
        self.assertEqual([(h.edge, h.x, h.y) for h in hits], [(Edge.LEFT, 0.0, 25.0), (Edge.RIGHT, 100.0, 25.0)])
        self.assertEqual(hits[0].angle, 0.0)

    def test_vertical_segment(self) -> None:
        """Test a vertical segment crossing the top and bottom edges."""
        hits = edge_intersections(30.0, -5.0, 30.0, 60.0, 100.0, 50.0)
        self.assertEqual([(h.edge, h.x, h.y) for h in hits], [(Edge.TOP, 30.0, 0.0), (Edge.BOTTOM, 30.0, 50.0)])
        self.assertAlmostEqual(abs(hits[0].angle), 0.5 * math.pi)

    def test_no_intersections(self) -> None:
        """Test segments that do not strictly cross an edge."""
        self.assertEqual(edge_intersections(10.0, 10.0, 20.0, 20.0, 100.0, 50.0), [])
        self.assertEqual(edge_intersections(-10.0, 60.0, -5.0, 70.0, 100.0, 50.0), [])

    def test_select_label_hit(self) -> None:
        """Test that the first edge with hits wins and the hit nearest its
        midpoint is chosen.
        """
        hits = [
            EdgeHit(Edge.BOTTOM, 10.0, 50.0, 0.0),
            EdgeHit(Edge.LEFT, 0.0, 5.0, 0.0),
            EdgeHit(Edge.LEFT, 0.0, 20.0, 0.0),
            EdgeHit(Edge.BOTTOM, 45.0, 50.0, 0.0),
        ]
        self.assertEqual(select_label_hit(hits, [Edge.BOTTOM, Edge.LEFT], 100.0, 50.0), hits[3])
        self.assertEqual(select_label_hit(hits, ["left", "bottom"], 100.0, 50.0), hits[2])
        self.assertEqual(select_label_hit(hits, [Edge.TOP, Edge.LEFT], 100.0, 50.0), hits[2])
        self.assertIsNone(select_label_hit(hits, [Edge.TOP, Edge.RIGHT], 100.0, 50.0))
        self.assertIsNone(select_label_hit([], list(Edge), 100.0, 50.0))


if __name__ == "__main__":
    unittest.main()
