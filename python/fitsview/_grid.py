# This file is part of fitsview.
#
# See the COPYRIGHT file at the top-level directory of this distribution
# for details of code ownership.
#
# Use of this source code is governed by a 3-clause BSD-style
# license that can be found in the LICENSE file.

from __future__ import annotations

__all__ = (
    "ANGULAR_STEPS",
    "Edge",
    "EdgeHit",
    "angular_unit",
    "edge_intersections",
    "format_dec",
    "format_ra",
    "grid_step",
    "select_label_hit",
)

import enum
import math
from collections.abc import Iterable, Sequence
from typing import NamedTuple

ANGULAR_STEPS: tuple[float, ...] = (
    30.0,
    20.0,
    15.0,
    10.0,
    5.0,
    2.0,
    1.0,
    30 / 60,
    20 / 60,
    15 / 60,
    10 / 60,
    5 / 60,
    2 / 60,
    1 / 60,
    30 / 3600,
    20 / 3600,
    15 / 3600,
    10 / 3600,
    5 / 3600,
    2 / 3600,
    1 / 3600,
)
"""Candidate coordinate grid spacings in degrees, largest first."""

_MINUS = "\N{MINUS SIGN}"


class Edge(enum.StrEnum):
    """An edge of a displayed image, in display coordinates (``y`` grows
    downwards, so `TOP` is ``y = 0``).
    """

    LEFT = "left"
    RIGHT = "right"
    TOP = "top"
    BOTTOM = "bottom"


class EdgeHit(NamedTuple):
    """A point where a grid line segment crosses an image edge."""

    edge: Edge
    x: float
    y: float
    angle: float
    """Direction of the segment in radians, in ``[-pi/2, pi/2]``."""


def grid_step(min_value: float, max_value: float, target_ticks: int = 6) -> float:
    """Return the largest entry of `ANGULAR_STEPS` that divides the range
    into at least ``target_ticks`` intervals.

    The smallest step is returned if none does.

    Raises
    ------
    ValueError
        Raised if ``min_value >= max_value`` or ``target_ticks`` is not
        positive.
    """
    if min_value >= max_value:
        raise ValueError(f"Grid range [{min_value}, {max_value}] is empty.")
    if target_ticks <= 0:
        raise ValueError(f"Number of grid intervals must be positive; got {target_ticks}.")
    ideal = (max_value - min_value) / target_ticks
    for step in ANGULAR_STEPS:
        if step <= ideal:
            return step
    return ANGULAR_STEPS[-1]


def angular_unit(step: float) -> int:
    """Return the number of label units per degree (or hour) needed to
    resolve a grid step: 1 for whole units, 60 for minutes and 3600 for
    seconds.
    """
    if step >= 10:
        return 1
    if step >= 1:
        return 60
    return 3600


def format_ra(ra: float, step: float) -> str:
    """Format a right ascension in degrees as hours, with the precision
    implied by the grid step (``12h``, ``12h05m`` or ``12h05m09s``).
    """
    scale = angular_unit(step)
    total = _round_half_up((ra % 360.0) / 15.0 * scale) % (24 * scale)
    return _sexagesimal(total, scale, ("h", "m", "s"))


def format_dec(dec: float, step: float) -> str:
    """Format a declination in degrees with an explicit sign, with the
    precision implied by the grid step (``+12°``, ``−12°05′`` or
    ``+12°05′09″``).
    """
    scale = angular_unit(step)
    total = _round_half_up(abs(dec) * scale)
    sign = _MINUS if dec < 0 and total > 0 else "+"
    return sign + _sexagesimal(total, scale, ("°", "′", "″"))


def edge_intersections(
    x1: float, y1: float, x2: float, y2: float, width: float, height: float
) -> list[EdgeHit]:
    """Find where the segment from ``(x1, y1)`` to ``(x2, y2)`` strictly
    crosses the edges of a ``width x height`` display area.

    Hits are returned in the order left, right, top, bottom.
    """
    dx = x1 - x2
    dy = y1 - y2
    angle = math.atan(dy / dx) if dx != 0 else math.copysign(0.5 * math.pi, dy)
    hits = []
    for edge, x_edge in ((Edge.LEFT, 0.0), (Edge.RIGHT, width)):
        if (x1 - x_edge) * (x2 - x_edge) < 0:
            y = y1 + (x_edge - x1) / (x2 - x1) * (y2 - y1)
            if 0 <= y <= height:
                hits.append(EdgeHit(edge, x_edge, y, angle))
    for edge, y_edge in ((Edge.TOP, 0.0), (Edge.BOTTOM, height)):
        if (y1 - y_edge) * (y2 - y_edge) < 0:
            x = x1 + (y_edge - y1) / (y2 - y1) * (x2 - x1)
            if 0 <= x <= width:
                hits.append(EdgeHit(edge, x, y_edge, angle))
    return hits


def select_label_hit(
    hits: Iterable[EdgeHit], priority: Sequence[Edge | str], width: float, height: float
) -> EdgeHit | None:
    """Choose where to place a grid line's label.

    Parameters
    ----------
    hits
        Edge crossings of the grid line.
    priority
        Edges in order of preference.
    width, height
        Size of the display area.

    Returns
    -------
    EdgeHit or None
        The hit closest to the midpoint of the first edge in ``priority``
        that has any hits, or `None` if no listed edge has one.
    """
    by_edge: dict[Edge, list[EdgeHit]] = {edge: [] for edge in Edge}
    for hit in hits:
        by_edge[hit.edge].append(hit)
    for edge in map(Edge, priority):
        if not (candidates := by_edge[edge]):
            continue
        if edge in (Edge.LEFT, Edge.RIGHT):
            return min(candidates, key=lambda h: abs(h.y - 0.5 * height))
        return min(candidates, key=lambda h: abs(h.x - 0.5 * width))
    return None


def _round_half_up(value: float) -> int:
    return math.floor(value + 0.5)


def _sexagesimal(total: int, scale: int, symbols: tuple[str, str, str]) -> str:
    major, minor, second = symbols
    if scale == 1:
        return f"{total}{major}"
    if scale == 60:
        units, minutes = divmod(total, 60)
        return f"{units}{major}{minutes:02d}{minor}"
    units, rest = divmod(total, 3600)
    minutes, seconds = divmod(rest, 60)
    return f"{units}{major}{minutes:02d}{minor}{seconds:02d}{second}"
