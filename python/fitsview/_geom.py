# This file is part of fitsview.
#
# See the COPYRIGHT file at the top-level directory of this distribution
# for details of code ownership.
#
# Use of this source code is governed by a 3-clause BSD-style
# license that can be found in the LICENSE file.

from __future__ import annotations

__all__ = (
    "XY",
    "Box",
    "Interval",
)

import math
from collections.abc import Iterator, Sequence
from typing import Any, ClassVar, NamedTuple, TypedDict, final

import pydantic
import pydantic_core.core_schema as pcs


class XY[T](NamedTuple):
    """A pair of coordinates in ``(x, y)`` order.

    For celestial coordinates ``x`` is right ascension and ``y`` is
    declination.
    """

    x: T
    y: T


class _SerializedInterval(TypedDict):
    start: int
    stop: int


@final
class Interval:
    """A 1-d integer interval with positive size.

    Parameters
    ----------
    start
        Inclusive minimum point in the interval.
    stop
        One past the maximum point in the interval.
    """

    def __init__(self, start: int, stop: int):
        # Coerce numpy int scalars.
        self._start = int(start)
        self._stop = int(stop)
        if not (self._stop > self._start):
            raise ValueError(f"Interval must have positive size; got [{self._start}, {self._stop})")

    __slots__ = ("_start", "_stop")

    @classmethod
    def hull(cls, first: int | Interval, *args: int | Interval) -> Interval:
        """Construct an interval that includes all of the given points and/or
        intervals.
        """
        if type(first) is Interval:
            rmin = first.min
            rmax = first.max
        else:
            rmin = rmax = first
        for arg in args:
            if type(arg) is Interval:
                rmin = min(rmin, arg.min)
                rmax = max(rmax, arg.max)
            else:
                rmin = min(rmin, arg)
                rmax = max(rmax, arg)
        return Interval(start=rmin, stop=rmax + 1)

    @classmethod
    def from_size(cls, size: int, start: int = 0) -> Interval:
        """Construct an interval from its size and optional start."""
        return cls(start=start, stop=start + size)

    @classmethod
    def from_center(cls, center: float, size: int) -> Interval:
        """Construct an interval of the given size whose central pixel is the
        one containing ``center``.
        """
        start = int(math.floor(center + 0.5)) - size // 2
        return cls.from_size(size, start=start)

    @property
    def start(self) -> int:
        """Inclusive minimum point in the interval."""
        return self._start

    @property
    def stop(self) -> int:
        """One past the maximum point in the interval."""
        return self._stop

    @property
    def min(self) -> int:
        """Inclusive minimum point in the interval."""
        return self.start

    @property
    def max(self) -> int:
        """Inclusive maximum point in the interval."""
        return self.stop - 1

    @property
    def size(self) -> int:
        """Size of the interval."""
        return self.stop - self.start

    def __str__(self) -> str:
        return f"{self.start}:{self.stop}"

    def __repr__(self) -> str:
        return f"Interval(start={self.start}, stop={self.stop})"

    def __eq__(self, other: object) -> bool:
        if type(other) is Interval:
            return self._start == other._start and self._stop == other._stop
        return False

    def __hash__(self) -> int:
        return hash((self._start, self._stop))

    def __add__(self, other: int) -> Interval:
        return Interval(start=self.start + other, stop=self.stop + other)

    def __contains__(self, x: int) -> bool:
        return x >= self.start and x < self.stop

    def contains(self, other: Interval) -> bool:
        """Test whether this interval fully contains another."""
        return self.start <= other.start and self.stop >= other.stop

    def intersection(self, other: Interval) -> Interval | None:
        """Return an interval that is contained by both ``self`` and ``other``.

        When there is no overlap between the intervals, `None` is returned.
        """
        new_start = max(self.start, other.start)
        new_stop = min(self.stop, other.stop)
        if new_start < new_stop:
            return Interval(start=new_start, stop=new_stop)
        return None

    def slice_within(self, other: Interval) -> slice:
        """Return the `slice` that corresponds to the values in this interval
        when the items of the container being sliced correspond to ``other``.

        This assumes ``other.contains(self)``.
        """
        return slice(self.start - other.start, self.stop - other.start)

    def __reduce__(self) -> tuple[type[Interval], tuple[int, int]]:
        return (Interval, (self._start, self._stop))

    @classmethod
    def __get_pydantic_core_schema__(
        cls, source_type: Any, handler: pydantic.GetCoreSchemaHandler
    ) -> pcs.CoreSchema:
        from_typed_dict = pcs.chain_schema(
            [
                handler(_SerializedInterval),
                pcs.no_info_plain_validator_function(cls._validate),
            ]
        )
        return pcs.json_or_python_schema(
            json_schema=from_typed_dict,
            python_schema=pcs.union_schema([pcs.is_instance_schema(Interval), from_typed_dict]),
            serialization=pcs.plain_serializer_function_ser_schema(cls._serialize, info_arg=False),
        )

    @classmethod
    def _validate(cls, data: _SerializedInterval) -> Interval:
        return cls(**data)

    def _serialize(self) -> _SerializedInterval:
        return {"start": self._start, "stop": self._stop}


@final
class Box(Sequence[Interval]):
    """An axis-aligned 2-d rectangular region of pixels.

    Parameters
    ----------
    y
        Interval of rows.
    x
        Interval of columns.

    Notes
    -----
    Intervals are stored in ``(y, x)`` order to match the shape of the numpy
    arrays they describe.
    """

    def __init__(self, y: Interval, x: Interval):
        self._intervals = (y, x)

    __slots__ = ("_intervals",)

    factory: ClassVar[BoxSliceFactory]

    @classmethod
    def from_shape(cls, shape: Sequence[int], start: Sequence[int] | None = None) -> Box:
        """Construct a box from an array shape ``(height, width)`` and an
        optional ``(y, x)`` start.
        """
        if start is None:
            start = (0, 0)
        y, x = [Interval.from_size(size, start=i_start) for size, i_start in zip(shape, start, strict=True)]
        return Box(y, x)

    @classmethod
    def from_center(cls, x: float, y: float, size: int) -> Box:
        """Construct a square box of the given size around a point."""
        return Box(Interval.from_center(y, size), Interval.from_center(x, size))

    @property
    def shape(self) -> tuple[int, int]:
        """Tuple holding the ``(height, width)`` of the box."""
        return (self.y.size, self.x.size)

    @property
    def start(self) -> XY[int]:
        """The first column and row of the box."""
        return XY(self.x.start, self.y.start)

    @property
    def x(self) -> Interval:
        """The interval of columns."""
        return self._intervals[1]

    @property
    def y(self) -> Interval:
        """The interval of rows."""
        return self._intervals[0]

    def __eq__(self, other: object) -> bool:
        if type(other) is Box:
            return self._intervals == other._intervals
        return False

    def __hash__(self) -> int:
        return hash(self._intervals)

    def __len__(self) -> int:
        return 2

    def __getitem__(self, key: object) -> Interval:  # type: ignore[override]
        match key:
            case int():
                return self._intervals[key]
            case _:
                raise TypeError("Box can only be indexed with integers.")

    def __iter__(self) -> Iterator[Interval]:
        return iter(self._intervals)

    def __str__(self) -> str:
        return f"[{', '.join([str(i) for i in self._intervals])}]"

    def __repr__(self) -> str:
        return f"Box(y={self.y!r}, x={self.x!r})"

    def contains(self, other: Box) -> bool:
        """Test whether this box fully contains another."""
        return all(a.contains(b) for a, b in zip(self, other, strict=True))

    def intersection(self, other: Box) -> Box | None:
        """Return a box that is contained by both ``self`` and ``other``.

        When there is no overlap between the boxes, `None` is returned.
        """
        if (y := self.y.intersection(other.y)) is None:
            return None
        if (x := self.x.intersection(other.x)) is None:
            return None
        return Box(y, x)

    def slice_within(self, other: Box) -> tuple[slice, slice]:
        """Return the tuple of `slice` objects that selects this box from an
        array whose bounding box is ``other``.

        This assumes ``other.contains(self)``.
        """
        return (self.y.slice_within(other.y), self.x.slice_within(other.x))

    def __reduce__(self) -> tuple[type[Box], tuple[Interval, Interval]]:
        return (Box, self._intervals)

    @classmethod
    def __get_pydantic_core_schema__(
        cls, source_type: Any, handler: pydantic.GetCoreSchemaHandler
    ) -> pcs.CoreSchema:
        from_list_schema = pcs.chain_schema(
            [
                pcs.list_schema(handler(_SerializedInterval), min_length=2, max_length=2),
                pcs.no_info_plain_validator_function(cls._validate),
            ]
        )
        return pcs.json_or_python_schema(
            json_schema=from_list_schema,
            python_schema=pcs.union_schema([pcs.is_instance_schema(Box), from_list_schema]),
            serialization=pcs.plain_serializer_function_ser_schema(cls._serialize, info_arg=False),
        )

    @classmethod
    def _validate(cls, data: list[_SerializedInterval]) -> Box:
        y, x = [Interval._validate(i) for i in data]
        return cls(y, x)

    def _serialize(self) -> list[_SerializedInterval]:
        return [i._serialize() for i in self]


class BoxSliceFactory:
    """A factory for `Box` objects using array-slice syntax.

    Notes
    -----
    When indexed with two slices in ``[y, x]`` order, this returns a `Box`::

        assert Box.factory[3:6, -1:2] == Box(
            y=Interval(start=3, stop=6), x=Interval(start=-1, stop=2)
        )
    """

    def __getitem__(self, key: tuple[slice, slice]) -> Box:
        match key:
            case (slice() as sy, slice() as sx):
                return Box(_interval_from_slice(sy), _interval_from_slice(sx))
            case _:
                raise TypeError("Expected a pair of slices.")


def _interval_from_slice(s: slice) -> Interval:
    if s.step is not None and s.step != 1:
        raise ValueError(f"Slice {s} has non-unit step.")
    return Interval(start=0 if s.start is None else s.start, stop=s.stop)


Box.factory = BoxSliceFactory()
