from __future__ import annotations

import numbers
from typing import Iterable, List, Optional, Sequence, Tuple, Union

from .schemas import TimeRange

RangeLike = Union[TimeRange, Tuple[int, int], Sequence[int]]


def _position(value) -> int:
    if isinstance(value, numbers.Integral) and not isinstance(value, bool):
        return int(value)
    if isinstance(value, float) and value.is_integer():
        return int(value)
    raise ValueError(f"Range bounds must be integer positions, got {value!r}.")


def as_range(r: RangeLike) -> TimeRange:
    if isinstance(r, TimeRange):
        return r
    start, end = r
    return TimeRange(_position(start), _position(end))


def as_ranges(ranges: Iterable[RangeLike]) -> List[TimeRange]:
    """Normalise a range set; order and duplicates are kept as given."""
    return [as_range(r) for r in ranges]


def overlaps(r1: TimeRange, r2: TimeRange) -> bool:
    return not (r1.end < r2.start or r1.start > r2.end)


def overlap(r1: TimeRange, r2: TimeRange) -> Optional[TimeRange]:
    """Intersection of two closed ranges, or None when they are disjoint."""
    if not overlaps(r1, r2):
        return None
    return TimeRange(max(r1.start, r2.start), min(r1.end, r2.end))


def format_ranges(title: str, ranges: Iterable[TimeRange]) -> List[str]:
    lines = [f"{title}:"]
    lines.extend(str(r) for r in ranges)
    return lines
