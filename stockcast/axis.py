"""Chart axis scaling and the mapping of values to screen coordinates."""

from __future__ import annotations

import math
from dataclasses import dataclass, replace
from typing import Iterable, Sequence

from stockcast.models import MostValue

MARK_STEPS = (0.1, 0.5, 1.0, 2.0, 5.0, 10.0, 20.0, 50.0, 100.0)


def round_half_away(x: float) -> int:
    """Round to the nearest integer, halves away from zero."""
    if x >= 0.0:
        return int(math.floor(x + 0.5))
    return int(math.ceil(x - 0.5))


@dataclass(frozen=True)
class Axis:
    """A vertical value axis drawn from (x, y) downwards over length pixels."""

    x: int
    y: int
    length: int
    max: int = 0
    min: int = 0
    unit_num: int = 1

    def y_for(self, value: float) -> int:
        """Screen row of a value on this axis."""
        span = self.max - self.min
        if span == 0:
            raise ValueError("axis has an empty value range")
        return self.y + round_half_away((self.max - value) * self.length / span)


def axis_marks(extremes: MostValue, axis: Axis) -> tuple[Axis, list[tuple[int, str]]]:
    """Fit the axis range to the extremes; returns the fitted axis and its labelled marks."""
    if axis.unit_num < 1:
        raise ValueError("an axis needs at least one unit")
    gap = int(extremes.max - extremes.min)
    for step in MARK_STEPS:
        if gap > axis.unit_num * step:
            continue
        top = int(math.ceil(extremes.max / step) * step)
        bottom = int(math.floor(extremes.min / step) * step)
        break
    else:
        raise ValueError(f"value range {gap} is too wide for {axis.unit_num} units")

    fitted = replace(axis, max=top, min=bottom)
    unit_length = axis.length // axis.unit_num
    marks = [
        (axis.y + unit_length * i, f"{top - i * step:.1f}")
        for i in range(axis.unit_num + 1)
    ]
    return fitted, marks


def plot_points(values: Sequence[float], axis: Axis, gap: int) -> list[tuple[int, int]]:
    """Points of a series laid out leftwards from the axis, gap pixels apart."""
    values = list(values)
    start = axis.x - gap * len(values)
    if start < 0:
        raise ValueError("too many values to fit left of the axis")
    return [(start + i * gap, axis.y_for(value)) for i, value in enumerate(values)]


def combine_extremes(extremes: Iterable[MostValue]) -> MostValue:
    """The overall range of several ranges."""
    result = MostValue()
    for most in extremes:
        result.merge(most)
    return result