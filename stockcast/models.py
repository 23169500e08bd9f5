"""Core records shared by the price, indicator and forecast code."""

from __future__ import annotations

from dataclasses import dataclass
from enum import IntEnum
from typing import Iterable

FLT_MAX = 3.4028234663852886e38
MAX_DAYS = 305
MAX_WEEKS = 66
CODE_LEN = 8
FORECAST_DAYS = 3
STOCK_NUM = 2

MA_PERIODS = (5, 10, 20)
EXPMA_PERIODS = (12, 50)
XUECHI_PERIODS = (20, 60)


class LineType(IntEnum):
    """Kinds of series and files kept for a stock."""

    KDAY = 0
    KWEEK = 1
    MA = 2
    EXPMA = 3
    XUECHI = 4
    KDJ = 5
    MACD = 6
    NA = 7
    PRED = 8
    DAY = 9
    WEEK = 10
    STOCK = 11
    GENE = 12
    CHOICE = 13


@dataclass
class StockData:
    """A stock and the bookkeeping counts of its stored series."""

    code: str
    name: str = ""
    days: int = 0
    weeks: int = 0
    period_length: int = 0
    period_num: int = 0

    def __post_init__(self) -> None:
        if len(self.code) > CODE_LEN:
            raise ValueError(f"stock code {self.code!r} is longer than {CODE_LEN} characters")


@dataclass(frozen=True)
class DayPrice:
    """One bar of a daily or weekly price chart."""

    date: int
    open: float
    high: float
    low: float
    close: float


@dataclass
class MostValue:
    """Running maximum and minimum of a series."""

    max: float = -FLT_MAX
    min: float = FLT_MAX

    def update(self, values: Iterable[float]) -> "MostValue":
        """Widen the range to include every value; returns self."""
        for value in values:
            self.max = self.max if self.max > value else value
            self.min = self.min if self.min < value else value
        return self

    def merge(self, other: "MostValue") -> "MostValue":
        """Widen the range to include another range; returns self."""
        self.max = other.max if other.max > self.max else self.max
        self.min = other.min if other.min < self.min else self.min
        return self