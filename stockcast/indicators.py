"""Technical indicators computed from daily price bars."""

from __future__ import annotations

import math
from typing import Iterable, Iterator, Sequence

from stockcast.models import MA_PERIODS, DayPrice, LineType, MostValue
from stockcast.queue import MonotonicQueue, max_compare, min_compare

KDJ_WINDOW = 9
MACD_FAST = 12
MACD_SLOW = 26
MACD_SIGNAL = 9
MACD_WARMUP = MACD_SLOW + MACD_SIGNAL

_LINE_LAYOUT = {
    LineType.KDAY: (1, False),
    LineType.KWEEK: (1, False),
    LineType.MA: (3, True),
    LineType.EXPMA: (2, True),
    LineType.XUECHI: (4, True),
    LineType.KDJ: (3, False),
    LineType.MACD: (3, False),
    LineType.PRED: (1, False),
}


def _layout(line_type) -> tuple[int, bool]:
    try:
        return _LINE_LAYOUT[LineType(line_type)]
    except (KeyError, ValueError):
        raise ValueError(f"invalid line type {line_type!r}") from None


def line_count(line_type) -> int:
    """Number of series stored for a kind of line."""
    return _layout(line_type)[0]


def is_main_line(line_type) -> bool:
    """Whether the line is drawn over the daily price chart."""
    return _layout(line_type)[1]


def _divide(numerator: float, denominator: float) -> float:
    """Floating division that yields inf or nan on a zero denominator."""
    if denominator:
        return numerator / denominator
    if numerator == 0 or math.isnan(numerator):
        return math.nan
    return math.copysign(math.inf, numerator) * math.copysign(1.0, denominator)


def _require(count: int, needed: int, what: str) -> None:
    if count < needed:
        raise ValueError(f"{what} needs at least {needed} days of data, got {count}")


def _require_period(period: int) -> None:
    if period < 1:
        raise ValueError("period must be at least 1")


def ema_step(value: float, period: int, previous: float) -> float:
    """One step of an exponential moving average."""
    return 2.0 * value / (period + 1) + previous * (1 - 2.0 / (period + 1))


def moving_average(closes: Sequence[float], period: int) -> list[float]:
    """Simple moving average; the first period-1 entries are zero."""
    _require_period(period)
    result = [0.0] * len(closes)
    window = [0.0] * period
    total = 0.0
    for i, close in enumerate(closes):
        slot = i % period
        total += close - window[slot]
        window[slot] = close
        if i >= period - 1:
            result[i] = total / period
    return result


def moving_averages(closes: Sequence[float], periods: Iterable[int] = MA_PERIODS) -> list[list[float]]:
    """Moving averages for each period, in the order given."""
    return [moving_average(closes, period) for period in periods]


def kdj(prices: Sequence[DayPrice]) -> tuple[list[float], list[float], list[float]]:
    """K, D and J lines over a nine-day window; the first eight entries are zero."""
    days = len(prices)
    k_line, d_line, j_line = [0.0] * days, [0.0] * days, [0.0] * days
    highs = MonotonicQueue(KDJ_WINDOW, max_compare)
    lows = MonotonicQueue(KDJ_WINDOW, min_compare)
    k, d = 50.0, 50.0
    for i, price in enumerate(prices):
        highs.push(price.high, i)
        lows.push(price.low, i)
        highs.expire(i - KDJ_WINDOW + 1)
        lows.expire(i - KDJ_WINDOW + 1)
        if i < KDJ_WINDOW - 1:
            continue
        highest, lowest = highs.front(), lows.front()
        rsv = _divide((price.close - lowest) * 100, highest - lowest)
        k = k * 2 / 3 + rsv / 3
        d = d * 2 / 3 + k / 3
        k_line[i], d_line[i], j_line[i] = k, d, 3 * k - 2 * d
    return k_line, d_line, j_line


def macd(closes: Sequence[float]) -> tuple[list[float], list[float], list[float]]:
    """DIF, DEA and MACD bars; the first 35 entries are zero."""
    days = len(closes)
    _require(days, MACD_WARMUP, "MACD")
    ema_fast = sum(closes[MACD_SLOW - MACD_FAST:MACD_SLOW]) / MACD_FAST
    ema_slow = sum(closes[:MACD_SLOW]) / MACD_SLOW

    dif_total = 0.0
    for close in closes[MACD_SLOW:MACD_WARMUP]:
        ema_fast = ema_step(close, MACD_FAST, ema_fast)
        ema_slow = ema_step(close, MACD_SLOW, ema_slow)
        dif_total += ema_fast - ema_slow
    dea = dif_total / MACD_SIGNAL

    difs, deas, bars = [0.0] * days, [0.0] * days, [0.0] * days
    for i in range(MACD_WARMUP, days):
        ema_fast = ema_step(closes[i], MACD_FAST, ema_fast)
        ema_slow = ema_step(closes[i], MACD_SLOW, ema_slow)
        dif = ema_fast - ema_slow
        dea = ema_step(dif, MACD_SIGNAL, dea)
        difs[i], deas[i], bars[i] = dif, dea, (dif - dea) * 2
    return difs, deas, bars


def expma(closes: Sequence[float], period: int) -> list[float]:
    """Exponential moving average seeded with the first period's mean."""
    _require_period(period)
    _require(len(closes), period, f"EXPMA{period}")
    result = [0.0] * len(closes)
    value = sum(closes[:period]) / period
    for i in range(period, len(closes)):
        value = ema_step(closes[i], period, value)
        result[i] = value
    return result


def true_range(price: DayPrice, previous_close: float) -> float:
    """Largest of the bar's range and its distances from the previous close."""
    return max(
        price.high - price.low,
        abs(price.high - previous_close),
        abs(price.low - previous_close),
    )


def xuechi(prices: Sequence[DayPrice], period: int) -> tuple[list[float], list[float]]:
    """Upper and lower channel lines; the first period entries are zero."""
    _require_period(period)
    days = len(prices)
    _require(days, period + 1, f"channel {period}")

    ranges = [true_range(prices[i + 1], prices[i].close) for i in range(period)]
    total = sum(ranges)
    atr = total / period
    anchor = prices[period - 1]
    median = (anchor.high + anchor.low) / 2
    close_prev = anchor.close

    upper, lower = [0.0] * days, [0.0] * days
    for offset, price in enumerate(prices[period:]):
        i = period + offset
        upper[i] = median + atr * 2
        lower[i] = median - atr * 2
        slot = offset % period
        total -= ranges[slot]
        ranges[slot] = true_range(price, close_prev)
        total += ranges[slot]
        median = (price.high + price.low) / 2
        atr = total / period
        close_prev = price.close
    return upper, lower


def _periods(items: Sequence, period_length: int) -> Iterator[Sequence]:
    """Split into periods; a leading partial period comes first."""
    if period_length < 1:
        raise ValueError("period length must be at least 1")
    left = len(items) % period_length
    if left:
        yield items[:left]
    for start in range(left, len(items), period_length):
        yield items[start:start + period_length]


def period_extremes(values: Sequence[float], period_length: int) -> list[MostValue]:
    """Maximum and minimum of each period of a series."""
    return [MostValue().update(chunk) for chunk in _periods(values, period_length)]


def price_extremes(prices: Sequence[DayPrice], period_length: int) -> list[MostValue]:
    """Highest high and lowest low of each period of price bars."""
    result = []
    for chunk in _periods(prices, period_length):
        most = MostValue()
        for price in chunk:
            most.max = most.max if most.max > price.high else price.high
            most.min = most.min if most.min < price.low else price.low
        result.append(most)
    return result