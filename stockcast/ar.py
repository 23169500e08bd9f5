"""Autoregressive forecast of closing prices."""

from __future__ import annotations

import math
from typing import Iterable, Sequence

from stockcast.models import FLT_MAX, FORECAST_DAYS

MAX_ORDER = 10
MIN_DEVIATION = 1e-6


def _divide(numerator: float, denominator: float) -> float:
    """Floating division that yields inf or nan on a zero denominator."""
    if denominator:
        return numerator / denominator
    if numerator == 0 or math.isnan(numerator):
        return math.nan
    return math.copysign(math.inf, numerator) * math.copysign(1.0, denominator)


def _log(value: float) -> float:
    """Natural logarithm that yields -inf at zero and nan below it."""
    if value > 0:
        return math.log(value)
    if value == 0:
        return -math.inf
    return math.nan


def standardize(values: Iterable[float]) -> tuple[list[float], float, float]:
    """Centre and scale a series; returns the scaled series, its mean and deviation."""
    values = list(values)
    if not values:
        raise ValueError("cannot standardize an empty series")
    count = len(values)
    average = sum(values) / count
    centred = [value - average for value in values]
    standard = math.sqrt(sum(value * value for value in centred) / count)
    if not standard > MIN_DEVIATION:
        raise ValueError("series is constant and cannot be standardized")
    return [value / standard for value in centred], average, standard


def autocorrelation(values: Sequence[float], order: int) -> list[float]:
    """Biased autocorrelation estimates for lags 0 through order."""
    if order < 0:
        raise ValueError("order must not be negative")
    count = len(values)
    if count == 0:
        raise ValueError("cannot correlate an empty series")
    return [
        sum(a * b for a, b in zip(values, values[lag:])) / count
        for lag in range(order + 1)
    ]


def levinson_durbin(r: Sequence[float], order: int) -> tuple[list[float], float]:
    """Solve the Yule-Walker equations; returns the coefficients and the residual variance."""
    if order < 0:
        raise ValueError("order must not be negative")
    if len(r) < order + 1:
        raise ValueError(f"need {order + 1} autocorrelations, got {len(r)}")
    a = [1.0] + [0.0] * order
    epsilon = r[0]
    for m in range(1, order + 1):
        acc = r[m] + sum(a[j] * r[m - j] for j in range(1, m))
        reflection = -_divide(acc, epsilon)
        previous = a[:]
        a[m] = reflection
        for j in range(1, m):
            a[j] = previous[j] + reflection * previous[m - j]
        epsilon *= 1 - reflection * reflection
    return [-coefficient for coefficient in a[1:]], epsilon


def choose_order(data: Sequence[float], max_order: int = MAX_ORDER) -> int:
    """Model order from 1 to max_order with the lowest AIC; 0 if none is finite."""
    count = len(data)
    best_aic = FLT_MAX
    best_order = 0
    for order in range(1, max_order + 1):
        _, sigma2 = levinson_durbin(autocorrelation(data, order), order)
        aic = 2 * order + count * _log(sigma2)
        if aic < best_aic:
            best_order = order
            best_aic = aic
    return best_order


def forecast(closes: Iterable[float], days: int = FORECAST_DAYS) -> list[float]:
    """Predict the next closing prices with an AR model fitted to the series."""
    closes = list(closes)
    if len(closes) <= MAX_ORDER:
        raise ValueError(f"forecast needs more than {MAX_ORDER} values, got {len(closes)}")
    if days < 0:
        raise ValueError("number of forecast days must not be negative")
    data, average, standard = standardize(closes)
    order = choose_order(data, MAX_ORDER)
    phi, _ = levinson_durbin(autocorrelation(data, order), order)
    history = data[len(data) - order:] if order else []
    for _ in range(days):
        nxt = sum(c * x for c, x in zip(phi, reversed(history)))
        history.append(nxt)
    return [value * standard + average for value in history[order:]]