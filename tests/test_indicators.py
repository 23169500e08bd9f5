import math

import pytest

from stockcast.indicators import (
    ema_step,
    expma,
    is_main_line,
    kdj,
    line_count,
    macd,
    moving_average,
    moving_averages,
    period_extremes,
    price_extremes,
    true_range,
    xuechi,
)
from stockcast.models import DayPrice, LineType, MostValue


def bar(i, close, spread=1.0):
    return DayPrice(20240000 + i, close, close + spread, close - spread, close)


def test_ema_step_fixed_point():
    assert ema_step(7.5, 12, 7.5) == pytest.approx(7.5)


def test_ema_step_period_one_takes_value():
    assert ema_step(10.0, 1, 123.0) == pytest.approx(10.0)


def test_moving_average_constant_and_warmup():
    closes = [4.0] * 12
    result = moving_average(closes, 5)
    assert result[:4] == [0.0] * 4
    assert result[4:] == pytest.approx([4.0] * 8)


def test_moving_average_window_mean():
    closes = [1.0, 2.0, 3.0, 4.0, 5.0, 6.0]
    result = moving_average(closes, 3)
    assert result[2] == pytest.approx(sum(closes[0:3]) / 3)
    assert result[5] == pytest.approx(sum(closes[3:6]) / 3)


def test_moving_average_rejects_zero_period():
    with pytest.raises(ValueError):
        moving_average([1.0], 0)


def test_moving_averages_default_periods():
    closes = [2.0] * 25
    lines = moving_averages(closes)
    assert len(lines) == 3
    assert [line.count(0.0) for line in lines] == [4, 9, 19]


def test_kdj_warmup_and_identity():
    prices = [bar(i, 10.0 + (i % 4)) for i in range(30)]
    k, d, j = kdj(prices)
    assert k[:8] == [0.0] * 8 and d[:8] == [0.0] * 8 and j[:8] == [0.0] * 8
    for i in range(8, 30):
        assert j[i] == pytest.approx(3 * k[i] - 2 * d[i])
        assert 0.0 <= k[i] <= 100.0


def test_kdj_flat_window_gives_nan():
    prices = [DayPrice(i, 5.0, 5.0, 5.0, 5.0) for i in range(9)]
    k, d, j = kdj(prices)
    assert len(k) == 9
    assert k[:8] == [0.0] * 8
    assert [math.isnan(v) for v in (k[8], d[8], j[8])] == [True, True, True]


def test_macd_constant_series_is_zero():
    closes = [12.0] * 50
    dif, dea, bars = macd(closes)
    assert len(dif) == 50
    assert dif[35:] == pytest.approx([0.0] * 15)
    assert dea[35:] == pytest.approx([0.0] * 15)
    assert bars[35:] == pytest.approx([0.0] * 15)


def test_macd_bar_relation():
    closes = [10.0 + (i * 7 % 5) for i in range(60)]
    dif, dea, bars = macd(closes)
    assert dif[:35] == [0.0] * 35
    for i in range(35, 60):
        assert bars[i] == pytest.approx((dif[i] - dea[i]) * 2)


def test_macd_needs_35_days():
    with pytest.raises(ValueError):
        macd([1.0] * 34)


def test_expma_constant_series():
    result = expma([3.0] * 20, 12)
    assert result[:12] == [0.0] * 12
    assert result[12:] == pytest.approx([3.0] * 8)


def test_expma_too_short():
    with pytest.raises(ValueError):
        expma([1.0] * 11, 12)


def test_true_range_picks_gap():
    price = DayPrice(1, 11.0, 12.0, 10.0, 11.0)
    assert true_range(price, 15.0) == pytest.approx(5.0)
    assert true_range(price, 11.0) == pytest.approx(2.0)


def test_xuechi_flat_prices_collapse():
    prices = [DayPrice(i, 8.0, 8.0, 8.0, 8.0) for i in range(30)]
    upper, lower = xuechi(prices, 20)
    assert upper[:20] == [0.0] * 20
    assert upper[20:] == pytest.approx([8.0] * 10)
    assert lower[20:] == pytest.approx([8.0] * 10)


def test_xuechi_upper_above_lower():
    prices = [bar(i, 20.0 + (i % 3), spread=0.5) for i in range(40)]
    upper, lower = xuechi(prices, 20)
    for i in range(20, 40):
        assert upper[i] > lower[i]
        assert (upper[i] + lower[i]) / 2 == pytest.approx(
            (prices[i - 1].high + prices[i - 1].low) / 2
        )


def test_xuechi_needs_one_more_day_than_period():
    prices = [bar(i, 10.0) for i in range(20)]
    with pytest.raises(ValueError):
        xuechi(prices, 20)


def test_period_extremes_partial_first_period():
    result = period_extremes([1.0, 2.0, 3.0, 4.0, 5.0, 6.0, 7.0], 3)
    assert [(m.max, m.min) for m in result] == [(1.0, 1.0), (4.0, 2.0), (7.0, 5.0)]


def test_period_extremes_whole_periods():
    result = period_extremes([3.0, 1.0, 6.0, 2.0], 2)
    assert [(m.max, m.min) for m in result] == [(3.0, 1.0), (6.0, 2.0)]


def test_period_extremes_empty_and_bad_length():
    assert period_extremes([], 5) == []
    with pytest.raises(ValueError):
        period_extremes([1.0], 0)


def test_price_extremes_use_high_and_low():
    prices = [DayPrice(i, 1.0, 2.0 + i, 0.5 - i, 1.0) for i in range(4)]
    result = price_extremes(prices, 3)
    assert result[0] == MostValue(2.0, 0.5)
    assert result[1] == MostValue(5.0, -2.5)


def test_line_count_and_main_lines():
    assert line_count(LineType.MA) == 3
    assert line_count(LineType.XUECHI) == 4
    assert line_count(LineType.EXPMA) == 2
    assert line_count(LineType.KDAY) == 1
    assert is_main_line(LineType.MA) is True
    assert is_main_line(LineType.MACD) is False


def test_line_count_rejects_unknown():
    with pytest.raises(ValueError):
        line_count(LineType.NA)
    with pytest.raises(ValueError):
        is_main_line(LineType.STOCK)