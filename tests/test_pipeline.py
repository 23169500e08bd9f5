import math
import random

import pytest

from stockcast.gene import predict
from stockcast.indicators import price_extremes
from stockcast.models import FORECAST_DAYS, LineType, MostValue, StockData
from stockcast.pipeline import (
    ar_predict,
    build_kline,
    calculate,
    load,
    main,
    read_gene_result,
    recent_extremes,
    save_extremes,
    save_gene_result,
)
from stockcast.storage import StockStore, StorageError, unpack_extremes, unpack_floats, unpack_prices

CODE = "000988"
DAYS = 260
WEEKS = 55


def _bar(i):
    base = 10 + 2 * math.sin(i / 7) + 0.01 * i + 0.3 * math.sin(i * 1.3)
    open_ = round(base, 2)
    close = round(base + 0.2 * math.cos(i * 0.9), 2)
    high = round(max(open_, close) + 0.15, 2)
    low = round(min(open_, close) - 0.15, 2)
    return open_, high, low, close


def _write_sources(store, code=CODE):
    day_lines = [
        "{} {} {} {} {} 1000 2000".format(20230101 + i, *_bar(i)) for i in range(DAYS)
    ]
    week_lines = [
        "{} {} {} {} {} 5000".format(20230101 + 7 * i, *_bar(i * 5)) for i in range(WEEKS)
    ]
    store.path(code, LineType.DAY).write_text("\n".join(day_lines) + "\n", encoding="utf-8")
    store.path(code, LineType.WEEK).write_text("\n".join(week_lines) + "\n", encoding="utf-8")


@pytest.fixture
def store(tmp_path):
    store = StockStore(tmp_path)
    _write_sources(store)
    return store


@pytest.fixture(scope="module")
def calculated(tmp_path_factory):
    store = StockStore(tmp_path_factory.mktemp("calc"))
    _write_sources(store)
    stock = StockData(CODE)
    calculate(store, stock, 5)
    return store, stock


def test_build_kline_day(store):
    stock = StockData(CODE)
    prices = build_kline(store, stock, LineType.KDAY)
    assert stock.days == DAYS
    assert len(prices) == DAYS
    assert prices[0].date == 20230101
    assert unpack_prices(store.read_bytes(CODE, LineType.KDAY)) == prices


def test_build_kline_week(store):
    stock = StockData(CODE)
    prices = build_kline(store, stock, LineType.KWEEK)
    assert stock.weeks == WEEKS
    assert unpack_prices(store.read_bytes(CODE, LineType.KWEEK)) == prices


def test_build_kline_invalid_type(store):
    with pytest.raises(ValueError):
        build_kline(store, StockData(CODE), LineType.MA)


def test_build_kline_malformed(tmp_path):
    store = StockStore(tmp_path)
    store.path(CODE, LineType.DAY).write_text("20230101 1 2 0.5 x 3 4\n", encoding="utf-8")
    with pytest.raises(StorageError):
        build_kline(store, StockData(CODE), LineType.KDAY)


def test_build_kline_missing_file(tmp_path):
    with pytest.raises(StorageError):
        build_kline(StockStore(tmp_path), StockData(CODE), LineType.KDAY)


def test_save_extremes_kday(store):
    stock = StockData(CODE)
    prices = build_kline(store, stock, LineType.KDAY)
    extremes = save_extremes(store, stock, LineType.KDAY, 7)
    assert stock.period_length == 7
    assert stock.period_num == len(extremes) == math.ceil(DAYS / 7)
    assert extremes == price_extremes(prices, 7)
    data = store.read_bytes(CODE, LineType.KDAY)
    assert len(data) == DAYS * 20 + 8 * len(extremes)
    assert unpack_extremes(data[DAYS * 20:]) == extremes


def test_save_extremes_bad_period(store):
    stock = StockData(CODE)
    build_kline(store, stock, LineType.KDAY)
    with pytest.raises(ValueError):
        save_extremes(store, stock, LineType.KDAY, 0)


def test_recent_extremes_kday(store):
    stock = StockData(CODE)
    prices = build_kline(store, stock, LineType.KDAY)
    save_extremes(store, stock, LineType.KDAY, 5)
    recent = recent_extremes(store, stock, LineType.KDAY, 4)
    assert recent == MostValue(max(p.high for p in prices[-20:]), min(p.low for p in prices[-20:]))


def test_recent_extremes_too_many(store):
    stock = StockData(CODE)
    build_kline(store, stock, LineType.KDAY)
    save_extremes(store, stock, LineType.KDAY, 5)
    with pytest.raises(ValueError):
        recent_extremes(store, stock, LineType.KDAY, DAYS // 5 + 1)


def test_ar_predict(store):
    stock = StockData(CODE)
    prices = build_kline(store, stock, LineType.KDAY)
    predicted = ar_predict(store, stock, 120)
    assert len(predicted) == FORECAST_DAYS
    stored = unpack_floats(store.read_bytes(CODE, LineType.PRED))
    assert len(stored) == DAYS + FORECAST_DAYS
    assert stored[:DAYS] == [p.close for p in prices]
    assert stored[DAYS:] == pytest.approx(predicted, rel=1e-6)


def test_ar_predict_too_much_history(store):
    stock = StockData(CODE)
    build_kline(store, stock, LineType.KDAY)
    with pytest.raises(ValueError):
        ar_predict(store, stock, DAYS + 1)


def test_calculate_file_sizes(calculated):
    store, stock = calculated
    periods = math.ceil(DAYS / 5)
    assert stock.days == DAYS
    assert stock.weeks == WEEKS
    assert stock.period_num == periods
    for line_type, lines in (
        (LineType.MA, 3),
        (LineType.KDJ, 3),
        (LineType.MACD, 3),
        (LineType.EXPMA, 2),
        (LineType.XUECHI, 4),
    ):
        assert len(store.read_bytes(CODE, line_type)) == lines * DAYS * 4 + 8 * periods


def test_recent_extremes_main_line_covers_prices(calculated):
    store, stock = calculated
    main_range = recent_extremes(store, stock, LineType.MA, 10)
    price_range = recent_extremes(store, stock, LineType.KDAY, 10)
    assert main_range.max >= price_range.max
    assert main_range.min <= price_range.min


def test_gene_result_round_trip(calculated):
    store, stock = calculated
    result = read_gene_result(store, stock)
    assert 0.0 <= result.probability <= 1.0
    assert result.probability == pytest.approx(predict(result.best, result.last), rel=1e-6)
    assert 0.0 <= result.best.fitness <= 1.0


def test_save_gene_result_is_seeded(calculated):
    store, stock = calculated
    first = save_gene_result(store, stock, random.Random(3))
    second = save_gene_result(store, stock, random.Random(3))
    assert first == second
    stored = read_gene_result(store, stock)
    assert stored.last == first.last
    assert stored.best.weights == pytest.approx(first.best.weights, rel=1e-6)


def test_read_gene_result_corrupt(tmp_path):
    store = StockStore(tmp_path)
    store.write_bytes(CODE, LineType.GENE, b"\x00" * 10)
    with pytest.raises(StorageError):
        read_gene_result(store, StockData(CODE))


def test_load_writes_summary(store):
    stocks = load(store, [CODE], 5)
    assert [s.code for s in stocks] == [CODE]
    assert stocks[0].days == DAYS
    data = store.read_bytes("main", LineType.STOCK)
    assert len(data) == 40
    assert data[:6] == CODE.encode()


def test_main_success(store, capsys):
    assert main([str(store.directory), CODE]) == 0
    assert CODE in capsys.readouterr().out


def test_main_missing_files(tmp_path, capsys):
    assert main([str(tmp_path), CODE]) == 1
    assert "error" in capsys.readouterr().err