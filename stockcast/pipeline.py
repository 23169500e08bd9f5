"""Build every stored series of a stock from its raw price files."""

from __future__ import annotations

import argparse
import random
import struct
import sys
from itertools import chain
from typing import Iterable

from stockcast.ar import forecast
from stockcast.axis import combine_extremes
from stockcast.gene import Features, GeneResult, Individual, Trend, best_weights, build_features, predict
from stockcast.indicators import (
    expma,
    is_main_line,
    kdj,
    line_count,
    macd,
    moving_averages,
    period_extremes,
    price_extremes,
    xuechi,
)
from stockcast.models import (
    EXPMA_PERIODS,
    FORECAST_DAYS,
    XUECHI_PERIODS,
    DayPrice,
    LineType,
    MostValue,
    StockData,
)
from stockcast.storage import (
    EXTREME_RECORD,
    FLOAT_RECORD,
    PRICE_RECORD,
    StockStore,
    StorageError,
    pack_extremes,
    pack_floats,
    pack_prices,
    parse_price_line,
    unpack_extremes,
    unpack_floats,
    unpack_prices,
)

AR_HISTORY = 120
DEFAULT_CODES = ("000988", "300161")
DEFAULT_PERIOD_LENGTH = 5
MAIN_FILE = "main"

_GENE_RECORD = struct.Struct("<6f6bf")
_STOCK_RECORD = struct.Struct("<9s12s3x4i")

_KLINE_SOURCES = {
    LineType.KDAY: (LineType.DAY, 2),
    LineType.KWEEK: (LineType.WEEK, 1),
}


def _parse_prices(text: str, extra_fields: int) -> list[DayPrice]:
    tokens = text.split()
    width = 5 + extra_fields
    prices = []
    for start in range(0, len(tokens), width):
        chunk = tokens[start:start + width]
        if len(chunk) == width:
            prices.append(parse_price_line(" ".join(chunk), extra_fields))
        elif len(chunk) >= 5:
            prices.append(parse_price_line(" ".join(chunk[:5])))
    return prices


def build_kline(store: StockStore, stock: StockData, line_type) -> list[DayPrice]:
    """Convert a day or week text file into binary price bars and count them."""
    try:
        source, extra_fields = _KLINE_SOURCES[LineType(line_type)]
    except (KeyError, ValueError):
        raise ValueError(f"no price source for line type {line_type!r}") from None
    prices = _parse_prices(store.read_text(stock.code, source), extra_fields)
    store.write_bytes(stock.code, line_type, pack_prices(prices))
    if LineType(line_type) is LineType.KDAY:
        stock.days = len(prices)
    else:
        stock.weeks = len(prices)
    return prices


def _read_prices(store: StockStore, stock: StockData, line_type) -> list[DayPrice]:
    count = stock.days if LineType(line_type) is LineType.KDAY else stock.weeks
    data = store.read_bytes(stock.code, line_type)
    needed = count * PRICE_RECORD.size
    if len(data) < needed:
        raise StorageError(f"{stock.code}: expected {count} price records")
    return unpack_prices(data[:needed])


def _read_series(store: StockStore, stock: StockData, line_type, lines: int) -> list[list[float]]:
    days = stock.days
    data = store.read_bytes(stock.code, line_type)
    needed = lines * days * FLOAT_RECORD.size
    if len(data) < needed:
        raise StorageError(f"{stock.code}: expected {lines} series of {days} values")
    values = unpack_floats(data[:needed])
    return [values[i * days:(i + 1) * days] for i in range(lines)]


def save_extremes(store: StockStore, stock: StockData, line_type, period_length: int) -> list[MostValue]:
    """Append the range of every period of a stored line and return those ranges."""
    if period_length < 1:
        raise ValueError("period length must be at least 1")
    line_type = LineType(line_type)
    lines = line_count(line_type)
    if line_type in (LineType.KDAY, LineType.KWEEK):
        per_line = [price_extremes(_read_prices(store, stock, line_type), period_length)]
    else:
        per_line = [
            period_extremes(series, period_length)
            for series in _read_series(store, stock, line_type, lines)
        ]
    combined = [combine_extremes(group) for group in zip(*per_line)]
    if line_type is LineType.KDAY:
        stock.period_length = period_length
        stock.period_num = len(combined)
    store.append_bytes(stock.code, line_type, pack_extremes(combined))
    return combined


def recent_extremes(store: StockStore, stock: StockData, line_type, num: int) -> MostValue:
    """Range over the last num saved periods; main lines include the daily prices."""
    if num < 0:
        raise ValueError("number of periods must not be negative")
    if num * stock.period_length > stock.days:
        raise ValueError(f"{num} periods reach past the {stock.days} stored days")
    main = is_main_line(line_type)
    data = store.read_bytes(stock.code, line_type)
    size = num * EXTREME_RECORD.size
    if size > len(data):
        raise StorageError(f"{stock.code}: fewer than {num} saved periods")
    most = combine_extremes(unpack_extremes(data[len(data) - size:]))
    if main:
        most.merge(recent_extremes(store, stock, LineType.KDAY, num))
    return most


def ar_predict(store: StockStore, stock: StockData, num: int = AR_HISTORY) -> list[float]:
    """Store all closes followed by an AR forecast fitted to the last num of them."""
    closes = [price.close for price in _read_prices(store, stock, LineType.KDAY)]
    if not 0 < num <= len(closes):
        raise ValueError(f"cannot use {num} of {len(closes)} closes")
    store.write_bytes(stock.code, LineType.PRED, pack_floats(closes))
    predicted = forecast(closes[-num:], FORECAST_DAYS)
    store.append_bytes(stock.code, LineType.PRED, pack_floats(predicted))
    return predicted


def _pack_gene(result: GeneResult) -> bytes:
    last = result.last
    return _GENE_RECORD.pack(
        *result.best.weights,
        result.best.fitness,
        last.ma, last.expma, last.xuechi, last.kdj, last.macd, last.trend,
        result.probability,
    )


def save_gene_result(store: StockStore, stock: StockData, rng=None) -> GeneResult:
    """Train indicator weights on stored series and store the rise probability."""
    days = stock.days
    ma = _read_series(store, stock, LineType.MA, 3)
    expmas = _read_series(store, stock, LineType.EXPMA, 2)
    channel = _read_series(store, stock, LineType.XUECHI, 4)
    kdj_lines = _read_series(store, stock, LineType.KDJ, 3)
    macd_lines = _read_series(store, stock, LineType.MACD, 3)
    pred = store.read_bytes(stock.code, LineType.PRED)
    needed = (days + 1) * FLOAT_RECORD.size
    if len(pred) < needed:
        raise StorageError(f"{stock.code}: forecast file holds fewer than {days + 1} values")
    closes = unpack_floats(pred[:needed])

    features = build_features(
        ma[0], ma[1], expmas[0], expmas[1], channel[0], channel[1],
        closes, kdj_lines[0], kdj_lines[2], macd_lines[2],
    )
    best = best_weights(features, rng if rng is not None else random.Random())
    last = features[-1]
    result = GeneResult(best, last, predict(best, last))
    store.write_bytes(stock.code, LineType.GENE, _pack_gene(result))
    return result


def read_gene_result(store: StockStore, stock: StockData) -> GeneResult:
    """Load the result written by save_gene_result."""
    data = store.read_bytes(stock.code, LineType.GENE)
    if len(data) != _GENE_RECORD.size:
        raise StorageError(f"{stock.code}: gene file has {len(data)} bytes")
    fields = _GENE_RECORD.unpack(data)
    try:
        last = Features(*(Trend(value) for value in fields[6:12]))
    except ValueError as exc:
        raise StorageError(f"{stock.code}: malformed gene file") from exc
    return GeneResult(Individual(fields[:5], fields[5]), last, fields[12])


def calculate(store: StockStore, stock: StockData, period_length: int) -> None:
    """Compute and store every line, range, forecast and gene result of a stock."""
    code = stock.code
    build_kline(store, stock, LineType.KDAY)
    build_kline(store, stock, LineType.KWEEK)
    save_extremes(store, stock, LineType.KDAY, period_length)
    save_extremes(store, stock, LineType.KWEEK, period_length)

    prices = _read_prices(store, stock, LineType.KDAY)
    closes = [price.close for price in prices]

    store.write_bytes(code, LineType.MA, pack_floats(chain(*moving_averages(closes))))
    save_extremes(store, stock, LineType.MA, period_length)
    store.write_bytes(code, LineType.KDJ, pack_floats(chain(*kdj(prices))))
    save_extremes(store, stock, LineType.KDJ, period_length)
    store.write_bytes(code, LineType.MACD, pack_floats(chain(*macd(closes))))
    save_extremes(store, stock, LineType.MACD, period_length)
    store.write_bytes(
        code, LineType.EXPMA, pack_floats(chain(*(expma(closes, p) for p in EXPMA_PERIODS)))
    )
    save_extremes(store, stock, LineType.EXPMA, period_length)
    channels = chain.from_iterable(xuechi(prices, p) for p in XUECHI_PERIODS)
    store.write_bytes(code, LineType.XUECHI, pack_floats(chain(*channels)))
    save_extremes(store, stock, LineType.XUECHI, period_length)

    ar_predict(store, stock, AR_HISTORY)
    save_gene_result(store, stock)


def _pack_stock(stock: StockData) -> bytes:
    return _STOCK_RECORD.pack(
        stock.code.encode("utf-8"),
        stock.name.encode("utf-8"),
        stock.days,
        stock.weeks,
        stock.period_length,
        stock.period_num,
    )


def load(
    store: StockStore,
    codes: Iterable[str] = DEFAULT_CODES,
    period_length: int = DEFAULT_PERIOD_LENGTH,
) -> list[StockData]:
    """Process each stock and write the summary file of their counts."""
    stocks = []
    for code in codes:
        stock = StockData(code)
        calculate(store, stock, period_length)
        stocks.append(stock)
    store.write_bytes(MAIN_FILE, LineType.STOCK, b"".join(_pack_stock(s) for s in stocks))
    return stocks


def main(argv=None) -> int:
    parser = argparse.ArgumentParser(
        prog="stockcast", description="Compute indicators and forecasts for stock price files."
    )
    parser.add_argument("directory", help="directory holding the .d and .w price files")
    parser.add_argument("codes", nargs="*", default=list(DEFAULT_CODES), help="stock codes")
    parser.add_argument("--period-length", type=int, default=DEFAULT_PERIOD_LENGTH)
    args = parser.parse_args(argv)

    store = StockStore(args.directory)
    try:
        stocks = load(store, args.codes, args.period_length)
        results = [(stock, read_gene_result(store, stock)) for stock in stocks]
    except (StorageError, ValueError) as exc:
        print(f"error: {exc}", file=sys.stderr)
        return 1
    for stock, result in results:
        print(
            f"{stock.code}: {stock.days} days, {stock.weeks} weeks, "
            f"rise probability {result.probability * 100:.2f}%"
        )
    return 0


if __name__ == "__main__":
    sys.exit(main())