# stockcast

stockcast turns plain-text daily and weekly stock quotes into a set of
technical indicators, a short autoregressive price forecast and a
probability that the price rises on the next trading day.

It needs nothing beyond the Python standard library (Python 3.10 or later).

## Input

All files of a stock live in one data directory and are named by the stock
code plus an extension. The two inputs are text files:

- `CODE.d` — daily quotes, one row per trading day:
  `date open high low close <two more numbers>`
- `CODE.w` — weekly quotes, one row per week:
  `date open high low close <one more number>`

The trailing numbers are read and ignored. `date` is a non-negative integer
(for example `20240105`). A malformed row raises `StorageError`.

The full pipeline needs more than 200 daily rows: the genetic model trains on
the last 200 days, the AR forecast uses the last 120 closes, MACD needs 35
warm-up days and the 60-day channel needs 61.

## Output

`stockcast.pipeline.calculate` writes these little-endian binary files:

| Extension | Content                                                            |
|-----------|--------------------------------------------------------------------|
| `.kd`     | daily bars: 32-bit date, then open, high, low, close as 32-bit floats |
| `.kw`     | weekly bars, same layout                                           |
| `.ma`     | MA5, MA10 and MA20, one series after another                       |
| `.exp`    | EXPMA12 and EXPMA50                                                |
| `.xue`    | channel lines: upper and lower for 20 days, then for 60 days       |
| `.kdj`    | K, D and J lines                                                   |
| `.mcd`    | DIF, DEA and the MACD bars                                         |
| `.ar`     | every daily close, followed by the three forecast closes           |
| `.ge`     | five best weights, their fitness, the last day's six signals and the rise probability |
| `.stc`    | written as `main.stc` by `load`: code, name, days, weeks, period length and period count of each stock |

Indicator series hold one float per day; days before an indicator has enough
history are stored as `0.0`. The `.kd`, `.kw`, `.ma`, `.exp`, `.xue`, `.kdj`
and `.mcd` files are followed by one (max, min) pair of floats per period of
`period_length` days, taken over all lines of the file; when the day count is
not a multiple of the period length, the first period is the short one.

## Command line

```
stockcast DIRECTORY [CODE ...] [--period-length N]
```

Runs the whole pipeline for each code (default `000988 300161`, period
length 5) on the files in `DIRECTORY`, writes `main.stc`, and prints one line
per stock with its day and week counts and the rise probability. On a
missing or malformed file it prints the error and exits with status 1.

## Library use

```python
from stockcast.storage import StockStore
from stockcast.pipeline import load, read_gene_result

store = StockStore("database")
stocks = load(store, ["000988", "300161"], 5)
result = read_gene_result(store, stocks[0])
print(result.probability, result.best.weights)
```

The steps can also be run one at a time: `build_kline`, `save_extremes`,
`recent_extremes`, `ar_predict`, `save_gene_result` and `calculate` in
`stockcast.pipeline`, all taking a `StockStore` and a `StockData`.

The computations work on plain lists:

```python
from stockcast.indicators import moving_average
from stockcast.ar import forecast

closes = [10.0, 10.2, 10.1, 10.4, 10.6, 10.5, 10.8]
ma5 = moving_average(closes, 5)      # first four entries are 0.0
```

- `stockcast.models` — `LineType`, `StockData`, `DayPrice` and `MostValue`
  (a running max/min with `update` and `merge`).
- `stockcast.storage` — `StockStore`, file extensions, and packing and
  unpacking of price, float and extreme records.
- `stockcast.indicators` — `moving_average`, `moving_averages`, `kdj`,
  `macd`, `expma`, `true_range`, `xuechi`, `period_extremes`,
  `price_extremes`, `line_count` and `is_main_line`.
- `stockcast.ar` — `standardize`, `autocorrelation`, `levinson_durbin`,
  AIC order selection (`choose_order`, orders 1 to 10) and `forecast`,
  which needs more than 10 values.
- `stockcast.gene` — crossover, channel, KDJ and trend signals,
  `build_features`, and a genetic algorithm (`best_weights`) that fits
  sigmoid weights to them. Every random step takes an optional
  `random.Random` so runs can be reproduced.
- `stockcast.axis` — `Axis`, `axis_marks` and `plot_points` for turning
  values into labelled axis marks and pixel positions.
- `stockcast.queue` — `MonotonicQueue` and `sliding_extreme` for
  sliding-window maxima and minima.

## What it does not do

stockcast computes and stores data only. It draws no charts and has no
screens: `stockcast.axis` works out coordinates and labels but renders
nothing. It has no user accounts, logins or watch lists, and it does not
fetch quotes; the `.d` and `.w` files must be supplied.

## Running the tests

```
pip install -e ".[test]"
pytest
```