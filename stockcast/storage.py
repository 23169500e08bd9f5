"""Binary and text files that hold a stock's series."""

from __future__ import annotations

import struct
from pathlib import Path
from typing import Iterable

from stockcast.models import DayPrice, LineType, MostValue

PRICE_RECORD = struct.Struct("<I4f")
FLOAT_RECORD = struct.Struct("<f")
EXTREME_RECORD = struct.Struct("<2f")

_EXTENSIONS = {
    LineType.DAY: ".d",
    LineType.WEEK: ".w",
    LineType.KDAY: ".kd",
    LineType.KWEEK: ".kw",
    LineType.MA: ".ma",
    LineType.EXPMA: ".exp",
    LineType.XUECHI: ".xue",
    LineType.KDJ: ".kdj",
    LineType.MACD: ".mcd",
    LineType.PRED: ".ar",
    LineType.STOCK: ".stc",
    LineType.GENE: ".ge",
    LineType.CHOICE: ".cho",
}


class StorageError(Exception):
    """A stock file is missing, unreadable or malformed."""


def extension(line_type) -> str:
    """File extension used for a kind of series."""
    try:
        return _EXTENSIONS[LineType(line_type)]
    except (KeyError, ValueError):
        raise StorageError(f"no file kind for line type {line_type!r}") from None


def _records(record: struct.Struct, data: bytes, what: str):
    if len(data) % record.size:
        raise StorageError(
            f"{len(data)} bytes is not a whole number of {what} records of {record.size} bytes"
        )
    return record.iter_unpack(data)


def pack_prices(prices: Iterable[DayPrice]) -> bytes:
    """Encode price bars as fixed 20-byte records."""
    try:
        return b"".join(
            PRICE_RECORD.pack(p.date, p.open, p.high, p.low, p.close) for p in prices
        )
    except (struct.error, OverflowError) as exc:
        raise StorageError(f"cannot encode price record: {exc}") from exc


def unpack_prices(data: bytes) -> list[DayPrice]:
    """Decode price bars written by pack_prices."""
    return [DayPrice(*fields) for fields in _records(PRICE_RECORD, data, "price")]


def pack_floats(values: Iterable[float]) -> bytes:
    """Encode values as consecutive 32-bit floats."""
    values = list(values)
    try:
        return struct.pack(f"<{len(values)}f", *values)
    except (struct.error, OverflowError) as exc:
        raise StorageError(f"cannot encode float values: {exc}") from exc


def unpack_floats(data: bytes) -> list[float]:
    """Decode values written by pack_floats."""
    return [value for (value,) in _records(FLOAT_RECORD, data, "float")]


def pack_extremes(extremes: Iterable[MostValue]) -> bytes:
    """Encode max/min pairs as 8-byte records."""
    try:
        return b"".join(EXTREME_RECORD.pack(m.max, m.min) for m in extremes)
    except (struct.error, OverflowError) as exc:
        raise StorageError(f"cannot encode extreme values: {exc}") from exc


def unpack_extremes(data: bytes) -> list[MostValue]:
    """Decode max/min pairs written by pack_extremes."""
    return [MostValue(high, low) for high, low in _records(EXTREME_RECORD, data, "extreme")]


def _as_float32(value: float) -> float:
    try:
        return FLOAT_RECORD.unpack(FLOAT_RECORD.pack(value))[0]
    except (struct.error, OverflowError) as exc:
        raise StorageError(f"value {value!r} does not fit a 32-bit float") from exc


def parse_price_line(line: str, extra_fields: int = 0) -> DayPrice:
    """Parse 'date open high low close' followed by extra numeric fields that are ignored."""
    fields = line.split()
    expected = 5 + extra_fields
    if len(fields) != expected:
        raise StorageError(f"expected {expected} values, found {len(fields)}: {line!r}")
    try:
        date = int(fields[0])
        numbers = [float(field) for field in fields[1:]]
    except ValueError as exc:
        raise StorageError(f"malformed price line: {line!r}") from exc
    if not 0 <= date <= 0xFFFFFFFF:
        raise StorageError(f"date {date} is out of range")
    open_, high, low, close = (_as_float32(value) for value in numbers[:4])
    return DayPrice(date, open_, high, low, close)


class StockStore:
    """A directory of per-stock files named by code and series kind."""

    def __init__(self, directory) -> None:
        self.directory = Path(directory)

    def path(self, code: str, line_type) -> Path:
        return self.directory / f"{code}{extension(line_type)}"

    def read_bytes(self, code: str, line_type) -> bytes:
        path = self.path(code, line_type)
        try:
            return path.read_bytes()
        except OSError as exc:
            raise StorageError(f"cannot open file {path.name}") from exc

    def write_bytes(self, code: str, line_type, data: bytes) -> None:
        path = self.path(code, line_type)
        try:
            path.write_bytes(data)
        except OSError as exc:
            raise StorageError(f"cannot write file {path.name}") from exc

    def append_bytes(self, code: str, line_type, data: bytes) -> None:
        """Append to an existing file; a missing file is an error."""
        path = self.path(code, line_type)
        try:
            with path.open("r+b") as handle:
                handle.seek(0, 2)
                handle.write(data)
        except OSError as exc:
            raise StorageError(f"cannot append to file {path.name}") from exc

    def read_text(self, code: str, line_type) -> str:
        path = self.path(code, line_type)
        try:
            return path.read_text(encoding="utf-8")
        except (OSError, UnicodeDecodeError) as exc:
            raise StorageError(f"cannot read file {path.name}") from exc