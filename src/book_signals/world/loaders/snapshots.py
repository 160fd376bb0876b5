from __future__ import annotations

import csv
import json
from collections.abc import Iterator, Mapping
from pathlib import Path

import pyarrow.parquet as pq  # type: ignore[import-untyped]

from book_signals.errors import InvalidInputError
from book_signals.world.schemas import Snapshot

SNAPSHOT_COLUMNS = ("timestamp", "bid_price", "bid_volume", "ask_price", "ask_volume")


def _timestamp(raw: object) -> int:
    if isinstance(raw, int) and not isinstance(raw, bool):
        return raw
    text = str(raw).strip()
    try:
        return int(text)
    except ValueError:
        pass
    try:
        value = float(text)
    except ValueError as exc:
        raise InvalidInputError(f"timestamp must be an integer, got {raw!r}") from exc
    # 1000.0 is accepted; 1000.5, nan and inf are not.
    if not value.is_integer():
        raise InvalidInputError(f"timestamp must be an integer, got {raw!r}")
    return int(value)


def snapshot_from_row(row: Mapping[str, object]) -> Snapshot:
    missing = [c for c in SNAPSHOT_COLUMNS if row.get(c) in (None, "")]
    if missing:
        raise ValueError(f"Snapshot row is missing columns: {', '.join(missing)}")
    return Snapshot(
        timestamp=_timestamp(row["timestamp"]),
        bid_price=float(str(row["bid_price"])),
        bid_volume=float(str(row["bid_volume"])),
        ask_price=float(str(row["ask_price"])),
        ask_volume=float(str(row["ask_volume"])),
    )


def iter_csv_snapshots(path: Path) -> Iterator[Snapshot]:
    """
    CSV columns expected:
    timestamp,bid_price,bid_volume,ask_price,ask_volume
    """
    with path.open("r", encoding="utf-8-sig", newline="") as fh:
        for row in csv.DictReader(fh):
            yield snapshot_from_row(row)


def iter_jsonl_snapshots(path: Path) -> Iterator[Snapshot]:
    with path.open("r", encoding="utf-8-sig") as fh:
        for line in fh:
            line = line.strip()
            if not line:
                continue
            yield snapshot_from_row(json.loads(line))


def iter_parquet_snapshots(path: Path) -> Iterator[Snapshot]:
    table = pq.read_table(path, columns=list(SNAPSHOT_COLUMNS))
    columns = [table[name].to_pylist() for name in SNAPSHOT_COLUMNS]
    for values in zip(*columns, strict=True):
        yield snapshot_from_row(dict(zip(SNAPSHOT_COLUMNS, values, strict=True)))


def iter_snapshots(path: Path) -> Iterator[Snapshot]:
    suffix = path.suffix.lower()
    if suffix == ".csv":
        return iter_csv_snapshots(path)
    if suffix in (".jsonl", ".ndjson"):
        return iter_jsonl_snapshots(path)
    if suffix == ".parquet":
        return iter_parquet_snapshots(path)
    if suffix in (".duckdb", ".db"):
        from book_signals.world.loaders.duckdb_snapshots import iter_duckdb_snapshots

        return iter_duckdb_snapshots(path)
    raise ValueError(f"Unsupported snapshot file extension: {path.suffix}")


def load_snapshots(path: Path) -> list[Snapshot]:
    if not path.exists():
        raise FileNotFoundError(f"Missing snapshot file: {path}")
    return list(iter_snapshots(path))
