from __future__ import annotations

from collections.abc import Iterator
from pathlib import Path

import duckdb

from book_signals.world.loaders.snapshots import SNAPSHOT_COLUMNS, snapshot_from_row
from book_signals.world.schemas import Snapshot

DEFAULT_TABLE = "snapshots"

_COLUMN_LIST = ", ".join(f'"{c}"' for c in SNAPSHOT_COLUMNS)


def _require_identifier(name: str) -> str:
    if not name.isidentifier():
        raise ValueError(f"Invalid table name: {name!r}")
    return name


def create_snapshot_table(con: duckdb.DuckDBPyConnection, table: str = DEFAULT_TABLE) -> None:
    con.execute(
        f"create table if not exists {_require_identifier(table)}("
        '"timestamp" bigint, bid_price double, bid_volume double, '
        "ask_price double, ask_volume double)"
    )


def iter_duckdb_snapshots(path: Path, table: str = DEFAULT_TABLE) -> Iterator[Snapshot]:
    """Rows come back ordered by timestamp."""
    con = duckdb.connect(str(path), read_only=True)
    try:
        rows = con.execute(
            f'select {_COLUMN_LIST} from {_require_identifier(table)} order by "timestamp"'
        ).fetchall()
    finally:
        con.close()
    for values in rows:
        yield snapshot_from_row(dict(zip(SNAPSHOT_COLUMNS, values, strict=True)))
