from __future__ import annotations

import argparse
from pathlib import Path

import duckdb

from book_signals.world.loaders.duckdb_snapshots import DEFAULT_TABLE, create_snapshot_table
from book_signals.world.loaders.snapshots import load_snapshots


def main() -> None:
    parser = argparse.ArgumentParser(description="Create the snapshot table in a DuckDB file")
    parser.add_argument("--db", type=str, default=str(Path("data") / "processed" / "book.duckdb"))
    parser.add_argument("--table", type=str, default=DEFAULT_TABLE)
    parser.add_argument("--seed", type=str, help="Optional CSV/JSONL/Parquet snapshots to insert")
    args = parser.parse_args()

    db_path = Path(args.db)
    db_path.parent.mkdir(parents=True, exist_ok=True)
    con = duckdb.connect(str(db_path))
    create_snapshot_table(con, args.table)
    inserted = 0
    if args.seed:
        rows = [
            (s.timestamp, s.bid_price, s.bid_volume, s.ask_price, s.ask_volume)
            for s in load_snapshots(Path(args.seed))
        ]
        if rows:
            con.executemany(f"insert into {args.table} values (?, ?, ?, ?, ?)", rows)
        inserted = len(rows)
    con.close()
    print(f"Initialized {db_path} ({inserted} snapshots inserted into {args.table})")


if __name__ == "__main__":
    main()
