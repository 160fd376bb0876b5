from __future__ import annotations

import argparse
import json
import logging
from collections.abc import Callable
from pathlib import Path

import duckdb

from book_signals.config import load_config
from book_signals.core.facade import SignalFusionFacade
from book_signals.errors import BookSignalsError
from book_signals.world.loaders.snapshots import load_snapshots
from book_signals.world.schemas import Snapshot


def _facade(args: argparse.Namespace) -> SignalFusionFacade:
    config = load_config(Path(args.config) if args.config else None)
    return SignalFusionFacade(config)


def _snapshots(args: argparse.Namespace) -> list[Snapshot] | None:
    if not args.snapshots:
        print("No snapshots file. Use --snapshots PATH (CSV, JSONL, Parquet or DuckDB).")
        return None
    return load_snapshots(Path(args.snapshots))


def _cmd_status(args: argparse.Namespace) -> int:
    facade = _facade(args)
    status = facade.init_backend()
    print(
        json.dumps(
            {"mode": status.mode.value, "message": status.message, "device": status.device},
            indent=2,
        )
    )
    return 0


def _cmd_imbalance(args: argparse.Namespace) -> int:
    snapshots = _snapshots(args)
    if snapshots is None:
        return 2
    facade = _facade(args)
    facade.init_backend()
    report = facade.compute_imbalance_batch(snapshots)
    for result in report.results:
        print(
            json.dumps(
                {
                    "timestamp": result.timestamp,
                    "obi": round(result.obi, 6),
                    "entropy": round(result.entropy, 6),
                    "signal": result.signal.value,
                }
            )
        )
    print(
        json.dumps(
            {
                "count": len(report.results),
                "mode": report.mode.value,
                "fell_back": report.fell_back,
                "latency_ms": round(report.latency_ms, 4),
            },
            indent=2,
        )
    )
    return 0


def _cmd_curvature(args: argparse.Namespace) -> int:
    snapshots = _snapshots(args)
    if snapshots is None:
        return 2
    facade = _facade(args)
    facade.init_backend()
    curvatures = facade.compute_curvature(snapshots)
    print(
        json.dumps(
            {
                "curvature": [round(c, 6) for c in curvatures],
                "manifold_curvature": round(facade.manifold_curvature(snapshots), 6),
                "liquidity_hole": facade.detect_hole(snapshots),
            },
            indent=2,
        )
    )
    return 0


def _cmd_classify(args: argparse.Namespace) -> int:
    facade = _facade(args)
    print(json.dumps({"obi": args.obi, "signal": facade.classify_imbalance(args.obi).value}))
    return 0


def _cmd_competitor(args: argparse.Namespace) -> int:
    facade = _facade(args)
    verdict = facade.evaluate_competitor(args.bid_volume, args.ask_volume, args.spread_percent)
    print(json.dumps({"verdict": verdict.value}))
    return 0


def _cmd_book(args: argparse.Namespace) -> int:
    snapshots = _snapshots(args)
    if snapshots is None:
        return 2
    facade = _facade(args)
    verdict = facade.evaluate_book(snapshots)
    print(json.dumps({"snapshots": len(snapshots), "verdict": verdict.value}))
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="book-signals")
    parser.add_argument("--config", type=str, help="Path to signals TOML config")
    parser.add_argument("--log-level", type=str, default="WARNING")
    sub = parser.add_subparsers(dest="command", required=True)

    status = sub.add_parser("status", help="Initialize the compute backend and report its mode")
    status.set_defaults(func=_cmd_status)

    imbalance = sub.add_parser("imbalance", help="Order-book imbalance for a snapshot file")
    imbalance.add_argument("--snapshots", type=str, help="Path to snapshot file")
    imbalance.set_defaults(func=_cmd_imbalance)

    curvature = sub.add_parser("curvature", help="Curvature and liquidity-hole detection")
    curvature.add_argument("--snapshots", type=str, help="Path to snapshot file")
    curvature.set_defaults(func=_cmd_curvature)

    classify = sub.add_parser("classify", help="Classify a single imbalance value")
    classify.add_argument("--obi", type=float, required=True)
    classify.set_defaults(func=_cmd_classify)

    competitor = sub.add_parser("competitor", help="Evaluate the competitor-wall heuristic")
    competitor.add_argument("--bid-volume", type=float, required=True)
    competitor.add_argument("--ask-volume", type=float, required=True)
    competitor.add_argument("--spread-percent", type=float, required=True)
    competitor.set_defaults(func=_cmd_competitor)

    book = sub.add_parser("book", help="Competitor heuristic over an aggregated snapshot file")
    book.add_argument("--snapshots", type=str, help="Path to snapshot file")
    book.set_defaults(func=_cmd_book)

    return parser


def main(argv: list[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    logging.basicConfig(
        level=getattr(logging, str(args.log_level).upper(), logging.WARNING),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    func: Callable[[argparse.Namespace], int] = args.func
    try:
        return int(func(args))
    except (BookSignalsError, FileNotFoundError, ValueError, duckdb.Error) as exc:
        print(f"error: {exc}")
        return 2


if __name__ == "__main__":
    raise SystemExit(main())
