from __future__ import annotations

import tomllib
from dataclasses import dataclass, field, fields
from pathlib import Path
from typing import Any, TypeVar, cast


@dataclass(frozen=True)
class BackendConfig:
    enable_acceleration: bool = True
    probe_timeout_s: float = 2.0
    max_workers: int = 4
    min_parallel_batch: int = 256


@dataclass(frozen=True)
class ImbalanceConfig:
    pressure_threshold: float = 0.3


@dataclass(frozen=True)
class CurvatureConfig:
    hole_threshold: float = 0.05


@dataclass(frozen=True)
class CompetitorConfig:
    wall_threshold: float = 1000.0
    void_spread_percent: float = 1.0


@dataclass(frozen=True)
class SignalConfig:
    backend: BackendConfig = field(default_factory=BackendConfig)
    imbalance: ImbalanceConfig = field(default_factory=ImbalanceConfig)
    curvature: CurvatureConfig = field(default_factory=CurvatureConfig)
    competitor: CompetitorConfig = field(default_factory=CompetitorConfig)


_T = TypeVar("_T")


def load_toml(path: Path) -> dict[str, object]:
    with path.open("rb") as fh:
        return tomllib.load(fh)


def _section(cls: type[_T], raw: object, name: str) -> _T:
    if raw is None:
        return cls()
    if not isinstance(raw, dict):
        raise ValueError(f"[{name}] must be a table")
    known = {f.name: f for f in fields(cast(Any, cls))}
    unknown = sorted(set(raw) - set(known))
    if unknown:
        raise ValueError(f"Unknown keys in [{name}]: {', '.join(unknown)}")
    values: dict[str, Any] = {}
    for key, value in raw.items():
        default = getattr(cls(), key)
        if isinstance(default, bool):
            if not isinstance(value, bool):
                raise ValueError(f"[{name}].{key} must be a boolean")
            values[key] = value
        elif isinstance(default, int):
            if isinstance(value, bool) or not isinstance(value, int):
                raise ValueError(f"[{name}].{key} must be an integer")
            values[key] = value
        else:
            if isinstance(value, bool) or not isinstance(value, (int, float)):
                raise ValueError(f"[{name}].{key} must be a number")
            values[key] = float(value)
    return cls(**values)


def load_config(path: Path | None = None) -> SignalConfig:
    if path is None:
        return SignalConfig()
    if not path.exists():
        raise FileNotFoundError(f"Missing config file: {path}")
    raw = load_toml(path)
    sections = {"backend", "imbalance", "curvature", "competitor"}
    unknown = sorted(set(raw) - sections)
    if unknown:
        raise ValueError(f"Unknown config sections: {', '.join(unknown)}")
    return SignalConfig(
        backend=_section(BackendConfig, raw.get("backend"), "backend"),
        imbalance=_section(ImbalanceConfig, raw.get("imbalance"), "imbalance"),
        curvature=_section(CurvatureConfig, raw.get("curvature"), "curvature"),
        competitor=_section(CompetitorConfig, raw.get("competitor"), "competitor"),
    )
