"""Process-wide compute backend selection.

The backend decides once whether batch work runs on an accelerator or on the
parallel CPU path. The decision is published as a single immutable
``BackendStatus`` so concurrent readers never observe a half-built backend.
"""
from __future__ import annotations

import concurrent.futures
import importlib
import importlib.util
import logging
import math
import threading
from collections.abc import Callable, Sequence
from dataclasses import dataclass
from enum import Enum
from typing import ClassVar, Generic, Protocol, TypeVar

from book_signals.config import BackendConfig
from book_signals.errors import (
    AcceleratedPathError,
    AcceleratorUnavailableError,
    BackendInitializationError,
    BackendNotInitializedError,
)

logger = logging.getLogger(__name__)

_T = TypeVar("_T")
_R = TypeVar("_R")


class BackendMode(str, Enum):
    UNINITIALIZED = "uninitialized"
    CPU_PARALLEL = "cpu_parallel"
    HARDWARE_ACCELERATED = "hardware_accelerated"


@dataclass(frozen=True)
class BackendStatus:
    mode: BackendMode
    message: str
    device: str | None = None

    @property
    def initialized(self) -> bool:
        return self.mode is not BackendMode.UNINITIALIZED


UNINITIALIZED_STATUS = BackendStatus(
    mode=BackendMode.UNINITIALIZED, message="backend not initialized; call initialize() first"
)


@dataclass(frozen=True)
class BatchRun(Generic[_R]):
    values: list[_R]
    mode: BackendMode
    fell_back: bool = False


class BatchStrategy(Protocol):
    mode: ClassVar[BackendMode]

    def map_batch(self, fn: Callable[[_T], _R], items: Sequence[_T]) -> list[_R]: ...


def _chunk(items: Sequence[_T], parts: int) -> list[Sequence[_T]]:
    size = max(1, math.ceil(len(items) / parts))
    return [items[start : start + size] for start in range(0, len(items), size)]


@dataclass(frozen=True)
class CpuParallelStrategy:
    """Fork-join over contiguous chunks; results are joined in input order."""

    max_workers: int = 4
    min_parallel_batch: int = 256
    mode: ClassVar[BackendMode] = BackendMode.CPU_PARALLEL

    def __post_init__(self) -> None:
        if self.max_workers < 1:
            raise ValueError(f"max_workers must be >= 1, got {self.max_workers}")
        if self.min_parallel_batch < 1:
            raise ValueError(f"min_parallel_batch must be >= 1, got {self.min_parallel_batch}")

    def map_batch(self, fn: Callable[[_T], _R], items: Sequence[_T]) -> list[_R]:
        if not items:
            return []
        if self.max_workers == 1 or len(items) < self.min_parallel_batch:
            return [fn(item) for item in items]

        def run_chunk(chunk: Sequence[_T]) -> list[_R]:
            return [fn(item) for item in chunk]

        chunks = _chunk(items, self.max_workers)
        out: list[_R] = []
        with concurrent.futures.ThreadPoolExecutor(
            max_workers=len(chunks), thread_name_prefix="book-signals"
        ) as pool:
            # Executor.map yields in submission order, not completion order.
            for part in pool.map(run_chunk, chunks):
                out.extend(part)
        return out


@dataclass(frozen=True)
class HardwareAcceleratedStrategy:
    """Accelerated variant. There is no device kernel, so every batch is refused."""

    device: str
    mode: ClassVar[BackendMode] = BackendMode.HARDWARE_ACCELERATED

    def map_batch(self, fn: Callable[[_T], _R], items: Sequence[_T]) -> list[_R]:
        raise AcceleratedPathError(f"no accelerated kernel available for {self.device}")


def probe_cuda_device() -> str:
    if importlib.util.find_spec("cupy") is None:
        raise AcceleratorUnavailableError("cupy is not installed")
    cupy = importlib.import_module("cupy")
    runtime = cupy.cuda.runtime
    if runtime.getDeviceCount() < 1:
        raise AcceleratorUnavailableError("no CUDA device visible")
    name = runtime.getDeviceProperties(0)["name"]
    if isinstance(name, bytes):
        name = name.decode("utf-8", errors="replace")
    return f"CUDA device 0: {name}"


class BackendLifecycle:
    """Exactly-once transition from UNINITIALIZED to a terminal mode.

    ``_init_lock`` serializes initializers and is held across the hardware
    probe. ``_state_lock`` only guards reads and the final publish, so
    ``status()`` never waits on a probe.
    """

    def __init__(
        self,
        config: BackendConfig | None = None,
        probe: Callable[[], str] | None = None,
    ) -> None:
        self._config = config or BackendConfig()
        self._probe = probe or probe_cuda_device
        self._init_lock = threading.Lock()
        self._state_lock = threading.Lock()
        self._status = UNINITIALIZED_STATUS
        self._active: BatchStrategy | None = None
        self._fallback: CpuParallelStrategy | None = None

    @property
    def config(self) -> BackendConfig:
        return self._config

    def status(self) -> BackendStatus:
        with self._state_lock:
            return self._status

    @property
    def mode(self) -> BackendMode:
        return self.status().mode

    def initialize(self) -> BackendStatus:
        current = self.status()
        if current.initialized:
            return current

        with self._init_lock:
            current = self.status()
            if current.initialized:
                return current

            try:
                fallback = CpuParallelStrategy(
                    max_workers=self._config.max_workers,
                    min_parallel_batch=self._config.min_parallel_batch,
                )
            except (ValueError, MemoryError) as exc:
                raise BackendInitializationError(f"cannot build CPU backend: {exc}") from exc

            active, status = self._select(fallback)
            with self._state_lock:
                self._active = active
                self._fallback = fallback
                self._status = status

        logger.info("Backend initialized: %s", status.message)
        return status

    def _select(self, fallback: CpuParallelStrategy) -> tuple[BatchStrategy, BackendStatus]:
        cpu_message = f"CPU mode active ({fallback.max_workers} workers)"
        if not self._config.enable_acceleration:
            return fallback, BackendStatus(
                mode=BackendMode.CPU_PARALLEL, message=f"{cpu_message}; acceleration disabled"
            )

        try:
            device = self._run_probe()
        except Exception as exc:  # any probe failure means CPU mode
            logger.warning("Accelerator probe failed: %s; falling back to CPU", exc)
            return fallback, BackendStatus(
                mode=BackendMode.CPU_PARALLEL,
                message=f"{cpu_message}; accelerator unavailable: {exc}",
            )

        return HardwareAcceleratedStrategy(device=device), BackendStatus(
            mode=BackendMode.HARDWARE_ACCELERATED,
            message=f"Accelerator online: {device}",
            device=device,
        )

    def _run_probe(self) -> str:
        timeout = self._config.probe_timeout_s
        future: concurrent.futures.Future[str] = concurrent.futures.Future()

        def target() -> None:
            try:
                future.set_result(self._probe())
            except Exception as exc:  # re-raised by future.result() below
                future.set_exception(exc)

        # Daemon thread: a hung probe must not be joined at interpreter exit.
        threading.Thread(target=target, name="accel-probe", daemon=True).start()
        try:
            return future.result(timeout=timeout)
        except concurrent.futures.TimeoutError as exc:
            raise AcceleratorUnavailableError(f"probe timed out after {timeout:.2f}s") from exc

    def run_batch(self, fn: Callable[[_T], _R], items: Sequence[_T]) -> BatchRun[_R]:
        with self._state_lock:
            active, fallback = self._active, self._fallback
        if active is None or fallback is None:
            raise BackendNotInitializedError(UNINITIALIZED_STATUS.message)

        if active is not fallback:
            try:
                return BatchRun(values=active.map_batch(fn, items), mode=active.mode)
            except Exception as exc:  # any accelerated failure, device errors included
                logger.warning("Accelerated path failed (%s); batch runs on CPU", exc)
                return BatchRun(
                    values=fallback.map_batch(fn, items), mode=fallback.mode, fell_back=True
                )

        return BatchRun(values=fallback.map_batch(fn, items), mode=fallback.mode)
