from __future__ import annotations

import os
import subprocess
import sys
import textwrap
import time
from pathlib import Path

SRC = Path(__file__).resolve().parents[2] / "src"

SCRIPT = textwrap.dedent(
    """
    import time

    from book_signals.config import BackendConfig
    from book_signals.core.backend import BackendLifecycle


    def hung_device_check() -> str:
        time.sleep(4.0)
        return "LateGPU"


    backend = BackendLifecycle(BackendConfig(probe_timeout_s=0.05), probe=hung_device_check)
    print(backend.initialize().mode.value)
    """
)


def test_hung_accelerator_check_does_not_delay_exit() -> None:
    env = dict(os.environ)
    env["PYTHONPATH"] = os.pathsep.join(p for p in (str(SRC), env.get("PYTHONPATH")) if p)
    start = time.perf_counter()
    proc = subprocess.run(
        [sys.executable, "-c", SCRIPT],
        env=env,
        capture_output=True,
        text=True,
        timeout=30,
        check=False,
    )
    elapsed = time.perf_counter() - start
    assert proc.returncode == 0, proc.stderr
    assert proc.stdout.strip() == "cpu_parallel"
    assert elapsed < 3.0
