"""Run calibrations off the calling thread.

The calibration functions are synchronous; these helpers submit them to a
``ThreadPoolExecutor`` and hand back the ``Future``. Cancelling the future
before it starts prevents the run; a running calibration completes.
"""

from __future__ import annotations

import atexit
import threading
from concurrent.futures import Future, ThreadPoolExecutor
from typing import Sequence

from nirscal.config import AnalysisConfig
from nirscal.data.types import Sample

from .run import StepsSpec, run_analysis, run_optimization_sweep

_default_executor: ThreadPoolExecutor | None = None
_executor_lock = threading.Lock()


def default_executor() -> ThreadPoolExecutor:
    """Shared single-worker executor, created on first use."""
    global _default_executor
    with _executor_lock:
        if _default_executor is None:
            _default_executor = ThreadPoolExecutor(max_workers=1, thread_name_prefix="nirscal")
            atexit.register(_default_executor.shutdown, wait=False)
        return _default_executor


def submit_analysis(
    samples: Sequence[Sample],
    steps: StepsSpec,
    n_components: int,
    config: AnalysisConfig | None = None,
    *,
    executor: ThreadPoolExecutor | None = None,
) -> "Future":
    """Submit :func:`run_analysis`; the future resolves to ``ModelResults``."""
    pool = executor or default_executor()
    return pool.submit(run_analysis, list(samples), steps, n_components, config)


def submit_sweep(
    samples: Sequence[Sample],
    steps: StepsSpec,
    max_components: int | None = None,
    config: AnalysisConfig | None = None,
    *,
    executor: ThreadPoolExecutor | None = None,
) -> "Future":
    """Submit :func:`run_optimization_sweep`; resolves to a list of OptimizationResult."""
    pool = executor or default_executor()
    return pool.submit(run_optimization_sweep, list(samples), steps, max_components, config)
