"""Benchmark suite for the six-vertex Monte Carlo driver.

Times SixVertexSimulation.run() and records chain-quality metrics.
Sweeps lattice sizes and weight presets to characterize throughput and mixing.
"""
from __future__ import annotations

import logging
import time
from dataclasses import asdict, dataclass
from typing import Dict, List, Optional

import numpy as np

from src.sampling.acceptance import VertexWeights
from src.sampling.simulation import SimulationConfig, SixVertexSimulation

logger = logging.getLogger(__name__)


# Lattice side lengths per size label
SIZE_CONFIGS = {
    "XS": 4,
    "S": 16,
    "M": 32,
    "L": 64,
}


@dataclass
class SimulationBenchmarkResult:
    """Result from a single benchmark run."""

    size: int
    initial_state: str
    n_steps: int
    n_samples: int
    wall_time_seconds: float
    steps_per_second: float
    acceptance_rate: float
    initial_volume: int
    final_volume: int
    mean_volume: float
    volume_std: float
    final_candidate_count: int
    seed: int
    autocorrelation_time: Optional[float] = None

    def to_dict(self) -> Dict:
        return asdict(self)


def estimate_autocorrelation_time(
    series: np.ndarray,
    max_lag: int = 50,
) -> float:
    """Estimate integrated autocorrelation time of a scalar time series.

    Computes the normalized autocovariance C(t) of the mean-subtracted
    series, then integrates to get tau = 1 + 2 * sum_{t>0} C(t).

    Parameters
    ----------
    series : array (n_samples,)
    max_lag : int

    Returns
    -------
    tau : float
        Integrated autocorrelation time in units of samples.
    """
    x = np.asarray(series, dtype=np.float64)
    n_samples = x.shape[0]
    if n_samples < 3:
        return float("nan")

    max_lag = min(max_lag, n_samples // 3)
    x = x - x.mean()

    correlations = np.zeros(max_lag + 1)
    for t in range(max_lag + 1):
        n_pairs = n_samples - t
        correlations[t] = np.mean(x[:n_pairs] * x[t : t + n_pairs])

    # A constant series carries no correlation information
    if abs(correlations[0]) < 1e-12:
        return float("nan")
    correlations = correlations / correlations[0]

    # Cut off when C(t) < 0 (noise regime)
    tau = 1.0
    for t in range(1, max_lag + 1):
        if correlations[t] < 0:
            break
        tau += 2.0 * correlations[t]

    return tau


def run_simulation_benchmark(
    size: int,
    n_steps: int = 10000,
    n_samples: int = 100,
    weights: Optional[VertexWeights] = None,
    initial_state: str = "dwbc-high",
    seed: Optional[int] = 42,
) -> SimulationBenchmarkResult:
    """Run one chain and collect throughput and mixing metrics.

    Parameters
    ----------
    size : lattice side length N
    n_steps : total proposal cycles
    n_samples : number of volume measurements spread over the run
    weights : vertex weights (default: all 1)
    initial_state : registered initial state name
    seed : int, optional

    Returns
    -------
    SimulationBenchmarkResult
    """
    config = SimulationConfig(
        size=size,
        weights=weights if weights is not None else VertexWeights(),
        seed=seed,
        initial_state=initial_state,
    )
    sim = SixVertexSimulation(config)
    initial_volume = sim.stats().volume

    n_samples = max(1, min(n_samples, n_steps))
    interval = max(1, n_steps // n_samples)

    logger.info(
        f"Benchmarking {initial_state} N={size}: "
        f"n_steps={n_steps}, n_samples={n_samples}, seed={sim.seed}"
    )

    volumes = []
    done = 0
    elapsed = 0.0
    while done < n_steps:
        chunk = min(interval, n_steps - done)
        t0 = time.perf_counter()
        performed = sim.run(chunk)
        elapsed += time.perf_counter() - t0
        done += chunk
        # Measurement is kept out of the timed region
        volumes.append(sim.stats().volume)
        if performed < chunk:
            break

    volumes = np.array(volumes, dtype=np.float64)
    final = sim.stats()

    return SimulationBenchmarkResult(
        size=size,
        initial_state=initial_state,
        n_steps=n_steps,
        n_samples=len(volumes),
        wall_time_seconds=elapsed,
        steps_per_second=final.attempted / elapsed if elapsed > 0 else float("inf"),
        acceptance_rate=final.acceptance_rate,
        initial_volume=initial_volume,
        final_volume=final.volume,
        mean_volume=float(np.mean(volumes)),
        volume_std=float(np.std(volumes)),
        final_candidate_count=final.candidate_count,
        seed=sim.seed,
        autocorrelation_time=estimate_autocorrelation_time(volumes),
    )


def run_full_benchmark_suite(
    sizes: Optional[List[str]] = None,
    initial_states: Optional[List[str]] = None,
    n_steps: int = 10000,
    n_samples: int = 100,
    weights: Optional[VertexWeights] = None,
    seed: int = 42,
) -> Dict[str, List[SimulationBenchmarkResult]]:
    """Run benchmarks across sizes and initial states.

    Parameters
    ----------
    sizes : list of size labels (default: XS, S, M)
    initial_states : list of initial state names (default: both DWBC fills)
    n_steps : proposal cycles per run
    n_samples : volume measurements per run
    weights : vertex weights shared by all runs
    seed : random seed

    Returns
    -------
    results : dict mapping size label -> list of SimulationBenchmarkResult
    """
    if sizes is None:
        sizes = ["XS", "S", "M"]
    if initial_states is None:
        initial_states = ["dwbc-high", "dwbc-low"]

    all_results = {}

    for size_label in sizes:
        size = SIZE_CONFIGS[size_label]
        all_results[size_label] = []

        for initial_state in initial_states:
            logger.info(f"Running: {size_label} (N={size}), {initial_state}")
            result = run_simulation_benchmark(
                size,
                n_steps=n_steps,
                n_samples=n_samples,
                weights=weights,
                initial_state=initial_state,
                seed=seed,
            )
            all_results[size_label].append(result)
            logger.info(
                f"  -> {result.wall_time_seconds:.2f}s, "
                f"{result.steps_per_second:.0f} steps/s, "
                f"acceptance={result.acceptance_rate:.3f}, "
                f"tau={result.autocorrelation_time:.2f}"
            )

    return all_results
