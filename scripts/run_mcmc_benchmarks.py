#!/usr/bin/env python3
"""Run the Monte Carlo benchmark suite across lattice sizes.

Usage:
    python -m scripts.run_mcmc_benchmarks [--sizes XS S M] [--n-steps 20000]
"""
from __future__ import annotations

import argparse
import json
import logging
import sys
from pathlib import Path

from src.sampling.acceptance import VertexWeights
from src.sampling.benchmark import SIZE_CONFIGS, run_full_benchmark_suite

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s %(name)s %(levelname)s: %(message)s",
)
logger = logging.getLogger(__name__)


def main():
    parser = argparse.ArgumentParser(description="Six-vertex Monte Carlo benchmark suite")
    parser.add_argument("--sizes", nargs="+", default=["XS", "S", "M"],
                        choices=sorted(SIZE_CONFIGS))
    parser.add_argument("--initial-states", nargs="+", default=["dwbc-high", "dwbc-low"])
    parser.add_argument("--n-steps", type=int, default=10000)
    parser.add_argument("--n-samples", type=int, default=100)
    parser.add_argument("--weights", type=float, nargs=6, default=[1.0] * 6,
                        metavar=("A1", "A2", "B1", "B2", "C1", "C2"))
    parser.add_argument("--seed", type=int, default=42)
    parser.add_argument("--output-dir", default="results/mcmc_benchmarks")
    args = parser.parse_args()

    output_dir = Path(args.output_dir)
    output_dir.mkdir(parents=True, exist_ok=True)

    weights = VertexWeights(*args.weights)
    logger.info(f"Running benchmarks: {args.sizes} x {args.initial_states}")

    results = run_full_benchmark_suite(
        sizes=args.sizes,
        initial_states=args.initial_states,
        n_steps=args.n_steps,
        n_samples=args.n_samples,
        weights=weights,
        seed=args.seed,
    )

    output = {
        "weights": weights.to_dict(),
        "results": {
            key: [r.to_dict() for r in result_list]
            for key, result_list in results.items()
        },
    }

    output_file = output_dir / "benchmark_results.json"
    with open(output_file, "w") as f:
        json.dump(output, f, indent=2)

    logger.info(f"Results saved to {output_file}")

    # Print summary table
    logger.info("\n=== Benchmark Summary ===")
    logger.info(f"{'Config':<8} {'Initial':<10} {'Time(s)':>8} {'steps/s':>10} "
                f"{'Accept':>8} {'Volume':>8} {'Tau':>8}")
    logger.info("-" * 70)
    for key, result_list in sorted(results.items()):
        for r in result_list:
            tau_str = f"{r.autocorrelation_time:.2f}" if r.autocorrelation_time == r.autocorrelation_time else "N/A"
            logger.info(
                f"{key:<8} {r.initial_state:<10} {r.wall_time_seconds:>8.2f} "
                f"{r.steps_per_second:>10.0f} {r.acceptance_rate:>8.4f} "
                f"{r.final_volume:>8d} {tau_str:>8}"
            )

    return 0


if __name__ == "__main__":
    sys.exit(main())
