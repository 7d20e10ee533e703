#!/usr/bin/env python3
"""Run a single six-vertex Monte Carlo chain.

Usage:
    python -m scripts.run_simulation --size 32 --steps 200000 [--seed 42]
        [--weights 1 1 1 1 2 2] [--initial-state dwbc-low]
        [--save-dir results/runs --name run1] [--figure]
"""
from __future__ import annotations

import argparse
import json
import logging
import os
import sys
import time

from src.io.serialize import save_snapshot
from src.lattices.registry import list_initial_states
from src.sampling.acceptance import VertexWeights
from src.sampling.simulation import SimulationConfig, SixVertexSimulation

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s %(name)s %(levelname)s: %(message)s",
)
logger = logging.getLogger(__name__)


def main():
    parser = argparse.ArgumentParser(description="Six-vertex Monte Carlo simulation")
    parser.add_argument("--size", type=int, default=16, help="Lattice side length N")
    parser.add_argument("--steps", type=int, default=100000, help="Proposal cycles to run")
    parser.add_argument("--batch-size", type=int, default=1000)
    parser.add_argument("--report-every", type=int, default=10,
                        help="Log stats every this many batches")
    parser.add_argument("--weights", type=float, nargs=6, default=[1.0] * 6,
                        metavar=("A1", "A2", "B1", "B2", "C1", "C2"))
    parser.add_argument("--initial-state", default="dwbc-high",
                        choices=list_initial_states())
    parser.add_argument("--seed", type=int, default=None,
                        help="RNG seed (default: derived from the clock)")
    parser.add_argument("--debug-checks", action="store_true",
                        help="Verify the ice rule around every accepted move")
    parser.add_argument("--save-dir", default=None, help="Write a snapshot here")
    parser.add_argument("--name", default="snapshot")
    parser.add_argument("--figure", action="store_true",
                        help="Also render <name>.png into --save-dir")
    args = parser.parse_args()

    config = SimulationConfig(
        size=args.size,
        weights=VertexWeights(*args.weights),
        seed=args.seed,
        batch_size=args.batch_size,
        initial_state=args.initial_state,
        debug_checks=args.debug_checks,
    )
    sim = SixVertexSimulation(config)

    batches = [0]

    def report(stats):
        batches[0] += 1
        if batches[0] % args.report_every == 0:
            logger.info(
                f"step={stats.step} accepted={stats.accepted} "
                f"rate={stats.acceptance_rate:.4f} volume={stats.volume} "
                f"candidates={stats.candidate_count}"
            )

    t0 = time.perf_counter()
    performed = sim.run(args.steps, on_batch=report)
    elapsed = time.perf_counter() - t0

    final = sim.stats()
    logger.info(f"Finished {performed} steps in {elapsed:.2f}s "
                f"({performed / max(elapsed, 1e-9):.0f} steps/s)")
    logger.info(json.dumps(final.to_dict(), indent=2))

    if args.save_dir:
        save_snapshot(sim, args.save_dir, args.name)
        if args.figure:
            from src.viz.matplotlib_figures import save_snapshot_figure

            fpath = save_snapshot_figure(
                sim.get_state(),
                os.path.join(args.save_dir, f"{args.name}.png"),
                title=f"{args.initial_state} N={args.size}, step {final.step}",
            )
            logger.info(f"Figure saved to {fpath}")

    return 0


if __name__ == "__main__":
    sys.exit(main())
