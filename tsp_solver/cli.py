"""
tsp_solver/cli.py
─────────────────
`aco-tsp` — solve one TSPLIB instance from the terminal.

    aco-tsp tsplib/berlin52.tsp -n 50 -i 1000 -a 1 -b 3 -e 0.1

Exit status: 0 on success, 1 on an input/configuration error, 2 on an
argument error (argparse).
"""

from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path
from typing import List, Optional

from pydantic import ValidationError

from tsp_solver.control_plane.runner import (
    DEFAULT_SOLUTIONS_PATH,
    RunReport,
    RunRequest,
    run_instance,
)
from tsp_solver.shared.models import SolverConfig
from tsp_solver.tsplib.parser import TsplibParseError
from tsp_solver.tsplib.solutions import SolutionsFileError

MAX_PRINTED_ROUTE: int = 30
"""Tours longer than this are summarised by their node count."""

_DEFAULTS = SolverConfig()


def build_argparser() -> argparse.ArgumentParser:
    """Create the command line parser."""
    p = argparse.ArgumentParser(
        prog="aco-tsp",
        description="Elitist Ant Colony Optimisation for TSPLIB instances.",
    )
    p.add_argument("tsp_file", type=Path, help="Path to a TSPLIB .tsp file")

    aco = p.add_argument_group("ACO parameters")
    aco.add_argument("-n", "--ants", type=int, default=_DEFAULTS.num_ants,
                     help="Ants per round (capped at the node count)")
    aco.add_argument("-i", "--iters", type=int, default=_DEFAULTS.num_iterations,
                     help="Number of rounds")
    aco.add_argument("-a", "--alpha", type=float, default=_DEFAULTS.alpha,
                     help="Pheromone influence")
    aco.add_argument("-b", "--beta", type=float, default=_DEFAULTS.beta,
                     help="Heuristic (1/d) influence")
    aco.add_argument("-e", "--evap-rate", type=float, default=_DEFAULTS.evap_rate,
                     help="Evaporation rate (0..1)")
    aco.add_argument("-q", "--q-val", type=float, default=_DEFAULTS.q_val,
                     help="Pheromone deposit factor")
    aco.add_argument("-p", "--init-pheromone", type=float,
                     default=_DEFAULTS.init_pheromone, help="Initial pheromone")
    aco.add_argument("-w", "--elitist-weight", type=float,
                     default=_DEFAULTS.elitist_weight,
                     help="Global-best deposit weight (0 disables)")
    aco.add_argument("-m", "--min-pheromone-val", type=float,
                     default=_DEFAULTS.min_pheromone_val, help="Pheromone floor")
    aco.add_argument("--seed", type=int, default=None,
                     help="Seed for reproducible runs")
    aco.add_argument("--workers", type=int, default=None,
                     help="Threads building ants (1 = no pool)")

    out = p.add_argument_group("Output")
    out.add_argument("--solutions", type=Path, default=Path(DEFAULT_SOLUTIONS_PATH),
                     help="Known-optimal lengths file")
    out.add_argument("-v", "--verbose", action="store_true",
                     help="Log debug output")
    return p


def _config_from_args(args: argparse.Namespace) -> SolverConfig:
    return SolverConfig(
        num_ants=args.ants,
        num_iterations=args.iters,
        alpha=args.alpha,
        beta=args.beta,
        evap_rate=args.evap_rate,
        q_val=args.q_val,
        init_pheromone=args.init_pheromone,
        elitist_weight=args.elitist_weight,
        min_pheromone_val=args.min_pheromone_val,
        seed=args.seed,
        max_workers=args.workers,
    )


def format_report(report: RunReport) -> List[str]:
    """Render a RunReport as printable lines."""
    lines = [f"--- ACO results for {report.instance_name} ---",
             f"Time taken: {report.elapsed_ms:.2f} ms"]

    if not report.found_tour:
        lines.append("No tour found or tour length is zero for a multi-node problem.")
    else:
        lines.append(f"Best tour length found: {report.length}")

    if report.tour:
        if len(report.tour) > MAX_PRINTED_ROUTE:
            lines.append(f"Tour is too long to print ({len(report.tour)} cities).")
        elif report.node_ids is not None:
            lines.append(f"Route (node ids): {report.node_ids}")
        else:
            lines.append(f"Route (0-based city indices): {report.tour}")

    if report.optimal_length is not None:
        lines.append(f"Optimal solution for {report.instance_name}: "
                     f"{report.optimal_length:.0f}")
        if report.gap_pct is not None:
            lines.append(f"ACO solution is {report.gap_pct:.2f}% away from optimal.")
        else:
            lines.append("Cannot calculate deviation from optimal: no valid tour was found.")
    return lines


def main(argv: Optional[List[str]] = None) -> int:
    """Entry point for aco-tsp."""
    parser = build_argparser()
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    try:
        request = RunRequest(
            tsp_path=args.tsp_file,
            solutions_path=args.solutions,
            solver=_config_from_args(args),
        )
        report = run_instance(request)
    except (TsplibParseError, SolutionsFileError, ValidationError, OSError) as exc:
        print(f"Application error: {exc}", file=sys.stderr)
        return 1

    for line in format_report(report):
        print(line)
    return 0


if __name__ == "__main__":  # pragma: no cover
    raise SystemExit(main())
