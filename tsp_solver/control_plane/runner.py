"""
tsp_solver/control_plane/runner.py
──────────────────────────────────
One end-to-end run: TSPLIB file in, RunReport out.

Pipeline
────────
  1. parse_tsp_file()          → TspInstance (raises TsplibParseError)
  2. Colony(...).run()         → SolveResult
  3. load_optimal_solutions()  → optional comparison against a known optimum
  4. RunReport                 → everything the CLI (or a notebook) prints

What this layer does NOT do
────────────────────────────
It does not print. Printing is the CLI's job; this layer logs and
returns data. A missing or unreadable solutions file is not fatal: the
comparison is skipped with a warning and the report carries None.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import List, Optional, Tuple

from pydantic import BaseModel, Field

from aco_core import Colony
from tsp_solver.shared.models import SolverConfig, TspInstance
from tsp_solver.shared.telemetry import ProgressSink, log_progress
from tsp_solver.tsplib.parser import parse_tsp_file
from tsp_solver.tsplib.solutions import (
    SolutionsFileError,
    evaluate_solution,
    load_optimal_solutions,
)

logger = logging.getLogger(__name__)

DEFAULT_SOLUTIONS_PATH: str = "tsplib/solutions"
"""Where the reference optimum table is looked for when none is given."""


class RunRequest(BaseModel):
    """
    Fields:
        tsp_path       → TSPLIB instance to solve.
        solutions_path → Optimal-length table; None skips the comparison.
        solver         → SolverConfig for the colony.
    """
    tsp_path: Path
    solutions_path: Optional[Path] = Path(DEFAULT_SOLUTIONS_PATH)
    solver: SolverConfig = Field(default_factory=SolverConfig)


class RunReport(BaseModel):
    """
    Fields:
        instance_name  → NAME header of the instance.
        dimension      → n.
        tour           → best tour, 0-based indices.
        node_ids       → best tour as TSPLIB node ids when the instance had
                         coordinates, else None.
        length         → integer-rounded best length (0 if no tour).
        elapsed_ms     → solver wall-clock time.
        optimal_length → known optimum, if listed.
        gap_pct        → (length − optimum) / optimum × 100, if listed and
                         a tour was found.
    """
    instance_name: str
    dimension: int
    tour: List[int]
    node_ids: Optional[List[int]] = None
    length: int
    elapsed_ms: float
    optimal_length: Optional[float] = None
    gap_pct: Optional[float] = None

    @property
    def found_tour(self) -> bool:
        return bool(self.tour) and (self.length > 0 or self.dimension <= 1)


def _log_config(cfg: SolverConfig) -> None:
    logger.info("ACO configuration:")
    logger.info("  Iterations: %d", cfg.num_iterations)
    logger.info("  Number of ants: %d", cfg.num_ants)
    logger.info("  Alpha (pheromone influence): %.2f", cfg.alpha)
    logger.info("  Beta (heuristic influence): %.2f", cfg.beta)
    logger.info("  Evaporation rate (rho): %.2f", cfg.evap_rate)
    logger.info("  Q value (deposit factor): %.2f", cfg.q_val)
    logger.info("  Initial pheromone: %.2f", cfg.init_pheromone)
    logger.info("  Elitist weight: %.2f", cfg.elitist_weight)
    logger.info("  Min pheromone value: %.0e", cfg.min_pheromone_val)


def _log_instance(instance: TspInstance) -> None:
    logger.info("Parsed %s", instance.name)
    logger.info("  Problem type: %s", instance.tsp_type)
    if instance.comment:
        logger.info("  Comment: %s", instance.comment)
    logger.info("  Dimension: %d", instance.dimension)
    logger.info("  Edge weight type: %s", instance.edge_weight_type.value)
    if instance.edge_weight_format is not None:
        logger.info("  Edge weight format: %s", instance.edge_weight_format.value)


def _lookup_optimum(
    solutions_path: Optional[Path], instance: TspInstance, length: int, found: bool
) -> Tuple[Optional[float], Optional[float]]:
    if solutions_path is None:
        return None, None
    try:
        table = load_optimal_solutions(solutions_path)
    except SolutionsFileError as exc:
        logger.warning("Could not load optimal solutions: %s", exc)
        return None, None

    optimal, gap = evaluate_solution(instance.base_name, float(length), table)
    if optimal is None:
        logger.info(
            "No optimal solution in '%s' for '%s'", solutions_path, instance.base_name
        )
        return None, None
    return optimal, gap if found else None


def run_instance(
    request: RunRequest,
    progress: Optional[ProgressSink] = log_progress,
) -> RunReport:
    """
    Parse, solve and evaluate one TSPLIB instance.

    Raises:
        TsplibParseError: the instance file is missing or malformed.
    """
    _log_config(request.solver)
    logger.info("Parsing TSP file: %s", request.tsp_path)
    instance = parse_tsp_file(request.tsp_path)
    _log_instance(instance)

    logger.info("Starting ACO for %s", instance.name)
    colony = Colony(instance.distance_table(), request.solver, progress)
    result = colony.run()
    logger.info("Finished %s in %.2f ms", instance.name, result.elapsed_ms)

    node_ids: Optional[List[int]] = None
    if instance.node_coords is not None and result.tour:
        node_ids = [instance.node_coords[idx].id for idx in result.tour]

    report = RunReport(
        instance_name=instance.name,
        dimension=instance.dimension,
        tour=result.tour,
        node_ids=node_ids,
        length=result.length,
        elapsed_ms=result.elapsed_ms,
    )
    report.optimal_length, report.gap_pct = _lookup_optimum(
        request.solutions_path, instance, result.length, report.found_tour
    )
    return report
