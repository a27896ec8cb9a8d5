"""
aco_core/colony.py
──────────────────
The Colony: drives a fixed number of rounds and returns the best tour.

How the colony works
─────────────────────
The colony is the outer loop of the algorithm. For one solve it:

  1. Computes η from the distance table (once).
  2. Creates a PheromoneField initialised to init_pheromone.
  3. Creates an empty BestTour.
  4. Runs exactly num_iterations rounds through one ColonyRound.
     There is no convergence test and no early exit.
  5. Returns the best tour with its length rounded to an integer.

The field and the best tour live exactly as long as one run() call.
Calling run() twice starts from scratch twice.

Degenerate sizes
────────────────
  n = 0  → SolveResult(tour=[],  length=0). No rounds are run.
  n = 1  → SolveResult(tour=[0], length=0). No rounds are run.
These are terminal cases, not errors.

If no ant ever completed a tour (only possible with a stuck-ant bug or
zero rounds), the result is an empty tour of length 0.

Threading
─────────
When max_workers is not 1, run() owns a ThreadPoolExecutor for its whole
duration and hands it to ColonyRound for the construction phase. The pool
is shut down before run() returns.
"""

from __future__ import annotations

import logging
import math
import time
from concurrent.futures import Executor, ThreadPoolExecutor
from contextlib import ExitStack
from typing import Callable, List, Optional

import numpy as np
from numpy.typing import ArrayLike, NDArray

from aco_core.heuristic import as_distance_table, build_heuristic_matrix, distance_table
from aco_core.iteration import BestTour, ColonyRound
from aco_core.pheromone import PheromoneField
from tsp_solver.shared.models import SolveResult, SolverConfig
from tsp_solver.shared.telemetry import ProgressSink, log_progress

logger = logging.getLogger(__name__)


def round_half_away(value: float) -> int:
    """Round a non-negative length to the nearest integer, halves upwards."""
    return int(math.floor(value + 0.5))


class Colony:
    """
    Runs the full elitist Ant System and returns a SolveResult.

    Usage:
        colony = Colony(dist_matrix, SolverConfig(num_iterations=500))
        result = colony.run()      # result.tour, result.length

    After run():
        colony.last_run_ms   → wall-clock time of the last run() call.
        colony.pheromone     → the field as it stood at the end of the run.
    """

    def __init__(
        self,
        distances: ArrayLike,
        config: Optional[SolverConfig] = None,
        progress: Optional[ProgressSink] = log_progress,
    ) -> None:
        """
        Args:
            distances: n×n distance table (array-like). Copied to float64.
            config:    SolverConfig; defaults to SolverConfig().
            progress:  Sink for progress observations. None disables them.

        Raises:
            ValueError: if the distance table is not square.
        """
        self._distances: NDArray[np.float64] = as_distance_table(distances)
        self._n = self._distances.shape[0]
        self._config = config or SolverConfig()
        self._progress = progress

        self.last_run_ms: float = 0.0
        self.pheromone: Optional[PheromoneField] = None

    @property
    def n(self) -> int:
        return self._n

    @property
    def config(self) -> SolverConfig:
        return self._config

    def _root_entropy(self) -> int:
        if self._config.seed is not None:
            return self._config.seed
        return int(np.random.SeedSequence().entropy)

    def run(self) -> SolveResult:
        """
        Execute the solve.

        Returns:
            SolveResult with the global best tour and its rounded length.
        """
        start = time.perf_counter()

        if self._n == 0:
            return SolveResult()
        if self._n == 1:
            return SolveResult(tour=[0], length=0, raw_length=0.0, ants_per_round=1)

        cfg = self._config
        heuristic = build_heuristic_matrix(self._distances)
        field = PheromoneField(self._n, cfg.init_pheromone)
        best = BestTour()
        history: List[Optional[float]] = []
        self.pheromone = field

        logger.debug(
            "Solving n=%d with %d ants × %d rounds",
            self._n, min(cfg.num_ants, self._n), cfg.num_iterations,
        )

        with ExitStack() as stack:
            executor: Optional[Executor] = None
            if cfg.max_workers != 1:
                executor = stack.enter_context(
                    ThreadPoolExecutor(
                        max_workers=cfg.max_workers, thread_name_prefix="ant"
                    )
                )

            colony_round = ColonyRound(
                self._distances,
                heuristic,
                field,
                cfg,
                best,
                root_entropy=self._root_entropy(),
                executor=executor,
                progress=self._progress,
            )
            for round_idx in range(cfg.num_iterations):
                colony_round.execute(round_idx)
                history.append(best.length if best.exists else None)

        self.last_run_ms = (time.perf_counter() - start) * 1000.0

        if not best.exists:
            logger.warning("No ant completed a tour in %d rounds", cfg.num_iterations)
            return SolveResult(
                iterations=cfg.num_iterations,
                history=history,
                ants_per_round=colony_round.ant_count,
                elapsed_ms=self.last_run_ms,
            )

        return SolveResult(
            tour=list(best.tour),
            length=round_half_away(best.length),
            raw_length=best.length,
            iterations=cfg.num_iterations,
            history=history,
            ants_per_round=colony_round.ant_count,
            elapsed_ms=self.last_run_ms,
        )

    def __repr__(self) -> str:
        return f"Colony(n={self._n}, last_run_ms={self.last_run_ms:.2f})"


def solve_tsp_aco(
    dimension: int,
    distance: Callable[[int, int], float],
    config: Optional[SolverConfig] = None,
    progress: Optional[ProgressSink] = log_progress,
) -> SolveResult:
    """
    Solve from a node count and a distance function.

    This is the narrow interface the outer layers use: they own parsing
    and distance computation; the core sees only n and distance(i, j).
    """
    return Colony(distance_table(dimension, distance), config, progress).run()
