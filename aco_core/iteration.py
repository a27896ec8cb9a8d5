"""
aco_core/iteration.py
─────────────────────
ColonyRound: one iteration of the elitist Ant System.

The shape of one round
──────────────────────
    ┌──────────────── construction (parallel) ────────────────┐
    │  ant 0   ant 1   ant 2   …   ant m−1                      │
    │  each reads: distances, η, τ-view (all read-only)         │
    │  each owns:  its own numpy Generator                      │
    └───────────────────────────┬──────────────────────────────┘
                                │  join: every ant finished
    ┌───────────────────────────▼──────────── update (sequential) ┐
    │  1. evaporate(ρ, floor)                                     │
    │  2. deposit q_val / L on every completed ant's edges        │
    │  3. best-tracking: clone any strictly shorter tour          │
    │  4. elitist: deposit w · q_val / L* on the global best      │
    │  5. progress observation (reporting rounds only)            │
    └─────────────────────────────────────────────────────────────┘

Why this ordering is the whole synchronisation story
─────────────────────────────────────────────────────
Construction only reads the pheromone field; the update phase is the only
writer and runs on one thread after construction has joined. Reads and
writes never overlap in time, so no per-cell locking exists anywhere.
The τ handed to ants is a non-writeable view, so a stray write during
construction fails loudly instead of racing.

Deposits
────────
Both the per-ant deposit and the elitist deposit go through
PheromoneField.deposit_tour(), the batched form of deposit_symmetric():
one np.add.at per direction instead of one deposit_symmetric(i, j, amount)
call per tour edge. The resulting field is the same.

Effective ant count
───────────────────
min(num_ants, n). A 5-node problem never gets 50 ants.

Stuck ants
──────────
An ant that did not close its tour is simply left out of deposit and
best-tracking. It never aborts the round.

Per-ant random streams
──────────────────────
Ant k of round r gets
    Generator(PCG64(SeedSequence(root_entropy, spawn_key=(r, k))))
Streams are independent, and the same root entropy reproduces the same
run regardless of how threads interleave.
"""

from __future__ import annotations

import logging
import math
from concurrent.futures import Executor
from dataclasses import dataclass, field
from typing import List, Optional

import numpy as np
from numpy.typing import NDArray

from aco_core.ant import Ant
from aco_core.pheromone import PheromoneField
from tsp_solver.shared.models import SolverConfig
from tsp_solver.shared.telemetry import ProgressEvent, ProgressSink, should_report

logger = logging.getLogger(__name__)

DEPOSIT_EPSILON: float = 1e-9
"""Completed ants whose length is at or below this value deposit nothing.

A zero-length tour (all nodes coincident) would deposit q_val / 0.
"""


@dataclass
class BestTour:
    """
    The global best tour of one solve.

    Invariant:
        length is non-increasing over the life of the solve.
        tour is always an owned copy, never an ant's own list.
    """
    tour: List[int] = field(default_factory=list)
    length: float = math.inf

    @property
    def exists(self) -> bool:
        return bool(self.tour) and math.isfinite(self.length)

    def offer(self, tour: List[int], length: float) -> bool:
        """Replace the best if `length` is strictly shorter. Returns True if replaced."""
        if length < self.length:
            self.tour = list(tour)
            self.length = length
            return True
        return False


@dataclass
class RoundOutcome:
    """
    What happened in one round.

    Attributes:
        index     : 0-based round index.
        ants      : every ant built this round (completed or not).
        completed : the subset that reached CLOSED.
        improved  : True if the global best changed this round.
    """
    index: int
    ants: List[Ant]
    completed: List[Ant]
    improved: bool

    @property
    def iteration_best(self) -> Optional[Ant]:
        if not self.completed:
            return None
        return min(self.completed, key=lambda a: a.length)


class ColonyRound:
    """
    Runs rounds against one shared pheromone field and one global best.

    Owned by Colony.run(); one instance is reused for every round of a
    solve. Holds no state of its own between rounds beyond references to
    the field and the best tour it was given.
    """

    def __init__(
        self,
        distances: NDArray[np.float64],
        heuristic: NDArray[np.float64],
        pheromone: PheromoneField,
        config: SolverConfig,
        best: BestTour,
        root_entropy: int,
        executor: Optional[Executor] = None,
        progress: Optional[ProgressSink] = None,
    ) -> None:
        """
        Args:
            distances:    n×n distance table (read-only).
            heuristic:    n×n η table (read-only).
            pheromone:    the solve's PheromoneField.
            config:       validated SolverConfig.
            best:         the solve's BestTour, mutated in place.
            root_entropy: root of every per-ant SeedSequence.
            executor:     pool used to build ants; None builds them inline.
            progress:     sink for ProgressEvent; None disables reporting.
        """
        self._distances = distances
        self._heuristic = heuristic
        self._pheromone = pheromone
        self._config = config
        self._best = best
        self._root_entropy = root_entropy
        self._executor = executor
        self._progress = progress
        self._n = distances.shape[0]

    @property
    def ant_count(self) -> int:
        """Effective ants per round: never more ants than nodes."""
        return min(self._config.num_ants, self._n)

    # ── Construction phase ─────────────────────────────────────────────────────

    def _rng_for(self, round_idx: int, ant_idx: int) -> np.random.Generator:
        seq = np.random.SeedSequence(
            self._root_entropy, spawn_key=(round_idx, ant_idx)
        )
        return np.random.default_rng(seq)

    def _build_ant(self, tau: NDArray[np.float64], rng: np.random.Generator) -> Ant:
        ant = Ant(
            self._distances,
            self._heuristic,
            tau,
            self._config.alpha,
            self._config.beta,
            rng,
        )
        ant.construct()
        return ant

    def construct(self, round_idx: int) -> List[Ant]:
        """
        Build every ant of the round against the round-start pheromone.

        Returns only after all ants have finished: executor.map is
        consumed into a list before this method returns, which is the
        barrier between construction and the update phase.
        """
        tau = self._pheromone.view()
        rngs = [self._rng_for(round_idx, k) for k in range(self.ant_count)]

        if self._executor is None:
            return [self._build_ant(tau, rng) for rng in rngs]
        return list(self._executor.map(lambda rng: self._build_ant(tau, rng), rngs))

    # ── Update phase ───────────────────────────────────────────────────────────

    def _deposit(self, completed: List[Ant]) -> None:
        q_val = self._config.q_val
        for ant in completed:
            if ant.length > DEPOSIT_EPSILON:
                self._pheromone.deposit_tour(ant.tour, q_val / ant.length)

    def _track_best(self, completed: List[Ant]) -> bool:
        improved = False
        for ant in completed:
            if self._best.offer(ant.tour, ant.length):
                improved = True
        return improved

    def _reinforce_elite(self) -> None:
        weight = self._config.elitist_weight
        if weight <= 0.0 or not self._best.exists:
            return
        # A zero-length best (all nodes coincident) carries no signal.
        if self._best.length <= DEPOSIT_EPSILON:
            return
        amount = weight * self._config.q_val / self._best.length
        self._pheromone.deposit_tour(self._best.tour, amount)

    def _report(self, round_idx: int) -> None:
        if self._progress is None:
            return
        cfg = self._config
        if not should_report(round_idx, cfg.num_iterations, cfg.report_interval):
            return
        self._progress(
            ProgressEvent(
                iteration=round_idx,
                best_length=self._best.length if self._best.exists else None,
                is_final=round_idx == cfg.num_iterations - 1,
            )
        )

    # ── One full round ─────────────────────────────────────────────────────────

    def execute(self, round_idx: int) -> RoundOutcome:
        """
        Run round `round_idx`: construction, then the sequential update.

        Returns:
            RoundOutcome describing the ants and whether the best improved.
        """
        ants = self.construct(round_idx)
        completed = [a for a in ants if a.is_complete]
        if len(completed) < len(ants):
            logger.debug(
                "Round %d: %d of %d ants did not close a tour",
                round_idx, len(ants) - len(completed), len(ants),
            )

        cfg = self._config
        self._pheromone.evaporate(cfg.evap_rate, cfg.min_pheromone_val)
        self._deposit(completed)
        improved = self._track_best(completed)
        self._reinforce_elite()

        if improved:
            logger.debug("Round %d: new best length %.4f", round_idx, self._best.length)
        self._report(round_idx)

        return RoundOutcome(
            index=round_idx, ants=ants, completed=completed, improved=improved
        )
