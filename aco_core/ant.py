"""
aco_core/ant.py
───────────────
One ant: builds one candidate closed tour.

What does an ant do?
─────────────────────
An ant starts on a random node and walks to every other node exactly
once, choosing each next node probabilistically. It does not always take
the nearest neighbour — it samples, with nearer and more-reinforced
nodes more likely. That stochasticity is what lets a colony of ants
explore different tours and then learn from the shorter ones.

The two inputs to every decision
──────────────────────────────────
1. Pheromone trail (τ)  — what did previous rounds learn?
   A read-only view of the PheromoneField as it stood at round start.

2. Heuristic desirability (η) — 1 / distance, computed once per solve.

The selection weight
─────────────────────
weight(j) = τ[i][j]^α × η[i][j]^β     for every unvisited j

  α: pheromone exponent — how much accumulated learning drives choice.
  β: heuristic exponent — how much raw distance drives choice.

Lifecycle (a small state machine)
──────────────────────────────────
    START ──► STEPPING (n − 1 times) ──► CLOSED
                     │
                     └──────────────────► STUCK

  START     origin drawn uniformly from [0, n); tour = [origin].
  STEPPING  one call to _select_next() per step; the chosen node is
            appended and the traversed distance accumulated.
  CLOSED    tour holds all n nodes; the closing edge back to the origin
            is added to the length. Only CLOSED ants are "completed".
  STUCK     no unvisited node was left to choose. Construction halts and
            the ant is excluded from deposit and best-tracking.

Degenerate weights
───────────────────
Weights that are non-finite (inf / NaN from overflow) or ≤ WEIGHT_EPSILON
are discarded before the draw. If nothing survives — or the survivors sum
to ≤ WEIGHT_EPSILON — the ant falls back to a uniform draw over ALL
unvisited nodes. This is not a renormalisation of the tiny weights; it is
a deliberate policy that guarantees progress.

Randomness
──────────
Each ant owns its own numpy Generator. No two ants ever touch the same
generator, so ants may be built concurrently without coordination.
"""

from __future__ import annotations

from enum import Enum
from typing import List, Optional

import numpy as np
from numpy.typing import NDArray

WEIGHT_EPSILON: float = 1e-9
"""Selection weights at or below this value are discarded.

Also the threshold on the surviving weight sum: at or below it, the
roulette wheel is skipped in favour of the uniform fallback.
"""


class AntState(str, Enum):
    """Where an ant is in its construction lifecycle."""
    START = "start"
    STEPPING = "stepping"
    CLOSED = "closed"
    STUCK = "stuck"


class Ant:
    """
    Constructs one closed tour using pheromone + heuristic.

    Lifecycle:
        1. __init__()     → pick the origin, mark it visited.
        2. construct()    → step until CLOSED or STUCK.
        3. Read results:  → ant.tour, ant.length, ant.is_complete.

    The ant is single-use: create a new Ant for every construction.
    Its tour is cloned (never aliased) if it becomes the global best.

    Attributes:
        tour    : List[int]          — visited nodes in order, no duplicates.
        visited : NDArray[np.bool_]  — per-node visited flag.
        current : int                — node the ant is standing on.
        length  : float              — accumulated tour length.
        state   : AntState
    """

    def __init__(
        self,
        distances: NDArray[np.float64],
        heuristic: NDArray[np.float64],
        pheromone: NDArray[np.float64],
        alpha: float,
        beta: float,
        rng: np.random.Generator,
    ) -> None:
        """
        Create the ant and place it on a uniformly random origin.

        Args:
            distances: n×n distance table (read-only for this ant).
            heuristic: n×n η table (read-only for this ant).
            pheromone: n×n τ view as of round start (read-only).
            alpha:     pheromone exponent.
            beta:      heuristic exponent.
            rng:       this ant's private random generator.
        """
        self._distances = distances
        self._heuristic = heuristic
        self._pheromone = pheromone
        self._alpha = alpha
        self._beta = beta
        self._rng = rng
        self._n = distances.shape[0]

        origin = int(rng.integers(self._n))
        self.tour: List[int] = [origin]
        self.visited: NDArray[np.bool_] = np.zeros(self._n, dtype=bool)
        self.visited[origin] = True
        self.current: int = origin
        self.length: float = 0.0
        self.state: AntState = AntState.START

    # ── Node selection ─────────────────────────────────────────────────────────

    def _select_next(self) -> Optional[int]:
        """
        Choose the next node from the current one.

        Steps:
            1. unvisited = indices j with visited[j] == False, ascending.
               If empty → None (the ant is stuck).
            2. weights = τ[i, unvisited]^α × η[i, unvisited]^β
            3. keep = isfinite(weights) & (weights > WEIGHT_EPSILON)
            4. If nothing kept or Σ kept ≤ WEIGHT_EPSILON:
                   uniform draw over ALL unvisited nodes.
               Else:
                   roulette-wheel over the kept candidates.

        NumPy errstate:
            τ^α × η^β can overflow to inf (tiny distance, large β) or
            produce NaN (0 × inf). Those are filtered by isfinite(), so
            the floating-point warnings are silenced rather than raised.

        Returns:
            int: chosen node index, or None if no unvisited node remains.
        """
        unvisited: NDArray[np.intp] = np.flatnonzero(~self.visited)
        if unvisited.size == 0:
            return None

        i = self.current
        with np.errstate(over="ignore", invalid="ignore", under="ignore"):
            weights = (
                np.power(self._pheromone[i, unvisited], self._alpha)
                * np.power(self._heuristic[i, unvisited], self._beta)
            )
        keep = np.isfinite(weights) & (weights > WEIGHT_EPSILON)
        candidates = unvisited[keep]
        kept = weights[keep]
        total = float(kept.sum())

        if candidates.size == 0 or total <= WEIGHT_EPSILON:
            return int(self._rng.choice(unvisited))

        return self._roulette_select(candidates, kept, total, self._rng)

    @staticmethod
    def _roulette_select(
        candidates: NDArray[np.intp],
        weights: NDArray[np.float64],
        total: float,
        rng: np.random.Generator,
    ) -> int:
        """
        Roulette-wheel selection over candidates in ascending index order.

        How it works:
            cumsum = [0.5, 2.0, 2.25, 3.0]  (running weight sum)
            r      = 1.7                    (uniform in [0, total))
            searchsorted(side="left") finds the first index with
            cumsum[k] ≥ r → index 1 → candidates[1] is selected.

        Floating-point guard:
            total is computed by .sum() and cumsum[-1] by a sequential
            scan; they can differ in the last bit, and r may then exceed
            cumsum[-1]. searchsorted returns len(cumsum) in that case,
            which is clamped to the last candidate scanned.

        A single surviving candidate is always selected, whatever r is.
        """
        r = rng.random() * total
        cumsum = np.cumsum(weights)
        k = int(np.searchsorted(cumsum, r, side="left"))
        k = min(k, candidates.size - 1)
        return int(candidates[k])

    # ── Tour construction ──────────────────────────────────────────────────────

    def _visit(self, node: int) -> None:
        self.length += float(self._distances[self.current, node])
        self.tour.append(node)
        self.visited[node] = True
        self.current = node

    def construct(self) -> bool:
        """
        Walk the remaining n − 1 steps and close the cycle.

        Returns:
            bool: True if the ant reached CLOSED (is_complete).

        Post-conditions (CLOSED):
            sorted(tour) == list(range(n))
            length == Σ d[tour[k]][tour[k+1]] + d[tour[-1]][tour[0]]
        """
        self.state = AntState.STEPPING
        for _step in range(1, self._n):
            nxt = self._select_next()
            if nxt is None:
                self.state = AntState.STUCK
                return False
            self._visit(nxt)

        self.length += float(self._distances[self.current, self.tour[0]])
        self.state = AntState.CLOSED
        return True

    @property
    def is_complete(self) -> bool:
        return self.state is AntState.CLOSED

    def __repr__(self) -> str:
        return (
            f"Ant(visited={len(self.tour)}/{self._n}, "
            f"length={self.length:.4f}, state={self.state.value})"
        )
