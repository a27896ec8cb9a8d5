"""
aco_core/pheromone.py
─────────────────────
The pheromone field: the colony's shared, persistent memory.

What is pheromone?
──────────────────
In nature, ants deposit chemical pheromone on paths they walk.
Shorter tours get reinforced more, and over many rounds the colony
converges on short cycles without any ant having a global view.

In this solver:
  • "Path"   = the undirected edge between node i and node j.
  • "Better" = a shorter closed tour.
  • τ[i][j]  = pheromone on that edge. Deposits are always symmetric,
               so τ[i][j] == τ[j][i] holds whenever the field started
               uniform.

Two forces balance each other:
  1. Evaporation  — global forgetting. Every cell decays by (1 − ρ) once
                    per round, then is floored at min_pheromone_val.
  2. Deposit      — positive reinforcement. Each completed ant adds
                    q_val / length on the edges it walked; the elitist
                    step adds more on the global-best tour.

The floor
─────────
Without a floor, repeated evaporation drives rarely-used edges towards
0.0, and τ^α × η^β of such an edge underflows. That edge would then be
permanently invisible. Clamping after every evaporation keeps every
edge rediscoverable.

Phase discipline
────────────────
The field has exactly two modes within a round:
  • construction — ants read it through view() (a read-only numpy view);
  • update       — ColonyRound calls evaporate() / deposit_*() alone.
The field does not lock. It relies on ColonyRound never overlapping the
two modes, which is why view() hands out a non-writeable array.

NumPy design choices
────────────────────
  • float64 throughout — evaporate/deposit cycles run for thousands of
    rounds and float32 drift becomes visible.
  • In-place operations (*=, np.maximum(..., out=)) — no allocation on
    the per-round path.
  • np.add.at in deposit_tour() — unbuffered, so an edge repeated in the
    index arrays (n = 2: 0→1 and 1→0) is added twice, not once.
"""

from __future__ import annotations

from typing import Sequence

import numpy as np
from numpy.typing import NDArray


class PheromoneField:
    """
    A 2D numpy array τ[n][n] storing pheromone levels per edge.

    Used by:
        Ant               → reads rows of view() during construction.
        ColonyRound       → evaporate(), deposit_tour() between rounds.
        Tests             → snapshot() to inspect state.

    Lifetime:
        Created by Colony.run() at the start of a solve, dropped when it
        returns. Nothing is carried across solves.
    """

    def __init__(self, n: int, initial_value: float) -> None:
        """
        Initialise a uniform pheromone field.

        Args:
            n:             Number of nodes. Must be ≥ 1.
            initial_value: Starting τ on every cell. Must be > 0.

        Raises:
            ValueError: if n < 1 or initial_value ≤ 0.
        """
        if n < 1:
            raise ValueError(f"PheromoneField requires n≥1, got n={n}")
        if initial_value <= 0.0:
            raise ValueError(
                f"initial pheromone must be positive, got {initial_value}"
            )
        self._n = n
        self._matrix: NDArray[np.float64] = np.full(
            (n, n), initial_value, dtype=np.float64
        )

    # ── Update phase ──────────────────────────────────────────────────────────

    def evaporate(self, rate: float, floor: float) -> None:
        """
        Decay the whole field in place, then enforce the floor.

        Formula applied to every cell:
            τ[i][j] = max( τ[i][j] × (1 − rate),  floor )

        Post-condition:
            every cell ≥ floor.
        """
        self._matrix *= (1.0 - rate)
        np.maximum(self._matrix, floor, out=self._matrix)

    def deposit_symmetric(self, i: int, j: int, amount: float) -> None:
        """Add `amount` to τ[i][j] and to τ[j][i]."""
        self._matrix[i, j] += amount
        self._matrix[j, i] += amount

    def deposit_tour(self, tour: Sequence[int], amount: float) -> None:
        """
        Deposit `amount` symmetrically on every edge of a closed tour.

        The tour has len(tour) edges: each consecutive pair plus the
        closing edge tour[-1] → tour[0]. Equivalent to calling
        deposit_symmetric() once per edge.
        """
        if len(tour) < 2:
            return
        src = np.asarray(tour, dtype=np.intp)
        dst = np.roll(src, -1)
        np.add.at(self._matrix, (src, dst), amount)
        np.add.at(self._matrix, (dst, src), amount)

    # ── Construction phase ────────────────────────────────────────────────────

    def view(self) -> NDArray[np.float64]:
        """
        Return a read-only view of the live matrix.

        No copy is made: the same buffer is shared by every ant in the
        round. Any attempted write through the view raises ValueError,
        which turns an accidental mutation during construction into a
        loud failure.
        """
        v = self._matrix.view()
        v.setflags(write=False)
        return v

    def snapshot(self) -> NDArray[np.float64]:
        """Return an independent copy of the current field."""
        return self._matrix.copy()

    # ── Properties ────────────────────────────────────────────────────────────

    @property
    def n(self) -> int:
        return self._n

    @property
    def shape(self) -> tuple[int, int]:
        return (self._n, self._n)

    def min(self) -> float:
        return float(self._matrix.min())

    def __repr__(self) -> str:
        return (
            f"PheromoneField(n={self._n}, "
            f"min={self._matrix.min():.4g}, max={self._matrix.max():.4g}, "
            f"mean={self._matrix.mean():.4g})"
        )
