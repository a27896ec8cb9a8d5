"""
aco_core/heuristic.py
─────────────────────
The heuristic matrix η: static desirability of every directed arc.

What is the heuristic?
──────────────────────
Pheromone (τ) is what the colony has *learned*. The heuristic (η) is what
the problem itself *says* before anyone has learned anything:

    η[i][j] = 1 / d[i][j]

A short arc is attractive, a long arc is not. η never changes during a
solve — it depends only on the distance table, which is owned by the
caller and never mutated.

Coincident points
─────────────────
Two nodes at the same coordinates have d = 0. Dividing by zero would put
+inf into η, and inf × anything poisons every weight computed from it.
Any distance at or below HEURISTIC_EPSILON therefore maps to the large,
finite value 1 / HEURISTIC_EPSILON instead: "as close as it gets".

Diagonal
────────
η[i][i] is never read (an ant never travels from a node to itself).
It is stored as 0.0 so the matrix prints sensibly.

Distance tables
───────────────
The core consumes a dimension n plus a distance(i, j) function.
distance_table() materialises that function once into a float64 numpy
array so the hot path (AntSimulator) can slice rows with no Python calls.
"""

from __future__ import annotations

from typing import Callable

import numpy as np
from numpy.typing import ArrayLike, NDArray

HEURISTIC_EPSILON: float = 1e-9
"""Distances at or below this value count as coincident points.

Used as:
    η = 1 / d            if d > HEURISTIC_EPSILON
    η = 1 / EPSILON      otherwise (1e9 — large, but finite)
"""


def distance_table(
    dimension: int,
    distance: Callable[[int, int], float],
) -> NDArray[np.float64]:
    """
    Build an n×n float64 distance table from a distance function.

    Args:
        dimension: Number of nodes n. Must be ≥ 0.
        distance:  Callable (i, j) → non-negative float for i, j in [0, n).

    Returns:
        NDArray[np.float64] of shape (n, n) with d[i][i] = 0.0.

    Raises:
        ValueError: if dimension is negative.
    """
    if dimension < 0:
        raise ValueError(f"dimension must be ≥ 0, got {dimension}")

    table = np.zeros((dimension, dimension), dtype=np.float64)
    for i in range(dimension):
        for j in range(dimension):
            if i != j:
                table[i, j] = float(distance(i, j))
    return table


def as_distance_table(distances: ArrayLike) -> NDArray[np.float64]:
    """
    Coerce an array-like into a square float64 distance table.

    Raises:
        ValueError: if the input is not a square 2-D table.
    """
    table = np.asarray(distances, dtype=np.float64)
    if table.size == 0:
        return np.zeros((0, 0), dtype=np.float64)
    if table.ndim != 2 or table.shape[0] != table.shape[1]:
        raise ValueError(
            f"distance table must be square (n, n), got shape {table.shape}"
        )
    return table


def build_heuristic_matrix(distances: NDArray[np.float64]) -> NDArray[np.float64]:
    """
    Compute η from the distance table, exactly once per solve.

    Formula (vectorised, for i ≠ j):
        η[i][j] = 1 / d[i][j]    if d[i][j] > HEURISTIC_EPSILON
                = 1 / HEURISTIC_EPSILON  otherwise

    NumPy operations:
        np.divide(1.0, d, where=mask) only divides the safe cells, so no
        divide-by-zero warning is raised for coincident points.

    Returns:
        A read-only NDArray[np.float64] of shape (n, n).
        The writeable flag is cleared: every ant shares this one array and
        none of them may change it.
    """
    n = distances.shape[0]
    eta = np.full((n, n), 1.0 / HEURISTIC_EPSILON, dtype=np.float64)
    mask = distances > HEURISTIC_EPSILON
    np.divide(1.0, distances, out=eta, where=mask)
    np.fill_diagonal(eta, 0.0)
    eta.setflags(write=False)
    return eta
