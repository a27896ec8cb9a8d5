"""
tsp_solver/shared/models.py
───────────────────────────
The single source of truth for every data structure that crosses a layer
boundary.

Design philosophy
-----------------
Every model answers one question: "What does the next layer *need to
know* to do its job?"

  SolverConfig  → what the ACO core needs to know about how to search.
  TspInstance   → what the reader hands over: a name, a dimension, a
                  distance table (and coordinates, when the file had them).
  SolveResult   → what the core hands back: the best tour and its length.

The ACO core itself (aco_core/) works on plain numpy arrays; these models
are validated once at the boundary and never on the hot path.

Reading guide
-------------
Read top-to-bottom. Each model builds on the ones above it.
"""

from __future__ import annotations

from enum import Enum
from typing import List, Optional

import numpy as np
from numpy.typing import NDArray
from pydantic import BaseModel, Field

from tsp_solver.shared.telemetry import DEFAULT_REPORT_INTERVAL


# ─────────────────────────────────────────────────────────────────────────────
# SECTION 1: ENUMERATIONS
# ─────────────────────────────────────────────────────────────────────────────

class EdgeWeightType(str, Enum):
    """
    How a TSPLIB instance defines the distance between two nodes.

    EUC_2D    → plain Euclidean distance (berlin52).
    CEIL_2D   → Euclidean distance rounded up (dsj1000).
    GEO       → great-circle distance on a sphere of radius 6378.388 km
                (ulysses16).
    ATT       → pseudo-Euclidean distance (att48).
    EXPLICIT  → weights listed in an EDGE_WEIGHT_SECTION (gr17, bays29).
    """
    EUC_2D = "EUC_2D"
    CEIL_2D = "CEIL_2D"
    GEO = "GEO"
    ATT = "ATT"
    EXPLICIT = "EXPLICIT"


class EdgeWeightFormat(str, Enum):
    """
    Layout of the weights of an EXPLICIT instance.

    FULL_MATRIX    → n × n values, row by row.
    UPPER_ROW      → upper triangle without diagonal, n(n−1)/2 values.
    LOWER_DIAG_ROW → lower triangle with diagonal, n(n+1)/2 values.
    """
    FULL_MATRIX = "FULL_MATRIX"
    UPPER_ROW = "UPPER_ROW"
    LOWER_DIAG_ROW = "LOWER_DIAG_ROW"


# ─────────────────────────────────────────────────────────────────────────────
# SECTION 2: SOLVER CONFIGURATION
# ─────────────────────────────────────────────────────────────────────────────

class SolverConfig(BaseModel):
    """
    Every knob of the elitist Ant System.

    Fields:
        num_ants          → Ants per round. The colony never builds more
                            ants than there are nodes: effective count is
                            min(num_ants, n).
        num_iterations    → Rounds to run. There is no early stop.
        alpha             → Pheromone exponent in τ^α × η^β.
        beta              → Heuristic exponent in τ^α × η^β.
        evap_rate         → ρ: fraction of pheromone lost each round.
        q_val             → Deposit numerator: an ant deposits q_val / length.
        init_pheromone    → τ on every edge before the first round.
        elitist_weight    → Extra deposit on the global-best tour, as a
                            multiple of one ant's deposit. 0 disables it.
        min_pheromone_val → Floor enforced after every evaporation.
        report_interval   → Progress is emitted every this many rounds
                            (and on the last round).
        seed              → Fixes every per-ant random stream. None draws
                            fresh OS entropy for each solve.
        max_workers       → Threads used to build ants. 1 builds them
                            inline; None lets the executor decide.
    """
    num_ants: int = Field(50, ge=1, description="Ants per round (capped at n)")
    num_iterations: int = Field(1000, ge=0, description="Rounds to run")
    alpha: float = Field(1.0, ge=0.0, description="Pheromone influence")
    beta: float = Field(3.0, ge=0.0, description="Heuristic influence")
    evap_rate: float = Field(0.1, ge=0.0, le=1.0, description="Evaporation rate ρ")
    q_val: float = Field(100.0, gt=0.0, description="Deposit scaling factor")
    init_pheromone: float = Field(0.1, gt=0.0, description="Initial pheromone")
    elitist_weight: float = Field(
        1.0, ge=0.0,
        description="Global-best deposit weight (0 disables elitism)"
    )
    min_pheromone_val: float = Field(1e-5, gt=0.0, description="Pheromone floor")
    report_interval: int = Field(
        DEFAULT_REPORT_INTERVAL, ge=1,
        description="Progress cadence in rounds"
    )
    seed: Optional[int] = Field(None, ge=0, description="Root seed for ant streams")
    max_workers: Optional[int] = Field(
        None, ge=1,
        description="Construction threads (1 = inline)"
    )


# ─────────────────────────────────────────────────────────────────────────────
# SECTION 3: PROBLEM INSTANCE
# ─────────────────────────────────────────────────────────────────────────────

class Node(BaseModel):
    """A coordinate line from NODE_COORD_SECTION. `id` is the 1-based TSPLIB id."""
    id: int
    x: float
    y: float


class TspInstance(BaseModel):
    """
    A parsed TSPLIB problem.

    Fields:
        name               → NAME header (e.g. "berlin52").
        tsp_type           → TYPE header (e.g. "TSP").
        comment            → COMMENT headers joined with "; ".
        dimension          → Number of nodes n.
        edge_weight_type   → How distances were derived.
        edge_weight_format → Layout for EXPLICIT instances, else None.
        node_coords        → Coordinates, or None for EXPLICIT instances.
        dist_matrix        → n × n distances, d[i][i] = 0.
    """
    name: str = ""
    tsp_type: str = ""
    comment: str = ""
    dimension: int = Field(..., ge=0)
    edge_weight_type: EdgeWeightType
    edge_weight_format: Optional[EdgeWeightFormat] = None
    node_coords: Optional[List[Node]] = None
    dist_matrix: List[List[float]]

    def distance(self, i: int, j: int) -> float:
        """
        Distance from node index i to node index j (0-based).

        Raises:
            IndexError: if either index is outside [0, dimension).
        """
        if not (0 <= i < self.dimension and 0 <= j < self.dimension):
            raise IndexError(
                f"node index out of bounds ({i} or {j} for dimension {self.dimension})"
            )
        return self.dist_matrix[i][j]

    def distance_table(self) -> NDArray[np.float64]:
        """The distance matrix as an (n, n) float64 array."""
        return np.array(self.dist_matrix, dtype=np.float64).reshape(
            self.dimension, self.dimension
        )

    @property
    def base_name(self) -> str:
        """Instance name up to the first '.', used to look up optimal values."""
        return self.name.split(".")[0]


# ─────────────────────────────────────────────────────────────────────────────
# SECTION 4: SOLVER RESULT
# ─────────────────────────────────────────────────────────────────────────────

class SolveResult(BaseModel):
    """
    What one solve hands back.

    Fields:
        tour           → Best tour found (0-based node indices). Empty if
                         no ant ever completed a tour.
        length         → raw_length rounded to the nearest integer
                         (halves away from zero). 0 when tour is empty.
        raw_length     → Unrounded best length.
        iterations     → Rounds actually run.
        history        → Best-so-far length after each round; None for
                         rounds where no tour existed yet.
        ants_per_round → Effective ant count min(num_ants, n).
        elapsed_ms     → Wall-clock duration of the solve.
    """
    tour: List[int] = Field(default_factory=list)
    length: int = Field(0, ge=0)
    raw_length: float = Field(0.0, ge=0.0)
    iterations: int = Field(0, ge=0)
    history: List[Optional[float]] = Field(default_factory=list)
    ants_per_round: int = Field(0, ge=0)
    elapsed_ms: float = Field(0.0, ge=0.0)
