"""
tsp_solver/tsplib/parser.py
───────────────────────────
Reads a TSPLIB file into a TspInstance with a full distance table.

What a TSPLIB file looks like
──────────────────────────────
    NAME : berlin52
    TYPE : TSP
    COMMENT : 52 locations in Berlin (Groetschel)
    DIMENSION : 52
    EDGE_WEIGHT_TYPE : EUC_2D
    NODE_COORD_SECTION
    1 565.0 575.0
    2 25.0 185.0
    ...
    EOF

Header lines are `KEY : VALUE`. Unknown keys are ignored. A section
keyword on its own line switches the reader's mode:

    NODE_COORD_SECTION     → `id x y` lines until the next keyword
    EDGE_WEIGHT_SECTION    → numbers, any count per line
    DISPLAY_DATA_SECTION   → back to header mode (content ignored)
    TOUR_SECTION           → back to header mode (content ignored)

Supported distance functions
────────────────────────────
    EUC_2D    √(dx² + dy²)
    CEIL_2D   ⌈√(dx² + dy²)⌉
    ATT       r = √((dx² + dy²) / 10); t = round(r); t + 1 if t < r
    GEO       great circle, R = 6378.388, x = longitude, y = latitude,
              both in decimal degrees; + 1.0
    EXPLICIT  FULL_MATRIX, UPPER_ROW, LOWER_DIAG_ROW

Error handling contract
────────────────────────
Every problem with the file raises TsplibParseError, a ValueError. The
message names the offending line ("L12: ...") whenever there is one.
The solver is never invoked on an instance that failed to parse.
"""

from __future__ import annotations

import logging
import math
from enum import Enum
from pathlib import Path
from typing import Callable, Dict, List, Optional, Union

import numpy as np
from numpy.typing import NDArray

from tsp_solver.shared.models import EdgeWeightFormat, EdgeWeightType, Node, TspInstance

logger = logging.getLogger(__name__)

GEO_EARTH_RADIUS: float = 6378.388
"""Sphere radius (km) used by TSPLIB's GEO distance."""


class TsplibParseError(ValueError):
    """Raised for any malformed, inconsistent or unsupported TSPLIB input."""


class _Section(Enum):
    HEADER = "header"
    NODE_COORD = "node_coord"
    EDGE_WEIGHT = "edge_weight"


# ── Distance functions ─────────────────────────────────────────────────────────

def euc_2d(a: Node, b: Node) -> float:
    return math.hypot(a.x - b.x, a.y - b.y)


def ceil_2d(a: Node, b: Node) -> float:
    return float(math.ceil(math.hypot(a.x - b.x, a.y - b.y)))


def att(a: Node, b: Node) -> float:
    dx = a.x - b.x
    dy = a.y - b.y
    r = math.sqrt((dx * dx + dy * dy) / 10.0)
    # round half away from zero
    t = float(math.floor(r + 0.5))
    return t + 1.0 if t < r else t


def geo(a: Node, b: Node) -> float:
    lon1, lat1 = math.radians(a.x), math.radians(a.y)
    lon2, lat2 = math.radians(b.x), math.radians(b.y)
    q1 = math.cos(lon1 - lon2)
    q2 = math.cos(lat1 - lat2)
    q3 = math.cos(lat1 + lat2)
    arg = 0.5 * ((1.0 + q1) * q2 - (1.0 - q1) * q3)
    # acos domain: identical points can round to 1.0000000000000002
    arg = max(-1.0, min(1.0, arg))
    return GEO_EARTH_RADIUS * math.acos(arg) + 1.0


_COORD_DISTANCES: Dict[EdgeWeightType, Callable[[Node, Node], float]] = {
    EdgeWeightType.EUC_2D: euc_2d,
    EdgeWeightType.CEIL_2D: ceil_2d,
    EdgeWeightType.GEO: geo,
    EdgeWeightType.ATT: att,
}


# ── Matrix builders ────────────────────────────────────────────────────────────

def _coordinate_matrix(
    coords: List[Node], weight_type: EdgeWeightType
) -> NDArray[np.float64]:
    dist = _COORD_DISTANCES[weight_type]
    n = len(coords)
    matrix = np.zeros((n, n), dtype=np.float64)
    for i in range(n):
        for j in range(n):
            if i != j:
                matrix[i, j] = dist(coords[i], coords[j])
    return matrix


def _explicit_matrix(
    weights: List[float], fmt: EdgeWeightFormat, n: int
) -> NDArray[np.float64]:
    matrix = np.zeros((n, n), dtype=np.float64)

    if fmt is EdgeWeightFormat.FULL_MATRIX:
        expected = n * n
        if len(weights) != expected:
            raise TsplibParseError(
                f"EXPLICIT FULL_MATRIX: expected {expected} weights ({n}*{n}), "
                f"got {len(weights)}."
            )
        return np.array(weights, dtype=np.float64).reshape(n, n)

    if fmt is EdgeWeightFormat.UPPER_ROW:
        expected = n * (n - 1) // 2
        if len(weights) != expected:
            raise TsplibParseError(
                f"EXPLICIT UPPER_ROW: expected {expected} weights, got {len(weights)}."
            )
        rows, cols = np.triu_indices(n, k=1)
        matrix[rows, cols] = weights
        matrix[cols, rows] = weights
        return matrix

    # LOWER_DIAG_ROW
    expected = n * (n + 1) // 2
    if len(weights) != expected:
        raise TsplibParseError(
            f"EXPLICIT LOWER_DIAG_ROW: expected {expected} weights, got {len(weights)}."
        )
    rows, cols = np.tril_indices(n)
    matrix[rows, cols] = weights
    matrix[cols, rows] = weights
    return matrix


# ── Parsing ────────────────────────────────────────────────────────────────────

def _parse_number(text: str, what: str, line_no: int, line: str) -> float:
    try:
        return float(text)
    except ValueError as exc:
        raise TsplibParseError(f"L{line_no}: Invalid {what}: {exc} on line '{line}'") from exc


def parse_tsp_text(text: str) -> TspInstance:
    """
    Parse TSPLIB content already held in memory.

    Returns:
        TspInstance with dist_matrix populated.

    Raises:
        TsplibParseError: see module docstring.
    """
    name = ""
    tsp_type = ""
    comments: List[str] = []
    dimension = 0
    weight_type_str = ""
    weight_format_str: Optional[str] = None
    coords: List[Node] = []
    weights: List[float] = []

    section = _Section.HEADER

    for line_no, raw in enumerate(text.splitlines(), start=1):
        line = raw.strip()
        if line == "EOF":
            break
        if not line:
            continue

        if line == "NODE_COORD_SECTION":
            section = _Section.NODE_COORD
            continue
        if line == "EDGE_WEIGHT_SECTION":
            section = _Section.EDGE_WEIGHT
            continue
        if line in ("DISPLAY_DATA_SECTION", "TOUR_SECTION"):
            if section is _Section.NODE_COORD and 0 < dimension != len(coords):
                raise TsplibParseError(
                    f"L{line_no}: Started new section '{line}' before all node "
                    f"coordinates were read. Expected {dimension}, got {len(coords)}."
                )
            section = _Section.HEADER
            continue

        if section is _Section.HEADER:
            key, sep, value = line.partition(":")
            if not sep:
                continue
            key, value = key.strip(), value.strip()
            if key == "NAME":
                name = value
            elif key == "TYPE":
                tsp_type = value
            elif key == "COMMENT":
                comments.append(value)
            elif key == "DIMENSION":
                try:
                    dimension = int(value)
                except ValueError as exc:
                    raise TsplibParseError(
                        f"L{line_no}: Invalid dimension: {exc} on line '{line}'"
                    ) from exc
                if dimension < 0:
                    raise TsplibParseError(
                        f"L{line_no}: Invalid dimension: {dimension} on line '{line}'"
                    )
            elif key == "EDGE_WEIGHT_TYPE":
                weight_type_str = value
            elif key == "EDGE_WEIGHT_FORMAT":
                weight_format_str = value

        elif section is _Section.NODE_COORD:
            if len(coords) == dimension:
                raise TsplibParseError(
                    f"L{line_no}: Unexpected data after all node coordinates were "
                    f"read: '{line}'. Expected {dimension} nodes."
                )
            parts = line.split()
            if len(parts) < 3:
                raise TsplibParseError(
                    f"L{line_no}: Malformed node coord line (expected id x y): {line}"
                )
            try:
                node_id = int(parts[0])
            except ValueError as exc:
                raise TsplibParseError(
                    f"L{line_no}: Invalid node id: {exc} on line '{line}'"
                ) from exc
            x = _parse_number(parts[1], "x/lon coord", line_no, line)
            y = _parse_number(parts[2], "y/lat coord", line_no, line)
            coords.append(Node(id=node_id, x=x, y=y))

        else:
            for token in line.split():
                weights.append(_parse_number(token, "edge weight number", line_no, line))

    if dimension == 0:
        raise TsplibParseError("DIMENSION not found or is zero.")

    try:
        weight_type = EdgeWeightType(weight_type_str.upper())
    except ValueError:
        raise TsplibParseError(f"Unknown edge weight type: {weight_type_str}") from None

    weight_format: Optional[EdgeWeightFormat] = None
    if weight_type is EdgeWeightType.EXPLICIT:
        if weight_format_str is None:
            raise TsplibParseError("EDGE_WEIGHT_FORMAT missing for EXPLICIT type.")
        try:
            weight_format = EdgeWeightFormat(weight_format_str.upper())
        except ValueError:
            raise TsplibParseError(
                f"Unsupported EDGE_WEIGHT_FORMAT for EXPLICIT type: {weight_format_str}"
            ) from None
        matrix = _explicit_matrix(weights, weight_format, dimension)
    else:
        if len(coords) != dimension:
            raise TsplibParseError(
                f"Mismatch: DIMENSION ({dimension}) vs found node coordinates "
                f"({len(coords)}). Type: {weight_type.value}"
            )
        matrix = _coordinate_matrix(coords, weight_type)

    instance = TspInstance(
        name=name,
        tsp_type=tsp_type,
        comment="; ".join(comments),
        dimension=dimension,
        edge_weight_type=weight_type,
        edge_weight_format=weight_format,
        node_coords=coords or None,
        dist_matrix=matrix.tolist(),
    )
    logger.debug(
        "Parsed %s: dimension=%d, type=%s", name or "<unnamed>", dimension,
        weight_type.value,
    )
    return instance


def parse_tsp_file(path: Union[str, Path]) -> TspInstance:
    """
    Read and parse a TSPLIB file.

    Raises:
        TsplibParseError: if the file cannot be read or is malformed.
    """
    try:
        text = Path(path).read_text(encoding="utf-8")
    except OSError as exc:
        raise TsplibParseError(f"Failed to open file {path}: {exc}") from exc
    return parse_tsp_text(text)
