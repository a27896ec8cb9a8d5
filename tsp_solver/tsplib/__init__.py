"""
tsp_solver/tsplib — TSPLIB input and known-optimal reference values.

Public API:
    parse_tsp_file          — TSPLIB file → TspInstance
    parse_tsp_text          — TSPLIB text → TspInstance
    TsplibParseError        — raised on malformed input
    load_optimal_solutions  — solutions file → {name: optimal length}
    evaluate_solution       — (optimal, % gap) for a found length
    SolutionsFileError      — raised on an unreadable solutions file
"""

from tsp_solver.tsplib.parser import TsplibParseError, parse_tsp_file, parse_tsp_text
from tsp_solver.tsplib.solutions import (
    SolutionsFileError,
    evaluate_solution,
    load_optimal_solutions,
)

__all__ = [
    "parse_tsp_file",
    "parse_tsp_text",
    "TsplibParseError",
    "load_optimal_solutions",
    "evaluate_solution",
    "SolutionsFileError",
]
