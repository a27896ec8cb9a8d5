"""
tsp_solver/tsplib/solutions.py
──────────────────────────────
Known-optimal tour lengths, for judging how close a run got.

File format (one instance per line):
    berlin52 : 7542
    a280 : 2579
    gr17 : 2085 (explicit)

The key is the first whitespace token left of ':' (lower-cased); the value
is the first whitespace token right of it. Lines without a single ':' are
skipped.
"""

from __future__ import annotations

import math
from pathlib import Path
from typing import Dict, Optional, Tuple, Union


class SolutionsFileError(ValueError):
    """Raised when the solutions file cannot be read or holds a bad value."""


def parse_optimal_solutions(text: str) -> Dict[str, float]:
    solutions: Dict[str, float] = {}
    for raw in text.splitlines():
        parts = [p.strip() for p in raw.split(":")]
        if len(parts) != 2:
            continue
        name_part, value_part = parts
        name_tokens = name_part.split()
        value_tokens = value_part.split()
        name = (name_tokens[0] if name_tokens else name_part).lower()
        value_text = value_tokens[0] if value_tokens else value_part
        try:
            solutions[name] = float(value_text)
        except ValueError as exc:
            raise SolutionsFileError(
                f"Invalid solution value for {name} (from '{value_part}'): {exc}"
            ) from exc
    return solutions


def load_optimal_solutions(path: Union[str, Path]) -> Dict[str, float]:
    """
    Load the name → optimal length table.

    Raises:
        SolutionsFileError: unreadable file or unparsable value.
    """
    try:
        text = Path(path).read_text(encoding="utf-8")
    except OSError as exc:
        raise SolutionsFileError(f"Failed to open solutions file {path}: {exc}") from exc
    return parse_optimal_solutions(text)


def evaluate_solution(
    problem_name: str,
    found_length: float,
    optimal_solutions: Dict[str, float],
) -> Tuple[Optional[float], Optional[float]]:
    """
    Compare a found length against the known optimum.

    Returns:
        (optimal_length, percentage_diff), or (None, None) when the
        instance is not in the table. A zero optimum gives 0.0 if the
        found length is also 0, else +inf.
    """
    optimal = optimal_solutions.get(problem_name.lower())
    if optimal is None:
        return None, None
    if optimal == 0.0:
        return optimal, 0.0 if found_length == 0.0 else math.inf
    return optimal, (found_length - optimal) / optimal * 100.0
