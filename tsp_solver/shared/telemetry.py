"""
tsp_solver/shared/telemetry.py
──────────────────────────────
Progress observations: what the solver reports while it runs.

Why this is a separate file from models.py
------------------------------------------
models.py defines what goes *into* and comes *out of* a solve.
telemetry.py defines what the solve says *while it is running*. The
observations are not part of the algorithm's state; dropping every one
of them would not change a single pheromone value.

How a progress observation flows
--------------------------------
1. ColonyRound finishes its update phase for round k.
2. If k is a reporting round, it builds a ProgressEvent.
3. It hands the event to the sink the caller supplied.

A sink is any callable taking a ProgressEvent. Two are provided:
  log_progress      → the default; writes one INFO line per event.
  ProgressRecorder  → keeps every event in a list (tests, notebooks).
"""

from __future__ import annotations

import logging
from typing import Callable, List, Optional

from pydantic import BaseModel, Field

logger = logging.getLogger(__name__)

DEFAULT_REPORT_INTERVAL: int = 100
"""Rounds between progress observations. The final round always reports."""


class ProgressEvent(BaseModel):
    """
    One progress observation.

    Fields:
        iteration   → 0-based round index.
        best_length → Global best length so far. None means no ant has
                      completed a tour yet — a distinct signal, not 0.
        is_final    → True on the last round of the solve.
    """
    iteration: int = Field(..., ge=0)
    best_length: Optional[float] = Field(None, ge=0.0)
    is_final: bool = False

    @property
    def has_tour(self) -> bool:
        return self.best_length is not None


ProgressSink = Callable[[ProgressEvent], None]


def should_report(iteration: int, num_iterations: int, interval: int) -> bool:
    """True on every `interval`-th round and on the last round."""
    return iteration % interval == 0 or iteration == num_iterations - 1


def log_progress(event: ProgressEvent) -> None:
    """Default sink: one INFO line per observation."""
    if event.has_tour:
        logger.info(
            "Iter %d: best tour length so far: %.2f",
            event.iteration,
            event.best_length,
        )
    else:
        logger.info("Iter %d: no tour found yet", event.iteration)


class ProgressRecorder:
    """Sink that keeps every event, in order."""

    def __init__(self) -> None:
        self.events: List[ProgressEvent] = []

    def __call__(self, event: ProgressEvent) -> None:
        self.events.append(event)

    @property
    def iterations(self) -> List[int]:
        return [e.iteration for e in self.events]

    def __len__(self) -> int:
        return len(self.events)
