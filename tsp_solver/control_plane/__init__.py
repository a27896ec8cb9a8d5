"""
tsp_solver/control_plane — runs the solver end to end.

Public API:
    RunRequest    — which file, which solutions table, which SolverConfig
    RunReport     — best tour, length, and gap to the known optimum
    run_instance  — parse → solve → evaluate
"""

from tsp_solver.control_plane.runner import RunReport, RunRequest, run_instance

__all__ = ["RunRequest", "RunReport", "run_instance"]
