"""
aco_core — elitist Ant Colony Optimisation for the travelling salesman problem.

Public API:
    Colony          — run the colony over a distance table, returns SolveResult
    solve_tsp_aco   — same, from a node count and a distance function

Usage:
    from aco_core import Colony
    from tsp_solver.shared.models import SolverConfig

    result = Colony(dist_matrix, SolverConfig(num_iterations=500)).run()
    result.tour, result.length
"""

from aco_core.colony import Colony, solve_tsp_aco

__all__ = ["Colony", "solve_tsp_aco"]
