"""
Vector root finding for build stages.

Square systems (as many instruments as parameters) are solved with
``scipy.optimize.root``; over- or under-determined systems, which arise
with functional curves or fixed node dates, are fitted with
``scipy.optimize.least_squares``. Both must bring every residual within
the tolerances; the caller gets a ``StageSolution`` or a
ConvergenceFailure, never a partial fit.
"""

import logging
from dataclasses import dataclass
from typing import Callable

import numpy as np
from scipy import optimize

from ..errors import ConvergenceFailure
from .settings import RootFinderSettings

logger = logging.getLogger(__name__)

VectorFunction = Callable[[np.ndarray], np.ndarray]


@dataclass
class StageSolution:
    parameters: np.ndarray
    residuals: np.ndarray
    evaluations: int
    method: str

    @property
    def residual_norm(self) -> float:
        return float(np.max(np.abs(self.residuals))) if len(self.residuals) else 0.0


def _root_options(settings: RootFinderSettings) -> dict:
    if settings.method == "hybr":
        return {"xtol": settings.relative_tolerance, "maxfev": settings.max_steps}
    if settings.method == "lm":
        return {"xtol": settings.relative_tolerance, "ftol": settings.relative_tolerance,
                "maxiter": settings.max_steps}
    return {"fatol": settings.absolute_tolerance, "xtol": settings.relative_tolerance,
            "maxiter": settings.max_steps}


def _converged(solution: "StageSolution", initial_norm: float, settings: RootFinderSettings) -> bool:
    """Max residual within the absolute tolerance, or reduced by the relative tolerance."""
    norm = solution.residual_norm
    return norm <= settings.absolute_tolerance or norm <= settings.relative_tolerance * initial_norm


def solve(func: VectorFunction, x0: np.ndarray, settings: RootFinderSettings) -> StageSolution:
    """
    Find parameters with func(x) = 0.

    Square systems go to ``scipy.optimize.root``, others to a least-squares
    fit. Either way the result must meet the tolerances in settings.

    Raises:
        ConvergenceFailure: residuals not within tolerance after the step budget
    """
    x0 = np.asarray(x0, dtype=np.float64)
    f0 = np.asarray(func(x0), dtype=np.float64)
    initial_norm = float(np.max(np.abs(f0))) if len(f0) else 0.0

    if len(f0) == len(x0):
        result = optimize.root(func, x0, method=settings.method, options=_root_options(settings))
        x = np.asarray(result.x, dtype=np.float64)
        residuals = np.asarray(func(x), dtype=np.float64)
        evaluations = int(getattr(result, "nfev", 0) or getattr(result, "nit", 0))
        solution = StageSolution(x, residuals, evaluations, settings.method)
        message = result.message
    else:
        result = optimize.least_squares(
            func, x0,
            xtol=settings.relative_tolerance,
            ftol=settings.relative_tolerance,
            gtol=None,
            max_nfev=settings.max_steps,
            method="trf",
        )
        x = np.asarray(result.x, dtype=np.float64)
        solution = StageSolution(x, np.asarray(result.fun, dtype=np.float64), int(result.nfev), "least_squares")
        message = result.message

    if not _converged(solution, initial_norm, settings):
        raise ConvergenceFailure(
            f"Root finder '{solution.method}' did not converge: max residual "
            f"{solution.residual_norm:.3e} > {settings.absolute_tolerance:.1e} ({message})",
            iterations=solution.evaluations,
            residual_norm=solution.residual_norm,
        )
    logger.debug("%s converged after %d evaluations, max residual %.2e",
                 solution.method, solution.evaluations, solution.residual_norm)
    return solution


def finite_difference_jacobian(func: VectorFunction, x: np.ndarray, step: float = 1e-6) -> np.ndarray:
    """
    Central difference Jacobian d func_i / d x_j.

    Args:
        func: Vector function
        x: Point of evaluation
        step: Absolute bump applied to each parameter
    """
    x = np.asarray(x, dtype=np.float64)
    columns = []
    for j in range(len(x)):
        up = x.copy()
        down = x.copy()
        up[j] += step
        down[j] -= step
        columns.append((np.asarray(func(up)) - np.asarray(func(down))) / (2 * step))
    if not columns:
        return np.zeros((len(func(x)), 0))
    return np.column_stack(columns)


__all__ = ["StageSolution", "solve", "finite_difference_jacobian"]
