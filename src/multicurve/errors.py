"""
Exception hierarchy for curve configuration and calibration.

- ConfigurationError: bad argument at the offending call (None, empty, out of domain)
- StateError: configuration contradicts itself (duplicate names, clashing parameterizations)
- UnsupportedTargetError: a curve target the chosen engine cannot handle
- ConvergenceFailure: a build stage did not solve within the root finder limits
- MissingDataError: a curve or fixing needed for pricing is not available
"""

from typing import Optional


class CurveCalibrationError(Exception):
    """Base class for all errors raised by multicurve."""


class ConfigurationError(CurveCalibrationError, ValueError):
    """Invalid argument passed to a configuration or calibration call."""


class StateError(CurveCalibrationError, RuntimeError):
    """Operation conflicts with state already held by a builder."""


class UnsupportedTargetError(CurveCalibrationError, NotImplementedError):
    """Curve target type not supported by the calibration engine."""


class MissingDataError(CurveCalibrationError, KeyError):
    """Curve or fixing lookup failed."""

    def __str__(self) -> str:
        # KeyError quotes its argument
        return str(self.args[0]) if self.args else ""


class ConvergenceFailure(CurveCalibrationError, RuntimeError):
    """
    Raised when a build stage does not converge.

    Attributes:
        stage: Zero-based index of the failing build stage
        curve_names: Curves solved in that stage
        iterations: Function evaluations or iterations used
        residual_norm: Max absolute residual at the last iterate
    """

    def __init__(
        self,
        message: str,
        stage: Optional[int] = None,
        curve_names: tuple = (),
        iterations: int = 0,
        residual_norm: float = float("nan"),
    ):
        super().__init__(message)
        self.stage = stage
        self.curve_names = tuple(curve_names)
        self.iterations = iterations
        self.residual_norm = residual_norm


__all__ = [
    "CurveCalibrationError",
    "ConfigurationError",
    "StateError",
    "UnsupportedTargetError",
    "MissingDataError",
    "ConvergenceFailure",
]
