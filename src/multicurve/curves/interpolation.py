"""
Interpolation methods for curve nodes.

Provides:
- LinearInterpolator: Linear interpolation, flat extrapolation
- CubicSplineInterpolator: Natural cubic spline, flat extrapolation
- LogLinearInterpolator: Linear in log(value), e.g. piecewise constant forwards on discount factors

Interpolators are configuration objects as well as fitted functions: a
parameterization holds an unfitted prototype, and every generated curve
fits its own copy via ``fitted``. Two interpolators are equal when they
are of the same kind.
"""

from abc import ABC, abstractmethod
from typing import Optional
import numpy as np


class Interpolator(ABC):
    """Abstract base class for curve interpolation."""

    name: str = ""

    def __init__(self):
        self.times: Optional[np.ndarray] = None
        self.values: Optional[np.ndarray] = None

    def fit(self, times: np.ndarray, values: np.ndarray) -> "Interpolator":
        """
        Fit the interpolator to data points.

        Args:
            times: Array of year fractions
            values: Array of node values

        Returns:
            self, for chaining
        """
        times = np.asarray(times, dtype=np.float64)
        values = np.asarray(values, dtype=np.float64)
        if times.shape != values.shape:
            raise ValueError("Times and values must have same length")
        if len(times) < 1:
            raise ValueError("Need at least 1 point for interpolation")

        idx = np.argsort(times)
        self.times = times[idx]
        self.values = values[idx]
        if np.any(np.diff(self.times) <= 0):
            raise ValueError(f"Node times must be distinct: {self.times}")
        self._fit()
        return self

    def fitted(self, times: np.ndarray, values: np.ndarray) -> "Interpolator":
        """New interpolator of the same kind fitted to the given nodes."""
        return type(self)().fit(times, values)

    def _fit(self) -> None:
        pass

    @abstractmethod
    def interpolate(self, t: float) -> float:
        pass

    @abstractmethod
    def derivative(self, t: float) -> float:
        """First derivative at t."""
        pass

    def __call__(self, t: float) -> float:
        return self.interpolate(t)

    def _check_fitted(self) -> None:
        if self.times is None:
            raise RuntimeError("Interpolator not fitted")

    def _bracket(self, t: float) -> int:
        idx = np.searchsorted(self.times, t, side='right') - 1
        return int(max(0, min(idx, len(self.times) - 2)))

    def __eq__(self, other) -> bool:
        if not isinstance(other, Interpolator):
            return NotImplemented
        return type(self) is type(other)

    def __hash__(self) -> int:
        return hash(type(self).__name__)

    def __repr__(self) -> str:
        return self.name


class LinearInterpolator(Interpolator):
    """Linear interpolation between knots, flat beyond the boundaries."""

    name = "Linear"

    def interpolate(self, t: float) -> float:
        self._check_fitted()
        if t <= self.times[0]:
            return float(self.values[0])
        if t >= self.times[-1]:
            return float(self.values[-1])

        idx = self._bracket(t)
        t0, t1 = self.times[idx], self.times[idx + 1]
        v0, v1 = self.values[idx], self.values[idx + 1]
        return float(v0 + (t - t0) / (t1 - t0) * (v1 - v0))

    def derivative(self, t: float) -> float:
        self._check_fitted()
        if t <= self.times[0] or t >= self.times[-1]:
            return 0.0
        idx = self._bracket(t)
        return float((self.values[idx + 1] - self.values[idx]) / (self.times[idx + 1] - self.times[idx]))


class CubicSplineInterpolator(Interpolator):
    """
    Natural cubic spline (second derivative = 0 at boundaries).

    Degenerates to linear for two knots and to a constant for one.
    """

    name = "NaturalCubicSpline"

    def __init__(self):
        super().__init__()
        self.coefficients: Optional[np.ndarray] = None  # Shape: (n-1, 4) for [a, b, c, d]

    def _fit(self) -> None:
        n = len(self.times)
        if n == 1:
            self.coefficients = np.array([[self.values[0], 0.0, 0.0, 0.0]])
            return
        h = np.diff(self.times)
        if n == 2:
            slope = (self.values[1] - self.values[0]) / h[0]
            self.coefficients = np.array([[self.values[0], slope, 0.0, 0.0]])
            return

        # Tridiagonal system for second derivatives, M[0] = M[n-1] = 0
        A = np.zeros((n, n))
        b = np.zeros(n)
        A[0, 0] = 1.0
        A[n-1, n-1] = 1.0
        for i in range(1, n-1):
            A[i, i-1] = h[i-1]
            A[i, i] = 2 * (h[i-1] + h[i])
            A[i, i+1] = h[i]
            b[i] = 6 * ((self.values[i+1] - self.values[i]) / h[i] -
                        (self.values[i] - self.values[i-1]) / h[i-1])
        M = np.linalg.solve(A, b)

        # S_i(x) = a_i + b_i*(x-x_i) + c_i*(x-x_i)^2 + d_i*(x-x_i)^3
        self.coefficients = np.zeros((n-1, 4))
        for i in range(n-1):
            self.coefficients[i, 0] = self.values[i]
            self.coefficients[i, 1] = (self.values[i+1] - self.values[i]) / h[i] - h[i] * (M[i+1] + 2*M[i]) / 6
            self.coefficients[i, 2] = M[i] / 2
            self.coefficients[i, 3] = (M[i+1] - M[i]) / (6 * h[i])

    def interpolate(self, t: float) -> float:
        self._check_fitted()
        if t <= self.times[0]:
            return float(self.values[0])
        if t >= self.times[-1]:
            return float(self.values[-1])

        idx = min(self._bracket(t), len(self.coefficients) - 1)
        dx = t - self.times[idx]
        a, b, c, d = self.coefficients[idx]
        return float(a + b*dx + c*dx**2 + d*dx**3)

    def derivative(self, t: float) -> float:
        self._check_fitted()
        if t <= self.times[0] or t >= self.times[-1]:
            return 0.0

        idx = min(self._bracket(t), len(self.coefficients) - 1)
        dx = t - self.times[idx]
        _, b, c, d = self.coefficients[idx]
        return float(b + 2*c*dx + 3*d*dx**2)


class LogLinearInterpolator(Interpolator):
    """
    Linear interpolation of log(value), values must be positive.

    On discount factors this gives piecewise constant forward rates. The
    last segment's slope is extended to the right.
    """

    name = "LogLinear"

    def _fit(self) -> None:
        if np.any(self.values <= 0):
            raise ValueError("Log-linear interpolation needs positive values")
        self._log_values = np.log(self.values)

    def _log_interpolate(self, t: float) -> float:
        logs = self._log_values
        if len(logs) == 1 or t <= self.times[0]:
            return float(logs[0])
        idx = self._bracket(t)
        t0, t1 = self.times[idx], self.times[idx + 1]
        return float(logs[idx] + (t - t0) / (t1 - t0) * (logs[idx + 1] - logs[idx]))

    def interpolate(self, t: float) -> float:
        self._check_fitted()
        return float(np.exp(self._log_interpolate(t)))

    def derivative(self, t: float) -> float:
        self._check_fitted()
        if len(self.times) == 1 or t <= self.times[0]:
            return 0.0
        idx = self._bracket(t)
        slope = (self._log_values[idx + 1] - self._log_values[idx]) / (self.times[idx + 1] - self.times[idx])
        return float(slope * self.interpolate(t))


def create_interpolator(method: str) -> Interpolator:
    """
    Factory function to create an interpolator by name.

    Args:
        method: One of "linear", "cubic_spline", "log_linear"
    """
    key = method.lower().replace("-", "_").replace(" ", "_")

    if key in ("linear", "lin"):
        return LinearInterpolator()
    elif key in ("cubic_spline", "cubic", "spline", "naturalcubicspline", "natural_cubic_spline"):
        return CubicSplineInterpolator()
    elif key in ("log_linear", "loglinear"):
        return LogLinearInterpolator()
    raise ValueError(f"Unknown interpolation method: {method}")


__all__ = [
    "Interpolator",
    "LinearInterpolator",
    "CubicSplineInterpolator",
    "LogLinearInterpolator",
    "create_interpolator",
]
