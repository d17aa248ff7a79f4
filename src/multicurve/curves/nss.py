"""
Nelson-Siegel family of functional yield curves.

The NSS model represents the zero curve with 6 parameters (4 for the
original Nelson-Siegel):

    y(τ) = β₀ + β₁ * [(1-e^(-τ/λ₁))/(τ/λ₁)]
             + β₂ * [(1-e^(-τ/λ₁))/(τ/λ₁) - e^(-τ/λ₁)]
             + β₃ * [(1-e^(-τ/λ₂))/(τ/λ₂) - e^(-τ/λ₂)]

Parameters:
    β₀: Long-term level (asymptotic rate)
    β₁: Short-term component (slope)
    β₂: Medium-term hump (curvature 1)
    β₃: Second hump (curvature 2) - Svensson extension
    λ₁: Decay for first hump
    λ₂: Decay for second hump

Unlike node-based curves, the number of parameters is fixed by the form,
so calibration to more instruments than parameters is a least-squares fit.
Parameter vectors are ordered (β₀, β₁, β₂, λ₁) and (β₀, β₁, β₂, β₃, λ₁, λ₂).
"""

from enum import Enum
from typing import Sequence
import numpy as np

from .curve import Curve

# Decay parameters are floored away from zero
_MIN_DECAY = 1e-4


def _loadings(tau: float, decay: float):
    """Slope and curvature loadings for one decay parameter."""
    decay = max(abs(decay), _MIN_DECAY)
    x = tau / decay
    if x < 1e-8:
        return 1.0, 0.0
    e = np.exp(-x)
    slope = (1 - e) / x
    return slope, slope - e


class NelsonSiegelCurve(Curve):
    """Nelson-Siegel zero curve, continuously compounded."""

    n_parameters = 4

    def __init__(self, name: str, parameters: Sequence[float]):
        super().__init__(name)
        self._parameters = np.asarray(parameters, dtype=np.float64)
        if len(self._parameters) != self.n_parameters:
            raise ValueError(
                f"{type(self).__name__} needs {self.n_parameters} parameters, got {len(self._parameters)}"
            )

    @property
    def parameters(self) -> np.ndarray:
        return self._parameters.copy()

    def zero_rate(self, t: float) -> float:
        beta0, beta1, beta2, lambda1 = self._parameters
        slope, curvature = _loadings(max(t, 0.0), lambda1)
        return float(beta0 + beta1 * slope + beta2 * curvature)


class NelsonSiegelSvenssonCurve(NelsonSiegelCurve):
    """Nelson-Siegel-Svensson zero curve, continuously compounded."""

    n_parameters = 6

    def zero_rate(self, t: float) -> float:
        beta0, beta1, beta2, beta3, lambda1, lambda2 = self._parameters
        t = max(t, 0.0)
        slope, curvature = _loadings(t, lambda1)
        _, curvature2 = _loadings(t, lambda2)
        return float(beta0 + beta1 * slope + beta2 * curvature + beta3 * curvature2)


class CurveFunction(Enum):
    """Functional curve forms available to parameterizations."""
    NELSON_SIEGEL = "NelsonSiegel"
    NELSON_SIEGEL_SVENSSON = "NelsonSiegelSvensson"

    @property
    def curve_class(self):
        if self is CurveFunction.NELSON_SIEGEL:
            return NelsonSiegelCurve
        return NelsonSiegelSvenssonCurve

    @property
    def number_of_parameters(self) -> int:
        return self.curve_class.n_parameters

    def create(self, name: str, parameters: Sequence[float]) -> NelsonSiegelCurve:
        return self.curve_class(name, parameters)

    def initial_guess(self, rates: Sequence[float]) -> np.ndarray:
        """
        Starting parameters from instrument rates ordered by maturity.

        Level from the longest rate, slope from short minus long.
        """
        rates = np.asarray(rates, dtype=np.float64)
        level = rates[-1] if len(rates) else 0.02
        slope = rates[0] - level if len(rates) else 0.0
        if self is CurveFunction.NELSON_SIEGEL:
            return np.array([level, slope, 0.0, 1.5])
        return np.array([level, slope, 0.0, 0.0, 1.5, 5.0])


__all__ = [
    "NelsonSiegelCurve",
    "NelsonSiegelSvenssonCurve",
    "CurveFunction",
]
