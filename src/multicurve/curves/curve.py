"""
Curve representations produced by calibration.

Every curve provides:
- Discount factor P(0,t)
- Continuously compounded zero rate z(t)
- Simple forward rate between two times
- Instantaneous forward rate f(t)

Times are ACT/365 year fractions from the valuation date. Node-based
curves store their calibrated parameters (zero rates, discount factors or
periodic yields) and fit a private interpolator on construction, so a
curve is immutable once built.
"""

from abc import ABC, abstractmethod
from typing import Sequence
import numpy as np

from .interpolation import Interpolator, LinearInterpolator

# Time used in place of t=0 where a rate is undefined at the origin
_SHORT_TIME = 1.0 / 3650.0


class Curve(ABC):
    """
    Base class of all curves.

    Attributes:
        name: Curve name, used as key in providers and building blocks

    Conventions:
        - Zero rates are continuously compounded
        - Discount factor at t=0 is 1.0
    """

    def __init__(self, name: str):
        self.name = name

    @abstractmethod
    def zero_rate(self, t: float) -> float:
        """Continuously compounded zero rate at time t."""
        pass

    @property
    @abstractmethod
    def parameters(self) -> np.ndarray:
        """Parameters the curve was generated from."""
        pass

    @property
    def number_of_parameters(self) -> int:
        return len(self.parameters)

    def discount_factor(self, t: float) -> float:
        if t <= 0:
            return 1.0
        return float(np.exp(-self.zero_rate(t) * t))

    def forward_rate(self, t1: float, t2: float, accrual: float = None) -> float:
        """
        Simply compounded forward rate between t1 and t2.

        Args:
            t1: Start time
            t2: End time
            accrual: Accrual fraction of the period (defaults to t2 - t1)
        """
        if t2 <= t1:
            raise ValueError("t2 must be greater than t1")
        if accrual is None:
            accrual = t2 - t1
        return (self.discount_factor(t1) / self.discount_factor(t2) - 1) / accrual

    def instantaneous_forward(self, t: float) -> float:
        """f(t) = -d/dt log P(0,t), by central difference."""
        h = 1e-5
        lo = max(t - h, 0.0)
        hi = t + h
        return float(np.log(self.discount_factor(lo) / self.discount_factor(hi)) / (hi - lo))

    def shifted(self, shift: float) -> "Curve":
        """Curve with every zero rate moved by ``shift`` (decimal)."""
        return SpreadCurve(self.name, self, ConstantYieldCurve(f"{self.name}-shift", shift))

    def __repr__(self) -> str:
        return f"{type(self).__name__}(name={self.name!r}, parameters={self.number_of_parameters})"


class ConstantYieldCurve(Curve):
    """Flat continuously compounded zero rate."""

    def __init__(self, name: str, rate: float):
        super().__init__(name)
        self.rate = float(rate)

    def zero_rate(self, t: float) -> float:
        return self.rate

    def instantaneous_forward(self, t: float) -> float:
        return self.rate

    @property
    def parameters(self) -> np.ndarray:
        return np.array([self.rate])


class InterpolatedCurve(Curve):
    """
    Curve defined by values at node times and an interpolator.

    Subclasses decide what the node values represent.
    """

    def __init__(
        self,
        name: str,
        times: Sequence[float],
        values: Sequence[float],
        interpolator: Interpolator
    ):
        super().__init__(name)
        self.times = np.asarray(times, dtype=np.float64)
        self.values = np.asarray(values, dtype=np.float64)
        self.interpolator = interpolator
        self._fitted = interpolator.fitted(self.times, self.values)

    @property
    def parameters(self) -> np.ndarray:
        return self.values.copy()

    def __repr__(self) -> str:
        return (f"{type(self).__name__}(name={self.name!r}, nodes={len(self.times)}, "
                f"interpolator={self.interpolator!r})")


class YieldCurve(InterpolatedCurve):
    """Interpolation on continuously compounded zero rates."""

    def zero_rate(self, t: float) -> float:
        return self._fitted.interpolate(max(t, 0.0))

    def instantaneous_forward(self, t: float) -> float:
        # f(t) = z(t) + t * dz/dt
        t = max(t, 0.0)
        return self._fitted.interpolate(t) + t * self._fitted.derivative(t)


class DiscountFactorCurve(InterpolatedCurve):
    """Interpolation on discount factors."""

    def discount_factor(self, t: float) -> float:
        if t <= 0:
            return 1.0
        # Flat zero rate before the first node
        if t < self.times[0]:
            return float(self.values[0] ** (t / self.times[0]))
        return self._fitted.interpolate(t)

    def zero_rate(self, t: float) -> float:
        t = max(t, _SHORT_TIME)
        return float(-np.log(self.discount_factor(t)) / t)


class PeriodicYieldCurve(InterpolatedCurve):
    """
    Interpolation on yields compounded ``periods_per_year`` times a year.

    P(0,t) = (1 + y(t)/m)^(-m t)
    """

    def __init__(
        self,
        name: str,
        times: Sequence[float],
        values: Sequence[float],
        interpolator: Interpolator,
        periods_per_year: int
    ):
        super().__init__(name, times, values, interpolator)
        self.periods_per_year = periods_per_year

    def periodic_rate(self, t: float) -> float:
        return self._fitted.interpolate(max(t, 0.0))

    def zero_rate(self, t: float) -> float:
        m = self.periods_per_year
        return float(m * np.log1p(self.periodic_rate(t) / m))


class SpreadCurve(Curve):
    """
    Zero rate of a base curve plus the zero rate of a spread curve.

    Only the spread curve's parameters belong to this curve; the base curve
    is calibrated (or supplied) elsewhere.
    """

    def __init__(self, name: str, base: Curve, spread: Curve):
        super().__init__(name)
        self.base = base
        self.spread = spread

    def zero_rate(self, t: float) -> float:
        return self.base.zero_rate(t) + self.spread.zero_rate(t)

    def discount_factor(self, t: float) -> float:
        return self.base.discount_factor(t) * self.spread.discount_factor(t)

    @property
    def parameters(self) -> np.ndarray:
        return self.spread.parameters

    def __repr__(self) -> str:
        return f"SpreadCurve(name={self.name!r}, base={self.base.name!r}, spread={self.spread!r})"


def create_flat_curve(
    name: str,
    rate: float,
    max_tenor_years: float = 30.0,
    interpolator: Interpolator = None
) -> YieldCurve:
    """
    Create a flat yield curve with nodes at standard tenors.

    Args:
        name: Curve name
        rate: Flat continuously compounded rate
        max_tenor_years: Last node time
        interpolator: Node interpolator (linear by default)
    """
    times = [t for t in (0.25, 0.5, 1.0, 2.0, 5.0, 10.0, 20.0) if t < max_tenor_years]
    times.append(max_tenor_years)
    return YieldCurve(name, times, [rate] * len(times), interpolator or LinearInterpolator())


__all__ = [
    "Curve",
    "ConstantYieldCurve",
    "InterpolatedCurve",
    "YieldCurve",
    "DiscountFactorCurve",
    "PeriodicYieldCurve",
    "SpreadCurve",
    "create_flat_curve",
]
