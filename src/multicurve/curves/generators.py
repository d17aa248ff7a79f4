"""
Curve generators: maps from a parameter vector to a curve.

A parameterization compiles to a generator once per valuation date. The
calibration engine then asks the generator for its final form given the
sorted calibration instruments (node times may come from the
instruments), for a starting parameter vector, and for the curve at each
trial parameter vector.

Provides:
- InterpolatedCurveGenerator: node values on yields, discount factors or periodic yields
- FunctionalCurveGenerator: Nelson-Siegel family
- SpreadCurveGenerator: spread curve added to a base curve found by name
"""

from abc import ABC, abstractmethod
from enum import Enum
from typing import Callable, Optional, Sequence
import numpy as np

from ..errors import MissingDataError, StateError
from .curve import Curve, DiscountFactorCurve, PeriodicYieldCurve, SpreadCurve, YieldCurve
from .interpolation import Interpolator
from .nss import CurveFunction


def instrument_maturity(instrument) -> float:
    return instrument.last_time()


class CurveGenerator(ABC):
    """Builds a curve named ``name`` from parameters."""

    def __init__(self, name: str):
        self.name = name

    @property
    @abstractmethod
    def number_of_parameters(self) -> int:
        pass

    @abstractmethod
    def generate(self, parameters: np.ndarray, provider=None) -> Curve:
        """
        Curve for a parameter vector.

        Args:
            parameters: Parameters owned by this curve
            provider: Curves already available (needed by spread curves)
        """
        pass

    @abstractmethod
    def initial_guess(self, rates: Sequence[float]) -> np.ndarray:
        """Starting parameters from the instruments' initial rates."""
        pass

    def final_generator(self, instruments: Sequence) -> "CurveGenerator":
        """Generator completed with information from the calibration instruments."""
        return self

    def node_time(self, instrument) -> float:
        """Time used to order calibration instruments."""
        return instrument_maturity(instrument)


class NodeValue(Enum):
    """What the node values of an interpolated curve represent."""
    YIELD = "Yield"
    DISCOUNT_FACTOR = "DiscountFactor"
    PERIODIC_YIELD = "PeriodicYield"


class InterpolatedCurveGenerator(CurveGenerator):
    """
    Interpolated curve with one parameter per node.

    Node times are either fixed at construction or taken from the
    calibration instruments by ``final_generator`` using ``node_time_fn``.
    """

    def __init__(
        self,
        name: str,
        interpolator: Interpolator,
        node_value: NodeValue = NodeValue.YIELD,
        node_times: Optional[Sequence[float]] = None,
        node_time_fn: Callable = instrument_maturity,
        periods_per_year: Optional[int] = None,
    ):
        super().__init__(name)
        self.interpolator = interpolator
        self.node_value = node_value
        self.node_times = None if node_times is None else np.asarray(node_times, dtype=np.float64)
        self.node_time_fn = node_time_fn
        self.periods_per_year = periods_per_year

    @property
    def number_of_parameters(self) -> int:
        if self.node_times is None:
            raise StateError(f"Node times of curve {self.name!r} are taken from instruments; "
                             "call final_generator first")
        return len(self.node_times)

    def node_time(self, instrument) -> float:
        return self.node_time_fn(instrument)

    def final_generator(self, instruments: Sequence) -> "InterpolatedCurveGenerator":
        if self.node_times is not None:
            return self
        times = np.array([self.node_time_fn(instrument) for instrument in instruments], dtype=np.float64)
        if len(times) == 0:
            raise StateError(f"No calibration instruments for curve {self.name!r}")
        if np.any(np.diff(np.sort(times)) <= 0):
            raise StateError(f"Calibration instruments of curve {self.name!r} share node times: {times}")
        return InterpolatedCurveGenerator(
            self.name, self.interpolator, self.node_value, times, self.node_time_fn, self.periods_per_year
        )

    def initial_guess(self, rates: Sequence[float]) -> np.ndarray:
        rates = np.asarray(rates, dtype=np.float64)
        n = self.number_of_parameters
        if len(rates) != n:
            rates = np.full(n, rates.mean() if len(rates) else 0.0)
        if self.node_value is NodeValue.DISCOUNT_FACTOR:
            return np.exp(-rates * self.node_times)
        if self.node_value is NodeValue.PERIODIC_YIELD:
            m = self.periods_per_year
            return m * np.expm1(rates / m)
        return rates

    def generate(self, parameters: np.ndarray, provider=None) -> Curve:
        if self.node_value is NodeValue.DISCOUNT_FACTOR:
            return DiscountFactorCurve(self.name, self.node_times, parameters, self.interpolator)
        if self.node_value is NodeValue.PERIODIC_YIELD:
            return PeriodicYieldCurve(self.name, self.node_times, parameters, self.interpolator,
                                      self.periods_per_year)
        return YieldCurve(self.name, self.node_times, parameters, self.interpolator)

    def __repr__(self) -> str:
        return (f"InterpolatedCurveGenerator(name={self.name!r}, value={self.node_value.value}, "
                f"interpolator={self.interpolator!r}, node_times={self.node_times})")


class FunctionalCurveGenerator(CurveGenerator):
    """Functional form with a fixed number of parameters."""

    def __init__(self, name: str, function: CurveFunction):
        super().__init__(name)
        self.function = function

    @property
    def number_of_parameters(self) -> int:
        return self.function.number_of_parameters

    def initial_guess(self, rates: Sequence[float]) -> np.ndarray:
        return self.function.initial_guess(rates)

    def generate(self, parameters: np.ndarray, provider=None) -> Curve:
        return self.function.create(self.name, parameters)

    def __repr__(self) -> str:
        return f"FunctionalCurveGenerator(name={self.name!r}, function={self.function.value})"


class SpreadCurveGenerator(CurveGenerator):
    """
    Spread over an existing curve: yield of the base plus yield of the spread.

    The base curve is looked up by name in the provider each time a curve
    is generated, so it may come from an earlier stage, from the same
    stage (if generated first) or from a pre-bound curve.
    """

    def __init__(self, name: str, base_curve_name: str, spread_generator: CurveGenerator):
        super().__init__(name)
        self.base_curve_name = base_curve_name
        self.spread_generator = spread_generator

    @property
    def number_of_parameters(self) -> int:
        return self.spread_generator.number_of_parameters

    def node_time(self, instrument) -> float:
        return self.spread_generator.node_time(instrument)

    def final_generator(self, instruments: Sequence) -> "SpreadCurveGenerator":
        return SpreadCurveGenerator(self.name, self.base_curve_name,
                                    self.spread_generator.final_generator(instruments))

    def initial_guess(self, rates: Sequence[float]) -> np.ndarray:
        # zero spread
        return self.spread_generator.initial_guess(np.zeros(len(rates)))

    def generate(self, parameters: np.ndarray, provider=None) -> Curve:
        try:
            base = provider.curve(self.base_curve_name)
        except (AttributeError, MissingDataError) as err:
            raise StateError(
                f"Base curve {self.base_curve_name!r} of spread curve {self.name!r} is not available"
            ) from err
        return SpreadCurve(self.name, base, self.spread_generator.generate(parameters, provider))

    def __repr__(self) -> str:
        return (f"SpreadCurveGenerator(name={self.name!r}, base={self.base_curve_name!r}, "
                f"spread={self.spread_generator!r})")


__all__ = [
    "CurveGenerator",
    "NodeValue",
    "InterpolatedCurveGenerator",
    "FunctionalCurveGenerator",
    "SpreadCurveGenerator",
    "instrument_maturity",
]
