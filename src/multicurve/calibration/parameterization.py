"""
Per-curve parameterization builder.

A parameterization says what a curve is used for (discounting a currency,
projecting indices, discounting an issuer's bonds) and how it is
parameterized. The shape is a tagged union chosen once:

- Functional(function): Nelson-Siegel family
- InterpolatedYield: interpolation on continuously compounded yields (default)
- InterpolatedDiscountFactor: interpolation on discount factors
- PeriodicYield(periods_per_year): interpolation on periodically compounded yields

Interpolated shapes take node times from the calibration instruments
(instrument maturity by default, or the end of the last fixing period) or
from fixed node dates. Any interpolated shape can be wrapped as
SpreadOver(base curve name).

Choosing a second, conflicting shape raises StateError at the call that
introduces the conflict.
"""

from dataclasses import dataclass
from datetime import date
from enum import Enum
from typing import List, Optional, Tuple, Union

import numpy as np

from ..checks import is_true, not_empty, not_null
from ..conventions import curve_time
from ..curves.generators import (
    CurveGenerator,
    FunctionalCurveGenerator,
    InterpolatedCurveGenerator,
    NodeValue,
    SpreadCurveGenerator,
)
from ..curves.interpolation import Interpolator
from ..curves.nss import CurveFunction
from ..errors import ConfigurationError, StateError
from ..identifiers import IborIndex, OvernightIndex


class NodeTimeConvention(Enum):
    """Which time of a calibration instrument becomes its curve node."""
    INSTRUMENT_MATURITY = "InstrumentMaturity"
    LAST_FIXING_END = "LastFixingEnd"

    def node_time(self, instrument) -> float:
        if self is NodeTimeConvention.LAST_FIXING_END:
            return instrument.last_fixing_end_time()
        return instrument.last_time()


@dataclass(frozen=True)
class NodeSpec:
    """Node times from instruments (convention) or fixed dates."""
    convention: NodeTimeConvention = NodeTimeConvention.INSTRUMENT_MATURITY
    dates: Tuple[date, ...] = ()


@dataclass(frozen=True)
class Functional:
    function: CurveFunction


@dataclass(frozen=True)
class InterpolatedYield:
    interpolator: Interpolator
    nodes: NodeSpec


@dataclass(frozen=True)
class InterpolatedDiscountFactor:
    interpolator: Interpolator
    nodes: NodeSpec


@dataclass(frozen=True)
class PeriodicYield:
    interpolator: Interpolator
    periods_per_year: int
    nodes: NodeSpec


@dataclass(frozen=True)
class SpreadOver:
    base_curve_name: str
    parameterization: Union[InterpolatedYield, InterpolatedDiscountFactor, PeriodicYield]


Parameterization = Union[Functional, InterpolatedYield, InterpolatedDiscountFactor, PeriodicYield, SpreadOver]


class CurveParameterizationBuilder:
    """
    Configuration of a single named curve.

    Returned by ``ConfigurationBuilder.using(name)``. Configuration builder
    methods can be called directly on it, which continues the chain on
    the owning builder::

        builder.using("USD-OIS").for_discounting(USD).for_index(FED_FUNDS) \\
               .with_interpolator(LinearInterpolator()) \\
               .add_nodes("USD-OIS", nodes)
    """

    def __init__(self, name: str, parent=None):
        self._parent = parent
        self.name = name
        self._discounting_id = None
        self._ibor_indices: List[IborIndex] = []
        self._overnight_indices: List[OvernightIndex] = []
        self._function: Optional[CurveFunction] = None
        self._interpolator: Optional[Interpolator] = None
        self._node_value: Optional[NodeValue] = None
        self._periods_per_year: Optional[int] = None
        self._node_dates: List[date] = []
        self._node_time_convention: Optional[NodeTimeConvention] = None
        self._base_curve_name: Optional[str] = None

    def __getattr__(self, item):
        # Only reached for names not defined here: delegate to the owning builder
        parent = self.__dict__.get("_parent")
        if parent is None or item.startswith("_"):
            raise AttributeError(f"{type(self).__name__!r} object has no attribute {item!r}")
        return getattr(parent, item)

    # -- targets -----------------------------------------------------------

    def for_discounting(self, discounting_id) -> "CurveParameterizationBuilder":
        """Use the curve to discount cash flows of ``discounting_id`` (usually a Currency)."""
        self._discounting_id = not_null(discounting_id, "discounting_id")
        return self

    def for_index(self, *indices) -> "CurveParameterizationBuilder":
        """Use the curve to project ibor and/or overnight indices."""
        for index in not_empty(indices, "indices"):
            if isinstance(index, IborIndex):
                self._ibor_indices.append(index)
            elif isinstance(index, OvernightIndex):
                self._overnight_indices.append(index)
            else:
                raise ConfigurationError(f"Input parameter 'indices' contains unsupported index {index!r}")
        return self

    # -- shape -------------------------------------------------------------

    def functional_form(self, function: CurveFunction) -> "CurveParameterizationBuilder":
        if (self._interpolator is not None or self._node_dates or self._node_value is not None
                or self._base_curve_name is not None or self._function is not None):
            raise StateError(f"Curve type of {self.name!r} already set up")
        self._function = not_null(function, "function")
        return self

    def with_interpolator(self, interpolator: Interpolator) -> "CurveParameterizationBuilder":
        if self._function is not None:
            raise StateError(f"Curve {self.name!r} is functional and cannot use an interpolator")
        self._interpolator = not_null(interpolator, "interpolator")
        return self

    def as_spread_over(self, base_curve_name: str) -> "CurveParameterizationBuilder":
        if self._function is not None:
            raise StateError(f"Functional curve {self.name!r} cannot be a spread over another curve")
        self._base_curve_name = not_empty(not_null(base_curve_name, "base_curve_name"), "base_curve_name")
        return self

    def using_node_dates(self, *dates: date) -> "CurveParameterizationBuilder":
        """Append fixed node dates; at least two are needed to build the curve."""
        if self._function is not None:
            raise StateError(f"Curve {self.name!r} is functional and cannot have node dates")
        if self._node_value is NodeValue.PERIODIC_YIELD:
            raise StateError(f"Cannot set node dates for periodically compounded curve {self.name!r}")
        self._node_dates.extend(not_empty(dates, "dates"))
        return self

    def _set_node_value(self, node_value: NodeValue) -> None:
        if self._function is not None or self._node_value is not None:
            raise StateError(f"Curve type of {self.name!r} already set up")
        self._node_value = node_value

    def continuous_interpolation_on_yield(self) -> "CurveParameterizationBuilder":
        self._set_node_value(NodeValue.YIELD)
        return self

    def continuous_interpolation_on_discount_factors(self) -> "CurveParameterizationBuilder":
        self._set_node_value(NodeValue.DISCOUNT_FACTOR)
        return self

    def periodic_interpolation_on_yield(self, periods_per_year: int) -> "CurveParameterizationBuilder":
        not_null(periods_per_year, "periods_per_year")
        is_true(periods_per_year >= 1,
                f"Input parameter 'periods_per_year' must be at least one, got {periods_per_year}")
        if self._node_dates:
            raise StateError(f"Cannot use a periodically compounded curve with fixed nodes for {self.name!r}")
        self._set_node_value(NodeValue.PERIODIC_YIELD)
        self._periods_per_year = int(periods_per_year)
        return self

    def using_instrument_maturity(self) -> "CurveParameterizationBuilder":
        self._set_node_time_convention(NodeTimeConvention.INSTRUMENT_MATURITY)
        return self

    def using_last_fixing_end_time(self) -> "CurveParameterizationBuilder":
        self._set_node_time_convention(NodeTimeConvention.LAST_FIXING_END)
        return self

    def _set_node_time_convention(self, convention: NodeTimeConvention) -> None:
        if self._node_time_convention is not None:
            raise StateError(f"Node time convention of {self.name!r} already set")
        self._node_time_convention = convention

    # -- accessors ---------------------------------------------------------

    @property
    def discounting_id(self):
        return self._discounting_id

    @property
    def discounting_ids(self) -> tuple:
        return () if self._discounting_id is None else (self._discounting_id,)

    @property
    def issuers(self) -> tuple:
        return ()

    @property
    def ibor_indices(self) -> Tuple[IborIndex, ...]:
        return tuple(self._ibor_indices)

    @property
    def overnight_indices(self) -> Tuple[OvernightIndex, ...]:
        return tuple(self._overnight_indices)

    @property
    def node_dates(self) -> Tuple[date, ...]:
        return tuple(self._node_dates)

    @property
    def node_time_convention(self) -> NodeTimeConvention:
        return self._node_time_convention or NodeTimeConvention.INSTRUMENT_MATURITY

    @property
    def base_curve_name(self) -> Optional[str]:
        return self._base_curve_name

    @property
    def parameterization(self) -> Optional[Parameterization]:
        """The configured shape, or None while no shape has been chosen."""
        if self._function is not None:
            return Functional(self._function)
        if self._interpolator is None:
            return None
        nodes = NodeSpec(self.node_time_convention, self.node_dates)
        if self._node_value is NodeValue.DISCOUNT_FACTOR:
            shape = InterpolatedDiscountFactor(self._interpolator, nodes)
        elif self._node_value is NodeValue.PERIODIC_YIELD:
            shape = PeriodicYield(self._interpolator, self._periods_per_year, nodes)
        else:
            shape = InterpolatedYield(self._interpolator, nodes)
        if self._base_curve_name is not None:
            return SpreadOver(self._base_curve_name, shape)
        return shape

    def has_curve_type(self) -> bool:
        return self._function is not None or self._interpolator is not None

    # -- generator ---------------------------------------------------------

    def build_curve_generator(self, valuation_date: date) -> CurveGenerator:
        """
        Compile the parameterization for a valuation date.

        Raises:
            StateError: no interpolator for an interpolated curve, or fewer
                than two fixed node dates
        """
        not_null(valuation_date, "valuation_date")
        if self._function is not None:
            return FunctionalCurveGenerator(self.name, self._function)
        if self._interpolator is None:
            raise StateError(f"Must supply an interpolator to create interpolated curve {self.name!r}")

        node_times = None
        if self._node_dates:
            if len(self._node_dates) < 2:
                raise StateError(f"Need at least two node dates to interpolate curve {self.name!r}")
            node_times = np.sort([curve_time(valuation_date, d) for d in self._node_dates])

        generator = InterpolatedCurveGenerator(
            self.name if self._base_curve_name is None else f"{self.name}-spread",
            self._interpolator,
            self._node_value or NodeValue.YIELD,
            node_times=node_times,
            node_time_fn=self.node_time_convention.node_time,
            periods_per_year=self._periods_per_year,
        )
        if self._base_curve_name is not None:
            return SpreadCurveGenerator(self.name, self._base_curve_name, generator)
        return generator

    # -- value semantics ---------------------------------------------------

    def copy(self, parent=None) -> "CurveParameterizationBuilder":
        """Independent copy attached to ``parent``."""
        other = type(self).__new__(type(self))
        other.__dict__.update(self.__dict__)
        other._parent = parent
        other._ibor_indices = list(self._ibor_indices)
        other._overnight_indices = list(self._overnight_indices)
        other._node_dates = list(self._node_dates)
        return other

    def _key(self) -> tuple:
        return (
            self.name,
            self._discounting_id,
            frozenset(self._ibor_indices),
            frozenset(self._overnight_indices),
            self._function,
            self._interpolator,
            self._node_value,
            self._periods_per_year,
            tuple(self._node_dates),
            self._node_time_convention,
            self._base_curve_name,
        )

    def __eq__(self, other) -> bool:
        if not isinstance(other, CurveParameterizationBuilder):
            return NotImplemented
        return type(self) is type(other) and self._key() == other._key()

    __hash__ = None

    def _describe(self) -> List[str]:
        parts = [
            f"discounting_id={self._discounting_id}",
            f"ibor_indices={[str(i) for i in self._ibor_indices]}",
            f"overnight_indices={[str(i) for i in self._overnight_indices]}",
        ]
        if self._function is not None:
            parts.append(f"functional_form={self._function.value}")
        else:
            parts.append(f"interpolator={self._interpolator!r}")
            if self._node_dates:
                parts.append(f"node_dates={[d.isoformat() for d in self._node_dates]}")
            if self._node_value is NodeValue.PERIODIC_YIELD:
                parts.append(f"periods_per_year={self._periods_per_year}")
                parts.append("interpolation on yield")
            elif self._node_value is NodeValue.DISCOUNT_FACTOR:
                parts.append("interpolation on discount factors")
            else:
                parts.append("interpolation on yield")
            if self._node_time_convention is NodeTimeConvention.LAST_FIXING_END:
                parts.append("using last fixing period end")
            elif self._node_time_convention is NodeTimeConvention.INSTRUMENT_MATURITY:
                parts.append("using instrument maturity")
        if self._base_curve_name is not None:
            parts.append(f"base_curve={self._base_curve_name}")
        return parts

    def __repr__(self) -> str:
        return f"{type(self).__name__}[name={self.name}, " + ", ".join(self._describe()) + "]"


class IssuerCurveParameterizationBuilder(CurveParameterizationBuilder):
    """Parameterization that can also discount bonds of selected issuers."""

    def __init__(self, name: str, parent=None):
        super().__init__(name, parent)
        self._issuers: List[tuple] = []

    def for_issuer(self, *issuers) -> "IssuerCurveParameterizationBuilder":
        """
        Attach (key, LegalEntityFilter) pairs.

        A bond's issuer uses this curve when ``filter.key(issuer) == key``.
        """
        for pair in not_empty(issuers, "issuers"):
            if not isinstance(pair, tuple) or len(pair) != 2 or pair[1] is None:
                raise ConfigurationError(f"Input parameter 'issuers' must hold (key, filter) pairs, got {pair!r}")
            self._issuers.append(pair)
        return self

    @property
    def issuers(self) -> Tuple[tuple, ...]:
        return tuple(self._issuers)

    def copy(self, parent=None) -> "IssuerCurveParameterizationBuilder":
        other = super().copy(parent)
        other._issuers = list(self._issuers)
        return other

    def _key(self) -> tuple:
        return super()._key() + (frozenset(self._issuers),)

    def _describe(self) -> List[str]:
        parts = super()._describe()
        parts.insert(3, f"issuers={[(k, repr(f)) for k, f in self._issuers]}")
        return parts


__all__ = [
    "NodeTimeConvention",
    "NodeSpec",
    "Functional",
    "InterpolatedYield",
    "InterpolatedDiscountFactor",
    "PeriodicYield",
    "SpreadOver",
    "Parameterization",
    "CurveParameterizationBuilder",
    "IssuerCurveParameterizationBuilder",
]
