"""
Mutable curve configuration, frozen into a CalibrationEngine.

Typical use::

    builder = ConfigurationBuilder()
    builder.building("USD-OIS").then_building("USD-3M")
    builder.using("USD-OIS").for_discounting(USD).for_index(FED_FUNDS).with_interpolator(LinearInterpolator())
    builder.using("USD-3M").for_index(USD_LIBOR_3M).with_interpolator(LinearInterpolator())
    builder.add_nodes("USD-OIS", ois_nodes).add_nodes("USD-3M", libor_nodes)
    provider, bundle = builder.get_builder().build_curves(valuation_date)

Variants:
- ConfigurationBuilder: discounting-only calibration
- HullWhiteConfigurationBuilder: futures with Hull-White convexity
- IssuerConfigurationBuilder: issuer curves for bonds

A builder is owned by one thread at a time. ``copy()`` returns a builder
whose collections are independent of the original, so scenario variants
can be derived from one base configuration.
"""

import logging
from typing import Dict, Iterable, List, Optional, Tuple

from ..checks import not_empty, not_null
from ..curves.curve import Curve
from ..errors import StateError
from ..fx import FXMatrix
from ..hullwhite import HullWhiteOneFactorParameters
from ..identifiers import Currency
from .building_block import CurveBuildingBlockBundle
from .engine import (
    CalibrationEngine,
    DiscountingCalibrationEngine,
    HullWhiteCalibrationEngine,
    IssuerCalibrationEngine,
)
from .parameterization import CurveParameterizationBuilder, IssuerCurveParameterizationBuilder
from .prebound import IssuerPreboundCurveBinding, PreboundCurveBinding
from .settings import RootFinderSettings

logger = logging.getLogger(__name__)


class ConfigurationBuilder:
    """
    Build order, curve parameterizations, nodes and market data for a calibration.

    Every mutator returns ``self`` (or the per-curve builder for ``using``
    and ``using_curve``) so configuration reads as one chain.
    """

    _parameterization_class = CurveParameterizationBuilder
    _prebound_class = PreboundCurveBinding
    _engine_class = DiscountingCalibrationEngine

    def __init__(self):
        self._stages: List[List[str]] = []
        self._first_stage_set = False
        self._parameterizations: Dict[str, CurveParameterizationBuilder] = {}
        self._nodes: Dict[str, List] = {}
        self._known_curves: List[PreboundCurveBinding] = []
        self._fx_matrix: Optional[FXMatrix] = None
        self._known_bundle: Optional[CurveBuildingBlockBundle] = None
        self._settings = RootFinderSettings()

    # -- build order -------------------------------------------------------

    def _check_stage_names(self, names) -> Tuple[str, ...]:
        names = not_empty(names, "curve_names")
        staged = {name for stage in self._stages for name in stage}
        seen = set()
        for name in names:
            not_empty(not_null(name, "curve_names"), "curve_names")
            if name in staged or name in seen:
                raise StateError(f"Curve {name!r} is already in the build order")
            seen.add(name)
        return names

    def building(self, *curve_names: str) -> "ConfigurationBuilder":
        """Declare the first build stage; curves in a stage are solved together."""
        if self._first_stage_set:
            raise StateError("First build stage has already been set")
        self._stages.append(list(self._check_stage_names(curve_names)))
        self._first_stage_set = True
        return self

    def building_first(self, *curve_names: str) -> "ConfigurationBuilder":
        return self.building(*curve_names)

    def then_building(self, *curve_names: str) -> "ConfigurationBuilder":
        """Append a build stage solved after all previous ones."""
        if not self._first_stage_set:
            raise StateError("Cannot add a later build stage before the first one")
        self._stages.append(list(self._check_stage_names(curve_names)))
        return self

    # -- curves ------------------------------------------------------------

    def using(self, curve_name: str) -> CurveParameterizationBuilder:
        """Start configuring a curve; each name may be configured once."""
        not_empty(not_null(curve_name, "curve_name"), "curve_name")
        if curve_name in self._parameterizations:
            raise StateError(f"Already set up parameterization for curve {curve_name!r}")
        parameterization = self._parameterization_class(curve_name, self)
        self._parameterizations[curve_name] = parameterization
        return parameterization

    def using_curve(self, curve: Curve) -> PreboundCurveBinding:
        """Supply a built curve that is used as is."""
        binding = self._prebound_class(not_null(curve, "curve"), self)
        self._known_curves.append(binding)
        return binding

    def _claim_known_target(self, kind: str, target) -> None:
        for binding in self._known_curves:
            if (kind, target) in binding.targets():
                raise StateError(f"Already have a known {kind} curve for {target}")

    def add_node(self, curve_name: str, instrument) -> "ConfigurationBuilder":
        not_null(curve_name, "curve_name")
        not_null(instrument, "instrument")
        self._nodes.setdefault(curve_name, []).append(instrument)
        return self

    def add_nodes(self, curve_name: str, instruments: Iterable) -> "ConfigurationBuilder":
        not_null(curve_name, "curve_name")
        self._nodes.setdefault(curve_name, []).extend(not_empty(instruments, "instruments"))
        return self

    def remove_nodes(self, curve_name: str) -> "ConfigurationBuilder":
        """Drop a curve's nodes; the curve stays configured."""
        not_null(curve_name, "curve_name")
        if curve_name not in self._nodes:
            logger.warning("No nodes to remove for curve %r", curve_name)
        self._nodes[curve_name] = []
        return self

    def remove_curve(self, curve_name: str) -> "ConfigurationBuilder":
        """Remove a curve from the build order, its parameterization and its nodes."""
        not_null(curve_name, "curve_name")
        self._stages = [[n for n in stage if n != curve_name] for stage in self._stages]
        self._stages = [stage for stage in self._stages if stage]
        if not self._stages:
            self._first_stage_set = False
        self._parameterizations.pop(curve_name, None)
        self._nodes.pop(curve_name, None)
        return self

    # -- market data and settings -----------------------------------------

    def add_fx_matrix(self, fx_matrix: FXMatrix) -> "ConfigurationBuilder":
        self._fx_matrix = not_null(fx_matrix, "fx_matrix")
        return self

    def with_known_bundle(self, bundle: CurveBuildingBlockBundle) -> "ConfigurationBuilder":
        """Building blocks of curves calibrated elsewhere, included in every result."""
        self._known_bundle = not_null(bundle, "bundle")
        return self

    def root_finding_absolute_tolerance(self, tolerance: float) -> "ConfigurationBuilder":
        self._settings = self._settings.with_absolute_tolerance(not_null(tolerance, "tolerance"))
        return self

    def root_finding_relative_tolerance(self, tolerance: float) -> "ConfigurationBuilder":
        self._settings = self._settings.with_relative_tolerance(not_null(tolerance, "tolerance"))
        return self

    def root_finding_maximum_steps(self, max_steps: int) -> "ConfigurationBuilder":
        self._settings = self._settings.with_max_steps(not_null(max_steps, "max_steps"))
        return self

    def root_finding_method(self, method: str) -> "ConfigurationBuilder":
        self._settings = self._settings.with_method(not_null(method, "method"))
        return self

    # -- accessors ---------------------------------------------------------

    @property
    def curve_names(self) -> List[Tuple[str, ...]]:
        return [tuple(stage) for stage in self._stages]

    @property
    def parameterizations(self) -> Dict[str, CurveParameterizationBuilder]:
        return dict(self._parameterizations)

    @property
    def discounting_curves(self) -> Dict[str, object]:
        return {name: p.discounting_id for name, p in self._parameterizations.items()
                if p.discounting_id is not None}

    @property
    def ibor_curves(self) -> Dict[str, tuple]:
        return {name: p.ibor_indices for name, p in self._parameterizations.items() if p.ibor_indices}

    @property
    def overnight_curves(self) -> Dict[str, tuple]:
        return {name: p.overnight_indices for name, p in self._parameterizations.items() if p.overnight_indices}

    @property
    def nodes(self) -> Dict[str, tuple]:
        return {name: tuple(definitions) for name, definitions in self._nodes.items()}

    @property
    def known_curves(self) -> List[PreboundCurveBinding]:
        return list(self._known_curves)

    @property
    def known_discounting_curves(self) -> Dict[object, Curve]:
        return {d: b.curve for b in self._known_curves for d in b.discounting_ids}

    @property
    def known_ibor_curves(self) -> Dict[object, Curve]:
        return {i: b.curve for b in self._known_curves for i in b.ibor_indices}

    @property
    def known_overnight_curves(self) -> Dict[object, Curve]:
        return {i: b.curve for b in self._known_curves for i in b.overnight_indices}

    @property
    def fx_matrix(self) -> Optional[FXMatrix]:
        return self._fx_matrix

    @property
    def known_bundle(self) -> Optional[CurveBuildingBlockBundle]:
        return self._known_bundle

    @property
    def root_finder_settings(self) -> RootFinderSettings:
        return self._settings

    # -- copy, freeze ------------------------------------------------------

    def copy(self) -> "ConfigurationBuilder":
        """Builder with independent copies of every collection."""
        other = type(self).__new__(type(self))
        ConfigurationBuilder.__init__(other)
        other._stages = [list(stage) for stage in self._stages]
        other._first_stage_set = self._first_stage_set
        other._parameterizations = {name: p.copy(other) for name, p in self._parameterizations.items()}
        other._nodes = {name: list(definitions) for name, definitions in self._nodes.items()}
        other._known_curves = [binding.copy(other) for binding in self._known_curves]
        other._fx_matrix = self._fx_matrix.copy() if self._fx_matrix is not None else None
        other._known_bundle = self._known_bundle.copy() if self._known_bundle is not None else None
        other._settings = self._settings
        return other

    def _validate(self) -> None:
        if not self._stages:
            raise StateError("No curves configured: the build order has not been set")
        staged = [name for stage in self._stages for name in stage]

        for name in staged:
            if name not in self._parameterizations:
                raise StateError(f"Curve type has not been set for curve {name!r}")
            if not self._parameterizations[name].has_curve_type():
                raise StateError(f"Curve {name!r} needs an interpolator or a functional form")
            if not self._nodes.get(name):
                raise StateError(f"No calibration nodes added for curve {name!r}")

        unstaged_nodes = sorted(set(self._nodes) - set(staged))
        if unstaged_nodes:
            raise StateError(f"Nodes added for curves not in the build order: {unstaged_nodes}")
        unstaged_types = sorted(set(self._parameterizations) - set(staged))
        if unstaged_types:
            raise StateError(f"Curve types set for curves not in the build order: {unstaged_types}")
        clashes = sorted({b.curve.name for b in self._known_curves} & set(staged))
        if clashes:
            raise StateError(f"Known curves share names with calibrated curves: {clashes}")

    def _engine_arguments(self) -> dict:
        return {
            "stages": self._stages,
            "parameterizations": self._parameterizations,
            "nodes": self._nodes,
            "known_curves": self._known_curves,
            "fx_matrix": self._fx_matrix,
            "known_bundle": self._known_bundle,
            "settings": self._settings,
        }

    def get_builder(self) -> CalibrationEngine:
        """
        Validate the configuration and freeze it.

        Raises:
            StateError: empty build order, curves without nodes or curve type,
                nodes or curve types for curves outside the build order
        """
        self._validate()
        engine = self._engine_class(**self._engine_arguments())
        logger.info("Configured %s with build order %s", type(engine).__name__, self.curve_names)
        return engine

    # -- value semantics ---------------------------------------------------

    def _key(self) -> tuple:
        return (
            self.curve_names,
            self._parameterizations,
            self.nodes,
            sorted(self._known_curves, key=repr),
            self._fx_matrix,
            self._known_bundle,
            self._settings,
        )

    def __eq__(self, other) -> bool:
        if not isinstance(other, ConfigurationBuilder):
            return NotImplemented
        return type(self) is type(other) and self._key() == other._key()

    __hash__ = None

    def __repr__(self) -> str:
        return (f"{type(self).__name__}[build_order={self.curve_names}, "
                f"curves={list(self._parameterizations.values())}, "
                f"nodes={ {name: len(nodes) for name, nodes in self._nodes.items()} }, "
                f"known={self._known_curves}, fx={self._fx_matrix!r}, settings={self._settings}]")


class HullWhiteConfigurationBuilder(ConfigurationBuilder):
    """Configuration for calibration with Hull-White futures convexity."""

    _engine_class = HullWhiteCalibrationEngine

    def __init__(self):
        super().__init__()
        self._hull_white_parameters: Optional[HullWhiteOneFactorParameters] = None
        self._hull_white_currency: Optional[Currency] = None

    def add_hull_white_parameters(self, parameters: HullWhiteOneFactorParameters) -> "HullWhiteConfigurationBuilder":
        self._hull_white_parameters = not_null(parameters, "parameters")
        return self

    def for_hull_white_currency(self, currency: Currency) -> "HullWhiteConfigurationBuilder":
        self._hull_white_currency = not_null(currency, "currency")
        return self

    @property
    def hull_white_parameters(self) -> Optional[HullWhiteOneFactorParameters]:
        return self._hull_white_parameters

    @property
    def hull_white_currency(self) -> Optional[Currency]:
        return self._hull_white_currency

    def copy(self) -> "HullWhiteConfigurationBuilder":
        other = super().copy()
        other._hull_white_parameters = self._hull_white_parameters
        other._hull_white_currency = self._hull_white_currency
        return other

    def _validate(self) -> None:
        super()._validate()
        if self._hull_white_parameters is None:
            raise StateError("Hull-White parameters have not been set")
        if self._hull_white_currency is None:
            raise StateError("Hull-White model currency has not been set")

    def _engine_arguments(self) -> dict:
        arguments = super()._engine_arguments()
        arguments["hull_white_parameters"] = self._hull_white_parameters
        arguments["hull_white_currency"] = self._hull_white_currency
        return arguments

    def _key(self) -> tuple:
        return super()._key() + (self._hull_white_parameters, self._hull_white_currency)


class IssuerConfigurationBuilder(ConfigurationBuilder):
    """Configuration with issuer curves; parameterizations gain ``for_issuer``."""

    _parameterization_class = IssuerCurveParameterizationBuilder
    _prebound_class = IssuerPreboundCurveBinding
    _engine_class = IssuerCalibrationEngine

    @property
    def issuer_curves(self) -> Dict[str, tuple]:
        return {name: p.issuers for name, p in self._parameterizations.items() if p.issuers}

    @property
    def known_issuer_curves(self) -> Dict[tuple, Curve]:
        return {pair: b.curve for b in self._known_curves for pair in b.issuers}


__all__ = [
    "ConfigurationBuilder",
    "HullWhiteConfigurationBuilder",
    "IssuerConfigurationBuilder",
]
