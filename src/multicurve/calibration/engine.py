"""
Staged multi-curve calibration.

A CalibrationEngine is the frozen form of a ConfigurationBuilder. Each
call to ``build_curves`` solves the build stages in order:

1. Convert every node definition of the stage's curves to a calibration
   instrument, sort each curve's instruments by node time, complete the
   curve generators and take a starting point from the instrument rates.
2. Solve all parameters of the stage at once, with curves from earlier
   stages and pre-bound curves held fixed.
3. Differentiate every instrument solved so far with respect to every
   parameter solved so far, invert, and record a CurveBuildingBlock per
   new curve holding the stage's rows and the curve's inverse rows.

The engine keeps no state between calls.

Engines:
- DiscountingCalibrationEngine: plain discounting, futures without convexity
- HullWhiteCalibrationEngine: futures priced with Hull-White convexity
- IssuerCalibrationEngine: adds issuer curves for bond calibration
"""

import logging
from datetime import date
from types import MappingProxyType
from typing import Dict, List, Mapping, NamedTuple, Optional, Sequence, Tuple

import numpy as np
from scipy import linalg

from ..checks import not_null
from ..errors import ConfigurationError, ConvergenceFailure, UnsupportedTargetError
from ..fx import FXMatrix
from ..hullwhite import HullWhiteOneFactorParameters
from ..identifiers import Currency
from ..provider import HullWhiteProvider, IssuerProvider, MulticurveProvider
from .building_block import CurveBuildingBlock, CurveBuildingBlockBundle
from .parameterization import CurveParameterizationBuilder
from .prebound import PreboundCurveBinding
from .rootfinding import finite_difference_jacobian, solve
from .settings import RootFinderSettings

logger = logging.getLogger(__name__)

# Default for build_curves: no published fixings
NO_FIXINGS: Mapping = MappingProxyType({})


class CurveBuildResult(NamedTuple):
    """Calibrated curves and their sensitivity bundle; unpacks as a pair."""
    provider: MulticurveProvider
    bundle: CurveBuildingBlockBundle


class _StageCurve(NamedTuple):
    name: str
    generator: object
    instruments: list
    binding: CurveParameterizationBuilder


class CalibrationEngine:
    """
    Immutable calibration configuration that builds curves on demand.

    Created by ``ConfigurationBuilder.get_builder()``; all collections are
    private copies taken at freeze time.
    """

    supported_discounting_types: Tuple[type, ...] = (Currency,)

    def __init__(
        self,
        stages: Sequence[Sequence[str]],
        parameterizations: Mapping[str, CurveParameterizationBuilder],
        nodes: Mapping[str, Sequence],
        known_curves: Sequence[PreboundCurveBinding] = (),
        fx_matrix: Optional[FXMatrix] = None,
        known_bundle: Optional[CurveBuildingBlockBundle] = None,
        settings: Optional[RootFinderSettings] = None,
    ):
        self._stages = tuple(tuple(stage) for stage in stages)
        self._parameterizations = {name: p.copy() for name, p in parameterizations.items()}
        self._nodes = {name: tuple(definitions) for name, definitions in nodes.items()}
        self._known_curves = tuple(binding.copy() for binding in known_curves)
        self._fx_matrix = fx_matrix.copy() if fx_matrix is not None else None
        self._known_bundle = known_bundle.copy() if known_bundle is not None else None
        self._settings = settings or RootFinderSettings()

    # -- accessors ---------------------------------------------------------

    @property
    def curve_names(self) -> List[Tuple[str, ...]]:
        return list(self._stages)

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
    def issuer_curves(self) -> Dict[str, tuple]:
        return {name: p.issuers for name, p in self._parameterizations.items() if p.issuers}

    @property
    def nodes(self) -> Dict[str, tuple]:
        return dict(self._nodes)

    @property
    def known_discounting_curves(self) -> Dict[object, object]:
        return {d: b.curve for b in self._known_curves for d in b.discounting_ids}

    @property
    def known_ibor_curves(self) -> Dict[object, object]:
        return {i: b.curve for b in self._known_curves for i in b.ibor_indices}

    @property
    def known_overnight_curves(self) -> Dict[object, object]:
        return {i: b.curve for b in self._known_curves for i in b.overnight_indices}

    @property
    def known_issuer_curves(self) -> Dict[object, object]:
        return {pair: b.curve for b in self._known_curves for pair in b.issuers}

    @property
    def fx_matrix(self) -> Optional[FXMatrix]:
        return self._fx_matrix.copy() if self._fx_matrix is not None else None

    @property
    def known_bundle(self) -> Optional[CurveBuildingBlockBundle]:
        return self._known_bundle.copy() if self._known_bundle is not None else None

    @property
    def root_finder_settings(self) -> RootFinderSettings:
        return self._settings

    # -- provider plumbing -------------------------------------------------

    def _new_provider(self) -> MulticurveProvider:
        return MulticurveProvider(self._fx_matrix.copy() if self._fx_matrix is not None else None)

    def _set_curve(self, provider: MulticurveProvider, curve, binding) -> None:
        provider.set_curve(curve, binding.discounting_ids, binding.ibor_indices, binding.overnight_indices)

    def _known_provider(self) -> MulticurveProvider:
        provider = self._new_provider()
        for binding in self._known_curves:
            self._set_curve(provider, binding.curve, binding)
        return provider

    def _with_curves(self, provider: MulticurveProvider, curves: Sequence[_StageCurve],
                     parameters: np.ndarray) -> MulticurveProvider:
        """Copy of provider with curves generated from consecutive slices of parameters."""
        trial = provider.copy()
        start = 0
        for entry in curves:
            count = entry.generator.number_of_parameters
            curve = entry.generator.generate(parameters[start:start + count], trial)
            self._set_curve(trial, curve, entry.binding)
            start += count
        return trial

    def _check_discounting_targets(self) -> None:
        allowed = self.supported_discounting_types
        names = " or ".join(t.__name__ for t in allowed)
        targets = [(name, p.discounting_id) for name, p in self._parameterizations.items()
                   if p.discounting_id is not None]
        targets += [(b.curve.name, d) for b in self._known_curves for d in b.discounting_ids]
        for name, target in targets:
            if not isinstance(target, allowed):
                raise UnsupportedTargetError(
                    f"Can only have {names} as the discounting curve id for {type(self).__name__}; "
                    f"curve {name!r} discounts {target!r}"
                )

    # -- calibration -------------------------------------------------------

    def build_curves(self, valuation_date: date, fixings: Mapping = NO_FIXINGS) -> CurveBuildResult:
        """
        Calibrate all stages for a valuation date.

        Args:
            valuation_date: Date curve times are measured from
            fixings: {index: pandas.Series} of published fixings; none by default

        Returns:
            CurveBuildResult(provider, bundle)

        Raises:
            ConfigurationError: valuation_date or fixings is None
            UnsupportedTargetError: a discounting target the engine cannot handle
            ConvergenceFailure: a stage did not solve
        """
        not_null(valuation_date, "valuation_date")
        not_null(fixings, "fixings")
        self._check_discounting_targets()
        data = []
        for stage in self._stages:
            stage_data = {}
            for name in stage:
                stage_data[name] = [
                    definition.to_derivative(valuation_date, fixings) for definition in self._nodes[name]
                ]
            data.append(stage_data)
        return self._build(valuation_date, data)

    def build_curves_for_data(
        self,
        valuation_date: date,
        data: Sequence[Mapping[str, Sequence]],
    ) -> CurveBuildResult:
        """
        Calibrate from calibration instruments already converted by the caller.

        Args:
            valuation_date: Date fixed node dates are measured from
            data: One mapping per build stage, curve name -> instruments
        """
        not_null(valuation_date, "valuation_date")
        not_null(data, "data")
        if len(data) != len(self._stages):
            raise ConfigurationError(f"Expected data for {len(self._stages)} stages, got {len(data)}")
        for stage, stage_data in zip(self._stages, data):
            if set(stage_data) != set(stage):
                raise ConfigurationError(f"Stage {stage} does not match data for curves {sorted(stage_data)}")
        self._check_discounting_targets()
        return self._build(valuation_date, [{name: list(d[name]) for name in d} for d in data])

    def _build(self, valuation_date: date, data: List[Dict[str, list]]) -> CurveBuildResult:
        known = self._known_provider()
        provider = known
        bundle = self._known_bundle.copy() if self._known_bundle is not None else CurveBuildingBlockBundle()

        solved: List[_StageCurve] = []
        spans: Dict[str, Tuple[int, int]] = {}
        all_parameters = np.zeros(0)

        for stage_index, stage in enumerate(self._stages):
            entries = []
            for name in stage:
                parameterization = self._parameterizations[name]
                generator = parameterization.build_curve_generator(valuation_date)
                instruments = sorted(data[stage_index][name], key=generator.node_time)
                generator = generator.final_generator(instruments)
                entries.append(_StageCurve(name, generator, instruments, parameterization))

            guess = np.concatenate([
                entry.generator.initial_guess([i.initial_rate() for i in entry.instruments])
                for entry in entries
            ])
            stage_instruments = [i for entry in entries for i in entry.instruments]
            base = provider

            def residuals(x, base=base, entries=entries, instruments=stage_instruments):
                trial = self._with_curves(base, entries, x)
                return np.array([instrument.par_spread(trial) for instrument in instruments])

            logger.debug("Stage %d: solving %s for %d parameters against %d instruments",
                         stage_index, list(stage), len(guess), len(stage_instruments))
            try:
                solution = solve(residuals, guess, self._settings)
            except ConvergenceFailure as err:
                err.stage = stage_index
                err.curve_names = tuple(stage)
                raise
            logger.debug("Stage %d solved in %d evaluations, max residual %.2e",
                         stage_index, solution.evaluations, solution.residual_norm)

            provider = self._with_curves(base, entries, solution.parameters)

            start = len(all_parameters)
            for entry in entries:
                count = entry.generator.number_of_parameters
                spans[entry.name] = (start, count)
                start += count
            all_parameters = np.concatenate([all_parameters, solution.parameters])
            solved.extend(entries)

            # Inverse from all instruments so far; blocks keep this stage's rows
            jacobian = self._jacobian(known, solved, all_parameters)
            inverse = linalg.pinv(jacobian)
            stage_jacobian = jacobian[-len(stage_instruments):, :]
            for entry in entries:
                first, count = spans[entry.name]
                bundle.add(CurveBuildingBlock(
                    name=entry.name,
                    spans=dict(spans),
                    jacobian=stage_jacobian.copy(),
                    inverse_jacobian=inverse[first:first + count, :],
                ))

        logger.info("Calibrated %d curves in %d stages (%d parameters)",
                    len(solved), len(self._stages), len(all_parameters))
        return CurveBuildResult(provider, bundle)

    def _jacobian(self, known: MulticurveProvider, solved: List[_StageCurve],
                  parameters: np.ndarray) -> np.ndarray:
        instruments = [i for entry in solved for i in entry.instruments]

        def all_residuals(x):
            trial = self._with_curves(known, solved, x)
            return np.array([instrument.par_spread(trial) for instrument in instruments])

        return finite_difference_jacobian(all_residuals, parameters)

    def __repr__(self) -> str:
        return (f"{type(self).__name__}(stages={[list(s) for s in self._stages]}, "
                f"known={[b.curve.name for b in self._known_curves]}, settings={self._settings})")


class DiscountingCalibrationEngine(CalibrationEngine):
    """Discounting-only calibration."""


class HullWhiteCalibrationEngine(CalibrationEngine):
    """
    Calibration where rate futures carry a Hull-White convexity adjustment.

    The model parameters are fixed inputs, not calibrated.
    """

    def __init__(self, *args, hull_white_parameters: HullWhiteOneFactorParameters = None,
                 hull_white_currency: Currency = None, **kwargs):
        super().__init__(*args, **kwargs)
        self.hull_white_parameters = not_null(hull_white_parameters, "hull_white_parameters")
        self.hull_white_currency = not_null(hull_white_currency, "hull_white_currency")

    def _new_provider(self) -> HullWhiteProvider:
        return HullWhiteProvider(
            self.hull_white_parameters,
            self.hull_white_currency,
            self._fx_matrix.copy() if self._fx_matrix is not None else None,
        )


class IssuerCalibrationEngine(CalibrationEngine):
    """Calibration of discounting, forward and issuer curves."""

    def _new_provider(self) -> IssuerProvider:
        return IssuerProvider(self._fx_matrix.copy() if self._fx_matrix is not None else None)

    def _set_curve(self, provider: IssuerProvider, curve, binding) -> None:
        provider.set_curve(curve, binding.discounting_ids, binding.ibor_indices, binding.overnight_indices,
                           issuers=binding.issuers)


__all__ = [
    "CurveBuildResult",
    "CalibrationEngine",
    "DiscountingCalibrationEngine",
    "HullWhiteCalibrationEngine",
    "IssuerCalibrationEngine",
]
