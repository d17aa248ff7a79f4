"""
Unit tests for configuration builders.
"""

from datetime import date

import pytest

from multicurve.calibration import (
    ConfigurationBuilder,
    CurveBuildingBlockBundle,
    DiscountingCalibrationEngine,
    HullWhiteCalibrationEngine,
    HullWhiteConfigurationBuilder,
    IssuerCalibrationEngine,
    IssuerConfigurationBuilder,
    RootFinderSettings,
)
from multicurve.curves import ConstantYieldCurve, CurveFunction, LinearInterpolator
from multicurve.errors import ConfigurationError, StateError
from multicurve.fx import FXMatrix
from multicurve.hullwhite import HullWhiteOneFactorParameters
from multicurve.identifiers import EUR, USD, IborIndex, OvernightIndex, ShortNameFilter
from multicurve.instruments import CashDefinition, FixedIborSwapDefinition

LIBOR_3M = IborIndex("USDLIBOR3M", USD, "3M")
FED_FUNDS = OvernightIndex("FEDFUNDS", USD)
SPOT = date(2020, 1, 6)


def deposits(ccy=USD):
    return [CashDefinition.from_tenor(ccy, SPOT, tenor, 0.015) for tenor in ("1M", "3M", "6M")]


@pytest.fixture
def builder():
    """Two curves, one stage each, fully configured."""
    b = ConfigurationBuilder()
    b.building("USD-OIS").then_building("USD-3M")
    b.using("USD-OIS").for_discounting(USD).for_index(FED_FUNDS).with_interpolator(LinearInterpolator())
    b.using("USD-3M").for_index(LIBOR_3M).with_interpolator(LinearInterpolator())
    b.add_nodes("USD-OIS", deposits())
    b.add_node("USD-3M", FixedIborSwapDefinition.from_tenor(LIBOR_3M, SPOT, "2Y", 0.016))
    return b


class TestBuildOrder:
    """Stages of the build order."""

    def test_stages(self):
        b = ConfigurationBuilder().building("A", "B").then_building("C")
        assert b.curve_names == [("A", "B"), ("C",)]

    def test_building_first_alias(self):
        assert ConfigurationBuilder().building_first("A").curve_names == [("A",)]

    def test_first_stage_once(self):
        b = ConfigurationBuilder().building("A")
        with pytest.raises(StateError):
            b.building("B")

    def test_then_building_needs_first_stage(self):
        with pytest.raises(StateError):
            ConfigurationBuilder().then_building("A")

    def test_duplicate_curve_name(self):
        b = ConfigurationBuilder().building("A")
        with pytest.raises(StateError):
            b.then_building("A")
        with pytest.raises(StateError):
            ConfigurationBuilder().building("A", "A")

    def test_empty_stage(self):
        with pytest.raises(ConfigurationError):
            ConfigurationBuilder().building()
        with pytest.raises(ConfigurationError):
            ConfigurationBuilder().building(None)


class TestCurves:
    """Curve parameterizations and pre-bound curves."""

    def test_using_once_per_curve(self):
        b = ConfigurationBuilder()
        b.using("A")
        with pytest.raises(StateError):
            b.using("A")

    def test_chain_continues_on_builder(self):
        """Builder methods are reachable from the per-curve builder."""
        b = ConfigurationBuilder()
        result = b.building("A").using("A").for_discounting(USD) \
            .with_interpolator(LinearInterpolator()).add_nodes("A", deposits())
        assert result is b
        assert b.discounting_curves == {"A": USD}
        assert len(b.nodes["A"]) == 3

    def test_target_maps(self, builder):
        assert builder.discounting_curves == {"USD-OIS": USD}
        assert builder.overnight_curves == {"USD-OIS": (FED_FUNDS,)}
        assert builder.ibor_curves == {"USD-3M": (LIBOR_3M,)}

    def test_known_curves(self):
        curve = ConstantYieldCurve("USD-OIS", 0.02)
        b = ConfigurationBuilder()
        b.using_curve(curve).for_discounting(USD).for_index(FED_FUNDS)
        assert b.known_discounting_curves == {USD: curve}
        assert b.known_overnight_curves == {FED_FUNDS: curve}

    def test_known_target_claimed_twice(self):
        """A second pre-bound curve for the same currency fails at its binding call."""
        b = ConfigurationBuilder()
        b.using_curve(ConstantYieldCurve("OIS-1", 0.02)).for_discounting(USD)
        second = b.using_curve(ConstantYieldCurve("OIS-2", 0.02))
        with pytest.raises(StateError):
            second.for_discounting(USD)
        second.for_discounting(EUR)
        assert b.known_discounting_curves[EUR].name == "OIS-2"

    def test_known_index_claimed_twice(self):
        b = ConfigurationBuilder()
        b.using_curve(ConstantYieldCurve("3M-1", 0.02)).for_index(LIBOR_3M)
        with pytest.raises(StateError):
            b.using_curve(ConstantYieldCurve("3M-2", 0.02)).for_index(LIBOR_3M)

    def test_remove_nodes_keeps_curve(self, builder):
        builder.remove_nodes("USD-3M")
        assert builder.nodes["USD-3M"] == ()
        assert "USD-3M" in builder.parameterizations
        with pytest.raises(StateError):
            builder.get_builder()

    def test_remove_curve(self, builder):
        builder.remove_curve("USD-3M")
        assert builder.curve_names == [("USD-OIS",)]
        assert "USD-3M" not in builder.nodes
        assert "USD-3M" not in builder.parameterizations
        assert isinstance(builder.get_builder(), DiscountingCalibrationEngine)

    def test_remove_last_curve_resets_first_stage(self):
        b = ConfigurationBuilder().building("A")
        b.remove_curve("A")
        assert b.curve_names == []
        b.building("B")
        assert b.curve_names == [("B",)]


class TestSettings:
    """Root finder settings and market data."""

    def test_defaults(self):
        assert ConfigurationBuilder().root_finder_settings == RootFinderSettings()

    def test_setters(self):
        b = ConfigurationBuilder().root_finding_absolute_tolerance(1e-10) \
            .root_finding_relative_tolerance(1e-8).root_finding_maximum_steps(50).root_finding_method("lm")
        assert b.root_finder_settings == RootFinderSettings(1e-10, 1e-8, 50, "lm")

    def test_invalid_settings(self):
        b = ConfigurationBuilder()
        with pytest.raises(ConfigurationError):
            b.root_finding_absolute_tolerance(0.0)
        with pytest.raises(ConfigurationError):
            b.root_finding_maximum_steps(0)
        with pytest.raises(ConfigurationError):
            b.root_finding_method("newton")
        with pytest.raises(ConfigurationError):
            b.root_finding_relative_tolerance(None)

    def test_fx_and_known_bundle(self):
        fx = FXMatrix.of(USD, EUR, 0.9)
        bundle = CurveBuildingBlockBundle()
        b = ConfigurationBuilder().add_fx_matrix(fx).with_known_bundle(bundle)
        assert b.fx_matrix == fx
        assert b.known_bundle is bundle
        with pytest.raises(ConfigurationError):
            b.add_fx_matrix(None)


class TestFreeze:
    """Validation by get_builder."""

    def test_valid_configuration(self, builder):
        engine = builder.get_builder()
        assert isinstance(engine, DiscountingCalibrationEngine)
        assert engine.curve_names == [("USD-OIS",), ("USD-3M",)]
        assert engine.discounting_curves == {"USD-OIS": USD}

    def test_empty_configuration(self):
        with pytest.raises(StateError):
            ConfigurationBuilder().get_builder()

    def test_missing_parameterization(self, builder):
        builder.then_building("USD-6M").add_nodes("USD-6M", deposits())
        with pytest.raises(StateError):
            builder.get_builder()

    def test_missing_curve_type(self, builder):
        builder.then_building("USD-6M").add_nodes("USD-6M", deposits())
        builder.using("USD-6M").for_index(LIBOR_3M)
        with pytest.raises(StateError):
            builder.get_builder()

    def test_missing_nodes(self, builder):
        builder.then_building("NS").using("NS").functional_form(CurveFunction.NELSON_SIEGEL)
        with pytest.raises(StateError):
            builder.get_builder()

    def test_nodes_for_unknown_curve(self, builder):
        builder.add_nodes("EUR-OIS", deposits(EUR))
        with pytest.raises(StateError):
            builder.get_builder()

    def test_parameterization_for_unknown_curve(self, builder):
        builder.using("EUR-OIS").with_interpolator(LinearInterpolator())
        with pytest.raises(StateError):
            builder.get_builder()

    def test_known_curve_name_clash(self, builder):
        builder.using_curve(ConstantYieldCurve("USD-OIS", 0.02)).for_discounting(EUR)
        with pytest.raises(StateError):
            builder.get_builder()

    def test_engine_is_a_snapshot(self, builder):
        """Changes after freezing do not reach the engine."""
        engine = builder.get_builder()
        builder.add_nodes("USD-3M", deposits())
        builder.using_curve(ConstantYieldCurve("EUR-OIS", 0.0)).for_discounting(EUR)
        assert len(engine.nodes["USD-3M"]) == 1
        assert engine.known_discounting_curves == {}


class TestCopy:
    """Independent copies of a configuration."""

    def test_copy_equal(self, builder):
        assert builder.copy() == builder

    def test_copy_diverges(self, builder):
        other = builder.copy()
        other.add_nodes("USD-3M", deposits())
        other.parameterizations["USD-OIS"].for_index(LIBOR_3M)
        other.then_building("EUR-OIS")
        assert other != builder
        assert len(builder.nodes["USD-3M"]) == 1
        assert builder.parameterizations["USD-OIS"].ibor_indices == ()
        assert builder.curve_names == [("USD-OIS",), ("USD-3M",)]

    def test_copy_rebinds_chain(self, builder):
        """Per-curve builders of a copy continue the chain on the copy."""
        other = builder.copy()
        result = other.parameterizations["USD-OIS"].add_nodes("USD-OIS", deposits())
        assert result is other
        assert len(builder.nodes["USD-OIS"]) == 3

    def test_copy_known_curves(self):
        b = ConfigurationBuilder()
        b.using_curve(ConstantYieldCurve("OIS", 0.02)).for_discounting(USD)
        other = b.copy()
        assert other == b
        with pytest.raises(StateError):
            other.using_curve(ConstantYieldCurve("OIS-2", 0.02)).for_discounting(USD)
        other.using_curve(ConstantYieldCurve("EUR", 0.0)).for_discounting(EUR)
        assert EUR not in b.known_discounting_curves

    def test_repr(self, builder):
        text = repr(builder)
        assert text.startswith("ConfigurationBuilder[build_order=")
        assert "USD-OIS" in text


class TestVariants:
    """Hull-White and issuer builders."""

    def _configure(self, b):
        b.building("USD").using("USD").for_discounting(USD).for_index(LIBOR_3M) \
            .with_interpolator(LinearInterpolator()).add_nodes("USD", deposits())
        return b

    def test_hull_white_requires_parameters(self):
        b = self._configure(HullWhiteConfigurationBuilder())
        with pytest.raises(StateError):
            b.get_builder()
        b.add_hull_white_parameters(HullWhiteOneFactorParameters.constant(0.01, 0.01))
        with pytest.raises(StateError):
            b.get_builder()
        b.for_hull_white_currency(USD)
        engine = b.get_builder()
        assert isinstance(engine, HullWhiteCalibrationEngine)
        assert engine.hull_white_currency == USD

    def test_hull_white_copy(self):
        b = self._configure(HullWhiteConfigurationBuilder())
        b.add_hull_white_parameters(HullWhiteOneFactorParameters.constant(0.01, 0.01)).for_hull_white_currency(USD)
        other = b.copy()
        assert other == b
        other.for_hull_white_currency(EUR)
        assert other != b
        assert b.hull_white_currency == USD

    def test_issuer_builder(self):
        b = IssuerConfigurationBuilder()
        b.building("UST").using("UST").for_issuer(("UST", ShortNameFilter())) \
            .with_interpolator(LinearInterpolator()).add_nodes("UST", deposits())
        assert b.issuer_curves == {"UST": (("UST", ShortNameFilter()),)}
        assert isinstance(b.get_builder(), IssuerCalibrationEngine)

    def test_plain_builder_has_no_issuers(self):
        with pytest.raises(AttributeError):
            ConfigurationBuilder().using("UST").for_issuer(("UST", ShortNameFilter()))

    def test_variants_not_equal(self):
        assert ConfigurationBuilder() != IssuerConfigurationBuilder()
        assert ConfigurationBuilder() == ConfigurationBuilder()
