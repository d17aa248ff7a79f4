"""
Unit tests for curve providers, FX matrix and Hull-White parameters.
"""

import numpy as np
import pytest

from multicurve.curves import ConstantYieldCurve
from multicurve.errors import ConfigurationError, MissingDataError
from multicurve.fx import FXMatrix
from multicurve.hullwhite import HullWhiteOneFactorParameters
from multicurve.identifiers import (
    EUR,
    GBP,
    USD,
    IborIndex,
    LegalEntity,
    OvernightIndex,
    RegionFilter,
    SectorFilter,
    ShortNameFilter,
)
from multicurve.provider import HullWhiteProvider, IssuerProvider, MulticurveProvider

LIBOR_3M = IborIndex("USDLIBOR3M", USD, "3M")
EURIBOR_6M = IborIndex("EURIBOR6M", EUR, "6M")
FED_FUNDS = OvernightIndex("FEDFUNDS", USD)


class TestMulticurveProvider:
    """Curve lookups by target."""

    @pytest.fixture
    def provider(self):
        provider = MulticurveProvider(FXMatrix.of(USD, EUR, 0.9))
        provider.set_curve(ConstantYieldCurve("USD-OIS", 0.02), discounting=[USD], overnight_indices=[FED_FUNDS])
        provider.set_curve(ConstantYieldCurve("USD-3M", 0.025), ibor_indices=[LIBOR_3M])
        return provider

    def test_lookup_by_target(self, provider):
        """Discounting by currency, forwards by index type."""
        assert provider.discount_curve(USD).name == "USD-OIS"
        assert provider.forward_curve(FED_FUNDS).name == "USD-OIS"
        assert provider.forward_curve(LIBOR_3M).name == "USD-3M"
        assert provider.discount_factor(USD, 1.0) == pytest.approx(np.exp(-0.02))

    def test_missing_targets_raise(self, provider):
        """Missing curves raise MissingDataError, a KeyError."""
        with pytest.raises(MissingDataError):
            provider.discount_curve(EUR)
        with pytest.raises(KeyError):
            provider.forward_curve(EURIBOR_6M)
        with pytest.raises(MissingDataError):
            provider.curve("GBP-OIS")

    def test_copy_is_independent(self, provider):
        """Curves added to a copy do not appear in the original."""
        other = provider.copy()
        other.set_curve(ConstantYieldCurve("EUR-OIS", 0.0), discounting=[EUR])
        assert "EUR-OIS" in other
        assert "EUR-OIS" not in provider
        assert len(provider) == 2

    def test_fx_rate(self, provider):
        assert provider.fx_rate(USD, EUR) == pytest.approx(0.9)
        assert provider.fx_rate(USD, USD) == 1.0
        with pytest.raises(MissingDataError):
            MulticurveProvider().fx_rate(USD, EUR)

    def test_no_convexity(self, provider):
        assert provider.futures_convexity_factor(LIBOR_3M, 0.5, 0.5, 0.75) == 1.0

    def test_to_frame(self, provider):
        """Summary table lists each curve with its targets."""
        frame = provider.to_frame()
        assert list(frame["curve"]) == ["USD-OIS", "USD-3M"]
        assert "discounting USD" in frame.loc[0, "targets"]
        assert "overnight FEDFUNDS" in frame.loc[0, "targets"]
        assert frame.loc[1, "parameters"] == 1


class TestIssuerProvider:
    """Issuer curves selected by legal entity filters."""

    def test_filters(self):
        provider = IssuerProvider()
        provider.set_curve(ConstantYieldCurve("UST", 0.02), issuers=[("UST", ShortNameFilter())])
        provider.set_curve(ConstantYieldCurve("EU-GOV", 0.01), issuers=[("EU", RegionFilter())])
        provider.set_curve(ConstantYieldCurve("CORP", 0.04), issuers=[("Financial", SectorFilter())])

        assert provider.issuer_curve(LegalEntity("UST", "US")).name == "UST"
        assert provider.issuer_curve(LegalEntity("DBR", "EU")).name == "EU-GOV"
        assert provider.issuer_curve(LegalEntity("BANK", "UK", "Financial")).name == "CORP"
        with pytest.raises(MissingDataError):
            provider.issuer_curve(LegalEntity("XYZ", "JP", "Industrial"))

    def test_copy_keeps_issuers(self):
        provider = IssuerProvider()
        provider.set_curve(ConstantYieldCurve("UST", 0.02), issuers=[("UST", ShortNameFilter())])
        other = provider.copy()
        assert isinstance(other, IssuerProvider)
        assert other.issuers == provider.issuers
        assert "issuer UST" in other.to_frame().loc[0, "targets"]


class TestFXMatrix:
    """Exchange rate table."""

    def test_of(self):
        """of(a, b, r) means 1 a = r b."""
        fx = FXMatrix.of(USD, EUR, 0.7)
        assert fx.rate(USD, EUR) == pytest.approx(0.7)
        assert fx.rate(EUR, USD) == pytest.approx(1 / 0.7)
        assert fx.convert(100.0, USD, EUR) == pytest.approx(70.0)

    def test_add_currency_cross_rates(self):
        """Cross rates go through the base."""
        fx = FXMatrix(USD)
        fx.add_currency(EUR, USD, 1.1)
        fx.add_currency(GBP, USD, 1.25)
        assert fx.rate(GBP, EUR) == pytest.approx(1.25 / 1.1)
        assert fx.currencies == [USD, EUR, GBP]

    def test_invalid(self):
        fx = FXMatrix(USD)
        with pytest.raises(ConfigurationError):
            fx.add_currency(EUR, USD, -1.0)
        with pytest.raises(MissingDataError):
            fx.add_currency(EUR, GBP, 1.0)
        fx.add_currency(EUR, USD, 1.1)
        with pytest.raises(ConfigurationError):
            fx.add_currency(EUR, USD, 1.2)
        with pytest.raises(MissingDataError):
            fx.rate(USD, GBP)

    def test_equality_and_copy(self):
        fx = FXMatrix.of(USD, EUR, 0.7)
        other = fx.copy()
        assert other == fx
        other.add_currency(GBP, USD, 1.3)
        assert other != fx


class TestHullWhite:
    """Hull-White futures convexity."""

    def test_constant_volatility_closed_form(self):
        """Convexity factor for constant volatility."""
        a, sigma = 0.05, 0.01
        t0, t1, t2 = 1.0, 1.0, 1.25
        params = HullWhiteOneFactorParameters.constant(a, sigma)
        factor1 = np.exp(-a * t1) - np.exp(-a * t2)
        factor2 = sigma ** 2 * (np.exp(a * t0) - 1) * (2 - np.exp(-a * (t2 - t0)) - np.exp(-a * t2))
        expected = np.exp(factor1 / (2 * a ** 3) * factor2)
        assert params.futures_convexity_factor(t0, t1, t2) == pytest.approx(expected)
        assert expected > 1.0

    def test_zero_volatility_no_adjustment(self):
        params = HullWhiteOneFactorParameters.constant(0.05, 0.0)
        assert params.futures_convexity_factor(1.0, 1.0, 1.25) == pytest.approx(1.0)
        assert params.futures_price(0.02, 0.25, 1.0, 1.0, 1.25) == pytest.approx(0.98)

    def test_expired_future_no_adjustment(self):
        params = HullWhiteOneFactorParameters.constant(0.05, 0.01)
        assert params.futures_convexity_factor(-0.1, 0.0, 0.25) == pytest.approx(1.0)

    def test_piecewise_volatility(self):
        """Only volatility periods before last trading matter."""
        flat = HullWhiteOneFactorParameters.constant(0.05, 0.01)
        stepped = HullWhiteOneFactorParameters(0.05, (0.01, 0.02), (1.0,))
        assert stepped.futures_convexity_factor(0.5, 0.5, 0.75) == pytest.approx(
            flat.futures_convexity_factor(0.5, 0.5, 0.75)
        )
        assert stepped.futures_convexity_factor(2.0, 2.0, 2.25) > flat.futures_convexity_factor(2.0, 2.0, 2.25)

    def test_validation(self):
        with pytest.raises(ConfigurationError):
            HullWhiteOneFactorParameters(0.0, (0.01,))
        with pytest.raises(ConfigurationError):
            HullWhiteOneFactorParameters(0.05, (0.01, 0.02))
        with pytest.raises(ConfigurationError):
            HullWhiteOneFactorParameters(0.05, (0.01, 0.02, 0.03), (2.0, 1.0))

    def test_provider_currency(self):
        """Convexity applies only to indices in the model currency."""
        provider = HullWhiteProvider(HullWhiteOneFactorParameters.constant(0.05, 0.01), USD)
        assert provider.futures_convexity_factor(LIBOR_3M, 1.0, 1.0, 1.25) > 1.0
        assert provider.futures_convexity_factor(EURIBOR_6M, 1.0, 1.0, 1.5) == 1.0
        assert isinstance(provider.copy(), HullWhiteProvider)
