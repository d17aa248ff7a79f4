"""
Unit tests for calibration instruments and their definitions.
"""

from dataclasses import replace
from datetime import date

import numpy as np
import pandas as pd
import pytest

from multicurve.conventions import DayCount
from multicurve.curves import ConstantYieldCurve
from multicurve.errors import MissingDataError
from multicurve.hullwhite import HullWhiteOneFactorParameters
from multicurve.identifiers import USD, IborIndex, LegalEntity, OvernightIndex, ShortNameFilter
from multicurve.instruments import (
    CashDefinition,
    FixedCouponBondDefinition,
    FixedIborSwapDefinition,
    FRADefinition,
    IborCouponDefinition,
    OISDefinition,
    RateFutureDefinition,
)
from multicurve.provider import HullWhiteProvider, IssuerProvider, MulticurveProvider

LIBOR_3M = IborIndex("USDLIBOR3M", USD, "3M")
FED_FUNDS = OvernightIndex("FEDFUNDS", USD)


@pytest.fixture
def flat_provider():
    """Single flat curve for discounting and both indices."""
    provider = MulticurveProvider()
    provider.set_curve(
        ConstantYieldCurve("USD", 0.02),
        discounting=[USD],
        ibor_indices=[LIBOR_3M],
        overnight_indices=[FED_FUNDS],
    )
    return provider


class TestCash:
    """Deposits."""

    def test_par_spread_zero_at_implied_rate(self, flat_provider):
        """A deposit quoted at the curve's simple rate reprices."""
        definition = CashDefinition.from_tenor(USD, date(2020, 1, 3), "3M", 0.0)
        cash = definition.to_derivative(date(2020, 1, 1))
        implied = cash.par_spread(flat_provider)
        repriced = replace(cash, rate=implied)
        assert abs(repriced.par_spread(flat_provider)) < 1e-14

    def test_times_relative_to_valuation(self):
        """Times are ACT/365 from valuation, accrual uses the day count."""
        definition = CashDefinition(USD, date(2020, 1, 3), date(2020, 4, 3), 0.015)
        cash = definition.to_derivative(date(2020, 1, 1))
        assert cash.start_time == pytest.approx(2 / 365)
        assert cash.end_time == pytest.approx(93 / 365)
        assert cash.accrual == pytest.approx(91 / 360)
        assert cash.initial_rate() == 0.015
        assert cash.last_time() == cash.end_time


class TestIborCoupons:
    """Ibor coupons and FRAs."""

    def test_node_time_conventions_differ(self):
        """Payment after the fixing period end gives maturity > last fixing end."""
        definition = IborCouponDefinition(LIBOR_3M, date(2017, 1, 1), date(2017, 4, 1), 0.01)
        coupon = definition.to_derivative(date(2016, 12, 1))
        assert coupon.last_time() > coupon.last_fixing_end_time()
        assert coupon.last_fixing_end_time() == pytest.approx(121 / 365)

    def test_forward_coupon(self, flat_provider):
        """Coupon fixing in the future is projected."""
        definition = IborCouponDefinition(LIBOR_3M, date(2020, 4, 6), date(2020, 7, 6), 0.02)
        coupon = definition.to_derivative(date(2020, 1, 2))
        assert coupon.fixed_rate is None
        expected = flat_provider.forward_rate(
            LIBOR_3M, coupon.fixing_start_time, coupon.fixing_end_time, coupon.fixing_accrual
        )
        assert coupon.par_spread(flat_provider) == pytest.approx(expected - 0.02)

    def test_past_fixing_required(self):
        """A fixing date before valuation needs a published fixing."""
        definition = IborCouponDefinition(LIBOR_3M, date(2020, 1, 6), date(2020, 4, 6), 0.02)
        assert definition.fixing_date == date(2020, 1, 2)
        with pytest.raises(MissingDataError):
            definition.to_derivative(date(2020, 2, 3))
        with pytest.raises(MissingDataError):
            definition.to_derivative(date(2020, 2, 3), {LIBOR_3M: pd.Series(dtype=float)})

    def test_past_fixing_used(self, flat_provider):
        """A published fixing replaces the forward."""
        definition = IborCouponDefinition(LIBOR_3M, date(2020, 1, 6), date(2020, 4, 6), 0.02)
        fixings = {LIBOR_3M: pd.Series({date(2020, 1, 2): 0.0185})}
        coupon = definition.to_derivative(date(2020, 2, 3), fixings)
        assert coupon.fixed_rate == 0.0185
        assert coupon.par_spread(flat_provider) == pytest.approx(0.0185 - 0.02)

    def test_fixing_on_valuation_date_optional(self):
        """Without a fixing published today the rate is forecast."""
        definition = IborCouponDefinition(LIBOR_3M, date(2020, 1, 6), date(2020, 4, 6), 0.02)
        coupon = definition.to_derivative(date(2020, 1, 2), {})
        assert coupon.fixed_rate is None

    def test_fra(self, flat_provider):
        """FRA residual is forward minus quote."""
        definition = FRADefinition(LIBOR_3M, date(2020, 4, 6), date(2020, 7, 6), 0.02)
        fra = definition.to_derivative(date(2020, 1, 2))
        forward = flat_provider.forward_rate(LIBOR_3M, fra.fixing_start_time, fra.fixing_end_time,
                                             fra.fixing_accrual)
        assert fra.par_spread(flat_provider) == pytest.approx(forward - 0.02)
        assert fra.currency == USD


class TestSwaps:
    """Fixed/ibor swaps and OIS."""

    def test_swap_at_par_rate(self, flat_provider):
        """Swap quoted at its par rate has zero par spread."""
        definition = FixedIborSwapDefinition.from_tenor(LIBOR_3M, date(2020, 1, 6), "2Y", 0.0)
        swap = definition.to_derivative(date(2020, 1, 2))
        assert len(swap.ibor_coupons) == 8
        assert len(swap.fixed_payment_times) == 4
        par = swap.par_rate(flat_provider)
        assert 0.015 < par < 0.025
        assert abs(replace(swap, fixed_rate=par).par_spread(flat_provider)) < 1e-14

    def test_swap_last_fixing_end(self):
        """Last fixing end of a swap is its last coupon's fixing end."""
        swap = FixedIborSwapDefinition.from_tenor(LIBOR_3M, date(2020, 1, 6), "1Y", 0.02) \
            .to_derivative(date(2020, 1, 2))
        assert swap.last_fixing_end_time() == swap.ibor_coupons[-1].fixing_end_time
        assert swap.initial_rate() == 0.02

    def test_ois_single_period(self, flat_provider):
        """OIS shorter than the payment period has one period."""
        definition = OISDefinition.from_tenor(FED_FUNDS, date(2020, 1, 6), "6M", 0.02)
        ois = definition.to_derivative(date(2020, 1, 2))
        assert len(ois.payment_times) == 1
        assert ois.accrued_factors == (1.0,)

    def test_ois_at_par(self, flat_provider):
        """OIS quoted at its par rate has zero par spread."""
        definition = OISDefinition.from_tenor(FED_FUNDS, date(2020, 1, 6), "3Y", 0.0)
        ois = definition.to_derivative(date(2020, 1, 2))
        assert len(ois.payment_times) == 3
        par = ois.par_spread(flat_provider)
        assert abs(replace(ois, fixed_rate=par).par_spread(flat_provider)) < 1e-14

    def test_ois_accrued_compounding(self):
        """Started periods compound published overnight fixings."""
        definition = OISDefinition(FED_FUNDS, date(2020, 1, 2), date(2020, 7, 2), 0.02)
        fixings = {FED_FUNDS: pd.Series({date(2020, 1, 2): 0.015, date(2020, 1, 3): 0.016})}
        ois = definition.to_derivative(date(2020, 1, 6), fixings)
        expected = (1 + 0.015 / 360) * (1 + 0.016 * 3 / 360)
        assert ois.accrued_factors[0] == pytest.approx(expected)
        assert ois.start_times[0] < 0

    def test_ois_missing_fixings(self):
        """Started period without fixings raises."""
        definition = OISDefinition(FED_FUNDS, date(2020, 1, 2), date(2020, 7, 2), 0.02)
        with pytest.raises(MissingDataError):
            definition.to_derivative(date(2020, 1, 6))


class TestFutures:
    """Rate futures."""

    @pytest.fixture
    def future(self):
        return RateFutureDefinition(LIBOR_3M, date(2020, 3, 16), 0.98).to_derivative(date(2020, 1, 2))

    def test_price_without_convexity(self, flat_provider, future):
        """Plain providers price futures at 1 - forward."""
        forward = flat_provider.forward_rate(LIBOR_3M, future.fixing_start_time, future.fixing_end_time,
                                             future.fixing_accrual)
        assert future.model_price(flat_provider) == pytest.approx(1 - forward)
        assert future.initial_rate() == pytest.approx(0.02)

    def test_convexity_lowers_price(self, flat_provider, future):
        """Hull-White convexity makes the future cheaper than 1 - forward."""
        hw = HullWhiteProvider(HullWhiteOneFactorParameters.constant(0.01, 0.01), USD)
        hw.set_curve(ConstantYieldCurve("USD", 0.02), discounting=[USD], ibor_indices=[LIBOR_3M])
        assert future.model_price(hw) < future.model_price(flat_provider)

    def test_fixing_period(self, future):
        """Fixing period starts spot after last trading."""
        assert future.fixing_start_time > future.last_trading_time
        assert future.last_time() == future.fixing_end_time


class TestBonds:
    """Fixed coupon bonds."""

    @pytest.fixture
    def issuer(self):
        return LegalEntity("UST", region="US", sector="Government")

    @pytest.fixture
    def bond_definition(self, issuer):
        return FixedCouponBondDefinition(
            USD, issuer, date(2019, 7, 15), date(2022, 7, 15), 0.03, 1.0, day_count=DayCount.ACT_ACT
        )

    def test_zero_rate_price(self, issuer, bond_definition):
        """With zero rates the dirty price is notional plus coupons."""
        provider = IssuerProvider()
        provider.set_curve(ConstantYieldCurve("UST", 0.0), issuers=[("UST", ShortNameFilter())])
        bond = bond_definition.to_derivative(date(2020, 1, 2))
        assert len(bond.coupon_times) == 6
        assert bond.model_price(provider) == pytest.approx(1.0 + sum(bond.coupon_amounts))

    def test_discounting_lowers_price(self, issuer, bond_definition):
        provider = IssuerProvider()
        provider.set_curve(ConstantYieldCurve("UST", 0.05), issuers=[("UST", ShortNameFilter())])
        bond = bond_definition.to_derivative(date(2020, 1, 2))
        assert bond.model_price(provider) < 1.0 + sum(bond.coupon_amounts)
        assert bond.par_spread(provider) == pytest.approx(bond.model_price(provider) - 1.0)

    def test_unknown_issuer(self, bond_definition):
        provider = IssuerProvider()
        provider.set_curve(ConstantYieldCurve("OTHER", 0.01), issuers=[("OTHER", ShortNameFilter())])
        bond = bond_definition.to_derivative(date(2020, 1, 2))
        with pytest.raises(MissingDataError):
            bond.model_price(provider)

    def test_coupon_amounts(self, bond_definition):
        """Coupon amounts accrue with the bond day count."""
        bond = bond_definition.to_derivative(date(2020, 1, 2))
        np.testing.assert_allclose(bond.coupon_amounts, 0.015, atol=5e-4)
