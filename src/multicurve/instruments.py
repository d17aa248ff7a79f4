"""
Calibration instruments.

Two layers, mirroring how market data becomes curve constraints:

- Definitions are date-based and immutable (``CashDefinition``,
  ``FixedIborSwapDefinition``, ...). They are what a configuration holds
  as curve nodes.
- ``to_derivative(valuation_date, fixings)`` turns a definition into a
  time-based ``CalibrationInstrument`` relative to the valuation date,
  resolving past fixings from ``pandas.Series`` keyed by date.

Every calibration instrument exposes the same capabilities:
- par_spread(provider): model value minus market quote, in quote units
- last_time(): time of the last payment (instrument maturity)
- last_fixing_end_time(): end of the last fixing period
- initial_rate(): rate used for the solver's starting point

Fixings are passed as ``{index: pandas.Series}``. A coupon whose fixing
date is before the valuation date must find its fixing there; on the
valuation date itself a published fixing is used when present.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from datetime import date
from typing import Mapping, Optional, Tuple

import numpy as np
import pandas as pd

from .conventions import BusinessDayConvention, DayCount, adjust_business_day, curve_time, year_fraction
from .dates import DateUtils
from .errors import MissingDataError
from .identifiers import Currency, IborIndex, LegalEntity, OvernightIndex

Fixings = Mapping[object, pd.Series]


def _fixing(fixings: Optional[Fixings], index, fixing_date: date, valuation_date: date) -> Optional[float]:
    """Published fixing, or None when the rate should be forecast."""
    if fixing_date > valuation_date:
        return None
    series = fixings.get(index) if fixings is not None else None
    if series is not None:
        series = _by_timestamp(series)
        key = pd.Timestamp(fixing_date)
        if key in series.index:
            return float(series.loc[key])
    if fixing_date == valuation_date:
        return None
    raise MissingDataError(f"Missing fixing for {index} on {fixing_date}")


def _by_timestamp(series: pd.Series) -> pd.Series:
    series = pd.Series(series)
    series.index = pd.to_datetime(series.index)
    return series.sort_index()


# ---------------------------------------------------------------------------
# Calibration instruments (valuation-date relative)
# ---------------------------------------------------------------------------

class CalibrationInstrument(ABC):
    """Time-based instrument priced against a provider during calibration."""

    currency: Currency

    @abstractmethod
    def par_spread(self, provider) -> float:
        """Model value minus market quote; zero when the curves reprice the quote."""
        pass

    @abstractmethod
    def last_time(self) -> float:
        pass

    def last_fixing_end_time(self) -> float:
        return self.last_time()

    @abstractmethod
    def initial_rate(self) -> float:
        pass


@dataclass(frozen=True)
class Cash(CalibrationInstrument):
    """Deposit paying rate * accrual at end_time."""
    currency: Currency
    start_time: float
    end_time: float
    accrual: float
    rate: float

    def par_spread(self, provider) -> float:
        df_start = provider.discount_factor(self.currency, self.start_time)
        df_end = provider.discount_factor(self.currency, self.end_time)
        return (df_start / df_end - 1) / self.accrual - self.rate

    def last_time(self) -> float:
        return self.end_time

    def initial_rate(self) -> float:
        return self.rate


@dataclass(frozen=True)
class ForwardRateAgreement(CalibrationInstrument):
    currency: Currency
    index: IborIndex
    fixing_start_time: float
    fixing_end_time: float
    fixing_accrual: float
    rate: float

    def par_spread(self, provider) -> float:
        forward = provider.forward_rate(self.index, self.fixing_start_time, self.fixing_end_time, self.fixing_accrual)
        return forward - self.rate

    def last_time(self) -> float:
        return self.fixing_end_time

    def initial_rate(self) -> float:
        return self.rate


@dataclass(frozen=True)
class CouponIbor(CalibrationInstrument):
    """
    Single ibor coupon quoted as a rate.

    Pays at payment_time, which may be after the fixing period end.
    """
    currency: Currency
    index: IborIndex
    payment_time: float
    fixing_start_time: float
    fixing_end_time: float
    fixing_accrual: float
    rate: float
    fixed_rate: Optional[float] = None

    def forward(self, provider) -> float:
        if self.fixed_rate is not None:
            return self.fixed_rate
        return provider.forward_rate(self.index, self.fixing_start_time, self.fixing_end_time, self.fixing_accrual)

    def par_spread(self, provider) -> float:
        return self.forward(provider) - self.rate

    def last_time(self) -> float:
        return self.payment_time

    def last_fixing_end_time(self) -> float:
        return self.fixing_end_time

    def initial_rate(self) -> float:
        return self.rate


@dataclass(frozen=True)
class FixedIborSwap(CalibrationInstrument):
    """Fixed leg against ibor coupons, quoted by the fixed rate."""
    currency: Currency
    fixed_payment_times: Tuple[float, ...]
    fixed_accruals: Tuple[float, ...]
    ibor_coupons: Tuple[CouponIbor, ...]
    fixed_rate: float

    def annuity(self, provider) -> float:
        return sum(
            acc * provider.discount_factor(self.currency, t)
            for t, acc in zip(self.fixed_payment_times, self.fixed_accruals)
        )

    def floating_value(self, provider) -> float:
        return sum(
            coupon.fixing_accrual * coupon.forward(provider)
            * provider.discount_factor(self.currency, coupon.payment_time)
            for coupon in self.ibor_coupons
        )

    def par_rate(self, provider) -> float:
        return self.floating_value(provider) / self.annuity(provider)

    def par_spread(self, provider) -> float:
        return self.par_rate(provider) - self.fixed_rate

    def last_time(self) -> float:
        return max(self.fixed_payment_times[-1], self.ibor_coupons[-1].payment_time)

    def last_fixing_end_time(self) -> float:
        return self.ibor_coupons[-1].fixing_end_time

    def initial_rate(self) -> float:
        return self.fixed_rate


@dataclass(frozen=True)
class OvernightIndexedSwap(CalibrationInstrument):
    """
    Fixed leg against compounded overnight periods.

    accrued_factors holds the compounding already realised for periods
    that started before the valuation date (1.0 otherwise).
    """
    currency: Currency
    index: OvernightIndex
    start_times: Tuple[float, ...]
    end_times: Tuple[float, ...]
    payment_times: Tuple[float, ...]
    accruals: Tuple[float, ...]
    accrued_factors: Tuple[float, ...]
    fixed_rate: float

    def floating_value(self, provider) -> float:
        curve = provider.forward_curve(self.index)
        value = 0.0
        for start, end, pay, accrued in zip(self.start_times, self.end_times, self.payment_times,
                                            self.accrued_factors):
            growth = accrued * curve.discount_factor(max(start, 0.0)) / curve.discount_factor(end)
            value += (growth - 1) * provider.discount_factor(self.currency, pay)
        return value

    def annuity(self, provider) -> float:
        return sum(
            acc * provider.discount_factor(self.currency, t)
            for t, acc in zip(self.payment_times, self.accruals)
        )

    def par_spread(self, provider) -> float:
        return self.floating_value(provider) / self.annuity(provider) - self.fixed_rate

    def last_time(self) -> float:
        return self.payment_times[-1]

    def last_fixing_end_time(self) -> float:
        return self.end_times[-1]

    def initial_rate(self) -> float:
        return self.fixed_rate


@dataclass(frozen=True)
class RateFuture(CalibrationInstrument):
    """
    Short-term interest rate future quoted by price (1 - rate).

    The provider supplies the convexity factor; plain providers return 1.
    """
    currency: Currency
    index: IborIndex
    last_trading_time: float
    fixing_start_time: float
    fixing_end_time: float
    fixing_accrual: float
    price: float

    def model_price(self, provider) -> float:
        forward = provider.forward_rate(self.index, self.fixing_start_time, self.fixing_end_time, self.fixing_accrual)
        gamma = provider.futures_convexity_factor(
            self.index, self.last_trading_time, self.fixing_start_time, self.fixing_end_time
        )
        return 1.0 - gamma * forward + (1.0 - gamma) / self.fixing_accrual

    def par_spread(self, provider) -> float:
        return self.model_price(provider) - self.price

    def last_time(self) -> float:
        return self.fixing_end_time

    def initial_rate(self) -> float:
        return 1.0 - self.price


@dataclass(frozen=True)
class FixedCouponBond(CalibrationInstrument):
    """Bond quoted by dirty price per unit notional, discounted on its issuer curve."""
    currency: Currency
    issuer: LegalEntity
    settlement_time: float
    coupon_times: Tuple[float, ...]
    coupon_amounts: Tuple[float, ...]
    dirty_price: float
    coupon: float

    def model_price(self, provider) -> float:
        settle_df = provider.issuer_discount_factor(self.issuer, self.settlement_time)
        value = sum(
            amount * provider.issuer_discount_factor(self.issuer, t)
            for t, amount in zip(self.coupon_times, self.coupon_amounts)
        )
        value += provider.issuer_discount_factor(self.issuer, self.coupon_times[-1])
        return value / settle_df

    def par_spread(self, provider) -> float:
        return self.model_price(provider) - self.dirty_price

    def last_time(self) -> float:
        return self.coupon_times[-1]

    def initial_rate(self) -> float:
        return self.coupon


# ---------------------------------------------------------------------------
# Definitions (date based)
# ---------------------------------------------------------------------------

class InstrumentDefinition(ABC):
    """Date-based calibration node."""

    @property
    @abstractmethod
    def currency(self) -> Currency:
        pass

    @abstractmethod
    def to_derivative(self, valuation_date: date, fixings: Optional[Fixings] = None) -> CalibrationInstrument:
        pass


@dataclass(frozen=True)
class CashDefinition(InstrumentDefinition):
    """
    Deposit from start_date to end_date.

    Attributes:
        ccy: Deposit currency
        start_date: Accrual start
        end_date: Accrual end and payment date
        rate: Quoted simple rate
        day_count: Accrual convention
    """
    ccy: Currency
    start_date: date
    end_date: date
    rate: float
    day_count: DayCount = DayCount.ACT_360

    @classmethod
    def from_tenor(cls, ccy: Currency, start_date: date, tenor: str, rate: float,
                   day_count: DayCount = DayCount.ACT_360) -> "CashDefinition":
        end = adjust_business_day(DateUtils.add_tenor(start_date, tenor), BusinessDayConvention.MODIFIED_FOLLOWING)
        return cls(ccy, start_date, end, rate, day_count)

    @property
    def currency(self) -> Currency:
        return self.ccy

    def to_derivative(self, valuation_date, fixings=None) -> Cash:
        return Cash(
            currency=self.ccy,
            start_time=curve_time(valuation_date, self.start_date),
            end_time=curve_time(valuation_date, self.end_date),
            accrual=year_fraction(self.start_date, self.end_date, self.day_count),
            rate=self.rate,
        )


@dataclass(frozen=True)
class FRADefinition(InstrumentDefinition):
    """FRA on an ibor index over [accrual_start, accrual_end]."""
    index: IborIndex
    accrual_start: date
    accrual_end: date
    rate: float

    @property
    def currency(self) -> Currency:
        return self.index.currency

    def to_derivative(self, valuation_date, fixings=None) -> ForwardRateAgreement:
        return ForwardRateAgreement(
            currency=self.currency,
            index=self.index,
            fixing_start_time=curve_time(valuation_date, self.accrual_start),
            fixing_end_time=curve_time(valuation_date, self.accrual_end),
            fixing_accrual=year_fraction(self.accrual_start, self.accrual_end, self.index.day_count),
            rate=self.rate,
        )


@dataclass(frozen=True)
class IborCouponDefinition(InstrumentDefinition):
    """
    Ibor coupon with its fixing period and payment date.

    When payment_date is not given the coupon pays ``payment_lag``
    business days after the fixing period end.
    """
    index: IborIndex
    fixing_period_start: date
    fixing_period_end: date
    rate: float = 0.0
    payment_date: Optional[date] = None
    payment_lag: int = 2

    @property
    def currency(self) -> Currency:
        return self.index.currency

    @property
    def fixing_date(self) -> date:
        return DateUtils.add_business_days(self.fixing_period_start, -self.index.spot_lag)

    @property
    def payment(self) -> date:
        if self.payment_date is not None:
            return self.payment_date
        return DateUtils.add_business_days(self.fixing_period_end, self.payment_lag)

    def to_derivative(self, valuation_date, fixings=None) -> CouponIbor:
        return CouponIbor(
            currency=self.currency,
            index=self.index,
            payment_time=curve_time(valuation_date, self.payment),
            fixing_start_time=curve_time(valuation_date, self.fixing_period_start),
            fixing_end_time=curve_time(valuation_date, self.fixing_period_end),
            fixing_accrual=year_fraction(self.fixing_period_start, self.fixing_period_end, self.index.day_count),
            rate=self.rate,
            fixed_rate=_fixing(fixings, self.index, self.fixing_date, valuation_date),
        )


@dataclass(frozen=True)
class FixedIborSwapDefinition(InstrumentDefinition):
    """
    Vanilla fixed vs ibor swap.

    Floating periods follow the index tenor, fixed periods ``fixed_months``.
    """
    index: IborIndex
    start_date: date
    maturity_date: date
    fixed_rate: float
    fixed_months: int = 6
    fixed_day_count: DayCount = DayCount.THIRTY_360

    @classmethod
    def from_tenor(cls, index: IborIndex, start_date: date, tenor: str, fixed_rate: float,
                   fixed_months: int = 6, fixed_day_count: DayCount = DayCount.THIRTY_360):
        return cls(index, start_date, DateUtils.add_tenor(start_date, tenor), fixed_rate,
                   fixed_months, fixed_day_count)

    @property
    def currency(self) -> Currency:
        return self.index.currency

    def to_derivative(self, valuation_date, fixings=None) -> FixedIborSwap:
        fixed_dates = DateUtils.generate_schedule(self.start_date, self.maturity_date, self.fixed_months)
        fixed_starts = [self.start_date] + fixed_dates[:-1]
        float_dates = DateUtils.generate_schedule(
            self.start_date, self.maturity_date, DateUtils.tenor_months(self.index.tenor)
        )
        float_starts = [self.start_date] + float_dates[:-1]

        coupons = []
        for start, end in zip(float_starts, float_dates):
            if end <= valuation_date:
                continue
            coupon = IborCouponDefinition(self.index, start, end, self.fixed_rate, payment_date=end)
            coupons.append(coupon.to_derivative(valuation_date, fixings))

        paid = [(s, e) for s, e in zip(fixed_starts, fixed_dates) if e > valuation_date]
        return FixedIborSwap(
            currency=self.currency,
            fixed_payment_times=tuple(curve_time(valuation_date, e) for _, e in paid),
            fixed_accruals=tuple(year_fraction(s, e, self.fixed_day_count) for s, e in paid),
            ibor_coupons=tuple(coupons),
            fixed_rate=self.fixed_rate,
        )


@dataclass(frozen=True)
class OISDefinition(InstrumentDefinition):
    """Fixed vs compounded overnight swap with equal period schedules on both legs."""
    index: OvernightIndex
    start_date: date
    maturity_date: date
    fixed_rate: float
    payment_months: int = 12

    @classmethod
    def from_tenor(cls, index: OvernightIndex, start_date: date, tenor: str, fixed_rate: float,
                   payment_months: int = 12) -> "OISDefinition":
        return cls(index, start_date, DateUtils.add_tenor(start_date, tenor), fixed_rate, payment_months)

    @property
    def currency(self) -> Currency:
        return self.index.currency

    def _accrued_factor(self, start: date, valuation_date: date, fixings: Optional[Fixings]) -> float:
        if start >= valuation_date:
            return 1.0
        series = fixings.get(self.index) if fixings is not None else None
        if series is None:
            raise MissingDataError(f"Missing fixings for {self.index} from {start}")
        series = _by_timestamp(series)
        window = series[(series.index >= pd.Timestamp(start)) & (series.index < pd.Timestamp(valuation_date))]
        if len(window) == 0 or window.index[0] != pd.Timestamp(start):
            raise MissingDataError(f"Missing fixing for {self.index} on {start}")
        ends = list(window.index[1:]) + [pd.Timestamp(valuation_date)]
        days = np.array([(e - s).days for s, e in zip(window.index, ends)])
        basis = 360.0 if self.index.day_count == DayCount.ACT_360 else 365.0
        return float(np.prod(1 + window.values * days / basis))

    def to_derivative(self, valuation_date, fixings=None) -> OvernightIndexedSwap:
        if DateUtils.add_months(self.start_date, self.payment_months) >= self.maturity_date:
            ends = [adjust_business_day(self.maturity_date, BusinessDayConvention.MODIFIED_FOLLOWING)]
        else:
            ends = DateUtils.generate_schedule(self.start_date, self.maturity_date, self.payment_months)
        starts = [self.start_date] + ends[:-1]
        periods = [(s, e) for s, e in zip(starts, ends) if e > valuation_date]
        return OvernightIndexedSwap(
            currency=self.currency,
            index=self.index,
            start_times=tuple(curve_time(valuation_date, s) for s, _ in periods),
            end_times=tuple(curve_time(valuation_date, e) for _, e in periods),
            payment_times=tuple(curve_time(valuation_date, e) for _, e in periods),
            accruals=tuple(year_fraction(s, e, self.index.day_count) for s, e in periods),
            accrued_factors=tuple(self._accrued_factor(s, valuation_date, fixings) for s, _ in periods),
            fixed_rate=self.fixed_rate,
        )


@dataclass(frozen=True)
class RateFutureDefinition(InstrumentDefinition):
    """Future on an ibor index, fixing period starting spot after last trading."""
    index: IborIndex
    last_trading_date: date
    price: float

    @property
    def currency(self) -> Currency:
        return self.index.currency

    def to_derivative(self, valuation_date, fixings=None) -> RateFuture:
        start = DateUtils.add_business_days(self.last_trading_date, self.index.spot_lag)
        end = adjust_business_day(DateUtils.add_tenor(start, self.index.tenor),
                                  BusinessDayConvention.MODIFIED_FOLLOWING)
        return RateFuture(
            currency=self.currency,
            index=self.index,
            last_trading_time=curve_time(valuation_date, self.last_trading_date),
            fixing_start_time=curve_time(valuation_date, start),
            fixing_end_time=curve_time(valuation_date, end),
            fixing_accrual=year_fraction(start, end, self.index.day_count),
            price=self.price,
        )


@dataclass(frozen=True)
class FixedCouponBondDefinition(InstrumentDefinition):
    """
    Fixed coupon bullet bond quoted by dirty price per unit notional.

    Settlement defaults to the valuation date.
    """
    ccy: Currency
    issuer: LegalEntity
    start_date: date
    maturity_date: date
    coupon: float
    dirty_price: float
    coupon_months: int = 6
    day_count: DayCount = DayCount.ACT_ACT
    settlement_date: Optional[date] = None

    @property
    def currency(self) -> Currency:
        return self.ccy

    def to_derivative(self, valuation_date, fixings=None) -> FixedCouponBond:
        settle = self.settlement_date or valuation_date
        pay_dates = DateUtils.generate_schedule(
            self.start_date, self.maturity_date, self.coupon_months, BusinessDayConvention.FOLLOWING
        )
        starts = [self.start_date] + pay_dates[:-1]
        flows = [(s, e) for s, e in zip(starts, pay_dates) if e > settle]
        return FixedCouponBond(
            currency=self.ccy,
            issuer=self.issuer,
            settlement_time=curve_time(valuation_date, settle),
            coupon_times=tuple(curve_time(valuation_date, e) for _, e in flows),
            coupon_amounts=tuple(self.coupon * year_fraction(s, e, self.day_count) for s, e in flows),
            dirty_price=self.dirty_price,
            coupon=self.coupon,
        )


__all__ = [
    "CalibrationInstrument",
    "Cash",
    "ForwardRateAgreement",
    "CouponIbor",
    "FixedIborSwap",
    "OvernightIndexedSwap",
    "RateFuture",
    "FixedCouponBond",
    "InstrumentDefinition",
    "CashDefinition",
    "FRADefinition",
    "IborCouponDefinition",
    "FixedIborSwapDefinition",
    "OISDefinition",
    "RateFutureDefinition",
    "FixedCouponBondDefinition",
]
