"""
Multicurve: Staged Multi-Curve Calibration Library

A modular library for:
- Configuring discounting, forward and issuer curves with a fluent builder
- Calibrating curves stage by stage against market instruments
- Recording the Jacobian of every stage for quote sensitivities
- Hull-White convexity for rate futures and issuer curves for bonds

Curves are built from deposits, FRAs, Ibor coupons, swaps, OIS, futures
and fixed coupon bonds.
"""

__version__ = "0.1.0"

# Core modules
from .errors import (
    CurveCalibrationError,
    ConfigurationError,
    StateError,
    UnsupportedTargetError,
    MissingDataError,
    ConvergenceFailure,
)
from .conventions import DayCount, BusinessDayConvention, year_fraction, curve_time
from .dates import DateUtils
from .identifiers import (
    Currency,
    USD,
    EUR,
    GBP,
    JPY,
    CHF,
    IborIndex,
    OvernightIndex,
    LegalEntity,
    LegalEntityFilter,
    ShortNameFilter,
    RegionFilter,
    SectorFilter,
)
from .fx import FXMatrix
from .hullwhite import HullWhiteOneFactorParameters

# Curves
from .curves import (
    Curve,
    YieldCurve,
    DiscountFactorCurve,
    PeriodicYieldCurve,
    SpreadCurve,
    NelsonSiegelCurve,
    NelsonSiegelSvenssonCurve,
    CurveFunction,
    LinearInterpolator,
    CubicSplineInterpolator,
    LogLinearInterpolator,
)

# Providers
from .provider import MulticurveProvider, IssuerProvider, HullWhiteProvider

# Instruments
from .instruments import (
    CashDefinition,
    FRADefinition,
    IborCouponDefinition,
    FixedIborSwapDefinition,
    OISDefinition,
    RateFutureDefinition,
    FixedCouponBondDefinition,
)

# Calibration
from .calibration import (
    ConfigurationBuilder,
    HullWhiteConfigurationBuilder,
    IssuerConfigurationBuilder,
    CalibrationEngine,
    CurveBuildResult,
    CurveBuildingBlock,
    CurveBuildingBlockBundle,
    RootFinderSettings,
)

__all__ = [
    # Errors
    "CurveCalibrationError",
    "ConfigurationError",
    "StateError",
    "UnsupportedTargetError",
    "MissingDataError",
    "ConvergenceFailure",
    # Core
    "DayCount",
    "BusinessDayConvention",
    "year_fraction",
    "curve_time",
    "DateUtils",
    "Currency",
    "USD",
    "EUR",
    "GBP",
    "JPY",
    "CHF",
    "IborIndex",
    "OvernightIndex",
    "LegalEntity",
    "LegalEntityFilter",
    "ShortNameFilter",
    "RegionFilter",
    "SectorFilter",
    "FXMatrix",
    "HullWhiteOneFactorParameters",
    # Curves
    "Curve",
    "YieldCurve",
    "DiscountFactorCurve",
    "PeriodicYieldCurve",
    "SpreadCurve",
    "NelsonSiegelCurve",
    "NelsonSiegelSvenssonCurve",
    "CurveFunction",
    "LinearInterpolator",
    "CubicSplineInterpolator",
    "LogLinearInterpolator",
    # Providers
    "MulticurveProvider",
    "IssuerProvider",
    "HullWhiteProvider",
    # Instruments
    "CashDefinition",
    "FRADefinition",
    "IborCouponDefinition",
    "FixedIborSwapDefinition",
    "OISDefinition",
    "RateFutureDefinition",
    "FixedCouponBondDefinition",
    # Calibration
    "ConfigurationBuilder",
    "HullWhiteConfigurationBuilder",
    "IssuerConfigurationBuilder",
    "CalibrationEngine",
    "CurveBuildResult",
    "CurveBuildingBlock",
    "CurveBuildingBlockBundle",
    "RootFinderSettings",
]
