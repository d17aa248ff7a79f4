"""
Curves package - curve representations and the generators calibration solves for.

Provides:
- Curve types: YieldCurve, DiscountFactorCurve, PeriodicYieldCurve, SpreadCurve
- Functional curves: NelsonSiegelCurve, NelsonSiegelSvenssonCurve
- Interpolators for node-based curves
- CurveGenerator implementations mapping parameters to curves
"""

from .curve import (
    Curve,
    ConstantYieldCurve,
    InterpolatedCurve,
    YieldCurve,
    DiscountFactorCurve,
    PeriodicYieldCurve,
    SpreadCurve,
    create_flat_curve,
)
from .nss import NelsonSiegelCurve, NelsonSiegelSvenssonCurve, CurveFunction
from .interpolation import (
    Interpolator,
    LinearInterpolator,
    CubicSplineInterpolator,
    LogLinearInterpolator,
    create_interpolator,
)
from .generators import (
    CurveGenerator,
    NodeValue,
    InterpolatedCurveGenerator,
    FunctionalCurveGenerator,
    SpreadCurveGenerator,
)

__all__ = [
    "Curve",
    "ConstantYieldCurve",
    "InterpolatedCurve",
    "YieldCurve",
    "DiscountFactorCurve",
    "PeriodicYieldCurve",
    "SpreadCurve",
    "create_flat_curve",
    "NelsonSiegelCurve",
    "NelsonSiegelSvenssonCurve",
    "CurveFunction",
    "Interpolator",
    "LinearInterpolator",
    "CubicSplineInterpolator",
    "LogLinearInterpolator",
    "create_interpolator",
    "CurveGenerator",
    "NodeValue",
    "InterpolatedCurveGenerator",
    "FunctionalCurveGenerator",
    "SpreadCurveGenerator",
]
