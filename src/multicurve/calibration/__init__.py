"""
Calibration package - configuration, staged solving and sensitivity bundles.

Provides:
- ConfigurationBuilder and its Hull-White and issuer variants
- Per-curve parameterization builders and pre-bound curve bindings
- CalibrationEngine implementations that solve curves stage by stage
- CurveBuildingBlock / CurveBuildingBlockBundle Jacobian records
- RootFinderSettings for the stage solver
"""

from .settings import RootFinderSettings, ROOT_FINDING_METHODS
from .rootfinding import StageSolution, solve, finite_difference_jacobian
from .building_block import CurveBuildingBlock, CurveBuildingBlockBundle
from .parameterization import (
    NodeTimeConvention,
    NodeSpec,
    Functional,
    InterpolatedYield,
    InterpolatedDiscountFactor,
    PeriodicYield,
    SpreadOver,
    Parameterization,
    CurveParameterizationBuilder,
    IssuerCurveParameterizationBuilder,
)
from .prebound import PreboundCurveBinding, IssuerPreboundCurveBinding
from .engine import (
    CurveBuildResult,
    CalibrationEngine,
    DiscountingCalibrationEngine,
    HullWhiteCalibrationEngine,
    IssuerCalibrationEngine,
)
from .configuration import (
    ConfigurationBuilder,
    HullWhiteConfigurationBuilder,
    IssuerConfigurationBuilder,
)

__all__ = [
    "RootFinderSettings",
    "ROOT_FINDING_METHODS",
    "StageSolution",
    "solve",
    "finite_difference_jacobian",
    "CurveBuildingBlock",
    "CurveBuildingBlockBundle",
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
    "PreboundCurveBinding",
    "IssuerPreboundCurveBinding",
    "CurveBuildResult",
    "CalibrationEngine",
    "DiscountingCalibrationEngine",
    "HullWhiteCalibrationEngine",
    "IssuerCalibrationEngine",
    "ConfigurationBuilder",
    "HullWhiteConfigurationBuilder",
    "IssuerConfigurationBuilder",
]
