"""Root finder settings shared by every stage of a calibration."""

from dataclasses import dataclass, replace

from ..errors import ConfigurationError

# scipy.optimize.root methods the stage solver accepts
ROOT_FINDING_METHODS = ("hybr", "lm", "broyden1")


@dataclass(frozen=True)
class RootFinderSettings:
    """
    Tolerances and iteration cap for the stage solver.

    Attributes:
        absolute_tolerance: Largest accepted absolute instrument residual
        relative_tolerance: Relative step tolerance of the solver
        max_steps: Iteration (or function evaluation) budget per stage
        method: scipy.optimize.root method for square systems
    """
    absolute_tolerance: float = 1e-9
    relative_tolerance: float = 1e-9
    max_steps: int = 1000
    method: str = "hybr"

    def __post_init__(self):
        if not self.absolute_tolerance > 0:
            raise ConfigurationError(f"Absolute tolerance must be positive, got {self.absolute_tolerance}")
        if not self.relative_tolerance > 0:
            raise ConfigurationError(f"Relative tolerance must be positive, got {self.relative_tolerance}")
        if isinstance(self.max_steps, bool) or not isinstance(self.max_steps, int) or self.max_steps <= 0:
            raise ConfigurationError(f"Maximum steps must be a positive integer, got {self.max_steps}")
        if self.method not in ROOT_FINDING_METHODS:
            raise ConfigurationError(
                f"Unknown root finding method {self.method!r}, expected one of {ROOT_FINDING_METHODS}"
            )

    def with_absolute_tolerance(self, tolerance: float) -> "RootFinderSettings":
        return replace(self, absolute_tolerance=tolerance)

    def with_relative_tolerance(self, tolerance: float) -> "RootFinderSettings":
        return replace(self, relative_tolerance=tolerance)

    def with_max_steps(self, max_steps: int) -> "RootFinderSettings":
        return replace(self, max_steps=max_steps)

    def with_method(self, method: str) -> "RootFinderSettings":
        return replace(self, method=method)


__all__ = ["RootFinderSettings", "ROOT_FINDING_METHODS"]
