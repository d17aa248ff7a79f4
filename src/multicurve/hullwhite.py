"""
Hull-White one-factor model with piecewise constant volatility.

Only the futures convexity adjustment is needed for curve calibration:

    price = 1 - γ·F + (1 - γ)/δ

where F is the forward of the futures fixing period, δ its accrual and γ
the convexity factor computed from the model between last trading time
t0 and the fixing period [t1, t2].
"""

from dataclasses import dataclass
from typing import Tuple
import numpy as np

from .errors import ConfigurationError

# Right boundary of the last volatility period
_VOLATILITY_TIME_CAP = 1000.0


@dataclass(frozen=True)
class HullWhiteOneFactorParameters:
    """
    Model parameters.

    Attributes:
        mean_reversion: Mean reversion speed a (> 0)
        volatility: Volatility of each period, one more than volatility_time
        volatility_time: Increasing positive times where the volatility changes
    """
    mean_reversion: float
    volatility: Tuple[float, ...]
    volatility_time: Tuple[float, ...] = ()

    def __post_init__(self):
        object.__setattr__(self, "volatility", tuple(float(v) for v in self.volatility))
        object.__setattr__(self, "volatility_time", tuple(float(t) for t in self.volatility_time))
        if self.mean_reversion <= 0:
            raise ConfigurationError(f"Mean reversion must be positive, got {self.mean_reversion}")
        if len(self.volatility) != len(self.volatility_time) + 1:
            raise ConfigurationError(
                "Need one more volatility than volatility time: "
                f"{len(self.volatility)} volatilities, {len(self.volatility_time)} times"
            )
        if any(v < 0 for v in self.volatility):
            raise ConfigurationError("Volatilities must be non-negative")
        times = (0.0,) + self.volatility_time
        if any(t1 <= t0 for t0, t1 in zip(times[:-1], times[1:])):
            raise ConfigurationError("Volatility times must be positive and increasing")

    @classmethod
    def constant(cls, mean_reversion: float, volatility: float) -> "HullWhiteOneFactorParameters":
        return cls(mean_reversion, (volatility,))

    def _period_times(self) -> np.ndarray:
        return np.array((0.0,) + self.volatility_time + (_VOLATILITY_TIME_CAP,))

    def futures_convexity_factor(self, t0: float, t1: float, t2: float) -> float:
        """
        Convexity factor γ for a futures contract.

        Args:
            t0: Last trading time
            t1: Fixing period start time
            t2: Fixing period end time
        """
        a = self.mean_reversion
        t0 = max(t0, 0.0)
        factor1 = np.exp(-a * t1) - np.exp(-a * t2)
        numerator = 2 * a ** 3

        vol_times = self._period_times()
        index_t0 = 1
        while t0 > vol_times[index_t0]:
            index_t0 += 1
        s = np.append(vol_times[:index_t0], t0)

        factor2 = 0.0
        for period in range(index_t0):
            sigma = self.volatility[period]
            factor2 += sigma * sigma * (np.exp(a * s[period + 1]) - np.exp(a * s[period])) * (
                2 - np.exp(-a * (t2 - s[period + 1])) - np.exp(-a * (t2 - s[period]))
            )
        return float(np.exp(factor1 / numerator * factor2))

    def futures_price(self, forward: float, accrual: float, t0: float, t1: float, t2: float) -> float:
        gamma = self.futures_convexity_factor(t0, t1, t2)
        return 1.0 - gamma * forward + (1.0 - gamma) / accrual


__all__ = ["HullWhiteOneFactorParameters"]
