"""
Curve targets: currencies, rate indices and legal entities.

A calibrated curve is attached to one or more targets:
- Currency: discounting
- IborIndex / OvernightIndex: forward projection
- (key, LegalEntityFilter) pairs: issuer discounting for bonds

All identifiers are immutable and hashable so they can key provider maps.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Hashable, Optional

from .conventions import DayCount


@dataclass(frozen=True)
class Currency:
    """ISO currency code."""
    code: str

    def __post_init__(self):
        if not isinstance(self.code, str) or len(self.code) != 3:
            raise ValueError(f"Invalid currency code: {self.code!r}")
        object.__setattr__(self, "code", self.code.upper())

    def __str__(self) -> str:
        return self.code


USD = Currency("USD")
EUR = Currency("EUR")
GBP = Currency("GBP")
JPY = Currency("JPY")
CHF = Currency("CHF")


@dataclass(frozen=True)
class IborIndex:
    """
    Term rate index (LIBOR/EURIBOR style).

    Attributes:
        name: Index name, e.g. "USDLIBOR3M"
        currency: Index currency
        tenor: Fixing period tenor, e.g. "3M"
        day_count: Accrual convention of the fixing period
        spot_lag: Business days between fixing date and period start
    """
    name: str
    currency: Currency
    tenor: str
    day_count: DayCount = DayCount.ACT_360
    spot_lag: int = 2

    def __str__(self) -> str:
        return self.name


@dataclass(frozen=True)
class OvernightIndex:
    """Overnight rate index (Fed Funds, SOFR, ESTR style)."""
    name: str
    currency: Currency
    day_count: DayCount = DayCount.ACT_360
    publication_lag: int = 0

    def __str__(self) -> str:
        return self.name


@dataclass(frozen=True)
class LegalEntity:
    """Bond issuer description used by issuer curve filters."""
    short_name: str
    region: Optional[str] = None
    sector: Optional[str] = None

    def __str__(self) -> str:
        return self.short_name


class LegalEntityFilter(ABC):
    """Maps a legal entity to the key an issuer curve is registered under."""

    @abstractmethod
    def key(self, entity: LegalEntity) -> Hashable:
        pass

    def __eq__(self, other) -> bool:
        return type(self) is type(other)

    def __hash__(self) -> int:
        return hash(type(self).__name__)

    def __repr__(self) -> str:
        return f"{type(self).__name__}()"


class ShortNameFilter(LegalEntityFilter):
    def key(self, entity: LegalEntity) -> Hashable:
        return entity.short_name


class RegionFilter(LegalEntityFilter):
    def key(self, entity: LegalEntity) -> Hashable:
        return entity.region


class SectorFilter(LegalEntityFilter):
    def key(self, entity: LegalEntity) -> Hashable:
        return entity.sector


__all__ = [
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
]
