"""
Curve providers: the market objects calibration produces.

Provides:
- MulticurveProvider: discounting curves by currency, forward curves by index, FX
- IssuerProvider: adds issuer discounting curves selected through legal entity filters
- HullWhiteProvider: adds Hull-White parameters used for futures convexity

Curves are stored once by name and referenced from any number of targets,
so one curve can both discount a currency and project its overnight index.
"""

from typing import Dict, Hashable, Iterable, List, Optional, Tuple

import pandas as pd

from .curves.curve import Curve
from .errors import MissingDataError
from .fx import FXMatrix
from .hullwhite import HullWhiteOneFactorParameters
from .identifiers import Currency, IborIndex, LegalEntity, LegalEntityFilter, OvernightIndex

IssuerKey = Tuple[Hashable, LegalEntityFilter]


class MulticurveProvider:
    """
    Discounting and forward curves for a set of currencies and indices.

    Attributes:
        fx_matrix: Exchange rates between the provider's currencies (may be None)
    """

    def __init__(self, fx_matrix: Optional[FXMatrix] = None):
        self.fx_matrix = fx_matrix
        self._curves: Dict[str, Curve] = {}
        self._discounting: Dict[Currency, str] = {}
        self._ibor: Dict[IborIndex, str] = {}
        self._overnight: Dict[OvernightIndex, str] = {}

    def set_curve(
        self,
        curve: Curve,
        discounting: Iterable[Currency] = (),
        ibor_indices: Iterable[IborIndex] = (),
        overnight_indices: Iterable[OvernightIndex] = (),
    ) -> None:
        """
        Store a curve and attach it to targets.

        A curve with a name already present replaces the stored curve; its
        existing targets are kept.
        """
        self._curves[curve.name] = curve
        for ccy in discounting:
            self._discounting[ccy] = curve.name
        for index in ibor_indices:
            self._ibor[index] = curve.name
        for index in overnight_indices:
            self._overnight[index] = curve.name

    @property
    def curve_names(self) -> List[str]:
        return list(self._curves)

    @property
    def discounting_currencies(self) -> List[Currency]:
        return list(self._discounting)

    @property
    def ibor_indices(self) -> List[IborIndex]:
        return list(self._ibor)

    @property
    def overnight_indices(self) -> List[OvernightIndex]:
        return list(self._overnight)

    def __contains__(self, name: str) -> bool:
        return name in self._curves

    def __len__(self) -> int:
        return len(self._curves)

    def curve(self, name: str) -> Curve:
        if name not in self._curves:
            raise MissingDataError(f"No curve named {name!r} in provider")
        return self._curves[name]

    def discount_curve(self, ccy: Currency) -> Curve:
        if ccy not in self._discounting:
            raise MissingDataError(f"No discounting curve for {ccy}")
        return self._curves[self._discounting[ccy]]

    def forward_curve(self, index) -> Curve:
        """Projection curve for an ibor or overnight index."""
        targets = self._overnight if isinstance(index, OvernightIndex) else self._ibor
        if index not in targets:
            raise MissingDataError(f"No forward curve for index {index}")
        return self._curves[targets[index]]

    def discount_factor(self, ccy: Currency, t: float) -> float:
        return self.discount_curve(ccy).discount_factor(t)

    def forward_rate(self, index, t1: float, t2: float, accrual: float) -> float:
        return self.forward_curve(index).forward_rate(t1, t2, accrual)

    def fx_rate(self, ccy1: Currency, ccy2: Currency) -> float:
        if ccy1 == ccy2:
            return 1.0
        if self.fx_matrix is None:
            raise MissingDataError(f"No FX matrix to convert {ccy1} to {ccy2}")
        return self.fx_matrix.rate(ccy1, ccy2)

    def futures_convexity_factor(self, index, t0: float, t1: float, t2: float) -> float:
        """No convexity adjustment without a model."""
        return 1.0

    def _empty_copy(self) -> "MulticurveProvider":
        return MulticurveProvider(self.fx_matrix.copy() if self.fx_matrix is not None else None)

    def copy(self) -> "MulticurveProvider":
        """New provider with its own maps; curves are shared as they are immutable."""
        other = self._empty_copy()
        other._curves = dict(self._curves)
        other._discounting = dict(self._discounting)
        other._ibor = dict(self._ibor)
        other._overnight = dict(self._overnight)
        return other

    def _targets(self, name: str) -> List[str]:
        targets = [f"discounting {ccy}" for ccy, n in self._discounting.items() if n == name]
        targets += [f"ibor {index}" for index, n in self._ibor.items() if n == name]
        targets += [f"overnight {index}" for index, n in self._overnight.items() if n == name]
        return targets

    def to_frame(self) -> pd.DataFrame:
        """One row per curve: type, parameter count and targets."""
        rows = [
            {
                "curve": name,
                "type": type(curve).__name__,
                "parameters": curve.number_of_parameters,
                "targets": ", ".join(self._targets(name)),
            }
            for name, curve in self._curves.items()
        ]
        return pd.DataFrame(rows, columns=["curve", "type", "parameters", "targets"])

    def __repr__(self) -> str:
        return (f"{type(self).__name__}(curves={self.curve_names}, "
                f"discounting={[str(c) for c in self._discounting]}, fx={self.fx_matrix!r})")


class IssuerProvider(MulticurveProvider):
    """
    Multicurve provider with issuer curves.

    Issuer curves are registered under (key, filter) pairs; a legal entity
    uses the first curve whose filter maps it to the registered key.
    """

    def __init__(self, fx_matrix: Optional[FXMatrix] = None):
        super().__init__(fx_matrix)
        self._issuers: Dict[IssuerKey, str] = {}

    def set_curve(self, curve: Curve, discounting=(), ibor_indices=(), overnight_indices=(),
                  issuers: Iterable[IssuerKey] = ()) -> None:
        super().set_curve(curve, discounting, ibor_indices, overnight_indices)
        for pair in issuers:
            self._issuers[tuple(pair)] = curve.name

    @property
    def issuers(self) -> List[IssuerKey]:
        return list(self._issuers)

    def issuer_curve(self, entity: LegalEntity) -> Curve:
        for (key, entity_filter), name in self._issuers.items():
            if entity_filter.key(entity) == key:
                return self._curves[name]
        raise MissingDataError(f"No issuer curve for {entity}")

    def issuer_discount_factor(self, entity: LegalEntity, t: float) -> float:
        return self.issuer_curve(entity).discount_factor(t)

    def _empty_copy(self) -> "IssuerProvider":
        return IssuerProvider(self.fx_matrix.copy() if self.fx_matrix is not None else None)

    def copy(self) -> "IssuerProvider":
        other = super().copy()
        other._issuers = dict(self._issuers)
        return other

    def _targets(self, name: str) -> List[str]:
        targets = super()._targets(name)
        targets += [f"issuer {key}" for (key, _), n in self._issuers.items() if n == name]
        return targets


class HullWhiteProvider(MulticurveProvider):
    """
    Multicurve provider with Hull-White one-factor parameters.

    Futures on indices in the model currency are priced with the model's
    convexity adjustment.
    """

    def __init__(
        self,
        parameters: HullWhiteOneFactorParameters,
        currency: Currency,
        fx_matrix: Optional[FXMatrix] = None
    ):
        super().__init__(fx_matrix)
        self.parameters = parameters
        self.currency = currency

    def futures_convexity_factor(self, index, t0: float, t1: float, t2: float) -> float:
        if index.currency != self.currency:
            return 1.0
        return self.parameters.futures_convexity_factor(t0, t1, t2)

    def _empty_copy(self) -> "HullWhiteProvider":
        return HullWhiteProvider(
            self.parameters,
            self.currency,
            self.fx_matrix.copy() if self.fx_matrix is not None else None
        )


__all__ = [
    "MulticurveProvider",
    "IssuerProvider",
    "HullWhiteProvider",
]
