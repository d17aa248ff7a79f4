"""Curves supplied ready-made to a configuration and never solved."""

from typing import List, Tuple

from ..checks import not_empty, not_null
from ..curves.curve import Curve
from ..errors import ConfigurationError
from ..identifiers import IborIndex, OvernightIndex


class PreboundCurveBinding:
    """
    An already built curve and the targets it serves.

    Returned by ``ConfigurationBuilder.using_curve(curve)``. Each target may
    be bound by one pre-bound curve only; the owning builder raises
    StateError at the binding call that repeats a target. Unknown
    attributes continue the chain on the owning builder.
    """

    def __init__(self, curve: Curve, parent=None):
        self.curve = not_null(curve, "curve")
        self._parent = parent
        self._discounting: List = []
        self._ibor_indices: List[IborIndex] = []
        self._overnight_indices: List[OvernightIndex] = []

    def __getattr__(self, item):
        parent = self.__dict__.get("_parent")
        if parent is None or item.startswith("_"):
            raise AttributeError(f"{type(self).__name__!r} object has no attribute {item!r}")
        return getattr(parent, item)

    def _claim(self, kind: str, target) -> None:
        if self._parent is not None:
            self._parent._claim_known_target(kind, target)

    def for_discounting(self, discounting_id) -> "PreboundCurveBinding":
        not_null(discounting_id, "discounting_id")
        self._claim("discounting", discounting_id)
        self._discounting.append(discounting_id)
        return self

    def for_index(self, *indices) -> "PreboundCurveBinding":
        for index in not_empty(indices, "indices"):
            if isinstance(index, IborIndex):
                self._claim("ibor", index)
                self._ibor_indices.append(index)
            elif isinstance(index, OvernightIndex):
                self._claim("overnight", index)
                self._overnight_indices.append(index)
            else:
                raise ConfigurationError(f"Input parameter 'indices' contains unsupported index {index!r}")
        return self

    @property
    def discounting_ids(self) -> Tuple:
        return tuple(self._discounting)

    @property
    def ibor_indices(self) -> Tuple[IborIndex, ...]:
        return tuple(self._ibor_indices)

    @property
    def overnight_indices(self) -> Tuple[OvernightIndex, ...]:
        return tuple(self._overnight_indices)

    @property
    def issuers(self) -> Tuple:
        return ()

    def targets(self):
        """(kind, target) pairs bound by this curve."""
        pairs = [("discounting", d) for d in self._discounting]
        pairs += [("ibor", i) for i in self._ibor_indices]
        pairs += [("overnight", i) for i in self._overnight_indices]
        return pairs

    def copy(self, parent=None) -> "PreboundCurveBinding":
        other = type(self).__new__(type(self))
        other.__dict__.update(self.__dict__)
        other._parent = parent
        other._discounting = list(self._discounting)
        other._ibor_indices = list(self._ibor_indices)
        other._overnight_indices = list(self._overnight_indices)
        return other

    def __eq__(self, other) -> bool:
        if not isinstance(other, PreboundCurveBinding):
            return NotImplemented
        return (
            type(self) is type(other)
            and self.curve is other.curve
            and sorted(map(repr, self.targets())) == sorted(map(repr, other.targets()))
        )

    __hash__ = None

    def __repr__(self) -> str:
        return f"{type(self).__name__}[curve={self.curve.name}, targets={[str(t) for _, t in self.targets()]}]"


class IssuerPreboundCurveBinding(PreboundCurveBinding):
    """Pre-bound curve that can also discount issuer bonds."""

    def __init__(self, curve: Curve, parent=None):
        super().__init__(curve, parent)
        self._issuers: List[tuple] = []

    def for_issuer(self, *issuers) -> "IssuerPreboundCurveBinding":
        for pair in not_empty(issuers, "issuers"):
            if not isinstance(pair, tuple) or len(pair) != 2 or pair[1] is None:
                raise ConfigurationError(f"Input parameter 'issuers' must hold (key, filter) pairs, got {pair!r}")
            self._claim("issuer", pair)
            self._issuers.append(pair)
        return self

    @property
    def issuers(self) -> Tuple:
        return tuple(self._issuers)

    def targets(self):
        return super().targets() + [("issuer", pair) for pair in self._issuers]

    def copy(self, parent=None) -> "IssuerPreboundCurveBinding":
        other = super().copy(parent)
        other._issuers = list(self._issuers)
        return other


__all__ = ["PreboundCurveBinding", "IssuerPreboundCurveBinding"]
