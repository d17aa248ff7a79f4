"""
FX rate table for multi-currency curve sets.

Rates are stored against the first currency added. ``rate(a, b)`` is the
amount of ``b`` for one unit of ``a``, so ``rate(USD, EUR) == 0.7`` means
1 USD buys 0.7 EUR.
"""

from typing import Dict, List

from .checks import not_null
from .errors import ConfigurationError, MissingDataError
from .identifiers import Currency


class FXMatrix:
    """
    Consistent set of exchange rates.

    Example:
        >>> fx = FXMatrix(USD)
        >>> fx.add_currency(EUR, USD, 0.7)
        >>> fx.rate(USD, EUR)
        1.428...
    """

    def __init__(self, base: Currency = None):
        # amount of base for one unit of each currency
        self._in_base: Dict[Currency, float] = {}
        if base is not None:
            self._in_base[base] = 1.0

    @classmethod
    def of(cls, ccy1: Currency, ccy2: Currency, rate: float) -> "FXMatrix":
        """Two-currency matrix with 1 ccy1 = ``rate`` ccy2."""
        matrix = cls(ccy1)
        matrix.add_currency(ccy2, ccy1, 1.0 / rate)
        return matrix

    @property
    def currencies(self) -> List[Currency]:
        return list(self._in_base)

    def add_currency(self, ccy_to_add: Currency, ccy_reference: Currency, fx_rate: float) -> "FXMatrix":
        """
        Add a currency quoted against one already in the matrix.

        Args:
            ccy_to_add: New currency
            ccy_reference: Currency already present (any, if the matrix is empty)
            fx_rate: Amount of ccy_reference for one unit of ccy_to_add
        """
        not_null(ccy_to_add, "ccy_to_add")
        not_null(ccy_reference, "ccy_reference")
        not_null(fx_rate, "fx_rate")
        if fx_rate <= 0:
            raise ConfigurationError(f"FX rate must be positive, got {fx_rate}")
        if not self._in_base:
            self._in_base[ccy_reference] = 1.0
        if ccy_reference not in self._in_base:
            raise MissingDataError(f"Reference currency {ccy_reference} not in FX matrix")
        if ccy_to_add in self._in_base:
            raise ConfigurationError(f"Currency {ccy_to_add} already in FX matrix")
        self._in_base[ccy_to_add] = fx_rate * self._in_base[ccy_reference]
        return self

    def rate(self, ccy1: Currency, ccy2: Currency) -> float:
        """Amount of ccy2 for one unit of ccy1."""
        if ccy1 == ccy2:
            return 1.0
        for ccy in (ccy1, ccy2):
            if ccy not in self._in_base:
                raise MissingDataError(f"Currency {ccy} not in FX matrix")
        return self._in_base[ccy1] / self._in_base[ccy2]

    def convert(self, amount: float, ccy_from: Currency, ccy_to: Currency) -> float:
        return amount * self.rate(ccy_from, ccy_to)

    def contains(self, ccy: Currency) -> bool:
        return ccy in self._in_base

    def copy(self) -> "FXMatrix":
        other = FXMatrix()
        other._in_base = dict(self._in_base)
        return other

    def __eq__(self, other) -> bool:
        if not isinstance(other, FXMatrix):
            return NotImplemented
        if set(self._in_base) != set(other._in_base):
            return False
        if not self._in_base:
            return True
        base = next(iter(self._in_base))
        return all(
            abs(self.rate(ccy, base) - other.rate(ccy, base)) < 1e-15 * max(1.0, self.rate(ccy, base))
            for ccy in self._in_base
        )

    __hash__ = None

    def __repr__(self) -> str:
        if not self._in_base:
            return "FXMatrix()"
        base = next(iter(self._in_base))
        quotes = ", ".join(f"{ccy}/{base}={self._in_base[ccy]:.6g}" for ccy in self._in_base)
        return f"FXMatrix({quotes})"


__all__ = ["FXMatrix"]
