"""Argument checks raising ConfigurationError with a uniform message."""

from typing import Any, Iterable

from .errors import ConfigurationError


def not_null(value: Any, name: str) -> Any:
    """Return value, or raise if it is None."""
    if value is None:
        raise ConfigurationError(f"Input parameter '{name}' must not be null")
    return value


def not_empty(values: Iterable, name: str):
    """Return values as a tuple, raising if None, empty or containing None."""
    not_null(values, name)
    if isinstance(values, str):
        if not values:
            raise ConfigurationError(f"Input parameter '{name}' must not be empty")
        return values
    values = tuple(values)
    if len(values) == 0:
        raise ConfigurationError(f"Input parameter '{name}' must not be empty")
    for value in values:
        if value is None:
            raise ConfigurationError(f"Input parameter '{name}' must not contain null")
    return values


def is_true(condition: bool, message: str) -> None:
    """Raise with message unless condition holds."""
    if not condition:
        raise ConfigurationError(message)


__all__ = ["not_null", "not_empty", "is_true"]
