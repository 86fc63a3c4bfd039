"""Reconciling decoded values with declared field types.

Two questions are answered here: whether a value can be assigned to a field
as is (``is_assignable``), and how to convert a value that cannot
(``convert``). Conversions follow an explicit rule table; anything not listed
in it is not converted, in particular text is never implicitly parsed into
numbers.
"""

from __future__ import annotations

from collections.abc import Callable
from decimal import Decimal
import enum
from fractions import Fraction
import types
import typing
from typing import Any, NamedTuple


class NoConversionError(TypeError):
    """Raised when no conversion rule applies to a value and a target type."""


class ConversionFailedError(ValueError):
    """Raised when a conversion rule applies but fails for a concrete value.

    The runtime exception raised by the rule is chained as ``__cause__``.
    """


# --- Assignability ---


def is_assignable(value: Any, tp: Any) -> bool:
    """Return True if ``value`` may be stored in a field declared as ``tp``."""
    if tp is Any or isinstance(tp, typing.TypeVar):
        return True
    if tp is None or tp is type(None):
        return value is None
    origin = typing.get_origin(tp)
    if origin in (typing.Union, types.UnionType):
        return any(is_assignable(value, arg) for arg in typing.get_args(tp))
    if origin is typing.Literal:
        return value in typing.get_args(tp)
    if origin is typing.ClassVar or origin is typing.Final:
        return is_assignable(value, typing.get_args(tp)[0])
    if origin is not None:
        tp = origin
    if not isinstance(tp, type):
        # NewType, string annotations and other non-class forms are not checked.
        return True
    if value is None:
        return False
    if isinstance(value, bool) and tp in (int, float, complex):
        return False
    return isinstance(value, tp)


# --- Conversion rules ---


class _Rule(NamedTuple):
    sources: tuple[type, ...]
    targets: tuple[type, ...]
    convert: Callable[[Any, type], Any]


def _to_int(value: Any, _tp: type) -> int:
    # int() raises for infinities and NaN; reject silent truncation as well
    integral = int(value)
    if integral != value:
        raise ValueError(f"{value!r} is not integral")
    return integral


def _to_decimal(value: Any, _tp: type) -> Decimal:
    if isinstance(value, Fraction):
        return Decimal(value.numerator) / Decimal(value.denominator)
    return Decimal(value)


def _to_str(value: Any, _tp: type) -> str:
    return bytes(value).decode("utf-8")


def _to_enum(value: Any, tp: type) -> Any:
    return tp(value)


def _reinterpret(value: Any, tp: type) -> Any:
    return tp(value)


_NUMBERS = (int, float, Decimal, Fraction)
_SEQUENCES = (list, tuple, set, frozenset)

_RULES: tuple[_Rule, ...] = (
    _Rule((int,), (float,), lambda v, _: float(v)),
    _Rule((int, float), (complex,), lambda v, _: complex(v)),
    _Rule(_NUMBERS, (Decimal,), _to_decimal),
    _Rule((int, Decimal, Fraction), (Fraction,), lambda v, _: Fraction(v)),
    _Rule((float, Decimal, Fraction), (int,), _to_int),
    _Rule((Decimal, Fraction), (float,), lambda v, _: float(v)),
    _Rule((str,), (bytes,), lambda v, _: v.encode("utf-8")),
    _Rule((bytes, bytearray), (str,), _to_str),
    _Rule((bytes, bytearray), (bytes, bytearray), _reinterpret),
    _Rule(_SEQUENCES, _SEQUENCES, _reinterpret),
    _Rule((str,), (str,), _reinterpret),
    _Rule((int,), (int,), _reinterpret),
)


def convert(value: Any, tp: Any) -> Any:
    """Convert ``value`` to the declared type ``tp``.

    Values that are already assignable are returned unchanged.

    Raises:
        NoConversionError: If no rule converts the type of ``value`` to ``tp``.
        ConversionFailedError: If a rule applies but fails for ``value``.
    """
    if is_assignable(value, tp):
        return value

    origin = typing.get_origin(tp)
    if origin in (typing.Union, types.UnionType):
        members = [arg for arg in typing.get_args(tp) if arg is not type(None)]
        for member in members:
            try:
                return convert(value, member)
            except NoConversionError:
                continue
        raise NoConversionError(_describe_failure(value, tp))

    target = origin if origin is not None else tp
    if not isinstance(target, type) or isinstance(value, bool):
        raise NoConversionError(_describe_failure(value, tp))

    rule = _find_rule(value, target)
    if rule is None:
        raise NoConversionError(_describe_failure(value, tp))
    try:
        return rule(value, target)
    except (ArithmeticError, TypeError, ValueError) as e:
        raise ConversionFailedError(str(e)) from e


def _find_rule(value: Any, target: type) -> Callable[[Any, type], Any] | None:
    if issubclass(target, enum.Enum):
        kinds = {type(member.value) for member in target}
        if any(isinstance(value, kind) for kind in kinds):
            return _to_enum
        return None
    if issubclass(target, bool):
        return None
    for rule in _RULES:
        if isinstance(value, rule.sources) and issubclass(target, rule.targets):
            return rule.convert
    return None


def _describe_failure(value: Any, tp: Any) -> str:
    name = tp.__name__ if isinstance(tp, type) else repr(tp)
    return f"no conversion from {type(value).__name__} to {name}"
