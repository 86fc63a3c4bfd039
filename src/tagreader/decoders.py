"""Built-in decoders for common value shapes.

Numeric and boolean decoders return None for absent keys, which the engine
turns into the zero value of the field when strict typing is off.
"""

from __future__ import annotations

from typing import Any

from tagreader.core.context import DecodeContext
from tagreader.registries import DecoderRegistry

_TRUE = frozenset({"1", "true", "yes", "on", "y", "t"})
_FALSE = frozenset({"0", "false", "no", "off", "n", "f"})


def decode_string(value: str, ok: bool, _ctx: DecodeContext) -> str:
    """Return the raw value, or ``""`` when absent."""
    return value if ok else ""


def decode_int(value: str, ok: bool, _ctx: DecodeContext) -> int | None:
    """Parse a base-10 integer."""
    if not ok:
        return None
    return int(value.strip())


def decode_float(value: str, ok: bool, _ctx: DecodeContext) -> float | None:
    """Parse a float."""
    if not ok:
        return None
    return float(value.strip())


def decode_bool(value: str, ok: bool, _ctx: DecodeContext) -> bool | None:
    """Parse common spellings of true and false, case-insensitively."""
    if not ok:
        return None
    normalized = value.strip().lower()
    if normalized in _TRUE:
        return True
    if normalized in _FALSE:
        return False
    raise ValueError(f"invalid boolean {value!r}")


def decode_csv(value: str, ok: bool, _ctx: DecodeContext) -> list[str]:
    """Split a comma-separated value, dropping empty items."""
    if not ok:
        return []
    return [part.strip() for part in value.split(",") if part.strip()]


def decode_list(values: list[str], ok: bool, _ctx: DecodeContext) -> list[str]:
    """Return a copy of all values, or ``[]`` when absent."""
    return list(values) if ok else []


def decode_first(values: list[str], ok: bool, _ctx: DecodeContext) -> Any:
    """Return the first value, or None when absent or empty."""
    return values[0] if ok and values else None


def decode_last(values: list[str], ok: bool, _ctx: DecodeContext) -> Any:
    """Return the last value, or None when absent or empty."""
    return values[-1] if ok and values else None


def register_builtins(registry: DecoderRegistry) -> DecoderRegistry:
    """Register the built-in decoders with ``registry`` and return it."""
    registry.register_single("string", decode_string)
    registry.register_single("int", decode_int)
    registry.register_single("float", decode_float)
    registry.register_single("bool", decode_bool)
    registry.register_single("csv", decode_csv)
    registry.register_multi("list", decode_list)
    registry.register_multi("first", decode_first)
    registry.register_multi("last", decode_last)
    return registry


def default_registry() -> DecoderRegistry:
    """Return a new registry holding only the built-in decoders."""
    return register_builtins(DecoderRegistry())
