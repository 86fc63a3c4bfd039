"""Core types shared by the decode engine, the registry and the decoders."""

from __future__ import annotations

from collections.abc import Callable
import dataclasses
import enum
import typing

if typing.TYPE_CHECKING:
    from tagreader.core.context import DecodeContext


class DecoderKind(enum.Enum):
    """Which flavour of decoder handled (or is handling) a field."""

    UNDEFINED = "undefined"
    SINGLE = "single"
    MULTI = "multi"


# A decoder receives the raw value, whether the key existed, and the context
# of the field being decoded. It returns the decoded value or raises.
SingleDecoder = Callable[[str, bool, "DecodeContext"], typing.Any]
MultiDecoder = Callable[[list[str], bool, "DecodeContext"], typing.Any]


# --- Result Type ---
# Lets callers treat a decode pass as data rather than control flow, see
# Reader.try_decode.

TSuccess = typing.TypeVar("TSuccess")
TFailure = typing.TypeVar("TFailure", bound=Exception)


@dataclasses.dataclass(frozen=True, slots=True)
class Success[TSuccess]:
    """A successful decode, holding the populated record."""

    value: TSuccess


@dataclasses.dataclass(frozen=True, slots=True)
class Failure[TFailure]:
    """A failed decode, holding the error."""

    error: TFailure


Result = Success[TSuccess] | Failure[TFailure]
