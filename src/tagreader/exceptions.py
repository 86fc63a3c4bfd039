"""Exceptions raised while resolving decoders and decoding records.

Every ``DecodeError`` carries the positional state of the decode pass at the
moment it failed: the field being written, its tags, the source key being
read, the decoder name, and whether that decoder was single- or multi-valued.
Precondition failures are raised before any field is visited and therefore
carry empty state.
"""

from __future__ import annotations

from collections.abc import Mapping
from types import MappingProxyType
from typing import Any

from tagreader.core.types import DecoderKind

_NO_TAGS: Mapping[str, str] = MappingProxyType({})


class TagReaderError(Exception):
    """Base exception for the tagreader package."""


class ConfigurationError(TagReaderError):
    """Raised when reader settings fail validation."""


# --- Registry ---


class RegistryError(TagReaderError):
    """Raised when a decoder name cannot be resolved to exactly one decoder."""

    def __init__(self, name: str, message: str) -> None:
        super().__init__(message)
        self.name = name


class UnknownDecoderNameError(RegistryError):
    """Raised when a name is registered neither as single nor as multi decoder."""

    def __init__(self, name: str) -> None:
        super().__init__(name, f"unknown decoder {name!r}")


class AmbiguousDecoderError(RegistryError):
    """Raised when a name is registered both as single and as multi decoder."""

    def __init__(self, name: str) -> None:
        super().__init__(
            name, f"decoder {name!r} is registered as both single and multi decoder"
        )


# --- Decoding ---


class DecodeError(TagReaderError):
    """Base class for all failures of a decode pass.

    Attributes:
        field: Identifier of the field being processed, or ``""``.
        tags: Tag mapping of that field.
        key: Source key being read, or ``""`` when not yet resolved.
        decoder: Decoder name in use, or ``""`` when not yet resolved.
        kind: Whether the decoder was single- or multi-valued.
        cause: Underlying exception for wrapped failures.
    """

    def __init__(
        self,
        message: str,
        *,
        field: str = "",
        tags: Mapping[str, str] | None = None,
        key: str = "",
        decoder: str = "",
        kind: DecoderKind = DecoderKind.UNDEFINED,
        cause: BaseException | None = None,
    ) -> None:
        super().__init__(message)
        self.field = field
        self.tags = tags if tags is not None else _NO_TAGS
        self.key = key
        self.decoder = decoder
        self.kind = kind
        self.cause = cause

    @property
    def single(self) -> bool:
        """True when the active decoder was a single-value decoder."""
        return self.kind is DecoderKind.SINGLE


class NilTargetError(DecodeError):
    """Raised when the decode target is None."""

    def __init__(self) -> None:
        super().__init__("decode target is None")


class NotRecordReferenceError(DecodeError):
    """Raised when the decode target is not a mutable record instance."""

    def __init__(self, target: Any) -> None:
        super().__init__(
            f"decode target of type {type(target).__name__} is not a mutable record"
        )


class UnresolvedAnnotationError(DecodeError):
    """Raised when the field annotations of a record type cannot be resolved.

    Attributes:
        record_type: The record class whose annotations failed.
    """

    def __init__(self, record_type: type, cause: NameError) -> None:
        super().__init__(
            f"cannot resolve the field annotations of {record_type.__qualname__}: "
            f"{cause}",
            cause=cause,
        )
        self.record_type = record_type


class InlineTargetNotRecordError(DecodeError):
    """Raised when a field tagged for inlining is not record-shaped."""

    def __init__(
        self, *, field: str, tags: Mapping[str, str], decoder: str
    ) -> None:
        super().__init__(
            f"field {field!r} is to be inlined, but is not a record "
            "or an optional record",
            field=field,
            tags=tags,
            decoder=decoder,
        )


class UnknownDecoderError(DecodeError):
    """Raised when the decoder named for a field cannot be resolved."""

    def __init__(
        self,
        *,
        field: str,
        tags: Mapping[str, str],
        key: str,
        decoder: str,
        cause: RegistryError,
    ) -> None:
        super().__init__(
            f"field {field!r} uses decoder {decoder!r}: {cause}",
            field=field,
            tags=tags,
            key=key,
            decoder=decoder,
            cause=cause,
        )


class DecodeFailedError(DecodeError):
    """Raised when a decoder function raised for a field."""

    def __init__(
        self,
        *,
        field: str,
        tags: Mapping[str, str],
        key: str,
        decoder: str,
        kind: DecoderKind,
        cause: BaseException,
    ) -> None:
        super().__init__(
            f"failed to decode field {field!r} from key {key!r}: {cause}",
            field=field,
            tags=tags,
            key=key,
            decoder=decoder,
            kind=kind,
            cause=cause,
        )


class WrongTypeError(DecodeError):
    """Raised when a decoded value cannot be converted or assigned to its field.

    Attributes:
        assignment: True if the final assignment failed (strict typing), False
            if the implicit conversion failed.
        returned_type: Runtime type of the value the decoder returned.
        declared_type: Declared type of the field.
    """

    def __init__(
        self,
        *,
        field: str,
        tags: Mapping[str, str],
        key: str,
        decoder: str,
        kind: DecoderKind,
        assignment: bool,
        returned_type: type,
        declared_type: Any,
        cause: BaseException | None = None,
    ) -> None:
        verb = "assign" if assignment else "convert"
        suffix = f": {cause}" if cause is not None else ""
        super().__init__(
            f"failed to process value for field {field!r}: got "
            f"{returned_type.__name__}, but cannot {verb} to "
            f"{_type_name(declared_type)}{suffix}",
            field=field,
            tags=tags,
            key=key,
            decoder=decoder,
            kind=kind,
            cause=cause,
        )
        self.assignment = assignment
        self.returned_type = returned_type
        self.declared_type = declared_type


def _type_name(tp: Any) -> str:
    if isinstance(tp, type):
        return tp.__name__
    return repr(tp)
