"""The tag-driven decode engine.

``Reader`` walks the fields of a record in declaration order. For each field
it resolves a decoder name and a source key from the field's tags, looks up
the raw value(s) in a source, runs the decoder, reconciles the result with
the field's declared type and assigns it. Fields tagged with the inline
decoder are decoded recursively as nested records. The first error aborts
the pass; fields written before it keep their new values.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Any

from pydantic import ValidationError

from tagreader.config import ReaderSettings, resolve_settings
from tagreader.exceptions import (
    ConfigurationError,
    DecodeError,
    DecodeFailedError,
    InlineTargetNotRecordError,
    NilTargetError,
    NotRecordReferenceError,
    RegistryError,
    UnknownDecoderError,
    WrongTypeError,
)
from tagreader.registries import DecoderRegistry
from tagreader.sources import MultiSource, SingleSource, Source, SplitSource

from .context import ContextPool, DecodeContext, DecodeData
from .conversion import (
    ConversionFailedError,
    NoConversionError,
    convert,
    is_assignable,
)
from .records import (
    FieldDescriptor,
    describe,
    is_mutable_record,
    is_record_type,
    optional_record_type,
    zero_record,
    zero_value,
)
from .types import (
    DecoderKind,
    Failure,
    MultiDecoder,
    Result,
    SingleDecoder,
    Success,
)

log = logging.getLogger(__name__)

# Contexts are borrowed per decode call, including each inline recursion.
_context_pool = ContextPool()


class Reader:
    """Decodes string-keyed sources into records, guided by field tags.

    Args:
        settings: Tag names, fallbacks and typing policy. Defaults to the
            built-in defaults; TAGREADER_* variables are only read by
            ``from_env`` or by settings the caller builds.
        registry: Decoders available to this reader. A new, empty registry
            is created when omitted.
        **overrides: Setting fields to override on top of ``settings``.

    Example:
        reader = Reader(default_decoder="string", registry=default_registry())
        reader.decode(profile, MapSource({"user": "jane"}))
    """

    def __init__(
        self,
        settings: ReaderSettings | None = None,
        registry: DecoderRegistry | None = None,
        **overrides: Any,
    ) -> None:
        try:
            if settings is None:
                settings = ReaderSettings.from_values(**overrides)
            elif overrides:
                settings = ReaderSettings.from_values(
                    **{**settings.to_dict(), **overrides}
                )
        except ValidationError as e:
            raise ConfigurationError(f"Invalid reader settings: {e}") from e
        self.settings = settings
        self.registry = registry if registry is not None else DecoderRegistry()

    @classmethod
    def from_env(
        cls,
        registry: DecoderRegistry | None = None,
        *,
        env_file: str | Path | None = None,
        **overrides: Any,
    ) -> Reader:
        """Build a reader from resolved settings (see ``resolve_settings``)."""
        resolved = resolve_settings(overrides, env_file=env_file)
        return cls(resolved.settings, registry)

    # --- registration shortcuts ---

    def register_single(self, name: str, decoder: SingleDecoder) -> None:
        """Register a single-value decoder with this reader's registry."""
        self.registry.register_single(name, decoder)

    def register_multi(self, name: str, decoder: MultiDecoder) -> None:
        """Register a multi-value decoder with this reader's registry."""
        self.registry.register_multi(name, decoder)

    # --- decoding ---

    def decode(
        self, target: Any, source: Source, data: DecodeData | None = None
    ) -> None:
        """Decode ``source`` into the fields of ``target`` in place.

        Args:
            target: A mutable dataclass or pydantic model instance.
            source: Where raw values are read from.
            data: Store shared by all decoders of this call; a new one is
                created when omitted.

        Raises:
            NilTargetError: If ``target`` is None.
            NotRecordReferenceError: If ``target`` is not a mutable record.
            UnresolvedAnnotationError: If a record annotation cannot be resolved.
            InlineTargetNotRecordError: If an inlined field is not a record.
            UnknownDecoderError: If a decoder name cannot be resolved.
            DecodeFailedError: If a decoder raised.
            WrongTypeError: If a decoded value does not fit its field,
                including validation on assignment.
        """
        if target is None:
            raise NilTargetError()
        if not is_mutable_record(target):
            raise NotRecordReferenceError(target)
        if data is None:
            data = DecodeData()

        with _context_pool.acquire(data) as ctx:
            for descriptor in describe(type(target)):
                self._decode_field(target, descriptor, source, data, ctx)

    def try_decode[T](
        self, target: T, source: Source, data: DecodeData | None = None
    ) -> Result[T, DecodeError]:
        """Like ``decode``, but return the outcome instead of raising."""
        try:
            self.decode(target, source, data)
        except DecodeError as e:
            return Failure(e)
        return Success(target)

    def decode_single(self, target: Any, source: SingleSource) -> None:
        """Decode from a source that only has single values."""
        self.decode(target, SplitSource(single=source))

    def decode_multi(self, target: Any, source: MultiSource) -> None:
        """Decode from a source that only has lists of values."""
        self.decode(target, SplitSource(multi=source))

    # --- per-field steps ---

    def _decode_field(
        self,
        target: Any,
        descriptor: FieldDescriptor,
        source: Source,
        data: DecodeData,
        ctx: DecodeContext,
    ) -> None:
        settings = self.settings
        tags = descriptor.tags
        ctx._enter_field(descriptor.name, tags)

        decoder_name = tags.get(settings.decoder_tag, "")
        if not decoder_name:
            if not settings.default_decoder:
                log.debug("Skipping field %s: no decoder tag", descriptor.name)
                return
            decoder_name = settings.default_decoder
        ctx._use_decoder(decoder_name)

        if settings.inline_decoder and decoder_name == settings.inline_decoder:
            self._decode_inline(target, descriptor, decoder_name, source, data)
            return

        key = tags.get(settings.name_tag, "") if settings.name_tag else ""
        if not key:
            if settings.strict_name_tag:
                log.debug("Skipping field %s: no name tag", descriptor.name)
                return
            key = descriptor.name
        ctx._read_key(key)

        try:
            entry = self.registry.resolve(decoder_name)
        except RegistryError as e:
            raise UnknownDecoderError(
                field=descriptor.name,
                tags=tags,
                key=key,
                decoder=decoder_name,
                cause=e,
            ) from e

        ctx._dispatch(entry.kind)
        log.debug(
            "Decoding field %s from key %r with %s decoder %r",
            descriptor.name,
            key,
            entry.kind.value,
            decoder_name,
        )
        if entry.kind is DecoderKind.SINGLE:
            raw_value, exists = source.lookup(key)
        else:
            raw_value, exists = source.lookup_all(key)
        try:
            value = entry.func(raw_value, exists, ctx)
        except Exception as e:
            raise DecodeFailedError(
                field=descriptor.name,
                tags=tags,
                key=key,
                decoder=decoder_name,
                kind=entry.kind,
                cause=e,
            ) from e

        value = self._reconcile(descriptor, value, ctx)
        try:
            descriptor.set(target, value)
        except ValidationError as e:
            # Models with validate_assignment=True validate on setattr.
            raise self._wrong_type(
                ctx, value, descriptor.declared_type, assignment=True, cause=e
            ) from e

    def _decode_inline(
        self,
        target: Any,
        descriptor: FieldDescriptor,
        decoder_name: str,
        source: Source,
        data: DecodeData,
    ) -> None:
        declared = descriptor.declared_type
        record_type = declared if is_record_type(declared) else None
        if record_type is None:
            record_type = optional_record_type(declared)
        if record_type is None:
            raise InlineTargetNotRecordError(
                field=descriptor.name, tags=descriptor.tags, decoder=decoder_name
            )

        nested = descriptor.get(target)
        if not isinstance(nested, record_type):
            nested = zero_record(record_type)
            descriptor.set(target, nested)

        log.debug("Inlining field %s as %s", descriptor.name, record_type.__name__)
        self.decode(nested, source, data)

    def _reconcile(
        self, descriptor: FieldDescriptor, value: Any, ctx: DecodeContext
    ) -> Any:
        declared = descriptor.declared_type
        if self.settings.strict_typing:
            if not is_assignable(value, declared):
                raise self._wrong_type(ctx, value, declared, assignment=True)
            return value

        if value is None:
            return zero_value(declared)
        try:
            return convert(value, declared)
        except NoConversionError:
            raise self._wrong_type(ctx, value, declared, assignment=False) from None
        except ConversionFailedError as e:
            cause = e.__cause__ if e.__cause__ is not None else e
            raise self._wrong_type(
                ctx, value, declared, assignment=False, cause=cause
            ) from cause

    @staticmethod
    def _wrong_type(
        ctx: DecodeContext,
        value: Any,
        declared: Any,
        *,
        assignment: bool,
        cause: BaseException | None = None,
    ) -> WrongTypeError:
        return WrongTypeError(
            field=ctx.field,
            tags=ctx.tags,
            key=ctx.key,
            decoder=ctx.decoder,
            kind=ctx.kind,
            assignment=assignment,
            returned_type=type(value),
            declared_type=declared,
            cause=cause,
        )
