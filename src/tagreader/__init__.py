"""Decode flat string maps into typed records, driven by field tags."""

import importlib.metadata
import logging

from tagreader.config import ReaderSettings, ResolvedSettings, resolve_settings
from tagreader.core.context import DecodeContext, DecodeData
from tagreader.core.engine import Reader
from tagreader.core.records import Tags
from tagreader.core.types import (
    DecoderKind,
    Failure,
    MultiDecoder,
    Result,
    SingleDecoder,
    Success,
)
from tagreader.decoders import default_registry, register_builtins
from tagreader.exceptions import (
    AmbiguousDecoderError,
    ConfigurationError,
    DecodeError,
    DecodeFailedError,
    InlineTargetNotRecordError,
    NilTargetError,
    NotRecordReferenceError,
    RegistryError,
    TagReaderError,
    UnknownDecoderError,
    UnknownDecoderNameError,
    UnresolvedAnnotationError,
    WrongTypeError,
)
from tagreader.registries import DecoderRegistry, RegisteredDecoder
from tagreader.sources import (
    DotenvSource,
    EnvironSource,
    FallbackSource,
    MapSource,
    MultiMapSource,
    MultiSource,
    QuerySource,
    SingleSource,
    Source,
    SplitSource,
    source_from_multi,
    source_from_single,
)

try:
    __version__ = importlib.metadata.version("tagreader")
except importlib.metadata.PackageNotFoundError:
    __version__ = "0.0.0"

# Set up a null handler for the library's root logger
logging.getLogger(__name__).addHandler(logging.NullHandler())

__all__ = [  # noqa: RUF022
    # Engine
    "Reader",
    "DecodeContext",
    "DecodeData",
    "Tags",
    # Settings
    "ReaderSettings",
    "ResolvedSettings",
    "resolve_settings",
    # Decoders
    "DecoderRegistry",
    "RegisteredDecoder",
    "DecoderKind",
    "SingleDecoder",
    "MultiDecoder",
    "default_registry",
    "register_builtins",
    # Sources
    "Source",
    "SingleSource",
    "MultiSource",
    "MapSource",
    "MultiMapSource",
    "SplitSource",
    "FallbackSource",
    "EnvironSource",
    "DotenvSource",
    "QuerySource",
    "source_from_single",
    "source_from_multi",
    # Results
    "Result",
    "Success",
    "Failure",
    # Exceptions
    "TagReaderError",
    "ConfigurationError",
    "RegistryError",
    "UnknownDecoderNameError",
    "AmbiguousDecoderError",
    "DecodeError",
    "NilTargetError",
    "NotRecordReferenceError",
    "InlineTargetNotRecordError",
    "UnresolvedAnnotationError",
    "UnknownDecoderError",
    "DecodeFailedError",
    "WrongTypeError",
]
