"""Field descriptors for record types.

A record is an instance of a dataclass or of a pydantic model. This module
turns a record class into an ordered tuple of ``FieldDescriptor`` objects,
each holding the field identifier, its declared type, its tags and accessors,
so the engine never has to inspect classes itself. It also knows how to build
the zero value of any declared type, including zero-valued records.
"""

from __future__ import annotations

from collections.abc import Callable, Mapping
import dataclasses
from decimal import Decimal
import enum
from fractions import Fraction
import functools
import inspect
import logging
import sys
import types
import typing
from typing import Any

from pydantic import BaseModel

from tagreader.exceptions import UnresolvedAnnotationError

log = logging.getLogger(__name__)


class Tags:
    """Tag entries attached to a field through ``typing.Annotated``.

    Example:
        port: Annotated[int, Tags(name="port", decoder="port")] = 0
    """

    __slots__ = ("_items",)

    def __init__(self, entries: Mapping[str, str] | None = None, **kwargs: str):
        merged = dict(entries or {})
        merged.update(kwargs)
        self._items = tuple(merged.items())

    @property
    def entries(self) -> Mapping[str, str]:
        """The tag entries as a read-only mapping."""
        return types.MappingProxyType(dict(self._items))

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Tags):
            return NotImplemented
        return dict(self._items) == dict(other._items)

    def __hash__(self) -> int:
        return hash(frozenset(self._items))

    def __repr__(self) -> str:
        inner = ", ".join(f"{key}={value!r}" for key, value in self._items)
        return f"Tags({inner})"


@dataclasses.dataclass(frozen=True, slots=True)
class FieldDescriptor:
    """Everything the engine needs to know about one field of a record."""

    name: str
    declared_type: Any
    tags: Mapping[str, str]

    def get(self, record: Any) -> Any:
        """Return the current value of this field on ``record``."""
        return getattr(record, self.name, None)

    def set(self, record: Any, value: Any) -> None:
        """Overwrite this field on ``record`` with ``value``."""
        setattr(record, self.name, value)


# --- Record classification ---


def is_record_type(tp: Any) -> bool:
    """Return True if ``tp`` is a dataclass or pydantic model class."""
    if not isinstance(tp, type):
        return False
    return dataclasses.is_dataclass(tp) or issubclass(tp, BaseModel)


def is_mutable_record(value: Any) -> bool:
    """Return True if ``value`` is a record instance whose fields can be set."""
    if isinstance(value, type) or not is_record_type(type(value)):
        return False
    if isinstance(value, BaseModel):
        return not type(value).model_config.get("frozen", False)
    params = getattr(type(value), "__dataclass_params__", None)
    return not (params is not None and params.frozen)


def optional_record_type(tp: Any) -> type | None:
    """Return ``R`` if ``tp`` is ``R | None`` for a record type ``R``."""
    if not _is_union(tp):
        return None
    args = typing.get_args(tp)
    members = [arg for arg in args if arg is not type(None)]
    if len(members) != 1 or len(members) == len(args):
        return None
    member = members[0]
    return member if is_record_type(member) else None


def _is_union(tp: Any) -> bool:
    return typing.get_origin(tp) in (typing.Union, types.UnionType)


# --- Descriptors ---


def describe(record_type: type) -> tuple[FieldDescriptor, ...]:
    """Return the field descriptors of ``record_type`` in declaration order.

    Raises:
        TypeError: If ``record_type`` is not a dataclass or pydantic model.
        UnresolvedAnnotationError: If a field annotation cannot be resolved.
    """
    return _describe(record_type)


@functools.cache
def _describe(record_type: type) -> tuple[FieldDescriptor, ...]:
    if isinstance(record_type, type) and issubclass(record_type, BaseModel):
        descriptors = _describe_model(record_type)
    elif is_record_type(record_type):
        descriptors = _describe_dataclass(record_type)
    else:
        raise TypeError(f"{record_type!r} is not a record type")
    log.debug(
        "Described record %s with %d fields", record_type.__name__, len(descriptors)
    )
    return descriptors


def _describe_dataclass(record_type: type) -> tuple[FieldDescriptor, ...]:
    hints = _type_hints(record_type)
    descriptors = []
    for f in dataclasses.fields(record_type):
        declared, annotated_tags = _split_annotated(hints.get(f.name, f.type))
        tags = _string_entries(f.metadata)
        tags.update(annotated_tags)
        descriptors.append(
            FieldDescriptor(
                name=f.name,
                declared_type=declared,
                tags=types.MappingProxyType(tags),
            )
        )
    return tuple(descriptors)


def _describe_model(record_type: type[BaseModel]) -> tuple[FieldDescriptor, ...]:
    # Pydantic has already resolved annotations and kept Annotated metadata.
    descriptors = []
    for name, info in record_type.model_fields.items():
        declared, annotated_tags = _split_annotated(info.annotation)
        tags: dict[str, str] = {}
        if isinstance(info.json_schema_extra, Mapping):
            tags.update(_string_entries(info.json_schema_extra))
        for item in info.metadata:
            if isinstance(item, Tags):
                tags.update(item.entries)
        tags.update(annotated_tags)
        descriptors.append(
            FieldDescriptor(
                name=name,
                declared_type=declared,
                tags=types.MappingProxyType(tags),
            )
        )
    return tuple(descriptors)


def _type_hints(record_type: type) -> dict[str, Any]:
    """Resolve the annotations of ``record_type``, including ``Annotated``.

    Names missing from the defining module (classes local to a function,
    under postponed evaluation) are looked up in the calling frames.

    Raises:
        UnresolvedAnnotationError: If an annotation still cannot be resolved.
    """
    try:
        return typing.get_type_hints(record_type, include_extras=True)
    except NameError:
        pass

    module = sys.modules.get(record_type.__module__)
    module_globals = vars(module) if module is not None else {}
    localns = _caller_namespace(exclude=module_globals)
    localns.setdefault(record_type.__name__, record_type)
    try:
        hints = typing.get_type_hints(
            record_type, localns=localns, include_extras=True
        )
    except NameError as e:
        raise UnresolvedAnnotationError(record_type, e) from e
    log.debug("Resolved annotations of %s from calling frames", record_type)
    return hints


def _caller_namespace(exclude: Mapping[str, Any]) -> dict[str, Any]:
    """Collect the locals of all frames outside this package, nearest first."""
    namespace: dict[str, Any] = {}
    frame = inspect.currentframe()
    try:
        while frame is not None:
            module = frame.f_globals.get("__name__", "")
            if module != "tagreader" and not module.startswith("tagreader."):
                for name, value in frame.f_locals.items():
                    if name not in exclude:
                        namespace.setdefault(name, value)
            frame = frame.f_back
    finally:
        del frame
    return namespace


def _split_annotated(tp: Any) -> tuple[Any, dict[str, str]]:
    """Strip ``Annotated`` from ``tp`` and collect the ``Tags`` inside it."""
    tags: dict[str, str] = {}
    if typing.get_origin(tp) is typing.Annotated:
        for item in tp.__metadata__:
            if isinstance(item, Tags):
                tags.update(item.entries)
        tp = tp.__origin__
    return tp, tags


def _string_entries(mapping: Mapping[Any, Any]) -> dict[str, str]:
    return {
        key: value
        for key, value in mapping.items()
        if isinstance(key, str) and isinstance(value, str)
    }


# --- Zero values ---

_ZERO_CONSTRUCTIBLE: tuple[type, ...] = (
    bool,
    int,
    float,
    complex,
    str,
    bytes,
    bytearray,
    Decimal,
    Fraction,
    list,
    dict,
    set,
    frozenset,
    tuple,
)


def zero_value(tp: Any) -> Any:
    """Return the zero value of the declared type ``tp``.

    Optional types and anything without an obvious zero give None.
    """
    if tp is Any or tp is None or tp is type(None):
        return None
    if _is_union(tp):
        args = typing.get_args(tp)
        if type(None) in args:
            return None
        return zero_value(args[0])
    origin = typing.get_origin(tp)
    if origin is typing.Literal:
        return typing.get_args(tp)[0]
    if origin is not None:
        tp = origin
    if not isinstance(tp, type):
        return None
    if issubclass(tp, enum.Enum):
        return next(iter(tp), None)
    if is_record_type(tp):
        return zero_record(tp)
    for base in _ZERO_CONSTRUCTIBLE:
        if issubclass(tp, base):
            return _construct(tp)
    return None


def _construct(tp: Callable[[], Any]) -> Any:
    try:
        return tp()
    except TypeError:
        return None


def zero_record(record_type: type) -> Any:
    """Build a record of ``record_type`` whose fields hold their defaults.

    Fields without a default receive the zero value of their declared type.
    Pydantic models are built without validation.
    """
    declared = {d.name: d.declared_type for d in describe(record_type)}
    if issubclass(record_type, BaseModel):
        values = {
            name: zero_value(declared[name])
            for name, info in record_type.model_fields.items()
            if info.is_required()
        }
        return record_type.model_construct(**values)

    kwargs = {}
    late = {}
    for f in dataclasses.fields(record_type):
        if (
            f.default is not dataclasses.MISSING
            or f.default_factory is not dataclasses.MISSING
        ):
            continue
        value = zero_value(declared[f.name])
        if f.init:
            kwargs[f.name] = value
        else:
            late[f.name] = value
    record = record_type(**kwargs)
    for name, value in late.items():
        object.__setattr__(record, name, value)
    return record
