"""Per-pass decode state handed to decoder functions.

A ``DecodeContext`` describes the field currently being decoded and gives
decoders access to a ``DecodeData`` store shared by the whole decode call
tree. Contexts are handed out by a ``ContextPool`` and reset on release, so a
decoder must not keep a reference to the context after it returns.
"""

from __future__ import annotations

from collections.abc import Generator, Mapping
from contextlib import contextmanager
import dataclasses
import threading
from types import MappingProxyType
from typing import Any

from .types import DecoderKind

_NO_TAGS: Mapping[str, str] = MappingProxyType({})


@dataclasses.dataclass
class DecodeData:
    """Scratch store shared by all decoders of one top-level decode call.

    The zero value is ready to use.
    """

    # Data not associated to a specific field.
    globals: dict[str, Any] = dataclasses.field(default_factory=dict)
    # Data keyed by field identifier, then by key.
    locals: dict[str, dict[str, Any]] = dataclasses.field(default_factory=dict)

    def set_global(self, key: str, value: Any) -> None:
        """Set the global datum ``key`` to ``value``."""
        self.globals[key] = value

    def set_local(self, field: str, key: str, value: Any) -> None:
        """Set the datum ``key`` local to ``field`` to ``value``."""
        self.locals.setdefault(field, {})[key] = value


class DecodeContext:
    """Describes the field being decoded, and exposes the shared store."""

    __slots__ = ("_data", "_decoder", "_field", "_key", "_kind", "_tags")

    def __init__(self) -> None:
        self._data: DecodeData = DecodeData()
        self.reset()

    def reset(self) -> None:
        """Clear all positional state and detach from the data store."""
        self._field = ""
        self._tags: Mapping[str, str] = _NO_TAGS
        self._key = ""
        self._decoder = ""
        self._kind = DecoderKind.UNDEFINED
        self._data = DecodeData()

    # --- positional state, written by the engine ---

    def _enter_field(self, field: str, tags: Mapping[str, str]) -> None:
        self._field = field
        self._tags = tags
        self._key = ""
        self._decoder = ""
        self._kind = DecoderKind.UNDEFINED

    def _use_decoder(self, decoder: str) -> None:
        self._decoder = decoder

    def _read_key(self, key: str) -> None:
        self._key = key

    def _dispatch(self, kind: DecoderKind) -> None:
        self._kind = kind

    @property
    def field(self) -> str:
        """Identifier of the field being written to."""
        return self._field

    @property
    def tags(self) -> Mapping[str, str]:
        """Tags of the field being written to."""
        return self._tags

    @property
    def key(self) -> str:
        """Source key being read."""
        return self._key

    @property
    def decoder(self) -> str:
        """Name of the decoder in use."""
        return self._decoder

    @property
    def kind(self) -> DecoderKind:
        """Whether the decoder in use is single- or multi-valued."""
        return self._kind

    @property
    def single(self) -> bool:
        """True when the decoder in use is a single-value decoder."""
        return self._kind is DecoderKind.SINGLE

    @property
    def data(self) -> DecodeData:
        """The shared store of the current decode call tree."""
        return self._data

    # --- shared store ---

    def get(self, key: str) -> Any:
        """Return the datum ``key`` local to the current field, or None."""
        return self._data.locals.get(self._field, {}).get(key)

    def set(self, key: str, value: Any) -> None:
        """Set the datum ``key`` local to the current field."""
        self._data.set_local(self._field, key, value)

    def get_global(self, key: str) -> Any:
        """Return the global datum ``key``, or None."""
        return self._data.globals.get(key)

    def set_global(self, key: str, value: Any) -> None:
        """Set the global datum ``key``."""
        self._data.set_global(key, value)

    def __repr__(self) -> str:
        return (
            f"DecodeContext(field={self._field!r}, key={self._key!r}, "
            f"decoder={self._decoder!r}, kind={self._kind.value})"
        )


class ContextPool:
    """Thread-safe pool of reusable ``DecodeContext`` instances.

    Each acquisition hands out an instance no other caller holds; the instance
    is reset before it is returned to the pool, on every exit path.
    """

    def __init__(self, max_size: int = 16) -> None:
        self._free: list[DecodeContext] = []
        self._lock = threading.Lock()
        self._max_size = max_size

    @contextmanager
    def acquire(self, data: DecodeData) -> Generator[DecodeContext]:
        """Borrow a context bound to ``data`` for the duration of the block."""
        with self._lock:
            ctx = self._free.pop() if self._free else DecodeContext()
        ctx._data = data
        try:
            yield ctx
        finally:
            ctx.reset()
            with self._lock:
                if len(self._free) < self._max_size:
                    self._free.append(ctx)

    def __len__(self) -> int:
        with self._lock:
            return len(self._free)
