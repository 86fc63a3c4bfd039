"""Registry of named decoder functions.

A name maps to either a single-value or a multi-value decoder. Registration
is unchecked; a name registered under both kinds (or under neither) only
surfaces as an error when it is resolved.
"""

from __future__ import annotations

import dataclasses
from typing import Any

from tagreader.core.types import DecoderKind, MultiDecoder, SingleDecoder
from tagreader.exceptions import AmbiguousDecoderError, UnknownDecoderNameError


@dataclasses.dataclass(frozen=True, slots=True)
class RegisteredDecoder:
    """A resolved decoder together with its name and kind."""

    name: str
    kind: DecoderKind
    func: SingleDecoder | MultiDecoder


class DecoderRegistry:
    """Maps decoder names to single-value or multi-value decoder functions.

    Minimal API by design; process-local memory only. Callers that share a
    registry between threads must not register while other threads decode.
    """

    def __init__(
        self,
        single: dict[str, SingleDecoder] | None = None,
        multi: dict[str, MultiDecoder] | None = None,
    ) -> None:
        """Initialize the registry, optionally from existing mappings."""
        self._single: dict[str, SingleDecoder] = dict(single or {})
        self._multi: dict[str, MultiDecoder] = dict(multi or {})

    def register_single(self, name: str, decoder: SingleDecoder) -> None:
        """Register ``decoder`` as the single-value decoder called ``name``.

        ``decoder`` should not be None, and ``name`` should not also be
        registered as a multi-value decoder. Neither is checked here.
        """
        self._single[name] = decoder

    def register_multi(self, name: str, decoder: MultiDecoder) -> None:
        """Register ``decoder`` as the multi-value decoder called ``name``.

        ``decoder`` should not be None, and ``name`` should not also be
        registered as a single-value decoder. Neither is checked here.
        """
        self._multi[name] = decoder

    def resolve(self, name: str) -> RegisteredDecoder:
        """Return the decoder registered under ``name``.

        Raises:
            AmbiguousDecoderError: If ``name`` is registered as both kinds.
            UnknownDecoderNameError: If ``name`` is not registered.
        """
        single = self._single.get(name)
        multi = self._multi.get(name)

        if single is not None and multi is not None:
            raise AmbiguousDecoderError(name)
        if single is not None:
            return RegisteredDecoder(name, DecoderKind.SINGLE, single)
        if multi is not None:
            return RegisteredDecoder(name, DecoderKind.MULTI, multi)
        raise UnknownDecoderNameError(name)

    def names(self) -> list[str]:
        """Return all registered names, sorted."""
        return sorted(set(self._single) | set(self._multi))

    def copy(self) -> DecoderRegistry:
        """Return an independent registry with the same entries."""
        return DecoderRegistry(self._single, self._multi)

    def __contains__(self, name: Any) -> bool:
        return name in self._single or name in self._multi

    def __repr__(self) -> str:
        return (
            f"DecoderRegistry(single={sorted(self._single)!r}, "
            f"multi={sorted(self._multi)!r})"
        )
