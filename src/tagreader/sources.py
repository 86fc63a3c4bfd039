"""Lookup sources the engine reads raw string values from.

A source answers two questions for a key: its single value, and its list of
values, each together with a flag saying whether the key exists. Sources that
only know one of the two are wrapped in ``SplitSource``, which reports the
missing side as always absent, or in ``FallbackSource``, which derives it
from the other side.
"""

from __future__ import annotations

from collections.abc import Mapping, Sequence
import logging
import os
from pathlib import Path
from typing import Protocol, runtime_checkable
from urllib.parse import parse_qs

from dotenv import dotenv_values

log = logging.getLogger(__name__)


@runtime_checkable
class SingleSource(Protocol):
    """Returns a single string value for a key."""

    def lookup(self, key: str) -> tuple[str, bool]:
        """Return ``(value, exists)``; ``value`` is ``""`` when absent."""
        ...


@runtime_checkable
class MultiSource(Protocol):
    """Returns a list of string values for a key."""

    def lookup_all(self, key: str) -> tuple[list[str], bool]:
        """Return ``(values, exists)``; ``values`` is ``[]`` when absent."""
        ...


@runtime_checkable
class Source(SingleSource, MultiSource, Protocol):
    """A source supporting both single and multi lookups."""


class MapSource:
    """Single source backed by a ``str -> str`` mapping."""

    def __init__(self, mapping: Mapping[str, str]) -> None:
        self._mapping = mapping

    def lookup(self, key: str) -> tuple[str, bool]:
        if key in self._mapping:
            return self._mapping[key], True
        return "", False


class MultiMapSource:
    """Multi source backed by a ``str -> list[str]`` mapping."""

    def __init__(self, mapping: Mapping[str, Sequence[str]]) -> None:
        self._mapping = mapping

    def lookup_all(self, key: str) -> tuple[list[str], bool]:
        if key in self._mapping:
            return list(self._mapping[key]), True
        return [], False


class _EmptySource:
    def lookup(self, key: str) -> tuple[str, bool]:  # noqa: ARG002
        return "", False

    def lookup_all(self, key: str) -> tuple[list[str], bool]:  # noqa: ARG002
        return [], False


_EMPTY = _EmptySource()


class SplitSource:
    """Combines a separate single and multi source.

    A side that is not given behaves as if no key exists.
    """

    def __init__(
        self,
        single: SingleSource | None = None,
        multi: MultiSource | None = None,
    ) -> None:
        self.single: SingleSource = single if single is not None else _EMPTY
        self.multi: MultiSource = multi if multi is not None else _EMPTY

    def lookup(self, key: str) -> tuple[str, bool]:
        return self.single.lookup(key)

    def lookup_all(self, key: str) -> tuple[list[str], bool]:
        return self.multi.lookup_all(key)


class FallbackSource(SplitSource):
    """Like ``SplitSource``, but each side falls back to the other.

    A missing single value is taken from the first item of the multi side; a
    missing list of values is a one-item list holding the single value.
    """

    def lookup(self, key: str) -> tuple[str, bool]:
        value, ok = self.single.lookup(key)
        if ok:
            return value, True
        values, ok = self.multi.lookup_all(key)
        if ok and values:
            return values[0], True
        return "", False

    def lookup_all(self, key: str) -> tuple[list[str], bool]:
        values, ok = self.multi.lookup_all(key)
        if ok:
            return values, True
        value, ok = self.single.lookup(key)
        if ok:
            return [value], True
        return [], False


def source_from_single(single: SingleSource) -> SplitSource:
    """Return a source that uses ``single`` and has no multi values."""
    return SplitSource(single=single)


def source_from_multi(multi: MultiSource) -> SplitSource:
    """Return a source that uses ``multi`` and has no single values."""
    return SplitSource(multi=multi)


# --- Concrete backends ---


class EnvironSource:
    """Single source reading environment variables.

    Args:
        environ: Mapping to read from; defaults to ``os.environ`` at lookup time.
        prefix: Prepended to every key before the lookup.
    """

    def __init__(
        self, environ: Mapping[str, str] | None = None, *, prefix: str = ""
    ) -> None:
        self._environ = environ
        self.prefix = prefix

    def lookup(self, key: str) -> tuple[str, bool]:
        environ = self._environ if self._environ is not None else os.environ
        name = f"{self.prefix}{key}"
        if name in environ:
            return environ[name], True
        return "", False


class DotenvSource(MapSource):
    """Single source reading a ``.env`` file.

    Keys declared without a value (a bare ``KEY`` line) are treated as absent.

    Raises:
        FileNotFoundError: If ``path`` does not exist.
    """

    def __init__(self, path: str | Path, *, encoding: str = "utf-8") -> None:
        env_path = Path(path)
        if not env_path.exists():
            raise FileNotFoundError(f"Environment file not found: {env_path}")
        raw = dotenv_values(env_path, encoding=encoding)
        values = {key: value for key, value in raw.items() if value is not None}
        log.debug("Loaded %d keys from %s", len(values), env_path)
        super().__init__(values)
        self.path = env_path


class QuerySource(FallbackSource):
    """Source reading a URL query string or form-encoded body.

    Repeated keys become multiple values; a single lookup returns the first.
    """

    def __init__(self, query: str) -> None:
        parsed = parse_qs(query, keep_blank_values=True)
        super().__init__(multi=MultiMapSource(parsed))
