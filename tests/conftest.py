"""
Global test configuration and shared fixtures.
"""

import logging
import os

import pytest

from tagreader import DecodeContext, Reader, ReaderSettings, default_registry


# --- Environment Isolation (Autouse) ---
@pytest.fixture(autouse=True)
def isolate_tagreader_env(request, monkeypatch):
    """Ensure a clean TAGREADER_* environment for each test.

    Tests should only see environment that they explicitly set.

    Escape hatch: mark a test with @pytest.mark.allow_env_pollution to keep
    the current environment unchanged.
    """
    if request.node.get_closest_marker("allow_env_pollution"):
        return

    for key in list(os.environ.keys()):
        if key.upper().startswith("TAGREADER_"):
            monkeypatch.delenv(key, raising=False)


@pytest.fixture(autouse=True)
def quiet_library_logging():
    """Keep the engine's DEBUG logging out of the test output by default."""
    logging.getLogger("tagreader").setLevel(logging.INFO)


# --- Test Environment Markers ---
def pytest_configure(config):
    """Configure custom markers for test organization."""
    markers = [
        "unit: Fast, isolated unit tests",
        "integration: Tests combining the engine with real sources and settings",
        "allow_env_pollution: Do not strip TAGREADER_* variables for this test",
    ]
    for marker in markers:
        config.addinivalue_line("markers", marker)


# --- Core Fixtures ---


def _always(value: str, ok: bool, ctx: DecodeContext) -> str:  # noqa: ARG001
    return value


def _never(value: str, ok: bool, ctx: DecodeContext) -> str:  # noqa: ARG001
    raise ValueError("never decoder")


def _port(value: str, ok: bool, ctx: DecodeContext) -> int:  # noqa: ARG001
    if not ok:
        return 22
    port = int(value)
    if not 0 <= port <= 0xFFFF:
        raise ValueError(f"port {port} out of range")
    return port


@pytest.fixture
def settings():
    """Settings used by most engine tests: `name`/`decoder` tags, no defaults."""
    return ReaderSettings.from_values()


@pytest.fixture
def reader(settings):
    """A reader with the built-in decoders plus `always`, `never` and `port`."""
    registry = default_registry()
    registry.register_single("always", _always)
    registry.register_single("never", _never)
    registry.register_single("port", _port)
    return Reader(settings, registry)


@pytest.fixture
def profile_reader():
    """A reader configured with `read`/`type` tags and `string` as default."""
    registry = default_registry()
    registry.register_single("port", _port)
    return Reader(
        name_tag="read",
        decoder_tag="type",
        default_decoder="string",
        registry=registry,
    )
