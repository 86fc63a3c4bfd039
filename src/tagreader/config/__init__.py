"""Settings for the tagreader decode engine.

Key components:
- ReaderSettings: Validated, immutable settings for one decode pass
- resolve_settings: Merges defaults, environment and programmatic overrides
- ResolvedSettings: Resolved settings together with their SourceMap
"""

from .resolver import resolve_settings
from .schema import ReaderSettings
from .types import ResolvedSettings, SettingsOrigin, SourceMap

__all__ = [
    "ReaderSettings",
    "ResolvedSettings",
    "SettingsOrigin",
    "SourceMap",
    "resolve_settings",
]
