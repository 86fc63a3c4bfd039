"""Configuration data types for reader settings resolution."""

from collections.abc import Mapping
from typing import Literal, NamedTuple

from .schema import ReaderSettings

# --- Source Tracking Types ---

SettingsOrigin = Literal["programmatic", "env", "default"]
SourceMap = Mapping[str, SettingsOrigin]


class ResolvedSettings(NamedTuple):
    """Reader settings after resolution, with the origin of each field."""

    settings: ReaderSettings
    origin: SourceMap

    def audit(self) -> str:
        """Return a human-readable report of where each field came from."""
        lines = []
        for field, value in self.settings.to_dict().items():
            origin = self.origin.get(field, "default")
            if origin == "env":
                lines.append(f"{field}: env:TAGREADER_{field.upper()}={value!r}")
            else:
                lines.append(f"{field}: {origin}:{value!r}")
        return "\n".join(lines)
