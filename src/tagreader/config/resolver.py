"""Reader settings resolution with precedence handling.

Settings are merged from the following sources, highest precedence first:
Programmatic > Environment > .env file > Defaults
"""

from collections.abc import Mapping
import logging
import os
from pathlib import Path
from typing import Any

from dotenv import dotenv_values
from pydantic import ValidationError

from tagreader.exceptions import ConfigurationError

from .schema import ReaderSettings
from .types import ResolvedSettings, SettingsOrigin

log = logging.getLogger(__name__)

ENV_PREFIX = "TAGREADER_"


def resolve_settings(
    programmatic: Mapping[str, Any] | None = None,
    *,
    env_file: str | Path | None = None,
) -> ResolvedSettings:
    """Resolve reader settings from all sources with proper precedence.

    Args:
        programmatic: Overrides with the highest precedence. Unknown fields
            are ignored.
        env_file: Optional .env file read before the process environment.
            Variables already set in the environment take precedence.

    Returns:
        ResolvedSettings with the validated settings and the origin of each
        field.

    Raises:
        ConfigurationError: If the merged values fail validation.
        FileNotFoundError: If ``env_file`` is given but does not exist.
    """
    origins: dict[str, SettingsOrigin] = dict.fromkeys(
        ReaderSettings.model_fields, "default"
    )
    merged: dict[str, Any] = {}

    for field, value in _environment_values(env_file).items():
        merged[field] = value
        origins[field] = "env"

    if programmatic:
        for field, value in programmatic.items():
            if field in origins:  # Only override known fields
                merged[field] = value
                origins[field] = "programmatic"

    try:
        settings = ReaderSettings.from_values(**merged)
    except ValidationError as e:
        raise ConfigurationError(f"Reader settings validation failed: {e}") from e

    log.debug("Resolved reader settings with origins %s", origins)
    return ResolvedSettings(settings=settings, origin=origins)


def _environment_values(env_file: str | Path | None) -> dict[str, str]:
    """Collect raw TAGREADER_* values from a .env file and the environment."""
    layers: list[Mapping[str, str | None]] = []
    if env_file is not None:
        env_path = Path(env_file)
        if not env_path.exists():
            raise FileNotFoundError(f"Environment file not found: {env_path}")
        layers.append(dotenv_values(env_path))
    layers.append(os.environ)

    values: dict[str, str] = {}
    for layer in layers:
        upper = {key.upper(): value for key, value in layer.items()}
        for field in ReaderSettings.model_fields:
            value = upper.get(f"{ENV_PREFIX}{field.upper()}")
            if value is not None:
                values[field] = value
    return values
