"""Reader settings schema and validation using Pydantic.

This module defines the settings that steer a decode pass: which tags name a
field's source key and decoder, the fallbacks used when those tags are
missing, and the typing policy. Values can come from the environment with the
TAGREADER_ prefix, from a .env file, or programmatically.
"""

import contextvars
from typing import Any

from pydantic import Field, field_validator
from pydantic_settings import (
    BaseSettings,
    PydanticBaseSettingsSource,
    SettingsConfigDict,
)

# Set while settings are built from explicit values only, see from_values().
_values_only: contextvars.ContextVar[bool] = contextvars.ContextVar(
    "tagreader_settings_values_only", default=False
)


class ReaderSettings(BaseSettings):
    """Pydantic settings schema for a decode pass.

    Instances are immutable; derive variants with ``model_copy(update=...)``
    or through ``resolve_settings``.
    """

    model_config = SettingsConfigDict(
        env_prefix="TAGREADER_",
        env_file=None,  # Only used when explicitly requested
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
        frozen=True,
    )

    # --- Field naming ---

    name_tag: str = Field(
        default="name",
        description="Tag holding the source key of a field; empty reads the field name",
    )

    strict_name_tag: bool = Field(
        default=False,
        description="Skip fields without a name tag instead of using the field name",
    )

    # --- Decoder selection ---

    decoder_tag: str = Field(
        default="decoder",
        description="Tag holding the decoder name of a field",
    )

    default_decoder: str = Field(
        default="",
        description="Decoder for fields without a decoder tag; empty skips them",
    )

    inline_decoder: str = Field(
        default="",
        description="Decoder name that decodes a nested record in place",
    )

    # --- Typing policy ---

    strict_typing: bool = Field(
        default=False,
        description="Require decoded values to be assignable without conversion",
    )

    # --- Validation Rules ---

    @field_validator("name_tag")
    @classmethod
    def validate_name_tag(cls, v: str) -> str:
        """The name tag may be empty (always read the field name)."""
        if any(ch.isspace() for ch in v):
            raise ValueError(f"tag key {v!r} must not contain whitespace")
        return v

    @field_validator("decoder_tag")
    @classmethod
    def validate_decoder_tag(cls, v: str) -> str:
        """The decoder tag must be non-empty and free of whitespace."""
        if not v:
            raise ValueError("tag key must not be empty")
        if any(ch.isspace() for ch in v):
            raise ValueError(f"tag key {v!r} must not contain whitespace")
        return v

    @field_validator("default_decoder", "inline_decoder")
    @classmethod
    def validate_decoder_name(cls, v: str) -> str:
        """Decoder names, when set, must be free of whitespace."""
        if any(ch.isspace() for ch in v):
            raise ValueError(f"decoder name {v!r} must not contain whitespace")
        return v

    # --- Construction ---

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls: type[BaseSettings],
        init_settings: PydanticBaseSettingsSource,
        env_settings: PydanticBaseSettingsSource,
        dotenv_settings: PydanticBaseSettingsSource,
        file_secret_settings: PydanticBaseSettingsSource,
    ) -> tuple[PydanticBaseSettingsSource, ...]:
        """Drop the environment sources while ``from_values`` is building."""
        if _values_only.get():
            return (init_settings,)
        return init_settings, env_settings, dotenv_settings, file_secret_settings

    @classmethod
    def from_values(cls, **values: Any) -> "ReaderSettings":
        """Build settings from ``values`` and defaults, ignoring TAGREADER_*.

        Raises:
            ValidationError: If a value is invalid.
        """
        token = _values_only.set(True)
        try:
            return cls(**values)
        finally:
            _values_only.reset(token)

    def to_dict(self) -> dict[str, Any]:
        """Convert to a plain dictionary keyed by field name."""
        return self.model_dump()
