"""Configuration models describing shotsort settings."""

from __future__ import annotations

from typing import Literal

from pydantic import BaseModel, ConfigDict, Field, field_validator

LOG_LEVELS = ("CRITICAL", "ERROR", "WARNING", "INFO", "DEBUG", "NOTSET")


class ShotsortBaseModel(BaseModel):
    """Shared configuration for shotsort settings models."""

    model_config = ConfigDict(extra="forbid")


class OrganizationOptions(ShotsortBaseModel):
    """Settings that govern folder shaping and destination naming.

    Attributes:
        merge_threshold: Top-level categories holding fewer proposals are merged
            into the fallback category.
        subfolder_threshold: Subfolders holding fewer proposals are flattened into
            their top-level category.
        fallback_category: Category used for merged and empty categories.
        placeholder_name: Filename used when a proposed name sanitizes to nothing.
        required_extension: Extension every destination filename must carry.
        format_categories: Whether incoming categories are normalized on ingest.
        conflict_resolution: Strategy the local mover uses to disambiguate an
            occupied destination.
    """

    merge_threshold: int = Field(default=3, ge=0)
    subfolder_threshold: int = Field(default=3, ge=0)
    fallback_category: str = "Other"
    placeholder_name: str = "screenshot"
    required_extension: str = ".png"
    format_categories: bool = True
    conflict_resolution: Literal["append_number", "timestamp"] = "append_number"


class LoggingSettings(ShotsortBaseModel):
    """Runtime logging configuration.

    Attributes:
        level: Logging verbosity level, one of the standard level names.
    """

    level: str = "WARNING"

    @field_validator("level", mode="before")
    @classmethod
    def _normalize_level(cls, value: object) -> str:
        level = str(value).strip().upper()
        if level not in LOG_LEVELS:
            raise ValueError(f"level must be one of {', '.join(LOG_LEVELS)}; got {value!r}")
        return level


class CLIOptions(ShotsortBaseModel):
    """CLI behavior defaults and presentation preferences.

    Attributes:
        quiet_default: Whether commands suppress non-error output by default.
        summary_default: Whether commands only print summary lines by default.
    """

    quiet_default: bool = False
    summary_default: bool = False


class ShotsortConfig(ShotsortBaseModel):
    """Top-level configuration struct for shotsort.

    Attributes:
        organization: Folder shaping and destination settings.
        logging: Logging configuration.
        cli: CLI presentation defaults.
    """

    organization: OrganizationOptions = Field(default_factory=OrganizationOptions)
    logging: LoggingSettings = Field(default_factory=LoggingSettings)
    cli: CLIOptions = Field(default_factory=CLIOptions)


__all__ = [
    "LOG_LEVELS",
    "ShotsortBaseModel",
    "OrganizationOptions",
    "LoggingSettings",
    "CLIOptions",
    "ShotsortConfig",
]
