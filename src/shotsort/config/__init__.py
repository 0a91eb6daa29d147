"""Configuration management for shotsort."""

from __future__ import annotations

import os
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Mapping

import yaml

from .exceptions import ConfigError
from .models import CLIOptions, LoggingSettings, OrganizationOptions, ShotsortConfig
from .resolver import (
    assign_path,
    flatten_for_env,
    overrides_from_env,
    resolve_with_precedence,
)

DEFAULT_CONFIG_PATH = Path("~/.shotsort/config.yaml")
CONFIG_HEADER = (
    "# shotsort configuration file\n"
    "# Thresholds and naming rules for `shotsort review` and `shotsort apply`.\n"
)


class ConfigManager:
    """Read and write the YAML configuration file and layer overrides on top.

    The file only needs to hold the values that differ from the defaults;
    :meth:`load` fills in everything else and validates the result.
    """

    def __init__(
        self,
        config_path: Path | None = None,
        *,
        env: Mapping[str, str] | None = None,
    ) -> None:
        """Initialize the manager.

        Args:
            config_path: Location of the YAML file. Defaults to
                ``~/.shotsort/config.yaml``, expanded at construction time.
            env: Environment consulted for ``SHOTSORT__`` overrides. Defaults to
                ``os.environ``.
        """
        self._config_path = (config_path or DEFAULT_CONFIG_PATH).expanduser()
        self._env = os.environ if env is None else env

    @property
    def config_path(self) -> Path:
        return self._config_path

    def load(
        self,
        *,
        cli_overrides: Mapping[str, Any] | None = None,
        include_env: bool = True,
        ensure_file: bool = True,
        env_overrides: Mapping[str, str] | None = None,
    ) -> ShotsortConfig:
        """Return the effective configuration.

        Args:
            cli_overrides: Dotted-key overrides with the highest precedence.
            include_env: Whether ``SHOTSORT__`` environment variables apply.
            ensure_file: Whether to write a default file when none exists.
            env_overrides: Environment to use instead of the manager's own.

        Raises:
            ConfigError: If the file or any override is invalid.
        """
        if ensure_file:
            self.ensure_exists()

        env_layer = None
        if include_env:
            env_layer = overrides_from_env(self._env if env_overrides is None else env_overrides)

        return resolve_with_precedence(
            defaults=ShotsortConfig(),
            file_overrides=self._read_file(),
            env_overrides=env_layer or None,
            cli_overrides=cli_overrides,
        )

    def load_file_overrides(self) -> dict[str, Any]:
        """Return the raw mapping stored on disk."""
        return self._read_file()

    def set_value(self, key: str, value: Any) -> ShotsortConfig:
        """Store ``value`` at the dotted ``key`` in the file, validating first.

        Returns:
            ShotsortConfig: Configuration as resolved from the updated file.

        Raises:
            ConfigError: If ``key`` is empty or the value does not validate. The
                file is left untouched in that case.
        """
        path = [segment.strip() for segment in key.split(".") if segment.strip()]
        if not path:
            raise ConfigError(
                "KEY must specify a dotted path such as 'organization.merge_threshold'."
            )
        data = self._read_file()
        assign_path(data, path, value, source_name="file")
        resolved = resolve_with_precedence(defaults=ShotsortConfig(), file_overrides=data)
        self._write_file(data)
        return resolved

    def save(self, config: ShotsortConfig | Mapping[str, Any]) -> None:
        """Write ``config`` to disk, replacing the current file."""
        if isinstance(config, ShotsortConfig):
            self._write_file(config.model_dump(mode="python"))
        else:
            self._write_file(dict(config))

    def ensure_exists(self) -> Path:
        """Write the default configuration if the file is missing."""
        if not self._config_path.exists():
            self.save(ShotsortConfig())
        return self._config_path

    def read_text(self) -> str:
        """Return the file contents, or an empty string when it is missing."""
        if not self._config_path.exists():
            return ""
        return self._config_path.read_text(encoding="utf-8")

    def _read_file(self) -> dict[str, Any]:
        text = self.read_text()
        if not text:
            return {}
        try:
            data = yaml.safe_load(text)
        except yaml.YAMLError as exc:
            raise ConfigError(f"Failed to parse {self._config_path}: {exc}") from exc
        if data is None:
            return {}
        if not isinstance(data, dict):
            raise ConfigError(f"{self._config_path} must contain a mapping at the top level.")
        return data

    def _write_file(self, data: Mapping[str, Any]) -> None:
        self._config_path.parent.mkdir(parents=True, exist_ok=True)
        stamp = datetime.now(timezone.utc).strftime("%Y-%m-%dT%H:%M:%SZ")
        body = yaml.safe_dump(dict(data), sort_keys=False)
        self._config_path.write_text(
            f"{CONFIG_HEADER}# Last updated: {stamp}\n{body}", encoding="utf-8"
        )


__all__ = [
    "CLIOptions",
    "ConfigError",
    "ConfigManager",
    "DEFAULT_CONFIG_PATH",
    "LoggingSettings",
    "OrganizationOptions",
    "ShotsortConfig",
    "flatten_for_env",
    "resolve_with_precedence",
]
