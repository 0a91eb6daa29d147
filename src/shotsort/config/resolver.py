"""Layering of configuration sources into one validated :class:`ShotsortConfig`."""

from __future__ import annotations

from collections.abc import Mapping as MappingABC
from copy import deepcopy
from typing import Any, Dict, Mapping

import yaml
from pydantic import ValidationError

from .exceptions import ConfigError
from .models import ShotsortConfig

ENV_PREFIX = "SHOTSORT__"
ENV_SEPARATOR = "__"


def resolve_with_precedence(
    *,
    defaults: ShotsortConfig,
    file_overrides: Mapping[str, Any] | None = None,
    env_overrides: Mapping[str, Any] | None = None,
    cli_overrides: Mapping[str, Any] | None = None,
) -> ShotsortConfig:
    """Merge configuration sources: defaults < file < environment < CLI.

    Args:
        defaults: Baseline configuration.
        file_overrides: Nested mapping read from the YAML file.
        env_overrides: Nested mapping derived from environment variables.
        cli_overrides: Mapping whose keys may be dotted paths such as
            ``organization.merge_threshold``.

    Returns:
        ShotsortConfig: Validated configuration.

    Raises:
        ConfigError: If any source is malformed or the merged values are invalid.
    """
    layers = (
        ("file", file_overrides),
        ("environment", env_overrides),
        ("cli", cli_overrides),
    )
    merged: dict[str, Any] = defaults.model_dump(mode="python")
    for source_name, source in layers:
        if source is not None:
            merged = _deep_merge(merged, expand_dotted(source, source_name=source_name))

    try:
        return ShotsortConfig.model_validate(merged)
    except ValidationError as exc:
        raise ConfigError(f"Invalid configuration values: {exc}") from exc


def overrides_from_env(env: Mapping[str, str], *, prefix: str = ENV_PREFIX) -> dict[str, Any]:
    """Collect ``SHOTSORT__SECTION__KEY`` variables into a nested mapping.

    Values are parsed as YAML scalars so ``"5"`` becomes ``5`` and ``"true"``
    becomes ``True``; unparsable values are kept as strings.
    """
    overrides: dict[str, Any] = {}
    for name, raw in env.items():
        if not name.startswith(prefix):
            continue
        path = [part.lower() for part in name[len(prefix) :].split(ENV_SEPARATOR)]
        if not all(path):
            continue
        try:
            value = yaml.safe_load(raw)
        except yaml.YAMLError:
            value = raw
        assign_path(overrides, path, value, source_name="environment", replace=True)
    return overrides


def flatten_for_env(config: ShotsortConfig, *, prefix: str = ENV_PREFIX) -> Dict[str, str]:
    """Render ``config`` as the environment variables that would reproduce it."""
    flat: Dict[str, str] = {}
    pending: list[tuple[list[str], Any]] = [([], config.model_dump(mode="python"))]
    while pending:
        path, value = pending.pop()
        if isinstance(value, dict):
            pending.extend((path + [str(key)], child) for key, child in value.items())
            continue
        flat[prefix + ENV_SEPARATOR.join(part.upper() for part in path)] = (
            "null" if value is None else str(value)
        )
    return dict(sorted(flat.items()))


def expand_dotted(source: Mapping[str, Any], *, source_name: str) -> dict[str, Any]:
    """Return ``source`` with dotted keys expanded into nested mappings.

    Raises:
        ConfigError: If ``source`` is not a mapping, a key is not a string, or
            two keys disagree about whether a path is a section.
    """
    if not isinstance(source, MappingABC):
        raise ConfigError(f"{source_name.capitalize()} overrides must be a mapping.")

    expanded: dict[str, Any] = {}
    for key, value in source.items():
        if not isinstance(key, str):
            raise ConfigError(f"{source_name.capitalize()} override keys must be strings.")
        if isinstance(value, MappingABC):
            value = expand_dotted(value, source_name=source_name)
        assign_path(expanded, key.split("."), value, source_name=source_name)
    return expanded


def assign_path(
    target: dict[str, Any],
    path: list[str],
    value: Any,
    *,
    source_name: str,
    replace: bool = False,
) -> None:
    """Set ``value`` at ``path`` inside ``target``, creating sections as needed.

    Args:
        target: Mapping to update in place.
        path: Key segments from the top-level section to the leaf.
        value: Value to store; mappings are merged into an existing section.
        source_name: Name of the source, used in error messages.
        replace: Whether a scalar sitting where a section is needed is replaced
            instead of reported.

    Raises:
        ConfigError: If a segment of ``path`` already holds a non-mapping value
            and ``replace`` is not set.
    """
    node = target
    for segment in path[:-1]:
        child = node.setdefault(segment, {})
        if not isinstance(child, dict):
            if not replace:
                raise ConfigError(
                    f"Cannot assign {'.'.join(path)} from {source_name}: "
                    f"'{segment}' is not a section."
                )
            child = node[segment] = {}
        node = child

    leaf = path[-1]
    current = node.get(leaf)
    if isinstance(value, MappingABC) and isinstance(current, MappingABC):
        node[leaf] = _deep_merge(current, value)
    else:
        node[leaf] = value


def _deep_merge(base: Mapping[str, Any], overrides: Mapping[str, Any]) -> dict[str, Any]:
    merged = {key: deepcopy(value) for key, value in base.items()}
    for key, value in overrides.items():
        if isinstance(value, MappingABC) and isinstance(merged.get(key), MappingABC):
            merged[key] = _deep_merge(merged[key], value)
        else:
            merged[key] = deepcopy(value)
    return merged


__all__ = [
    "ENV_PREFIX",
    "assign_path",
    "expand_dotted",
    "flatten_for_env",
    "overrides_from_env",
    "resolve_with_precedence",
]
