"""
Settings files.

Values may reference the environment as ``${NAME}`` or ``${NAME:-default}``
so credentials stay out of the file itself. References are resolved while
the YAML is parsed, before any pydantic validation runs.
"""

from __future__ import annotations

import os
import re
from pathlib import Path
from typing import Any

import yaml
from beartype import beartype

ENV_REFERENCE = re.compile(r"\$\{(?P<name>[^}{:]+)(?::-(?P<default>[^}]*))?\}")


class ConfigError(Exception):
    """Settings file missing, unreadable or failing validation."""


@beartype
def resolve_env_references(text: str) -> str:
    """Replace every environment reference in `text`; unset names without a default become empty."""
    return ENV_REFERENCE.sub(lambda m: os.environ.get(m["name"], m["default"] or ""), text)


class EnvResolvingLoader(yaml.SafeLoader):
    """SafeLoader whose string scalars, quoted or plain, get environment references resolved."""

    def construct_scalar(self, node: yaml.ScalarNode | yaml.MappingNode) -> Any:
        value = super().construct_scalar(node)
        if isinstance(value, str) and "${" in value:
            return resolve_env_references(value)
        return value


@beartype
def read_settings_file(path: str | Path) -> dict[str, Any]:
    """
    Parse a YAML settings file into a plain mapping.

    An empty file yields an empty mapping, i.e. every setting at its default.

    Raises:
        ConfigError: The file is missing or unreadable, is not valid YAML,
            or its top level is not a mapping.
    """
    settings_path = Path(path)
    try:
        text = settings_path.read_text(encoding="utf-8")
    except FileNotFoundError:
        raise ConfigError(f"settings file {settings_path} does not exist") from None
    except OSError as err:
        raise ConfigError(f"cannot read settings file {settings_path}: {err}") from err

    try:
        data = yaml.load(text, Loader=EnvResolvingLoader)
    except yaml.YAMLError as err:
        raise ConfigError(f"cannot parse settings file {settings_path}: {err}") from err

    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ConfigError(
            f"settings file {settings_path} must hold a mapping at the top level, got {type(data).__name__}"
        )
    return data
