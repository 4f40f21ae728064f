"""YAML configuration file support for the CLI.

A config file may carry two sections::

    env:
      GOPROXY: https://proxy.example.com,https://proxy.golang.org
      GOPRIVATE: example.com/private/*
    defaults:
      pre: false
      cached: true

``env`` values override ``go env`` and the process environment. ``defaults``
apply only when the matching CLI flag was not given.
"""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass, field
from typing import Any, Dict, Optional

import yaml

from common.errors import ConfigurationError

logger = logging.getLogger(__name__)

_DEFAULT_KEYS = ("pre", "cached")


@dataclass
class CliConfig:
    """Settings read from a config file."""
    env: Dict[str, str] = field(default_factory=dict)
    defaults: Dict[str, bool] = field(default_factory=dict)

    def flag(self, name: str, cli_value: Optional[bool], fallback: bool) -> bool:
        """Return the effective value of a boolean flag.

        CLI value first, then the config file default, then ``fallback``.
        """
        if cli_value is not None:
            return cli_value
        return bool(self.defaults.get(name, fallback))


def _as_bool(key: str, value: Any) -> bool:
    if isinstance(value, bool):
        return value
    if isinstance(value, str) and value.strip().lower() in ("true", "yes", "1", "on"):
        return True
    if isinstance(value, str) and value.strip().lower() in ("false", "no", "0", "off"):
        return False
    raise ConfigurationError(f"defaults.{key} must be a boolean, got {value!r}")


def load_config(path: Optional[str]) -> CliConfig:
    """Load a YAML config file.

    Args:
        path: File path; None yields an empty config.

    Raises:
        ConfigurationError: The file is missing, unreadable or malformed.
    """
    if not path:
        return CliConfig()
    if not os.path.isfile(path):
        raise ConfigurationError(f"config file not found: {path}")
    try:
        with open(path, "r", encoding="utf-8") as fh:
            data = yaml.safe_load(fh) or {}
    except (OSError, yaml.YAMLError) as exc:
        raise ConfigurationError(f"failed to load config {path}: {exc}") from exc
    if not isinstance(data, dict):
        raise ConfigurationError(f"config {path} must be a mapping")

    env = data.get("env") or {}
    defaults = data.get("defaults") or {}
    if not isinstance(env, dict) or not isinstance(defaults, dict):
        raise ConfigurationError(f"config {path}: 'env' and 'defaults' must be mappings")
    unknown = sorted(set(defaults) - set(_DEFAULT_KEYS))
    if unknown:
        logger.warning("Ignoring unknown defaults in %s: %s", path, ", ".join(unknown))

    cfg = CliConfig(
        env={str(k): "" if v is None else str(v) for k, v in env.items()},
        defaults={k: _as_bool(k, defaults[k]) for k in _DEFAULT_KEYS if k in defaults},
    )
    logger.debug("Loaded config from %s", path)
    return cfg
