"""Locate and load ``.atc.yaml``.

Search order: an explicit ``--config`` path, then ``$ATC_CONFIG``, then the
first ``.atc.yaml`` found walking up from the working directory.
"""

from __future__ import annotations

import logging
import os
import re
from pathlib import Path
from typing import Any

import yaml
from pydantic import ValidationError

from atc_fleet.config.models import AtcConfig

logger = logging.getLogger(__name__)

CONFIG_FILENAME = ".atc.yaml"
CONFIG_ENV_VAR = "ATC_CONFIG"

_ENV_REF = re.compile(r"\$\{([^}]+)\}")


def _expand(value: str) -> str:
    """Expand ``${VAR}`` and ``${VAR:-default}``; unset refs without a default stay as written."""

    def _lookup(match: re.Match[str]) -> str:
        name, sep, default = match.group(1).partition(":-")
        if sep:
            return os.environ.get(name.strip(), default)
        return os.environ.get(name.strip(), match.group(0))

    return _ENV_REF.sub(_lookup, value)


def _expand_all(node: Any) -> Any:
    """Expand env references in every string of a parsed YAML tree."""
    if isinstance(node, str):
        return _expand(node)
    if isinstance(node, dict):
        return {key: _expand_all(val) for key, val in node.items()}
    if isinstance(node, list):
        return [_expand_all(item) for item in node]
    return node


def find_config_file(start: Path | None = None) -> Path | None:
    """Return the nearest .atc.yaml at or above *start* (default cwd)."""
    here = (start or Path.cwd()).resolve()
    for directory in (here, *here.parents):
        candidate = directory / CONFIG_FILENAME
        if candidate.is_file():
            return candidate
    return None


def resolve_config_path(path: Path | None = None) -> Path | None:
    """Apply the search order; *path* wins, then ``$ATC_CONFIG``, then discovery."""
    if path is not None:
        return path
    from_env = os.environ.get(CONFIG_ENV_VAR)
    if from_env:
        return Path(from_env)
    return find_config_file()


def load_config(path: Path | None = None) -> AtcConfig:
    """Load, interpolate and validate the stack configuration.

    Raises FileNotFoundError when no file is found and ValueError when the
    file is not a mapping or fails validation. YAML syntax errors propagate
    as ``yaml.YAMLError``.
    """
    config_path = resolve_config_path(path)
    if config_path is None or not config_path.exists():
        where = config_path or f"{Path.cwd()} or its parents"
        raise FileNotFoundError(
            f"Could not find {CONFIG_FILENAME} ({where}). Pass --config or set {CONFIG_ENV_VAR}."
        )
    logger.debug("Loading configuration from %s", config_path)
    with config_path.open("r", encoding="utf-8") as fh:
        raw = yaml.safe_load(fh)
    if raw is None:
        raw = {}
    if not isinstance(raw, dict):
        raise ValueError(f"Invalid configuration in {config_path}: top level must be a mapping")
    try:
        return AtcConfig(**_expand_all(raw))
    except ValidationError as exc:
        raise ValueError(f"Invalid configuration in {config_path}: {exc}") from exc
