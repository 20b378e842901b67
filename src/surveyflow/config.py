"""
Settings for the survey flow.

Resolution order (later wins):
    1. Built-in defaults
    2. YAML settings file (optional)
    3. Environment variables

Usage:
    from surveyflow.config import load_settings

    settings = load_settings("surveyflow.yaml")
    engine = TraversalEngine.with_hop_cap(graph, settings.hop_cap_factor)

Environment:
    SURVEYFLOW_HOP_CAP_FACTOR   integer, or "off"/"none"/"0" to disable
"""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass, fields
from pathlib import Path
from typing import Any, Dict, Mapping, Optional, Union

import yaml

from surveyflow.diagnostics import ConfigError

logger = logging.getLogger(__name__)

ENV_HOP_CAP_FACTOR = "SURVEYFLOW_HOP_CAP_FACTOR"

_DISABLED = {"off", "none", "0", ""}


@dataclass(frozen=True)
class FlowSettings:
    """
    Resolved settings.

    Properties:
        hop_cap_factor:
            Traversal hop cap as a multiple of the question count.
            None disables the cap (cycles are then followed indefinitely).
        layout_x, layout_y_start, layout_y_step:
            Default editor column layout for nodes without a saved position.
    """

    hop_cap_factor: Optional[int] = 4
    layout_x: int = 250
    layout_y_start: int = 100
    layout_y_step: int = 200


def _parse_hop_cap(value: Any) -> Optional[int]:
    if value is None:
        return None
    if isinstance(value, str):
        if value.strip().lower() in _DISABLED:
            return None
        try:
            value = int(value.strip())
        except ValueError:
            raise ConfigError(f"hop_cap_factor must be an integer or 'off', got {value!r}")
    if isinstance(value, bool) or not isinstance(value, int):
        raise ConfigError(f"hop_cap_factor must be an integer, got {value!r}")
    if value < 0:
        raise ConfigError(f"hop_cap_factor must not be negative, got {value}")
    return value or None


def settings_from_dict(data: Mapping[str, Any]) -> FlowSettings:
    """Build settings from a mapping, rejecting unknown keys."""
    known = {f.name for f in fields(FlowSettings)}
    unknown = sorted(set(data) - known)
    if unknown:
        raise ConfigError(f"Unknown settings: {', '.join(unknown)}")

    values: Dict[str, Any] = {}
    if "hop_cap_factor" in data:
        values["hop_cap_factor"] = _parse_hop_cap(data["hop_cap_factor"])
    for name in ("layout_x", "layout_y_start", "layout_y_step"):
        if name in data:
            value = data[name]
            if isinstance(value, bool) or not isinstance(value, int):
                raise ConfigError(f"{name} must be an integer, got {value!r}")
            values[name] = value
    return FlowSettings(**values)


def load_settings(
    path: Union[str, Path, None] = None,
    environ: Optional[Mapping[str, str]] = None,
) -> FlowSettings:
    """
    Load settings from an optional YAML file plus environment overrides.

    Args:
        path: YAML file (missing file is an error when a path is given)
        environ: Environment mapping (defaults to os.environ)

    Raises:
        ConfigError: On unreadable files or invalid values
    """
    data: Dict[str, Any] = {}
    if path is not None:
        try:
            with open(path, "r", encoding="utf-8") as f:
                loaded = yaml.safe_load(f)
        except FileNotFoundError:
            raise ConfigError(f"Settings file not found: {path}")
        except yaml.YAMLError as e:
            raise ConfigError(f"Settings file {path} is not valid YAML: {e}")
        if loaded is not None and not isinstance(loaded, dict):
            raise ConfigError(f"Settings file {path} must contain a mapping")
        data.update(loaded or {})

    env = os.environ if environ is None else environ
    if ENV_HOP_CAP_FACTOR in env:
        logger.debug("Hop cap factor overridden from %s", ENV_HOP_CAP_FACTOR)
        data["hop_cap_factor"] = env[ENV_HOP_CAP_FACTOR]

    return settings_from_dict(data)


__all__ = ["FlowSettings", "load_settings", "settings_from_dict", "ENV_HOP_CAP_FACTOR"]
