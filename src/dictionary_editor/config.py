"""Editor configuration loaded from YAML and ``DICTIONARY_EDITOR_*`` variables."""

from __future__ import annotations

import os
from collections.abc import Mapping
from dataclasses import dataclass, fields, replace
from pathlib import Path
from typing import Any

import yaml

from dictionary_editor.exceptions import ConfigError

ENV_PREFIX = "DICTIONARY_EDITOR_"

_TRUE = frozenset({"1", "true", "yes", "on"})
_FALSE = frozenset({"0", "false", "no", "off"})


@dataclass(frozen=True)
class EditorConfig:
    """Settings for a :class:`~dictionary_editor.editor.DictionaryEditor`."""

    db_path: str = ":memory:"
    # Base URL used for the deep link in merge notifications
    dictionary_app_url: str = "http://localhost:3000"
    notification_attempts: int = 3
    notification_wait_multiplier: float = 0.5
    notification_max_wait: float = 10.0
    notifications_in_background: bool = True
    log_level: str = "WARNING"


def load_config(
    source: str | Path | Mapping[str, Any] | None = None,
    *,
    environ: Mapping[str, str] | None = None,
) -> EditorConfig:
    """Build an :class:`EditorConfig`.

    Args:
        source: Path to a YAML file, a YAML string, a mapping, or None
            for defaults only
        environ: Environment to read overrides from (defaults to os.environ)

    Raises:
        ConfigError: If the YAML is invalid or names unknown settings
    """
    if source is None:
        data: Mapping[str, Any] = {}
    elif isinstance(source, Mapping):
        data = source
    elif isinstance(source, Path) or _is_file_path(source):
        path = Path(source)
        if not path.exists():
            raise ConfigError(f"Config file not found: {path}")
        with open(path, "r", encoding="utf-8") as f:
            data = _parse_yaml(f)
    else:
        data = _parse_yaml(source)

    config = _apply(EditorConfig(), data, origin="config")

    env = os.environ if environ is None else environ
    overrides = {
        f.name: env[ENV_PREFIX + f.name.upper()]
        for f in fields(EditorConfig)
        if ENV_PREFIX + f.name.upper() in env
    }
    return _apply(config, overrides, origin="environment")


def _is_file_path(s: str) -> bool:
    """Check if a string looks like a file path."""
    if "\n" in s:
        return False
    if "/" in s or "\\" in s:
        return True
    return s.endswith((".yaml", ".yml"))


def _parse_yaml(stream: Any) -> Mapping[str, Any]:
    try:
        data = yaml.safe_load(stream)
    except yaml.YAMLError as e:
        mark = getattr(e, "problem_mark", None)
        where = f" (line {mark.line + 1})" if mark else ""
        raise ConfigError(f"Invalid YAML{where}: {e}") from e
    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ConfigError("YAML root must be a mapping (dictionary)")
    return data


def _apply(config: EditorConfig, data: Mapping[str, Any], origin: str) -> EditorConfig:
    types = {f.name: type(getattr(config, f.name)) for f in fields(config)}
    unknown = sorted(set(data) - set(types))
    if unknown:
        raise ConfigError(f"Unknown {origin} setting(s): {', '.join(unknown)}")
    changes = {
        name: _coerce(name, value, types[name]) for name, value in data.items()
    }
    return replace(config, **changes)


def _coerce(name: str, value: Any, target: type) -> Any:
    if target is bool:
        if isinstance(value, bool):
            return value
        text = str(value).strip().lower()
        if text in _TRUE:
            return True
        if text in _FALSE:
            return False
        raise ConfigError(f"Setting {name!r} must be a boolean, got {value!r}")
    try:
        return target(value)
    except (TypeError, ValueError) as e:
        raise ConfigError(
            f"Setting {name!r} must be {target.__name__}, got {value!r}"
        ) from e
