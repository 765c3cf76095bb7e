"""TOML-backed persistence for the ``[context]`` settings section."""

from __future__ import annotations

import logging
from typing import Any, Dict

import toml

from . import config

logger = logging.getLogger(__name__)

SECTION = "context"

# Keys accepted by ``astctx set-config``; list values are comma separated.
LIST_KEYS = {"dependency_keys", "file_suffixes", "file_fields", "kind_fields"}
BOOL_KEYS = {"save_snapshots", "reverse_scan"}
INT_KEYS = {"min_substring_length"}
STR_KEYS = {"ast_json_path", "output_dir", "ambiguity_policy"}
KNOWN_KEYS = LIST_KEYS | BOOL_KEYS | INT_KEYS | STR_KEYS


def load_full_config() -> Dict[str, Any]:
    """Load the entire TOML config (all sections)."""
    if not config.CONFIG_FILE.exists():
        return {}
    try:
        with open(config.CONFIG_FILE, "r") as f:
            return toml.load(f)
    except (OSError, toml.TomlDecodeError) as exc:
        logger.warning("Ignoring unreadable config %s: %s", config.CONFIG_FILE, exc)
        return {}


def load_context_config() -> Dict[str, Any]:
    """Return the ``[context]`` section, or an empty dict."""
    section = load_full_config().get(SECTION, {})
    return section if isinstance(section, dict) else {}


def _save_full_config(data: Dict[str, Any]) -> None:
    config.ensure_base_dirs()
    with open(config.CONFIG_FILE, "w") as f:
        toml.dump(data, f)


def coerce_value(key: str, raw: str) -> Any:
    """Convert a CLI string into the type stored for *key*.

    Raises:
        ValueError: unknown key or a value that does not parse.
    """
    if key not in KNOWN_KEYS:
        raise ValueError(f"Unknown setting '{key}'. Valid keys: {', '.join(sorted(KNOWN_KEYS))}")
    if key in LIST_KEYS:
        return [part.strip() for part in raw.split(",") if part.strip()]
    if key in BOOL_KEYS:
        lowered = raw.strip().lower()
        if lowered in {"1", "true", "yes", "on"}:
            return True
        if lowered in {"0", "false", "no", "off"}:
            return False
        raise ValueError(f"Setting '{key}' expects true/false, got '{raw}'")
    if key in INT_KEYS:
        return int(raw)
    return raw


def save_setting(key: str, raw: str) -> Any:
    """Persist one setting under ``[context]`` and return the stored value.

    Other sections of the file are preserved.
    """
    value = coerce_value(key, raw)
    data = load_full_config()
    section = data.setdefault(SECTION, {})
    section[key] = value
    # pydantic's ValidationError is a ValueError
    config.ContextSettings(**section)
    _save_full_config(data)
    return value


def reset_context_config() -> bool:
    """Drop the ``[context]`` section. Returns ``True`` if one existed."""
    data = load_full_config()
    if SECTION not in data:
        return False
    del data[SECTION]
    _save_full_config(data)
    return True
