"""3-layer configuration system for attest.

Loads and merges configuration from:
1. Default settings (built-in)
2. Profile config (<profile>/.attest/config.yaml)
3. CLI parameters (override)
"""

from __future__ import annotations

import copy
from pathlib import Path
from typing import Optional

import yaml

DEFAULT_CONFIG: dict = {
    "target": {
        "uri": "local://",
    },
    "runner": {
        "command_timeout": 60,
    },
    "inputs": {
        "files": [],
        "values": {},
    },
    "waivers": {
        "file": None,
    },
    "output": {
        "reporters": ["cli"],
        "directory": "attest-results",
    },
    "ci": {
        "exit_codes": {"passed": 0, "failed": 100, "not_reviewed": 101},
    },
}


def deep_merge(base: dict, override: dict) -> dict:
    """Deep merge two dicts. Arrays are replaced, not merged."""
    result = {}
    for key in base:
        result[key] = base[key]
    for key, value in override.items():
        base_value = result.get(key)
        if isinstance(base_value, dict) and isinstance(value, dict):
            result[key] = deep_merge(base_value, value)
        else:
            result[key] = value
    return result


def load_profile_config(profile_path: Path) -> dict:
    """Load runner configuration from <profile>/.attest/config.yaml."""
    config_path = profile_path / ".attest" / "config.yaml"
    if not config_path.exists():
        return {}
    content = config_path.read_text(encoding="utf-8-sig")  # utf-8-sig strips BOM
    try:
        data = yaml.safe_load(content) or {}
    except yaml.YAMLError as e:
        raise ValueError(f"Invalid config file {config_path}: {e}") from e
    if not isinstance(data, dict):
        raise ValueError(f"Config file {config_path} must contain a mapping")
    return data


def _resolve_relative(config: dict, profile_path: Path) -> dict:
    """Resolve file paths in config relative to the profile directory."""
    files = config.get("inputs", {}).get("files") or []
    config["inputs"]["files"] = [str(profile_path / f) if not Path(f).is_absolute() else f for f in files]

    waiver_file = config.get("waivers", {}).get("file")
    if waiver_file and not Path(waiver_file).is_absolute():
        config["waivers"]["file"] = str(profile_path / waiver_file)
    return config


def get_effective_config(
    profile_path: Path,
    cli_overrides: Optional[dict] = None,
) -> dict:
    """Get the fully resolved configuration for a run."""
    config = copy.deepcopy(DEFAULT_CONFIG)

    profile_config = load_profile_config(profile_path)
    if profile_config:
        config = _resolve_relative(deep_merge(config, profile_config), profile_path)

    if cli_overrides:
        config = deep_merge(config, cli_overrides)

    config["_profile_path"] = str(profile_path)

    return config
