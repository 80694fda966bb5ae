"""Profile input resolution.

Precedence, highest first: ``--input name=value`` on the command line, input
files, ``inputs.values`` in config, the default in ``profile.yaml``.
"""

from __future__ import annotations

import re
from pathlib import Path
from typing import Any, Optional

import yaml

from ..models.profile import InputDef, InputType


class InputError(ValueError):
    """Raised when an input is missing, malformed or of the wrong type."""


def parse_input_assignments(assignments: Optional[list[str]]) -> dict[str, Any]:
    """Parse ``name=value`` pairs; values are read as YAML scalars."""
    values: dict[str, Any] = {}
    for item in assignments or []:
        name, sep, raw = item.partition("=")
        name = name.strip()
        if not sep or not name:
            raise InputError(f"Invalid input '{item}', expected name=value")
        try:
            values[name] = yaml.safe_load(raw) if raw.strip() else ""
        except yaml.YAMLError:
            values[name] = raw
    return values


def load_input_file(path: Path) -> dict[str, Any]:
    """Load a YAML mapping of input name to value."""
    if not path.is_file():
        raise InputError(f"Input file not found: {path}")
    try:
        data = yaml.safe_load(path.read_text(encoding="utf-8-sig")) or {}
    except yaml.YAMLError as e:
        raise InputError(f"Input file {path} is not valid YAML: {e}") from e
    if not isinstance(data, dict):
        raise InputError(f"Input file {path} must contain a mapping")
    return data


def check_input_type(definition: InputDef, value: Any) -> None:
    """Raise InputError when ``value`` does not fit the declared type."""
    kind = definition.type
    ok = True
    if kind == InputType.STRING:
        ok = isinstance(value, str)
    elif kind == InputType.NUMERIC:
        ok = isinstance(value, (int, float)) and not isinstance(value, bool)
    elif kind == InputType.BOOLEAN:
        ok = isinstance(value, bool)
    elif kind == InputType.ARRAY:
        ok = isinstance(value, list)
    elif kind == InputType.HASH:
        ok = isinstance(value, dict)
    elif kind == InputType.REGEXP:
        try:
            re.compile(str(value))
        except re.error:
            ok = False
    if not ok:
        raise InputError(
            f"Input '{definition.name}' must be of type {kind.value}, got {type(value).__name__}"
        )


def resolve_inputs(
    definitions: list[InputDef],
    config_values: Optional[dict[str, Any]] = None,
    input_files: Optional[list[Path]] = None,
    cli_values: Optional[dict[str, Any]] = None,
) -> tuple[dict[str, Any], list[Any]]:
    """Resolve input values. Returns ``(values, secrets)``.

    ``secrets`` holds the values of sensitive inputs so they can be redacted
    from messages and reports.
    """
    external: dict[str, Any] = dict(config_values or {})
    for path in input_files or []:
        external.update(load_input_file(Path(path)))
    external.update(cli_values or {})

    values: dict[str, Any] = {}
    secrets: list[Any] = []
    declared = {d.name for d in definitions}

    for definition in definitions:
        if definition.name in external:
            value = external[definition.name]
        elif definition.value is not None:
            value = definition.value
        elif definition.required:
            raise InputError(f"Input '{definition.name}' is required but has no value")
        else:
            value = None

        if value is not None:
            check_input_type(definition, value)
        values[definition.name] = value
        if definition.sensitive and value is not None:
            secrets.append(value)

    # Undeclared external inputs are accepted as type Any
    for name, value in external.items():
        if name not in declared:
            values[name] = value

    return values, secrets
