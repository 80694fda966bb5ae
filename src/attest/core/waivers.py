"""Waiver file handling.

A waiver file maps control ids to an exemption::

    sshd-05:
      run: false
      justification: Legacy bastion host, tracked in RISK-112
      expiration_date: 2027-01-31
"""

from __future__ import annotations

from datetime import date
from pathlib import Path
from typing import Optional

import yaml

from ..models.profile import Waiver


def load_waivers(path: Optional[Path]) -> dict[str, Waiver]:
    """Load waivers keyed by control id. Missing path means no waivers."""
    if path is None:
        return {}
    path = Path(path)
    if not path.is_file():
        raise ValueError(f"Waiver file not found: {path}")

    try:
        data = yaml.safe_load(path.read_text(encoding="utf-8-sig")) or {}
    except yaml.YAMLError as e:
        raise ValueError(f"Waiver file {path} is not valid YAML: {e}") from e
    if not isinstance(data, dict):
        raise ValueError(f"Waiver file {path} must contain a mapping of control ids")

    waivers: dict[str, Waiver] = {}
    for control_id, entry in data.items():
        entry = entry or {}
        if not isinstance(entry, dict):
            raise ValueError(f"Waiver for '{control_id}' in {path} must be a mapping")
        # The key is the control id
        entry = {str(k): v for k, v in entry.items() if k != "control_id"}
        waivers[str(control_id)] = Waiver(control_id=str(control_id), **entry)
    return waivers


def active_waiver(waivers: dict[str, Waiver], control_id: str, today: Optional[date] = None) -> Optional[Waiver]:
    """Return the waiver for a control unless it has expired."""
    waiver = waivers.get(control_id)
    if waiver is None:
        return None
    today = today or date.today()
    if waiver.expiration_date is not None and waiver.expiration_date < today:
        return None
    return waiver
