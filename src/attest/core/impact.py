"""Impact resolution.

Impact is the severity weight of a control in [0.0, 1.0]. Zero means the
control does not count towards compliance (Not Applicable).
"""

from __future__ import annotations

from typing import Any, Optional

SEVERITY_IMPACTS: dict[str, float] = {
    "none": 0.0,
    "low": 0.3,
    "medium": 0.5,
    "high": 0.7,
    "critical": 0.9,
}


def normalize_impact(value: Any) -> float:
    """Convert a number or severity name to an impact in [0.0, 1.0]."""
    if isinstance(value, str):
        key = value.strip().lower()
        if key in SEVERITY_IMPACTS:
            return SEVERITY_IMPACTS[key]
        try:
            value = float(key)
        except ValueError:
            raise ValueError(f"Unknown impact: {value!r}") from None

    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise ValueError(f"Impact must be a number or severity name, got {value!r}")

    impact = float(value)
    if not 0.0 <= impact <= 1.0:
        raise ValueError(f"Impact must be between 0.0 and 1.0, got {impact}")
    return round(impact, 2)


def severity_for(impact: float) -> str:
    """Map an impact to its severity name."""
    if impact == 0:
        return "none"
    if impact < 0.4:
        return "low"
    if impact < 0.7:
        return "medium"
    if impact < 0.9:
        return "high"
    return "critical"


def resolve_impact(declared: Any, target: Any = None, override: Optional[Any] = None) -> float:
    """Compute the effective impact of a control.

    An impact set inside the control body wins over the declared one. A
    callable declared impact is evaluated against the target, which lets a
    control become Not Applicable depending on what the target has installed.
    """
    if override is not None:
        return normalize_impact(override)
    if callable(declared):
        return normalize_impact(declared(target))
    return normalize_impact(declared)
