"""Message sanitization to prevent credential and secret leakage."""

from __future__ import annotations

import os
import re
from typing import Any, Iterable, Optional

REDACTED = "***"


def sanitize_error(message: str, secrets: Optional[Iterable[Any]] = None) -> str:
    """Sanitize messages to prevent credential, secret and path leakage."""
    if not message:
        return message

    sanitized = message
    # Redact credential patterns
    sanitized = re.sub(r"Bearer\s+\S+", "Bearer [REDACTED]", sanitized)
    sanitized = re.sub(r"Authorization:\s*\S+", "Authorization: [REDACTED]", sanitized)
    sanitized = re.sub(r"(?i)(password|passwd|token|secret)=\S+", r"\1=[REDACTED]", sanitized)
    sanitized = re.sub(r"://([^:/@\s]+):[^@\s]+@", r"://\1:[REDACTED]@", sanitized)

    # Longest first so a secret containing another is replaced whole
    for secret in sorted((str(s) for s in secrets or [] if s not in (None, "")), key=len, reverse=True):
        sanitized = sanitized.replace(secret, REDACTED)

    # Redact user home paths
    home = os.environ.get("USERPROFILE") or os.environ.get("HOME") or ""
    if home and home != "/":
        sanitized = sanitized.replace(home, "[USER_HOME]")

    return sanitized


def redact_secrets(value: Any, secrets: Optional[Iterable[Any]] = None) -> Any:
    """Replace secret values inside a JSON-ready value, leaving other text alone."""
    secrets = [s for s in secrets or [] if s not in (None, "")]
    if not secrets:
        return value
    if isinstance(value, list):
        return [redact_secrets(v, secrets) for v in value]
    if isinstance(value, dict):
        return {k: redact_secrets(v, secrets) for k, v in value.items()}
    if isinstance(value, str):
        for secret in sorted((str(s) for s in secrets), key=len, reverse=True):
            value = value.replace(secret, REDACTED)
        return value
    if value is not None and any(str(value) == str(s) for s in secrets):
        return REDACTED
    return value
