"""Compliance report data models."""

from __future__ import annotations

from datetime import datetime
from typing import Optional

from pydantic import BaseModel

from .result import ClassifiedControl
from .target import PlatformInfo


class RunMetadata(BaseModel):
    id: str
    timestamp: datetime
    target: str = "local://"
    platform: Optional[PlatformInfo] = None
    profile_name: str = ""
    profile_title: str = ""
    profile_version: str = ""
    duration_seconds: float = 0
    attest_version: str = ""


class OutcomeCounts(BaseModel):
    passed: int = 0
    failed: int = 0
    not_reviewed: int = 0
    not_applicable: int = 0
    profile_error: int = 0
    total: int = 0


class Report(BaseModel):
    version: str = "1.0.0"
    run: RunMetadata
    controls: list[ClassifiedControl] = []
    counts: OutcomeCounts = OutcomeCounts()
    by_severity: dict[str, int] = {}
    compliance_percent: float = 0.0
    exit_code: int = 0
