"""Assertion and control result data models."""

from __future__ import annotations

from datetime import datetime
from enum import Enum
from typing import Any, Optional

from pydantic import BaseModel

from .profile import Waiver


class AssertionStatus(str, Enum):
    PASSED = "passed"
    FAILED = "failed"
    SKIPPED = "skipped"
    ERROR = "error"


class Outcome(str, Enum):
    PASSED = "Passed"
    FAILED = "Failed"
    NOT_REVIEWED = "Not Reviewed"
    NOT_APPLICABLE = "Not Applicable"
    PROFILE_ERROR = "Profile Error"


class AssertionResult(BaseModel):
    description: str
    status: AssertionStatus
    expected: Any = None
    actual: Any = None
    message: Optional[str] = None
    skip_message: Optional[str] = None
    exception: Optional[str] = None
    sensitive: bool = False
    run_time: float = 0


class ControlResult(BaseModel):
    id: str
    title: str = ""
    desc: str = ""
    impact: float = 0.5
    severity: str = "medium"
    tags: dict[str, Any] = {}
    refs: list[str] = []
    source_location: Optional[str] = None
    results: list[AssertionResult] = []
    skip_message: Optional[str] = None
    exception: Optional[str] = None
    waiver: Optional[Waiver] = None
    start_time: Optional[datetime] = None
    run_time: float = 0

    def statuses(self) -> list[AssertionStatus]:
        return [r.status for r in self.results]


class ClassifiedControl(BaseModel):
    result: ControlResult
    outcome: Outcome
    reason: str = ""
