"""Report aggregation: counts, compliance score and run status."""

from __future__ import annotations

from typing import Optional

from ..models.report import OutcomeCounts, Report, RunMetadata
from ..models.result import ClassifiedControl, Outcome

DEFAULT_EXIT_CODES: dict[str, int] = {"passed": 0, "failed": 100, "not_reviewed": 101}

SEVERITY_ORDER = ["critical", "high", "medium", "low"]

_COUNT_FIELDS = {
    Outcome.PASSED: "passed",
    Outcome.FAILED: "failed",
    Outcome.NOT_REVIEWED: "not_reviewed",
    Outcome.NOT_APPLICABLE: "not_applicable",
    Outcome.PROFILE_ERROR: "profile_error",
}


def count_outcomes(controls: list[ClassifiedControl]) -> OutcomeCounts:
    counts = OutcomeCounts()
    for c in controls:
        field = _COUNT_FIELDS[c.outcome]
        setattr(counts, field, getattr(counts, field) + 1)
    counts.total = len(controls)
    return counts


def compliance_percent(counts: OutcomeCounts) -> float:
    """Passed share of every control that counts towards compliance.

    Not Applicable controls are excluded; Not Reviewed and Profile Error
    count against the score.
    """
    denominator = counts.passed + counts.failed + counts.not_reviewed + counts.profile_error
    if denominator == 0:
        return 0.0
    return round(counts.passed / denominator * 100, 1)


def calculate_status(counts: OutcomeCounts) -> str:
    """Calculate the run status from outcome counts.

    - failed: any Failed or Profile Error
    - not_reviewed: no failures but something was skipped
    - passed: everything else
    """
    if counts.failed > 0 or counts.profile_error > 0:
        return "failed"
    if counts.not_reviewed > 0:
        return "not_reviewed"
    return "passed"


def get_exit_code(status: str, exit_codes: Optional[dict[str, int]] = None) -> int:
    """Map run status to exit code."""
    codes = {**DEFAULT_EXIT_CODES, **(exit_codes or {})}
    return int(codes.get(status, 0))


def failed_by_severity(controls: list[ClassifiedControl]) -> dict[str, int]:
    totals = {severity: 0 for severity in SEVERITY_ORDER}
    for c in controls:
        if c.outcome in (Outcome.FAILED, Outcome.PROFILE_ERROR) and c.result.severity in totals:
            totals[c.result.severity] += 1
    return totals


def build_report(
    controls: list[ClassifiedControl],
    run: RunMetadata,
    exit_codes: Optional[dict[str, int]] = None,
) -> Report:
    """Collect classified controls, in profile order, into a report."""
    counts = count_outcomes(controls)
    return Report(
        run=run,
        controls=list(controls),
        counts=counts,
        by_severity=failed_by_severity(controls),
        compliance_percent=compliance_percent(counts),
        exit_code=get_exit_code(calculate_status(counts), exit_codes),
    )
