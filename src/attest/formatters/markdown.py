"""Markdown compliance report generation."""

from __future__ import annotations

from ..models.report import Report
from ..models.result import AssertionStatus, Outcome

OUTCOME_ORDER = [
    Outcome.PROFILE_ERROR,
    Outcome.FAILED,
    Outcome.NOT_REVIEWED,
    Outcome.NOT_APPLICABLE,
    Outcome.PASSED,
]

SEVERITY_RANK = {"critical": 0, "high": 1, "medium": 2, "low": 3, "none": 4}


def generate_markdown_report(report: Report) -> str:
    """Generate the compliance report as markdown."""
    run = report.run
    counts = report.counts
    timestamp = run.timestamp.strftime("%Y-%m-%d %H:%M:%S")

    lines: list[str] = []
    lines.append("# Compliance Report")
    lines.append("")
    lines.append(f"**Profile:** {run.profile_title or run.profile_name} ({run.profile_version})")
    lines.append(f"**Target:** {run.target}")
    if run.platform:
        lines.append(f"**Platform:** {run.platform.name} {run.platform.release} ({run.platform.family})")
    lines.append(f"**Date:** {timestamp}")
    lines.append(f"**Compliance:** {report.compliance_percent}%")
    lines.append(f"**Duration:** {round(run.duration_seconds, 1)}s")
    lines.append("")

    # Summary table
    lines.append("## Summary")
    lines.append("")
    lines.append("| Outcome | Count |")
    lines.append("|---------|-------|")
    lines.append(f"| Passed | {counts.passed} |")
    lines.append(f"| Failed | {counts.failed} |")
    lines.append(f"| Not Reviewed | {counts.not_reviewed} |")
    lines.append(f"| Not Applicable | {counts.not_applicable} |")
    lines.append(f"| Profile Error | {counts.profile_error} |")
    lines.append(f"| **Total** | **{counts.total}** |")
    lines.append("")

    if any(report.by_severity.values()):
        lines.append("## Failures by Severity")
        lines.append("")
        lines.append("| Severity | Count |")
        lines.append("|----------|-------|")
        for severity, count in report.by_severity.items():
            lines.append(f"| {severity} | {count} |")
        lines.append("")

    # Everything that needs attention, worst first
    attention = [c for c in report.controls if c.outcome != Outcome.PASSED]
    attention.sort(key=lambda c: (
        OUTCOME_ORDER.index(c.outcome),
        SEVERITY_RANK.get(c.result.severity, 5),
    ))

    if attention:
        lines.append("## Controls Detail")
        lines.append("")
        for c in attention:
            result = c.result
            title = f": {result.title}" if result.title else ""
            lines.append(f"### {result.id}{title} [{c.outcome.value}]")
            lines.append(f"**Impact:** {result.impact} ({result.severity})")
            if result.source_location:
                lines.append(f"**Source:** `{result.source_location}`")
            if result.waiver:
                lines.append(f"**Waiver:** {result.waiver.justification or 'no justification given'}")
            lines.append(f"\n{c.reason}")
            for r in result.results:
                if r.status in (AssertionStatus.FAILED, AssertionStatus.ERROR):
                    lines.append(f"- {r.status.value.upper()}: {r.description}")
                    if r.message:
                        lines.append(f"  - {r.message}")
            lines.append("")

    lines.append("---")
    lines.append(f"*Generated by attest v{run.attest_version} at {timestamp}*")

    return "\n".join(lines)
