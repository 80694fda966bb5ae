"""JUnit XML formatter for CI/CD integration."""

from __future__ import annotations

from pathlib import Path
from xml.dom import minidom
from xml.etree import ElementTree as ET

from ..models.report import Report
from ..models.result import AssertionStatus, ClassifiedControl, Outcome


def _failure_text(control: ClassifiedControl) -> str:
    result = control.result
    text_parts = [f"Impact: {result.impact} ({result.severity})"]
    if result.source_location:
        text_parts.append(f"Source: {result.source_location}")
    for r in result.results:
        if r.status in (AssertionStatus.FAILED, AssertionStatus.ERROR):
            text_parts.append(f"\n{r.description}")
            if r.message:
                text_parts.append(f"  {r.message}")
    if result.exception:
        text_parts.append(f"\nException:\n{result.exception}")
    return "\n".join(text_parts)


def export_junit_results(report: Report, output_path: Path) -> dict:
    """Export a report as JUnit XML.

    One testsuite for the profile, one testcase per control:
    Failed -> <failure>, Profile Error -> <error>, Not Reviewed and
    Not Applicable -> <skipped>.

    Returns:
        Dict with: path, total_tests, failures, errors, skipped, passed.
    """
    profile_name = report.run.profile_name or "attest"

    testsuites = ET.Element("testsuites")
    testsuites.set("name", profile_name)
    testsuites.set("timestamp", report.run.timestamp.strftime("%Y-%m-%dT%H:%M:%S"))

    testsuite = ET.SubElement(testsuites, "testsuite")
    testsuite.set("name", profile_name)
    testsuite.set("hostname", report.run.target)
    testsuite.set("tests", str(len(report.controls)))

    failures = errors = skipped = 0

    for control in report.controls:
        result = control.result
        testcase = ET.SubElement(testsuite, "testcase")
        testcase.set("name", f"{result.id}: {result.title}" if result.title else result.id)
        testcase.set("classname", profile_name)
        testcase.set("time", str(round(result.run_time, 3)))

        if result.source_location:
            file_name, _, line = result.source_location.rpartition(":")
            testcase.set("file", file_name)
            testcase.set("line", line)

        if control.outcome == Outcome.FAILED:
            failures += 1
            failure = ET.SubElement(testcase, "failure")
            failure.set("message", f"[{result.severity.upper()}] {control.reason}")
            failure.set("type", result.severity)
            failure.text = _failure_text(control)
        elif control.outcome == Outcome.PROFILE_ERROR:
            errors += 1
            error = ET.SubElement(testcase, "error")
            error.set("message", control.reason)
            error.set("type", "profile_error")
            error.text = _failure_text(control)
        elif control.outcome in (Outcome.NOT_REVIEWED, Outcome.NOT_APPLICABLE):
            skipped += 1
            skip = ET.SubElement(testcase, "skipped")
            skip.set("message", f"{control.outcome.value}: {control.reason}")

    testsuite.set("failures", str(failures))
    testsuite.set("errors", str(errors))
    testsuite.set("skipped", str(skipped))

    total_tests = len(report.controls)
    testsuites.set("tests", str(total_tests))
    testsuites.set("failures", str(failures))
    testsuites.set("errors", str(errors))
    if report.run.duration_seconds > 0:
        testsuites.set("time", str(round(report.run.duration_seconds, 2)))

    output_path.parent.mkdir(parents=True, exist_ok=True)

    # Pretty-print XML
    rough = ET.tostring(testsuites, encoding="unicode")
    dom = minidom.parseString(rough)
    xml_str = dom.toprettyxml(indent="  ", encoding="UTF-8")
    output_path.write_bytes(xml_str)

    return {
        "path": str(output_path),
        "total_tests": total_tests,
        "failures": failures,
        "errors": errors,
        "skipped": skipped,
        "passed": total_tests - failures - errors - skipped,
    }
