"""Tests for formatters/junit.py."""

from __future__ import annotations

from pathlib import Path
from xml.etree import ElementTree as ET

from attest.formatters.junit import export_junit_results


def _testcase(root: ET.Element, control_id: str) -> ET.Element:
    for tc in root.iter("testcase"):
        if tc.get("name", "").startswith(f"{control_id}:"):
            return tc
    raise AssertionError(f"no testcase for {control_id}")


class TestExportJunitResults:
    def test_creates_xml_file(self, tmp_path: Path, sample_report):
        out = tmp_path / "results.xml"
        result = export_junit_results(sample_report, out)
        assert out.exists()
        assert result == {
            "path": str(out),
            "total_tests": 5,
            "failures": 1,
            "errors": 1,
            "skipped": 2,
            "passed": 1,
        }

    def test_failed_is_failure(self, tmp_path: Path, sample_report):
        out = tmp_path / "results.xml"
        export_junit_results(sample_report, out)
        root = ET.parse(out).getroot()
        failures = root.findall(".//failure")
        assert len(failures) == 1
        assert failures[0].get("type") == "high"
        assert failures[0].get("message") == "[HIGH] 1 of 1 assertions failed"
        assert "expected 'yes' to cmp 'no'" in failures[0].text

    def test_profile_error_is_error(self, tmp_path: Path, sample_report):
        out = tmp_path / "results.xml"
        export_junit_results(sample_report, out)
        root = ET.parse(out).getroot()
        error = _testcase(root, "broken-01").find("error")
        assert error is not None
        assert error.get("type") == "profile_error"
        assert "ZeroDivisionError" in error.text

    def test_not_reviewed_and_not_applicable_are_skipped(self, tmp_path: Path, sample_report):
        out = tmp_path / "results.xml"
        export_junit_results(sample_report, out)
        root = ET.parse(out).getroot()
        assert _testcase(root, "manual-01").find("skipped").get("message") == "Not Reviewed: Manual review required"
        assert _testcase(root, "na-01").find("skipped").get("message").startswith("Not Applicable")

    def test_passed_has_no_children(self, tmp_path: Path, sample_report):
        out = tmp_path / "results.xml"
        export_junit_results(sample_report, out)
        root = ET.parse(out).getroot()
        assert len(list(_testcase(root, "ssh-01"))) == 0

    def test_testcase_attributes(self, tmp_path: Path, sample_report):
        out = tmp_path / "results.xml"
        export_junit_results(sample_report, out)
        tc = _testcase(ET.parse(out).getroot(), "ssh-01")
        assert tc.get("name") == "ssh-01: ssh-01 title"
        assert tc.get("classname") == "sample"
        assert tc.get("file") == "/profiles/sample/controls/baseline.py"
        assert tc.get("line") == "6"
        assert tc.get("time") == "0.25"

    def test_testsuites_attributes(self, tmp_path: Path, sample_report):
        out = tmp_path / "results.xml"
        export_junit_results(sample_report, out)
        root = ET.parse(out).getroot()
        assert root.tag == "testsuites"
        assert root.get("name") == "sample"
        assert root.get("tests") == "5"
        assert root.get("failures") == "1"
        assert root.get("errors") == "1"
        assert root.get("time") == "1.5"
        assert root.get("timestamp") == "2026-01-02T03:04:05"
        suite = root.find("testsuite")
        assert suite.get("hostname") == "fixture://sample"
        assert suite.get("skipped") == "2"

    def test_creates_parent_dirs(self, tmp_path: Path, sample_report):
        out = tmp_path / "nested" / "dir" / "results.xml"
        export_junit_results(sample_report, out)
        assert out.exists()

    def test_empty_report(self, tmp_path: Path, sample_report):
        empty = sample_report.model_copy(update={"controls": []})
        result = export_junit_results(empty, tmp_path / "results.xml")
        assert result["total_tests"] == 0
        assert result["passed"] == 0
