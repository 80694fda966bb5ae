"""JSON report export."""

from __future__ import annotations

import json
from pathlib import Path

from ..models.report import Report


def report_to_dict(report: Report) -> dict:
    """Serialize a report; outcomes are stored as their display names."""
    return report.model_dump(mode="json")


def export_json_report(report: Report, output_path: Path) -> Path:
    """Write the report to a JSON file (UTF-8, no BOM)."""
    output_path.parent.mkdir(parents=True, exist_ok=True)
    output_path.write_text(
        json.dumps(report_to_dict(report), indent=2, ensure_ascii=False),
        encoding="utf-8",
    )
    return output_path


def load_json_report(path: Path) -> Report:
    """Load a report previously written by ``export_json_report``."""
    return Report.model_validate_json(path.read_text(encoding="utf-8"))
