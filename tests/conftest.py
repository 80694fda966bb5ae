"""Shared fixtures for attest tests."""

from __future__ import annotations

import textwrap
from datetime import datetime
from pathlib import Path
from typing import Callable

import pytest
import yaml

from attest.core.aggregator import build_report
from attest.core.dsl import ControlDefinition
from attest.models.report import Report, RunMetadata
from attest.models.result import AssertionResult, AssertionStatus, ClassifiedControl, ControlResult, Outcome
from attest.models.target import PlatformInfo
from attest.targets.fixture import FixtureTarget

SAMPLE_CONTROLS = '''
from attest import control
from attest.core.matchers import cmp, include, match


@control("ssh-01", title="sshd_config is private", impact="high", tags={"nist": ["AC-17"], "ssh": None})
def sshd_config_mode(ctx):
    cfg = ctx.file("/etc/ssh/sshd_config")
    ctx.expect(cfg.mode, "mode").to(cmp("0600"))
    ctx.expect(cfg.owner, "owner").to(cmp("root"))


@control("ssh-02", title="Root login disabled", impact=0.7, tags=["ssh"])
def root_login(ctx):
    cfg = ctx.file("/etc/ssh/sshd_config")
    ctx.expect(cfg.content, "content").to(match(r"(?m)^PermitRootLogin\\s+no"))


@control("pkg-01", title="telnet is not installed", impact=0.5)
def no_telnet(ctx):
    ctx.expect(ctx.package("telnetd").installed, "telnetd installed").to(cmp(False))
    ctx.expect(ctx.package("openssh-server").version, "openssh version").to(include("8.9"))


@control("manual-01", title="Access reviews documented", impact="low")
def access_reviews(ctx):
    ctx.skip("Manual review required")


@control("na-01", title="Only for web servers", impact=0.5)
def web_only(ctx):
    if not ctx.package("nginx").installed:
        ctx.set_impact(0)
        ctx.skip("nginx is not installed")
        return
    ctx.expect(True).to(cmp(True))


@control("broken-01", title="Forgets to assert", impact=0.5)
def forgets(ctx):
    ctx.file("/etc/ssh/sshd_config").mode
'''

SAMPLE_FACTS = {
    "platform": {"name": "ubuntu", "family": "debian", "release": "22.04", "arch": "x86_64"},
    "files": {
        "/etc/ssh/sshd_config": {
            "mode": "0600",
            "owner": "root",
            "group": "root",
            "content": "Port 22\nPermitRootLogin no\n",
        },
        "/etc/passwd": {"mode": "0644", "owner": "root", "group": "root", "content": "root:x:0:0::/root:/bin/bash\n"},
    },
    "packages": {"openssh-server": "1:8.9p1-3ubuntu0.6"},
    "processes": [
        {"pid": 1, "user": "root", "command": "/sbin/init"},
        {"pid": 812, "user": "root", "command": "sshd: /usr/sbin/sshd -D"},
    ],
    "commands": {
        "sysctl -n net.ipv4.ip_forward": {"stdout": "0\n"},
        "false": {"exit_status": 1},
    },
}


@pytest.fixture
def fixture_facts() -> dict:
    return {k: (dict(v) if isinstance(v, dict) else list(v)) for k, v in SAMPLE_FACTS.items()}


@pytest.fixture
def fixture_target(fixture_facts: dict) -> FixtureTarget:
    return FixtureTarget(fixture_facts, uri="fixture://sample")


@pytest.fixture
def make_definition() -> Callable[..., ControlDefinition]:
    """Build a ControlDefinition around a plain function."""

    def _make(func, id: str = "test-01", impact=0.5, **kwargs) -> ControlDefinition:
        return ControlDefinition(id=id, func=func, impact=impact, **kwargs)

    return _make


@pytest.fixture
def make_profile(tmp_path: Path) -> Callable[..., Path]:
    """Write a profile directory and return its path."""

    def _make(
        controls: dict[str, str] | None = None,
        metadata: str = "name: sample\ntitle: Sample Profile\nversion: 1.0.0\n",
        name: str = "sample-profile",
    ) -> Path:
        profile = tmp_path / name
        (profile / "controls").mkdir(parents=True)
        (profile / "profile.yaml").write_text(metadata, encoding="utf-8")
        for filename, source in (controls or {}).items():
            path = profile / "controls" / filename
            path.parent.mkdir(parents=True, exist_ok=True)
            path.write_text(textwrap.dedent(source), encoding="utf-8")
        return profile

    return _make


@pytest.fixture
def sample_profile(make_profile) -> Path:
    return make_profile({"baseline.py": SAMPLE_CONTROLS})


@pytest.fixture
def fixture_file(tmp_path: Path, fixture_facts: dict) -> Path:
    path = tmp_path / "target.yaml"
    path.write_text(yaml.safe_dump(fixture_facts), encoding="utf-8")
    return path


@pytest.fixture
def sample_report() -> Report:
    """A report with one control of every outcome."""

    def _control(id, outcome, reason, severity="medium", impact=0.5, results=(), **kwargs):
        return ClassifiedControl(
            result=ControlResult(
                id=id,
                title=f"{id} title",
                impact=impact,
                severity=severity,
                results=list(results),
                source_location=f"/profiles/sample/controls/baseline.py:{len(id)}",
                run_time=0.25,
                **kwargs,
            ),
            outcome=outcome,
            reason=reason,
        )

    controls = [
        _control("ssh-01", Outcome.PASSED, "All assertions passed", results=[
            AssertionResult(description="mode is expected to cmp '0600'", status=AssertionStatus.PASSED),
        ]),
        _control("ssh-02", Outcome.FAILED, "1 of 1 assertions failed", severity="high", impact=0.7, results=[
            AssertionResult(
                description="PermitRootLogin is expected to cmp 'no'",
                status=AssertionStatus.FAILED,
                expected="no",
                actual="yes",
                message="expected 'yes' to cmp 'no'",
            ),
        ]),
        _control("manual-01", Outcome.NOT_REVIEWED, "Manual review required", severity="low", impact=0.3,
                 skip_message="Manual review required"),
        _control("na-01", Outcome.NOT_APPLICABLE, "nginx is not installed", severity="none", impact=0.0),
        _control("broken-01", Outcome.PROFILE_ERROR, "ZeroDivisionError: division by zero", severity="critical",
                 impact=0.9, exception="ZeroDivisionError: division by zero"),
    ]
    run = RunMetadata(
        id="20260102T030405",
        timestamp=datetime(2026, 1, 2, 3, 4, 5),
        target="fixture://sample",
        platform=PlatformInfo(name="ubuntu", family="debian", release="22.04", arch="x86_64"),
        profile_name="sample",
        profile_title="Sample Profile",
        profile_version="1.0.0",
        duration_seconds=1.5,
        attest_version="1.0.0",
    )
    return build_report(controls, run)
