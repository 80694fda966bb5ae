"""Tests for core/runner.py."""

from __future__ import annotations

from datetime import date

from attest.core.classifier import classify
from attest.core.matchers import cmp, eq
from attest.core.runner import DEFAULT_IMPACT, run_control, run_controls
from attest.models.profile import Waiver
from attest.models.result import AssertionStatus, Outcome


class TestRunControl:
    def test_collects_results(self, make_definition, fixture_target):
        def body(ctx):
            ctx.expect(ctx.file("/etc/ssh/sshd_config").mode, "mode").to(cmp("0600"))
            ctx.expect(ctx.file("/etc/ssh/sshd_config").owner, "owner").to(cmp("nobody"))

        result = run_control(make_definition(body, id="ssh-01", impact="high", title="sshd"), fixture_target)
        assert result.id == "ssh-01"
        assert result.title == "sshd"
        assert result.impact == 0.7
        assert result.severity == "high"
        assert result.statuses() == [AssertionStatus.PASSED, AssertionStatus.FAILED]
        assert result.exception is None
        assert result.start_time is not None

    def test_exception_is_captured(self, make_definition, fixture_target):
        def body(ctx):
            ctx.expect(1).to(eq(1))
            raise KeyError("missing")

        result = run_control(make_definition(body), fixture_target)
        assert result.exception.startswith("KeyError: 'missing'")
        assert len(result.results) == 1

    def test_exception_redacts_secrets(self, make_definition, fixture_target):
        def body(ctx):
            raise RuntimeError(f"login failed for {ctx.input('password')}")

        result = run_control(
            make_definition(body),
            fixture_target,
            inputs={"password": "hunter2"},
            secrets=["hunter2"],
        )
        assert "hunter2" not in result.exception

    def test_only_if_stops_body(self, make_definition, fixture_target):
        reached = []

        def body(ctx):
            ctx.only_if(False, "not a web server")
            reached.append(True)

        result = run_control(make_definition(body), fixture_target)
        assert reached == []
        assert result.exception is None
        assert result.skip_message == "not a web server"

    def test_only_if_inside_any_of_is_not_reviewed(self, make_definition, fixture_target):
        def body(ctx):
            with ctx.any_of("either"):
                ctx.only_if(False, "nginx missing")

        result = run_control(make_definition(body), fixture_target)
        assert result.statuses() == [AssertionStatus.SKIPPED]
        assert result.skip_message == "nginx missing"
        assert classify(result).outcome == Outcome.NOT_REVIEWED

    def test_impact_override_wins(self, make_definition, fixture_target):
        def body(ctx):
            ctx.set_impact(0)
            ctx.skip("n/a")

        result = run_control(make_definition(body, impact="critical"), fixture_target)
        assert result.impact == 0.0
        assert result.severity == "none"

    def test_callable_impact_sees_target(self, make_definition, fixture_target):
        def impact(target):
            return 0.9 if target.package_info("openssh-server").installed else 0

        result = run_control(make_definition(lambda ctx: ctx.skip("x"), impact=impact), fixture_target)
        assert result.impact == 0.9

    def test_bad_impact_is_recorded(self, make_definition, fixture_target):
        result = run_control(make_definition(lambda ctx: ctx.skip("x"), impact="extreme"), fixture_target)
        assert result.impact == DEFAULT_IMPACT
        assert "Impact could not be resolved" in result.exception

    def test_waiver_skips_body(self, make_definition, fixture_target):
        reached = []
        waiver = Waiver(control_id="test-01", justification="Accepted risk")

        result = run_control(make_definition(lambda ctx: reached.append(True)), fixture_target, waiver=waiver)
        assert reached == []
        assert result.skip_message == "Waived: Accepted risk"
        assert result.waiver == waiver

    def test_waiver_with_run_executes(self, make_definition, fixture_target):
        waiver = Waiver(control_id="test-01", run=True)
        result = run_control(make_definition(lambda ctx: ctx.expect(1).to(eq(1))), fixture_target, waiver=waiver)
        assert result.statuses() == [AssertionStatus.PASSED]
        assert result.waiver == waiver

    def test_skip_reason_skips_body(self, make_definition, fixture_target):
        result = run_control(
            make_definition(lambda ctx: ctx.expect(1).to(eq(2))),
            fixture_target,
            skip_reason="unsupported platform",
        )
        assert result.statuses() == [AssertionStatus.SKIPPED]
        assert result.skip_message == "unsupported platform"

    def test_callable_impact_not_evaluated_when_skipped(self, make_definition, fixture_target):
        calls = []

        def impact(target):
            calls.append(target)
            return 0.3

        result = run_control(make_definition(lambda ctx: None, impact=impact), fixture_target, skip_reason="skip")
        assert calls == []
        assert result.impact == DEFAULT_IMPACT


class TestRunControls:
    def test_keeps_order_and_reports_progress(self, make_definition, fixture_target):
        definitions = [
            make_definition(lambda ctx: ctx.expect(1).to(eq(1)), id="a"),
            make_definition(lambda ctx: ctx.skip("later"), id="b"),
        ]
        seen = []
        results = run_controls(definitions, fixture_target, on_result=lambda r: seen.append(r.id))
        assert [r.id for r in results] == ["a", "b"]
        assert seen == ["a", "b"]

    def test_expired_waiver_is_ignored(self, make_definition, fixture_target):
        waivers = {"a": Waiver(control_id="a", expiration_date=date(2000, 1, 1))}
        results = run_controls(
            [make_definition(lambda ctx: ctx.expect(1).to(eq(1)), id="a")],
            fixture_target,
            waivers=waivers,
        )
        assert results[0].waiver is None
        assert results[0].statuses() == [AssertionStatus.PASSED]
