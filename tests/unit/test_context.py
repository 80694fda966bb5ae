"""Tests for core/context.py."""

from __future__ import annotations

import pytest

from attest.core.context import ControlContext, ControlSkipped
from attest.core.matchers import cmp, eq, include
from attest.models.result import AssertionStatus
from attest.utils.sanitize import REDACTED


@pytest.fixture
def ctx(make_definition, fixture_target) -> ControlContext:
    definition = make_definition(lambda c: None, id="ctx-01")
    return ControlContext(definition, fixture_target, inputs={"port": 22}, secrets=["hunter2"])


class TestExpect:
    def test_passing_expectation(self, ctx: ControlContext):
        result = ctx.expect(22, "port").to(cmp("22"))
        assert result.status == AssertionStatus.PASSED
        assert result.description == "port is expected to cmp '22'"
        assert result.message is None
        assert ctx.results == [result]

    def test_failing_expectation_has_message(self, ctx: ControlContext):
        result = ctx.expect("yes", "PermitRootLogin").to(eq("no"))
        assert result.status == AssertionStatus.FAILED
        assert result.message == "expected 'yes' to eq 'no'"
        assert result.expected == "no"
        assert result.actual == "yes"

    def test_not_to_negates(self, ctx: ControlContext):
        result = ctx.expect(["telnet"], "services").not_to(include("telnet"))
        assert result.status == AssertionStatus.FAILED
        assert "is expected not to include" in result.description
        assert result.message.startswith("expected ['telnet'] not to")

    def test_default_label_is_control_id(self, ctx: ControlContext):
        result = ctx.expect(1).to(eq(1))
        assert result.description.startswith("ctx-01 ")

    def test_sensitive_values_are_hidden(self, ctx: ControlContext):
        result = ctx.expect("s3cret", "token", sensitive=True).to(eq("other"))
        assert result.sensitive is True
        assert result.expected == REDACTED
        assert result.actual == REDACTED
        assert "s3cret" not in result.message
        assert "other" not in result.description

    def test_secret_inputs_are_redacted(self, ctx: ControlContext):
        result = ctx.expect("hunter2", "password").to(eq("x"))
        assert "hunter2" not in result.message
        assert REDACTED in result.message

    def test_secret_inputs_are_redacted_in_values(self, ctx: ControlContext):
        result = ctx.expect("hunter2", "password").to(eq("expected-pw"))
        assert result.actual == REDACTED
        assert result.expected == "expected-pw"

    def test_secrets_inside_structures_are_redacted(self, ctx: ControlContext):
        result = ctx.expect({"url": "https://svc?pw=hunter2", "tries": 3}, "config").to(eq({}))
        assert result.actual == {"url": f"https://svc?pw={REDACTED}", "tries": 3}

    def test_non_string_secret_is_redacted(self, make_definition, fixture_target):
        ctx = ControlContext(make_definition(lambda c: None), fixture_target, secrets=[4242])
        result = ctx.expect(4242, "pin").to(eq(1111))
        assert result.actual == REDACTED
        assert result.expected == 1111

    def test_non_json_actual_is_stringified(self, ctx: ControlContext):
        result = ctx.expect(ctx.file("/etc/passwd"), "file").to(eq(None))
        assert result.actual == "File /etc/passwd"


class TestDescribe:
    def test_prefixes_descriptions(self, ctx: ControlContext):
        with ctx.describe(ctx.file("/etc/passwd")):
            result = ctx.expect("root", "owner").to(cmp("root"))
        assert result.description == "File /etc/passwd owner is expected to cmp 'root'"

    def test_exception_becomes_error_result(self, ctx: ControlContext):
        with ctx.describe("sysctl"):
            raise RuntimeError("boom")
        assert len(ctx.results) == 1
        error = ctx.results[0]
        assert error.status == AssertionStatus.ERROR
        assert error.exception == "RuntimeError"
        assert error.message == "RuntimeError: boom"
        assert error.description == "sysctl"

    def test_skip_propagates(self, ctx: ControlContext):
        with pytest.raises(ControlSkipped):
            with ctx.describe("block"):
                ctx.only_if(False)


class TestAnyOf:
    def test_records_first_passing(self, ctx: ControlContext):
        with ctx.any_of("root login disabled"):
            ctx.expect("no").to(eq("prohibit-password"))
            ctx.expect("no").to(eq("no"))
        assert len(ctx.results) == 1
        assert ctx.results[0].status == AssertionStatus.PASSED
        assert ctx.results[0].description == "root login disabled"

    def test_records_all_when_none_pass(self, ctx: ControlContext):
        with ctx.any_of():
            ctx.expect(1).to(eq(2))
            ctx.expect(1).to(eq(3))
        assert [r.status for r in ctx.results] == [AssertionStatus.FAILED, AssertionStatus.FAILED]

    def test_only_if_inside_keeps_skip(self, ctx: ControlContext):
        with pytest.raises(ControlSkipped):
            with ctx.any_of("either"):
                ctx.expect(1).to(eq(2))
                ctx.only_if(False, "nginx missing")
        assert [r.status for r in ctx.results] == [AssertionStatus.FAILED, AssertionStatus.SKIPPED]
        assert ctx.skip_message == "nginx missing"

    def test_skip_inside_is_recorded(self, ctx: ControlContext):
        with ctx.any_of():
            ctx.skip("manual check")
        assert [r.status for r in ctx.results] == [AssertionStatus.SKIPPED]

    def test_sinks_restored_after_skip(self, ctx: ControlContext):
        with pytest.raises(ControlSkipped):
            with ctx.any_of():
                ctx.only_if(False)
        ctx.expect(1).to(eq(1))
        assert ctx.results[-1].status == AssertionStatus.PASSED


class TestSkipAndOnlyIf:
    def test_skip_records_message(self, ctx: ControlContext):
        ctx.skip("Manual review")
        assert ctx.skip_message == "Manual review"
        assert ctx.results[0].status == AssertionStatus.SKIPPED

    def test_first_skip_message_wins(self, ctx: ControlContext):
        ctx.skip("first")
        ctx.skip("second")
        assert ctx.skip_message == "first"

    def test_only_if_true_continues(self, ctx: ControlContext):
        ctx.only_if(True)
        assert ctx.results == []

    def test_only_if_callable(self, ctx: ControlContext):
        with pytest.raises(ControlSkipped):
            ctx.only_if(lambda: False, "no nginx")
        assert ctx.skip_message == "no nginx"


class TestImpactAndInputs:
    def test_set_impact_normalizes(self, ctx: ControlContext):
        assert ctx.set_impact("high", reason="exposed") == 0.7
        assert ctx.impact_override == 0.7
        assert ctx.impact_reason == "exposed"

    def test_set_impact_rejects_out_of_range(self, ctx: ControlContext):
        with pytest.raises(ValueError):
            ctx.set_impact(1.5)

    def test_input_lookup(self, ctx: ControlContext):
        assert ctx.input("port") == 22
        assert ctx.input("missing", default="x") == "x"
        with pytest.raises(KeyError):
            ctx.input("missing")


class TestResources:
    def test_resources_use_target(self, ctx: ControlContext):
        assert ctx.file("/etc/ssh/sshd_config").mode == 0o600
        assert ctx.package("openssh-server").installed is True
        assert ctx.processes("sshd").running is True
        assert ctx.command("sysctl -n net.ipv4.ip_forward").stdout.strip() == "0"
