"""Control execution context: the object a control function receives.

Everything a control does (expectations, skips, impact changes, input
lookups, resource queries) goes through the context so the runtime can turn
it into structured results afterwards.
"""

from __future__ import annotations

import time
from contextlib import contextmanager
from typing import Any, Iterator, Optional

from ..models.result import AssertionResult, AssertionStatus
from ..targets.base import Target
from ..utils.sanitize import REDACTED, redact_secrets, sanitize_error
from .dsl import ControlDefinition
from .impact import normalize_impact
from .matchers import Matcher
from .resources import Command, File, Http, Package, Processes

MISSING = object()


class ControlSkipped(Exception):
    """Raised by ``only_if`` to stop the rest of a control body."""


def _plain(value: Any) -> Any:
    """Reduce a value to something a JSON report can hold."""
    if value is None or isinstance(value, (bool, int, float, str)):
        return value
    if isinstance(value, (list, tuple, set)):
        return [_plain(v) for v in value]
    if isinstance(value, dict):
        return {str(k): _plain(v) for k, v in value.items()}
    return str(value)


class Expectation:
    def __init__(self, ctx: "ControlContext", actual: Any, description: str, sensitive: bool):
        self.ctx = ctx
        self.actual = actual
        self.description = description
        self.sensitive = sensitive

    def to(self, matcher: Matcher) -> AssertionResult:
        return self._evaluate(matcher, negated=False)

    def not_to(self, matcher: Matcher) -> AssertionResult:
        return self._evaluate(matcher, negated=True)

    def _evaluate(self, matcher: Matcher, negated: bool) -> AssertionResult:
        start = time.monotonic()
        passed = matcher.matches(self.actual)
        if negated:
            passed = not passed

        verb = "is expected not to" if negated else "is expected to"
        if self.sensitive:
            code_desc = f"{self.description} {verb} match a sensitive value"
            expected, actual = REDACTED, REDACTED
            message = None if passed else f"expected {REDACTED} {'not ' if negated else ''}to match {REDACTED}"
        else:
            code_desc = f"{self.description} {verb} {matcher.describe()}"
            expected = redact_secrets(_plain(matcher.expected), self.ctx.secrets)
            actual = redact_secrets(_plain(self.actual), self.ctx.secrets)
            message = None if passed else (
                f"expected {self.actual!r} {'not ' if negated else ''}to {matcher.describe()}"
            )

        result = AssertionResult(
            description=self.ctx.redact(code_desc),
            status=AssertionStatus.PASSED if passed else AssertionStatus.FAILED,
            expected=expected,
            actual=actual,
            message=self.ctx.redact(message) if message else None,
            sensitive=self.sensitive,
            run_time=round(time.monotonic() - start, 6),
        )
        self.ctx.record(result)
        return result


class ControlContext:
    def __init__(
        self,
        definition: ControlDefinition,
        target: Target,
        inputs: Optional[dict[str, Any]] = None,
        secrets: Optional[list[Any]] = None,
    ):
        self.definition = definition
        self.target = target
        self.inputs = inputs or {}
        self.secrets = list(secrets or [])
        self.results: list[AssertionResult] = []
        self.impact_override: Optional[float] = None
        self.impact_reason: Optional[str] = None
        self.skip_message: Optional[str] = None
        self._sinks: list[list[AssertionResult]] = [self.results]
        self._blocks: list[str] = []

    # -- recording ---------------------------------------------------------

    def redact(self, text: str) -> str:
        return sanitize_error(text, self.secrets)

    def record(self, result: AssertionResult) -> None:
        self._sinks[-1].append(result)

    def _label(self, description: Optional[str]) -> str:
        parts = self._blocks + ([description] if description else [])
        return " ".join(parts) or self.definition.id

    # -- DSL -----------------------------------------------------------------

    def expect(self, actual: Any, description: Optional[str] = None, sensitive: bool = False) -> Expectation:
        return Expectation(self, actual, self._label(description), sensitive)

    @contextmanager
    def describe(self, description: Any) -> Iterator["ControlContext"]:
        """Group expectations; an exception inside the block becomes an error result."""
        self._blocks.append(str(description))
        label = self._label(None)
        try:
            yield self
        except ControlSkipped:
            raise
        except Exception as e:
            self.record(AssertionResult(
                description=self.redact(label),
                status=AssertionStatus.ERROR,
                exception=type(e).__name__,
                message=self.redact(f"{type(e).__name__}: {e}"),
            ))
        finally:
            self._blocks.pop()

    @contextmanager
    def any_of(self, description: Optional[str] = None) -> Iterator["ControlContext"]:
        """Pass if at least one enclosed expectation passes."""
        group: list[AssertionResult] = []
        self._sinks.append(group)
        try:
            yield self
        except ControlSkipped:
            # Keep what the block recorded, including the skip itself
            self._sinks.pop()
            self._sinks[-1].extend(group)
            raise
        except BaseException:
            self._sinks.pop()
            raise
        self._sinks.pop()

        passed = [r for r in group if r.status == AssertionStatus.PASSED]
        if passed:
            self.record(passed[0].model_copy(update={
                "description": self.redact(self._label(description)) if description else passed[0].description,
            }))
        else:
            for r in group:
                self.record(r)

    def skip(self, message: str) -> AssertionResult:
        """Record a skipped result, e.g. for a check that needs manual review."""
        message = self.redact(message)
        if self.skip_message is None:
            self.skip_message = message
        result = AssertionResult(
            description=self.redact(self._label(None)),
            status=AssertionStatus.SKIPPED,
            skip_message=message,
        )
        self.record(result)
        return result

    def only_if(self, condition: Any, message: str = "Skipped control due to only_if condition.") -> None:
        """Stop the control with a skip unless ``condition`` holds."""
        if callable(condition):
            condition = condition()
        if not condition:
            self.skip(message)
            raise ControlSkipped(message)

    def set_impact(self, value: Any, reason: Optional[str] = None) -> float:
        self.impact_override = normalize_impact(value)
        self.impact_reason = reason
        return self.impact_override

    def input(self, name: str, default: Any = MISSING) -> Any:
        if name in self.inputs:
            return self.inputs[name]
        if default is not MISSING:
            return default
        raise KeyError(f"Input '{name}' is not defined")

    # -- resources -----------------------------------------------------------

    def file(self, path: str) -> File:
        return File(self.target, path)

    def package(self, name: str) -> Package:
        return Package(self.target, name)

    def processes(self, pattern: str) -> Processes:
        return Processes(self.target, pattern)

    def command(self, command: str, timeout: Optional[int] = None) -> Command:
        return Command(self.target, command, timeout=timeout)

    def http(self, url: str, **kwargs: Any) -> Http:
        return Http(url, **kwargs)
