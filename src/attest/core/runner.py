"""Control runtime: executes one control and captures everything it did.

``run_control`` never raises. Failed expectations, skips, exceptions and bad
impacts all end up inside the returned ``ControlResult`` so the classifier can
decide the outcome.
"""

from __future__ import annotations

import time
import traceback
from datetime import datetime
from typing import Any, Callable, Optional

from ..models.profile import Waiver
from ..models.result import ControlResult
from ..targets.base import Target
from ..utils.sanitize import sanitize_error
from .context import ControlContext, ControlSkipped
from .dsl import ControlDefinition
from .impact import resolve_impact, severity_for
from .waivers import active_waiver

DEFAULT_IMPACT = 0.5


def _describe_exception(e: BaseException, definition: ControlDefinition) -> str:
    """Format an exception, pointing at the line in the control file that raised it."""
    message = f"{type(e).__name__}: {e}"
    source_file = (definition.source_location or "").rsplit(":", 1)[0]
    if source_file:
        frames = [f for f in traceback.extract_tb(e.__traceback__) if f.filename == source_file]
        if frames:
            message += f" (at {source_file}:{frames[-1].lineno})"
    return message


def run_control(
    definition: ControlDefinition,
    target: Target,
    inputs: Optional[dict[str, Any]] = None,
    secrets: Optional[list[Any]] = None,
    waiver: Optional[Waiver] = None,
    skip_reason: Optional[str] = None,
) -> ControlResult:
    """Execute a single control against a target.

    Args:
        waiver: Active waiver for this control, if any. ``run: false`` skips it.
        skip_reason: When set, the control body is not executed and the control
            is recorded as skipped with this message (e.g. unsupported platform).
    """
    start_time = datetime.now()
    started = time.monotonic()
    ctx = ControlContext(definition, target, inputs=inputs, secrets=secrets)
    exception: Optional[str] = None
    executed = False

    if waiver is not None and not waiver.run:
        ctx.skip(f"Waived: {waiver.justification}" if waiver.justification else "Waived")
    elif skip_reason:
        ctx.skip(skip_reason)
    else:
        executed = True
        try:
            definition.func(ctx)
        except ControlSkipped:
            pass
        except Exception as e:
            exception = sanitize_error(_describe_exception(e, definition), ctx.secrets)

    try:
        if executed or not callable(definition.impact):
            impact = resolve_impact(definition.impact, target, ctx.impact_override)
        else:
            impact = DEFAULT_IMPACT
    except Exception as e:
        impact = DEFAULT_IMPACT
        if exception is None:
            exception = sanitize_error(f"Impact could not be resolved: {type(e).__name__}: {e}", ctx.secrets)

    return ControlResult(
        id=definition.id,
        title=definition.title,
        desc=definition.desc,
        impact=impact,
        severity=severity_for(impact),
        tags=definition.tags,
        refs=definition.refs,
        source_location=definition.source_location,
        results=ctx.results,
        skip_message=ctx.skip_message,
        exception=exception,
        waiver=waiver,
        start_time=start_time,
        run_time=round(time.monotonic() - started, 6),
    )


def run_controls(
    definitions: list[ControlDefinition],
    target: Target,
    inputs: Optional[dict[str, Any]] = None,
    secrets: Optional[list[Any]] = None,
    waivers: Optional[dict[str, Waiver]] = None,
    skip_reason: Optional[str] = None,
    on_result: Optional[Callable[[ControlResult], None]] = None,
) -> list[ControlResult]:
    """Run controls in order; one result per control."""
    results: list[ControlResult] = []
    for definition in definitions:
        result = run_control(
            definition,
            target,
            inputs=inputs,
            secrets=secrets,
            waiver=active_waiver(waivers or {}, definition.id),
            skip_reason=skip_reason,
        )
        results.append(result)
        if on_result is not None:
            on_result(result)
    return results
