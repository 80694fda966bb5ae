"""Result classification into the five reporting outcomes."""

from __future__ import annotations

from ..models.result import AssertionStatus, ClassifiedControl, ControlResult, Outcome


def classify(result: ControlResult) -> ClassifiedControl:
    """Derive exactly one outcome for a control result. First rule wins:

    1. control exception or an error result  -> Profile Error
    2. no assertion and no skip reached      -> Profile Error
    3. impact 0                              -> Not Applicable
    4. any failed assertion                  -> Failed
    5. any passed assertion                  -> Passed
    6. skips only                            -> Not Reviewed
    """
    statuses = result.statuses()

    if result.exception:
        return ClassifiedControl(result=result, outcome=Outcome.PROFILE_ERROR, reason=result.exception)

    errors = [r for r in result.results if r.status == AssertionStatus.ERROR]
    if errors:
        return ClassifiedControl(
            result=result,
            outcome=Outcome.PROFILE_ERROR,
            reason=errors[0].message or f"{errors[0].description} raised an error",
        )

    if not statuses:
        return ClassifiedControl(
            result=result,
            outcome=Outcome.PROFILE_ERROR,
            reason="Control finished without reaching an assertion or skip",
        )

    if result.impact == 0:
        return ClassifiedControl(
            result=result,
            outcome=Outcome.NOT_APPLICABLE,
            reason=result.skip_message or "Impact is 0",
        )

    failed = [r for r in result.results if r.status == AssertionStatus.FAILED]
    if failed:
        return ClassifiedControl(
            result=result,
            outcome=Outcome.FAILED,
            reason=f"{len(failed)} of {len(statuses)} assertions failed",
        )

    if AssertionStatus.PASSED in statuses:
        return ClassifiedControl(result=result, outcome=Outcome.PASSED, reason="All assertions passed")

    return ClassifiedControl(
        result=result,
        outcome=Outcome.NOT_REVIEWED,
        reason=result.skip_message or "All results were skipped",
    )


def classify_all(results: list[ControlResult]) -> list[ClassifiedControl]:
    return [classify(r) for r in results]
