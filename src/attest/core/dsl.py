"""Control declaration.

Profile authors declare controls as decorated functions::

    from attest import control
    from attest.core.matchers import cmp

    @control("sshd-01", title="sshd_config is private", impact="high")
    def sshd_config_mode(ctx):
        ctx.expect(ctx.file("/etc/ssh/sshd_config").mode).to(cmp("0600"))
"""

from __future__ import annotations

import inspect
from dataclasses import dataclass, field
from typing import Any, Callable, Optional, Union

CONTROL_ATTR = "__attest_control__"


@dataclass
class ControlDefinition:
    id: str
    func: Callable
    title: str = ""
    desc: str = ""
    impact: Any = 0.5
    tags: dict[str, Any] = field(default_factory=dict)
    refs: list[str] = field(default_factory=list)
    source_location: Optional[str] = None

    def has_tag(self, selector: str) -> bool:
        """Match ``key`` or ``key=value`` against the control tags."""
        key, sep, value = selector.partition("=")
        if key not in self.tags:
            return False
        if not sep:
            return True
        tag_value = self.tags[key]
        if isinstance(tag_value, (list, tuple, set)):
            return value in [str(v) for v in tag_value]
        return str(tag_value) == value


def _normalize_tags(tags: Union[dict, list, tuple, None]) -> dict[str, Any]:
    if not tags:
        return {}
    if isinstance(tags, dict):
        return dict(tags)
    return {str(t): None for t in tags}


def control(
    id: str,
    title: str = "",
    desc: Optional[str] = None,
    impact: Any = 0.5,
    tags: Union[dict, list, None] = None,
    refs: Optional[list[str]] = None,
) -> Callable[[Callable], Callable]:
    """Declare a function as a control. The docstring is the default description."""

    def decorator(func: Callable) -> Callable:
        try:
            filename = inspect.getsourcefile(func)
            line = inspect.getsourcelines(func)[1]
            location = f"{filename}:{line}"
        except (OSError, TypeError):
            location = None

        definition = ControlDefinition(
            id=id,
            func=func,
            title=title,
            desc=desc if desc is not None else inspect.cleandoc(func.__doc__ or ""),
            impact=impact,
            tags=_normalize_tags(tags),
            refs=list(refs or []),
            source_location=location,
        )
        setattr(func, CONTROL_ATTR, definition)
        return func

    return decorator


def get_definition(obj: Any) -> Optional[ControlDefinition]:
    return getattr(obj, CONTROL_ATTR, None)
