"""Matchers used by expectations.

Each matcher answers ``matches(actual)`` and ``describe()``; the description
reads after "expected <actual> to ...".
"""

from __future__ import annotations

import re
from abc import ABC, abstractmethod
from typing import Any


class Matcher(ABC):
    expected: Any = None

    @abstractmethod
    def matches(self, actual: Any) -> bool:
        """Return True when ``actual`` satisfies the matcher."""

    @abstractmethod
    def describe(self) -> str:
        """Describe the check, e.g. "eq 22"."""

    def __repr__(self) -> str:
        return f"<{type(self).__name__} {self.describe()}>"


class _Eq(Matcher):
    def __init__(self, expected: Any):
        self.expected = expected

    def matches(self, actual: Any) -> bool:
        return actual == self.expected

    def describe(self) -> str:
        return f"eq {self.expected!r}"


def _to_number(value: Any):
    if isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        return value
    if isinstance(value, str):
        text = value.strip()
        try:
            return int(text)
        except ValueError:
            pass
        try:
            return float(text)
        except ValueError:
            return None
    return None


def _is_octal_string(value: Any) -> bool:
    return isinstance(value, str) and re.fullmatch(r"0[0-7]{3,4}", value.strip()) is not None


def loose_compare(actual: Any, expected: Any) -> bool:
    """Compare the way profile authors expect ``cmp`` to behave.

    Octal mode strings compare against integers, numeric strings against
    numbers, strings case-insensitively, and a single-element list against
    its only element.
    """
    if isinstance(actual, list) and len(actual) == 1 and not isinstance(expected, list):
        actual = actual[0]

    if _is_octal_string(expected) and isinstance(actual, int) and not isinstance(actual, bool):
        return actual == int(expected, 8)
    if _is_octal_string(actual) and isinstance(expected, int) and not isinstance(expected, bool):
        return int(actual, 8) == expected

    if isinstance(expected, bool) or isinstance(actual, bool):
        return str(actual).strip().lower() == str(expected).strip().lower()

    a_num, e_num = _to_number(actual), _to_number(expected)
    if a_num is not None and e_num is not None:
        return a_num == e_num

    if isinstance(actual, str) and isinstance(expected, str):
        return actual.strip().lower() == expected.strip().lower()

    return actual == expected


class _Cmp(Matcher):
    def __init__(self, expected: Any):
        self.expected = expected

    def matches(self, actual: Any) -> bool:
        return loose_compare(actual, self.expected)

    def describe(self) -> str:
        return f"cmp {self.expected!r}"


class _Include(Matcher):
    def __init__(self, expected: Any):
        self.expected = expected

    def matches(self, actual: Any) -> bool:
        try:
            return self.expected in actual
        except TypeError:
            return False

    def describe(self) -> str:
        return f"include {self.expected!r}"


class _Match(Matcher):
    def __init__(self, pattern: str, flags: int = 0):
        self.expected = pattern
        self.regex = re.compile(pattern, flags)

    def matches(self, actual: Any) -> bool:
        if actual is None:
            return False
        return self.regex.search(str(actual)) is not None

    def describe(self) -> str:
        return f"match /{self.expected}/"


class _BeIn(Matcher):
    def __init__(self, expected: Any):
        self.expected = list(expected)

    def matches(self, actual: Any) -> bool:
        if isinstance(actual, (list, tuple, set)):
            return all(a in self.expected for a in actual)
        return actual in self.expected

    def describe(self) -> str:
        return f"be in {self.expected!r}"


class _Predicate(Matcher):
    def __init__(self, description: str, predicate, expected: Any = None):
        self._description = description
        self._predicate = predicate
        self.expected = expected

    def matches(self, actual: Any) -> bool:
        return bool(self._predicate(actual))

    def describe(self) -> str:
        return self._description


class _Compare(Matcher):
    def __init__(self, description: str, op, expected: Any):
        self._description = description
        self._op = op
        self.expected = expected

    def matches(self, actual: Any) -> bool:
        number = _to_number(actual)
        if number is None:
            return False
        return self._op(number, self.expected)

    def describe(self) -> str:
        return f"{self._description} {self.expected!r}"


class _AllOf(Matcher):
    def __init__(self, matchers: tuple[Matcher, ...]):
        self.matchers = matchers
        self.expected = [m.expected for m in matchers]

    def matches(self, actual: Any) -> bool:
        return all(m.matches(actual) for m in self.matchers)

    def describe(self) -> str:
        return " and ".join(m.describe() for m in self.matchers)


class _OneOf(Matcher):
    def __init__(self, matchers: tuple[Matcher, ...]):
        self.matchers = matchers
        self.expected = [m.expected for m in matchers]

    def matches(self, actual: Any) -> bool:
        return any(m.matches(actual) for m in self.matchers)

    def describe(self) -> str:
        return " or ".join(m.describe() for m in self.matchers)


def eq(expected: Any) -> Matcher:
    return _Eq(expected)


def cmp(expected: Any) -> Matcher:
    return _Cmp(expected)


def include(expected: Any) -> Matcher:
    return _Include(expected)


def match(pattern: str, flags: int = 0) -> Matcher:
    return _Match(pattern, flags)


def be_in(expected) -> Matcher:
    return _BeIn(expected)


def be_true() -> Matcher:
    return _Predicate("be true", lambda a: a is True, True)


def be_false() -> Matcher:
    return _Predicate("be false", lambda a: a is False, False)


def be_none() -> Matcher:
    return _Predicate("be None", lambda a: a is None)


def be_empty() -> Matcher:
    return _Predicate("be empty", lambda a: a is not None and len(a) == 0)


def be_greater_than(expected) -> Matcher:
    return _Compare("be greater than", lambda a, e: a > e, expected)


def be_less_than(expected) -> Matcher:
    return _Compare("be less than", lambda a, e: a < e, expected)


def be_between(low, high) -> Matcher:
    return _Compare("be between", lambda a, e: e[0] <= a <= e[1], (low, high))


def exist() -> Matcher:
    return _Predicate("exist", lambda a: bool(getattr(a, "exists", False)), True)


def be_installed() -> Matcher:
    return _Predicate("be installed", lambda a: bool(getattr(a, "installed", False)), True)


def be_running() -> Matcher:
    return _Predicate("be running", lambda a: bool(getattr(a, "running", False)), True)


def all_of(*matchers: Matcher) -> Matcher:
    return _AllOf(matchers)


def one_of(*matchers: Matcher) -> Matcher:
    return _OneOf(matchers)
