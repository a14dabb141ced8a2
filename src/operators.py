"""Condition operators.

An operator compares a configured literal against a subject string taken
from the URL being dispatched. Both sides are trimmed and lower-cased before
comparison. The prefix/suffix operators are built as regular expressions from
the raw literal, so regex metacharacters in the literal keep their regex
meaning unless the operator is built with ``strict_literal=True``.
"""

import functools
import re
from typing import Callable, Dict, List, Optional, Pattern

from constants import ConditionOperator
from errors import InvalidPattern, UnknownOperator

Op = ConditionOperator

Predicate = Callable[[str, str, Optional[Pattern]], bool]


def _normalize(value) -> str:
    return str(value).strip().lower()


def _search(pattern: Pattern, subject: str) -> bool:
    return pattern.search(subject) is not None


# (literal, subject, compiled pattern) -> bool
_PREDICATES: Dict[ConditionOperator, Predicate] = {
    Op.IS: lambda literal, subject, _p: subject == literal,
    Op.IS_NOT: lambda literal, subject, _p: subject != literal,
    Op.CONTAINS: lambda literal, subject, _p: literal in subject,
    Op.NOT_CONTAINS: lambda literal, subject, _p: literal not in subject,
    Op.STARTS_WITH: lambda _l, subject, pattern: _search(pattern, subject),
    Op.NOT_STARTS_WITH: lambda _l, subject, pattern: not _search(pattern, subject),
    Op.ENDS_WITH: lambda _l, subject, pattern: _search(pattern, subject),
    Op.NOT_ENDS_WITH: lambda _l, subject, pattern: not _search(pattern, subject),
    Op.REGEX: lambda _l, subject, pattern: _search(pattern, subject),
}

# literal -> regex source, only for the pattern based operators
_PATTERN_SOURCES: Dict[ConditionOperator, Callable[[str], str]] = {
    Op.STARTS_WITH: lambda v: "^" + v,
    Op.NOT_STARTS_WITH: lambda v: "^" + v,
    Op.ENDS_WITH: lambda v: v + "$",
    Op.NOT_ENDS_WITH: lambda v: v + "$",
    Op.REGEX: lambda v: v,
}


def operator_ids() -> List[str]:
    return [op.value for op in ConditionOperator]


def resolve_operator(uid) -> ConditionOperator:
    try:
        return ConditionOperator(uid)
    except ValueError:
        raise UnknownOperator(uid) from None


@functools.lru_cache(maxsize=256)
def compile_pattern(source: str) -> Pattern:
    try:
        return re.compile(source, re.IGNORECASE)
    except re.error as exc:
        raise InvalidPattern(source, str(exc)) from exc


class Operator:
    __slots__ = ("uid", "literal", "_predicate", "_pattern")

    def __init__(self, uid, literal: str, strict_literal: bool = False):
        self.uid = resolve_operator(uid)
        self.literal = _normalize("" if literal is None else literal)
        self._predicate = _PREDICATES[self.uid]
        self._pattern = None
        to_source = _PATTERN_SOURCES.get(self.uid)
        if to_source is not None:
            source = self.literal
            if strict_literal and self.uid is not Op.REGEX:
                source = re.escape(source)
            self._pattern = compile_pattern(to_source(source))

    def evaluate(self, subject: Optional[str]) -> bool:
        """Return whether ``subject`` satisfies the operator; absent data never matches."""
        if subject is None:
            return False
        return self._predicate(self.literal, _normalize(subject), self._pattern)

    def __repr__(self) -> str:
        return f"Operator({self.uid.value!r}, {self.literal!r})"
