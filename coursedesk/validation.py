"""
Declarative validation rules for course records.

A rule table maps a field name to named predicates over that field's value:

    {"title": {"required": required}}

Every predicate is evaluated on its own. A course is valid iff all of them
pass. Nothing here raises for bad input: a failing (or crashing) predicate
just shows up in ValidationResult.errors.

Only title, trainer and courseType are required. All other rules accept
empty values and only check the format of values that are present.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from typing import Any, Callable, Mapping

from coursedesk.dateformat import parse_timestamp
from coursedesk.logger import get_logger
from coursedesk.model import ENUM_FIELDS

logger = get_logger(__name__)

Predicate = Callable[[Any], bool]
RuleTable = Mapping[str, Mapping[str, Predicate]]
# rules that need the whole course, e.g. comparing two dates
CourseRuleTable = Mapping[str, Mapping[str, Callable[[Mapping[str, Any]], bool]]]

_URL = re.compile(r"^https?://\S+$", re.IGNORECASE)

LINK_MAX_LENGTH = 1000
TEXT_MAX_LENGTH = 2000


def _is_empty(value: Any) -> bool:
    if value is None:
        return True
    if isinstance(value, str):
        return not value.strip()
    return False


def required(value: Any) -> bool:
    return not _is_empty(value)


def valid_date(value: Any) -> bool:
    return _is_empty(value) or parse_timestamp(value) is not None


def one_of(codes: Any) -> Predicate:
    """
    Build a predicate accepting empty values or one of the given codes.
    Enum classes are accepted and compared by their values.
    """
    allowed = {getattr(c, "value", c) for c in codes}

    def check(value: Any) -> bool:
        return _is_empty(value) or getattr(value, "value", value) in allowed

    return check


def url(value: Any) -> bool:
    return _is_empty(value) or (isinstance(value, str) and bool(_URL.match(value.strip())))


def max_length(limit: int) -> Predicate:
    """
    Build a predicate accepting empty values or text of at most `limit` characters.
    """

    def check(value: Any) -> bool:
        return _is_empty(value) or len(str(value)) <= limit

    return check


def end_after_start(course: Mapping[str, Any]) -> bool:
    start = parse_timestamp(course.get("startDate"))
    end = parse_timestamp(course.get("endDate"))
    if start is None or end is None:
        return True
    try:
        return end > start
    except TypeError:
        # naive vs aware timestamps cannot be compared
        return False


DEFAULT_RULES: dict[str, dict[str, Predicate]] = {
    "title": {"required": required},
    "trainer": {"required": required},
    "courseType": {"required": required, "oneOf": one_of(ENUM_FIELDS["courseType"])},
    "courseForm": {"oneOf": one_of(ENUM_FIELDS["courseForm"])},
    "executionType": {"oneOf": one_of(ENUM_FIELDS["executionType"])},
    "startDate": {"validDate": valid_date},
    "endDate": {"validDate": valid_date},
    "link": {"url": url, "maxLength": max_length(LINK_MAX_LENGTH)},
    "targetAudience": {"maxLength": max_length(TEXT_MAX_LENGTH)},
    "description": {"maxLength": max_length(TEXT_MAX_LENGTH)},
}

DEFAULT_COURSE_RULES: dict[str, dict[str, Callable[[Mapping[str, Any]], bool]]] = {
    "endDate": {"afterStart": end_after_start},
}

ERROR_MESSAGES: dict[str, str] = {
    "required": "Pflichtfeld",
    "validDate": "Ungültiges Datum (TT.MM.JJJJ HH:mm)",
    "oneOf": "Ungültige Auswahl",
    "url": "Ungültiger Link (http:// oder https://)",
    "afterStart": "Ende muss nach dem Start liegen",
    "maxLength": "Text ist zu lang",
}


@dataclass
class ValidationResult:
    errors: dict[str, list[str]] = field(default_factory=dict)

    @property
    def valid(self) -> bool:
        return not self.errors

    def messages(self, field_name: str) -> list[str]:
        return [ERROR_MESSAGES.get(rule, rule) for rule in self.errors.get(field_name, [])]


def _passes(predicate: Callable[[Any], bool], arg: Any) -> bool:
    try:
        return bool(predicate(arg))
    except Exception:  # a broken predicate counts as a failed rule
        logger.debug("Validation predicate %r raised", predicate, exc_info=True)
        return False


def validate(
    course: Mapping[str, Any] | None,
    rules: RuleTable = DEFAULT_RULES,
    course_rules: CourseRuleTable = DEFAULT_COURSE_RULES,
) -> ValidationResult:
    """
    Run all rules against a course mapping and collect the failing rule names.
    """
    data: Mapping[str, Any] = course or {}
    result = ValidationResult()

    for field_name, field_rules in rules.items():
        value = data.get(field_name)
        for rule_name, predicate in field_rules.items():
            if not _passes(predicate, value):
                result.errors.setdefault(field_name, []).append(rule_name)

    for field_name, field_rules in course_rules.items():
        for rule_name, predicate in field_rules.items():
            if not _passes(predicate, data):
                result.errors.setdefault(field_name, []).append(rule_name)

    return result
