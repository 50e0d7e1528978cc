from __future__ import annotations

from collections.abc import Callable, Mapping
from dataclasses import dataclass
from datetime import UTC, datetime
import math
import re
from typing import ClassVar

from app.domain.contracts import Clock
from app.domain.errors import MalformedSubmissionError, RuleSpecError
from app.domain.models import FieldFailure, Submission, ValidationResult

CustomPredicate = Callable[[object, datetime], bool]


@dataclass(frozen=True)
class Required:
    kind: ClassVar[str] = "required"
    message: str = "Field is required"


@dataclass(frozen=True)
class Length:
    kind: ClassVar[str] = "length"
    min: int | None = None
    max: int | None = None
    message: str = "Field length is out of range"


@dataclass(frozen=True)
class NumericRange:
    kind: ClassVar[str] = "numeric_range"
    min: float | None = None
    max: float | None = None
    integer: bool = False
    message: str = "Field value is out of range"


@dataclass(frozen=True)
class OneOf:
    kind: ClassVar[str] = "enum"
    allowed: tuple[str, ...] = ()
    message: str = "Field value is not allowed"


@dataclass(frozen=True)
class Pattern:
    kind: ClassVar[str] = "pattern"
    regex: str = ""
    message: str = "Field format is invalid"

    def __post_init__(self) -> None:
        # Fail on bad regex at construction, not at request time.
        re.compile(self.regex)


@dataclass(frozen=True)
class IsoDate:
    kind: ClassVar[str] = "iso_date"
    message: str = "Field must be an ISO 8601 date"


@dataclass(frozen=True)
class Custom:
    kind: ClassVar[str] = "custom"
    name: str = "custom"
    predicate: CustomPredicate | None = None
    message: str = "Field is invalid"


Constraint = Required | Length | NumericRange | OneOf | Pattern | IsoDate | Custom

SANITIZERS: tuple[str, ...] = ("trim", "normalize_email")


@dataclass(frozen=True)
class FieldRule:
    field: str
    constraints: tuple[Constraint, ...]
    optional: bool = False
    sanitizers: tuple[str, ...] = ()


@dataclass(frozen=True)
class RuleSpec:
    name: str
    fields: tuple[FieldRule, ...]


def parse_iso_datetime(value: object) -> datetime | None:
    if not isinstance(value, str):
        return None
    text = value.strip()
    if not text:
        return None
    try:
        parsed = datetime.fromisoformat(text)
    except ValueError:
        return None
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=UTC)
    return parsed


def _as_text(value: object) -> str:
    if value is None:
        return ""
    return value if isinstance(value, str) else str(value)


def _parse_number(value: object) -> float | None:
    if isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        try:
            number = float(value)
        except OverflowError:
            return None
    else:
        text = _as_text(value).strip()
        if not text:
            return None
        try:
            number = float(text)
        except ValueError:
            return None
    if math.isnan(number) or math.isinf(number):
        return None
    return number


def _is_absent(value: object) -> bool:
    return value is None


def _is_blank(value: object) -> bool:
    return _is_absent(value) or (isinstance(value, str) and not value.strip())


def check_constraint(constraint: Constraint, value: object, *, now: datetime) -> bool:
    if isinstance(constraint, Required):
        return not _is_blank(value)

    if isinstance(constraint, Length):
        size = len(_as_text(value).strip())
        if constraint.min is not None and size < constraint.min:
            return False
        if constraint.max is not None and size > constraint.max:
            return False
        return True

    if isinstance(constraint, NumericRange):
        number = _parse_number(value)
        if number is None:
            return False
        if constraint.integer and not number.is_integer():
            return False
        if constraint.min is not None and number < constraint.min:
            return False
        if constraint.max is not None and number > constraint.max:
            return False
        return True

    if isinstance(constraint, OneOf):
        return isinstance(value, str) and value in constraint.allowed

    if isinstance(constraint, Pattern):
        return re.fullmatch(constraint.regex, _as_text(value).strip(), flags=re.DOTALL) is not None

    if isinstance(constraint, IsoDate):
        return parse_iso_datetime(value) is not None

    if isinstance(constraint, Custom):
        if constraint.predicate is None:
            raise RuleSpecError(f"custom constraint has no predicate: {constraint.name}")
        return bool(constraint.predicate(value, now))

    raise RuleSpecError(f"unsupported constraint: {constraint!r}")


def sanitize_value(value: object, sanitizers: tuple[str, ...]) -> object:
    for sanitizer in sanitizers:
        if not isinstance(value, str):
            break
        if sanitizer == "trim":
            value = value.strip()
        elif sanitizer == "normalize_email":
            value = value.strip().lower()
    return value


class RuleEngine:
    """Evaluates submissions against named rule specs.

    Every field is checked independently and reports at most one failure,
    the first constraint that does not hold. Failures follow the rule spec's
    field order. "Now" is read from the clock once per evaluation, so a
    future-date check is relative to validation time.
    """

    def __init__(self, *, rule_specs: Mapping[str, RuleSpec], clock: Clock) -> None:
        self._rule_specs = dict(rule_specs)
        self._clock = clock

    @property
    def rule_spec_names(self) -> tuple[str, ...]:
        return tuple(self._rule_specs)

    def get_rule_spec(self, rule_spec_name: str) -> RuleSpec:
        rule_spec = self._rule_specs.get(rule_spec_name)
        if rule_spec is None:
            raise MalformedSubmissionError(f"unknown rule spec: {rule_spec_name}")
        return rule_spec

    def evaluate(self, rule_spec_name: str, submission: Submission) -> ValidationResult:
        rule_spec = self.get_rule_spec(rule_spec_name)
        now = self._clock.now()
        failures: list[FieldFailure] = []
        validated: dict[str, object] = {}

        for rule in rule_spec.fields:
            value = submission.fields.get(rule.field)
            if rule.optional and _is_absent(value):
                continue

            failure = _first_failure(rule, value, now=now)
            if failure is not None:
                failures.append(failure)
            elif not _is_absent(value):
                validated[rule.field] = sanitize_value(value, rule.sanitizers)

        return ValidationResult(failures=tuple(failures), validated_fields=validated)


def _first_failure(rule: FieldRule, value: object, *, now: datetime) -> FieldFailure | None:
    # Absent values are seen as "" by every constraint except Required.
    checked = "" if _is_absent(value) else value
    for constraint in rule.constraints:
        if check_constraint(constraint, value if isinstance(constraint, Required) else checked, now=now):
            continue
        message_kind = constraint.name if isinstance(constraint, Custom) else constraint.kind
        return FieldFailure(
            field=rule.field,
            message_kind=message_kind,
            rejected_value=value,
            message=constraint.message,
        )
    return None
