from __future__ import annotations

from collections.abc import Mapping
from datetime import datetime
from pathlib import Path
import re

import yaml

from app.domain.errors import RuleSpecError
from app.domain.rules import (
    SANITIZERS,
    Constraint,
    Custom,
    CustomPredicate,
    FieldRule,
    IsoDate,
    Length,
    NumericRange,
    OneOf,
    Pattern,
    Required,
    RuleSpec,
    parse_iso_datetime,
)

DEFAULT_RULE_SPECS_PATH = Path(__file__).resolve().parent.parent / "validation" / "rule_specs.v1.yaml"

RULE_SPEC_NAME_RE = re.compile(r"^[a-z][a-z0-9-]*$")


def is_future_datetime(value: object, now: datetime) -> bool:
    parsed = parse_iso_datetime(value)
    return parsed is not None and parsed > now


# Custom predicates addressable from YAML by name.
CUSTOM_PREDICATES: Mapping[str, CustomPredicate] = {
    "future_datetime": is_future_datetime,
}


def load_rule_specs(*, file_path: str | Path = DEFAULT_RULE_SPECS_PATH) -> dict[str, RuleSpec]:
    try:
        data = yaml.safe_load(Path(file_path).read_text(encoding="utf-8"))
    except OSError as exc:
        raise RuleSpecError(f"cannot read rule specs from {file_path}: {exc}") from exc
    except yaml.YAMLError as exc:
        raise RuleSpecError(f"rule specs file is not valid YAML: {exc}") from exc
    if not isinstance(data, dict):
        raise RuleSpecError("rule specs must be a YAML object")
    specs_raw = _required_obj(data, "rule_specs")
    return {name: parse_rule_spec(name, raw) for name, raw in specs_raw.items()}


def parse_rule_spec(name: object, data: object) -> RuleSpec:
    if not isinstance(name, str) or not RULE_SPEC_NAME_RE.match(name):
        raise RuleSpecError(f"invalid rule spec name: {name!r}")
    if not isinstance(data, dict):
        raise RuleSpecError(f"{name}: rule spec must be an object")
    fields_raw = _required_list(data, "fields")
    if not fields_raw:
        raise RuleSpecError(f"{name}: fields must contain at least one field")

    rules: list[FieldRule] = []
    seen: set[str] = set()
    for item in fields_raw:
        if not isinstance(item, dict):
            raise RuleSpecError(f"{name}: each field must be an object")
        rule = _parse_field_rule(name, item)
        if rule.field in seen:
            raise RuleSpecError(f"{name}.{rule.field}: field is declared twice")
        seen.add(rule.field)
        rules.append(rule)
    return RuleSpec(name=name, fields=tuple(rules))


def _parse_field_rule(spec_name: str, data: dict[str, object]) -> FieldRule:
    field = _required_str(data, "field")
    path = f"{spec_name}.{field}"
    optional = data.get("optional", False)
    if not isinstance(optional, bool):
        raise RuleSpecError(f"{path}: optional must be a boolean")

    sanitizers = tuple(_optional_str_list(data, "sanitize"))
    for sanitizer in sanitizers:
        if sanitizer not in SANITIZERS:
            raise RuleSpecError(f"{path}: unsupported sanitizer '{sanitizer}'")

    constraints_raw = _required_list(data, "constraints")
    constraints = tuple(_parse_constraint(path, item) for item in constraints_raw)
    if not constraints:
        raise RuleSpecError(f"{path}: constraints must not be empty")
    return FieldRule(field=field, constraints=constraints, optional=optional, sanitizers=sanitizers)


def _parse_constraint(path: str, data: object) -> Constraint:
    if not isinstance(data, dict):
        raise RuleSpecError(f"{path}: constraint must be an object")
    kind = _required_str(data, "kind")
    message = data.get("message")
    if message is not None and not isinstance(message, str):
        raise RuleSpecError(f"{path}: message must be a string")
    extra: dict[str, object] = {"message": message} if message else {}

    if kind == "required":
        return Required(**extra)

    if kind == "length":
        minimum = _optional_int(data, "min")
        maximum = _optional_int(data, "max")
        _check_bounds(path, minimum, maximum)
        return Length(min=minimum, max=maximum, **extra)

    if kind == "numeric_range":
        minimum = _optional_float(data, "min")
        maximum = _optional_float(data, "max")
        _check_bounds(path, minimum, maximum)
        integer = data.get("integer", False)
        if not isinstance(integer, bool):
            raise RuleSpecError(f"{path}: integer must be a boolean")
        return NumericRange(min=minimum, max=maximum, integer=integer, **extra)

    if kind == "enum":
        allowed = tuple(_optional_str_list(data, "allowed"))
        if not allowed:
            raise RuleSpecError(f"{path}: enum must list allowed values")
        return OneOf(allowed=allowed, **extra)

    if kind == "pattern":
        regex = _required_str(data, "regex")
        try:
            return Pattern(regex=regex, **extra)
        except re.error as exc:
            raise RuleSpecError(f"{path}: invalid regex: {exc}") from exc

    if kind == "iso_date":
        return IsoDate(**extra)

    if kind == "custom":
        predicate_name = _required_str(data, "name")
        predicate = CUSTOM_PREDICATES.get(predicate_name)
        if predicate is None:
            raise RuleSpecError(f"{path}: unknown custom predicate '{predicate_name}'")
        return Custom(name=predicate_name, predicate=predicate, **extra)

    raise RuleSpecError(f"{path}: unsupported constraint kind '{kind}'")


def _check_bounds(path: str, minimum: float | None, maximum: float | None) -> None:
    if minimum is not None and maximum is not None and minimum > maximum:
        raise RuleSpecError(f"{path}: min must not exceed max")


def _required_obj(data: dict[str, object], key: str) -> dict[str, object]:
    value = data.get(key)
    if not isinstance(value, dict):
        raise RuleSpecError(f"{key} must be an object")
    return value


def _required_list(data: dict[str, object], key: str) -> list[object]:
    value = data.get(key)
    if not isinstance(value, list):
        raise RuleSpecError(f"{key} must be a list")
    return value


def _required_str(data: dict[str, object], key: str) -> str:
    value = data.get(key)
    if not isinstance(value, str) or not value:
        raise RuleSpecError(f"{key} must be a non-empty string")
    return value


def _optional_str_list(data: dict[str, object], key: str) -> list[str]:
    value = data.get(key, [])
    if not isinstance(value, list) or not all(isinstance(item, str) for item in value):
        raise RuleSpecError(f"{key} must be a list of strings")
    return value


def _optional_int(data: dict[str, object], key: str) -> int | None:
    value = data.get(key)
    if value is None:
        return None
    if isinstance(value, bool) or not isinstance(value, int):
        raise RuleSpecError(f"{key} must be an integer")
    return value


def _optional_float(data: dict[str, object], key: str) -> float | None:
    value = data.get(key)
    if value is None:
        return None
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise RuleSpecError(f"{key} must be a number")
    return float(value)
