from __future__ import annotations

from pathlib import Path

import pytest

from app.domain.errors import RuleSpecError
from app.domain.rule_specs import load_rule_specs, parse_rule_spec
from app.domain.rules import Custom, IsoDate, Length, NumericRange, OneOf, Pattern, Required


@pytest.mark.unit
def test_default_rule_specs_cover_every_intake_operation() -> None:
    specs = load_rule_specs()

    assert set(specs) == {"registration", "login", "event-creation", "review", "report", "object-id"}
    assert [rule.field for rule in specs["event-creation"].fields] == [
        "eventName",
        "time",
        "category",
        "pattern",
        "description",
        "longitude",
        "latitude",
    ]


@pytest.mark.unit
def test_default_rule_specs_parse_into_typed_constraints() -> None:
    event = {rule.field: rule for rule in load_rule_specs()["event-creation"].fields}

    time_constraints = event["time"].constraints
    assert isinstance(time_constraints[0], Required)
    assert isinstance(time_constraints[1], IsoDate)
    assert isinstance(time_constraints[2], Custom)
    assert time_constraints[2].name == "future_datetime"

    assert event["longitude"].constraints[1] == NumericRange(
        min=-180.0,
        max=180.0,
        message="Longitude must be between -180 and 180",
    )
    assert event["description"].optional is True
    assert isinstance(event["category"].constraints[1], OneOf)
    assert len(event["category"].constraints[1].allowed) == 6


@pytest.mark.unit
def test_parse_rule_spec_uses_default_messages() -> None:
    spec = parse_rule_spec(
        "comment",
        {"fields": [{"field": "body", "constraints": [{"kind": "length", "max": 10}]}]},
    )

    assert spec.fields[0].constraints == (Length(max=10),)


@pytest.mark.unit
@pytest.mark.parametrize(
    ("constraint", "match"),
    [
        ({"kind": "between"}, "unsupported constraint kind"),
        ({"kind": "custom", "name": "is_weekend"}, "unknown custom predicate"),
        ({"kind": "pattern", "regex": "(unclosed"}, "invalid regex"),
        ({"kind": "length", "min": 10, "max": 2}, "min must not exceed max"),
        ({"kind": "enum", "allowed": []}, "must list allowed values"),
        ({"kind": "numeric_range", "min": "low"}, "must be a number"),
    ],
)
def test_parse_rule_spec_rejects_invalid_constraints(constraint: dict[str, object], match: str) -> None:
    with pytest.raises(RuleSpecError, match=match):
        parse_rule_spec("broken", {"fields": [{"field": "x", "constraints": [constraint]}]})


@pytest.mark.unit
def test_parse_rule_spec_rejects_duplicate_fields() -> None:
    field = {"field": "x", "constraints": [{"kind": "required"}]}

    with pytest.raises(RuleSpecError, match="declared twice"):
        parse_rule_spec("dup", {"fields": [field, field]})


@pytest.mark.unit
def test_parse_rule_spec_rejects_unknown_sanitizer() -> None:
    with pytest.raises(RuleSpecError, match="unsupported sanitizer"):
        parse_rule_spec(
            "s",
            {"fields": [{"field": "x", "sanitize": ["uppercase"], "constraints": [{"kind": "required"}]}]},
        )


@pytest.mark.unit
def test_load_rule_specs_from_custom_file(tmp_path: Path) -> None:
    path = tmp_path / "specs.yaml"
    path.write_text(
        "rule_specs:\n"
        "  newsletter:\n"
        "    fields:\n"
        "      - field: email\n"
        "        constraints:\n"
        "          - kind: pattern\n"
        "            regex: '.+@.+'\n",
        encoding="utf-8",
    )

    specs = load_rule_specs(file_path=path)

    assert list(specs) == ["newsletter"]
    assert specs["newsletter"].fields[0].constraints == (Pattern(regex=".+@.+"),)


@pytest.mark.unit
def test_load_rule_specs_reports_missing_file(tmp_path: Path) -> None:
    with pytest.raises(RuleSpecError, match="cannot read rule specs"):
        load_rule_specs(file_path=tmp_path / "absent.yaml")
