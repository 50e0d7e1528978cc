from __future__ import annotations

from dataclasses import dataclass
from datetime import UTC, datetime, timedelta

import pytest

from app.domain.media import MediaClassifier
from app.domain.routing import StorageRouter
from app.domain.rule_specs import load_rule_specs
from app.domain.rules import RuleEngine
from app.domain.use_cases.ingest import IngestionPipeline

FROZEN_NOW = datetime(2026, 10, 19, 12, 0, tzinfo=UTC)


@dataclass
class FixedClock:
    current: datetime = FROZEN_NOW

    def now(self) -> datetime:
        return self.current

    def advance(self, delta: timedelta) -> None:
        self.current = self.current + delta


class CountingTokens:
    def __init__(self) -> None:
        self.issued = 0

    def __call__(self) -> str:
        self.issued += 1
        return f"T{self.issued:04d}"


@pytest.fixture
def clock() -> FixedClock:
    return FixedClock()


@pytest.fixture
def rule_engine(clock: FixedClock) -> RuleEngine:
    return RuleEngine(rule_specs=load_rule_specs(), clock=clock)


@pytest.fixture
def pipeline(rule_engine: RuleEngine) -> IngestionPipeline:
    return IngestionPipeline(
        rule_engine=rule_engine,
        classifier=MediaClassifier(),
        router=StorageRouter(storage_namespace="Event-Easy"),
    )


@pytest.fixture
def event_fields() -> dict[str, object]:
    return {
        "eventName": "Expo Day",
        "time": (FROZEN_NOW + timedelta(hours=1)).isoformat(),
        "category": "Social & Cultural Events",
        "pattern": "weekly",
        "longitude": 38.7,
        "latitude": 9.0,
    }
