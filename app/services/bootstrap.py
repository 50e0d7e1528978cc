from __future__ import annotations

from dataclasses import dataclass

from app.api.handlers.deps import ApiDeps
from app.clients.stub import StubStorageClient, SystemClock
from app.domain.contracts import Clock, StorageClient
from app.domain.media import MediaClassifier
from app.domain.routing import StorageRouter
from app.domain.rule_specs import load_rule_specs
from app.domain.rules import RuleEngine
from app.domain.use_cases.ingest import IngestionPipeline
from app.settings import IngestionSettings, ingestion_settings_from_env


@dataclass
class RuntimeContainer:
    settings: IngestionSettings
    clock: Clock
    storage: StorageClient
    pipeline: IngestionPipeline
    api_deps: ApiDeps


def build_runtime_container(
    settings: IngestionSettings | None = None,
    *,
    clock: Clock | None = None,
    storage: StorageClient | None = None,
) -> RuntimeContainer:
    settings = settings or ingestion_settings_from_env()
    clock = clock or SystemClock()
    storage = storage or StubStorageClient(credentials=settings.credentials)

    rule_engine = RuleEngine(
        rule_specs=load_rule_specs(file_path=settings.rule_specs_path),
        clock=clock,
    )
    pipeline = IngestionPipeline(
        rule_engine=rule_engine,
        classifier=MediaClassifier(max_bytes=settings.max_attachment_bytes),
        router=StorageRouter(storage_namespace=settings.storage_namespace),
    )
    api_deps = ApiDeps(
        pipeline=pipeline,
        storage=storage,
    )

    return RuntimeContainer(
        settings=settings,
        clock=clock,
        storage=storage,
        pipeline=pipeline,
        api_deps=api_deps,
    )
