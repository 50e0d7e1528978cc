from __future__ import annotations

from dataclasses import dataclass

from app.domain.contracts import StorageClient
from app.domain.use_cases.ingest import IngestionPipeline


@dataclass(frozen=True)
class ApiDeps:
    pipeline: IngestionPipeline
    storage: StorageClient
