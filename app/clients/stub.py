from __future__ import annotations

from dataclasses import dataclass, field
from datetime import UTC, datetime

from app.domain.errors import StorageRefusedError
from app.domain.models import RoutingDecision
from app.domain.routing import file_encoding
from app.settings import StorageCredentials


@dataclass(frozen=True)
class SystemClock:
    def now(self) -> datetime:
        return datetime.now(UTC)


@dataclass
class StubStorageClient:
    credentials: StorageCredentials = field(default_factory=StorageCredentials)
    writes: list[str] = field(default_factory=list)
    objects: dict[str, bytes] = field(default_factory=dict)

    def put_object(self, *, decision: RoutingDecision, original_name: str, payload: bytes) -> str:
        # Provider-side allowed_formats check.
        extension = file_encoding(original_name)
        if extension not in decision.allowed_encodings:
            allowed = ", ".join(sorted(decision.allowed_encodings))
            raise StorageRefusedError(f"encoding '{extension or '<none>'}' is not allowed, expected one of: {allowed}")
        key = f"{decision.storage_namespace}/{decision.object_key}"
        if key in self.objects:
            raise StorageRefusedError(f"object key already exists: {key}")
        self.writes.append(key)
        self.objects[key] = payload
        if self.credentials.cloud_name:
            return f"stub://{self.credentials.cloud_name}/{key}"
        return f"stub://{key}"
