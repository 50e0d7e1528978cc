from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path

from app.domain.media import DEFAULT_MAX_ATTACHMENT_BYTES
from app.domain.routing import DEFAULT_STORAGE_NAMESPACE
from app.domain.rule_specs import DEFAULT_RULE_SPECS_PATH


@dataclass(frozen=True)
class StorageCredentials:
    cloud_name: str | None = None
    api_key: str | None = None
    api_secret: str | None = None

    def __repr__(self) -> str:
        secret = "***" if self.api_secret else None
        return f"StorageCredentials(cloud_name={self.cloud_name!r}, api_key={self.api_key!r}, api_secret={secret!r})"


@dataclass(frozen=True)
class IngestionSettings:
    storage_namespace: str = DEFAULT_STORAGE_NAMESPACE
    max_attachment_bytes: int = DEFAULT_MAX_ATTACHMENT_BYTES
    rule_specs_path: Path = DEFAULT_RULE_SPECS_PATH
    credentials: StorageCredentials = StorageCredentials()


def ingestion_settings_from_env() -> IngestionSettings:
    rule_specs_path = os.getenv("INGEST_RULE_SPECS_PATH")
    return IngestionSettings(
        storage_namespace=_env_str("INGEST_STORAGE_NAMESPACE", DEFAULT_STORAGE_NAMESPACE),
        max_attachment_bytes=_env_int("INGEST_MAX_ATTACHMENT_BYTES", DEFAULT_MAX_ATTACHMENT_BYTES),
        rule_specs_path=Path(rule_specs_path) if rule_specs_path else DEFAULT_RULE_SPECS_PATH,
        credentials=StorageCredentials(
            cloud_name=os.getenv("STORAGE_CLOUD_NAME"),
            api_key=os.getenv("STORAGE_API_KEY"),
            api_secret=os.getenv("STORAGE_API_SECRET"),
        ),
    )


def _env_str(name: str, default: str) -> str:
    value = os.getenv(name)
    if value is None or not value.strip():
        return default
    return value.strip()


def _env_int(name: str, default: int) -> int:
    value = os.getenv(name)
    if value is None:
        return default

    try:
        parsed = int(value)
    except ValueError:
        return default

    return parsed if parsed > 0 else default
