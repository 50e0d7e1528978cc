from pathlib import Path

import pytest

from app.domain.rule_specs import DEFAULT_RULE_SPECS_PATH
from app.services.bootstrap import build_runtime_container
from app.settings import IngestionSettings, StorageCredentials, ingestion_settings_from_env


@pytest.mark.unit
def test_ingestion_settings_read_from_env(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
    specs = tmp_path / "specs.yaml"
    monkeypatch.setenv("INGEST_STORAGE_NAMESPACE", "Staging-Media")
    monkeypatch.setenv("INGEST_MAX_ATTACHMENT_BYTES", "1048576")
    monkeypatch.setenv("INGEST_RULE_SPECS_PATH", str(specs))
    monkeypatch.setenv("STORAGE_CLOUD_NAME", "demo")
    monkeypatch.setenv("STORAGE_API_KEY", "key")
    monkeypatch.setenv("STORAGE_API_SECRET", "shh")

    settings = ingestion_settings_from_env()

    assert settings == IngestionSettings(
        storage_namespace="Staging-Media",
        max_attachment_bytes=1048576,
        rule_specs_path=specs,
        credentials=StorageCredentials(cloud_name="demo", api_key="key", api_secret="shh"),
    )
    assert "shh" not in repr(settings.credentials)


@pytest.mark.unit
def test_ingestion_settings_fall_back_on_bad_values(monkeypatch: pytest.MonkeyPatch) -> None:
    for name in ("INGEST_RULE_SPECS_PATH", "STORAGE_CLOUD_NAME", "STORAGE_API_KEY", "STORAGE_API_SECRET"):
        monkeypatch.delenv(name, raising=False)
    monkeypatch.setenv("INGEST_STORAGE_NAMESPACE", "   ")
    monkeypatch.setenv("INGEST_MAX_ATTACHMENT_BYTES", "fifty megs")

    settings = ingestion_settings_from_env()

    assert settings == IngestionSettings()
    assert settings.rule_specs_path == DEFAULT_RULE_SPECS_PATH


@pytest.mark.unit
def test_runtime_container_wires_settings_into_pipeline() -> None:
    container = build_runtime_container(IngestionSettings(storage_namespace="Tenant-A", max_attachment_bytes=10))

    assert container.pipeline.router.storage_namespace == "Tenant-A"
    assert container.pipeline.classifier.max_bytes == 10
    assert "event-creation" in container.pipeline.rule_engine.rule_spec_names
    assert container.api_deps.pipeline is container.pipeline
