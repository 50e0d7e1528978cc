from __future__ import annotations

from typing import Any, Literal

from pydantic import BaseModel, Field

from app.domain.error_taxonomy import Severity
from app.domain.models import MediaKind


class ErrorResponse(BaseModel):
    detail: str


class HealthResponse(BaseModel):
    status: str
    service: str
    run_id: str


class ReadyResponse(BaseModel):
    status: str
    service: str
    run_id: str
    rule_specs_total: int = Field(ge=0)


class RuleSpecListResponse(BaseModel):
    items: list[str]


class FieldFailureResponse(BaseModel):
    field: str
    reason_kind: str
    severity: Severity = "recoverable"
    offending_value: Any = None
    message: str


class AttachmentFailureResponse(BaseModel):
    attachment_index: int = Field(ge=0)
    reason_kind: Literal["unsupported_media_type", "payload_too_large"]
    severity: Severity = "rejected"
    original_name: str
    # Echoed byte ceiling for payload_too_large.
    limit: int | None = None
    # Supported content-type families for unsupported_media_type, or the
    # allowed encodings when storage would refuse the file format.
    allowed: list[str] | None = None


class RejectionResponse(BaseModel):
    status: Literal["rejected"] = "rejected"
    validation_failures: list[FieldFailureResponse]
    attachment_failures: list[AttachmentFailureResponse]


class RoutingDecisionResponse(BaseModel):
    storage_namespace: str
    object_key: str
    resource_type: MediaKind
    allowed_encodings: list[str]
    storage_ref: str | None = None


class ValidationAcceptedResponse(BaseModel):
    status: Literal["valid"] = "valid"
    fields: dict[str, Any]


class IngestionAcceptedResponse(BaseModel):
    status: Literal["accepted"] = "accepted"
    fields: dict[str, Any]
    routing_decisions: list[RoutingDecisionResponse]
