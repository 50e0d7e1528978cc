from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass
import logging

from app.api.handlers.deps import ApiDeps
from app.api.schemas import (
    AttachmentFailureResponse,
    FieldFailureResponse,
    IngestionAcceptedResponse,
    RejectionResponse,
    RoutingDecisionResponse,
    ValidationAcceptedResponse,
)
from app.domain.error_taxonomy import classify_error
from app.domain.models import Attachment, IngestionAccepted, IngestionRejected, Submission
from app.domain.routing import file_encoding

COMPONENT_ID = "api.ingest_submission"

logger = logging.getLogger("ingestion")


@dataclass(frozen=True)
class UploadedMedia:
    filename: str
    content_type: str | None
    payload: bytes


async def validate_fields_handler(
    *,
    rule_spec_name: str,
    fields: Mapping[str, object],
    api_deps: ApiDeps,
) -> ValidationAcceptedResponse | RejectionResponse:
    outcome = api_deps.pipeline.ingest(Submission(fields=fields), rule_spec_name)
    if isinstance(outcome, IngestionRejected):
        return build_rejection_response(outcome)
    return ValidationAcceptedResponse(fields=dict(outcome.validated_fields))


async def ingest_submission_handler(
    *,
    rule_spec_name: str,
    fields: Mapping[str, object],
    uploads: list[UploadedMedia],
    api_deps: ApiDeps,
) -> IngestionAcceptedResponse | RejectionResponse:
    submission = Submission(
        fields=fields,
        attachments=tuple(
            Attachment(
                content_type=upload.content_type,
                byte_length=len(upload.payload),
                original_name=upload.filename,
            )
            for upload in uploads
        ),
    )
    outcome = api_deps.pipeline.ingest(submission, rule_spec_name)
    if isinstance(outcome, IngestionRejected):
        return build_rejection_response(outcome)
    refused = _refused_encodings(outcome=outcome, uploads=uploads)
    if refused:
        logger.info(
            "submission refused before storage",
            extra={
                "component": COMPONENT_ID,
                "rule_spec": rule_spec_name,
                "outcome": "rejected",
                "attachment_failures": len(refused),
                "attachments_total": len(uploads),
            },
        )
        return RejectionResponse(validation_failures=[], attachment_failures=refused)
    return _store_accepted(outcome=outcome, uploads=uploads, api_deps=api_deps)


def _refused_encodings(
    *,
    outcome: IngestionAccepted,
    uploads: list[UploadedMedia],
) -> list[AttachmentFailureResponse]:
    # Checked for every upload before the first put_object so a refusal
    # never leaves earlier objects behind in storage.
    refused: list[AttachmentFailureResponse] = []
    for index, (decision, upload) in enumerate(zip(outcome.routing_decisions, uploads, strict=True)):
        if file_encoding(upload.filename) in decision.allowed_encodings:
            continue
        refused.append(
            AttachmentFailureResponse(
                attachment_index=index,
                reason_kind="unsupported_media_type",
                severity=classify_error("unsupported_media_type"),
                original_name=upload.filename,
                allowed=sorted(decision.allowed_encodings),
            )
        )
    return refused


def _store_accepted(
    *,
    outcome: IngestionAccepted,
    uploads: list[UploadedMedia],
    api_deps: ApiDeps,
) -> IngestionAcceptedResponse:
    decisions: list[RoutingDecisionResponse] = []
    # Decisions are positionally aligned with uploads.
    for decision, upload in zip(outcome.routing_decisions, uploads, strict=True):
        storage_ref = api_deps.storage.put_object(
            decision=decision,
            original_name=upload.filename,
            payload=upload.payload,
        )
        decisions.append(
            RoutingDecisionResponse(
                storage_namespace=decision.storage_namespace,
                object_key=decision.object_key,
                resource_type=decision.resource_type,
                allowed_encodings=sorted(decision.allowed_encodings),
                storage_ref=storage_ref,
            )
        )
    return IngestionAcceptedResponse(
        fields=dict(outcome.validated_fields),
        routing_decisions=decisions,
    )


def build_rejection_response(outcome: IngestionRejected) -> RejectionResponse:
    attachment_failures: list[AttachmentFailureResponse] = []
    for failure in outcome.attachment_failures:
        if failure.error_kind == "payload_too_large":
            attachment_failures.append(
                AttachmentFailureResponse(
                    attachment_index=failure.attachment_index,
                    reason_kind="payload_too_large",
                    severity=classify_error(failure.error_kind),
                    original_name=failure.original_name,
                    limit=failure.detail if isinstance(failure.detail, int) else None,
                )
            )
        else:
            attachment_failures.append(
                AttachmentFailureResponse(
                    attachment_index=failure.attachment_index,
                    reason_kind="unsupported_media_type",
                    severity=classify_error(failure.error_kind),
                    original_name=failure.original_name,
                    allowed=list(failure.detail) if isinstance(failure.detail, tuple) else None,
                )
            )

    return RejectionResponse(
        validation_failures=[
            FieldFailureResponse(
                field=failure.field,
                reason_kind=failure.message_kind,
                severity=classify_error(failure.error_kind),
                offending_value=failure.rejected_value,
                message=failure.message,
            )
            for failure in outcome.validation_failures
        ],
        attachment_failures=attachment_failures,
    )
