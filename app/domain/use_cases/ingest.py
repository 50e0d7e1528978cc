from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass
import logging

from app.domain.contracts import MEDIA_TYPE_FAMILIES
from app.domain.error_taxonomy import resolve_subsystem_error
from app.domain.errors import MalformedSubmissionError
from app.domain.media import MediaClassifier
from app.domain.models import (
    Attachment,
    AttachmentFailure,
    IngestionAccepted,
    IngestionOutcome,
    IngestionRejected,
    PayloadTooLarge,
    RoutingDecision,
    Submission,
    UnsupportedMediaType,
)
from app.domain.routing import StorageRouter
from app.domain.rules import RuleEngine

COMPONENT_ID = "domain.submission.ingest"

logger = logging.getLogger("ingestion")


@dataclass(frozen=True)
class IngestionPipeline:
    rule_engine: RuleEngine
    classifier: MediaClassifier
    router: StorageRouter

    def ingest(self, submission: Submission, rule_spec_name: str) -> IngestionOutcome:
        _check_submission_shape(submission)
        validation = self.rule_engine.evaluate(rule_spec_name, submission)

        decisions: list[RoutingDecision] = []
        oversized: list[AttachmentFailure] = []
        unsupported: list[AttachmentFailure] = []
        # Every attachment is evaluated even after a failure so the caller
        # sees the complete failure set in one round trip.
        for index, attachment in enumerate(submission.attachments):
            policy = self.classifier.classify(attachment)
            if isinstance(policy, UnsupportedMediaType):
                unsupported.append(
                    AttachmentFailure(
                        attachment_index=index,
                        error_kind=resolve_subsystem_error(subsystem="attachments", kind=policy.error_kind),
                        detail=MEDIA_TYPE_FAMILIES,
                        original_name=attachment.original_name,
                    )
                )
                continue

            routed = self.router.route(attachment, policy)
            if isinstance(routed, PayloadTooLarge):
                oversized.append(
                    AttachmentFailure(
                        attachment_index=index,
                        error_kind=resolve_subsystem_error(subsystem="attachments", kind=routed.error_kind),
                        detail=routed.max_bytes,
                        original_name=attachment.original_name,
                    )
                )
                continue
            decisions.append(routed)

        outcome: IngestionOutcome
        if validation.failures or oversized or unsupported:
            outcome = IngestionRejected(
                validation_failures=validation.failures,
                oversized_attachments=tuple(oversized),
                unsupported_attachments=tuple(unsupported),
            )
        else:
            outcome = IngestionAccepted(
                validated_fields=validation.validated_fields,
                routing_decisions=tuple(decisions),
            )

        logger.info(
            "submission ingested",
            extra={
                "component": COMPONENT_ID,
                "rule_spec": rule_spec_name,
                "outcome": "accepted" if isinstance(outcome, IngestionAccepted) else "rejected",
                "field_failures": len(validation.failures),
                "attachment_failures": len(oversized) + len(unsupported),
                "attachments_total": len(submission.attachments),
            },
        )
        return outcome


def _check_submission_shape(submission: object) -> None:
    if not isinstance(submission, Submission):
        raise MalformedSubmissionError("submission must be a Submission")
    if not isinstance(submission.fields, Mapping):
        raise MalformedSubmissionError("submission fields must be a mapping")
    if not all(isinstance(key, str) for key in submission.fields):
        raise MalformedSubmissionError("submission field names must be strings")
    if not isinstance(submission.attachments, (tuple, list)):
        raise MalformedSubmissionError("submission attachments must be a sequence")
    for index, attachment in enumerate(submission.attachments):
        if not isinstance(attachment, Attachment):
            raise MalformedSubmissionError(f"attachment {index} is not an Attachment")
        if not isinstance(attachment.original_name, str):
            raise MalformedSubmissionError(f"attachment {index} has no original name")
        if isinstance(attachment.byte_length, bool) or not isinstance(attachment.byte_length, int):
            raise MalformedSubmissionError(f"attachment {index} byte length must be an integer")
        if attachment.byte_length < 0:
            raise MalformedSubmissionError(f"attachment {index} byte length must not be negative")
        if attachment.content_type is not None and not isinstance(attachment.content_type, str):
            raise MalformedSubmissionError(f"attachment {index} content type must be a string")
