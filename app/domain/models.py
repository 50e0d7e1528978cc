from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from enum import StrEnum

from app.domain.error_taxonomy import ErrorKind


class MediaKind(StrEnum):
    IMAGE = "image"
    VIDEO = "video"


@dataclass(frozen=True)
class Attachment:
    content_type: str | None
    byte_length: int
    original_name: str


@dataclass(frozen=True)
class Submission:
    fields: Mapping[str, object]
    attachments: tuple[Attachment, ...] = ()


@dataclass(frozen=True)
class FieldFailure:
    field: str
    message_kind: str
    rejected_value: object
    message: str = ""
    error_kind: ErrorKind = "validation_failure"


@dataclass(frozen=True)
class ValidationResult:
    failures: tuple[FieldFailure, ...] = ()
    validated_fields: Mapping[str, object] = field(default_factory=dict)

    @property
    def is_valid(self) -> bool:
        return not self.failures


@dataclass(frozen=True)
class MediaPolicy:
    media_kind: MediaKind
    allowed_encodings: frozenset[str]
    max_bytes: int


@dataclass(frozen=True)
class UnsupportedMediaType:
    content_type: str | None
    error_kind: ErrorKind = "unsupported_media_type"


@dataclass(frozen=True)
class PayloadTooLarge:
    byte_length: int
    max_bytes: int
    error_kind: ErrorKind = "payload_too_large"


@dataclass(frozen=True)
class RoutingDecision:
    storage_namespace: str
    object_key: str
    resource_type: MediaKind
    allowed_encodings: frozenset[str]


@dataclass(frozen=True)
class AttachmentFailure:
    """Media rejection keyed by the attachment's position in the submission.

    ``detail`` echoes the byte limit for ``payload_too_large`` and the
    supported content-type families for ``unsupported_media_type``.
    """

    attachment_index: int
    error_kind: ErrorKind
    detail: int | tuple[str, ...]
    original_name: str = ""


@dataclass(frozen=True)
class IngestionAccepted:
    validated_fields: Mapping[str, object]
    routing_decisions: tuple[RoutingDecision, ...]


@dataclass(frozen=True)
class IngestionRejected:
    validation_failures: tuple[FieldFailure, ...] = ()
    oversized_attachments: tuple[AttachmentFailure, ...] = ()
    unsupported_attachments: tuple[AttachmentFailure, ...] = ()

    @property
    def attachment_failures(self) -> tuple[AttachmentFailure, ...]:
        return tuple(
            sorted(
                self.oversized_attachments + self.unsupported_attachments,
                key=lambda failure: failure.attachment_index,
            )
        )


IngestionOutcome = IngestionAccepted | IngestionRejected
