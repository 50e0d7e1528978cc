from __future__ import annotations

from collections.abc import Mapping
from typing import Literal

# Canonical failure vocabulary shared by field validation and media routing.
ErrorKind = Literal[
    "validation_failure",
    "unsupported_media_type",
    "payload_too_large",
    "malformed_submission",
]

Severity = Literal["recoverable", "rejected", "fatal"]

Subsystem = Literal["fields", "attachments"]

CANONICAL_ERROR_KINDS: tuple[ErrorKind, ...] = (
    "validation_failure",
    "unsupported_media_type",
    "payload_too_large",
    "malformed_submission",
)

# Caller can fix the offending field and resubmit the same request.
RECOVERABLE_ERROR_KINDS: frozenset[ErrorKind] = frozenset({"validation_failure"})

# Whole request is abandoned, no partial result is produced.
FATAL_ERROR_KINDS: frozenset[ErrorKind] = frozenset({"malformed_submission"})

# Subsystem-specific allowlist. A kind outside this map is normalized
# to malformed_submission by resolve_subsystem_error().
SUBSYSTEM_ERROR_MAP: Mapping[Subsystem, frozenset[ErrorKind]] = {
    "fields": frozenset(
        {
            "validation_failure",
            "malformed_submission",
        }
    ),
    "attachments": frozenset(
        {
            "unsupported_media_type",
            "payload_too_large",
            "malformed_submission",
        }
    ),
}


def is_canonical_error_kind(kind: str) -> bool:
    return kind in CANONICAL_ERROR_KINDS


def classify_error(kind: ErrorKind) -> Severity:
    if kind in RECOVERABLE_ERROR_KINDS:
        return "recoverable"
    if kind in FATAL_ERROR_KINDS:
        return "fatal"
    return "rejected"


def resolve_subsystem_error(*, subsystem: Subsystem, kind: str) -> ErrorKind:
    allowed = SUBSYSTEM_ERROR_MAP.get(subsystem, frozenset({"malformed_submission"}))
    if kind in allowed and is_canonical_error_kind(kind):
        return kind  # type: ignore[return-value]
    return "malformed_submission"
