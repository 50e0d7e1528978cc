import pytest

from app.domain.error_taxonomy import (
    CANONICAL_ERROR_KINDS,
    classify_error,
    is_canonical_error_kind,
    resolve_subsystem_error,
)
from app.domain.errors import MalformedSubmissionError


@pytest.mark.unit
def test_taxonomy_has_exactly_four_kinds() -> None:
    assert set(CANONICAL_ERROR_KINDS) == {
        "validation_failure",
        "unsupported_media_type",
        "payload_too_large",
        "malformed_submission",
    }
    assert is_canonical_error_kind("payload_too_large") is True
    assert is_canonical_error_kind("internal_error") is False


@pytest.mark.unit
def test_severity_distinguishes_recoverable_rejected_and_fatal() -> None:
    assert classify_error("validation_failure") == "recoverable"
    assert classify_error("unsupported_media_type") == "rejected"
    assert classify_error("payload_too_large") == "rejected"
    assert classify_error("malformed_submission") == "fatal"


@pytest.mark.unit
def test_subsystem_mapping_restricts_foreign_kinds() -> None:
    assert resolve_subsystem_error(subsystem="attachments", kind="payload_too_large") == "payload_too_large"
    assert resolve_subsystem_error(subsystem="fields", kind="payload_too_large") == "malformed_submission"
    assert resolve_subsystem_error(subsystem="unknown", kind="validation_failure") == "malformed_submission"  # type: ignore[arg-type]


@pytest.mark.unit
def test_malformed_submission_error_is_tagged() -> None:
    assert MalformedSubmissionError.error_kind == "malformed_submission"
