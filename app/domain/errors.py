from __future__ import annotations


class DomainError(Exception):
    pass


class MalformedSubmissionError(DomainError):
    """Submission cannot be interpreted at all; fatal for the single request."""

    error_kind = "malformed_submission"


class RuleSpecError(DomainError):
    pass


class StorageRefusedError(DomainError):
    """Storage collaborator rejected a routed object."""
