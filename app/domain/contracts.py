from __future__ import annotations

from datetime import datetime
from typing import Protocol, runtime_checkable

from app.domain.models import RoutingDecision

# Supported content-type families; anything else is unsupported media.
MEDIA_TYPE_FAMILIES = (
    "image/",
    "video/",
)


@runtime_checkable
class Clock(Protocol):
    """Source of "now" for time-dependent constraints.

    Must return a timezone-aware datetime.
    """

    def now(self) -> datetime: ...


@runtime_checkable
class StorageClient(Protocol):
    """Storage provider contract.

    Receives only the addressing decision and raw bytes. The provider owns
    the transfer, enforces ``allowed_encodings`` and returns a location ref.
    """

    def put_object(self, *, decision: RoutingDecision, original_name: str, payload: bytes) -> str: ...
