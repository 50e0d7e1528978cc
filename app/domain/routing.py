from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass, field
import re

from app.domain.ids import new_object_token
from app.domain.models import Attachment, MediaPolicy, PayloadTooLarge, RoutingDecision

DEFAULT_STORAGE_NAMESPACE = "Event-Easy"
FALLBACK_BASE_NAME = "attachment"
MAX_BASE_NAME_LENGTH = 100

UNSAFE_KEY_CHARS_RE = re.compile(r"[^A-Za-z0-9_-]+")


def base_name_without_extension(original_name: str) -> str:
    name = re.split(r"[\\/]", original_name)[-1]
    # Cut at the first dot, so "clip.final.mp4" becomes "clip".
    return name.split(".", maxsplit=1)[0]


def file_encoding(original_name: str) -> str:
    """Lower-cased extension after the last dot, or "" when there is none."""
    name = re.split(r"[\\/]", original_name)[-1]
    _, dot, extension = name.rpartition(".")
    return extension.lower() if dot else ""


def sanitize_base_name(original_name: str) -> str:
    base = UNSAFE_KEY_CHARS_RE.sub("-", base_name_without_extension(original_name)).strip("-")
    base = base[:MAX_BASE_NAME_LENGTH].rstrip("-")
    return base or FALLBACK_BASE_NAME


@dataclass(frozen=True)
class StorageRouter:
    """Decides where an attachment goes without moving any bytes.

    Keys are ``{token}-{base}``. The token is a ULID, so two uploads of the
    same file name in the same millisecond still get distinct keys without
    any shared counter between requests.
    """

    storage_namespace: str = DEFAULT_STORAGE_NAMESPACE
    token_factory: Callable[[], str] = field(default=new_object_token)

    def __post_init__(self) -> None:
        if not self.storage_namespace.strip():
            raise ValueError("storage namespace must not be empty")

    def route(self, attachment: Attachment, policy: MediaPolicy) -> RoutingDecision | PayloadTooLarge:
        if attachment.byte_length > policy.max_bytes:
            return PayloadTooLarge(byte_length=attachment.byte_length, max_bytes=policy.max_bytes)

        object_key = f"{self.token_factory()}-{sanitize_base_name(attachment.original_name)}"
        return RoutingDecision(
            storage_namespace=self.storage_namespace,
            object_key=object_key,
            resource_type=policy.media_kind,
            allowed_encodings=policy.allowed_encodings,
        )
