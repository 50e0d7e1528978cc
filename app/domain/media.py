from __future__ import annotations

from dataclasses import dataclass

from app.domain.models import Attachment, MediaKind, MediaPolicy, UnsupportedMediaType

DEFAULT_MAX_ATTACHMENT_BYTES = 50 * 1024 * 1024

# Content-type prefix -> media kind and the encodings the storage provider accepts.
MEDIA_CLASSIFICATION_TABLE: tuple[tuple[str, MediaKind, frozenset[str]], ...] = (
    ("video/", MediaKind.VIDEO, frozenset({"mp4", "avi", "mov", "wmv"})),
    ("image/", MediaKind.IMAGE, frozenset({"jpg", "jpeg", "png", "gif", "webp"})),
)


def normalize_content_type(content_type: str | None) -> str:
    if not content_type:
        return ""
    return content_type.split(";", maxsplit=1)[0].strip().lower()


@dataclass(frozen=True)
class MediaClassifier:
    # One ceiling for every media kind.
    max_bytes: int = DEFAULT_MAX_ATTACHMENT_BYTES

    def __post_init__(self) -> None:
        if self.max_bytes <= 0:
            raise ValueError(f"max_bytes must be positive: {self.max_bytes}")

    def classify(self, attachment: Attachment) -> MediaPolicy | UnsupportedMediaType:
        content_type = normalize_content_type(attachment.content_type)
        for prefix, media_kind, encodings in MEDIA_CLASSIFICATION_TABLE:
            # Bare "image/" carries no subtype and is not a usable content type.
            if content_type.startswith(prefix) and len(content_type) > len(prefix):
                return MediaPolicy(
                    media_kind=media_kind,
                    allowed_encodings=encodings,
                    max_bytes=self.max_bytes,
                )
        return UnsupportedMediaType(content_type=attachment.content_type)
