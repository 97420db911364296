"""Input sanitization and upload validation for the story form."""

import re
from typing import Optional, Sequence

from dreamlity.core.errors import UploadValidationError

DEFAULT_MAX_UPLOAD_BYTES = 10 * 1024 * 1024
DEFAULT_ALLOWED_TYPES = ("image/jpeg", "image/jpg", "image/png", "image/webp")
ALLOWED_EXTENSIONS = re.compile(r"\.(jpg|jpeg|png|webp)$", re.IGNORECASE)

_CONTROL_CHARS = re.compile(r"[\x00-\x1F\x7F-\x9F]")
_UUID = re.compile(r"^[0-9a-f]{8}-[0-9a-f]{4}-4[0-9a-f]{3}-[89ab][0-9a-f]{3}-[0-9a-f]{12}$", re.IGNORECASE)


def sanitize_text_input(value: Optional[str], max_length: int = 1000) -> str:
    """
    Strip control characters, trim and truncate user text.

    Args:
        value: Raw form value
        max_length: Maximum length to keep

    Returns:
        Sanitized text ("" for missing input)
    """
    if not value or not isinstance(value, str):
        return ""
    sanitized = _CONTROL_CHARS.sub("", value).strip()
    return sanitized[:max_length]


def _looks_like_image(data: bytes) -> bool:
    head = data[:4]
    return (
        head[:3] == b"\xff\xd8\xff"  # JPEG
        or head == b"\x89PNG"
        or head == b"RIFF"  # WebP container
    )


def validate_image_upload(
    data: bytes,
    filename: str,
    content_type: str,
    max_size: int = DEFAULT_MAX_UPLOAD_BYTES,
    allowed_types: Sequence[str] = DEFAULT_ALLOWED_TYPES,
) -> None:
    """
    Check an uploaded reference photo.

    Raises:
        UploadValidationError: If size, type, extension or magic bytes are wrong
    """
    if len(data) > max_size:
        raise UploadValidationError(
            f"File {filename} is too large. Maximum size is {round(max_size / (1024 * 1024))}MB."
        )
    if content_type not in allowed_types:
        raise UploadValidationError(
            f"File {filename} has invalid type. Only {', '.join(allowed_types)} are allowed."
        )
    if not ALLOWED_EXTENSIONS.search((filename or "").lower()):
        raise UploadValidationError(f"File {filename} has invalid extension.")
    if len(data) < 4:
        raise UploadValidationError(f"File {filename} appears to be corrupted or too small.")
    if not _looks_like_image(data):
        raise UploadValidationError(f"File {filename} is not a valid image file.")


def is_valid_uuid(value: str) -> bool:
    """True for a version-4 UUID string."""
    return bool(_UUID.match(value or ""))
