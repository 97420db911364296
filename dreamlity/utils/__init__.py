"""Utility functions for Dreamlity."""

from dreamlity.utils.io_utils import safe_file_name
from dreamlity.utils.security import is_valid_uuid, sanitize_text_input, validate_image_upload
from dreamlity.utils.text_utils import estimate_spoken_duration, strip_audio_tags, strip_code_fences

__all__ = [
    "safe_file_name",
    "is_valid_uuid",
    "sanitize_text_input",
    "validate_image_upload",
    "estimate_spoken_duration",
    "strip_audio_tags",
    "strip_code_fences",
]
