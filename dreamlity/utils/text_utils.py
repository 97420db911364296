"""Text utility functions for LLM output and narration text."""

# This module is part of dreamlity.utils package

import re

_TAG_PATTERN = re.compile(r"\[([^\]]+)\]\s*")
_FENCE_OPEN = re.compile(r"^```(?:json)?\s*", re.IGNORECASE)
_FENCE_CLOSE = re.compile(r"\s*```$")


def strip_code_fences(text: str) -> str:
    """
    Remove a surrounding markdown code fence from LLM output.

    Args:
        text: Raw model output, possibly wrapped in ```json ... ```.

    Returns:
        The inner text, stripped.
    """
    text = (text or "").strip()
    text = _FENCE_OPEN.sub("", text)
    text = _FENCE_CLOSE.sub("", text)
    return text.strip()


def strip_audio_tags(text: str) -> str:
    """Remove bracketed audio directives so narration can be shown as plain text."""
    return _TAG_PATTERN.sub("", text).strip()


def estimate_spoken_duration(text: str, words_per_minute: int = 150) -> int:
    """
    Estimate the spoken duration of text in seconds.

    Args:
        text: Text to estimate duration for. Audio tags are not counted.
        words_per_minute: Average speaking rate (default 150 WPM).

    Returns:
        Estimated duration in seconds.
    """
    word_count = len(strip_audio_tags(text).split())
    minutes = word_count / words_per_minute
    return int(minutes * 60)
