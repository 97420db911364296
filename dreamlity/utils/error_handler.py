"""Error Handler - provides readable error messages and graceful degradation hints."""

from typing import Optional


def format_error_message(
    operation: str,
    error: Exception,
    context: Optional[dict] = None,
    suggestion: Optional[str] = None,
) -> str:
    """
    Format a readable error message.

    Args:
        operation: What operation was being performed (e.g., "Synthesizing narration chunk")
        error: The exception that occurred
        context: Additional context (e.g., {"story_id": "...", "chunk": 3})
        suggestion: Optional suggestion for how to fix the issue

    Returns:
        Formatted error message
    """
    error_type = type(error).__name__

    context_str = ""
    if context:
        context_parts = [f"{k}={v}" for k, v in context.items()]
        context_str = f" ({', '.join(context_parts)})"

    message = f"❌ {operation} failed{context_str}\n"
    message += f"   Error: {error_type}: {error}"

    if suggestion:
        message += f"\n   💡 Suggestion: {suggestion}"

    return message


def get_fallback_suggestion(service: str, error: Exception) -> Optional[str]:
    """
    Get a suggestion for how a service failure is handled.

    Args:
        service: Service name ("TTS", "Image Generation", "LLM", "Storage")
        error: The exception

    Returns:
        Suggestion string or None
    """
    error_msg = str(error).lower()

    if service == "TTS":
        if "disabled" in error_msg:
            return "Set ENABLE_ELEVENLABS_AUDIO=1 to synthesize narration. Story is saved without audio."
        elif "api key" in error_msg or "not configured" in error_msg:
            return "Check ELEVENLABS_API_KEY in .env file. This chunk will have no audio."
        elif "rate limit" in error_msg or "429" in error_msg or "quota" in error_msg:
            return "ElevenLabs rate limit or quota exceeded. Wait and regenerate. This chunk will have no audio."
        elif "network" in error_msg or "timeout" in error_msg:
            return "Network error. Check your internet connection. This chunk will have no audio."
        else:
            return "Speech synthesis failed. This chunk will have no audio."

    elif service == "Image Generation":
        if "api key" in error_msg or "not configured" in error_msg:
            return "Check OPENAI_API_KEY in .env file. Using placeholder image."
        elif "rate limit" in error_msg or "429" in error_msg:
            return "Rate limit exceeded. Wait a few minutes and try again. Using placeholder image."
        elif "safety" in error_msg or "moderation" in error_msg:
            return "Prompt was rejected by the image model. Using placeholder image."
        else:
            return "Image generation failed. Using placeholder image."

    elif service == "LLM":
        if "api key" in error_msg or "not configured" in error_msg:
            return "Check your OPENAI_API_KEY in .env file. Falling back to a template story."
        elif "rate limit" in error_msg or "429" in error_msg:
            return "OpenAI rate limit exceeded. Falling back to a template story."
        elif "json" in error_msg or "expecting" in error_msg or "validation" in error_msg:
            return "Model returned malformed JSON. Falling back to a template story."
        else:
            return "LLM generation failed. Falling back to a template story."

    elif service == "Storage":
        if "permission" in error_msg:
            return "Check write permissions for STORAGE_PATH and OBJECT_STORE_PATH."
        elif "no space" in error_msg:
            return "Disk is full. Free space and regenerate."
        else:
            return "Storage failed. The story was not saved."

    return None
