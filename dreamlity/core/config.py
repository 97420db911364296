"""Application configuration using pydantic-settings."""

from typing import Optional

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """
    Application settings loaded from environment variables.

    All settings can be configured via environment variables or a .env file.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # ========================================================================
    # Application Settings
    # ========================================================================
    app_name: str = Field(default="Dreamlity Story Studio", description="Application name")
    app_version: str = Field(default="1.0.0", description="Application version")
    debug: bool = Field(default=False, description="Debug mode")
    log_level: str = Field(default="INFO", description="Logging level (DEBUG, INFO, WARNING, ERROR)")
    log_file: Optional[str] = Field(default=None, description="Optional path to a rotating log file")

    # ========================================================================
    # LLM Settings (story planning and writing)
    # ========================================================================
    openai_api_key: Optional[str] = Field(default=None, description="OpenAI API key")
    planner_model: str = Field(default="gpt-4o-mini", description="LLM model for planning the story arc")
    writer_model: str = Field(default="gpt-4o-mini", description="LLM model for writing scene prose")
    use_llm_for_story: bool = Field(
        default=True,
        description="Use the LLM for planning and writing (falls back to template stories when disabled or failing)",
    )

    # ========================================================================
    # Image Generation Settings
    # ========================================================================
    use_image_generation: bool = Field(
        default=True, description="Generate illustrations (placeholder images are used when disabled)"
    )
    image_model: str = Field(default="gpt-image-1", description="OpenAI image model for illustrations")
    image_size: str = Field(default="1024x1024", description="Illustration size (square picture-book pages)")
    placeholder_image_url: str = Field(
        default="/placeholder-image.svg", description="URL used for scenes whose illustration failed"
    )

    # ========================================================================
    # TTS (Text-to-Speech) Settings
    # ========================================================================
    elevenlabs_api_key: Optional[str] = Field(default=None, description="ElevenLabs API key")
    elevenlabs_api_url: str = Field(default="https://api.elevenlabs.io/v1", description="ElevenLabs API base URL")
    elevenlabs_model: str = Field(default="eleven_v3", description="ElevenLabs model (eleven_v3 understands [tags])")
    elevenlabs_output_format: str = Field(default="mp3_44100_128", description="ElevenLabs output format")
    enable_elevenlabs_audio: bool = Field(
        default=False,
        description="Master switch for calling ElevenLabs (narration chunks become placeholders when off)",
    )
    tts_timeout_seconds: float = Field(default=60.0, description="Timeout for a single TTS request")
    elevenlabs_voice_design_model: str = Field(
        default="eleven_ttv_v3", description="ElevenLabs text-to-voice model used to design narrator voices"
    )
    designed_voice_name: str = Field(default="Dreamlity Voice", description="Default name for saved designed voices")

    # ========================================================================
    # Narration Settings
    # ========================================================================
    narration_max_chunk_chars: int = Field(
        default=3000, description="Character budget per synthesis request (documented ElevenLabs v3 limit)"
    )
    narration_pack_chunks: bool = Field(
        default=False,
        description="Merge short scenes and hard-split long ones to fit the chunk budget (default: one chunk per scene)",
    )
    narration_chunk_delay_seconds: float = Field(
        default=0.1, description="Delay between sequential chunk synthesis calls"
    )

    # ========================================================================
    # Rate Limiting Settings
    # ========================================================================
    enable_rate_limiting: bool = Field(default=True, description="Enable rate limiting for API requests")
    request_rate_limit: int = Field(default=10, description="Story generation requests per client per window")
    request_rate_window_seconds: float = Field(default=60.0, description="Rate limit window in seconds")
    elevenlabs_rate_limit: int = Field(default=100, description="ElevenLabs API calls per minute")

    # ========================================================================
    # Upload Settings
    # ========================================================================
    max_upload_bytes: int = Field(default=10 * 1024 * 1024, description="Maximum reference photo size (10MB)")
    allowed_upload_types: list[str] = Field(
        default=["image/jpeg", "image/jpg", "image/png", "image/webp"],
        description="Allowed MIME types for the reference photo",
    )
    max_text_input_length: int = Field(default=1000, description="Maximum length of name/dream/personality inputs")

    # ========================================================================
    # Storage Settings
    # ========================================================================
    storage_path: str = Field(default="storage/stories", description="Storage path for story records")
    object_store_path: str = Field(
        default="public/generated", description="Directory backing the local object store"
    )
    public_base_url: str = Field(
        default="/generated", description="URL prefix under which stored objects are served"
    )


# Global settings instance
settings = Settings()
