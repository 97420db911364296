"""Pydantic models and schemas for the story generation pipeline."""

from datetime import datetime, timezone
from enum import Enum
from typing import Any, Optional

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, field_validator, model_validator
from pydantic.alias_generators import to_camel


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


# ============================================================================
# Enums
# ============================================================================


class NarrationMode(str, Enum):
    """Phrasing template wrapping each scene's caption."""

    NARRATOR = "narrator"
    PLAYFUL = "playful"
    EPIC = "epic"


class Pace(str, Enum):
    """Story-wide narration speed."""

    SLOW = "slow"
    NORMAL = "normal"
    FAST = "fast"


class VoicePreset(str, Enum):
    """Voice preset chosen on the story form."""

    WARM_NARRATOR = "warm_narrator"
    PLAYFUL_HERO = "playful_hero"
    EPIC_GUARDIAN = "epic_guardian"

    @property
    def narration_mode(self) -> NarrationMode:
        if self is VoicePreset.PLAYFUL_HERO:
            return NarrationMode.PLAYFUL
        if self is VoicePreset.EPIC_GUARDIAN:
            return NarrationMode.EPIC
        return NarrationMode.NARRATOR


class ReadingLevel(str, Enum):
    """Target reading level for the written prose."""

    EARLY = "early"
    PRIMARY = "primary"
    PRETEEN = "preteen"


class StoryLength(str, Enum):
    """Story length, mapped to a scene count."""

    SHORT = "short"
    STANDARD = "standard"
    EPIC = "epic"

    @property
    def scene_count(self) -> int:
        return {"short": 4, "standard": 6, "epic": 9}[self.value]


class ImageStyle(str, Enum):
    """Illustration style."""

    WATERCOLOR = "watercolor"
    COMIC = "comic"
    PAPER_CUT = "paper_cut"
    REALISTIC = "realistic"
    STORYBOOK = "storybook"


# ============================================================================
# Story Writer Models
# ============================================================================


class ScenePlan(BaseModel):
    """One planned beat of the story arc."""

    model_config = ConfigDict(coerce_numbers_to_str=True)

    id: str = Field(..., description="Scene identifier, e.g. '1'")
    title: str = Field(default="", description="Short scene title")
    caption: str = Field(default="", description="One caption that could sit under an illustration")
    description: str = Field(default="", description="1-2 sentences describing what happens")
    illustration_prompt: str = Field(default="", description="Visual description for the illustrator")

    @field_validator("title", "caption", "description", "illustration_prompt", mode="before")
    @classmethod
    def blank_nulls(cls, value: Any) -> Any:
        return "" if value is None else value


class StoryPlan(BaseModel):
    """Planned story arc."""

    scenes: list[ScenePlan] = Field(default_factory=list, description="Planned scenes in order")

    @model_validator(mode="before")
    @classmethod
    def number_scenes(cls, data: Any) -> Any:
        return _number_scenes(data)


class StoryScene(BaseModel):
    """A written scene: caption, prose body and a coarse emotion hint."""

    model_config = ConfigDict(frozen=True, coerce_numbers_to_str=True)

    id: str = Field(..., description="Scene identifier, unique within a story")
    title: str = Field(default="", description="Short display title (not narrated)")
    caption: str = Field(default="", description="Short sentence read before the body")
    text: str = Field(default="", description="Body prose, one or more sentences")
    emotion_hint: str = Field(
        default="",
        validation_alias=AliasChoices("emotion_hint", "emotionHint"),
        description="Free-text tone label (excited, serious, gentle, ...)",
    )

    @field_validator("title", "caption", "text", "emotion_hint", mode="before")
    @classmethod
    def blank_nulls(cls, value: Any) -> Any:
        return "" if value is None else value


class Story(BaseModel):
    """Written picture-book story."""

    title: str = Field(default="", description="Picture-book title (filled in by the writer when blank)")
    moral: str = Field(default="", description="Short positive moral")
    scenes: list[StoryScene] = Field(default_factory=list, description="Scenes in presentation order")

    @model_validator(mode="before")
    @classmethod
    def number_scenes(cls, data: Any) -> Any:
        return _number_scenes(data)

    @field_validator("title", "moral", mode="before")
    @classmethod
    def blank_nulls(cls, value: Any) -> Any:
        return "" if value is None else value


# ============================================================================
# Audio Models
# ============================================================================


class VoiceSettings(BaseModel):
    """ElevenLabs voice settings."""

    stability: float = Field(default=0.55, ge=0.0, le=1.0)
    similarity_boost: float = Field(default=0.8, ge=0.0, le=1.0)
    style: float = Field(default=0.25, ge=0.0, le=1.0)
    use_speaker_boost: bool = Field(default=True)


class NarrationKnobs(BaseModel):
    """Simplified audio knobs (0-100 sliders plus pace)."""

    energy: int = Field(default=70, ge=0, le=100)
    loudness: int = Field(default=80, ge=0, le=100)
    guidance: int = Field(default=35, ge=0, le=100)
    pace: Pace = Field(default=Pace.NORMAL)

    def to_voice_settings(self) -> VoiceSettings:
        """Map slider values onto ElevenLabs v3 voice settings.

        v3 only accepts stability values of 0.0, 0.5 or 1.0.
        """
        if self.energy < 33:
            stability = 0.0
        elif self.energy < 66:
            stability = 0.5
        else:
            stability = 1.0
        return VoiceSettings(
            stability=stability,
            similarity_boost=_clamp(self.loudness / 100, 0.6, 1.0),
            style=_clamp(self.guidance / 100, 0.1, 1.0),
            use_speaker_boost=True,
        )


class AudioResult(BaseModel):
    """Result of synthesizing one chunk. Failed chunks carry an empty public_url."""

    file_name: str
    public_url: str = ""
    voice_id: str
    model: str
    file_size: int = 0
    error: Optional[str] = None


# ============================================================================
# API Request/Response Models
# ============================================================================


class ApiModel(BaseModel):
    """Base for payloads exchanged with the web client (camelCase on the wire)."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class GenerateStoryRequest(ApiModel):
    """Parsed story form."""

    name: str = Field(..., min_length=1, description="Hero name")
    dream: str = Field(..., min_length=1, description="What the hero dreams of becoming")
    personality: str = Field(default="", description="Personality traits")
    voice_preset: VoicePreset = Field(default=VoicePreset.WARM_NARRATOR)
    reading_level: ReadingLevel = Field(default=ReadingLevel.PRIMARY)
    story_length: StoryLength = Field(default=StoryLength.STANDARD)
    image_style: ImageStyle = Field(default=ImageStyle.STORYBOOK)
    is_public: bool = Field(default=False)
    voice_id: Optional[str] = Field(default=None, description="Persistent designed voice id, overrides the preset")
    knobs: NarrationKnobs = Field(default_factory=NarrationKnobs)


class StoryMetadata(ApiModel):
    """Request parameters persisted alongside a story."""

    name: str
    dream: str
    personality: str = ""
    created_at: datetime = Field(default_factory=_utcnow)
    voice_preset: VoicePreset = VoicePreset.WARM_NARRATOR
    designed_voice_id: Optional[str] = None
    knobs: NarrationKnobs = Field(default_factory=NarrationKnobs)
    reading_level: ReadingLevel = ReadingLevel.PRIMARY
    story_length: StoryLength = StoryLength.STANDARD
    image_style: ImageStyle = ImageStyle.STORYBOOK


class SceneSummary(ApiModel):
    """Scene title and caption as shown in story listings."""

    title: str
    description: str


class StoryRecord(ApiModel):
    """Persisted story: structured text, illustration URLs and narration URLs."""

    story_id: str
    story: Story
    image_urls: list[str] = Field(default_factory=list)
    audio_urls: list[str] = Field(default_factory=list, description="One URL per narration chunk, in story order")
    scenes: list[SceneSummary] = Field(default_factory=list)
    metadata: StoryMetadata
    is_public: bool = False
    created_at: datetime = Field(default_factory=_utcnow)


class StorySummary(ApiModel):
    """Row in the public stories listing."""

    story_id: str
    metadata: StoryMetadata
    image_count: int
    audio_count: int
    scene_count: int


class GenerateStoryResponse(ApiModel):
    """Response of the story generation endpoint."""

    story_id: str
    story: Story
    image_urls: list[str]
    audio_urls: list[str]
    saved_to_database: bool = True


class AudioRequest(ApiModel):
    """Single-chunk synthesis request."""

    text: str = Field(default="")
    voice_id: Optional[str] = None
    model: Optional[str] = None


class AudioResponse(ApiModel):
    """Single-chunk synthesis response."""

    success: bool
    audio_url: str
    file_name: str
    metadata: dict[str, Any] = Field(default_factory=dict)


class VoiceDesignRequest(ApiModel):
    """Describe a narrator voice to audition."""

    voice_description: str = Field(default="", description="Free-text description of the voice")
    preview_text: Optional[str] = Field(default=None, description="Text the previews read (generated when omitted)")
    loudness: float = Field(default=0.0, description="-1..1, or a 0-100 slider value")
    guidance_scale: float = Field(default=8.0, ge=0, le=100)
    seed: Optional[int] = None


class VoicePreview(ApiModel):
    """One auditionable designed voice."""

    generated_voice_id: str
    url: Optional[str] = None
    duration_secs: float = 0.0


class VoiceDesignResponse(ApiModel):
    """Previews returned by voice design."""

    previews: list[VoicePreview] = Field(default_factory=list)
    text: Optional[str] = None


class VoiceCreateRequest(ApiModel):
    """Save an auditioned preview as a persistent voice."""

    generated_voice_id: str = Field(default="")
    voice_name: Optional[str] = None
    voice_description: Optional[str] = None
    labels: Optional[dict[str, str]] = None


class VoiceCreateResponse(ApiModel):
    """Persistent voice id to pass as the story form's voiceId."""

    voice_id: str
    preview_url: Optional[str] = None


class ScriptPreviewRequest(ApiModel):
    """Scenes to turn into an annotated narration script without synthesizing it."""

    scenes: list[StoryScene] = Field(default_factory=list)
    mode: NarrationMode = NarrationMode.NARRATOR
    pace: Pace = Pace.NORMAL
    seed: Optional[int] = Field(default=None, description="Pins the laughter tag choice")


class ScriptPreviewResponse(ApiModel):
    """Annotated lines and the chunks they would be synthesized as."""

    lines: list[str]
    chunks: list[str]


class StoryListResponse(ApiModel):
    """Public stories listing."""

    stories: list[StorySummary]


def _number_scenes(data: Any) -> Any:
    """Give LLM scenes without an id their 1-based position as id."""
    if not isinstance(data, dict) or not isinstance(data.get("scenes"), list):
        return data
    scenes = []
    for i, scene in enumerate(data["scenes"]):
        if isinstance(scene, dict) and scene.get("id") in (None, ""):
            scene = {**scene, "id": str(i + 1)}
        scenes.append(scene)
    return {**data, "scenes": scenes}


def _clamp(value: float, low: float, high: float) -> float:
    return max(low, min(high, value))
