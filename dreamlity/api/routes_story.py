"""FastAPI routes for story generation and browsing."""

from enum import Enum
from typing import Optional, TypeVar

from fastapi import APIRouter, Depends, File, Form, HTTPException, UploadFile
from starlette.concurrency import run_in_threadpool

from dreamlity.api.dependencies import enforce_rate_limit, get_settings
from dreamlity.core.config import Settings
from dreamlity.core.errors import StorageError, UploadValidationError
from dreamlity.core.logging_config import get_logger
from dreamlity.models.schemas import (
    GenerateStoryRequest,
    GenerateStoryResponse,
    ImageStyle,
    ReadingLevel,
    StoryLength,
    StoryListResponse,
    StoryRecord,
    VoicePreset,
)
from dreamlity.pipelines.story_pipeline import generate_story
from dreamlity.storage.repository import StoryRepository
from dreamlity.utils.error_handler import format_error_message, get_fallback_suggestion
from dreamlity.utils.security import sanitize_text_input, validate_image_upload

router = APIRouter(prefix="/stories", tags=["stories"])

E = TypeVar("E", bound=Enum)


def _enum_or_default(enum_cls: type[E], value: Optional[str], default: E) -> E:
    try:
        return enum_cls(value)
    except ValueError:
        return default


@router.post("/generate", response_model=GenerateStoryResponse, dependencies=[Depends(enforce_rate_limit)])
async def generate_story_route(
    name: str = Form(default=""),
    dream: str = Form(default=""),
    personality: str = Form(default=""),
    voice_preset: str = Form(default=VoicePreset.WARM_NARRATOR.value, alias="voicePreset"),
    reading_level: str = Form(default=ReadingLevel.PRIMARY.value, alias="readingLevel"),
    story_length: str = Form(default=StoryLength.STANDARD.value, alias="storyLength"),
    image_style: str = Form(default=ImageStyle.STORYBOOK.value, alias="imageStyle"),
    is_public: str = Form(default="false", alias="isPublic"),
    voice_id: str = Form(default="", alias="voiceId"),
    photo: Optional[UploadFile] = File(default=None),
    settings: Settings = Depends(get_settings),
) -> GenerateStoryResponse:
    """
    Generate an illustrated, narrated story from the story form.

    Pipeline:
    StoryWriter.plan_story → StoryWriter.write_story → Illustrator → NarrationEngine → StoryRepository
    """
    max_length = settings.max_text_input_length
    name = sanitize_text_input(name, max_length)
    dream = sanitize_text_input(dream, max_length)
    if not name or not dream:
        raise HTTPException(status_code=400, detail="Name and dream are required")

    logger = get_logger(__name__, hero=name)
    logger.info("=" * 60)
    logger.info(f"Starting story generation for {name} (dream: {dream})")
    logger.info("=" * 60)

    request = GenerateStoryRequest(
        name=name,
        dream=dream,
        personality=sanitize_text_input(personality, max_length),
        voice_preset=_enum_or_default(VoicePreset, voice_preset, VoicePreset.WARM_NARRATOR),
        reading_level=_enum_or_default(ReadingLevel, reading_level, ReadingLevel.PRIMARY),
        story_length=_enum_or_default(StoryLength, story_length, StoryLength.STANDARD),
        image_style=_enum_or_default(ImageStyle, image_style, ImageStyle.STORYBOOK),
        is_public=is_public.strip().lower() == "true",
        voice_id=sanitize_text_input(voice_id, 100) or None,
    )

    reference_photo = None
    if photo is not None and photo.filename:
        data = await photo.read()
        if data:
            content_type = photo.content_type or "application/octet-stream"
            try:
                validate_image_upload(
                    data,
                    photo.filename,
                    content_type,
                    max_size=settings.max_upload_bytes,
                    allowed_types=settings.allowed_upload_types,
                )
            except UploadValidationError as e:
                raise HTTPException(status_code=400, detail=str(e))
            reference_photo = (photo.filename, data, content_type)

    try:
        record = await run_in_threadpool(generate_story, request, settings, logger, reference_photo)
    except StorageError as e:
        logger.error(format_error_message("Saving story", e, suggestion=get_fallback_suggestion("Storage", e)))
        raise HTTPException(status_code=500, detail=f"Failed to save story to database: {e}")
    except Exception as e:
        logger.exception(f"Error generating story: {e}")
        raise HTTPException(status_code=500, detail="Failed to generate story")

    return GenerateStoryResponse(
        story_id=record.story_id,
        story=record.story,
        image_urls=record.image_urls,
        audio_urls=record.audio_urls,
        saved_to_database=True,
    )


@router.get("", response_model=StoryListResponse)
async def list_stories(settings: Settings = Depends(get_settings)) -> StoryListResponse:
    """List public stories, newest first."""
    logger = get_logger(__name__)
    repository = StoryRepository(settings, logger)
    return StoryListResponse(stories=repository.list_stories(public_only=True))


@router.get("/{story_id}", response_model=StoryRecord)
async def get_story(story_id: str, settings: Settings = Depends(get_settings)) -> StoryRecord:
    """Get a full story record."""
    logger = get_logger(__name__, story_id=story_id)
    logger.info(f"Fetching story: {story_id}")

    repository = StoryRepository(settings, logger)
    try:
        record = repository.load_story(story_id)
    except StorageError as e:
        logger.error(f"Failed to load story: {e}")
        raise HTTPException(status_code=500, detail="Failed to load story")

    if not record:
        raise HTTPException(status_code=404, detail="Story not found")

    return record
