"""Story pipeline orchestrator - form input → plan → prose → illustrations → narration → record."""

import argparse
import sys
import uuid
from pathlib import Path
from typing import Any, Optional

from dreamlity.core.config import Settings, settings
from dreamlity.core.logging_config import get_logger, setup_logging
from dreamlity.models.schemas import (
    GenerateStoryRequest,
    ImageStyle,
    ReadingLevel,
    SceneSummary,
    StoryLength,
    StoryMetadata,
    StoryRecord,
    VoicePreset,
)
from dreamlity.services.illustrator import Illustrator, ReferencePhoto
from dreamlity.services.narration_engine import NarrationEngine
from dreamlity.services.story_writer import StoryWriter
from dreamlity.services.tts_client import TTSClient, voice_for_preset
from dreamlity.storage.object_store import LocalObjectStore
from dreamlity.storage.repository import StoryRepository


def get_services(settings: Settings, logger: Any) -> dict:
    """Get all service instances."""
    object_store = LocalObjectStore(settings, logger)
    tts_client = TTSClient(settings, logger, object_store=object_store)
    return {
        "story_writer": StoryWriter(settings, logger),
        "illustrator": Illustrator(settings, logger, object_store=object_store),
        "narration_engine": NarrationEngine(settings, logger, tts_client=tts_client),
        "repository": StoryRepository(settings, logger),
    }


def generate_story(
    request: GenerateStoryRequest,
    settings: Settings,
    logger: Any,
    reference_photo: Optional[ReferencePhoto] = None,
    services: Optional[dict] = None,
) -> StoryRecord:
    """
    Generate, illustrate, narrate and save a story.

    Args:
        request: Parsed story form
        settings: App settings
        logger: Logger instance
        reference_photo: Optional validated photo of the hero
        services: Service overrides (defaults from get_services)

    Returns:
        The saved story record

    Raises:
        StorageError: If the story cannot be saved
    """
    story_id = str(uuid.uuid4())
    logger = logger.bind(story_id=story_id)
    services = services or get_services(settings, logger)
    logger.info(f"Story ID: {story_id}")

    # Step 1: Plan
    logger.info("Step 1: Planning story arc...")
    plan = services["story_writer"].plan_story(
        request.name,
        request.dream,
        request.personality,
        request.reading_level,
        request.story_length,
    )

    # Step 2: Write
    logger.info("Step 2: Writing scenes...")
    story = services["story_writer"].write_story(plan, request.name, request.dream, request.reading_level)

    # Step 3: Illustrate
    logger.info("Step 3: Illustrating scenes...")
    image_urls = services["illustrator"].illustrate(plan, request.name, request.image_style, reference_photo)

    # Step 4: Narrate
    logger.info("Step 4: Narrating story...")
    audio_urls = services["narration_engine"].narrate(
        story.scenes,
        mode=request.voice_preset.narration_mode,
        pace=request.knobs.pace,
        voice_id=voice_for_preset(request.voice_preset, request.voice_id),
        voice_settings=request.knobs.to_voice_settings(),
    )

    # Step 5: Persist
    logger.info("Step 5: Saving story...")
    record = StoryRecord(
        story_id=story_id,
        story=story,
        image_urls=image_urls,
        audio_urls=audio_urls,
        scenes=[SceneSummary(title=scene.title, description=scene.caption) for scene in story.scenes],
        metadata=StoryMetadata(
            name=request.name,
            dream=request.dream,
            personality=request.personality,
            voice_preset=request.voice_preset,
            designed_voice_id=request.voice_id or None,
            knobs=request.knobs,
            reading_level=request.reading_level,
            story_length=request.story_length,
            image_style=request.image_style,
        ),
        is_public=request.is_public,
    )
    services["repository"].save_story(record)

    logger.info(f"Story complete: {len(image_urls)} images, {len(audio_urls)} narration chunks")
    return record


def main() -> int:
    """Generate a story from the command line."""
    parser = argparse.ArgumentParser(description="Generate an illustrated, narrated children's story")
    parser.add_argument("--name", required=True, help="Hero name")
    parser.add_argument("--dream", required=True, help="What the hero dreams of becoming")
    parser.add_argument("--personality", default="", help="Personality traits")
    parser.add_argument("--voice-preset", choices=[p.value for p in VoicePreset], default=VoicePreset.WARM_NARRATOR.value)
    parser.add_argument("--reading-level", choices=[r.value for r in ReadingLevel], default=ReadingLevel.PRIMARY.value)
    parser.add_argument("--story-length", choices=[s.value for s in StoryLength], default=StoryLength.STANDARD.value)
    parser.add_argument("--image-style", choices=[s.value for s in ImageStyle], default=ImageStyle.STORYBOOK.value)
    parser.add_argument("--public", action="store_true", help="List the story publicly")
    parser.add_argument("--voice-id", default=None, help="Designed ElevenLabs voice id")
    parser.add_argument("--log-file", type=Path, default=None, help="Optional rotating log file")
    args = parser.parse_args()

    setup_logging(log_level=settings.log_level, log_file=args.log_file)
    logger = get_logger(__name__, hero=args.name)

    request = GenerateStoryRequest(
        name=args.name,
        dream=args.dream,
        personality=args.personality,
        voice_preset=args.voice_preset,
        reading_level=args.reading_level,
        story_length=args.story_length,
        image_style=args.image_style,
        is_public=args.public,
        voice_id=args.voice_id,
    )

    try:
        record = generate_story(request, settings, logger)
    except Exception as e:
        logger.exception(f"Story generation failed: {e}")
        return 1

    print(record.story_id)
    return 0


if __name__ == "__main__":
    sys.exit(main())
