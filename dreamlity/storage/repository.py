"""Storage repository for stories."""

import json
from pathlib import Path
from typing import Any, Optional

from pydantic import ValidationError

from dreamlity.core.config import Settings
from dreamlity.core.errors import StorageError
from dreamlity.models.schemas import StoryRecord, StorySummary
from dreamlity.utils.security import is_valid_uuid


class StoryRepository:
    """Repository for storing and loading story records."""

    def __init__(self, settings: Settings, logger: Any):
        """
        Initialize the repository.

        Args:
            settings: Application settings
            logger: Logger instance
        """
        self.settings = settings
        self.logger = logger
        self.storage_path = Path(settings.storage_path)
        self.storage_path.mkdir(parents=True, exist_ok=True)

    def _file_for(self, story_id: str) -> Path:
        return self.storage_path / f"{story_id}.json"

    def save_story(self, record: StoryRecord) -> None:
        """
        Save a story to storage.

        Args:
            record: Story record to save

        Raises:
            StorageError: If the record cannot be written
        """
        self.logger.info(f"Saving story: {record.story_id}")

        file_path = self._file_for(record.story_id)
        try:
            with open(file_path, "w", encoding="utf-8") as f:
                f.write(record.model_dump_json(indent=2))
        except OSError as e:
            raise StorageError(f"Failed to save story {record.story_id}: {e}") from e

        self.logger.info(f"Story saved to: {file_path}")

    def load_story(self, story_id: str) -> Optional[StoryRecord]:
        """
        Load a story from storage.

        Args:
            story_id: Story identifier (UUID)

        Returns:
            Story record if found, None otherwise

        Raises:
            StorageError: If the stored file cannot be read or validated
        """
        if not is_valid_uuid(story_id):
            self.logger.warning(f"Rejected malformed story id: {story_id!r}")
            return None

        file_path = self._file_for(story_id)
        if not file_path.exists():
            self.logger.warning(f"Story not found: {story_id}")
            return None

        try:
            with open(file_path, "r", encoding="utf-8") as f:
                return StoryRecord.model_validate(json.load(f))
        except (OSError, json.JSONDecodeError, ValidationError) as e:
            raise StorageError(f"Failed to load story {story_id}: {e}") from e

    def list_stories(self, public_only: bool = True) -> list[StorySummary]:
        """
        List stories newest first.

        Args:
            public_only: Only include stories marked public

        Returns:
            Story summaries with image/audio/scene counts
        """
        records: list[StoryRecord] = []
        for file_path in self.storage_path.glob("*.json"):
            try:
                with open(file_path, "r", encoding="utf-8") as f:
                    records.append(StoryRecord.model_validate(json.load(f)))
            except (OSError, json.JSONDecodeError, ValidationError) as e:
                self.logger.warning(f"Skipping unreadable story file {file_path.name}: {e}")

        if public_only:
            records = [record for record in records if record.is_public]
        records.sort(key=lambda record: record.created_at, reverse=True)

        self.logger.info(f"Found {len(records)} stories")
        return [
            StorySummary(
                story_id=record.story_id,
                metadata=record.metadata,
                image_count=len(record.image_urls),
                audio_count=len(record.audio_urls),
                scene_count=len(record.scenes),
            )
            for record in records
        ]
