"""Shared pytest fixtures and configuration."""

import os
import tempfile

# dreamlity.main mounts the object store directory at import time
os.environ.setdefault("OBJECT_STORE_PATH", tempfile.mkdtemp(prefix="dreamlity-generated-"))
os.environ.setdefault("STORAGE_PATH", tempfile.mkdtemp(prefix="dreamlity-stories-"))

import pytest

from dreamlity.core.config import Settings
from dreamlity.core.logging_config import get_logger
from dreamlity.models.schemas import StoryScene


@pytest.fixture
def settings(tmp_path):
    """Create test settings backed by a temporary directory."""
    settings = Settings()
    settings.storage_path = str(tmp_path / "stories")
    settings.object_store_path = str(tmp_path / "generated")
    settings.public_base_url = "/generated"
    settings.openai_api_key = None
    settings.elevenlabs_api_key = None
    settings.enable_elevenlabs_audio = False
    settings.enable_rate_limiting = False
    settings.narration_pack_chunks = False
    settings.narration_chunk_delay_seconds = 0
    return settings


@pytest.fixture
def logger():
    """Create test logger instance."""
    return get_logger(__name__)


@pytest.fixture
def pinned_choice():
    """Laughter chooser that always takes the first option."""
    return lambda options: options[0]


@pytest.fixture
def sample_scenes():
    """Two short scenes in story order."""
    return [
        StoryScene(
            id="1",
            title="The Alarm",
            caption="Mia hears the bell.",
            text="The station is busy. Everyone gets ready.",
            emotion_hint="excited",
        ),
        StoryScene(
            id="2",
            title="Heroes Rest",
            caption="Mia heads home.",
            text="The town is safe. It was a long day.",
            emotion_hint="gentle",
        ),
    ]
