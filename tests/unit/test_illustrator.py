"""Tests for the illustrator."""

import base64

import pytest
from pathlib import Path
from unittest.mock import MagicMock, patch

from dreamlity.models.schemas import ImageStyle
from dreamlity.services.illustrator import Illustrator, build_illustration_prompt
from dreamlity.services.story_writer import fallback_plan


@pytest.fixture
def plan():
    """Two-scene template plan."""
    return fallback_plan("Mia", "firefighter", 2)


def test_build_illustration_prompt(plan):
    """Prompts carry the style, the hero and the scene."""
    prompt = build_illustration_prompt(plan.scenes[0], "Mia", ImageStyle.WATERCOLOR)

    assert "soft watercolor washes" in prompt
    assert "keep Mia visually consistent" in prompt
    assert plan.scenes[0].caption in prompt
    assert "No text on image." in prompt


def test_disabled_returns_placeholders(settings, logger, plan):
    """Disabled image generation gives one placeholder per scene."""
    settings.use_image_generation = False
    illustrator = Illustrator(settings, logger)

    assert illustrator.illustrate(plan, "Mia") == ["/placeholder-image.svg"] * 2


def test_failed_scene_gets_placeholder(settings, logger, plan):
    """A failed render is replaced and the rest are stored."""
    illustrator = Illustrator(settings, logger)

    with patch.object(illustrator, "render", side_effect=[b"\x89PNGdata", RuntimeError("safety system")]):
        urls = illustrator.illustrate(plan, "Mia", ImageStyle.COMIC)

    assert urls[0].startswith("/generated/images/scene1_")
    assert urls[1] == settings.placeholder_image_url
    stored = Path(settings.object_store_path) / "images" / urls[0].rsplit("/", 1)[-1]
    assert stored.read_bytes() == b"\x89PNGdata"


def test_missing_api_key_gives_placeholders(settings, logger, plan):
    """No OpenAI key means every scene falls back."""
    illustrator = Illustrator(settings, logger)

    assert illustrator.illustrate(plan, "Mia") == [settings.placeholder_image_url] * 2


def test_render_uses_reference_photo(settings, logger):
    """A reference photo switches to the image edit endpoint."""
    illustrator = Illustrator(settings, logger)
    client = MagicMock()
    client.images.edit.return_value.data = [MagicMock(b64_json=base64.b64encode(b"png").decode())]
    illustrator._client = client

    image = illustrator.render("prompt", ("hero.png", b"\x89PNG", "image/png"))

    assert image == b"png"
    client.images.edit.assert_called_once()
    client.images.generate.assert_not_called()


def test_render_without_image_data(settings, logger):
    """An empty image response raises."""
    illustrator = Illustrator(settings, logger)
    client = MagicMock()
    client.images.generate.return_value.data = []
    illustrator._client = client

    with pytest.raises(ValueError):
        illustrator.render("prompt")
