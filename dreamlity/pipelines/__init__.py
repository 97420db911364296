"""Pipeline orchestrators for Dreamlity."""

from dreamlity.pipelines.story_pipeline import generate_story, main

__all__ = ["generate_story", "main"]
