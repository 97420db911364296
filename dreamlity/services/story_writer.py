"""Story Writer - plans a children's story arc and writes its scenes."""

import json
from typing import Any, Optional

from pydantic import ValidationError

from dreamlity.core.config import Settings
from dreamlity.models.schemas import ReadingLevel, ScenePlan, Story, StoryLength, StoryPlan, StoryScene
from dreamlity.services.llm_client import LLMClient
from dreamlity.utils.error_handler import format_error_message, get_fallback_suggestion
from dreamlity.utils.text_utils import strip_code_fences

READING_GUIDES = {
    ReadingLevel.EARLY: "Use short words and very short sentences. Avoid complex clauses.",
    ReadingLevel.PRIMARY: "Use clear, simple sentences with a friendly, upbeat tone.",
    ReadingLevel.PRETEEN: "Use richer vocabulary with slightly longer sentences; still friendly and clear.",
}

EMOTION_HINTS = (
    "excited",
    "serious",
    "gentle",
    "hesitant",
    "urgent",
    "whisper",
    "loud",
    "breathy",
    "soft",
    "calm",
    "quick",
    "slow",
)

FALLBACK_MORAL = "Real heroes are kind, careful, and helpful."

SYSTEM_PROMPT = (
    "You write warm, positive children's picture books. "
    "Always output valid JSON only: no markdown, no commentary, no extra keys."
)


def reading_guide(level: ReadingLevel) -> str:
    return READING_GUIDES.get(level, READING_GUIDES[ReadingLevel.PRIMARY])


def fallback_plan(name: str, dream: str, scene_count: int) -> StoryPlan:
    """Template arc used when the planner is unavailable or returns junk."""
    scenes = []
    for i in range(scene_count):
        if i == 0:
            title = "The Alarm"
            caption = f"{name} hears the call and gets ready."
            description = f"{name} prepares to act like a real {dream}, quick and careful."
        elif i == scene_count - 1:
            title = "Heroes Rest"
            caption = f"{name} smiles, knowing helping people matters most."
            description = f"{name} reflects on the day, proud and thankful."
        else:
            title = f"Scene {i + 1}"
            caption = f"{name} keeps going, brave and kind."
            description = f"{name} faces a moment and learns something useful."
        scenes.append(
            ScenePlan(
                id=str(i + 1),
                title=title,
                caption=caption,
                description=description,
                illustration_prompt="Warm, cozy storybook vibe; soft edges; gentle light; hero centered; no on-image text.",
            )
        )
    return StoryPlan(scenes=scenes)


def fallback_story(plan: StoryPlan, name: str, dream: str) -> Story:
    """Story made directly from the plan when the writer fails."""
    return Story(
        title=f"{name} the {dream} Hero",
        moral=FALLBACK_MORAL,
        scenes=[
            StoryScene(
                id=scene.id,
                title=scene.title,
                caption=scene.caption,
                text=scene.description,
                emotion_hint="encouraging",
            )
            for scene in plan.scenes
        ],
    )


class StoryWriter:
    """Plans and writes stories with the LLM, coercing its JSON with fallbacks."""

    def __init__(self, settings: Settings, logger: Any, llm_client: Optional[LLMClient] = None):
        """
        Initialize the story writer.

        Args:
            settings: Application settings
            logger: Logger instance
            llm_client: Optional LLM client (created from settings when an API key is set)
        """
        self.settings = settings
        self.logger = logger

        if llm_client is not None:
            self.llm_client = llm_client
        elif settings.use_llm_for_story and settings.openai_api_key:
            self.llm_client = LLMClient(settings, logger)
        else:
            self.llm_client = None
            if settings.use_llm_for_story:
                self.logger.warning("LLM story writing enabled but OpenAI API key not set, using template stories")

    def _ask(self, prompt: str, model: str) -> Optional[dict]:
        """Run a prompt and parse its JSON object, or None on any failure."""
        if self.llm_client is None:
            return None
        try:
            raw = self.llm_client.complete_json(SYSTEM_PROMPT, prompt, model=model)
            data = json.loads(strip_code_fences(raw))
        except Exception as e:
            self.logger.warning(
                format_error_message("Story LLM call", e, suggestion=get_fallback_suggestion("LLM", e))
            )
            return None
        if not isinstance(data, dict):
            self.logger.warning("LLM returned JSON that is not an object")
            return None
        return data

    def build_plan_prompt(
        self,
        name: str,
        dream: str,
        personality: str,
        reading_level: ReadingLevel,
        story_length: StoryLength,
    ) -> str:
        return f"""
Plan a {story_length.scene_count}-scene children's story arc.

Hero name: {name}
Dream: {dream}
Personality traits: {personality}

Return STRICT JSON with this schema (no markdown, no commentary, no extra keys):
{{
  "scenes": [
    {{
      "id": "1",
      "title": "Short scene title",
      "caption": "One short caption that could sit under an illustration",
      "description": "1-2 sentences describing what happens",
      "illustration_prompt": "One line describing the visual for this scene: setting, mood, hero outfit/props, warm palette, no on-image text"
    }}
  ]
}}
Rules:
- Keep a consistent visual identity for {name} across all scenes (hair, outfit colors, one signature prop).
- Keep it positive and heroic.
- {reading_guide(reading_level)}
"""

    def build_write_prompt(self, plan: StoryPlan, name: str, reading_level: ReadingLevel) -> str:
        hints = ", ".join(EMOTION_HINTS)
        return f"""
Write the story from this plan as STRICT JSON:
{{
  "title": "Picture-book title",
  "moral": "Short positive moral",
  "scenes": [
    {{
      "id": "1",
      "title": "",
      "caption": "",
      "text": "2-4 short sentences",
      "emotion_hint": "{'|'.join(EMOTION_HINTS)}"
    }}
  ]
}}
Constraints:
- {reading_guide(reading_level)}
- Keep {name} consistent; uplifting, brave, kind tone.
- Use everyday vocabulary; no on-image text; no violence.
- For emotion_hint, choose the most appropriate from: {hints}
- Match emotion_hint to the scene's mood and action
Here is the plan JSON:
{plan.model_dump_json()}
"""

    def plan_story(
        self,
        name: str,
        dream: str,
        personality: str = "",
        reading_level: ReadingLevel = ReadingLevel.PRIMARY,
        story_length: StoryLength = StoryLength.STANDARD,
    ) -> StoryPlan:
        """
        Plan the story arc.

        Returns:
            A plan with at least one scene (template plan on failure)
        """
        self.logger.info(f"Planning {story_length.scene_count}-scene story for {name}")
        prompt = self.build_plan_prompt(name, dream, personality, reading_level, story_length)
        data = self._ask(prompt, self.settings.planner_model)

        if data is not None:
            try:
                plan = StoryPlan.model_validate(data)
                if plan.scenes:
                    self.logger.info(f"Planned {len(plan.scenes)} scenes")
                    return plan
                self.logger.warning("Planner returned no scenes")
            except ValidationError as e:
                self.logger.warning(f"Planner JSON did not match schema: {e}")

        self.logger.info("Using template story plan")
        return fallback_plan(name, dream, story_length.scene_count)

    def write_story(
        self,
        plan: StoryPlan,
        name: str,
        dream: str,
        reading_level: ReadingLevel = ReadingLevel.PRIMARY,
    ) -> Story:
        """
        Write scene prose from the plan.

        Returns:
            The written story (built from the plan itself on failure)
        """
        self.logger.info("Writing story scenes")
        data = self._ask(self.build_write_prompt(plan, name, reading_level), self.settings.writer_model)

        if data is not None:
            try:
                story = Story.model_validate(data)
                if story.scenes:
                    story = story.model_copy(
                        update={
                            "title": story.title or f"{name} the {dream} Hero",
                            "moral": story.moral or FALLBACK_MORAL,
                        }
                    )
                    self.logger.info(f"Wrote story '{story.title}' with {len(story.scenes)} scenes")
                    return story
                self.logger.warning("Writer returned no scenes")
            except ValidationError as e:
                self.logger.warning(f"Writer JSON did not match schema: {e}")

        self.logger.info("Using story built from the plan")
        return fallback_story(plan, name, dream)
