"""Illustrator - renders one picture-book illustration per planned scene."""

import base64
from typing import Any, Optional

from dreamlity.core.config import Settings
from dreamlity.models.schemas import ImageStyle, ScenePlan, StoryPlan
from dreamlity.storage.object_store import LocalObjectStore
from dreamlity.utils.error_handler import format_error_message, get_fallback_suggestion

STYLE_PROMPTS = {
    ImageStyle.WATERCOLOR: "soft watercolor washes, gentle edges",
    ImageStyle.COMIC: "bold lines, cel-shaded colors, cheerful",
    ImageStyle.PAPER_CUT: "paper-cut collage, layered textures",
    ImageStyle.REALISTIC: "photorealistic lighting, natural textures",
    ImageStyle.STORYBOOK: "warm cozy storybook, painterly brush, soft light",
}

# (filename, bytes, content type), the upload shape the OpenAI SDK accepts.
ReferencePhoto = tuple[str, bytes, str]


def build_illustration_prompt(scene: ScenePlan, name: str, image_style: ImageStyle) -> str:
    style_prompt = STYLE_PROMPTS.get(image_style, STYLE_PROMPTS[ImageStyle.STORYBOOK])
    return "\n".join(
        [
            "Create a square 1:1 illustration for a children's picture book.",
            f"Style: {style_prompt}.",
            f"Hero: keep {name} visually consistent across scenes (hair, outfit colors, one signature prop).",
            f"Caption vibe: {scene.caption}",
            f"Scene: {scene.illustration_prompt}",
            "No text on image. Kid-friendly. Warm palette.",
        ]
    )


class Illustrator:
    """Generates scene illustrations with the OpenAI image API."""

    def __init__(self, settings: Settings, logger: Any, object_store: Optional[LocalObjectStore] = None):
        """
        Initialize the illustrator.

        Args:
            settings: Application settings
            logger: Logger instance
            object_store: Where generated images are stored
        """
        self.settings = settings
        self.logger = logger
        self.object_store = object_store or LocalObjectStore(settings, logger)
        self._client = None

    def _get_client(self):
        if self._client is None:
            from openai import OpenAI

            if not self.settings.openai_api_key:
                raise ValueError("OpenAI API key not configured")

            self._client = OpenAI(api_key=self.settings.openai_api_key)
        return self._client

    def render(self, prompt: str, reference_photo: Optional[ReferencePhoto] = None) -> bytes:
        """
        Render one illustration.

        Args:
            prompt: Full illustration prompt
            reference_photo: Optional photo of the hero to keep their likeness

        Returns:
            PNG bytes

        Raises:
            Exception: If the image API fails or returns no image
        """
        client = self._get_client()
        if reference_photo is not None:
            response = client.images.edit(
                model=self.settings.image_model,
                image=reference_photo,
                prompt=prompt,
                size=self.settings.image_size,
            )
        else:
            response = client.images.generate(
                model=self.settings.image_model,
                prompt=prompt,
                size=self.settings.image_size,
                n=1,
            )

        if not response.data or not response.data[0].b64_json:
            raise ValueError("Image API returned no image data")
        return base64.b64decode(response.data[0].b64_json)

    def illustrate(
        self,
        plan: StoryPlan,
        name: str,
        image_style: ImageStyle = ImageStyle.STORYBOOK,
        reference_photo: Optional[ReferencePhoto] = None,
    ) -> list[str]:
        """
        Illustrate every planned scene.

        Failed or disabled scenes get the placeholder URL, so the result always
        has one URL per scene.

        Returns:
            Image URLs in scene order
        """
        placeholder = self.settings.placeholder_image_url
        if not self.settings.use_image_generation:
            self.logger.info("Image generation disabled, using placeholders")
            return [placeholder for _ in plan.scenes]

        urls: list[str] = []
        for i, scene in enumerate(plan.scenes):
            prompt = build_illustration_prompt(scene, name, image_style)
            try:
                image = self.render(prompt, reference_photo)
                file_name = self.object_store.new_file_name("png", prefix=f"scene{scene.id}_")
                urls.append(self.object_store.upload(image, file_name, "image/png", "images"))
            except Exception as e:
                self.logger.error(
                    format_error_message(
                        "Generating scene illustration",
                        e,
                        context={"scene": scene.id, "index": i},
                        suggestion=get_fallback_suggestion("Image Generation", e),
                    )
                )
                urls.append(placeholder)

        self.logger.info(f"Illustrated {len(urls)} scenes")
        return urls
