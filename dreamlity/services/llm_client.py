"""LLM Client - centralized OpenAI client for story planning and writing."""

from typing import Any, Optional

from dreamlity.core.config import Settings


class LLMClient:
    """Centralized LLM client for OpenAI operations."""

    def __init__(self, settings: Settings, logger: Any):
        """
        Initialize LLM client.

        Args:
            settings: Application settings
            logger: Logger instance
        """
        self.settings = settings
        self.logger = logger
        self._client = None

    def _get_client(self):
        """Get or create OpenAI client."""
        if self._client is None:
            from openai import OpenAI

            if not self.settings.openai_api_key:
                raise ValueError("OpenAI API key not configured")

            self._client = OpenAI(api_key=self.settings.openai_api_key)

        return self._client

    def complete_json(
        self,
        system: str,
        prompt: str,
        model: Optional[str] = None,
        temperature: float = 0.8,
    ) -> str:
        """
        Ask the model for a JSON object.

        Args:
            system: System instructions
            prompt: User prompt describing the JSON to return
            model: Model name (defaults to the writer model)
            temperature: Sampling temperature

        Returns:
            Raw response text (expected to be JSON, possibly fenced)

        Raises:
            Exception: If the API call fails
        """
        model = model or self.settings.writer_model
        self.logger.debug(f"Requesting JSON completion from {model}")

        try:
            response = self._get_client().chat.completions.create(
                model=model,
                messages=[
                    {"role": "system", "content": system},
                    {"role": "user", "content": prompt},
                ],
                response_format={"type": "json_object"},
                temperature=temperature,
            )
        except Exception as e:
            self.logger.error(f"LLM completion failed: {e}")
            raise

        return response.choices[0].message.content or ""
