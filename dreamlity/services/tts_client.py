"""TTS (Text-to-Speech) client for ElevenLabs narration."""

import base64
import time
from typing import Any, Optional

import requests

from dreamlity.core.config import Settings
from dreamlity.core.errors import DreamlityError, SynthesisError
from dreamlity.models.schemas import (
    AudioResult,
    VoiceCreateResponse,
    VoiceDesignResponse,
    VoicePreview,
    VoiceSettings,
)
from dreamlity.storage.object_store import LocalObjectStore
from dreamlity.utils.error_handler import format_error_message, get_fallback_suggestion
from dreamlity.utils.rate_limiter import get_elevenlabs_limiter

VOICES = {
    "ALLOY": "pNInz6obpgDQGcFmaJgB",
    "RACHEL": "21m00Tcm4TlvDq8ikWAM",
    "DOMI": "AZnzlk1XvdvUeBnXmlld",
    "FINN": "D38z5RcWu1voky8WS1ja",
    "FREYA": "jsCqWAovK2LkecY7zXl4",
    "GRACE": "oWAxZDx7w5VEj9dCyTzz",
    "DANIEL": "onwK4e9ZLuTAKqWW03F9",
}

MODELS = {
    "ELEVEN_V3": "eleven_v3",  # understands [tags]
    "MULTILINGUAL_V2": "eleven_multilingual_v2",
    "TURBO_V2_5": "eleven_turbo_v2_5",
    "ENGLISH_V1": "eleven_monolingual_v1",
}

PRESET_VOICES = {
    "warm_narrator": VOICES["RACHEL"],
    "playful_hero": VOICES["FREYA"],
    "epic_guardian": VOICES["DANIEL"],
}


def design_loudness(value: float) -> float:
    """Voice design expects loudness in -1..1; 0-100 slider values are rescaled."""
    if value > 1:
        return (value - 50) / 50
    return value


def voice_for_preset(preset: str, designed_voice_id: Optional[str] = None) -> str:
    """Designed voice if one was provided, else the preset's stock voice (Rachel by default)."""
    if designed_voice_id:
        return designed_voice_id
    return PRESET_VOICES.get(str(getattr(preset, "value", preset)), VOICES["RACHEL"])


class TTSClient:
    """ElevenLabs text-to-speech client that stores audio in the object store."""

    def __init__(self, settings: Settings, logger: Any, object_store: Optional[LocalObjectStore] = None):
        """
        Initialize TTS client.

        Args:
            settings: Application settings
            logger: Logger instance
            object_store: Where synthesized audio is stored
        """
        self.settings = settings
        self.logger = logger
        self.object_store = object_store or LocalObjectStore(settings, logger)

    def _headers(self, accept: str = "audio/mpeg") -> dict[str, str]:
        if not self.settings.elevenlabs_api_key:
            raise SynthesisError("ElevenLabs API key not configured")
        return {
            "Accept": accept,
            "Content-Type": "application/json",
            "xi-api-key": self.settings.elevenlabs_api_key,
        }

    def synthesize(
        self,
        text: str,
        voice_id: Optional[str] = None,
        model: Optional[str] = None,
        voice_settings: Optional[VoiceSettings] = None,
    ) -> bytes:
        """
        Convert one chunk of (tagged) text to MP3 bytes.

        Args:
            text: Text to speak, at most one chunk long
            voice_id: ElevenLabs voice id (Rachel by default)
            model: ElevenLabs model id (settings default)
            voice_settings: Stability/similarity/style settings

        Returns:
            Audio bytes

        Raises:
            SynthesisError: If synthesis is disabled, misconfigured or fails
        """
        if not text or not text.strip():
            raise ValueError("Text cannot be empty")
        if not self.settings.enable_elevenlabs_audio:
            raise SynthesisError("ElevenLabs audio generation disabled (ENABLE_ELEVENLABS_AUDIO != 1)")

        voice_id = voice_id or VOICES["RACHEL"]
        model = model or self.settings.elevenlabs_model
        voice_settings = voice_settings or VoiceSettings()

        url = f"{self.settings.elevenlabs_api_url}/text-to-speech/{voice_id}"
        data = {
            "text": text,
            "model_id": model,
            "voice_settings": voice_settings.model_dump(),
        }

        if self.settings.enable_rate_limiting:
            get_elevenlabs_limiter(self.settings.elevenlabs_rate_limit).wait_if_needed("elevenlabs")

        self.logger.info(f"Synthesizing {len(text)} characters with voice {voice_id} ({model})")

        try:
            response = requests.post(
                url,
                json=data,
                headers=self._headers(),
                params={"output_format": self.settings.elevenlabs_output_format},
                timeout=self.settings.tts_timeout_seconds,
            )
        except requests.exceptions.RequestException as e:
            raise SynthesisError(f"Network error calling ElevenLabs API: {e}") from e

        if response.status_code != 200:
            raise SynthesisError(f"ElevenLabs API returned status {response.status_code}: {response.text}")
        if not response.content:
            raise SynthesisError("ElevenLabs API returned empty audio")

        return response.content

    def generate_audio(
        self,
        text: str,
        voice_id: Optional[str] = None,
        model: Optional[str] = None,
        voice_settings: Optional[VoiceSettings] = None,
    ) -> AudioResult:
        """
        Synthesize one chunk and store it.

        Returns:
            Audio result with the stored file's public URL

        Raises:
            SynthesisError: If synthesis fails
            StorageError: If the audio cannot be stored
        """
        voice_id = voice_id or VOICES["RACHEL"]
        model = model or self.settings.elevenlabs_model

        audio = self.synthesize(text, voice_id=voice_id, model=model, voice_settings=voice_settings)
        file_name = self.object_store.new_file_name("mp3", prefix="audio_")
        public_url = self.object_store.upload(audio, file_name, "audio/mpeg", "audio")

        return AudioResult(
            file_name=file_name,
            public_url=public_url,
            voice_id=voice_id,
            model=model,
            file_size=len(audio),
        )

    def generate_batch_audio(
        self,
        texts: list[str],
        voice_id: Optional[str] = None,
        model: Optional[str] = None,
        voice_settings: Optional[VoiceSettings] = None,
    ) -> list[AudioResult]:
        """
        Synthesize chunks one after another, in order.

        A failed chunk never stops the batch: it is represented by a result with
        an empty public URL, so results stay 1:1 with ``texts``.

        Returns:
            One audio result per text
        """
        voice_id = voice_id or VOICES["RACHEL"]
        model = model or self.settings.elevenlabs_model
        delay = self.settings.narration_chunk_delay_seconds

        results: list[AudioResult] = []
        for i, text in enumerate(texts):
            try:
                results.append(
                    self.generate_audio(text, voice_id=voice_id, model=model, voice_settings=voice_settings)
                )
            except (DreamlityError, ValueError) as e:
                self.logger.bind(chunk=f"{i + 1}/{len(texts)}").error(
                    format_error_message(
                        "Synthesizing narration chunk",
                        e,
                        suggestion=get_fallback_suggestion("TTS", e),
                    )
                )
                results.append(
                    AudioResult(
                        file_name=f"error_{i}.mp3",
                        public_url="",
                        voice_id=voice_id,
                        model=model,
                        file_size=0,
                        error=str(e),
                    )
                )
            if i < len(texts) - 1 and delay > 0:
                time.sleep(delay)

        return results

    def list_voices(self) -> list[dict[str, Any]]:
        """
        Fetch the account's voices.

        Raises:
            SynthesisError: If the voices cannot be fetched
        """
        try:
            response = requests.get(
                f"{self.settings.elevenlabs_api_url}/voices",
                headers=self._headers(accept="application/json"),
                timeout=self.settings.tts_timeout_seconds,
            )
        except requests.exceptions.RequestException as e:
            raise SynthesisError(f"Network error calling ElevenLabs API: {e}") from e

        if response.status_code != 200:
            raise SynthesisError(f"ElevenLabs API returned status {response.status_code}: {response.text}")

        voices = response.json().get("voices", [])
        return [
            {
                "voice_id": voice.get("voice_id"),
                "name": voice.get("name"),
                "category": voice.get("category"),
                "description": voice.get("description"),
                "preview_url": voice.get("preview_url"),
            }
            for voice in voices
        ]

    def _post_json(self, path: str, payload: dict[str, Any]) -> dict[str, Any]:
        try:
            response = requests.post(
                f"{self.settings.elevenlabs_api_url}/{path}",
                json=payload,
                headers=self._headers(accept="application/json"),
                timeout=self.settings.tts_timeout_seconds,
            )
        except requests.exceptions.RequestException as e:
            raise SynthesisError(f"Network error calling ElevenLabs API: {e}") from e

        if response.status_code != 200:
            raise SynthesisError(f"ElevenLabs API returned status {response.status_code}: {response.text}")
        return response.json()

    def design_voice(
        self,
        voice_description: str,
        preview_text: Optional[str] = None,
        loudness: float = 0.0,
        guidance_scale: float = 8.0,
        seed: Optional[int] = None,
    ) -> VoiceDesignResponse:
        """
        Generate auditionable voices from a description.

        Inline base64 previews are stored in the object store so every preview
        comes back with a playable URL.

        Args:
            voice_description: Free-text description of the narrator voice
            preview_text: Text for the previews to read (ElevenLabs writes one when omitted)
            loudness: -1..1, or a 0-100 slider value
            guidance_scale: How closely to follow the description (0-100)
            seed: Optional seed for repeatable designs

        Returns:
            Previews with their generated voice ids

        Raises:
            ValueError: If the description is empty
            SynthesisError: If the design request fails
            StorageError: If a preview cannot be stored
        """
        if not voice_description or not voice_description.strip():
            raise ValueError("Voice description cannot be empty")

        payload: dict[str, Any] = {
            "voice_description": voice_description,
            "text": preview_text,
            "model_id": self.settings.elevenlabs_voice_design_model,
            "loudness": design_loudness(loudness),
            "guidance_scale": guidance_scale,
        }
        if seed is not None:
            payload["seed"] = seed

        self.logger.info(f"Designing voice: {voice_description[:60]}")
        data = self._post_json("text-to-voice/design", payload)

        previews: list[VoicePreview] = []
        for preview in data.get("previews") or []:
            url = preview.get("preview_url")
            audio_b64 = preview.get("audio_base_64")
            if audio_b64:
                file_name = self.object_store.new_file_name("mp3", prefix="voice_preview_")
                url = self.object_store.upload(base64.b64decode(audio_b64), file_name, "audio/mpeg", "audio")
            previews.append(
                VoicePreview(
                    generated_voice_id=preview.get("generated_voice_id", ""),
                    url=url,
                    duration_secs=preview.get("duration_secs") or 0.0,
                )
            )

        self.logger.info(f"Designed {len(previews)} voice previews")
        return VoiceDesignResponse(previews=previews, text=data.get("text"))

    def create_voice(
        self,
        generated_voice_id: str,
        voice_name: Optional[str] = None,
        voice_description: Optional[str] = None,
        labels: Optional[dict[str, str]] = None,
    ) -> VoiceCreateResponse:
        """
        Save a designed preview as a persistent voice.

        Returns:
            The voice id to use as a story's designed voice

        Raises:
            ValueError: If no generated voice id is given
            SynthesisError: If the voice cannot be created
        """
        if not generated_voice_id:
            raise ValueError("generated_voice_id is required")

        data = self._post_json(
            "text-to-voice",
            {
                "voice_name": voice_name or self.settings.designed_voice_name,
                "voice_description": voice_description or "Narration voice generated for Dreamlity.",
                "generated_voice_id": generated_voice_id,
                "labels": labels or {"app": "Dreamlity"},
            },
        )
        if not data.get("voice_id"):
            raise SynthesisError("ElevenLabs API returned no voice id")

        self.logger.info(f"Created designed voice {data['voice_id']}")
        return VoiceCreateResponse(voice_id=data["voice_id"], preview_url=data.get("preview_url"))
