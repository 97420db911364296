"""Tests for the ElevenLabs TTS client."""

import base64

import pytest
import requests
from pathlib import Path
from unittest.mock import MagicMock, patch

from dreamlity.core.errors import SynthesisError
from dreamlity.models.schemas import VoicePreset, VoiceSettings
from dreamlity.services.tts_client import MODELS, VOICES, TTSClient, design_loudness, voice_for_preset


@pytest.fixture
def live_settings(settings):
    """Settings with synthesis switched on."""
    settings.enable_elevenlabs_audio = True
    settings.elevenlabs_api_key = "test-key"
    return settings


@pytest.fixture
def tts_client(live_settings, logger):
    """Create TTSClient instance for testing."""
    return TTSClient(live_settings, logger)


def _response(status_code=200, content=b"ID3fake-mp3", text=""):
    response = MagicMock()
    response.status_code = status_code
    response.content = content
    response.text = text
    return response


def test_voice_for_preset():
    """Designed voices win, presets map to stock voices, Rachel by default."""
    assert voice_for_preset(VoicePreset.PLAYFUL_HERO) == VOICES["FREYA"]
    assert voice_for_preset("epic_guardian") == VOICES["DANIEL"]
    assert voice_for_preset("unknown") == VOICES["RACHEL"]
    assert voice_for_preset(VoicePreset.EPIC_GUARDIAN, "designed-123") == "designed-123"


def test_synthesize_disabled(settings, logger):
    """Synthesis refuses to run when audio is switched off."""
    client = TTSClient(settings, logger)

    with pytest.raises(SynthesisError, match="disabled"):
        client.synthesize("Hello")


def test_synthesize_requires_text(tts_client):
    """Blank text is rejected."""
    with pytest.raises(ValueError):
        tts_client.synthesize("   ")


def test_synthesize_requires_api_key(live_settings, logger):
    """A missing key is a synthesis error."""
    live_settings.elevenlabs_api_key = None
    client = TTSClient(live_settings, logger)

    with pytest.raises(SynthesisError, match="not configured"):
        client.synthesize("Hello")


@patch("dreamlity.services.tts_client.requests.post")
def test_synthesize_builds_request(mock_post, tts_client, live_settings):
    """Synthesis posts text, model and voice settings to the voice endpoint."""
    mock_post.return_value = _response()
    voice_settings = VoiceSettings(stability=0.5, similarity_boost=0.8, style=0.35)

    audio = tts_client.synthesize(
        "[smiling] Hello there.", voice_id=VOICES["FREYA"], model=MODELS["ELEVEN_V3"], voice_settings=voice_settings
    )

    assert audio == b"ID3fake-mp3"
    args, kwargs = mock_post.call_args
    assert args[0] == f"{live_settings.elevenlabs_api_url}/text-to-speech/{VOICES['FREYA']}"
    assert kwargs["json"]["text"] == "[smiling] Hello there."
    assert kwargs["json"]["model_id"] == "eleven_v3"
    assert kwargs["json"]["voice_settings"]["stability"] == 0.5
    assert kwargs["headers"]["xi-api-key"] == "test-key"
    assert kwargs["params"] == {"output_format": live_settings.elevenlabs_output_format}


@patch("dreamlity.services.tts_client.requests.post")
def test_synthesize_non_200(mock_post, tts_client):
    """Error statuses become synthesis errors."""
    mock_post.return_value = _response(status_code=401, content=b"", text="invalid voice")

    with pytest.raises(SynthesisError, match="401"):
        tts_client.synthesize("Hello")


@patch("dreamlity.services.tts_client.requests.post")
def test_synthesize_network_error(mock_post, tts_client):
    """Network failures become synthesis errors."""
    mock_post.side_effect = requests.exceptions.ConnectionError("connection reset")

    with pytest.raises(SynthesisError, match="Network error"):
        tts_client.synthesize("Hello")


@patch("dreamlity.services.tts_client.requests.post")
def test_generate_audio_stores_mp3(mock_post, tts_client, live_settings):
    """Generated audio is stored and served from the audio folder."""
    mock_post.return_value = _response()

    result = tts_client.generate_audio("Hello there.")

    assert result.public_url.startswith("/generated/audio/audio_")
    assert result.file_name.endswith(".mp3")
    assert result.file_size == len(b"ID3fake-mp3")
    assert result.voice_id == VOICES["RACHEL"]
    stored = Path(live_settings.object_store_path) / "audio" / result.file_name
    assert stored.read_bytes() == b"ID3fake-mp3"


@patch("dreamlity.services.tts_client.time.sleep")
def test_batch_keeps_order_and_placeholders(mock_sleep, tts_client, live_settings):
    """A failed chunk leaves an empty placeholder and the batch carries on."""
    live_settings.narration_chunk_delay_seconds = 0.1

    with patch.object(tts_client, "synthesize", side_effect=[b"one", SynthesisError("quota exceeded"), b"three"]):
        results = tts_client.generate_batch_audio(["first", "second", "third"], voice_id="voice-1")

    assert len(results) == 3
    assert results[0].public_url.startswith("/generated/audio/")
    assert results[1].public_url == ""
    assert results[1].file_name == "error_1.mp3"
    assert results[1].error == "quota exceeded"
    assert results[2].public_url.startswith("/generated/audio/")
    assert all(result.voice_id == "voice-1" for result in results)
    assert mock_sleep.call_count == 2


def test_batch_when_disabled_is_all_placeholders(settings, logger):
    """With audio switched off every chunk is a placeholder."""
    client = TTSClient(settings, logger)

    results = client.generate_batch_audio(["first", "second"])

    assert [result.public_url for result in results] == ["", ""]


@patch("dreamlity.services.tts_client.requests.get")
def test_list_voices(mock_get, tts_client):
    """Remote voices are mapped to plain dicts."""
    response = _response()
    response.json.return_value = {
        "voices": [{"voice_id": "abc", "name": "Story Voice", "category": "generated", "extra": 1}]
    }
    mock_get.return_value = response

    voices = tts_client.list_voices()

    assert voices == [
        {
            "voice_id": "abc",
            "name": "Story Voice",
            "category": "generated",
            "description": None,
            "preview_url": None,
        }
    ]


@patch("dreamlity.services.tts_client.requests.get")
def test_list_voices_failure(mock_get, tts_client):
    """A failing voices call raises."""
    mock_get.return_value = _response(status_code=500, text="server error")

    with pytest.raises(SynthesisError):
        tts_client.list_voices()


def test_design_loudness():
    """Slider values are rescaled, values already in range pass through."""
    assert design_loudness(80) == pytest.approx(0.6)
    assert design_loudness(50) == 0
    assert design_loudness(-0.5) == -0.5
    assert design_loudness(1) == 1


@patch("dreamlity.services.tts_client.requests.post")
def test_design_voice(mock_post, tts_client, live_settings):
    """Inline previews are stored, hosted previews keep their URL."""
    response = _response()
    response.json.return_value = {
        "previews": [
            {"generated_voice_id": "gen-1", "audio_base_64": base64.b64encode(b"ID3preview").decode(), "duration_secs": 4.2},
            {"generated_voice_id": "gen-2", "preview_url": "https://cdn.example/gen-2.mp3"},
        ],
        "text": "Once upon a time...",
    }
    mock_post.return_value = response

    design = tts_client.design_voice("A warm grandmother storyteller", loudness=80, seed=7)

    url, kwargs = mock_post.call_args.args[0], mock_post.call_args.kwargs
    assert url == f"{live_settings.elevenlabs_api_url}/text-to-voice/design"
    assert kwargs["json"]["model_id"] == "eleven_ttv_v3"
    assert kwargs["json"]["loudness"] == pytest.approx(0.6)
    assert kwargs["json"]["seed"] == 7
    assert kwargs["json"]["text"] is None
    assert kwargs["headers"]["xi-api-key"] == "test-key"

    first, second = design.previews
    assert first.generated_voice_id == "gen-1"
    assert first.url.startswith("/generated/audio/voice_preview_")
    assert first.duration_secs == 4.2
    stored = Path(live_settings.object_store_path) / "audio" / first.url.rsplit("/", 1)[-1]
    assert stored.read_bytes() == b"ID3preview"
    assert second.url == "https://cdn.example/gen-2.mp3"
    assert design.text == "Once upon a time..."


def test_design_voice_requires_description(tts_client):
    """A blank description is rejected before any request."""
    with pytest.raises(ValueError):
        tts_client.design_voice("   ")


@patch("dreamlity.services.tts_client.requests.post")
def test_design_voice_non_200(mock_post, tts_client):
    """A rejected design request raises SynthesisError."""
    mock_post.return_value = _response(status_code=422, text="bad description")

    with pytest.raises(SynthesisError, match="422"):
        tts_client.design_voice("A calm narrator")


@patch("dreamlity.services.tts_client.requests.post")
def test_create_voice(mock_post, tts_client, live_settings):
    """A saved voice uses the default name and labels."""
    response = _response()
    response.json.return_value = {"voice_id": "voice-9", "preview_url": "https://cdn.example/voice-9.mp3"}
    mock_post.return_value = response

    created = tts_client.create_voice("gen-1")

    assert mock_post.call_args.args[0] == f"{live_settings.elevenlabs_api_url}/text-to-voice"
    body = mock_post.call_args.kwargs["json"]
    assert body["generated_voice_id"] == "gen-1"
    assert body["voice_name"] == "Dreamlity Voice"
    assert body["labels"] == {"app": "Dreamlity"}
    assert created.voice_id == "voice-9"
    assert created.preview_url == "https://cdn.example/voice-9.mp3"


@patch("dreamlity.services.tts_client.requests.post")
def test_create_voice_network_error(mock_post, tts_client):
    """Network failures surface as SynthesisError."""
    mock_post.side_effect = requests.exceptions.ConnectionError("down")

    with pytest.raises(SynthesisError, match="Network error"):
        tts_client.create_voice("gen-1")
