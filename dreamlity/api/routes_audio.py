"""FastAPI routes for narration audio and script previews."""

from fastapi import APIRouter, Depends, HTTPException
from fastapi.responses import JSONResponse
from starlette.concurrency import run_in_threadpool

from dreamlity.api.dependencies import enforce_rate_limit, get_settings
from dreamlity.core.config import Settings
from dreamlity.core.errors import NarrationInputError, StorageError, SynthesisError
from dreamlity.core.logging_config import get_logger
from dreamlity.models.schemas import (
    AudioRequest,
    AudioResponse,
    ScriptPreviewRequest,
    ScriptPreviewResponse,
    VoiceCreateRequest,
    VoiceCreateResponse,
    VoiceDesignRequest,
    VoiceDesignResponse,
    VoiceSettings,
)
from dreamlity.services.expressive_tags import seeded_chooser
from dreamlity.services.narration_engine import NarrationEngine
from dreamlity.services.tts_client import MODELS, VOICES, TTSClient

router = APIRouter(prefix="/audio", tags=["audio"])


@router.post("", response_model=AudioResponse, dependencies=[Depends(enforce_rate_limit)])
async def generate_audio(request: AudioRequest, settings: Settings = Depends(get_settings)) -> AudioResponse:
    """Synthesize a single chunk of (optionally tagged) text."""
    if not request.text.strip():
        raise HTTPException(status_code=400, detail="Text is required")

    logger = get_logger(__name__)
    logger.info(f"Generating audio for {len(request.text)} characters")

    tts_client = TTSClient(settings, logger)
    voice_id = request.voice_id or VOICES["RACHEL"]
    model = request.model or MODELS["TURBO_V2_5"]
    try:
        result = await run_in_threadpool(
            tts_client.generate_audio,
            request.text,
            voice_id,
            model,
            VoiceSettings(stability=0.6, similarity_boost=0.8, style=0.3, use_speaker_boost=True),
        )
    except (SynthesisError, StorageError) as e:
        logger.error(f"Audio generation failed: {e}")
        raise HTTPException(status_code=500, detail=f"Audio generation failed: {e}")

    return AudioResponse(
        success=True,
        audio_url=result.public_url,
        file_name=result.file_name,
        metadata={"voiceId": result.voice_id, "model": result.model, "fileSize": result.file_size},
    )


@router.get("/voices")
async def list_voices(settings: Settings = Depends(get_settings)) -> JSONResponse:
    """List account voices plus the predefined voices and models.

    Predefined data is still returned (status 200) when the remote call fails.
    """
    logger = get_logger(__name__)
    tts_client = TTSClient(settings, logger)
    try:
        voices = await run_in_threadpool(tts_client.list_voices)
    except SynthesisError as e:
        logger.warning(f"Could not fetch voices: {e}")
        return JSONResponse(
            {"error": "Failed to fetch voices", "predefinedVoices": VOICES, "models": MODELS},
            status_code=200,
        )

    return JSONResponse({"success": True, "voices": voices, "predefinedVoices": VOICES, "models": MODELS})


@router.post("/voice-design", response_model=VoiceDesignResponse, dependencies=[Depends(enforce_rate_limit)])
async def design_voice(request: VoiceDesignRequest, settings: Settings = Depends(get_settings)) -> VoiceDesignResponse:
    """Generate voice previews from a description for the parent to audition."""
    if not request.voice_description.strip():
        raise HTTPException(status_code=400, detail="voice_description is required")

    logger = get_logger(__name__)
    tts_client = TTSClient(settings, logger)
    try:
        return await run_in_threadpool(
            tts_client.design_voice,
            request.voice_description,
            request.preview_text,
            request.loudness,
            request.guidance_scale,
            request.seed,
        )
    except (SynthesisError, StorageError) as e:
        logger.error(f"Voice design failed: {e}")
        raise HTTPException(status_code=502, detail=f"Voice design failed: {e}")


@router.post("/voice-create", response_model=VoiceCreateResponse, dependencies=[Depends(enforce_rate_limit)])
async def create_voice(request: VoiceCreateRequest, settings: Settings = Depends(get_settings)) -> VoiceCreateResponse:
    """Save an auditioned preview as a persistent voice usable as the story voiceId."""
    if not request.generated_voice_id:
        raise HTTPException(status_code=400, detail="generated_voice_id is required")

    logger = get_logger(__name__)
    tts_client = TTSClient(settings, logger)
    try:
        return await run_in_threadpool(
            tts_client.create_voice,
            request.generated_voice_id,
            request.voice_name,
            request.voice_description,
            request.labels,
        )
    except SynthesisError as e:
        logger.error(f"Voice creation failed: {e}")
        raise HTTPException(status_code=502, detail=f"Voice creation failed: {e}")


@router.post("/script", response_model=ScriptPreviewResponse)
async def preview_script(
    request: ScriptPreviewRequest,
    settings: Settings = Depends(get_settings),
) -> ScriptPreviewResponse:
    """Build the annotated narration script and its chunks without synthesizing."""
    logger = get_logger(__name__)
    choose = seeded_chooser(request.seed) if request.seed is not None else None
    engine = NarrationEngine(settings, logger, choose=choose)
    try:
        lines, chunks = engine.prepare_chunks(request.scenes, request.mode, request.pace)
    except NarrationInputError as e:
        raise HTTPException(status_code=400, detail=str(e))
    return ScriptPreviewResponse(lines=lines, chunks=chunks)
