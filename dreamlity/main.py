"""
FastAPI entrypoint for the Dreamlity story studio API.

Serves the story form endpoint, story browsing, narration audio helpers and
the generated media stored by the local object store.
"""

from contextlib import asynccontextmanager
from pathlib import Path

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.staticfiles import StaticFiles

from dreamlity.api.routes_audio import router as audio_router
from dreamlity.api.routes_story import router as stories_router
from dreamlity.core.config import settings
from dreamlity.core.logging_config import get_logger, setup_logging

setup_logging(log_level=settings.log_level, log_file=Path(settings.log_file) if settings.log_file else None)
logger = get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan events."""
    logger.info("=" * 60)
    logger.info(f"Starting {settings.app_name} v{settings.app_version}")
    logger.info(f"Debug mode: {settings.debug}")
    logger.info(f"ElevenLabs audio: {'enabled' if settings.enable_elevenlabs_audio else 'disabled'}")
    logger.info("=" * 60)
    yield
    logger.info("Shutting down application")


app = FastAPI(
    title=settings.app_name,
    version=settings.app_version,
    description="Dreamlity - illustrated, narrated children's stories from a name, a dream and a personality",
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],  # In production, specify allowed origins
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(stories_router)
app.include_router(audio_router)

if settings.public_base_url.startswith("/"):
    Path(settings.object_store_path).mkdir(parents=True, exist_ok=True)
    app.mount(
        settings.public_base_url.rstrip("/"),
        StaticFiles(directory=settings.object_store_path),
        name="generated",
    )


@app.get("/")
async def root():
    """Root endpoint."""
    return {
        "name": settings.app_name,
        "version": settings.app_version,
        "status": "running",
        "endpoints": {
            "generate_story": "/stories/generate",
            "list_stories": "/stories",
            "get_story": "/stories/{story_id}",
            "audio": "/audio",
            "voices": "/audio/voices",
            "script_preview": "/audio/script",
            "docs": "/docs",
        },
    }


@app.get("/health")
async def health():
    """Health check endpoint."""
    return {"status": "healthy"}


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "dreamlity.main:app",
        host="0.0.0.0",
        port=8000,
        reload=settings.debug,
        log_level=settings.log_level.lower(),
    )
