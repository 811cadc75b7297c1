"""Dependency wiring helpers."""

from fastapi import FastAPI

from .compose.compose_api import router as compose_router
from .compose.compose_service import CompositionService
from .compose.validation import RequestParser
from .config import AppConfig
from .encoding.encode_executor import EncodeExecutor
from .encoding.encode_plan import CompositionPlanner
from .media.audio_library import AudioLibrary
from .media.audio_resolver import AudioResolver
from .media.media_probe import MediaProbe
from .media.temp_asset_store import TempAssetStore


def build_composition_service(config: AppConfig) -> CompositionService:
    limits = config.encode_limits
    temp_store = TempAssetStore(
        paths=config.paths,
        chunk_size_bytes=config.upload_limits.chunk_size_bytes,
    )
    library = AudioLibrary(root=config.paths.music)
    probe = MediaProbe(
        ffprobe_binary=limits.ffprobe_binary,
        timeout_seconds=limits.probe_timeout_seconds,
        fallback_seconds=limits.probe_fallback_seconds,
    )
    return CompositionService(
        parser=RequestParser(temp_store=temp_store, limits=config.upload_limits),
        temp_store=temp_store,
        resolver=AudioResolver(
            library=library,
            timeout_seconds=config.remote_audio_timeout_seconds,
        ),
        planner=CompositionPlanner(
            probe=probe,
            frame_rate=limits.frame_rate,
            audio_bitrate=limits.audio_bitrate,
        ),
        executor=EncodeExecutor(
            ffmpeg_binary=limits.ffmpeg_binary,
            max_concurrent=limits.max_concurrent_encodes,
            queue_timeout_seconds=limits.queue_timeout_seconds,
            timeout_seconds=limits.encode_timeout_seconds,
        ),
        library=library,
    )


def include_routers(app: FastAPI, config: AppConfig) -> None:
    """Mount module routers and attach services."""
    app.state.config = config
    app.state.composition_service = build_composition_service(config)

    @app.get("/health", tags=["health"])
    def health() -> dict[str, str]:
        return {"status": "ok"}

    app.include_router(compose_router)
