from __future__ import annotations

from io import BytesIO
from pathlib import Path

from fastapi import UploadFile

from src.reelmaker.compose.compose_service import CompositionService
from src.reelmaker.compose.validation import RequestParser
from src.reelmaker.config import AppConfig, EncodeLimits, ScratchPaths, UploadLimits
from src.reelmaker.encoding.encode_plan import CompositionPlanner
from src.reelmaker.media.audio_library import AudioLibrary
from src.reelmaker.media.audio_resolver import AudioResolver
from src.reelmaker.media.temp_asset_store import TempAssetStore

PNG_BYTES = b"\x89PNG\r\n\x1a\nfake-image"
MP3_BYTES = b"ID3\x04\x00fake-audio"
MP4_BYTES = b"\x00\x00\x00\x18ftypisomfake-video"


def build_config(tmp_path: Path) -> AppConfig:
    paths = ScratchPaths(scratch=tmp_path / "scratch", music=tmp_path / "music")
    paths.scratch.mkdir(parents=True, exist_ok=True)
    paths.music.mkdir(parents=True, exist_ok=True)
    return AppConfig(
        paths=paths,
        encode_limits=EncodeLimits(
            ffmpeg_binary="ffmpeg",
            ffprobe_binary="ffprobe",
            max_concurrent_encodes=2,
            queue_timeout_seconds=1.0,
            encode_timeout_seconds=30.0,
            probe_timeout_seconds=5.0,
            probe_fallback_seconds=30.0,
            frame_rate=30,
            audio_bitrate="192k",
        ),
        upload_limits=UploadLimits(
            chunk_size_bytes=4,
            default_image_duration_seconds=2.0,
            default_width=720,
            default_height=1280,
        ),
        remote_audio_timeout_seconds=15.0,
        scratch_ttl_seconds=3600,
    )


def make_upload(data: bytes, filename: str) -> UploadFile:
    return UploadFile(file=BytesIO(data), filename=filename)


def scratch_files(config: AppConfig) -> list[Path]:
    return sorted(config.paths.scratch.iterdir())


def build_service(config: AppConfig, *, probe, executor, transport=None) -> CompositionService:
    temp_store = TempAssetStore(
        paths=config.paths, chunk_size_bytes=config.upload_limits.chunk_size_bytes
    )
    library = AudioLibrary(root=config.paths.music)
    return CompositionService(
        parser=RequestParser(temp_store=temp_store, limits=config.upload_limits),
        temp_store=temp_store,
        resolver=AudioResolver(library=library, transport=transport),
        planner=CompositionPlanner(probe=probe),
        executor=executor,
        library=library,
    )
