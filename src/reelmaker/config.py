"""Application configuration builder."""

from __future__ import annotations

import os
import tempfile
from dataclasses import dataclass
from pathlib import Path


@dataclass(slots=True)
class ScratchPaths:
    scratch: Path
    music: Path


@dataclass(slots=True)
class EncodeLimits:
    ffmpeg_binary: str
    ffprobe_binary: str
    max_concurrent_encodes: int
    queue_timeout_seconds: float
    encode_timeout_seconds: float
    probe_timeout_seconds: float
    probe_fallback_seconds: float
    frame_rate: int
    audio_bitrate: str


@dataclass(slots=True)
class UploadLimits:
    chunk_size_bytes: int
    default_image_duration_seconds: float
    default_width: int
    default_height: int


@dataclass(slots=True)
class AppConfig:
    paths: ScratchPaths
    encode_limits: EncodeLimits
    upload_limits: UploadLimits
    remote_audio_timeout_seconds: float
    scratch_ttl_seconds: int


def _ensure_paths(paths: ScratchPaths) -> None:
    paths.scratch.mkdir(parents=True, exist_ok=True)


def load_config() -> AppConfig:
    """Load configuration from environment."""
    paths = ScratchPaths(
        scratch=Path(os.getenv("SCRATCH_DIR", tempfile.gettempdir())),
        music=Path(os.getenv("MUSIC_ROOT", Path("public") / "music")),
    )
    _ensure_paths(paths)

    encode_limits = EncodeLimits(
        ffmpeg_binary=os.getenv("FFMPEG_BINARY", "ffmpeg"),
        ffprobe_binary=os.getenv("FFPROBE_BINARY", "ffprobe"),
        max_concurrent_encodes=int(os.getenv("MAX_CONCURRENT_ENCODES", 2)),
        queue_timeout_seconds=float(os.getenv("ENCODE_QUEUE_TIMEOUT_SECONDS", 30)),
        encode_timeout_seconds=float(os.getenv("ENCODE_TIMEOUT_SECONDS", 600)),
        probe_timeout_seconds=float(os.getenv("PROBE_TIMEOUT_SECONDS", 10)),
        probe_fallback_seconds=float(os.getenv("PROBE_FALLBACK_SECONDS", 30)),
        frame_rate=int(os.getenv("OUTPUT_FRAME_RATE", 30)),
        audio_bitrate=os.getenv("AUDIO_BITRATE", "192k"),
    )

    upload_limits = UploadLimits(
        chunk_size_bytes=int(os.getenv("UPLOAD_CHUNK_SIZE_BYTES", 1 * 1024 * 1024)),
        default_image_duration_seconds=float(
            os.getenv("DEFAULT_IMAGE_DURATION_SECONDS", 2)
        ),
        default_width=int(os.getenv("DEFAULT_WIDTH", 720)),
        default_height=int(os.getenv("DEFAULT_HEIGHT", 1280)),
    )

    return AppConfig(
        paths=paths,
        encode_limits=encode_limits,
        upload_limits=upload_limits,
        remote_audio_timeout_seconds=float(
            os.getenv("REMOTE_AUDIO_TIMEOUT_SECONDS", 15)
        ),
        scratch_ttl_seconds=int(os.getenv("SCRATCH_TTL_SECONDS", 3600)),
    )
