"""Data structures for the composition pipeline."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import StrEnum
from pathlib import Path
from typing import Union


class AssetKind(StrEnum):
    IMAGE = "image"
    VIDEO = "video"
    AUDIO = "audio"


class AssetOrigin(StrEnum):
    UPLOAD = "upload"
    BUILTIN = "builtin"
    REMOTE = "remote"
    GENERATED = "generated"


class CompositionMode(StrEnum):
    IMAGES = "images"
    VIDEO = "video"


class FailureReason(StrEnum):
    """Failure reasons enumerated in the create-video error contract."""

    NOT_ENOUGH_IMAGES = "not_enough_images"
    MISSING_VIDEO = "missing_video"
    MISSING_AUDIO = "missing_audio"
    UNKNOWN_AUDIO_TRACK = "unknown_audio_track"
    INVALID_DURATIONS = "invalid_durations"
    CONFLICTING_MODE = "conflicting_mode"
    INVALID_UPLOAD = "invalid_upload"
    REMOTE_AUDIO_ERROR = "remote_audio_error"
    REMOTE_AUDIO_TIMEOUT = "remote_audio_timeout"
    ENCODER_BUSY = "encoder_busy"
    ENCODE_FAILED = "encode_failed"
    ENCODE_TIMEOUT = "encode_timeout"
    INTERNAL_ERROR = "internal_error"


@dataclass(frozen=True, slots=True)
class MediaAsset:
    """A local media file owned by a single request."""

    path: Path
    kind: AssetKind
    origin: AssetOrigin

    @property
    def is_temporary(self) -> bool:
        # Built-in library tracks are shared and must never be deleted.
        return self.origin is not AssetOrigin.BUILTIN


@dataclass(frozen=True, slots=True)
class ImageSequenceSpec:
    """Ordered images with per-image display durations and output canvas."""

    images: tuple[MediaAsset, ...]
    durations: tuple[float, ...]
    width: int
    height: int

    def __post_init__(self) -> None:
        if len(self.images) < 2:
            raise ValueError("Image sequence requires at least 2 images")
        if len(self.images) != len(self.durations):
            raise ValueError("Each image requires exactly one duration")
        if any(not duration > 0 for duration in self.durations):
            raise ValueError("Image durations must be positive")

    @property
    def total_duration(self) -> float:
        return float(sum(self.durations))


@dataclass(frozen=True, slots=True)
class VideoReplaceSpec:
    video: MediaAsset
    # Informational only; output length follows the probed video.
    declared_duration: float | None = None


@dataclass(frozen=True, slots=True)
class UploadedAudio:
    asset: MediaAsset


@dataclass(frozen=True, slots=True)
class BuiltinAudio:
    file_name: str


@dataclass(frozen=True, slots=True)
class RemoteAudio:
    url: str


AudioSource = Union[UploadedAudio, BuiltinAudio, RemoteAudio]


@dataclass(frozen=True, slots=True)
class ImagesRequest:
    spec: ImageSequenceSpec
    audio: AudioSource
    mode: CompositionMode = field(default=CompositionMode.IMAGES, init=False)


@dataclass(frozen=True, slots=True)
class VideoRequest:
    spec: VideoReplaceSpec
    audio: AudioSource
    mode: CompositionMode = field(default=CompositionMode.VIDEO, init=False)


CompositionRequest = Union[ImagesRequest, VideoRequest]


@dataclass(slots=True)
class CompositionJob:
    """Resolved unit of work for a single request."""

    job_id: str
    mode: CompositionMode
    spec: ImageSequenceSpec | VideoReplaceSpec
    audio: MediaAsset
    target_duration: float
    loop_audio: bool
    output_path: Path


@dataclass(slots=True)
class CompositionResult:
    payload: bytes
    duration_seconds: float
    loop_audio: bool
    content_type: str = "video/mp4"
    filename: str = "output.mp4"
