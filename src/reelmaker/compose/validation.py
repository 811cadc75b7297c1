"""Turn raw create-video form fields into a typed composition request."""

from __future__ import annotations

import json
import logging
import math
from dataclasses import dataclass, field

from fastapi import UploadFile

from ..config import UploadLimits
from ..media.temp_asset_store import TempAssetScope, TempAssetStore
from .compose_errors import (
    ConflictingModeError,
    InvalidDurationsError,
    MissingAudioError,
    MissingVideoError,
    NotEnoughImagesError,
)
from .compose_models import (
    AssetKind,
    AudioSource,
    BuiltinAudio,
    CompositionMode,
    CompositionRequest,
    ImageSequenceSpec,
    ImagesRequest,
    RemoteAudio,
    UploadedAudio,
    VideoReplaceSpec,
    VideoRequest,
)

logger = logging.getLogger(__name__)

MIN_IMAGES = 2
NO_AUDIO_MESSAGE = "No valid audio file provided."
# Encode plans render seconds at microsecond precision.
MIN_DURATION_SECONDS = 1e-6


@dataclass(slots=True)
class CreateVideoForm:
    """Multipart fields as received by the HTTP layer."""

    images: list[UploadFile] = field(default_factory=list)
    video: UploadFile | None = None
    audio: UploadFile | None = None
    audio_file_name: str | None = None
    audio_url: str | None = None
    durations: str | None = None
    duration: str | None = None
    width: str | None = None
    height: str | None = None
    mode: str | None = None


def _present(upload: UploadFile | None) -> bool:
    return upload is not None and bool(upload.filename)


def _is_number(value: object) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def parse_durations(raw: str | None, count: int, default: float) -> tuple[float, ...]:
    """Parse the ``durations`` JSON array.

    Malformed input (bad JSON, not an array, non-numeric entries, wrong
    length) falls back to ``default`` for every image. Well-formed arrays
    with zero, negative, sub-microsecond or non-finite values are rejected.
    """
    fallback = tuple(float(default) for _ in range(count))
    if not raw:
        return fallback
    try:
        parsed = json.loads(raw)
    except (TypeError, ValueError):
        logger.info("compose.durations.malformed", extra={"raw": raw[:200]})
        return fallback
    if not isinstance(parsed, list) or len(parsed) != count:
        logger.info(
            "compose.durations.length_mismatch",
            extra={"expected": count, "raw": raw[:200]},
        )
        return fallback
    if not all(_is_number(value) for value in parsed):
        logger.info("compose.durations.non_numeric", extra={"raw": raw[:200]})
        return fallback

    durations = tuple(float(value) for value in parsed)
    invalid = [
        value
        for value in durations
        if not math.isfinite(value) or value < MIN_DURATION_SECONDS
    ]
    if invalid:
        raise InvalidDurationsError(
            f"Image durations must be positive numbers, got {invalid[0]!r}"
        )
    return durations


def parse_dimension(raw: str | None, default: int) -> int:
    """Parse a canvas side; odd values are rounded down for yuv420p chroma subsampling."""
    try:
        value = int(float(raw)) if raw not in (None, "") else 0
    except (TypeError, ValueError, OverflowError):
        value = 0
    value -= value % 2
    return value if value > 0 else default


def parse_declared_duration(raw: str | None) -> float | None:
    if raw in (None, ""):
        return None
    try:
        value = float(raw)
    except (TypeError, ValueError):
        return None
    return value if math.isfinite(value) and value > 0 else None


def resolve_mode(explicit: str | None, *, has_video: bool, has_images: bool) -> CompositionMode:
    """Pick the pipeline from an explicit ``mode`` or from the payload shape."""
    if not explicit:
        return CompositionMode.VIDEO if has_video else CompositionMode.IMAGES

    try:
        mode = CompositionMode(explicit.strip().lower())
    except ValueError:
        raise ConflictingModeError(f"Unknown mode '{explicit}'") from None
    if mode is CompositionMode.IMAGES and has_video:
        raise ConflictingModeError("mode=images does not accept a video upload")
    if mode is CompositionMode.VIDEO and has_images:
        raise ConflictingModeError("mode=video does not accept image uploads")
    return mode


@dataclass(slots=True)
class RequestParser:
    """Validate form fields and persist uploads into the request's scope."""

    temp_store: TempAssetStore
    limits: UploadLimits
    log: logging.Logger = field(default_factory=lambda: logger)

    async def parse(self, form: CreateVideoForm, scope: TempAssetScope) -> CompositionRequest:
        images = [upload for upload in form.images if _present(upload)]
        has_video = _present(form.video)
        mode = resolve_mode(form.mode, has_video=has_video, has_images=bool(images))
        if mode is CompositionMode.VIDEO and images:
            self.log.warning("compose.request.images_ignored", extra={"count": len(images)})

        if mode is CompositionMode.IMAGES:
            if len(images) < MIN_IMAGES:
                raise NotEnoughImagesError("Please upload at least 2 images.")
            durations = parse_durations(
                form.durations, len(images), self.limits.default_image_duration_seconds
            )
        elif not has_video:
            raise MissingVideoError("Please upload a video file.")

        self._require_audio(form)

        if mode is CompositionMode.IMAGES:
            saved = [
                await self.temp_store.persist_upload(upload, AssetKind.IMAGE, scope=scope)
                for upload in images
            ]
            spec = ImageSequenceSpec(
                images=tuple(saved),
                durations=durations,
                width=parse_dimension(form.width, self.limits.default_width),
                height=parse_dimension(form.height, self.limits.default_height),
            )
            audio = await self._audio_source(form, scope)
            return ImagesRequest(spec=spec, audio=audio)

        assert form.video is not None
        video = await self.temp_store.persist_upload(form.video, AssetKind.VIDEO, scope=scope)
        audio = await self._audio_source(form, scope)
        return VideoRequest(
            spec=VideoReplaceSpec(
                video=video,
                declared_duration=parse_declared_duration(form.duration),
            ),
            audio=audio,
        )

    def _require_audio(self, form: CreateVideoForm) -> None:
        supplied = [
            name
            for name, present in (
                ("audio", _present(form.audio)),
                ("audioFileName", bool(form.audio_file_name)),
                ("audioUrl", bool(form.audio_url)),
            )
            if present
        ]
        if not supplied:
            raise MissingAudioError(NO_AUDIO_MESSAGE)
        if len(supplied) > 1:
            # Precedence: uploaded file, then built-in name, then URL.
            self.log.warning("compose.audio.multiple_sources", extra={"fields": supplied})

    async def _audio_source(self, form: CreateVideoForm, scope: TempAssetScope) -> AudioSource:
        if _present(form.audio):
            assert form.audio is not None
            asset = await self.temp_store.persist_upload(form.audio, AssetKind.AUDIO, scope=scope)
            return UploadedAudio(asset=asset)
        if form.audio_file_name:
            return BuiltinAudio(file_name=form.audio_file_name.strip())
        if form.audio_url:
            return RemoteAudio(url=form.audio_url.strip())
        raise MissingAudioError(NO_AUDIO_MESSAGE)
