"""Encode plans for slideshow and audio-replace compositions.

Both plans share one rule: the audio must never run out before the visual
track ends. Whenever the probed audio is shorter than the target duration
the audio input is looped indefinitely (``-stream_loop -1``) and the output
is then cut at the target, either explicitly with ``-t`` (slideshow) or by
``-shortest`` against the untouched video stream (audio replace).
"""

from __future__ import annotations

import logging
from collections.abc import Sequence
from dataclasses import dataclass, field
from pathlib import Path

from ..compose.compose_models import (
    CompositionJob,
    CompositionMode,
    ImageSequenceSpec,
    MediaAsset,
    VideoReplaceSpec,
)
from ..media.media_probe import MediaProbe
from ..media.temp_asset_store import TempAssetScope

logger = logging.getLogger(__name__)

OUTPUT_SUFFIX = ".mp4"
MANIFEST_SUFFIX = ".txt"


@dataclass(frozen=True, slots=True)
class EncodePlan:
    """Ordered encoder arguments; consumed once by the executor."""

    args: tuple[str, ...]
    output_path: Path

    def command(self, binary: str) -> list[str]:
        return [binary, *self.args]


def format_seconds(value: float) -> str:
    """Render seconds for ffmpeg (``2``, ``2.5``, ``0.000125``) at microsecond precision."""
    text = f"{value:.6f}".rstrip("0").rstrip(".")
    return text or "0"


def _quote_concat_path(path: Path) -> str:
    return "'" + str(path).replace("'", "'\\''") + "'"


def render_concat_manifest(images: Sequence[MediaAsset], durations: Sequence[float]) -> str:
    """Build a concat demuxer list.

    The last image is listed a second time without a ``duration`` line;
    the demuxer ignores the duration of the final entry otherwise.
    """
    if len(images) != len(durations):
        raise ValueError("Each image requires exactly one duration")
    if not images:
        raise ValueError("Concat manifest requires at least one image")

    lines: list[str] = []
    for image, duration in zip(images, durations):
        lines.append(f"file {_quote_concat_path(image.path)}")
        lines.append(f"duration {format_seconds(duration)}")
    lines.append(f"file {_quote_concat_path(images[-1].path)}")
    return "\n".join(lines) + "\n"


def should_loop_audio(target_seconds: float, audio_seconds: float) -> bool:
    return target_seconds > audio_seconds


def _audio_input(audio_path: Path, loop: bool) -> list[str]:
    if loop:
        return ["-stream_loop", "-1", "-i", str(audio_path)]
    return ["-i", str(audio_path)]


def build_slideshow_plan(
    job: CompositionJob,
    manifest_path: Path,
    *,
    frame_rate: int = 30,
    audio_bitrate: str = "192k",
) -> EncodePlan:
    spec = job.spec
    if not isinstance(spec, ImageSequenceSpec):
        raise TypeError("Slideshow plan requires an ImageSequenceSpec")

    width, height = spec.width, spec.height
    video_filter = (
        f"scale={width}:{height}:force_original_aspect_ratio=decrease,"
        f"pad={width}:{height}:(ow-iw)/2:(oh-ih)/2:color=black"
    )
    args = [
        "-y",
        "-f", "concat",
        "-safe", "0",
        "-i", str(manifest_path),
        *_audio_input(job.audio.path, job.loop_audio),
        "-map", "0:v:0",
        "-map", "1:a:0",
        "-vf", video_filter,
        "-pix_fmt", "yuv420p",
        "-r", str(frame_rate),
        "-t", format_seconds(job.target_duration),
        "-c:a", "aac",
        "-b:a", audio_bitrate,
        str(job.output_path),
    ]
    return EncodePlan(args=tuple(args), output_path=job.output_path)


def build_audio_replace_plan(job: CompositionJob) -> EncodePlan:
    spec = job.spec
    if not isinstance(spec, VideoReplaceSpec):
        raise TypeError("Audio replace plan requires a VideoReplaceSpec")

    # The source audio track is dropped, not mixed; video is stream-copied.
    args = [
        "-y",
        "-i", str(spec.video.path),
        *_audio_input(job.audio.path, job.loop_audio),
        "-map", "0:v:0",
        "-map", "1:a:0",
        "-c:v", "copy",
        "-c:a", "aac",
        "-shortest",
        str(job.output_path),
    ]
    return EncodePlan(args=tuple(args), output_path=job.output_path)


@dataclass(slots=True)
class CompositionPlanner:
    """Probe inputs, take the loop decision and build the encode plan."""

    probe: MediaProbe
    frame_rate: int = 30
    audio_bitrate: str = "192k"
    log: logging.Logger = field(default_factory=lambda: logger)

    async def plan_images(
        self,
        job_id: str,
        spec: ImageSequenceSpec,
        audio: MediaAsset,
        scope: TempAssetScope,
    ) -> tuple[CompositionJob, EncodePlan]:
        total = spec.total_duration
        audio_duration = await self.probe.probe_duration(audio.path)
        loop = should_loop_audio(total, audio_duration)

        manifest_path = scope.allocate(MANIFEST_SUFFIX)
        manifest_path.write_text(
            render_concat_manifest(spec.images, spec.durations), encoding="utf-8"
        )

        job = CompositionJob(
            job_id=job_id,
            mode=CompositionMode.IMAGES,
            spec=spec,
            audio=audio,
            target_duration=total,
            loop_audio=loop,
            output_path=scope.allocate(OUTPUT_SUFFIX),
        )
        self.log.info(
            "compose.plan.images",
            extra={
                "job_id": job_id,
                "images": len(spec.images),
                "total_duration": total,
                "audio_duration": audio_duration,
                "loop_audio": loop,
            },
        )
        plan = build_slideshow_plan(
            job,
            manifest_path,
            frame_rate=self.frame_rate,
            audio_bitrate=self.audio_bitrate,
        )
        return job, plan

    async def plan_video(
        self,
        job_id: str,
        spec: VideoReplaceSpec,
        audio: MediaAsset,
        scope: TempAssetScope,
    ) -> tuple[CompositionJob, EncodePlan]:
        video_duration = await self.probe.probe_duration(spec.video.path)
        audio_duration = await self.probe.probe_duration(audio.path)
        loop = should_loop_audio(video_duration, audio_duration)

        job = CompositionJob(
            job_id=job_id,
            mode=CompositionMode.VIDEO,
            spec=spec,
            audio=audio,
            target_duration=video_duration,
            loop_audio=loop,
            output_path=scope.allocate(OUTPUT_SUFFIX),
        )
        self.log.info(
            "compose.plan.video",
            extra={
                "job_id": job_id,
                "video_duration": video_duration,
                "audio_duration": audio_duration,
                "loop_audio": loop,
            },
        )
        return job, build_audio_replace_plan(job)
