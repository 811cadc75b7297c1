"""Domain service sequencing a create-video request."""

from __future__ import annotations

import asyncio
import time
import uuid
from dataclasses import dataclass

import structlog

from ..encoding.encode_executor import EncodeExecutor
from ..encoding.encode_plan import CompositionPlanner
from ..media.audio_library import AudioLibrary, AudioTrack
from ..media.audio_resolver import AudioResolver
from ..media.temp_asset_store import TempAssetScope, TempAssetStore
from .compose_errors import CompositionError
from .compose_models import (
    CompositionRequest,
    CompositionResult,
    ImagesRequest,
    VideoRequest,
)
from .validation import CreateVideoForm, RequestParser

logger = structlog.get_logger(__name__)


@dataclass(slots=True)
class CompositionService:
    """Coordinates validation, audio resolution, planning and encoding.

    Every scratch file a request creates is tracked by its
    :class:`TempAssetScope` and removed when the request ends, whether it
    succeeded or failed.
    """

    parser: RequestParser
    temp_store: TempAssetStore
    resolver: AudioResolver
    planner: CompositionPlanner
    executor: EncodeExecutor
    library: AudioLibrary

    async def create_video(self, form: CreateVideoForm) -> CompositionResult:
        job_id = uuid.uuid4().hex
        started = time.monotonic()
        with structlog.contextvars.bound_contextvars(job_id=job_id):
            async with self.temp_store.scope() as scope:
                try:
                    request = await self.parser.parse(form, scope)
                    result = await self.compose(request, scope, job_id=job_id)
                except CompositionError as exc:
                    logger.warning(
                        "compose.job.failed",
                        failure_reason=exc.failure_reason.value,
                        error=str(exc),
                        tracked_files=len(scope.tracked),
                    )
                    raise
            logger.info(
                "compose.job.completed",
                mode=request.mode.value,
                size_bytes=len(result.payload),
                duration_seconds=result.duration_seconds,
                loop_audio=result.loop_audio,
                elapsed_seconds=round(time.monotonic() - started, 3),
            )
        return result

    async def compose(
        self,
        request: CompositionRequest,
        scope: TempAssetScope,
        *,
        job_id: str,
    ) -> CompositionResult:
        """Resolve audio, plan and run the encode; return the output bytes."""
        audio = await self.resolver.resolve(request.audio, scope)

        if isinstance(request, ImagesRequest):
            for image in request.spec.images:
                scope.adopt(image)
            job, plan = await self.planner.plan_images(job_id, request.spec, audio, scope)
        elif isinstance(request, VideoRequest):
            scope.adopt(request.spec.video)
            job, plan = await self.planner.plan_video(job_id, request.spec, audio, scope)
        else:
            raise TypeError(f"Unsupported composition request: {request!r}")

        output_path = await self.executor.execute(plan)
        payload = await asyncio.to_thread(output_path.read_bytes)

        return CompositionResult(
            payload=payload,
            duration_seconds=job.target_duration,
            loop_audio=job.loop_audio,
        )

    def list_tracks(self) -> list[AudioTrack]:
        return self.library.list_tracks()
