"""HTTP routes for video composition."""

from __future__ import annotations

import logging

from fastapi import (
    APIRouter,
    Depends,
    File,
    Form,
    HTTPException,
    Request,
    UploadFile,
    status,
)
from fastapi.responses import Response

from .compose_errors import (
    CompositionError,
    CompositionValidationError,
    EncodeError,
    EncoderBusyError,
    RemoteAudioError,
    RemoteAudioTimeoutError,
    UploadReadError,
)
from .compose_models import FailureReason
from .compose_schemas import AudioTrackListSchema, AudioTrackSchema, CompositionErrorSchema
from .compose_service import CompositionService
from .validation import CreateVideoForm

router = APIRouter(prefix="/api", tags=["compose"])
logger = logging.getLogger(__name__)


def get_composition_service(request: Request) -> CompositionService:
    """Fetch composition service from application state."""
    try:
        return request.app.state.composition_service  # type: ignore[attr-defined]
    except AttributeError as exc:  # pragma: no cover - wiring error
        raise RuntimeError("CompositionService is not configured") from exc


def _error(status_code: int, exc: CompositionError) -> HTTPException:
    detail = CompositionErrorSchema(
        failure_reason=exc.failure_reason.value,
        details=str(exc) or None,
    )
    return HTTPException(status_code=status_code, detail=detail.model_dump())


@router.post("/create-video")
async def create_video(
    images: list[UploadFile] | None = File(None),
    images_legacy: list[UploadFile] | None = File(None, alias="images[]"),
    video: UploadFile | None = File(None),
    audio: UploadFile | None = File(None),
    audio_file_name: str | None = Form(None, alias="audioFileName"),
    audio_url: str | None = Form(None, alias="audioUrl"),
    durations: str | None = Form(None),
    duration: str | None = Form(None),
    width: str | None = Form(None),
    height: str | None = Form(None),
    mode: str | None = Form(None),
    service: CompositionService = Depends(get_composition_service),
) -> Response:
    """Compose uploaded images or a video with the selected audio; return MP4 bytes."""
    form = CreateVideoForm(
        images=[*(images or []), *(images_legacy or [])],
        video=video,
        audio=audio,
        audio_file_name=audio_file_name,
        audio_url=audio_url,
        durations=durations,
        duration=duration,
        width=width,
        height=height,
        mode=mode,
    )

    try:
        result = await service.create_video(form)
    except CompositionValidationError as exc:
        raise _error(status.HTTP_400_BAD_REQUEST, exc) from exc
    except UploadReadError as exc:
        raise _error(status.HTTP_400_BAD_REQUEST, exc) from exc
    except RemoteAudioTimeoutError as exc:
        raise _error(status.HTTP_504_GATEWAY_TIMEOUT, exc) from exc
    except RemoteAudioError as exc:
        raise _error(status.HTTP_502_BAD_GATEWAY, exc) from exc
    except EncoderBusyError as exc:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail=CompositionErrorSchema(
                failure_reason=exc.failure_reason.value, details=str(exc)
            ).model_dump(),
            headers={"Retry-After": str(max(1, int(exc.retry_after_seconds)))},
        ) from exc
    except EncodeError as exc:
        raise _error(status.HTTP_500_INTERNAL_SERVER_ERROR, exc) from exc
    except Exception as exc:
        logger.exception("compose.unexpected_error")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=CompositionErrorSchema(
                failure_reason=FailureReason.INTERNAL_ERROR.value,
                details="Unknown server error.",
            ).model_dump(),
        ) from exc

    return Response(
        content=result.payload,
        media_type=result.content_type,
        headers={"Content-Disposition": f'attachment; filename="{result.filename}"'},
    )


@router.get("/music", response_model=AudioTrackListSchema)
def list_music(
    service: CompositionService = Depends(get_composition_service),
) -> AudioTrackListSchema:
    """List the built-in audio library."""
    return AudioTrackListSchema(
        tracks=[
            AudioTrackSchema(file_name=track.file_name, size_bytes=track.size_bytes)
            for track in service.list_tracks()
        ]
    )
