"""Turn an audio source selection into a local audio file."""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass, field
from pathlib import PurePosixPath
from urllib.parse import urlparse

import httpx

from ..compose.compose_errors import (
    RemoteAudioError,
    RemoteAudioTimeoutError,
    UnknownAudioTrackError,
)
from ..compose.compose_models import (
    AssetKind,
    AssetOrigin,
    AudioSource,
    BuiltinAudio,
    MediaAsset,
    RemoteAudio,
    UploadedAudio,
)
from .audio_library import AUDIO_EXTENSIONS, AudioLibrary
from .temp_asset_store import TempAssetScope

logger = logging.getLogger(__name__)

DEFAULT_REMOTE_SUFFIX = ".mp3"


@dataclass(slots=True)
class AudioResolver:
    """Resolve uploaded, built-in or remote audio to exactly one local file."""

    library: AudioLibrary
    timeout_seconds: float = 15.0
    transport: httpx.AsyncBaseTransport | None = None
    log: logging.Logger = field(default_factory=lambda: logger)

    async def resolve(self, source: AudioSource, scope: TempAssetScope) -> MediaAsset:
        if isinstance(source, UploadedAudio):
            return scope.adopt(source.asset)
        if isinstance(source, BuiltinAudio):
            return self._resolve_builtin(source.file_name)
        if isinstance(source, RemoteAudio):
            return await self._download(source.url, scope)
        raise TypeError(f"Unsupported audio source: {source!r}")

    def _resolve_builtin(self, file_name: str) -> MediaAsset:
        path = self.library.lookup(file_name)
        if path is None:
            self.log.warning("audio.builtin.not_found", extra={"file_name": file_name})
            raise UnknownAudioTrackError(f"Unknown built-in audio track '{file_name}'")
        return MediaAsset(path=path, kind=AssetKind.AUDIO, origin=AssetOrigin.BUILTIN)

    async def _download(self, url: str, scope: TempAssetScope) -> MediaAsset:
        self.log.info("audio.remote.download.start", extra={"url": url})
        try:
            # httpx timeouts apply per read; the overall deadline covers a trickling body.
            async with asyncio.timeout(self.timeout_seconds):
                async with httpx.AsyncClient(
                    timeout=self.timeout_seconds,
                    follow_redirects=True,
                    transport=self.transport,
                ) as client:
                    response = await client.get(url)
        except (httpx.TimeoutException, TimeoutError) as exc:
            self.log.warning("audio.remote.download.timeout", extra={"url": url})
            raise RemoteAudioTimeoutError(
                f"Failed to download audio: timed out after {self.timeout_seconds:g}s"
            ) from exc
        except (httpx.HTTPError, httpx.InvalidURL) as exc:
            self.log.warning(
                "audio.remote.download.failed", extra={"url": url, "error": str(exc)}
            )
            raise RemoteAudioError(f"Failed to download audio: {exc}") from exc

        if not response.is_success:
            self.log.warning(
                "audio.remote.download.bad_status",
                extra={"url": url, "status_code": response.status_code},
            )
            raise RemoteAudioError(f"Failed to download audio: Status {response.status_code}")
        if not response.content:
            raise RemoteAudioError("Failed to download audio: empty response body")

        path = scope.allocate(_suffix_from_url(url))
        path.write_bytes(response.content)
        self.log.info(
            "audio.remote.download.done",
            extra={"url": url, "path": str(path), "size_bytes": len(response.content)},
        )
        return MediaAsset(path=path, kind=AssetKind.AUDIO, origin=AssetOrigin.REMOTE)


def _suffix_from_url(url: str) -> str:
    suffix = PurePosixPath(urlparse(url).path).suffix.lower()
    return suffix if suffix in AUDIO_EXTENSIONS else DEFAULT_REMOTE_SUFFIX
