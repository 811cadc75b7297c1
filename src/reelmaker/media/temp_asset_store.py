"""Scratch storage for per-request media files."""

from __future__ import annotations

import logging
import time
import uuid
from collections.abc import Iterable
from dataclasses import dataclass, field
from pathlib import Path

from fastapi import UploadFile

from ..compose.compose_errors import UploadReadError
from ..compose.compose_models import AssetKind, AssetOrigin, MediaAsset
from ..config import ScratchPaths

CHUNK_SIZE = 1 * 1024 * 1024  # 1 MiB
NAME_PREFIX = "reelmaker-"

_FALLBACK_SUFFIX = {
    AssetKind.IMAGE: ".bin",
    AssetKind.VIDEO: ".mp4",
    AssetKind.AUDIO: ".mp3",
}


@dataclass(slots=True)
class TempAssetStore:
    """Allocates uniquely named scratch files and removes them after use."""

    paths: ScratchPaths
    chunk_size_bytes: int = CHUNK_SIZE
    log: logging.Logger = field(default_factory=lambda: logging.getLogger(__name__))

    def allocate(self, suffix: str) -> Path:
        """Return a fresh scratch path; the file itself is not created."""
        suffix = suffix if not suffix or suffix.startswith(".") else f".{suffix}"
        return self.paths.scratch / f"{NAME_PREFIX}{uuid.uuid4().hex}{suffix}"

    async def persist_upload(
        self,
        upload: UploadFile,
        kind: AssetKind,
        *,
        scope: "TempAssetScope | None" = None,
    ) -> MediaAsset:
        """Copy upload contents to scratch storage."""
        target = self.allocate(self._derive_suffix(upload.filename, kind))
        if scope is not None:
            scope.track(target)

        try:
            with target.open("wb") as sink:
                while True:
                    chunk = await upload.read(self.chunk_size_bytes)
                    if not chunk:
                        break
                    sink.write(chunk)
        except OSError as exc:
            self.log.error(
                "media.temp.upload_failed",
                extra={"upload_name": upload.filename, "path": str(target)},
                exc_info=exc,
            )
            raise UploadReadError(f"Could not read upload '{upload.filename}'") from exc

        self.log.info(
            "media.temp.persisted",
            extra={"upload_name": upload.filename, "kind": kind.value, "path": str(target)},
        )
        return MediaAsset(path=target, kind=kind, origin=AssetOrigin.UPLOAD)

    def release(self, paths: Iterable[Path]) -> int:
        """Delete every path, ignoring files that are gone or cannot be removed."""
        removed = 0
        for path in paths:
            try:
                path.unlink()
            except FileNotFoundError:
                continue
            except OSError as exc:
                self.log.warning(
                    "media.temp.release_failed",
                    extra={"path": str(path), "error": str(exc)},
                )
                continue
            removed += 1
        return removed

    def scope(self) -> "TempAssetScope":
        return TempAssetScope(store=self)

    def list_stale(self, max_age_seconds: float, now: float | None = None) -> list[Path]:
        reference = time.time() if now is None else now
        stale: list[Path] = []
        for path in self.paths.scratch.glob(f"{NAME_PREFIX}*"):
            try:
                if not path.is_file():
                    continue
                age = reference - path.stat().st_mtime
            except OSError:
                continue
            if age > max_age_seconds:
                stale.append(path)
        return stale

    def cleanup_stale(self, max_age_seconds: float, now: float | None = None) -> int:
        """Purge scratch files left behind by crashed processes (fallback for cron)."""
        removed = self.release(self.list_stale(max_age_seconds, now))
        if removed:
            self.log.info("media.temp.cleanup.removed", extra={"count": removed})
        return removed

    @staticmethod
    def _derive_suffix(filename: str | None, kind: AssetKind) -> str:
        if filename:
            suffix = Path(filename).suffix
            if suffix:
                return suffix.lower()
        return _FALLBACK_SUFFIX[kind]


@dataclass(slots=True)
class TempAssetScope:
    """Release set for one request; everything tracked is deleted on exit."""

    store: TempAssetStore
    tracked: list[Path] = field(default_factory=list)

    def track(self, path: Path) -> Path:
        if path not in self.tracked:
            self.tracked.append(path)
        return path

    def adopt(self, asset: MediaAsset) -> MediaAsset:
        if asset.is_temporary:
            self.track(asset.path)
        return asset

    def allocate(self, suffix: str) -> Path:
        return self.track(self.store.allocate(suffix))

    def release(self) -> int:
        paths, self.tracked = self.tracked, []
        return self.store.release(paths)

    async def __aenter__(self) -> "TempAssetScope":
        return self

    async def __aexit__(self, exc_type, exc_value, traceback) -> None:
        self.release()
