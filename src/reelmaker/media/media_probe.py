"""Duration probing via ffprobe."""

from __future__ import annotations

import asyncio
import logging
import math
from dataclasses import dataclass, field
from pathlib import Path

from ..encoding.process_runner import run_process

logger = logging.getLogger(__name__)

DEFAULT_FALLBACK_SECONDS = 30.0


@dataclass(slots=True)
class MediaProbe:
    """Measure media durations without decoding the whole file.

    Probing never raises: any failure yields ``fallback_seconds`` so the
    pipeline can continue with an estimate. Results are advisory.
    """

    ffprobe_binary: str = "ffprobe"
    timeout_seconds: float = 10.0
    fallback_seconds: float = DEFAULT_FALLBACK_SECONDS
    log: logging.Logger = field(default_factory=lambda: logger)

    def build_command(self, path: Path) -> list[str]:
        return [
            self.ffprobe_binary,
            "-v", "error",
            "-show_entries", "format=duration",
            "-of", "default=noprint_wrappers=1:nokey=1",
            str(path),
        ]

    async def probe_duration(self, path: Path) -> float:
        try:
            result = await run_process(self.build_command(path), timeout=self.timeout_seconds)
        except (OSError, asyncio.TimeoutError) as exc:
            return self._fallback(path, f"probe failed: {exc!r}")

        if not result.ok:
            return self._fallback(path, f"exit code {result.returncode}: {result.stderr_tail(500)}")

        raw = result.stdout.decode("utf-8", errors="replace").strip()
        try:
            duration = float(raw)
        except ValueError:
            return self._fallback(path, f"non-numeric output {raw!r}")
        if not math.isfinite(duration) or duration <= 0:
            return self._fallback(path, f"unusable duration {raw!r}")

        self.log.debug("media.probe.done", extra={"path": str(path), "duration": duration})
        return duration

    def _fallback(self, path: Path, reason: str) -> float:
        self.log.warning(
            "media.probe.fallback",
            extra={"path": str(path), "reason": reason, "fallback": self.fallback_seconds},
        )
        return self.fallback_seconds
