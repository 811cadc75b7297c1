"""Run encode plans through ffmpeg with bounded concurrency."""

from __future__ import annotations

import asyncio
import logging
import time
from dataclasses import dataclass, field
from pathlib import Path

from ..compose.compose_errors import EncodeError, EncodeTimeoutError, EncoderBusyError
from .encode_plan import EncodePlan
from .process_runner import run_process

logger = logging.getLogger(__name__)


@dataclass(slots=True)
class EncodeExecutor:
    """Execute encode plans; at most ``max_concurrent`` ffmpeg processes run at once.

    Callers beyond the limit queue on the semaphore for up to
    ``queue_timeout_seconds`` and then fail with :class:`EncoderBusyError`.
    Failed encodes are not retried.
    """

    ffmpeg_binary: str = "ffmpeg"
    max_concurrent: int = 2
    queue_timeout_seconds: float = 30.0
    timeout_seconds: float = 600.0
    log: logging.Logger = field(default_factory=lambda: logger)
    _slots: asyncio.Semaphore = field(init=False, repr=False)

    def __post_init__(self) -> None:
        if self.max_concurrent < 1:
            raise ValueError("max_concurrent must be at least 1")
        self._slots = asyncio.Semaphore(self.max_concurrent)

    async def execute(self, plan: EncodePlan) -> Path:
        try:
            await asyncio.wait_for(self._slots.acquire(), timeout=self.queue_timeout_seconds)
        except asyncio.TimeoutError as exc:
            self.log.warning(
                "encode.queue.timeout",
                extra={"queue_timeout_seconds": self.queue_timeout_seconds},
            )
            raise EncoderBusyError(
                "All encoder slots are busy, try again later",
                retry_after_seconds=self.queue_timeout_seconds,
            ) from exc

        try:
            return await self._run(plan)
        finally:
            self._slots.release()

    async def _run(self, plan: EncodePlan) -> Path:
        cmd = plan.command(self.ffmpeg_binary)
        self.log.info("encode.start", extra={"command": " ".join(cmd)})
        started = time.monotonic()

        try:
            result = await run_process(cmd, timeout=self.timeout_seconds)
        except asyncio.TimeoutError as exc:
            self.log.error(
                "encode.timeout",
                extra={"timeout_seconds": self.timeout_seconds, "output": str(plan.output_path)},
            )
            raise EncodeTimeoutError(
                f"Encoding did not finish within {self.timeout_seconds:g}s"
            ) from exc
        except OSError as exc:
            self.log.error("encode.spawn_failed", extra={"binary": self.ffmpeg_binary}, exc_info=exc)
            raise EncodeError("Encoder could not be started") from exc

        elapsed = time.monotonic() - started
        if not result.ok:
            self.log.error(
                "encode.failed",
                extra={"returncode": result.returncode, "stderr": result.stderr_tail()},
            )
            raise EncodeError(f"Encoder exited with code {result.returncode}")

        if not plan.output_path.is_file():
            self.log.error("encode.output_missing", extra={"output": str(plan.output_path)})
            raise EncodeError("Encoder finished without producing output")

        self.log.info(
            "encode.done",
            extra={"output": str(plan.output_path), "duration_seconds": round(elapsed, 3)},
        )
        return plan.output_path
