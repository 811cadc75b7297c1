import asyncio
from pathlib import Path

import pytest

from src.reelmaker.media import media_probe
from src.reelmaker.media.media_probe import MediaProbe
from tests.mocks.media import FakeProcessRunner, failed, ok


@pytest.fixture
def runner(monkeypatch) -> FakeProcessRunner:
    fake = FakeProcessRunner()
    monkeypatch.setattr(media_probe, "run_process", fake)
    return fake


@pytest.mark.asyncio
async def test_probe_parses_ffprobe_output(runner) -> None:
    runner.results.append(ok(b"12.345000\n"))
    probe = MediaProbe(ffprobe_binary="/usr/bin/ffprobe")

    duration = await probe.probe_duration(Path("/scratch/a.mp3"))

    assert duration == pytest.approx(12.345)
    assert runner.commands == [
        [
            "/usr/bin/ffprobe",
            "-v", "error",
            "-show_entries", "format=duration",
            "-of", "default=noprint_wrappers=1:nokey=1",
            "/scratch/a.mp3",
        ]
    ]


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "outcome",
    [
        ok(b"N/A\n"),
        ok(b""),
        ok(b"0"),
        ok(b"-3.5"),
        ok(b"inf"),
        failed(1),
        FileNotFoundError("ffprobe"),
        asyncio.TimeoutError(),
    ],
)
async def test_probe_falls_back_on_any_failure(runner, outcome) -> None:
    runner.results.append(outcome)
    probe = MediaProbe(fallback_seconds=30.0)

    assert await probe.probe_duration(Path("broken.mp3")) == 30.0
