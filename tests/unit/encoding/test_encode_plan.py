from pathlib import Path

import pytest

from src.reelmaker.compose.compose_models import (
    AssetKind,
    AssetOrigin,
    CompositionJob,
    CompositionMode,
    ImageSequenceSpec,
    MediaAsset,
    VideoReplaceSpec,
)
from src.reelmaker.encoding.encode_plan import (
    CompositionPlanner,
    build_audio_replace_plan,
    build_slideshow_plan,
    format_seconds,
    render_concat_manifest,
    should_loop_audio,
)
from src.reelmaker.media.temp_asset_store import TempAssetStore
from tests.helpers.compose import build_config, scratch_files
from tests.mocks.media import FakeProbe


def image(name: str) -> MediaAsset:
    return MediaAsset(path=Path("/scratch") / name, kind=AssetKind.IMAGE, origin=AssetOrigin.UPLOAD)


AUDIO = MediaAsset(path=Path("/scratch/a.mp3"), kind=AssetKind.AUDIO, origin=AssetOrigin.UPLOAD)
VIDEO = MediaAsset(path=Path("/scratch/v.mp4"), kind=AssetKind.VIDEO, origin=AssetOrigin.UPLOAD)


def slideshow_job(loop: bool) -> CompositionJob:
    spec = ImageSequenceSpec(
        images=(image("1.png"), image("2.png")),
        durations=(2.0, 3.5),
        width=720,
        height=1280,
    )
    return CompositionJob(
        job_id="job",
        mode=CompositionMode.IMAGES,
        spec=spec,
        audio=AUDIO,
        target_duration=spec.total_duration,
        loop_audio=loop,
        output_path=Path("/scratch/out.mp4"),
    )


def video_job(loop: bool) -> CompositionJob:
    return CompositionJob(
        job_id="job",
        mode=CompositionMode.VIDEO,
        spec=VideoReplaceSpec(video=VIDEO),
        audio=AUDIO,
        target_duration=20.0,
        loop_audio=loop,
        output_path=Path("/scratch/out.mp4"),
    )


@pytest.mark.parametrize(
    ("value", "expected"),
    [
        (2.0, "2"),
        (2.5, "2.5"),
        (0.04, "0.04"),
        (9.0, "9"),
        (1.23456, "1.23456"),
        (0.0004, "0.0004"),
        (0.000001, "0.000001"),
    ],
)
def test_format_seconds(value, expected) -> None:
    assert format_seconds(value) == expected


def test_concat_manifest_repeats_last_image() -> None:
    manifest = render_concat_manifest([image("1.png"), image("2.png")], [2.0, 3.5])

    assert manifest == (
        "file '/scratch/1.png'\n"
        "duration 2\n"
        "file '/scratch/2.png'\n"
        "duration 3.5\n"
        "file '/scratch/2.png'\n"
    )


def test_concat_manifest_escapes_quotes() -> None:
    manifest = render_concat_manifest([image("it's.png")], [1.0])

    assert manifest.splitlines()[0] == "file '/scratch/it'\\''s.png'"


def test_concat_manifest_requires_matching_lengths() -> None:
    with pytest.raises(ValueError):
        render_concat_manifest([image("1.png")], [1.0, 2.0])


def test_should_loop_audio_only_when_audio_is_shorter() -> None:
    assert should_loop_audio(9.0, 5.0) is True
    assert should_loop_audio(9.0, 9.0) is False
    assert should_loop_audio(5.0, 20.0) is False


def test_slideshow_plan_with_looped_audio() -> None:
    plan = build_slideshow_plan(slideshow_job(loop=True), Path("/scratch/list.txt"))

    assert plan.command("ffmpeg") == [
        "ffmpeg",
        "-y",
        "-f", "concat",
        "-safe", "0",
        "-i", "/scratch/list.txt",
        "-stream_loop", "-1",
        "-i", "/scratch/a.mp3",
        "-map", "0:v:0",
        "-map", "1:a:0",
        "-vf",
        "scale=720:1280:force_original_aspect_ratio=decrease,"
        "pad=720:1280:(ow-iw)/2:(oh-ih)/2:color=black",
        "-pix_fmt", "yuv420p",
        "-r", "30",
        "-t", "5.5",
        "-c:a", "aac",
        "-b:a", "192k",
        "/scratch/out.mp4",
    ]
    assert plan.output_path == Path("/scratch/out.mp4")


def test_slideshow_plan_without_loop_still_caps_duration() -> None:
    plan = build_slideshow_plan(
        slideshow_job(loop=False),
        Path("/scratch/list.txt"),
        frame_rate=25,
        audio_bitrate="128k",
    )

    assert "-stream_loop" not in plan.args
    assert plan.args[plan.args.index("-t") + 1] == "5.5"
    assert plan.args[plan.args.index("-r") + 1] == "25"
    assert plan.args[plan.args.index("-b:a") + 1] == "128k"


def test_audio_replace_plan_copies_video_and_drops_source_audio() -> None:
    plan = build_audio_replace_plan(video_job(loop=True))

    assert list(plan.args) == [
        "-y",
        "-i", "/scratch/v.mp4",
        "-stream_loop", "-1",
        "-i", "/scratch/a.mp3",
        "-map", "0:v:0",
        "-map", "1:a:0",
        "-c:v", "copy",
        "-c:a", "aac",
        "-shortest",
        "/scratch/out.mp4",
    ]


def test_audio_replace_plan_without_loop() -> None:
    plan = build_audio_replace_plan(video_job(loop=False))

    assert "-stream_loop" not in plan.args
    assert "-shortest" in plan.args


def test_plan_builders_reject_mismatched_specs() -> None:
    with pytest.raises(TypeError):
        build_audio_replace_plan(slideshow_job(loop=False))
    with pytest.raises(TypeError):
        build_slideshow_plan(video_job(loop=False), Path("/scratch/list.txt"))


def test_concat_manifest_never_rounds_positive_durations_to_zero() -> None:
    manifest = render_concat_manifest([image("1.png"), image("2.png")], [0.0004, 1.0])

    assert "duration 0.0004\n" in manifest
    assert "duration 0\n" not in manifest


@pytest.mark.asyncio
async def test_planner_writes_manifest_and_allocates_output_in_scope(tmp_path) -> None:
    config = build_config(tmp_path)
    store = TempAssetStore(paths=config.paths)
    spec = ImageSequenceSpec(
        images=(image("1.png"), image("2.png")),
        durations=(2.0, 3.0),
        width=720,
        height=1280,
    )
    planner = CompositionPlanner(probe=FakeProbe(durations={".mp3": 4.0}))

    async with store.scope() as scope:
        job, plan = await planner.plan_images("job", spec, AUDIO, scope)
        manifest = Path(plan.args[plan.args.index("-i") + 1])

        assert manifest.read_text(encoding="utf-8").count("file ") == 3
        assert (job.target_duration, job.loop_audio) == (5.0, True)
        assert scope.tracked == [manifest, job.output_path]

    assert scratch_files(config) == []
