import asyncio
import os
import sys

import pytest

from src.core.errors import ProbeError, TranscodeError
from src.utils.media import (
    LANDSCAPE,
    OTHER,
    PORTRAIT,
    CommandResult,
    classify_aspect_ratio,
    get_video_aspect_ratio,
    process_video_for_fast_start,
    run_command,
)


def make_runner(stdout="", stderr="", returncode=0, exc=None, calls=None):
    async def runner(args, timeout=None):
        if calls is not None:
            calls.append((args, timeout))
        if exc is not None:
            raise exc
        return CommandResult(stdout=stdout, stderr=stderr, returncode=returncode)

    return runner


@pytest.mark.parametrize(
    "width, height, expected",
    [
        (1920, 1080, LANDSCAPE),
        (1280, 720, LANDSCAPE),
        (1080, 1920, PORTRAIT),
        (720, 1280, PORTRAIT),
        (1.6, 1, OTHER),
        (1.601, 1, LANDSCAPE),
        (1.799, 1, LANDSCAPE),
        (1.8, 1, OTHER),
        (0.5, 1, OTHER),
        (0.501, 1, PORTRAIT),
        (0.599, 1, PORTRAIT),
        (0.6, 1, OTHER),
        (640, 480, OTHER),
        (1000, 1000, OTHER),
        (2560, 1080, OTHER),
    ],
)
def test_classify_aspect_ratio_thresholds(width, height, expected):
    assert classify_aspect_ratio(width, height) == expected


def test_probe_reads_first_video_stream():
    calls = []
    runner = make_runner(stdout='{"streams": [{"width": 1920, "height": 1080}]}', calls=calls)

    assert asyncio.run(get_video_aspect_ratio("/tmp/clip.mp4", runner=runner)) == LANDSCAPE

    args, timeout = calls[0]
    assert args[0] == "ffprobe"
    assert args[-1] == "/tmp/clip.mp4"
    assert args[args.index("-select_streams") + 1] == "v:0"
    assert "stream=width,height" in args
    assert args[args.index("-of") + 1] == "json"
    assert timeout == 60


def test_probe_portrait():
    runner = make_runner(stdout='{"streams": [{"width": 1080, "height": 1920}]}')
    assert asyncio.run(get_video_aspect_ratio("clip.mp4", runner=runner)) == PORTRAIT


@pytest.mark.parametrize(
    "runner",
    [
        make_runner(stdout='{"streams": [{"width": 1920, "height": 1080}]}', stderr="moov atom not found"),
        make_runner(stdout="not json"),
        make_runner(stdout="[]"),
        make_runner(stdout='{"streams": []}'),
        make_runner(stdout="{}"),
        make_runner(stdout='{"streams": [{"width": 1920}]}'),
        make_runner(stdout='{"streams": [{"width": "1920", "height": "1080"}]}'),
        make_runner(stdout='{"streams": [{"width": true, "height": 1}]}'),
        make_runner(stdout='{"streams": [{"width": 1920, "height": 0}]}'),
        make_runner(exc=asyncio.TimeoutError()),
        make_runner(exc=FileNotFoundError("ffprobe")),
    ],
    ids=[
        "stderr",
        "malformed",
        "not-an-object",
        "no-streams",
        "missing-streams",
        "missing-height",
        "string-dimensions",
        "boolean-dimensions",
        "zero-height",
        "timeout",
        "missing-binary",
    ],
)
def test_probe_failures_raise_probe_error(runner):
    with pytest.raises(ProbeError):
        asyncio.run(get_video_aspect_ratio("clip.mp4", runner=runner))


def test_fast_start_writes_processed_copy(tmp_path):
    source = tmp_path / "clip.mp4"
    source.write_bytes(b"original")
    calls = []

    async def runner(args, timeout=None):
        calls.append(args)
        with open(args[-1], "wb") as out:
            out.write(b"processed")
        return CommandResult(stdout="", stderr="", returncode=0)

    output = asyncio.run(process_video_for_fast_start(str(source), runner=runner))

    assert output == f"{source}.processed.mp4"
    assert open(output, "rb").read() == b"processed"
    assert source.read_bytes() == b"original"

    args = calls[0]
    assert args[0] == "ffmpeg"
    assert args[args.index("-i") + 1] == str(source)
    assert args[args.index("-movflags") + 1] == "faststart"
    assert args[args.index("-map_metadata") + 1] == "0"
    assert args[args.index("-codec") + 1] == "copy"
    assert args[args.index("-f") + 1] == "mp4"


def test_fast_start_nonzero_exit_carries_stderr(tmp_path):
    source = tmp_path / "clip.mp4"
    source.write_bytes(b"original")
    runner = make_runner(stderr="Invalid data found when processing input", returncode=1)

    with pytest.raises(TranscodeError) as excinfo:
        asyncio.run(process_video_for_fast_start(str(source), runner=runner))

    assert "Invalid data found" in str(excinfo.value)
    assert excinfo.value.stderr == "Invalid data found when processing input"
    assert source.read_bytes() == b"original"


def test_fast_start_missing_output_is_an_error(tmp_path):
    source = tmp_path / "clip.mp4"
    source.write_bytes(b"original")

    with pytest.raises(TranscodeError):
        asyncio.run(process_video_for_fast_start(str(source), runner=make_runner()))


def test_fast_start_timeout(tmp_path):
    with pytest.raises(TranscodeError, match="timed out"):
        asyncio.run(process_video_for_fast_start(str(tmp_path / "clip.mp4"), runner=make_runner(exc=asyncio.TimeoutError())))


def test_run_command_captures_both_streams():
    script = "import sys; sys.stderr.write('warn'); print('hello'); sys.exit(3)"
    result = asyncio.run(run_command([sys.executable, "-c", script]))

    assert result.stdout.strip() == "hello"
    assert result.stderr == "warn"
    assert result.returncode == 3


def test_run_command_kills_on_timeout():
    with pytest.raises(asyncio.TimeoutError):
        asyncio.run(run_command([sys.executable, "-c", "import time; time.sleep(10)"], timeout=0.2))


def test_run_command_missing_executable():
    with pytest.raises(FileNotFoundError):
        asyncio.run(run_command([os.path.join("/nonexistent", "ffprobe")]))


def test_run_command_kills_child_when_cancelled(tmp_path):
    pid_file = tmp_path / "child.pid"
    script = f"import os, time; open({str(pid_file)!r}, 'w').write(str(os.getpid())); time.sleep(30)"

    async def scenario():
        task = asyncio.create_task(run_command([sys.executable, "-c", script], timeout=60))
        for _ in range(200):
            if pid_file.exists() and pid_file.read_text():
                break
            await asyncio.sleep(0.05)
        task.cancel()
        with pytest.raises(asyncio.CancelledError):
            await task
        return int(pid_file.read_text())

    pid = asyncio.run(scenario())

    # killed and reaped, so the pid no longer exists
    with pytest.raises(ProcessLookupError):
        os.kill(pid, 0)
