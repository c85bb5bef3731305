import asyncio
import json
import logging
import os
from dataclasses import dataclass
from typing import List, Optional

from src.core.config import settings
from src.core.errors import ProbeError, TranscodeError

logger = logging.getLogger(__name__)

LANDSCAPE = "landscape"
PORTRAIT = "portrait"
OTHER = "other"

PROCESSED_SUFFIX = ".processed.mp4"


@dataclass
class CommandResult:
    stdout: str
    stderr: str
    returncode: int


async def run_command(args: List[str], timeout: Optional[float] = None) -> CommandResult:
    """
    Runs an external tool without blocking the event loop.

    Both output streams are captured in full before returning. If ``timeout``
    (seconds) elapses the process is killed and ``asyncio.TimeoutError`` is
    raised. The process is also killed when the awaiting task is cancelled.
    A missing executable raises ``FileNotFoundError``.
    """
    process = await asyncio.create_subprocess_exec(
        *args, stdout=asyncio.subprocess.PIPE, stderr=asyncio.subprocess.PIPE
    )
    try:
        stdout, stderr = await asyncio.wait_for(process.communicate(), timeout=timeout or None)
    except BaseException:
        # timeout or cancellation of the caller: never leave the tool running
        if process.returncode is None:
            process.kill()
            await process.wait()
        raise

    return CommandResult(
        stdout=stdout.decode("utf-8", errors="replace"),
        stderr=stderr.decode("utf-8", errors="replace"),
        returncode=process.returncode,
    )


def classify_aspect_ratio(width: float, height: float) -> str:
    """
    Buckets a frame size into landscape (~16:9), portrait (~9:16) or other.

    Bounds are exclusive, so a ratio of exactly 1.6 is "other".
    """
    ratio = width / height

    if 1.6 < ratio < 1.8:
        return LANDSCAPE
    elif 0.5 < ratio < 0.6:
        return PORTRAIT
    else:
        return OTHER


def _is_number(value) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


async def get_video_aspect_ratio(video_path: str, runner=run_command) -> str:
    """
    Probes the first video stream of a local file with ffprobe.

    Args:
        video_path (str): Local path to the staged video file

    Returns:
        str: "landscape", "portrait" or "other"

    Raises:
        ProbeError: If ffprobe fails or reports unusable stream geometry
    """

    # ---------- FFprobe command ----------
    # -v error          → only report errors on stderr
    # -select_streams   → first video stream only
    # -show_entries     → width and height, nothing else
    # -of json          → machine-readable output
    command = [
        settings.FFPROBE_PATH,
        "-v", "error",
        "-select_streams", "v:0",
        "-show_entries", "stream=width,height",
        "-of", "json",
        video_path,
    ]

    # ---------- Run FFprobe ----------
    try:
        result = await runner(command, timeout=settings.FFPROBE_TIMEOUT)
    except asyncio.TimeoutError:
        raise ProbeError(f"ffprobe timed out after {settings.FFPROBE_TIMEOUT}s")
    except OSError as e:
        raise ProbeError(f"Could not run ffprobe: {e}") from e

    if result.stderr.strip():
        raise ProbeError(f"ffprobe error: {result.stderr.strip()}")

    # ---------- Parse output ----------
    try:
        output = json.loads(result.stdout)
    except ValueError as e:
        raise ProbeError(f"ffprobe returned malformed output: {e}") from e

    streams = output.get("streams") if isinstance(output, dict) else None
    if not streams:
        raise ProbeError("No video stream found in the file")

    width = streams[0].get("width")
    height = streams[0].get("height")
    if not _is_number(width) or not _is_number(height) or height == 0:
        raise ProbeError(f"Invalid width or height in video stream: {width}x{height}")

    orientation = classify_aspect_ratio(width, height)
    logger.info("Probed %s: %sx%s → %s", video_path, width, height, orientation)
    return orientation


async def process_video_for_fast_start(input_path: str, runner=run_command) -> str:
    """
    Rewrites a video so the moov atom precedes the media data.

    Streams are copied, not re-encoded. The input file is left untouched.

    Args:
        input_path (str): Local path to the staged video file

    Returns:
        str: Local path of the processed copy (input path + ".processed.mp4")

    Raises:
        TranscodeError: If ffmpeg exits non-zero, is missing, or times out
    """
    output_path = f"{input_path}{PROCESSED_SUFFIX}"

    # ---------- FFmpeg command ----------
    # -movflags faststart → relocate index/metadata to the front
    # -map_metadata 0     → keep container metadata from the input
    # -codec copy         → no re-encoding
    # -f mp4              → force the output container
    command = [
        settings.FFMPEG_PATH,
        "-i", input_path,
        "-movflags", "faststart",
        "-map_metadata", "0",
        "-codec", "copy",
        "-f", "mp4",
        output_path,
    ]

    # ---------- Run FFmpeg ----------
    try:
        result = await runner(command, timeout=settings.FFMPEG_TIMEOUT)
    except asyncio.TimeoutError:
        raise TranscodeError(f"ffmpeg timed out after {settings.FFMPEG_TIMEOUT}s")
    except OSError as e:
        raise TranscodeError(f"Could not run ffmpeg: {e}") from e

    if result.returncode != 0:
        raise TranscodeError(
            f"FFmpeg exited with status {result.returncode}: {result.stderr.strip()}",
            stderr=result.stderr,
        )

    # ---------- Final verification ----------
    if not os.path.exists(output_path):
        raise TranscodeError("Fast-start processing failed, output file not found")

    return output_path
