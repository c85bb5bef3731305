import logging
import os

from src.core.config import settings
from src.core.storage import ObjectStore
from src.database.schemas.video import Video
from src.database.videos import VideoStore
from src.utils.media import (
    PROCESSED_SUFFIX,
    get_video_aspect_ratio,
    process_video_for_fast_start,
)
from src.utils.upload_helpers import (
    new_file_token,
    remove_file,
    require_upload_file,
    stage_upload,
)

logger = logging.getLogger(__name__)

VIDEO_MEDIA_TYPE = "video/mp4"


def _is_mp4(media_type: str) -> bool:
    return media_type == VIDEO_MEDIA_TYPE


async def process_video_upload(
    video: Video,
    form_value,
    object_store: ObjectStore,
    video_store: VideoStore,
) -> Video:
    """
    Runs an authorized upload through staging, probing, fast-start
    processing and S3 upload, then points the record at the new object.

    The record is only written after the upload succeeded. Temp files are
    removed on every path.
    """
    upload = require_upload_file(
        form_value,
        label="Video",
        max_bytes=settings.MAX_VIDEO_UPLOAD_BYTES,
        allowed=_is_mp4,
    )

    media_ext = upload.content_type.split("/")[1]
    token = new_file_token()
    staged_path = os.path.join(settings.TEMP_DIR, f"{token}.{media_ext}")
    processed_path = None

    try:
        size = await stage_upload(upload, staged_path, "Video", settings.MAX_VIDEO_UPLOAD_BYTES)
        logger.info(f"Staged {size} bytes for video {video.id} at {staged_path}")

        orientation = await get_video_aspect_ratio(staged_path)

        # the processed path is known before ffmpeg runs so a partial file
        # left by a failed run is still cleaned up
        processed_path = f"{staged_path}{PROCESSED_SUFFIX}"
        processed_path = await process_video_for_fast_start(staged_path)
        logger.info("Fast-start copy ready at %s", processed_path)

        key = f"{orientation}/{token}.{media_ext}"
        await object_store.upload_file(processed_path, key, upload.content_type)
    finally:
        remove_file(staged_path)
        remove_file(processed_path)

    video.video_url = object_store.stored_video_url(key)
    await video_store.update_video(video)
    logger.info(f"Video {video.id} now points at {key}")
    return video
