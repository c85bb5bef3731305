import logging

from fastapi import APIRouter, Depends, Request, Response

from src.api.dependencies import (
    get_current_user_id,
    get_object_store,
    get_owned_video,
    get_thumbnail_store,
    get_video_store,
    resolve_urls,
)
from src.core.config import settings
from src.core.errors import NotFoundError
from src.core.storage import ObjectStore
from src.core.thumbnail_store import media_extension
from src.database.schemas.video import Video
from src.database.videos import VideoStore
from src.utils.upload_helpers import read_limited, require_upload_file

logger = logging.getLogger(__name__)
router = APIRouter()


def _is_image(media_type: str) -> bool:
    return media_type.partition("/")[0] == "image" and media_extension(media_type) is not None


@router.post("/{video_id}", response_model=Video)
async def upload_thumbnail(
    video_id: str,
    request: Request,
    user_id: str = Depends(get_current_user_id),
    video_store: VideoStore = Depends(get_video_store),
    thumbnails=Depends(get_thumbnail_store),
    store: ObjectStore = Depends(get_object_store),
):
    video = await get_owned_video(video_store, video_id, user_id, "update")

    form = await request.form()
    try:
        upload = require_upload_file(
            form.get("thumbnail"),
            label="Thumbnail",
            max_bytes=settings.MAX_THUMBNAIL_UPLOAD_BYTES,
            allowed=_is_image,
        )
        data = await read_limited(upload, "Thumbnail", settings.MAX_THUMBNAIL_UPLOAD_BYTES)
        media_type = upload.content_type
    finally:
        await form.close()

    video.thumbnail_url = await thumbnails.store(video.id, data, media_type)
    await video_store.update_video(video)
    logger.info("Thumbnail for video %s stored (%d bytes, %s)", video.id, len(data), media_type)

    return resolve_urls(video, store)


@router.get("/{video_id}")
async def get_thumbnail(video_id: str, thumbnails=Depends(get_thumbnail_store)):
    thumbnail = await thumbnails.retrieve(video_id)
    if thumbnail is None:
        raise NotFoundError("Thumbnail not found")

    return Response(
        content=thumbnail.data,
        media_type=thumbnail.media_type,
        headers={"Cache-Control": "no-store"},
    )
