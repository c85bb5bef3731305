import logging
from typing import List

from fastapi import APIRouter, Depends, Request, Response, status

from src.api.dependencies import (
    get_current_user_id,
    get_object_store,
    get_owned_video,
    get_thumbnail_store,
    get_video_store,
    resolve_urls,
)
from src.core.errors import BadRequestError, InternalError, NotFoundError, PipelineError
from src.core.storage import ObjectStore
from src.database.schemas.video import Video, VideoCreate
from src.database.videos import VideoStore
from src.pipeline.video_upload import process_video_upload

logger = logging.getLogger(__name__)
router = APIRouter()


@router.post("", response_model=Video, status_code=status.HTTP_201_CREATED)
async def create_video(
    payload: VideoCreate,
    user_id: str = Depends(get_current_user_id),
    video_store: VideoStore = Depends(get_video_store),
):
    if not payload.title or not payload.title.strip() or not payload.description or not payload.description.strip():
        raise BadRequestError("Missing title or description")

    return await video_store.create_video(payload, user_id)


@router.get("", response_model=List[Video])
async def list_videos(
    user_id: str = Depends(get_current_user_id),
    video_store: VideoStore = Depends(get_video_store),
    store: ObjectStore = Depends(get_object_store),
):
    videos = await video_store.list_videos(user_id)
    return [resolve_urls(video, store) for video in videos]


@router.get("/{video_id}", response_model=Video)
async def get_video(
    video_id: str,
    video_store: VideoStore = Depends(get_video_store),
    store: ObjectStore = Depends(get_object_store),
):
    video = await video_store.get_video(video_id)
    if video is None:
        raise NotFoundError("Couldn't find video")
    return resolve_urls(video, store)


@router.delete("/{video_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_video(
    video_id: str,
    user_id: str = Depends(get_current_user_id),
    video_store: VideoStore = Depends(get_video_store),
    store: ObjectStore = Depends(get_object_store),
    thumbnails=Depends(get_thumbnail_store),
):
    video = await get_owned_video(video_store, video_id, user_id, "delete")
    await video_store.delete_video(video.id)

    key = store.key_from_stored_url(video.video_url)
    if key:
        await store.delete_object(key)
    await thumbnails.delete(video.id)

    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.post("/{video_id}/upload", response_model=Video)
async def upload_video(
    video_id: str,
    request: Request,
    user_id: str = Depends(get_current_user_id),
    video_store: VideoStore = Depends(get_video_store),
    store: ObjectStore = Depends(get_object_store),
):
    video = await get_owned_video(video_store, video_id, user_id, "update")

    # the body is only parsed once the caller is known to own the video
    form = await request.form()
    try:
        video = await process_video_upload(video, form.get("video"), store, video_store)
    except PipelineError:
        logger.exception(f"Video upload failed for video_id={video_id}")
        raise InternalError("Couldn't process video")
    finally:
        await form.close()

    return resolve_urls(video, store)
