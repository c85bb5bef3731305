from fastapi import Request

from src.core.config import settings
from src.core.errors import ForbiddenError, NotFoundError
from src.core.security import get_bearer_token, validate_jwt
from src.core.storage import ObjectStore, object_store
from src.database.collections import get_videos_collection
from src.database.schemas.video import Video
from src.database.videos import VideoStore


def get_video_store() -> VideoStore:
    return VideoStore(get_videos_collection())


def get_object_store() -> ObjectStore:
    return object_store


def get_thumbnail_store(request: Request):
    return request.app.state.thumbnail_store


def get_current_user_id(request: Request) -> str:
    token = get_bearer_token(request.headers)
    return validate_jwt(token, settings.JWT_SECRET)


async def get_owned_video(video_store: VideoStore, video_id: str, user_id: str, action: str) -> Video:
    video = await video_store.get_video(video_id)
    if video is None:
        raise NotFoundError("Couldn't find video")
    if video.user_id != user_id:
        raise ForbiddenError(f"Not authorized to {action} this video")
    return video


def resolve_urls(video: Video, store: ObjectStore) -> Video:
    resolved = video.model_copy()
    resolved.video_url = store.resolve_video_url(video.video_url)
    return resolved
