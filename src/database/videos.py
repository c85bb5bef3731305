"""
Video record store backed by the MongoDB ``videos`` collection.
"""
import logging
from datetime import datetime, timezone
from typing import List, Optional

from pymongo import DESCENDING

from src.database.schemas.video import Video, VideoCreate, new_video_id

logger = logging.getLogger(__name__)


class VideoStore:
    def __init__(self, collection):
        self.collection = collection

    async def get_video(self, video_id: str) -> Optional[Video]:
        doc = await self.collection.find_one({"_id": video_id})
        if doc is None:
            return None
        return Video.model_validate(doc)

    async def list_videos(self, user_id: str) -> List[Video]:
        cursor = self.collection.find({"user_id": user_id}).sort("created_at", DESCENDING)
        docs = await cursor.to_list(length=None)
        return [Video.model_validate(doc) for doc in docs]

    async def create_video(self, params: VideoCreate, user_id: str) -> Video:
        video = Video(
            id=new_video_id(),
            user_id=user_id,
            title=params.title,
            description=params.description,
        )
        await self.collection.insert_one(video.to_document())
        logger.info("Created video %s for user %s", video.id, user_id)
        return video

    async def update_video(self, video: Video) -> None:
        video.updated_at = datetime.now(timezone.utc)
        doc = video.to_document()
        doc.pop("_id")
        doc.pop("created_at")
        result = await self.collection.update_one({"_id": video.id}, {"$set": doc})
        if result.matched_count == 0:
            logger.warning(f"No video found for id={video.id}")

    async def delete_video(self, video_id: str) -> None:
        await self.collection.delete_one({"_id": video_id})
        logger.info("Deleted video %s", video_id)
