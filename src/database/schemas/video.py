from pydantic import AliasChoices, BaseModel, Field
from typing import Optional
from datetime import datetime, timezone
from uuid import uuid4


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def new_video_id() -> str:
    return f"vid_{uuid4().hex}"


class VideoCreate(BaseModel):
    title: Optional[str] = None
    description: Optional[str] = None


class Video(BaseModel):
    id: str = Field(..., validation_alias=AliasChoices("_id", "id"))
    user_id: str
    title: str
    description: str

    video_url: Optional[str] = None
    thumbnail_url: Optional[str] = None

    created_at: datetime = Field(default_factory=_utcnow)
    updated_at: datetime = Field(default_factory=_utcnow)

    def to_document(self) -> dict:
        doc = self.model_dump(exclude={"id"})
        doc["_id"] = self.id
        return doc
