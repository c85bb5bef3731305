"""
Thumbnail storage strategies.

Exactly one strategy is active per process, chosen from
``settings.THUMBNAIL_STORAGE`` at startup:

- ``disk``: image written under ASSETS_ROOT and served by the /assets mount.
- ``memory``: bytes kept in a process-wide dict and streamed back by
  GET /thumbnails/{video_id}.
"""
import asyncio
import glob
import logging
import os
import re
from dataclasses import dataclass
from pathlib import Path
from typing import Dict, Optional

from fastapi.concurrency import run_in_threadpool

from src.core.config import settings

logger = logging.getLogger(__name__)


@dataclass
class Thumbnail:
    data: bytes
    media_type: str


# subtype doubles as the file extension on disk, so it must be a plain token
_SUBTYPE_RE = re.compile(r"[A-Za-z0-9][A-Za-z0-9.+-]*")


def media_extension(media_type: str) -> Optional[str]:
    """Subtype of ``media_type`` if it is safe to use in a file name, else None."""
    _, sep, rest = media_type.partition("/")
    subtype = rest.split(";", 1)[0].strip()
    if not sep or not _SUBTYPE_RE.fullmatch(subtype) or ".." in subtype:
        return None
    return subtype


class MemoryThumbnailStore:
    def __init__(self):
        self._thumbnails: Dict[str, Thumbnail] = {}
        self._lock = asyncio.Lock()

    async def store(self, video_id: str, data: bytes, media_type: str) -> str:
        async with self._lock:
            self._thumbnails[video_id] = Thumbnail(data=data, media_type=media_type)
        return f"{settings.PUBLIC_BASE_URL}/thumbnails/{video_id}"

    async def retrieve(self, video_id: str) -> Optional[Thumbnail]:
        async with self._lock:
            return self._thumbnails.get(video_id)

    async def delete(self, video_id: str) -> None:
        async with self._lock:
            self._thumbnails.pop(video_id, None)


class DiskThumbnailStore:
    def __init__(self, assets_root: Optional[str] = None):
        self.assets_root = Path(assets_root or settings.ASSETS_ROOT)

    def _existing(self, video_id: str):
        if not self.assets_root.is_dir():
            return []
        return list(self.assets_root.glob(f"{glob.escape(video_id)}.*"))

    def _write(self, video_id: str, data: bytes, ext: str) -> Path:
        self.assets_root.mkdir(parents=True, exist_ok=True)
        path = self.assets_root / f"{video_id}.{ext}"
        path.write_bytes(data)
        # drop copies left under a previous extension only once the new one exists
        for old in self._existing(video_id):
            if old != path:
                old.unlink(missing_ok=True)
        return path

    async def store(self, video_id: str, data: bytes, media_type: str) -> str:
        ext = media_extension(media_type)
        if ext is None:
            raise ValueError(f"Unsafe thumbnail media type: {media_type!r}")
        path = await run_in_threadpool(self._write, video_id, data, ext)
        logger.info("Thumbnail for %s written to %s", video_id, path)
        return f"{settings.PUBLIC_BASE_URL}/assets/{path.name}"

    async def retrieve(self, video_id: str) -> Optional[Thumbnail]:
        matches = self._existing(video_id)
        if not matches:
            return None
        path = matches[0]
        # the file was named after the submitted subtype
        subtype = path.name[len(video_id) + 1:]
        data = await run_in_threadpool(path.read_bytes)
        return Thumbnail(data=data, media_type=f"image/{subtype}")

    async def delete(self, video_id: str) -> None:
        for path in self._existing(video_id):
            try:
                os.remove(path)
            except OSError:
                logger.warning("Failed to remove thumbnail %s", path, exc_info=True)


def build_thumbnail_store():
    mode = settings.THUMBNAIL_STORAGE
    if mode == "memory":
        return MemoryThumbnailStore()
    if mode == "disk":
        return DiskThumbnailStore()
    raise RuntimeError(f"Unknown THUMBNAIL_STORAGE mode: {mode}")
