import logging
import os
import secrets
from typing import Callable, Optional

from fastapi.concurrency import run_in_threadpool
from starlette.datastructures import UploadFile

from src.core.errors import BadRequestError

logger = logging.getLogger(__name__)

CHUNK_SIZE = 1024 * 1024


def new_file_token() -> str:
    # 32 random bytes, url-safe base64
    return secrets.token_urlsafe(32)


def format_size(num_bytes: int) -> str:
    for unit, size in (("GB", 1 << 30), ("MB", 1 << 20), ("KB", 1 << 10)):
        if num_bytes >= size and num_bytes % size == 0:
            return f"{num_bytes // size}{unit}"
    return f"{num_bytes} bytes"


def require_upload_file(
    value,
    label: str,
    max_bytes: int,
    allowed: Callable[[str], bool],
) -> UploadFile:
    """
    Checks a multipart form value before any of its bytes are consumed.

    Raises:
        BadRequestError: missing part, plain form field, known size over the
            limit, missing content type, or a type ``allowed`` rejects
    """
    if not isinstance(value, UploadFile):
        raise BadRequestError(f"{label} file missing")

    if value.size is not None and value.size > max_bytes:
        raise BadRequestError(
            f"{label} file exceeds the maximum allowed size of {format_size(max_bytes)}"
        )

    media_type = value.content_type
    if not media_type:
        raise BadRequestError(f"Missing Content-Type for {label.lower()}")
    if not allowed(media_type):
        raise BadRequestError(f"Invalid file type for a {label.lower()} upload")

    return value


async def read_limited(upload: UploadFile, label: str, max_bytes: int) -> bytes:
    data = await upload.read(max_bytes + 1)
    if len(data) > max_bytes:
        raise BadRequestError(
            f"{label} file exceeds the maximum allowed size of {format_size(max_bytes)}"
        )
    return data


async def stage_upload(upload: UploadFile, dest_path: str, label: str, max_bytes: int) -> int:
    """
    Streams an uploaded file to ``dest_path`` chunk by chunk.

    Stops with BadRequestError as soon as more than ``max_bytes`` have been
    seen. The caller owns ``dest_path`` and must remove it on every path.
    """
    written = 0
    with open(dest_path, "wb") as out:
        while True:
            chunk = await upload.read(CHUNK_SIZE)
            if not chunk:
                break
            written += len(chunk)
            if written > max_bytes:
                raise BadRequestError(
                    f"{label} file exceeds the maximum allowed size of {format_size(max_bytes)}"
                )
            await run_in_threadpool(out.write, chunk)
    return written


def remove_file(path: Optional[str]) -> None:
    """Deletes a temp file, logging instead of raising on failure."""
    if not path:
        return
    try:
        os.remove(path)
        logger.info(f"File at path {path} deleted")
    except FileNotFoundError:
        pass
    except OSError:
        logger.warning("Failed to delete temp file %s", path, exc_info=True)
