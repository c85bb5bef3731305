"""
S3 object storage for finished videos.

Keys are laid out by orientation:

    s3://{bucket}/
      landscape/{token}.mp4
      portrait/{token}.mp4
      other/{token}.mp4

In ``direct`` delivery mode the record keeps a public URL (bucket or CDN).
In ``presigned`` delivery mode the record keeps ``"{bucket},{key}"`` and a
signed URL is generated every time the record is read.
"""
import logging
from typing import Optional

import boto3
from boto3.exceptions import S3UploadFailedError
from botocore.exceptions import BotoCoreError, ClientError
from fastapi.concurrency import run_in_threadpool

from src.core.config import settings
from src.core.errors import UploadError

logger = logging.getLogger(__name__)


class ObjectStore:
    def __init__(self, bucket: Optional[str] = None, region: Optional[str] = None, client=None):
        self.bucket = bucket
        self.region = region
        self.client = client

    def connect(self):
        if self.client is not None:
            return

        self.bucket = self.bucket or settings.AWS_S3_BUCKET
        self.region = self.region or settings.AWS_REGION
        if not self.bucket:
            raise RuntimeError("AWS_S3_BUCKET is not set")

        self.client = boto3.client(
            "s3",
            aws_access_key_id=settings.AWS_ACCESS_KEY_ID,
            aws_secret_access_key=settings.AWS_SECRET_ACCESS_KEY,
            region_name=self.region,
        )
        logger.info("S3 client ready for bucket %s (%s)", self.bucket, self.region)

    async def upload_file(self, local_path: str, key: str, content_type: str) -> None:
        """Upload a local file under ``key``. Raises UploadError on any storage failure."""
        try:
            await run_in_threadpool(
                self.client.upload_file,
                Filename=local_path,
                Bucket=self.bucket,
                Key=key,
                ExtraArgs={"ContentType": content_type},
            )
        except (S3UploadFailedError, BotoCoreError, ClientError) as e:
            raise UploadError(f"Failed to upload {key} to bucket {self.bucket}: {e}") from e
        logger.info(f"Uploaded {local_path} to s3://{self.bucket}/{key}")

    async def delete_object(self, key: str) -> None:
        try:
            await run_in_threadpool(self.client.delete_object, Bucket=self.bucket, Key=key)
        except (BotoCoreError, ClientError):
            logger.warning("Failed to delete s3://%s/%s", self.bucket, key, exc_info=True)

    def generate_presigned_url(self, key: str, expires_in: int) -> str:
        return self.client.generate_presigned_url(
            ClientMethod="get_object",
            Params={"Bucket": self.bucket, "Key": key},
            ExpiresIn=expires_in,
        )

    def object_url(self, key: str) -> str:
        if settings.CDN_HOST:
            return f"https://{settings.CDN_HOST}/{key}"
        return f"https://{self.bucket}.s3.{self.region}.amazonaws.com/{key}"

    def stored_video_url(self, key: str) -> str:
        """Value persisted on the video record after uploading ``key``."""
        if settings.VIDEO_DELIVERY == "presigned":
            return f"{self.bucket},{key}"
        return self.object_url(key)

    def resolve_video_url(self, stored: Optional[str]) -> Optional[str]:
        """Turn a persisted video URL into one a client can play."""
        if not stored or settings.VIDEO_DELIVERY != "presigned":
            return stored

        bucket, sep, key = stored.partition(",")
        if not sep or not key:
            # stored before presigned delivery was switched on
            return stored
        if bucket != self.bucket:
            logger.warning("Video stored in bucket %s, client is bound to %s", bucket, self.bucket)
        return self.generate_presigned_url(key, settings.PRESIGNED_URL_EXPIRY)

    def key_from_stored_url(self, stored: Optional[str]) -> Optional[str]:
        if not stored:
            return None
        if settings.VIDEO_DELIVERY == "presigned":
            _, sep, key = stored.partition(",")
            return key if sep else None
        prefix = self.object_url("")
        if stored.startswith(prefix):
            return stored[len(prefix):]
        return None


object_store = ObjectStore()
