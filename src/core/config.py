import os
import tempfile
from pathlib import Path
from dotenv import load_dotenv

BASE_DIR = Path(__file__).resolve().parent.parent.parent  # go up to project root
env_path = BASE_DIR / ".env.development"

load_dotenv(env_path)


class Settings:
    MONGO_URI: str = os.getenv("MONGO_URI", "mongodb://localhost:27017")
    MONGO_DB: str = os.getenv("MONGO_DB", "tubely_db")

    AWS_S3_BUCKET: str = os.getenv("AWS_S3_BUCKET")
    AWS_REGION: str = os.getenv("AWS_REGION", "us-east-1")
    AWS_ACCESS_KEY_ID: str = os.getenv("AWS_ACCESS_KEY_ID")
    AWS_SECRET_ACCESS_KEY: str = os.getenv("AWS_SECRET_ACCESS_KEY")
    CDN_HOST: str = os.getenv("CDN_HOST", "")

    # direct | presigned
    VIDEO_DELIVERY: str = os.getenv("VIDEO_DELIVERY", "direct")
    PRESIGNED_URL_EXPIRY: int = int(os.getenv("PRESIGNED_URL_EXPIRY", "3600"))

    # disk | memory
    THUMBNAIL_STORAGE: str = os.getenv("THUMBNAIL_STORAGE", "disk")
    ASSETS_ROOT: str = os.getenv("ASSETS_ROOT", str(BASE_DIR / "assets"))
    TEMP_DIR: str = os.getenv("TEMP_DIR", tempfile.gettempdir())

    PORT: int = int(os.getenv("PORT", "8000"))
    PUBLIC_BASE_URL: str = os.getenv("PUBLIC_BASE_URL", f"http://localhost:{PORT}")

    JWT_SECRET: str = os.getenv("JWT_SECRET", "")
    JWT_EXPIRATION_HOURS: int = int(os.getenv("JWT_EXPIRATION_HOURS", "1"))

    FFPROBE_PATH: str = os.getenv("FFPROBE_PATH", "ffprobe")
    FFMPEG_PATH: str = os.getenv("FFMPEG_PATH", "ffmpeg")
    # seconds, 0 disables the timeout
    FFPROBE_TIMEOUT: float = float(os.getenv("FFPROBE_TIMEOUT", "60"))
    FFMPEG_TIMEOUT: float = float(os.getenv("FFMPEG_TIMEOUT", "600"))

    MAX_VIDEO_UPLOAD_BYTES: int = int(os.getenv("MAX_VIDEO_UPLOAD_BYTES", str(1 << 30)))
    MAX_THUMBNAIL_UPLOAD_BYTES: int = int(os.getenv("MAX_THUMBNAIL_UPLOAD_BYTES", str(10 << 20)))

    LOG_LEVEL: str = os.getenv("LOG_LEVEL", "INFO")


settings = Settings()
