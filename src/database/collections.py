from src.core.database import mongodb


def _require_db():
    if mongodb.db is None:
        raise RuntimeError("MongoDB not initialized")
    return mongodb.db


def get_users_collection():
    return _require_db()["users"]


def get_videos_collection():
    return _require_db()["videos"]
