from datetime import datetime, timezone
from typing import Optional
from uuid import uuid4

from src.database.schemas.user import UserInDB


async def get_user_by_email(collection, email: str) -> Optional[UserInDB]:
    doc = await collection.find_one({"email": email})
    if doc is None:
        return None
    return UserInDB(
        id=doc["_id"],
        email=doc["email"],
        password=doc["password"],
        created_at=doc["created_at"],
    )


async def create_user(collection, email: str, hashed_password: str) -> UserInDB:
    user = UserInDB(
        id=f"usr_{uuid4().hex}",
        email=email,
        password=hashed_password,
        created_at=datetime.now(timezone.utc),
    )
    await collection.insert_one({
        "_id": user.id,
        "email": user.email,
        "password": user.password,
        "created_at": user.created_at,
    })
    return user
