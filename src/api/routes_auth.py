# routes/auth.py
from datetime import timedelta

from fastapi import APIRouter, HTTPException, status
from pymongo.errors import DuplicateKeyError

from src.core.config import settings
from src.core.errors import UnauthorizedError
from src.core.security import hash_password, make_jwt, verify_password
from src.database.collections import get_users_collection
from src.database.schemas.auth import LoginRequest, LoginResponse, SignupRequest
from src.database.schemas.user import UserResponse
from src.database.users import create_user, get_user_by_email
import logging

logger = logging.getLogger(__name__)
router = APIRouter()

@router.post("/signup", status_code=status.HTTP_201_CREATED, response_model=UserResponse)
async def signup(payload: SignupRequest):
    # 1. Check if user exists
    users_collection = get_users_collection()
    existing_user = await get_user_by_email(users_collection, payload.email)
    logger.info("Checking if user exists: %s", payload.email)
    if existing_user:
        raise HTTPException(
            status_code=400,
            detail="User already exists",
        )

    # 2. Hash password
    hashed_password = hash_password(payload.password)

    # 3. Insert user
    try:
        user = await create_user(users_collection, payload.email, hashed_password)
    except DuplicateKeyError:
        # lost a race with a concurrent signup
        raise HTTPException(
            status_code=400,
            detail="User already exists",
        )

    return UserResponse(id=user.id, email=user.email, created_at=user.created_at)

@router.post("/login", response_model=LoginResponse)
async def login(payload: LoginRequest):
    users_collection = get_users_collection()

    user = await get_user_by_email(users_collection, payload.email)

    # User not found or password mismatch
    if not user or not verify_password(payload.password, user.password):
        raise UnauthorizedError("Invalid email or password")

    token = make_jwt(
        user.id,
        settings.JWT_SECRET,
        timedelta(hours=settings.JWT_EXPIRATION_HOURS),
    )
    return LoginResponse(
        token=token,
        user=UserResponse(id=user.id, email=user.email, created_at=user.created_at),
    )
