import datetime
import logging
from typing import Mapping

import bcrypt
import jwt
from jwt import ExpiredSignatureError, InvalidTokenError

from src.core.errors import UnauthorizedError

logger = logging.getLogger(__name__)

TOKEN_ISSUER = "tubely-access"
JWT_ALGORITHM = "HS256"


def hash_password(password: str) -> str:
    return bcrypt.hashpw(password.encode("utf-8"), bcrypt.gensalt()).decode("utf-8")


def verify_password(password: str, hashed: str) -> bool:
    try:
        return bcrypt.checkpw(password.encode("utf-8"), hashed.encode("utf-8"))
    except ValueError:
        # malformed hash in storage
        return False


def make_jwt(user_id: str, secret: str, expires_in: datetime.timedelta) -> str:
    now = datetime.datetime.now(tz=datetime.timezone.utc)
    return jwt.encode(
        {
            "iss": TOKEN_ISSUER,
            "sub": user_id,
            "iat": now,
            "exp": now + expires_in,
        },
        secret,
        algorithm=JWT_ALGORITHM,
    )


def validate_jwt(token: str, secret: str) -> str:
    """Return the user id carried by ``token`` or raise UnauthorizedError."""
    try:
        payload = jwt.decode(
            token,
            key=secret,
            algorithms=[JWT_ALGORITHM],
            issuer=TOKEN_ISSUER,
            options={"require": ["exp", "sub"]},
        )
    except ExpiredSignatureError:
        raise UnauthorizedError("Token has expired")
    except InvalidTokenError as e:
        logger.info("Rejected token: %s", e)
        raise UnauthorizedError("Invalid token")

    user_id = payload.get("sub")
    if not user_id:
        raise UnauthorizedError("Invalid token")
    return user_id


def get_bearer_token(headers: Mapping[str, str]) -> str:
    auth_header = headers.get("authorization")
    if not auth_header:
        raise UnauthorizedError("Authorization header missing")

    parts = auth_header.split()
    if len(parts) != 2 or parts[0].lower() != "bearer":
        raise UnauthorizedError("Malformed authorization header")
    return parts[1]
