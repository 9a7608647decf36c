from datetime import datetime, timedelta, timezone
from typing import Any, Optional

from fastapi import Depends, Request
from jose import ExpiredSignatureError, JWTError, jwt
from passlib.context import CryptContext
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.future import select

from app.constants.auth import ACCESS_TOKEN_EXPIRE_DAYS, ALGORITHM, AUTH_COOKIE_NAME, SECRET_KEY
from app.database import get_db
from app.exceptions import InvalidTokenError
from app.models.user import User
import logging

# Initialize logging
logger = logging.getLogger(__name__)

# Password hashing context
pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto")


def hash_password(password: str) -> str:
    return pwd_context.hash(password)


def verify_password(plain_password: str, hashed_password: str) -> bool:
    return pwd_context.verify(plain_password, hashed_password)


def create_access_token(user_id: int, tenant_id: int, expires_delta: Optional[timedelta] = None) -> str:
    """Issue a JWT binding the user to the tenant they signed into."""
    expire = datetime.now(timezone.utc) + (expires_delta or timedelta(days=ACCESS_TOKEN_EXPIRE_DAYS))
    to_encode = {
        # Registered claims must be strings
        "sub": str(user_id),
        "tenant_id": tenant_id,
        "exp": expire,
    }
    return jwt.encode(to_encode, SECRET_KEY, algorithm=ALGORITHM)


def decode_access_token(token: str) -> dict[str, Any]:
    """
    Decode and validate an access token.

    Returns a dict with integer ``user_id`` and ``tenant_id``.

    Raises:
        InvalidTokenError: If the token is expired, malformed or missing claims.
    """
    try:
        payload = jwt.decode(token, SECRET_KEY, algorithms=[ALGORITHM])
    except ExpiredSignatureError:
        logger.info("Token expired")
        raise InvalidTokenError("Token has expired")
    except JWTError as e:
        logger.warning("JWT decoding failed: %s", e)
        raise InvalidTokenError()

    try:
        return {"user_id": int(payload["sub"]), "tenant_id": int(payload["tenant_id"])}
    except (KeyError, TypeError, ValueError):
        logger.warning("Token is missing 'sub' or 'tenant_id' claim")
        raise InvalidTokenError()


async def get_current_user(
    request: Request,
    db: AsyncSession = Depends(get_db),
) -> User:
    """Return the user identified by the auth cookie, with their tenants loaded."""
    token = request.cookies.get(AUTH_COOKIE_NAME)
    if not token:
        raise InvalidTokenError("Unauthorized")

    claims = decode_access_token(token)

    result = await db.execute(select(User).where(User.id == claims["user_id"]))
    user = result.scalars().first()
    if user is None:
        logger.warning("Token references unknown user id=%s", claims["user_id"])
        raise InvalidTokenError("User not found")

    request.state.user = user
    request.state.token_tenant_id = claims["tenant_id"]
    return user
