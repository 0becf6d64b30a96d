from datetime import datetime, timedelta, timezone
from typing import Optional

import jwt
from passlib.context import CryptContext

from classroom.core.config.settings import get_settings
from classroom.core.exceptions import NotAuthenticated

pwd_context = CryptContext(schemes=["pbkdf2_sha256"], deprecated="auto")


def create_hashed_password(password: str) -> str:
    return pwd_context.hash(password)


def verify_password(plain_password: str, hashed_password: str) -> bool:
    return pwd_context.verify(plain_password, hashed_password)


def generate_token(data: dict, expires_delta: Optional[timedelta] = None) -> str:
    settings = get_settings()
    to_encode = data.copy()
    if expires_delta is None:
        expires_delta = timedelta(minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES)
    to_encode.update({"exp": datetime.now(timezone.utc) + expires_delta})
    return jwt.encode(to_encode, settings.SECRET_KEY, algorithm=settings.ALGORITHM)


def resolve_token(token: str) -> int:
    """Return the profile id carried in a bearer token."""
    settings = get_settings()
    try:
        payload = jwt.decode(token, settings.SECRET_KEY, algorithms=[settings.ALGORITHM])
    except jwt.ExpiredSignatureError:
        raise NotAuthenticated("Token has expired")
    except jwt.PyJWTError:
        raise NotAuthenticated("Invalid token")

    subject = payload.get("sub")
    if subject is None:
        raise NotAuthenticated("Invalid token payload")
    try:
        return int(subject)
    except (TypeError, ValueError):
        raise NotAuthenticated("Invalid token payload")
