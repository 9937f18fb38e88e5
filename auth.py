"""
Student credentials: bcrypt password hashes and signed bearer tokens.

Tokens are stateless JWTs carrying the student's mobile number (`sub`) and
display name. There is no revocation; a token stays valid until it expires.
"""

import logging
from datetime import datetime, timedelta, timezone
from typing import Optional

import bcrypt
import jwt
from fastapi import Depends, HTTPException
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from pydantic import BaseModel

from settings import Settings, get_settings

logger = logging.getLogger(__name__)

bearer_scheme = HTTPBearer(auto_error=False)


class CurrentStudent(BaseModel):
    mobile: str
    name: Optional[str] = None


def hash_password(password: str, rounds: int = 12) -> str:
    salt = bcrypt.gensalt(rounds=rounds)
    return bcrypt.hashpw(password.encode("utf-8")[:72], salt).decode("utf-8")


def verify_password(password: str, hashed: str) -> bool:
    if not password or not hashed:
        return False
    try:
        return bcrypt.checkpw(password.encode("utf-8")[:72], hashed.encode("utf-8"))
    except ValueError:
        # stored value is not a bcrypt hash
        return False


def create_access_token(mobile: str, name: Optional[str], settings: Settings) -> str:
    issued = datetime.now(timezone.utc)
    payload = {
        "sub": mobile,
        "name": name,
        "iat": issued,
        "exp": issued + timedelta(days=settings.TOKEN_EXPIRE_DAYS),
    }
    return jwt.encode(payload, settings.JWT_SECRET, algorithm=settings.JWT_ALGORITHM)


def decode_access_token(token: str, settings: Settings) -> CurrentStudent:
    """Verify `token` and return the identity it carries; raise 401 otherwise."""
    try:
        payload = jwt.decode(
            token,
            settings.JWT_SECRET,
            algorithms=[settings.JWT_ALGORITHM],
            options={"require": ["exp", "sub"]},
        )
    except jwt.PyJWTError as exc:
        logger.warning("Rejected bearer token: %s", exc)
        raise HTTPException(status_code=401, detail="Invalid or expired token")
    return CurrentStudent(mobile=payload["sub"], name=payload.get("name"))


def get_current_student(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
    settings: Settings = Depends(get_settings),
) -> CurrentStudent:
    """FastAPI dependency: the authenticated student, or HTTP 401."""
    if credentials is None or not credentials.credentials:
        raise HTTPException(status_code=401, detail="Invalid or expired token")
    return decode_access_token(credentials.credentials, settings)
