from dataclasses import dataclass
from datetime import datetime, timedelta, timezone

import jwt

from useraccounts.core import config


@dataclass(frozen=True)
class CallerIdentity:
    caller_id: str
    caller_role: str


def create_access_token(user_id: str, role: str, expires_minutes: int | None = None) -> str:
    expire_minutes = expires_minutes or config.JWT_EXPIRES_MINUTES
    expire = datetime.now(timezone.utc) + timedelta(minutes=expire_minutes)
    payload = {"sub": user_id, "role": role, "exp": expire, "iat": datetime.now(timezone.utc)}
    return jwt.encode(payload, config.JWT_SECRET_KEY, algorithm=config.JWT_ALGORITHM)


def decode_access_token(token: str) -> dict:
    return jwt.decode(token, config.JWT_SECRET_KEY, algorithms=[config.JWT_ALGORITHM])


def decode_caller(token: str) -> CallerIdentity:
    """Raises ``jwt.InvalidTokenError`` when the token or its claims are unusable."""
    payload = decode_access_token(token)
    caller_id = payload.get("sub")
    caller_role = payload.get("role")
    if not isinstance(caller_id, str) or not caller_id:
        raise jwt.InvalidTokenError("Token has no subject")
    if not isinstance(caller_role, str) or not caller_role:
        raise jwt.InvalidTokenError("Token has no role")
    return CallerIdentity(caller_id=caller_id, caller_role=caller_role)
