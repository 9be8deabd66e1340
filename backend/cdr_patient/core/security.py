"""
Acting-principal resolution.

The principal is resolved once per request at the HTTP boundary and passed
explicitly into every service call that changes persisted state.
"""
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Optional

from fastapi import HTTPException, Request, status
from jose import JWTError, jwt

from .config import settings


@dataclass(frozen=True)
class Principal:
    person_id: int


def create_access_token(data: dict, expires_delta: Optional[timedelta] = None) -> str:
    to_encode = data.copy()
    expire = datetime.utcnow() + (expires_delta or timedelta(minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES))
    to_encode.update({"exp": expire})
    return jwt.encode(to_encode, settings.SECRET_KEY, algorithm=settings.ALGORITHM)


def decode_access_token(token: str) -> Optional[dict]:
    try:
        return jwt.decode(token, settings.SECRET_KEY, algorithms=[settings.ALGORITHM])
    except JWTError:
        return None


def principal_from_token(token: str) -> Optional[Principal]:
    payload = decode_access_token(token)
    if not payload:
        return None
    try:
        return Principal(person_id=int(payload.get("sub")))
    except (TypeError, ValueError):
        return None


def get_current_principal(request: Request) -> Principal:
    auth_header = request.headers.get("Authorization", "")
    if auth_header.startswith("Bearer "):
        principal = principal_from_token(auth_header[7:])
        if principal is None:
            raise HTTPException(
                status_code=status.HTTP_401_UNAUTHORIZED,
                detail="Invalid or expired token",
                headers={"WWW-Authenticate": "Bearer"},
            )
        return principal
    if settings.AUTH_REQUIRED:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Not authenticated",
            headers={"WWW-Authenticate": "Bearer"},
        )
    return Principal(person_id=settings.DEFAULT_ACTOR_ID)
