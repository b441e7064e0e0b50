"""
Actor verification for mutating endpoints.

The identity provider signs a JWT whose username claim names the caller.
When ``AUTH_JWT_SECRET`` is configured the token is required and every
username a request acts as must match that claim. Without a secret the
service trusts the caller-supplied username.
"""

import logging
from typing import Optional

from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from jose import JWTError, jwt

from app.core import config

logger = logging.getLogger(__name__)

bearer_scheme = HTTPBearer(auto_error=False)


def auth_enabled() -> bool:
    return bool(config.AUTH_JWT_SECRET)


def decode_username(token: str) -> str:
    credentials_exception = HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail="Could not validate credentials",
        headers={"WWW-Authenticate": "Bearer"},
    )
    try:
        payload = jwt.decode(
            token,
            config.AUTH_JWT_SECRET,
            algorithms=[config.AUTH_JWT_ALGORITHM],
            options={"verify_aud": False},
        )
    except JWTError:
        raise credentials_exception

    username = payload.get(config.AUTH_USERNAME_CLAIM)
    if not username:
        raise credentials_exception
    return username


async def current_actor(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
) -> Optional[str]:
    """
    Username of the authenticated caller.

    None in trusted-caller mode. Raises 401 when tokens are required and the
    request has no valid one.
    """
    if not auth_enabled():
        return None
    if credentials is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Not authenticated",
            headers={"WWW-Authenticate": "Bearer"},
        )
    return decode_username(credentials.credentials)


def ensure_actor(actor: Optional[str], username: str) -> None:
    """Reject a request acting as ``username`` on behalf of someone else."""
    if actor is not None and actor != username:
        logger.warning(f"Actor {actor} attempted to act as {username}")
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Cannot act on behalf of another user",
        )
