"""
JWT token utilities for authentication.

This module provides functions for encoding and decoding JWT tokens.
"""

from datetime import timedelta
from typing import Optional, Dict, Any
from jose import JWTError, jwt
from driveway_hub.app.core.config import settings
from driveway_hub.app.core.time import utcnow


def create_access_token(data: Dict[str, Any], expires_delta: Optional[timedelta] = None) -> str:
    """
    Create a JWT access token.

    Args:
        data: Data payload to encode in the token (should include: sub, user_id, role)
        expires_delta: Optional custom expiration time

    Returns:
        Encoded JWT token string

    Example payload:
        {
            "sub": "driver@example.com",
            "user_id": 123,
            "role": "driver",
            "iat": 1234481490.123,
            "exp": 1234567890
        }
    """
    to_encode = data.copy()
    now = utcnow()

    if expires_delta:
        expire = now + expires_delta
    else:
        expire = now + timedelta(minutes=settings.access_token_expire_minutes)

    # iat keeps sub-second precision; user-wide revocation compares against it
    to_encode.update({"iat": now.timestamp(), "exp": expire})
    return jwt.encode(to_encode, settings.jwt_secret, algorithm=settings.jwt_algorithm)


def create_user_token(user) -> str:
    """Issue the standard 24h token for a ``User`` row."""
    return create_access_token(
        data={"sub": user.email, "user_id": user.id, "role": user.role.value}
    )


def decode_access_token(token: str) -> Optional[Dict[str, Any]]:
    """
    Decode and validate a JWT access token.

    Returns:
        Decoded token payload if valid (includes: sub, user_id, role, iat, exp), None otherwise
    """
    try:
        return jwt.decode(token, settings.jwt_secret, algorithms=[settings.jwt_algorithm])
    except JWTError:
        return None
