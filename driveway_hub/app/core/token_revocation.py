"""
Token Revocation System using Redis.

Implements token blacklisting to immediately invalidate JWT tokens
on logout, and every token issued before a cutoff on logout-all.
"""

import logging
import time
from typing import Optional

from redis.exceptions import RedisError

from driveway_hub.app.core.config import settings

logger = logging.getLogger(__name__)

# Redis key prefix for blacklisted tokens
TOKEN_BLACKLIST_PREFIX = "blacklist:token:"
USER_TOKENS_PREFIX = "user:tokens:"


def _ttl_seconds() -> int:
    # Tokens expire on their own after this long
    return settings.access_token_expire_minutes * 60


async def revoke_token(redis, token: str, user_id: int) -> bool:
    """
    Revoke a specific JWT token by adding it to the blacklist.

    Returns:
        True if successfully revoked, False otherwise
    """
    try:
        await redis.setex(f"{TOKEN_BLACKLIST_PREFIX}{token}", _ttl_seconds(), str(user_id))
        return True
    except RedisError as e:
        logger.error("Error revoking token for user %s: %s", user_id, e)
        return False


async def is_token_revoked(redis, token: str) -> bool:
    """
    Check if a token has been revoked.

    If Redis is unreachable the token is treated as valid.
    """
    try:
        exists = await redis.exists(f"{TOKEN_BLACKLIST_PREFIX}{token}")
        return exists > 0
    except RedisError as e:
        logger.warning("Error checking token revocation: %s", e)
        return False


async def revoke_all_user_tokens(redis, user_id: int, now: Optional[float] = None) -> bool:
    """
    Revoke every token issued to a user up to now.

    Stores a per-user cutoff that ``are_user_tokens_revoked`` compares with
    the token issue time until the longest token lifetime has passed.
    Tokens issued later stay valid.
    """
    cutoff = time.time() if now is None else now
    try:
        await redis.setex(f"{USER_TOKENS_PREFIX}{user_id}:revoked_before", _ttl_seconds(), repr(cutoff))
        return True
    except RedisError as e:
        logger.error("Error revoking all tokens for user %s: %s", user_id, e)
        return False


async def are_user_tokens_revoked(redis, user_id: int, issued_at: Optional[float]) -> bool:
    """Check if a token issued at ``issued_at`` falls under a user-wide revocation."""
    try:
        cutoff = await redis.get(f"{USER_TOKENS_PREFIX}{user_id}:revoked_before")
        if cutoff is None:
            return False
        return issued_at is None or float(issued_at) <= float(cutoff)
    except RedisError as e:
        logger.warning("Error checking user token revocation: %s", e)
        return False
