"""
OAuth 2.0 PKCE and ``state`` helpers for the Tesla authorization flow.

The ``state`` parameter is ``base64url("{user_id}:{timestamp_ms}:{nonce}")``
so the callback can tell which user started the flow and when.
"""

import base64
import hashlib
import secrets
import time
from dataclasses import dataclass
from typing import Optional
from urllib.parse import urlencode


def _b64url(raw: bytes) -> str:
    return base64.urlsafe_b64encode(raw).rstrip(b"=").decode("ascii")


def generate_code_verifier() -> str:
    """32 random bytes, base64url without padding (43 chars)."""
    return _b64url(secrets.token_bytes(32))


def generate_code_challenge(verifier: str) -> str:
    """S256 challenge: base64url(sha256(verifier)) without padding."""
    return _b64url(hashlib.sha256(verifier.encode("ascii")).digest())


@dataclass(frozen=True)
class OAuthState:
    user_id: int
    timestamp_ms: int
    nonce: str

    def age_seconds(self, now_ms: Optional[int] = None) -> float:
        now_ms = now_ms if now_ms is not None else int(time.time() * 1000)
        return (now_ms - self.timestamp_ms) / 1000.0


def generate_state(user_id: int, now_ms: Optional[int] = None) -> str:
    now_ms = now_ms if now_ms is not None else int(time.time() * 1000)
    raw = f"{user_id}:{now_ms}:{secrets.token_hex(16)}"
    return _b64url(raw.encode("utf-8"))


def parse_state(state: str) -> Optional[OAuthState]:
    """Decode a ``state`` value; returns None if it is malformed."""
    if not state:
        return None
    try:
        padded = state + "=" * (-len(state) % 4)
        decoded = base64.urlsafe_b64decode(padded.encode("ascii")).decode("utf-8")
        user_id, timestamp, nonce = decoded.split(":")
        return OAuthState(user_id=int(user_id), timestamp_ms=int(timestamp), nonce=nonce)
    except (ValueError, UnicodeError):
        return None


def build_authorize_url(
    auth_base_url: str,
    client_id: str,
    redirect_uri: str,
    scope: str,
    state: str,
    code_challenge: str,
) -> str:
    params = {
        "client_id": client_id,
        "redirect_uri": redirect_uri,
        "response_type": "code",
        "scope": scope,
        "state": state,
        "code_challenge": code_challenge,
        "code_challenge_method": "S256",
    }
    return f"{auth_base_url.rstrip('/')}/authorize?{urlencode(params)}"
