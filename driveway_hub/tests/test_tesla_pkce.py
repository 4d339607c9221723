"""
Tesla PKCE and OAuth state tests.
"""

import base64
import hashlib
import re
from urllib.parse import urlparse, parse_qs

import httpx
import pytest

from driveway_hub.app.core.exceptions import InvalidOAuthStateError, TeslaConfigurationError
from driveway_hub.app.services.tesla.pkce import (
    build_authorize_url,
    generate_code_challenge,
    generate_code_verifier,
    generate_state,
    parse_state,
)
from driveway_hub.app.services.tesla.client import TeslaClient
from driveway_hub.app.core.config import Settings

from conftest import TEST_SETTINGS


def test_code_verifier_is_unpadded_base64url():
    verifier = generate_code_verifier()
    assert len(verifier) == 43
    assert re.fullmatch(r"[A-Za-z0-9_-]+", verifier)
    assert generate_code_verifier() != verifier


def test_code_challenge_is_s256_of_verifier():
    verifier = "dBjftJeZ4CVP-mB92K27uhbUJU1p1r_wW1gFWFOEjXk"
    expected = base64.urlsafe_b64encode(hashlib.sha256(verifier.encode()).digest()).rstrip(b"=").decode()

    challenge = generate_code_challenge(verifier)

    assert challenge == expected == "E9Melhoa2OwvFrEMTJguCHaoeK1t8URWbuGJSstw-cM"
    assert "=" not in challenge


def test_state_roundtrip():
    state = generate_state(42, now_ms=1_700_000_000_000)
    parsed = parse_state(state)

    assert parsed.user_id == 42
    assert parsed.timestamp_ms == 1_700_000_000_000
    assert len(parsed.nonce) == 32
    assert parsed.age_seconds(1_700_000_005_000) == 5.0


@pytest.mark.parametrize("state", ["", "not-base64!", base64.urlsafe_b64encode(b"1:2").decode(), base64.urlsafe_b64encode(b"a:b:c").decode()])
def test_malformed_state_parses_to_none(state):
    assert parse_state(state) is None


def test_authorize_url_carries_pkce_parameters():
    url = build_authorize_url(
        "https://auth.tesla.com/oauth2/v3", "cid", "http://localhost/cb", "openid offline_access", "st", "ch"
    )
    parsed = urlparse(url)
    params = {k: v[0] for k, v in parse_qs(parsed.query).items()}

    assert f"{parsed.scheme}://{parsed.netloc}{parsed.path}" == "https://auth.tesla.com/oauth2/v3/authorize"
    assert params == {
        "client_id": "cid",
        "redirect_uri": "http://localhost/cb",
        "response_type": "code",
        "scope": "openid offline_access",
        "state": "st",
        "code_challenge": "ch",
        "code_challenge_method": "S256",
    }


def test_validate_state_rejects_other_user_and_expired(tesla_service):
    now_ms = 1_700_000_000_000
    state = generate_state(7, now_ms)

    assert tesla_service.validate_state(state, 7, now_ms + 1000).user_id == 7

    with pytest.raises(InvalidOAuthStateError):
        tesla_service.validate_state(state, 8, now_ms + 1000)

    max_age_ms = TEST_SETTINGS.tesla_state_max_age_seconds * 1000
    with pytest.raises(InvalidOAuthStateError):
        tesla_service.validate_state(state, 7, now_ms + max_age_ms + 1)

    with pytest.raises(InvalidOAuthStateError):
        tesla_service.validate_state("garbage", 7, now_ms)


async def test_missing_configuration_names_every_variable(tesla_api):
    settings = Settings(tesla_client_id=None, tesla_client_secret=None, tesla_oauth_redirect_uri=None)
    async with httpx.AsyncClient(transport=httpx.MockTransport(tesla_api.handle)) as http:
        client = TeslaClient(http, settings)
        with pytest.raises(TeslaConfigurationError) as exc:
            await client.exchange_code_for_token("code", "verifier")

    assert exc.value.error_code == "TESLA_CONFIG_MISSING"
    assert exc.value.status_code == 500
    for name in ("TESLA_CLIENT_ID", "TESLA_CLIENT_SECRET", "TESLA_OAUTH_REDIRECT_URI"):
        assert name in exc.value.message
    # Nothing went over the wire
    assert tesla_api.requests == []
