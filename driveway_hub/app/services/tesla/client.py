"""
Tesla API Client.

OAuth token endpoints (auth.tesla.com) and Fleet API vehicle endpoints.
The ``httpx.AsyncClient`` is created once in the application lifespan and
injected here, so tests can pass one built on ``httpx.MockTransport``.
"""

import logging
from typing import Any, Dict, List, Optional

import httpx

from driveway_hub.app.core.config import Settings
from driveway_hub.app.core.exceptions import TeslaAPIError, TeslaConfigurationError
from driveway_hub.app.services.tesla.pkce import build_authorize_url

logger = logging.getLogger(__name__)

FLEET_API_PREFIX = "/api/1"


def build_http_client(settings: Settings) -> httpx.AsyncClient:
    return httpx.AsyncClient(timeout=settings.tesla_http_timeout_seconds)


class TeslaClient:
    """Thin async wrapper over the Tesla auth server and Fleet API."""

    def __init__(self, http: httpx.AsyncClient, settings: Settings):
        self._http = http
        self._settings = settings

    @property
    def token_url(self) -> str:
        return f"{self._settings.tesla_auth_base_url.rstrip('/')}/token"

    @property
    def fleet_api_base(self) -> str:
        return f"{self._settings.tesla_fleet_api_base_url.rstrip('/')}{FLEET_API_PREFIX}"

    def require_config(self) -> None:
        """Raise ``TeslaConfigurationError`` naming any missing OAuth setting."""
        missing = [
            env_name
            for env_name, value in (
                ("TESLA_CLIENT_ID", self._settings.tesla_client_id),
                ("TESLA_CLIENT_SECRET", self._settings.tesla_client_secret),
                ("TESLA_OAUTH_REDIRECT_URI", self._settings.tesla_oauth_redirect_uri),
            )
            if not value
        ]
        if missing:
            raise TeslaConfigurationError(missing)

    async def _request(
        self,
        operation: str,
        method: str,
        url: str,
        access_token: Optional[str] = None,
        data: Optional[Dict[str, Any]] = None,
        json: Optional[Dict[str, Any]] = None,
    ) -> Dict[str, Any]:
        headers = {"Accept": "application/json"}
        if access_token:
            headers["Authorization"] = f"Bearer {access_token}"
        try:
            response = await self._http.request(method, url, headers=headers, data=data, json=json)
        except httpx.HTTPError as e:
            raise TeslaAPIError(operation, str(e)) from e

        if response.is_error:
            raise TeslaAPIError(operation, response.text, response.status_code)
        try:
            return response.json()
        except ValueError as e:
            raise TeslaAPIError(operation, f"Invalid JSON response: {response.text[:200]}", response.status_code) from e

    # ------------------------------------------------------------------
    # OAuth
    # ------------------------------------------------------------------

    def authorize_url(self, state: str, code_challenge: str) -> str:
        self.require_config()
        return build_authorize_url(
            self._settings.tesla_auth_base_url,
            self._settings.tesla_client_id,
            self._settings.tesla_oauth_redirect_uri,
            self._settings.tesla_oauth_scope,
            state,
            code_challenge,
        )

    async def exchange_code_for_token(self, code: str, code_verifier: str) -> Dict[str, Any]:
        """Exchange an authorization code (plus PKCE verifier) for a token pair."""
        self.require_config()
        return await self._request(
            "token_exchange",
            "POST",
            self.token_url,
            data={
                "grant_type": "authorization_code",
                "client_id": self._settings.tesla_client_id,
                "client_secret": self._settings.tesla_client_secret,
                "code": code,
                "code_verifier": code_verifier,
                "redirect_uri": self._settings.tesla_oauth_redirect_uri,
                "audience": self._settings.tesla_fleet_api_base_url,
            },
        )

    async def refresh_access_token(self, refresh_token: str) -> Dict[str, Any]:
        """Refresh expired access token."""
        self.require_config()
        return await self._request(
            "token_refresh",
            "POST",
            self.token_url,
            data={
                "grant_type": "refresh_token",
                "client_id": self._settings.tesla_client_id,
                "client_secret": self._settings.tesla_client_secret,
                "refresh_token": refresh_token,
            },
        )

    # ------------------------------------------------------------------
    # Fleet API
    # ------------------------------------------------------------------

    async def get_vehicles(self, access_token: str) -> List[Dict[str, Any]]:
        data = await self._request("get_vehicles", "GET", f"{self.fleet_api_base}/vehicles", access_token)
        return data.get("response") or []

    async def get_vehicle_data(self, access_token: str, vehicle_id: str) -> Dict[str, Any]:
        data = await self._request(
            "get_vehicle_data", "GET", f"{self.fleet_api_base}/vehicles/{vehicle_id}/vehicle_data", access_token
        )
        return data.get("response") or {}

    async def wake_up_vehicle(self, access_token: str, vehicle_id: str) -> bool:
        """True when the vehicle reports ``online`` after the wake request."""
        data = await self._request(
            "wake_up", "POST", f"{self.fleet_api_base}/vehicles/{vehicle_id}/wake_up", access_token
        )
        return (data.get("response") or {}).get("state") == "online"

    async def send_command(
        self,
        access_token: str,
        vehicle_id: str,
        command: str,
        body: Optional[Dict[str, Any]] = None,
    ) -> Dict[str, Any]:
        return await self._request(
            f"command:{command}",
            "POST",
            f"{self.fleet_api_base}/vehicles/{vehicle_id}/command/{command}",
            access_token,
            json=body,
        )
