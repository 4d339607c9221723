"""
Tesla Service.

Owns the token lifecycle for each user (PKCE authorization, code exchange,
refresh-on-expiry) and the vehicle operations built on top of it.
"""

import logging
from datetime import datetime, timedelta
from typing import Any, Dict, List, Optional, Tuple

from fastapi import Request
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from driveway_hub.app.core.config import Settings
from driveway_hub.app.core.exceptions import (
    InvalidOAuthStateError,
    TeslaAPIError,
    TeslaConfigurationError,
    TeslaNotConnectedError,
)
from driveway_hub.app.core.reliability import CircuitBreaker
from driveway_hub.app.core.time import ensure_utc, utcnow
from driveway_hub.app.models.user import User
from driveway_hub.app.models.vehicle import Vehicle
from driveway_hub.app.services.tesla.client import TeslaClient
from driveway_hub.app.services.tesla.pkce import (
    OAuthState,
    generate_code_challenge,
    generate_code_verifier,
    generate_state,
    parse_state,
)
from driveway_hub.app.services.tesla.vin import decode_vin, dimensions_for

logger = logging.getLogger(__name__)

NAVIGATION_COMMAND = "navigation_gps_request"


class TeslaService:

    def __init__(self, client: TeslaClient, settings: Settings, breaker: Optional[CircuitBreaker] = None):
        self.client = client
        self.settings = settings
        self.breaker = breaker or CircuitBreaker("tesla_fleet_api", failure_threshold=3, reset_timeout=60)

    # ------------------------------------------------------------------
    # OAuth
    # ------------------------------------------------------------------

    async def generate_auth_url(self, db: AsyncSession, user: User, now_ms: Optional[int] = None) -> str:
        """
        Start the PKCE flow for ``user``.

        The code verifier is persisted on the user row until the callback.
        """
        self.client.require_config()
        verifier = generate_code_verifier()
        state = generate_state(user.id, now_ms)
        url = self.client.authorize_url(state, generate_code_challenge(verifier))

        user.tesla_code_verifier = verifier
        await db.commit()
        logger.info("Tesla authorization started for user %s", user.id)
        return url

    def validate_state(self, state: str, user_id: int, now_ms: Optional[int] = None) -> OAuthState:
        """
        Check the callback ``state`` belongs to ``user_id`` and is recent.

        Raises:
            InvalidOAuthStateError
        """
        parsed = parse_state(state)
        if parsed is None:
            raise InvalidOAuthStateError("Malformed OAuth state")
        if parsed.user_id != user_id:
            raise InvalidOAuthStateError("OAuth state was issued to another user")
        age = parsed.age_seconds(now_ms)
        if age < 0 or age > self.settings.tesla_state_max_age_seconds:
            raise InvalidOAuthStateError("OAuth state has expired")
        return parsed

    async def complete_authorization(
        self,
        db: AsyncSession,
        user: User,
        code: str,
        state: str,
        now_ms: Optional[int] = None,
    ) -> int:
        """
        Handle the OAuth callback: exchange the code, store the token pair
        and sync the user's vehicles.

        Returns:
            Number of vehicles synced
        """
        self.client.require_config()
        self.validate_state(state, user.id, now_ms)
        if not user.tesla_code_verifier:
            raise InvalidOAuthStateError("No Tesla authorization in progress")

        tokens = await self.client.exchange_code_for_token(code, user.tesla_code_verifier)
        self.store_tokens(user, tokens)
        user.tesla_code_verifier = None
        await db.commit()
        logger.info("Tesla account connected for user %s", user.id)

        try:
            vehicles = await self.client.get_vehicles(user.tesla_access_token)
        except TeslaAPIError as e:
            logger.warning("Vehicle sync after Tesla connect failed for user %s: %s", user.id, e.provider_message)
            return 0
        return await self.sync_vehicles_to_database(db, user.id, vehicles)

    @staticmethod
    def store_tokens(user: User, tokens: Dict[str, Any], now: Optional[datetime] = None) -> None:
        """Copy a token response onto the user row (caller commits)."""
        now = ensure_utc(now) if now else utcnow()
        user.tesla_access_token = tokens["access_token"]
        user.tesla_refresh_token = tokens.get("refresh_token") or user.tesla_refresh_token
        user.tesla_token_expires_at = now + timedelta(seconds=int(tokens.get("expires_in", 0)))
        user.tesla_token_scope = tokens.get("scope", user.tesla_token_scope)

    async def get_valid_access_token(
        self,
        db: AsyncSession,
        user_id: int,
        now: Optional[datetime] = None,
    ) -> Optional[str]:
        """
        Return a usable access token for ``user_id``, refreshing once if the
        stored one has expired. The refresh runs under a row lock on the user.

        Returns None when the user must re-authenticate: no stored token,
        no refresh token, or a failed refresh.
        """
        now = ensure_utc(now) if now else utcnow()
        user = await db.get(User, user_id)
        if user is None or not user.tesla_access_token:
            return None

        expires_at = user.tesla_token_expires_at
        if expires_at is not None and now < ensure_utc(expires_at):
            return user.tesla_access_token

        # Re-read under lock; another request may have refreshed already
        result = await db.execute(
            select(User)
            .where(User.id == user_id)
            .with_for_update()
            .execution_options(populate_existing=True)
        )
        user = result.scalar_one()
        expires_at = user.tesla_token_expires_at
        if expires_at is not None and now < ensure_utc(expires_at):
            return user.tesla_access_token

        if not user.tesla_refresh_token:
            return None

        try:
            tokens = await self.client.refresh_access_token(user.tesla_refresh_token)
        except (TeslaAPIError, TeslaConfigurationError) as e:
            logger.warning("Failed to refresh Tesla token for user %s: %s", user_id, e.message)
            return None

        self.store_tokens(user, tokens, now)
        await db.commit()
        logger.info("Tesla token refreshed for user %s", user_id)
        return user.tesla_access_token

    async def require_access_token(self, db: AsyncSession, user_id: int) -> str:
        token = await self.get_valid_access_token(db, user_id)
        if token is None:
            raise TeslaNotConnectedError()
        return token

    # ------------------------------------------------------------------
    # Vehicles
    # ------------------------------------------------------------------

    async def list_vehicles(self, db: AsyncSession, user_id: int) -> List[Dict[str, Any]]:
        token = await self.require_access_token(db, user_id)
        return await self.client.get_vehicles(token)

    async def get_vehicle_data(self, db: AsyncSession, user_id: int, tesla_id: str) -> Dict[str, Any]:
        """
        Live vehicle data; also refreshes the stored vehicle's battery level
        and location when the vehicle is known locally.
        """
        token = await self.require_access_token(db, user_id)
        data = await self.client.get_vehicle_data(token, tesla_id)

        result = await db.execute(
            select(Vehicle).where(Vehicle.user_id == user_id, Vehicle.tesla_id == str(tesla_id))
        )
        vehicle = result.scalar_one_or_none()
        if vehicle is not None:
            self.apply_telemetry(vehicle, data)
            await db.commit()
        return data

    @staticmethod
    def apply_telemetry(vehicle: Vehicle, data: Dict[str, Any]) -> None:
        charge_state = data.get("charge_state") or {}
        drive_state = data.get("drive_state") or {}
        if charge_state.get("battery_level") is not None:
            vehicle.battery_level = int(charge_state["battery_level"])
        if drive_state.get("latitude") is not None and drive_state.get("longitude") is not None:
            vehicle.latitude = float(drive_state["latitude"])
            vehicle.longitude = float(drive_state["longitude"])
        vehicle.last_seen_at = utcnow()

    async def wake_up_vehicle(self, db: AsyncSession, user_id: int, tesla_id: str) -> bool:
        token = await self.require_access_token(db, user_id)
        return await self.client.wake_up_vehicle(token, tesla_id)

    async def send_command(
        self,
        db: AsyncSession,
        user_id: int,
        tesla_id: str,
        command: str,
        body: Optional[Dict[str, Any]] = None,
    ) -> Dict[str, Any]:
        token = await self.require_access_token(db, user_id)
        return await self.client.send_command(token, tesla_id, command, body)

    async def get_vehicle_location(
        self,
        db: AsyncSession,
        user_id: int,
        vehicle: Vehicle,
    ) -> Tuple[float, float]:
        """
        Current (latitude, longitude) from the vehicle's live ``drive_state``.

        Raises:
            TeslaNotConnectedError: no usable token or the vehicle is not linked to Tesla
            TeslaAPIError: Fleet API failure or no location reported
        """
        if not vehicle.tesla_id:
            raise TeslaNotConnectedError()
        data = await self.get_vehicle_data(db, user_id, vehicle.tesla_id)
        drive_state = data.get("drive_state") or {}
        if drive_state.get("latitude") is None or drive_state.get("longitude") is None:
            raise TeslaAPIError("get_vehicle_location", "Vehicle did not report a location")
        return float(drive_state["latitude"]), float(drive_state["longitude"])

    async def send_navigation(
        self,
        db: AsyncSession,
        user_id: int,
        vehicle: Vehicle,
        latitude: float,
        longitude: float,
    ) -> bool:
        """
        Push a destination to the vehicle's navigation.

        Returns False (and logs) when it cannot be attempted: the vehicle is
        not linked to Tesla or the driver has no usable token. Fleet API
        failures propagate; calls go through the circuit breaker.
        """
        if not vehicle.tesla_id:
            logger.info("Skipping navigation push: vehicle %s is not linked to Tesla", vehicle.id)
            return False
        token = await self.get_valid_access_token(db, user_id)
        if token is None:
            logger.info("Skipping navigation push: user %s has no valid Tesla token", user_id)
            return False

        body = {"lat": latitude, "lon": longitude, "order": 1}
        await self.breaker.call(self.client.send_command, token, vehicle.tesla_id, NAVIGATION_COMMAND, body)
        return True

    async def sync_vehicles_to_database(
        self,
        db: AsyncSession,
        user_id: int,
        vehicles: List[Dict[str, Any]],
    ) -> int:
        """
        Upsert Fleet API vehicles for ``user_id`` keyed by ``tesla_vehicle_id``.

        Model and year are decoded from the VIN; missing dimensions are
        filled from the per-model table. An existing row keeps its owner;
        only its Fleet API fields are refreshed.
        """
        now = utcnow()
        synced = 0
        for payload in vehicles:
            tesla_vehicle_id = payload.get("vehicle_id")
            if tesla_vehicle_id is None:
                logger.warning("Skipping Tesla vehicle without vehicle_id for user %s", user_id)
                continue

            result = await db.execute(
                select(Vehicle).where(Vehicle.tesla_vehicle_id == int(tesla_vehicle_id))
            )
            vehicle = result.scalar_one_or_none()
            if vehicle is None:
                vin = payload.get("vin")
                decoded = decode_vin(vin, now.year)
                vehicle = Vehicle(
                    user_id=user_id,
                    tesla_vehicle_id=int(tesla_vehicle_id),
                    vin=vin,
                    model=decoded.model,
                    year=decoded.year,
                )
                db.add(vehicle)
            elif vehicle.user_id != user_id:
                logger.warning(
                    "Tesla vehicle %s already belongs to user %s; keeping owner",
                    tesla_vehicle_id, vehicle.user_id,
                )

            vehicle.tesla_id = str(payload.get("id") or payload.get("id_s") or tesla_vehicle_id)
            vehicle.display_name = payload.get("display_name") or vehicle.display_name
            vehicle.color = payload.get("color") or vehicle.color
            vehicle.is_active = True
            vehicle.last_seen_at = now

            dims = dimensions_for(vehicle.model)
            if vehicle.length_inches is None:
                vehicle.length_inches = dims.length_inches
            if vehicle.width_inches is None:
                vehicle.width_inches = dims.width_inches
            if vehicle.height_inches is None:
                vehicle.height_inches = dims.height_inches
            synced += 1

        await db.commit()
        logger.info("Synced %s Tesla vehicles for user %s", synced, user_id)
        return synced


async def get_tesla_service(request: Request) -> TeslaService:
    """FastAPI dependency returning the lifespan-built Tesla service."""
    return request.app.state.tesla_service

