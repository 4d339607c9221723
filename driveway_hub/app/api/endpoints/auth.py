"""
Authentication API endpoints.

Register, demo login by email, current user, logout (one token or all of
them), and the Tesla OAuth connect flow.
"""

import logging

from fastapi import APIRouter, Depends, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select
from driveway_hub.app.db.session import get_db
from driveway_hub.app.models.user import User
from driveway_hub.app.models.enums import UserRole
from driveway_hub.app.schemas.auth import UserRegister, UserLogin, AuthResponse, UserResponse
from driveway_hub.app.schemas.tesla import TeslaAuthUrlResponse, TeslaCallbackRequest, TeslaCallbackResponse
from driveway_hub.app.core.config import settings
from driveway_hub.app.core.exceptions import AppException
from driveway_hub.app.core.jwt import create_user_token
from driveway_hub.app.core.dependencies import get_current_user, get_current_user_record, security
from driveway_hub.app.core.redis_client import get_redis
from driveway_hub.app.core.token_revocation import revoke_all_user_tokens, revoke_token
from driveway_hub.app.services.tesla.service import TeslaService, get_tesla_service

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/auth", tags=["Authentication"])


@router.post("/register", response_model=AuthResponse, status_code=status.HTTP_201_CREATED)
async def register(
    user_data: UserRegister,
    db: AsyncSession = Depends(get_db)
):
    """Register a new driver or host."""
    result = await db.execute(select(User).where(User.email == user_data.email))
    if result.scalar_one_or_none():
        raise AppException("Email already registered", "DUPLICATE_RESOURCE", status.HTTP_409_CONFLICT)

    new_user = User(
        email=user_data.email,
        first_name=user_data.first_name,
        last_name=user_data.last_name,
        phone=user_data.phone,
        role=user_data.role,
        is_active=True,
    )
    db.add(new_user)
    await db.commit()
    await db.refresh(new_user)
    logger.info("Registered user %s (%s)", new_user.id, new_user.role.value)

    return AuthResponse(token=create_user_token(new_user), user=UserResponse.model_validate(new_user))


@router.post("/login", response_model=AuthResponse)
async def login(
    credentials: UserLogin,
    db: AsyncSession = Depends(get_db)
):
    """
    Demo login by email.

    Unknown emails get a new driver account when demo auto-signup is on.
    """
    result = await db.execute(select(User).where(User.email == credentials.email))
    user = result.scalar_one_or_none()

    if not user:
        if not settings.demo_login_auto_signup:
            raise HTTPException(
                status_code=status.HTTP_401_UNAUTHORIZED,
                detail="Invalid credentials",
                headers={"WWW-Authenticate": "Bearer"},
            )
        user = User(email=credentials.email, role=UserRole.DRIVER, is_active=True)
        db.add(user)
        await db.commit()
        await db.refresh(user)
        logger.info("Auto-created driver %s on demo login", user.id)

    if not user.is_active:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Inactive user account"
        )

    return AuthResponse(token=create_user_token(user), user=UserResponse.model_validate(user))


@router.get("/me", response_model=UserResponse)
async def get_me(user: User = Depends(get_current_user_record)):
    return user


@router.post("/logout")
async def logout(
    credentials: HTTPAuthorizationCredentials = Depends(security),
    current_user: dict = Depends(get_current_user),
    redis=Depends(get_redis),
):
    """Revoke the presented token."""
    if not await revoke_token(redis, credentials.credentials, current_user["user_id"]):
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Could not revoke token, try again"
        )
    return {"status": "success", "message": "Logged out"}


@router.post("/logout-all")
async def logout_all(
    current_user: dict = Depends(get_current_user),
    redis=Depends(get_redis),
):
    """Revoke every token issued to the current user so far, on all devices."""
    user_id = current_user["user_id"]
    if not await revoke_all_user_tokens(redis, user_id):
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Could not revoke tokens, try again"
        )
    logger.info("All tokens revoked for user %s", user_id)
    return {"status": "success", "message": "Logged out on all devices"}


# --- Tesla OAuth ---

@router.get("/tesla", response_model=TeslaAuthUrlResponse)
async def tesla_authorize(
    user: User = Depends(get_current_user_record),
    db: AsyncSession = Depends(get_db),
    tesla: TeslaService = Depends(get_tesla_service),
):
    """Start the Tesla PKCE authorization flow."""
    return TeslaAuthUrlResponse(auth_url=await tesla.generate_auth_url(db, user))


@router.post("/tesla/callback", response_model=TeslaCallbackResponse)
async def tesla_callback(
    payload: TeslaCallbackRequest,
    user: User = Depends(get_current_user_record),
    db: AsyncSession = Depends(get_db),
    tesla: TeslaService = Depends(get_tesla_service),
):
    """Finish the Tesla authorization: store tokens and sync vehicles."""
    synced = await tesla.complete_authorization(db, user, payload.code, payload.state)
    return TeslaCallbackResponse(connected=True, vehicles_synced=synced)
