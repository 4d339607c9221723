"""
API Router.

Aggregates all API endpoints under the configured prefix.
"""

from fastapi import APIRouter
from driveway_hub.app.api.endpoints import (
    auth, driveways, users, bookings, tesla, notifications, demo
)

router = APIRouter()

# Authentication and Tesla OAuth
router.include_router(auth.router)

# Marketplace
router.include_router(driveways.router)
router.include_router(users.router)
router.include_router(bookings.router)

# Tesla Fleet API proxy
router.include_router(tesla.router)

# In-app notifications
router.include_router(notifications.router)

# Presentation demo
router.include_router(demo.router)
