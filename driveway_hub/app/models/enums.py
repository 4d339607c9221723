"""
Shared enumerations for the Driveway Hub domain.
"""

import enum


class UserRole(str, enum.Enum):
    """
    User role enumeration.

    Roles:
        DRIVER: Books driveways for their vehicles (default role)
        HOST: Lists driveways and earns from bookings
        BOTH: Driver and host at once
        ADMIN: System-level access
    """
    DRIVER = "driver"
    HOST = "host"
    BOTH = "both"
    ADMIN = "admin"


HOST_ROLES = (UserRole.HOST, UserRole.BOTH, UserRole.ADMIN)


class BookingStatus(str, enum.Enum):
    """Booking status enumeration."""
    PENDING = "pending"  # Created, awaiting host confirmation
    CONFIRMED = "confirmed"  # Spot reserved
    ACTIVE = "active"  # Vehicle arrived at the driveway
    COMPLETED = "completed"  # Vehicle departed / booking closed
    CANCELLED = "cancelled"  # Cancelled before start
    NO_SHOW = "no_show"  # Driver never arrived


# Statuses that hold the driveway for their time window
OCCUPYING_STATUSES = (
    BookingStatus.PENDING,
    BookingStatus.CONFIRMED,
    BookingStatus.ACTIVE,
)


class ListingStatus(str, enum.Enum):
    """Driveway listing status."""
    ACTIVE = "active"
    INACTIVE = "inactive"
    SUSPENDED = "suspended"
