"""
User database model.

Drivers and hosts share one table; Tesla OAuth credentials live on the
user row.
"""

from sqlalchemy import Column, Integer, String, Boolean, DateTime, Enum, Text
from sqlalchemy.sql import func
from driveway_hub.app.db.session import Base
from driveway_hub.app.models.enums import UserRole


class User(Base):
    """
    User model for authentication and marketplace identity.
    """
    __tablename__ = "users"

    id = Column(Integer, primary_key=True, index=True, autoincrement=True)
    email = Column(String(255), unique=True, index=True, nullable=False)
    first_name = Column(String(100), nullable=True)
    last_name = Column(String(100), nullable=True)
    phone = Column(String(30), nullable=True)
    is_active = Column(Boolean, default=True, nullable=False)

    role = Column(
        Enum(UserRole, values_callable=lambda e: [m.value for m in e]),
        default=UserRole.DRIVER,
        nullable=False,
    )

    # Tesla OAuth token pair (populated on connect, mutated on refresh)
    tesla_access_token = Column(Text, nullable=True)
    tesla_refresh_token = Column(Text, nullable=True)
    tesla_token_expires_at = Column(DateTime(timezone=True), nullable=True)
    tesla_token_scope = Column(String(500), nullable=True)
    # PKCE verifier for the in-flight authorization request
    tesla_code_verifier = Column(String(128), nullable=True)

    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False)

    @property
    def tesla_connected(self) -> bool:
        return bool(self.tesla_access_token)

    def __repr__(self):
        return f"<User(id={self.id}, email='{self.email}', role='{self.role.value}')>"
