"""
Security guards for role-based and ownership-based access control.
"""

from typing import List
from fastapi import Depends, HTTPException, status
from driveway_hub.app.models.enums import UserRole, HOST_ROLES
from driveway_hub.app.core.dependencies import get_current_user


def require_role(allowed_roles: List[UserRole]):
    """
    Dependency factory for role-based access control.

    Usage:
        @router.post("/driveways")
        async def create_driveway(current_user: dict = Depends(require_role(HOST_ROLES))):
            ...

    Raises:
        HTTPException 403 if user role is not in allowed_roles
    """
    async def role_checker(current_user: dict = Depends(get_current_user)) -> dict:
        user_role_str = current_user.get("role")

        if not user_role_str:
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail="Role information missing from token"
            )

        try:
            user_role = UserRole(user_role_str)
        except ValueError:
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail="Invalid role in token"
            )

        if user_role not in allowed_roles:
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail=f"Access denied. Required role: {', '.join([r.value for r in allowed_roles])}"
            )

        return current_user

    return role_checker


require_host = require_role(list(HOST_ROLES))


class OwnershipGuard:
    """
    Ownership guard for resources that belong to one user.

    Admins pass every check.

    Usage:
        ownership_guard = OwnershipGuard()

        driveway = await db.get(Driveway, driveway_id)
        ownership_guard.enforce(driveway.host_id, current_user, "driveway")
    """

    @staticmethod
    def is_owner(resource_owner_id: int, current_user: dict) -> bool:
        if current_user.get("role") == UserRole.ADMIN.value:
            return True
        return current_user.get("user_id") == resource_owner_id

    def enforce(
        self,
        resource_owner_id: int,
        current_user: dict,
        resource_name: str = "resource"
    ):
        """
        Raise 403 unless ``current_user`` owns the resource.
        """
        if not self.is_owner(resource_owner_id, current_user):
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail=f"Access denied. You do not have permission to access this {resource_name}."
            )


ownership_guard = OwnershipGuard()
