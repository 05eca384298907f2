# This project was developed with assistance from AI tools.
"""
Caller identity for route-level authorization.

Authentication happens upstream: the gateway verifies the session and forwards
the caller's id and role in trusted headers. This module turns those headers
into a UserContext and provides role guards.

Set AUTH_DISABLED=true to act as a fixed dev admin (tests / local dev).
"""

import logging
from typing import Annotated

from db.enums import UserRole
from fastapi import Depends, HTTPException, Request, status

from ..core.config import settings
from ..schemas.auth import UserContext

logger = logging.getLogger(__name__)

_DISABLED_USER = UserContext(user_id="dev-user", role=UserRole.ADMIN)


def _resolve_role(raw: str | None) -> UserRole:
    """Map the role header to a UserRole, defaulting to member."""
    if not raw:
        return UserRole.MEMBER
    try:
        return UserRole(raw.strip().lower())
    except ValueError:
        logger.warning("Unknown role header value %r, treating as member", raw)
        return UserRole.MEMBER


async def get_current_user(request: Request) -> UserContext:
    """FastAPI dependency: build UserContext from gateway identity headers.

    When AUTH_DISABLED=true, returns a dev admin user without inspecting headers.
    """
    if settings.AUTH_DISABLED:
        return _DISABLED_USER

    user_id = request.headers.get(settings.USER_ID_HEADER, "").strip()
    if not user_id:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Missing caller identity",
        )

    return UserContext(
        user_id=user_id,
        role=_resolve_role(request.headers.get(settings.USER_ROLE_HEADER)),
    )


# Type alias for use in route signatures
CurrentUser = Annotated[UserContext, Depends(get_current_user)]


def require_roles(*allowed_roles: UserRole):
    """Dependency factory: restrict a route to specific roles.

    Usage:
        @router.post("/expiry/run", dependencies=[Depends(require_roles(UserRole.ADMIN))])
    """

    async def _check(user: CurrentUser) -> UserContext:
        if user.role not in allowed_roles:
            logger.warning(
                "RBAC denied: user=%s role=%s attempted route requiring %s",
                user.user_id,
                user.role.value,
                [r.value for r in allowed_roles],
            )
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail="Insufficient permissions",
            )
        return user

    return _check
