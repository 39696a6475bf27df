import logging
import uuid
from typing import Optional

from fastapi import Depends
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.ext.asyncio import AsyncSession

from club_manager.clubs.models.users import RoleType, UserAccount
from club_manager.core.access import (
    Caller,
    PolicyKey,
    can_access_club,
    can_manage_club,
    required_roles,
)
from club_manager.core.database import get_session
from club_manager.core.exceptions import (
    AuthenticationError,
    AuthorizationError,
    ValidationError,
)
from club_manager.core.jwt_auth import jwt_manager

logger = logging.getLogger(__name__)

bearer_scheme = HTTPBearer(auto_error=False)


def ensure_identifier(value: uuid.UUID, name: str = "id") -> uuid.UUID:
    """Reject the nil UUID"""
    if value is None or value.int == 0:
        raise ValidationError(f"{name} must be a non-empty identifier")
    return value


async def get_current_user(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
    db: AsyncSession = Depends(get_session),
) -> UserAccount:
    if credentials is None or not credentials.credentials:
        raise AuthenticationError("Not authenticated")

    user_id = jwt_manager.subject(credentials.credentials)
    user = await db.get(UserAccount, user_id)
    if user is None or not user.is_active:
        raise AuthenticationError("Account not found or inactive")

    return user


async def get_current_caller(
    user: UserAccount = Depends(get_current_user),
) -> Caller:
    return Caller(user_id=user.id, roles=user.role_set)


async def require_club_access(
    club_id: uuid.UUID,
    caller: Caller = Depends(get_current_caller),
    db: AsyncSession = Depends(get_session),
) -> Caller:
    """Read access to a club, checked before the club is looked up"""
    ensure_identifier(club_id, "club_id")
    if not await can_access_club(db, caller, club_id):
        logger.info(
            "Club access denied",
            extra={"user_id": str(caller.user_id), "club_id": str(club_id)},
        )
        raise AuthorizationError("You are not a member of this club")
    return caller


def require_club_manager(resource: str, operation: str = "manage"):
    """
    Dependency factory for management operations on a club resource.

    Example:
        caller: Caller = Depends(require_club_manager("mandats"))
    """
    policy_key: PolicyKey = (resource, operation)
    allowed = required_roles(policy_key)

    async def dependency(
        club_id: uuid.UUID,
        caller: Caller = Depends(get_current_caller),
        db: AsyncSession = Depends(get_session),
    ) -> Caller:
        ensure_identifier(club_id, "club_id")
        if not await can_manage_club(db, caller, club_id, policy_key):
            logger.info(
                "Club management denied",
                extra={
                    "user_id": str(caller.user_id),
                    "club_id": str(club_id),
                    "policy": f"{resource}.{operation}",
                },
            )
            raise AuthorizationError(
                f"Managing {resource} requires club membership and one of the roles: "
                + ", ".join(sorted(role.value for role in allowed)),
            )
        return caller

    return dependency


def require_roles(*roles: RoleType):
    """Global role check for resources that do not belong to a club"""
    allowed = frozenset(roles) | {RoleType.admin}

    async def dependency(caller: Caller = Depends(get_current_caller)) -> Caller:
        if not caller.has_any_role(allowed):
            raise AuthorizationError(
                "Required role: " + ", ".join(sorted(role.value for role in allowed))
            )
        return caller

    return dependency


require_admin = require_roles(RoleType.admin)
