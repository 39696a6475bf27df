"""
Club access control.

Two predicates decide whether a caller may read (`can_access_club`) or
manage (`can_manage_club`) the data of a club. Roles are global claims on
the account; management additionally requires membership of the club and
one of the roles listed for the resource in ``POLICIES``.

Membership is read from storage on every call.
"""

import logging
import uuid
from dataclasses import dataclass, field
from typing import Dict, FrozenSet, Optional, Tuple

from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.future import select

from club_manager.clubs.models.memberships import UserClub
from club_manager.clubs.models.users import RoleType
from club_manager.core.exceptions import ConfigurationError

logger = logging.getLogger(__name__)

PolicyKey = Tuple[str, str]


@dataclass(frozen=True)
class Caller:
    """Resolved identity of the requester"""

    user_id: Optional[uuid.UUID]
    roles: FrozenSet[RoleType] = field(default_factory=frozenset)

    @property
    def is_authenticated(self) -> bool:
        return self.user_id is not None

    @property
    def is_admin(self) -> bool:
        return RoleType.admin in self.roles

    def has_any_role(self, roles) -> bool:
        return bool(self.roles & frozenset(roles))


ANONYMOUS = Caller(user_id=None)

OFFICERS = frozenset({RoleType.president, RoleType.secretary})
FINANCE_OFFICERS = OFFICERS | {RoleType.treasurer}

# (resource, operation) -> roles allowed to perform it inside their own club
POLICIES: Dict[PolicyKey, FrozenSet[RoleType]] = {
    ("clubs", "update"): frozenset({RoleType.president}),
    ("members", "manage"): OFFICERS,
    ("mandats", "manage"): OFFICERS,
    ("comites", "manage"): OFFICERS,
    ("budget", "manage"): FINANCE_OFFICERS,
    ("realisations", "manage"): FINANCE_OFFICERS,
    ("events", "create"): FINANCE_OFFICERS,
    ("events", "update"): FINANCE_OFFICERS,
    ("events", "delete"): OFFICERS,
    ("event_finance", "manage"): FINANCE_OFFICERS,
    ("galas", "manage"): OFFICERS,
    ("gala_tables", "manage"): OFFICERS,
    ("gala_invites", "manage"): OFFICERS,
    ("gala_affectations", "manage"): OFFICERS,
    ("gala_tickets", "manage"): FINANCE_OFFICERS,
    ("gala_raffle", "manage"): FINANCE_OFFICERS,
    ("meeting_attendance", "manage"): OFFICERS,
    ("meetings", "manage"): OFFICERS,
    ("cotisations", "manage"): frozenset({RoleType.president, RoleType.treasurer}),
}


def required_roles(policy_key: PolicyKey) -> FrozenSet[RoleType]:
    try:
        return POLICIES[policy_key]
    except KeyError:
        raise ConfigurationError(
            "POLICIES", f"No access policy defined for {policy_key}"
        )


async def is_club_member(
    session: AsyncSession, user_id: uuid.UUID, club_id: uuid.UUID
) -> bool:
    result = await session.execute(
        select(UserClub.id)
        .where(UserClub.user_id == user_id, UserClub.club_id == club_id)
        .limit(1)
    )
    return result.first() is not None


async def can_access_club(
    session: AsyncSession, caller: Optional[Caller], club_id: uuid.UUID
) -> bool:
    """Admin, or any member of the club"""
    if caller is None or not caller.is_authenticated:
        return False
    if caller.is_admin:
        return True
    return await is_club_member(session, caller.user_id, club_id)


async def can_manage_club(
    session: AsyncSession,
    caller: Optional[Caller],
    club_id: uuid.UUID,
    policy_key: PolicyKey,
) -> bool:
    """Admin, or a member of the club holding one of the policy roles"""
    allowed = required_roles(policy_key)
    if caller is None or not caller.is_authenticated:
        return False
    if caller.is_admin:
        return True
    if not caller.has_any_role(allowed):
        return False
    return await is_club_member(session, caller.user_id, club_id)
