import uuid
from typing import List, Tuple

from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.future import select

from club_manager.clubs.crud.clubs import get_club_by_id
from club_manager.clubs.crud.users import get_user_by_id
from club_manager.clubs.models.clubs import Club
from club_manager.clubs.models.memberships import UserClub
from club_manager.clubs.models.users import UserAccount
from club_manager.clubs.schemas.members import MemberRead, UserClubRead
from club_manager.core.database import db_operation
from club_manager.core.exceptions import BusinessLogicError, NotFoundError
from club_manager.core.logging_utils import log_business_event
from club_manager.core.pagination import (
    ListParams,
    apply_ordering,
    paginate,
    search_filter,
)

MEMBER_ORDERING = {
    "nom": UserAccount.last_name,
    "prenom": UserAccount.first_name,
    "email": UserAccount.email,
    "datejoin": UserClub.joined_at,
}


def to_member_read(membership: UserClub, user: UserAccount) -> MemberRead:
    return MemberRead(
        user_id=user.id,
        club_id=membership.club_id,
        email=user.email,
        first_name=user.first_name,
        last_name=user.last_name,
        member_number=user.member_number,
        phone_number=user.phone_number,
        is_active=user.is_active,
        joined_at=membership.joined_at,
    )


@db_operation
async def get_membership(
    session: AsyncSession, club_id: uuid.UUID, user_id: uuid.UUID
) -> UserClub:
    result = await session.execute(
        select(UserClub).where(UserClub.club_id == club_id, UserClub.user_id == user_id)
    )
    membership = result.scalar_one_or_none()
    if membership is None:
        raise NotFoundError("Club member", user_id)
    return membership


@db_operation
async def get_members_paginated(
    session: AsyncSession, club_id: uuid.UUID, params: ListParams
) -> Tuple[List[MemberRead], int]:
    await get_club_by_id(session, club_id)

    query = (
        select(UserClub, UserAccount)
        .join(UserAccount, UserAccount.id == UserClub.user_id)
        .where(UserClub.club_id == club_id)
    )
    condition = search_filter(
        params.recherche,
        UserAccount.first_name,
        UserAccount.last_name,
        UserAccount.email,
        UserAccount.member_number,
    )
    if condition is not None:
        query = query.where(condition)

    query = apply_ordering(query, params, MEMBER_ORDERING, "nom").order_by(
        UserAccount.id
    )
    rows, total = await paginate(session, query, params, scalars=False)
    return [to_member_read(membership, user) for membership, user in rows], total


@db_operation
async def get_member(
    session: AsyncSession, club_id: uuid.UUID, user_id: uuid.UUID
) -> MemberRead:
    await get_club_by_id(session, club_id)
    membership = await get_membership(session, club_id, user_id)
    user = await get_user_by_id(session, user_id)
    return to_member_read(membership, user)


@db_operation
async def get_member_ids(session: AsyncSession, club_id: uuid.UUID) -> List[uuid.UUID]:
    result = await session.execute(
        select(UserClub.user_id).where(UserClub.club_id == club_id)
    )
    return list(result.scalars().all())


@db_operation
async def ensure_member(
    session: AsyncSession, club_id: uuid.UUID, user_id: uuid.UUID
) -> None:
    """Business rule check: the user must belong to the club"""
    result = await session.execute(
        select(UserClub.id).where(
            UserClub.club_id == club_id, UserClub.user_id == user_id
        )
    )
    if result.first() is None:
        raise BusinessLogicError(
            f"User '{user_id}' is not a member of this club",
            {"user_id": str(user_id), "club_id": str(club_id)},
        )


@db_operation
async def add_member(
    session: AsyncSession, club_id: uuid.UUID, user_id: uuid.UUID
) -> MemberRead:
    await get_club_by_id(session, club_id)
    user = await get_user_by_id(session, user_id)

    existing = await session.execute(
        select(UserClub.id).where(
            UserClub.club_id == club_id, UserClub.user_id == user_id
        )
    )
    if existing.first():
        raise BusinessLogicError(
            "User is already a member of this club",
            {"user_id": str(user_id), "club_id": str(club_id)},
        )

    membership = UserClub(club_id=club_id, user_id=user_id)
    session.add(membership)
    await session.commit()
    await session.refresh(membership)

    log_business_event("member_added", "club", club_id, {"user_id": str(user_id)})
    return to_member_read(membership, user)


@db_operation
async def remove_member(
    session: AsyncSession, club_id: uuid.UUID, user_id: uuid.UUID
) -> None:
    await get_club_by_id(session, club_id)
    membership = await get_membership(session, club_id, user_id)

    await session.delete(membership)
    await session.commit()
    log_business_event("member_removed", "club", club_id, {"user_id": str(user_id)})


@db_operation
async def get_user_clubs(
    session: AsyncSession, user_id: uuid.UUID
) -> List[UserClubRead]:
    result = await session.execute(
        select(UserClub, Club)
        .join(Club, Club.id == UserClub.club_id)
        .where(UserClub.user_id == user_id)
        .order_by(Club.name)
    )
    return [
        UserClubRead(
            club_id=club.id,
            club_name=club.name,
            club_number=club.number,
            joined_at=membership.joined_at,
        )
        for membership, club in result.all()
    ]
