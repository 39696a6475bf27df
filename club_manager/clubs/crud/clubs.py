import uuid
from typing import List, Tuple

from sqlalchemy import func
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.future import select

from club_manager.clubs.models.clubs import Club
from club_manager.clubs.models.comites import Comite
from club_manager.clubs.models.mandats import Mandat
from club_manager.clubs.models.memberships import UserClub
from club_manager.clubs.schemas.clubs import ClubCreate, ClubStatistics, ClubUpdate
from club_manager.core.database import (
    check_expected_version,
    commit_versioned,
    db_operation,
)
from club_manager.core.exceptions import (
    DependentRecordsError,
    DuplicateError,
    NotFoundError,
)
from club_manager.core.logging_utils import log_business_event
from club_manager.core.pagination import (
    ListParams,
    apply_ordering,
    paginate,
    search_filter,
)
from club_manager.events.models.evenements import Evenement
from club_manager.gala.models.galas import Gala
from club_manager.meetings.models.reunions import Reunion

CLUB_ORDERING = {
    "nom": Club.name,
    "name": Club.name,
    "numero": Club.number,
    "datecreation": Club.founded_on,
}


@db_operation
async def get_club_by_id(session: AsyncSession, club_id: uuid.UUID) -> Club:
    club = await session.get(Club, club_id)
    if club is None:
        raise NotFoundError("Club", club_id)
    return club


@db_operation
async def get_clubs_paginated(
    session: AsyncSession, params: ListParams
) -> Tuple[List[Club], int]:
    query = select(Club)
    condition = search_filter(
        params.recherche, Club.name, Club.meeting_place, Club.address, Club.email
    )
    if condition is not None:
        query = query.where(condition)

    query = apply_ordering(query, params, CLUB_ORDERING, "nom").order_by(Club.id)
    return await paginate(session, query, params)


async def _check_unique_fields(
    session: AsyncSession, number=None, email=None, exclude_id=None
):
    if number is not None:
        query = select(Club.id).where(Club.number == number)
        if exclude_id is not None:
            query = query.where(Club.id != exclude_id)
        if (await session.execute(query)).first():
            raise DuplicateError("Club", "number", number)

    if email:
        query = select(Club.id).where(Club.email == email)
        if exclude_id is not None:
            query = query.where(Club.id != exclude_id)
        if (await session.execute(query)).first():
            raise DuplicateError("Club", "email", email)


@db_operation
async def create_club(session: AsyncSession, data: ClubCreate) -> Club:
    await _check_unique_fields(session, number=data.number, email=data.email)

    club = Club(**data.model_dump())
    session.add(club)
    await session.commit()
    await session.refresh(club)

    log_business_event("club_created", "club", club.id, {"number": club.number})
    return club


@db_operation
async def update_club(
    session: AsyncSession, club_id: uuid.UUID, data: ClubUpdate
) -> Club:
    club = await get_club_by_id(session, club_id)
    check_expected_version(club, data.version, "Club")

    update_data = data.model_dump(exclude_unset=True, exclude={"version"})
    await _check_unique_fields(
        session,
        number=update_data.get("number"),
        email=update_data.get("email"),
        exclude_id=club.id,
    )

    for field, value in update_data.items():
        setattr(club, field, value)

    await commit_versioned(session, Club, club_id, "Club")
    await session.refresh(club)
    return club


@db_operation
async def delete_club(session: AsyncSession, club_id: uuid.UUID) -> None:
    """Delete a club that has no members and no committees"""
    club = await get_club_by_id(session, club_id)

    members = await session.scalar(
        select(func.count(UserClub.id)).where(UserClub.club_id == club_id)
    )
    comites = await session.scalar(
        select(func.count(Comite.id)).where(Comite.club_id == club_id)
    )
    dependents = {
        name: count
        for name, count in (("members", members), ("comites", comites))
        if count
    }
    if dependents:
        raise DependentRecordsError("club", dependents)

    await session.delete(club)
    await session.commit()
    log_business_event("club_deleted", "club", club_id)


async def _count(session: AsyncSession, column, club_column, club_id) -> int:
    count = await session.scalar(
        select(func.count(column)).where(club_column == club_id)
    )
    return count or 0


@db_operation
async def get_club_statistics(
    session: AsyncSession, club_id: uuid.UUID
) -> ClubStatistics:
    await get_club_by_id(session, club_id)

    current_year = await session.scalar(
        select(Mandat.year).where(
            Mandat.club_id == club_id, Mandat.is_current.is_(True)
        )
    )

    return ClubStatistics(
        club_id=club_id,
        members=await _count(session, UserClub.id, UserClub.club_id, club_id),
        mandats=await _count(session, Mandat.id, Mandat.club_id, club_id),
        current_mandat_year=current_year,
        comites=await _count(session, Comite.id, Comite.club_id, club_id),
        evenements=await _count(session, Evenement.id, Evenement.club_id, club_id),
        galas=await _count(session, Gala.id, Gala.club_id, club_id),
        reunions=await _count(session, Reunion.id, Reunion.club_id, club_id),
    )
