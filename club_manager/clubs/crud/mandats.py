import uuid
from typing import List, Optional, Tuple

from sqlalchemy import func
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.future import select

from club_manager.clubs.crud.clubs import get_club_by_id
from club_manager.clubs.models.comites import Comite
from club_manager.clubs.models.mandats import Mandat
from club_manager.clubs.schemas.mandats import MandatCreate, MandatUpdate
from club_manager.core.database import (
    check_expected_version,
    commit_versioned,
    db_operation,
)
from club_manager.core.exceptions import (
    BusinessLogicError,
    DependentRecordsError,
    DuplicateError,
    NotFoundError,
    ValidationError,
)
from club_manager.core.logging_utils import log_business_event
from club_manager.core.pagination import ListParams, apply_ordering, paginate
from club_manager.finance.models.rubriques import RubriqueBudget

MANDAT_ORDERING = {
    "annee": Mandat.year,
    "datedebut": Mandat.start_date,
    "datefin": Mandat.end_date,
}


@db_operation
async def get_mandat(
    session: AsyncSession, club_id: uuid.UUID, mandat_id: uuid.UUID
) -> Mandat:
    mandat = await session.get(Mandat, mandat_id)
    if mandat is None or mandat.club_id != club_id:
        raise NotFoundError("Mandat", mandat_id)
    return mandat


@db_operation
async def get_current_mandat(session: AsyncSession, club_id: uuid.UUID) -> Mandat:
    await get_club_by_id(session, club_id)
    result = await session.execute(
        select(Mandat).where(Mandat.club_id == club_id, Mandat.is_current.is_(True))
    )
    mandat = result.scalars().first()
    if mandat is None:
        raise NotFoundError("Current mandat")
    return mandat


@db_operation
async def get_mandats_paginated(
    session: AsyncSession, club_id: uuid.UUID, params: ListParams
) -> Tuple[List[Mandat], int]:
    await get_club_by_id(session, club_id)
    query = select(Mandat).where(Mandat.club_id == club_id)
    if params.order_by is None:
        query = query.order_by(Mandat.year.desc())
    else:
        query = apply_ordering(query, params, MANDAT_ORDERING, "annee")
    return await paginate(session, query.order_by(Mandat.id), params)


async def _club_mandats(session: AsyncSession, club_id: uuid.UUID) -> List[Mandat]:
    result = await session.execute(
        select(Mandat)
        .where(Mandat.club_id == club_id)
        .order_by(Mandat.year.desc(), Mandat.start_date.desc())
    )
    return list(result.scalars().all())


async def _check_year_available(
    session: AsyncSession,
    club_id: uuid.UUID,
    year: int,
    exclude_id: Optional[uuid.UUID] = None,
):
    query = select(Mandat.id).where(Mandat.club_id == club_id, Mandat.year == year)
    if exclude_id is not None:
        query = query.where(Mandat.id != exclude_id)
    if (await session.execute(query)).first():
        raise DuplicateError("Mandat", "year", year)


def _make_current(mandats: List[Mandat], current: Mandat) -> None:
    """Exactly one current mandat per club"""
    for mandat in mandats:
        if mandat.id != current.id and mandat.is_current:
            mandat.is_current = False
    current.is_current = True


@db_operation
async def create_mandat(
    session: AsyncSession, club_id: uuid.UUID, data: MandatCreate
) -> Mandat:
    """New mandats become the current one"""
    await get_club_by_id(session, club_id)
    await _check_year_available(session, club_id, data.year)

    existing = await _club_mandats(session, club_id)
    mandat = Mandat(club_id=club_id, **data.model_dump())
    session.add(mandat)
    _make_current(existing, mandat)

    await session.commit()
    await session.refresh(mandat)

    log_business_event("mandat_created", "mandat", mandat.id, {"year": mandat.year})
    return mandat


@db_operation
async def update_mandat(
    session: AsyncSession, club_id: uuid.UUID, mandat_id: uuid.UUID, data: MandatUpdate
) -> Mandat:
    mandat = await get_mandat(session, club_id, mandat_id)
    check_expected_version(mandat, data.version, "Mandat")

    update_data = data.model_dump(exclude_unset=True, exclude={"version"})

    if "year" in update_data and update_data["year"] != mandat.year:
        await _check_year_available(session, club_id, update_data["year"], mandat.id)

    start_date = update_data.get("start_date", mandat.start_date)
    end_date = update_data.get("end_date", mandat.end_date)
    if end_date <= start_date:
        raise ValidationError("end_date must be after start_date")

    is_current = update_data.pop("is_current", None)
    siblings = await _club_mandats(session, club_id)
    if is_current is False and mandat.is_current:
        if len(siblings) == 1:
            raise BusinessLogicError(
                "The only mandat of a club must stay the current one"
            )
        mandat.is_current = False
    elif is_current:
        _make_current(siblings, mandat)

    for field, value in update_data.items():
        setattr(mandat, field, value)

    await commit_versioned(session, Mandat, mandat_id, "Mandat")
    await session.refresh(mandat)
    return mandat


@db_operation
async def activate_mandat(
    session: AsyncSession, club_id: uuid.UUID, mandat_id: uuid.UUID
) -> Mandat:
    mandat = await get_mandat(session, club_id, mandat_id)
    _make_current(await _club_mandats(session, club_id), mandat)

    await session.commit()
    await session.refresh(mandat)

    log_business_event("mandat_activated", "mandat", mandat.id, {"year": mandat.year})
    return mandat


@db_operation
async def delete_mandat(
    session: AsyncSession, club_id: uuid.UUID, mandat_id: uuid.UUID
) -> None:
    """
    Delete a mandat without rubriques or committees.

    Deleting the current mandat hands the flag over to the most recent
    remaining one; the only mandat of a club cannot be deleted while current.
    """
    mandat = await get_mandat(session, club_id, mandat_id)

    rubriques = await session.scalar(
        select(func.count(RubriqueBudget.id)).where(
            RubriqueBudget.mandat_id == mandat_id
        )
    )
    comites = await session.scalar(
        select(func.count(Comite.id)).where(Comite.mandat_id == mandat_id)
    )
    dependents = {
        name: count
        for name, count in (("rubriques", rubriques), ("comites", comites))
        if count
    }
    if dependents:
        raise DependentRecordsError("mandat", dependents)

    others = [m for m in await _club_mandats(session, club_id) if m.id != mandat.id]
    if mandat.is_current:
        if not others:
            raise BusinessLogicError(
                "Cannot delete the current mandat: it is the only mandat of the club"
            )
        others[0].is_current = True

    await session.delete(mandat)
    await session.commit()
    log_business_event("mandat_deleted", "mandat", mandat_id)
