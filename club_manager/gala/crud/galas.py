import uuid
from datetime import datetime, time, timedelta
from typing import List, Optional, Tuple

from sqlalchemy import func
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.future import select

from club_manager.clubs.crud.clubs import get_club_by_id
from club_manager.core.database import (
    check_expected_version,
    commit_versioned,
    db_operation,
)
from club_manager.core.exceptions import DuplicateError, NotFoundError, ValidationError
from club_manager.core.logging_utils import log_business_event
from club_manager.core.pagination import (
    ListParams,
    apply_ordering,
    paginate,
    search_filter,
)
from club_manager.gala.models.galas import Gala
from club_manager.gala.schemas.galas import GalaCreate, GalaUpdate

GALA_ORDERING = {
    "date": Gala.date,
    "libelle": Gala.label,
    "lieu": Gala.place,
}


@db_operation
async def get_gala(
    session: AsyncSession, club_id: uuid.UUID, gala_id: uuid.UUID
) -> Gala:
    gala = await session.get(Gala, gala_id)
    if gala is None or gala.club_id != club_id:
        raise NotFoundError("Gala", gala_id)
    return gala


@db_operation
async def get_galas_paginated(
    session: AsyncSession, club_id: uuid.UUID, params: ListParams
) -> Tuple[List[Gala], int]:
    await get_club_by_id(session, club_id)
    query = select(Gala).where(Gala.club_id == club_id)

    condition = search_filter(params.recherche, Gala.label, Gala.place)
    if condition is not None:
        query = query.where(condition)

    if params.order_by is None:
        query = query.order_by(Gala.date.desc())
    else:
        query = apply_ordering(query, params, GALA_ORDERING, "date")
    return await paginate(session, query.order_by(Gala.id), params)


async def _check_label_available(
    session: AsyncSession,
    club_id: uuid.UUID,
    label: str,
    when: datetime,
    exclude_id: Optional[uuid.UUID] = None,
):
    """One gala per libellé and day within a club"""
    day = datetime.combine(when.date(), time.min)
    query = select(Gala.id).where(
        Gala.club_id == club_id,
        func.lower(Gala.label) == label.lower(),
        Gala.date >= day,
        Gala.date < day + timedelta(days=1),
    )
    if exclude_id is not None:
        query = query.where(Gala.id != exclude_id)
    if (await session.execute(query)).first():
        raise DuplicateError("Gala", "label", f"{label} ({when.date().isoformat()})")


@db_operation
async def create_gala(
    session: AsyncSession, club_id: uuid.UUID, data: GalaCreate
) -> Gala:
    await get_club_by_id(session, club_id)
    await _check_label_available(session, club_id, data.label, data.date)

    gala = Gala(club_id=club_id, **data.model_dump())
    session.add(gala)
    await session.commit()
    await session.refresh(gala)

    log_business_event("gala_created", "gala", gala.id, {"club_id": str(club_id)})
    return gala


@db_operation
async def update_gala(
    session: AsyncSession, club_id: uuid.UUID, gala_id: uuid.UUID, data: GalaUpdate
) -> Gala:
    gala = await get_gala(session, club_id, gala_id)
    check_expected_version(gala, data.version, "Gala")

    update_data = data.model_dump(exclude_unset=True, exclude={"version"})
    for field in ("label", "date"):
        if field in update_data and update_data[field] is None:
            raise ValidationError(f"{field} cannot be null")

    label = update_data.get("label", gala.label)
    when = update_data.get("date", gala.date)
    if label.lower() != gala.label.lower() or when.date() != gala.date.date():
        await _check_label_available(session, club_id, label, when, gala.id)

    for field, value in update_data.items():
        setattr(gala, field, value)

    await commit_versioned(session, Gala, gala_id, "Gala")
    await session.refresh(gala)
    return gala


@db_operation
async def delete_gala(
    session: AsyncSession, club_id: uuid.UUID, gala_id: uuid.UUID
) -> None:
    """Tables, invites, affectations and tickets go with the gala"""
    gala = await get_gala(session, club_id, gala_id)
    await session.delete(gala)
    await session.commit()
    log_business_event("gala_deleted", "gala", gala_id)
