import uuid
from datetime import date, datetime
from typing import List, Optional, Tuple

from sqlalchemy import func
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.future import select
from sqlalchemy.orm import selectinload

from club_manager.clubs.crud.clubs import get_club_by_id
from club_manager.clubs.models.memberships import UserClub
from club_manager.clubs.models.users import UserAccount
from club_manager.core.database import (
    check_expected_version,
    commit_versioned,
    db_operation,
)
from club_manager.core.exceptions import (
    BusinessLogicError,
    DuplicateError,
    NotFoundError,
    ValidationError,
)
from club_manager.core.logging_utils import log_business_event
from club_manager.core.notifications import NotificationGateway, Recipient
from club_manager.core.pagination import ListParams, apply_ordering, paginate
from club_manager.meetings.models.reunions import OrdreDuJour, Reunion, TypeReunion
from club_manager.meetings.schemas.reunions import (
    CompteRenduRequest,
    CompteRenduResult,
    OrdreDuJourCreate,
    OrdreDuJourRead,
    OrdreDuJourUpdate,
    ReunionCreate,
    ReunionDetail,
    ReunionRead,
    ReunionUpdate,
    TypeReunionCreate,
)
from club_manager.meetings.services.compte_rendu import build_compte_rendu

REUNION_ORDERING = {
    "date": Reunion.date,
    "type": TypeReunion.label,
    "lieu": Reunion.place,
}


# === Types (global) ===
@db_operation
async def get_types_reunion(session: AsyncSession) -> List[TypeReunion]:
    result = await session.execute(select(TypeReunion).order_by(TypeReunion.label))
    return list(result.scalars().all())


@db_operation
async def get_type_reunion(
    session: AsyncSession, type_id: uuid.UUID
) -> TypeReunion:
    type_reunion = await session.get(TypeReunion, type_id)
    if type_reunion is None:
        raise NotFoundError("Type reunion", type_id)
    return type_reunion


@db_operation
async def create_type_reunion(
    session: AsyncSession, data: TypeReunionCreate
) -> TypeReunion:
    existing = await session.execute(
        select(TypeReunion.id).where(
            func.lower(TypeReunion.label) == data.label.lower()
        )
    )
    if existing.first():
        raise DuplicateError("Type reunion", "label", data.label)

    type_reunion = TypeReunion(label=data.label)
    session.add(type_reunion)
    await session.commit()
    await session.refresh(type_reunion)
    return type_reunion


# === Reunions ===
def to_reunion_read(reunion: Reunion) -> ReunionRead:
    return ReunionRead(
        id=reunion.id,
        club_id=reunion.club_id,
        type_reunion_id=reunion.type_reunion_id,
        type_reunion=reunion.type_reunion.label,
        date=reunion.date,
        time=reunion.time,
        place=reunion.place,
        version=reunion.version,
        ordres_du_jour_count=len(reunion.ordres_du_jour),
    )


def _reunion_query():
    return (
        select(Reunion)
        .join(TypeReunion, Reunion.type_reunion_id == TypeReunion.id)
        .options(
            selectinload(Reunion.type_reunion), selectinload(Reunion.ordres_du_jour)
        )
        .execution_options(populate_existing=True)
    )


@db_operation
async def get_reunion(
    session: AsyncSession, club_id: uuid.UUID, reunion_id: uuid.UUID
) -> Reunion:
    result = await session.execute(
        _reunion_query().where(Reunion.id == reunion_id, Reunion.club_id == club_id)
    )
    reunion = result.scalars().first()
    if reunion is None:
        raise NotFoundError("Reunion", reunion_id)
    return reunion


@db_operation
async def get_reunion_detail(
    session: AsyncSession, club_id: uuid.UUID, reunion_id: uuid.UUID
) -> ReunionDetail:
    reunion = await get_reunion(session, club_id, reunion_id)
    return ReunionDetail(
        **to_reunion_read(reunion).model_dump(),
        ordres_du_jour=[
            OrdreDuJourRead.model_validate(ordre) for ordre in reunion.ordres_du_jour
        ],
    )


@db_operation
async def get_reunions_paginated(
    session: AsyncSession,
    club_id: uuid.UUID,
    params: ListParams,
    type_reunion_id: Optional[uuid.UUID] = None,
    date_from: Optional[date] = None,
    date_to: Optional[date] = None,
) -> Tuple[List[ReunionRead], int]:
    await get_club_by_id(session, club_id)
    query = _reunion_query().where(Reunion.club_id == club_id)

    if type_reunion_id is not None:
        query = query.where(Reunion.type_reunion_id == type_reunion_id)
    if date_from is not None:
        query = query.where(Reunion.date >= date_from)
    if date_to is not None:
        query = query.where(Reunion.date <= date_to)

    if params.order_by is None:
        query = query.order_by(Reunion.date.desc(), Reunion.time.desc())
    else:
        query = apply_ordering(query, params, REUNION_ORDERING, "date")

    reunions, total = await paginate(session, query.order_by(Reunion.id), params)
    return [to_reunion_read(reunion) for reunion in reunions], total


@db_operation
async def get_upcoming_reunions(
    session: AsyncSession, club_id: uuid.UUID, count: int = 5
) -> List[ReunionRead]:
    """Next meetings from today on, soonest first"""
    await get_club_by_id(session, club_id)
    now = datetime.now()
    result = await session.execute(
        _reunion_query()
        .where(Reunion.club_id == club_id, Reunion.date >= now.date())
        .order_by(Reunion.date, Reunion.time)
    )
    upcoming = [
        reunion
        for reunion in result.scalars().all()
        if reunion.date > now.date()
        or reunion.time is None
        or reunion.time > now.time()
    ]
    return [to_reunion_read(reunion) for reunion in upcoming[:count]]


@db_operation
async def create_reunion(
    session: AsyncSession, club_id: uuid.UUID, data: ReunionCreate
) -> ReunionRead:
    await get_club_by_id(session, club_id)
    await get_type_reunion(session, data.type_reunion_id)

    reunion = Reunion(club_id=club_id, **data.model_dump())
    session.add(reunion)
    await session.commit()

    log_business_event(
        "reunion_created",
        "reunion",
        reunion.id,
        {"club_id": str(club_id), "date": data.date.isoformat()},
    )
    return to_reunion_read(await get_reunion(session, club_id, reunion.id))


@db_operation
async def update_reunion(
    session: AsyncSession,
    club_id: uuid.UUID,
    reunion_id: uuid.UUID,
    data: ReunionUpdate,
) -> ReunionRead:
    reunion = await get_reunion(session, club_id, reunion_id)
    check_expected_version(reunion, data.version, "Reunion")

    update_data = data.model_dump(exclude_unset=True, exclude={"version"})
    for field in ("type_reunion_id", "date"):
        if field in update_data and update_data[field] is None:
            raise ValidationError(f"{field} cannot be null")
    if "type_reunion_id" in update_data:
        await get_type_reunion(session, update_data["type_reunion_id"])

    for field, value in update_data.items():
        setattr(reunion, field, value)

    await commit_versioned(session, Reunion, reunion_id, "Reunion")
    return to_reunion_read(await get_reunion(session, club_id, reunion_id))


@db_operation
async def delete_reunion(
    session: AsyncSession, club_id: uuid.UUID, reunion_id: uuid.UUID
) -> None:
    reunion = await get_reunion(session, club_id, reunion_id)
    await session.delete(reunion)
    await session.commit()
    log_business_event("reunion_deleted", "reunion", reunion_id)


# === Ordres du jour ===
@db_operation
async def get_ordres_du_jour(
    session: AsyncSession, club_id: uuid.UUID, reunion_id: uuid.UUID
) -> List[OrdreDuJour]:
    reunion = await get_reunion(session, club_id, reunion_id)
    return list(reunion.ordres_du_jour)


@db_operation
async def get_ordre_du_jour(
    session: AsyncSession,
    club_id: uuid.UUID,
    reunion_id: uuid.UUID,
    ordre_id: uuid.UUID,
) -> OrdreDuJour:
    await get_reunion(session, club_id, reunion_id)
    ordre = await session.get(OrdreDuJour, ordre_id)
    if ordre is None or ordre.reunion_id != reunion_id:
        raise NotFoundError("Ordre du jour", ordre_id)
    return ordre


@db_operation
async def create_ordre_du_jour(
    session: AsyncSession,
    club_id: uuid.UUID,
    reunion_id: uuid.UUID,
    data: OrdreDuJourCreate,
) -> OrdreDuJour:
    """Items without a position go to the end of the agenda"""
    reunion = await get_reunion(session, club_id, reunion_id)

    position = data.position
    if position is None:
        position = max((o.position for o in reunion.ordres_du_jour), default=0) + 1

    ordre = OrdreDuJour(
        reunion_id=reunion_id,
        position=position,
        description=data.description,
        rapport=data.rapport,
    )
    session.add(ordre)
    await session.commit()
    await session.refresh(ordre)
    return ordre


@db_operation
async def update_ordre_du_jour(
    session: AsyncSession,
    club_id: uuid.UUID,
    reunion_id: uuid.UUID,
    ordre_id: uuid.UUID,
    data: OrdreDuJourUpdate,
) -> OrdreDuJour:
    ordre = await get_ordre_du_jour(session, club_id, reunion_id, ordre_id)
    update_data = data.model_dump(exclude_unset=True)
    if "description" in update_data and update_data["description"] is None:
        raise ValidationError("description cannot be null")
    if "position" in update_data and update_data["position"] is None:
        raise ValidationError("position cannot be null")

    for field, value in update_data.items():
        setattr(ordre, field, value)

    await session.commit()
    await session.refresh(ordre)
    return ordre


@db_operation
async def delete_ordre_du_jour(
    session: AsyncSession,
    club_id: uuid.UUID,
    reunion_id: uuid.UUID,
    ordre_id: uuid.UUID,
) -> None:
    ordre = await get_ordre_du_jour(session, club_id, reunion_id, ordre_id)
    await session.delete(ordre)
    await session.commit()


# === Compte rendu ===
async def _club_recipients(
    session: AsyncSession, club_id: uuid.UUID
) -> List[Recipient]:
    result = await session.execute(
        select(UserAccount)
        .join(UserClub, UserClub.user_id == UserAccount.id)
        .where(
            UserClub.club_id == club_id,
            UserAccount.is_active.is_(True),
            UserAccount.email.is_not(None),
            UserAccount.email != "",
        )
        .order_by(UserAccount.last_name, UserAccount.first_name)
    )
    return [
        Recipient(address=user.email, name=user.full_name)
        for user in result.scalars().all()
    ]


@db_operation
async def send_compte_rendu(
    session: AsyncSession,
    club_id: uuid.UUID,
    reunion_id: uuid.UUID,
    gateway: NotificationGateway,
    data: CompteRenduRequest,
) -> CompteRenduResult:
    """Send the meeting summary to every club member with an email"""
    club = await get_club_by_id(session, club_id)
    reunion = await get_reunion(session, club_id, reunion_id)

    recipients = await _club_recipients(session, club_id)
    if not recipients:
        raise BusinessLogicError("No club member with an email address")

    subject, body = build_compte_rendu(
        club.name,
        reunion.type_reunion.label,
        reunion,
        reunion.ordres_du_jour,
        data.message,
    )
    broadcast = await gateway.broadcast(recipients, subject, body)

    log_business_event(
        "compte_rendu_sent",
        "reunion",
        reunion_id,
        {"sent": broadcast.sent, "failed": broadcast.failed},
    )
    return CompteRenduResult(
        reunion_id=reunion_id, subject=subject, **broadcast.model_dump()
    )
