"""
Meeting attendance (members marked present) and meeting guests.
"""

import uuid
from decimal import Decimal
from typing import List, Optional

from sqlalchemy import func
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.future import select
from sqlalchemy.orm import selectinload

from club_manager.clubs.crud.members import ensure_member
from club_manager.clubs.crud.users import get_user_by_id
from club_manager.clubs.models.memberships import UserClub
from club_manager.clubs.models.users import UserAccount
from club_manager.core.bulk import BulkResult, process_sequentially
from club_manager.core.database import db_operation
from club_manager.core.exceptions import (
    BusinessLogicError,
    DuplicateError,
    NotFoundError,
)
from club_manager.core.logging_utils import log_business_event
from club_manager.finance.services.aggregation import (
    HUNDRED,
    ZERO,
    percent_realized,
    round_percent,
)
from club_manager.meetings.crud.reunions import get_reunion
from club_manager.meetings.models.attendance import Presence, ReunionGuest
from club_manager.meetings.models.reunions import Reunion
from club_manager.meetings.schemas.attendance import (
    AttendanceStatistics,
    GuestBatch,
    GuestCreate,
    GuestUpdate,
    OrganisationCount,
    PresenceBatch,
    PresenceRead,
)


# === Presences ===
def to_presence_read(presence: Presence) -> PresenceRead:
    return PresenceRead(
        id=presence.id,
        reunion_id=presence.reunion_id,
        user_id=presence.user_id,
        full_name=presence.user.full_name,
        email=presence.user.email,
        recorded_at=presence.recorded_at,
    )


def _presence_query(reunion_id: uuid.UUID):
    return (
        select(Presence)
        .join(UserAccount, UserAccount.id == Presence.user_id)
        .options(selectinload(Presence.user))
        .where(Presence.reunion_id == reunion_id)
    )


@db_operation
async def get_presences(
    session: AsyncSession, club_id: uuid.UUID, reunion_id: uuid.UUID
) -> List[PresenceRead]:
    await get_reunion(session, club_id, reunion_id)
    result = await session.execute(
        _presence_query(reunion_id).order_by(
            UserAccount.last_name, UserAccount.first_name
        )
    )
    return [to_presence_read(presence) for presence in result.scalars().all()]


async def _load_presence(
    session: AsyncSession, reunion_id: uuid.UUID, presence_id: uuid.UUID
) -> Presence:
    result = await session.execute(
        _presence_query(reunion_id).where(Presence.id == presence_id)
    )
    presence = result.scalars().first()
    if presence is None:
        raise NotFoundError("Presence", presence_id)
    return presence


@db_operation
async def get_presence(
    session: AsyncSession,
    club_id: uuid.UUID,
    reunion_id: uuid.UUID,
    presence_id: uuid.UUID,
) -> PresenceRead:
    await get_reunion(session, club_id, reunion_id)
    return to_presence_read(await _load_presence(session, reunion_id, presence_id))


async def _add_presence(
    session: AsyncSession,
    club_id: uuid.UUID,
    reunion_id: uuid.UUID,
    user_id: uuid.UUID,
) -> Presence:
    """Only active members of the club, once per meeting (no commit)"""
    user = await get_user_by_id(session, user_id)
    await ensure_member(session, club_id, user_id)
    if not user.is_active:
        raise BusinessLogicError(
            f"{user.full_name} is not an active member", {"user_id": str(user_id)}
        )

    existing = await session.execute(
        select(Presence.id).where(
            Presence.reunion_id == reunion_id, Presence.user_id == user_id
        )
    )
    if existing.first():
        raise BusinessLogicError(
            f"{user.full_name} is already marked present at this meeting",
            {"user_id": str(user_id)},
        )

    presence = Presence(reunion_id=reunion_id, user_id=user_id)
    session.add(presence)
    return presence


@db_operation
async def create_presence(
    session: AsyncSession,
    club_id: uuid.UUID,
    reunion_id: uuid.UUID,
    user_id: uuid.UUID,
) -> PresenceRead:
    await get_reunion(session, club_id, reunion_id)
    presence = await _add_presence(session, club_id, reunion_id, user_id)
    await session.commit()
    return to_presence_read(await _load_presence(session, reunion_id, presence.id))


@db_operation
async def create_presences_batch(
    session: AsyncSession,
    club_id: uuid.UUID,
    reunion_id: uuid.UUID,
    data: PresenceBatch,
) -> BulkResult:
    await get_reunion(session, club_id, reunion_id)

    async def add_one(user_id: uuid.UUID):
        await _add_presence(session, club_id, reunion_id, user_id)

    result = await process_sequentially(session, data.user_ids, add_one)
    log_business_event(
        "attendance_recorded",
        "reunion",
        reunion_id,
        {"created": result.created, "failed": len(result.errors)},
    )
    return result


@db_operation
async def delete_presence(
    session: AsyncSession,
    club_id: uuid.UUID,
    reunion_id: uuid.UUID,
    presence_id: uuid.UUID,
) -> None:
    await get_reunion(session, club_id, reunion_id)
    presence = await _load_presence(session, reunion_id, presence_id)
    await session.delete(presence)
    await session.commit()


@db_operation
async def delete_member_presence(
    session: AsyncSession,
    club_id: uuid.UUID,
    reunion_id: uuid.UUID,
    user_id: uuid.UUID,
) -> None:
    await get_reunion(session, club_id, reunion_id)
    result = await session.execute(
        select(Presence).where(
            Presence.reunion_id == reunion_id, Presence.user_id == user_id
        )
    )
    presence = result.scalars().first()
    if presence is None:
        raise NotFoundError("Presence of member", user_id)
    await session.delete(presence)
    await session.commit()


@db_operation
async def get_attendance_statistics(
    session: AsyncSession, club_id: uuid.UUID, reunion_id: uuid.UUID
) -> AttendanceStatistics:
    """
    Attendance of a meeting against the club's active members.

    The type average covers the club's other meetings of the same type,
    meetings without any presence included.
    """
    reunion = await get_reunion(session, club_id, reunion_id)

    active_members = await session.scalar(
        select(func.count(UserClub.id))
        .join(UserAccount, UserAccount.id == UserClub.user_id)
        .where(UserClub.club_id == club_id, UserAccount.is_active.is_(True))
    )
    present = await session.scalar(
        select(func.count(Presence.id)).where(Presence.reunion_id == reunion_id)
    )

    others = await session.execute(
        select(Reunion.id, func.count(Presence.id))
        .outerjoin(Presence, Presence.reunion_id == Reunion.id)
        .where(
            Reunion.club_id == club_id,
            Reunion.type_reunion_id == reunion.type_reunion_id,
            Reunion.id != reunion_id,
        )
        .group_by(Reunion.id)
    )
    counts = [count for _, count in others.all()]

    average = ZERO
    if counts:
        average = Decimal(sum(counts)) / Decimal(len(counts))
    vs_average = ZERO
    if average > 0:
        vs_average = (Decimal(present) - average) / average * HUNDRED

    return AttendanceStatistics(
        reunion_id=reunion_id,
        active_members=active_members,
        present=present,
        absent=max(active_members - present, 0),
        attendance_rate=percent_realized(active_members, present),
        type_average=round_percent(average),
        vs_type_average=round_percent(vs_average),
    )


# === Guests ===
async def _load_guest(
    session: AsyncSession, reunion_id: uuid.UUID, guest_id: uuid.UUID
) -> ReunionGuest:
    guest = await session.get(ReunionGuest, guest_id)
    if guest is None or guest.reunion_id != reunion_id:
        raise NotFoundError("Reunion guest", guest_id)
    return guest


async def _check_guest_available(
    session: AsyncSession,
    reunion_id: uuid.UUID,
    first_name: str,
    last_name: str,
    email: Optional[str],
    exclude_id: Optional[uuid.UUID] = None,
):
    """Guest names and emails are unique per meeting, case-insensitively"""
    query = select(ReunionGuest).where(ReunionGuest.reunion_id == reunion_id)
    if exclude_id is not None:
        query = query.where(ReunionGuest.id != exclude_id)
    full_name = f"{first_name} {last_name}".lower()

    for guest in (await session.execute(query)).scalars().all():
        if guest.full_name.lower() == full_name:
            raise DuplicateError("Reunion guest", "name", f"{first_name} {last_name}")
        if email and guest.email and guest.email.lower() == email.lower():
            raise DuplicateError("Reunion guest", "email", email)


@db_operation
async def get_guests(
    session: AsyncSession, club_id: uuid.UUID, reunion_id: uuid.UUID
) -> List[ReunionGuest]:
    await get_reunion(session, club_id, reunion_id)
    result = await session.execute(
        select(ReunionGuest)
        .where(ReunionGuest.reunion_id == reunion_id)
        .order_by(ReunionGuest.last_name, ReunionGuest.first_name)
    )
    return list(result.scalars().all())


@db_operation
async def get_guest(
    session: AsyncSession,
    club_id: uuid.UUID,
    reunion_id: uuid.UUID,
    guest_id: uuid.UUID,
) -> ReunionGuest:
    await get_reunion(session, club_id, reunion_id)
    return await _load_guest(session, reunion_id, guest_id)


async def _add_guest(
    session: AsyncSession, reunion_id: uuid.UUID, data: GuestCreate
) -> ReunionGuest:
    await _check_guest_available(
        session, reunion_id, data.first_name, data.last_name, data.email
    )
    guest = ReunionGuest(reunion_id=reunion_id, **data.model_dump())
    session.add(guest)
    return guest


@db_operation
async def create_guest(
    session: AsyncSession,
    club_id: uuid.UUID,
    reunion_id: uuid.UUID,
    data: GuestCreate,
) -> ReunionGuest:
    await get_reunion(session, club_id, reunion_id)
    guest = await _add_guest(session, reunion_id, data)
    await session.commit()
    await session.refresh(guest)
    return guest


@db_operation
async def create_guests_batch(
    session: AsyncSession,
    club_id: uuid.UUID,
    reunion_id: uuid.UUID,
    data: GuestBatch,
) -> BulkResult:
    await get_reunion(session, club_id, reunion_id)

    async def add_one(item: GuestCreate):
        await _add_guest(session, reunion_id, item)

    result = await process_sequentially(
        session,
        data.guests,
        add_one,
        describe=lambda item: f"{item.first_name} {item.last_name}",
    )
    log_business_event(
        "reunion_guests_added",
        "reunion",
        reunion_id,
        {"created": result.created, "failed": len(result.errors)},
    )
    return result


@db_operation
async def update_guest(
    session: AsyncSession,
    club_id: uuid.UUID,
    reunion_id: uuid.UUID,
    guest_id: uuid.UUID,
    data: GuestUpdate,
) -> ReunionGuest:
    await get_reunion(session, club_id, reunion_id)
    guest = await _load_guest(session, reunion_id, guest_id)

    update_data = data.model_dump(exclude_unset=True)
    for field in ("last_name", "first_name"):
        if field in update_data and update_data[field] is None:
            update_data.pop(field)

    await _check_guest_available(
        session,
        reunion_id,
        update_data.get("first_name", guest.first_name),
        update_data.get("last_name", guest.last_name),
        update_data.get("email", guest.email),
        exclude_id=guest.id,
    )
    for field, value in update_data.items():
        setattr(guest, field, value)

    await session.commit()
    await session.refresh(guest)
    return guest


@db_operation
async def delete_guest(
    session: AsyncSession,
    club_id: uuid.UUID,
    reunion_id: uuid.UUID,
    guest_id: uuid.UUID,
) -> None:
    await get_reunion(session, club_id, reunion_id)
    guest = await _load_guest(session, reunion_id, guest_id)
    await session.delete(guest)
    await session.commit()


@db_operation
async def get_guest_organisations(
    session: AsyncSession, club_id: uuid.UUID, reunion_id: uuid.UUID
) -> List[OrganisationCount]:
    await get_reunion(session, club_id, reunion_id)
    guests = func.count(ReunionGuest.id)
    result = await session.execute(
        select(ReunionGuest.organisation, guests)
        .where(
            ReunionGuest.reunion_id == reunion_id,
            ReunionGuest.organisation.is_not(None),
        )
        .group_by(ReunionGuest.organisation)
        .order_by(guests.desc(), ReunionGuest.organisation)
    )
    return [
        OrganisationCount(organisation=organisation, guests=count)
        for organisation, count in result.all()
    ]
