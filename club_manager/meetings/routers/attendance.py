import uuid
from typing import List

from fastapi import APIRouter, Depends, Request, Response, status
from sqlalchemy.ext.asyncio import AsyncSession

from club_manager.core.access import Caller
from club_manager.core.bulk import BulkResult
from club_manager.core.database import get_session
from club_manager.core.dependencies import (
    ensure_identifier,
    require_club_access,
    require_club_manager,
)
from club_manager.core.limits import limiter
from club_manager.meetings.crud.attendance import (
    create_guest,
    create_guests_batch,
    create_presence,
    create_presences_batch,
    delete_guest,
    delete_member_presence,
    delete_presence,
    get_attendance_statistics,
    get_guest,
    get_guest_organisations,
    get_guests,
    get_presence,
    get_presences,
    update_guest,
)
from club_manager.meetings.schemas.attendance import (
    AttendanceStatistics,
    GuestBatch,
    GuestCreate,
    GuestRead,
    GuestUpdate,
    OrganisationCount,
    PresenceBatch,
    PresenceCreate,
    PresenceRead,
)

router = APIRouter(
    prefix="/clubs/{club_id}/reunions/{reunion_id}", tags=["Reunion attendance"]
)


# === Presences ===
@router.get("/presences", response_model=List[PresenceRead])
@limiter.limit("60/minute")
async def list_presences(
    request: Request,
    club_id: uuid.UUID,
    reunion_id: uuid.UUID,
    caller: Caller = Depends(require_club_access),
    db: AsyncSession = Depends(get_session),
):
    ensure_identifier(reunion_id, "reunion_id")
    return await get_presences(db, club_id, reunion_id)


@router.get("/presences/statistiques", response_model=AttendanceStatistics)
@limiter.limit("30/minute")
async def attendance_statistics(
    request: Request,
    club_id: uuid.UUID,
    reunion_id: uuid.UUID,
    caller: Caller = Depends(require_club_access),
    db: AsyncSession = Depends(get_session),
):
    """Present and absent active members, compared to meetings of the same type"""
    ensure_identifier(reunion_id, "reunion_id")
    return await get_attendance_statistics(db, club_id, reunion_id)


@router.get("/presences/{presence_id}", response_model=PresenceRead)
@limiter.limit("60/minute")
async def read_presence(
    request: Request,
    club_id: uuid.UUID,
    reunion_id: uuid.UUID,
    presence_id: uuid.UUID,
    caller: Caller = Depends(require_club_access),
    db: AsyncSession = Depends(get_session),
):
    ensure_identifier(reunion_id, "reunion_id")
    ensure_identifier(presence_id, "presence_id")
    return await get_presence(db, club_id, reunion_id, presence_id)


@router.post(
    "/presences", response_model=PresenceRead, status_code=status.HTTP_201_CREATED
)
@limiter.limit("60/minute")
async def mark_present(
    request: Request,
    club_id: uuid.UUID,
    reunion_id: uuid.UUID,
    data: PresenceCreate,
    caller: Caller = Depends(require_club_manager("meeting_attendance")),
    db: AsyncSession = Depends(get_session),
):
    ensure_identifier(reunion_id, "reunion_id")
    return await create_presence(db, club_id, reunion_id, data.user_id)


@router.post("/presences/batch", response_model=BulkResult)
@limiter.limit("10/minute")
async def mark_present_in_batch(
    request: Request,
    club_id: uuid.UUID,
    reunion_id: uuid.UUID,
    data: PresenceBatch,
    caller: Caller = Depends(require_club_manager("meeting_attendance")),
    db: AsyncSession = Depends(get_session),
):
    """
    Mark several members present.

    Members already present, inactive or outside the club are reported
    in **errors**; the others are recorded.
    """
    ensure_identifier(reunion_id, "reunion_id")
    return await create_presences_batch(db, club_id, reunion_id, data)


@router.delete("/presences/membres/{user_id}", status_code=status.HTTP_204_NO_CONTENT)
@limiter.limit("60/minute")
async def unmark_member(
    request: Request,
    club_id: uuid.UUID,
    reunion_id: uuid.UUID,
    user_id: uuid.UUID,
    caller: Caller = Depends(require_club_manager("meeting_attendance")),
    db: AsyncSession = Depends(get_session),
):
    ensure_identifier(reunion_id, "reunion_id")
    ensure_identifier(user_id, "user_id")
    await delete_member_presence(db, club_id, reunion_id, user_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.delete("/presences/{presence_id}", status_code=status.HTTP_204_NO_CONTENT)
@limiter.limit("60/minute")
async def remove_presence(
    request: Request,
    club_id: uuid.UUID,
    reunion_id: uuid.UUID,
    presence_id: uuid.UUID,
    caller: Caller = Depends(require_club_manager("meeting_attendance")),
    db: AsyncSession = Depends(get_session),
):
    ensure_identifier(reunion_id, "reunion_id")
    ensure_identifier(presence_id, "presence_id")
    await delete_presence(db, club_id, reunion_id, presence_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


# === Guests ===
@router.get("/invites", response_model=List[GuestRead])
@limiter.limit("60/minute")
async def list_guests(
    request: Request,
    club_id: uuid.UUID,
    reunion_id: uuid.UUID,
    caller: Caller = Depends(require_club_access),
    db: AsyncSession = Depends(get_session),
):
    ensure_identifier(reunion_id, "reunion_id")
    return await get_guests(db, club_id, reunion_id)


@router.get("/invites/organisations", response_model=List[OrganisationCount])
@limiter.limit("30/minute")
async def list_guest_organisations(
    request: Request,
    club_id: uuid.UUID,
    reunion_id: uuid.UUID,
    caller: Caller = Depends(require_club_access),
    db: AsyncSession = Depends(get_session),
):
    ensure_identifier(reunion_id, "reunion_id")
    return await get_guest_organisations(db, club_id, reunion_id)


@router.get("/invites/{guest_id}", response_model=GuestRead)
@limiter.limit("60/minute")
async def read_guest(
    request: Request,
    club_id: uuid.UUID,
    reunion_id: uuid.UUID,
    guest_id: uuid.UUID,
    caller: Caller = Depends(require_club_access),
    db: AsyncSession = Depends(get_session),
):
    ensure_identifier(reunion_id, "reunion_id")
    ensure_identifier(guest_id, "guest_id")
    return await get_guest(db, club_id, reunion_id, guest_id)


@router.post("/invites", response_model=GuestRead, status_code=status.HTTP_201_CREATED)
@limiter.limit("60/minute")
async def invite_guest(
    request: Request,
    club_id: uuid.UUID,
    reunion_id: uuid.UUID,
    data: GuestCreate,
    caller: Caller = Depends(require_club_manager("meeting_attendance")),
    db: AsyncSession = Depends(get_session),
):
    ensure_identifier(reunion_id, "reunion_id")
    return await create_guest(db, club_id, reunion_id, data)


@router.post("/invites/batch", response_model=BulkResult)
@limiter.limit("10/minute")
async def invite_guests_in_batch(
    request: Request,
    club_id: uuid.UUID,
    reunion_id: uuid.UUID,
    data: GuestBatch,
    caller: Caller = Depends(require_club_manager("meeting_attendance")),
    db: AsyncSession = Depends(get_session),
):
    ensure_identifier(reunion_id, "reunion_id")
    return await create_guests_batch(db, club_id, reunion_id, data)


@router.put("/invites/{guest_id}", response_model=GuestRead)
@limiter.limit("60/minute")
async def update_existing_guest(
    request: Request,
    club_id: uuid.UUID,
    reunion_id: uuid.UUID,
    guest_id: uuid.UUID,
    data: GuestUpdate,
    caller: Caller = Depends(require_club_manager("meeting_attendance")),
    db: AsyncSession = Depends(get_session),
):
    ensure_identifier(reunion_id, "reunion_id")
    ensure_identifier(guest_id, "guest_id")
    return await update_guest(db, club_id, reunion_id, guest_id, data)


@router.delete("/invites/{guest_id}", status_code=status.HTTP_204_NO_CONTENT)
@limiter.limit("60/minute")
async def remove_guest(
    request: Request,
    club_id: uuid.UUID,
    reunion_id: uuid.UUID,
    guest_id: uuid.UUID,
    caller: Caller = Depends(require_club_manager("meeting_attendance")),
    db: AsyncSession = Depends(get_session),
):
    ensure_identifier(reunion_id, "reunion_id")
    ensure_identifier(guest_id, "guest_id")
    await delete_guest(db, club_id, reunion_id, guest_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
