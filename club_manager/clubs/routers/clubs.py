import uuid
from typing import List

from fastapi import APIRouter, Depends, Request, Response, status
from sqlalchemy.ext.asyncio import AsyncSession

from club_manager.clubs.crud.clubs import (
    create_club,
    delete_club,
    get_club_by_id,
    get_club_statistics,
    get_clubs_paginated,
    update_club,
)
from club_manager.clubs.schemas.clubs import (
    ClubCreate,
    ClubRead,
    ClubStatistics,
    ClubUpdate,
)
from club_manager.core.access import Caller
from club_manager.core.database import get_session
from club_manager.core.dependencies import (
    ensure_identifier,
    require_admin,
    require_club_access,
    require_club_manager,
)
from club_manager.core.limits import limiter
from club_manager.core.pagination import ListParams, set_pagination_headers

router = APIRouter(prefix="/clubs", tags=["Clubs"])


@router.get("/", response_model=List[ClubRead])
@limiter.limit("30/minute")
async def list_clubs(
    request: Request,
    response: Response,
    params: ListParams = Depends(),
    db: AsyncSession = Depends(get_session),
):
    """
    Public directory of clubs.

    - **recherche**: matches name, meeting place, address or email
    - **orderBy**: nom (default), numero, datecreation
    """
    clubs, total = await get_clubs_paginated(db, params)
    set_pagination_headers(response, params, total)
    return clubs


@router.post("/", response_model=ClubRead, status_code=status.HTTP_201_CREATED)
@limiter.limit("10/minute")
async def create_new_club(
    request: Request,
    club: ClubCreate,
    caller: Caller = Depends(require_admin),
    db: AsyncSession = Depends(get_session),
):
    """
    Create a club (Admin).

    - **number**: unique club number, > 0
    - **email**: unique, stored lowercase
    - **meeting_day**: Lundi..Dimanche
    """
    return await create_club(db, club)


@router.get("/{club_id}", response_model=ClubRead)
@limiter.limit("60/minute")
async def get_club(
    request: Request,
    club_id: uuid.UUID,
    caller: Caller = Depends(require_club_access),
    db: AsyncSession = Depends(get_session),
):
    """Club details. Non-members get 403 even for unknown clubs."""
    return await get_club_by_id(db, club_id)


@router.put("/{club_id}", response_model=ClubRead)
@limiter.limit("20/minute")
async def update_club_info(
    request: Request,
    club_id: uuid.UUID,
    data: ClubUpdate,
    caller: Caller = Depends(require_club_manager("clubs", "update")),
    db: AsyncSession = Depends(get_session),
):
    """
    Update club information (President of the club, or Admin).

    Send the `version` you read to detect concurrent edits (409).
    """
    return await update_club(db, club_id, data)


@router.delete("/{club_id}", status_code=status.HTTP_204_NO_CONTENT)
@limiter.limit("10/minute")
async def remove_club(
    request: Request,
    club_id: uuid.UUID,
    caller: Caller = Depends(require_admin),
    db: AsyncSession = Depends(get_session),
):
    """Delete a club without members or committees (Admin)"""
    ensure_identifier(club_id, "club_id")
    await delete_club(db, club_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.get("/{club_id}/statistiques", response_model=ClubStatistics)
@limiter.limit("30/minute")
async def club_statistics(
    request: Request,
    club_id: uuid.UUID,
    caller: Caller = Depends(require_club_access),
    db: AsyncSession = Depends(get_session),
):
    return await get_club_statistics(db, club_id)
