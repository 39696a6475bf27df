import uuid
from typing import List

from fastapi import APIRouter, Depends, Request, Response, status
from sqlalchemy.ext.asyncio import AsyncSession

from club_manager.clubs.crud.mandats import (
    activate_mandat,
    create_mandat,
    delete_mandat,
    get_current_mandat,
    get_mandat,
    get_mandats_paginated,
    update_mandat,
)
from club_manager.clubs.schemas.mandats import MandatCreate, MandatRead, MandatUpdate
from club_manager.core.access import Caller
from club_manager.core.database import get_session
from club_manager.core.dependencies import (
    ensure_identifier,
    require_club_access,
    require_club_manager,
)
from club_manager.core.limits import limiter
from club_manager.core.pagination import ListParams, set_pagination_headers

router = APIRouter(prefix="/clubs/{club_id}/mandats", tags=["Mandats"])


@router.get("/", response_model=List[MandatRead])
@limiter.limit("60/minute")
async def list_mandats(
    request: Request,
    response: Response,
    club_id: uuid.UUID,
    params: ListParams = Depends(),
    caller: Caller = Depends(require_club_access),
    db: AsyncSession = Depends(get_session),
):
    """Mandats of the club, most recent year first unless **orderBy** is given"""
    mandats, total = await get_mandats_paginated(db, club_id, params)
    set_pagination_headers(response, params, total)
    return mandats


@router.get("/actuel", response_model=MandatRead)
@limiter.limit("60/minute")
async def read_current_mandat(
    request: Request,
    club_id: uuid.UUID,
    caller: Caller = Depends(require_club_access),
    db: AsyncSession = Depends(get_session),
):
    return await get_current_mandat(db, club_id)


@router.get("/{mandat_id}", response_model=MandatRead)
@limiter.limit("60/minute")
async def read_mandat(
    request: Request,
    club_id: uuid.UUID,
    mandat_id: uuid.UUID,
    caller: Caller = Depends(require_club_access),
    db: AsyncSession = Depends(get_session),
):
    ensure_identifier(mandat_id, "mandat_id")
    return await get_mandat(db, club_id, mandat_id)


@router.post("/", response_model=MandatRead, status_code=status.HTTP_201_CREATED)
@limiter.limit("20/minute")
async def create_new_mandat(
    request: Request,
    club_id: uuid.UUID,
    data: MandatCreate,
    caller: Caller = Depends(require_club_manager("mandats")),
    db: AsyncSession = Depends(get_session),
):
    """
    Open a new mandat. It becomes the current one.

    - **year**: unique within the club
    - **end_date**: after **start_date**
    """
    return await create_mandat(db, club_id, data)


@router.put("/{mandat_id}", response_model=MandatRead)
@limiter.limit("20/minute")
async def update_existing_mandat(
    request: Request,
    club_id: uuid.UUID,
    mandat_id: uuid.UUID,
    data: MandatUpdate,
    caller: Caller = Depends(require_club_manager("mandats")),
    db: AsyncSession = Depends(get_session),
):
    ensure_identifier(mandat_id, "mandat_id")
    return await update_mandat(db, club_id, mandat_id, data)


@router.post("/{mandat_id}/activer", response_model=MandatRead)
@limiter.limit("20/minute")
async def activate(
    request: Request,
    club_id: uuid.UUID,
    mandat_id: uuid.UUID,
    caller: Caller = Depends(require_club_manager("mandats")),
    db: AsyncSession = Depends(get_session),
):
    """Make this mandat the current one"""
    ensure_identifier(mandat_id, "mandat_id")
    return await activate_mandat(db, club_id, mandat_id)


@router.delete("/{mandat_id}", status_code=status.HTTP_204_NO_CONTENT)
@limiter.limit("20/minute")
async def remove_mandat(
    request: Request,
    club_id: uuid.UUID,
    mandat_id: uuid.UUID,
    caller: Caller = Depends(require_club_manager("mandats")),
    db: AsyncSession = Depends(get_session),
):
    ensure_identifier(mandat_id, "mandat_id")
    await delete_mandat(db, club_id, mandat_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
