import uuid
from typing import List

from fastapi import APIRouter, Depends, Request, Response, status
from sqlalchemy.ext.asyncio import AsyncSession

from club_manager.core.access import Caller
from club_manager.core.database import get_session
from club_manager.core.dependencies import (
    ensure_identifier,
    require_club_access,
    require_club_manager,
)
from club_manager.core.limits import limiter
from club_manager.core.pagination import ListParams, set_pagination_headers
from club_manager.gala.crud.galas import (
    create_gala,
    delete_gala,
    get_gala,
    get_galas_paginated,
    update_gala,
)
from club_manager.gala.schemas.galas import GalaCreate, GalaRead, GalaUpdate

router = APIRouter(prefix="/clubs/{club_id}/galas", tags=["Gala"])


@router.get("/", response_model=List[GalaRead])
@limiter.limit("60/minute")
async def list_galas(
    request: Request,
    response: Response,
    club_id: uuid.UUID,
    params: ListParams = Depends(),
    caller: Caller = Depends(require_club_access),
    db: AsyncSession = Depends(get_session),
):
    """Galas of the club, most recent first. **orderBy**: date, libelle, lieu"""
    galas, total = await get_galas_paginated(db, club_id, params)
    set_pagination_headers(response, params, total)
    return galas


@router.get("/{gala_id}", response_model=GalaRead)
@limiter.limit("60/minute")
async def read_gala(
    request: Request,
    club_id: uuid.UUID,
    gala_id: uuid.UUID,
    caller: Caller = Depends(require_club_access),
    db: AsyncSession = Depends(get_session),
):
    ensure_identifier(gala_id, "gala_id")
    return await get_gala(db, club_id, gala_id)


@router.post("/", response_model=GalaRead, status_code=status.HTTP_201_CREATED)
@limiter.limit("20/minute")
async def create_new_gala(
    request: Request,
    club_id: uuid.UUID,
    data: GalaCreate,
    caller: Caller = Depends(require_club_manager("galas")),
    db: AsyncSession = Depends(get_session),
):
    """
    Create a gala.

    - **label**: unique per day within the club
    - **ticket_books** × **tickets_per_book**: tickets available for sale
    """
    return await create_gala(db, club_id, data)


@router.put("/{gala_id}", response_model=GalaRead)
@limiter.limit("20/minute")
async def update_existing_gala(
    request: Request,
    club_id: uuid.UUID,
    gala_id: uuid.UUID,
    data: GalaUpdate,
    caller: Caller = Depends(require_club_manager("galas")),
    db: AsyncSession = Depends(get_session),
):
    ensure_identifier(gala_id, "gala_id")
    return await update_gala(db, club_id, gala_id, data)


@router.delete("/{gala_id}", status_code=status.HTTP_204_NO_CONTENT)
@limiter.limit("20/minute")
async def remove_gala(
    request: Request,
    club_id: uuid.UUID,
    gala_id: uuid.UUID,
    caller: Caller = Depends(require_club_manager("galas")),
    db: AsyncSession = Depends(get_session),
):
    ensure_identifier(gala_id, "gala_id")
    await delete_gala(db, club_id, gala_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
