import uuid
from typing import List

from fastapi import APIRouter, Depends, Request, Response, status
from sqlalchemy.ext.asyncio import AsyncSession

from club_manager.clubs.crud.comites import (
    add_comite_member,
    create_comite,
    create_fonction,
    delete_comite,
    get_comite_detail,
    get_comites,
    get_fonctions,
    remove_comite_member,
    update_comite,
)
from club_manager.clubs.schemas.comites import (
    ComiteCreate,
    ComiteDetail,
    ComiteMembreCreate,
    ComiteRead,
    ComiteUpdate,
    FonctionCreate,
    FonctionRead,
)
from club_manager.core.access import Caller
from club_manager.core.database import get_session
from club_manager.core.dependencies import (
    ensure_identifier,
    get_current_caller,
    require_admin,
    require_club_access,
    require_club_manager,
)
from club_manager.core.limits import limiter

router = APIRouter(
    prefix="/clubs/{club_id}/mandats/{mandat_id}/comites", tags=["Comites"]
)
fonctions_router = APIRouter(prefix="/fonctions", tags=["Comites"])


@fonctions_router.get("/", response_model=List[FonctionRead])
@limiter.limit("60/minute")
async def list_fonctions(
    request: Request,
    caller: Caller = Depends(get_current_caller),
    db: AsyncSession = Depends(get_session),
):
    return await get_fonctions(db)


@fonctions_router.post(
    "/", response_model=FonctionRead, status_code=status.HTTP_201_CREATED
)
@limiter.limit("20/minute")
async def create_new_fonction(
    request: Request,
    data: FonctionCreate,
    caller: Caller = Depends(require_admin),
    db: AsyncSession = Depends(get_session),
):
    return await create_fonction(db, data)


@router.get("/", response_model=List[ComiteRead])
@limiter.limit("60/minute")
async def list_comites(
    request: Request,
    club_id: uuid.UUID,
    mandat_id: uuid.UUID,
    caller: Caller = Depends(require_club_access),
    db: AsyncSession = Depends(get_session),
):
    ensure_identifier(mandat_id, "mandat_id")
    return await get_comites(db, club_id, mandat_id)


@router.get("/{comite_id}", response_model=ComiteDetail)
@limiter.limit("60/minute")
async def read_comite(
    request: Request,
    club_id: uuid.UUID,
    mandat_id: uuid.UUID,
    comite_id: uuid.UUID,
    caller: Caller = Depends(require_club_access),
    db: AsyncSession = Depends(get_session),
):
    ensure_identifier(mandat_id, "mandat_id")
    ensure_identifier(comite_id, "comite_id")
    return await get_comite_detail(db, club_id, mandat_id, comite_id)


@router.post("/", response_model=ComiteDetail, status_code=status.HTTP_201_CREATED)
@limiter.limit("20/minute")
async def create_new_comite(
    request: Request,
    club_id: uuid.UUID,
    mandat_id: uuid.UUID,
    data: ComiteCreate,
    caller: Caller = Depends(require_club_manager("comites")),
    db: AsyncSession = Depends(get_session),
):
    """Create a committee for the mandat (President, Secretary)"""
    ensure_identifier(mandat_id, "mandat_id")
    return await create_comite(db, club_id, mandat_id, data)


@router.put("/{comite_id}", response_model=ComiteDetail)
@limiter.limit("20/minute")
async def rename_comite(
    request: Request,
    club_id: uuid.UUID,
    mandat_id: uuid.UUID,
    comite_id: uuid.UUID,
    data: ComiteUpdate,
    caller: Caller = Depends(require_club_manager("comites")),
    db: AsyncSession = Depends(get_session),
):
    ensure_identifier(mandat_id, "mandat_id")
    ensure_identifier(comite_id, "comite_id")
    return await update_comite(db, club_id, mandat_id, comite_id, data)


@router.delete("/{comite_id}", status_code=status.HTTP_204_NO_CONTENT)
@limiter.limit("20/minute")
async def remove_comite(
    request: Request,
    club_id: uuid.UUID,
    mandat_id: uuid.UUID,
    comite_id: uuid.UUID,
    caller: Caller = Depends(require_club_manager("comites")),
    db: AsyncSession = Depends(get_session),
):
    ensure_identifier(mandat_id, "mandat_id")
    ensure_identifier(comite_id, "comite_id")
    await delete_comite(db, club_id, mandat_id, comite_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.post(
    "/{comite_id}/membres",
    response_model=ComiteDetail,
    status_code=status.HTTP_201_CREATED,
)
@limiter.limit("30/minute")
async def add_member_to_comite(
    request: Request,
    club_id: uuid.UUID,
    mandat_id: uuid.UUID,
    comite_id: uuid.UUID,
    data: ComiteMembreCreate,
    caller: Caller = Depends(require_club_manager("comites")),
    db: AsyncSession = Depends(get_session),
):
    """
    Add a club member to the committee.

    - **user_id**: must be a member of the club
    - **fonction_id**: optional position (see /fonctions)
    """
    ensure_identifier(mandat_id, "mandat_id")
    ensure_identifier(comite_id, "comite_id")
    return await add_comite_member(db, club_id, mandat_id, comite_id, data)


@router.delete(
    "/{comite_id}/membres/{user_id}", status_code=status.HTTP_204_NO_CONTENT
)
@limiter.limit("30/minute")
async def remove_member_from_comite(
    request: Request,
    club_id: uuid.UUID,
    mandat_id: uuid.UUID,
    comite_id: uuid.UUID,
    user_id: uuid.UUID,
    caller: Caller = Depends(require_club_manager("comites")),
    db: AsyncSession = Depends(get_session),
):
    ensure_identifier(mandat_id, "mandat_id")
    ensure_identifier(comite_id, "comite_id")
    await remove_comite_member(db, club_id, mandat_id, comite_id, user_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
