import uuid
from typing import List

from fastapi import APIRouter, Depends, Request, Response, status
from sqlalchemy.ext.asyncio import AsyncSession

from club_manager.clubs.crud.members import (
    add_member,
    get_member,
    get_members_paginated,
    remove_member,
)
from club_manager.clubs.schemas.members import MemberAdd, MemberRead
from club_manager.core.access import Caller
from club_manager.core.database import get_session
from club_manager.core.dependencies import (
    ensure_identifier,
    require_club_access,
    require_club_manager,
)
from club_manager.core.limits import limiter
from club_manager.core.pagination import ListParams, set_pagination_headers

router = APIRouter(prefix="/clubs/{club_id}/membres", tags=["Members"])


@router.get("/", response_model=List[MemberRead])
@limiter.limit("60/minute")
async def list_members(
    request: Request,
    response: Response,
    club_id: uuid.UUID,
    params: ListParams = Depends(),
    caller: Caller = Depends(require_club_access),
    db: AsyncSession = Depends(get_session),
):
    """
    Members of the club.

    - **recherche**: matches names, email or member number
    - **orderBy**: nom (default), prenom, email, datejoin
    """
    members, total = await get_members_paginated(db, club_id, params)
    set_pagination_headers(response, params, total)
    return members


@router.get("/{user_id}", response_model=MemberRead)
@limiter.limit("60/minute")
async def read_member(
    request: Request,
    club_id: uuid.UUID,
    user_id: uuid.UUID,
    caller: Caller = Depends(require_club_access),
    db: AsyncSession = Depends(get_session),
):
    ensure_identifier(user_id, "user_id")
    return await get_member(db, club_id, user_id)


@router.post("/", response_model=MemberRead, status_code=status.HTTP_201_CREATED)
@limiter.limit("30/minute")
async def add_club_member(
    request: Request,
    club_id: uuid.UUID,
    data: MemberAdd,
    caller: Caller = Depends(require_club_manager("members")),
    db: AsyncSession = Depends(get_session),
):
    """Add an existing account to the club (President, Secretary)"""
    ensure_identifier(data.user_id, "user_id")
    return await add_member(db, club_id, data.user_id)


@router.delete("/{user_id}", status_code=status.HTTP_204_NO_CONTENT)
@limiter.limit("30/minute")
async def remove_club_member(
    request: Request,
    club_id: uuid.UUID,
    user_id: uuid.UUID,
    caller: Caller = Depends(require_club_manager("members")),
    db: AsyncSession = Depends(get_session),
):
    ensure_identifier(user_id, "user_id")
    await remove_member(db, club_id, user_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
