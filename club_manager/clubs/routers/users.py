import uuid
from typing import List

from fastapi import APIRouter, Depends, Request, Response
from sqlalchemy.ext.asyncio import AsyncSession

from club_manager.clubs.crud.members import get_user_clubs
from club_manager.clubs.crud.users import (
    get_users_paginated,
    set_user_active,
    set_user_roles,
)
from club_manager.clubs.models.users import UserAccount
from club_manager.clubs.schemas.members import UserClubRead
from club_manager.clubs.schemas.users import (
    UserActiveUpdate,
    UserRead,
    UserRolesUpdate,
)
from club_manager.core.access import Caller
from club_manager.core.database import get_session
from club_manager.core.dependencies import (
    ensure_identifier,
    get_current_user,
    require_admin,
)
from club_manager.core.limits import limiter
from club_manager.core.pagination import ListParams, set_pagination_headers

router = APIRouter(prefix="/users", tags=["Users"])


@router.get("/", response_model=List[UserRead])
@limiter.limit("30/minute")
async def list_users(
    request: Request,
    response: Response,
    params: ListParams = Depends(),
    caller: Caller = Depends(require_admin),
    db: AsyncSession = Depends(get_session),
):
    """
    List accounts (Admin).

    - **recherche**: matches first name, last name, email or member number
    - **orderBy**: nom, prenom, email, datejoin
    """
    users, total = await get_users_paginated(db, params)
    set_pagination_headers(response, params, total)
    return users


@router.get("/me/clubs", response_model=List[UserClubRead])
@limiter.limit("60/minute")
async def my_clubs(
    request: Request,
    current_user: UserAccount = Depends(get_current_user),
    db: AsyncSession = Depends(get_session),
):
    """Clubs the caller belongs to"""
    return await get_user_clubs(db, current_user.id)


@router.put("/{user_id}/roles", response_model=UserRead)
@limiter.limit("20/minute")
async def update_roles(
    request: Request,
    user_id: uuid.UUID,
    data: UserRolesUpdate,
    caller: Caller = Depends(require_admin),
    db: AsyncSession = Depends(get_session),
):
    """Replace the global roles of an account (Admin)"""
    ensure_identifier(user_id, "user_id")
    return await set_user_roles(db, user_id, data.roles)


@router.patch("/{user_id}/active", response_model=UserRead)
@limiter.limit("20/minute")
async def update_active(
    request: Request,
    user_id: uuid.UUID,
    data: UserActiveUpdate,
    caller: Caller = Depends(require_admin),
    db: AsyncSession = Depends(get_session),
):
    """Enable or disable an account (Admin)"""
    ensure_identifier(user_id, "user_id")
    return await set_user_active(db, user_id, data.is_active)
