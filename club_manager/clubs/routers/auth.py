from fastapi import APIRouter, Depends, Request, status
from sqlalchemy.ext.asyncio import AsyncSession

from club_manager.clubs.crud.users import authenticate_user, create_user
from club_manager.clubs.models.users import UserAccount
from club_manager.clubs.schemas.users import (
    TokenResponse,
    UserLogin,
    UserRead,
    UserRegister,
)
from club_manager.core.database import get_session
from club_manager.core.dependencies import get_current_user
from club_manager.core.jwt_auth import jwt_manager
from club_manager.core.limits import limiter

router = APIRouter(prefix="/auth", tags=["Auth"])


@router.post("/register", response_model=UserRead, status_code=status.HTTP_201_CREATED)
@limiter.limit("5/minute")
async def register(
    request: Request,
    data: UserRegister,
    db: AsyncSession = Depends(get_session),
):
    """
    Create an account without any role.

    - **email**: unique login, stored lowercase
    - **password**: at least 8 characters
    """
    return await create_user(db, data)


@router.post("/login", response_model=TokenResponse)
@limiter.limit("10/minute")
async def login(
    request: Request,
    data: UserLogin,
    db: AsyncSession = Depends(get_session),
):
    """Exchange email and password for a bearer token"""
    user = await authenticate_user(db, data.email, data.password)
    token = jwt_manager.create_access_token(user.id, user.roles or [])
    return TokenResponse(
        access_token=token,
        expires_in=jwt_manager.access_token_expire_minutes * 60,
        user=UserRead.model_validate(user),
    )


@router.get("/me", response_model=UserRead)
@limiter.limit("60/minute")
async def me(
    request: Request,
    current_user: UserAccount = Depends(get_current_user),
):
    return current_user
