import uuid
from typing import Iterable, List, Tuple

from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.future import select

from club_manager.clubs.models.users import RoleType, UserAccount
from club_manager.clubs.schemas.users import UserRegister
from club_manager.core.database import db_operation
from club_manager.core.exceptions import (
    AuthenticationError,
    DuplicateError,
    NotFoundError,
)
from club_manager.core.logging_utils import log_business_event
from club_manager.core.pagination import (
    ListParams,
    apply_ordering,
    paginate,
    search_filter,
)
from club_manager.core.passwords import hash_password, verify_password

USER_ORDERING = {
    "nom": UserAccount.last_name,
    "prenom": UserAccount.first_name,
    "email": UserAccount.email,
    "datejoin": UserAccount.joined_at,
}


@db_operation
async def get_user_by_id(session: AsyncSession, user_id: uuid.UUID) -> UserAccount:
    user = await session.get(UserAccount, user_id)
    if user is None:
        raise NotFoundError("User", user_id)
    return user


@db_operation
async def get_user_by_email(session: AsyncSession, email: str):
    result = await session.execute(
        select(UserAccount).where(UserAccount.email == email.strip().lower())
    )
    return result.scalar_one_or_none()


@db_operation
async def create_user(
    session: AsyncSession, data: UserRegister, roles: Iterable[RoleType] = ()
) -> UserAccount:
    if await get_user_by_email(session, data.email):
        raise DuplicateError("User", "email", data.email)

    user = UserAccount(
        **data.model_dump(exclude={"password"}),
        password_hash=hash_password(data.password),
        roles=sorted(role.value for role in roles),
    )
    session.add(user)
    await session.commit()
    await session.refresh(user)

    log_business_event("user_registered", "user", user.id)
    return user


@db_operation
async def authenticate_user(
    session: AsyncSession, email: str, password: str
) -> UserAccount:
    user = await get_user_by_email(session, email)
    if user is None or not verify_password(password, user.password_hash):
        raise AuthenticationError("Invalid email or password")
    if not user.is_active:
        raise AuthenticationError("Account is disabled")
    return user


@db_operation
async def get_users_paginated(
    session: AsyncSession, params: ListParams
) -> Tuple[List[UserAccount], int]:
    query = select(UserAccount)
    condition = search_filter(
        params.recherche,
        UserAccount.first_name,
        UserAccount.last_name,
        UserAccount.email,
        UserAccount.member_number,
    )
    if condition is not None:
        query = query.where(condition)

    query = apply_ordering(query, params, USER_ORDERING, "nom").order_by(UserAccount.id)
    return await paginate(session, query, params)


@db_operation
async def set_user_roles(
    session: AsyncSession, user_id: uuid.UUID, roles: Iterable[RoleType]
) -> UserAccount:
    user = await get_user_by_id(session, user_id)
    user.roles = sorted(role.value for role in roles)
    await session.commit()
    await session.refresh(user)

    log_business_event("user_roles_changed", "user", user.id, {"roles": user.roles})
    return user


@db_operation
async def set_user_active(
    session: AsyncSession, user_id: uuid.UUID, is_active: bool
) -> UserAccount:
    user = await get_user_by_id(session, user_id)
    user.is_active = is_active
    await session.commit()
    await session.refresh(user)
    return user
