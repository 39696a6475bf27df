import uuid
from typing import List

from sqlalchemy import func
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.future import select
from sqlalchemy.orm import selectinload

from club_manager.clubs.crud.mandats import get_mandat
from club_manager.clubs.crud.members import ensure_member
from club_manager.clubs.models.comites import Comite, ComiteMembre, Fonction
from club_manager.clubs.models.users import UserAccount
from club_manager.clubs.schemas.comites import (
    ComiteCreate,
    ComiteDetail,
    ComiteMembreCreate,
    ComiteMembreRead,
    ComiteRead,
    ComiteUpdate,
    FonctionCreate,
)
from club_manager.core.database import db_operation
from club_manager.core.exceptions import (
    BusinessLogicError,
    DuplicateError,
    NotFoundError,
)
from club_manager.core.logging_utils import log_business_event


# === Fonctions (global) ===
@db_operation
async def get_fonctions(session: AsyncSession) -> List[Fonction]:
    result = await session.execute(select(Fonction).order_by(Fonction.name))
    return list(result.scalars().all())


@db_operation
async def create_fonction(session: AsyncSession, data: FonctionCreate) -> Fonction:
    existing = await session.execute(
        select(Fonction.id).where(func.lower(Fonction.name) == data.name.lower())
    )
    if existing.first():
        raise DuplicateError("Fonction", "name", data.name)

    fonction = Fonction(name=data.name)
    session.add(fonction)
    await session.commit()
    await session.refresh(fonction)
    return fonction


# === Comites ===
def _to_read(comite: Comite) -> ComiteRead:
    return ComiteRead(
        id=comite.id,
        club_id=comite.club_id,
        mandat_id=comite.mandat_id,
        name=comite.name,
        members_count=len(comite.members),
    )


def _to_detail(comite: Comite) -> ComiteDetail:
    return ComiteDetail(
        **_to_read(comite).model_dump(),
        members=[
            ComiteMembreRead(
                id=member.id,
                user_id=member.user_id,
                full_name=member.user.full_name,
                fonction_id=member.fonction_id,
                fonction=member.fonction.name if member.fonction else None,
            )
            for member in sorted(comite.members, key=lambda m: m.user.last_name)
        ],
    )


async def _load_comite(
    session: AsyncSession,
    club_id: uuid.UUID,
    mandat_id: uuid.UUID,
    comite_id: uuid.UUID,
) -> Comite:
    result = await session.execute(
        select(Comite)
        .options(
            selectinload(Comite.members).selectinload(ComiteMembre.user),
            selectinload(Comite.members).selectinload(ComiteMembre.fonction),
        )
        .where(
            Comite.id == comite_id,
            Comite.club_id == club_id,
            Comite.mandat_id == mandat_id,
        )
        .execution_options(populate_existing=True)
    )
    comite = result.scalar_one_or_none()
    if comite is None:
        raise NotFoundError("Comite", comite_id)
    return comite


async def _check_name_available(
    session: AsyncSession, mandat_id: uuid.UUID, name: str, exclude_id=None
):
    query = select(Comite.id).where(
        Comite.mandat_id == mandat_id, func.lower(Comite.name) == name.lower()
    )
    if exclude_id is not None:
        query = query.where(Comite.id != exclude_id)
    if (await session.execute(query)).first():
        raise DuplicateError("Comite", "name", name)


@db_operation
async def get_comites(
    session: AsyncSession, club_id: uuid.UUID, mandat_id: uuid.UUID
) -> List[ComiteRead]:
    await get_mandat(session, club_id, mandat_id)
    result = await session.execute(
        select(Comite)
        .options(selectinload(Comite.members))
        .where(Comite.mandat_id == mandat_id)
        .order_by(Comite.name)
    )
    return [_to_read(comite) for comite in result.scalars().all()]


@db_operation
async def get_comite_detail(
    session: AsyncSession,
    club_id: uuid.UUID,
    mandat_id: uuid.UUID,
    comite_id: uuid.UUID,
) -> ComiteDetail:
    await get_mandat(session, club_id, mandat_id)
    return _to_detail(await _load_comite(session, club_id, mandat_id, comite_id))


@db_operation
async def create_comite(
    session: AsyncSession, club_id: uuid.UUID, mandat_id: uuid.UUID, data: ComiteCreate
) -> ComiteDetail:
    await get_mandat(session, club_id, mandat_id)
    await _check_name_available(session, mandat_id, data.name)

    comite = Comite(club_id=club_id, mandat_id=mandat_id, name=data.name)
    session.add(comite)
    await session.commit()

    log_business_event("comite_created", "comite", comite.id, {"name": comite.name})
    return _to_detail(await _load_comite(session, club_id, mandat_id, comite.id))


@db_operation
async def update_comite(
    session: AsyncSession,
    club_id: uuid.UUID,
    mandat_id: uuid.UUID,
    comite_id: uuid.UUID,
    data: ComiteUpdate,
) -> ComiteDetail:
    await get_mandat(session, club_id, mandat_id)
    comite = await _load_comite(session, club_id, mandat_id, comite_id)
    await _check_name_available(session, mandat_id, data.name, comite.id)

    comite.name = data.name
    await session.commit()
    return _to_detail(await _load_comite(session, club_id, mandat_id, comite_id))


@db_operation
async def delete_comite(
    session: AsyncSession,
    club_id: uuid.UUID,
    mandat_id: uuid.UUID,
    comite_id: uuid.UUID,
) -> None:
    await get_mandat(session, club_id, mandat_id)
    comite = await _load_comite(session, club_id, mandat_id, comite_id)
    await session.delete(comite)
    await session.commit()


@db_operation
async def add_comite_member(
    session: AsyncSession,
    club_id: uuid.UUID,
    mandat_id: uuid.UUID,
    comite_id: uuid.UUID,
    data: ComiteMembreCreate,
) -> ComiteDetail:
    await get_mandat(session, club_id, mandat_id)
    comite = await _load_comite(session, club_id, mandat_id, comite_id)

    if await session.get(UserAccount, data.user_id) is None:
        raise NotFoundError("User", data.user_id)
    await ensure_member(session, club_id, data.user_id)

    if data.fonction_id is not None:
        if await session.get(Fonction, data.fonction_id) is None:
            raise NotFoundError("Fonction", data.fonction_id)

    if any(member.user_id == data.user_id for member in comite.members):
        raise BusinessLogicError("User already belongs to this comite")

    session.add(
        ComiteMembre(
            comite_id=comite.id, user_id=data.user_id, fonction_id=data.fonction_id
        )
    )
    await session.commit()
    return _to_detail(await _load_comite(session, club_id, mandat_id, comite_id))


@db_operation
async def remove_comite_member(
    session: AsyncSession,
    club_id: uuid.UUID,
    mandat_id: uuid.UUID,
    comite_id: uuid.UUID,
    user_id: uuid.UUID,
) -> None:
    await get_mandat(session, club_id, mandat_id)
    comite = await _load_comite(session, club_id, mandat_id, comite_id)

    member = next((m for m in comite.members if m.user_id == user_id), None)
    if member is None:
        raise NotFoundError("Comite member", user_id)

    await session.delete(member)
    await session.commit()
