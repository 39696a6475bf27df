import uuid
from typing import List, Optional, Tuple

from sqlalchemy import func
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.future import select

from club_manager.clubs.crud.clubs import get_club_by_id
from club_manager.clubs.crud.mandats import get_mandat
from club_manager.clubs.crud.members import ensure_member
from club_manager.clubs.models.cotisations import Cotisation, PaiementCotisation
from club_manager.clubs.schemas.cotisations import (
    CotisationCreate,
    CotisationUpdate,
    PaiementCreate,
    PaiementUpdate,
    SituationCotisation,
)
from club_manager.clubs.services.dues import dues_balance, dues_status
from club_manager.core.database import db_operation
from club_manager.core.exceptions import DuplicateError, NotFoundError
from club_manager.core.logging_utils import log_business_event
from club_manager.core.pagination import ListParams, apply_ordering, paginate

PAIEMENT_ORDERING = {
    "date": PaiementCotisation.paid_on,
    "montant": PaiementCotisation.amount,
}


# === Cotisations ===
@db_operation
async def get_cotisation(
    session: AsyncSession, club_id: uuid.UUID, cotisation_id: uuid.UUID
) -> Cotisation:
    cotisation = await session.get(Cotisation, cotisation_id)
    if cotisation is None or cotisation.club_id != club_id:
        raise NotFoundError("Cotisation", cotisation_id)
    return cotisation


@db_operation
async def get_cotisations(
    session: AsyncSession,
    club_id: uuid.UUID,
    params: ListParams,
    mandat_id: Optional[uuid.UUID] = None,
    user_id: Optional[uuid.UUID] = None,
) -> Tuple[List[Cotisation], int]:
    await get_club_by_id(session, club_id)
    query = select(Cotisation).where(Cotisation.club_id == club_id)
    if mandat_id is not None:
        query = query.where(Cotisation.mandat_id == mandat_id)
    if user_id is not None:
        query = query.where(Cotisation.user_id == user_id)

    query = query.order_by(Cotisation.created_at.desc(), Cotisation.id)
    return await paginate(session, query, params)


@db_operation
async def create_cotisation(
    session: AsyncSession, club_id: uuid.UUID, data: CotisationCreate
) -> Cotisation:
    await get_club_by_id(session, club_id)
    mandat = await get_mandat(session, club_id, data.mandat_id)
    await ensure_member(session, club_id, data.user_id)

    existing = await session.execute(
        select(Cotisation.id).where(
            Cotisation.user_id == data.user_id, Cotisation.mandat_id == data.mandat_id
        )
    )
    if existing.first():
        raise DuplicateError("Cotisation", "mandat", mandat.year)

    amount = data.amount if data.amount is not None else mandat.dues_amount
    cotisation = Cotisation(
        club_id=club_id, user_id=data.user_id, mandat_id=mandat.id, amount=amount
    )
    session.add(cotisation)
    await session.commit()
    await session.refresh(cotisation)
    return cotisation


@db_operation
async def update_cotisation(
    session: AsyncSession,
    club_id: uuid.UUID,
    cotisation_id: uuid.UUID,
    data: CotisationUpdate,
) -> Cotisation:
    cotisation = await get_cotisation(session, club_id, cotisation_id)
    cotisation.amount = data.amount
    await session.commit()
    await session.refresh(cotisation)
    return cotisation


@db_operation
async def delete_cotisation(
    session: AsyncSession, club_id: uuid.UUID, cotisation_id: uuid.UUID
) -> None:
    cotisation = await get_cotisation(session, club_id, cotisation_id)
    await session.delete(cotisation)
    await session.commit()


# === Paiements ===
@db_operation
async def get_paiement(
    session: AsyncSession, club_id: uuid.UUID, paiement_id: uuid.UUID
) -> PaiementCotisation:
    paiement = await session.get(PaiementCotisation, paiement_id)
    if paiement is None or paiement.club_id != club_id:
        raise NotFoundError("Paiement", paiement_id)
    return paiement


@db_operation
async def get_paiements(
    session: AsyncSession,
    club_id: uuid.UUID,
    params: ListParams,
    user_id: Optional[uuid.UUID] = None,
) -> Tuple[List[PaiementCotisation], int]:
    await get_club_by_id(session, club_id)
    query = select(PaiementCotisation).where(PaiementCotisation.club_id == club_id)
    if user_id is not None:
        query = query.where(PaiementCotisation.user_id == user_id)

    if params.order_by is None:
        query = query.order_by(PaiementCotisation.paid_on.desc())
    else:
        query = apply_ordering(query, params, PAIEMENT_ORDERING, "date")
    return await paginate(session, query.order_by(PaiementCotisation.id), params)


@db_operation
async def create_paiement(
    session: AsyncSession, club_id: uuid.UUID, data: PaiementCreate
) -> PaiementCotisation:
    await get_club_by_id(session, club_id)
    await ensure_member(session, club_id, data.user_id)

    paiement = PaiementCotisation(club_id=club_id, **data.model_dump())
    session.add(paiement)
    await session.commit()
    await session.refresh(paiement)

    log_business_event(
        "dues_payment_recorded",
        "club",
        club_id,
        {"user_id": str(data.user_id), "amount": str(data.amount)},
    )
    return paiement


@db_operation
async def update_paiement(
    session: AsyncSession,
    club_id: uuid.UUID,
    paiement_id: uuid.UUID,
    data: PaiementUpdate,
) -> PaiementCotisation:
    paiement = await get_paiement(session, club_id, paiement_id)
    for field, value in data.model_dump(exclude_unset=True).items():
        if value is not None:
            setattr(paiement, field, value)
    await session.commit()
    await session.refresh(paiement)
    return paiement


@db_operation
async def delete_paiement(
    session: AsyncSession, club_id: uuid.UUID, paiement_id: uuid.UUID
) -> None:
    paiement = await get_paiement(session, club_id, paiement_id)
    await session.delete(paiement)
    await session.commit()


@db_operation
async def get_member_situation(
    session: AsyncSession, club_id: uuid.UUID, user_id: uuid.UUID
) -> SituationCotisation:
    await get_club_by_id(session, club_id)
    await ensure_member(session, club_id, user_id)

    due_row = (
        await session.execute(
            select(
                func.count(Cotisation.id),
                func.coalesce(func.sum(Cotisation.amount), 0),
            ).where(Cotisation.club_id == club_id, Cotisation.user_id == user_id)
        )
    ).one()
    paid_row = (
        await session.execute(
            select(
                func.count(PaiementCotisation.id),
                func.coalesce(func.sum(PaiementCotisation.amount), 0),
            ).where(
                PaiementCotisation.club_id == club_id,
                PaiementCotisation.user_id == user_id,
            )
        )
    ).one()

    cotisations_count, total_due = due_row
    paiements_count, total_paid = paid_row

    return SituationCotisation(
        user_id=user_id,
        club_id=club_id,
        total_due=total_due,
        total_paid=total_paid,
        balance=dues_balance(total_due, total_paid),
        cotisations_count=cotisations_count,
        paiements_count=paiements_count,
        status=dues_status(total_due, total_paid, cotisations_count),
    )
