import uuid
from decimal import Decimal
from typing import List, Optional, Tuple

from sqlalchemy import func
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.future import select

from club_manager.clubs.crud.mandats import get_mandat
from club_manager.core.database import (
    check_expected_version,
    commit_versioned,
    db_operation,
)
from club_manager.core.exceptions import DuplicateError, NotFoundError
from club_manager.core.logging_utils import log_business_event
from club_manager.core.pagination import ListParams, paginate
from club_manager.finance.crud.budgets import get_sous_category
from club_manager.finance.crud.reports import (
    ReportFilters,
    breakdown_by_type,
    get_report_lines,
    rubrique_lines_query,
)
from club_manager.finance.models.rubriques import RubriqueBudget, RubriqueRealisation
from club_manager.finance.schemas.rubriques import (
    RealisationCreate,
    RealisationUpdate,
    RubriqueCreate,
    RubriqueRead,
    RubriqueStatistics,
    RubriqueUpdate,
)
from club_manager.finance.services.aggregation import (
    count_by_status,
    summarize_line,
    summarize_lines,
)


def to_rubrique_read(rubrique: RubriqueBudget) -> RubriqueRead:
    figures = summarize_line(rubrique.planned_amount, rubrique.realized_amount)
    return RubriqueRead(
        id=rubrique.id,
        club_id=rubrique.club_id,
        mandat_id=rubrique.mandat_id,
        label=rubrique.label,
        unit_price=rubrique.unit_price,
        quantity=rubrique.quantity,
        sous_category_id=rubrique.sous_category_id,
        planned_amount=figures.planned,
        realized_amount=figures.realized,
        variance=figures.variance,
        percent_realized=figures.percent_realized,
        status=figures.status,
        version=rubrique.version,
    )


@db_operation
async def get_rubrique(
    session: AsyncSession,
    club_id: uuid.UUID,
    rubrique_id: uuid.UUID,
    mandat_id: Optional[uuid.UUID] = None,
) -> RubriqueBudget:
    rubrique = await session.get(RubriqueBudget, rubrique_id)
    if rubrique is None or rubrique.club_id != club_id:
        raise NotFoundError("Rubrique budget", rubrique_id)
    if mandat_id is not None and rubrique.mandat_id != mandat_id:
        raise NotFoundError("Rubrique budget", rubrique_id)
    return rubrique


@db_operation
async def get_rubriques_paginated(
    session: AsyncSession,
    club_id: uuid.UUID,
    mandat_id: uuid.UUID,
    params: ListParams,
    filters: Optional[ReportFilters] = None,
) -> Tuple[List[RubriqueRead], int]:
    await get_mandat(session, club_id, mandat_id)
    filters = filters or ReportFilters()
    filters.recherche = params.recherche

    query = rubrique_lines_query(
        club_id, mandat_id, filters, params.order_by, params.descending
    )
    rows, total = await paginate(session, query, params, scalars=False)
    return [to_rubrique_read(row[0]) for row in rows], total


async def _check_label_available(
    session: AsyncSession,
    mandat_id: uuid.UUID,
    sous_category_id: uuid.UUID,
    label: str,
    exclude_id: Optional[uuid.UUID] = None,
):
    query = select(RubriqueBudget.id).where(
        RubriqueBudget.mandat_id == mandat_id,
        RubriqueBudget.sous_category_id == sous_category_id,
        func.lower(RubriqueBudget.label) == label.lower(),
    )
    if exclude_id is not None:
        query = query.where(RubriqueBudget.id != exclude_id)
    if (await session.execute(query)).first():
        raise DuplicateError("Rubrique budget", "label", label)


@db_operation
async def create_rubrique(
    session: AsyncSession,
    club_id: uuid.UUID,
    mandat_id: uuid.UUID,
    data: RubriqueCreate,
) -> RubriqueRead:
    await get_mandat(session, club_id, mandat_id)
    await get_sous_category(session, club_id, data.sous_category_id)
    await _check_label_available(session, mandat_id, data.sous_category_id, data.label)

    rubrique = RubriqueBudget(
        club_id=club_id,
        mandat_id=mandat_id,
        realized_amount=Decimal(0),
        **data.model_dump(),
    )
    session.add(rubrique)
    await session.commit()
    await session.refresh(rubrique)

    log_business_event(
        "rubrique_created",
        "rubrique_budget",
        rubrique.id,
        {"mandat_id": str(mandat_id), "planned": str(rubrique.planned_amount)},
    )
    return to_rubrique_read(rubrique)


@db_operation
async def update_rubrique(
    session: AsyncSession,
    club_id: uuid.UUID,
    mandat_id: uuid.UUID,
    rubrique_id: uuid.UUID,
    data: RubriqueUpdate,
) -> RubriqueRead:
    rubrique = await get_rubrique(session, club_id, rubrique_id, mandat_id)
    check_expected_version(rubrique, data.version, "Rubrique budget")

    update_data = data.model_dump(exclude_unset=True, exclude={"version"})
    update_data = {k: v for k, v in update_data.items() if v is not None}

    sous_category_id = update_data.get("sous_category_id", rubrique.sous_category_id)
    if sous_category_id != rubrique.sous_category_id:
        await get_sous_category(session, club_id, sous_category_id)

    label = update_data.get("label", rubrique.label)
    if label != rubrique.label or sous_category_id != rubrique.sous_category_id:
        await _check_label_available(
            session, mandat_id, sous_category_id, label, exclude_id=rubrique.id
        )

    for field, value in update_data.items():
        setattr(rubrique, field, value)

    await commit_versioned(session, RubriqueBudget, rubrique_id, "Rubrique budget")
    await session.refresh(rubrique)
    return to_rubrique_read(rubrique)


@db_operation
async def delete_rubrique(
    session: AsyncSession,
    club_id: uuid.UUID,
    mandat_id: uuid.UUID,
    rubrique_id: uuid.UUID,
) -> None:
    """Realisations are deleted with their rubrique"""
    rubrique = await get_rubrique(session, club_id, rubrique_id, mandat_id)
    await session.delete(rubrique)
    await session.commit()
    log_business_event("rubrique_deleted", "rubrique_budget", rubrique_id)


@db_operation
async def get_rubrique_statistics(
    session: AsyncSession, club_id: uuid.UUID, mandat_id: uuid.UUID
) -> RubriqueStatistics:
    await get_mandat(session, club_id, mandat_id)
    lines = await get_report_lines(session, club_id, mandat_id)
    pairs = [(line.planned_amount, line.realized_amount) for line in lines]

    total_realisations = await session.scalar(
        select(func.count(RubriqueRealisation.id))
        .join(RubriqueBudget, RubriqueRealisation.rubrique_id == RubriqueBudget.id)
        .where(
            RubriqueBudget.club_id == club_id, RubriqueBudget.mandat_id == mandat_id
        )
    )

    return RubriqueStatistics(
        club_id=club_id,
        mandat_id=mandat_id,
        lines_count=len(lines),
        totals=summarize_lines(pairs),
        by_type=breakdown_by_type(lines),
        by_status=count_by_status(pairs),
        realisations_count=total_realisations or 0,
    )


# === Realisations ===
async def _recompute_realized(session: AsyncSession, rubrique: RubriqueBudget):
    """Realized amount of a rubrique is the sum of its realisations"""
    await session.flush()
    total = await session.scalar(
        select(func.coalesce(func.sum(RubriqueRealisation.amount), 0)).where(
            RubriqueRealisation.rubrique_id == rubrique.id
        )
    )
    rubrique.realized_amount = Decimal(str(total))


async def _get_realisation(
    session: AsyncSession, rubrique: RubriqueBudget, realisation_id: uuid.UUID
) -> RubriqueRealisation:
    realisation = await session.get(RubriqueRealisation, realisation_id)
    if realisation is None or realisation.rubrique_id != rubrique.id:
        raise NotFoundError("Realisation", realisation_id)
    return realisation


@db_operation
async def get_realisations(
    session: AsyncSession, club_id: uuid.UUID, rubrique_id: uuid.UUID
) -> List[RubriqueRealisation]:
    await get_rubrique(session, club_id, rubrique_id)
    result = await session.execute(
        select(RubriqueRealisation)
        .where(RubriqueRealisation.rubrique_id == rubrique_id)
        .order_by(RubriqueRealisation.date.desc(), RubriqueRealisation.created_at)
    )
    return list(result.scalars().all())


@db_operation
async def add_realisation(
    session: AsyncSession,
    club_id: uuid.UUID,
    rubrique_id: uuid.UUID,
    data: RealisationCreate,
) -> RubriqueRealisation:
    rubrique = await get_rubrique(session, club_id, rubrique_id)

    realisation = RubriqueRealisation(rubrique_id=rubrique.id, **data.model_dump())
    session.add(realisation)
    await _recompute_realized(session, rubrique)

    await commit_versioned(session, RubriqueBudget, rubrique_id, "Rubrique budget")
    await session.refresh(realisation)

    log_business_event(
        "realisation_recorded",
        "rubrique_budget",
        rubrique_id,
        {"amount": str(data.amount), "realized": str(rubrique.realized_amount)},
    )
    return realisation


@db_operation
async def update_realisation(
    session: AsyncSession,
    club_id: uuid.UUID,
    rubrique_id: uuid.UUID,
    realisation_id: uuid.UUID,
    data: RealisationUpdate,
) -> RubriqueRealisation:
    rubrique = await get_rubrique(session, club_id, rubrique_id)
    realisation = await _get_realisation(session, rubrique, realisation_id)

    for field, value in data.model_dump(exclude_unset=True).items():
        if value is not None or field == "comment":
            setattr(realisation, field, value)
    await _recompute_realized(session, rubrique)

    await commit_versioned(session, RubriqueBudget, rubrique_id, "Rubrique budget")
    await session.refresh(realisation)

    log_business_event(
        "realisation_updated",
        "rubrique_budget",
        rubrique_id,
        {
            "realisation_id": str(realisation_id),
            "realized": str(rubrique.realized_amount),
        },
    )
    return realisation


@db_operation
async def delete_realisation(
    session: AsyncSession,
    club_id: uuid.UUID,
    rubrique_id: uuid.UUID,
    realisation_id: uuid.UUID,
) -> None:
    rubrique = await get_rubrique(session, club_id, rubrique_id)
    realisation = await _get_realisation(session, rubrique, realisation_id)
    await session.delete(realisation)
    await _recompute_realized(session, rubrique)

    await commit_versioned(session, RubriqueBudget, rubrique_id, "Rubrique budget")
    log_business_event(
        "realisation_removed",
        "rubrique_budget",
        rubrique_id,
        {"realized": str(rubrique.realized_amount)},
    )
