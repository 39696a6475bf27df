import uuid
from datetime import date, datetime, time, timedelta
from typing import List, Optional, Tuple

from sqlalchemy import func
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.future import select

from club_manager.clubs.crud.clubs import get_club_by_id
from club_manager.core.bulk import BulkResult, process_sequentially
from club_manager.core.database import (
    check_expected_version,
    commit_versioned,
    db_operation,
)
from club_manager.core.exceptions import DuplicateError, NotFoundError, ValidationError
from club_manager.core.logging_utils import log_business_event
from club_manager.core.pagination import (
    ListParams,
    apply_ordering,
    paginate,
    search_filter,
)
from club_manager.events.models.evenements import (
    Evenement,
    EvenementBudget,
    EvenementRecette,
)
from club_manager.events.schemas.evenements import (
    BudgetLineCreate,
    BudgetLineRead,
    BudgetLineUpdate,
    EvenementCreate,
    EvenementStatistics,
    EvenementSynthese,
    EvenementUpdate,
    MonthCount,
    RecetteBatch,
    RecetteCreate,
    RecetteUpdate,
)
from club_manager.finance.services.aggregation import (
    STATUS_OVERRUN,
    STATUS_UNDER_CONSUMED,
    count_by_status,
    summarize_event,
    summarize_line,
    summarize_lines,
)

EVENEMENT_ORDERING = {
    "date": Evenement.date,
    "libelle": Evenement.label,
    "lieu": Evenement.place,
}


@db_operation
async def get_evenement(
    session: AsyncSession, club_id: uuid.UUID, evenement_id: uuid.UUID
) -> Evenement:
    evenement = await session.get(Evenement, evenement_id)
    if evenement is None or evenement.club_id != club_id:
        raise NotFoundError("Evenement", evenement_id)
    return evenement


@db_operation
async def get_evenements_paginated(
    session: AsyncSession,
    club_id: uuid.UUID,
    params: ListParams,
    is_internal: Optional[bool] = None,
    date_from: Optional[date] = None,
    date_to: Optional[date] = None,
) -> Tuple[List[Evenement], int]:
    await get_club_by_id(session, club_id)
    query = select(Evenement).where(Evenement.club_id == club_id)

    if is_internal is not None:
        query = query.where(Evenement.is_internal.is_(is_internal))
    if date_from is not None:
        query = query.where(Evenement.date >= datetime.combine(date_from, time.min))
    if date_to is not None:
        # date_to is inclusive
        upper = datetime.combine(date_to + timedelta(days=1), time.min)
        query = query.where(Evenement.date < upper)

    condition = search_filter(
        params.recherche, Evenement.label, Evenement.place, Evenement.description
    )
    if condition is not None:
        query = query.where(condition)

    if params.order_by is None:
        query = query.order_by(Evenement.date.desc())
    else:
        query = apply_ordering(query, params, EVENEMENT_ORDERING, "date")
    return await paginate(session, query.order_by(Evenement.id), params)


@db_operation
async def create_evenement(
    session: AsyncSession, club_id: uuid.UUID, data: EvenementCreate
) -> Evenement:
    await get_club_by_id(session, club_id)

    evenement = Evenement(club_id=club_id, **data.model_dump())
    session.add(evenement)
    await session.commit()
    await session.refresh(evenement)

    log_business_event(
        "evenement_created", "evenement", evenement.id, {"club_id": str(club_id)}
    )
    return evenement


@db_operation
async def update_evenement(
    session: AsyncSession,
    club_id: uuid.UUID,
    evenement_id: uuid.UUID,
    data: EvenementUpdate,
) -> Evenement:
    evenement = await get_evenement(session, club_id, evenement_id)
    check_expected_version(evenement, data.version, "Evenement")

    update_data = data.model_dump(exclude_unset=True, exclude={"version"})
    for field in ("label", "date", "is_internal"):
        if field in update_data and update_data[field] is None:
            raise ValidationError(f"{field} cannot be null")

    for field, value in update_data.items():
        setattr(evenement, field, value)

    await commit_versioned(session, Evenement, evenement_id, "Evenement")
    await session.refresh(evenement)
    return evenement


@db_operation
async def delete_evenement(
    session: AsyncSession, club_id: uuid.UUID, evenement_id: uuid.UUID
) -> None:
    """Budget lines and recettes go with the event"""
    evenement = await get_evenement(session, club_id, evenement_id)
    await session.delete(evenement)
    await session.commit()
    log_business_event("evenement_deleted", "evenement", evenement_id)


# === Budget lines ===
def to_budget_line_read(line: EvenementBudget) -> BudgetLineRead:
    figures = summarize_line(line.planned_amount, line.realized_amount)
    return BudgetLineRead(
        id=line.id,
        evenement_id=line.evenement_id,
        label=line.label,
        planned_amount=figures.planned,
        realized_amount=figures.realized,
        variance=figures.variance,
        percent_realized=figures.percent_realized,
        status=figures.status,
    )


async def _event_lines(
    session: AsyncSession, evenement_id: uuid.UUID
) -> List[EvenementBudget]:
    result = await session.execute(
        select(EvenementBudget)
        .where(EvenementBudget.evenement_id == evenement_id)
        .order_by(EvenementBudget.label)
    )
    return list(result.scalars().all())


async def _event_recettes(
    session: AsyncSession, evenement_id: uuid.UUID
) -> List[EvenementRecette]:
    result = await session.execute(
        select(EvenementRecette)
        .where(EvenementRecette.evenement_id == evenement_id)
        .order_by(EvenementRecette.label)
    )
    return list(result.scalars().all())


async def _check_line_label_available(
    session: AsyncSession,
    evenement_id: uuid.UUID,
    label: str,
    exclude_id: Optional[uuid.UUID] = None,
):
    query = select(EvenementBudget.id).where(
        EvenementBudget.evenement_id == evenement_id,
        func.lower(EvenementBudget.label) == label.lower(),
    )
    if exclude_id is not None:
        query = query.where(EvenementBudget.id != exclude_id)
    if (await session.execute(query)).first():
        raise DuplicateError("Evenement budget", "label", label)


@db_operation
async def get_budget_lines(
    session: AsyncSession, club_id: uuid.UUID, evenement_id: uuid.UUID
) -> List[BudgetLineRead]:
    await get_evenement(session, club_id, evenement_id)
    lines = await _event_lines(session, evenement_id)
    return [to_budget_line_read(line) for line in lines]


@db_operation
async def get_budget_line(
    session: AsyncSession,
    club_id: uuid.UUID,
    evenement_id: uuid.UUID,
    line_id: uuid.UUID,
) -> EvenementBudget:
    await get_evenement(session, club_id, evenement_id)
    line = await session.get(EvenementBudget, line_id)
    if line is None or line.evenement_id != evenement_id:
        raise NotFoundError("Evenement budget", line_id)
    return line


@db_operation
async def create_budget_line(
    session: AsyncSession,
    club_id: uuid.UUID,
    evenement_id: uuid.UUID,
    data: BudgetLineCreate,
) -> BudgetLineRead:
    await get_evenement(session, club_id, evenement_id)
    await _check_line_label_available(session, evenement_id, data.label)

    line = EvenementBudget(evenement_id=evenement_id, **data.model_dump())
    session.add(line)
    await session.commit()
    await session.refresh(line)
    return to_budget_line_read(line)


@db_operation
async def update_budget_line(
    session: AsyncSession,
    club_id: uuid.UUID,
    evenement_id: uuid.UUID,
    line_id: uuid.UUID,
    data: BudgetLineUpdate,
) -> BudgetLineRead:
    line = await get_budget_line(session, club_id, evenement_id, line_id)
    update_data = {
        k: v for k, v in data.model_dump(exclude_unset=True).items() if v is not None
    }

    if "label" in update_data and update_data["label"] != line.label:
        await _check_line_label_available(
            session, evenement_id, update_data["label"], exclude_id=line.id
        )

    for field, value in update_data.items():
        setattr(line, field, value)

    await session.commit()
    await session.refresh(line)
    return to_budget_line_read(line)


@db_operation
async def set_realized_amount(
    session: AsyncSession,
    club_id: uuid.UUID,
    evenement_id: uuid.UUID,
    line_id: uuid.UUID,
    realized_amount,
) -> BudgetLineRead:
    line = await get_budget_line(session, club_id, evenement_id, line_id)
    line.realized_amount = realized_amount
    await session.commit()
    await session.refresh(line)

    log_business_event(
        "evenement_expense_realized",
        "evenement",
        evenement_id,
        {"line_id": str(line_id), "realized": str(realized_amount)},
    )
    return to_budget_line_read(line)


@db_operation
async def delete_budget_line(
    session: AsyncSession,
    club_id: uuid.UUID,
    evenement_id: uuid.UUID,
    line_id: uuid.UUID,
) -> None:
    line = await get_budget_line(session, club_id, evenement_id, line_id)
    await session.delete(line)
    await session.commit()


# === Recettes ===
@db_operation
async def get_recettes(
    session: AsyncSession, club_id: uuid.UUID, evenement_id: uuid.UUID
) -> List[EvenementRecette]:
    await get_evenement(session, club_id, evenement_id)
    return await _event_recettes(session, evenement_id)


@db_operation
async def get_recette(
    session: AsyncSession,
    club_id: uuid.UUID,
    evenement_id: uuid.UUID,
    recette_id: uuid.UUID,
) -> EvenementRecette:
    await get_evenement(session, club_id, evenement_id)
    recette = await session.get(EvenementRecette, recette_id)
    if recette is None or recette.evenement_id != evenement_id:
        raise NotFoundError("Evenement recette", recette_id)
    return recette


@db_operation
async def create_recette(
    session: AsyncSession,
    club_id: uuid.UUID,
    evenement_id: uuid.UUID,
    data: RecetteCreate,
) -> EvenementRecette:
    await get_evenement(session, club_id, evenement_id)

    recette = EvenementRecette(evenement_id=evenement_id, **data.model_dump())
    session.add(recette)
    await session.commit()
    await session.refresh(recette)
    return recette


@db_operation
async def create_recettes_batch(
    session: AsyncSession,
    club_id: uuid.UUID,
    evenement_id: uuid.UUID,
    data: RecetteBatch,
) -> BulkResult:
    await get_evenement(session, club_id, evenement_id)

    async def add_one(item: RecetteCreate):
        session.add(EvenementRecette(evenement_id=evenement_id, **item.model_dump()))

    result = await process_sequentially(
        session, data.recettes, add_one, describe=lambda item: item.label
    )
    log_business_event(
        "recettes_batch_processed",
        "evenement",
        evenement_id,
        {"created": result.created, "failed": len(result.errors)},
    )
    return result


@db_operation
async def update_recette(
    session: AsyncSession,
    club_id: uuid.UUID,
    evenement_id: uuid.UUID,
    recette_id: uuid.UUID,
    data: RecetteUpdate,
) -> EvenementRecette:
    recette = await get_recette(session, club_id, evenement_id, recette_id)
    for field, value in data.model_dump(exclude_unset=True).items():
        if value is not None:
            setattr(recette, field, value)

    await session.commit()
    await session.refresh(recette)
    return recette


@db_operation
async def delete_recette(
    session: AsyncSession,
    club_id: uuid.UUID,
    evenement_id: uuid.UUID,
    recette_id: uuid.UUID,
) -> None:
    recette = await get_recette(session, club_id, evenement_id, recette_id)
    await session.delete(recette)
    await session.commit()


# === Aggregates ===
@db_operation
async def get_evenement_synthese(
    session: AsyncSession, club_id: uuid.UUID, evenement_id: uuid.UUID
) -> EvenementSynthese:
    evenement = await get_evenement(session, club_id, evenement_id)
    pairs = [
        (line.planned_amount, line.realized_amount)
        for line in await _event_lines(session, evenement_id)
    ]
    recettes = await _event_recettes(session, evenement_id)
    revenues = [recette.amount for recette in recettes]
    by_status = count_by_status(pairs)

    return EvenementSynthese(
        evenement_id=evenement.id,
        label=evenement.label,
        date=evenement.date,
        budget=summarize_lines(pairs),
        result=summarize_event(pairs, revenues),
        budget_lines_count=len(pairs),
        recettes_count=len(revenues),
        lines_by_status=by_status,
        overrun_lines=by_status[STATUS_OVERRUN],
        under_consumed_lines=by_status[STATUS_UNDER_CONSUMED],
    )


@db_operation
async def get_evenement_statistics(
    session: AsyncSession, club_id: uuid.UUID, year: int
) -> EvenementStatistics:
    """Counts and club-wide totals of the events held during `year`"""
    await get_club_by_id(session, club_id)

    start = datetime(year, 1, 1)
    end = datetime(year + 1, 1, 1)
    result = await session.execute(
        select(Evenement).where(
            Evenement.club_id == club_id,
            Evenement.date >= start,
            Evenement.date < end,
        )
    )
    evenements = list(result.scalars().all())
    ids = [evenement.id for evenement in evenements]

    per_month = {month: 0 for month in range(1, 13)}
    for evenement in evenements:
        per_month[evenement.date.month] += 1

    pairs = []
    revenues = []
    if ids:
        lines = await session.execute(
            select(
                EvenementBudget.planned_amount, EvenementBudget.realized_amount
            ).where(EvenementBudget.evenement_id.in_(ids))
        )
        pairs = [tuple(row) for row in lines.all()]
        recettes = await session.execute(
            select(EvenementRecette.amount).where(
                EvenementRecette.evenement_id.in_(ids)
            )
        )
        revenues = list(recettes.scalars().all())

    totals = summarize_event(pairs, revenues)
    internal = sum(1 for evenement in evenements if evenement.is_internal)

    return EvenementStatistics(
        club_id=club_id,
        year=year,
        total=len(evenements),
        internal=internal,
        external=len(evenements) - internal,
        total_planned=totals.total_planned,
        total_realized=totals.total_realized,
        total_revenue=totals.total_revenue,
        net_result=totals.net_result,
        per_month=[
            MonthCount(month=month, count=count) for month, count in per_month.items()
        ],
    )
