import uuid
from typing import List, Tuple

from sqlalchemy import func
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.future import select

from club_manager.clubs.crud.clubs import get_club_by_id
from club_manager.core.database import db_operation
from club_manager.core.exceptions import (
    DependentRecordsError,
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
from club_manager.finance.models.budgets import (
    CategoryBudget,
    SousCategoryBudget,
    TypeBudget,
)
from club_manager.finance.models.rubriques import RubriqueBudget
from club_manager.finance.schemas.budgets import (
    CategoryBudgetCreate,
    SousCategoryCreate,
    SousCategoryRead,
    SousCategoryUpdate,
    TypeBudgetCreate,
)

SOUS_CATEGORY_ORDERING = {
    "libelle": SousCategoryBudget.label,
    "categorie": CategoryBudget.label,
    "typebudget": TypeBudget.label,
}


# === Types and categories (global) ===
@db_operation
async def get_types_budget(session: AsyncSession) -> List[TypeBudget]:
    result = await session.execute(select(TypeBudget).order_by(TypeBudget.label))
    return list(result.scalars().all())


@db_operation
async def get_type_budget(session: AsyncSession, type_id: uuid.UUID) -> TypeBudget:
    type_budget = await session.get(TypeBudget, type_id)
    if type_budget is None:
        raise NotFoundError("Type budget", type_id)
    return type_budget


@db_operation
async def create_type_budget(
    session: AsyncSession, data: TypeBudgetCreate
) -> TypeBudget:
    existing = await session.execute(
        select(TypeBudget.id).where(func.lower(TypeBudget.label) == data.label.lower())
    )
    if existing.first():
        raise DuplicateError("Type budget", "label", data.label)

    type_budget = TypeBudget(label=data.label)
    session.add(type_budget)
    await session.commit()
    await session.refresh(type_budget)
    return type_budget


@db_operation
async def get_categories(
    session: AsyncSession, type_id: uuid.UUID
) -> List[CategoryBudget]:
    await get_type_budget(session, type_id)
    result = await session.execute(
        select(CategoryBudget)
        .where(CategoryBudget.type_budget_id == type_id)
        .order_by(CategoryBudget.label)
    )
    return list(result.scalars().all())


@db_operation
async def create_category(
    session: AsyncSession, type_id: uuid.UUID, data: CategoryBudgetCreate
) -> CategoryBudget:
    await get_type_budget(session, type_id)
    existing = await session.execute(
        select(CategoryBudget.id).where(
            CategoryBudget.type_budget_id == type_id,
            func.lower(CategoryBudget.label) == data.label.lower(),
        )
    )
    if existing.first():
        raise DuplicateError("Category budget", "label", data.label)

    category = CategoryBudget(label=data.label, type_budget_id=type_id)
    session.add(category)
    await session.commit()
    await session.refresh(category)
    return category


@db_operation
async def get_category(
    session: AsyncSession, category_id: uuid.UUID
) -> CategoryBudget:
    category = await session.get(CategoryBudget, category_id)
    if category is None:
        raise NotFoundError("Category budget", category_id)
    return category


# === Sous-categories (per club) ===
def _sous_category_query():
    return (
        select(SousCategoryBudget, CategoryBudget, TypeBudget)
        .join(CategoryBudget, SousCategoryBudget.category_id == CategoryBudget.id)
        .join(TypeBudget, CategoryBudget.type_budget_id == TypeBudget.id)
    )


def _to_read(sous_category, category, type_budget) -> SousCategoryRead:
    return SousCategoryRead(
        id=sous_category.id,
        label=sous_category.label,
        club_id=sous_category.club_id,
        category_id=category.id,
        category_label=category.label,
        type_budget_id=type_budget.id,
        type_budget_label=type_budget.label,
    )


async def _check_label_available(
    session: AsyncSession,
    club_id: uuid.UUID,
    category_id: uuid.UUID,
    label: str,
    exclude_id: uuid.UUID = None,
):
    query = select(SousCategoryBudget.id).where(
        SousCategoryBudget.club_id == club_id,
        SousCategoryBudget.category_id == category_id,
        func.lower(SousCategoryBudget.label) == label.lower(),
    )
    if exclude_id is not None:
        query = query.where(SousCategoryBudget.id != exclude_id)
    if (await session.execute(query)).first():
        raise DuplicateError("Sous-category budget", "label", label)


@db_operation
async def get_sous_category(
    session: AsyncSession, club_id: uuid.UUID, sous_category_id: uuid.UUID
) -> SousCategoryBudget:
    sous_category = await session.get(SousCategoryBudget, sous_category_id)
    if sous_category is None or sous_category.club_id != club_id:
        raise NotFoundError("Sous-category budget", sous_category_id)
    return sous_category


@db_operation
async def get_sous_category_read(
    session: AsyncSession, club_id: uuid.UUID, sous_category_id: uuid.UUID
) -> SousCategoryRead:
    result = await session.execute(
        _sous_category_query().where(
            SousCategoryBudget.id == sous_category_id,
            SousCategoryBudget.club_id == club_id,
        )
    )
    row = result.first()
    if row is None:
        raise NotFoundError("Sous-category budget", sous_category_id)
    return _to_read(*row)


@db_operation
async def get_sous_categories_paginated(
    session: AsyncSession,
    club_id: uuid.UUID,
    params: ListParams,
    category_id: uuid.UUID = None,
    type_budget_id: uuid.UUID = None,
) -> Tuple[List[SousCategoryRead], int]:
    await get_club_by_id(session, club_id)
    query = _sous_category_query().where(SousCategoryBudget.club_id == club_id)

    if category_id is not None:
        query = query.where(SousCategoryBudget.category_id == category_id)
    if type_budget_id is not None:
        query = query.where(CategoryBudget.type_budget_id == type_budget_id)

    condition = search_filter(params.recherche, SousCategoryBudget.label)
    if condition is not None:
        query = query.where(condition)

    query = apply_ordering(query, params, SOUS_CATEGORY_ORDERING, "libelle")
    rows, total = await paginate(
        session, query.order_by(SousCategoryBudget.id), params, scalars=False
    )
    return [_to_read(*row) for row in rows], total


@db_operation
async def create_sous_category(
    session: AsyncSession, club_id: uuid.UUID, data: SousCategoryCreate
) -> SousCategoryRead:
    await get_club_by_id(session, club_id)
    await get_category(session, data.category_id)
    await _check_label_available(session, club_id, data.category_id, data.label)

    sous_category = SousCategoryBudget(
        club_id=club_id, category_id=data.category_id, label=data.label
    )
    session.add(sous_category)
    await session.commit()

    log_business_event(
        "sous_category_created",
        "sous_category_budget",
        sous_category.id,
        {"club_id": str(club_id), "label": data.label},
    )
    return await get_sous_category_read(session, club_id, sous_category.id)


@db_operation
async def update_sous_category(
    session: AsyncSession,
    club_id: uuid.UUID,
    sous_category_id: uuid.UUID,
    data: SousCategoryUpdate,
) -> SousCategoryRead:
    sous_category = await get_sous_category(session, club_id, sous_category_id)
    update_data = data.model_dump(exclude_unset=True)

    category_id = update_data.get("category_id") or sous_category.category_id
    if category_id != sous_category.category_id:
        await get_category(session, category_id)

    label = update_data.get("label") or sous_category.label
    await _check_label_available(
        session, club_id, category_id, label, exclude_id=sous_category.id
    )

    sous_category.category_id = category_id
    sous_category.label = label
    await session.commit()
    return await get_sous_category_read(session, club_id, sous_category_id)


@db_operation
async def delete_sous_category(
    session: AsyncSession, club_id: uuid.UUID, sous_category_id: uuid.UUID
) -> None:
    sous_category = await get_sous_category(session, club_id, sous_category_id)

    rubriques = await session.scalar(
        select(func.count(RubriqueBudget.id)).where(
            RubriqueBudget.sous_category_id == sous_category_id
        )
    )
    if rubriques:
        raise DependentRecordsError("sous-category budget", {"rubriques": rubriques})

    await session.delete(sous_category)
    await session.commit()
    log_business_event(
        "sous_category_deleted", "sous_category_budget", sous_category_id
    )
