import uuid
from typing import List, Optional

from fastapi import APIRouter, Depends, Query, Request, Response, status
from sqlalchemy.ext.asyncio import AsyncSession

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
from club_manager.core.pagination import ListParams, set_pagination_headers
from club_manager.finance.crud.budgets import (
    create_category,
    create_sous_category,
    create_type_budget,
    delete_sous_category,
    get_categories,
    get_sous_categories_paginated,
    get_sous_category_read,
    get_types_budget,
    update_sous_category,
)
from club_manager.finance.schemas.budgets import (
    CategoryBudgetCreate,
    CategoryBudgetRead,
    SousCategoryCreate,
    SousCategoryRead,
    SousCategoryUpdate,
    TypeBudgetCreate,
    TypeBudgetRead,
)

types_router = APIRouter(prefix="/types-budget", tags=["Budget types"])
router = APIRouter(
    prefix="/clubs/{club_id}/sous-categories-budget", tags=["Budget"]
)


# === Global lookups ===
@types_router.get("/", response_model=List[TypeBudgetRead])
async def list_types_budget(
    caller: Caller = Depends(get_current_caller),
    db: AsyncSession = Depends(get_session),
):
    return await get_types_budget(db)


@types_router.post(
    "/", response_model=TypeBudgetRead, status_code=status.HTTP_201_CREATED
)
async def create_new_type_budget(
    data: TypeBudgetCreate,
    caller: Caller = Depends(require_admin),
    db: AsyncSession = Depends(get_session),
):
    return await create_type_budget(db, data)


@types_router.get("/{type_id}/categories", response_model=List[CategoryBudgetRead])
async def list_categories(
    type_id: uuid.UUID,
    caller: Caller = Depends(get_current_caller),
    db: AsyncSession = Depends(get_session),
):
    ensure_identifier(type_id, "type_id")
    return await get_categories(db, type_id)


@types_router.post(
    "/{type_id}/categories",
    response_model=CategoryBudgetRead,
    status_code=status.HTTP_201_CREATED,
)
async def create_new_category(
    type_id: uuid.UUID,
    data: CategoryBudgetCreate,
    caller: Caller = Depends(require_admin),
    db: AsyncSession = Depends(get_session),
):
    ensure_identifier(type_id, "type_id")
    return await create_category(db, type_id, data)


# === Sous-categories ===
@router.get("/", response_model=List[SousCategoryRead])
@limiter.limit("60/minute")
async def list_sous_categories(
    request: Request,
    response: Response,
    club_id: uuid.UUID,
    params: ListParams = Depends(),
    category_id: Optional[uuid.UUID] = Query(None, alias="categoryBudgetId"),
    type_budget_id: Optional[uuid.UUID] = Query(None, alias="typeBudgetId"),
    caller: Caller = Depends(require_club_access),
    db: AsyncSession = Depends(get_session),
):
    """
    Sous-categories of the club.

    - **orderBy**: libelle (default), categorie, typebudget
    - **recherche**: contained in the libellé
    """
    items, total = await get_sous_categories_paginated(
        db, club_id, params, category_id=category_id, type_budget_id=type_budget_id
    )
    set_pagination_headers(response, params, total)
    return items


@router.get("/{sous_category_id}", response_model=SousCategoryRead)
@limiter.limit("60/minute")
async def read_sous_category(
    request: Request,
    club_id: uuid.UUID,
    sous_category_id: uuid.UUID,
    caller: Caller = Depends(require_club_access),
    db: AsyncSession = Depends(get_session),
):
    ensure_identifier(sous_category_id, "sous_category_id")
    return await get_sous_category_read(db, club_id, sous_category_id)


@router.post("/", response_model=SousCategoryRead, status_code=status.HTTP_201_CREATED)
@limiter.limit("30/minute")
async def create_new_sous_category(
    request: Request,
    club_id: uuid.UUID,
    data: SousCategoryCreate,
    caller: Caller = Depends(require_club_manager("budget")),
    db: AsyncSession = Depends(get_session),
):
    return await create_sous_category(db, club_id, data)


@router.put("/{sous_category_id}", response_model=SousCategoryRead)
@limiter.limit("30/minute")
async def update_existing_sous_category(
    request: Request,
    club_id: uuid.UUID,
    sous_category_id: uuid.UUID,
    data: SousCategoryUpdate,
    caller: Caller = Depends(require_club_manager("budget")),
    db: AsyncSession = Depends(get_session),
):
    ensure_identifier(sous_category_id, "sous_category_id")
    return await update_sous_category(db, club_id, sous_category_id, data)


@router.delete("/{sous_category_id}", status_code=status.HTTP_204_NO_CONTENT)
@limiter.limit("30/minute")
async def remove_sous_category(
    request: Request,
    club_id: uuid.UUID,
    sous_category_id: uuid.UUID,
    caller: Caller = Depends(require_club_manager("budget")),
    db: AsyncSession = Depends(get_session),
):
    """Blocked while rubriques use the sous-category"""
    ensure_identifier(sous_category_id, "sous_category_id")
    await delete_sous_category(db, club_id, sous_category_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
