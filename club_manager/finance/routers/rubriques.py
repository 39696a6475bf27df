import uuid
from typing import List, Optional

from fastapi import APIRouter, Depends, Query, Request, Response, status
from sqlalchemy.ext.asyncio import AsyncSession

from club_manager.core.access import Caller
from club_manager.core.database import get_session
from club_manager.core.dependencies import (
    ensure_identifier,
    require_club_access,
    require_club_manager,
)
from club_manager.core.limits import limiter
from club_manager.core.pagination import ListParams, set_pagination_headers
from club_manager.finance.crud.reports import ReportFilters
from club_manager.finance.crud.rubriques import (
    add_realisation,
    create_rubrique,
    delete_realisation,
    delete_rubrique,
    get_realisations,
    get_rubrique,
    get_rubrique_statistics,
    get_rubriques_paginated,
    to_rubrique_read,
    update_realisation,
    update_rubrique,
)
from club_manager.finance.schemas.rubriques import (
    RealisationCreate,
    RealisationRead,
    RealisationUpdate,
    RubriqueCreate,
    RubriqueRead,
    RubriqueStatistics,
    RubriqueUpdate,
)

router = APIRouter(
    prefix="/clubs/{club_id}/mandats/{mandat_id}/rubriques", tags=["Budget"]
)
realisations_router = APIRouter(
    prefix="/clubs/{club_id}/rubriques/{rubrique_id}/realisations",
    tags=["Budget"],
)


@router.get("/", response_model=List[RubriqueRead])
@limiter.limit("60/minute")
async def list_rubriques(
    request: Request,
    response: Response,
    club_id: uuid.UUID,
    mandat_id: uuid.UUID,
    params: ListParams = Depends(),
    sous_category_id: Optional[uuid.UUID] = Query(None, alias="sousCategoryBudgetId"),
    caller: Caller = Depends(require_club_access),
    db: AsyncSession = Depends(get_session),
):
    """Rubriques of the mandat with their planned/realized figures"""
    ensure_identifier(mandat_id, "mandat_id")
    items, total = await get_rubriques_paginated(
        db,
        club_id,
        mandat_id,
        params,
        ReportFilters(sous_category_id=sous_category_id),
    )
    set_pagination_headers(response, params, total)
    return items


@router.get("/statistiques", response_model=RubriqueStatistics)
@limiter.limit("30/minute")
async def rubrique_statistics(
    request: Request,
    club_id: uuid.UUID,
    mandat_id: uuid.UUID,
    caller: Caller = Depends(require_club_access),
    db: AsyncSession = Depends(get_session),
):
    """Totals of the mandat budget, per budget type and per status"""
    ensure_identifier(mandat_id, "mandat_id")
    return await get_rubrique_statistics(db, club_id, mandat_id)


@router.get("/{rubrique_id}", response_model=RubriqueRead)
@limiter.limit("60/minute")
async def read_rubrique(
    request: Request,
    club_id: uuid.UUID,
    mandat_id: uuid.UUID,
    rubrique_id: uuid.UUID,
    caller: Caller = Depends(require_club_access),
    db: AsyncSession = Depends(get_session),
):
    ensure_identifier(mandat_id, "mandat_id")
    ensure_identifier(rubrique_id, "rubrique_id")
    rubrique = await get_rubrique(db, club_id, rubrique_id, mandat_id)
    return to_rubrique_read(rubrique)


@router.post("/", response_model=RubriqueRead, status_code=status.HTTP_201_CREATED)
@limiter.limit("30/minute")
async def create_new_rubrique(
    request: Request,
    club_id: uuid.UUID,
    mandat_id: uuid.UUID,
    data: RubriqueCreate,
    caller: Caller = Depends(require_club_manager("budget")),
    db: AsyncSession = Depends(get_session),
):
    """
    Add a budget line.

    - **unit_price** × **quantity** is the planned amount
    - **label**: unique per sous-category within the mandat
    """
    ensure_identifier(mandat_id, "mandat_id")
    return await create_rubrique(db, club_id, mandat_id, data)


@router.put("/{rubrique_id}", response_model=RubriqueRead)
@limiter.limit("30/minute")
async def update_existing_rubrique(
    request: Request,
    club_id: uuid.UUID,
    mandat_id: uuid.UUID,
    rubrique_id: uuid.UUID,
    data: RubriqueUpdate,
    caller: Caller = Depends(require_club_manager("budget")),
    db: AsyncSession = Depends(get_session),
):
    ensure_identifier(mandat_id, "mandat_id")
    ensure_identifier(rubrique_id, "rubrique_id")
    return await update_rubrique(db, club_id, mandat_id, rubrique_id, data)


@router.delete("/{rubrique_id}", status_code=status.HTTP_204_NO_CONTENT)
@limiter.limit("30/minute")
async def remove_rubrique(
    request: Request,
    club_id: uuid.UUID,
    mandat_id: uuid.UUID,
    rubrique_id: uuid.UUID,
    caller: Caller = Depends(require_club_manager("budget")),
    db: AsyncSession = Depends(get_session),
):
    ensure_identifier(mandat_id, "mandat_id")
    ensure_identifier(rubrique_id, "rubrique_id")
    await delete_rubrique(db, club_id, mandat_id, rubrique_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


# === Realisations ===
@realisations_router.get("/", response_model=List[RealisationRead])
@limiter.limit("60/minute")
async def list_realisations(
    request: Request,
    club_id: uuid.UUID,
    rubrique_id: uuid.UUID,
    caller: Caller = Depends(require_club_access),
    db: AsyncSession = Depends(get_session),
):
    ensure_identifier(rubrique_id, "rubrique_id")
    return await get_realisations(db, club_id, rubrique_id)


@realisations_router.post(
    "/", response_model=RealisationRead, status_code=status.HTTP_201_CREATED
)
@limiter.limit("30/minute")
async def record_realisation(
    request: Request,
    club_id: uuid.UUID,
    rubrique_id: uuid.UUID,
    data: RealisationCreate,
    caller: Caller = Depends(require_club_manager("realisations")),
    db: AsyncSession = Depends(get_session),
):
    """Record a spend. The rubrique realized amount is the sum of its realisations"""
    ensure_identifier(rubrique_id, "rubrique_id")
    return await add_realisation(db, club_id, rubrique_id, data)


@realisations_router.delete(
    "/{realisation_id}", status_code=status.HTTP_204_NO_CONTENT
)
@limiter.limit("30/minute")
async def remove_realisation(
    request: Request,
    club_id: uuid.UUID,
    rubrique_id: uuid.UUID,
    realisation_id: uuid.UUID,
    caller: Caller = Depends(require_club_manager("realisations")),
    db: AsyncSession = Depends(get_session),
):
    ensure_identifier(rubrique_id, "rubrique_id")
    ensure_identifier(realisation_id, "realisation_id")
    await delete_realisation(db, club_id, rubrique_id, realisation_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@realisations_router.put("/{realisation_id}", response_model=RealisationRead)
@limiter.limit("30/minute")
async def edit_realisation(
    request: Request,
    club_id: uuid.UUID,
    rubrique_id: uuid.UUID,
    realisation_id: uuid.UUID,
    data: RealisationUpdate,
    caller: Caller = Depends(require_club_manager("realisations")),
    db: AsyncSession = Depends(get_session),
):
    ensure_identifier(rubrique_id, "rubrique_id")
    ensure_identifier(realisation_id, "realisation_id")
    return await update_realisation(db, club_id, rubrique_id, realisation_id, data)
