import uuid
from datetime import date
from typing import List, Optional

from fastapi import APIRouter, Depends, Query, Request, Response, status
from sqlalchemy.ext.asyncio import AsyncSession

from club_manager.core.access import Caller
from club_manager.core.bulk import BulkResult
from club_manager.core.database import get_session
from club_manager.core.dependencies import (
    ensure_identifier,
    require_club_access,
    require_club_manager,
)
from club_manager.core.exceptions import ValidationError
from club_manager.core.limits import limiter
from club_manager.core.pagination import ListParams, set_pagination_headers
from club_manager.events.crud.evenements import (
    create_budget_line,
    create_evenement,
    create_recette,
    create_recettes_batch,
    delete_budget_line,
    delete_evenement,
    delete_recette,
    get_budget_line,
    get_budget_lines,
    get_evenement,
    get_evenement_statistics,
    get_evenement_synthese,
    get_evenements_paginated,
    get_recette,
    get_recettes,
    set_realized_amount,
    to_budget_line_read,
    update_budget_line,
    update_evenement,
    update_recette,
)
from club_manager.events.schemas.evenements import (
    BudgetLineCreate,
    BudgetLineRead,
    BudgetLineUpdate,
    EvenementCreate,
    EvenementRead,
    EvenementStatistics,
    EvenementSynthese,
    EvenementUpdate,
    RealizedAmountUpdate,
    RecetteBatch,
    RecetteCreate,
    RecetteRead,
    RecetteUpdate,
)

router = APIRouter(prefix="/clubs/{club_id}/evenements", tags=["Evenements"])


@router.get("/", response_model=List[EvenementRead])
@limiter.limit("60/minute")
async def list_evenements(
    request: Request,
    response: Response,
    club_id: uuid.UUID,
    params: ListParams = Depends(),
    is_internal: Optional[bool] = Query(None, alias="estInterne"),
    date_from: Optional[date] = Query(None, alias="dateDebut"),
    date_to: Optional[date] = Query(None, alias="dateFin"),
    caller: Caller = Depends(require_club_access),
    db: AsyncSession = Depends(get_session),
):
    """
    Events of the club, most recent first.

    - **estInterne**: only internal (true) or external (false) events
    - **dateDebut** / **dateFin**: inclusive date range
    - **orderBy**: date, libelle, lieu
    """
    if date_from and date_to and date_from > date_to:
        raise ValidationError("dateDebut must be before dateFin")

    evenements, total = await get_evenements_paginated(
        db, club_id, params, is_internal, date_from, date_to
    )
    set_pagination_headers(response, params, total)
    return evenements


@router.get("/statistiques", response_model=EvenementStatistics)
@limiter.limit("30/minute")
async def evenement_statistics(
    request: Request,
    club_id: uuid.UUID,
    year: Optional[int] = Query(None, alias="annee", ge=1900, le=2200),
    caller: Caller = Depends(require_club_access),
    db: AsyncSession = Depends(get_session),
):
    """Counts, totals and events per month for **annee** (current year by default)"""
    return await get_evenement_statistics(db, club_id, year or date.today().year)


@router.get("/{evenement_id}", response_model=EvenementRead)
@limiter.limit("60/minute")
async def read_evenement(
    request: Request,
    club_id: uuid.UUID,
    evenement_id: uuid.UUID,
    caller: Caller = Depends(require_club_access),
    db: AsyncSession = Depends(get_session),
):
    ensure_identifier(evenement_id, "evenement_id")
    return await get_evenement(db, club_id, evenement_id)


@router.post("/", response_model=EvenementRead, status_code=status.HTTP_201_CREATED)
@limiter.limit("30/minute")
async def create_new_evenement(
    request: Request,
    club_id: uuid.UUID,
    data: EvenementCreate,
    caller: Caller = Depends(require_club_manager("events", "create")),
    db: AsyncSession = Depends(get_session),
):
    return await create_evenement(db, club_id, data)


@router.put("/{evenement_id}", response_model=EvenementRead)
@limiter.limit("30/minute")
async def update_existing_evenement(
    request: Request,
    club_id: uuid.UUID,
    evenement_id: uuid.UUID,
    data: EvenementUpdate,
    caller: Caller = Depends(require_club_manager("events", "update")),
    db: AsyncSession = Depends(get_session),
):
    ensure_identifier(evenement_id, "evenement_id")
    return await update_evenement(db, club_id, evenement_id, data)


@router.delete("/{evenement_id}", status_code=status.HTTP_204_NO_CONTENT)
@limiter.limit("30/minute")
async def remove_evenement(
    request: Request,
    club_id: uuid.UUID,
    evenement_id: uuid.UUID,
    caller: Caller = Depends(require_club_manager("events", "delete")),
    db: AsyncSession = Depends(get_session),
):
    ensure_identifier(evenement_id, "evenement_id")
    await delete_evenement(db, club_id, evenement_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.get("/{evenement_id}/synthese", response_model=EvenementSynthese)
@limiter.limit("30/minute")
async def evenement_synthese(
    request: Request,
    club_id: uuid.UUID,
    evenement_id: uuid.UUID,
    caller: Caller = Depends(require_club_access),
    db: AsyncSession = Depends(get_session),
):
    """Budget totals, revenue and net result of the event"""
    ensure_identifier(evenement_id, "evenement_id")
    return await get_evenement_synthese(db, club_id, evenement_id)


# === Budget lines ===
@router.get("/{evenement_id}/budgets", response_model=List[BudgetLineRead])
@limiter.limit("60/minute")
async def list_budget_lines(
    request: Request,
    club_id: uuid.UUID,
    evenement_id: uuid.UUID,
    caller: Caller = Depends(require_club_access),
    db: AsyncSession = Depends(get_session),
):
    ensure_identifier(evenement_id, "evenement_id")
    return await get_budget_lines(db, club_id, evenement_id)


@router.get("/{evenement_id}/budgets/{line_id}", response_model=BudgetLineRead)
@limiter.limit("60/minute")
async def read_budget_line(
    request: Request,
    club_id: uuid.UUID,
    evenement_id: uuid.UUID,
    line_id: uuid.UUID,
    caller: Caller = Depends(require_club_access),
    db: AsyncSession = Depends(get_session),
):
    ensure_identifier(evenement_id, "evenement_id")
    ensure_identifier(line_id, "line_id")
    line = await get_budget_line(db, club_id, evenement_id, line_id)
    return to_budget_line_read(line)


@router.post(
    "/{evenement_id}/budgets",
    response_model=BudgetLineRead,
    status_code=status.HTTP_201_CREATED,
)
@limiter.limit("30/minute")
async def create_new_budget_line(
    request: Request,
    club_id: uuid.UUID,
    evenement_id: uuid.UUID,
    data: BudgetLineCreate,
    caller: Caller = Depends(require_club_manager("event_finance")),
    db: AsyncSession = Depends(get_session),
):
    ensure_identifier(evenement_id, "evenement_id")
    return await create_budget_line(db, club_id, evenement_id, data)


@router.put("/{evenement_id}/budgets/{line_id}", response_model=BudgetLineRead)
@limiter.limit("30/minute")
async def update_existing_budget_line(
    request: Request,
    club_id: uuid.UUID,
    evenement_id: uuid.UUID,
    line_id: uuid.UUID,
    data: BudgetLineUpdate,
    caller: Caller = Depends(require_club_manager("event_finance")),
    db: AsyncSession = Depends(get_session),
):
    ensure_identifier(evenement_id, "evenement_id")
    ensure_identifier(line_id, "line_id")
    return await update_budget_line(db, club_id, evenement_id, line_id, data)


@router.patch(
    "/{evenement_id}/budgets/{line_id}/montant-realise",
    response_model=BudgetLineRead,
)
@limiter.limit("30/minute")
async def update_realized_amount(
    request: Request,
    club_id: uuid.UUID,
    evenement_id: uuid.UUID,
    line_id: uuid.UUID,
    data: RealizedAmountUpdate,
    caller: Caller = Depends(require_club_manager("event_finance")),
    db: AsyncSession = Depends(get_session),
):
    ensure_identifier(evenement_id, "evenement_id")
    ensure_identifier(line_id, "line_id")
    return await set_realized_amount(
        db, club_id, evenement_id, line_id, data.realized_amount
    )


@router.delete(
    "/{evenement_id}/budgets/{line_id}", status_code=status.HTTP_204_NO_CONTENT
)
@limiter.limit("30/minute")
async def remove_budget_line(
    request: Request,
    club_id: uuid.UUID,
    evenement_id: uuid.UUID,
    line_id: uuid.UUID,
    caller: Caller = Depends(require_club_manager("event_finance")),
    db: AsyncSession = Depends(get_session),
):
    ensure_identifier(evenement_id, "evenement_id")
    ensure_identifier(line_id, "line_id")
    await delete_budget_line(db, club_id, evenement_id, line_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


# === Recettes ===
@router.get("/{evenement_id}/recettes", response_model=List[RecetteRead])
@limiter.limit("60/minute")
async def list_recettes(
    request: Request,
    club_id: uuid.UUID,
    evenement_id: uuid.UUID,
    caller: Caller = Depends(require_club_access),
    db: AsyncSession = Depends(get_session),
):
    ensure_identifier(evenement_id, "evenement_id")
    return await get_recettes(db, club_id, evenement_id)


@router.post("/{evenement_id}/recettes/batch", response_model=BulkResult)
@limiter.limit("10/minute")
async def create_recettes_in_batch(
    request: Request,
    club_id: uuid.UUID,
    evenement_id: uuid.UUID,
    data: RecetteBatch,
    caller: Caller = Depends(require_club_manager("event_finance")),
    db: AsyncSession = Depends(get_session),
):
    """
    Add several recettes at once.

    Items are saved one by one; failures are listed in **errors** and do not
    cancel the others.
    """
    ensure_identifier(evenement_id, "evenement_id")
    return await create_recettes_batch(db, club_id, evenement_id, data)


@router.get("/{evenement_id}/recettes/{recette_id}", response_model=RecetteRead)
@limiter.limit("60/minute")
async def read_recette(
    request: Request,
    club_id: uuid.UUID,
    evenement_id: uuid.UUID,
    recette_id: uuid.UUID,
    caller: Caller = Depends(require_club_access),
    db: AsyncSession = Depends(get_session),
):
    ensure_identifier(evenement_id, "evenement_id")
    ensure_identifier(recette_id, "recette_id")
    return await get_recette(db, club_id, evenement_id, recette_id)


@router.post(
    "/{evenement_id}/recettes",
    response_model=RecetteRead,
    status_code=status.HTTP_201_CREATED,
)
@limiter.limit("30/minute")
async def create_new_recette(
    request: Request,
    club_id: uuid.UUID,
    evenement_id: uuid.UUID,
    data: RecetteCreate,
    caller: Caller = Depends(require_club_manager("event_finance")),
    db: AsyncSession = Depends(get_session),
):
    ensure_identifier(evenement_id, "evenement_id")
    return await create_recette(db, club_id, evenement_id, data)


@router.put("/{evenement_id}/recettes/{recette_id}", response_model=RecetteRead)
@limiter.limit("30/minute")
async def update_existing_recette(
    request: Request,
    club_id: uuid.UUID,
    evenement_id: uuid.UUID,
    recette_id: uuid.UUID,
    data: RecetteUpdate,
    caller: Caller = Depends(require_club_manager("event_finance")),
    db: AsyncSession = Depends(get_session),
):
    ensure_identifier(evenement_id, "evenement_id")
    ensure_identifier(recette_id, "recette_id")
    return await update_recette(db, club_id, evenement_id, recette_id, data)


@router.delete(
    "/{evenement_id}/recettes/{recette_id}", status_code=status.HTTP_204_NO_CONTENT
)
@limiter.limit("30/minute")
async def remove_recette(
    request: Request,
    club_id: uuid.UUID,
    evenement_id: uuid.UUID,
    recette_id: uuid.UUID,
    caller: Caller = Depends(require_club_manager("event_finance")),
    db: AsyncSession = Depends(get_session),
):
    ensure_identifier(evenement_id, "evenement_id")
    ensure_identifier(recette_id, "recette_id")
    await delete_recette(db, club_id, evenement_id, recette_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
