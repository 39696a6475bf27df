import uuid
from typing import List, Optional

from fastapi import APIRouter, Depends, Query, Request, Response, status
from sqlalchemy.ext.asyncio import AsyncSession

from club_manager.clubs.crud.cotisations import (
    create_cotisation,
    create_paiement,
    delete_cotisation,
    delete_paiement,
    get_cotisations,
    get_member_situation,
    get_paiements,
    update_cotisation,
    update_paiement,
)
from club_manager.clubs.schemas.cotisations import (
    CotisationCreate,
    CotisationRead,
    CotisationUpdate,
    PaiementCreate,
    PaiementRead,
    PaiementUpdate,
    SituationCotisation,
)
from club_manager.core.access import Caller
from club_manager.core.database import get_session
from club_manager.core.dependencies import (
    ensure_identifier,
    require_club_access,
    require_club_manager,
)
from club_manager.core.limits import limiter
from club_manager.core.pagination import ListParams, set_pagination_headers

router = APIRouter(prefix="/clubs/{club_id}", tags=["Cotisations"])


@router.get("/cotisations", response_model=List[CotisationRead])
@limiter.limit("60/minute")
async def list_cotisations(
    request: Request,
    response: Response,
    club_id: uuid.UUID,
    mandat_id: Optional[uuid.UUID] = Query(None, alias="mandatId"),
    user_id: Optional[uuid.UUID] = Query(None, alias="userId"),
    params: ListParams = Depends(),
    caller: Caller = Depends(require_club_access),
    db: AsyncSession = Depends(get_session),
):
    cotisations, total = await get_cotisations(db, club_id, params, mandat_id, user_id)
    set_pagination_headers(response, params, total)
    return cotisations


@router.post(
    "/cotisations", response_model=CotisationRead, status_code=status.HTTP_201_CREATED
)
@limiter.limit("30/minute")
async def create_new_cotisation(
    request: Request,
    club_id: uuid.UUID,
    data: CotisationCreate,
    caller: Caller = Depends(require_club_manager("cotisations")),
    db: AsyncSession = Depends(get_session),
):
    """
    Charge the dues of a mandat to a member (President, Treasurer).

    - **amount**: defaults to the mandat's dues amount
    """
    return await create_cotisation(db, club_id, data)


@router.put("/cotisations/{cotisation_id}", response_model=CotisationRead)
@limiter.limit("30/minute")
async def update_existing_cotisation(
    request: Request,
    club_id: uuid.UUID,
    cotisation_id: uuid.UUID,
    data: CotisationUpdate,
    caller: Caller = Depends(require_club_manager("cotisations")),
    db: AsyncSession = Depends(get_session),
):
    ensure_identifier(cotisation_id, "cotisation_id")
    return await update_cotisation(db, club_id, cotisation_id, data)


@router.delete("/cotisations/{cotisation_id}", status_code=status.HTTP_204_NO_CONTENT)
@limiter.limit("30/minute")
async def remove_cotisation(
    request: Request,
    club_id: uuid.UUID,
    cotisation_id: uuid.UUID,
    caller: Caller = Depends(require_club_manager("cotisations")),
    db: AsyncSession = Depends(get_session),
):
    ensure_identifier(cotisation_id, "cotisation_id")
    await delete_cotisation(db, club_id, cotisation_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.get("/paiements-cotisation", response_model=List[PaiementRead])
@limiter.limit("60/minute")
async def list_paiements(
    request: Request,
    response: Response,
    club_id: uuid.UUID,
    user_id: Optional[uuid.UUID] = Query(None, alias="userId"),
    params: ListParams = Depends(),
    caller: Caller = Depends(require_club_access),
    db: AsyncSession = Depends(get_session),
):
    """Dues payments, most recent first; **orderBy**: date, montant"""
    paiements, total = await get_paiements(db, club_id, params, user_id)
    set_pagination_headers(response, params, total)
    return paiements


@router.post(
    "/paiements-cotisation",
    response_model=PaiementRead,
    status_code=status.HTTP_201_CREATED,
)
@limiter.limit("30/minute")
async def create_new_paiement(
    request: Request,
    club_id: uuid.UUID,
    data: PaiementCreate,
    caller: Caller = Depends(require_club_manager("cotisations")),
    db: AsyncSession = Depends(get_session),
):
    return await create_paiement(db, club_id, data)


@router.put("/paiements-cotisation/{paiement_id}", response_model=PaiementRead)
@limiter.limit("30/minute")
async def update_existing_paiement(
    request: Request,
    club_id: uuid.UUID,
    paiement_id: uuid.UUID,
    data: PaiementUpdate,
    caller: Caller = Depends(require_club_manager("cotisations")),
    db: AsyncSession = Depends(get_session),
):
    ensure_identifier(paiement_id, "paiement_id")
    return await update_paiement(db, club_id, paiement_id, data)


@router.delete(
    "/paiements-cotisation/{paiement_id}", status_code=status.HTTP_204_NO_CONTENT
)
@limiter.limit("30/minute")
async def remove_paiement(
    request: Request,
    club_id: uuid.UUID,
    paiement_id: uuid.UUID,
    caller: Caller = Depends(require_club_manager("cotisations")),
    db: AsyncSession = Depends(get_session),
):
    ensure_identifier(paiement_id, "paiement_id")
    await delete_paiement(db, club_id, paiement_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.get(
    "/membres/{user_id}/situation-cotisation", response_model=SituationCotisation
)
@limiter.limit("60/minute")
async def member_situation(
    request: Request,
    club_id: uuid.UUID,
    user_id: uuid.UUID,
    caller: Caller = Depends(require_club_access),
    db: AsyncSession = Depends(get_session),
):
    """
    Dues balance of a member across all mandats.

    Status: Aucune cotisation, À jour, Partiellement payé or En retard.
    """
    ensure_identifier(user_id, "user_id")
    return await get_member_situation(db, club_id, user_id)
