import uuid
from typing import List

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
from club_manager.core.limits import limiter
from club_manager.gala.crud.raffle import (
    create_raffle_ticket,
    create_raffle_tickets_bulk,
    delete_raffle_ticket,
    get_member_raffle_tickets,
    get_raffle_statistics,
    get_raffle_ticket,
    get_raffle_tickets,
    get_top_raffle_sellers,
    update_raffle_ticket,
)
from club_manager.gala.schemas.tickets import (
    SellerShare,
    TicketBulk,
    TicketCreate,
    TicketRead,
    TicketStatistics,
    TicketUpdate,
)

router = APIRouter(prefix="/clubs/{club_id}/galas", tags=["Gala raffle"])


@router.get("/tombolas/membres/{user_id}", response_model=List[TicketRead])
@limiter.limit("60/minute")
async def list_member_raffle_tickets(
    request: Request,
    club_id: uuid.UUID,
    user_id: uuid.UUID,
    caller: Caller = Depends(require_club_access),
    db: AsyncSession = Depends(get_session),
):
    """Raffle tickets sold by a member across the club's galas"""
    ensure_identifier(user_id, "user_id")
    return await get_member_raffle_tickets(db, club_id, user_id)


@router.get("/{gala_id}/tombolas", response_model=List[TicketRead])
@limiter.limit("60/minute")
async def list_raffle_tickets(
    request: Request,
    club_id: uuid.UUID,
    gala_id: uuid.UUID,
    caller: Caller = Depends(require_club_access),
    db: AsyncSession = Depends(get_session),
):
    ensure_identifier(gala_id, "gala_id")
    return await get_raffle_tickets(db, club_id, gala_id)


@router.get("/{gala_id}/tombolas/statistiques", response_model=TicketStatistics)
@limiter.limit("30/minute")
async def raffle_statistics(
    request: Request,
    club_id: uuid.UUID,
    gala_id: uuid.UUID,
    caller: Caller = Depends(require_club_access),
    db: AsyncSession = Depends(get_session),
):
    """Raffle tickets sold against the raffle books"""
    ensure_identifier(gala_id, "gala_id")
    return await get_raffle_statistics(db, club_id, gala_id)


@router.get("/{gala_id}/tombolas/top-vendeurs", response_model=List[SellerShare])
@limiter.limit("30/minute")
async def top_raffle_sellers(
    request: Request,
    club_id: uuid.UUID,
    gala_id: uuid.UUID,
    limit: int = Query(10, ge=1, le=100),
    caller: Caller = Depends(require_club_access),
    db: AsyncSession = Depends(get_session),
):
    ensure_identifier(gala_id, "gala_id")
    return await get_top_raffle_sellers(db, club_id, gala_id, limit)


@router.get("/{gala_id}/tombolas/{line_id}", response_model=TicketRead)
@limiter.limit("60/minute")
async def read_raffle_ticket(
    request: Request,
    club_id: uuid.UUID,
    gala_id: uuid.UUID,
    line_id: uuid.UUID,
    caller: Caller = Depends(require_club_access),
    db: AsyncSession = Depends(get_session),
):
    ensure_identifier(gala_id, "gala_id")
    ensure_identifier(line_id, "line_id")
    return await get_raffle_ticket(db, club_id, gala_id, line_id)


@router.post(
    "/{gala_id}/tombolas",
    response_model=TicketRead,
    status_code=status.HTTP_201_CREATED,
)
@limiter.limit("60/minute")
async def sell_raffle_tickets(
    request: Request,
    club_id: uuid.UUID,
    gala_id: uuid.UUID,
    data: TicketCreate,
    caller: Caller = Depends(require_club_manager("gala_raffle")),
    db: AsyncSession = Depends(get_session),
):
    ensure_identifier(gala_id, "gala_id")
    return await create_raffle_ticket(db, club_id, gala_id, data)


@router.post("/{gala_id}/tombolas/bulk", response_model=BulkResult)
@limiter.limit("10/minute")
async def sell_raffle_tickets_in_bulk(
    request: Request,
    club_id: uuid.UUID,
    gala_id: uuid.UUID,
    data: TicketBulk,
    caller: Caller = Depends(require_club_manager("gala_raffle")),
    db: AsyncSession = Depends(get_session),
):
    ensure_identifier(gala_id, "gala_id")
    return await create_raffle_tickets_bulk(db, club_id, gala_id, data)


@router.put("/{gala_id}/tombolas/{line_id}", response_model=TicketRead)
@limiter.limit("60/minute")
async def update_existing_raffle_ticket(
    request: Request,
    club_id: uuid.UUID,
    gala_id: uuid.UUID,
    line_id: uuid.UUID,
    data: TicketUpdate,
    caller: Caller = Depends(require_club_manager("gala_raffle")),
    db: AsyncSession = Depends(get_session),
):
    ensure_identifier(gala_id, "gala_id")
    ensure_identifier(line_id, "line_id")
    return await update_raffle_ticket(db, club_id, gala_id, line_id, data)


@router.delete("/{gala_id}/tombolas/{line_id}", status_code=status.HTTP_204_NO_CONTENT)
@limiter.limit("60/minute")
async def remove_raffle_ticket(
    request: Request,
    club_id: uuid.UUID,
    gala_id: uuid.UUID,
    line_id: uuid.UUID,
    caller: Caller = Depends(require_club_manager("gala_raffle")),
    db: AsyncSession = Depends(get_session),
):
    ensure_identifier(gala_id, "gala_id")
    ensure_identifier(line_id, "line_id")
    await delete_raffle_ticket(db, club_id, gala_id, line_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
