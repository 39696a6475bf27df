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
from club_manager.gala.crud.tickets import (
    create_ticket,
    create_tickets_bulk,
    delete_ticket,
    get_ticket,
    get_ticket_statistics,
    get_tickets,
    get_top_sellers,
    update_ticket,
)
from club_manager.gala.schemas.tickets import (
    SellerShare,
    TicketBulk,
    TicketCreate,
    TicketRead,
    TicketStatistics,
    TicketUpdate,
)

router = APIRouter(
    prefix="/clubs/{club_id}/galas/{gala_id}/tickets", tags=["Gala tickets"]
)


@router.get("/", response_model=List[TicketRead])
@limiter.limit("60/minute")
async def list_tickets(
    request: Request,
    club_id: uuid.UUID,
    gala_id: uuid.UUID,
    caller: Caller = Depends(require_club_access),
    db: AsyncSession = Depends(get_session),
):
    ensure_identifier(gala_id, "gala_id")
    return await get_tickets(db, club_id, gala_id)


@router.get("/statistiques", response_model=TicketStatistics)
@limiter.limit("30/minute")
async def ticket_statistics(
    request: Request,
    club_id: uuid.UUID,
    gala_id: uuid.UUID,
    caller: Caller = Depends(require_club_access),
    db: AsyncSession = Depends(get_session),
):
    """Tickets available, sold and remaining, with each seller's share"""
    ensure_identifier(gala_id, "gala_id")
    return await get_ticket_statistics(db, club_id, gala_id)


@router.get("/top-vendeurs", response_model=List[SellerShare])
@limiter.limit("30/minute")
async def top_sellers(
    request: Request,
    club_id: uuid.UUID,
    gala_id: uuid.UUID,
    limit: int = Query(10, ge=1, le=100),
    caller: Caller = Depends(require_club_access),
    db: AsyncSession = Depends(get_session),
):
    ensure_identifier(gala_id, "gala_id")
    return await get_top_sellers(db, club_id, gala_id, limit)


@router.get("/{ticket_id}", response_model=TicketRead)
@limiter.limit("60/minute")
async def read_ticket(
    request: Request,
    club_id: uuid.UUID,
    gala_id: uuid.UUID,
    ticket_id: uuid.UUID,
    caller: Caller = Depends(require_club_access),
    db: AsyncSession = Depends(get_session),
):
    ensure_identifier(gala_id, "gala_id")
    ensure_identifier(ticket_id, "ticket_id")
    return await get_ticket(db, club_id, gala_id, ticket_id)


@router.post("/", response_model=TicketRead, status_code=status.HTTP_201_CREATED)
@limiter.limit("60/minute")
async def sell_tickets(
    request: Request,
    club_id: uuid.UUID,
    gala_id: uuid.UUID,
    data: TicketCreate,
    caller: Caller = Depends(require_club_manager("gala_tickets")),
    db: AsyncSession = Depends(get_session),
):
    """
    Record tickets sold by a member (**user_id**) or an external seller
    (**external_name**). A member has one ticket line per gala.
    """
    ensure_identifier(gala_id, "gala_id")
    return await create_ticket(db, club_id, gala_id, data)


@router.post("/bulk", response_model=BulkResult)
@limiter.limit("10/minute")
async def sell_tickets_in_bulk(
    request: Request,
    club_id: uuid.UUID,
    gala_id: uuid.UUID,
    data: TicketBulk,
    caller: Caller = Depends(require_club_manager("gala_tickets")),
    db: AsyncSession = Depends(get_session),
):
    ensure_identifier(gala_id, "gala_id")
    return await create_tickets_bulk(db, club_id, gala_id, data)


@router.put("/{ticket_id}", response_model=TicketRead)
@limiter.limit("60/minute")
async def update_existing_ticket(
    request: Request,
    club_id: uuid.UUID,
    gala_id: uuid.UUID,
    ticket_id: uuid.UUID,
    data: TicketUpdate,
    caller: Caller = Depends(require_club_manager("gala_tickets")),
    db: AsyncSession = Depends(get_session),
):
    ensure_identifier(gala_id, "gala_id")
    ensure_identifier(ticket_id, "ticket_id")
    return await update_ticket(db, club_id, gala_id, ticket_id, data)


@router.delete("/{ticket_id}", status_code=status.HTTP_204_NO_CONTENT)
@limiter.limit("60/minute")
async def remove_ticket(
    request: Request,
    club_id: uuid.UUID,
    gala_id: uuid.UUID,
    ticket_id: uuid.UUID,
    caller: Caller = Depends(require_club_manager("gala_tickets")),
    db: AsyncSession = Depends(get_session),
):
    ensure_identifier(gala_id, "gala_id")
    ensure_identifier(ticket_id, "ticket_id")
    await delete_ticket(db, club_id, gala_id, ticket_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
