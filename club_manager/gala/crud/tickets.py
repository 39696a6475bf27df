import uuid
from typing import List

from sqlalchemy.ext.asyncio import AsyncSession

from club_manager.core.bulk import BulkResult
from club_manager.core.database import db_operation
from club_manager.core.logging_utils import log_business_event
from club_manager.gala.crud.galas import get_gala
from club_manager.gala.crud.sales import (
    add_line,
    add_lines,
    apply_update,
    gala_lines,
    load_line,
    sales_statistics,
    to_sale_read,
    top_shares,
)
from club_manager.gala.models.tickets import GalaTicket
from club_manager.gala.schemas.tickets import (
    SellerShare,
    TicketBulk,
    TicketCreate,
    TicketRead,
    TicketStatistics,
    TicketUpdate,
)


@db_operation
async def get_tickets(
    session: AsyncSession, club_id: uuid.UUID, gala_id: uuid.UUID
) -> List[TicketRead]:
    await get_gala(session, club_id, gala_id)
    tickets = await gala_lines(session, GalaTicket, gala_id)
    return [to_sale_read(ticket) for ticket in tickets]


@db_operation
async def get_ticket(
    session: AsyncSession, club_id: uuid.UUID, gala_id: uuid.UUID, ticket_id: uuid.UUID
) -> TicketRead:
    await get_gala(session, club_id, gala_id)
    ticket = await load_line(session, GalaTicket, gala_id, ticket_id, "Gala ticket")
    return to_sale_read(ticket)


@db_operation
async def create_ticket(
    session: AsyncSession, club_id: uuid.UUID, gala_id: uuid.UUID, data: TicketCreate
) -> TicketRead:
    await get_gala(session, club_id, gala_id)
    ticket = await add_line(session, GalaTicket, club_id, gala_id, data)
    await session.commit()

    log_business_event(
        "gala_tickets_sold",
        "gala",
        gala_id,
        {"ticket_id": str(ticket.id), "quantity": data.quantity},
    )
    return await get_ticket(session, club_id, gala_id, ticket.id)


@db_operation
async def create_tickets_bulk(
    session: AsyncSession, club_id: uuid.UUID, gala_id: uuid.UUID, data: TicketBulk
) -> BulkResult:
    await get_gala(session, club_id, gala_id)
    result = await add_lines(session, GalaTicket, club_id, gala_id, data)
    log_business_event(
        "gala_tickets_bulk_processed",
        "gala",
        gala_id,
        {"created": result.created, "failed": len(result.errors)},
    )
    return result


@db_operation
async def update_ticket(
    session: AsyncSession,
    club_id: uuid.UUID,
    gala_id: uuid.UUID,
    ticket_id: uuid.UUID,
    data: TicketUpdate,
) -> TicketRead:
    await get_gala(session, club_id, gala_id)
    ticket = await load_line(session, GalaTicket, gala_id, ticket_id, "Gala ticket")
    apply_update(ticket, data)
    await session.commit()
    return await get_ticket(session, club_id, gala_id, ticket_id)


@db_operation
async def delete_ticket(
    session: AsyncSession, club_id: uuid.UUID, gala_id: uuid.UUID, ticket_id: uuid.UUID
) -> None:
    await get_gala(session, club_id, gala_id)
    ticket = await load_line(session, GalaTicket, gala_id, ticket_id, "Gala ticket")
    await session.delete(ticket)
    await session.commit()


@db_operation
async def get_ticket_statistics(
    session: AsyncSession, club_id: uuid.UUID, gala_id: uuid.UUID
) -> TicketStatistics:
    """Sales against the ticket books: percent sold follows the budget formula"""
    gala = await get_gala(session, club_id, gala_id)
    tickets = await gala_lines(session, GalaTicket, gala_id)
    return sales_statistics(gala_id, gala.tickets_available, tickets)


@db_operation
async def get_top_sellers(
    session: AsyncSession,
    club_id: uuid.UUID,
    gala_id: uuid.UUID,
    limit: int = 10,
) -> List[SellerShare]:
    await get_gala(session, club_id, gala_id)
    return top_shares(await gala_lines(session, GalaTicket, gala_id), limit)
