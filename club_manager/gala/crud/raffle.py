import uuid
from typing import List

from sqlalchemy.ext.asyncio import AsyncSession

from club_manager.clubs.crud.clubs import get_club_by_id
from club_manager.clubs.crud.users import get_user_by_id
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
    member_lines,
    sales_statistics,
    to_sale_read,
    top_shares,
)
from club_manager.gala.models.tickets import GalaRaffleTicket
from club_manager.gala.schemas.tickets import (
    SellerShare,
    TicketBulk,
    TicketCreate,
    TicketRead,
    TicketStatistics,
    TicketUpdate,
)

RESOURCE = "Raffle ticket"


@db_operation
async def get_raffle_tickets(
    session: AsyncSession, club_id: uuid.UUID, gala_id: uuid.UUID
) -> List[TicketRead]:
    await get_gala(session, club_id, gala_id)
    lines = await gala_lines(session, GalaRaffleTicket, gala_id)
    return [to_sale_read(line) for line in lines]


@db_operation
async def get_member_raffle_tickets(
    session: AsyncSession, club_id: uuid.UUID, user_id: uuid.UUID
) -> List[TicketRead]:
    await get_club_by_id(session, club_id)
    await get_user_by_id(session, user_id)
    lines = await member_lines(session, GalaRaffleTicket, club_id, user_id)
    return [to_sale_read(line) for line in lines]


@db_operation
async def get_raffle_ticket(
    session: AsyncSession, club_id: uuid.UUID, gala_id: uuid.UUID, line_id: uuid.UUID
) -> TicketRead:
    await get_gala(session, club_id, gala_id)
    line = await load_line(session, GalaRaffleTicket, gala_id, line_id, RESOURCE)
    return to_sale_read(line)


@db_operation
async def create_raffle_ticket(
    session: AsyncSession, club_id: uuid.UUID, gala_id: uuid.UUID, data: TicketCreate
) -> TicketRead:
    await get_gala(session, club_id, gala_id)
    line = await add_line(session, GalaRaffleTicket, club_id, gala_id, data)
    await session.commit()

    log_business_event(
        "gala_raffle_tickets_sold",
        "gala",
        gala_id,
        {"line_id": str(line.id), "quantity": data.quantity},
    )
    return await get_raffle_ticket(session, club_id, gala_id, line.id)


@db_operation
async def create_raffle_tickets_bulk(
    session: AsyncSession, club_id: uuid.UUID, gala_id: uuid.UUID, data: TicketBulk
) -> BulkResult:
    await get_gala(session, club_id, gala_id)
    result = await add_lines(session, GalaRaffleTicket, club_id, gala_id, data)
    log_business_event(
        "gala_raffle_bulk_processed",
        "gala",
        gala_id,
        {"created": result.created, "failed": len(result.errors)},
    )
    return result


@db_operation
async def update_raffle_ticket(
    session: AsyncSession,
    club_id: uuid.UUID,
    gala_id: uuid.UUID,
    line_id: uuid.UUID,
    data: TicketUpdate,
) -> TicketRead:
    await get_gala(session, club_id, gala_id)
    line = await load_line(session, GalaRaffleTicket, gala_id, line_id, RESOURCE)
    apply_update(line, data)
    await session.commit()
    return await get_raffle_ticket(session, club_id, gala_id, line_id)


@db_operation
async def delete_raffle_ticket(
    session: AsyncSession, club_id: uuid.UUID, gala_id: uuid.UUID, line_id: uuid.UUID
) -> None:
    await get_gala(session, club_id, gala_id)
    line = await load_line(session, GalaRaffleTicket, gala_id, line_id, RESOURCE)
    await session.delete(line)
    await session.commit()


@db_operation
async def get_raffle_statistics(
    session: AsyncSession, club_id: uuid.UUID, gala_id: uuid.UUID
) -> TicketStatistics:
    gala = await get_gala(session, club_id, gala_id)
    lines = await gala_lines(session, GalaRaffleTicket, gala_id)
    return sales_statistics(gala_id, gala.raffle_tickets_available, lines)


@db_operation
async def get_top_raffle_sellers(
    session: AsyncSession,
    club_id: uuid.UUID,
    gala_id: uuid.UUID,
    limit: int = 10,
) -> List[SellerShare]:
    await get_gala(session, club_id, gala_id)
    return top_shares(await gala_lines(session, GalaRaffleTicket, gala_id), limit)
