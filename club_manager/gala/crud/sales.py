"""
Sales ledgers of a gala: tickets and raffle tickets.

Each line records a quantity sold by a club member or by an external
seller, with at most one line per member and gala. Sales are measured
against the gala's books with the budget percentage formula.
"""

import uuid
from decimal import Decimal
from typing import List, Type

from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.future import select
from sqlalchemy.orm import selectinload

from club_manager.clubs.crud.members import ensure_member
from club_manager.clubs.crud.users import get_user_by_id
from club_manager.core.bulk import BulkResult, process_sequentially
from club_manager.core.exceptions import BusinessLogicError, NotFoundError
from club_manager.finance.services.aggregation import (
    percent_realized,
    round_percent,
)
from club_manager.gala.models.galas import Gala
from club_manager.gala.schemas.tickets import (
    SellerShare,
    TicketBulk,
    TicketLine,
    TicketRead,
    TicketStatistics,
    TicketUpdate,
)

UNKNOWN_SELLER = "Inconnu"


def to_sale_read(line) -> TicketRead:
    return TicketRead(
        id=line.id,
        gala_id=line.gala_id,
        user_id=line.user_id,
        external_name=line.external_name,
        seller_name=line.seller_name or UNKNOWN_SELLER,
        quantity=line.quantity,
        created_at=line.created_at,
    )


async def gala_lines(session: AsyncSession, model: Type, gala_id: uuid.UUID) -> List:
    """Lines of a gala, biggest sellers first"""
    result = await session.execute(
        select(model)
        .options(selectinload(model.user))
        .where(model.gala_id == gala_id)
        .order_by(model.quantity.desc(), model.created_at)
    )
    return list(result.scalars().all())


async def member_lines(
    session: AsyncSession, model: Type, club_id: uuid.UUID, user_id: uuid.UUID
) -> List:
    """Lines sold by a member across the galas of a club"""
    result = await session.execute(
        select(model)
        .join(Gala, Gala.id == model.gala_id)
        .options(selectinload(model.user))
        .where(Gala.club_id == club_id, model.user_id == user_id)
        .order_by(Gala.date.desc())
    )
    return list(result.scalars().all())


async def load_line(
    session: AsyncSession,
    model: Type,
    gala_id: uuid.UUID,
    line_id: uuid.UUID,
    resource: str,
):
    result = await session.execute(
        select(model)
        .options(selectinload(model.user))
        .where(model.id == line_id, model.gala_id == gala_id)
        .execution_options(populate_existing=True)
    )
    line = result.scalars().first()
    if line is None:
        raise NotFoundError(resource, line_id)
    return line


async def add_line(
    session: AsyncSession,
    model: Type,
    club_id: uuid.UUID,
    gala_id: uuid.UUID,
    data: TicketLine,
):
    """Validate the seller and stage the line (no commit)"""
    if data.user_id is None and data.external_name is None:
        raise BusinessLogicError("Either user_id or external_name is required")

    if data.user_id is not None:
        await get_user_by_id(session, data.user_id)
        await ensure_member(session, club_id, data.user_id)
        existing = await session.execute(
            select(model.id).where(
                model.gala_id == gala_id, model.user_id == data.user_id
            )
        )
        if existing.first():
            raise BusinessLogicError(
                "This member already has a line for the gala; update the quantity",
                {"user_id": str(data.user_id)},
            )

    line = model(
        gala_id=gala_id,
        user_id=data.user_id,
        external_name=data.external_name,
        quantity=data.quantity,
    )
    session.add(line)
    return line


async def add_lines(
    session: AsyncSession,
    model: Type,
    club_id: uuid.UUID,
    gala_id: uuid.UUID,
    data: TicketBulk,
) -> BulkResult:
    async def add_one(item: TicketLine):
        await add_line(session, model, club_id, gala_id, item)

    return await process_sequentially(
        session,
        data.tickets,
        add_one,
        describe=lambda item: str(item.user_id or item.external_name),
    )


def apply_update(line, data: TicketUpdate) -> None:
    if data.quantity is not None:
        line.quantity = data.quantity
    if data.external_name is not None:
        line.external_name = data.external_name.strip() or None
        if line.user_id is None and line.external_name is None:
            raise BusinessLogicError("An external line needs a seller name")


def seller_share(line, sold: int) -> SellerShare:
    return SellerShare(
        user_id=line.user_id,
        external_name=line.external_name,
        seller_name=line.seller_name or UNKNOWN_SELLER,
        quantity=line.quantity,
        percent_of_sold=percent_realized(sold, line.quantity),
    )


def sales_statistics(gala_id: uuid.UUID, available: int, lines) -> TicketStatistics:
    sold = sum(line.quantity for line in lines)
    participants = len(lines)
    average = Decimal(0)
    if participants:
        average = round_percent(Decimal(sold) / Decimal(participants))

    return TicketStatistics(
        gala_id=gala_id,
        tickets_available=available,
        tickets_sold=sold,
        tickets_remaining=available - sold,
        percent_sold=percent_realized(available, sold),
        participants=participants,
        average_per_participant=average,
        shares=[seller_share(line, sold) for line in lines],
    )


def top_shares(lines, limit: int) -> List[SellerShare]:
    sold = sum(line.quantity for line in lines)
    return [seller_share(line, sold) for line in lines[:limit]]
