"""
Tables, invites and seating of a gala.

An invite sits at one table at most: checked before insert and guaranteed
by the unique constraint on gala_table_affectations.gala_invite_id.
"""

import uuid
from datetime import date, datetime, time, timedelta, timezone
from typing import Dict, List, Optional, Tuple

from sqlalchemy import func
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.future import select

from club_manager.core.bulk import BulkResult, process_sequentially
from club_manager.core.database import db_operation
from club_manager.core.exceptions import (
    BusinessLogicError,
    DependentRecordsError,
    DuplicateError,
    NotFoundError,
    ValidationError,
)
from club_manager.core.logging_utils import log_business_event
from club_manager.core.pagination import (
    ListParams,
    apply_ordering,
    paginate,
    search_filter,
)
from club_manager.gala.crud.galas import get_gala
from club_manager.gala.models.seating import (
    GalaInvite,
    GalaTable,
    GalaTableAffectation,
)
from club_manager.gala.schemas.seating import (
    AffectationBulk,
    AffectationCreate,
    AffectationMove,
    AffectationRead,
    DistributionResult,
    InviteCreate,
    InviteRead,
    InviteUpdate,
    TableCreate,
    TableDetail,
    TableRead,
    TableUpdate,
)
from club_manager.gala.services.seating import round_robin_assignments

INVITE_ORDERING = {
    "nom": GalaInvite.full_name,
    "present": GalaInvite.present,
    "table": GalaTable.label,
}


# === Tables ===
async def _invite_counts(
    session: AsyncSession, gala_id: uuid.UUID
) -> Dict[uuid.UUID, int]:
    result = await session.execute(
        select(GalaTableAffectation.gala_table_id, func.count(GalaTableAffectation.id))
        .join(GalaTable, GalaTableAffectation.gala_table_id == GalaTable.id)
        .where(GalaTable.gala_id == gala_id)
        .group_by(GalaTableAffectation.gala_table_id)
    )
    return {table_id: count for table_id, count in result.all()}


async def _gala_tables(session: AsyncSession, gala_id: uuid.UUID) -> List[GalaTable]:
    result = await session.execute(
        select(GalaTable)
        .where(GalaTable.gala_id == gala_id)
        .order_by(GalaTable.label, GalaTable.id)
    )
    return list(result.scalars().all())


async def _check_table_label_available(
    session: AsyncSession,
    gala_id: uuid.UUID,
    label: str,
    exclude_id: Optional[uuid.UUID] = None,
):
    query = select(GalaTable.id).where(
        GalaTable.gala_id == gala_id, func.lower(GalaTable.label) == label.lower()
    )
    if exclude_id is not None:
        query = query.where(GalaTable.id != exclude_id)
    if (await session.execute(query)).first():
        raise DuplicateError("Gala table", "label", label)


@db_operation
async def get_tables(
    session: AsyncSession, club_id: uuid.UUID, gala_id: uuid.UUID
) -> List[TableRead]:
    await get_gala(session, club_id, gala_id)
    counts = await _invite_counts(session, gala_id)
    return [
        TableRead(
            id=table.id,
            gala_id=table.gala_id,
            label=table.label,
            invites_count=counts.get(table.id, 0),
        )
        for table in await _gala_tables(session, gala_id)
    ]


@db_operation
async def get_table(
    session: AsyncSession, club_id: uuid.UUID, gala_id: uuid.UUID, table_id: uuid.UUID
) -> GalaTable:
    await get_gala(session, club_id, gala_id)
    table = await session.get(GalaTable, table_id)
    if table is None or table.gala_id != gala_id:
        raise NotFoundError("Gala table", table_id)
    return table


@db_operation
async def get_table_detail(
    session: AsyncSession, club_id: uuid.UUID, gala_id: uuid.UUID, table_id: uuid.UUID
) -> TableDetail:
    """A table with the invites seated at it"""
    table = await get_table(session, club_id, gala_id, table_id)
    result = await session.execute(
        select(GalaInvite)
        .join(
            GalaTableAffectation, GalaTableAffectation.gala_invite_id == GalaInvite.id
        )
        .where(GalaTableAffectation.gala_table_id == table_id)
        .order_by(GalaInvite.full_name)
    )
    invites = [
        InviteRead(
            id=invite.id,
            gala_id=invite.gala_id,
            full_name=invite.full_name,
            present=invite.present,
            table_id=table.id,
            table_label=table.label,
        )
        for invite in result.scalars().all()
    ]
    return TableDetail(
        id=table.id,
        gala_id=table.gala_id,
        label=table.label,
        invites_count=len(invites),
        invites=invites,
    )


@db_operation
async def create_table(
    session: AsyncSession, club_id: uuid.UUID, gala_id: uuid.UUID, data: TableCreate
) -> TableRead:
    await get_gala(session, club_id, gala_id)
    await _check_table_label_available(session, gala_id, data.label)

    table = GalaTable(gala_id=gala_id, label=data.label)
    session.add(table)
    await session.commit()
    await session.refresh(table)
    return TableRead(id=table.id, gala_id=gala_id, label=table.label)


@db_operation
async def update_table(
    session: AsyncSession,
    club_id: uuid.UUID,
    gala_id: uuid.UUID,
    table_id: uuid.UUID,
    data: TableUpdate,
) -> TableRead:
    table = await get_table(session, club_id, gala_id, table_id)
    if data.label.lower() != table.label.lower():
        await _check_table_label_available(session, gala_id, data.label, table.id)

    table.label = data.label
    await session.commit()

    counts = await _invite_counts(session, gala_id)
    return TableRead(
        id=table.id,
        gala_id=gala_id,
        label=table.label,
        invites_count=counts.get(table.id, 0),
    )


@db_operation
async def delete_table(
    session: AsyncSession, club_id: uuid.UUID, gala_id: uuid.UUID, table_id: uuid.UUID
) -> None:
    """Only empty tables can be deleted"""
    table = await get_table(session, club_id, gala_id, table_id)
    seated = (await _invite_counts(session, gala_id)).get(table.id, 0)
    if seated:
        raise DependentRecordsError(f"table '{table.label}'", {"invites": seated})

    await session.delete(table)
    await session.commit()


# === Invites ===
def _invite_query(gala_id: uuid.UUID):
    return (
        select(GalaInvite, GalaTable)
        .outerjoin(
            GalaTableAffectation, GalaTableAffectation.gala_invite_id == GalaInvite.id
        )
        .outerjoin(GalaTable, GalaTableAffectation.gala_table_id == GalaTable.id)
        .where(GalaInvite.gala_id == gala_id)
    )


def _to_invite_read(invite: GalaInvite, table: Optional[GalaTable]) -> InviteRead:
    return InviteRead(
        id=invite.id,
        gala_id=invite.gala_id,
        full_name=invite.full_name,
        present=invite.present,
        table_id=table.id if table is not None else None,
        table_label=table.label if table is not None else None,
    )


async def _check_invite_name_available(
    session: AsyncSession,
    gala_id: uuid.UUID,
    full_name: str,
    exclude_id: Optional[uuid.UUID] = None,
):
    query = select(GalaInvite.id).where(
        GalaInvite.gala_id == gala_id,
        func.lower(GalaInvite.full_name) == full_name.lower(),
    )
    if exclude_id is not None:
        query = query.where(GalaInvite.id != exclude_id)
    if (await session.execute(query)).first():
        raise DuplicateError("Gala invite", "full_name", full_name)


@db_operation
async def get_invites_paginated(
    session: AsyncSession,
    club_id: uuid.UUID,
    gala_id: uuid.UUID,
    params: ListParams,
    present: Optional[bool] = None,
) -> Tuple[List[InviteRead], int]:
    await get_gala(session, club_id, gala_id)
    query = _invite_query(gala_id)

    if present is not None:
        query = query.where(GalaInvite.present.is_(present))
    condition = search_filter(params.recherche, GalaInvite.full_name)
    if condition is not None:
        query = query.where(condition)

    query = apply_ordering(query, params, INVITE_ORDERING, "nom")
    rows, total = await paginate(
        session, query.order_by(GalaInvite.id), params, scalars=False
    )
    return [_to_invite_read(invite, table) for invite, table in rows], total


@db_operation
async def get_invites_without_table(
    session: AsyncSession, club_id: uuid.UUID, gala_id: uuid.UUID
) -> List[GalaInvite]:
    await get_gala(session, club_id, gala_id)
    return await _unseated_invites(session, gala_id)


async def _unseated_invites(
    session: AsyncSession, gala_id: uuid.UUID
) -> List[GalaInvite]:
    seated = select(GalaTableAffectation.gala_invite_id)
    result = await session.execute(
        select(GalaInvite)
        .where(GalaInvite.gala_id == gala_id, GalaInvite.id.not_in(seated))
        .order_by(GalaInvite.full_name, GalaInvite.id)
    )
    return list(result.scalars().all())


@db_operation
async def get_invite(
    session: AsyncSession, club_id: uuid.UUID, gala_id: uuid.UUID, invite_id: uuid.UUID
) -> GalaInvite:
    await get_gala(session, club_id, gala_id)
    invite = await session.get(GalaInvite, invite_id)
    if invite is None or invite.gala_id != gala_id:
        raise NotFoundError("Gala invite", invite_id)
    return invite


@db_operation
async def get_invite_read(
    session: AsyncSession, club_id: uuid.UUID, gala_id: uuid.UUID, invite_id: uuid.UUID
) -> InviteRead:
    await get_invite(session, club_id, gala_id, invite_id)
    result = await session.execute(
        _invite_query(gala_id).where(GalaInvite.id == invite_id)
    )
    return _to_invite_read(*result.one())


@db_operation
async def create_invite(
    session: AsyncSession, club_id: uuid.UUID, gala_id: uuid.UUID, data: InviteCreate
) -> InviteRead:
    await get_gala(session, club_id, gala_id)
    await _check_invite_name_available(session, gala_id, data.full_name)

    invite = GalaInvite(gala_id=gala_id, **data.model_dump())
    session.add(invite)
    await session.commit()
    await session.refresh(invite)
    return _to_invite_read(invite, None)


@db_operation
async def update_invite(
    session: AsyncSession,
    club_id: uuid.UUID,
    gala_id: uuid.UUID,
    invite_id: uuid.UUID,
    data: InviteUpdate,
) -> InviteRead:
    invite = await get_invite(session, club_id, gala_id, invite_id)
    update_data = {
        k: v for k, v in data.model_dump(exclude_unset=True).items() if v is not None
    }

    full_name = update_data.get("full_name")
    if full_name and full_name.lower() != invite.full_name.lower():
        await _check_invite_name_available(session, gala_id, full_name, invite.id)

    for field, value in update_data.items():
        setattr(invite, field, value)

    await session.commit()
    return await get_invite_read(session, club_id, gala_id, invite_id)


@db_operation
async def set_presence(
    session: AsyncSession,
    club_id: uuid.UUID,
    gala_id: uuid.UUID,
    invite_id: uuid.UUID,
    present: bool,
) -> InviteRead:
    invite = await get_invite(session, club_id, gala_id, invite_id)
    invite.present = present
    await session.commit()
    return await get_invite_read(session, club_id, gala_id, invite_id)


@db_operation
async def delete_invite(
    session: AsyncSession, club_id: uuid.UUID, gala_id: uuid.UUID, invite_id: uuid.UUID
) -> None:
    """The invite's seat is freed with it"""
    invite = await get_invite(session, club_id, gala_id, invite_id)
    await session.delete(invite)
    await session.commit()


# === Affectations ===
def _affectation_query(gala_id: uuid.UUID):
    return (
        select(GalaTableAffectation, GalaTable, GalaInvite)
        .join(GalaTable, GalaTableAffectation.gala_table_id == GalaTable.id)
        .join(GalaInvite, GalaTableAffectation.gala_invite_id == GalaInvite.id)
        .where(GalaTable.gala_id == gala_id)
    )


def _to_affectation_read(
    affectation: GalaTableAffectation, table: GalaTable, invite: GalaInvite
) -> AffectationRead:
    return AffectationRead(
        id=affectation.id,
        gala_id=table.gala_id,
        gala_table_id=table.id,
        table_label=table.label,
        gala_invite_id=invite.id,
        invite_full_name=invite.full_name,
        assigned_at=affectation.assigned_at,
    )


@db_operation
async def get_affectations(
    session: AsyncSession,
    club_id: uuid.UUID,
    gala_id: uuid.UUID,
    table_id: Optional[uuid.UUID] = None,
) -> List[AffectationRead]:
    await get_gala(session, club_id, gala_id)
    query = _affectation_query(gala_id)
    if table_id is not None:
        query = query.where(GalaTable.id == table_id)

    result = await session.execute(
        query.order_by(GalaTable.label, GalaInvite.full_name)
    )
    return [_to_affectation_read(*row) for row in result.all()]


@db_operation
async def get_affectation(
    session: AsyncSession,
    club_id: uuid.UUID,
    gala_id: uuid.UUID,
    affectation_id: uuid.UUID,
) -> AffectationRead:
    await get_gala(session, club_id, gala_id)
    result = await session.execute(
        _affectation_query(gala_id).where(GalaTableAffectation.id == affectation_id)
    )
    row = result.first()
    if row is None:
        raise NotFoundError("Gala table affectation", affectation_id)
    return _to_affectation_read(*row)


async def _table_of_gala(
    session: AsyncSession, gala_id: uuid.UUID, table_id: uuid.UUID
) -> GalaTable:
    table = await session.get(GalaTable, table_id)
    if table is None or table.gala_id != gala_id:
        raise NotFoundError("Gala table", table_id)
    return table


async def _seat(
    session: AsyncSession,
    gala_id: uuid.UUID,
    data: AffectationCreate,
    assigned_at: Optional[datetime] = None,
) -> GalaTableAffectation:
    """Add the affectation of an invite not seated yet (no commit)"""
    table = await _table_of_gala(session, gala_id, data.gala_table_id)

    invite = await session.get(GalaInvite, data.gala_invite_id)
    if invite is None or invite.gala_id != gala_id:
        raise NotFoundError("Gala invite", data.gala_invite_id)

    result = await session.execute(
        select(GalaTableAffectation, GalaTable)
        .join(GalaTable, GalaTableAffectation.gala_table_id == GalaTable.id)
        .where(GalaTableAffectation.gala_invite_id == invite.id)
    )
    existing = result.first()
    if existing is not None:
        current, current_table = existing
        raise BusinessLogicError(
            f"Invite '{invite.full_name}' is already seated at table "
            f"'{current_table.label}'",
            {
                "affectation_id": str(current.id),
                "gala_table_id": str(current_table.id),
                "table_label": current_table.label,
            },
        )

    affectation = GalaTableAffectation(
        gala_table_id=table.id,
        gala_invite_id=invite.id,
        assigned_at=assigned_at or datetime.now(timezone.utc),
    )
    session.add(affectation)
    return affectation


@db_operation
async def create_affectation(
    session: AsyncSession,
    club_id: uuid.UUID,
    gala_id: uuid.UUID,
    data: AffectationCreate,
) -> AffectationRead:
    await get_gala(session, club_id, gala_id)
    affectation = await _seat(session, gala_id, data)
    await session.commit()

    log_business_event(
        "invite_seated",
        "gala",
        gala_id,
        {
            "gala_table_id": str(data.gala_table_id),
            "gala_invite_id": str(data.gala_invite_id),
        },
    )
    return await get_affectation(session, club_id, gala_id, affectation.id)


@db_operation
async def move_affectation(
    session: AsyncSession,
    club_id: uuid.UUID,
    gala_id: uuid.UUID,
    affectation_id: uuid.UUID,
    data: AffectationMove,
) -> AffectationRead:
    """Seat the invite at another table of the same gala; assigned_at is kept"""
    current = await get_affectation(session, club_id, gala_id, affectation_id)
    table = await _table_of_gala(session, gala_id, data.gala_table_id)

    affectation = await session.get(GalaTableAffectation, affectation_id)
    affectation.gala_table_id = table.id
    await session.commit()

    log_business_event(
        "invite_moved",
        "gala",
        gala_id,
        {
            "gala_invite_id": str(current.gala_invite_id),
            "from_table_id": str(current.gala_table_id),
            "to_table_id": str(table.id),
        },
    )
    return await get_affectation(session, club_id, gala_id, affectation_id)


@db_operation
async def delete_affectation(
    session: AsyncSession,
    club_id: uuid.UUID,
    gala_id: uuid.UUID,
    affectation_id: uuid.UUID,
) -> None:
    await get_affectation(session, club_id, gala_id, affectation_id)
    affectation = await session.get(GalaTableAffectation, affectation_id)
    await session.delete(affectation)
    await session.commit()


@db_operation
async def create_affectations_bulk(
    session: AsyncSession,
    club_id: uuid.UUID,
    gala_id: uuid.UUID,
    data: AffectationBulk,
) -> BulkResult:
    await get_gala(session, club_id, gala_id)

    async def seat_one(item: AffectationCreate):
        await _seat(session, gala_id, item)

    result = await process_sequentially(
        session,
        data.affectations,
        seat_one,
        describe=lambda item: f"{item.gala_invite_id} -> {item.gala_table_id}",
    )
    log_business_event(
        "affectations_bulk_processed",
        "gala",
        gala_id,
        {"created": result.created, "failed": len(result.errors)},
    )
    return result


@db_operation
async def distribute_invites(
    session: AsyncSession, club_id: uuid.UUID, gala_id: uuid.UUID
) -> DistributionResult:
    """
    Seat every invite without a table, round robin over the gala's tables
    ordered by libellé.
    """
    await get_gala(session, club_id, gala_id)

    invites = await _unseated_invites(session, gala_id)
    if not invites:
        raise ValidationError("No invite without a table for this gala")
    tables = await _gala_tables(session, gala_id)
    if not tables:
        raise ValidationError("No table defined for this gala")

    distributed_at = datetime.now(timezone.utc)
    assignments = round_robin_assignments(invites, tables)
    for invite, table in assignments:
        session.add(
            GalaTableAffectation(
                gala_table_id=table.id,
                gala_invite_id=invite.id,
                assigned_at=distributed_at,
            )
        )
    await session.commit()

    result = DistributionResult(
        gala_id=gala_id,
        invites_processed=len(invites),
        tables_used=min(len(tables), len(invites)),
        affectations_created=len(assignments),
        distributed_at=distributed_at,
    )
    log_business_event(
        "invites_distributed",
        "gala",
        gala_id,
        {"invites": result.invites_processed, "tables": result.tables_used},
    )
    return result


@db_operation
async def get_affectation_history(
    session: AsyncSession,
    club_id: uuid.UUID,
    gala_id: uuid.UUID,
    date_from: Optional[date] = None,
    date_to: Optional[date] = None,
) -> List[AffectationRead]:
    """Affectations by assignment date, most recent first; date_to is inclusive"""
    await get_gala(session, club_id, gala_id)
    query = _affectation_query(gala_id)

    if date_from is not None:
        query = query.where(
            GalaTableAffectation.assigned_at >= datetime.combine(date_from, time.min)
        )
    if date_to is not None:
        upper = datetime.combine(date_to + timedelta(days=1), time.min)
        query = query.where(GalaTableAffectation.assigned_at < upper)

    result = await session.execute(
        query.order_by(
            GalaTableAffectation.assigned_at.desc(),
            GalaTable.label,
            GalaInvite.full_name,
        )
    )
    return [_to_affectation_read(*row) for row in result.all()]
