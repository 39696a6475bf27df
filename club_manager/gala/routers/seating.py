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
from club_manager.gala.crud.seating import (
    create_affectation,
    create_affectations_bulk,
    create_invite,
    create_table,
    delete_affectation,
    delete_invite,
    delete_table,
    distribute_invites,
    get_affectation,
    get_affectation_history,
    get_affectations,
    get_invite_read,
    get_invites_paginated,
    get_invites_without_table,
    get_table_detail,
    get_tables,
    move_affectation,
    set_presence,
    update_invite,
    update_table,
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
    PresenceUpdate,
    TableCreate,
    TableDetail,
    TableRead,
    TableUpdate,
)

router = APIRouter(prefix="/clubs/{club_id}/galas/{gala_id}", tags=["Gala seating"])


# === Tables ===
@router.get("/tables", response_model=List[TableRead])
@limiter.limit("60/minute")
async def list_tables(
    request: Request,
    club_id: uuid.UUID,
    gala_id: uuid.UUID,
    caller: Caller = Depends(require_club_access),
    db: AsyncSession = Depends(get_session),
):
    ensure_identifier(gala_id, "gala_id")
    return await get_tables(db, club_id, gala_id)


@router.get("/tables/{table_id}", response_model=TableDetail)
@limiter.limit("60/minute")
async def read_table(
    request: Request,
    club_id: uuid.UUID,
    gala_id: uuid.UUID,
    table_id: uuid.UUID,
    caller: Caller = Depends(require_club_access),
    db: AsyncSession = Depends(get_session),
):
    """The table with the invites seated at it"""
    ensure_identifier(gala_id, "gala_id")
    ensure_identifier(table_id, "table_id")
    return await get_table_detail(db, club_id, gala_id, table_id)


@router.post("/tables", response_model=TableRead, status_code=status.HTTP_201_CREATED)
@limiter.limit("30/minute")
async def create_new_table(
    request: Request,
    club_id: uuid.UUID,
    gala_id: uuid.UUID,
    data: TableCreate,
    caller: Caller = Depends(require_club_manager("gala_tables")),
    db: AsyncSession = Depends(get_session),
):
    ensure_identifier(gala_id, "gala_id")
    return await create_table(db, club_id, gala_id, data)


@router.put("/tables/{table_id}", response_model=TableRead)
@limiter.limit("30/minute")
async def update_existing_table(
    request: Request,
    club_id: uuid.UUID,
    gala_id: uuid.UUID,
    table_id: uuid.UUID,
    data: TableUpdate,
    caller: Caller = Depends(require_club_manager("gala_tables")),
    db: AsyncSession = Depends(get_session),
):
    ensure_identifier(gala_id, "gala_id")
    ensure_identifier(table_id, "table_id")
    return await update_table(db, club_id, gala_id, table_id, data)


@router.delete("/tables/{table_id}", status_code=status.HTTP_204_NO_CONTENT)
@limiter.limit("30/minute")
async def remove_table(
    request: Request,
    club_id: uuid.UUID,
    gala_id: uuid.UUID,
    table_id: uuid.UUID,
    caller: Caller = Depends(require_club_manager("gala_tables")),
    db: AsyncSession = Depends(get_session),
):
    """Refused while invites are seated at the table"""
    ensure_identifier(gala_id, "gala_id")
    ensure_identifier(table_id, "table_id")
    await delete_table(db, club_id, gala_id, table_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


# === Invites ===
@router.get("/invites", response_model=List[InviteRead])
@limiter.limit("60/minute")
async def list_invites(
    request: Request,
    response: Response,
    club_id: uuid.UUID,
    gala_id: uuid.UUID,
    params: ListParams = Depends(),
    present: Optional[bool] = Query(None),
    caller: Caller = Depends(require_club_access),
    db: AsyncSession = Depends(get_session),
):
    """Invites with their table. **orderBy**: nom (default), present, table"""
    ensure_identifier(gala_id, "gala_id")
    invites, total = await get_invites_paginated(db, club_id, gala_id, params, present)
    set_pagination_headers(response, params, total)
    return invites


@router.get("/invites/sans-table", response_model=List[InviteRead])
@limiter.limit("60/minute")
async def list_invites_without_table(
    request: Request,
    club_id: uuid.UUID,
    gala_id: uuid.UUID,
    caller: Caller = Depends(require_club_access),
    db: AsyncSession = Depends(get_session),
):
    ensure_identifier(gala_id, "gala_id")
    invites = await get_invites_without_table(db, club_id, gala_id)
    return [
        InviteRead(
            id=invite.id,
            gala_id=invite.gala_id,
            full_name=invite.full_name,
            present=invite.present,
        )
        for invite in invites
    ]


@router.get("/invites/{invite_id}", response_model=InviteRead)
@limiter.limit("60/minute")
async def read_invite(
    request: Request,
    club_id: uuid.UUID,
    gala_id: uuid.UUID,
    invite_id: uuid.UUID,
    caller: Caller = Depends(require_club_access),
    db: AsyncSession = Depends(get_session),
):
    ensure_identifier(gala_id, "gala_id")
    ensure_identifier(invite_id, "invite_id")
    return await get_invite_read(db, club_id, gala_id, invite_id)


@router.post("/invites", response_model=InviteRead, status_code=status.HTTP_201_CREATED)
@limiter.limit("60/minute")
async def create_new_invite(
    request: Request,
    club_id: uuid.UUID,
    gala_id: uuid.UUID,
    data: InviteCreate,
    caller: Caller = Depends(require_club_manager("gala_invites")),
    db: AsyncSession = Depends(get_session),
):
    ensure_identifier(gala_id, "gala_id")
    return await create_invite(db, club_id, gala_id, data)


@router.put("/invites/{invite_id}", response_model=InviteRead)
@limiter.limit("60/minute")
async def update_existing_invite(
    request: Request,
    club_id: uuid.UUID,
    gala_id: uuid.UUID,
    invite_id: uuid.UUID,
    data: InviteUpdate,
    caller: Caller = Depends(require_club_manager("gala_invites")),
    db: AsyncSession = Depends(get_session),
):
    ensure_identifier(gala_id, "gala_id")
    ensure_identifier(invite_id, "invite_id")
    return await update_invite(db, club_id, gala_id, invite_id, data)


@router.patch("/invites/{invite_id}/presence", response_model=InviteRead)
@limiter.limit("120/minute")
async def update_presence(
    request: Request,
    club_id: uuid.UUID,
    gala_id: uuid.UUID,
    invite_id: uuid.UUID,
    data: PresenceUpdate,
    caller: Caller = Depends(require_club_manager("gala_invites")),
    db: AsyncSession = Depends(get_session),
):
    """Check an invite in (or out) at the entrance"""
    ensure_identifier(gala_id, "gala_id")
    ensure_identifier(invite_id, "invite_id")
    return await set_presence(db, club_id, gala_id, invite_id, data.present)


@router.delete("/invites/{invite_id}", status_code=status.HTTP_204_NO_CONTENT)
@limiter.limit("60/minute")
async def remove_invite(
    request: Request,
    club_id: uuid.UUID,
    gala_id: uuid.UUID,
    invite_id: uuid.UUID,
    caller: Caller = Depends(require_club_manager("gala_invites")),
    db: AsyncSession = Depends(get_session),
):
    ensure_identifier(gala_id, "gala_id")
    ensure_identifier(invite_id, "invite_id")
    await delete_invite(db, club_id, gala_id, invite_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


# === Affectations ===
@router.get("/affectations", response_model=List[AffectationRead])
@limiter.limit("60/minute")
async def list_affectations(
    request: Request,
    club_id: uuid.UUID,
    gala_id: uuid.UUID,
    table_id: Optional[uuid.UUID] = Query(None, alias="tableId"),
    caller: Caller = Depends(require_club_access),
    db: AsyncSession = Depends(get_session),
):
    ensure_identifier(gala_id, "gala_id")
    return await get_affectations(db, club_id, gala_id, table_id)


@router.get("/affectations/historique", response_model=List[AffectationRead])
@limiter.limit("30/minute")
async def affectation_history(
    request: Request,
    club_id: uuid.UUID,
    gala_id: uuid.UUID,
    date_from: Optional[date] = Query(None, alias="dateDebut"),
    date_to: Optional[date] = Query(None, alias="dateFin"),
    caller: Caller = Depends(require_club_access),
    db: AsyncSession = Depends(get_session),
):
    """Affectations by assignment date, most recent first"""
    ensure_identifier(gala_id, "gala_id")
    if date_from and date_to and date_from > date_to:
        raise ValidationError("dateDebut must be before dateFin")
    return await get_affectation_history(db, club_id, gala_id, date_from, date_to)


@router.get("/affectations/{affectation_id}", response_model=AffectationRead)
@limiter.limit("60/minute")
async def read_affectation(
    request: Request,
    club_id: uuid.UUID,
    gala_id: uuid.UUID,
    affectation_id: uuid.UUID,
    caller: Caller = Depends(require_club_access),
    db: AsyncSession = Depends(get_session),
):
    ensure_identifier(gala_id, "gala_id")
    ensure_identifier(affectation_id, "affectation_id")
    return await get_affectation(db, club_id, gala_id, affectation_id)


@router.post(
    "/affectations", response_model=AffectationRead, status_code=status.HTTP_201_CREATED
)
@limiter.limit("60/minute")
async def seat_invite(
    request: Request,
    club_id: uuid.UUID,
    gala_id: uuid.UUID,
    data: AffectationCreate,
    caller: Caller = Depends(require_club_manager("gala_affectations")),
    db: AsyncSession = Depends(get_session),
):
    """
    Seat an invite at a table.

    An invite already seated is refused with the table it sits at.
    """
    ensure_identifier(gala_id, "gala_id")
    return await create_affectation(db, club_id, gala_id, data)


@router.post("/affectations/bulk", response_model=BulkResult)
@limiter.limit("10/minute")
async def seat_invites_in_bulk(
    request: Request,
    club_id: uuid.UUID,
    gala_id: uuid.UUID,
    data: AffectationBulk,
    caller: Caller = Depends(require_club_manager("gala_affectations")),
    db: AsyncSession = Depends(get_session),
):
    """Seat several invites; each failure is reported without stopping the others"""
    ensure_identifier(gala_id, "gala_id")
    return await create_affectations_bulk(db, club_id, gala_id, data)


@router.post("/affectations/repartition-automatique", response_model=DistributionResult)
@limiter.limit("5/minute")
async def distribute(
    request: Request,
    club_id: uuid.UUID,
    gala_id: uuid.UUID,
    caller: Caller = Depends(require_club_manager("gala_affectations")),
    db: AsyncSession = Depends(get_session),
):
    """Seat every invite without a table, in turn around the tables"""
    ensure_identifier(gala_id, "gala_id")
    return await distribute_invites(db, club_id, gala_id)


@router.put("/affectations/{affectation_id}", response_model=AffectationRead)
@limiter.limit("60/minute")
async def move_invite(
    request: Request,
    club_id: uuid.UUID,
    gala_id: uuid.UUID,
    affectation_id: uuid.UUID,
    data: AffectationMove,
    caller: Caller = Depends(require_club_manager("gala_affectations")),
    db: AsyncSession = Depends(get_session),
):
    """Move the invite to another table of the same gala"""
    ensure_identifier(gala_id, "gala_id")
    ensure_identifier(affectation_id, "affectation_id")
    return await move_affectation(db, club_id, gala_id, affectation_id, data)


@router.delete(
    "/affectations/{affectation_id}", status_code=status.HTTP_204_NO_CONTENT
)
@limiter.limit("60/minute")
async def unseat_invite(
    request: Request,
    club_id: uuid.UUID,
    gala_id: uuid.UUID,
    affectation_id: uuid.UUID,
    caller: Caller = Depends(require_club_manager("gala_affectations")),
    db: AsyncSession = Depends(get_session),
):
    ensure_identifier(gala_id, "gala_id")
    ensure_identifier(affectation_id, "affectation_id")
    await delete_affectation(db, club_id, gala_id, affectation_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
