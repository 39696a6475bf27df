import uuid
from datetime import date
from typing import List, Optional

from fastapi import APIRouter, Depends, Query, Request, Response, status
from sqlalchemy.ext.asyncio import AsyncSession

from club_manager.core.access import Caller
from club_manager.core.database import get_session
from club_manager.core.dependencies import (
    ensure_identifier,
    get_current_caller,
    require_admin,
    require_club_access,
    require_club_manager,
)
from club_manager.core.exceptions import ValidationError
from club_manager.core.limits import limiter
from club_manager.core.notifications import (
    NotificationGateway,
    get_notification_gateway,
)
from club_manager.core.pagination import ListParams, set_pagination_headers
from club_manager.meetings.crud.reunions import (
    create_ordre_du_jour,
    create_reunion,
    create_type_reunion,
    delete_ordre_du_jour,
    delete_reunion,
    get_ordre_du_jour,
    get_ordres_du_jour,
    get_reunion_detail,
    get_reunions_paginated,
    get_types_reunion,
    get_upcoming_reunions,
    send_compte_rendu,
    update_ordre_du_jour,
    update_reunion,
)
from club_manager.meetings.schemas.reunions import (
    CompteRenduRequest,
    CompteRenduResult,
    OrdreDuJourCreate,
    OrdreDuJourRead,
    OrdreDuJourUpdate,
    ReunionCreate,
    ReunionDetail,
    ReunionRead,
    ReunionUpdate,
    TypeReunionCreate,
    TypeReunionRead,
)

types_router = APIRouter(prefix="/types-reunion", tags=["Meeting types"])
router = APIRouter(prefix="/clubs/{club_id}/reunions", tags=["Reunions"])


# === Types (global) ===
@types_router.get("/", response_model=List[TypeReunionRead])
async def list_types_reunion(
    caller: Caller = Depends(get_current_caller),
    db: AsyncSession = Depends(get_session),
):
    return await get_types_reunion(db)


@types_router.post(
    "/", response_model=TypeReunionRead, status_code=status.HTTP_201_CREATED
)
async def create_new_type_reunion(
    data: TypeReunionCreate,
    caller: Caller = Depends(require_admin),
    db: AsyncSession = Depends(get_session),
):
    return await create_type_reunion(db, data)


# === Reunions ===
@router.get("/", response_model=List[ReunionRead])
@limiter.limit("60/minute")
async def list_reunions(
    request: Request,
    response: Response,
    club_id: uuid.UUID,
    params: ListParams = Depends(),
    type_reunion_id: Optional[uuid.UUID] = Query(None, alias="typeReunionId"),
    date_from: Optional[date] = Query(None, alias="dateDebut"),
    date_to: Optional[date] = Query(None, alias="dateFin"),
    caller: Caller = Depends(require_club_access),
    db: AsyncSession = Depends(get_session),
):
    """Meetings of the club, most recent first. **orderBy**: date, type, lieu"""
    if date_from and date_to and date_from > date_to:
        raise ValidationError("dateDebut must be before dateFin")

    reunions, total = await get_reunions_paginated(
        db, club_id, params, type_reunion_id, date_from, date_to
    )
    set_pagination_headers(response, params, total)
    return reunions


@router.get("/prochaines", response_model=List[ReunionRead])
@limiter.limit("60/minute")
async def list_upcoming_reunions(
    request: Request,
    club_id: uuid.UUID,
    nombre: int = Query(5, ge=1, le=50),
    caller: Caller = Depends(require_club_access),
    db: AsyncSession = Depends(get_session),
):
    return await get_upcoming_reunions(db, club_id, nombre)


@router.get("/{reunion_id}", response_model=ReunionDetail)
@limiter.limit("60/minute")
async def read_reunion(
    request: Request,
    club_id: uuid.UUID,
    reunion_id: uuid.UUID,
    caller: Caller = Depends(require_club_access),
    db: AsyncSession = Depends(get_session),
):
    """The meeting with its agenda"""
    ensure_identifier(reunion_id, "reunion_id")
    return await get_reunion_detail(db, club_id, reunion_id)


@router.post("/", response_model=ReunionRead, status_code=status.HTTP_201_CREATED)
@limiter.limit("30/minute")
async def create_new_reunion(
    request: Request,
    club_id: uuid.UUID,
    data: ReunionCreate,
    caller: Caller = Depends(require_club_manager("meetings")),
    db: AsyncSession = Depends(get_session),
):
    return await create_reunion(db, club_id, data)


@router.put("/{reunion_id}", response_model=ReunionRead)
@limiter.limit("30/minute")
async def update_existing_reunion(
    request: Request,
    club_id: uuid.UUID,
    reunion_id: uuid.UUID,
    data: ReunionUpdate,
    caller: Caller = Depends(require_club_manager("meetings")),
    db: AsyncSession = Depends(get_session),
):
    ensure_identifier(reunion_id, "reunion_id")
    return await update_reunion(db, club_id, reunion_id, data)


@router.delete("/{reunion_id}", status_code=status.HTTP_204_NO_CONTENT)
@limiter.limit("30/minute")
async def remove_reunion(
    request: Request,
    club_id: uuid.UUID,
    reunion_id: uuid.UUID,
    caller: Caller = Depends(require_club_manager("meetings")),
    db: AsyncSession = Depends(get_session),
):
    ensure_identifier(reunion_id, "reunion_id")
    await delete_reunion(db, club_id, reunion_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.post("/{reunion_id}/compte-rendu", response_model=CompteRenduResult)
@limiter.limit("3/minute")
async def send_meeting_summary(
    request: Request,
    club_id: uuid.UUID,
    reunion_id: uuid.UUID,
    data: CompteRenduRequest,
    caller: Caller = Depends(require_club_manager("meetings")),
    gateway: NotificationGateway = Depends(get_notification_gateway),
    db: AsyncSession = Depends(get_session),
):
    """
    Email the meeting summary to every club member with an address.

    Messages are sent one by one with a pause between two sends; the
    response counts the sent and failed deliveries.
    """
    ensure_identifier(reunion_id, "reunion_id")
    return await send_compte_rendu(db, club_id, reunion_id, gateway, data)


# === Ordres du jour ===
@router.get("/{reunion_id}/ordres-du-jour", response_model=List[OrdreDuJourRead])
@limiter.limit("60/minute")
async def list_ordres_du_jour(
    request: Request,
    club_id: uuid.UUID,
    reunion_id: uuid.UUID,
    caller: Caller = Depends(require_club_access),
    db: AsyncSession = Depends(get_session),
):
    ensure_identifier(reunion_id, "reunion_id")
    return await get_ordres_du_jour(db, club_id, reunion_id)


@router.get(
    "/{reunion_id}/ordres-du-jour/{ordre_id}", response_model=OrdreDuJourRead
)
@limiter.limit("60/minute")
async def read_ordre_du_jour(
    request: Request,
    club_id: uuid.UUID,
    reunion_id: uuid.UUID,
    ordre_id: uuid.UUID,
    caller: Caller = Depends(require_club_access),
    db: AsyncSession = Depends(get_session),
):
    ensure_identifier(reunion_id, "reunion_id")
    ensure_identifier(ordre_id, "ordre_id")
    return await get_ordre_du_jour(db, club_id, reunion_id, ordre_id)


@router.post(
    "/{reunion_id}/ordres-du-jour",
    response_model=OrdreDuJourRead,
    status_code=status.HTTP_201_CREATED,
)
@limiter.limit("60/minute")
async def create_new_ordre_du_jour(
    request: Request,
    club_id: uuid.UUID,
    reunion_id: uuid.UUID,
    data: OrdreDuJourCreate,
    caller: Caller = Depends(require_club_manager("meetings")),
    db: AsyncSession = Depends(get_session),
):
    ensure_identifier(reunion_id, "reunion_id")
    return await create_ordre_du_jour(db, club_id, reunion_id, data)


@router.put(
    "/{reunion_id}/ordres-du-jour/{ordre_id}", response_model=OrdreDuJourRead
)
@limiter.limit("60/minute")
async def update_existing_ordre_du_jour(
    request: Request,
    club_id: uuid.UUID,
    reunion_id: uuid.UUID,
    ordre_id: uuid.UUID,
    data: OrdreDuJourUpdate,
    caller: Caller = Depends(require_club_manager("meetings")),
    db: AsyncSession = Depends(get_session),
):
    """Edit an agenda item or record its report (**rapport**)"""
    ensure_identifier(reunion_id, "reunion_id")
    ensure_identifier(ordre_id, "ordre_id")
    return await update_ordre_du_jour(db, club_id, reunion_id, ordre_id, data)


@router.delete(
    "/{reunion_id}/ordres-du-jour/{ordre_id}", status_code=status.HTTP_204_NO_CONTENT
)
@limiter.limit("60/minute")
async def remove_ordre_du_jour(
    request: Request,
    club_id: uuid.UUID,
    reunion_id: uuid.UUID,
    ordre_id: uuid.UUID,
    caller: Caller = Depends(require_club_manager("meetings")),
    db: AsyncSession = Depends(get_session),
):
    ensure_identifier(reunion_id, "reunion_id")
    ensure_identifier(ordre_id, "ordre_id")
    await delete_ordre_du_jour(db, club_id, reunion_id, ordre_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
