import uuid
from typing import Optional

from fastapi import APIRouter, Depends, Query, Request, Response
from sqlalchemy.ext.asyncio import AsyncSession

from club_manager.core.access import Caller
from club_manager.core.database import get_session
from club_manager.core.dependencies import ensure_identifier, require_club_access
from club_manager.core.limits import limiter
from club_manager.core.pagination import ReportListParams, set_pagination_headers
from club_manager.finance.crud.reports import (
    ReportFilters,
    build_budget_report,
    export_budget_report,
)
from club_manager.finance.schemas.reports import BudgetReport

router = APIRouter(
    prefix="/clubs/{club_id}/mandats/{mandat_id}/budget-rapport", tags=["Budget"]
)


def report_filters(
    type_budget_id: Optional[uuid.UUID] = Query(None, alias="typeBudgetId"),
    category_id: Optional[uuid.UUID] = Query(None, alias="categoryBudgetId"),
    sous_category_id: Optional[uuid.UUID] = Query(None, alias="sousCategoryBudgetId"),
    recherche: Optional[str] = Query(None),
) -> ReportFilters:
    return ReportFilters(
        type_budget_id=type_budget_id,
        category_id=category_id,
        sous_category_id=sous_category_id,
        recherche=recherche.strip() if recherche and recherche.strip() else None,
    )


@router.get("/", response_model=BudgetReport)
@limiter.limit("30/minute")
async def budget_report(
    request: Request,
    response: Response,
    club_id: uuid.UUID,
    mandat_id: uuid.UUID,
    params: ReportListParams = Depends(),
    filters: ReportFilters = Depends(report_filters),
    caller: Caller = Depends(require_club_access),
    db: AsyncSession = Depends(get_session),
):
    """
    Budget lines of a mandat with totals and a per-type breakdown.

    - **orderBy**: typebudget (default), categorie, souscategorie, rubrique,
      montantprevu, montantrealise, ecart, pourcentage
    - **recherche**: contained in any of the four libellés
    """
    ensure_identifier(mandat_id, "mandat_id")
    report = await build_budget_report(db, club_id, mandat_id, filters, params)
    set_pagination_headers(response, params, report.total_lines)
    return report


@router.get("/export")
@limiter.limit("10/minute")
async def export_report(
    request: Request,
    club_id: uuid.UUID,
    mandat_id: uuid.UUID,
    params: ReportListParams = Depends(),
    filters: ReportFilters = Depends(report_filters),
    caller: Caller = Depends(require_club_access),
    db: AsyncSession = Depends(get_session),
):
    """Same lines as the report, unpaginated, as a semicolon separated CSV"""
    ensure_identifier(mandat_id, "mandat_id")
    content = await export_budget_report(
        db, club_id, mandat_id, filters, params.order_by, params.descending
    )
    return Response(
        content=content,
        media_type="text/csv; charset=utf-8",
        headers={
            "Content-Disposition": f'attachment; filename="budget-{mandat_id}.csv"'
        },
    )
