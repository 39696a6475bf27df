"""
Budget report over the four-level hierarchy.

A single query builder serves the rubrique list, the statistics, the
paginated report and the CSV export: Rubrique -> SousCategory -> Category
-> Type, filtered by club, mandat and the optional report filters.
"""

import csv
import io
import uuid
from dataclasses import dataclass
from typing import Dict, List, Optional

from sqlalchemy import case
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.future import select

from club_manager.clubs.crud.mandats import get_mandat
from club_manager.core.database import db_operation
from club_manager.core.pagination import ReportListParams, page_slice, search_filter
from club_manager.finance.models.budgets import (
    CategoryBudget,
    SousCategoryBudget,
    TypeBudget,
)
from club_manager.finance.models.rubriques import RubriqueBudget
from club_manager.finance.schemas.reports import BudgetReport, BudgetReportLine
from club_manager.finance.schemas.rubriques import TypeBreakdown
from club_manager.finance.services.aggregation import (
    summarize_line,
    summarize_lines,
    to_decimal,
)

PLANNED_AMOUNT = RubriqueBudget.unit_price * RubriqueBudget.quantity
VARIANCE = RubriqueBudget.realized_amount - PLANNED_AMOUNT
PERCENT_REALIZED = case(
    (PLANNED_AMOUNT > 0, RubriqueBudget.realized_amount * 100 / PLANNED_AMOUNT),
    else_=0,
)

HIERARCHY = (TypeBudget.label, CategoryBudget.label, SousCategoryBudget.label)

# orderBy key -> leading sort column; the hierarchy breaks ties
REPORT_ORDERING = {
    "typebudget": TypeBudget.label,
    "categorie": CategoryBudget.label,
    "souscategorie": SousCategoryBudget.label,
    "rubrique": RubriqueBudget.label,
    "montantprevu": PLANNED_AMOUNT,
    "montantrealise": RubriqueBudget.realized_amount,
    "ecart": VARIANCE,
    "pourcentage": PERCENT_REALIZED,
}
DEFAULT_REPORT_ORDER = "typebudget"

CSV_COLUMNS = [
    "Type budget",
    "Catégorie",
    "Sous-catégorie",
    "Rubrique",
    "Prix unitaire",
    "Quantité",
    "Montant prévu",
    "Montant réalisé",
    "Écart",
    "Pourcentage",
    "Statut",
]


@dataclass
class ReportFilters:
    type_budget_id: Optional[uuid.UUID] = None
    category_id: Optional[uuid.UUID] = None
    sous_category_id: Optional[uuid.UUID] = None
    recherche: Optional[str] = None


def rubrique_lines_query(
    club_id: uuid.UUID,
    mandat_id: uuid.UUID,
    filters: Optional[ReportFilters] = None,
    order_by: Optional[str] = None,
    descending: bool = False,
):
    """Rows of (rubrique, sous-category, category, type) for a mandat"""
    filters = filters or ReportFilters()
    query = (
        select(RubriqueBudget, SousCategoryBudget, CategoryBudget, TypeBudget)
        .join(
            SousCategoryBudget,
            RubriqueBudget.sous_category_id == SousCategoryBudget.id,
        )
        .join(CategoryBudget, SousCategoryBudget.category_id == CategoryBudget.id)
        .join(TypeBudget, CategoryBudget.type_budget_id == TypeBudget.id)
        .where(
            RubriqueBudget.club_id == club_id,
            RubriqueBudget.mandat_id == mandat_id,
        )
    )

    if filters.type_budget_id is not None:
        query = query.where(TypeBudget.id == filters.type_budget_id)
    if filters.category_id is not None:
        query = query.where(CategoryBudget.id == filters.category_id)
    if filters.sous_category_id is not None:
        query = query.where(SousCategoryBudget.id == filters.sous_category_id)

    condition = search_filter(
        filters.recherche,
        RubriqueBudget.label,
        SousCategoryBudget.label,
        CategoryBudget.label,
        TypeBudget.label,
    )
    if condition is not None:
        query = query.where(condition)

    leading = REPORT_ORDERING.get(order_by or DEFAULT_REPORT_ORDER)
    if leading is None:
        leading = REPORT_ORDERING[DEFAULT_REPORT_ORDER]
    query = query.order_by(leading.desc() if descending else leading.asc())
    return query.order_by(*HIERARCHY, RubriqueBudget.label, RubriqueBudget.id)


def to_report_line(rubrique, sous_category, category, type_budget) -> BudgetReportLine:
    figures = summarize_line(rubrique.planned_amount, rubrique.realized_amount)
    return BudgetReportLine(
        rubrique_id=rubrique.id,
        rubrique=rubrique.label,
        sous_category_id=sous_category.id,
        sous_category=sous_category.label,
        category_id=category.id,
        category=category.label,
        type_budget_id=type_budget.id,
        type_budget=type_budget.label,
        unit_price=to_decimal(rubrique.unit_price),
        quantity=rubrique.quantity,
        planned_amount=figures.planned,
        realized_amount=figures.realized,
        variance=figures.variance,
        percent_realized=figures.percent_realized,
        status=figures.status,
    )


def breakdown_by_type(lines: List[BudgetReportLine]) -> List[TypeBreakdown]:
    groups: Dict[uuid.UUID, List[BudgetReportLine]] = {}
    for line in lines:
        groups.setdefault(line.type_budget_id, []).append(line)

    breakdown = [
        TypeBreakdown(
            type_budget_id=type_id,
            type_budget=group[0].type_budget,
            lines_count=len(group),
            figures=summarize_lines(
                (line.planned_amount, line.realized_amount) for line in group
            ),
        )
        for type_id, group in groups.items()
    ]
    return sorted(breakdown, key=lambda item: item.type_budget.lower())


@db_operation
async def get_report_lines(
    session: AsyncSession,
    club_id: uuid.UUID,
    mandat_id: uuid.UUID,
    filters: Optional[ReportFilters] = None,
    order_by: Optional[str] = None,
    descending: bool = False,
) -> List[BudgetReportLine]:
    result = await session.execute(
        rubrique_lines_query(club_id, mandat_id, filters, order_by, descending)
    )
    return [to_report_line(*row) for row in result.all()]


@db_operation
async def build_budget_report(
    session: AsyncSession,
    club_id: uuid.UUID,
    mandat_id: uuid.UUID,
    filters: ReportFilters,
    params: ReportListParams,
) -> BudgetReport:
    """Totals and the per-type breakdown cover every filtered line, not the page"""
    mandat = await get_mandat(session, club_id, mandat_id)
    lines = await get_report_lines(
        session, club_id, mandat_id, filters, params.order_by, params.descending
    )

    return BudgetReport(
        club_id=club_id,
        mandat_id=mandat_id,
        mandat_year=mandat.year,
        lines=page_slice(lines, params),
        totals=summarize_lines(
            (line.planned_amount, line.realized_amount) for line in lines
        ),
        by_type=breakdown_by_type(lines),
        total_lines=len(lines),
        page=params.page,
        page_size=params.page_size,
        total_pages=params.total_pages(len(lines)),
    )


def _csv_amount(value) -> str:
    return f"{to_decimal(value):.2f}"


def render_report_csv(lines: List[BudgetReportLine]) -> str:
    buffer = io.StringIO()
    writer = csv.writer(buffer, delimiter=";")
    writer.writerow(CSV_COLUMNS)

    for line in lines:
        writer.writerow(
            [
                line.type_budget,
                line.category,
                line.sous_category,
                line.rubrique,
                _csv_amount(line.unit_price),
                line.quantity,
                _csv_amount(line.planned_amount),
                _csv_amount(line.realized_amount),
                _csv_amount(line.variance),
                _csv_amount(line.percent_realized),
                line.status,
            ]
        )

    totals = summarize_lines(
        (line.planned_amount, line.realized_amount) for line in lines
    )
    writer.writerow(
        [
            "TOTAL",
            "",
            "",
            "",
            "",
            "",
            _csv_amount(totals.planned),
            _csv_amount(totals.realized),
            _csv_amount(totals.variance),
            _csv_amount(totals.percent_realized),
            totals.status,
        ]
    )
    return buffer.getvalue()


@db_operation
async def export_budget_report(
    session: AsyncSession,
    club_id: uuid.UUID,
    mandat_id: uuid.UUID,
    filters: ReportFilters,
    order_by: Optional[str] = None,
    descending: bool = False,
) -> str:
    await get_mandat(session, club_id, mandat_id)
    lines = await get_report_lines(
        session, club_id, mandat_id, filters, order_by, descending
    )
    return render_report_csv(lines)
