import uuid
from typing import List

from pydantic import BaseModel, Field

from club_manager.core.validations import Money
from club_manager.finance.schemas.rubriques import TypeBreakdown
from club_manager.finance.services.aggregation import BudgetFigures


class BudgetReportLine(BaseModel):
    rubrique_id: uuid.UUID
    rubrique: str
    sous_category_id: uuid.UUID
    sous_category: str
    category_id: uuid.UUID
    category: str
    type_budget_id: uuid.UUID
    type_budget: str
    unit_price: Money
    quantity: int
    planned_amount: Money
    realized_amount: Money
    variance: Money
    percent_realized: Money
    status: str


class BudgetReport(BaseModel):
    club_id: uuid.UUID
    mandat_id: uuid.UUID
    mandat_year: int
    lines: List[BudgetReportLine] = Field(default_factory=list)
    totals: BudgetFigures
    by_type: List[TypeBreakdown] = Field(default_factory=list)
    total_lines: int
    page: int
    page_size: int
    total_pages: int
