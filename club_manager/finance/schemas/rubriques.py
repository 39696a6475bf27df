import uuid
import datetime
from typing import Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from club_manager.core.validations import Money, clean_label
from club_manager.finance.services.aggregation import BudgetFigures


class RubriqueCreate(BaseModel):
    label: str = Field(..., max_length=200)
    unit_price: Money = Field(..., ge=0)
    quantity: int = Field(1, ge=1)
    sous_category_id: uuid.UUID

    @field_validator("label")
    @classmethod
    def validate_label(cls, v):
        return clean_label(v)


class RubriqueUpdate(BaseModel):
    label: Optional[str] = Field(None, max_length=200)
    unit_price: Optional[Money] = Field(None, ge=0)
    quantity: Optional[int] = Field(None, ge=1)
    sous_category_id: Optional[uuid.UUID] = None
    version: Optional[int] = None

    @field_validator("label")
    @classmethod
    def validate_label(cls, v):
        return clean_label(v) if v is not None else v


class RubriqueRead(BaseModel):
    """Budget line with its derived figures"""

    id: uuid.UUID
    club_id: uuid.UUID
    mandat_id: uuid.UUID
    label: str
    unit_price: Money
    quantity: int
    sous_category_id: uuid.UUID
    planned_amount: Money
    realized_amount: Money
    variance: Money
    percent_realized: Money
    status: str
    version: int


class RealisationCreate(BaseModel):
    date: datetime.date
    amount: Money = Field(..., gt=0)
    comment: Optional[str] = Field(None, max_length=1000)


class RealisationUpdate(BaseModel):
    date: Optional[datetime.date] = None
    amount: Optional[Money] = Field(None, gt=0)
    comment: Optional[str] = Field(None, max_length=1000)


class RealisationRead(BaseModel):
    id: uuid.UUID
    rubrique_id: uuid.UUID
    date: datetime.date
    amount: Money
    comment: Optional[str] = None
    created_at: Optional[datetime.datetime] = None

    model_config = ConfigDict(from_attributes=True)


class TypeBreakdown(BaseModel):
    type_budget_id: uuid.UUID
    type_budget: str
    lines_count: int
    figures: BudgetFigures


class RubriqueStatistics(BaseModel):
    club_id: uuid.UUID
    mandat_id: uuid.UUID
    lines_count: int
    totals: BudgetFigures
    by_type: List[TypeBreakdown] = Field(default_factory=list)
    by_status: Dict[str, int] = Field(default_factory=dict)
    realisations_count: int = 0
