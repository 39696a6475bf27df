import uuid
from datetime import datetime
from decimal import Decimal
from typing import Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from club_manager.core.validations import Money, clean_label
from club_manager.finance.services.aggregation import BudgetFigures, EventResult


class EvenementBase(BaseModel):
    label: str = Field(..., max_length=200)
    date: datetime
    place: Optional[str] = Field(None, max_length=255)
    description: Optional[str] = Field(None, max_length=5000)
    is_internal: bool = True

    model_config = ConfigDict(str_strip_whitespace=True)

    @field_validator("label")
    @classmethod
    def validate_label(cls, v):
        return clean_label(v)


class EvenementCreate(EvenementBase):
    pass


class EvenementUpdate(BaseModel):
    label: Optional[str] = Field(None, max_length=200)
    date: Optional[datetime] = None
    place: Optional[str] = Field(None, max_length=255)
    description: Optional[str] = Field(None, max_length=5000)
    is_internal: Optional[bool] = None
    version: Optional[int] = None

    model_config = ConfigDict(str_strip_whitespace=True)

    @field_validator("label")
    @classmethod
    def validate_label(cls, v):
        return clean_label(v) if v is not None else v


class EvenementRead(EvenementBase):
    id: uuid.UUID
    club_id: uuid.UUID
    version: int
    created_at: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True)


# === Budget lines ===
class BudgetLineCreate(BaseModel):
    label: str = Field(..., max_length=200)
    planned_amount: Money = Field(..., ge=0)
    realized_amount: Money = Field(Decimal(0), ge=0)

    @field_validator("label")
    @classmethod
    def validate_label(cls, v):
        return clean_label(v)


class BudgetLineUpdate(BaseModel):
    label: Optional[str] = Field(None, max_length=200)
    planned_amount: Optional[Money] = Field(None, ge=0)
    realized_amount: Optional[Money] = Field(None, ge=0)

    @field_validator("label")
    @classmethod
    def validate_label(cls, v):
        return clean_label(v) if v is not None else v


class RealizedAmountUpdate(BaseModel):
    realized_amount: Money = Field(..., ge=0)


class BudgetLineRead(BaseModel):
    id: uuid.UUID
    evenement_id: uuid.UUID
    label: str
    planned_amount: Money
    realized_amount: Money
    variance: Money
    percent_realized: Money
    status: str


# === Recettes ===
class RecetteCreate(BaseModel):
    label: str = Field(..., max_length=200)
    amount: Money = Field(..., gt=0)

    @field_validator("label")
    @classmethod
    def validate_label(cls, v):
        return clean_label(v)


class RecetteUpdate(BaseModel):
    label: Optional[str] = Field(None, max_length=200)
    amount: Optional[Money] = Field(None, gt=0)

    @field_validator("label")
    @classmethod
    def validate_label(cls, v):
        return clean_label(v) if v is not None else v


class RecetteBatch(BaseModel):
    recettes: List[RecetteCreate] = Field(..., min_length=1)


class RecetteRead(BaseModel):
    id: uuid.UUID
    evenement_id: uuid.UUID
    label: str
    amount: Money
    created_at: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True)


# === Aggregates ===
class EvenementSynthese(BaseModel):
    """Financial summary of one event"""

    evenement_id: uuid.UUID
    label: str
    date: datetime
    budget: BudgetFigures
    result: EventResult
    budget_lines_count: int
    recettes_count: int
    lines_by_status: Dict[str, int] = Field(default_factory=dict)
    overrun_lines: int = 0
    under_consumed_lines: int = 0


class MonthCount(BaseModel):
    month: int
    count: int


class EvenementStatistics(BaseModel):
    club_id: uuid.UUID
    year: int
    total: int
    internal: int
    external: int
    total_planned: Money
    total_realized: Money
    total_revenue: Money
    net_result: Money
    per_month: List[MonthCount] = Field(default_factory=list)
