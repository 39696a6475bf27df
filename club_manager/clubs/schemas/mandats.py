import uuid
from datetime import date, datetime
from decimal import Decimal
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, model_validator

from club_manager.core.validations import Money


class MandatBase(BaseModel):
    year: int = Field(..., ge=1900, le=2200, description="Rotary year")
    start_date: date
    end_date: date
    description: Optional[str] = Field(None, max_length=2000)
    dues_amount: Money = Field(Decimal(0), ge=0, description="Yearly dues per member")

    model_config = ConfigDict(from_attributes=True, str_strip_whitespace=True)

    @model_validator(mode="after")
    def check_dates(self):
        if self.end_date <= self.start_date:
            raise ValueError("end_date must be after start_date")
        return self


class MandatCreate(MandatBase):
    pass


class MandatUpdate(BaseModel):
    year: Optional[int] = Field(None, ge=1900, le=2200)
    start_date: Optional[date] = None
    end_date: Optional[date] = None
    description: Optional[str] = Field(None, max_length=2000)
    dues_amount: Optional[Money] = Field(None, ge=0)
    is_current: Optional[bool] = None
    version: Optional[int] = None

    model_config = ConfigDict(str_strip_whitespace=True)


class MandatRead(MandatBase):
    id: uuid.UUID
    club_id: uuid.UUID
    is_current: bool
    version: int
    created_at: Optional[datetime] = None
