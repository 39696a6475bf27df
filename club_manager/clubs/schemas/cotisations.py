import uuid
from datetime import date, datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field

from club_manager.core.validations import Money


class CotisationCreate(BaseModel):
    user_id: uuid.UUID
    mandat_id: uuid.UUID
    amount: Optional[Money] = Field(
        None, ge=0, description="Defaults to the mandat's dues amount"
    )


class CotisationUpdate(BaseModel):
    amount: Money = Field(..., ge=0)


class CotisationRead(BaseModel):
    id: uuid.UUID
    club_id: uuid.UUID
    user_id: uuid.UUID
    mandat_id: uuid.UUID
    amount: Money
    created_at: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True)


class PaiementCreate(BaseModel):
    user_id: uuid.UUID
    amount: Money = Field(..., gt=0)
    paid_on: date
    comment: Optional[str] = Field(None, max_length=1000)


class PaiementUpdate(BaseModel):
    amount: Optional[Money] = Field(None, gt=0)
    paid_on: Optional[date] = None
    comment: Optional[str] = Field(None, max_length=1000)


class PaiementRead(BaseModel):
    id: uuid.UUID
    club_id: uuid.UUID
    user_id: uuid.UUID
    amount: Money
    paid_on: date
    comment: Optional[str] = None

    model_config = ConfigDict(from_attributes=True)


class SituationCotisation(BaseModel):
    user_id: uuid.UUID
    club_id: uuid.UUID
    total_due: Money
    total_paid: Money
    balance: Money
    cotisations_count: int
    paiements_count: int
    status: str
