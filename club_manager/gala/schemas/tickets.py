import uuid
from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, Field, field_validator, model_validator

from club_manager.core.validations import Money


class TicketLine(BaseModel):
    """Sold by a club member (user_id) or by an external seller"""

    user_id: Optional[uuid.UUID] = None
    external_name: Optional[str] = Field(None, max_length=200)
    quantity: int = Field(..., ge=1)

    @field_validator("external_name")
    @classmethod
    def clean_external_name(cls, v):
        if v is None:
            return None
        return v.strip() or None


class TicketCreate(TicketLine):
    @model_validator(mode="after")
    def check_seller(self):
        if self.user_id is None and self.external_name is None:
            raise ValueError("Either user_id or external_name is required")
        return self


class TicketUpdate(BaseModel):
    quantity: Optional[int] = Field(None, ge=1)
    external_name: Optional[str] = Field(None, max_length=200)


class TicketBulk(BaseModel):
    # the seller rule is checked per item when the batch is processed
    tickets: List[TicketLine] = Field(..., min_length=1)


class TicketRead(BaseModel):
    id: uuid.UUID
    gala_id: uuid.UUID
    user_id: Optional[uuid.UUID] = None
    external_name: Optional[str] = None
    seller_name: str
    quantity: int
    created_at: Optional[datetime] = None


class SellerShare(BaseModel):
    user_id: Optional[uuid.UUID] = None
    external_name: Optional[str] = None
    seller_name: str
    quantity: int
    percent_of_sold: Money


class TicketStatistics(BaseModel):
    gala_id: uuid.UUID
    tickets_available: int
    tickets_sold: int
    tickets_remaining: int
    percent_sold: Money
    participants: int
    average_per_participant: Money
    shares: List[SellerShare] = Field(default_factory=list)
