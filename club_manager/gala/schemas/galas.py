import uuid
from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from club_manager.core.validations import clean_label


class GalaBase(BaseModel):
    label: str = Field(..., max_length=200)
    date: datetime
    place: Optional[str] = Field(None, max_length=255)
    table_count: int = Field(0, ge=0)
    ticket_books: int = Field(0, ge=0, description="Number of ticket books")
    tickets_per_book: int = Field(0, ge=0)
    raffle_books: int = Field(0, ge=0, description="Number of raffle books")
    raffle_tickets_per_book: int = Field(0, ge=0)

    model_config = ConfigDict(str_strip_whitespace=True)

    @field_validator("label")
    @classmethod
    def validate_label(cls, v):
        return clean_label(v)


class GalaCreate(GalaBase):
    pass


class GalaUpdate(BaseModel):
    label: Optional[str] = Field(None, max_length=200)
    date: Optional[datetime] = None
    place: Optional[str] = Field(None, max_length=255)
    table_count: Optional[int] = Field(None, ge=0)
    ticket_books: Optional[int] = Field(None, ge=0)
    tickets_per_book: Optional[int] = Field(None, ge=0)
    raffle_books: Optional[int] = Field(None, ge=0)
    raffle_tickets_per_book: Optional[int] = Field(None, ge=0)
    version: Optional[int] = None

    model_config = ConfigDict(str_strip_whitespace=True)

    @field_validator("label")
    @classmethod
    def validate_label(cls, v):
        return clean_label(v) if v is not None else v


class GalaRead(GalaBase):
    id: uuid.UUID
    club_id: uuid.UUID
    tickets_available: int
    raffle_tickets_available: int
    version: int
    created_at: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True)
