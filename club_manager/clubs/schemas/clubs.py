import uuid
from datetime import date, datetime, time
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from club_manager.core.validations import (
    clean_phone_number,
    normalize_email,
    normalize_meeting_day,
)


class ClubBase(BaseModel):
    name: str = Field(..., min_length=2, max_length=200, description="Club name")
    number: int = Field(..., gt=0, description="Club number (unique, > 0)")
    founded_on: Optional[date] = Field(None, description="Charter date")

    email: Optional[str] = Field(None, max_length=255, description="Contact email (unique)")
    phone: Optional[str] = Field(None, max_length=32)
    address: Optional[str] = Field(None, max_length=255)

    meeting_place: Optional[str] = Field(None, max_length=255)
    meeting_day: Optional[str] = Field(None, description="Lundi..Dimanche")
    meeting_time: Optional[time] = None
    meeting_frequency: Optional[str] = Field(None, max_length=100)
    sponsored_by: Optional[str] = Field(None, max_length=200)

    model_config = ConfigDict(from_attributes=True, str_strip_whitespace=True)

    @field_validator("email")
    @classmethod
    def validate_email(cls, v):
        return normalize_email(v)

    @field_validator("phone")
    @classmethod
    def validate_phone(cls, v):
        return clean_phone_number(v)

    @field_validator("meeting_day")
    @classmethod
    def validate_meeting_day(cls, v):
        return normalize_meeting_day(v)


class ClubCreate(ClubBase):
    pass


class ClubUpdate(BaseModel):
    """Partial update; `version` enables optimistic concurrency"""

    name: Optional[str] = Field(None, min_length=2, max_length=200)
    number: Optional[int] = Field(None, gt=0)
    founded_on: Optional[date] = None
    email: Optional[str] = Field(None, max_length=255)
    phone: Optional[str] = Field(None, max_length=32)
    address: Optional[str] = Field(None, max_length=255)
    meeting_place: Optional[str] = Field(None, max_length=255)
    meeting_day: Optional[str] = None
    meeting_time: Optional[time] = None
    meeting_frequency: Optional[str] = Field(None, max_length=100)
    sponsored_by: Optional[str] = Field(None, max_length=200)
    version: Optional[int] = Field(None, description="Version read by the client")

    model_config = ConfigDict(str_strip_whitespace=True)

    @field_validator("email")
    @classmethod
    def validate_email(cls, v):
        return normalize_email(v)

    @field_validator("phone")
    @classmethod
    def validate_phone(cls, v):
        return clean_phone_number(v)

    @field_validator("meeting_day")
    @classmethod
    def validate_meeting_day(cls, v):
        return normalize_meeting_day(v)


class ClubRead(ClubBase):
    id: uuid.UUID
    version: int
    created_at: Optional[datetime] = None


class ClubStatistics(BaseModel):
    club_id: uuid.UUID
    members: int = 0
    mandats: int = 0
    current_mandat_year: Optional[int] = None
    comites: int = 0
    evenements: int = 0
    galas: int = 0
    reunions: int = 0
