import uuid
from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from club_manager.core.validations import (
    Money,
    clean_label,
    clean_phone_number,
    normalize_email,
)


class PresenceCreate(BaseModel):
    user_id: uuid.UUID


class PresenceBatch(BaseModel):
    user_ids: List[uuid.UUID] = Field(..., min_length=1)


class PresenceRead(BaseModel):
    id: uuid.UUID
    reunion_id: uuid.UUID
    user_id: uuid.UUID
    full_name: str
    email: str
    recorded_at: Optional[datetime] = None


class AttendanceStatistics(BaseModel):
    reunion_id: uuid.UUID
    active_members: int
    present: int
    absent: int
    attendance_rate: Money
    type_average: Money = Field(
        ..., description="Average attendance of the club's other meetings of this type"
    )
    vs_type_average: Money = Field(..., description="Percent above (or below) average")


class GuestBase(BaseModel):
    last_name: str = Field(..., max_length=100)
    first_name: str = Field(..., max_length=100)
    email: Optional[str] = Field(None, max_length=255)
    phone_number: Optional[str] = Field(None, max_length=32)
    organisation: Optional[str] = Field(None, max_length=200)

    model_config = ConfigDict(str_strip_whitespace=True)

    @field_validator("last_name", "first_name")
    @classmethod
    def validate_names(cls, v):
        return clean_label(v)

    @field_validator("email")
    @classmethod
    def validate_email(cls, v):
        return normalize_email(v)

    @field_validator("phone_number")
    @classmethod
    def validate_phone(cls, v):
        return clean_phone_number(v)

    @field_validator("organisation")
    @classmethod
    def validate_organisation(cls, v):
        return v or None


class GuestCreate(GuestBase):
    pass


class GuestUpdate(BaseModel):
    last_name: Optional[str] = Field(None, max_length=100)
    first_name: Optional[str] = Field(None, max_length=100)
    email: Optional[str] = Field(None, max_length=255)
    phone_number: Optional[str] = Field(None, max_length=32)
    organisation: Optional[str] = Field(None, max_length=200)

    model_config = ConfigDict(str_strip_whitespace=True)

    @field_validator("last_name", "first_name")
    @classmethod
    def validate_names(cls, v):
        return clean_label(v) if v is not None else v

    @field_validator("email")
    @classmethod
    def validate_email(cls, v):
        return normalize_email(v)

    @field_validator("phone_number")
    @classmethod
    def validate_phone(cls, v):
        return clean_phone_number(v)


class GuestBatch(BaseModel):
    guests: List[GuestCreate] = Field(..., min_length=1)


class GuestRead(BaseModel):
    id: uuid.UUID
    reunion_id: uuid.UUID
    last_name: str
    first_name: str
    full_name: str
    email: Optional[str] = None
    phone_number: Optional[str] = None
    organisation: Optional[str] = None

    model_config = ConfigDict(from_attributes=True)


class OrganisationCount(BaseModel):
    organisation: str
    guests: int
