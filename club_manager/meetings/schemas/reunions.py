import datetime
import uuid
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from club_manager.core.notifications import BroadcastResult
from club_manager.core.validations import clean_label


class TypeReunionCreate(BaseModel):
    label: str = Field(..., max_length=100)

    @field_validator("label")
    @classmethod
    def validate_label(cls, v):
        return clean_label(v)


class TypeReunionRead(BaseModel):
    id: uuid.UUID
    label: str

    model_config = ConfigDict(from_attributes=True)


class ReunionCreate(BaseModel):
    type_reunion_id: uuid.UUID
    date: datetime.date
    time: Optional[datetime.time] = None
    place: Optional[str] = Field(None, max_length=255)

    model_config = ConfigDict(str_strip_whitespace=True)


class ReunionUpdate(BaseModel):
    type_reunion_id: Optional[uuid.UUID] = None
    date: Optional[datetime.date] = None
    time: Optional[datetime.time] = None
    place: Optional[str] = Field(None, max_length=255)
    version: Optional[int] = None

    model_config = ConfigDict(str_strip_whitespace=True)


class OrdreDuJourCreate(BaseModel):
    description: str = Field(..., max_length=5000)
    position: Optional[int] = Field(None, ge=0)
    rapport: Optional[str] = None

    @field_validator("description")
    @classmethod
    def validate_description(cls, v):
        return clean_label(v)


class OrdreDuJourUpdate(BaseModel):
    description: Optional[str] = Field(None, max_length=5000)
    position: Optional[int] = Field(None, ge=0)
    rapport: Optional[str] = None

    @field_validator("description")
    @classmethod
    def validate_description(cls, v):
        return clean_label(v) if v is not None else v


class OrdreDuJourRead(BaseModel):
    id: uuid.UUID
    reunion_id: uuid.UUID
    position: int
    description: str
    rapport: Optional[str] = None

    model_config = ConfigDict(from_attributes=True)


class ReunionRead(BaseModel):
    id: uuid.UUID
    club_id: uuid.UUID
    type_reunion_id: uuid.UUID
    type_reunion: str
    date: datetime.date
    time: Optional[datetime.time] = None
    place: Optional[str] = None
    version: int
    ordres_du_jour_count: int = 0


class ReunionDetail(ReunionRead):
    ordres_du_jour: List[OrdreDuJourRead] = Field(default_factory=list)


class CompteRenduRequest(BaseModel):
    message: Optional[str] = Field(
        None, max_length=5000, description="Text added before the agenda"
    )


class CompteRenduResult(BroadcastResult):
    reunion_id: uuid.UUID
    subject: str
