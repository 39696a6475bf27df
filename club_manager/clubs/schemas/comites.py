import uuid
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from club_manager.core.validations import clean_label


class FonctionCreate(BaseModel):
    name: str = Field(..., max_length=100)

    @field_validator("name")
    @classmethod
    def validate_name(cls, v):
        return clean_label(v)


class FonctionRead(BaseModel):
    id: uuid.UUID
    name: str

    model_config = ConfigDict(from_attributes=True)


class ComiteCreate(BaseModel):
    name: str = Field(..., max_length=150)

    @field_validator("name")
    @classmethod
    def validate_name(cls, v):
        return clean_label(v)


class ComiteUpdate(ComiteCreate):
    pass


class ComiteMembreCreate(BaseModel):
    user_id: uuid.UUID
    fonction_id: Optional[uuid.UUID] = None


class ComiteMembreRead(BaseModel):
    id: uuid.UUID
    user_id: uuid.UUID
    full_name: str
    fonction_id: Optional[uuid.UUID] = None
    fonction: Optional[str] = None


class ComiteRead(BaseModel):
    id: uuid.UUID
    club_id: uuid.UUID
    mandat_id: uuid.UUID
    name: str
    members_count: int = 0

    model_config = ConfigDict(from_attributes=True)


class ComiteDetail(ComiteRead):
    members: List[ComiteMembreRead] = Field(default_factory=list)
