import uuid
from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from club_manager.core.validations import clean_label


# === Tables ===
class TableCreate(BaseModel):
    label: str = Field(..., max_length=100)

    @field_validator("label")
    @classmethod
    def validate_label(cls, v):
        return clean_label(v)


class TableUpdate(TableCreate):
    pass


class TableRead(BaseModel):
    id: uuid.UUID
    gala_id: uuid.UUID
    label: str
    invites_count: int = 0


# === Invites ===
class InviteCreate(BaseModel):
    full_name: str = Field(..., max_length=200)
    present: bool = False

    @field_validator("full_name")
    @classmethod
    def validate_full_name(cls, v):
        return clean_label(v)


class InviteUpdate(BaseModel):
    full_name: Optional[str] = Field(None, max_length=200)
    present: Optional[bool] = None

    @field_validator("full_name")
    @classmethod
    def validate_full_name(cls, v):
        return clean_label(v) if v is not None else v


class PresenceUpdate(BaseModel):
    present: bool


class InviteRead(BaseModel):
    id: uuid.UUID
    gala_id: uuid.UUID
    full_name: str
    present: bool
    table_id: Optional[uuid.UUID] = None
    table_label: Optional[str] = None


class TableDetail(TableRead):
    invites: List[InviteRead] = Field(default_factory=list)


# === Affectations ===
class AffectationCreate(BaseModel):
    gala_table_id: uuid.UUID
    gala_invite_id: uuid.UUID


class AffectationMove(BaseModel):
    gala_table_id: uuid.UUID


class AffectationBulk(BaseModel):
    affectations: List[AffectationCreate] = Field(..., min_length=1)


class AffectationRead(BaseModel):
    id: uuid.UUID
    gala_id: uuid.UUID
    gala_table_id: uuid.UUID
    table_label: str
    gala_invite_id: uuid.UUID
    invite_full_name: str
    assigned_at: Optional[datetime] = None


class DistributionResult(BaseModel):
    gala_id: uuid.UUID
    invites_processed: int
    tables_used: int
    affectations_created: int
    distributed_at: datetime

    model_config = ConfigDict(from_attributes=True)
