import uuid
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from club_manager.core.validations import clean_label


class LabelMixin(BaseModel):
    label: str = Field(..., max_length=200)

    @field_validator("label")
    @classmethod
    def validate_label(cls, v):
        return clean_label(v)


class TypeBudgetCreate(LabelMixin):
    pass


class TypeBudgetRead(BaseModel):
    id: uuid.UUID
    label: str

    model_config = ConfigDict(from_attributes=True)


class CategoryBudgetCreate(LabelMixin):
    pass


class CategoryBudgetRead(BaseModel):
    id: uuid.UUID
    label: str
    type_budget_id: uuid.UUID

    model_config = ConfigDict(from_attributes=True)


class SousCategoryCreate(LabelMixin):
    category_id: uuid.UUID


class SousCategoryUpdate(BaseModel):
    label: Optional[str] = Field(None, max_length=200)
    category_id: Optional[uuid.UUID] = None

    @field_validator("label")
    @classmethod
    def validate_label(cls, v):
        return clean_label(v) if v is not None else v


class SousCategoryRead(BaseModel):
    id: uuid.UUID
    label: str
    club_id: uuid.UUID
    category_id: uuid.UUID
    category_label: str
    type_budget_id: uuid.UUID
    type_budget_label: str
