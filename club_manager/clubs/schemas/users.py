import uuid
from datetime import date, datetime
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from club_manager.clubs.models.users import RoleType
from club_manager.core.validations import clean_phone_number, normalize_email


class UserBase(BaseModel):
    email: str = Field(..., max_length=255, description="Login email (unique)")
    first_name: str = Field(..., min_length=1, max_length=100)
    last_name: str = Field(..., min_length=1, max_length=100)
    member_number: Optional[str] = Field(None, max_length=50)
    phone_number: Optional[str] = Field(None, max_length=32)
    birthday: Optional[date] = None

    model_config = ConfigDict(from_attributes=True, str_strip_whitespace=True)

    @field_validator("email")
    @classmethod
    def validate_email(cls, v):
        email = normalize_email(v)
        if email is None:
            raise ValueError("Email is required")
        return email

    @field_validator("phone_number")
    @classmethod
    def validate_phone(cls, v):
        return clean_phone_number(v)


class UserRegister(UserBase):
    password: str = Field(..., min_length=8, max_length=128)


class UserLogin(BaseModel):
    email: str
    password: str

    @field_validator("email")
    @classmethod
    def lower_email(cls, v):
        return v.strip().lower()


class UserRead(BaseModel):
    id: uuid.UUID
    email: str
    first_name: str
    last_name: str
    full_name: str
    member_number: Optional[str] = None
    phone_number: Optional[str] = None
    birthday: Optional[date] = None
    roles: List[RoleType] = Field(default_factory=list)
    is_active: bool
    joined_at: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True)


class TokenResponse(BaseModel):
    access_token: str
    token_type: str = "bearer"
    expires_in: int = Field(..., description="Lifetime in seconds")
    user: UserRead


class UserRolesUpdate(BaseModel):
    roles: List[RoleType] = Field(default_factory=list)

    @field_validator("roles")
    @classmethod
    def unique_roles(cls, v):
        return sorted(set(v), key=lambda role: role.value)


class UserActiveUpdate(BaseModel):
    is_active: bool
