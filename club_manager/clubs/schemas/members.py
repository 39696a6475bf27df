import uuid
from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict


class MemberAdd(BaseModel):
    user_id: uuid.UUID


class MemberRead(BaseModel):
    """A club member: account data plus the membership date"""

    user_id: uuid.UUID
    club_id: uuid.UUID
    email: str
    first_name: str
    last_name: str
    member_number: Optional[str] = None
    phone_number: Optional[str] = None
    is_active: bool
    joined_at: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True)


class UserClubRead(BaseModel):
    club_id: uuid.UUID
    club_name: str
    club_number: int
    joined_at: Optional[datetime] = None
