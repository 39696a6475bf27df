import uuid
from enum import Enum

from sqlalchemy import (
    Column,
    String,
    Boolean,
    Date,
    DateTime,
    JSON,
    Uuid,
)
from sqlalchemy.sql import func
from sqlalchemy.orm import relationship
from club_manager.core.database import Base


class RoleType(str, Enum):
    """Global role claims, not scoped to a club"""

    admin = "Admin"
    president = "President"
    secretary = "Secretary"
    treasurer = "Treasurer"


class UserAccount(Base):
    __tablename__ = "user_accounts"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    email = Column(String(255), nullable=False, unique=True, index=True)
    password_hash = Column(String(255), nullable=False)

    first_name = Column(String(100), nullable=False)
    last_name = Column(String(100), nullable=False)
    member_number = Column(String(50), nullable=True)
    phone_number = Column(String(32), nullable=True)
    birthday = Column(Date, nullable=True)

    roles = Column(JSON, nullable=False, default=list)
    is_active = Column(Boolean, nullable=False, default=True)

    joined_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(
        DateTime(timezone=True), server_default=func.now(), onupdate=func.now()
    )

    memberships = relationship(
        "UserClub", back_populates="user", cascade="all, delete-orphan"
    )

    @property
    def full_name(self) -> str:
        return f"{self.first_name} {self.last_name}".strip()

    @property
    def role_set(self) -> frozenset:
        return frozenset(RoleType(role) for role in (self.roles or []))

    def __repr__(self):
        return f"<UserAccount(id={self.id}, email='{self.email}')>"
