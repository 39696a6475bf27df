import uuid

from sqlalchemy import (
    Column,
    String,
    DateTime,
    ForeignKey,
    Uuid,
    UniqueConstraint,
)
from sqlalchemy.sql import func
from sqlalchemy.orm import relationship
from club_manager.core.database import Base


class Presence(Base):
    """A club member marked present at a meeting"""

    __tablename__ = "presences_reunion"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    reunion_id = Column(
        Uuid, ForeignKey("reunions.id", ondelete="CASCADE"), nullable=False
    )
    user_id = Column(
        Uuid, ForeignKey("user_accounts.id", ondelete="CASCADE"), nullable=False
    )
    recorded_at = Column(DateTime(timezone=True), server_default=func.now())

    reunion = relationship("Reunion", back_populates="presences")
    user = relationship("UserAccount")

    __table_args__ = (
        UniqueConstraint("reunion_id", "user_id", name="uq_presence_member"),
    )


class ReunionGuest(Base):
    """Person from outside the club invited to a meeting"""

    __tablename__ = "invites_reunion"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    reunion_id = Column(
        Uuid, ForeignKey("reunions.id", ondelete="CASCADE"), nullable=False
    )
    last_name = Column(String(100), nullable=False)
    first_name = Column(String(100), nullable=False)
    email = Column(String(255), nullable=True)
    phone_number = Column(String(32), nullable=True)
    organisation = Column(String(200), nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())

    reunion = relationship("Reunion", back_populates="guests")

    @property
    def full_name(self) -> str:
        return f"{self.first_name} {self.last_name}"
