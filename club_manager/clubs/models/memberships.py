import uuid

from sqlalchemy import (
    Column,
    DateTime,
    ForeignKey,
    Uuid,
    UniqueConstraint,
)
from sqlalchemy.sql import func
from sqlalchemy.orm import relationship
from club_manager.core.database import Base


class UserClub(Base):
    """Membership of a user in a club"""

    __tablename__ = "user_clubs"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    user_id = Column(
        Uuid, ForeignKey("user_accounts.id", ondelete="CASCADE"), nullable=False
    )
    club_id = Column(Uuid, ForeignKey("clubs.id", ondelete="CASCADE"), nullable=False)
    joined_at = Column(DateTime(timezone=True), server_default=func.now())

    user = relationship("UserAccount", back_populates="memberships")
    club = relationship("Club", back_populates="memberships")

    __table_args__ = (UniqueConstraint("user_id", "club_id", name="uq_user_club"),)
