import uuid

from sqlalchemy import (
    Column,
    Integer,
    Boolean,
    Date,
    Numeric,
    Text,
    DateTime,
    ForeignKey,
    Uuid,
    UniqueConstraint,
)
from sqlalchemy.sql import func
from sqlalchemy.orm import relationship
from club_manager.core.database import Base


class Mandat(Base):
    """One term (Rotary year) of a club"""

    __tablename__ = "mandats"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    club_id = Column(Uuid, ForeignKey("clubs.id", ondelete="CASCADE"), nullable=False)
    year = Column(Integer, nullable=False)
    start_date = Column(Date, nullable=False)
    end_date = Column(Date, nullable=False)
    description = Column(Text, nullable=True)
    dues_amount = Column(Numeric(18, 2), nullable=False, default=0)
    is_current = Column(Boolean, nullable=False, default=False)

    version = Column(Integer, nullable=False, default=1)
    created_at = Column(DateTime(timezone=True), server_default=func.now())

    club = relationship("Club", back_populates="mandats")

    __mapper_args__ = {"version_id_col": version}
    __table_args__ = (UniqueConstraint("club_id", "year", name="uq_mandat_club_year"),)
