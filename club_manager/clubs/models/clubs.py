import uuid

from sqlalchemy import (
    Column,
    Integer,
    String,
    Date,
    Time,
    DateTime,
    Uuid,
)
from sqlalchemy.sql import func
from sqlalchemy.orm import relationship
from club_manager.core.database import Base

MEETING_DAYS = ("Lundi", "Mardi", "Mercredi", "Jeudi", "Vendredi", "Samedi", "Dimanche")


class Club(Base):
    __tablename__ = "clubs"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    name = Column(String(200), nullable=False, index=True)
    number = Column(Integer, nullable=False, unique=True)
    founded_on = Column(Date, nullable=True)

    email = Column(String(255), nullable=True, unique=True)
    phone = Column(String(32), nullable=True)
    address = Column(String(255), nullable=True)

    # Weekly meeting metadata
    meeting_place = Column(String(255), nullable=True)
    meeting_day = Column(String(10), nullable=True)
    meeting_time = Column(Time, nullable=True)
    meeting_frequency = Column(String(100), nullable=True)

    sponsored_by = Column(String(200), nullable=True)

    version = Column(Integer, nullable=False, default=1)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(
        DateTime(timezone=True), server_default=func.now(), onupdate=func.now()
    )

    memberships = relationship(
        "UserClub", back_populates="club", cascade="all, delete-orphan"
    )
    mandats = relationship("Mandat", back_populates="club", cascade="all, delete")

    __mapper_args__ = {"version_id_col": version}

    def __repr__(self):
        return f"<Club(id={self.id}, number={self.number}, name='{self.name}')>"
