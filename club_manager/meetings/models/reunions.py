import uuid

from sqlalchemy import (
    Column,
    Integer,
    String,
    Date,
    Time,
    Text,
    DateTime,
    ForeignKey,
    Uuid,
)
from sqlalchemy.sql import func
from sqlalchemy.orm import relationship
from club_manager.core.database import Base


class TypeReunion(Base):
    """Meeting type (global lookup)"""

    __tablename__ = "types_reunion"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    label = Column(String(100), nullable=False, unique=True)


class Reunion(Base):
    __tablename__ = "reunions"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    club_id = Column(Uuid, ForeignKey("clubs.id", ondelete="CASCADE"), nullable=False)
    type_reunion_id = Column(Uuid, ForeignKey("types_reunion.id"), nullable=False)
    date = Column(Date, nullable=False, index=True)
    time = Column(Time, nullable=True)
    place = Column(String(255), nullable=True)

    version = Column(Integer, nullable=False, default=1)
    created_at = Column(DateTime(timezone=True), server_default=func.now())

    type_reunion = relationship("TypeReunion")
    ordres_du_jour = relationship(
        "OrdreDuJour",
        back_populates="reunion",
        cascade="all, delete-orphan",
        order_by="OrdreDuJour.position",
    )
    presences = relationship(
        "Presence", back_populates="reunion", cascade="all, delete-orphan"
    )
    guests = relationship(
        "ReunionGuest",
        back_populates="reunion",
        cascade="all, delete-orphan",
        order_by="ReunionGuest.last_name",
    )

    __mapper_args__ = {"version_id_col": version}


class OrdreDuJour(Base):
    """Agenda item of a meeting, with its report once held"""

    __tablename__ = "ordres_du_jour"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    reunion_id = Column(
        Uuid, ForeignKey("reunions.id", ondelete="CASCADE"), nullable=False
    )
    position = Column(Integer, nullable=False, default=0)
    description = Column(Text, nullable=False)
    rapport = Column(Text, nullable=True)

    reunion = relationship("Reunion", back_populates="ordres_du_jour")
