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


class Fonction(Base):
    """Committee position (global lookup)"""

    __tablename__ = "fonctions"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    name = Column(String(100), nullable=False, unique=True)


class Comite(Base):
    __tablename__ = "comites"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    club_id = Column(Uuid, ForeignKey("clubs.id", ondelete="CASCADE"), nullable=False)
    mandat_id = Column(
        Uuid, ForeignKey("mandats.id", ondelete="CASCADE"), nullable=False
    )
    name = Column(String(150), nullable=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now())

    members = relationship(
        "ComiteMembre", back_populates="comite", cascade="all, delete-orphan"
    )

    __table_args__ = (UniqueConstraint("mandat_id", "name", name="uq_comite_mandat_name"),)


class ComiteMembre(Base):
    __tablename__ = "comite_membres"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    comite_id = Column(
        Uuid, ForeignKey("comites.id", ondelete="CASCADE"), nullable=False
    )
    user_id = Column(
        Uuid, ForeignKey("user_accounts.id", ondelete="CASCADE"), nullable=False
    )
    fonction_id = Column(Uuid, ForeignKey("fonctions.id"), nullable=True)
    added_at = Column(DateTime(timezone=True), server_default=func.now())

    comite = relationship("Comite", back_populates="members")
    user = relationship("UserAccount")
    fonction = relationship("Fonction")

    __table_args__ = (UniqueConstraint("comite_id", "user_id", name="uq_comite_member"),)
