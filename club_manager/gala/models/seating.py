import uuid

from sqlalchemy import (
    Column,
    Boolean,
    String,
    DateTime,
    ForeignKey,
    Uuid,
    UniqueConstraint,
)
from sqlalchemy.sql import func
from sqlalchemy.orm import relationship
from club_manager.core.database import Base


class GalaTable(Base):
    __tablename__ = "gala_tables"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    gala_id = Column(Uuid, ForeignKey("galas.id", ondelete="CASCADE"), nullable=False)
    label = Column(String(100), nullable=False)

    gala = relationship("Gala", back_populates="tables")
    affectations = relationship(
        "GalaTableAffectation", back_populates="table", cascade="all, delete-orphan"
    )

    __table_args__ = (UniqueConstraint("gala_id", "label", name="uq_gala_table_label"),)


class GalaInvite(Base):
    __tablename__ = "gala_invites"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    gala_id = Column(Uuid, ForeignKey("galas.id", ondelete="CASCADE"), nullable=False)
    full_name = Column(String(200), nullable=False)
    present = Column(Boolean, nullable=False, default=False)

    gala = relationship("Gala", back_populates="invites")
    affectation = relationship(
        "GalaTableAffectation",
        back_populates="invite",
        uselist=False,
        cascade="all, delete-orphan",
    )

    __table_args__ = (
        UniqueConstraint("gala_id", "full_name", name="uq_gala_invite_name"),
    )


class GalaTableAffectation(Base):
    """Seat of an invite; an invite sits at one table at most"""

    __tablename__ = "gala_table_affectations"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    gala_table_id = Column(
        Uuid, ForeignKey("gala_tables.id", ondelete="CASCADE"), nullable=False
    )
    gala_invite_id = Column(
        Uuid,
        ForeignKey("gala_invites.id", ondelete="CASCADE"),
        nullable=False,
        unique=True,
    )
    assigned_at = Column(DateTime(timezone=True), server_default=func.now(), index=True)

    table = relationship("GalaTable", back_populates="affectations")
    invite = relationship("GalaInvite", back_populates="affectation")
