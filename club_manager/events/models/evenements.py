import uuid

from sqlalchemy import (
    Column,
    Integer,
    String,
    Boolean,
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


class Evenement(Base):
    __tablename__ = "evenements"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    club_id = Column(Uuid, ForeignKey("clubs.id", ondelete="CASCADE"), nullable=False)
    label = Column(String(200), nullable=False)
    date = Column(DateTime(timezone=True), nullable=False, index=True)
    place = Column(String(255), nullable=True)
    description = Column(Text, nullable=True)
    is_internal = Column(Boolean, nullable=False, default=True)

    version = Column(Integer, nullable=False, default=1)
    created_at = Column(DateTime(timezone=True), server_default=func.now())

    budget_lines = relationship(
        "EvenementBudget",
        back_populates="evenement",
        cascade="all, delete-orphan",
        order_by="EvenementBudget.label",
    )
    recettes = relationship(
        "EvenementRecette",
        back_populates="evenement",
        cascade="all, delete-orphan",
        order_by="EvenementRecette.label",
    )

    __mapper_args__ = {"version_id_col": version}


class EvenementBudget(Base):
    """Planned vs realized expense line of an event"""

    __tablename__ = "evenement_budgets"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    evenement_id = Column(
        Uuid, ForeignKey("evenements.id", ondelete="CASCADE"), nullable=False
    )
    label = Column(String(200), nullable=False)
    planned_amount = Column(Numeric(18, 2), nullable=False, default=0)
    realized_amount = Column(Numeric(18, 2), nullable=False, default=0)

    evenement = relationship("Evenement", back_populates="budget_lines")

    __table_args__ = (
        UniqueConstraint("evenement_id", "label", name="uq_evenement_budget_label"),
    )


class EvenementRecette(Base):
    """Revenue line of an event"""

    __tablename__ = "evenement_recettes"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    evenement_id = Column(
        Uuid, ForeignKey("evenements.id", ondelete="CASCADE"), nullable=False
    )
    label = Column(String(200), nullable=False)
    amount = Column(Numeric(18, 2), nullable=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now())

    evenement = relationship("Evenement", back_populates="recettes")
