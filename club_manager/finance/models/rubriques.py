import uuid

from sqlalchemy import (
    Column,
    Integer,
    String,
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


class RubriqueBudget(Base):
    """Leaf budget line: planned amount is unit price times quantity"""

    __tablename__ = "rubriques_budget"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    label = Column(String(200), nullable=False)
    unit_price = Column(Numeric(18, 2), nullable=False, default=0)
    quantity = Column(Integer, nullable=False, default=1)
    realized_amount = Column(Numeric(18, 2), nullable=False, default=0)

    sous_category_id = Column(
        Uuid, ForeignKey("sous_categories_budget.id"), nullable=False
    )
    mandat_id = Column(
        Uuid, ForeignKey("mandats.id", ondelete="CASCADE"), nullable=False
    )
    club_id = Column(Uuid, ForeignKey("clubs.id", ondelete="CASCADE"), nullable=False)

    version = Column(Integer, nullable=False, default=1)
    created_at = Column(DateTime(timezone=True), server_default=func.now())

    sous_category = relationship("SousCategoryBudget")
    realisations = relationship(
        "RubriqueRealisation",
        back_populates="rubrique",
        cascade="all, delete-orphan",
        order_by="RubriqueRealisation.date",
    )

    __mapper_args__ = {"version_id_col": version}
    __table_args__ = (
        UniqueConstraint(
            "mandat_id", "sous_category_id", "label", name="uq_rubrique_mandat_label"
        ),
    )

    @property
    def planned_amount(self):
        return (self.unit_price or 0) * (self.quantity or 0)


class RubriqueRealisation(Base):
    """Actual spend recorded against a rubrique"""

    __tablename__ = "rubriques_realisations"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    rubrique_id = Column(
        Uuid, ForeignKey("rubriques_budget.id", ondelete="CASCADE"), nullable=False
    )
    date = Column(Date, nullable=False)
    amount = Column(Numeric(18, 2), nullable=False)
    comment = Column(Text, nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())

    rubrique = relationship("RubriqueBudget", back_populates="realisations")
