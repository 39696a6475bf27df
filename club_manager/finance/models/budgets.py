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


class TypeBudget(Base):
    """Top level of the budget hierarchy (global)"""

    __tablename__ = "types_budget"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    label = Column(String(150), nullable=False, unique=True)

    categories = relationship("CategoryBudget", back_populates="type_budget")


class CategoryBudget(Base):
    __tablename__ = "categories_budget"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    label = Column(String(150), nullable=False)
    type_budget_id = Column(Uuid, ForeignKey("types_budget.id"), nullable=False)

    type_budget = relationship("TypeBudget", back_populates="categories")

    __table_args__ = (
        UniqueConstraint("type_budget_id", "label", name="uq_category_type_label"),
    )


class SousCategoryBudget(Base):
    """Club-specific subdivision of a global category"""

    __tablename__ = "sous_categories_budget"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    label = Column(String(150), nullable=False)
    category_id = Column(Uuid, ForeignKey("categories_budget.id"), nullable=False)
    club_id = Column(Uuid, ForeignKey("clubs.id", ondelete="CASCADE"), nullable=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now())

    category = relationship("CategoryBudget")

    __table_args__ = (
        UniqueConstraint(
            "club_id", "category_id", "label", name="uq_sous_category_club_label"
        ),
    )
