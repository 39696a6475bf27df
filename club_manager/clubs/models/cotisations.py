import uuid

from sqlalchemy import (
    Column,
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


class Cotisation(Base):
    """Dues owed by a member for one mandat"""

    __tablename__ = "cotisations"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    club_id = Column(Uuid, ForeignKey("clubs.id", ondelete="CASCADE"), nullable=False)
    user_id = Column(
        Uuid, ForeignKey("user_accounts.id", ondelete="CASCADE"), nullable=False
    )
    mandat_id = Column(
        Uuid, ForeignKey("mandats.id", ondelete="CASCADE"), nullable=False
    )
    amount = Column(Numeric(18, 2), nullable=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now())

    user = relationship("UserAccount")
    mandat = relationship("Mandat")

    __table_args__ = (
        UniqueConstraint("user_id", "mandat_id", name="uq_cotisation_member_mandat"),
    )


class PaiementCotisation(Base):
    __tablename__ = "paiements_cotisation"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    club_id = Column(Uuid, ForeignKey("clubs.id", ondelete="CASCADE"), nullable=False)
    user_id = Column(
        Uuid, ForeignKey("user_accounts.id", ondelete="CASCADE"), nullable=False
    )
    amount = Column(Numeric(18, 2), nullable=False)
    paid_on = Column(Date, nullable=False)
    comment = Column(Text, nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())

    user = relationship("UserAccount")
