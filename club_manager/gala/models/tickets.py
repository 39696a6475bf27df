import uuid

from sqlalchemy import (
    CheckConstraint,
    Column,
    Integer,
    String,
    DateTime,
    ForeignKey,
    Uuid,
    UniqueConstraint,
)
from sqlalchemy.sql import func
from sqlalchemy.orm import relationship
from club_manager.core.database import Base


class SellerMixin:
    @property
    def seller_name(self) -> str:
        if self.user is not None:
            return self.user.full_name
        return self.external_name or ""


class GalaTicket(SellerMixin, Base):
    """Tickets sold by a club member or an external seller"""

    __tablename__ = "gala_tickets"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    gala_id = Column(Uuid, ForeignKey("galas.id", ondelete="CASCADE"), nullable=False)
    user_id = Column(
        Uuid, ForeignKey("user_accounts.id", ondelete="CASCADE"), nullable=True
    )
    external_name = Column(String(200), nullable=True)
    quantity = Column(Integer, nullable=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now())

    gala = relationship("Gala", back_populates="tickets")
    user = relationship("UserAccount")

    __table_args__ = (
        UniqueConstraint("gala_id", "user_id", name="uq_gala_ticket_member"),
        CheckConstraint("quantity >= 1", name="ck_gala_ticket_quantity"),
    )


class GalaRaffleTicket(SellerMixin, Base):
    """Raffle (tombola) tickets sold, same ledger rules as gala tickets"""

    __tablename__ = "gala_raffle_tickets"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    gala_id = Column(Uuid, ForeignKey("galas.id", ondelete="CASCADE"), nullable=False)
    user_id = Column(
        Uuid, ForeignKey("user_accounts.id", ondelete="CASCADE"), nullable=True
    )
    external_name = Column(String(200), nullable=True)
    quantity = Column(Integer, nullable=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now())

    gala = relationship("Gala", back_populates="raffle_tickets")
    user = relationship("UserAccount")

    __table_args__ = (
        UniqueConstraint("gala_id", "user_id", name="uq_gala_raffle_member"),
        CheckConstraint("quantity >= 1", name="ck_gala_raffle_quantity"),
    )
