import uuid

from sqlalchemy import (
    Column,
    Integer,
    String,
    DateTime,
    ForeignKey,
    Uuid,
)
from sqlalchemy.sql import func
from sqlalchemy.orm import relationship
from club_manager.core.database import Base


class Gala(Base):
    __tablename__ = "galas"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    club_id = Column(Uuid, ForeignKey("clubs.id", ondelete="CASCADE"), nullable=False)
    label = Column(String(200), nullable=False)
    date = Column(DateTime(timezone=True), nullable=False)
    place = Column(String(255), nullable=True)

    table_count = Column(Integer, nullable=False, default=0)
    # Ticket and raffle books ("souches") and their size
    ticket_books = Column(Integer, nullable=False, default=0)
    tickets_per_book = Column(Integer, nullable=False, default=0)
    raffle_books = Column(Integer, nullable=False, default=0)
    raffle_tickets_per_book = Column(Integer, nullable=False, default=0)

    version = Column(Integer, nullable=False, default=1)
    created_at = Column(DateTime(timezone=True), server_default=func.now())

    tables = relationship(
        "GalaTable",
        back_populates="gala",
        cascade="all, delete-orphan",
        order_by="GalaTable.label",
    )
    invites = relationship(
        "GalaInvite",
        back_populates="gala",
        cascade="all, delete-orphan",
        order_by="GalaInvite.full_name",
    )
    tickets = relationship(
        "GalaTicket", back_populates="gala", cascade="all, delete-orphan"
    )
    raffle_tickets = relationship(
        "GalaRaffleTicket", back_populates="gala", cascade="all, delete-orphan"
    )

    __mapper_args__ = {"version_id_col": version}

    @property
    def tickets_available(self) -> int:
        return (self.ticket_books or 0) * (self.tickets_per_book or 0)

    @property
    def raffle_tickets_available(self) -> int:
        return (self.raffle_books or 0) * (self.raffle_tickets_per_book or 0)
