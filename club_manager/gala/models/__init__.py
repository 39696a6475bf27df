from club_manager.core.database import Base
from .galas import Gala
from .seating import GalaTable, GalaInvite, GalaTableAffectation
from .tickets import GalaTicket, GalaRaffleTicket

__all__ = [
    "Base",
    "Gala",
    "GalaTable",
    "GalaInvite",
    "GalaTableAffectation",
    "GalaTicket",
    "GalaRaffleTicket",
]
