from club_manager.core.database import Base
from .users import UserAccount, RoleType
from .clubs import Club, MEETING_DAYS
from .memberships import UserClub
from .mandats import Mandat
from .comites import Fonction, Comite, ComiteMembre
from .cotisations import Cotisation, PaiementCotisation

__all__ = [
    "Base",
    "UserAccount",
    "RoleType",
    "Club",
    "MEETING_DAYS",
    "UserClub",
    "Mandat",
    "Fonction",
    "Comite",
    "ComiteMembre",
    "Cotisation",
    "PaiementCotisation",
]
