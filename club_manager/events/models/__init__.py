from club_manager.core.database import Base
from .evenements import Evenement, EvenementBudget, EvenementRecette

__all__ = ["Base", "Evenement", "EvenementBudget", "EvenementRecette"]
