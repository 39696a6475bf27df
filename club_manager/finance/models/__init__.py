from club_manager.core.database import Base
from .budgets import TypeBudget, CategoryBudget, SousCategoryBudget
from .rubriques import RubriqueBudget, RubriqueRealisation

__all__ = [
    "Base",
    "TypeBudget",
    "CategoryBudget",
    "SousCategoryBudget",
    "RubriqueBudget",
    "RubriqueRealisation",
]
