from club_manager.core.database import Base
from .reunions import TypeReunion, Reunion, OrdreDuJour
from .attendance import Presence, ReunionGuest

__all__ = ["Base", "TypeReunion", "Reunion", "OrdreDuJour", "Presence", "ReunionGuest"]
