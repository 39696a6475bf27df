from datetime import date, time

from club_manager.meetings.models import OrdreDuJour, Reunion
from club_manager.meetings.services.compte_rendu import build_compte_rendu


def test_subject_and_agenda():
    reunion = Reunion(date=date(2025, 3, 14), time=time(19, 30), place="Hotel Ivoire")
    ordres = [
        OrdreDuJour(position=1, description="Budget du gala", rapport="Approuvé"),
        OrdreDuJour(position=2, description="Questions diverses"),
    ]

    subject, body = build_compte_rendu(
        "Rotary Club Abidjan", "Réunion statutaire", reunion, ordres, "Merci à tous"
    )

    assert subject == (
        "Compte rendu - Réunion statutaire du 14/03/2025 - Rotary Club Abidjan"
    )
    lines = body.splitlines()
    assert lines[0] == "Réunion statutaire du 14/03/2025 à 19:30"
    assert "Lieu : Hotel Ivoire" in lines
    assert "Merci à tous" in lines
    assert "1. Budget du gala" in lines
    assert "   Approuvé" in lines
    assert "2. Questions diverses" in lines


def test_without_time_or_place():
    reunion = Reunion(date=date(2025, 1, 5))
    subject, body = build_compte_rendu("Club", "Assemblée générale", reunion, [])

    assert body.splitlines()[0] == "Assemblée générale du 05/01/2025"
    assert "Lieu" not in body
    assert body.endswith("Ordre du jour :")
