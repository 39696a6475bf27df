from typing import Iterable, Optional, Tuple

from club_manager.meetings.models.reunions import OrdreDuJour, Reunion


def build_compte_rendu(
    club_name: str,
    type_label: str,
    reunion: Reunion,
    ordres: Iterable[OrdreDuJour],
    message: Optional[str] = None,
) -> Tuple[str, str]:
    """Subject and plain text body of a meeting summary"""
    day = reunion.date.strftime("%d/%m/%Y")
    subject = f"Compte rendu - {type_label} du {day} - {club_name}"

    lines = [f"{type_label} du {day}"]
    if reunion.time is not None:
        lines[0] += f" à {reunion.time.strftime('%H:%M')}"
    if reunion.place:
        lines.append(f"Lieu : {reunion.place}")
    if message:
        lines.extend(["", message.strip()])

    lines.extend(["", "Ordre du jour :"])
    for index, ordre in enumerate(ordres, start=1):
        lines.append(f"{index}. {ordre.description}")
        if ordre.rapport:
            lines.append(f"   {ordre.rapport}")

    return subject, "\n".join(lines)
