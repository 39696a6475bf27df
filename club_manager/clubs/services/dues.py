from decimal import Decimal

from club_manager.finance.services.aggregation import to_decimal

STATUS_NO_DUES = "Aucune cotisation"
STATUS_UP_TO_DATE = "À jour"
STATUS_PARTIAL = "Partiellement payé"
STATUS_LATE = "En retard"


def dues_balance(total_due, total_paid) -> Decimal:
    return to_decimal(total_due) - to_decimal(total_paid)


def dues_status(total_due, total_paid, cotisations_count: int) -> str:
    if cotisations_count == 0:
        return STATUS_NO_DUES
    if dues_balance(total_due, total_paid) <= 0:
        return STATUS_UP_TO_DATE
    if to_decimal(total_paid) > 0:
        return STATUS_PARTIAL
    return STATUS_LATE
