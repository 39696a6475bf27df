from decimal import Decimal

from club_manager.clubs.services.dues import (
    STATUS_LATE,
    STATUS_NO_DUES,
    STATUS_PARTIAL,
    STATUS_UP_TO_DATE,
    dues_balance,
    dues_status,
)


def test_no_dues():
    assert dues_status(0, 0, 0) == STATUS_NO_DUES


def test_paid_in_full_or_more():
    assert dues_status(100, 100, 1) == STATUS_UP_TO_DATE
    assert dues_status(100, 150, 1) == STATUS_UP_TO_DATE


def test_partial_and_late():
    assert dues_status(100, 40, 1) == STATUS_PARTIAL
    assert dues_status(100, 0, 2) == STATUS_LATE


def test_balance():
    assert dues_balance(Decimal("250.50"), 100) == Decimal("150.50")
