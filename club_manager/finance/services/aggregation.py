"""
Budget figures shared by rubriques, the budget report, events and gala tickets.

Collections are always summed first and the ratios derived from the sums.
"""

from decimal import Decimal, ROUND_HALF_EVEN
from typing import Iterable, Tuple

from pydantic import BaseModel

from club_manager.core.validations import Money

STATUS_OVERRUN = "Dépassement"
STATUS_IN_PROGRESS = "En cours"
STATUS_UNDER_CONSUMED = "Sous-consommé"
BUDGET_STATUSES = (STATUS_OVERRUN, STATUS_IN_PROGRESS, STATUS_UNDER_CONSUMED)

IN_PROGRESS_THRESHOLD = Decimal("0.8")
HUNDRED = Decimal(100)
ZERO = Decimal(0)
CENT = Decimal("0.01")


def to_decimal(value) -> Decimal:
    if value is None:
        return ZERO
    if isinstance(value, Decimal):
        return value
    # floats go through str() so 0.1 becomes Decimal("0.1")
    return Decimal(str(value))


def round_percent(value: Decimal) -> Decimal:
    return value.quantize(CENT, rounding=ROUND_HALF_EVEN)


def variance(planned, realized) -> Decimal:
    """realized - planned, unrounded"""
    return to_decimal(realized) - to_decimal(planned)


def percent_realized(planned, realized) -> Decimal:
    """realized / planned * 100 rounded to 2 places; 0 when planned <= 0"""
    planned = to_decimal(planned)
    if planned <= 0:
        return round_percent(ZERO)
    return round_percent(to_decimal(realized) / planned * HUNDRED)


def budget_status(planned, realized) -> str:
    planned = to_decimal(planned)
    realized = to_decimal(realized)
    if realized > planned:
        return STATUS_OVERRUN
    if realized >= planned * IN_PROGRESS_THRESHOLD:
        return STATUS_IN_PROGRESS
    return STATUS_UNDER_CONSUMED


class BudgetFigures(BaseModel):
    planned: Money
    realized: Money
    variance: Money
    percent_realized: Money
    status: str


class EventResult(BaseModel):
    total_planned: Money
    total_realized: Money
    total_revenue: Money
    net_result: Money
    margin: Money
    is_profitable: bool


def summarize_line(planned, realized) -> BudgetFigures:
    planned = to_decimal(planned)
    realized = to_decimal(realized)
    return BudgetFigures(
        planned=planned,
        realized=realized,
        variance=variance(planned, realized),
        percent_realized=percent_realized(planned, realized),
        status=budget_status(planned, realized),
    )


def summarize_lines(lines: Iterable[Tuple[object, object]]) -> BudgetFigures:
    """Totals over (planned, realized) pairs"""
    total_planned = ZERO
    total_realized = ZERO
    for planned, realized in lines:
        total_planned += to_decimal(planned)
        total_realized += to_decimal(realized)
    return summarize_line(total_planned, total_realized)


def summarize_event(
    budget_lines: Iterable[Tuple[object, object]], revenues: Iterable[object]
) -> EventResult:
    """
    Result of an event from its expense lines and revenue amounts.

    net result = revenue - realized expenses
    margin = net result / revenue * 100, 0 without revenue
    """
    totals = summarize_lines(budget_lines)
    total_revenue = sum((to_decimal(amount) for amount in revenues), ZERO)
    net_result = total_revenue - totals.realized

    margin = ZERO
    if total_revenue > 0:
        margin = net_result / total_revenue * HUNDRED

    return EventResult(
        total_planned=totals.planned,
        total_realized=totals.realized,
        total_revenue=total_revenue,
        net_result=net_result,
        margin=round_percent(margin),
        is_profitable=total_revenue >= totals.realized,
    )


def count_by_status(lines: Iterable[Tuple[object, object]]) -> dict:
    counts = {status: 0 for status in BUDGET_STATUSES}
    for planned, realized in lines:
        counts[budget_status(planned, realized)] += 1
    return counts
