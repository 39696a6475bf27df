from decimal import Decimal

from club_manager.finance.services.aggregation import (
    STATUS_IN_PROGRESS,
    STATUS_OVERRUN,
    STATUS_UNDER_CONSUMED,
    budget_status,
    count_by_status,
    percent_realized,
    round_percent,
    summarize_event,
    summarize_line,
    summarize_lines,
    to_decimal,
)


def test_overrun_line():
    figures = summarize_line(1000, 1200)
    assert figures.variance == Decimal("200")
    assert figures.percent_realized == Decimal("120.00")
    assert figures.status == STATUS_OVERRUN


def test_under_consumed_line():
    figures = summarize_line(Decimal("1000"), Decimal("750"))
    assert figures.variance == Decimal("-250")
    assert figures.percent_realized == Decimal("75.00")
    assert figures.status == STATUS_UNDER_CONSUMED


def test_in_progress_threshold_is_inclusive():
    assert budget_status(1000, 800) == STATUS_IN_PROGRESS
    assert budget_status(1000, 1000) == STATUS_IN_PROGRESS
    assert budget_status(1000, Decimal("799.99")) == STATUS_UNDER_CONSUMED


def test_zero_planned_amount():
    figures = summarize_line(0, 500)
    assert figures.percent_realized == Decimal("0.00")
    assert figures.status == STATUS_OVERRUN

    assert summarize_line(0, 0).status == STATUS_IN_PROGRESS


def test_percent_is_rounded_half_even():
    assert percent_realized(3, 1) == Decimal("33.33")
    assert round_percent(Decimal("2.345")) == Decimal("2.34")
    assert round_percent(Decimal("2.355")) == Decimal("2.36")


def test_to_decimal_goes_through_str_for_floats():
    assert to_decimal(0.1) == Decimal("0.1")
    assert to_decimal(None) == Decimal(0)


def test_totals_are_computed_from_sums():
    totals = summarize_lines([(100, 50), (300, 350)])
    assert totals.planned == Decimal("400")
    assert totals.realized == Decimal("400")
    assert totals.percent_realized == Decimal("100.00")
    assert totals.status == STATUS_IN_PROGRESS


def test_empty_collection():
    totals = summarize_lines([])
    assert totals.planned == Decimal(0)
    assert totals.percent_realized == Decimal("0.00")


def test_profitable_event():
    result = summarize_event([(1000, 900)], [600, 600])
    assert result.total_revenue == Decimal("1200")
    assert result.net_result == Decimal("300")
    assert result.margin == Decimal("25.00")
    assert result.is_profitable is True


def test_event_without_revenue():
    result = summarize_event([(1000, 900), (200, 100)], [])
    assert result.total_planned == Decimal("1200")
    assert result.total_realized == Decimal("1000")
    assert result.net_result == Decimal("-1000")
    assert result.margin == Decimal("0.00")
    assert result.is_profitable is False


def test_break_even_event_is_profitable():
    result = summarize_event([(500, 500)], [500])
    assert result.net_result == Decimal(0)
    assert result.is_profitable is True


def test_count_by_status():
    counts = count_by_status([(100, 150), (100, 90), (100, 10), (100, 20)])
    assert counts == {
        STATUS_OVERRUN: 1,
        STATUS_IN_PROGRESS: 1,
        STATUS_UNDER_CONSUMED: 2,
    }
