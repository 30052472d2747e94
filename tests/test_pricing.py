"""Pricing engine: decimal totals, rounding and determinism."""
from decimal import Decimal

from marketplace.core.pricing import PricedLine, compute_totals


def test_happy_path_totals():
    totals = compute_totals(
        [PricedLine(Decimal("10.00"), 2), PricedLine(Decimal("5.00"), 1)],
        delivery_fee=Decimal("2.50"),
        tax_rate=Decimal("0.05"),
    )
    assert totals.subtotal == Decimal("25.00")
    assert totals.tax_amount == Decimal("1.25")
    assert totals.delivery_fee == Decimal("2.50")
    assert totals.discount_amount == Decimal("0.00")
    assert totals.final_amount == Decimal("28.75")


def test_repeated_computation_is_identical():
    lines = [PricedLine(Decimal("12.99"), 3), PricedLine(Decimal("6.99"), 2), PricedLine(Decimal("3.99"), 1)]
    first = compute_totals(lines, Decimal("2.50"), Decimal("0.05"))
    second = compute_totals(list(lines), Decimal("2.50"), Decimal("0.05"))
    assert first == second
    assert str(first.final_amount) == str(second.final_amount)


def test_tax_rounds_half_up_to_the_cent():
    # 0.30 * 0.05 = 0.015
    totals = compute_totals([PricedLine(Decimal("0.10"), 3)], Decimal("0"), Decimal("0.05"))
    assert totals.tax_amount == Decimal("0.02")
    assert totals.final_amount == Decimal("0.32")


def test_no_binary_float_drift():
    # 0.1 + 0.2 style sums stay exact
    lines = [PricedLine(Decimal("0.10"), 1), PricedLine(Decimal("0.20"), 1)]
    totals = compute_totals(lines, Decimal("0.00"), Decimal("0"))
    assert totals.subtotal == Decimal("0.30")
    assert totals.final_amount == Decimal("0.30")


def test_final_amount_invariant():
    totals = compute_totals(
        [PricedLine(Decimal("18.99"), 1), PricedLine(Decimal("14.99"), 4)],
        delivery_fee=Decimal("3.75"),
        tax_rate=Decimal("0.0825"),
    )
    assert totals.final_amount == (
        totals.subtotal + totals.delivery_fee + totals.tax_amount - totals.discount_amount
    )


def test_missing_delivery_fee_counts_as_zero():
    totals = compute_totals([PricedLine(Decimal("4.00"), 1)], None, Decimal("0.05"))
    assert totals.delivery_fee == Decimal("0.00")
    assert totals.final_amount == Decimal("4.20")


def test_line_total():
    assert PricedLine(Decimal("6.99"), 3).line_total == Decimal("20.97")
