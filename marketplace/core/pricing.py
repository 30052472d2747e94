"""
Marketplace API — Pricing engine

Pure decimal arithmetic over (unit price, quantity) pairs. Nothing here
touches storage, so the same inputs always produce the same totals.
"""
from dataclasses import dataclass
from decimal import Decimal, ROUND_HALF_UP
from typing import Iterable

CENT = Decimal("0.01")


def to_money(value) -> Decimal:
    return Decimal(str(value)).quantize(CENT, rounding=ROUND_HALF_UP)


@dataclass(frozen=True)
class PricedLine:
    unit_price: Decimal
    quantity: int

    @property
    def line_total(self) -> Decimal:
        return to_money(self.unit_price * self.quantity)


@dataclass(frozen=True)
class OrderTotals:
    subtotal: Decimal
    delivery_fee: Decimal
    tax_amount: Decimal
    discount_amount: Decimal
    final_amount: Decimal


def compute_totals(
    lines: Iterable[PricedLine],
    delivery_fee: Decimal,
    tax_rate: Decimal,
) -> OrderTotals:
    """
    subtotal = Σ unit_price × quantity
    tax      = subtotal × tax_rate, rounded half-up to the cent
    final    = subtotal + delivery_fee + tax - discount

    Discounts are not computed yet; the field is carried as zero.
    """
    subtotal = to_money(sum((line.line_total for line in lines), Decimal("0")))
    fee = to_money(delivery_fee or 0)
    tax = to_money(subtotal * Decimal(str(tax_rate)))
    discount = Decimal("0.00")
    return OrderTotals(
        subtotal=subtotal,
        delivery_fee=fee,
        tax_amount=tax,
        discount_amount=discount,
        final_amount=subtotal + fee + tax - discount,
    )
