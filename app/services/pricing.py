# app/services/pricing.py
from dataclasses import dataclass
from decimal import Decimal, ROUND_HALF_UP
from typing import Iterable, Tuple

from app.utils.settings import FREE_SHIPPING_THRESHOLD, SHIPPING_FEE, TAX_RATE

CENT = Decimal("0.01")


def _money(value: Decimal) -> Decimal:
    return value.quantize(CENT, rounding=ROUND_HALF_UP)


@dataclass(frozen=True)
class PriceSummary:
    subtotal: Decimal
    shipping: Decimal
    tax: Decimal
    total: Decimal

    def as_dict(self) -> dict:
        return {
            "subtotal": self.subtotal,
            "shipping": self.shipping,
            "tax": self.tax,
            "total": self.total,
        }


def summarize(lines: Iterable[Tuple[Decimal, int]]) -> PriceSummary:
    """lines: pary (cena jednostkowa, ilosc)"""
    subtotal = sum(
        (Decimal(str(price)) * quantity for price, quantity in lines),
        Decimal("0.00"),
    )
    # darmowa wysylka powyzej progu, pusty koszyk nie placi za wysylke
    if subtotal == 0 or subtotal > FREE_SHIPPING_THRESHOLD:
        shipping = Decimal("0.00")
    else:
        shipping = SHIPPING_FEE
    tax = subtotal * TAX_RATE

    return PriceSummary(
        subtotal=_money(subtotal),
        shipping=_money(shipping),
        tax=_money(tax),
        total=_money(subtotal + shipping + tax),
    )


def to_minor_units(amount: Decimal) -> int:
    return int((Decimal(str(amount)) * 100).quantize(Decimal("1"), rounding=ROUND_HALF_UP))
