from decimal import Decimal

from app.services.pricing import summarize, to_minor_units


def test_summary_below_free_shipping_threshold():
    summary = summarize([(Decimal("1000.00"), 2)])

    assert summary.subtotal == Decimal("2000.00")
    assert summary.shipping == Decimal("500.00")
    assert summary.tax == Decimal("360.00")
    assert summary.total == Decimal("2860.00")


def test_free_shipping_strictly_above_threshold():
    at_threshold = summarize([(Decimal("50000"), 1)])
    above = summarize([(Decimal("50000.01"), 1)])

    assert at_threshold.shipping == Decimal("500.00")
    assert above.shipping == Decimal("0.00")


def test_empty_cart_costs_nothing():
    summary = summarize([])
    assert summary.total == Decimal("0.00")
    assert summary.shipping == Decimal("0.00")


def test_tax_is_rounded_half_up():
    # 0.18 * 0.25 = 0.045
    summary = summarize([(Decimal("0.25"), 1)])
    assert summary.tax == Decimal("0.05")


def test_to_minor_units():
    assert to_minor_units(Decimal("2860.00")) == 286000
    assert to_minor_units(Decimal("0.005")) == 1
    assert to_minor_units(Decimal("10")) == 1000
