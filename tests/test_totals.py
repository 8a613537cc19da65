from __future__ import annotations

import itertools
from datetime import date
from decimal import Decimal

from billing.core.models import Customer, LineItem, Order
from billing.core.totals import compute_totals, sheet_row


def _order(items, delivery="0", discount="0", advance="0") -> Order:
    return Order(
        invoice_id="IN-1",
        issue_date=date(2025, 8, 9),
        customer=Customer(name="Asha", address="Addr", phone="1", email="a@b.c"),
        line_items=[LineItem(d, Decimal(q), Decimal(p)) for d, q, p in items],
        delivery_charge=Decimal(delivery),
        discount=Decimal(discount),
        advance=Decimal(advance),
    )


def test_end_to_end_example() -> None:
    totals = compute_totals(_order([("Widget", "2", "100")], "20", "10", "50"))
    assert totals.subtotal == Decimal("200")
    assert totals.final_amount == Decimal("210")
    assert totals.balance == Decimal("160")


def test_subtotal_independent_of_order() -> None:
    items = [("A", "3", "19.99"), ("B", "1.5", "0.10"), ("C", "7", "1234.56")]
    results = {compute_totals(_order(list(p))).subtotal for p in itertools.permutations(items)}
    assert results == {Decimal("3") * Decimal("19.99") + Decimal("0.15") + Decimal("8641.92")}


def test_overpayment_clamps_balance() -> None:
    totals = compute_totals(_order([("A", "1", "100")], advance="500"))
    assert totals.final_amount == Decimal("100")
    assert totals.balance == Decimal("0")


def test_negative_final_amount_is_kept() -> None:
    totals = compute_totals(_order([("A", "1", "50")], delivery="10", discount="100", advance="5"))
    assert totals.final_amount == Decimal("-40")
    assert totals.balance == Decimal("0")


def test_empty_order() -> None:
    totals = compute_totals(_order([], delivery="30"))
    assert totals.subtotal == 0
    assert totals.final_amount == Decimal("30")
    assert totals.balance == Decimal("30")


def test_sheet_row_projection() -> None:
    order = _order([("Widget", "2", "100"), ("Gadget", "1.5", "49.9")], "20", "10", "50")
    row = sheet_row(order, compute_totals(order))
    assert row["invoice_no"] == "IN-1"
    assert row["date"] == "09.08.2025"
    assert row["customer_name"] == "Asha"
    assert row["products"] == "Widget, Gadget"
    assert row["quantities"] == "2, 1.5"
    assert row["prices"] == "100, 49.9"
    assert row["total_price"] == 274.85
    assert row["final_amount"] == 284.85
    assert row["balance"] == 234.85
