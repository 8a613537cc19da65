from __future__ import annotations

from datetime import date, datetime
from decimal import Decimal

from billing.core.orders import is_legacy, normalize_order

NOW = datetime(2025, 8, 9, 10, 30, 0)


def test_nested_shape() -> None:
    payload = {
        "invoiceNo": "IN-42",
        "date": "2025-01-01",
        "customer": {"name": " Asha ", "address": "12 Main St", "phone": "98765", "email": "a@x.in"},
        "products": [
            {"description": "Widget", "quantity": 2, "price": 100},
            {"description": "Gadget", "quantity": "1.5", "price": "49.90"},
        ],
        "deliveryCharge": 20,
        "discount": "10",
        "advance": 50,
    }
    order = normalize_order(payload, now=NOW)

    assert order.invoice_id == "IN-42"
    assert order.customer.name == "Asha"
    assert order.customer.email == "a@x.in"
    assert [i.description for i in order.line_items] == ["Widget", "Gadget"]
    assert order.line_items[1].quantity == Decimal("1.5")
    assert order.line_items[1].unit_price == Decimal("49.90")
    assert order.delivery_charge == Decimal("20")
    assert order.discount == Decimal("10")
    assert order.advance == Decimal("50")


def test_legacy_shape() -> None:
    payload = {
        "customerName": "Ravi",
        "customerAddress": "Coimbatore",
        "customerMobile": 9876543210,
        "inNumber": "IN-7",
        "dateOfIssue": "01.01.2024",
        "products": [{"name": "Kit", "quantity": 3, "price": 250}],
        "deliveryCharge": 40,
        "advanceAmount": 100,
    }
    order = normalize_order(payload, now=NOW)

    assert is_legacy(payload)
    assert order.invoice_id == "IN-7"
    assert order.customer.name == "Ravi"
    assert order.customer.phone == "9876543210"
    assert order.customer.email == ""
    assert order.line_items[0].description == "Kit"
    assert order.advance == Decimal("100")


def test_any_legacy_key_selects_legacy() -> None:
    assert is_legacy({"customerEmail": "x@y.z"})
    assert not is_legacy({"customerName": "", "customer": {"name": "N"}})


def test_zero_advance_amount_selects_legacy() -> None:
    payload = {
        "advanceAmount": 0,
        "inNumber": "",
        "products": [{"name": "Kit", "quantity": 1, "price": 250}],
        "advance": 999,
    }
    order = normalize_order(payload, now=NOW)

    assert is_legacy({"advanceAmount": 0})
    assert is_legacy(payload)
    assert order.advance == 0
    assert order.line_items[0].description == "Kit"


def test_canonical_aliases_are_accepted() -> None:
    payload = {
        "invoiceId": "IN-1",
        "lineItems": [{"description": "Widget", "quantity": 2, "unitPrice": 100}],
    }
    order = normalize_order(payload, now=NOW)
    assert order.invoice_id == "IN-1"
    assert order.line_items[0].unit_price == Decimal("100")


def test_missing_invoice_id_is_synthesized() -> None:
    order = normalize_order({"customer": {"name": "N"}}, now=NOW)
    assert order.invoice_id == f"IN-{int(NOW.timestamp() * 1000)}"


def test_issue_date_is_always_generation_date() -> None:
    order = normalize_order({"invoiceNo": "IN-1", "date": "1999-12-31"}, now=NOW)
    assert order.issue_date == date(2025, 8, 9)
    assert order.submitted_date == "1999-12-31"


def test_bad_numbers_default_to_zero() -> None:
    payload = {
        "products": [
            {"description": "A", "quantity": "lots", "price": None},
            {"description": "B", "quantity": -3, "price": float("nan")},
            {"description": "C", "quantity": True, "price": {"v": 1}},
        ],
        "deliveryCharge": "free",
        "discount": float("inf"),
        "advance": [],
    }
    order = normalize_order(payload, now=NOW)
    for item in order.line_items:
        assert item.quantity == 0
        assert item.unit_price == 0
    assert order.delivery_charge == 0
    assert order.discount == 0
    assert order.advance == 0


def test_bad_strings_default_to_empty() -> None:
    payload = {"customer": {"name": ["x"], "address": None, "phone": {"n": 1}}, "products": ["junk", None]}
    order = normalize_order(payload, now=NOW)
    assert order.customer.name == ""
    assert order.customer.address == ""
    assert order.customer.phone == ""
    assert order.line_items == []


def test_non_mapping_payload() -> None:
    order = normalize_order(None, now=NOW)
    assert order.invoice_id.startswith("IN-")
    assert order.line_items == []


def test_implausibly_large_numbers_default_to_zero() -> None:
    payload = {
        "products": [
            {"description": "A", "quantity": "1e999999", "price": 5},
            {"description": "B", "quantity": 1, "price": 1e30},
            {"description": "C", "quantity": 2, "price": "999999999999999"},
        ],
        "deliveryCharge": "1E+15",
    }
    order = normalize_order(payload, now=NOW)

    assert order.line_items[0].quantity == 0
    assert order.line_items[1].unit_price == 0
    assert order.line_items[2].unit_price == Decimal("999999999999999")
    assert order.delivery_charge == 0
