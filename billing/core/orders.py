from __future__ import annotations

import math
from datetime import datetime
from decimal import Decimal, InvalidOperation
from typing import Any, List, Mapping, Optional

from billing.core.models import Customer, LineItem, Order, ZERO


# Keys only the flat (legacy) form ever sends
LEGACY_KEYS = (
	"customerName",
	"customerAddress",
	"customerMobile",
	"customerEmail",
	"inNumber",
	"dateOfIssue",
	"advanceAmount",
)

# Fifteen or more integer digits is a typo, not an order line
MAX_AMOUNT_DIGITS = 15


def _text(value: Any) -> str:
	if isinstance(value, str):
		return value.strip()
	# Phone numbers frequently arrive as JSON numbers
	if isinstance(value, (int, float)) and not isinstance(value, bool):
		return str(value)
	return ""


def _amount(value: Any) -> Decimal:
	"""Non-negative Decimal, or 0 for anything missing, malformed or negative."""
	if value is None or isinstance(value, bool):
		return ZERO
	if isinstance(value, float) and not math.isfinite(value):
		return ZERO
	try:
		d = Decimal(str(value).strip()) if not isinstance(value, Decimal) else value
	except (InvalidOperation, ValueError, TypeError):
		return ZERO
	if not d.is_finite() or d < 0:
		return ZERO
	if d and d.adjusted() >= MAX_AMOUNT_DIGITS:
		return ZERO
	return d


def _first(mapping: Mapping[str, Any], *keys: str) -> Any:
	for k in keys:
		v = mapping.get(k)
		if v not in (None, ""):
			return v
	return None


def _items(raw: Any) -> List[LineItem]:
	if not isinstance(raw, (list, tuple)):
		return []
	items: List[LineItem] = []
	for p in raw:
		if not isinstance(p, Mapping):
			continue
		items.append(
			LineItem(
				description=_text(_first(p, "description", "name")),
				quantity=_amount(p.get("quantity")),
				unit_price=_amount(_first(p, "price", "unitPrice")),
			)
		)
	return items


def is_legacy(payload: Mapping[str, Any]) -> bool:
	return any(payload.get(k) not in (None, "") for k in LEGACY_KEYS)


def synthesize_invoice_id(now: datetime) -> str:
	return f"IN-{int(now.timestamp() * 1000)}"


def normalize_order(payload: Any, *, now: Optional[datetime] = None) -> Order:
	"""
	Map either accepted request body onto one canonical Order.

	Legacy form: flat customerName/customerAddress/customerMobile/customerEmail,
	inNumber, dateOfIssue, products[{name, quantity, price}], deliveryCharge,
	discount, advanceAmount.

	Nested form: invoiceNo, date, customer{name, address, phone, email},
	products[{description, quantity, price}], deliveryCharge, discount, advance.

	Nothing here raises on bad input; missing numbers become 0 and missing
	strings become "". The issue date is always the generation date.
	"""
	now = now or datetime.now()
	body: Mapping[str, Any] = payload if isinstance(payload, Mapping) else {}

	if is_legacy(body):
		customer = Customer(
			name=_text(body.get("customerName")),
			address=_text(body.get("customerAddress")),
			phone=_text(body.get("customerMobile")),
			email=_text(body.get("customerEmail")),
		)
		invoice_id = _text(body.get("inNumber"))
		submitted = _text(body.get("dateOfIssue"))
		advance = _amount(body.get("advanceAmount"))
	else:
		c = body.get("customer")
		c = c if isinstance(c, Mapping) else {}
		customer = Customer(
			name=_text(c.get("name")),
			address=_text(c.get("address")),
			phone=_text(c.get("phone")),
			email=_text(c.get("email")),
		)
		invoice_id = _text(_first(body, "invoiceNo", "invoiceId"))
		submitted = _text(body.get("date"))
		advance = _amount(body.get("advance"))

	return Order(
		invoice_id=invoice_id or synthesize_invoice_id(now),
		issue_date=now.date(),
		customer=customer,
		line_items=_items(_first(body, "products", "lineItems")),
		delivery_charge=_amount(body.get("deliveryCharge")),
		discount=_amount(body.get("discount")),
		advance=advance,
		submitted_date=submitted or None,
	)
