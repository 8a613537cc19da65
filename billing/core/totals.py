from __future__ import annotations

from decimal import Decimal
from typing import Any, Dict

from billing.core.currency import sum_money
from billing.core.models import Order, Totals, ZERO


def compute_totals(order: Order) -> Totals:
	"""Derive the financial figures printed on the invoice.

	The discount may exceed subtotal + delivery, in which case the final amount
	is negative and shown as such. The balance never goes below zero.
	"""
	subtotal = sum_money(item.line_total for item in order.line_items)
	final_amount = subtotal + order.delivery_charge - order.discount
	balance = max(ZERO, final_amount - order.advance)
	return Totals(
		subtotal=subtotal,
		delivery_charge=order.delivery_charge,
		discount=order.discount,
		final_amount=final_amount,
		advance=order.advance,
		balance=balance,
	)


def _num(d: Decimal) -> float | int:
	# Spreadsheet cells read nicer as plain numbers than as Decimal strings
	return int(d) if d == d.to_integral_value() else float(d)


def sheet_row(order: Order, totals: Totals) -> Dict[str, Any]:
	"""Flatten an order and its totals into one row for the invoice log."""
	items = order.line_items
	return {
		"invoice_no": order.invoice_id,
		"date": order.issue_date.strftime("%d.%m.%Y"),
		"customer_name": order.customer.name,
		"address": order.customer.address,
		"mobile": order.customer.phone,
		"email": order.customer.email,
		"products": ", ".join(i.description for i in items),
		"quantities": ", ".join(str(_num(i.quantity)) for i in items),
		"prices": ", ".join(str(_num(i.unit_price)) for i in items),
		"total_price": _num(totals.subtotal),
		"delivery_charge": _num(totals.delivery_charge),
		"discount": _num(totals.discount),
		"final_amount": _num(totals.final_amount),
		"advance": _num(totals.advance),
		"balance": _num(totals.balance),
	}
