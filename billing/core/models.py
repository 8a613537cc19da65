from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date
from decimal import Decimal
from typing import List, Optional


ZERO = Decimal("0")


@dataclass
class Customer:
	name: str = ""
	address: str = ""
	phone: str = ""
	email: str = ""


@dataclass
class LineItem:
	description: str = ""
	quantity: Decimal = ZERO
	unit_price: Decimal = ZERO

	@property
	def line_total(self) -> Decimal:
		# Derived on demand; never stored
		return self.quantity * self.unit_price


@dataclass
class Order:
	invoice_id: str
	issue_date: date
	customer: Customer = field(default_factory=Customer)
	line_items: List[LineItem] = field(default_factory=list)
	delivery_charge: Decimal = ZERO
	discount: Decimal = ZERO
	advance: Decimal = ZERO
	# Client-supplied date, kept as metadata only; issue_date is the generation date
	submitted_date: Optional[str] = None


@dataclass(frozen=True)
class Totals:
	subtotal: Decimal
	delivery_charge: Decimal
	discount: Decimal
	final_amount: Decimal
	advance: Decimal
	balance: Decimal
