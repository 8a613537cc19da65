from __future__ import annotations

from decimal import Decimal, ROUND_HALF_EVEN, InvalidOperation, localcontext
from typing import Iterable


CENT = Decimal("0.01")


def to_decimal(x: object) -> Decimal:
	"""Best-effort conversion to Decimal via str to avoid binary float artifacts."""
	if isinstance(x, Decimal):
		return x
	try:
		return Decimal(str(x))
	except (InvalidOperation, ValueError, TypeError):
		return Decimal("0")


def round_money_dec(x: object) -> Decimal:
	"""Round to 2 decimals (banker's rounding) and return Decimal.

	NaN and infinities come back unchanged.
	"""
	d = to_decimal(x)
	if not d.is_finite():
		return d
	with localcontext() as ctx:
		# quantize needs room for every integer digit plus the cents
		ctx.prec = max(ctx.prec, d.adjusted() + 3)
		return d.quantize(CENT, rounding=ROUND_HALF_EVEN)


def sum_money(values: Iterable[object]) -> Decimal:
	"""Accumulate monetary values using Decimal without intermediate rounding."""
	total = Decimal("0")
	for v in values:
		total += to_decimal(v)
	return total


def _group_indian(digits: str) -> str:
	# Last three digits form one group, everything before is grouped in pairs
	if len(digits) <= 3:
		return digits
	head, tail = digits[:-3], digits[-3:]
	pairs = []
	while len(head) > 2:
		pairs.insert(0, head[-2:])
		head = head[:-2]
	if head:
		pairs.insert(0, head)
	return ",".join(pairs + [tail])


def fmt_inr(x: object) -> str:
	"""
	Format a money value with Indian digit grouping, e.g. 150000 -> '1,50,000'.

	At most two fraction digits are shown and trailing zeros are trimmed,
	so 49.90 renders as '49.9' and 200.00 as '200'.
	"""
	q = round_money_dec(x)
	if not q.is_finite():
		return str(q)
	sign = "-" if q < 0 else ""
	whole, _, frac = f"{q.copy_abs():.2f}".partition(".")
	frac = frac.rstrip("0")
	out = _group_indian(whole)
	return f"{sign}{out}.{frac}" if frac else f"{sign}{out}"


def fmt_qty(qty: object) -> str:
	"""Format quantity with up to 3 decimals, no trailing zeros."""
	d = to_decimal(qty)
	s = f"{d:.3f}".rstrip("0").rstrip(".")
	return s if s and s != "-0" else "0"
