from __future__ import annotations

import math

from billing.core.currency import to_decimal


ONES = [
	"", "one", "two", "three", "four", "five", "six", "seven", "eight", "nine",
	"ten", "eleven", "twelve", "thirteen", "fourteen", "fifteen", "sixteen",
	"seventeen", "eighteen", "nineteen",
]
TENS = ["", "", "twenty", "thirty", "forty", "fifty", "sixty", "seventy", "eighty", "ninety"]

LAKH = 100_000
CRORE = 10_000_000


def _convert(n: int) -> str:
	if n < 20:
		return ONES[n]
	if n < 100:
		return TENS[n // 10] + (" " + ONES[n % 10] if n % 10 else "")
	if n < 1000:
		return ONES[n // 100] + " hundred" + (" and " + _convert(n % 100) if n % 100 else "")
	if n < LAKH:
		return _convert(n // 1000) + " thousand" + (" " + _convert(n % 1000) if n % 1000 else "")
	if n < CRORE:
		return _convert(n // LAKH) + " lakh" + (" " + _convert(n % LAKH) if n % LAKH else "")
	# Crores are not spelled out
	return str(n)


def to_words(amount: int) -> str:
	"""
	Spell a non-negative integer in English using Indian grouping.

	to_words(150000) -> 'one lakh fifty thousand'. Amounts of one crore
	(10,000,000) and above come back as their digit string.
	"""
	n = int(amount)
	if n < 0:
		raise ValueError(f"amount must be non-negative, got {amount!r}")
	if n == 0:
		return "zero"
	return _convert(n)


def amount_in_words(amount: object, currency: str = "rupees") -> str:
	"""Worded line printed under the totals: '(two hundred and ten rupees only)'.

	Paise are dropped (the amount is floored). Negative amounts are spoken with
	a leading 'minus'.
	"""
	n = math.floor(to_decimal(amount))
	words = to_words(n) if n >= 0 else "minus " + to_words(-n)
	return f"({words} {currency} only)"
