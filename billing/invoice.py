from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from datetime import datetime
from typing import Any, Optional

from billing.core.models import Order, Totals
from billing.core.orders import normalize_order
from billing.core.settings import Settings
from billing.core.totals import compute_totals, sheet_row
from billing.core.words import amount_in_words
from billing.pdf.layout import InvoiceLayout, layout_invoice
from billing.pdf.pdf_draw import RenderError, render_pdf
from billing.sheets import InvoiceRecorder

logger = logging.getLogger(__name__)

_UNSAFE = re.compile(r"[^a-zA-Z0-9\-_.]")
_DASHES = re.compile(r"-+")


@dataclass
class RenderedInvoice:
    order: Order
    totals: Totals
    words: str
    layout: InvoiceLayout
    pdf: bytes
    filename: str


def safe_filename(name: str) -> str:
    return _DASHES.sub("-", _UNSAFE.sub("-", str(name or "")))


def invoice_filename(invoice_id: str, now: datetime) -> str:
    """Bill_<invoice id with unsafe characters replaced>_<epoch ms>.pdf"""
    return f"Bill_{safe_filename(invoice_id)}_{int(now.timestamp() * 1000)}.pdf"


def build_invoice(payload: Any, *, settings: Optional[Settings] = None,
                  now: Optional[datetime] = None) -> RenderedInvoice:
    """Normalise the request body, compute totals, lay out and render the bill.

    Raises billing.pdf.pdf_draw.RenderError when the document cannot be laid
    out or drawn.
    """
    settings = settings or Settings()
    now = now or datetime.now()
    order = normalize_order(payload, now=now)
    totals = compute_totals(order)
    words = amount_in_words(totals.final_amount, settings.currency_word)
    logger.info("Rendering invoice %s (%d items, final %s)", order.invoice_id, len(order.line_items),
                totals.final_amount)
    try:
        layout = layout_invoice(order, totals, words, settings)
    except Exception as e:
        raise RenderError(f"failed to lay out invoice: {e}") from e
    pdf = render_pdf(layout, title=f"Invoice {order.invoice_id}", author=settings.company_name)
    return RenderedInvoice(order, totals, words, layout, pdf, invoice_filename(order.invoice_id, now))


def record_invoice(recorder: InvoiceRecorder, order: Order, totals: Totals) -> bool:
    """Push the flattened invoice to the log. Failures are logged, never raised."""
    try:
        recorder.record(sheet_row(order, totals))
    except Exception:
        logger.exception("Failed to store invoice %s in sheet", order.invoice_id)
        return False
    return True
