from __future__ import annotations

import io
import math
import re
from datetime import datetime
from decimal import Decimal
from pathlib import Path

import pytest
from pypdf import PdfReader

from billing import invoice
from billing.core.settings import Settings
from billing.invoice import build_invoice, invoice_filename, record_invoice, safe_filename
from billing.pdf.layout import DrawInstruction, TEXT
from billing.pdf.pdf_draw import RenderError, build_invoice_pdf, render_pdf

NOW = datetime(2025, 8, 9, 10, 30, 0)


def _a4_size_points() -> tuple[float, float]:
    # ReportLab A4 in points
    return (595.2755905511812, 841.8897637795277)


def _page_text(pdf: bytes) -> tuple[PdfReader, str]:
    reader = PdfReader(io.BytesIO(pdf))
    return reader, reader.pages[0].extract_text() or ""


def test_end_to_end_invoice(tmp_path: Path) -> None:
    # Arrange
    payload = {
        "invoiceId": "IN-1",
        "customer": {"name": "Test Customer", "address": "Line 1", "phone": "1234567890", "email": "t@c.in"},
        "lineItems": [{"description": "Widget", "quantity": 2, "unitPrice": 100}],
        "deliveryCharge": 20,
        "discount": 10,
        "advance": 50,
    }

    # Act
    rendered = build_invoice(payload, settings=Settings(logo_path=None), now=NOW)

    # Assert: totals and words
    assert rendered.totals.subtotal == Decimal("200")
    assert rendered.totals.final_amount == Decimal("210")
    assert rendered.totals.balance == Decimal("160")
    assert rendered.words == "(two hundred and ten rupees only)"
    assert rendered.filename == f"Bill_IN-1_{int(NOW.timestamp() * 1000)}.pdf"

    # Assert: exactly one A4 page
    reader, text = _page_text(rendered.pdf)
    assert len(reader.pages) == 1
    box = reader.pages[0].mediabox
    a4w, a4h = _a4_size_points()
    assert math.isclose(float(box.right - box.left), a4w, abs_tol=1.0)
    assert math.isclose(float(box.top - box.bottom), a4h, abs_tol=1.0)

    # Printed content
    assert "IN-1" in text
    assert "Widget" in text
    assert "ORDER FROM" in text
    assert re.search(r"Date\s*:\s*09\.08\.2025", text) is not None
    assert re.search(r"Balance\s*:\s*160", text) is not None
    assert "two hundred and ten rupees only" in text
    assert "Terms and Conditions" in text


def test_empty_order_renders() -> None:
    rendered = build_invoice({}, settings=Settings(logo_path=None), now=NOW)
    reader, text = _page_text(rendered.pdf)
    assert len(reader.pages) == 1
    assert "PRODUCT LIST" in text
    assert "zero rupees only" in text


def test_unreadable_logo_falls_back_to_brand_text(tmp_path: Path) -> None:
    logo = tmp_path / "kk.jpg"
    logo.write_bytes(b"this is not an image")
    rendered = build_invoice({"invoiceNo": "IN-9"}, settings=Settings(logo_path=str(logo), brand_text="BRANDMARK"),
                             now=NOW)
    assert rendered.layout.find("brand.logo")
    _, text = _page_text(rendered.pdf)
    assert "BRANDMARK" in text


def test_render_error_on_bad_instruction() -> None:
    with pytest.raises(RenderError):
        render_pdf([DrawInstruction("hologram", 0, 0)])
    with pytest.raises(RenderError):
        render_pdf([DrawInstruction(TEXT, 10, 10, None, "x", {"font": "NoSuchFont", "font_size": 10})])


def test_build_invoice_pdf_writes_file(tmp_path: Path) -> None:
    rendered = build_invoice({"invoiceNo": "IN-2"}, settings=Settings(logo_path=None), now=NOW)
    out = build_invoice_pdf(tmp_path / "nested" / "bill.pdf", rendered.layout, title="Invoice IN-2")
    assert out.read_bytes().startswith(b"%PDF")


def test_filename_sanitising() -> None:
    assert safe_filename("IN/12 #3") == "IN-12-3"
    assert safe_filename("a_b.c-d") == "a_b.c-d"
    assert invoice_filename("IN 1", NOW) == f"Bill_IN-1_{int(NOW.timestamp() * 1000)}.pdf"


def test_huge_amounts_render_instead_of_crashing() -> None:
    payload = {
        "invoiceNo": "IN-10",
        "products": [
            {"description": "Typo", "quantity": "1e999999", "price": 5},
            {"description": "Bulk", "quantity": "99999999999999", "price": "99999999999999"},
        ],
    }
    rendered = build_invoice(payload, settings=Settings(logo_path=None), now=NOW)

    assert rendered.order.line_items[0].quantity == 0
    assert rendered.totals.final_amount == Decimal("99999999999999") ** 2
    assert rendered.layout.find("amount.value")[0].content == "9,99,99,99,99,99,99,80,00,00,00,00,00,001"
    assert rendered.pdf.startswith(b"%PDF")


def test_layout_fault_is_a_render_error(monkeypatch: pytest.MonkeyPatch) -> None:
    def broken_layout(*args, **kwargs):
        raise ArithmeticError("layout exploded")

    monkeypatch.setattr(invoice, "layout_invoice", broken_layout)
    with pytest.raises(RenderError, match="layout exploded"):
        build_invoice({"invoiceNo": "IN-11"}, settings=Settings(logo_path=None), now=NOW)


class _Boom:
    def record(self, row):
        raise ConnectionError("sheet down")


class _Keep:
    def __init__(self) -> None:
        self.rows: list[dict] = []

    def record(self, row):
        self.rows.append(row)


def test_record_invoice_isolates_failures() -> None:
    rendered = build_invoice({"invoiceNo": "IN-3"}, settings=Settings(logo_path=None), now=NOW)
    assert record_invoice(_Boom(), rendered.order, rendered.totals) is False
    keep = _Keep()
    assert record_invoice(keep, rendered.order, rendered.totals) is True
    assert keep.rows[0]["invoice_no"] == "IN-3"
