from __future__ import annotations

import io
import logging
from pathlib import Path
from typing import Callable, Dict, Iterable, Union

from reportlab.lib import colors
from reportlab.lib.pagesizes import A4
from reportlab.lib.utils import ImageReader
from reportlab.pdfgen.canvas import Canvas

from billing.pdf.layout import CIRCLE, IMAGE, LINE, RECT, TEXT, DrawInstruction, InvoiceLayout

logger = logging.getLogger(__name__)


PAGE_SIZE = A4
PAGE_WIDTH, PAGE_HEIGHT = PAGE_SIZE
# Approximate ascent fraction of font size above baseline (Helvetica/NotoSans)
TEXT_ASCENT_RATIO = 0.72
TEXT_COLOR = colors.black
RULE_COLOR = colors.black


class RenderError(RuntimeError):
    """The document could not be drawn; no bytes are produced."""


def _flip(y: float) -> float:
    # Layout works top-down; ReportLab's origin is the bottom-left corner
    return PAGE_HEIGHT - y


def _color(name: str | None):
    if not name:
        return TEXT_COLOR
    try:
        return colors.toColor(name)
    except ValueError:
        logger.warning("Unknown colour %r; using black", name)
        return TEXT_COLOR


def _draw_text(c: Canvas, ins: DrawInstruction) -> None:
    style = ins.style
    size = float(style.get("font_size", 10))
    c.setFont(style.get("font", "Helvetica"), size)
    c.setFillColor(_color(style.get("color")))
    baseline = _flip(ins.y + size * TEXT_ASCENT_RATIO)
    text = ins.content or ""
    align = style.get("align", "left")
    width = ins.size[0] if ins.size else 0.0
    if align == "center" and width:
        c.drawCentredString(ins.x + width / 2, baseline, text)
    elif align == "right" and width:
        c.drawRightString(ins.x + width, baseline, text)
    else:
        c.drawString(ins.x, baseline, text)
    c.setFillColor(TEXT_COLOR)


def _draw_line(c: Canvas, ins: DrawInstruction) -> None:
    x2, y2 = ins.end or (ins.x, ins.y)
    c.setLineWidth(float(ins.style.get("line_width", 1.0)))
    c.line(ins.x, _flip(ins.y), x2, _flip(y2))


def _draw_rect(c: Canvas, ins: DrawInstruction) -> None:
    w, h = ins.size or (0.0, 0.0)
    c.setLineWidth(float(ins.style.get("line_width", 1.0)))
    radius = float(ins.style.get("radius", 0.0) or 0.0)
    bottom = _flip(ins.y + h)
    if radius:
        c.roundRect(ins.x, bottom, w, h, radius, stroke=1, fill=0)
    else:
        c.rect(ins.x, bottom, w, h, stroke=1, fill=0)


def _draw_circle(c: Canvas, ins: DrawInstruction) -> None:
    c.setLineWidth(float(ins.style.get("line_width", 1.0)))
    c.circle(ins.x, _flip(ins.y), float(ins.style.get("radius", 1.0)), stroke=1, fill=0)


def _draw_image(c: Canvas, ins: DrawInstruction) -> None:
    """Draw the brand image; an unreadable file falls back to the text brand mark."""
    w, h = ins.size or (0.0, 0.0)
    try:
        img = ImageReader(str(ins.content))
        img.getSize()
    except Exception:
        logger.warning("Could not read image %s; drawing text fallback", ins.content)
        fb = ins.style.get("fallback") or {}
        if fb.get("text"):
            _draw_text(c, DrawInstruction(
                TEXT, fb.get("x", ins.x), fb.get("y", ins.y), None, fb["text"],
                {"font": fb.get("font", "Helvetica-Bold"), "font_size": fb.get("font_size", 34)},
            ))
        return
    c.drawImage(img, ins.x, _flip(ins.y + h), width=w, height=h, preserveAspectRatio=True, mask="auto")


_DRAWERS: Dict[str, Callable[[Canvas, DrawInstruction], None]] = {
    TEXT: _draw_text,
    LINE: _draw_line,
    RECT: _draw_rect,
    CIRCLE: _draw_circle,
    IMAGE: _draw_image,
}


def render_pdf(layout: Union[InvoiceLayout, Iterable[DrawInstruction]], *, title: str = "",
               author: str = "") -> bytes:
    """Execute draw instructions on a single A4 page and return the PDF bytes.

    Raises RenderError on any drawing or stream failure, in which case nothing
    is returned.
    """
    instructions = layout.instructions if isinstance(layout, InvoiceLayout) else list(layout)
    buf = io.BytesIO()
    try:
        c = Canvas(buf, pagesize=PAGE_SIZE)
        if author:
            c.setAuthor(author)
        if title:
            c.setTitle(title)
        c.setLineWidth(1)
        c.setFillColor(TEXT_COLOR)
        c.setStrokeColor(RULE_COLOR)
        for ins in instructions:
            drawer = _DRAWERS.get(ins.kind)
            if drawer is None:
                raise RenderError(f"unknown draw instruction kind {ins.kind!r}")
            drawer(c, ins)
        c.showPage()
        c.save()
    except RenderError:
        raise
    except Exception as e:
        raise RenderError(f"failed to draw invoice: {e}") from e
    return buf.getvalue()


def build_invoice_pdf(out_path: Path | str, layout: Union[InvoiceLayout, Iterable[DrawInstruction]],
                      **meta: str) -> Path:
    """Render and write the PDF to out_path (parent folders are created)."""
    data = render_pdf(layout, **meta)
    out = Path(out_path)
    out.parent.mkdir(parents=True, exist_ok=True)
    out.write_bytes(data)
    return out
