from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Tuple

from reportlab.lib.pagesizes import A4
from reportlab.pdfbase import pdfmetrics

from billing.core.currency import fmt_inr, fmt_qty
from billing.core.models import Order, Totals
from billing.core.paths import resource_path
from billing.core.settings import Settings
from billing.pdf.fonts import FontSet, register_fonts

logger = logging.getLogger(__name__)


# ===== Layout constants (points, origin at the top-left corner, y grows down) =====
PAGE_WIDTH, PAGE_HEIGHT = A4
MARGIN_LEFT = 50
CONTENT_RIGHT = PAGE_WIDTH - 50
LEADING = 1.2  # line height as a multiple of font size

TEXT_FONT_SIZE = 10
BRAND_FONT_SIZE = 34
AMOUNT_LABEL_FONT_SIZE = 14
AMOUNT_VALUE_FONT_SIZE = 12
WORDS_FONT_SIZE = 11
TERMS_TITLE_FONT_SIZE = 11
SMALL_FONT_SIZE = 9
MIN_FIT_FONT_SIZE = 8

# Brand block
LOGO_X, LOGO_Y = MARGIN_LEFT, 14
LOGO_WIDTH, LOGO_HEIGHT = 200, 60
BRAND_TEXT_Y = 40
HEADER_RULE_Y = 80

# Three-column strip: company | customer | invoice meta
STRIP_TOP = 90
STRIP_FIRST_ROW = 95
STRIP_MIN_BOTTOM = 190
FIELD_STEP = 15
COMPANY_X = MARGIN_LEFT
COMPANY_W = 160
CONTACT_TEXT_X = COMPANY_X + 16
CONTACT_TEXT_W = COMPANY_W - 16
PHONE_ROW_GAP = 16  # last address row -> phone row
EMAIL_ROW_GAP = 19  # phone row -> email row
RULE_1_X = 215
CUSTOMER_X = 220
CUSTOMER_W = 200
ADDRESS_MIN_LINES = 2
RULE_2_X = 430
META_X = 436
META_RIGHT = PAGE_WIDTH - 8

# Line-item table: one outer box, rows at a fixed pitch
TABLE_GAP = 10  # strip bottom -> table top
TABLE_X = MARGIN_LEFT
TABLE_W = CONTENT_RIGHT - MARGIN_LEFT
HEADER_ROW_H = 25
ROW_H = 26
TABLE_PAD = 30
TABLE_MIN_H = 260
CELL_TOP_PAD = 6
HEADER_LABEL_PAD = 7
DESC_W = 200
DESC_LEADING = 11
# column x offsets from TABLE_X
COL_SNO, COL_DESC, COL_QTY, COL_PRICE, COL_TOTAL = 10, 60, 275, 330, 420

# Totals box
TOTALS_GAP = 20
TOTALS_X = 345
TOTALS_W = 200
TOTALS_H = 120
TOTALS_PAD = 5
TOTALS_STEP = 18
TOTALS_LABEL_X = 355
TOTALS_VALUE_X = 445
TOTALS_VALUE_W = 90

# Amount line and worded amount
AMOUNT_GAP = 12
AMOUNT_LABEL_X = 35
AMOUNT_VALUE_X = 105
WORDS_OFFSET = 20
WORDS_X = 30
WORDS_W = 500
WORDS_COLOR = "gray"

# Footer: terms (left) and signatures (right), offsets from the footer origin
FOOTER_GAP = 10
TERMS_X = 40
TERMS_TITLE_DY = 30
TERMS_FIRST_DY = 46
TERMS_STEP = 14
SIGN_RULE_DY = 36
SIGN_NAME_DY = 42
SIGN_ROLE_DY = 60
SIGN_DATE_DY = 80
SIGN_LEFT = {"rule": (300, 405), "name": (290, 100), "role": (310, 60)}
SIGN_RIGHT = {"rule": (440, 555), "name": (440, 100), "role": (460, 60)}
SIGN_DATE_X, SIGN_DATE_W = 340, 150

TEXT, LINE, RECT, CIRCLE, IMAGE = "text", "line", "rect", "circle", "image"


@dataclass(frozen=True)
class DrawInstruction:
    """One positioned primitive.

    text:   (x, y) is the top-left of the line box; size=(width, height) when
            the text is aligned inside a box.
    line:   from (x, y) to end.
    rect:   (x, y) top-left corner, size=(w, h); style may carry a radius.
    circle: (x, y) centre, style["radius"].
    image:  (x, y) top-left, size=(w, h), content is the file path;
            style["fallback"] is the text to draw when the image is unreadable.
    """

    kind: str
    x: float
    y: float
    size: Optional[Tuple[float, float]] = None
    content: Optional[str] = None
    style: Dict[str, Any] = field(default_factory=dict)
    tag: str = ""
    end: Optional[Tuple[float, float]] = None


@dataclass
class InvoiceLayout:
    instructions: List[DrawInstruction]
    header_bottom: float
    table_top: float
    table_height: float
    totals_top: float
    words_top: float
    words_height: float
    footer_top: float

    def find(self, tag: str) -> List[DrawInstruction]:
        """Instructions whose tag equals `tag` or starts with `tag.`."""
        return [i for i in self.instructions if i.tag == tag or i.tag.startswith(tag + ".")]


class _Page:
    """Collects draw instructions in emission order."""

    def __init__(self) -> None:
        self.out: List[DrawInstruction] = []

    def text(self, x: float, y: float, content: str, font: str, size: float, *,
             width: Optional[float] = None, align: str = "left", color: str = "black",
             tag: str = "") -> None:
        box = (width, size * LEADING) if width is not None else None
        style = {"font": font, "font_size": size, "align": align, "color": color}
        self.out.append(DrawInstruction(TEXT, x, y, box, content, style, tag))

    def line(self, x1: float, y1: float, x2: float, y2: float, *, width: float = 1.0, tag: str = "") -> None:
        self.out.append(DrawInstruction(LINE, x1, y1, None, None, {"line_width": width}, tag, (x2, y2)))

    def rect(self, x: float, y: float, w: float, h: float, *, radius: float = 0.0,
             width: float = 1.0, tag: str = "") -> None:
        style = {"line_width": width, "radius": radius}
        self.out.append(DrawInstruction(RECT, x, y, (w, h), None, style, tag))

    def circle(self, cx: float, cy: float, r: float, *, width: float = 1.0, tag: str = "") -> None:
        self.out.append(DrawInstruction(CIRCLE, cx, cy, None, None, {"radius": r, "line_width": width}, tag))

    def image(self, x: float, y: float, w: float, h: float, path: str, fallback: Dict[str, Any], tag: str = "") -> None:
        self.out.append(DrawInstruction(IMAGE, x, y, (w, h), path, {"fallback": fallback}, tag))


# ===== Measuring =====
def line_height(font_size: float) -> float:
    return font_size * LEADING


def wrap_lines(text: str, max_width: float, font_name: str, font_size: float) -> List[str]:
    """Greedy word wrap honouring explicit newlines; empty text gives no lines."""
    width_fn = pdfmetrics.stringWidth
    lines: List[str] = []
    for para in (text or "").replace("\r", "").split("\n"):
        line: List[str] = []
        for w in para.split():
            trial = " ".join(line + [w])
            if width_fn(trial, font_name, font_size) <= max_width or not line:
                line.append(w)
            else:
                lines.append(" ".join(line))
                line = [w]
        if line:
            lines.append(" ".join(line))

    # If the text has long unbroken sequences, hard-truncate per line end
    truncated: List[str] = []
    for ln in lines:
        if width_fn(ln, font_name, font_size) <= max_width:
            truncated.append(ln)
        else:
            s = ln
            while s and width_fn(s + "…", font_name, font_size) > max_width:
                s = s[:-1]
            truncated.append((s + "…") if s else ln)
    return truncated


def clamp_lines(text: str, max_width: float, font_name: str, font_size: float, max_lines: int = 2) -> List[str]:
    """Wrap into at most `max_lines`, ending the last kept line with an ellipsis on overflow."""
    lines = wrap_lines(" ".join((text or "").split()), max_width, font_name, font_size)
    if len(lines) <= max_lines:
        return lines or [""]
    kept = lines[:max_lines]
    base = kept[-1]
    width = pdfmetrics.stringWidth
    while base and width(base + " …", font_name, font_size) > max_width:
        base = base[:-1].rstrip()
    kept[-1] = (base + " …") if base else "…"
    return kept


def measure_height(text: str, max_width: float, font_name: str, font_size: float) -> float:
    """Rendered height of `text` wrapped to `max_width`."""
    return len(wrap_lines(text, max_width, font_name, font_size)) * line_height(font_size)


def fit_font_size(text: str, max_width: float, font_name: str, font_size: float,
                  min_size: float = MIN_FIT_FONT_SIZE) -> float:
    """Largest size <= font_size (half-point steps) at which text fits on one line."""
    size = font_size
    while size > min_size and pdfmetrics.stringWidth(text, font_name, size) > max_width:
        size -= 0.5
    return size


def table_height(row_count: int) -> float:
    return max(HEADER_ROW_H + max(0, row_count) * ROW_H + TABLE_PAD, TABLE_MIN_H)


def _fmt_date(d: Any) -> str:
    return d.strftime("%d.%m.%Y")


def _paragraph(page: _Page, x: float, y: float, text: str, font: str, size: float, width: float,
               *, min_lines: int = 1, step: float = FIELD_STEP, tag: str = "") -> float:
    """Draw wrapped text line by line; return the y of the next free row."""
    lines = wrap_lines(text, width, font, size) or [""]
    for i, ln in enumerate(lines):
        page.text(x, y + i * step, ln, font, size, tag=tag)
    return y + max(len(lines), min_lines) * step


# ===== Blocks =====
def _draw_brand(page: _Page, fonts: FontSet, settings: Settings) -> float:
    """Logo image if the asset exists, otherwise the text brand mark; then the header rule."""
    fallback = {"text": settings.brand_text, "font": fonts.bold, "font_size": BRAND_FONT_SIZE,
                "x": MARGIN_LEFT, "y": BRAND_TEXT_Y}
    logo = resource_path(settings.logo_path) if settings.logo_path else None
    if logo is not None and logo.is_file():
        page.image(LOGO_X, LOGO_Y, LOGO_WIDTH, LOGO_HEIGHT, str(logo), fallback, tag="brand.logo")
    else:
        if settings.logo_path:
            logger.warning("Brand image %s not found; using text brand mark", logo)
        page.text(MARGIN_LEFT, BRAND_TEXT_Y, settings.brand_text, fonts.bold, BRAND_FONT_SIZE, tag="brand.text")
    page.line(MARGIN_LEFT, HEADER_RULE_Y, CONTENT_RIGHT, HEADER_RULE_Y, tag="brand.rule")
    return HEADER_RULE_Y


def _draw_phone_icon(page: _Page, x: float, y: float, w: float = 10, h: float = 14) -> None:
    # Smartphone outline, screen and home button
    page.rect(x, y, w, h, radius=2, tag="company.phone_icon")
    page.rect(x + 2, y + 2, w - 4, h - 6, tag="company.phone_icon")
    page.circle(x + w / 2, y + h - 3, 1, tag="company.phone_icon")


def _draw_envelope_icon(page: _Page, x: float, y: float, w: float = 12, h: float = 9) -> None:
    page.rect(x, y, w, h, tag="company.mail_icon")
    # flap
    page.line(x, y, x + w / 2, y + h / 2, tag="company.mail_icon")
    page.line(x + w / 2, y + h / 2, x + w, y, tag="company.mail_icon")
    # lower folds
    page.line(x, y + h, x + w / 2, y + h / 2, tag="company.mail_icon")
    page.line(x + w / 2, y + h / 2, x + w, y + h, tag="company.mail_icon")


def _draw_company(page: _Page, fonts: FontSet, settings: Settings) -> float:
    name_size = fit_font_size(settings.company_name, COMPANY_W, fonts.bold, TEXT_FONT_SIZE)
    page.text(COMPANY_X, STRIP_FIRST_ROW, settings.company_name, fonts.bold, name_size, tag="company.name")
    y = STRIP_FIRST_ROW + FIELD_STEP
    for ln in settings.company_address:
        y = _paragraph(page, COMPANY_X, y, ln, fonts.regular, TEXT_FONT_SIZE, COMPANY_W, tag="company.address")

    # y is one step past the last address row
    phone_y = y - FIELD_STEP + PHONE_ROW_GAP
    _draw_phone_icon(page, COMPANY_X, phone_y)
    page.text(CONTACT_TEXT_X, phone_y, settings.company_phone, fonts.regular,
              fit_font_size(settings.company_phone, CONTACT_TEXT_W, fonts.regular, TEXT_FONT_SIZE),
              tag="company.phone")
    email_y = phone_y + EMAIL_ROW_GAP
    _draw_envelope_icon(page, COMPANY_X, email_y)
    page.text(CONTACT_TEXT_X, email_y, settings.company_email, fonts.regular,
              fit_font_size(settings.company_email, CONTACT_TEXT_W, fonts.regular, TEXT_FONT_SIZE),
              tag="company.email")
    return email_y + line_height(TEXT_FONT_SIZE)


def _draw_customer(page: _Page, fonts: FontSet, order: Order) -> float:
    c = order.customer
    page.text(CUSTOMER_X, STRIP_FIRST_ROW, "ORDER FROM :", fonts.bold, TEXT_FONT_SIZE, tag="customer.label")
    y = STRIP_FIRST_ROW + FIELD_STEP
    y = _paragraph(page, CUSTOMER_X, y, f"Customer Name: {c.name}", fonts.regular, TEXT_FONT_SIZE,
                   CUSTOMER_W, tag="customer.name")
    # The address always reserves two rows so short addresses keep the usual rhythm
    y = _paragraph(page, CUSTOMER_X, y, f"Address: {c.address}", fonts.regular, TEXT_FONT_SIZE,
                   CUSTOMER_W, min_lines=ADDRESS_MIN_LINES, tag="customer.address")
    y = _paragraph(page, CUSTOMER_X, y, f"Mobile No: {c.phone}", fonts.regular, TEXT_FONT_SIZE,
                   CUSTOMER_W, tag="customer.phone")
    y = _paragraph(page, CUSTOMER_X, y, f"E-Mail Id: {c.email}", fonts.regular, TEXT_FONT_SIZE,
                   CUSTOMER_W, tag="customer.email")
    return y - FIELD_STEP + line_height(TEXT_FONT_SIZE)


def _draw_meta(page: _Page, fonts: FontSet, order: Order) -> float:
    rows = (("IN Number :", order.invoice_id, "meta.invoice_id"),
            ("Date of Issue :", _fmt_date(order.issue_date), "meta.date"))
    label_w = max(pdfmetrics.stringWidth(label, fonts.bold, TEXT_FONT_SIZE) for label, _, _ in rows)
    value_x = META_X + label_w + 4
    value_w = META_RIGHT - value_x
    y = STRIP_FIRST_ROW
    for label, value, tag in rows:
        page.text(META_X, y, label, fonts.bold, TEXT_FONT_SIZE, tag=tag + ".label")
        size = fit_font_size(value, value_w, fonts.regular, TEXT_FONT_SIZE)
        if pdfmetrics.stringWidth(value, fonts.regular, size) <= value_w:
            page.text(value_x, y, value, fonts.regular, size, tag=tag)
            y += FIELD_STEP
        else:
            # Too long to sit beside its label: continue underneath across the column
            y = _paragraph(page, META_X, y + FIELD_STEP, value, fonts.regular, TEXT_FONT_SIZE,
                           META_RIGHT - META_X, tag=tag)
    return y - FIELD_STEP + line_height(TEXT_FONT_SIZE)


def _draw_items_table(page: _Page, fonts: FontSet, order: Order, top: float) -> float:
    """Single outer box sized to the rows; returns the box height."""
    height = table_height(len(order.line_items))
    page.rect(TABLE_X, top, TABLE_W, height, tag="items.box")

    label_y = top + HEADER_LABEL_PAD
    for offset, label in ((COL_SNO, "S.NO"), (COL_DESC, "PRODUCT LIST"), (COL_QTY - 5, "QTY"),
                          (COL_PRICE, "Price/Unit"), (COL_TOTAL, "TOTAL")):
        page.text(TABLE_X + offset, label_y, label, fonts.bold, TEXT_FONT_SIZE, tag="items.header")
    page.line(TABLE_X, top + HEADER_ROW_H, TABLE_X + TABLE_W, top + HEADER_ROW_H, tag="items.header_rule")

    for i, item in enumerate(order.line_items):
        row_y = top + HEADER_ROW_H + i * ROW_H
        tag = f"items.row.{i}"
        y = row_y + CELL_TOP_PAD
        page.text(TABLE_X + COL_SNO, y, str(i + 1), fonts.regular, TEXT_FONT_SIZE, tag=tag)
        for j, ln in enumerate(clamp_lines(item.description, DESC_W, fonts.regular, TEXT_FONT_SIZE)):
            page.text(TABLE_X + COL_DESC, y + j * DESC_LEADING, ln, fonts.regular, TEXT_FONT_SIZE, tag=tag)
        page.text(TABLE_X + COL_QTY, y, fmt_qty(item.quantity), fonts.regular, TEXT_FONT_SIZE, tag=tag)
        page.text(TABLE_X + COL_PRICE, y, fmt_inr(item.unit_price), fonts.regular, TEXT_FONT_SIZE, tag=tag)
        page.text(TABLE_X + COL_TOTAL, y, fmt_inr(item.line_total), fonts.regular, TEXT_FONT_SIZE, tag=tag)
    return height


def _draw_totals(page: _Page, fonts: FontSet, totals: Totals, top: float) -> float:
    page.rect(TOTALS_X, top, TOTALS_W, TOTALS_H, tag="totals.box")
    y = top + TOTALS_PAD
    for label, value in (("Total Price :", totals.subtotal),
                         ("Delivery Charge :", totals.delivery_charge),
                         ("Discount :", totals.discount),
                         ("Amount :", totals.final_amount),
                         ("Advance :", totals.advance),
                         ("Balance :", totals.balance)):
        page.text(TOTALS_LABEL_X, y, label, fonts.bold, TEXT_FONT_SIZE, tag="totals.label")
        page.text(TOTALS_VALUE_X, y, fmt_inr(value), fonts.regular, TEXT_FONT_SIZE,
                  width=TOTALS_VALUE_W, align="right", tag="totals.value")
        y += TOTALS_STEP
    return TOTALS_H


def _draw_amount(page: _Page, fonts: FontSet, totals: Totals, words: str, top: float) -> Tuple[float, float]:
    """Amount label/value and the wrapped worded amount; returns (words_top, words_height)."""
    page.text(AMOUNT_LABEL_X, top, "Amount :", fonts.bold, AMOUNT_LABEL_FONT_SIZE, tag="amount.label")
    page.text(AMOUNT_VALUE_X, top, fmt_inr(totals.final_amount), fonts.regular, AMOUNT_VALUE_FONT_SIZE,
              tag="amount.value")
    words_top = top + WORDS_OFFSET
    words_height = measure_height(words, WORDS_W, fonts.oblique, WORDS_FONT_SIZE)
    step = line_height(WORDS_FONT_SIZE)
    for i, ln in enumerate(wrap_lines(words, WORDS_W, fonts.oblique, WORDS_FONT_SIZE)):
        page.text(WORDS_X, words_top + i * step, ln, fonts.oblique, WORDS_FONT_SIZE,
                  color=WORDS_COLOR, tag="amount.words")
    return words_top, words_height


def _draw_signatures(page: _Page, fonts: FontSet, settings: Settings, order: Order, origin: float) -> None:
    for side, name, role in (("left", settings.left_signatory, settings.left_role),
                             ("right", settings.right_signatory, settings.right_role)):
        geo = SIGN_LEFT if side == "left" else SIGN_RIGHT
        x1, x2 = geo["rule"]
        page.line(x1, origin + SIGN_RULE_DY, x2, origin + SIGN_RULE_DY, tag=f"signature.{side}.rule")
        nx, nw = geo["name"]
        page.text(nx, origin + SIGN_NAME_DY, name, fonts.bold, TEXT_FONT_SIZE, width=nw, align="center",
                  tag=f"signature.{side}.name")
        rx, rw = geo["role"]
        page.text(rx, origin + SIGN_ROLE_DY, role, fonts.regular, SMALL_FONT_SIZE, width=rw, align="center",
                  tag=f"signature.{side}.role")
    page.text(SIGN_DATE_X, origin + SIGN_DATE_DY, f"Date : {_fmt_date(order.issue_date)}", fonts.regular,
              SMALL_FONT_SIZE, width=SIGN_DATE_W, align="center", tag="signature.date")


def _draw_terms(page: _Page, fonts: FontSet, settings: Settings, origin: float) -> None:
    page.text(TERMS_X, origin + TERMS_TITLE_DY, settings.terms_title, fonts.bold, TERMS_TITLE_FONT_SIZE,
              tag="terms.title")
    y = origin + TERMS_FIRST_DY
    for t in settings.terms:
        page.text(TERMS_X, y, t, fonts.regular, SMALL_FONT_SIZE, tag="terms.line")
        y += TERMS_STEP


# ===== Public API =====
def layout_invoice(order: Order, totals: Totals, words: str, settings: Optional[Settings] = None) -> InvoiceLayout:
    """
    Lay the invoice out on one A4 page.

    Every block below the header strip is positioned from the measured extent
    of the block above it: strip columns -> item table -> totals box ->
    amount line and wrapped words -> terms and signatures.
    """
    settings = settings or Settings()
    fonts = register_fonts()
    page = _Page()

    _draw_brand(page, fonts, settings)
    company_bottom = _draw_company(page, fonts, settings)
    customer_bottom = _draw_customer(page, fonts, order)
    meta_bottom = _draw_meta(page, fonts, order)
    header_bottom = max(STRIP_MIN_BOTTOM, company_bottom, customer_bottom, meta_bottom)
    for x in (RULE_1_X, RULE_2_X):
        page.line(x, STRIP_TOP, x, header_bottom, tag="strip.rule")

    table_top = header_bottom + TABLE_GAP
    t_height = _draw_items_table(page, fonts, order, table_top)

    totals_top = table_top + t_height + TOTALS_GAP
    totals_h = _draw_totals(page, fonts, totals, totals_top)

    words_top, words_height = _draw_amount(page, fonts, totals, words, totals_top + totals_h + AMOUNT_GAP)

    footer_top = words_top + words_height + FOOTER_GAP
    _draw_signatures(page, fonts, settings, order, footer_top)
    _draw_terms(page, fonts, settings, footer_top)

    return InvoiceLayout(
        instructions=page.out,
        header_bottom=header_bottom,
        table_top=table_top,
        table_height=t_height,
        totals_top=totals_top,
        words_top=words_top,
        words_height=words_height,
        footer_top=footer_top,
    )
