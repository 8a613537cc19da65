from __future__ import annotations

from typing import NamedTuple

from reportlab.pdfbase import pdfmetrics
from reportlab.pdfbase.ttfonts import TTFont, TTFError

from billing.core.paths import resource_path


class FontSet(NamedTuple):
    regular: str
    bold: str
    oblique: str


_CACHE: dict[str, FontSet] = {}


def register_fonts() -> FontSet:
    """Return the font family used for both measuring and drawing.

    Noto Sans is registered when its TTFs ship under assets/fonts; otherwise
    the built-in Helvetica family is used.
    """
    if "fonts" in _CACHE:
        return _CACHE["fonts"]
    regular, bold, oblique = "Helvetica", "Helvetica-Bold", "Helvetica-Oblique"
    candidates = (
        ("NotoSans", "assets/fonts/NotoSans-Regular.ttf"),
        ("NotoSans-Bold", "assets/fonts/NotoSans-Bold.ttf"),
        ("NotoSans-Italic", "assets/fonts/NotoSans-Italic.ttf"),
    )
    loaded = []
    try:
        for name, rel in candidates:
            path = resource_path(rel)
            if path.exists():
                pdfmetrics.registerFont(TTFont(name, str(path)))
                loaded.append(name)
    except (TTFError, OSError):
        # fall back to Helvetica variants
        loaded = []
    # Only switch when the whole family is present so metrics stay consistent
    if len(loaded) == len(candidates):
        regular, bold, oblique = (name for name, _ in candidates)
    _CACHE["fonts"] = FontSet(regular, bold, oblique)
    return _CACHE["fonts"]
