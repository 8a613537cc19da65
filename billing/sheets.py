from __future__ import annotations

import logging
from typing import Any, Dict, Protocol

import requests

from billing.core.settings import Settings

logger = logging.getLogger(__name__)


class InvoiceRecorder(Protocol):
    def record(self, row: Dict[str, Any]) -> None:
        ...


class SheetDBRecorder:
    """Appends one row per invoice to a SheetDB-backed Google Sheet."""

    def __init__(self, url: str, timeout: float = 10.0, session: requests.Session | None = None) -> None:
        self.url = url
        self.timeout = timeout
        self.session = session or requests.Session()

    def record(self, row: Dict[str, Any]) -> None:
        resp = self.session.post(self.url, json={"data": row}, timeout=self.timeout)
        resp.raise_for_status()
        logger.info("Invoice %s stored in sheet", row.get("invoice_no"))


class NullRecorder:
    """Used when no sheet URL is configured."""

    def record(self, row: Dict[str, Any]) -> None:
        logger.warning("SHEETDB_URL is not set; invoice %s not logged", row.get("invoice_no"))


def recorder_from_settings(settings: Settings) -> InvoiceRecorder:
    if settings.sheetdb_url:
        return SheetDBRecorder(settings.sheetdb_url, timeout=settings.sheetdb_timeout)
    return NullRecorder()
