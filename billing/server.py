from __future__ import annotations

# Allow running this file directly (python billing/server.py) by ensuring the project root is on sys.path
import os
import sys
if __package__ in (None, ""):
    sys.path.append(os.path.dirname(os.path.dirname(__file__)))

import logging
import threading
from pathlib import Path
from typing import Optional

from flask import Flask, jsonify, request, send_file

from billing.core.paths import writable_path
from billing.core.settings import Settings, load_settings
from billing.invoice import build_invoice, record_invoice
from billing.pdf.pdf_draw import RenderError
from billing.sheets import InvoiceRecorder, recorder_from_settings

logger = logging.getLogger(__name__)

EXPORT_NAME = "invoices.xlsx"


def discard(path: Path) -> None:
    try:
        path.unlink(missing_ok=True)
    except OSError:
        logger.warning("Could not remove %s", path)


def schedule_cleanup(path: Path, delay: float) -> threading.Timer:
    """Delete a delivered bill after `delay` seconds, whatever happened to the download."""
    timer = threading.Timer(delay, discard, args=(path,))
    timer.daemon = True
    timer.start()
    return timer


def dispatch_record(recorder: InvoiceRecorder, order, totals) -> threading.Thread:
    # Fire-and-forget: the response never waits on the sheet
    t = threading.Thread(target=record_invoice, args=(recorder, order, totals), daemon=True)
    t.start()
    return t


def create_app(settings: Optional[Settings] = None, recorder: Optional[InvoiceRecorder] = None) -> Flask:
    settings = settings or load_settings()
    recorder = recorder or recorder_from_settings(settings)
    uploads_dir = writable_path(settings.uploads_dir)
    uploads_dir.mkdir(parents=True, exist_ok=True)
    data_dir = writable_path(settings.data_dir)

    app = Flask(__name__)
    app.config["MAX_CONTENT_LENGTH"] = 2 * 1024 * 1024
    app.config["BILLING_SETTINGS"] = settings

    @app.after_request
    def _cors(resp):
        # The order form is served from a different origin
        resp.headers.setdefault("Access-Control-Allow-Origin", "*")
        resp.headers.setdefault("Access-Control-Allow-Headers", "Content-Type")
        return resp

    @app.get("/")
    def index():
        return jsonify({"status": "Billing Server Running"})

    @app.post("/generate-bill")
    def generate_bill():
        # JSON from the order form; flat url-encoded bodies from older clients
        payload = request.get_json(silent=True) or request.form.to_dict() or {}
        try:
            rendered = build_invoice(payload, settings=settings)
        except RenderError as e:
            logger.exception("PDF render failed")
            return jsonify({"success": False, "error": str(e)}), 500

        out = uploads_dir / rendered.filename
        # Scratch name until every byte is on disk
        part = out.with_name(out.name + ".part")
        try:
            part.write_bytes(rendered.pdf)
            part.replace(out)
        except OSError as e:
            logger.exception("Could not write %s", out)
            discard(part)
            return jsonify({"success": False, "error": str(e)}), 500
        schedule_cleanup(out, settings.cleanup_delay)

        dispatch_record(recorder, rendered.order, rendered.totals)
        logger.info("Sending %s", rendered.filename)
        return send_file(out, mimetype="application/pdf", as_attachment=True,
                         download_name=rendered.filename)

    @app.get("/download-invoices")
    def download_invoices():
        export = data_dir / EXPORT_NAME
        if not export.is_file():
            return jsonify({"success": False, "message": "No invoices file found yet."}), 404
        return send_file(export, as_attachment=True, download_name=EXPORT_NAME)

    return app


def main() -> None:
    logging.basicConfig(level=logging.INFO, format="%(asctime)s %(levelname)s %(name)s: %(message)s")
    settings = load_settings()
    app = create_app(settings)
    logger.info("Billing server running on port %s", settings.port)
    app.run(host="0.0.0.0", port=settings.port)


if __name__ == "__main__":
    main()
