from __future__ import annotations

from pathlib import Path
import sys

# Ensure we can import the billing package when running this script directly
ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from billing.core.settings import load_settings
from billing.invoice import build_invoice
from billing.pdf.pdf_draw import build_invoice_pdf

# Writes a sample bill for README/demo purposes.


def sample_payload() -> dict:
    return {
        "invoiceNo": "IN-SAMPLE-0001",
        "customer": {
            "name": "(Customer Name)",
            "address": "(Street), (City)\n(State) 641001",
            "phone": "+91 98765 43210",
            "email": "customer@example.com",
        },
        "products": [
            {"description": "Robotics starter kit", "quantity": 2, "price": 2499},
            {"description": "Arduino Uno R3 compatible board", "quantity": 3, "price": 650},
            {"description": "Online workshop seat (weekend batch)", "quantity": 1, "price": 1500},
        ],
        "deliveryCharge": 120,
        "discount": 200,
        "advance": 3000,
    }


def main() -> None:
    settings = load_settings()
    rendered = build_invoice(sample_payload(), settings=settings)
    out_pdf = build_invoice_pdf(ROOT / "samples" / rendered.filename, rendered.layout,
                                title=f"Invoice {rendered.order.invoice_id}", author=settings.company_name)
    print(f"Wrote sample to: {out_pdf}")


if __name__ == "__main__":
    main()
