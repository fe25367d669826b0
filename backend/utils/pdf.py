# backend/utils/pdf.py
import logging
from pathlib import Path
from typing import Optional

from reportlab.lib.pagesizes import A4
from reportlab.lib.units import mm
from reportlab.pdfbase import pdfmetrics
from reportlab.pdfbase.ttfonts import TTFont
from reportlab.pdfgen import canvas

from config import settings
from models.purchase import Purchase

logger = logging.getLogger(__name__)

BACKEND_DIR = Path(__file__).resolve().parents[1]
FONT_DIRS = [BACKEND_DIR / "assets" / "fonts", BACKEND_DIR / "fonts"]

# Built-in fonts are used when no DejaVu files are shipped
FONT_REGULAR_NAME = "Helvetica"
FONT_BOLD_NAME = "Helvetica-Bold"
_fonts_inited = False


def _find_font(name: str) -> Optional[Path]:
    for d in FONT_DIRS:
        p = d / name
        if p.exists():
            return p
    return None


def _init_fonts() -> None:
    global _fonts_inited, FONT_REGULAR_NAME, FONT_BOLD_NAME
    if _fonts_inited:
        return
    _fonts_inited = True

    regular = _find_font("DejaVuSans.ttf")
    bold = _find_font("DejaVuSans-Bold.ttf")
    if not regular:
        logger.info("DejaVu fonts not found, using Helvetica for PDF documents")
        return
    pdfmetrics.registerFont(TTFont("DejaVu", str(regular)))
    FONT_REGULAR_NAME = "DejaVu"
    if bold:
        pdfmetrics.registerFont(TTFont("DejaVu-Bold", str(bold)))
        FONT_BOLD_NAME = "DejaVu-Bold"
    else:
        FONT_BOLD_NAME = FONT_REGULAR_NAME


def grn_pdf_path(purchase_id: int) -> Path:
    """Where the goods-received note of a purchase is stored."""
    directory = Path(settings.DOCUMENTS_DIR)
    directory.mkdir(parents=True, exist_ok=True)
    return directory / f"GRN-{purchase_id}.pdf"


def _rupiah(amount: int) -> str:
    return "Rp " + f"{amount:,}".replace(",", ".")


def generate_grn_pdf(purchase: Purchase, out_path: Path) -> Path:
    """
    Goods-received note for a received purchase:
    - header with store name, purchase number and dates
    - supplier and receiving warehouse
    - item table with quantity, unit cost and line total
    - grand total and signature lines
    """
    _init_fonts()

    c = canvas.Canvas(str(out_path), pagesize=A4)
    width, height = A4
    y = height - 25 * mm

    c.setFont(FONT_BOLD_NAME, 16)
    c.drawString(20 * mm, y, settings.STORE_NAME)
    c.drawRightString(190 * mm, y, f"Goods Received Note GRN-{purchase.id}")
    y -= 10 * mm

    c.setFont(FONT_REGULAR_NAME, 10)
    created = purchase.created_at.strftime("%Y-%m-%d") if purchase.created_at else "-"
    received = purchase.received_at.strftime("%Y-%m-%d %H:%M") if purchase.received_at else "-"
    c.drawString(20 * mm, y, f"Ordered: {created}")
    c.drawRightString(190 * mm, y, f"Received: {received}")
    y -= 6 * mm

    supplier = purchase.supplier
    c.drawString(20 * mm, y, f"Supplier: {supplier.name if supplier else '-'}")
    y -= 5 * mm
    if supplier and supplier.phone:
        c.drawString(20 * mm, y, f"Phone: {supplier.phone}")
        y -= 5 * mm
    warehouse = purchase.warehouse
    c.drawString(20 * mm, y, f"Warehouse: {warehouse.name if warehouse else '-'}")
    y -= 10 * mm

    c.setFont(FONT_BOLD_NAME, 10)
    c.drawString(20 * mm, y, "Product")
    c.drawRightString(120 * mm, y, "Qty")
    c.drawRightString(155 * mm, y, "Unit cost")
    c.drawRightString(190 * mm, y, "Total")
    y -= 3 * mm
    c.line(20 * mm, y, 190 * mm, y)
    y -= 6 * mm

    c.setFont(FONT_REGULAR_NAME, 10)
    for it in purchase.items:
        name = it.product.name if it.product else f"#{it.product_id}"
        unit = it.product.unit if it.product else ""
        c.drawString(20 * mm, y, name[:50])
        c.drawRightString(120 * mm, y, f"{it.quantity} {unit}".strip())
        c.drawRightString(155 * mm, y, _rupiah(it.unit_cost))
        c.drawRightString(190 * mm, y, _rupiah(it.line_total))
        y -= 6 * mm
        if y < 40 * mm:
            c.showPage()
            y = height - 20 * mm
            c.setFont(FONT_REGULAR_NAME, 10)

    y -= 2 * mm
    c.line(20 * mm, y, 190 * mm, y)
    y -= 7 * mm
    c.setFont(FONT_BOLD_NAME, 11)
    c.drawRightString(155 * mm, y, "Grand total")
    c.drawRightString(190 * mm, y, _rupiah(purchase.total_amount))

    y -= 20 * mm
    c.setFont(FONT_REGULAR_NAME, 10)
    c.drawString(20 * mm, y, "Delivered by: ________________________")
    c.drawString(110 * mm, y, "Received by: ________________________")

    c.showPage()
    c.save()
    return out_path
