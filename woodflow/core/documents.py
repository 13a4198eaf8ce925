"""
Document rendering and file storage: invoice PDFs, Excel exports, uploads
"""
import logging
import uuid
from datetime import datetime
from io import BytesIO
from pathlib import Path
from typing import Iterable

import openpyxl
from jinja2 import Environment, FileSystemLoader, select_autoescape
from openpyxl.styles import Font, PatternFill, Border, Side
from openpyxl.utils import get_column_letter

from woodflow.core.config import settings
from woodflow.core.exceptions import InvalidInput

logger = logging.getLogger(__name__)

TEMPLATE_DIR = Path(__file__).resolve().parent.parent / "templates"

templates = Environment(
    loader=FileSystemLoader(str(TEMPLATE_DIR)),
    autoescape=select_autoescape(["html"]),
)

ALLOWED_IMAGE_TYPES = {
    "image/jpeg": ".jpg",
    "image/png": ".png",
    "image/webp": ".webp",
    "image/gif": ".gif",
}


def render_template(name: str, **context) -> str:
    return templates.get_template(name).render(now=datetime.utcnow(), **context)


def render_invoice_html(invoice, company) -> str:
    return render_template("invoice.html", invoice=invoice, company=company)


def render_invoice_pdf(invoice, company) -> bytes:
    # Needs pango/cairo at runtime, so keep it off the import path
    from weasyprint import HTML

    return HTML(string=render_invoice_html(invoice, company)).write_pdf()


def store_upload(data: bytes, content_type: str, folder: str = "images") -> str:
    """Write an uploaded image under UPLOAD_DIR and return its public URL."""
    suffix = ALLOWED_IMAGE_TYPES.get(content_type)
    if suffix is None:
        raise InvalidInput(f"Unsupported image type: {content_type}")
    if not data:
        raise InvalidInput("Uploaded file is empty")
    if len(data) > settings.MAX_UPLOAD_BYTES:
        raise InvalidInput("Uploaded file is too large")

    target_dir = Path(settings.UPLOAD_DIR) / folder
    target_dir.mkdir(parents=True, exist_ok=True)
    filename = f"{uuid.uuid4().hex}{suffix}"
    (target_dir / filename).write_bytes(data)
    logger.info("Stored upload %s/%s (%d bytes)", folder, filename, len(data))
    return f"{settings.UPLOAD_BASE_URL.rstrip('/')}/{folder}/{filename}"


def export_orders_xlsx(orders: Iterable, company_name: str) -> bytes:
    """Orders register as an Excel workbook"""
    wb = openpyxl.Workbook()
    ws = wb.active
    ws.title = "Orders"

    header_fill = PatternFill(start_color="4F81BD", end_color="4F81BD", fill_type="solid")
    header_font_white = Font(bold=True, color="FFFFFF")
    currency_format = '#,##0.00'
    thin_border = Border(
        left=Side(style='thin'),
        right=Side(style='thin'),
        top=Side(style='thin'),
        bottom=Side(style='thin')
    )

    ws['A1'] = f"Orders - {company_name}"
    ws['A1'].font = Font(bold=True, size=16)
    ws.merge_cells('A1:I1')

    headers = ['Order #', 'Quotation #', 'Client', 'Status', 'Payment', 'Total', 'Paid', 'Balance', 'Order Date']
    for col, header in enumerate(headers, 1):
        cell = ws.cell(row=3, column=col, value=header)
        cell.font = header_font_white
        cell.fill = header_fill
        cell.border = thin_border

    row = 4
    for order in orders:
        values = [
            order.order_number,
            order.quotation_number,
            order.client_name,
            order.status,
            order.payment_status,
            float(order.total_amount or 0),
            float(order.amount_paid or 0),
            float(order.balance or 0),
            order.order_date.strftime("%Y-%m-%d") if order.order_date else "",
        ]
        for col, value in enumerate(values, 1):
            cell = ws.cell(row=row, column=col, value=value)
            cell.border = thin_border
            if 6 <= col <= 8:
                cell.number_format = currency_format
        row += 1

    for col in range(1, len(headers) + 1):
        ws.column_dimensions[get_column_letter(col)].width = 16

    buffer = BytesIO()
    wb.save(buffer)
    return buffer.getvalue()
