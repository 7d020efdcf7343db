"""CSV and PDF downloads of a store's inventory"""
import csv
import io
from typing import Any, Dict, List

from fpdf import FPDF

from ..models import Item, Store

CSV_COLUMNS = ['Position', 'Name', 'Category', 'Quantity', 'Price', 'Cost', 'Stock Value']


def _latin1(text: Any) -> str:
    # core PDF fonts only cover latin-1
    return str(text).encode('latin-1', 'replace').decode('latin-1')


def inventory_csv(items: List[Item]) -> bytes:
    buffer = io.StringIO()
    writer = csv.writer(buffer)
    writer.writerow(CSV_COLUMNS)
    for i in items:
        writer.writerow([
            i.position, i.name, i.category, i.quantity,
            f"{i.price:.2f}", f"{i.cost_price:.2f}", f"{i.quantity * i.price:.2f}",
        ])
    return buffer.getvalue().encode('utf-8')


def inventory_pdf(store: Store, items: List[Item], kpis: Dict[str, Any]) -> bytes:
    """Tabular item listing under a KPI header"""
    pdf = FPDF()
    pdf.add_page()

    pdf.set_font('Helvetica', 'B', 16)
    pdf.cell(0, 10, _latin1(f"{store.store_name} - Inventory Report"))
    pdf.ln(12)

    pdf.set_font('Helvetica', '', 11)
    for label, key in (('Total Revenue', 'total_revenue'), ('Total Profit', 'total_profit')):
        pdf.cell(0, 7, f"{label}: PHP {kpis.get(key, 0):,.2f}")
        pdf.ln(7)
    pdf.cell(0, 7, f"Total Orders: {kpis.get('total_orders', 0)}")
    pdf.ln(10)

    widths = [12, 62, 40, 20, 25, 25]
    headers = ['#', 'Name', 'Category', 'Qty', 'Price', 'Cost']
    pdf.set_font('Helvetica', 'B', 10)
    for width, header in zip(widths, headers):
        pdf.cell(width, 8, header, border=1)
    pdf.ln(8)

    pdf.set_font('Helvetica', '', 10)
    for i in items:
        row = [i.position, i.name[:34], i.category[:22], i.quantity, f"{i.price:.2f}", f"{i.cost_price:.2f}"]
        for width, value in zip(widths, row):
            pdf.cell(width, 7, _latin1(value), border=1)
        pdf.ln(7)

    return bytes(pdf.output())
