"""Export and viewing helpers for collected seller records"""

import csv
import json
import logging
from datetime import datetime
from typing import Iterable, List

from openpyxl import Workbook
from openpyxl.styles import Border, Font, Side

from .models import SellerRecord, is_found

logger = logging.getLogger(__name__)

CSV_HEADERS = ["ID", "Seller ID", "Business Name", "Email", "Headquarters", "Store Link"]


def record_row(record: SellerRecord) -> List[str]:
    """Export row in CSV_HEADERS order with "" for missing values"""
    return [
        str(record.id) if record.id else "",
        record.unique_id or "",
        record.business_name or "",
        record.email or "",
        record.headquarters or "",
        record.store_link or "",
    ]


def filter_records(records: Iterable[SellerRecord], query: str) -> List[SellerRecord]:
    """Case-insensitive match on business name, email or seller id"""
    query = (query or "").strip().lower()
    if not query:
        return list(records)
    return [
        record for record in records
        if query in (record.business_name or "").lower()
        or query in (record.email or "").lower()
        or query in (record.unique_id or "").lower()
    ]


def summarize(records: List[SellerRecord]) -> dict:
    return {
        "total": len(records),
        "emails_found": sum(1 for record in records if is_found(record.email)),
    }


def export_to_json(records: List[SellerRecord], filename: str) -> str:
    logger.info(f"Exporting {len(records)} records to {filename}")
    with open(filename, 'w', encoding='utf-8') as f:
        json.dump([record.to_dict() for record in records], f, indent=2, ensure_ascii=False)
    return filename


def export_to_csv(records: List[SellerRecord], filename: str) -> str:
    logger.info(f"Exporting {len(records)} records to {filename}")
    with open(filename, 'w', encoding='utf-8', newline='') as f:
        writer = csv.writer(f, quoting=csv.QUOTE_ALL, lineterminator='\n')
        writer.writerow(CSV_HEADERS)
        for record in records:
            writer.writerow(record_row(record))
    return filename


def export_to_excel(records: List[SellerRecord], filename: str) -> str:
    """Export to an Excel workbook, one seller per row"""
    logger.info(f"Exporting data to {filename}")

    wb = Workbook()
    ws = wb.active
    ws.title = "Seller Data"

    headers = CSV_HEADERS + ["Status"]
    header_font = Font(bold=True)
    thin_border = Border(
        left=Side(style='thin'),
        right=Side(style='thin'),
        top=Side(style='thin'),
        bottom=Side(style='thin')
    )

    for col, header in enumerate(headers, 1):
        cell = ws.cell(row=1, column=col, value=header)
        cell.font = header_font
        cell.border = thin_border

    for row, record in enumerate(records, 2):
        values = record_row(record) + ["Found" if record.found else "Not Found"]
        for col, value in enumerate(values, 1):
            ws.cell(row=row, column=col, value=value)

    ws.column_dimensions['A'].width = 8   # ID
    ws.column_dimensions['B'].width = 20  # Seller ID
    ws.column_dimensions['C'].width = 40  # Business Name
    ws.column_dimensions['D'].width = 35  # Email
    ws.column_dimensions['E'].width = 50  # Headquarters
    ws.column_dimensions['F'].width = 50  # Store Link
    ws.column_dimensions['G'].width = 12  # Status

    try:
        wb.save(filename)
        logger.info(f"Data exported to {filename}")
    except PermissionError:
        # File might be open, try with timestamp
        timestamp = datetime.now().strftime("%Y%m%d_%H%M%S")
        base, ext = filename.rsplit('.', 1)
        new_filename = f"{base}_{timestamp}.{ext}"
        wb.save(new_filename)
        logger.info(f"Original file was locked. Data exported to {new_filename}")
        return new_filename
    return filename


EXPORTERS = {
    "json": export_to_json,
    "csv": export_to_csv,
    "xlsx": export_to_excel,
}


def format_table(records: List[SellerRecord]) -> str:
    """Plain-text table for the terminal viewer"""
    columns = ["ID", "Seller ID", "Business Name", "Email", "Headquarters", "Status"]
    rows = []
    for record in records:
        rows.append([
            str(record.id),
            record.unique_id or "N/A",
            record.business_name or "N/A",
            record.email or "N/A",
            record.headquarters or "N/A",
            "✓ Found" if record.found else "✗ Not Found",
        ])

    widths = [min(max([len(col)] + [len(row[i]) for row in rows]), 40) for i, col in enumerate(columns)]

    def fmt(values):
        return " | ".join(value[:width].ljust(width) for value, width in zip(values, widths))

    lines = [fmt(columns), "-+-".join("-" * width for width in widths)]
    lines.extend(fmt(row) for row in rows)
    return "\n".join(lines)
