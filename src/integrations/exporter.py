"""Delimited text export of the registry."""

import csv
import io
from datetime import date

from tracker.models import Order

EXPORT_HEADERS = ["Vendor", "Customer", "Details", "Est#", "PO#", "Date Ordered", "Expected", "Status"]


def export_orders_csv(orders: list[Order]) -> str:
    """Every field quoted, inner quotes doubled, rows in registry order."""
    buffer = io.StringIO()
    writer = csv.writer(buffer, quoting=csv.QUOTE_ALL, lineterminator="\n")
    writer.writerow(EXPORT_HEADERS)
    for o in orders:
        writer.writerow([
            o.vendor_code,
            o.customer_name,
            o.description,
            o.est_num,
            o.order_num,
            o.order_date,
            o.expected_recv_date,
            o.status,
        ])
    # No trailing newline after the last row
    return buffer.getvalue().rstrip("\n")


def export_filename(today: date | None = None) -> str:
    today = today or date.today()
    return f"Registry_Export_{today.isoformat()}.csv"
