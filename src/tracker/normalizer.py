"""
Normalization of untrusted incoming order records.

Two sources feed the registry:
- Document extraction results: loosely typed dicts, any field may be missing
- Delimited text files: a header row followed by data rows

Both are turned into canonical Order objects here and nowhere else.
"""

import csv
import io
import time
import uuid
from typing import Any

from .models import Order


# Header keyword per order field; a header matches if it contains the keyword
CSV_COLUMN_KEYWORDS = {
    "vendor_code": "vendor",
    "customer_name": "customer",
    "description": "detail",
    "est_num": "est",
    "order_num": "po",
    "order_date": "date",
    "expected_recv_date": "expect",
    "status": "status",
}

DEFAULT_STATUS = "Ordered"


def generate_order_id(prefix: str = "rec") -> str:
    """Fresh id: millisecond timestamp plus random bits."""
    return f"{prefix}-{int(time.time() * 1000)}-{uuid.uuid4().hex[:9]}"


def _text(value: Any) -> str:
    # Falsy values (None, "", 0) all read as empty
    if not value:
        return ""
    return str(value).strip()


class RecordNormalizer:
    """
    Converts raw records into Orders for one import batch.

    The normalizer keeps a running line counter so records without a line
    number are numbered after the existing registry and after everything
    already accepted in this batch, across every file in the batch.

    Usage:
        normalizer = RecordNormalizer(registry_size=len(registry))
        orders = normalizer.normalize_many(extracted["orders"])
        orders += normalizer.normalize_delimited(csv_text)
    """

    def __init__(self, registry_size: int = 0):
        """
        Args:
            registry_size: Number of orders in the registry before this batch
        """
        self.registry_size = registry_size
        self.accepted_count = 0

    def _next_line_number(self) -> str:
        return str(self.registry_size + self.accepted_count + 1)

    def normalize(self, raw: dict, source: str = "rec") -> Order | None:
        """
        Normalize one raw record. Returns None if the record is rejected.

        A record is rejected when it has neither a vendor nor a customer.
        """
        vendor_code = _text(raw.get("vendorCode")).upper()
        customer_name = _text(raw.get("customerName"))
        if not vendor_code and not customer_name:
            return None

        line_number = _text(raw.get("lineNumber")) or self._next_line_number()
        status = _text(raw.get("status")) or DEFAULT_STATUS

        order = Order(
            id=generate_order_id(source),
            line_number=line_number.replace(".", ""),
            vendor_code=vendor_code,
            customer_name=customer_name,
            description=_text(raw.get("description")),
            est_num=_text(raw.get("estNum")),
            order_num=_text(raw.get("orderNum")),
            order_date=_text(raw.get("orderDate")),
            expected_recv_date=_text(raw.get("expectedRecvDate")),
            status=status,
        )
        self.accepted_count += 1
        return order

    def normalize_many(self, records: list[Any], source: str = "rec") -> list[Order]:
        """Normalize a list of extraction records, dropping rejects and non-dicts."""
        orders = []
        for raw in records or []:
            if not isinstance(raw, dict):
                continue
            order = self.normalize(raw, source=source)
            if order is not None:
                orders.append(order)
        return orders

    def normalize_delimited(self, text: str) -> list[Order]:
        """
        Normalize a delimited text file with a header row.

        Columns are found by case-insensitive substring match on the header.
        A column whose header is missing reads as empty for every row.
        """
        rows = list(csv.reader(io.StringIO(text), skipinitialspace=True))
        if len(rows) < 2:
            return []

        headers = [h.strip().lower() for h in rows[0]]
        if headers:
            headers[0] = headers[0].lstrip("\ufeff")

        columns = {
            field: _find_column(headers, keyword)
            for field, keyword in CSV_COLUMN_KEYWORDS.items()
        }

        orders = []
        for row in rows[1:]:
            if len(row) < 2:
                continue
            cells = [c.strip() for c in row]

            def cell(field: str) -> str:
                idx = columns[field]
                if idx is None or idx >= len(cells):
                    return ""
                return cells[idx]

            raw = {
                "vendorCode": cell("vendor_code"),
                "customerName": cell("customer_name"),
                "description": cell("description"),
                "estNum": cell("est_num"),
                "orderNum": cell("order_num"),
                "orderDate": cell("order_date"),
                "expectedRecvDate": cell("expected_recv_date"),
                "status": cell("status"),
            }
            order = self.normalize(raw, source="csv")
            if order is not None:
                orders.append(order)

        return orders


def _find_column(headers: list[str], keyword: str) -> int | None:
    """Index of the first header containing keyword, or None."""
    for idx, header in enumerate(headers):
        if keyword in header:
            return idx
    return None
