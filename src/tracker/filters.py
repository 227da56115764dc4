"""
Registry views used by the dashboard table: text search, vendor filter and
the pending / late quick filters.
"""

from datetime import date
from enum import Enum

from .classification import is_fulfilled, is_late
from .models import Order

ALL_VENDORS = "all"


class RegistryView(Enum):
    ALL = "all"
    PENDING = "pending"
    LATE = "late"


def short_customer_name(name: str | None) -> str:
    """Customer name without the site suffix: "Acme - Annex" -> "Acme"."""
    if not name:
        return ""
    return name.split(" - ")[0].strip()


def unique_vendors(orders: list[Order]) -> list[str]:
    return sorted({o.vendor_code for o in orders if o.vendor_code})


def matches_query(order: Order, query: str) -> bool:
    q = query.lower()
    return (
        q in order.customer_name.lower()
        or q in order.vendor_code.lower()
        # PO numbers are not case-folded
        or q in order.order_num
        or q in order.description.lower()
    )


def filter_orders(
    orders: list[Order],
    query: str = "",
    vendor: str = ALL_VENDORS,
    view: RegistryView | str = RegistryView.ALL,
    today: date | None = None,
) -> list[Order]:
    """Orders visible under the current search, vendor and view selection."""
    view = RegistryView(view)
    visible = []
    for order in orders:
        if query and not matches_query(order, query):
            continue
        if vendor != ALL_VENDORS and order.vendor_code != vendor:
            continue
        if view is RegistryView.PENDING and is_fulfilled(order.status):
            continue
        if view is RegistryView.LATE and not is_late(
            order.status, order.expected_recv_date, today
        ):
            continue
        visible.append(order)
    return visible
