"""
Data model for the order registry.

Orders are plain text records. The persisted wire shape uses the camelCase
keys the registry has always stored, so from_dict/to_dict translate between
the two.
"""

from dataclasses import dataclass, field, fields
from enum import Enum


class DisplayCategory(Enum):
    """Operational state shown on the dashboard, derived from free-text status."""

    FULFILLED = "Fulfilled"
    IN_TRANSIT = "In Transit"
    EXCEPTIONS = "Exceptions"
    PENDING = "Pending"


@dataclass(frozen=True)
class Order:
    """A single purchase-order line in the registry."""

    id: str
    line_number: str = ""
    vendor_code: str = ""
    customer_name: str = ""
    description: str = ""
    est_num: str = ""
    order_num: str = ""
    order_date: str = ""
    expected_recv_date: str = ""
    status: str = ""

    # Persisted key for each attribute
    WIRE_KEYS = {
        "id": "id",
        "line_number": "lineNumber",
        "vendor_code": "vendorCode",
        "customer_name": "customerName",
        "description": "description",
        "est_num": "estNum",
        "order_num": "orderNum",
        "order_date": "orderDate",
        "expected_recv_date": "expectedRecvDate",
        "status": "status",
    }

    @property
    def natural_key(self) -> tuple[str, str, str]:
        """Identity of the real-world order, used for duplicate detection."""
        return (self.vendor_code, self.order_num, self.customer_name)

    def to_dict(self) -> dict:
        return {wire: getattr(self, attr) for attr, wire in self.WIRE_KEYS.items()}

    @classmethod
    def from_dict(cls, data: dict) -> "Order":
        """Rebuild an order from its persisted form. Missing keys become empty text."""
        if not isinstance(data, dict):
            raise TypeError(f"Expected a mapping, got {type(data).__name__}")
        if not data.get("id"):
            raise ValueError("Persisted order has no id")

        values = {}
        for f in fields(cls):
            raw = data.get(cls.WIRE_KEYS[f.name], "")
            values[f.name] = "" if raw is None else str(raw)
        return cls(**values)


@dataclass
class RegistryState:
    """The three independently persisted slots."""

    orders: list[Order] = field(default_factory=list)
    history: list[Order] = field(default_factory=list)
    processed_files: list[str] = field(default_factory=list)

    HISTORY_LIMIT = 50
