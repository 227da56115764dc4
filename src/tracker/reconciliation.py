"""
Reconciliation of an incoming batch against the existing registry.

An incoming order is a duplicate when its (vendor, PO number, customer)
triple exactly matches an order already in the registry. Matching is only
against the registry as it stood before the batch, so two identical records
inside one batch are both accepted.
"""

from dataclasses import dataclass, field
from enum import Enum

from .models import Order


class DuplicateDecision(Enum):
    """The user's answer for the whole set of held duplicates."""

    KEEP = "keep"  # Add every duplicate as a new row
    SKIP = "skip"  # Discard every duplicate


@dataclass
class PendingImport:
    """Result of matching a single incoming order."""

    new_order: Order
    is_duplicate: bool
    existing_id: str | None = None


@dataclass
class ReconciliationResult:
    """Partition of one batch into auto-accepted orders and held duplicates."""

    batch_size: int
    accepted: list[Order] = field(default_factory=list)
    held: list[PendingImport] = field(default_factory=list)

    @property
    def duplicate_count(self) -> int:
        return len(self.held)

    @property
    def requires_decision(self) -> bool:
        return len(self.held) > 0

    @property
    def duplicate_rate(self) -> float:
        if self.batch_size == 0:
            return 0
        return self.duplicate_count / self.batch_size

    def summary(self) -> dict:
        return {
            "batch": self.batch_size,
            "accepted": len(self.accepted),
            "duplicates": self.duplicate_count,
            "duplicate_rate": f"{self.duplicate_rate:.1%}",
        }


class ReconciliationEngine:
    """
    Matches incoming orders against a fixed snapshot of the registry.

    The snapshot is taken once, when the engine is built, so every record in
    a batch is compared against the same pre-batch registry regardless of
    what gets accepted along the way.

    Usage:
        engine = ReconciliationEngine(registry)
        result = engine.reconcile(batch)
        registry = registry + result.accepted
        ...
        registry = apply_duplicate_decision(registry, result.held, decision)
    """

    def __init__(self, registry: list[Order]):
        # First registry order wins for a given key
        self._lookup: dict[tuple[str, str, str], str] = {}
        for order in registry:
            self._lookup.setdefault(order.natural_key, order.id)

    def match(self, order: Order) -> PendingImport:
        existing_id = self._lookup.get(order.natural_key)
        return PendingImport(
            new_order=order,
            is_duplicate=existing_id is not None,
            existing_id=existing_id,
        )

    def partition(self, batch: list[Order]) -> list[PendingImport]:
        """Match every incoming order, preserving batch order."""
        return [self.match(order) for order in batch]

    def reconcile(self, batch: list[Order]) -> ReconciliationResult:
        pending = self.partition(batch)
        return ReconciliationResult(
            batch_size=len(batch),
            accepted=[p.new_order for p in pending if not p.is_duplicate],
            held=[p for p in pending if p.is_duplicate],
        )


def apply_duplicate_decision(
    registry: list[Order],
    held: list[PendingImport],
    decision: DuplicateDecision | str,
) -> list[Order]:
    """
    Apply one decision to every held duplicate and return the new registry.

    Kept duplicates are appended as new rows; nothing is merged or overwritten.
    """
    decision = DuplicateDecision(decision)
    if decision is DuplicateDecision.KEEP:
        return list(registry) + [p.new_order for p in held]
    return list(registry)
