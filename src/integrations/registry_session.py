"""
The order registry as the dashboard drives it.

Ties the core computations to storage and the AI services:
- Batch import of CSV files and scanned documents
- The keep / skip decision for suspected duplicates
- Description edits, deletion into history, restore
- Export, analytics and the executive summary

Every change replaces whole state values and is saved straight away.
"""

import csv
import logging
from dataclasses import dataclass, replace
from datetime import date
from typing import Callable

from tracker.analysis import RegistryMetrics, compute_registry_metrics
from tracker.filters import ALL_VENDORS, RegistryView, filter_orders
from tracker.insights import RegistrySummary, SummaryGenerationError, SummaryGenerator
from tracker.models import Order, RegistryState
from tracker.normalizer import RecordNormalizer
from tracker.reconciliation import (
    DuplicateDecision,
    PendingImport,
    ReconciliationEngine,
    ReconciliationResult,
    apply_duplicate_decision,
)

from .exporter import export_orders_csv
from .extraction import DocumentExtractor
from .store import RegistryStore

logger = logging.getLogger(__name__)


class PendingDecisionError(RuntimeError):
    """An import was attempted while earlier duplicates still await keep / skip."""


@dataclass(frozen=True)
class SourceDocument:
    """An uploaded file: CSV export or scanned document."""

    name: str
    content: bytes
    mime_type: str = "application/octet-stream"

    @property
    def is_delimited(self) -> bool:
        return self.name.lower().endswith(".csv")


class OrderRegistry:
    """
    Live registry state plus the operations the dashboard offers.

    Usage:
        registry = OrderRegistry.open(JsonFileStore(".order_registry"), extractor)
        result = registry.import_documents(files, confirm_reprocess=ask_user)
        if result.requires_decision:
            registry.resolve_duplicates(DuplicateDecision.SKIP)
    """

    def __init__(
        self,
        store: RegistryStore,
        state: RegistryState | None = None,
        extractor: DocumentExtractor | None = None,
        summarizer: SummaryGenerator | None = None,
    ):
        self.store = store
        self.state = state or RegistryState()
        self.extractor = extractor
        self.summarizer = summarizer
        self.pending_imports: list[PendingImport] = []

    @classmethod
    def open(
        cls,
        store: RegistryStore,
        extractor: DocumentExtractor | None = None,
        summarizer: SummaryGenerator | None = None,
    ) -> "OrderRegistry":
        """Rehydrate the registry from storage."""
        state = store.load()
        logger.info(
            "Loaded registry: %d orders, %d archived, %d processed files",
            len(state.orders),
            len(state.history),
            len(state.processed_files),
        )
        return cls(store, state, extractor=extractor, summarizer=summarizer)

    @property
    def orders(self) -> list[Order]:
        return self.state.orders

    @property
    def history(self) -> list[Order]:
        return self.state.history

    @property
    def processed_files(self) -> list[str]:
        return self.state.processed_files

    def _commit(self, **changes) -> None:
        self.state = replace(self.state, **changes)
        self.store.save(self.state)

    # --- Import ---

    def import_documents(
        self,
        documents: list[SourceDocument],
        confirm_reprocess: Callable[[str], bool] | None = None,
    ) -> ReconciliationResult:
        """
        Import a batch of files and reconcile it against the registry once.

        Files already in the processed log are only imported again if
        confirm_reprocess(name) says so. A file that fails to extract is
        logged and contributes nothing; the rest of the batch carries on.
        Suspected duplicates are held in pending_imports until
        resolve_duplicates() is called.

        Raises:
            PendingDecisionError: Duplicates from an earlier import are still
                waiting for a keep / skip decision.
        """
        if self.pending_imports:
            raise PendingDecisionError(
                f"{len(self.pending_imports)} duplicate(s) from the last import need a decision"
            )

        to_process = []
        for doc in documents:
            if doc.name in self.processed_files:
                if confirm_reprocess is None or not confirm_reprocess(doc.name):
                    logger.info("Skipping previously processed file %s", doc.name)
                    continue
            to_process.append(doc)

        normalizer = RecordNormalizer(registry_size=len(self.orders))
        batch: list[Order] = []
        processed = list(self.processed_files)

        for doc in to_process:
            if doc.name not in processed:
                processed.append(doc.name)
            batch.extend(self._normalize_document(doc, normalizer))

        engine = ReconciliationEngine(self.orders)
        result = engine.reconcile(batch)
        logger.info("Import reconciled: %s", result.summary())

        self.pending_imports = result.held
        self._commit(orders=self.orders + result.accepted, processed_files=processed)
        return result

    def _normalize_document(
        self, doc: SourceDocument, normalizer: RecordNormalizer
    ) -> list[Order]:
        if doc.is_delimited:
            text = doc.content.decode("utf-8-sig", errors="replace")
            try:
                orders = normalizer.normalize_delimited(text)
            except csv.Error:
                logger.exception("Could not read delimited file %s", doc.name)
                return []
            logger.info("Read %d orders from %s", len(orders), doc.name)
            return orders

        if self.extractor is None:
            logger.error("No document extractor configured; skipping %s", doc.name)
            return []

        try:
            records = self.extractor.extract(doc.content, doc.mime_type, filename=doc.name)
        except Exception:
            logger.exception("Extraction failed for %s", doc.name)
            return []

        return normalizer.normalize_many(records, source="rec")

    def resolve_duplicates(self, decision: DuplicateDecision | str) -> int:
        """Apply the keep / skip decision to every held duplicate. Returns orders added."""
        before = len(self.orders)
        orders = apply_duplicate_decision(self.orders, self.pending_imports, decision)
        self.pending_imports = []
        self._commit(orders=orders)
        return len(orders) - before

    # --- Editing ---

    def _find(self, orders: list[Order], order_id: str) -> Order:
        for order in orders:
            if order.id == order_id:
                return order
        raise KeyError(order_id)

    def update_description(self, order_id: str, description: str) -> Order:
        updated = replace(self._find(self.orders, order_id), description=description)
        self._commit(
            orders=[updated if o.id == order_id else o for o in self.orders]
        )
        return updated

    def delete_order(self, order_id: str) -> Order:
        """Move an order into the deletion history (newest first, capped)."""
        order = self._find(self.orders, order_id)
        history = ([order] + self.history)[: RegistryState.HISTORY_LIMIT]
        self._commit(
            orders=[o for o in self.orders if o.id != order_id],
            history=history,
        )
        return order

    def restore_order(self, order_id: str) -> Order:
        """Put an archived order back at the top of the registry."""
        order = self._find(self.history, order_id)
        self._commit(
            orders=[order] + self.orders,
            history=[o for o in self.history if o.id != order_id],
        )
        return order

    def factory_reset(self) -> None:
        """Remove every order, the history and the processed file log."""
        self.store.clear()
        self.state = RegistryState()
        self.pending_imports = []
        logger.warning("Registry reset")

    # --- Reading ---

    def view(
        self,
        query: str = "",
        vendor: str = ALL_VENDORS,
        view: RegistryView | str = RegistryView.ALL,
        today: date | None = None,
    ) -> list[Order]:
        return filter_orders(self.orders, query=query, vendor=vendor, view=view, today=today)

    def metrics(self, today: date | None = None) -> RegistryMetrics:
        return compute_registry_metrics(self.orders, today=today)

    def export_csv(self) -> str:
        return export_orders_csv(self.orders)

    def generate_summary(self) -> RegistrySummary:
        """
        Ask the summarization service about the current registry.

        Raises:
            SummaryGenerationError: Nothing to summarize, or the service failed.
        """
        if not self.orders:
            raise SummaryGenerationError("Registry is empty")
        if self.summarizer is None:
            raise SummaryGenerationError("No summarizer configured")
        return self.summarizer.generate(self.orders)
