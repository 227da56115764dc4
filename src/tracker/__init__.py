# Core order registry computations: normalization, reconciliation, analytics.
# Pure functions of the data they're given; storage and AI calls live in integrations.

from .models import Order, DisplayCategory, RegistryState
from .parsers import (
    BusinessDateParser,
    parse_business_date,
    parse_business_dates,
    days_between,
    extract_json_block,
)
from .classification import is_fulfilled, is_late, display_category, status_tone
from .normalizer import RecordNormalizer
from .reconciliation import (
    ReconciliationEngine,
    ReconciliationResult,
    PendingImport,
    DuplicateDecision,
    apply_duplicate_decision,
)
from .analysis import RegistryMetrics, build_order_frame, compute_registry_metrics
from .filters import RegistryView, filter_orders, unique_vendors, short_customer_name
from .insights import SummaryGenerator, RegistrySummary, SummaryGenerationError

__all__ = [
    "Order",
    "DisplayCategory",
    "RegistryState",
    "BusinessDateParser",
    "parse_business_date",
    "parse_business_dates",
    "days_between",
    "extract_json_block",
    "is_fulfilled",
    "is_late",
    "display_category",
    "status_tone",
    "RecordNormalizer",
    "ReconciliationEngine",
    "ReconciliationResult",
    "PendingImport",
    "DuplicateDecision",
    "apply_duplicate_decision",
    "RegistryMetrics",
    "build_order_frame",
    "compute_registry_metrics",
    "RegistryView",
    "filter_orders",
    "unique_vendors",
    "short_customer_name",
    "SummaryGenerator",
    "RegistrySummary",
    "SummaryGenerationError",
]
