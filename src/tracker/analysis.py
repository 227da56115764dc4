"""
Registry analytics.

Computes metrics for:
- Pipeline health (pending, late, fulfillment rate)
- Aging of overdue orders
- Lead times overall and per vendor
- Volume by vendor, month, weekday and status category

Everything is a pure function of the order list and a reference "today".
Orders whose dates don't parse are left out of date-based aggregates.
"""

import math
from dataclasses import dataclass, asdict
from datetime import date
import pandas as pd
import numpy as np

from .classification import display_category, is_fulfilled, is_late
from .models import Order
from .parsers import days_between, parse_business_dates

MONTH_LABELS = ["Jan", "Feb", "Mar", "Apr", "May", "Jun",
                "Jul", "Aug", "Sep", "Oct", "Nov", "Dec"]
WEEKDAY_LABELS = ["Sun", "Mon", "Tue", "Wed", "Thu", "Fri", "Sat"]
AGING_TIER_LABELS = ["1-7", "8-14", "15-30", "30+"]
AGING_TIER_BINS = [-np.inf, 7, 14, 30, np.inf]  # Upper bounds inclusive
TOP_N = 5


def _round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


def _rounded_mean(series: pd.Series) -> int:
    values = series.dropna()
    if len(values) == 0:
        return 0
    return _round_half_up(values.mean())


def build_order_frame(orders: list[Order], today: date | None = None) -> pd.DataFrame:
    """
    One row per order with the derived columns every metric works from.

    Columns:
    - vendor_code, category
    - is_fulfilled, is_late
    - lead_time_days (order date -> expected date, NaN unless both parse)
    - aging_days (days overdue, NaN unless late)
    - order_month (0-11), order_weekday (0=Sun), NaN when order date doesn't parse
    """
    today = today or date.today()

    raw = pd.DataFrame(
        {
            "order_date": [o.order_date for o in orders],
            "expected_recv_date": [o.expected_recv_date for o in orders],
        },
        dtype="object",
    )
    order_dates = parse_business_dates(raw["order_date"]).tolist()
    expected_dates = parse_business_dates(raw["expected_recv_date"]).tolist()
    late = [is_late(o.status, o.expected_recv_date, today) for o in orders]

    lead_times = [
        days_between(start, end) if start and end else None
        for start, end in zip(order_dates, expected_dates)
    ]
    aging = [
        days_between(expected, today) if overdue and expected else None
        for overdue, expected in zip(late, expected_dates)
    ]

    return pd.DataFrame(
        {
            "vendor_code": pd.Series([o.vendor_code for o in orders], dtype="object"),
            "category": pd.Series(
                [display_category(o.status).value for o in orders], dtype="object"
            ),
            "is_fulfilled": pd.Series([is_fulfilled(o.status) for o in orders], dtype=bool),
            "is_late": pd.Series(late, dtype=bool),
            "lead_time_days": pd.Series(lead_times, dtype="float64"),
            "aging_days": pd.Series(aging, dtype="float64"),
            "order_month": pd.Series(
                [d.month - 1 if d else None for d in order_dates], dtype="float64"
            ),
            "order_weekday": pd.Series(
                # date.weekday() is Monday-based; shift to Sunday-based
                [(d.weekday() + 1) % 7 if d else None for d in order_dates],
                dtype="float64",
            ),
        }
    )


def compute_key_metrics(frame: pd.DataFrame) -> dict:
    """Headline numbers for the registry."""
    total = len(frame)
    pending = int((~frame["is_fulfilled"]).sum())
    late = int(frame["is_late"].sum())

    return {
        "total": total,
        "pending_count": pending,
        "late_count": late,
        "avg_aging_days": _rounded_mean(frame.loc[frame["is_late"], "aging_days"]),
        "avg_lead_time_days": _rounded_mean(frame["lead_time_days"]),
        "fulfillment_rate": _round_half_up(100 * (total - pending) / total)
        if total > 0
        else 0,
    }


def _ranked_counts(frame: pd.DataFrame, column: str) -> pd.Series:
    # groupby(sort=False) keeps first-seen order, so the stable sort breaks
    # ties by first appearance
    return (
        frame.groupby(column, sort=False)
        .size()
        .sort_values(ascending=False, kind="stable")
    )


def compute_vendor_volume(frame: pd.DataFrame, top_n: int = TOP_N) -> list[tuple[str, int]]:
    """Vendors with the most orders, busiest first."""
    counts = _ranked_counts(frame, "vendor_code").head(top_n)
    return [(vendor, int(count)) for vendor, count in counts.items()]


def _fixed_buckets(values: pd.Series, labels: list[str]) -> list[tuple[str, int]]:
    counts = values.dropna().astype(int).value_counts()
    return [(label, int(counts.get(idx, 0))) for idx, label in enumerate(labels)]


def compute_monthly_volume(frame: pd.DataFrame) -> list[tuple[str, int]]:
    """Orders per calendar month, always Jan through Dec."""
    return _fixed_buckets(frame["order_month"], MONTH_LABELS)


def compute_day_of_week_volume(frame: pd.DataFrame) -> list[tuple[str, int]]:
    """Orders per weekday of the order date, always Sun through Sat."""
    return _fixed_buckets(frame["order_weekday"], WEEKDAY_LABELS)


def compute_aging_tiers(frame: pd.DataFrame) -> list[tuple[str, int]]:
    """Late orders bucketed by days overdue."""
    aging = frame.loc[frame["is_late"], "aging_days"].dropna()
    tiers = pd.cut(aging, bins=AGING_TIER_BINS, labels=AGING_TIER_LABELS, right=True)
    counts = tiers.value_counts()
    return [(label, int(counts.get(label, 0))) for label in AGING_TIER_LABELS]


def compute_status_composition(frame: pd.DataFrame) -> list[tuple[str, int]]:
    """Order count per display category present in the registry, largest first."""
    counts = _ranked_counts(frame, "category")
    return [(category, int(count)) for category, count in counts.items()]


def compute_vendor_lead_times(
    frame: pd.DataFrame, top_n: int = TOP_N
) -> list[tuple[str, int]]:
    """Average lead time per vendor, fastest first."""
    valid = frame.dropna(subset=["lead_time_days"])
    if len(valid) == 0:
        return []

    means = (
        valid.groupby("vendor_code", sort=False)["lead_time_days"]
        .mean()
        .map(_round_half_up)
        .sort_values(ascending=True, kind="stable")
        .head(top_n)
    )
    return [(vendor, int(avg)) for vendor, avg in means.items()]


@dataclass
class RegistryMetrics:
    """Every analytic the dashboard shows, computed in one pass."""

    total: int
    pending_count: int
    late_count: int
    avg_aging_days: int
    avg_lead_time_days: int
    fulfillment_rate: int
    vendor_volume: list[tuple[str, int]]
    monthly_volume: list[tuple[str, int]]
    aging_tiers: list[tuple[str, int]]
    status_composition: list[tuple[str, int]]
    day_of_week_volume: list[tuple[str, int]]
    vendor_lead_times: list[tuple[str, int]]

    def to_dict(self) -> dict:
        return asdict(self)


def compute_registry_metrics(
    orders: list[Order], today: date | None = None
) -> RegistryMetrics:
    """Compute the full set of registry metrics."""
    frame = build_order_frame(orders, today=today)
    return RegistryMetrics(
        **compute_key_metrics(frame),
        vendor_volume=compute_vendor_volume(frame),
        monthly_volume=compute_monthly_volume(frame),
        aging_tiers=compute_aging_tiers(frame),
        status_composition=compute_status_composition(frame),
        day_of_week_volume=compute_day_of_week_volume(frame),
        vendor_lead_times=compute_vendor_lead_times(frame),
    )
