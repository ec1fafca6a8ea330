"""View and metrics engines."""

from expense_tracker.queries.metrics import MetricsEngine, shift_month
from expense_tracker.queries.view import ViewEngine, clamp_page, total_pages_for

__all__ = [
    "MetricsEngine",
    "ViewEngine",
    "clamp_page",
    "shift_month",
    "total_pages_for",
]
