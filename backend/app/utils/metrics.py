"""Prometheus metrics for trip planning operations."""

from prometheus_client import Counter, Histogram

# Duplication metrics
trips_duplicated_total = Counter(
    "trips_duplicated_total",
    "Total trip duplication attempts",
    ["outcome"],
)

trip_duplicate_events_copied = Histogram(
    "trip_duplicate_events_copied",
    "Number of events copied per successful duplication",
    buckets=[0, 1, 5, 10, 25, 50, 100, 250],
)

# Expense metrics
expenses_created_total = Counter(
    "expenses_created_total",
    "Total expenses created",
    ["split_mode"],
)

# Error metrics
api_errors_total = Counter(
    "api_errors_total",
    "Total API error responses",
    ["code"],
)


class PrometheusTripMetrics:
    """Prometheus-based metrics for trip operations."""

    def record_duplication(self, outcome: str, events_copied: int = 0) -> None:
        """Record a duplication attempt and, on success, how many events it copied."""
        trips_duplicated_total.labels(outcome=outcome).inc()
        if outcome == "success":
            trip_duplicate_events_copied.observe(events_copied)

    def inc_expense(self, split_mode: str) -> None:
        """Increment expense counter."""
        expenses_created_total.labels(split_mode=split_mode).inc()
