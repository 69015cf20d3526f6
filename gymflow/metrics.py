from prometheus_client import Counter, Histogram

# Prometheus metrics definitions

# Every check-in decision, labelled by outcome and reason code
checkin_decisions_total = Counter(
    "checkin_decisions_total",
    "Check-in decisions by status and reason",
    ["status", "reason"],
)

# latency of a single scan evaluation; most finish in a few milliseconds
_checkin_latency_buckets = (
    0.005,
    0.01,
    0.025,
    0.05,
    0.1,
    0.25,
    1.0,
)

checkin_latency_seconds = Histogram(
    "checkin_latency_seconds",
    "Check-in evaluation latency",
    buckets=_checkin_latency_buckets,
)

# Subscription lifecycle changes (create, renew, cancel)
subscription_changes_total = Counter(
    "subscription_changes_total", "Subscription lifecycle changes", ["action"]
)

freezes_created_total = Counter(
    "freezes_created_total", "Total subscription freezes created"
)

guest_passes_created_total = Counter(
    "guest_passes_created_total", "Total guest passes issued"
)

__all__ = [
    "checkin_decisions_total",
    "checkin_latency_seconds",
    "subscription_changes_total",
    "freezes_created_total",
    "guest_passes_created_total",
]
