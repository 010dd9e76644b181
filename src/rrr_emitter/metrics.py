"""
Prometheus metrics for the emitter, registered in the global REGISTRY.

All series are labeled by emitter name so independent instances stay apart.
"""

from prometheus_client import Counter, Histogram

RECORDS_TOTAL = Counter(
    "rrr_emitter_records_total",
    "Records accepted into the bulk buffer",
    ["emitter"],
)

FLUSHES_TOTAL = Counter(
    "rrr_emitter_flushes_total",
    "Bulk flushes issued",
    ["emitter", "trigger"],
)

SENDS_TOTAL = Counter(
    "rrr_emitter_sends_total",
    "Completed bulk sends by outcome",
    ["emitter", "outcome"],
)

SEND_LATENCY_MS = Histogram(
    "rrr_emitter_send_latency_ms",
    "Bulk send latency in milliseconds",
    ["emitter"],
    buckets=[1, 2.5, 5, 10, 25, 50, 100, 250, 500, 1000, 2500, 5000],
)

