"""
Métriques Prometheus du client de synchronisation.

Labels à faible cardinalité uniquement: jamais de nom de namespace en label.
"""

from prometheus_client import Counter, Gauge, Histogram

NOTIFY_TOTAL = Counter(
    "apollo_notify_total",
    "Long-poll notify calls by result",
    ["result"],  # changed | unchanged | failed | decode_error
)
NOTIFY_LATENCY = Histogram(
    "apollo_notify_latency_seconds",
    "Duration of long-poll notify calls",
    buckets=(0.05, 0.1, 0.5, 1.0, 5.0, 30.0, 60.0, 300.0, 600.0),
)
FETCH_TOTAL = Counter(
    "apollo_fetch_total",
    "Per-namespace fetch calls by result",
    ["result"],  # changed | unchanged | failed | decode_error
)
BACKUP_FALLBACK_TOTAL = Counter(
    "apollo_backup_fallback_total",
    "Backup loads attempted during fallback, by result",
    ["result"],  # hit | miss | error
)
PARSE_ERRORS = Counter(
    "apollo_parse_errors_total",
    "Content parse failures by format",
    ["format"],
)
TRACKED_NAMESPACES = Gauge(
    "apollo_tracked_namespaces",
    "Namespaces currently tracked in the notifications map",
)
TRANSPORT_RETRIES = Counter(
    "apollo_transport_retries_total",
    "HTTP attempts retried after a server or network error",
)
