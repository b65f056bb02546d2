"""
Prometheus Metrics Module

Counters and gauges for the multilingual engine, using the prometheus_client
library. Exposed at /metrics for Prometheus scraping.
"""

from prometheus_client import Counter, Gauge, Histogram, Info

# =============================================================================
# Application Info
# =============================================================================

APP_INFO = Info("cms_multilingual_app", "Multilingual CMS engine information")


def set_app_info(version: str, environment: str) -> None:
    """Set application info labels."""
    APP_INFO.info({"version": version, "environment": environment})


# =============================================================================
# Database Metrics
# =============================================================================

DB_QUERIES_TOTAL = Counter(
    "cms_db_queries_total",
    "Total database queries executed",
    ["operation"],
)

DB_QUERY_DURATION_SECONDS = Histogram(
    "cms_db_query_duration_seconds",
    "Database query duration in seconds",
    ["operation"],
    buckets=(0.001, 0.005, 0.01, 0.025, 0.05, 0.1, 0.25, 0.5, 1.0),
)

# =============================================================================
# Cache Metrics
# =============================================================================

CACHE_HITS_TOTAL = Counter(
    "cms_cache_hits_total",
    "Total cache hits",
    ["cache_type"],
)

CACHE_MISSES_TOTAL = Counter(
    "cms_cache_misses_total",
    "Total cache misses",
    ["cache_type"],
)

# =============================================================================
# Translation Metrics
# =============================================================================

TRANSLATIONS_CREATED_TOTAL = Counter(
    "cms_translations_created_total",
    "Total translations created",
    ["kind"],  # content, term
)

TAXONOMY_SYNC_FAILURES_TOTAL = Counter(
    "cms_taxonomy_sync_failures_total",
    "Sibling taxonomy synchronizations that failed and were skipped",
)

ROUTE_TABLE_REBUILDS_TOTAL = Counter(
    "cms_route_table_rebuilds_total",
    "Localized route table rebuilds",
)

# =============================================================================
# Diagnostics Metrics
# =============================================================================

DIAGNOSTIC_ACTIVE_ISSUES = Gauge(
    "cms_diagnostic_active_issues",
    "Active diagnostics issues after the last audit run",
    ["severity"],  # critical, warning, info
)


# =============================================================================
# Helper Functions
# =============================================================================


def record_cache_hit(cache_type: str = "default") -> None:
    """Record a cache hit."""
    CACHE_HITS_TOTAL.labels(cache_type=cache_type).inc()


def record_cache_miss(cache_type: str = "default") -> None:
    """Record a cache miss."""
    CACHE_MISSES_TOTAL.labels(cache_type=cache_type).inc()


def record_translation_created(kind: str) -> None:
    TRANSLATIONS_CREATED_TOTAL.labels(kind=kind).inc()


def record_sync_failure() -> None:
    TAXONOMY_SYNC_FAILURES_TOTAL.inc()


def record_route_rebuild() -> None:
    ROUTE_TABLE_REBUILDS_TOTAL.inc()


def update_active_issue_counts(counts: dict[str, int]) -> None:
    """Update active diagnostics issue gauges by severity."""
    for severity in ("critical", "warning", "info"):
        DIAGNOSTIC_ACTIVE_ISSUES.labels(severity=severity).set(counts.get(severity, 0))
