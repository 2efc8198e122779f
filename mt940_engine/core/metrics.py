"""
MT940 Engine - Prometheus Metrics
"""

from prometheus_client import Counter, Histogram

STATEMENTS_PARSED = Counter(
    "mt940_statements_parsed_total",
    "Statements assembled from MT940 documents",
    ["dialect", "status"],
)
TRANSACTIONS_PARSED = Counter(
    "mt940_transactions_parsed_total",
    "Transactions assembled from MT940 documents",
    ["dialect"],
)
DIALECT_SELECTION = Counter(
    "mt940_dialect_selection_total",
    "Dialect selections by the registry",
    ["dialect"],
)
PARSE_DURATION = Histogram(
    "mt940_parse_duration_seconds",
    "Time spent parsing a single MT940 document",
    ["dialect"],
)


def record_document(dialect: str, statements: int, transactions: int, failed: int, duration: float) -> None:
    """Record the outcome of one parsed document."""
    if statements:
        STATEMENTS_PARSED.labels(dialect=dialect, status="success").inc(statements)
    if failed:
        STATEMENTS_PARSED.labels(dialect=dialect, status="failed").inc(failed)
    if transactions:
        TRANSACTIONS_PARSED.labels(dialect=dialect).inc(transactions)
    PARSE_DURATION.labels(dialect=dialect).observe(duration)
