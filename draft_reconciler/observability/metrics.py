"""
Prometheus metrics collection for draft-reconciler

This module provides metrics instrumentation for monitoring the draft
lifecycle: intake, extraction fallbacks, commits and data-quality flags.
"""
from prometheus_client import (
    CONTENT_TYPE_LATEST,
    CollectorRegistry,
    Counter,
    Histogram,
    generate_latest,
)

# Private registry so importing the package never touches the global default
REGISTRY = CollectorRegistry()


# =======================
# LIFECYCLE METRICS
# =======================

drafts_created_total = Counter(
    name="draft_reconciler_drafts_created_total",
    documentation="Total number of drafts created from raw booking text",
    registry=REGISTRY,
)

extractions_ingested_total = Counter(
    name="draft_reconciler_extractions_ingested_total",
    documentation="Extraction results ingested into drafts",
    labelnames=["outcome"],  # outcome: ok, fallback
    registry=REGISTRY,
)

commits_total = Counter(
    name="draft_reconciler_commits_total",
    documentation="Commit attempts by outcome",
    labelnames=["outcome"],  # outcome: committed, rejected_validation
    registry=REGISTRY,
)

drafts_rejected_total = Counter(
    name="draft_reconciler_drafts_rejected_total",
    documentation="Drafts rejected by a reviewer",
    registry=REGISTRY,
)

commit_duration_seconds = Histogram(
    name="draft_reconciler_commit_duration_seconds",
    documentation="Time spent validating and committing a draft",
    buckets=[0.005, 0.01, 0.05, 0.1, 0.5, 1.0, 2.0, 5.0],
    registry=REGISTRY,
)

# =======================
# DATA QUALITY METRICS
# =======================

validation_flags_total = Counter(
    name="draft_reconciler_validation_flags_total",
    documentation="Advisory flags raised during validation",
    labelnames=["flag"],
    registry=REGISTRY,
)

validation_errors_total = Counter(
    name="draft_reconciler_validation_errors_total",
    documentation="Blocking validation errors found at commit time",
    labelnames=["kind"],  # kind: schema, business
    registry=REGISTRY,
)


# =======================
# HELPER FUNCTIONS
# =======================

def generate_metrics() -> bytes:
    """Render the registry in Prometheus text format."""
    return generate_latest(REGISTRY)


def get_content_type() -> str:
    return CONTENT_TYPE_LATEST


class track_duration:
    """
    Context manager for timing an operation into a histogram

    Usage:
        with track_duration(commit_duration_seconds):
            manager.commit(draft)
    """

    def __init__(self, histogram: Histogram, **labels):
        self.histogram = histogram
        self.labels = labels
        self.timer = None

    def __enter__(self):
        metric = self.histogram.labels(**self.labels) if self.labels else self.histogram
        self.timer = metric.time()
        self.timer.__enter__()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.timer.__exit__(exc_type, exc_val, exc_tb)
        return False


def increment_counter(counter: Counter, value: float = 1.0, **labels) -> None:
    """
    Increment a counter metric

    Args:
        counter: Prometheus Counter metric
        value: Amount to increment (default: 1.0)
        **labels: Label values for the metric (omit for unlabelled counters)
    """
    if labels:
        counter.labels(**labels).inc(value)
    else:
        counter.inc(value)


def record_validation(errors_by_kind: dict[str, int], flags: list[str]) -> None:
    """Count the findings of one commit-time validation."""
    for kind, count in errors_by_kind.items():
        if count:
            increment_counter(validation_errors_total, count, kind=kind)
    for flag in flags:
        increment_counter(validation_flags_total, flag=flag)
