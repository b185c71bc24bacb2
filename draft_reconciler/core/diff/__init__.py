"""
Structural diffs between reservation documents.
"""

from .diff_engine import (
    ADDED,
    CHANGED,
    DEFAULT_IGNORED_KEYS,
    MODIFIED,
    REMOVED,
    apply_diff,
    deep_equal,
    diff,
    format_value,
    has_significant_changes,
    merge_diffs,
    summarize,
)

__all__ = [
    "diff",
    "deep_equal",
    "apply_diff",
    "merge_diffs",
    "summarize",
    "has_significant_changes",
    "format_value",
    "ADDED",
    "REMOVED",
    "CHANGED",
    "MODIFIED",
    "DEFAULT_IGNORED_KEYS",
]
