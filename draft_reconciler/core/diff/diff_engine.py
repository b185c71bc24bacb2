"""
Diff Engine: structural diffs between JSON-like documents.

A diff maps each differing key to an entry:
    {"action": "added", "new": v}
    {"action": "removed", "old": v}
    {"action": "changed", "old": a, "new": b}
    {"action": "modified", "nested": <diff>}

Lists compare order-sensitively; mappings compare order-insensitively;
booleans never equal numbers. No function here mutates its inputs.
"""

import copy
import json
from typing import Any, Iterable

ADDED = "added"
REMOVED = "removed"
CHANGED = "changed"
MODIFIED = "modified"

DEFAULT_IGNORED_KEYS = ("updated_at", "lock_version")

_MISSING = object()


def deep_equal(a: Any, b: Any) -> bool:
    """Structural equality; True is not 1 and [1, 2] is not [2, 1]."""
    if isinstance(a, bool) or isinstance(b, bool):
        return isinstance(a, bool) and isinstance(b, bool) and a == b
    if isinstance(a, dict) and isinstance(b, dict):
        if a.keys() != b.keys():
            return False
        return all(deep_equal(a[key], b[key]) for key in a)
    if isinstance(a, (list, tuple)) and isinstance(b, (list, tuple)):
        if len(a) != len(b):
            return False
        return all(deep_equal(x, y) for x, y in zip(a, b))
    if isinstance(a, (dict, list, tuple)) or isinstance(b, (dict, list, tuple)):
        return False
    return a == b


def _is_mapping(value: Any) -> bool:
    return isinstance(value, dict)


def _entry_for(old: Any, new: Any) -> dict[str, Any] | None:
    """Entry turning old into new, or None when they are equal. _MISSING marks absence."""
    if old is _MISSING and new is _MISSING:
        return None
    if old is _MISSING:
        return {"action": ADDED, "new": copy.deepcopy(new)}
    if new is _MISSING:
        return {"action": REMOVED, "old": copy.deepcopy(old)}
    if deep_equal(old, new):
        return None
    if _is_mapping(old) and _is_mapping(new):
        return {"action": MODIFIED, "nested": diff(old, new)}
    return {"action": CHANGED, "old": copy.deepcopy(old), "new": copy.deepcopy(new)}


def diff(a: dict[str, Any] | None, b: dict[str, Any] | None) -> dict[str, Any]:
    """
    Compute the diff turning document a into document b.

    Keys are reported in a's order followed by keys only present in b.
    diff(x, x) is always {}.

    Example:
        >>> diff({"a": 1, "b": {"c": 2}}, {"a": 1, "b": {"c": 3}, "d": 4})
        {'b': {'action': 'modified', 'nested': {'c': {'action': 'changed', 'old': 2, 'new': 3}}}, 'd': {'action': 'added', 'new': 4}}
    """
    a = a or {}
    b = b or {}
    result: dict[str, Any] = {}

    keys = list(a) + [key for key in b if key not in a]
    for key in keys:
        entry = _entry_for(a.get(key, _MISSING), b.get(key, _MISSING))
        if entry is not None:
            result[key] = entry
    return result


def apply_diff(obj: dict[str, Any] | None, changes: dict[str, Any]) -> dict[str, Any]:
    """
    Apply a diff in reverse: apply_diff(b, diff(a, b)) == a.

    The diff records how a became b; this walks it backwards from b.
    Returns a new document.
    """
    result = copy.deepcopy(obj or {})
    for key, entry in changes.items():
        action = entry.get("action")
        if action == ADDED:
            result.pop(key, None)
        elif action in (REMOVED, CHANGED):
            result[key] = copy.deepcopy(entry["old"])
        elif action == MODIFIED:
            current = result.get(key)
            result[key] = apply_diff(current if _is_mapping(current) else {}, entry["nested"])
        else:
            raise ValueError(f"Unknown diff action for '{key}': {action!r}")
    return result


def _apply_forward(obj: dict[str, Any] | None, changes: dict[str, Any]) -> dict[str, Any]:
    """Apply a diff forward: _apply_forward(a, diff(a, b)) == b."""
    result = copy.deepcopy(obj or {})
    for key, entry in changes.items():
        action = entry.get("action")
        if action == REMOVED:
            result.pop(key, None)
        elif action in (ADDED, CHANGED):
            result[key] = copy.deepcopy(entry["new"])
        elif action == MODIFIED:
            current = result.get(key)
            result[key] = _apply_forward(current if _is_mapping(current) else {}, entry["nested"])
        else:
            raise ValueError(f"Unknown diff action for '{key}': {action!r}")
    return result


def _middle(first: dict[str, Any], second: dict[str, Any]) -> Any:
    """Full value of the key between two chained entries (_MISSING if absent)."""
    if first["action"] in (ADDED, CHANGED):
        return first["new"]
    if second["action"] in (REMOVED, CHANGED):
        return second["old"]
    return _MISSING


def _chain(first: dict[str, Any], second: dict[str, Any]) -> dict[str, Any] | None:
    """Single entry equivalent to applying first then second, or None if it nets out."""
    if first["action"] == MODIFIED and second["action"] == MODIFIED:
        nested = merge_diffs([first["nested"], second["nested"]])
        return {"action": MODIFIED, "nested": nested} if nested else None

    middle = _middle(first, second)
    middle_mapping = middle if _is_mapping(middle) else {}

    if first["action"] == ADDED:
        start = _MISSING
    elif first["action"] == MODIFIED:
        start = apply_diff(middle_mapping, first["nested"])
    else:
        start = first["old"]

    if second["action"] == REMOVED:
        end = _MISSING
    elif second["action"] == MODIFIED:
        end = _apply_forward(middle_mapping, second["nested"])
    else:
        end = second["new"]

    return _entry_for(start, end)


def merge_diffs(diffs: Iterable[dict[str, Any]]) -> dict[str, Any]:
    """
    Collapse a chain of diffs (x0->x1, x1->x2, ...) into one diff x0->xn.

    Later changes win for the "new" side while the first-seen "old" side is
    kept, so the merged diff still inverts to the original start state.
    Keys whose changes cancel out are dropped.
    """
    merged: dict[str, Any] = {}
    for changes in diffs:
        for key, entry in changes.items():
            if key not in merged:
                merged[key] = copy.deepcopy(entry)
                continue
            combined = _chain(merged[key], entry)
            if combined is None:
                del merged[key]
            else:
                merged[key] = combined
    return merged


def has_significant_changes(
    changes: dict[str, Any],
    ignore_keys: Iterable[str] = DEFAULT_IGNORED_KEYS,
) -> bool:
    """True if the diff touches any top-level key not in ignore_keys."""
    ignored = set(ignore_keys)
    return any(key not in ignored for key in changes)


def format_value(value: Any) -> str:
    """Render a value for a summary line (JSON-ish, compact, non-ASCII kept)."""
    if value is None:
        return "null"
    try:
        return json.dumps(value, ensure_ascii=False, sort_keys=True, default=str)
    except (TypeError, ValueError):
        return repr(value)


def summarize(changes: dict[str, Any], prefix: str = "") -> list[str]:
    """
    Human-readable lines for a diff, in diff order; nested keys are dotted.

    Example:
        >>> summarize({"b": {"action": "modified", "nested": {"c": {"action": "changed", "old": 2, "new": 3}}}})
        ['Changed b.c: 2 -> 3']
    """
    lines = []
    for key, entry in changes.items():
        path = f"{prefix}{key}"
        action = entry.get("action")
        if action == ADDED:
            lines.append(f"Added {path}: {format_value(entry['new'])}")
        elif action == REMOVED:
            lines.append(f"Removed {path} (was {format_value(entry['old'])})")
        elif action == CHANGED:
            lines.append(f"Changed {path}: {format_value(entry['old'])} -> {format_value(entry['new'])}")
        elif action == MODIFIED:
            lines.extend(summarize(entry["nested"], prefix=f"{path}."))
    return lines
